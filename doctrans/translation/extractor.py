"""
Translatable string extraction.

Walks an arbitrary JSON-like document in pre-order and collects every string
leaf that should be translated, together with the path needed to put the
translation back.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from doctrans.logger import get_logger
from doctrans.translation.html import has_html, protect_html_tags, repair_html

logger = get_logger(__name__)


class Index(int):
    """Array position inside a path; object keys are kept as the document's own keys."""


# Object keys keep their original type (str, or any hashable a dict allows)
PathStep = Any

# Structural / technical fields that are never translated
STRUCTURAL_KEY_RE = re.compile(
    r"^(icon(name)?|ids?|url|src|scene_type|type|difficulty|headers|sender)$",
    re.IGNORECASE,
)

# First match wins, order matters ("subject_title" is a title)
CONTEXT_RULES: List[Tuple[str, str]] = [
    ('title', 'title'),
    ('subject', 'email_subject'),
    ('description', 'description'),
    ('content', 'content'),
    ('message', 'message'),
    ('explanation', 'explanation'),
]


@dataclass(frozen=True)
class ExtractedString:
    """One translatable leaf.

    ``value`` is already tag-protected when the leaf carried markup; ``tag_map``
    is only set in that case.
    """
    path: str
    value: str
    context: str = 'text'
    tag_map: Optional[Dict[int, str]] = None
    steps: Tuple[PathStep, ...] = field(default=(), compare=False)


def format_path(steps: Sequence[PathStep]) -> str:
    """('emails', 0, 'subject') -> 'emails[0].subject'. Integer keys print as indices."""
    path = ''
    for step in steps:
        if isinstance(step, int) and not isinstance(step, bool):
            path += f'[{step}]'
        else:
            path = f"{path}.{step}" if path else str(step)
    return path


def is_protected_key(key: str, protected_keys: Sequence[str]) -> bool:
    lowered = key.lower()
    if any(pk and pk.lower() in lowered for pk in protected_keys):
        return True
    return bool(STRUCTURAL_KEY_RE.match(key))


def detect_context(key: str) -> str:
    lowered = key.lower()
    for needle, context in CONTEXT_RULES:
        if needle in lowered:
            return context
    return 'text'


def _terminating_key(steps: Sequence[PathStep]) -> str:
    """Nearest object key above the leaf; array positions are skipped."""
    for step in reversed(steps):
        if not isinstance(step, Index):
            return str(step)
    return ''


def extract_strings_with_paths(document: Any, protected_keys: Optional[Sequence[str]] = None) -> List[ExtractedString]:
    """
    Collect translatable strings in stable pre-order.

    Args:
        document: Any JSON-like value (dict / list / scalar tree)
        protected_keys: Key fragments that must never be translated
            (case-insensitive substring match against the leaf's key)

    Returns:
        List of ExtractedString in document order
    """
    protected_keys = list(protected_keys or [])
    results: List[ExtractedString] = []

    def traverse(current: Any, steps: Tuple[PathStep, ...]):
        if isinstance(current, str):
            key = _terminating_key(steps)
            if key and is_protected_key(key, protected_keys):
                return

            context = detect_context(key)
            path = format_path(steps)

            if has_html(current):
                fixed = repair_html(current)
                protected_text, tag_map = protect_html_tags(fixed)
                if tag_map:
                    results.append(ExtractedString(path, protected_text, context, tag_map, steps))
                    return
            # Stray '<' / '>' without tags are kept verbatim
            results.append(ExtractedString(path, current, context, None, steps))
        elif isinstance(current, list):
            for index, item in enumerate(current):
                traverse(item, steps + (Index(index),))
        elif isinstance(current, dict):
            for key, value in current.items():
                traverse(value, steps + (key,))

    traverse(document, ())

    html_count = sum(1 for item in results if item.tag_map)
    logger.debug(f"Extracted {len(results)} strings ({html_count} with HTML)")
    return results

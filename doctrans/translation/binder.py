"""Reinjection of translated values into a copy of the source document."""

import copy
from typing import Any, List, Sequence

from doctrans.ai.exceptions import IntegrityError
from doctrans.logger import get_logger
from doctrans.translation.extractor import ExtractedString
from doctrans.translation.html import repair_html, restore_html_tags
from doctrans.translation.utils import parse_path

logger = get_logger(__name__)


def set_at_path(document: Any, steps: List, value: Any) -> None:
    """Assign value at steps inside document (in place)."""
    if not steps:
        raise ValueError("Cannot assign at an empty path")
    node = document
    for step in steps[:-1]:
        node = node[step]
    node[steps[-1]] = value


def bind_translated_strings(original: Any, extracted: Sequence[ExtractedString], translated: Sequence[str]) -> Any:
    """
    Build a translated copy of ``original``.

    The source document is never mutated. Leaves that were not extracted are
    left exactly as they were.

    Raises:
        IntegrityError: If extracted and translated lengths differ
    """
    if len(extracted) != len(translated):
        message = f"Mismatch: extracted {len(extracted)} strings but got {len(translated)} translations"
        logger.error(f"Translation binding failed: {message}")
        raise IntegrityError(
            message,
            code="bind_count_mismatch",
            details={"extracted": len(extracted), "translated": len(translated)},
        )

    # A bare string document is its own single leaf
    if len(extracted) == 1 and not (extracted[0].steps or parse_path(extracted[0].path)):
        return _restore(extracted[0], translated[0])

    result = copy.deepcopy(original)
    for item, value in zip(extracted, translated):
        steps = list(item.steps) or parse_path(item.path)
        set_at_path(result, steps, _restore(item, value))
    return result


def _restore(item: ExtractedString, value: str) -> str:
    if not item.tag_map:
        return value
    # The translator may have moved tokens around; re-balance after restoring
    return repair_html(restore_html_tags(value, item.tag_map))

"""
JSON recovery for free-text model output.

Models wrap JSON in quotes, markdown fences and chatty prose. ``clean_response``
tries a fixed chain of extraction strategies, hands the first candidate to
json-repair and only returns once the result parses to an object or array
of the same kind the candidate opened with.
"""

import json
import re
from typing import Callable, List, Optional

from json_repair import repair_json

from doctrans.ai.exceptions import ResponseCleanError
from doctrans.logger import get_logger

logger = get_logger(__name__)

PREVIEW_CHARS = 200

FENCE_RE = re.compile(r"```[\w+-]*[ \t]*\r?\n?(.*?)```", re.DOTALL)

WHITESPACE_RE = re.compile(r"\s+")

# Opening delimiter -> the type the repaired value must have
CONTAINER_TYPES = {"{": dict, "[": list}

Strategy = Callable[[str], Optional[str]]


def unwrap_quotes(text: str) -> Optional[str]:
    """'{"a": 1}' or "{\\"a\\": 1}" -> {"a": 1}."""
    if len(text) < 2 or text[0] not in ('"', "'") or text[0] != text[-1]:
        return None

    interior = text[1:-1].strip()
    if not interior.startswith(('{', '[')):
        return None

    if text[0] == '"':
        # A JSON string literal holding JSON: decode the escapes
        try:
            decoded = json.loads(text)
        except json.JSONDecodeError:
            decoded = None
        if isinstance(decoded, str):
            return decoded.strip()
    return interior


def extract_fenced_block(text: str) -> Optional[str]:
    match = FENCE_RE.search(text)
    if not match:
        return None
    inner = match.group(1).strip()
    return inner or None


def extract_balanced_object(text: str) -> Optional[str]:
    """
    First '{' to last '}', accepted only when it is one balanced object.

    Braces inside double-quoted strings are ignored; backslash escapes are honoured.
    """
    start = text.find('{')
    end = text.rfind('}')
    if start < 0 or end <= start:
        return None

    candidate = text[start:end + 1]
    depth = 0
    in_string = False
    escape_next = False

    for i, char in enumerate(candidate):
        if escape_next:
            escape_next = False
            continue
        if in_string:
            if char == '\\':
                escape_next = True
            elif char == '"':
                in_string = False
            continue

        if char == '"':
            in_string = True
        elif char == '{':
            depth += 1
        elif char == '}':
            depth -= 1
            if depth < 0:
                return None
            # Closing before the end means several objects, not one
            if depth == 0 and i != len(candidate) - 1:
                return None

    return candidate if depth == 0 else None


def extract_bracketed(text: str) -> Optional[str]:
    start = text.find('[')
    end = text.rfind(']')
    if start < 0 or end <= start:
        return None
    return text[start:end + 1]


STRATEGIES: List[Strategy] = [
    unwrap_quotes,
    extract_fenced_block,
    extract_balanced_object,
    extract_bracketed,
]


def extract_json_candidate(text: str) -> str:
    """
    Run the strategy chain.

    The trimmed text itself is the last resort, and only when it opens like
    JSON; prose with stray braces is rejected rather than handed to the repairer.

    Raises:
        ValueError: If nothing in the text looks like a JSON object or array
    """
    trimmed = text.strip()
    for strategy in STRATEGIES:
        candidate = strategy(trimmed)
        if candidate is not None:
            logger.debug(f"JSON candidate found by {strategy.__name__}")
            return candidate
    if trimmed[:1] in CONTAINER_TYPES:
        return trimmed
    raise ValueError("no JSON object or array found")


def _check_repairable(candidate: str) -> None:
    """Broken JSON worth repairing still carries quoted strings; bare prose in brackets does not."""
    try:
        json.loads(candidate)
        return
    except ValueError:
        pass
    if '"' not in candidate and "'" not in candidate:
        raise ValueError("candidate is neither valid JSON nor repairable (no quoted strings)")


def _check_repaired(candidate: str, parsed) -> None:
    """The repairer may only fix syntax, never invent a different structure."""
    opener = candidate.lstrip()[:1]
    expected = CONTAINER_TYPES.get(opener)
    if expected is None:
        raise ValueError("candidate is not a JSON object or array")
    if not isinstance(parsed, expected):
        raise ValueError(f"repair turned a {expected.__name__} candidate into {type(parsed).__name__}")
    if not parsed and WHITESPACE_RE.sub('', candidate) not in ('{}', '[]'):
        raise ValueError("repair discarded the whole candidate")


def clean_response(text: str, label: str) -> str:
    """
    Turn raw model output into a parseable JSON string.

    Args:
        text: Raw model output
        label: Caller tag embedded in error messages (e.g. "inbox-chunk-3")

    Returns:
        JSON text that ``json.loads`` accepts and that decodes to an object or array

    Raises:
        ResponseCleanError: If no candidate can be repaired into an object or array
            of the same kind it started as
    """
    preview = (text or '')[:PREVIEW_CHARS]
    try:
        if not text or not text.strip():
            raise ValueError("empty response")

        candidate = extract_json_candidate(text)
        _check_repairable(candidate)
        repaired = repair_json(candidate, ensure_ascii=False)
        _check_repaired(candidate, json.loads(repaired))
        return repaired
    except (ValueError, TypeError, RecursionError) as e:
        logger.error(f"Failed to clean {label} response. Preview: {preview!r}")
        raise ResponseCleanError(label, str(e) or e.__class__.__name__, preview) from e

"""
Translation utility functions for chunking and path handling.
Provides capabilities for sizing translation batches and addressing leaves
inside nested JSON structures.
"""

import json
import re
from typing import Any, List, Sequence, TypeVar, Union

DEFAULT_MAX_JSON_CHARS = 28000
DEFAULT_INITIAL_CHUNK_SIZE = 50
DEFAULT_MIN_CHUNK_SIZE = 5
DEFAULT_SIZE_REDUCTION_FACTOR = 0.7

PATH_TOKEN_RE = re.compile(r"\[(\d+)\]|([^.\[\]]+)")

T = TypeVar('T')


def numbered_payload(values: Sequence[str]) -> dict:
    """['a', 'b'] -> {"0": "a", "1": "b"}"""
    return {str(i): value for i, value in enumerate(values)}


def payload_length(values: Sequence[str]) -> int:
    """Length of the compact JSON object a chunk of values is sent as."""
    return len(json.dumps(numbered_payload(values), ensure_ascii=False, separators=(',', ':')))


def compute_chunk_size(
    items: Sequence[Any],
    max_json_chars: int = DEFAULT_MAX_JSON_CHARS,
    initial_size: int = DEFAULT_INITIAL_CHUNK_SIZE,
    min_size: int = DEFAULT_MIN_CHUNK_SIZE,
    reduction_factor: float = DEFAULT_SIZE_REDUCTION_FACTOR,
) -> int:
    """
    Derive how many strings fit in one model call.

    Measures the serialized numbered map of the first ``size`` values and
    shrinks ``size`` by ``reduction_factor`` until it fits ``max_json_chars``
    or reaches ``min_size``.

    Args:
        items: ExtractedString entries (anything with a ``value``) or plain strings

    Returns:
        Chunk width between min_size and initial_size
    """
    values = [getattr(item, 'value', item) for item in items]

    size = initial_size
    while payload_length(values[:size]) > max_json_chars and size > min_size:
        size = max(min_size, int(size * reduction_factor))
    return size


def split_into_chunks(items: Sequence[T], chunk_size: int) -> List[List[T]]:
    """Consecutive slices of chunk_size; the last one may be shorter."""
    if chunk_size < 1:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")
    return [list(items[i:i + chunk_size]) for i in range(0, len(items), chunk_size)]


def parse_path(path: str) -> List[Union[str, int]]:
    """
    Split a leaf path into object keys and array indices.

    Example:
        >>> parse_path("emails[0].attachments[2].name")
        ['emails', 0, 'attachments', 2, 'name']
    """
    steps: List[Union[str, int]] = []
    for index, key in PATH_TOKEN_RE.findall(path):
        steps.append(int(index) if index else key)
    return steps

from __future__ import annotations

import pytest

from doctrans.translation.extractor import ExtractedString
from doctrans.translation.utils import (
    compute_chunk_size,
    numbered_payload,
    parse_path,
    payload_length,
    split_into_chunks,
)


def _entries(count: int, length: int) -> list[ExtractedString]:
    return [ExtractedString(f"items[{i}]", "x" * length) for i in range(count)]


def test_small_items_keep_initial_size() -> None:
    assert compute_chunk_size(_entries(200, 20)) == 50


def test_empty_input_keeps_initial_size() -> None:
    assert compute_chunk_size([]) == 50


def test_large_items_shrink_until_the_payload_fits() -> None:
    entries = _entries(100, 1000)

    size = compute_chunk_size(entries)

    assert 5 <= size < 50
    assert payload_length([e.value for e in entries[:size]]) <= 28000


def test_size_never_drops_below_floor() -> None:
    assert compute_chunk_size(_entries(20, 100_000)) == 5


def test_size_is_non_increasing_as_items_grow() -> None:
    sizes = [compute_chunk_size(_entries(100, length)) for length in (10, 200, 800, 3000, 20000)]

    assert sizes == sorted(sizes, reverse=True)
    assert all(5 <= size <= 50 for size in sizes)


def test_custom_budget() -> None:
    assert compute_chunk_size(["abcdefghij"] * 20, max_json_chars=60, initial_size=10, min_size=2) == 2


def test_split_into_chunks() -> None:
    assert split_into_chunks(list(range(12)), 5) == [[0, 1, 2, 3, 4], [5, 6, 7, 8, 9], [10, 11]]
    assert split_into_chunks([], 5) == []


def test_split_rejects_non_positive_size() -> None:
    with pytest.raises(ValueError):
        split_into_chunks([1, 2], 0)


def test_numbered_payload() -> None:
    assert numbered_payload(["a", "b"]) == {"0": "a", "1": "b"}
    assert payload_length(["a"]) == len('{"0":"a"}')


@pytest.mark.parametrize(
    ("path", "steps"),
    [
        ("title", ["title"]),
        ("emails[0].subject", ["emails", 0, "subject"]),
        ("emails[0].attachments[12].name", ["emails", 0, "attachments", 12, "name"]),
        ("[1][0]", [1, 0]),
        ("", []),
    ],
)
def test_parse_path(path: str, steps: list) -> None:
    assert parse_path(path) == steps

from __future__ import annotations

import json

import pytest

from doctrans.ai.exceptions import ResponseCleanError, TranslationError
from doctrans.translation.json_recovery import (
    PREVIEW_CHARS,
    clean_response,
    extract_balanced_object,
    extract_bracketed,
    extract_fenced_block,
    unwrap_quotes,
)


def test_escaped_double_quote_wrapping_is_decoded() -> None:
    raw = '"{\\"key\\":\\"value\\"}"'

    assert json.loads(clean_response(raw, "test")) == {"key": "value"}


def test_single_quote_wrapping_is_removed() -> None:
    assert json.loads(clean_response("'{\"key\":\"value\"}'", "test")) == {"key": "value"}


def test_mismatched_wrapping_quotes_fall_through_to_brace_extraction() -> None:
    raw = '"{"key":"value"}\''

    assert unwrap_quotes(raw) is None
    assert json.loads(clean_response(raw, "test")) == {"key": "value"}


@pytest.mark.parametrize(
    "raw",
    [
        '```json\n{"name":"test","value":123}\n```',
        '```\n{"name":"test","value":123}\n```',
        'Here you go:\n```json\n{"name":"test","value":123}\n```\nHope this helps!',
    ],
)
def test_fenced_blocks(raw: str) -> None:
    assert json.loads(clean_response(raw, "test")) == {"name": "test", "value": 123}


def test_prose_around_object() -> None:
    raw = 'Here is the JSON: {"0": "Merhaba", "1": "Dünya"} and some trailing text'

    assert json.loads(clean_response(raw, "test")) == {"0": "Merhaba", "1": "Dünya"}


def test_braces_inside_string_values() -> None:
    raw = '{"text":"value with } inside","code":"{ function }"}'

    parsed = json.loads(clean_response(raw, "test"))

    assert parsed["text"] == "value with } inside"
    assert parsed["code"] == "{ function }"


def test_html_and_css_braces_survive() -> None:
    raw = '{"template":"<html><body>{name}</body></html>","css":"body { margin: 0; }"}'

    parsed = json.loads(clean_response(raw, "html-json"))

    assert "{name}" in parsed["template"]
    assert parsed["css"] == "body { margin: 0; }"


def test_escaped_quotes_and_backslashes() -> None:
    raw = '{"text":"value with \\"escaped\\" quotes","path":"C:\\\\Users\\\\file"}'

    parsed = json.loads(clean_response(raw, "test"))

    assert parsed["text"] == 'value with "escaped" quotes'
    assert parsed["path"] == "C:\\Users\\file"


def test_array_reply() -> None:
    assert json.loads(clean_response("Results: [1,2,3,4,5] end", "test")) == [1, 2, 3, 4, 5]


def test_nested_arrays() -> None:
    assert json.loads(clean_response("Data: [[1,2],[3,4]] here", "test")) == [[1, 2], [3, 4]]


def test_array_of_objects_is_not_cut_to_its_objects() -> None:
    raw = '[{"a": 1}, {"b": 2}]'

    assert extract_balanced_object(raw) is None
    assert json.loads(clean_response(raw, "test")) == [{"a": 1}, {"b": 2}]


def test_trailing_comma_is_repaired() -> None:
    assert json.loads(clean_response('{"0": "Merhaba",}', "test")) == {"0": "Merhaba"}


def test_unbalanced_object_is_repaired() -> None:
    raw = '{"a": {"b": 1}'

    assert extract_balanced_object(raw) is None
    assert json.loads(clean_response(raw, "test")) == {"a": {"b": 1}}


def test_unicode_is_kept() -> None:
    parsed = json.loads(clean_response('{"greeting":"Merhaba 👋","city":"İstanbul"}', "unicode"))

    assert parsed == {"greeting": "Merhaba 👋", "city": "İstanbul"}


def test_large_object() -> None:
    payload = {f"key_{i}": f"value_{i}" for i in range(1000)}

    assert json.loads(clean_response(json.dumps(payload), "large")) == payload


def test_unrecoverable_text_raises_with_label() -> None:
    with pytest.raises(ResponseCleanError) as excinfo:
        clean_response("I could not produce the translation, sorry.", "chunk-7")

    assert str(excinfo.value).startswith("Failed to clean chunk-7 response: ")
    assert excinfo.value.code == "json_recovery_failed"
    assert isinstance(excinfo.value, TranslationError)


def test_empty_reply_raises() -> None:
    with pytest.raises(ResponseCleanError):
        clean_response("   ", "empty")


def test_error_preview_is_bounded() -> None:
    raw = "no structured data here " * 100

    with pytest.raises(ResponseCleanError) as excinfo:
        clean_response(raw, "long")

    assert len(excinfo.value.details["preview"]) == PREVIEW_CHARS


def test_strategy_helpers() -> None:
    assert extract_fenced_block("no fence") is None
    assert extract_fenced_block("```js\n[1]\n```") == "[1]"
    assert extract_balanced_object("text only") is None
    assert extract_balanced_object('a {"x": "}"} b') == '{"x": "}"}'
    assert extract_bracketed("x [1, [2]] y") == "[1, [2]]"
    assert unwrap_quotes('"plain words"') is None


def test_unterminated_braces_in_prose_raise() -> None:
    with pytest.raises(ResponseCleanError):
        clean_response("not json at all {{{", "test")


def test_braced_word_in_prose_raises_with_label() -> None:
    with pytest.raises(ResponseCleanError) as excinfo:
        clean_response("invalid json {broken}", "test-section")

    assert "test-section" in str(excinfo.value)


def test_refusal_with_braced_placeholder_raises() -> None:
    with pytest.raises(ResponseCleanError):
        clean_response("Sorry, I cannot translate {this} text", "chunk-1")


def test_empty_containers_are_accepted_as_written() -> None:
    assert clean_response("{ }", "test") == "{}"
    assert json.loads(clean_response("Nothing to do: []", "test")) == []


def test_bracketed_prose_is_not_repaired_into_an_array() -> None:
    with pytest.raises(ResponseCleanError):
        clean_response("Sorry [this cannot be translated]", "chunk-2")

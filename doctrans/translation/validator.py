"""
Translation Validation Module

Contains integrity checks between a source string and its translation:
- Placeholder preservation (simple interpolations and ICU plural/select blocks)
- URL and email preservation
- Edge whitespace repair

Mismatches are reported, never raised: a check failure is a soft issue.
"""

import re
from typing import Iterable, List, Set


ICU_TOKEN_RE = re.compile(r"\{[^}]*,(?:\s*plural|\s*select)[^}]*\}")
SIMPLE_PLACEHOLDER_RE = re.compile(r"%[sd]|\{\{\s*[\w.-]+\s*\}\}|\{[\w.-]+\}")
TRIVIAL_PLACEHOLDER_RE = re.compile(r"\{\{[\w.-]+\}\}|%[sd]|\{[\w.-]+\}")
URL_RE = re.compile(r"\bhttps?://[^\s<>\"']+", re.IGNORECASE)
EMAIL_RE = re.compile(r"\b[A-Z0-9._%+-]+@[A-Z0-9.-]+\.[A-Z]{2,}\b", re.IGNORECASE)
LEADING_WS_RE = re.compile(r"^\s*")
TRAILING_WS_RE = re.compile(r"\s*$")

PLACEHOLDER_MISMATCH = "placeholder mismatch"
URL_MISMATCH = "url mismatch"
EMAIL_MISMATCH = "email mismatch"


def is_trivial_value(text: str) -> bool:
    """Empty after trimming, or exactly one placeholder token: nothing to translate."""
    trimmed = text.strip()
    if not trimmed:
        return True
    return TRIVIAL_PLACEHOLDER_RE.fullmatch(trimmed) is not None


def collect_placeholders(text: str) -> List[str]:
    """All ICU blocks and simple placeholders in text, sorted."""
    tokens = ICU_TOKEN_RE.findall(text) + SIMPLE_PLACEHOLDER_RE.findall(text)
    return sorted(tokens)


def placeholders_equal(source: str, translation: str) -> bool:
    return collect_placeholders(source) == collect_placeholders(translation)


def _casefold_set(values: Iterable[str]) -> Set[str]:
    return {value.lower() for value in values}


def urls_equal(source: str, translation: str) -> bool:
    return _casefold_set(URL_RE.findall(source)) == _casefold_set(URL_RE.findall(translation))


def emails_equal(source: str, translation: str) -> bool:
    return _casefold_set(EMAIL_RE.findall(source)) == _casefold_set(EMAIL_RE.findall(translation))


def find_integrity_issues(source: str, translation: str) -> List[str]:
    """
    Run the non-fatal integrity checks.

    Returns:
        Names of the failed checks, empty when the translation is clean
    """
    failed = []
    if not placeholders_equal(source, translation):
        failed.append(PLACEHOLDER_MISMATCH)
    if not urls_equal(source, translation):
        failed.append(URL_MISMATCH)
    if not emails_equal(source, translation):
        failed.append(EMAIL_MISMATCH)
    return failed


def edge_whitespace(text: str):
    """(leading, trailing) whitespace runs."""
    lead = LEADING_WS_RE.match(text).group(0)
    if len(lead) == len(text):
        return lead, lead
    tail = TRAILING_WS_RE.search(text).group(0)
    return lead, tail


def repair_edge_whitespace(source: str, translation: str) -> str:
    """Give the translation the source's leading/trailing whitespace when they differ."""
    source_lead, source_tail = edge_whitespace(source)
    lead, tail = edge_whitespace(translation)
    if len(source_lead) != len(lead) or len(source_tail) != len(tail):
        return source_lead + translation.strip() + source_tail
    return translation

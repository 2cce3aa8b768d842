"""
HTML handling for translatable strings.

Markup never reaches the model: tags are repaired, swapped for opaque
``__HTML{n}__`` tokens before translation and swapped back afterwards.
"""

import re
from typing import Dict, Tuple

from bs4 import BeautifulSoup

from doctrans.logger import get_logger

logger = get_logger(__name__)

TAG_RE = re.compile(r"<[^>]+>")

TOKEN_TEMPLATE = "__HTML{index}__"


def has_html(text: str) -> bool:
    return '<' in text and '>' in text


def repair_html(html: str) -> str:
    """
    Parse an HTML fragment and serialize it back, closing unmatched tags.

    html.parser adds no <html>/<body> wrapper. Never raises: on parser
    failure the input is returned unchanged.
    """
    if not html or not isinstance(html, str) or not has_html(html):
        return html

    try:
        soup = BeautifulSoup(html, 'html.parser')
        return str(soup)
    except Exception as e:
        logger.warning(f"Failed to repair HTML, returning original (error: {e}, length: {len(html)})")
        return html


def protect_html_tags(text: str) -> Tuple[str, Dict[int, str]]:
    """
    Replace each tag with a positional token.

    Returns:
        Tuple of (protected_text, tag_map) where tag_map is {0: "<b>", 1: "</b>", ...}
        in order of appearance
    """
    tag_map: Dict[int, str] = {}

    def _tokenize(match: re.Match) -> str:
        index = len(tag_map)
        tag_map[index] = match.group(0)
        return TOKEN_TEMPLATE.format(index=index)

    protected_text = TAG_RE.sub(_tokenize, text)
    return protected_text, tag_map


def restore_html_tags(text: str, tag_map: Dict[int, str]) -> str:
    """Put the original tags back in place of their tokens."""
    if not tag_map:
        return text

    restored = text
    for index, tag in tag_map.items():
        restored = restored.replace(TOKEN_TEMPLATE.format(index=index), tag)
    return restored

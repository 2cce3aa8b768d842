"""Prompt assembly for chunk localization."""

import json
from typing import Optional, Sequence

from doctrans import language_codes as lc
from doctrans.config import DEFAULT_SYSTEM_MESSAGE, get_prompt
from doctrans.translation.utils import numbered_payload


def _language_name(label: str) -> str:
    return lc.get_language_name(label) or label


def build_topic_context(topic: Optional[str]) -> str:
    if topic:
        return f"You are localizing content about {topic}. Use appropriate terminology for this topic."
    return "You are localizing general content."


def build_system_prompt(
    source_language: str,
    target_language: str,
    string_count: int,
    topic: Optional[str] = None,
    system_message: Optional[str] = None,
) -> str:
    template = get_prompt('localization_system_prompt')['prompt']
    return template.format(
        system_message=system_message or DEFAULT_SYSTEM_MESSAGE,
        topic_context=build_topic_context(topic),
        source_language_name=_language_name(source_language),
        source_language_code=source_language,
        target_language_name=_language_name(target_language),
        target_language_code=target_language,
        string_count=string_count,
    )


def build_user_prompt(values: Sequence[str], source_language: str, target_language: str) -> str:
    template = get_prompt('localization_user_prompt')['prompt']
    return template.format(
        source_language_name=_language_name(source_language),
        target_language_name=_language_name(target_language),
        numbered_json=json.dumps(numbered_payload(values), ensure_ascii=False, indent=2),
        last_index=len(values) - 1,
    )

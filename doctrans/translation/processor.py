"""
Translation Processing Module

Contains functions for translating chunks of extracted strings:
- Single chunk translation with integrity checks and fallback
- Batched scheduling (chunks inside a batch run concurrently, batches run in order)
"""

import asyncio
import json
from typing import Callable, List, Optional, Sequence

from doctrans.ai.exceptions import TranslationError
from doctrans.logger import get_logger
from doctrans.translation.extractor import ExtractedString
from doctrans.translation.json_recovery import clean_response
from doctrans.translation.prompts import build_user_prompt
from doctrans.translation.utils import numbered_payload
from doctrans.translation.validator import (
    find_integrity_issues,
    is_trivial_value,
    repair_edge_whitespace,
)

logger = get_logger(__name__)

DEFAULT_BATCH_SIZE = 3


def _parse_reply(text: str, label: str) -> dict:
    parsed = json.loads(clean_response(text, label))
    if isinstance(parsed, list):
        parsed = numbered_payload(parsed)
    if not isinstance(parsed, dict):
        raise TranslationError(f"{label}: expected a JSON object, got {type(parsed).__name__}")
    return parsed


async def translate_chunk(
    chunk: Sequence[ExtractedString],
    chunk_index: int,
    ai_service,
    system_prompt: str,
    source_lang: str,
    target_lang: str,
    issues: List[str],
) -> List[str]:
    """
    Translate one chunk.

    Trivial values (blank, or a lone placeholder) are not sent; they keep their
    source value. Any failure returns the chunk's original values unchanged, so
    the result always has len(chunk) items.

    Args:
        chunk: Extracted strings of this chunk (values already tag-protected)
        chunk_index: 0-based chunk position, reported 1-based in logs and issues
        ai_service: Object with ``async generate_text(system_prompt, user_prompt) -> str``
        system_prompt: Prompt shared by every chunk of the document
        source_lang: Source language label
        target_lang: Target language label
        issues: Shared list soft integrity issues are appended to

    Returns:
        Translated values in chunk order
    """
    chunk_number = chunk_index + 1
    sources = [item.value for item in chunk]
    request_indices = [i for i, value in enumerate(sources) if not is_trivial_value(value)]

    if not request_indices:
        logger.debug(f"Chunk {chunk_number}: only trivial values, nothing to send")
        return sources

    try:
        logger.debug(f"Chunk {chunk_number}: Starting translation of {len(request_indices)}/{len(sources)} strings")
        user_prompt = build_user_prompt([sources[i] for i in request_indices], source_lang, target_lang)
        response_text = await ai_service.generate_text(system_prompt, user_prompt)
        reply = _parse_reply(response_text, f"chunk-{chunk_number}")

        translated = list(sources)
        chunk_issues = []
        for request_pos, i in enumerate(request_indices):
            key = str(request_pos)
            if key not in reply:
                raise TranslationError(
                    f'Missing key "{key}" in translation output',
                    code="missing_index",
                    details={"chunk": chunk_number, "index": i},
                )
            candidate = reply[key]
            if not isinstance(candidate, str):
                raise TranslationError(
                    f'Key "{key}" is not a string in translation output',
                    code="invalid_value",
                    details={"chunk": chunk_number, "index": i},
                )

            source = sources[i]
            for check in find_integrity_issues(source, candidate):
                chunk_issues.append(f"chunk {chunk_number} index {i}: {check}")

            translated[i] = repair_edge_whitespace(source, candidate)

        issues.extend(chunk_issues)
        logger.debug(f"Chunk {chunk_number}: Translation completed ({len(chunk_issues)} soft issues)")
        return translated
    except Exception as e:
        logger.warning(f"Chunk {chunk_number} translation failed: {e}. Returning originals.")
        return sources


async def translate_chunks_batched(
    chunks: Sequence[Sequence[ExtractedString]],
    ai_service,
    system_prompt: str,
    source_lang: str,
    target_lang: str,
    issues: List[str],
    batch_size: int = DEFAULT_BATCH_SIZE,
    on_batch_done: Optional[Callable[[int, int, int], None]] = None,
) -> List[str]:
    """
    Translate chunks in batches of ``batch_size`` concurrent calls.

    Batches run one after another; results are concatenated in chunk order
    regardless of completion order.

    Args:
        on_batch_done: Optional callback(batch_number, total_batches, completed_chunks)

    Returns:
        Flat list of translated values, aligned with the flattened chunks
    """
    batch_size = max(1, batch_size)
    total_batches = (len(chunks) + batch_size - 1) // batch_size
    all_translated: List[str] = []

    for batch_number, start in enumerate(range(0, len(chunks), batch_size), start=1):
        batch = chunks[start:start + batch_size]
        logger.debug(f"Processing batch {batch_number}/{total_batches} ({len(batch)} chunks in parallel)")

        results = await asyncio.gather(
            *(
                translate_chunk(chunk, start + offset, ai_service, system_prompt, source_lang, target_lang, issues)
                for offset, chunk in enumerate(batch)
            ),
            return_exceptions=True,
        )

        for offset, result in enumerate(results):
            if isinstance(result, Exception):
                logger.warning(f"Chunk {start + offset + 1} task failed: {result}. Returning originals.")
                all_translated.extend(item.value for item in batch[offset])
            elif isinstance(result, BaseException):
                raise result
            else:
                all_translated.extend(result)

        if on_batch_done:
            on_batch_done(batch_number, total_batches, start + len(batch))

    return all_translated

"""
Translation module - Core document translation functionality

This module provides:
- TranslationManager: Main translation workflow coordinator
- TranslationProgress: Progress tracking dataclass
- Extraction, chunking, validation and binding building blocks
- JSON recovery for free-text model output
"""

from doctrans.translation.progress import TranslationProgress
from doctrans.translation.manager import TranslationManager, TranslationResult, translate_document
from doctrans.translation.json_recovery import clean_response
from doctrans.translation.html import repair_html, protect_html_tags, restore_html_tags
from doctrans.translation.extractor import ExtractedString, extract_strings_with_paths
from doctrans.translation.utils import compute_chunk_size, split_into_chunks, parse_path
from doctrans.translation.validator import (
    collect_placeholders,
    find_integrity_issues,
    is_trivial_value,
    repair_edge_whitespace,
)
from doctrans.translation.processor import translate_chunk, translate_chunks_batched
from doctrans.translation.binder import bind_translated_strings

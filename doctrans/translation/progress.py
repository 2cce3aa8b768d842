"""
Translation Progress Data Class

Contains the TranslationProgress dataclass reported to progress callbacks.
"""

from dataclasses import dataclass
from typing import Optional, Dict


@dataclass
class TranslationProgress:
    """Progress information for an ongoing document translation."""
    source_language: str
    target_language: str
    total_items: int
    processed_items: int = 0
    # Batch progress fields
    current_batch: int = 0           # Current batch number (1-indexed)
    total_batches: int = 0
    completed_chunks: int = 0
    total_chunks: int = 0
    chunk_size: int = 0
    issues_count: int = 0
    phase: str = "extracted"         # "extracted", "batch_done", "completed"
    # Token usage so far, when the backend reports it
    token_usage: Optional[Dict[str, int]] = None

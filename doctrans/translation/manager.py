"""
Translation Manager Module

Main TranslationManager class that coordinates the document translation workflow:
- Extract translatable strings (HTML protected)
- Size and split them into chunks
- Translate chunks in concurrent batches with integrity checks
- Bind the results into a copy of the document
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence

from doctrans.ai.exceptions import IntegrityError, TranslationError
from doctrans.config import get_translation_settings, load_config
from doctrans.logger import get_logger
from doctrans.translation.binder import bind_translated_strings
from doctrans.translation.extractor import extract_strings_with_paths
from doctrans.translation.processor import translate_chunks_batched
from doctrans.translation.progress import TranslationProgress
from doctrans.translation.prompts import build_system_prompt
from doctrans.translation.utils import compute_chunk_size, split_into_chunks

logger = get_logger(__name__)


@dataclass
class TranslationResult:
    """Outcome of one document translation."""
    success: bool
    data: Any = None
    error: Optional[str] = None
    issues: List[str] = field(default_factory=list)
    token_usage: Optional[Dict[str, int]] = None

    def to_dict(self) -> Dict[str, Any]:
        result = {'success': self.success, 'data': self.data}
        if self.error:
            result['error'] = self.error
        return result


class TranslationManager:
    """
    Translates the string leaves of a JSON-like document.

    Features:
    - Structural keys and caller-protected keys are never translated
    - HTML tags are shielded from the model behind positional tokens
    - Chunk failures degrade to the source text, never abort the document
    - Placeholder / URL / email drift is reported as soft issues
    """

    def __init__(
        self,
        ai_service,
        config: Optional[Dict[str, Any]] = None,
        progress_callback: Optional[Callable[[TranslationProgress], None]] = None,
    ):
        """
        Initialize translation manager.

        Args:
            ai_service: Object with ``async generate_text(system_prompt, user_prompt) -> str``
            config: Optional configuration dict (loaded from file when omitted)
            progress_callback: Optional callback receiving TranslationProgress updates
        """
        self.ai_service = ai_service
        self.settings = get_translation_settings(config if config is not None else load_config())
        self.progress_callback = progress_callback

    def _protected_keys(self, do_not_translate_keys: Optional[Sequence[str]]) -> List[str]:
        keys = list(do_not_translate_keys or [])
        for key in self.settings.get('default_protected_keys', []):
            if key not in keys:
                keys.append(key)
        return keys

    def _report(self, progress: TranslationProgress):
        if not self.progress_callback:
            return
        usage = getattr(self.ai_service, 'get_total_token_usage', None)
        if callable(usage):
            progress.token_usage = usage()
        self.progress_callback(progress)

    async def translate(
        self,
        document: Any,
        source_language: str,
        target_language: str,
        do_not_translate_keys: Optional[Sequence[str]] = None,
        topic: Optional[str] = None,
    ) -> TranslationResult:
        """
        Translate every translatable string in ``document``.

        Returns:
            TranslationResult with success=True; ``error`` carries the soft issue
            summary when integrity checks flagged anything

        Raises:
            IntegrityError: If translated values no longer line up with extracted strings
        """
        protected_keys = self._protected_keys(do_not_translate_keys)
        logger.debug(f"Translation configuration: protected_keys={protected_keys}, "
                     f"{source_language} -> {target_language}, topic={topic or 'General'}")

        # 1) Extract
        extracted = extract_strings_with_paths(document, protected_keys)
        html_count = sum(1 for item in extracted if item.tag_map)
        logger.info(f"Extracted {len(extracted)} strings ({html_count} with HTML)")

        if not extracted:
            return TranslationResult(success=True, data=document)

        # 2) Chunking
        chunk_size = compute_chunk_size(
            extracted,
            max_json_chars=self.settings['max_json_chars'],
            initial_size=self.settings['initial_chunk_size'],
            min_size=self.settings['min_chunk_size'],
            reduction_factor=self.settings['size_reduction_factor'],
        )
        chunks = split_into_chunks(extracted, chunk_size)
        logger.info(f"Split strings into {len(chunks)} chunks of up to {chunk_size}")

        progress = TranslationProgress(
            source_language=source_language,
            target_language=target_language,
            total_items=len(extracted),
            total_chunks=len(chunks),
            chunk_size=chunk_size,
        )
        self._report(progress)

        # 3) Translate
        system_prompt = build_system_prompt(
            source_language,
            target_language,
            len(extracted),
            topic,
            system_message=self.settings.get('system_message'),
        )
        issues: List[str] = []

        def on_batch_done(batch_number: int, total_batches: int, completed_chunks: int):
            progress.phase = "batch_done"
            progress.current_batch = batch_number
            progress.total_batches = total_batches
            progress.completed_chunks = completed_chunks
            progress.processed_items = sum(len(chunk) for chunk in chunks[:completed_chunks])
            progress.issues_count = len(issues)
            self._report(progress)

        translated = await translate_chunks_batched(
            chunks,
            self.ai_service,
            system_prompt,
            source_language,
            target_language,
            issues,
            batch_size=self.settings['batch_size'],
            on_batch_done=on_batch_done,
        )

        if len(translated) != len(extracted):
            message = f"Total mismatch: expected {len(extracted)}, got {len(translated)}"
            logger.error(f"Translation length mismatch: {message}")
            raise IntegrityError(
                message,
                code="total_count_mismatch",
                details={"expected": len(extracted), "got": len(translated)},
            )

        # 4) Bind
        data = bind_translated_strings(document, extracted, translated)

        progress.phase = "completed"
        progress.issues_count = len(issues)
        self._report(progress)

        error = None
        if issues:
            error = f"Completed with {len(issues)} soft issues"
            logger.info(error)
            for issue in issues:
                logger.debug(f"  {issue}")

        usage = getattr(self.ai_service, 'get_total_token_usage', None)
        return TranslationResult(
            success=True,
            data=data,
            error=error,
            issues=issues,
            token_usage=usage() if callable(usage) else None,
        )


async def translate_document(
    document: Any,
    source_language: str,
    target_language: str,
    do_not_translate_keys: Optional[Sequence[str]] = None,
    topic: Optional[str] = None,
    ai_service=None,
    config: Optional[Dict[str, Any]] = None,
    progress_callback: Optional[Callable[[TranslationProgress], None]] = None,
) -> Dict[str, Any]:
    """
    Translate a document and always return a result object.

    Returns:
        {"success": True, "data": ..., "error"?: "<n> soft issues"} or
        {"success": False, "data": None, "error": "<message>"} on failure
    """
    try:
        if ai_service is None:
            from doctrans.ai.service import AIService, validate_ai_config
            config = config if config is not None else load_config()
            validate_ai_config(config=config)
            ai_service = AIService(config=config)

        manager = TranslationManager(ai_service, config=config, progress_callback=progress_callback)
        result = await manager.translate(
            document,
            source_language,
            target_language,
            do_not_translate_keys=do_not_translate_keys,
            topic=topic,
        )
        return result.to_dict()
    except TranslationError as e:
        logger.error(f"Document translation failed ({e.code or 'error'}): {e}")
        return {'success': False, 'data': None, 'error': str(e)}

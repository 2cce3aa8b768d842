"""
Text-generation service.

AIService sends one (system, user) prompt pair to the configured provider and
returns the raw reply text. Recoverable provider failures are retried with
backoff; anything else surfaces as TranslationError.

Provider request/response handling lives in ai/providers.py.
"""

import asyncio
from typing import Any, Dict, Optional

import httpx

from doctrans.config import (
    load_config,
    get_translation_settings,
    BUILTIN_PROVIDERS,
    BUILTIN_PROVIDER_DISPLAY_NAMES,
    PLACEHOLDER_API_KEY,
)
from doctrans.logger import get_logger
from doctrans.ai.exceptions import TranslationError

logger = get_logger(__name__)

# Client errors that a retry cannot fix
PERMANENT_STATUS_CODES = {400, 401, 403, 404, 422}

RATE_LIMIT_BASE_WAIT = 30
RATE_LIMIT_MAX_WAIT = 300
TIMEOUT_BASE_WAIT = 5


def _provider_display(provider: str) -> str:
    if provider in BUILTIN_PROVIDERS:
        return BUILTIN_PROVIDER_DISPLAY_NAMES[provider]
    return provider.replace('-', ' ').title()


def validate_ai_config(provider_override: Optional[str] = None, config: Optional[Dict[str, Any]] = None) -> None:
    """
    Check that the selected provider can be called at all.

    Args:
        provider_override: Provider name to check instead of ``ai_provider``
        config: Configuration dict (loaded from file when omitted)

    Raises:
        TranslationError: code ``ai_config_missing``; ``details['missing_field']``
            names the absent setting
    """
    config = config if config is not None else load_config()
    provider = provider_override or config.get('ai_provider', 'openai')
    display = _provider_display(provider)

    settings = config.get(provider)
    if not isinstance(settings, dict) or not settings:
        raise TranslationError(
            f"AI provider '{provider}' configuration not found",
            code="ai_config_missing",
            details={"provider": provider},
        )

    key = settings.get('api_key', '')
    if not key or key == PLACEHOLDER_API_KEY:
        raise TranslationError(
            f"{display} API key not configured.",
            code="ai_config_missing",
            details={"provider": provider, "missing_field": "api_key"},
        )

    listed = settings.get('models')
    has_listed_model = isinstance(listed, list) and any(isinstance(m, str) and m for m in listed)
    if not has_listed_model and not settings.get('model'):
        raise TranslationError(
            f"{display} model not configured",
            code="ai_config_missing",
            details={"provider": provider, "missing_field": "models"},
        )


def retry_delay(error: TranslationError, attempt: int) -> Optional[float]:
    """
    Seconds to wait before retrying ``error``, or None when it is permanent.

    ``attempt`` is 0-based; waits double with every attempt.
    """
    if error.code == 'ai_config_missing':
        return None

    status = error.details.get('status_code')
    if status == 429:
        return min(RATE_LIMIT_BASE_WAIT * 2 ** attempt, RATE_LIMIT_MAX_WAIT)
    if status in PERMANENT_STATUS_CODES:
        return None
    if error.code == 'provider_timeout':
        return TIMEOUT_BASE_WAIT * 2 ** attempt
    # 5xx, malformed replies and transport failures
    return 2 ** attempt


class AIService:
    """Text-generation collaborator: one prompt pair in, raw model text out."""

    def __init__(
        self,
        model_override: Optional[str] = None,
        provider_override: Optional[str] = None,
        config: Optional[Dict[str, Any]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            model_override: Model to use instead of the provider's first listed model
            provider_override: Provider to use instead of ``ai_provider``
            config: Configuration dict (loaded from file when omitted)
            transport: httpx transport for every request (tests pass a MockTransport)
        """
        self.config = config if config is not None else load_config()
        self.provider = provider_override or self.config.get('ai_provider', 'openai')
        self.model_override = model_override
        self.transport = transport
        self.generation_params = get_translation_settings(self.config).get('generation', {})

        self._last_usage = {'prompt_tokens': 0, 'completion_tokens': 0}
        self._total_usage = {'prompt_tokens': 0, 'completion_tokens': 0}

        logger.info(f"AI service ready: provider={self.provider}, model={model_override or 'default'}")

    def _get_model(self, provider_config: Dict[str, Any], default_model: str = "") -> str:
        """Override, else first entry of ``models``, else legacy ``model``, else default."""
        if self.model_override:
            return self.model_override

        listed = provider_config.get('models')
        if isinstance(listed, list) and listed and listed[0]:
            return listed[0]
        return provider_config.get('model', default_model)

    def record_usage(self, prompt_tokens: int, completion_tokens: int):
        self._last_usage = {'prompt_tokens': prompt_tokens, 'completion_tokens': completion_tokens}
        for key, value in self._last_usage.items():
            self._total_usage[key] += value

    def get_last_token_usage(self) -> Dict[str, int]:
        return dict(self._last_usage)

    def get_total_token_usage(self) -> Dict[str, int]:
        return dict(self._total_usage)

    async def generate_text(self, system_prompt: str, user_prompt: str) -> str:
        """
        Send one prompt pair to the configured provider.

        Raises:
            TranslationError: The last failure, once it is permanent or
                ``max_retries`` attempts are used up
        """
        attempts = max(1, int(self.config.get(self.provider, {}).get('max_retries', 3)))

        for attempt in range(attempts):
            try:
                return await self._dispatch(system_prompt, user_prompt)
            except TranslationError as e:
                delay = retry_delay(e, attempt)
                if delay is None:
                    logger.error(f"  Non-recoverable error: {e}")
                    raise
                if attempt == attempts - 1:
                    logger.warning(f"Text generation failed after {attempts} attempt(s): {e}")
                    raise
                logger.warning(f"  Attempt {attempt + 1}/{attempts} failed: {e}. Retrying in {delay}s")
                await asyncio.sleep(delay)

    async def _dispatch(self, system_prompt: str, user_prompt: str) -> str:
        from doctrans.ai import providers

        if self.provider == 'gemini':
            return await providers.call_gemini_api(self, system_prompt, user_prompt)
        if self.provider == 'openai':
            return await providers.call_openai_api_text(self, system_prompt, user_prompt)
        if self.provider == 'deepseek':
            return await providers.call_deepseek_api_text(self, system_prompt, user_prompt)
        if isinstance(self.config.get(self.provider), dict):
            # Anything else configured speaks the OpenAI chat format
            return await providers.call_custom_provider_api_text(self, system_prompt, user_prompt)
        raise TranslationError(f"Unsupported AI provider: {self.provider}", code="ai_config_missing")

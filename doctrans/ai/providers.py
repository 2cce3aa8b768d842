"""
AI Provider API Implementations

Request/response handling for each supported provider:
- Gemini (generateContent)
- OpenAI, DeepSeek and custom providers (OpenAI-compatible chat completions)

Each coroutine takes an AIService instance plus a system and a user prompt,
and returns the reply text. Every failure is raised as TranslationError.
"""

from typing import Any, Dict

import httpx

from doctrans.config import PLACEHOLDER_API_KEY
from doctrans.logger import get_logger
from doctrans.ai.exceptions import TranslationError

logger = get_logger(__name__)

DEFAULT_TIMEOUT = 120.0


def get_httpx_timeout(timeout_config: Any) -> httpx.Timeout:
    """
    Build an httpx.Timeout from config.

    Args:
        timeout_config: A number (read timeout, seconds) or a dict with
            connect / write / read / pool keys
    """
    if isinstance(timeout_config, dict):
        return httpx.Timeout(
            connect=timeout_config.get('connect', 10.0),
            write=timeout_config.get('write', 60.0),
            read=timeout_config.get('read', DEFAULT_TIMEOUT),
            pool=timeout_config.get('pool', 10.0),
        )
    read = float(timeout_config) if timeout_config else DEFAULT_TIMEOUT
    return httpx.Timeout(connect=10.0, write=60.0, read=read, pool=10.0)


def handle_http_error(e: httpx.HTTPStatusError, provider: str):
    """Raise a TranslationError carrying the status code and the provider's message."""
    status_code = e.response.status_code
    try:
        payload = e.response.json()
        error = payload.get("error", payload) if isinstance(payload, dict) else payload
        message = error.get("message", str(error)) if isinstance(error, dict) else str(error)
    except ValueError:
        message = e.response.text[:500] or "Unknown error"

    raise TranslationError(
        f"{provider} API error ({status_code}): {message}",
        code="provider_http_error",
        details={"provider": provider, "status_code": status_code},
    )


def _require_api_key(provider_config: Dict[str, Any], provider: str) -> str:
    api_key = provider_config.get('api_key', '')
    if not api_key or api_key == PLACEHOLDER_API_KEY:
        raise TranslationError(f"{provider} API key not configured", code="ai_config_missing")
    return api_key


async def _post_json(service, provider: str, url: str, timeout: Any, **request_kwargs) -> Dict[str, Any]:
    """POST through the service's transport and return the decoded reply body."""
    try:
        async with httpx.AsyncClient(timeout=get_httpx_timeout(timeout), transport=service.transport) as client:
            response = await client.post(url, **request_kwargs)
            response.raise_for_status()
            return response.json()
    except httpx.HTTPStatusError as e:
        handle_http_error(e, provider)
    except httpx.TimeoutException:
        raise TranslationError(f"{provider} API request timeout", code="provider_timeout")
    except (httpx.HTTPError, ValueError) as e:
        raise TranslationError(f"{provider} API call failed: {e}")


async def call_gemini_api(service, system_prompt: str, user_prompt: str) -> str:
    """Call Gemini generateContent; the system prompt goes in systemInstruction."""
    provider_config = service.config.get('gemini', {})
    api_key = _require_api_key(provider_config, "Gemini")
    model = service._get_model(provider_config, 'gemini-2.5-flash')
    base_url = provider_config.get('api_url', 'https://generativelanguage.googleapis.com/v1beta/models')
    params = service.generation_params

    body = {
        "systemInstruction": {"parts": [{"text": system_prompt}]},
        "contents": [{"role": "user", "parts": [{"text": user_prompt}]}],
        "generationConfig": {
            "maxOutputTokens": 8192,
            "temperature": params.get('temperature', 0.15),
            "topP": params.get('top_p', 0.92),
        },
    }

    logger.debug(f"  Calling Gemini API (model: {model})...")
    result = await _post_json(
        service,
        "Gemini",
        f"{base_url.rstrip('/')}/{model}:generateContent",
        provider_config.get('timeout', DEFAULT_TIMEOUT),
        params={"key": api_key},
        json=body,
    )

    usage = result.get('usageMetadata') or {}
    prompt_tokens = usage.get('promptTokenCount', 0)
    completion_tokens = usage.get('candidatesTokenCount', 0)
    # Some replies only report the total
    if not completion_tokens and usage.get('totalTokenCount', 0) > prompt_tokens:
        completion_tokens = usage['totalTokenCount'] - prompt_tokens
    service.record_usage(prompt_tokens, completion_tokens)

    for candidate in result.get('candidates') or []:
        parts = (candidate.get('content') or {}).get('parts') or []
        if parts:
            return parts[0].get('text', '')

    raise TranslationError("Unexpected Gemini API response format", code="provider_bad_response")


async def _call_chat_completions(
    service,
    provider_name: str,
    provider_config: Dict[str, Any],
    api_url: str,
    model: str,
    system_prompt: str,
    user_prompt: str,
) -> str:
    """Shared OpenAI-compatible chat completions call."""
    api_key = _require_api_key(provider_config, provider_name)
    params = service.generation_params

    body = {
        "model": model,
        "messages": [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ],
        "temperature": params.get('temperature', 0.15),
        "top_p": params.get('top_p', 0.92),
        "frequency_penalty": params.get('frequency_penalty', 0.1),
        "presence_penalty": params.get('presence_penalty', 0.0),
    }

    logger.debug(f"  Calling {provider_name} API (model: {model})...")
    result = await _post_json(
        service,
        provider_name,
        api_url,
        provider_config.get('timeout', DEFAULT_TIMEOUT),
        headers={"Authorization": f"Bearer {api_key}"},
        json=body,
    )

    usage = result.get('usage') or {}
    service.record_usage(usage.get('prompt_tokens', 0), usage.get('completion_tokens', 0))

    choices = result.get('choices') or []
    if not choices:
        raise TranslationError(f"No content in {provider_name} response", code="provider_bad_response")

    content = (choices[0].get('message') or {}).get('content') or ''
    logger.debug(f"  Received {len(content)} chars from {provider_name} (tokens: {service.get_last_token_usage()})")
    return content


async def call_openai_api_text(service, system_prompt: str, user_prompt: str) -> str:
    provider_config = service.config.get('openai', {})
    return await _call_chat_completions(
        service,
        "OpenAI",
        provider_config,
        provider_config.get('api_url', 'https://api.openai.com/v1/chat/completions'),
        service._get_model(provider_config, 'gpt-4o-mini'),
        system_prompt,
        user_prompt,
    )


async def call_deepseek_api_text(service, system_prompt: str, user_prompt: str) -> str:
    provider_config = service.config.get('deepseek', {})
    return await _call_chat_completions(
        service,
        "DeepSeek",
        provider_config,
        provider_config.get('api_url', 'https://api.deepseek.com/chat/completions'),
        service._get_model(provider_config, 'deepseek-chat'),
        system_prompt,
        user_prompt,
    )


async def call_custom_provider_api_text(service, system_prompt: str, user_prompt: str) -> str:
    """Call a user-defined provider through the OpenAI-compatible format."""
    provider = service.provider
    provider_config = service.config.get(provider, {})
    api_url = provider_config.get('api_url', '')
    model = service._get_model(provider_config, '')

    if not api_url:
        raise TranslationError(f"Custom provider '{provider}' API URL not configured", code="ai_config_missing")
    if not model:
        raise TranslationError(f"Custom provider '{provider}' model not configured", code="ai_config_missing")

    return await _call_chat_completions(
        service,
        f"Custom provider '{provider}'",
        provider_config,
        api_url,
        model,
        system_prompt,
        user_prompt,
    )

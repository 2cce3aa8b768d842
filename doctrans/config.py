import copy
import json
import os
from pathlib import Path
from typing import Dict, Any, Optional

from doctrans.logger import get_logger

logger = get_logger(__name__)

DEFAULT_SYSTEM_MESSAGE = "You are a professional localizer. Return only valid JSON."

# Provider configuration constants
BUILTIN_PROVIDERS = ["openai", "deepseek", "gemini"]

BUILTIN_PROVIDER_DISPLAY_NAMES = {
    "openai": "OpenAI",
    "deepseek": "DeepSeek",
    "gemini": "Gemini"
}

PLACEHOLDER_API_KEY = "YOUR_API_KEY_HERE"

# Get base directory (project root)
BASE_DIR = Path(__file__).parent.parent
CONFIG_DIR = BASE_DIR / "config"
CONFIG_FILE = CONFIG_DIR / "config.json"

CONFIG_ENV_VAR = "DOCTRANS_CONFIG"
PROVIDER_ENV_VAR = "DOCTRANS_PROVIDER"
API_KEY_ENV_VAR = "DOCTRANS_API_KEY"

# Default prompts
DEFAULT_PROMPTS = {
    "localization_system_prompt": {
        "version": "1.0",
        "description": "System prompt for chunk-based document localization",
        "prompt": """{system_message}
{topic_context}

Localize every value from {source_language_name} ({source_language_code}) to {target_language_name} ({target_language_code}).
The document contains {string_count} strings in total; you receive them in numbered batches.

CRITICAL REQUIREMENTS:
- Return ONLY a JSON object with exactly the same keys you received
- Preserve HTML tokens EXACTLY as they appear: __HTML0__, __HTML1__, etc. (DO NOT translate, reorder inside words, or drop them)
- Preserve ALL placeholders unchanged: {{name}}, {{{{name}}}}, %s, %d and ICU plural/select blocks
- Keep URLs and email addresses unchanged
- Keep leading and trailing whitespace of every value
- Maintain the original tone and style; write natural {target_language_name}
Do not include explanations, markdown code blocks, or any text outside the JSON object."""
    },
    "localization_user_prompt": {
        "version": "1.0",
        "description": "User prompt embedding one numbered chunk",
        "prompt": """Localize these {source_language_name} values to {target_language_name} ONLY. Follow all system rules above.
Do NOT modify HTML tokens (__HTML#__) or placeholders.

INPUT:
{numbered_json}

OUTPUT ({target_language_name} ONLY, valid JSON object with keys "0".."{last_index}"):"""
    },
}

# Default configuration templates
DEFAULT_CONFIG = {
    "ai_provider": "openai",
    "openai": {
        "api_key": PLACEHOLDER_API_KEY,
        "models": ["gpt-4o-mini", "gpt-4o"],  # Up to 5 models, first is default
        "max_retries": 3,
        "timeout": 120,
        "api_url": "https://api.openai.com/v1/chat/completions"
    },
    "deepseek": {
        "api_key": PLACEHOLDER_API_KEY,
        "models": ["deepseek-chat"],
        "max_retries": 3,
        "timeout": 120,
        "api_url": "https://api.deepseek.com/chat/completions"
    },
    "gemini": {
        "api_key": PLACEHOLDER_API_KEY,
        "models": ["gemini-2.5-flash"],
        "max_retries": 3,
        "timeout": 120,
        "api_url": "https://generativelanguage.googleapis.com/v1beta/models"
    },
    "translation": {
        "max_json_chars": 28000,
        "initial_chunk_size": 50,
        "min_chunk_size": 5,
        "size_reduction_factor": 0.7,
        "batch_size": 3,  # Chunks in flight at once
        "default_protected_keys": ["scene_type"],
        "generation": {
            "temperature": 0.15,
            "top_p": 0.92,
            "frequency_penalty": 0.1,
            "presence_penalty": 0.0
        }
    },
    "log_mode": "off"
}


def get_config_file() -> Path:
    """Return the active config file path (env override first)."""
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        return Path(override)
    return CONFIG_FILE


def ensure_config_directory(config_file: Optional[Path] = None):
    """Ensure the config directory exists."""
    target = config_file or get_config_file()
    target.parent.mkdir(parents=True, exist_ok=True)
    logger.debug(f"Config directory ensured: {target.parent}")


def create_default_config(config_file: Optional[Path] = None) -> Path:
    """Create the default config.json file."""
    target = config_file or get_config_file()
    ensure_config_directory(target)
    with open(target, 'w', encoding='utf-8') as f:
        json.dump(DEFAULT_CONFIG, f, indent=4, ensure_ascii=False)
    logger.info(f"Created default config file: {target}")
    return target


def _merge(defaults: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge overrides onto a copy of defaults."""
    merged = copy.deepcopy(defaults)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _apply_env_overrides(config: Dict[str, Any]) -> Dict[str, Any]:
    provider = os.environ.get(PROVIDER_ENV_VAR)
    if provider:
        config['ai_provider'] = provider

    api_key = os.environ.get(API_KEY_ENV_VAR)
    if api_key:
        active = config.get('ai_provider', 'openai')
        config.setdefault(active, {})['api_key'] = api_key
    return config


def load_config(config_file: Optional[Path] = None) -> Dict[str, Any]:
    """Load the configuration from the config file, falling back to defaults."""
    target = config_file or get_config_file()
    try:
        if target.exists():
            with open(target, 'r', encoding='utf-8') as f:
                config = _merge(DEFAULT_CONFIG, json.load(f))
            logger.debug(f"Configuration loaded from {target}")
        else:
            logger.debug(f"No config file at {target}, using defaults")
            config = copy.deepcopy(DEFAULT_CONFIG)
    except json.JSONDecodeError as e:
        logger.error(f"Failed to parse config file {target}: {e}")
        logger.warning("Using default configuration")
        config = copy.deepcopy(DEFAULT_CONFIG)
    except OSError as e:
        logger.error(f"Failed to read config file {target}: {e}")
        logger.warning("Using default configuration")
        config = copy.deepcopy(DEFAULT_CONFIG)

    return _apply_env_overrides(config)


def save_config(config: Dict[str, Any], config_file: Optional[Path] = None):
    """Save the configuration to the config file."""
    target = config_file or get_config_file()
    try:
        ensure_config_directory(target)
        with open(target, 'w', encoding='utf-8') as f:
            json.dump(config, f, indent=4, ensure_ascii=False)
        logger.info(f"Configuration saved to {target}")
    except OSError as e:
        logger.error(f"Failed to save config to {target}: {e}")
        raise

    from doctrans.logger import clear_log_mode_cache
    clear_log_mode_cache()


def get_translation_settings(config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Translation block with defaults filled in for missing keys."""
    config = config if config is not None else load_config()
    return _merge(DEFAULT_CONFIG['translation'], config.get('translation', {}))


def load_prompts() -> Dict[str, Any]:
    """Load the prompts from default configuration.

    Note: Prompts are hardcoded in the codebase and are never written to the config file.
    """
    return copy.deepcopy(DEFAULT_PROMPTS)


def get_prompt(prompt_name: str = "localization_system_prompt") -> Dict[str, Any]:
    """Get a specific prompt by name."""
    prompts = load_prompts()
    return prompts.get(prompt_name, DEFAULT_PROMPTS["localization_system_prompt"])

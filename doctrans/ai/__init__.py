"""
AI Module

This module provides the text-generation service used by the translation pipeline.
"""

from doctrans.ai.exceptions import TranslationError, ResponseCleanError, IntegrityError
from doctrans.ai.service import AIService, validate_ai_config

__all__ = ['TranslationError', 'ResponseCleanError', 'IntegrityError', 'AIService', 'validate_ai_config']

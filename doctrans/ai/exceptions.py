"""
AI Service Exceptions

This module contains exception classes shared by the AI service and the
translation pipeline. Separated to avoid circular imports between
service.py, providers.py and the translation package.
"""


class TranslationError(Exception):
    """Translation service error with optional code and details."""

    def __init__(self, message: str, code: str = None, details: dict = None):
        super().__init__(message)
        self.code = code
        self.details = details or {}


class ResponseCleanError(TranslationError):
    """Model output could not be turned into parseable JSON."""

    def __init__(self, label: str, detail: str, preview: str = ""):
        super().__init__(
            f"Failed to clean {label} response: {detail}",
            code="json_recovery_failed",
            details={"label": label, "preview": preview},
        )
        self.label = label


class IntegrityError(TranslationError):
    """Internal accounting defect: translated values no longer line up with extracted strings."""

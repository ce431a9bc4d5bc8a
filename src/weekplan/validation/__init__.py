"""Validation module for verifying template rows."""

from weekplan.validation.validator import (
    TemplateValidator,
    ValidationError,
    ValidationErrorType,
    ValidationResult,
)

__all__ = [
    "TemplateValidator",
    "ValidationError",
    "ValidationErrorType",
    "ValidationResult",
]

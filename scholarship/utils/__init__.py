"""
Utility functions for the Scholarship Evaluation Service
"""

from .validators import (
    validate_file_extension,
    validate_file_size,
    mime_type_for,
    check_upload,
    validate_document,
    parse_income,
    sanitize_filename,
    format_file_size
)
from .retry import RetryConfig, retry_async

__all__ = [
    "validate_file_extension",
    "validate_file_size",
    "mime_type_for",
    "check_upload",
    "validate_document",
    "parse_income",
    "sanitize_filename",
    "format_file_size",
    "RetryConfig",
    "retry_async"
]

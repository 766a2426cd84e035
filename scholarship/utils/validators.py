"""
Utility functions for validation and file handling
"""
import math
import re
from typing import List, Optional
from pathlib import Path

from ..config import settings
from ..errors import FileTooLargeError, UnsupportedFileType, ValidationError
from ..models import MIME_TYPES_BY_EXTENSION, Document


def validate_file_extension(filename: str, allowed_extensions: List[str] = None) -> bool:
    """
    Validate file extension

    Args:
        filename: Name of the file to validate
        allowed_extensions: List of allowed extensions (defaults to settings)

    Returns:
        True if extension is allowed, False otherwise
    """
    if allowed_extensions is None:
        allowed_extensions = settings.get_allowed_extensions_list()

    file_ext = Path(filename).suffix.lower()
    return file_ext in allowed_extensions


def validate_file_size(file_size: int, max_size: int = None) -> bool:
    """
    Validate file size

    Args:
        file_size: Size of the file in bytes
        max_size: Maximum allowed size in bytes (defaults to settings)

    Returns:
        True if file size is within limit, False otherwise
    """
    if max_size is None:
        max_size = settings.max_file_size

    return file_size <= max_size


def mime_type_for(filename: str) -> Optional[str]:
    """MIME type implied by a filename's extension"""
    return MIME_TYPES_BY_EXTENSION.get(Path(filename).suffix.lower())


def check_upload(filename: Optional[str], size_bytes: int, field: str) -> str:
    """
    Reject an upload before anything is written or extracted

    Returns:
        The MIME type to declare for the document
    """
    if not filename:
        raise ValidationError(f"No filename provided for {field}", field=field)

    mime_type = mime_type_for(filename)
    if not validate_file_extension(filename) or mime_type is None:
        raise UnsupportedFileType(
            f"File type not allowed: {Path(filename).suffix.lower() or 'none'}. "
            f"Please upload {', '.join(settings.get_allowed_extensions_list())} files.",
            field=field
        )

    if not validate_file_size(size_bytes):
        raise FileTooLargeError(
            f"File too large. Maximum size is {format_file_size(settings.max_file_size)}",
            field=field
        )

    return mime_type


def validate_document(document: Document, field: str = "document") -> None:
    """Check a transient document's declared type and size"""
    name = document.filename or document.path.name
    allowed_mime_types = {
        MIME_TYPES_BY_EXTENSION[ext]
        for ext in settings.get_allowed_extensions_list()
        if ext in MIME_TYPES_BY_EXTENSION
    }
    if document.mime_type not in allowed_mime_types:
        raise UnsupportedFileType(
            f"Unsupported document type for {name}: {document.mime_type}",
            field=field
        )
    if document.filename and not validate_file_extension(document.filename):
        raise UnsupportedFileType(f"File type not allowed: {name}", field=field)
    if not validate_file_size(document.size_bytes):
        raise FileTooLargeError(
            f"File too large: {name} ({format_file_size(document.size_bytes)})",
            field=field
        )


def parse_income(value: Optional[str], field: str) -> float:
    """Parse a claimed monthly income from a form field"""
    if value is None or not str(value).strip():
        raise ValidationError("Both parent income values are required", field=field)
    try:
        income = float(str(value).replace(",", "").strip())
    except ValueError:
        raise ValidationError(f"{field} must be a valid number", field=field)
    if not math.isfinite(income):
        raise ValidationError(f"{field} must be a valid number", field=field)
    if income < 0:
        raise ValidationError(f"{field} cannot be negative", field=field)
    return income


def sanitize_filename(filename: str) -> str:
    """
    Sanitize filename for safe storage

    Args:
        filename: Original filename

    Returns:
        Sanitized filename
    """
    # Remove or replace unsafe characters
    unsafe_chars = r'[<>:"/\\|?*]'
    sanitized = re.sub(unsafe_chars, '_', filename)

    # Remove leading/trailing dots and spaces
    sanitized = sanitized.strip('. ')

    # Ensure filename is not empty
    if not sanitized:
        sanitized = "unnamed_file"

    # Limit length
    if len(sanitized) > 255:
        name, ext = Path(sanitized).stem, Path(sanitized).suffix
        max_name_length = 255 - len(ext)
        sanitized = name[:max_name_length] + ext

    return sanitized


def format_file_size(size_bytes: int) -> str:
    """
    Format file size in human-readable format

    Args:
        size_bytes: Size in bytes

    Returns:
        Formatted size string
    """
    if size_bytes == 0:
        return "0 B"

    size_names = ["B", "KB", "MB", "GB", "TB"]
    i = 0
    while size_bytes >= 1024 and i < len(size_names) - 1:
        size_bytes /= 1024.0
        i += 1

    return f"{size_bytes:.1f} {size_names[i]}"

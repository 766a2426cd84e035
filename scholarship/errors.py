"""
Exception hierarchy for the Scholarship Evaluation Service

Client errors ("your input was invalid") are raised before any document is
processed. Processing errors abort the whole request; the HTTP layer logs them
and answers with a generic processing-failure body.
"""
from typing import Any, Dict, Optional


class ScholarshipError(Exception):
    """Base exception for all service errors"""

    error_code = "SCHOLARSHIP_ERROR"
    http_status = 500
    client_error = False

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        retryable: bool = False,
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.retryable = retryable

    def to_dict(self) -> Dict[str, Any]:
        """Structured error body; processing errors never expose internals"""
        if self.client_error:
            return {
                "error": "invalid_input",
                "code": self.error_code,
                "detail": self.message,
            }
        return {
            "error": "processing_failed",
            "code": self.error_code,
            "detail": "Processing failed. Please try again later.",
        }


class ConfigurationError(ScholarshipError):
    """Service is misconfigured (e.g. AI engine without an API key)"""

    error_code = "CONFIGURATION_ERROR"


class ValidationError(ScholarshipError):
    """Missing or malformed request input"""

    error_code = "VALIDATION_ERROR"
    http_status = 400
    client_error = True

    def __init__(self, message: str, field: Optional[str] = None, **kwargs):
        details = kwargs.pop("details", {})
        if field:
            details["field"] = field
        super().__init__(message, details=details, **kwargs)
        self.field = field


class FileTooLargeError(ValidationError):
    """Document exceeds the configured size limit"""

    error_code = "FILE_TOO_LARGE"
    http_status = 413


class UnsupportedFileType(ValidationError):
    """Document extension or MIME type is not accepted"""

    error_code = "UNSUPPORTED_FILE_TYPE"
    http_status = 415


class ExtractionError(ScholarshipError):
    """Document could not be read or the extraction engine failed"""

    error_code = "EXTRACTION_ERROR"


class RuleLoadError(ScholarshipError):
    """Qualification rules could not be loaded from the backing store"""

    error_code = "RULE_LOAD_ERROR"


class EvaluationEngineError(ScholarshipError):
    """Reasoning engine is unreachable or answered with a transport failure"""

    error_code = "EVALUATION_ENGINE_ERROR"


class EvaluationParseError(ScholarshipError):
    """Reasoning engine response does not match the evaluation schema"""

    error_code = "EVALUATION_PARSE_ERROR"


class PersistenceError(ScholarshipError):
    """Document or application record could not be stored"""

    error_code = "PERSISTENCE_ERROR"

"""Custom exceptions for the site-collection extractor service.

Per-line URL problems are never raised: they are recorded on the
``ExtractionResult`` of that line. The exceptions below cover the service
surface (request validation, lookups, configuration) and share one
structured error response format.
"""

from typing import Optional, Dict, Any


class SiteExtractorException(Exception):
    """Base exception for all service errors.

    Provides structured error response format with:
    - error_code: Machine-readable error identifier
    - message: Human-readable error description
    - details: Optional additional context
    """

    error_code: str = "SPSITES_ERROR"
    status_code: int = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Return structured error response dict."""
        response = {
            "error": True,
            "error_code": self.error_code,
            "message": self.message,
        }
        if self.details:
            response["details"] = self.details
        return response


# ============ Validation Errors (4xx) ============


class ValidationError(SiteExtractorException):
    """Request payload validation failed."""

    error_code = "VALIDATION_ERROR"
    status_code = 400


class InputTooLargeError(ValidationError):
    """More input lines than the configured limit."""

    error_code = "INPUT_TOO_LARGE"
    status_code = 413

    def __init__(self, line_count: int, limit: int):
        super().__init__(
            f"Too many URLs: {line_count} (limit {limit})",
            details={"line_count": line_count, "limit": limit},
        )


# ============ Lookup Errors ============


class NotFoundError(SiteExtractorException):
    """Requested resource does not exist (or has expired)."""

    error_code = "NOT_FOUND"
    status_code = 404


class JobNotFoundError(NotFoundError):
    error_code = "JOB_NOT_FOUND"

    def __init__(self, job_id: str):
        super().__init__(f"Unknown job: {job_id}", details={"job_id": job_id})


class SummaryNotFoundError(NotFoundError):
    error_code = "SUMMARY_NOT_FOUND"

    def __init__(self, summary_id: str):
        super().__init__(f"Unknown or expired summary: {summary_id}", details={"summary_id": summary_id})


# ============ Authentication Errors ============


class UnauthorizedError(SiteExtractorException):
    """Missing or invalid admin token."""

    error_code = "UNAUTHORIZED"
    status_code = 401

    def __init__(self, hint: str = "Set X-Admin-Token header"):
        super().__init__("Unauthorized access", details={"hint": hint})


# ============ Configuration Errors ============


class ConfigurationError(SiteExtractorException):
    """Configuration issue."""

    error_code = "CONFIGURATION_ERROR"

    def __init__(self, setting: str, message: str):
        super().__init__(f"Configuration error for {setting}: {message}", details={"setting": setting})


# ============ Utility Functions ============


def error_response(exception: SiteExtractorException) -> tuple:
    """Create Flask JSON response from exception.

    Returns:
        Tuple of (response_dict, status_code) ready for jsonify
    """
    return exception.to_dict(), exception.status_code


def make_error_response(
    error_code: str, message: str, status_code: int = 500, details: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """Create structured error response dict without exception.

    Useful for creating error responses directly in routes.
    """
    response = {
        "error": True,
        "error_code": error_code,
        "message": message,
    }
    if details:
        response["details"] = details
    return response

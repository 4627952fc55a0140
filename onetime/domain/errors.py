"""
Error Handling Module

Defines domain exceptions and error categories for the application.
Domain exceptions are pure and have no external dependencies.
Storage adapters translate driver failures into these types so that
callers never see a redis or SQLAlchemy exception.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCategory(Enum):
    """Error category enumeration for structured error handling."""

    INVALID_REQUEST = "invalid_request"
    UNAUTHORIZED = "unauthorized"
    REMOTE_ADDRESS_REJECTED = "remote_address_rejected"
    FILE_TOO_LARGE = "file_too_large"
    FILE_NOT_FOUND = "file_not_found"
    LINK_NOT_FOUND = "link_not_found"
    ALREADY_DOWNLOADED = "already_downloaded"
    CONTENT_MISSING = "content_missing"
    STORAGE_UNAVAILABLE = "storage_unavailable"
    SYSTEM_ERROR = "system_error"


# User-friendly error messages with actionable guidance
ERROR_MESSAGES: Dict[ErrorCategory, Dict[str, str]] = {
    ErrorCategory.INVALID_REQUEST: {
        "title": "Invalid Request",
        "message": "The request is missing required information or contains invalid data.",
        "action": "Please check your input and try again.",
    },
    ErrorCategory.UNAUTHORIZED: {
        "title": "Unauthorized",
        "message": "Invalid or missing api key!",
        "action": "Send the api key for this resource in the X-Api-Key header.",
    },
    ErrorCategory.REMOTE_ADDRESS_REJECTED: {
        "title": "Too Many Requests",
        "message": "The request did not come from a usable network address.",
        "action": "Retry from a routable client address.",
    },
    ErrorCategory.FILE_TOO_LARGE: {
        "title": "Field Too Large",
        "message": "A submitted field value exceeds the maximum allowed size.",
        "action": "Upload a smaller file or use a shorter filename.",
    },
    ErrorCategory.FILE_NOT_FOUND: {
        "title": "File Not Found",
        "message": "The requested file could not be found.",
        "action": "Upload the file before requesting it.",
    },
    ErrorCategory.LINK_NOT_FOUND: {
        "title": "Link Not Found",
        "message": "Could not find file for this link.",
        "action": "Check the download URL you were given.",
    },
    ErrorCategory.ALREADY_DOWNLOADED: {
        "title": "Already Downloaded",
        "message": "This link has already been used. Links can only be downloaded once.",
        "action": "Ask the sender for a new link.",
    },
    ErrorCategory.CONTENT_MISSING: {
        "title": "Content Missing",
        "message": "The file behind this link is no longer available.",
        "action": "Ask the sender to upload the file again and issue a new link.",
    },
    ErrorCategory.STORAGE_UNAVAILABLE: {
        "title": "Storage Unavailable",
        "message": "The storage backend could not be reached.",
        "action": "Please try again later. If the problem persists, contact support.",
    },
    ErrorCategory.SYSTEM_ERROR: {
        "title": "System Error",
        "message": "An unexpected error occurred while processing your request.",
        "action": "Please try again later. If the problem persists, contact support.",
    },
}


# ============================================================================
# Domain Exceptions (Pure - No External Dependencies)
# ============================================================================

class DomainError(Exception):
    """
    Base exception for all domain errors.

    Domain exceptions can optionally wrap the original driver error
    for context.
    """

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        """
        Initialize domain error.

        Args:
            message: Error message
            original_error: Optional original exception that caused this error
        """
        super().__init__(message)
        self.original_error = original_error


class InvalidInputError(DomainError):
    """Raised when an entity or argument fails basic shape validation."""
    pass


class NotFoundError(DomainError):
    """Raised when a file or link does not exist in storage."""
    pass


class ConflictError(DomainError):
    """Raised when inserting a link whose token is already stored."""
    pass


class MalformedRecordError(DomainError):
    """
    Raised when a stored record cannot be turned into an entity.

    A record with a missing required attribute, or one present with the
    wrong type, is reported through this error and never defaulted.
    """
    pass


class StorageUnavailableError(DomainError):
    """Raised on backend connectivity, pool or configuration failures."""
    pass


# ============================================================================
# Application Layer Exceptions
# ============================================================================

class ApplicationError(Exception):
    """
    Base application error with category and user-friendly messaging.

    Bridges domain errors with user-facing error messages and HTTP
    responses.
    """

    def __init__(
        self,
        category: ErrorCategory,
        technical_message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        """
        Initialize application error.

        Args:
            category: Error category
            technical_message: Technical error details for logging
            context: Additional context information
        """
        self.category = category
        self.technical_message = technical_message or ""
        self.context = context or {}

        error_info = ERROR_MESSAGES.get(
            category, ERROR_MESSAGES[ErrorCategory.SYSTEM_ERROR]
        )
        self.title = error_info["title"]
        self.message = error_info["message"]
        self.action = error_info["action"]

        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert error to dictionary for API response.

        Returns:
            Dictionary with error information
        """
        return {
            "error": self.category.value,
            "title": self.title,
            "message": self.message,
            "action": self.action,
        }


def create_error_response(
    category: ErrorCategory,
    technical_message: Optional[str] = None,
    context: Optional[Dict[str, Any]] = None,
    status_code: int = 400,
) -> tuple[Dict[str, Any], int]:
    """
    Create a structured error response for API endpoints.

    Args:
        category: Error category
        technical_message: Technical error details for logging
        context: Additional context information
        status_code: HTTP status code

    Returns:
        Tuple of (error_dict, status_code)
    """
    error = ApplicationError(category, technical_message, context)
    return error.to_dict(), status_code

"""
Custom error types for Google Docs section editing.

Provides user-friendly error messages and structured error handling.
"""

from typing import Any

# =============================================================================
# Base Exception Hierarchy
# =============================================================================


class GdocError(Exception):
    """Base exception for all gdoc errors."""

    pass


# =============================================================================
# Authentication Errors
# =============================================================================


class AuthenticationError(GdocError):
    """Raised when authentication fails or credentials are invalid."""

    pass


class CredentialsNotFoundError(AuthenticationError):
    """Raised when the OAuth client secrets or a stored token are missing."""

    def __init__(self, path: str):
        super().__init__(
            f"OAuth2 credentials not found at: {path}. "
            "Download a Desktop OAuth client JSON from the Google Cloud Console and run 'gdoc auth'."
        )
        self.path = path


# =============================================================================
# Validation Errors
# =============================================================================


class ValidationError(GdocError):
    """Raised when input validation fails."""

    pass


class NestingDepthError(ValidationError):
    """Raised when a markdown token tree nests deeper than the supported limit."""

    def __init__(self, max_depth: int):
        super().__init__(f"Markdown nesting exceeds the supported depth of {max_depth} levels")
        self.max_depth = max_depth


# =============================================================================
# Document Structure Errors
# =============================================================================


class SectionNotFoundError(GdocError):
    """Raised when a section title matches no heading in the document."""

    def __init__(self, title: str, available: list[str] | None = None):
        self.title = title
        self.available = list(available or [])
        message = f"Section not found: {title}"
        if self.available:
            listing = "\n".join(f"  - {name}" for name in self.available)
            message = f"{message}\n\nAvailable sections:\n{listing}"
        super().__init__(message)


class TableMaterializationError(GdocError):
    """Raised when an inserted table cannot be located on re-read."""

    def __init__(self, ordinal: int, found: int):
        super().__init__(f"Table {ordinal} not found in document (only {found} tables exist)")
        self.ordinal = ordinal
        self.found = found


# =============================================================================
# API Errors
# =============================================================================


class APIError(GdocError):
    """Raised for general Google API errors."""

    def __init__(self, message: str, status_code: int | None = None, details: Any | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.details = details


class ResourceNotFoundError(APIError):
    """Raised when a requested document doesn't exist (404)."""

    pass


class PermissionDeniedError(APIError):
    """Raised when the user lacks permission for an operation (403)."""

    pass


class RateLimitError(APIError):
    """Raised when API rate limits are exceeded (429)."""

    pass


def handle_http_error(error: Exception, document_id: str | None = None) -> APIError:
    """
    Convert Google API HTTP errors to the matching APIError subclass.
    """
    status = getattr(getattr(error, "resp", None), "status", None)
    try:
        status = int(status) if status is not None else None
    except (TypeError, ValueError):
        status = None
    error_str = str(error)

    if status == 404 or (status is None and "404" in error_str):
        return ResourceNotFoundError(f"Document not found: {document_id or 'unknown'}", 404, error)
    elif status == 403 or (status is None and "403" in error_str):
        return PermissionDeniedError("Permission denied. You may not have access to this document.", 403, error)
    elif status == 401 or (status is None and "401" in error_str):
        return APIError("Authentication expired. Please re-authenticate with 'gdoc auth'.", 401, error)
    elif status == 429 or (status is None and "429" in error_str):
        return RateLimitError("Rate limit exceeded. Please wait and try again.", 429, error)
    else:
        return APIError(f"Google API error: {error_str}", status, error)


def format_error(operation: str, error: GdocError) -> str:
    """Format an error for display to the user."""
    return f"{operation} failed: {error}"

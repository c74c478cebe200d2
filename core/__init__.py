"""Core utilities for gdoc."""

from core.config import GdocConfig, get_config, reset_config, set_config
from core.errors import (
    APIError,
    AuthenticationError,
    CredentialsNotFoundError,
    GdocError,
    NestingDepthError,
    PermissionDeniedError,
    RateLimitError,
    ResourceNotFoundError,
    SectionNotFoundError,
    TableMaterializationError,
    ValidationError,
    format_error,
    handle_http_error,
)
from core.utils import (
    TransientNetworkError,
    handle_http_errors,
    read_text_file,
    validate_document_id,
    validate_positive_int,
)

__all__ = [
    "APIError",
    "AuthenticationError",
    "CredentialsNotFoundError",
    "format_error",
    "GdocConfig",
    "GdocError",
    "get_config",
    "handle_http_error",
    "handle_http_errors",
    "NestingDepthError",
    "PermissionDeniedError",
    "RateLimitError",
    "read_text_file",
    "reset_config",
    "ResourceNotFoundError",
    "SectionNotFoundError",
    "set_config",
    "TableMaterializationError",
    "TransientNetworkError",
    "validate_document_id",
    "validate_positive_int",
    "ValidationError",
]

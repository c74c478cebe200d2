import asyncio
import functools
import logging
import os
import ssl

from googleapiclient.errors import HttpError

from core.errors import APIError, GdocError, ValidationError, handle_http_error

logger = logging.getLogger(__name__)


def validate_positive_int(value: int, param_name: str, max_value: int | None = None) -> int:
    """Validate a positive integer."""
    if not isinstance(value, int) or isinstance(value, bool) or value < 1:
        raise ValidationError(f"{param_name} must be a positive integer")

    if max_value is not None and value > max_value:
        raise ValidationError(f"{param_name} cannot exceed {max_value}")

    return value


def validate_document_id(document_id: str, param_name: str = "document_id") -> str:
    """Validate a Google Docs document ID."""
    if not document_id:
        raise ValidationError(f"{param_name} is required")

    document_id = document_id.strip()
    if not document_id:
        raise ValidationError(f"{param_name} cannot be empty")

    if not all(ch.isalnum() or ch in "-_" for ch in document_id):
        raise ValidationError(f"{param_name} contains invalid characters")

    return document_id


def read_text_file(path: str) -> str:
    """Read a UTF-8 text file, raising ValidationError when it does not exist."""
    if not os.path.isfile(path):
        raise ValidationError(f"File not found: {path}")
    with open(path, encoding="utf-8") as f:
        return f.read()


class TransientNetworkError(GdocError):
    """Custom exception for transient network errors after retries."""

    pass


def _document_id_from_call(args: tuple, kwargs: dict) -> str | None:
    document_id = kwargs.get("document_id")
    if document_id is None and len(args) > 1 and isinstance(args[1], str):
        document_id = args[1]
    return document_id


def handle_http_errors(operation_name: str, is_read_only: bool = False):
    """
    A decorator to handle Google API HttpErrors and transient SSL errors in a standardized way.

    It wraps an async client method, catches HttpError, logs a detailed error message,
    and raises the matching APIError subclass so callers never see googleapiclient types.

    If is_read_only is True, it will also catch ssl.SSLError and retry with
    exponential backoff. After exhausting retries, it raises a TransientNetworkError.
    Writes are never retried: a batch either applied as a whole or not at all.

    Args:
        operation_name (str): The name of the operation being decorated (e.g., 'documents.get').
        is_read_only (bool): If True, the operation is considered safe to retry on
                             transient network errors. Defaults to False.
    """

    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            max_retries = 3
            base_delay = 1

            for attempt in range(max_retries):
                try:
                    return await func(*args, **kwargs)
                except ssl.SSLError as e:
                    if is_read_only and attempt < max_retries - 1:
                        delay = base_delay * (2**attempt)
                        logger.warning(
                            f"SSL error in {operation_name} on attempt {attempt + 1}: {e}. "
                            f"Retrying in {delay} seconds..."
                        )
                        await asyncio.sleep(delay)
                    else:
                        logger.error(f"SSL error in {operation_name} on final attempt: {e}. Raising exception.")
                        raise TransientNetworkError(
                            f"A transient SSL error occurred in '{operation_name}' after {attempt + 1} attempt(s). "
                            "This is likely a temporary network or certificate issue. Please try again shortly."
                        ) from e
                except HttpError as error:
                    document_id = _document_id_from_call(args, kwargs)
                    logger.error(f"API error in {operation_name}: {error}")
                    raise handle_http_error(error, document_id) from error
                except GdocError:
                    raise
                except Exception as e:
                    message = f"An unexpected error occurred in {operation_name}: {e}"
                    logger.exception(message)
                    raise APIError(message) from e

        return wrapper

    return decorator

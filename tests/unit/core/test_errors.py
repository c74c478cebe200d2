"""Tests for custom error classes."""

from unittest.mock import MagicMock

import pytest

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


class TestErrorHierarchy:
    """Test error class inheritance."""

    def test_base_error_is_exception(self):
        assert issubclass(GdocError, Exception)

    @pytest.mark.parametrize(
        "error_class",
        [AuthenticationError, ValidationError, APIError, SectionNotFoundError, TableMaterializationError],
    )
    def test_inherits_base(self, error_class):
        assert issubclass(error_class, GdocError)

    def test_credentials_not_found_is_auth_error(self):
        assert issubclass(CredentialsNotFoundError, AuthenticationError)

    def test_nesting_depth_is_validation_error(self):
        assert issubclass(NestingDepthError, ValidationError)

    @pytest.mark.parametrize("error_class", [ResourceNotFoundError, PermissionDeniedError, RateLimitError])
    def test_api_error_subclasses(self, error_class):
        assert issubclass(error_class, APIError)


class TestAPIError:
    """Test APIError class."""

    def test_api_error_with_status_code(self):
        error = APIError("Test error", status_code=500)
        assert error.status_code == 500
        assert str(error) == "Test error"

    def test_api_error_details(self):
        error = APIError("Test error", details={"reason": "x"})
        assert error.status_code is None
        assert error.details == {"reason": "x"}


class TestStructuredErrors:
    def test_credentials_not_found_mentions_path(self):
        error = CredentialsNotFoundError("/tmp/creds.json")
        assert error.path == "/tmp/creds.json"
        assert "/tmp/creds.json" in str(error)
        assert "gdoc auth" in str(error)

    def test_section_not_found_lists_available(self):
        error = SectionNotFoundError("Missing", ["Intro", "  Details"])
        assert str(error).startswith("Section not found: Missing")
        assert "  - Intro" in str(error)
        assert "  -   Details" in str(error)

    def test_section_not_found_without_headings(self):
        error = SectionNotFoundError("Missing")
        assert str(error) == "Section not found: Missing"
        assert error.available == []

    def test_table_materialization_error(self):
        error = TableMaterializationError(2, 1)
        assert (error.ordinal, error.found) == (2, 1)
        assert "Table 2 not found" in str(error)

    def test_nesting_depth_error(self):
        assert NestingDepthError(32).max_depth == 32


class TestHandleHttpError:
    @staticmethod
    def _http_error(status):
        error = Exception(f"<HttpError {status}>")
        error.resp = MagicMock(status=status)
        return error

    @pytest.mark.parametrize(
        "status,expected",
        [(404, ResourceNotFoundError), (403, PermissionDeniedError), (429, RateLimitError)],
    )
    def test_status_mapping(self, status, expected):
        converted = handle_http_error(self._http_error(status), "doc-1")
        assert type(converted) is expected
        assert converted.status_code == status

    def test_not_found_names_document(self):
        assert "doc-1" in str(handle_http_error(self._http_error(404), "doc-1"))

    def test_unauthorized_suggests_reauth(self):
        converted = handle_http_error(self._http_error(401))
        assert type(converted) is APIError
        assert "gdoc auth" in str(converted)

    def test_other_status_is_generic(self):
        converted = handle_http_error(self._http_error(500))
        assert type(converted) is APIError
        assert converted.status_code == 500

    def test_status_parsed_from_message_without_response(self):
        converted = handle_http_error(Exception("HttpError 404 when requesting"))
        assert isinstance(converted, ResourceNotFoundError)

    def test_original_error_is_kept(self):
        original = self._http_error(403)
        assert handle_http_error(original).details is original


class TestFormatError:
    def test_format(self):
        assert format_error("update-section", ValidationError("bad")) == "update-section failed: bad"

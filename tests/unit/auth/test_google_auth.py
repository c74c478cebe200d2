"""Unit tests for OAuth credential loading and the callback server state."""

from datetime import datetime, timedelta
from unittest.mock import MagicMock, patch

import pytest
from google.auth.exceptions import RefreshError
from google.oauth2.credentials import Credentials

from auth import google_auth
from auth.credential_store import TokenFileStore
from auth.oauth_callback_server import OAuthCallbackServer
from core.config import DOCS_SCOPES, GdocConfig
from core.errors import AuthenticationError, CredentialsNotFoundError


@pytest.fixture
def config(env_override, tmp_path):
    env_override(GDOC_CONFIG_DIR=str(tmp_path), GDOC_CREDENTIALS_FILE=None, GDOC_TOKEN_FILE=None)
    return GdocConfig()


def _credentials(expired: bool) -> Credentials:
    offset = timedelta(hours=-1) if expired else timedelta(hours=1)
    return Credentials(
        token="ya29.token",
        refresh_token="1//refresh",
        token_uri="https://oauth2.googleapis.com/token",
        client_id="client",
        client_secret="secret",
        scopes=list(DOCS_SCOPES),
        expiry=datetime.utcnow() + offset,
    )


class TestCheckClientSecrets:
    def test_missing_file(self, config):
        with pytest.raises(CredentialsNotFoundError) as exc_info:
            google_auth.check_client_secrets(config)
        assert exc_info.value.path == config.credentials_path

    def test_present_file(self, config):
        with open(config.credentials_path, "w") as f:
            f.write("{}")
        google_auth.check_client_secrets(config)


class TestGetCredentials:
    def test_not_authenticated(self, config):
        with pytest.raises(AuthenticationError, match="gdoc auth"):
            google_auth.get_credentials(config)

    def test_valid_token_is_returned(self, config):
        TokenFileStore(config.token_path).save(_credentials(expired=False))
        credentials = google_auth.get_credentials(config)
        assert credentials.token == "ya29.token"

    def test_expired_token_is_refreshed_and_saved(self, config):
        TokenFileStore(config.token_path).save(_credentials(expired=True))

        def fake_refresh(self, request):
            self.token = "ya29.refreshed"
            self.expiry = datetime.utcnow() + timedelta(hours=1)

        with patch.object(Credentials, "refresh", fake_refresh):
            credentials = google_auth.get_credentials(config)

        assert credentials.token == "ya29.refreshed"
        assert TokenFileStore(config.token_path).load().token == "ya29.refreshed"

    def test_refresh_failure(self, config):
        TokenFileStore(config.token_path).save(_credentials(expired=True))
        with patch.object(Credentials, "refresh", side_effect=RefreshError("invalid_grant")):
            with pytest.raises(AuthenticationError, match="gdoc auth"):
                google_auth.get_credentials(config)


class TestRunOAuthFlow:
    def test_exchanges_code_and_saves_token(self, config):
        flow = MagicMock()
        flow.authorization_url.return_value = ("https://accounts.google.com/o/oauth2/auth?x=1", "state")
        flow.credentials = _credentials(expired=False)
        server = MagicMock(redirect_uri="http://localhost:3000")
        server.wait_for_code.return_value = "auth-code"
        shown = []

        with (
            patch.object(google_auth, "OAuthCallbackServer", return_value=server),
            patch.object(google_auth, "create_oauth_flow", return_value=flow),
        ):
            google_auth.run_oauth_flow(config, open_browser=False, show_url=shown.append)

        flow.authorization_url.assert_called_once_with(access_type="offline", prompt="consent")
        flow.fetch_token.assert_called_once_with(code="auth-code")
        server.stop.assert_called_once()
        assert shown == ["https://accounts.google.com/o/oauth2/auth?x=1"]
        assert TokenFileStore(config.token_path).exists()

    def test_code_exchange_failure_is_authentication_error(self, config):
        flow = MagicMock()
        flow.authorization_url.return_value = ("https://example.com", "state")
        flow.fetch_token.side_effect = ValueError("(invalid_grant) Bad Request")
        server = MagicMock(redirect_uri="http://localhost:3000")
        server.wait_for_code.return_value = "stale-code"

        with (
            patch.object(google_auth, "OAuthCallbackServer", return_value=server),
            patch.object(google_auth, "create_oauth_flow", return_value=flow),
        ):
            with pytest.raises(AuthenticationError, match="invalid_grant") as exc_info:
                google_auth.run_oauth_flow(config, open_browser=False)

        assert isinstance(exc_info.value.__cause__, ValueError)
        assert not TokenFileStore(config.token_path).exists()

    def test_server_stopped_on_timeout(self, config):
        flow = MagicMock()
        flow.authorization_url.return_value = ("https://example.com", "state")
        server = MagicMock(redirect_uri="http://localhost:3000")
        server.wait_for_code.side_effect = AuthenticationError("Authentication timeout")

        with (
            patch.object(google_auth, "OAuthCallbackServer", return_value=server),
            patch.object(google_auth, "create_oauth_flow", return_value=flow),
        ):
            with pytest.raises(AuthenticationError):
                google_auth.run_oauth_flow(config, open_browser=False)

        server.stop.assert_called_once()
        flow.fetch_token.assert_not_called()


class TestOAuthCallbackServer:
    def test_redirect_uri(self):
        assert OAuthCallbackServer("localhost", 3456).redirect_uri == "http://localhost:3456"

    def test_wait_times_out(self):
        server = OAuthCallbackServer()
        with pytest.raises(AuthenticationError, match="timeout"):
            server.wait_for_code(0.01)

    def test_wait_returns_code(self):
        server = OAuthCallbackServer()
        server.code = "abc"
        server._received.set()
        assert server.wait_for_code(0.01) == "abc"

    def test_wait_reports_error(self):
        server = OAuthCallbackServer()
        server.error = "access_denied"
        server._received.set()
        with pytest.raises(AuthenticationError, match="access_denied"):
            server.wait_for_code(0.01)

    def test_stop_when_not_running_is_noop(self):
        OAuthCallbackServer().stop()

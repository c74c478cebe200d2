"""
Google OAuth2 for gdoc.

Uses the installed-app ("Desktop") flow: the client secrets downloaded from
the Google Cloud Console live at `~/.gdoc/credentials.json`, the browser is
sent to Google's consent page, and the redirect back to the local callback
server completes the exchange. The resulting token is stored and refreshed
automatically on later runs.
"""

import logging
import os
import webbrowser
from collections.abc import Callable

from google.auth.exceptions import RefreshError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import Flow

from auth.credential_store import TokenFileStore
from auth.oauth_callback_server import OAuthCallbackServer
from core.config import GdocConfig, get_config
from core.errors import AuthenticationError, CredentialsNotFoundError

logger = logging.getLogger(__name__)


def check_client_secrets(config: GdocConfig | None = None) -> None:
    """Raise CredentialsNotFoundError if the OAuth client secrets file is missing."""
    config = config or get_config()
    if not os.path.exists(config.credentials_path):
        raise CredentialsNotFoundError(config.credentials_path)


def create_oauth_flow(config: GdocConfig, redirect_uri: str) -> Flow:
    """Create the OAuth flow from the downloaded client secrets."""
    check_client_secrets(config)
    return Flow.from_client_secrets_file(config.credentials_path, scopes=config.scopes, redirect_uri=redirect_uri)


def run_oauth_flow(
    config: GdocConfig | None = None,
    open_browser: bool = True,
    show_url: Callable[[str], None] | None = None,
) -> Credentials:
    """
    Authorize interactively and store the resulting token.

    `show_url` receives the consent URL so the caller can display it for
    users whose browser does not open.

    Raises:
        CredentialsNotFoundError: If the client secrets file is missing.
        AuthenticationError: If the redirect never arrives or carries an error,
            or the code exchange fails.
    """
    config = config or get_config()
    server = OAuthCallbackServer(config.oauth_host, config.oauth_port)
    flow = create_oauth_flow(config, server.redirect_uri)
    auth_url, _ = flow.authorization_url(access_type="offline", prompt="consent")

    server.start()
    try:
        logger.info(f"Waiting for OAuth redirect on {server.redirect_uri}")
        if show_url is not None:
            show_url(auth_url)
        if open_browser and not webbrowser.open(auth_url):
            logger.warning("Could not open browser automatically")
        code = server.wait_for_code(config.oauth_timeout_seconds)
    finally:
        server.stop()

    try:
        flow.fetch_token(code=code)
    except Exception as e:
        logger.error(f"Failed to fetch token: {e}")
        raise AuthenticationError(f"Failed to fetch token: {e}") from e
    credentials = flow.credentials
    TokenFileStore(config.token_path).save(credentials)
    return credentials


def get_credentials(config: GdocConfig | None = None) -> Credentials:
    """
    Load stored credentials, refreshing them when expired.

    Raises:
        AuthenticationError: If no token is stored or it can no longer be refreshed.
    """
    config = config or get_config()
    store = TokenFileStore(config.token_path)
    credentials = store.load()
    if credentials is None:
        raise AuthenticationError("Not authenticated. Please run authentication first: gdoc auth")

    if credentials.expired and credentials.refresh_token:
        try:
            credentials.refresh(Request())
        except RefreshError as e:
            raise AuthenticationError(f"Stored token could not be refreshed ({e}). Run 'gdoc auth' again.") from e
        logger.info("Refreshed expired access token")
        store.save(credentials)

    return credentials

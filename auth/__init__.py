# Make the auth directory a Python package
# Public API exports from canonical locations

from auth.credential_store import TokenFileStore
from auth.google_auth import check_client_secrets, get_credentials, run_oauth_flow
from auth.oauth_callback_server import OAuthCallbackServer

__all__ = [
    "check_client_secrets",
    "get_credentials",
    "OAuthCallbackServer",
    "run_oauth_flow",
    "TokenFileStore",
]

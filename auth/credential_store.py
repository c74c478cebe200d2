"""
OAuth2 token storage for gdoc.

The authorized-user token is kept as a single JSON file (by default
`~/.gdoc/token.json`), next to the downloaded client secrets.
"""

import json
import logging
import os
from datetime import datetime

from google.oauth2.credentials import Credentials

logger = logging.getLogger(__name__)


class TokenFileStore:
    """Stores one set of user credentials in a local JSON file."""

    def __init__(self, token_path: str):
        self.token_path = token_path

    def exists(self) -> bool:
        return os.path.exists(self.token_path)

    def load(self) -> Credentials | None:
        """Load credentials, or None if the file is missing or unreadable."""
        if not self.exists():
            logger.debug(f"No token file found at {self.token_path}")
            return None

        try:
            with open(self.token_path) as f:
                token_data = json.load(f)

            expiry = None
            if token_data.get("expiry"):
                try:
                    expiry = datetime.fromisoformat(token_data["expiry"])
                    if expiry.tzinfo is not None:
                        expiry = expiry.replace(tzinfo=None)
                except (ValueError, TypeError) as e:
                    logger.warning(f"Could not parse token expiry in {self.token_path}: {e}")

            credentials = Credentials(
                token=token_data.get("token"),
                refresh_token=token_data.get("refresh_token"),
                token_uri=token_data.get("token_uri"),
                client_id=token_data.get("client_id"),
                client_secret=token_data.get("client_secret"),
                scopes=token_data.get("scopes"),
                expiry=expiry,
            )
            logger.debug(f"Loaded credentials from {self.token_path}")
            return credentials

        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Error loading credentials from {self.token_path}: {e}")
            return None

    def save(self, credentials: Credentials) -> None:
        """Write credentials, creating the parent directory if needed."""
        directory = os.path.dirname(self.token_path)
        if directory and not os.path.exists(directory):
            os.makedirs(directory)
            logger.info(f"Created credentials directory: {directory}")

        token_data = {
            "token": credentials.token,
            "refresh_token": credentials.refresh_token,
            "token_uri": credentials.token_uri,
            "client_id": credentials.client_id,
            "client_secret": credentials.client_secret,
            "scopes": credentials.scopes,
            "expiry": credentials.expiry.isoformat() if credentials.expiry else None,
        }

        with open(self.token_path, "w") as f:
            json.dump(token_data, f, indent=2)
        logger.info(f"Stored credentials to {self.token_path}")

    def delete(self) -> bool:
        """Remove the token file. Returns True if a file was removed."""
        if not self.exists():
            return False
        os.remove(self.token_path)
        logger.info(f"Deleted credentials at {self.token_path}")
        return True

"""
Configuration Management for gdoc.

Provides a single source of truth for file locations, OAuth settings and
logging defaults. Every value can be overridden through environment variables.
"""

import logging
import os

logger = logging.getLogger(__name__)

# Application metadata
GDOC_APP_NAME = "gdoc"
GDOC_CONFIG_DIR_DEFAULT = "~/.gdoc"

DOCS_SCOPES = ["https://www.googleapis.com/auth/documents"]


class GdocConfig:
    """
    Centralized configuration management.

    Values are resolved once, at construction time, from the environment.
    """

    def __init__(self):
        # Credential locations
        self.config_dir = os.path.expanduser(os.getenv("GDOC_CONFIG_DIR", GDOC_CONFIG_DIR_DEFAULT))
        self.credentials_path = os.getenv(
            "GDOC_CREDENTIALS_FILE", os.path.join(self.config_dir, "credentials.json")
        )
        self.token_path = os.getenv("GDOC_TOKEN_FILE", os.path.join(self.config_dir, "token.json"))

        # OAuth redirect server
        self.oauth_host = os.getenv("GDOC_OAUTH_HOST", "localhost")
        self.oauth_port = int(os.getenv("GDOC_OAUTH_PORT", "3000"))
        self.oauth_timeout_seconds = int(os.getenv("GDOC_OAUTH_TIMEOUT", "300"))
        self.scopes = list(DOCS_SCOPES)

        # Logging
        self.log_level = os.getenv("GDOC_LOG_LEVEL", "WARNING").upper()

    def get_log_level(self) -> int:
        """Resolve the configured log level name to a logging constant."""
        level = logging.getLevelName(self.log_level)
        if isinstance(level, int):
            return level
        logger.warning(f"Unknown GDOC_LOG_LEVEL '{self.log_level}', falling back to WARNING")
        return logging.WARNING

    def to_dict(self) -> dict:
        """Return the configuration as a plain dictionary (for diagnostics)."""
        return {
            "config_dir": self.config_dir,
            "credentials_path": self.credentials_path,
            "token_path": self.token_path,
            "oauth_host": self.oauth_host,
            "oauth_port": self.oauth_port,
            "oauth_timeout_seconds": self.oauth_timeout_seconds,
            "scopes": self.scopes,
            "log_level": self.log_level,
        }


_config: GdocConfig | None = None


def get_config() -> GdocConfig:
    """
    Get the global configuration instance.

    Creates one from the current environment if none exists.
    """
    global _config
    if _config is None:
        _config = GdocConfig()
        logger.debug(f"Loaded gdoc configuration from {_config.config_dir}")
    return _config


def set_config(config: GdocConfig) -> None:
    """Set the global configuration instance (for testing)."""
    global _config
    _config = config


def reset_config() -> None:
    """Reset the global configuration so the next access re-reads the environment."""
    global _config
    _config = None

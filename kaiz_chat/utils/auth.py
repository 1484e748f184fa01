"""
Credential helpers for the streaming chat client.

The client never stores credentials itself; it asks a CredentialProvider for
the current access token right before each request.
"""

import logging
from typing import Optional, Protocol

from kaiz_chat.config import settings

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


class CredentialProvider(Protocol):
    """Anything that can hand out the current access token."""

    def get_token(self) -> Optional[str]: ...


class StaticTokenProvider:
    """Provider returning a fixed token (or None)."""

    def __init__(self, token: Optional[str]):
        self._token = token

    def get_token(self) -> Optional[str]:
        return self._token or None


class SettingsTokenProvider:
    """Provider reading KAIZ_ACCESS_TOKEN from the application settings."""

    def get_token(self) -> Optional[str]:
        return settings.access_token or None


def bearer_headers(token: str) -> dict[str, str]:
    """Build the Authorization header for a bearer token."""
    return {"Authorization": f"{BEARER_PREFIX}{token}"}


def resolve_token(provider: CredentialProvider) -> Optional[str]:
    """Ask the provider for a token, treating provider failures as no token."""
    try:
        return provider.get_token()
    except Exception as e:
        logger.warning(f"Credential provider failed: {e}")
        return None

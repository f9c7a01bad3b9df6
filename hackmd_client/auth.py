"""
Authentication handlers for the HackMD API client.

HackMD authenticates API calls with a personal access token sent as a
bearer token.
"""

from abc import ABC, abstractmethod
from typing import Dict, Optional

from .exceptions import ValidationError


class Auth(ABC):
    """Base class for authentication handlers."""

    @abstractmethod
    def apply(self, headers: Dict[str, str]) -> Dict[str, str]:
        """
        Apply authentication to outgoing request headers.

        Args:
            headers: The request headers

        Returns:
            The authenticated headers
        """
        pass


class BearerTokenAuth(Auth):
    """Bearer token authentication."""

    def __init__(self, token: str):
        """
        Initialize Bearer token authentication.

        Args:
            token: The access token

        Raises:
            ValidationError: If the token is empty or cannot be sent in a header
        """
        validate_token(token)
        self.token = token

    def __repr__(self) -> str:
        return "BearerTokenAuth(token='***')"

    def apply(self, headers: Dict[str, str]) -> Dict[str, str]:
        """Apply bearer token authentication to the headers."""
        for name in [name for name in headers if name.lower() == "authorization"]:
            del headers[name]
        headers["Authorization"] = f"Bearer {self.token}"
        return headers


def validate_token(token: Optional[str]) -> None:
    """
    Check that an access token is usable as a header value.

    Raises:
        ValidationError: If the token is missing, padded with whitespace,
            or contains characters not allowed in an HTTP header
    """
    if not token or not token.strip():
        raise ValidationError("Missing access token when creating HackMD client")
    if token != token.strip():
        raise ValidationError("Access token must not have leading or trailing whitespace")
    if any(ord(char) < 0x20 or ord(char) == 0x7F for char in token):
        raise ValidationError("Access token contains control characters")
    if not token.isascii():
        raise ValidationError("Access token contains non-ASCII characters")


def create_auth(
    access_token: Optional[str] = None,
    auth: Optional[Auth] = None,
) -> Auth:
    """
    Create an authentication handler.

    Args:
        access_token: Token for BearerTokenAuth
        auth: Custom Auth instance, used as-is when given

    Returns:
        An Auth instance

    Raises:
        ValidationError: If neither a usable token nor a handler is provided
    """
    if auth is not None:
        return auth
    return BearerTokenAuth(access_token)

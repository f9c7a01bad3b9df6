"""
Exception types for the HackMD API client.

Every failed call raises exactly one ``ApiError``. The set of variants is
closed: each subclass derives directly from ``ApiError`` and carries a
matching ``ErrorKind`` tag, so callers can dispatch on ``error.kind``
instead of walking a class hierarchy.
"""

import enum
import json
from typing import Any, Mapping, Optional


class ErrorKind(enum.Enum):
    """Tag identifying which ``ApiError`` variant was raised."""

    VALIDATION = "validation"
    AUTHENTICATION = "authentication"
    NOT_FOUND = "not_found"
    RATE_LIMITED = "rate_limited"
    SERVER_ERROR = "server_error"
    TRANSPORT = "transport"
    UNEXPECTED = "unexpected"


class ApiError(Exception):
    """Base exception for all API client errors."""

    kind: ErrorKind = ErrorKind.UNEXPECTED

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: Optional[bytes] = None,
    ):
        """
        Initialize an ApiError.

        Args:
            message: Error message
            status_code: HTTP status code of the last attempt, if any
            body: Raw response body of the last attempt, if any
        """
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.body = body

    def __str__(self) -> str:
        if self.status_code is not None:
            return f"{self.status_code} {self.message}"
        return self.message


class ValidationError(ApiError):
    """Invalid input, rejected locally or by the API (400, 422)."""

    kind = ErrorKind.VALIDATION


class AuthenticationError(ApiError):
    """Authentication failures (401, 403)."""

    kind = ErrorKind.AUTHENTICATION


class NotFoundError(ApiError):
    """Requested resource does not exist (404)."""

    kind = ErrorKind.NOT_FOUND


class RateLimitedError(ApiError):
    """Rate limit exceeded (429)."""

    kind = ErrorKind.RATE_LIMITED

    def __init__(
        self,
        message: str,
        status_code: int = 429,
        body: Optional[bytes] = None,
        limit: Optional[int] = None,
        remaining: Optional[int] = None,
        reset: Optional[int] = None,
        retry_after: Optional[float] = None,
    ):
        """
        Initialize a RateLimitedError.

        Quota fields are best-effort and are ``None`` when the server did not
        send the corresponding header.

        Args:
            message: Error message
            status_code: HTTP status code (always 429 from the classifier)
            body: Raw response body
            limit: Request quota for the current window
            remaining: Requests left in the current window
            reset: Time at which the quota resets, as sent by the server
            retry_after: Seconds the server asked the caller to wait
        """
        super().__init__(message, status_code, body)
        self.limit = limit
        self.remaining = remaining
        self.reset = reset
        self.retry_after = retry_after

    def __str__(self) -> str:
        remaining = "?" if self.remaining is None else self.remaining
        limit = "?" if self.limit is None else self.limit
        return f"{super().__str__()}: {remaining}/{limit} requests remaining"


class ServerError(ApiError):
    """Server-side failure (5xx), raised after retries are exhausted."""

    kind = ErrorKind.SERVER_ERROR

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: Optional[bytes] = None,
        attempts: int = 1,
    ):
        """
        Initialize server error.

        Args:
            message: Error message
            status_code: HTTP status code of the last attempt
            body: Raw response body of the last attempt
            attempts: Number of attempts made before giving up
        """
        super().__init__(message, status_code, body)
        self.attempts = attempts


class TransportError(ApiError):
    """Network connectivity issues or request timeouts."""

    kind = ErrorKind.TRANSPORT

    def __init__(
        self,
        message: str,
        timed_out: bool = False,
        attempts: int = 1,
    ):
        """
        Initialize transport error.

        Args:
            message: Error message
            timed_out: Whether the last attempt failed by timing out
            attempts: Number of requests actually sent
        """
        super().__init__(message)
        self.timed_out = timed_out
        self.attempts = attempts


class UnexpectedError(ApiError):
    """Anything unclassified: odd status codes, malformed success bodies."""

    kind = ErrorKind.UNEXPECTED


class RawResponseError(Exception):
    """
    Unclassified HTTP failure, raised instead of an ``ApiError`` when the
    client is built with ``wrap_response_errors=False``.
    """

    def __init__(self, status_code: int, headers: Mapping[str, str], body: bytes):
        """
        Initialize raw response error.

        Args:
            status_code: HTTP status code of the failed response
            headers: Response headers
            body: Raw response body
        """
        super().__init__(f"HTTP {status_code}")
        self.status_code = status_code
        self.headers = dict(headers)
        self.body = body

    def json(self) -> Any:
        """Decode the raw body as JSON."""
        return json.loads(self.body)

"""
Classification of single request attempts.

This module turns the raw result of one transport call (a status code,
headers and body, or a raised exception) into an ``AttemptOutcome``. The
retry loop and the error mapper only ever look at outcomes.
"""

import asyncio
import json
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Union

import httpx

RETRYABLE_STATUS_CODES = frozenset({500, 502, 503, 504})

RATE_LIMIT_LIMIT_HEADER = "x-ratelimit-userlimit"
RATE_LIMIT_REMAINING_HEADER = "x-ratelimit-userremaining"
RATE_LIMIT_RESET_HEADER = "x-ratelimit-userreset"


@dataclass(frozen=True)
class Success:
    """2xx response with a decoded JSON body (``None`` when empty)."""

    status: int
    headers: Mapping[str, str] = field(default_factory=dict)
    body: bytes = b""
    data: Any = None


@dataclass(frozen=True)
class RetryableFailure:
    """Server-side failure presumed transient."""

    status: int
    headers: Mapping[str, str] = field(default_factory=dict)
    body: bytes = b""


@dataclass(frozen=True)
class RateLimited:
    """429 response with whatever quota metadata the server sent."""

    status: int = 429
    headers: Mapping[str, str] = field(default_factory=dict)
    body: bytes = b""
    retry_after: Optional[float] = None
    limit: Optional[int] = None
    remaining: Optional[int] = None
    reset: Optional[int] = None


@dataclass(frozen=True)
class FatalFailure:
    """Failure that retrying cannot fix."""

    status: int
    headers: Mapping[str, str] = field(default_factory=dict)
    body: bytes = b""
    reason: Optional[str] = None


@dataclass(frozen=True)
class TransportFailure:
    """The transport raised instead of returning a response."""

    cause: BaseException
    timed_out: bool = False
    transient: bool = False


AttemptOutcome = Union[
    Success, RetryableFailure, RateLimited, FatalFailure, TransportFailure
]


def _header(headers: Mapping[str, str], name: str) -> Optional[str]:
    # Header names are case-insensitive; plain dicts are not.
    value = headers.get(name)
    if value is not None:
        return value
    for key, candidate in headers.items():
        if key.lower() == name:
            return candidate
    return None


def _parse_int(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value.strip())
    except ValueError:
        return None


def _parse_float(value: Optional[str]) -> Optional[float]:
    if value is None:
        return None
    try:
        return float(value.strip())
    except ValueError:
        # HTTP-date form of Retry-After is not supported
        return None


def parse_rate_limit(
    status: int, headers: Mapping[str, str], body: bytes = b""
) -> RateLimited:
    """
    Build a ``RateLimited`` outcome from response headers.

    Missing or unparsable quota headers produce ``None`` fields rather than
    an error.
    """
    return RateLimited(
        status=status,
        headers=headers,
        body=body,
        retry_after=_parse_float(_header(headers, "retry-after")),
        limit=_parse_int(_header(headers, RATE_LIMIT_LIMIT_HEADER)),
        remaining=_parse_int(_header(headers, RATE_LIMIT_REMAINING_HEADER)),
        reset=_parse_int(_header(headers, RATE_LIMIT_RESET_HEADER)),
    )


def classify(status: int, headers: Mapping[str, str], body: bytes) -> AttemptOutcome:
    """
    Classify an HTTP response.

    Args:
        status: HTTP status code
        headers: Response headers
        body: Raw response body

    Returns:
        The attempt outcome. Pure: the same inputs always give the same result.
    """
    if 200 <= status < 300:
        if status == 204 or not body.strip():
            return Success(status, headers, body, None)
        try:
            data = json.loads(body)
        except (ValueError, UnicodeDecodeError) as e:
            return FatalFailure(
                status, headers, body, reason=f"Could not decode response body: {e}"
            )
        return Success(status, headers, body, data)

    if status == 429:
        return parse_rate_limit(status, headers, body)

    if status in RETRYABLE_STATUS_CODES:
        return RetryableFailure(status, headers, body)

    return FatalFailure(status, headers, body)


def classify_exception(exc: BaseException) -> TransportFailure:
    """
    Classify an exception raised by the transport.

    Timeouts and connectivity errors are transient; protocol-level errors
    (bad scheme, proxy misconfiguration, malformed responses) are not.
    """
    if isinstance(exc, (asyncio.TimeoutError, httpx.TimeoutException)):
        return TransportFailure(exc, timed_out=True, transient=True)
    if isinstance(exc, (httpx.NetworkError, OSError)):
        return TransportFailure(exc, transient=True)
    return TransportFailure(exc)

"""
Configuration classes for the HackMD API client.

This module provides configuration management for client instances and
per-call overrides.
"""

from types import MappingProxyType
from typing import Optional, Dict, Mapping
from dataclasses import dataclass, field
import httpx

from .retry import RetryConfig

DEFAULT_BASE_URL = "https://api.hackmd.io/v1"
DEFAULT_TIMEOUT = 30.0


def merge_headers(
    base: Mapping[str, str], overrides: Optional[Mapping[str, str]]
) -> Dict[str, str]:
    """
    Merge two header mappings, letting ``overrides`` win.

    Header names are compared case-insensitively, so ``content-type`` in
    ``overrides`` replaces ``Content-Type`` in ``base``.
    """
    headers = dict(base)
    if overrides:
        overridden = {name.lower() for name in overrides}
        headers = {
            name: value
            for name, value in headers.items()
            if name.lower() not in overridden
        }
        headers.update(overrides)
    return headers


@dataclass(frozen=True)
class TimeoutConfig:
    """
    Configuration for transport-level timeouts.

    Attributes:
        connect: Maximum time to establish connection (seconds)
        read: Maximum time to receive response data (seconds)
        write: Maximum time to send request data (seconds)
        pool: Maximum time to acquire a connection from the pool (seconds)
    """

    connect: Optional[float] = 5.0
    read: Optional[float] = 30.0
    write: Optional[float] = 30.0
    pool: Optional[float] = 5.0

    def to_httpx_timeout(self) -> httpx.Timeout:
        """Convert to httpx.Timeout object."""
        return httpx.Timeout(
            connect=self.connect,
            read=self.read,
            write=self.write,
            pool=self.pool,
        )


@dataclass(frozen=True)
class CallOptions:
    """
    Per-call overrides. Unset fields fall back to the client configuration.

    Attributes:
        timeout: Timeout for each attempt (seconds)
        deadline: Overall time budget for the call including retries (seconds)
        max_attempts: Maximum number of attempts, including the first
        base_delay: Delay before the first retry (seconds)
    """

    timeout: Optional[float] = None
    deadline: Optional[float] = None
    max_attempts: Optional[int] = None
    base_delay: Optional[float] = None


@dataclass(frozen=True)
class ClientConfig:
    """
    Configuration for HackMD client instances.

    Built once per client and shared read-only by every call.

    Attributes:
        access_token: HackMD API token sent as a bearer token
        base_url: Root URL for all API requests
        headers: Default headers applied to all requests
        timeout: Timeout for each attempt (seconds)
        deadline: Optional overall time budget for a call including retries
        retry: Retry policy configuration; None disables retries
        wrap_response_errors: Raise classified ApiErrors for failed responses
            instead of RawResponseError
        transport_timeout: Fine-grained timeouts for the default transport
        verify_ssl: Whether to verify SSL certificates
        pool_limits: Connection pool size limits
    """

    access_token: str = ""
    base_url: str = DEFAULT_BASE_URL
    headers: Mapping[str, str] = field(default_factory=dict)
    timeout: float = DEFAULT_TIMEOUT
    deadline: Optional[float] = None
    retry: Optional[RetryConfig] = field(default_factory=lambda: RetryConfig())
    wrap_response_errors: bool = True
    transport_timeout: TimeoutConfig = field(default_factory=TimeoutConfig)
    verify_ssl: bool = True
    pool_limits: Optional[Mapping[str, int]] = None

    def __post_init__(self):
        """Validate configuration after initialization."""
        if not self.base_url:
            raise ValueError("base_url is required")
        if self.timeout <= 0:
            raise ValueError("timeout must be positive")
        if self.deadline is not None and self.deadline <= 0:
            raise ValueError("deadline must be positive")

        # Ensure base_url doesn't end with a slash
        if self.base_url.endswith("/"):
            object.__setattr__(self, "base_url", self.base_url.rstrip("/"))

        # Set default pool limits if not provided
        pool_limits = self.pool_limits
        if pool_limits is None:
            pool_limits = {
                "max_keepalive_connections": 20,
                "max_connections": 100,
            }

        # Nested mappings are stored as read-only copies
        object.__setattr__(self, "headers", MappingProxyType(dict(self.headers)))
        object.__setattr__(self, "pool_limits", MappingProxyType(dict(pool_limits)))

    def __repr__(self) -> str:
        # Keep the token out of logs and tracebacks
        return (
            f"ClientConfig(base_url={self.base_url!r}, timeout={self.timeout}, "
            f"deadline={self.deadline}, retry={self.retry!r}, "
            f"wrap_response_errors={self.wrap_response_errors})"
        )

    def get_httpx_limits(self) -> httpx.Limits:
        """Get httpx.Limits object from pool_limits."""
        return httpx.Limits(
            max_keepalive_connections=self.pool_limits.get(
                "max_keepalive_connections", 20
            ),
            max_connections=self.pool_limits.get("max_connections", 100),
        )

    def merge_headers(
        self, request_headers: Optional[Mapping[str, str]]
    ) -> Dict[str, str]:
        """
        Merge default headers with request-specific headers.

        Args:
            request_headers: Request-specific headers

        Returns:
            Merged headers dict
        """
        return merge_headers(self.headers, request_headers)

    def merge_timeout(self, options: Optional[CallOptions]) -> float:
        """
        Resolve the per-attempt timeout for a call.

        Args:
            options: Per-call overrides

        Returns:
            Timeout in seconds
        """
        if options is not None and options.timeout is not None:
            if options.timeout <= 0:
                raise ValueError("timeout must be positive")
            return options.timeout
        return self.timeout

    def merge_deadline(self, options: Optional[CallOptions]) -> Optional[float]:
        """Resolve the overall deadline for a call, if any."""
        if options is not None and options.deadline is not None:
            if options.deadline <= 0:
                raise ValueError("deadline must be positive")
            return options.deadline
        return self.deadline

    def merge_retry(self, options: Optional[CallOptions]) -> Optional[RetryConfig]:
        """
        Resolve the retry policy for a call.

        Returns None when retries are disabled and the call does not
        override them.
        """
        if options is None or (
            options.max_attempts is None and options.base_delay is None
        ):
            return self.retry
        base = self.retry if self.retry is not None else RetryConfig(max_attempts=1)
        return base.merge(options.max_attempts, options.base_delay)

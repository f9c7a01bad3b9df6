"""
HTTP transports for the HackMD API client.

A transport sends exactly one HTTP request and hands back the status,
headers and raw body. It knows nothing about retries, authentication or
error classification.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, Optional

import httpx

from .config import ClientConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransportResponse:
    """Raw result of one HTTP exchange."""

    status_code: int
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""


class Transport(ABC):
    """Base class for HTTP transports."""

    @abstractmethod
    async def send(
        self,
        method: str,
        url: str,
        headers: Dict[str, str],
        body: Optional[bytes],
        timeout: float,
    ) -> TransportResponse:
        """
        Send one HTTP request.

        Args:
            method: HTTP method (GET, POST, etc.)
            url: Absolute request URL, including the query string
            headers: Request headers
            body: Raw request body
            timeout: Time budget for this request (seconds)

        Returns:
            The raw response

        Raises:
            httpx.TransportError: For connectivity, timeout and protocol failures
        """

    async def aclose(self) -> None:
        """Release any resources held by the transport."""


class HttpxTransport(Transport):
    """Transport backed by an ``httpx.AsyncClient``."""

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize the transport.

        Args:
            config: Client configuration supplying timeouts, SSL and pool settings
            client: Pre-built httpx client; the transport does not close it
        """
        self.config = config or ClientConfig()
        self._owns_client = client is None
        self._client = client

    @property
    def client(self) -> httpx.AsyncClient:
        """Get or create the underlying httpx client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.config.transport_timeout.to_httpx_timeout(),
                verify=self.config.verify_ssl,
                limits=self.config.get_httpx_limits(),
            )
        return self._client

    async def send(
        self,
        method: str,
        url: str,
        headers: Dict[str, str],
        body: Optional[bytes],
        timeout: float,
    ) -> TransportResponse:
        """Send one request through httpx."""
        # Never wait on a single socket operation longer than the attempt budget
        base = self.config.transport_timeout
        httpx_timeout = httpx.Timeout(
            connect=_cap(base.connect, timeout),
            read=_cap(base.read, timeout),
            write=_cap(base.write, timeout),
            pool=_cap(base.pool, timeout),
        )
        response = await self.client.request(
            method,
            url,
            headers=headers,
            content=body,
            timeout=httpx_timeout,
        )
        logger.info(f"{method} {url} -> {response.status_code}")
        return TransportResponse(
            status_code=response.status_code,
            headers=dict(response.headers),
            body=response.content,
        )

    async def aclose(self) -> None:
        """Close the underlying client if this transport created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None


def _cap(value: Optional[float], limit: float) -> float:
    if value is None:
        return limit
    return min(value, limit)

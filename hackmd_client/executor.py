"""
Request execution for the HackMD API client.

Every API call goes through ``RequestExecutor.execute``: it attaches
authentication and default headers, enforces timeouts, classifies each
attempt, retries transient failures and turns the final outcome into either
a decoded body or exactly one raised error.
"""

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Union

import httpx

from .auth import Auth, create_auth
from .classifier import (
    AttemptOutcome,
    FatalFailure,
    RateLimited,
    RetryableFailure,
    Success,
    TransportFailure,
    classify,
    classify_exception,
)
from .config import CallOptions, ClientConfig, merge_headers
from .exceptions import (
    ApiError,
    AuthenticationError,
    NotFoundError,
    RateLimitedError,
    RawResponseError,
    ServerError,
    TransportError,
    UnexpectedError,
    ValidationError,
)
from .retry import RetryHandler
from .transport import HttpxTransport, Transport

logger = logging.getLogger(__name__)

USER_AGENT = "hackmd-api-client-python"

DEFAULT_HEADERS = {
    "Accept": "application/json",
    "User-Agent": USER_AGENT,
}

HTTPFailure = Union[RetryableFailure, RateLimited, FatalFailure]


@dataclass(frozen=True)
class RequestDescriptor:
    """
    Description of one API call.

    Attributes:
        method: HTTP method (GET, POST, etc.)
        path: URL path relative to the client's base URL
        params: Query parameters
        headers: Request headers; these win over the client's default headers
        body: JSON-serializable body, or an object with a ``to_dict`` method
    """

    method: str
    path: str
    params: Optional[Mapping[str, Any]] = None
    headers: Optional[Mapping[str, str]] = None
    body: Any = None


def _error_message(outcome: HTTPFailure, default: str) -> str:
    """Prefer the API's own error message when the body carries one."""
    try:
        data = json.loads(outcome.body)
    except (ValueError, UnicodeDecodeError):
        return default
    if isinstance(data, dict):
        message = data.get("message", data.get("error"))
        if isinstance(message, str) and message:
            return message
    return default


def error_for_outcome(outcome: HTTPFailure, attempts: int = 1) -> ApiError:
    """
    Map a failed HTTP outcome to its ``ApiError`` variant.

    Args:
        outcome: Outcome of the last attempt
        attempts: Number of attempts made

    Returns:
        The error to raise
    """
    status = outcome.status
    status_text = f"{status} {httpx.codes.get_reason_phrase(status) or 'Unknown'}"

    if isinstance(outcome, RateLimited):
        return RateLimitedError(
            _error_message(outcome, f"Too many requests ({status_text})"),
            status_code=status,
            body=outcome.body,
            limit=outcome.limit,
            remaining=outcome.remaining,
            reset=outcome.reset,
            retry_after=outcome.retry_after,
        )

    if isinstance(outcome, RetryableFailure):
        return ServerError(
            _error_message(outcome, f"HackMD internal error ({status_text})"),
            status_code=status,
            body=outcome.body,
            attempts=attempts,
        )

    if outcome.reason is not None:
        return UnexpectedError(outcome.reason, status, outcome.body)

    if status in (401, 403):
        error_class = AuthenticationError
    elif status == 404:
        error_class = NotFoundError
    elif status in (400, 422):
        error_class = ValidationError
    elif status >= 500:
        return ServerError(
            _error_message(outcome, f"HackMD internal error ({status_text})"),
            status_code=status,
            body=outcome.body,
            attempts=attempts,
        )
    else:
        error_class = UnexpectedError

    message = _error_message(
        outcome, f"Received an error response ({status_text}) from HackMD"
    )
    return error_class(message, status, outcome.body)


def raw_error_for_outcome(outcome: HTTPFailure, attempts: int = 1) -> Exception:
    """Surface a failed HTTP outcome without classifying it."""
    if isinstance(outcome, FatalFailure) and outcome.reason is not None:
        # Undecodable success body: there is no failed response to expose
        return UnexpectedError(outcome.reason, outcome.status, outcome.body)
    return RawResponseError(outcome.status, outcome.headers, outcome.body)


class RequestExecutor:
    """
    Executes API requests to completion.

    One executor is shared by all calls made through a client. It holds no
    per-call state, so any number of ``execute`` calls may run concurrently.

    Example:
        >>> executor = RequestExecutor(ClientConfig(access_token="token"))
        >>> me = await executor.execute(RequestDescriptor("GET", "me"))
    """

    def __init__(
        self,
        config: ClientConfig,
        transport: Optional[Transport] = None,
        auth: Optional[Auth] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """
        Initialize the executor.

        Args:
            config: Client configuration
            transport: Transport used to send requests; defaults to an
                HttpxTransport owned by this executor
            auth: Authentication handler; defaults to a bearer token built
                from ``config.access_token``
            sleep: Coroutine used to wait between attempts

        Raises:
            ValidationError: If no usable access token is configured
        """
        self.config = config
        self.auth = create_auth(config.access_token, auth)
        self._owns_transport = transport is None
        self.transport = transport if transport is not None else HttpxTransport(config)
        self.sleep = sleep

        # Picked once so call paths never branch on the flag
        if config.wrap_response_errors:
            self._failure_to_error = error_for_outcome
        else:
            self._failure_to_error = raw_error_for_outcome

    async def aclose(self) -> None:
        """Close the transport if this executor created it."""
        if self._owns_transport:
            await self.transport.aclose()

    def _build_url(self, descriptor: RequestDescriptor) -> str:
        url = httpx.URL(f"{self.config.base_url}/{descriptor.path.lstrip('/')}")
        if descriptor.params:
            url = url.copy_merge_params(dict(descriptor.params))
        return str(url)

    def _build_headers(self, descriptor: RequestDescriptor) -> Dict[str, str]:
        headers = merge_headers(
            DEFAULT_HEADERS, self.config.merge_headers(descriptor.headers)
        )
        if descriptor.body is not None:
            headers = merge_headers({"Content-Type": "application/json"}, headers)
        return self.auth.apply(headers)

    @staticmethod
    def _encode_body(body: Any) -> Optional[bytes]:
        if body is None:
            return None
        if hasattr(body, "to_dict"):
            body = body.to_dict()
        try:
            return json.dumps(body).encode("utf-8")
        except (TypeError, ValueError) as e:
            raise ValidationError(f"Request body is not JSON serializable: {e}") from e

    async def execute(
        self,
        descriptor: RequestDescriptor,
        decoder: Optional[Callable[[Any], Any]] = None,
        options: Optional[CallOptions] = None,
    ) -> Any:
        """
        Execute a request, retrying transient failures.

        Args:
            descriptor: The request to make
            decoder: Optional callable turning the decoded JSON body into
                the caller's expected type
            options: Per-call overrides for timeout, deadline and retries

        Returns:
            The decoded response body (``None`` for empty responses)

        Raises:
            ApiError: Exactly one variant describing the final failure
            RawResponseError: For failed responses when
                ``wrap_response_errors`` is disabled
        """
        timeout = self.config.merge_timeout(options)
        deadline = self.config.merge_deadline(options)
        retry_config = self.config.merge_retry(options)

        url = self._build_url(descriptor)
        headers = self._build_headers(descriptor)
        content = self._encode_body(descriptor.body)
        method = descriptor.method.upper()

        loop = asyncio.get_running_loop()
        started = loop.time()
        attempts = 0
        last: Optional[AttemptOutcome] = None

        async def attempt() -> AttemptOutcome:
            nonlocal attempts, last

            budget = timeout
            if deadline is not None:
                budget = min(budget, deadline - (loop.time() - started))
                if budget <= 0:
                    # Nothing is sent; the previous response stays the answer
                    if last is not None:
                        return last
                    return TransportFailure(
                        asyncio.TimeoutError(f"Deadline of {deadline}s exceeded"),
                        timed_out=True,
                        transient=False,
                    )

            attempts += 1
            logger.debug(f"Attempt {attempts}: {method} {url}")
            try:
                response = await asyncio.wait_for(
                    self.transport.send(method, url, dict(headers), content, budget),
                    budget,
                )
            except (asyncio.TimeoutError, httpx.TransportError, OSError) as e:
                last = classify_exception(e)
            else:
                last = classify(response.status_code, response.headers, response.body)
            return last

        if retry_config is not None:
            handler = RetryHandler(retry_config, deadline=deadline, sleep=self.sleep)
            outcome = await handler.execute_async(attempt)
        else:
            outcome = await attempt()

        return self._resolve(outcome, attempts, decoder)

    def _resolve(
        self,
        outcome: AttemptOutcome,
        attempts: int,
        decoder: Optional[Callable[[Any], Any]],
    ) -> Any:
        if isinstance(outcome, Success):
            if decoder is None:
                return outcome.data
            try:
                return decoder(outcome.data)
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                raise UnexpectedError(
                    f"Response body does not match the expected shape: {e}",
                    outcome.status,
                    outcome.body,
                ) from e

        if isinstance(outcome, TransportFailure):
            cause = outcome.cause
            kind = "Request timed out" if outcome.timed_out else "Connection error"
            logger.error(f"{kind} after {attempts} attempt(s): {cause!r}")
            raise TransportError(
                f"{kind}: {cause}" if str(cause) else kind,
                timed_out=outcome.timed_out,
                attempts=attempts,
            ) from cause

        raise self._failure_to_error(outcome, attempts)

"""
HackMD API Client - an asynchronous client for the HackMD API.

Every call goes through a request executor that attaches the access token,
enforces timeouts, retries transient failures with exponential backoff and
reports failures as typed errors.

Example:
    >>> from hackmd_client import ApiClient
    >>> async with ApiClient("your-access-token") as client:
    ...     me = await client.get_me()
    ...     print(me.name)
"""

from .client import ApiClient
from .exceptions import (
    ErrorKind,
    ApiError,
    ValidationError,
    AuthenticationError,
    NotFoundError,
    RateLimitedError,
    ServerError,
    TransportError,
    UnexpectedError,
    RawResponseError,
)
from .auth import Auth, BearerTokenAuth
from .config import CallOptions, ClientConfig, TimeoutConfig
from .executor import RequestDescriptor, RequestExecutor
from .retry import RetryConfig
from .transport import HttpxTransport, Transport, TransportResponse
from .models import (
    CommentPermissionType,
    CreateNoteOptions,
    Note,
    NotePermissionRole,
    NotePublishType,
    SimpleUserProfile,
    SingleNote,
    Team,
    TeamVisibilityType,
    UpdateNoteOptions,
    User,
)

__version__ = "0.1.0"

__all__ = [
    # Client
    "ApiClient",
    "RequestExecutor",
    "RequestDescriptor",
    # Exceptions
    "ErrorKind",
    "ApiError",
    "ValidationError",
    "AuthenticationError",
    "NotFoundError",
    "RateLimitedError",
    "ServerError",
    "TransportError",
    "UnexpectedError",
    "RawResponseError",
    # Authentication
    "Auth",
    "BearerTokenAuth",
    # Configuration
    "CallOptions",
    "ClientConfig",
    "TimeoutConfig",
    "RetryConfig",
    # Transport
    "Transport",
    "HttpxTransport",
    "TransportResponse",
    # Models
    "CommentPermissionType",
    "CreateNoteOptions",
    "Note",
    "NotePermissionRole",
    "NotePublishType",
    "SimpleUserProfile",
    "SingleNote",
    "Team",
    "TeamVisibilityType",
    "UpdateNoteOptions",
    "User",
    # Version
    "__version__",
]

"""Tests for the exception types and error mapping."""

import json

import pytest

from hackmd_client.classifier import FatalFailure, RateLimited, RetryableFailure
from hackmd_client.exceptions import (
    ApiError,
    AuthenticationError,
    ErrorKind,
    NotFoundError,
    RateLimitedError,
    RawResponseError,
    ServerError,
    TransportError,
    UnexpectedError,
    ValidationError,
)
from hackmd_client.executor import error_for_outcome, raw_error_for_outcome


class TestExceptions:
    """Test suite for exception classes."""

    def test_api_error_base(self):
        """Test base ApiError exception."""
        error = ApiError("Test error")
        assert str(error) == "Test error"
        assert error.message == "Test error"
        assert error.status_code is None
        assert error.body is None

    def test_api_error_with_status(self):
        """Test that the status code is part of the message."""
        error = NotFoundError("Not Found", 404)
        assert "404" in str(error)

    def test_every_variant_is_tagged(self):
        """Test that each variant carries its own kind."""
        variants = {
            ValidationError: ErrorKind.VALIDATION,
            AuthenticationError: ErrorKind.AUTHENTICATION,
            NotFoundError: ErrorKind.NOT_FOUND,
            RateLimitedError: ErrorKind.RATE_LIMITED,
            ServerError: ErrorKind.SERVER_ERROR,
            TransportError: ErrorKind.TRANSPORT,
            UnexpectedError: ErrorKind.UNEXPECTED,
        }
        assert set(variants.values()) == set(ErrorKind)
        for error_class, kind in variants.items():
            assert error_class.kind is kind
            assert error_class.__bases__ == (ApiError,)

    def test_rate_limited_error(self):
        """Test RateLimitedError exception."""
        error = RateLimitedError(
            "Too many requests", limit=100, remaining=0, reset=1700000000, retry_after=60
        )
        assert error.status_code == 429
        assert error.limit == 100
        assert error.remaining == 0
        assert error.reset == 1700000000
        assert error.retry_after == 60
        assert "0/100 requests remaining" in str(error)

    def test_rate_limited_error_without_metadata(self):
        """Test RateLimitedError without quota headers."""
        error = RateLimitedError("Too many requests")
        assert error.limit is None
        assert error.remaining is None
        assert "?/?" in str(error)

    def test_transport_error(self):
        """Test TransportError exception."""
        error = TransportError("Request timed out", timed_out=True, attempts=3)
        assert error.timed_out is True
        assert error.attempts == 3
        assert error.status_code is None

    def test_raw_response_error(self):
        """Test that raw errors expose status, headers and body."""
        error = RawResponseError(418, {"x-tea": "yes"}, b'{"short": "stout"}')
        assert error.status_code == 418
        assert error.headers == {"x-tea": "yes"}
        assert error.json() == {"short": "stout"}
        assert not isinstance(error, ApiError)

    @pytest.mark.parametrize(
        "error_class",
        [ApiError, RateLimitedError, ServerError, TransportError, RawResponseError],
    )
    def test_constructors_document_arguments(self, error_class):
        """Test that every custom constructor documents its arguments."""
        assert "Args:" in (error_class.__init__.__doc__ or "")


class TestErrorForOutcome:
    """Test suite for mapping outcomes to errors."""

    @pytest.mark.parametrize(
        "status,error_class",
        [
            (400, ValidationError),
            (401, AuthenticationError),
            (403, AuthenticationError),
            (404, NotFoundError),
            (409, UnexpectedError),
            (422, ValidationError),
            (501, ServerError),
            (302, UnexpectedError),
        ],
    )
    def test_fatal_statuses(self, status, error_class):
        """Test the variant chosen for each fatal status."""
        error = error_for_outcome(FatalFailure(status, {}, b""))
        assert type(error) is error_class
        assert error.status_code == status

    def test_exhausted_server_error(self):
        """Test that exhausted retries map to ServerError with the attempt count."""
        error = error_for_outcome(RetryableFailure(503, {}, b""), attempts=3)
        assert isinstance(error, ServerError)
        assert error.attempts == 3
        assert error.status_code == 503
        assert "503 Service Unavailable" in error.message

    def test_rate_limited(self):
        """Test that rate-limit metadata is carried over."""
        error = error_for_outcome(RateLimited(limit=10, remaining=0, reset=99))
        assert isinstance(error, RateLimitedError)
        assert (error.limit, error.remaining, error.reset) == (10, 0, 99)

    def test_decode_failure_is_unexpected(self):
        """Test that an undecodable success body maps to UnexpectedError."""
        error = error_for_outcome(FatalFailure(200, {}, b"<html>", reason="bad body"))
        assert isinstance(error, UnexpectedError)
        assert error.message == "bad body"

    def test_error_message_from_json(self):
        """Test that error message is extracted from JSON response."""
        body = json.dumps({"message": "Invalid input"}).encode()
        error = error_for_outcome(FatalFailure(400, {}, body))
        assert "Invalid input" in str(error)

    def test_error_message_from_error_field(self):
        """Test the fallback to an ``error`` field."""
        body = json.dumps({"error": "Note not found"}).encode()
        error = error_for_outcome(FatalFailure(404, {}, body))
        assert error.message == "Note not found"

    def test_raw_error(self):
        """Test that raw mode exposes the response unclassified."""
        error = raw_error_for_outcome(FatalFailure(404, {"a": "b"}, b"gone"))
        assert isinstance(error, RawResponseError)
        assert error.status_code == 404
        assert error.body == b"gone"

    def test_raw_mode_keeps_decode_failures_typed(self):
        """Test that a bad success body is still an UnexpectedError in raw mode."""
        error = raw_error_for_outcome(FatalFailure(200, {}, b"<", reason="bad body"))
        assert isinstance(error, UnexpectedError)

"""Shared error types and codes."""

from __future__ import annotations

from typing import Any


class ErrorCode:
    NOT_FOUND = "not_found"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    BAD_REQUEST = "bad_request"
    SERVER_ERROR = "server_error"
    HTTP_ERROR = "http_error"
    NETWORK_ERROR = "network_error"
    INVALID_BODY = "invalid_body"
    INVALID_CONFIG = "invalid_config"


def code_for_status(status: int) -> str:
    """Classify an HTTP status into an error code."""
    if status == 400:
        return ErrorCode.BAD_REQUEST
    if status == 401:
        return ErrorCode.UNAUTHORIZED
    if status == 403:
        return ErrorCode.FORBIDDEN
    if status == 404:
        return ErrorCode.NOT_FOUND
    if status >= 500:
        return ErrorCode.SERVER_ERROR
    return ErrorCode.HTTP_ERROR


class FetchCacheError(Exception):
    """Base error for fetchcache operations."""

    def __init__(
        self,
        message: str,
        status: int | None = None,
        response: Any = None,
        code: str = ErrorCode.HTTP_ERROR,
    ):
        super().__init__(message)
        self.status = status
        self.response = response
        self.code = code


class ResponseError(FetchCacheError):
    """Server answered with a non-success status."""

    def __init__(self, status: int, response: Any = None, body: str | None = None):
        super().__init__(
            f"Problem fetching. Status: {status}",
            status=status,
            response=response,
            code=code_for_status(status),
        )
        self.body = body


class TransportError(FetchCacheError):
    """Request never produced a response (DNS, refused connection, timeout)."""

    def __init__(self, message: str):
        super().__init__(message, code=ErrorCode.NETWORK_ERROR)


class DecodeError(FetchCacheError):
    """Successful response whose body could not be decoded as requested."""

    def __init__(self, message: str, status: int | None = None, response: Any = None):
        super().__init__(message, status=status, response=response, code=ErrorCode.INVALID_BODY)


class InvalidConfigurationError(FetchCacheError, ValueError):
    """Caller supplied an option the client cannot honour."""

    def __init__(self, message: str):
        super().__init__(message, code=ErrorCode.INVALID_CONFIG)


def error_details(exc: BaseException) -> dict[str, Any]:
    """Flatten an exception into a JSON-friendly payload."""
    if isinstance(exc, FetchCacheError):
        payload: dict[str, Any] = {
            "code": exc.code,
            "message": str(exc),
        }
        if exc.status is not None:
            payload["status"] = exc.status
        return payload
    return {"code": ErrorCode.HTTP_ERROR, "message": str(exc) or type(exc).__name__}

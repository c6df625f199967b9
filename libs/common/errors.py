from __future__ import annotations

import uuid
from dataclasses import dataclass


@dataclass(slots=True)
class ErrorEnvelope:
    error_code: str
    message: str
    trace_id: str
    retryable: bool


class DomainError(Exception):
    def __init__(self, error_code: str, message: str, retryable: bool = False) -> None:
        super().__init__(message)
        self.error_code = error_code
        self.message = message
        self.retryable = retryable


class ValidationError(DomainError):
    def __init__(self, message: str = "Validation failed.", error_code: str = "VALIDATION_FAILED") -> None:
        super().__init__(error_code, message, retryable=False)


class NotFoundError(DomainError):
    def __init__(self, message: str = "Not found.", error_code: str = "NOT_FOUND") -> None:
        super().__init__(error_code, message, retryable=False)


class ConfigurationError(DomainError):
    def __init__(self, message: str = "Invalid configuration.") -> None:
        super().__init__("CONFIGURATION_ERROR", message, retryable=False)


class UpstreamError(DomainError):
    """TMDB가 성공이 아닌 응답을 줬거나 네트워크 호출이 실패했어요."""

    def __init__(self, message: str = "Upstream request failed.", retryable: bool = False) -> None:
        super().__init__("UPSTREAM_ERROR", message, retryable=retryable)


class DecodeError(DomainError):
    """TMDB 응답 본문이 기대한 형태가 아니에요."""

    def __init__(self, message: str = "Malformed upstream payload.") -> None:
        super().__init__("DECODE_FAILED", message, retryable=False)


class ToolNotFoundError(NotFoundError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Tool not found: {name}", error_code="TOOL_NOT_FOUND")
        self.name = name


class InvalidUriError(ValidationError):
    def __init__(self, uri: str) -> None:
        super().__init__(f"Invalid resource URI: {uri!r}", error_code="INVALID_URI")
        self.uri = uri


class InvalidCursorError(ValidationError):
    def __init__(self, cursor: str) -> None:
        super().__init__(f"Invalid cursor: {cursor!r}", error_code="INVALID_CURSOR")
        self.cursor = cursor


class InvalidToolArgumentsError(ValidationError):
    def __init__(self, tool_name: str, detail: str) -> None:
        super().__init__(f"Invalid arguments for tool {tool_name}: {detail}", error_code="INVALID_ARGUMENTS")
        self.tool_name = tool_name


class MethodNotFoundError(NotFoundError):
    def __init__(self, method: str) -> None:
        super().__init__(f"Method not found: {method}", error_code="METHOD_NOT_FOUND")
        self.method = method


class TransportError(DomainError):
    def __init__(self, message: str = "Transport failure.") -> None:
        super().__init__("TRANSPORT_ERROR", message, retryable=False)


def build_error_envelope(error_code: str, message: str, retryable: bool) -> ErrorEnvelope:
    return ErrorEnvelope(
        error_code=error_code,
        message=message,
        trace_id=str(uuid.uuid4()),
        retryable=retryable,
    )

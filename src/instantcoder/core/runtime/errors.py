from __future__ import annotations

import re
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class ErrorInfo:
    kind: str
    provider: str | None
    message: str
    retryable: bool
    http_status: int | None = None
    field_path: str | None = None


class GenerationError(Exception):
    """Base class for every failure a generation call can settle with."""

    kind = "generation_error"
    retryable = False

    def __init__(self, message: str, *, provider: str | None = None) -> None:
        super().__init__(message)
        self.provider = provider
        self.message = message

    def info(self) -> ErrorInfo:
        return ErrorInfo(
            kind=self.kind,
            provider=self.provider,
            message=self.message,
            retryable=self.retryable,
        )


class UnsupportedProvider(GenerationError):
    kind = "unsupported_provider"

    def __init__(self, value: object) -> None:
        super().__init__(f"Unsupported provider: {value}", provider=str(value))
        self.value = value


class InvalidRequest(GenerationError):
    kind = "invalid_request"

    def __init__(self, message: str, *, provider: str | None = None, field: str | None = None) -> None:
        super().__init__(message, provider=provider)
        self.field = field

    def info(self) -> ErrorInfo:
        return ErrorInfo(
            kind=self.kind,
            provider=self.provider,
            message=self.message,
            retryable=False,
            field_path=self.field,
        )


class TransportError(GenerationError):
    kind = "transport_error"

    def __init__(self, message: str, *, provider: str | None = None, status: int | None = None, reason: str = "") -> None:
        super().__init__(message, provider=provider)
        self.status = status
        self.reason = reason

    @property
    def retryable(self) -> bool:  # type: ignore[override]
        # Advisory only; nothing in the dispatch path retries.
        if self.status is None:
            return True
        return self.status in {408, 429} or self.status >= 500

    def info(self) -> ErrorInfo:
        return ErrorInfo(
            kind=self.kind,
            provider=self.provider,
            message=self.message,
            retryable=self.retryable,
            http_status=self.status,
        )


class MalformedResponse(GenerationError):
    kind = "malformed_response"

    def __init__(self, message: str, *, provider: str | None = None, field_path: str) -> None:
        super().__init__(message, provider=provider)
        self.field_path = field_path

    def info(self) -> ErrorInfo:
        return ErrorInfo(
            kind=self.kind,
            provider=self.provider,
            message=self.message,
            retryable=False,
            field_path=self.field_path,
        )


class Cancelled(GenerationError):
    kind = "cancelled"

    def __init__(self, message: str = "generation cancelled", *, provider: str | None = None) -> None:
        super().__init__(message, provider=provider)


def error_from_info(info: ErrorInfo) -> GenerationError:
    if info.kind == UnsupportedProvider.kind:
        return UnsupportedProvider(info.provider)
    if info.kind == InvalidRequest.kind:
        return InvalidRequest(info.message, provider=info.provider, field=info.field_path)
    if info.kind == TransportError.kind:
        return TransportError(info.message, provider=info.provider, status=info.http_status)
    if info.kind == MalformedResponse.kind:
        return MalformedResponse(info.message, provider=info.provider, field_path=info.field_path or "")
    if info.kind == Cancelled.kind:
        return Cancelled(info.message, provider=info.provider)
    return GenerationError(info.message, provider=info.provider)


def _compact_message(message: str, max_len: int = 220) -> str:
    msg = re.sub(r"\s+", " ", message)
    return msg.strip()[:max_len]


def compact_error_summary(exc: BaseException, max_len: int = 220) -> str:
    return f"{exc.__class__.__name__}: {_compact_message(str(exc), max_len=max_len)}"

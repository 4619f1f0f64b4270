from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

from instantcoder.core.runtime.errors import ErrorInfo, GenerationError, error_from_info

KEY_NOT_REQUIRED = "Not required"


class ProviderId(str, Enum):
    OPENAI = "openai"
    GEMINI = "gemini"
    CLAUDE = "claude"
    MISTRAL = "mistral"
    COHERE = "cohere"
    OLLAMA = "ollama"
    XAI = "xai"
    GUIJI = "guiji"


class WireFamily(str, Enum):
    OPENAI_CHAT = "openai_chat"
    GEMINI = "gemini"
    CLAUDE = "claude"
    COHERE = "cohere"
    OLLAMA = "ollama"


@dataclass(frozen=True, slots=True)
class ProviderProfile:
    provider: ProviderId
    label: str
    default_base_url: str
    model_hint: str
    key_hint: str
    family: WireFamily

    @property
    def key_required(self) -> bool:
        return self.key_hint != KEY_NOT_REQUIRED


@dataclass(frozen=True, slots=True)
class GenerationRequest:
    provider: ProviderId
    model: str
    prompt: str
    api_key: str = ""
    base_url: str = ""

    def with_base_url(self, base_url: str) -> GenerationRequest:
        return replace(self, base_url=base_url)


@dataclass(frozen=True, slots=True)
class HttpRequestSpec:
    method: str
    url: str
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    def json(self) -> Any:
        return json.loads(self.body.decode("utf-8"))


@dataclass(frozen=True, slots=True)
class TransportReply:
    status: int
    reason: str = ""
    body: Any = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


@dataclass(frozen=True, slots=True)
class GenerationResult:
    """Outcome of one dispatch: either ``text`` or ``error`` is set, never both."""

    provider: str
    text: str | None = None
    error: ErrorInfo | None = None

    @classmethod
    def succeeded(cls, provider: str, text: str) -> GenerationResult:
        return cls(provider=provider, text=text)

    @classmethod
    def failed(cls, provider: str, exc: GenerationError) -> GenerationResult:
        return cls(provider=provider, error=exc.info())

    @property
    def ok(self) -> bool:
        return self.error is None

    def raise_for_error(self) -> str:
        if self.error is not None:
            raise error_from_info(self.error)
        return self.text or ""

"""Response extraction per wire family.

Each extractor walks one vendor envelope down to the generated text. A path
that is missing, an empty array, or a leaf that is not a string raises
``MalformedResponse`` with the dotted path that was expected, so callers can
tell a broken payload apart from a model that legitimately answered with "".
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from types import MappingProxyType
from typing import Any

from instantcoder.core.providers.base import ProviderId, WireFamily
from instantcoder.core.providers.registry import lookup
from instantcoder.core.runtime.errors import MalformedResponse, TransportError

ResponseExtractor = Callable[[str, Any], str]

# Path steps are dict keys (str) or list indexes (int).
OPENAI_CHAT_PATH: tuple[str | int, ...] = ("choices", 0, "message", "content")
GEMINI_PATH: tuple[str | int, ...] = ("candidates", 0, "content", "parts", 0, "text")
CLAUDE_PATH: tuple[str | int, ...] = ("content", 0, "text")
COHERE_PATH: tuple[str | int, ...] = ("generations", 0, "text")
OLLAMA_PATH: tuple[str | int, ...] = ("response",)


def format_path(path: Sequence[str | int]) -> str:
    out = ""
    for step in path:
        if isinstance(step, int):
            out += f"[{step}]"
        else:
            out += f".{step}" if out else step
    return out


def ensure_success(provider: ProviderId | str, status: int, reason: str = "") -> None:
    if 200 <= status < 300:
        return
    profile = lookup(provider)
    detail = reason or f"HTTP {status}"
    raise TransportError(
        f"{profile.label} API error: {detail}",
        provider=profile.provider.value,
        status=status,
        reason=reason,
    )


def walk(provider: str, body: Any, path: Sequence[str | int]) -> str:
    expected = format_path(path)
    node = body
    for step in path:
        if isinstance(step, int):
            if not isinstance(node, list) or len(node) <= step:
                raise MalformedResponse(
                    f"{provider} response missing {expected}", provider=provider, field_path=expected
                )
        elif not isinstance(node, dict) or step not in node:
            raise MalformedResponse(f"{provider} response missing {expected}", provider=provider, field_path=expected)
        node = node[step]
    if not isinstance(node, str):
        raise MalformedResponse(
            f"{provider} response field {expected} is {type(node).__name__}, expected string",
            provider=provider,
            field_path=expected,
        )
    return node


def extract_openai_chat(provider: str, body: Any) -> str:
    return walk(provider, body, OPENAI_CHAT_PATH)


def extract_gemini(provider: str, body: Any) -> str:
    return walk(provider, body, GEMINI_PATH)


def extract_claude(provider: str, body: Any) -> str:
    return walk(provider, body, CLAUDE_PATH)


def extract_cohere(provider: str, body: Any) -> str:
    return walk(provider, body, COHERE_PATH)


def extract_ollama(provider: str, body: Any) -> str:
    return walk(provider, body, OLLAMA_PATH)


EXTRACTORS: Mapping[WireFamily, ResponseExtractor] = MappingProxyType(
    {
        WireFamily.OPENAI_CHAT: extract_openai_chat,
        WireFamily.GEMINI: extract_gemini,
        WireFamily.CLAUDE: extract_claude,
        WireFamily.COHERE: extract_cohere,
        WireFamily.OLLAMA: extract_ollama,
    }
)


def extract_text(provider: ProviderId | str, status: int, body: Any, reason: str = "") -> str:
    profile = lookup(provider)
    ensure_success(profile.provider, status, reason)
    return EXTRACTORS[profile.family](profile.provider.value, body)

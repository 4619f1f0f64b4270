from __future__ import annotations

import json
from collections.abc import Callable, Mapping
from types import MappingProxyType
from typing import Any
from urllib.parse import quote

from instantcoder.core.providers.base import GenerationRequest, HttpRequestSpec, WireFamily
from instantcoder.core.providers.registry import lookup

ANTHROPIC_VERSION = "2023-06-01"
COHERE_MAX_TOKENS = 2000

RequestBuilder = Callable[[GenerationRequest], HttpRequestSpec]


def _base(request: GenerationRequest) -> str:
    return request.base_url.rstrip("/")


def _post(url: str, payload: dict[str, Any], extra_headers: dict[str, str] | None = None) -> HttpRequestSpec:
    headers = {"Content-Type": "application/json"}
    if extra_headers:
        headers.update(extra_headers)
    body = json.dumps(payload, ensure_ascii=False).encode("utf-8")
    return HttpRequestSpec(method="POST", url=url, headers=headers, body=body)


def _user_messages(prompt: str) -> list[dict[str, str]]:
    return [{"role": "user", "content": prompt}]


def build_openai_chat(request: GenerationRequest) -> HttpRequestSpec:
    return _post(
        f"{_base(request)}/chat/completions",
        {"model": request.model, "messages": _user_messages(request.prompt)},
        {"Authorization": f"Bearer {request.api_key}"},
    )


def build_gemini(request: GenerationRequest) -> HttpRequestSpec:
    # Gemini authenticates with a query parameter instead of a header.
    url = f"{_base(request)}/models/{request.model}:generateContent?key={quote(request.api_key, safe='')}"
    return _post(url, {"contents": [{"parts": [{"text": request.prompt}]}]})


def build_claude(request: GenerationRequest) -> HttpRequestSpec:
    return _post(
        f"{_base(request)}/messages",
        {"model": request.model, "messages": _user_messages(request.prompt)},
        {"x-api-key": request.api_key, "anthropic-version": ANTHROPIC_VERSION},
    )


def build_cohere(request: GenerationRequest) -> HttpRequestSpec:
    return _post(
        f"{_base(request)}/generate",
        {"model": request.model, "prompt": request.prompt, "max_tokens": COHERE_MAX_TOKENS},
        {"Authorization": f"Bearer {request.api_key}"},
    )


def build_ollama(request: GenerationRequest) -> HttpRequestSpec:
    return _post(f"{_base(request)}/api/generate", {"model": request.model, "prompt": request.prompt})


BUILDERS: Mapping[WireFamily, RequestBuilder] = MappingProxyType(
    {
        WireFamily.OPENAI_CHAT: build_openai_chat,
        WireFamily.GEMINI: build_gemini,
        WireFamily.CLAUDE: build_claude,
        WireFamily.COHERE: build_cohere,
        WireFamily.OLLAMA: build_ollama,
    }
)


def build_request(request: GenerationRequest) -> HttpRequestSpec:
    """Shape ``request`` into the HTTP call its provider expects.

    ``request.base_url`` must already be resolved; an empty one falls back to
    the registry default here so the builder tables stay usable on their own.
    """
    profile = lookup(request.provider)
    if not request.base_url:
        request = request.with_base_url(profile.default_base_url)
    return BUILDERS[profile.family](request)

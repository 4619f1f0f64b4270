from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType

from instantcoder.core.providers.base import KEY_NOT_REQUIRED, ProviderId, ProviderProfile, WireFamily
from instantcoder.core.runtime.errors import UnsupportedProvider

_PROFILES: tuple[ProviderProfile, ...] = (
    ProviderProfile(
        provider=ProviderId.OPENAI,
        label="OpenAI",
        default_base_url="https://api.openai.com/v1",
        model_hint="gpt-4, gpt-3.5-turbo",
        key_hint="sk-...",
        family=WireFamily.OPENAI_CHAT,
    ),
    ProviderProfile(
        provider=ProviderId.GEMINI,
        label="Google Gemini",
        default_base_url="https://generativelanguage.googleapis.com/v1",
        model_hint="gemini-pro, gemini-pro-vision",
        key_hint="AI...",
        family=WireFamily.GEMINI,
    ),
    ProviderProfile(
        provider=ProviderId.CLAUDE,
        label="Anthropic Claude",
        default_base_url="https://api.anthropic.com/v1",
        model_hint="claude-3-opus, claude-3-sonnet",
        key_hint="sk-ant-...",
        family=WireFamily.CLAUDE,
    ),
    ProviderProfile(
        provider=ProviderId.MISTRAL,
        label="Mistral AI",
        default_base_url="https://api.mistral.ai/v1",
        model_hint="mistral-tiny, mistral-small, mistral-medium",
        key_hint="...",
        family=WireFamily.OPENAI_CHAT,
    ),
    ProviderProfile(
        provider=ProviderId.COHERE,
        label="Cohere",
        default_base_url="https://api.cohere.ai/v1",
        model_hint="command, command-light, command-nightly",
        key_hint="...",
        family=WireFamily.COHERE,
    ),
    ProviderProfile(
        provider=ProviderId.OLLAMA,
        label="Ollama (Local)",
        default_base_url="http://localhost:11434",
        model_hint="codellama, codellama:13b, deepseek-coder",
        key_hint=KEY_NOT_REQUIRED,
        family=WireFamily.OLLAMA,
    ),
    ProviderProfile(
        provider=ProviderId.XAI,
        label="XAI Foundation",
        default_base_url="https://api.xai-foundation.org/v1",
        model_hint="xai-large, xai-medium",
        key_hint="...",
        family=WireFamily.OPENAI_CHAT,
    ),
    ProviderProfile(
        provider=ProviderId.GUIJI,
        label="硅基智能",
        default_base_url="https://api.siliconflow.cn/v1",
        model_hint="guiji-large, guiji-medium",
        key_hint="sk-...",
        family=WireFamily.OPENAI_CHAT,
    ),
)

REGISTRY: Mapping[ProviderId, ProviderProfile] = MappingProxyType({p.provider: p for p in _PROFILES})


def parse_provider(value: object) -> ProviderId:
    if isinstance(value, ProviderId):
        return value
    if not isinstance(value, str):
        raise UnsupportedProvider(value)
    try:
        return ProviderId(value.strip().lower())
    except ValueError as exc:
        raise UnsupportedProvider(value) from exc


def lookup(provider: ProviderId | str) -> ProviderProfile:
    profile = REGISTRY.get(parse_provider(provider))
    if profile is None:
        raise UnsupportedProvider(provider)
    return profile


def known_providers() -> list[ProviderId]:
    return list(REGISTRY.keys())

from __future__ import annotations

from urllib.parse import urlsplit

from instantcoder.core.providers.base import GenerationRequest, ProviderProfile
from instantcoder.core.runtime.errors import InvalidRequest


def _text(value: object) -> str:
    return value.strip() if isinstance(value, str) else ""


def resolve_base_url(request: GenerationRequest, profile: ProviderProfile) -> str:
    return _text(request.base_url) or profile.default_base_url


def validate_request(request: GenerationRequest, profile: ProviderProfile) -> GenerationRequest:
    """Check a request before any network call and return it with its base URL resolved."""
    provider = profile.provider.value

    # Requests can be built from untyped input; None is treated as empty.
    for name in ("model", "prompt", "api_key", "base_url"):
        value = getattr(request, name)
        if value is not None and not isinstance(value, str):
            raise InvalidRequest(
                f"{name} must be a string, got {type(value).__name__}", provider=provider, field=name
            )

    if not _text(request.model):
        raise InvalidRequest("model is required", provider=provider, field="model")
    if not _text(request.prompt):
        raise InvalidRequest("prompt is required", provider=provider, field="prompt")
    if profile.key_required and not _text(request.api_key):
        raise InvalidRequest(f"{profile.label} requires an API key", provider=provider, field="api_key")

    base_url = resolve_base_url(request, profile)
    parts = urlsplit(base_url)
    if parts.scheme not in {"http", "https"} or not parts.netloc:
        raise InvalidRequest(f"base_url is not an http(s) URL: {base_url}", provider=provider, field="base_url")

    return request.with_base_url(base_url)

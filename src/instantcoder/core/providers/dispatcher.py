"""Single entry point for text generation across providers.

``Dispatcher.generate`` resolves the provider profile, validates the request,
shapes it with the wire family's builder, performs exactly one exchange through
the transport and hands the reply to the matching extractor. Every failure is
returned as a ``GenerationResult`` carrying an ``ErrorInfo``; nothing is retried.
"""

from __future__ import annotations

import asyncio
from urllib.parse import urlsplit, urlunsplit

from instantcoder.core.providers.base import (
    GenerationRequest,
    GenerationResult,
    HttpRequestSpec,
    ProviderId,
    ProviderProfile,
    TransportReply,
)
from instantcoder.core.providers.builders import BUILDERS
from instantcoder.core.providers.extractors import EXTRACTORS, ensure_success
from instantcoder.core.providers.registry import lookup
from instantcoder.core.providers.transport import HttpxTransport, Transport
from instantcoder.core.providers.validation import validate_request
from instantcoder.core.runtime.cancellation import race_cancel
from instantcoder.core.runtime.errors import (
    Cancelled,
    GenerationError,
    TransportError,
    compact_error_summary,
)
from instantcoder.core.telemetry.logging import get_logger


def _redact_url(url: str) -> str:
    parts = urlsplit(url)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, "", ""))


class Dispatcher:
    def __init__(self, transport: Transport) -> None:
        self.transport = transport
        self.logger = get_logger("instantcoder.dispatcher")

    async def generate(
        self,
        request: GenerationRequest,
        *,
        cancel: asyncio.Event | None = None,
        timeout: float | None = None,
    ) -> GenerationResult:
        provider = getattr(request.provider, "value", str(request.provider))
        try:
            text = await self._generate(request, cancel=cancel, timeout=timeout)
        except GenerationError as exc:
            self.logger.warning(
                "generation_failed",
                provider=provider,
                kind=exc.kind,
                http_status=exc.info().http_status,
                error=compact_error_summary(exc),
            )
            return GenerationResult.failed(provider, exc)
        self.logger.info("generation_completed", provider=provider, chars=len(text))
        return GenerationResult.succeeded(provider, text)

    async def _generate(
        self,
        request: GenerationRequest,
        *,
        cancel: asyncio.Event | None,
        timeout: float | None,
    ) -> str:
        if cancel is not None and cancel.is_set():
            raise Cancelled(provider=getattr(request.provider, "value", str(request.provider)))

        profile = lookup(request.provider)
        provider = profile.provider.value
        resolved = validate_request(request, profile)
        spec = BUILDERS[profile.family](resolved)

        self.logger.info(
            "generation_dispatched",
            provider=provider,
            family=profile.family.value,
            model=resolved.model,
            url=_redact_url(spec.url),
        )

        reply = await race_cancel(self._send(profile, spec, timeout), cancel, provider=provider)

        ensure_success(profile.provider, reply.status, reply.reason)
        return EXTRACTORS[profile.family](provider, reply.body)

    async def _send(self, profile: ProviderProfile, spec: HttpRequestSpec, timeout: float | None) -> TransportReply:
        try:
            return await self.transport.send(spec.method, spec.url, dict(spec.headers), spec.body, timeout=timeout)
        except asyncio.CancelledError:
            raise
        except GenerationError:
            raise
        except Exception as exc:  # noqa: BLE001
            raise TransportError(
                f"{profile.label} API error: {compact_error_summary(exc)}",
                provider=profile.provider.value,
                reason=str(exc),
            ) from exc


async def generate(
    provider: ProviderId | str,
    model: str,
    api_key: str,
    prompt: str,
    base_url: str | None = None,
    *,
    transport: Transport | None = None,
    cancel: asyncio.Event | None = None,
    timeout: float | None = None,
) -> GenerationResult:
    """Functional form of ``Dispatcher.generate`` for one-off calls.

    Without ``transport`` a short-lived ``HttpxTransport`` is opened and closed
    around the call.
    """
    try:
        provider_id = lookup(provider).provider
    except GenerationError as exc:
        return GenerationResult.failed(str(provider), exc)

    request = GenerationRequest(
        provider=provider_id,
        model=model,
        prompt=prompt,
        api_key=api_key or "",
        base_url=base_url or "",
    )
    if transport is not None:
        return await Dispatcher(transport).generate(request, cancel=cancel, timeout=timeout)
    async with HttpxTransport() as owned:
        return await Dispatcher(owned).generate(request, cancel=cancel, timeout=timeout)

from __future__ import annotations

import asyncio
import os
import signal
import sys
from pathlib import Path

from instantcoder.cli import base_parser
from instantcoder.core.config.loader import load_app_config
from instantcoder.core.config.schema import AppConfig
from instantcoder.core.providers.base import GenerationRequest, GenerationResult, ProviderProfile
from instantcoder.core.providers.dispatcher import Dispatcher
from instantcoder.core.providers.registry import REGISTRY, lookup
from instantcoder.core.providers.transport import HttpxTransport
from instantcoder.core.runtime.errors import GenerationError
from instantcoder.core.telemetry.logging import configure_logging

MISSING_FIELDS_MESSAGE = "Please fill in all required fields"
EMPTY_RESPONSE_MESSAGE = "No response from the AI"


def _read_prompt(prompt: str | None, prompt_file: str | None) -> str:
    if prompt:
        return prompt
    if prompt_file == "-":
        return sys.stdin.read()
    if prompt_file:
        return Path(prompt_file).read_text(encoding="utf-8")
    return ""


def _resolve_api_key(cli_key: str | None, profile: ProviderProfile, cfg: AppConfig) -> str:
    if cli_key:
        return cli_key
    settings = cfg.provider_settings(profile.provider.value)
    if settings.api_key_env and os.getenv(settings.api_key_env):
        return os.getenv(settings.api_key_env, "")
    return os.getenv(f"INSTANTCODER_{profile.provider.value.upper()}_API_KEY", "")


def render_provider_list() -> str:
    lines = []
    for profile in REGISTRY.values():
        lines.append(
            f"- {profile.provider.value}: label={profile.label} base_url={profile.default_base_url} "
            f"models=[{profile.model_hint}] key={profile.key_hint}"
        )
    return "\n".join(lines)


async def _run_generation(
    request: GenerationRequest,
    *,
    timeout_seconds: float,
    call_timeout: float | None,
) -> GenerationResult:
    cancel = asyncio.Event()
    loop = asyncio.get_running_loop()
    installed = False
    try:
        loop.add_signal_handler(signal.SIGINT, cancel.set)
        installed = True
    except (NotImplementedError, RuntimeError):
        pass
    try:
        async with HttpxTransport(timeout_seconds=timeout_seconds) as transport:
            return await Dispatcher(transport).generate(request, cancel=cancel, timeout=call_timeout)
    finally:
        if installed:
            loop.remove_signal_handler(signal.SIGINT)


def main() -> int:
    parser = base_parser("instantcoder-generate", "Generate text from a prompt with a chosen LLM provider")
    parser.add_argument("--config", default=None, help="Instance config file path")
    parser.add_argument("--defaults", default="config/defaults.yaml", help="Defaults config file path")
    parser.add_argument("--list-providers", action="store_true")
    parser.add_argument("--provider", default=None, help="Provider id (see --list-providers)")
    parser.add_argument("--model", default=None)
    parser.add_argument("--prompt", default=None)
    parser.add_argument("--prompt-file", default=None, help="Read the prompt from a file, '-' for stdin")
    parser.add_argument("--api-key", default=None)
    parser.add_argument("--base-url", default=None)
    parser.add_argument("--timeout", type=float, default=None, help="Per-call transport timeout in seconds")
    args = parser.parse_args()

    if args.list_providers:
        print("providers:")
        print(render_provider_list())
        return 0

    try:
        cfg = load_app_config(defaults_path=args.defaults, instance_path=args.config)
    except ValueError as exc:
        print(f"config-invalid error={exc}", file=sys.stderr)
        return 1

    configure_logging(cfg.telemetry.log_level, cfg.telemetry.json_logs, to_stderr=True)

    try:
        profile = lookup(args.provider or cfg.default_provider)
    except GenerationError as exc:
        print(f"Error generating code: {exc.message}", file=sys.stderr)
        return 2

    settings = cfg.provider_settings(profile.provider.value)
    model = args.model or settings.model or ""
    try:
        prompt = _read_prompt(args.prompt, args.prompt_file)
    except OSError as exc:
        print(f"Error generating code: cannot read prompt file: {exc}", file=sys.stderr)
        return 2
    api_key = _resolve_api_key(args.api_key, profile, cfg)

    if not prompt.strip() or not model.strip() or (profile.key_required and not api_key):
        print(MISSING_FIELDS_MESSAGE, file=sys.stderr)
        return 2

    request = GenerationRequest(
        provider=profile.provider,
        model=model,
        prompt=prompt,
        api_key=api_key,
        base_url=args.base_url or settings.base_url or "",
    )
    result = asyncio.run(
        _run_generation(request, timeout_seconds=cfg.transport.timeout_seconds, call_timeout=args.timeout)
    )

    if not result.ok:
        assert result.error is not None
        print(f"Error generating code: {result.error.message}", file=sys.stderr)
        return 1

    print(result.text or EMPTY_RESPONSE_MESSAGE)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

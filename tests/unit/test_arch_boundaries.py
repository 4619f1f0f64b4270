from __future__ import annotations

from pathlib import Path


ROOT = Path(__file__).resolve().parents[2]
PROVIDERS = ROOT / "src/instantcoder/core/providers"


def test_builders_and_extractors_do_no_io():
    disallowed: list[str] = []
    for name in ("builders.py", "extractors.py", "registry.py", "validation.py"):
        content = (PROVIDERS / name).read_text(encoding="utf-8")
        if "httpx" in content or "requests." in content or "asyncio" in content:
            disallowed.append(name)
    assert disallowed == [], f"Pure provider modules imported I/O: {disallowed}"


def test_only_transport_module_uses_http_client():
    users = [p.name for p in PROVIDERS.rglob("*.py") if "import httpx" in p.read_text(encoding="utf-8")]
    assert users == ["transport.py"]


def test_dispatcher_has_no_per_provider_branching():
    content = (PROVIDERS / "dispatcher.py").read_text(encoding="utf-8")
    for provider in ("openai", "gemini", "claude", "cohere", "ollama"):
        assert f'"{provider}"' not in content

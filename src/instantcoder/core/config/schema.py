from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from instantcoder.core.providers.registry import parse_provider
from instantcoder.core.runtime.errors import UnsupportedProvider


class InstanceConfig(BaseModel):
    name: str = "instantcoder"


class TelemetryConfig(BaseModel):
    log_level: str = "INFO"
    json_logs: bool = True


class TransportConfig(BaseModel):
    timeout_seconds: float = Field(default=60.0, gt=0)


class ProviderSettings(BaseModel):
    base_url: str | None = None
    model: str | None = None
    api_key_env: str | None = None


class AppConfig(BaseModel):
    instance: InstanceConfig = Field(default_factory=InstanceConfig)
    environment: str = "dev"
    default_provider: str = "openai"
    telemetry: TelemetryConfig = Field(default_factory=TelemetryConfig)
    transport: TransportConfig = Field(default_factory=TransportConfig)
    providers: dict[str, ProviderSettings] = Field(default_factory=dict)

    @field_validator("default_provider")
    @classmethod
    def _known_default(cls, value: str) -> str:
        try:
            return parse_provider(value).value
        except UnsupportedProvider as exc:
            raise ValueError(str(exc)) from exc

    @field_validator("providers")
    @classmethod
    def _known_providers(cls, value: dict[str, ProviderSettings]) -> dict[str, ProviderSettings]:
        out: dict[str, ProviderSettings] = {}
        for key, settings in value.items():
            try:
                out[parse_provider(key).value] = settings
            except UnsupportedProvider as exc:
                raise ValueError(str(exc)) from exc
        return out

    def provider_settings(self, provider: str) -> ProviderSettings:
        return self.providers.get(parse_provider(provider).value, ProviderSettings())

"""Process configuration.

Values come from environment variables, then a ``.env`` file in the working
directory, then an optional YAML file named by ``VOICECHAT_CONFIG``. Variable
names of the original ``backend/.env`` (GITHUB_TOKEN, GITHUB_MODEL,
GITHUB_MODELS_ENDPOINT) are accepted as fallbacks.
"""
from __future__ import annotations
import os
from typing import Literal

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

DEFAULT_ORIGINS = "http://localhost:5173,http://localhost:5174,http://localhost:3000"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        extra="ignore",
        frozen=True,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    # Server
    host: str = "0.0.0.0"
    port: int = Field(3000, ge=1, le=65535)
    log_level: str = "INFO"

    # Upstream
    provider: Literal["azure", "openai"] = Field("azure", validation_alias="UPSTREAM_PROVIDER")
    endpoint: str = Field(
        "https://models.github.ai/inference",
        validation_alias=AliasChoices("UPSTREAM_ENDPOINT", "GITHUB_MODELS_ENDPOINT"),
    )
    api_key: str = Field("", validation_alias=AliasChoices("UPSTREAM_API_KEY", "GITHUB_TOKEN"))
    api_version: str = Field("", validation_alias="UPSTREAM_API_VERSION")
    model: str = Field("openai/gpt-4.1", validation_alias=AliasChoices("MODEL_ID", "GITHUB_MODEL"))
    temperature: float = Field(1.0, ge=0.0, le=2.0)
    top_p: float = Field(1.0, gt=0.0, le=1.0)
    system_prompt_path: str = ""

    # Resilience
    request_timeout_ms: int = Field(15000, ge=1)
    retry_max_wait_ms: int = Field(5000, ge=1)
    retry_attempts: int = Field(3, ge=1)

    # Inbound rate limit
    rpm_limit: int = Field(20, ge=1)
    rate_window_s: int = Field(60, ge=1)

    # CORS, comma-separated
    allowed_origins: str = DEFAULT_ORIGINS

    @field_validator("provider", mode="before")
    @classmethod
    def _lower_provider(cls, v: object) -> object:
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("endpoint")
    @classmethod
    def _strip_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, v: str) -> str:
        return v.upper()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        sources = [init_settings, env_settings, dotenv_settings]
        yaml_path = os.getenv("VOICECHAT_CONFIG", "").strip()
        if yaml_path:
            sources.append(YamlConfigSettingsSource(settings_cls, yaml_file=yaml_path))
        return tuple(sources)

    @property
    def configured(self) -> bool:
        """True when an upstream credential is present."""
        return bool(self.api_key)

    @property
    def origins(self) -> list[str]:
        return [o.strip() for o in self.allowed_origins.split(",") if o.strip()]

    @property
    def request_timeout(self) -> float:
        return self.request_timeout_ms / 1000.0

    @property
    def retry_max_wait(self) -> float:
        return self.retry_max_wait_ms / 1000.0

"""Engine settings and configuration.

Defaults for every ChatBuilder tunable, loaded from HELM_* environment
variables (or a .env file) with pydantic-settings. Fallback backends are
objects, so they are passed to Helm directly rather than configured here.
"""

import logging

import pydantic_settings
from pydantic import Field, field_validator


class HelmSettings(pydantic_settings.BaseSettings):
    model_config = pydantic_settings.SettingsConfigDict(
        env_prefix="HELM_",
        env_file=".env",
        extra="ignore",
    )

    model: str | None = Field(None, description="Default model identifier")
    temperature: float | None = Field(None, description="Default sampling temperature")
    retries: int = Field(0, ge=0, description="Retries per backend for transient failures")
    repair: int = Field(0, ge=0, description="Repair re-queries for invalid structured output")
    max_steps: int | None = Field(None, ge=0, description="Tool loop budget override")
    retry_base_delay: float = Field(0.2, ge=0, description="First backoff delay in seconds")
    retry_max_delay: float = Field(5.0, ge=0, description="Backoff delay cap in seconds")
    log_level: str = Field("INFO")
    log_json: bool = Field(True, description="True=JSON logs, False=console logs")

    @field_validator("model")
    @classmethod
    def _validate_model(cls, v):
        if v is not None and not v.strip():
            return None
        return v

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, v):
        v_upper = v.upper()
        if v_upper not in logging._nameToLevel:
            raise ValueError(f'invalid value "{v}"')
        return v_upper

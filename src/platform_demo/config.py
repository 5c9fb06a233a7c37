"""Demo configuration loader with Pydantic v2 validation.

Loads and validates an optional ``platform-demo.yaml`` file into a typed
:class:`DemoConfig`. Unknown keys are allowed so older tools can read
newer files. Environment variables override the file:

- ``BOOTSTRAP_TOKEN``: operator token used for provisioning
- ``PLATFORM_DEMO_API``: API endpoint

Example
-------
>>> loader = ConfigLoader()
>>> config = loader.load_string("api: http://platform:9999")
>>> config.api
'http://platform:9999'
"""
from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

TOKEN_ENV_VAR = "BOOTSTRAP_TOKEN"
API_ENV_VAR = "PLATFORM_DEMO_API"
DEFAULT_CONFIG_PATH = Path("platform-demo.yaml")


class ConfigError(ValueError):
    """Raised when a config file cannot be read or fails validation."""


def _check_duration(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("Duration must not be empty.")
    return value


class WriteConfig(BaseModel):
    """Settings for the synthetic write loop."""

    model_config = {"extra": "allow"}

    interval_seconds: float = Field(default=0.1, ge=0)
    measurement: str = Field(default="counter", min_length=1)
    field: str = Field(default="n", min_length=1)


class BucketConfig(BaseModel):
    """Retention of the demo buckets, in seconds (0 keeps data forever)."""

    model_config = {"extra": "allow"}

    input_retention_seconds: int = Field(default=3600, ge=0)
    output_retention_seconds: int = Field(default=86400, ge=0)


class RangeConfig(BaseModel):
    """Flux range starts used by the read and downsample commands."""

    model_config = {"extra": "allow"}

    read_in: str = Field(default="-5s")
    read_out: str = Field(default="-15s")
    downsample: str = Field(default="-5s")

    @field_validator("read_in", "read_out", "downsample")
    @classmethod
    def validate_duration(cls, value: str) -> str:
        return _check_duration(value)


class DemoConfig(BaseModel):
    """Top-level demo configuration schema.

    All sections are optional and fall back to the values the demo was
    written against.
    """

    model_config = {"extra": "allow"}

    api: str = Field(default="http://localhost:9999")
    token: str | None = Field(default=None)
    timeout_seconds: float = Field(default=10.0, gt=0)
    user_agent: str = Field(default="platform-demo")
    task_every: str = Field(default="5s")
    write: WriteConfig = Field(default_factory=WriteConfig)
    buckets: BucketConfig = Field(default_factory=BucketConfig)
    ranges: RangeConfig = Field(default_factory=RangeConfig)

    @field_validator("api")
    @classmethod
    def validate_api(cls, value: str) -> str:
        value = value.strip()
        if not value.startswith(("http://", "https://")):
            raise ValueError(f"api must be an http(s) URL; got {value!r}.")
        return value.rstrip("/")

    @field_validator("task_every")
    @classmethod
    def validate_task_every(cls, value: str) -> str:
        return _check_duration(value)


class ConfigLoader:
    """Loads and validates demo YAML configuration."""

    def load(self, config_path: Path) -> DemoConfig:
        """Load and validate a YAML config file.

        Raises
        ------
        FileNotFoundError
            When the config file does not exist.
        ConfigError
            When the YAML cannot be parsed or fails validation.
        """
        if not config_path.exists():
            raise FileNotFoundError(f"Demo config not found: {config_path}")

        with config_path.open("r", encoding="utf-8") as fh:
            return self.load_string(fh.read(), source=str(config_path))

    def load_string(self, yaml_content: str, source: str = "<string>") -> DemoConfig:
        """Load and validate a YAML string directly."""
        try:
            raw = yaml.safe_load(yaml_content) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"[{source}] Failed to parse YAML: {exc}") from exc
        if not isinstance(raw, dict):
            raise ConfigError(f"[{source}] Config must be a YAML mapping.")
        try:
            return DemoConfig.model_validate(raw)
        except ValidationError as exc:
            raise ConfigError(f"[{source}] {exc}") from exc

    def defaults(self) -> DemoConfig:
        """Return a configuration with all defaults applied."""
        return DemoConfig()

    def apply_env(self, config: DemoConfig, environ: Mapping[str, str]) -> DemoConfig:
        """Return a copy of *config* with environment overrides applied."""
        updates: dict[str, object] = {}
        token = environ.get(TOKEN_ENV_VAR)
        if token:
            updates["token"] = token
        api = environ.get(API_ENV_VAR)
        if api:
            updates["api"] = api
        if not updates:
            return config
        try:
            return DemoConfig.model_validate({**config.model_dump(), **updates})
        except ValidationError as exc:
            raise ConfigError(f"[environment] {exc}") from exc

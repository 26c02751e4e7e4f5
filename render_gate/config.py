"""render-gate — Configuration.

Configuration is loaded from (in order of increasing priority):
    1. Built-in defaults (this file)
    2. User config:     ~/.render-gate/config.yaml
    3. Explicit file passed to ``Settings.load()``
    4. Environment variables prefixed with RENDER_GATE_
       (nested with ``__``, e.g. ``RENDER_GATE_LIMITER__MAX_PARALLEL=8``)
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from render_gate.exceptions import ConfigurationError


class LimiterConfig(BaseModel):
    """Render admission limits."""

    max_parallel: int = Field(
        default=4,
        ge=1,
        le=64,
        description="Maximum number of renders allowed to run at once.",
    )


class LoggingConfig(BaseModel):
    level: Literal["debug", "info", "warning", "error", "critical"] = "info"
    format: Literal["json", "console"] = "console"
    file: Path | None = None


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="RENDER_GATE_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    limiter: LimiterConfig = Field(default_factory=LimiterConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Environment beats values read from YAML (passed as init kwargs).
        return env_settings, init_settings, dotenv_settings, file_secret_settings

    @classmethod
    def load(cls, config_file: Path | None = None) -> "Settings":
        """Load settings from YAML files, then environment variables."""
        data: dict[str, object] = {}

        candidates = [Path.home() / ".render-gate" / "config.yaml"]
        if config_file:
            candidates.append(config_file)

        for path in candidates:
            if path.exists():
                data.update(_read_yaml(path))

        return cls(**data)


def _read_yaml(path: Path) -> dict[str, object]:
    try:
        with path.open() as f:
            loaded = yaml.safe_load(f)
    except yaml.YAMLError as exc:
        raise ConfigurationError(path, str(exc)) from exc
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigurationError(path, "top level must be a mapping")
    return loaded


_settings: Settings | None = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings


def override_settings(settings: Settings) -> None:
    """Replace the module-level singleton. Used in tests."""
    global _settings
    _settings = settings

"""Configuration models for the Sweet Shop scenario harness."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_BASE_URL = "https://sweetshop.netlify.app/"


class BrowserConfig(BaseModel):
    """Settings for the browser session."""

    engine: str = Field(default="chromium", description="chromium, firefox or webkit")
    channel: Optional[str] = Field(
        default=None,
        description="Use an installed branded browser (e.g. 'chrome') instead of a managed build.",
    )
    headless: bool = True
    viewport_width: int = 1366
    viewport_height: int = 720
    default_timeout: float = Field(default=10.0, ge=0, description="Wait timeout in seconds.")
    poll_interval: float = Field(default=0.25, gt=0, description="Delay between readiness checks.")
    install_missing: bool = Field(
        default=True,
        description="Install the managed browser build when it is missing.",
    )


class SiteConfig(BaseModel):
    """Target site settings."""

    base_url: str = DEFAULT_BASE_URL


class ReportConfig(BaseModel):
    """Settings for run artifacts."""

    artifacts_dir: Optional[Path] = None
    screenshots_on_failure: bool = True
    json_path: Optional[Path] = None


class NotificationConfig(BaseModel):
    """Notification channel settings."""

    channel: str = Field(default="console", description="Comma-separated: console, log")


class HarnessConfig(BaseSettings):
    """Top-level configuration for a harness run."""

    model_config = SettingsConfigDict(
        env_prefix="SWEETSHOP_E2E_",
        env_file=(".env",),
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    browser: BrowserConfig = Field(default_factory=BrowserConfig)
    site: SiteConfig = Field(default_factory=SiteConfig)
    report: ReportConfig = Field(default_factory=ReportConfig)
    notifications: NotificationConfig = Field(default_factory=NotificationConfig)
    scenarios_path: Optional[Path] = Field(
        default=None,
        description="YAML file with scenario definitions; the built-in catalog when unset.",
    )
    selected: list[str] = Field(
        default_factory=list,
        description="Run only these scenarios (and what they depend on).",
    )


def load_config(
    path: Path | None = None,
    *,
    env_file: Path | None = None,
    **overrides: object,
) -> HarnessConfig:
    """Load configuration from an optional file and overrides."""

    data: dict[str, Any] = {}
    if path:
        import yaml

        data = yaml.safe_load(path.read_text()) or {}
    if overrides:
        _deep_update(data, overrides)
    settings_kwargs: dict[str, object] = {}
    if env_file is not None:
        settings_kwargs["_env_file"] = env_file
    config = HarnessConfig(**data, **settings_kwargs)
    if not data:
        return config

    merged = config.model_dump(mode="python")
    _deep_update(merged, data)
    return HarnessConfig.model_validate(merged)


def _deep_update(target: dict[str, Any], updates: Mapping[str, Any]) -> None:
    """Recursively merge ``updates`` into ``target`` in-place."""

    for key, value in updates.items():
        if (
            isinstance(value, Mapping)
            and isinstance(existing := target.get(key), Mapping)
        ):
            nested: dict[str, Any]
            if isinstance(existing, dict):
                nested = existing
            else:
                nested = dict(existing)
            _deep_update(nested, value)
            target[key] = nested
        else:
            target[key] = value

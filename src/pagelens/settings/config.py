"""Configuration loader for PageLens using Pydantic settings.

Config precedence (highest wins):
  1. CLI flags (where applicable)
  2. Environment variables (PAGELENS_* with __ for nesting)
  3. settings.local.toml
  4. settings.<env>.toml
  5. settings.default.toml
"""

from __future__ import annotations

import os
import tomllib
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# ---------------------------------------------------------------------------
# Path helpers
# ---------------------------------------------------------------------------

_THIS_DIR = Path(__file__).resolve().parent
PROJECT_ROOT = Path(os.getenv("PAGELENS_PROJECT_ROOT", _THIS_DIR.parents[2]))
CONFIG_DIR = PROJECT_ROOT / "config"

ENV_VAR_NAME = "PAGELENS_ENV"
DEFAULT_ENV = "local"

_DEFAULT_LAUNCH_ARGS: list[str] = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
    "--disable-software-rasterizer",
    "--disable-blink-features=AutomationControlled",
]


def _resolve_env() -> str:
    return (os.getenv(ENV_VAR_NAME) or DEFAULT_ENV).strip()


def _load_toml(path: Path) -> dict[str, Any]:
    if path.is_file():
        with open(path, "rb") as f:
            return tomllib.load(f)
    return {}


# ---------------------------------------------------------------------------
# Section models
# ---------------------------------------------------------------------------


class BrowserSettings(BaseSettings):
    """Playwright browser process and navigation settings."""

    model_config = SettingsConfigDict(env_prefix="PAGELENS_BROWSER__")

    headless: bool = True
    launch_args: list[str] = Field(default_factory=lambda: list(_DEFAULT_LAUNCH_ARGS))
    navigation_timeout_ms: int = 30_000
    min_timeout_ms: int = 3_000
    max_timeout_ms: int = 120_000
    # Randomized pause between opening a context and running the work
    pause_min_ms: int = 500
    pause_max_ms: int = 1_500


class StealthSettings(BaseSettings):
    """Initial stealth configuration and the fixed context fingerprint triple."""

    model_config = SettingsConfigDict(env_prefix="PAGELENS_STEALTH__")

    proxy: str = ""
    user_agent: str = ""
    rotate_user_agent: bool = False
    viewport_width: int = 0
    viewport_height: int = 0
    locale: str = "en-US"
    timezone_id: str = "America/Los_Angeles"
    color_scheme: str = "light"


class APISettings(BaseSettings):
    """API server configuration."""

    model_config = SettingsConfigDict(env_prefix="PAGELENS_API__")

    host: str = "0.0.0.0"
    port: int = 8888
    cors_origins: list[str] = ["*"]


# ---------------------------------------------------------------------------
# Root settings
# ---------------------------------------------------------------------------


class Settings(BaseSettings):
    """Root PageLens settings with nested sections."""

    model_config = SettingsConfigDict(
        env_prefix="PAGELENS_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    env: str = Field(default_factory=_resolve_env)
    project_root: Path = Field(default=PROJECT_ROOT)
    debug: bool = False
    log_level: str = "INFO"

    browser: BrowserSettings = Field(default_factory=BrowserSettings)
    stealth: StealthSettings = Field(default_factory=StealthSettings)
    api: APISettings = Field(default_factory=APISettings)

    @model_validator(mode="before")
    @classmethod
    def _merge_toml_files(cls, values: dict[str, Any]) -> dict[str, Any]:
        """Layer TOML config files before env var overrides."""
        defaults = _load_toml(CONFIG_DIR / "settings.default.toml")
        env_name = (values.get("env") or os.getenv(ENV_VAR_NAME) or DEFAULT_ENV).strip()
        env_overrides = _load_toml(CONFIG_DIR / f"settings.{env_name}.toml")
        local_overrides = _load_toml(CONFIG_DIR / "settings.local.toml")

        # Merge: defaults < env-specific < local < explicit values
        merged: dict[str, Any] = {}
        for layer in (defaults, env_overrides, local_overrides, values):
            for key, val in layer.items():
                if isinstance(val, dict) and isinstance(merged.get(key), dict):
                    merged[key] = {**merged[key], **val}
                else:
                    merged[key] = val
        return merged

    @model_validator(mode="after")
    def _check_ranges(self) -> "Settings":
        """Keep the timeout and pause bounds ordered."""
        b = self.browser
        if b.min_timeout_ms > b.max_timeout_ms:
            raise ValueError("browser.min_timeout_ms must not exceed browser.max_timeout_ms")
        if b.pause_min_ms > b.pause_max_ms:
            raise ValueError("browser.pause_min_ms must not exceed browser.pause_max_ms")
        return self


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the singleton settings instance (cached)."""
    return Settings()

"""
Centralized configuration for the Product Compare backend.

All environment variables and settings should be defined here
to avoid duplication across modules. Workbook layout and comparison
defaults live in compare_config.json; the variables below override
the settings part of it.
"""
import os
from dataclasses import replace
from functools import lru_cache
from typing import Optional

from catalog.product_compare.config import DEFAULT_CONFIG_PATH, Config, load_config


def _flag(name: str) -> bool:
    return os.environ.get(name, "0").strip().lower() in ("1", "true", "yes")


def _env_number(name: str, cast):
    """Parsed env value, None when the variable is unset or blank."""
    value = os.environ.get(name, "").strip()
    return cast(value) if value else None


class Settings:
    """Application settings loaded from environment variables."""

    # CORS - comma-separated list of allowed origins
    ALLOWED_ORIGINS: list = os.environ.get(
        "ALLOWED_ORIGINS",
        "http://localhost:3000,http://localhost:5173,http://127.0.0.1:3000"
    ).split(",")

    # Layout/settings file
    COMPARE_CONFIG_PATH: str = os.environ.get("COMPARE_CONFIG_PATH", str(DEFAULT_CONFIG_PATH))

    # Retrieval; unset values keep what compare_config.json says
    SCRAPE_CONCURRENCY: Optional[int] = _env_number("SCRAPE_CONCURRENCY", int)
    NAV_TIMEOUT_MS: Optional[int] = _env_number("NAV_TIMEOUT_MS", int)
    DISABLE_PLAYWRIGHT: bool = _flag("DISABLE_PLAYWRIGHT")

    # Weight comparison: 0 = strict
    WEIGHT_TOL_PCT: Optional[float] = _env_number("WEIGHT_TOL_PCT", float)

    # Uploads
    MAX_UPLOAD_MB: int = int(os.environ.get("MAX_UPLOAD_MB", "50"))
    OUTPUT_FILENAME: str = "DB_Produktvergleich_verarbeitet.xlsx"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def load_compare_config(app_settings: Settings | None = None) -> Config:
    """
    Load compare_config.json and apply the environment overrides that are set.

    Args:
        app_settings: Settings to apply (default: cached settings)

    Returns:
        Config for the web service
    """
    app_settings = app_settings or get_settings()
    config = load_config(app_settings.COMPARE_CONFIG_PATH)

    overrides = {
        "scrape_concurrency": app_settings.SCRAPE_CONCURRENCY,
        "nav_timeout_ms": app_settings.NAV_TIMEOUT_MS,
        "weight_tolerance_percent": app_settings.WEIGHT_TOL_PCT,
    }
    overrides = {key: value for key, value in overrides.items() if value is not None}
    if app_settings.DISABLE_PLAYWRIGHT:
        overrides["disable_browser"] = True

    if overrides:
        config.settings = replace(config.settings, **overrides)
    return config


# Singleton instance for easy import
settings = get_settings()

"""
Unit tests for the backend configuration — env overrides on top of compare_config.json.

Tests cover:
- _env_number (unset / blank / set)
- load_compare_config keeps file settings when no override is set
- load_compare_config applies the overrides that are set
"""
import json

import pytest

from backend.core.config import Settings, _env_number, load_compare_config
from catalog.product_compare.config import DEFAULT_CONFIG_PATH


@pytest.fixture
def config_path(tmp_path):
    data = json.loads(DEFAULT_CONFIG_PATH.read_text(encoding="utf-8"))
    data["settings"].update({
        "weight_tolerance_percent": 5,
        "scrape_concurrency": 9,
        "nav_timeout_ms": 30000,
    })
    path = tmp_path / "compare_config.json"
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


def settings_for(config_path, **values):
    """Settings as if only the given variables were set in the environment."""
    app_settings = Settings()
    app_settings.COMPARE_CONFIG_PATH = str(config_path)
    app_settings.SCRAPE_CONCURRENCY = None
    app_settings.NAV_TIMEOUT_MS = None
    app_settings.WEIGHT_TOL_PCT = None
    app_settings.DISABLE_PLAYWRIGHT = False
    for key, value in values.items():
        setattr(app_settings, key, value)
    return app_settings


# ============================================================================
# _env_number
# ============================================================================

class TestEnvNumber:
    def test_unset(self, monkeypatch):
        monkeypatch.delenv("SCRAPE_CONCURRENCY", raising=False)
        assert _env_number("SCRAPE_CONCURRENCY", int) is None

    def test_blank(self, monkeypatch):
        monkeypatch.setenv("WEIGHT_TOL_PCT", "  ")
        assert _env_number("WEIGHT_TOL_PCT", float) is None

    def test_set(self, monkeypatch):
        monkeypatch.setenv("WEIGHT_TOL_PCT", "2.5")
        assert _env_number("WEIGHT_TOL_PCT", float) == 2.5

    def test_zero_is_a_value(self, monkeypatch):
        monkeypatch.setenv("WEIGHT_TOL_PCT", "0")
        assert _env_number("WEIGHT_TOL_PCT", float) == 0.0


# ============================================================================
# load_compare_config
# ============================================================================

class TestLoadCompareConfig:
    def test_file_settings_kept_without_env(self, config_path):
        config = load_compare_config(settings_for(config_path))

        assert config.settings.weight_tolerance_percent == 5
        assert config.settings.scrape_concurrency == 9
        assert config.settings.nav_timeout_ms == 30000
        assert config.settings.disable_browser is False

    def test_env_overrides_applied(self, config_path):
        config = load_compare_config(settings_for(
            config_path,
            SCRAPE_CONCURRENCY=2,
            WEIGHT_TOL_PCT=0.0,
            DISABLE_PLAYWRIGHT=True,
        ))

        assert config.settings.scrape_concurrency == 2
        assert config.settings.weight_tolerance_percent == 0.0
        assert config.settings.disable_browser is True
        # Not overridden
        assert config.settings.nav_timeout_ms == 30000

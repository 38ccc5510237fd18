"""
Configuration for Product Compare.

Handles the DB workbook layout and comparison settings.
Config is declarative JSON - edit the file, not the code.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from openpyxl.utils import column_index_from_string

from .models import FieldName, IDENTIFIER_KEY, WEIGHT_UNIT_KEY

DEFAULT_CONFIG_PATH = Path(__file__).parent / "compare_config.json"


@dataclass
class SheetLayout:
    """
    Where the DB export keeps its data.

    columns maps a DB key (FieldName value, WEIGHT_UNIT_KEY or
    IDENTIFIER_KEY) to a column letter.
    """
    header_row: int = 3
    first_data_row: int = 4
    columns: dict[str, str] = field(default_factory=dict)

    def column_index(self, key: str) -> Optional[int]:
        """1-indexed column for a DB key, or None if the layout lacks it."""
        letter = self.columns.get(key)
        if not letter:
            return None
        return column_index_from_string(letter)

    @property
    def tracked_columns(self) -> dict[FieldName, int]:
        """Tracked fields that have a column, in field declaration order."""
        result = {}
        for name in FieldName:
            idx = self.column_index(name.value)
            if idx is not None:
                result[name] = idx
        return result


@dataclass
class CompareSettings:
    """Settings for retrieval and comparison."""
    identifier_prefix: str = "A2V"
    weight_tolerance_percent: float = 0.0
    scrape_concurrency: int = 4
    request_timeout_seconds: int = 15
    request_retries: int = 3
    nav_timeout_ms: int = 18000
    disable_browser: bool = False
    product_url: str = "https://www.mymobase.com/de/p/{identifier}"


@dataclass
class Config:
    """Full configuration for product compare."""
    layout: SheetLayout = field(default_factory=SheetLayout)
    settings: CompareSettings = field(default_factory=CompareSettings)


def load_config(config_path: str | Path = DEFAULT_CONFIG_PATH) -> Config:
    """
    Load configuration from JSON file.

    Args:
        config_path: Path to compare_config.json

    Returns:
        Config object with sheet layout and settings
    """
    path = Path(config_path)
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    # Parse layout
    layout_data = data.get("layout", {})
    columns = {
        str(key): str(letter).strip().upper()
        for key, letter in layout_data.get("columns", {}).items()
    }
    unknown = set(columns) - {n.value for n in FieldName} - {WEIGHT_UNIT_KEY, IDENTIFIER_KEY}
    if unknown:
        raise ValueError(f"Unknown column keys in {path}: {sorted(unknown)}")
    if IDENTIFIER_KEY not in columns:
        raise ValueError(f"Layout in {path} needs a '{IDENTIFIER_KEY}' column")

    layout = SheetLayout(
        header_row=layout_data.get("header_row", 3),
        first_data_row=layout_data.get("first_data_row", 4),
        columns=columns,
    )
    if layout.first_data_row <= layout.header_row:
        raise ValueError(f"first_data_row must come after header_row in {path}")

    # Parse settings
    settings_data = data.get("settings", {})
    defaults = CompareSettings()
    settings = CompareSettings(
        identifier_prefix=str(settings_data.get("identifier_prefix", defaults.identifier_prefix)).strip().upper(),
        weight_tolerance_percent=float(settings_data.get("weight_tolerance_percent", 0)),
        scrape_concurrency=int(settings_data.get("scrape_concurrency", defaults.scrape_concurrency)),
        request_timeout_seconds=int(settings_data.get("request_timeout_seconds", defaults.request_timeout_seconds)),
        request_retries=int(settings_data.get("request_retries", defaults.request_retries)),
        nav_timeout_ms=int(settings_data.get("nav_timeout_ms", defaults.nav_timeout_ms)),
        disable_browser=bool(settings_data.get("disable_browser", False)),
        product_url=settings_data.get("product_url", defaults.product_url),
    )

    return Config(layout=layout, settings=settings)

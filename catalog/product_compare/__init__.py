# Product Compare: DB export vs. vendor catalog
# Siloed module - no imports from the web backend

from .models import (
    NOT_FOUND,
    FieldName,
    Outcome,
    CanonicalWeight,
    CanonicalDimensions,
    FieldVerdict,
    WebAttributes,
    DbRecord,
    RecordResult,
)
from .config import load_config, Config, CompareSettings, SheetLayout
from .normalizers import (
    normalize_number,
    normalize_weight,
    weight_to_kg,
    normalize_dimensions,
    normalize_part_number,
    normalize_classification_code,
    map_material_classification,
)
from .comparators import StrictWeightPolicy, ToleranceWeightPolicy, weight_policy_for
from .engine import reconcile_record, reconcile_records, summarize_verdicts
from .index import build_bag_index, pair_records, is_valid_identifier, BagIndex
from .adapters import WebDataAdapter, InMemoryWebDataAdapter, JsonWebDataAdapter, ScraperWebDataAdapter
from .scraper import ProductScraper, ScrapeCache, ScrapeError
from .workbook_loader import WorkbookFormatError, load_db_records
from .sheet_writer import process_workbook
from .report import format_console, export_csv

__version__ = "1.0.0"

__all__ = [
    # Models
    "NOT_FOUND",
    "FieldName",
    "Outcome",
    "CanonicalWeight",
    "CanonicalDimensions",
    "FieldVerdict",
    "WebAttributes",
    "DbRecord",
    "RecordResult",
    # Config
    "Config",
    "CompareSettings",
    "SheetLayout",
    "load_config",
    # Normalizers
    "normalize_number",
    "normalize_weight",
    "weight_to_kg",
    "normalize_dimensions",
    "normalize_part_number",
    "normalize_classification_code",
    "map_material_classification",
    # Comparators
    "StrictWeightPolicy",
    "ToleranceWeightPolicy",
    "weight_policy_for",
    # Engine
    "reconcile_record",
    "reconcile_records",
    "summarize_verdicts",
    # Index
    "build_bag_index",
    "pair_records",
    "is_valid_identifier",
    "BagIndex",
    # Adapters
    "WebDataAdapter",
    "InMemoryWebDataAdapter",
    "JsonWebDataAdapter",
    "ScraperWebDataAdapter",
    # Retrieval
    "ProductScraper",
    "ScrapeCache",
    "ScrapeError",
    # Workbook
    "WorkbookFormatError",
    "load_db_records",
    "process_workbook",
    # Report
    "format_console",
    "export_csv",
]

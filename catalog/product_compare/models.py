"""
Data models for Product Compare.

All structured data uses dataclasses for type hints, __eq__, and __repr__.
Field names keep the German labels used in the ERP export and on the
vendor catalog pages.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional, Union


# Marker the catalog source uses for "attribute not on the page"
NOT_FOUND = "Nicht gefunden"

# Status prefix of a bag whose retrieval failed
FAILURE_PREFIX = "Fehler"


class FieldName(str, Enum):
    """
    Tracked fields, in the order verdicts are emitted for a record.

    Values are the DB column headers, so a record dict keyed by the
    header text can be looked up with the enum member directly.
    """
    SHORT_TEXT = "Materialkurztext"
    PART_NUMBER = "Her.-Artikelnummer"
    INSPECTION_CODE = "Fert./Prüfhinweis"
    MATERIAL = "Werkstoff"
    WEIGHT = "Nettogewicht"
    LENGTH = "Länge"
    WIDTH = "Breite"
    HEIGHT = "Höhe"


TRACKED_FIELDS = tuple(FieldName)

# DB-only keys that feed a comparison but get no verdict of their own
WEIGHT_UNIT_KEY = "Gewichtseinheit"
IDENTIFIER_KEY = "A2V"


class Outcome(Enum):
    """
    Per-field reconciliation outcome.

    The value doubles as the highlight color name used by the sheet writer.
    """
    MATCH = "green"      # DB and Web agree after normalization
    MISMATCH = "red"     # Both sides present, they disagree
    MISSING = "orange"   # Web value (or DB reference) not available

    @property
    def argb(self) -> str:
        return OUTCOME_FILLS[self]


OUTCOME_FILLS = {
    Outcome.MATCH: "FFD5F4E6",
    Outcome.MISMATCH: "FFFDEAEA",
    Outcome.MISSING: "FFFFE6CC",
}


@dataclass(frozen=True)
class CanonicalWeight:
    """Weight in kilograms. value_kg is None when no number was found."""
    value_kg: Optional[float] = None


@dataclass(frozen=True)
class CanonicalDimensions:
    """
    Physical dimensions in millimeters.

    Cylindrical parts carry only width (diameter) and height.
    """
    length: Optional[int] = None
    width: Optional[int] = None
    height: Optional[int] = None

    def axis(self, name: FieldName) -> Optional[int]:
        """Return the value for LENGTH, WIDTH or HEIGHT."""
        return {
            FieldName.LENGTH: self.length,
            FieldName.WIDTH: self.width,
            FieldName.HEIGHT: self.height,
        }.get(name)

    @property
    def is_empty(self) -> bool:
        return self.length is None and self.width is None and self.height is None


@dataclass(frozen=True)
class FieldVerdict:
    """
    Outcome of comparing one tracked field of one record.

    web_value holds the canonical Web value to render (kg for weight,
    integer mm for dimensions, mapped code for the inspection code) or
    None when the Web side had nothing usable.
    """
    field: FieldName
    db_value: Any
    web_value: Any
    outcome: Outcome
    reason: str = ""


# Bag keys as delivered by the catalog scraper
BAG_KEYS = {
    "identifier": "A2V",
    "url": "URL",
    "title": "Produkttitel",
    "additional_part_number": "Weitere Artikelnummer",
    "weight": "Gewicht",
    "dimensions": "Abmessung",
    "material": "Werkstoff",
    "material_classification": "Materialklassifizierung",
    "inspection_code": "Fert./Prüfhinweis",
    "status": "Status",
}


def _present(value: Any) -> Optional[str]:
    """Collapse the not-found marker and blank values to None."""
    if value is None:
        return None
    text = str(value).strip()
    if not text or text == NOT_FOUND:
        return None
    return text


@dataclass
class WebAttributes:
    """
    Catalog attributes scraped for one product.

    Every attribute is Optional; None means the catalog page did not
    provide it. The "Nicht gefunden" marker only exists at the
    from_bag / to_bag boundary.
    """
    identifier: Optional[str] = None
    url: Optional[str] = None
    title: Optional[str] = None
    additional_part_number: Optional[str] = None
    weight: Optional[str] = None
    dimensions: Optional[str] = None
    material: Optional[str] = None
    material_classification: Optional[str] = None
    inspection_code: Optional[str] = None
    status: Optional[str] = None

    @classmethod
    def from_bag(cls, bag: Optional[Mapping[str, Any]]) -> "WebAttributes":
        """Build from a German-keyed attribute bag."""
        if bag is None:
            return cls()
        if isinstance(bag, WebAttributes):
            return bag
        return cls(**{attr: _present(bag.get(key)) for attr, key in BAG_KEYS.items()})

    def to_bag(self) -> dict[str, str]:
        """Render as a German-keyed bag, absent values as the not-found marker."""
        return {
            key: getattr(self, attr) if getattr(self, attr) is not None else NOT_FOUND
            for attr, key in BAG_KEYS.items()
        }

    @property
    def is_empty(self) -> bool:
        return all(
            getattr(self, attr) is None
            for attr in BAG_KEYS
            if attr not in ("identifier", "url", "status")
        )

    @property
    def is_failure(self) -> bool:
        return bool(self.status) and self.status.startswith(FAILURE_PREFIX)


WebBag = Union[WebAttributes, Mapping[str, Any]]


@dataclass
class DbRecord:
    """
    One product row from the DB export.

    values is keyed by FieldName values plus WEIGHT_UNIT_KEY; row is the
    1-indexed worksheet row the record was read from (0 if not from a sheet).
    """
    identifier: str
    values: dict[str, Any] = field(default_factory=dict)
    row: int = 0


@dataclass
class RecordResult:
    """Verdicts for one DB record paired with its Web attributes."""
    record: DbRecord
    web: WebAttributes
    verdicts: list[FieldVerdict] = field(default_factory=list)

    def verdict_for(self, name: FieldName) -> Optional[FieldVerdict]:
        for verdict in self.verdicts:
            if verdict.field == name:
                return verdict
        return None

    @property
    def is_clean(self) -> bool:
        """True when every tracked field matched."""
        return all(v.outcome == Outcome.MATCH for v in self.verdicts)

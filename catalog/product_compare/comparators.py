"""
Field Comparators - Equality rules per tracked field.

Each comparator returns:
- True  -> values agree
- False -> values disagree
- None  -> the DB side has nothing comparable

Web-side absence is handled by the engine before a comparator runs.
Matching is strict by design of the diagnostic: a hidden mismatch costs
more than a false alarm a human has to look at.
"""

from typing import Any, Optional

from .models import CanonicalDimensions, FieldName
from .normalizers import (
    canonical_weight,
    normalize_classification_code,
    normalize_number,
    normalize_part_number,
    normalize_text,
)

# Absolute difference below which two kg values count as equal
WEIGHT_EPSILON = 1e-9


class WeightPolicy:
    """Decides whether two kg values are equal."""

    def equal(self, db_kg: float, web_kg: float) -> bool:
        raise NotImplementedError


class StrictWeightPolicy(WeightPolicy):
    """Exact match (floating point noise aside). The default."""

    def equal(self, db_kg: float, web_kg: float) -> bool:
        return abs(db_kg - web_kg) < WEIGHT_EPSILON

    def __repr__(self) -> str:
        return "StrictWeightPolicy()"


class ToleranceWeightPolicy(WeightPolicy):
    """Equal when the Web value is within percent of the DB value."""

    def __init__(self, percent: float):
        if percent < 0:
            raise ValueError(f"Tolerance percent must be non-negative, got: {percent}")
        self.percent = percent

    def equal(self, db_kg: float, web_kg: float) -> bool:
        diff = abs(db_kg - web_kg)
        if diff < WEIGHT_EPSILON:
            return True
        return diff <= abs(db_kg) * (self.percent / 100)

    def __repr__(self) -> str:
        return f"ToleranceWeightPolicy(percent={self.percent})"


def weight_policy_for(tolerance_percent: Optional[float]) -> WeightPolicy:
    """Strict for 0/None, tolerance-based otherwise."""
    if not tolerance_percent or tolerance_percent <= 0:
        return StrictWeightPolicy()
    return ToleranceWeightPolicy(tolerance_percent)


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def compare_text(db_value: Any, web_value: Any) -> Optional[bool]:
    """Case- and whitespace-insensitive text equality."""
    if _is_blank(db_value):
        return None
    return normalize_text(db_value) == normalize_text(web_value)


def compare_part_number(db_value: Any, web_value: Any) -> Optional[bool]:
    """Equal when both sides reduce to the same canonical part number."""
    db_canon = normalize_part_number(db_value)
    if not db_canon:
        return None
    return db_canon == normalize_part_number(web_value)


def compare_classification_code(db_value: Any, web_code: Any) -> Optional[bool]:
    """
    Compare a stored code against the mapped Web code.

    A missing DB code never matches: the field reports a mismatch rather
    than missing reference data.
    """
    db_code = normalize_classification_code(db_value)
    if not db_code:
        return False
    return db_code == normalize_classification_code(web_code)


def db_weight_kg(db_value: Any, db_unit: Any = None) -> Optional[float]:
    """DB weight in kg; the unit column (default kg) applies when the value carries none."""
    return canonical_weight(db_value, _unit_text(db_unit) or "kg").value_kg


def web_weight_kg(web_value: Any, db_unit: Any = None) -> Optional[float]:
    """Web weight in kg; a bare number is read in the DB unit, else kg."""
    return canonical_weight(web_value, _unit_text(db_unit) or "kg").value_kg


def _unit_text(unit: Any) -> str:
    if unit is None:
        return ""
    return str(unit).strip().lower()


def compare_weight(
    db_value: Any,
    db_unit: Any,
    web_value: Any,
    policy: Optional[WeightPolicy] = None,
) -> Optional[bool]:
    """Compare DB weight (value + unit column) with a Web weight string in kg."""
    policy = policy or StrictWeightPolicy()
    web_kg = web_weight_kg(web_value, db_unit)
    if web_kg is None:
        return None
    db_kg = db_weight_kg(db_value, db_unit)
    if db_kg is None:
        return None
    return policy.equal(db_kg, web_kg)


def compare_dimension(db_value: Any, web_dims: CanonicalDimensions, axis: FieldName) -> Optional[bool]:
    """Compare a DB dimension in mm with one axis of the parsed Web dimensions."""
    web_mm = web_dims.axis(axis)
    if web_mm is None:
        return None
    db_mm = normalize_number(db_value)
    if db_mm is None:
        return None
    return db_mm == web_mm

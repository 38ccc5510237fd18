"""
Value Normalizers - Turn catalog and ERP text into comparable values.

Every function here is total: malformed input gives None (or an empty
string for the text normalizers), never an exception. Inputs may be
strings or raw spreadsheet cell values (int, float, None).
"""

import re
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Optional

from .models import CanonicalDimensions, CanonicalWeight

_NUMBER_RE = re.compile(r"-?\d+(?:\.\d+)?")

# Unit tokens may touch digits ("500g") but not other letters ("gewicht")
_MG_RE = re.compile(r"(?<![a-z])mg(?![a-z])")
_G_RE = re.compile(r"(?<![a-z])g(?![a-z])")
_KG_RE = re.compile(r"(?<![a-z])kg(?![a-z])")
_T_RE = re.compile(r"(?<![a-z])t(?![a-z])")

_DIMENSION_SEPARATORS_RE = re.compile(r"[×x*/]")
# "x" is the canonical separator, so it counts as a boundary too
_DIMENSION_UNIT_RE = re.compile(r"(?<![a-wyz])(mm|cm|m)(?![a-wyz])")
DIMENSION_SCALES = {"mm": 1, "cm": 10, "m": 1000}

CLASSIFICATION_CODE = "OHNE/N/N/N/N"

_NEGATION_RE = re.compile(r"nicht|kein|\bnot\b|\bnone\b")
_PROCESS_RES = (
    re.compile(r"schwei|weld"),         # welding
    re.compile(r"guss|\bcast"),         # casting
    re.compile(r"klebe|\bbond|\bglu"),  # bonding / gluing
    re.compile(r"schmiede|\bforg"),     # forging
)
_RELEVANCE_RE = re.compile(r"relev")

_PART_NUMBER_STRIP_RE = re.compile(r"[\s\-_/]+")
_WHITESPACE_RE = re.compile(r"\s+")


def _as_text(raw: Any) -> str:
    if raw is None:
        return ""
    return str(raw)


def _round_half_up(value: float) -> int:
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def normalize_number(raw: Any) -> Optional[float]:
    """
    Extract the first decimal number from a cell value.

    Examples:
        "12,3 mm" -> 12.3
        " 1 000 " -> 1000.0
        "abc"     -> None
    """
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        return float(raw)

    text = _WHITESPACE_RE.sub("", str(raw)).replace(",", ".")
    match = _NUMBER_RE.search(text)
    if not match:
        return None
    return float(match.group(0))


def normalize_weight(raw: Any) -> tuple[Optional[float], str]:
    """
    Parse a weight string into (value, unit).

    Unit detection order: mg, g (only without kg), kg, t. An empty unit
    means the text carried none and the caller decides the default.

    Examples:
        "0,162 kg" -> (0.162, "kg")
        "500 g"    -> (500.0, "g")
        "1.5"      -> (1.5, "")
    """
    if raw is None or isinstance(raw, bool):
        return None, ""
    if isinstance(raw, (int, float)):
        return float(raw), ""

    text = str(raw).lower().replace(",", ".").strip()
    match = _NUMBER_RE.search(text)
    value = float(match.group(0)) if match else None

    if _MG_RE.search(text):
        unit = "mg"
    elif _G_RE.search(text) and not _KG_RE.search(text):
        unit = "g"
    elif _KG_RE.search(text):
        unit = "kg"
    elif _T_RE.search(text):
        unit = "t"
    else:
        unit = ""
    return value, unit


def weight_to_kg(value: Optional[float], unit: Optional[str]) -> Optional[float]:
    """Convert a value in the given unit to kilograms. Unknown units pass through."""
    if value is None:
        return None
    unit = (unit or "").strip().lower()
    if unit == "mg":
        return value / 1e6
    if unit == "g":
        return value / 1000
    if unit == "t":
        return value * 1000
    return value


def canonical_weight(raw: Any, default_unit: str = "") -> CanonicalWeight:
    """Parse and convert in one step; default_unit applies when the text has none."""
    value, unit = normalize_weight(raw)
    return CanonicalWeight(value_kg=weight_to_kg(value, unit or default_unit))


def normalize_dimensions(raw: Any) -> CanonicalDimensions:
    """
    Parse a dimension string into millimeters.

    Accepts "LxBxH", "L×B×H", "40X40X42", "30x20x10 mm", "3x2x1 cm".
    Two numbers describe a cylinder (diameter x height), three a cuboid.
    Anything else yields an empty result.
    """
    if raw is None or isinstance(raw, bool):
        return CanonicalDimensions()

    text = str(raw).lower()
    text = text.replace(",", ".").replace(";", ".")
    text = _WHITESPACE_RE.sub("", text)
    text = _DIMENSION_SEPARATORS_RE.sub("x", text)

    scale = 1
    unit_match = _DIMENSION_UNIT_RE.search(text)
    if unit_match:
        scale = DIMENSION_SCALES[unit_match.group(1)]
        text = text[:unit_match.start()] + text[unit_match.end():]

    numbers = [float(token) for token in _NUMBER_RE.findall(text)]

    if len(numbers) == 2:
        return CanonicalDimensions(
            length=None,
            width=_round_half_up(numbers[0] * scale),
            height=_round_half_up(numbers[1] * scale),
        )
    if len(numbers) == 3:
        length, width, height = (_round_half_up(n * scale) for n in numbers)
        return CanonicalDimensions(length=length, width=width, height=height)
    return CanonicalDimensions()


def normalize_part_number(raw: Any) -> str:
    """Upper-case and drop whitespace, hyphens, underscores and slashes."""
    return _PART_NUMBER_STRIP_RE.sub("", _as_text(raw).upper())


def normalize_classification_code(raw: Any) -> str:
    """'OHNE/N  /N  /N/N ' -> 'OHNE/N/N/N/N'"""
    return _WHITESPACE_RE.sub("", _as_text(raw)).upper()


def map_material_classification(description: Any) -> str:
    """
    Map a material classification text to the catalog code.

    A text stating the part is NOT subject to welding, casting, bonding
    or forging AND that this is relevant maps to OHNE/N/N/N/N. Anything
    else maps to an empty string.
    """
    text = _as_text(description).lower()
    if not text:
        return ""

    has_negation = bool(_NEGATION_RE.search(text))
    has_process = any(pattern.search(text) for pattern in _PROCESS_RES)
    has_relevance = bool(_RELEVANCE_RE.search(text))

    if has_negation and has_process and has_relevance:
        return CLASSIFICATION_CODE
    return ""


def normalize_text(raw: Any) -> str:
    """Trim, lower-case and collapse internal whitespace."""
    return _WHITESPACE_RE.sub(" ", _as_text(raw).strip().lower())

"""
Reconciliation Engine - Core comparison of DB records against catalog data.

For every tracked field of a record:

| Web value usable? | DB value usable? | Comparator | Result   |
|-------------------|------------------|------------|----------|
| ✗                 | -                | -          | MISSING  |
| ✓                 | ✗                | -          | MISSING (inspection code: MISMATCH) |
| ✓                 | ✓                | equal      | MATCH    |
| ✓                 | ✓                | differs    | MISMATCH |

Verdicts come back in field declaration order, one per tracked field.
"""

import logging
from typing import Any, Iterable, Mapping, Optional, Union

from .comparators import (
    WeightPolicy,
    StrictWeightPolicy,
    compare_classification_code,
    compare_dimension,
    compare_part_number,
    compare_text,
    compare_weight,
    web_weight_kg,
)
from .models import (
    IDENTIFIER_KEY,
    TRACKED_FIELDS,
    WEIGHT_UNIT_KEY,
    DbRecord,
    FieldName,
    FieldVerdict,
    Outcome,
    RecordResult,
    WebAttributes,
    WebBag,
)
from .normalizers import (
    map_material_classification,
    normalize_classification_code,
    normalize_dimensions,
    normalize_part_number,
)

logger = logging.getLogger(__name__)

DIMENSION_FIELDS = (FieldName.LENGTH, FieldName.WIDTH, FieldName.HEIGHT)


def reconcile_record(
    db_record: Union[DbRecord, Mapping[str, Any]],
    web_bag: Optional[WebBag],
    identifier: Optional[str] = None,
    weight_policy: Optional[WeightPolicy] = None,
) -> list[FieldVerdict]:
    """
    Compare one DB record against its catalog attributes.

    Args:
        db_record: DbRecord or mapping from FieldName value to raw cell value
        web_bag: WebAttributes or German-keyed attribute bag
        identifier: Business identifier, used as part number fallback
        weight_policy: Weight equality policy (strict if omitted)

    Returns:
        One FieldVerdict per tracked field, in declaration order
    """
    if isinstance(db_record, DbRecord):
        identifier = identifier or db_record.identifier
        values: Mapping[str, Any] = db_record.values
    else:
        values = db_record or {}

    web = WebAttributes.from_bag(web_bag)
    identifier = identifier or values.get(IDENTIFIER_KEY) or web.identifier
    policy = weight_policy or StrictWeightPolicy()

    verdicts = [
        _reconcile_field(name, values, web, identifier, policy)
        for name in TRACKED_FIELDS
    ]

    summary = ", ".join(f"{v.field.value}={v.outcome.name}" for v in verdicts)
    logger.debug(f"Reconciled {identifier or 'unknown'}: {summary}")
    return verdicts


def _reconcile_field(
    name: FieldName,
    values: Mapping[str, Any],
    web: WebAttributes,
    identifier: Optional[str],
    policy: WeightPolicy,
) -> FieldVerdict:
    db_value = values.get(name.value)

    if name in (FieldName.SHORT_TEXT, FieldName.MATERIAL):
        web_text = web.title if name == FieldName.SHORT_TEXT else web.material
        if web_text is None:
            return _missing(name, db_value, "Not found in catalog")
        return _verdict(name, db_value, web_text, compare_text(db_value, web_text))

    if name == FieldName.PART_NUMBER:
        # No distinct part number on a retrieved page: the catalog code is the part number.
        # Nothing retrieved at all leaves the field Missing.
        web_part = web.additional_part_number
        if web_part is None and not web.is_empty:
            web_part = identifier
        if not normalize_part_number(web_part):
            return _missing(name, db_value, "Not found in catalog")
        return _verdict(name, db_value, web_part, compare_part_number(db_value, web_part))

    if name == FieldName.INSPECTION_CODE:
        web_code = _web_inspection_code(web)
        if not web_code:
            return _missing(name, db_value, "No code derivable from catalog classification")
        return _verdict(name, db_value, web_code, compare_classification_code(db_value, web_code))

    if name == FieldName.WEIGHT:
        db_unit = values.get(WEIGHT_UNIT_KEY)
        web_kg = web_weight_kg(web.weight, db_unit)
        if web_kg is None:
            return _missing(name, db_value, "Not found in catalog")
        return _verdict(name, db_value, web_kg, compare_weight(db_value, db_unit, web.weight, policy))

    # Dimension axes
    web_dims = normalize_dimensions(web.dimensions)
    web_mm = web_dims.axis(name)
    if web_mm is None:
        return _missing(name, db_value, "Axis not in catalog dimensions")
    return _verdict(name, db_value, web_mm, compare_dimension(db_value, web_dims, name))


def _web_inspection_code(web: WebAttributes) -> str:
    """Code given directly by the catalog, else derived from the classification text."""
    if web.inspection_code:
        code = normalize_classification_code(web.inspection_code)
        if code:
            return code
    return normalize_classification_code(map_material_classification(web.material_classification))


def _missing(name: FieldName, db_value: Any, reason: str) -> FieldVerdict:
    return FieldVerdict(field=name, db_value=db_value, web_value=None, outcome=Outcome.MISSING, reason=reason)


def _verdict(name: FieldName, db_value: Any, web_value: Any, result: Optional[bool]) -> FieldVerdict:
    if result is None:
        return FieldVerdict(
            field=name, db_value=db_value, web_value=web_value,
            outcome=Outcome.MISSING, reason="No DB reference value",
        )
    if result:
        return FieldVerdict(
            field=name, db_value=db_value, web_value=web_value,
            outcome=Outcome.MATCH, reason="Values agree",
        )
    return FieldVerdict(
        field=name, db_value=db_value, web_value=web_value,
        outcome=Outcome.MISMATCH, reason="Values differ",
    )


def reconcile_records(
    pairs: Iterable[tuple[DbRecord, WebAttributes]],
    weight_policy: Optional[WeightPolicy] = None,
) -> list[RecordResult]:
    """
    Reconcile matched (record, attributes) pairs.

    Args:
        pairs: Output of index.pair_records
        weight_policy: Weight equality policy (strict if omitted)

    Returns:
        List of RecordResult in input order
    """
    results = []
    for record, web in pairs:
        verdicts = reconcile_record(record, web, weight_policy=weight_policy)
        results.append(RecordResult(record=record, web=web, verdicts=verdicts))
    return results


def outcome_counts(verdicts: Iterable[FieldVerdict]) -> dict[str, int]:
    """Count verdicts per outcome."""
    counts = {"match": 0, "mismatch": 0, "missing": 0}
    for verdict in verdicts:
        counts[verdict.outcome.name.lower()] += 1
    return counts


def filter_actionable(results: list[RecordResult]) -> list[RecordResult]:
    """Filter to records with at least one field that did not match."""
    return [r for r in results if not r.is_clean]


def summarize_verdicts(results: list[RecordResult]) -> dict:
    """Generate summary statistics for results."""
    summary = {
        "records": len(results),
        "clean_records": 0,
        "match": 0,
        "mismatch": 0,
        "missing": 0,
        "by_field": {name.value: {"match": 0, "mismatch": 0, "missing": 0} for name in TRACKED_FIELDS},
    }

    for result in results:
        if result.is_clean:
            summary["clean_records"] += 1
        for verdict in result.verdicts:
            key = verdict.outcome.name.lower()
            summary[key] += 1
            summary["by_field"][verdict.field.value][key] += 1

    summary["actionable"] = summary["records"] - summary["clean_records"]
    return summary

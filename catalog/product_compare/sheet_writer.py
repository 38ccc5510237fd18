"""
Comparison Sheet Writer - Annotate the DB export with catalog values.

The uploaded workbook is modified in place, preserving its formatting:
- a "Web-Wert" column is inserted right after every tracked DB column
- a sub-header row ("DB-Wert" / "Web-Wert") goes under the header row
- header cells are merged across each DB/Web pair
- Web cells are filled green (match), red (mismatch) or orange (missing)
"""

import logging
from dataclasses import dataclass, field
from io import BytesIO
from pathlib import Path
from typing import Optional

from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import column_index_from_string, get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from .adapters import WebDataAdapter
from .comparators import WeightPolicy, weight_policy_for
from .config import Config
from .engine import reconcile_records
from .index import build_bag_index, pair_records, unique_identifiers
from .models import FieldName, FieldVerdict, Outcome, RecordResult
from .workbook_loader import first_worksheet, load_db_records, open_workbook

logger = logging.getLogger(__name__)

DB_LABEL = "DB-Wert"
WEB_LABEL = "Web-Wert"


@dataclass
class ComparisonLayout:
    """
    Column and row positions after the comparison columns were inserted.

    Attributes:
        header_row: Row with the field headers (unchanged)
        label_row: Inserted row with DB-Wert / Web-Wert labels
        db_columns: Field -> DB column after insertion
        web_columns: Field -> inserted Web column
        original_columns: Field -> DB column before insertion
    """
    header_row: int
    label_row: int
    db_columns: dict[FieldName, int] = field(default_factory=dict)
    web_columns: dict[FieldName, int] = field(default_factory=dict)
    original_columns: dict[FieldName, int] = field(default_factory=dict)

    def shift_column(self, column: int) -> int:
        """Where an original column ends up after the Web columns were inserted."""
        return column + sum(1 for c in self.original_columns.values() if c < column)

    def shift_row(self, row: int) -> int:
        """Where an original row ends up after the label row was inserted."""
        return row + 1 if row > self.header_row else row


def plan_layout(config: Config) -> ComparisonLayout:
    """Compute the post-insertion layout without touching a worksheet."""
    header_row = config.layout.header_row
    layout = ComparisonLayout(
        header_row=header_row,
        label_row=header_row + 1,
        original_columns=config.layout.tracked_columns,
    )
    for name, column in layout.original_columns.items():
        db_column = layout.shift_column(column)
        layout.db_columns[name] = db_column
        layout.web_columns[name] = db_column + 1
    return layout


def fill_cell(ws: Worksheet, row: int, column: int, outcome: Outcome):
    """Solid background in the outcome's color."""
    ws.cell(row=row, column=column).fill = PatternFill(
        fill_type="solid", fgColor=outcome.argb, bgColor=outcome.argb
    )


def apply_comparison_layout(ws: Worksheet, config: Config) -> ComparisonLayout:
    """
    Insert Web columns and the label row.

    Args:
        ws: Worksheet holding the DB export (modified in place)
        config: Config with sheet layout

    Returns:
        ComparisonLayout describing the new positions
    """
    layout = plan_layout(config)

    # Merged ranges do not move with inserted cells; lift them and re-merge shifted
    merged = [
        (r.min_row, r.min_col, r.max_row, r.max_col)
        for r in list(ws.merged_cells.ranges)
    ]
    for min_row, min_col, max_row, max_col in merged:
        ws.unmerge_cells(start_row=min_row, start_column=min_col, end_row=max_row, end_column=max_col)

    # Column widths stay bound to their letters on insert; move them by hand
    widths = {
        column_index_from_string(letter): dim.width
        for letter, dim in list(ws.column_dimensions.items())
        if dim.width
    }
    for column in widths:
        del ws.column_dimensions[get_column_letter(column)]

    # Right to left so earlier insertions do not move later targets
    for column in sorted(layout.original_columns.values(), reverse=True):
        ws.insert_cols(column + 1)
    ws.insert_rows(layout.label_row)

    for column, width in widths.items():
        ws.column_dimensions[get_column_letter(layout.shift_column(column))].width = width

    for min_row, min_col, max_row, max_col in merged:
        ws.merge_cells(
            start_row=layout.shift_row(min_row),
            start_column=layout.shift_column(min_col),
            end_row=layout.shift_row(max_row),
            end_column=layout.shift_column(max_col),
        )

    label_font = Font(bold=True, size=12)
    centered = Alignment(horizontal="center", vertical="center")

    for name, db_column in layout.db_columns.items():
        web_column = layout.web_columns[name]

        if not _is_merged(ws, layout.header_row, db_column):
            ws.merge_cells(
                start_row=layout.header_row, start_column=db_column,
                end_row=layout.header_row, end_column=web_column,
            )
        ws.cell(row=layout.header_row, column=db_column).alignment = centered

        for column, label in ((db_column, DB_LABEL), (web_column, WEB_LABEL)):
            cell = ws.cell(row=layout.label_row, column=column)
            cell.value = label
            cell.font = label_font
            cell.alignment = centered

        width = widths.get(layout.original_columns[name])
        if width:
            ws.column_dimensions[get_column_letter(web_column)].width = width

    ws.freeze_panes = ws.cell(row=layout.label_row + 1, column=1)
    return layout


def _is_merged(ws: Worksheet, row: int, column: int) -> bool:
    coordinate = f"{get_column_letter(column)}{row}"
    return any(coordinate in r for r in ws.merged_cells.ranges)


def write_verdicts(ws: Worksheet, layout: ComparisonLayout, row: int, verdicts: list[FieldVerdict]):
    """Write canonical Web values into the Web columns of one row and color them."""
    for verdict in verdicts:
        column = layout.web_columns.get(verdict.field)
        if column is None:
            continue
        if verdict.web_value is not None:
            ws.cell(row=row, column=column).value = verdict.web_value
        fill_cell(ws, row, column, verdict.outcome)


def annotate_worksheet(ws: Worksheet, results: list[RecordResult], config: Config) -> ComparisonLayout:
    """
    Apply the comparison layout and write all results.

    Rows that fail to write are logged and skipped.
    """
    layout = apply_comparison_layout(ws, config)

    for result in results:
        row = layout.shift_row(result.record.row)
        try:
            write_verdicts(ws, layout, row, result.verdicts)
        except Exception:
            logger.exception(f"Error writing row {row} ({result.record.identifier})")
            continue

    return layout


def process_workbook(
    source: str | Path | bytes,
    adapter: WebDataAdapter,
    config: Config,
    weight_policy: Optional[WeightPolicy] = None,
) -> tuple[bytes, list[RecordResult]]:
    """
    Run the full comparison on a DB export.

    Args:
        source: Path or raw bytes of the .xlsx file
        adapter: Source of catalog attributes
        config: Layout and settings
        weight_policy: Override for the configured weight policy

    Returns:
        (annotated workbook bytes, per-record results)
    """
    wb = open_workbook(source)
    ws = first_worksheet(wb)

    records = load_db_records(ws, config)
    prefix = config.settings.identifier_prefix
    identifiers = unique_identifiers(records, prefix)

    bags = adapter.get_attributes(identifiers)
    index = build_bag_index(bags)
    logger.info(f"Retrieved catalog data for {len(index)} of {len(identifiers)} identifiers")

    policy = weight_policy or weight_policy_for(config.settings.weight_tolerance_percent)
    results = reconcile_records(pair_records(records, index, prefix), weight_policy=policy)

    annotate_worksheet(ws, results, config)

    output = BytesIO()
    wb.save(output)
    output.seek(0)

    return output.read(), results

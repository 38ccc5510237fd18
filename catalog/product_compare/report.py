"""
Report Generator - Format results for human consumption.

Produces console output and CSV export for comparison results.
"""

import csv
import io
from datetime import datetime
from typing import TextIO

from .engine import filter_actionable, summarize_verdicts
from .models import Outcome, RecordResult


def _display(value) -> str:
    if value is None:
        return "-"
    return str(value)


def format_console(results: list[RecordResult], show_clean: bool = False) -> str:
    """
    Format results for console display.

    Lists every record with at least one non-matching field, then a
    per-field summary table.

    Args:
        results: Record results to format
        show_clean: Whether to include fully matching records (default False)

    Returns:
        Formatted string for console output
    """
    if not results:
        return "No records with a catalog identifier to report.\n"

    lines = []

    shown = results if show_clean else filter_actionable(results)

    for result in shown:
        record = result.record
        lines.append(f"\n{record.identifier} (row {record.row})")
        lines.append("-" * 70)

        for verdict in result.verdicts:
            if verdict.outcome == Outcome.MATCH and not show_clean:
                continue
            lines.append(
                f"  {verdict.outcome.name:<9} {verdict.field.value:<20} "
                f"DB: {_display(verdict.db_value)[:18]:<18} Web: {_display(verdict.web_value)[:18]}"
            )

    summary = summarize_verdicts(results)
    lines.append("\n" + "=" * 70)
    lines.append("SUMMARY")
    lines.append(f"  Records:        {summary['records']}")
    lines.append(f"  Clean:          {summary['clean_records']}")
    lines.append(f"  Actionable:     {summary['actionable']}")
    lines.append(f"  Fields matched: {summary['match']}")
    lines.append(f"  Mismatches:     {summary['mismatch']}")
    lines.append(f"  Missing:        {summary['missing']}")
    lines.append("")
    lines.append(f"  {'FIELD':<20} {'MATCH':>6} {'MISMATCH':>9} {'MISSING':>8}")
    for name, counts in summary["by_field"].items():
        lines.append(f"  {name:<20} {counts['match']:>6} {counts['mismatch']:>9} {counts['missing']:>8}")
    lines.append("=" * 70)

    return "\n".join(lines)


def export_csv(
    results: list[RecordResult],
    output: TextIO | None = None,
    include_clean: bool = True,
) -> str:
    """
    Export results to CSV format, one line per field verdict.

    Args:
        results: Record results to export
        output: Optional file handle to write to
        include_clean: Whether to include MATCH verdicts (default True)

    Returns:
        CSV string (also writes to output if provided)
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer)

    writer.writerow([
        "identifier",
        "row",
        "field",
        "outcome",
        "db_value",
        "web_value",
        "reason",
        "status",
    ])

    for result in results:
        for verdict in result.verdicts:
            if not include_clean and verdict.outcome == Outcome.MATCH:
                continue
            writer.writerow([
                result.record.identifier,
                result.record.row,
                verdict.field.value,
                verdict.outcome.name,
                "" if verdict.db_value is None else verdict.db_value,
                "" if verdict.web_value is None else verdict.web_value,
                verdict.reason,
                result.web.status or "",
            ])

    csv_content = buffer.getvalue()

    if output:
        output.write(csv_content)

    return csv_content


def generate_report_filename(stem: str | None = None, extension: str = "csv") -> str:
    """
    Generate a filename for the report.

    Args:
        stem: Optional input name to include
        extension: File extension (default "csv")

    Returns:
        Filename like "product_compare_export_2026-01-08.csv"
    """
    date_str = datetime.now().strftime("%Y-%m-%d")
    if stem:
        return f"product_compare_{stem}_{date_str}.{extension}"
    return f"product_compare_{date_str}.{extension}"

"""
Tests for report generator.

Run with: pytest catalog/product_compare/tests/test_compare_report.py -v
"""

import csv
import io
from datetime import datetime

import pytest

from catalog.product_compare.engine import reconcile_records
from catalog.product_compare.models import DbRecord, WebAttributes
from catalog.product_compare.report import (
    export_csv,
    format_console,
    generate_report_filename,
)


@pytest.fixture
def sample_results():
    """One clean record, one with a weight mismatch and missing fields."""
    clean = DbRecord(
        identifier="A2V00001234",
        values={
            "Materialkurztext": "Schraube M6",
            "Her.-Artikelnummer": "AB12345",
            "Fert./Prüfhinweis": "OHNE/N/N/N/N",
            "Werkstoff": "Stahl",
            "Nettogewicht": 0.162,
            "Länge": 40,
            "Breite": 40,
            "Höhe": 42,
        },
        row=4,
    )
    clean_web = WebAttributes(
        identifier="A2V00001234",
        title="Schraube M6",
        additional_part_number="AB-12345",
        weight="162 g",
        dimensions="40x40x42",
        material="Stahl",
        inspection_code="OHNE/N/N/N/N",
        status="initialData JSON",
    )
    dirty = DbRecord(identifier="A2V00005678", values={"Nettogewicht": 1.0}, row=6)
    dirty_web = WebAttributes(identifier="A2V00005678", weight="900 g", status="HTTP-Parser")
    return reconcile_records([(clean, clean_web), (dirty, dirty_web)])


class TestFormatConsole:
    """Test console report formatting."""

    def test_empty_results(self):
        report = format_console([])
        assert "No records" in report

    def test_lists_actionable_records(self, sample_results):
        report = format_console(sample_results)
        assert "A2V00005678 (row 6)" in report
        assert "MISMATCH" in report
        assert "Nettogewicht" in report

    def test_hides_clean_by_default(self, sample_results):
        report = format_console(sample_results)
        assert "A2V00001234 (row 4)" not in report

    def test_shows_clean_when_requested(self, sample_results):
        report = format_console(sample_results, show_clean=True)
        assert "A2V00001234 (row 4)" in report

    def test_includes_summary(self, sample_results):
        report = format_console(sample_results)
        assert "SUMMARY" in report
        assert "Records:        2" in report
        assert "Clean:          1" in report
        assert "Actionable:     1" in report


class TestExportCSV:
    """Test CSV export functionality."""

    def test_header_only_for_empty(self):
        content = export_csv([])
        rows = list(csv.reader(io.StringIO(content)))
        assert rows == [["identifier", "row", "field", "outcome", "db_value", "web_value", "reason", "status"]]

    def test_one_line_per_verdict(self, sample_results):
        rows = list(csv.DictReader(io.StringIO(export_csv(sample_results))))
        assert len(rows) == 16

    def test_values(self, sample_results):
        rows = list(csv.DictReader(io.StringIO(export_csv(sample_results))))
        weight = next(r for r in rows if r["identifier"] == "A2V00005678" and r["field"] == "Nettogewicht")
        assert weight["outcome"] == "MISMATCH"
        assert weight["db_value"] == "1.0"
        assert weight["web_value"] == "0.9"
        assert weight["status"] == "HTTP-Parser"

        title = next(r for r in rows if r["identifier"] == "A2V00005678" and r["field"] == "Materialkurztext")
        assert title["outcome"] == "MISSING"
        assert title["web_value"] == ""

    def test_exclude_clean(self, sample_results):
        rows = list(csv.DictReader(io.StringIO(export_csv(sample_results, include_clean=False))))
        assert all(r["outcome"] != "MATCH" for r in rows)
        assert {r["identifier"] for r in rows} == {"A2V00005678"}

    def test_writes_to_output(self, sample_results):
        output = io.StringIO()
        content = export_csv(sample_results, output=output)
        assert output.getvalue() == content


class TestReportFilename:
    def test_default(self):
        date_str = datetime.now().strftime("%Y-%m-%d")
        assert generate_report_filename() == f"product_compare_{date_str}.csv"

    def test_with_stem_and_extension(self):
        name = generate_report_filename("export", extension="xlsx")
        assert name.startswith("product_compare_export_")
        assert name.endswith(".xlsx")

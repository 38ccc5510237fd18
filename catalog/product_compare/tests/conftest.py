"""
Shared fixtures for product compare tests.

DB export workbooks are built on the fly with openpyxl in the layout of
the default compare_config.json (header row 3, data from row 4).
"""

import pytest
from openpyxl import Workbook

from catalog.product_compare.config import DEFAULT_CONFIG_PATH, load_config


HEADERS = {
    "C": "Materialkurztext",
    "E": "Her.-Artikelnummer",
    "N": "Fert./Prüfhinweis",
    "P": "Werkstoff",
    "S": "Nettogewicht",
    "T": "Gewichtseinheit",
    "U": "Länge",
    "V": "Breite",
    "W": "Höhe",
    "Z": "A2V",
}

COLUMN_BY_KEY = {key: letter for letter, key in HEADERS.items()}

SCREW_ROW = {
    "A2V": "A2V00001234",
    "Materialkurztext": "Schraube M6",
    "Her.-Artikelnummer": "AB-123/45",
    "Fert./Prüfhinweis": "OHNE/N/N/N/N",
    "Werkstoff": "Stahl verzinkt",
    "Nettogewicht": 0.162,
    "Gewichtseinheit": "KG",
    "Länge": 40,
    "Breite": 40,
    "Höhe": 42,
}

NUT_ROW = {
    "A2V": "A2V00005678",
    "Materialkurztext": "Mutter M6",
    "Her.-Artikelnummer": "CD-9",
    "Werkstoff": "Messing",
    "Nettogewicht": 1.0,
    "Gewichtseinheit": "KG",
    "Länge": 10,
    "Breite": 10,
    "Höhe": 5,
}

SCREW_BAG = {
    "A2V": "A2V00001234",
    "Produkttitel": "Schraube M6",
    "Weitere Artikelnummer": "AB12345",
    "Gewicht": "0,162 kg",
    "Abmessung": "40x40x42",
    "Werkstoff": "Stahl verzinkt",
    "Materialklassifizierung": "Schweißen nicht relevant",
}

NUT_BAG = {
    "A2V": "A2V00005678",
    "Produkttitel": "Mutter M6",
    "Weitere Artikelnummer": "Nicht gefunden",
    "Gewicht": "900 g",
    "Abmessung": "10x10x5",
    "Werkstoff": "Nicht gefunden",
}


def build_export(path, rows):
    """Write a DB export with a title line, the header row and one row per dict."""
    wb = Workbook()
    ws = wb.active
    ws.title = "Export"
    ws["A1"] = "Materialstamm Export"
    ws.merge_cells("A1:D1")

    for letter, header in HEADERS.items():
        ws[f"{letter}3"] = header
    ws.column_dimensions["C"].width = 30

    for offset, row in enumerate(rows):
        for key, value in row.items():
            ws[f"{COLUMN_BY_KEY[key]}{4 + offset}"] = value

    wb.save(path)
    return path


@pytest.fixture
def config():
    return load_config(DEFAULT_CONFIG_PATH)


@pytest.fixture
def export_path(tmp_path):
    rows = [SCREW_ROW, {"A2V": "XYZ-1", "Materialkurztext": "Ohne Katalog"}, NUT_ROW]
    return build_export(tmp_path / "export.xlsx", rows)


@pytest.fixture
def bags():
    return {"A2V00001234": SCREW_BAG, "A2V00005678": NUT_BAG}

"""
Test configuration and fixtures for the Product Compare backend test suite.

Provides:
- FastAPI TestClient fixture with the catalog retrieval replaced by fakes
- A generated DB export workbook (bytes) for upload tests
"""
from io import BytesIO

import pytest
from fastapi.testclient import TestClient
from openpyxl import Workbook

from catalog.product_compare import InMemoryWebDataAdapter, WebAttributes
from catalog.product_compare.index import is_valid_identifier, normalize_identifier


# ---------------------------------------------------------------------------
# Catalog fakes
# ---------------------------------------------------------------------------

BAGS = {
    "A2V00001234": {
        "A2V": "A2V00001234",
        "Produkttitel": "Schraube M6",
        "Weitere Artikelnummer": "AB12345",
        "Gewicht": "0,162 kg",
        "Abmessung": "40x40x42",
        "Werkstoff": "Stahl",
        "Materialklassifizierung": "Schweißen nicht relevant",
        "Status": "initialData JSON",
    },
}


class FakeScraper:
    """Stands in for ProductScraper; serves BAGS without network access."""

    def __init__(self, bags):
        self.bags = bags
        self.calls = []

    def scrape_one(self, identifier):
        if not is_valid_identifier(identifier):
            raise ValueError(f"Only A2V identifiers are allowed: {identifier!r}")
        key = normalize_identifier(identifier)
        self.calls.append(key)
        bag = self.bags.get(key)
        if bag is None:
            return WebAttributes(identifier=key, status="Fehler: HTTP 404")
        return WebAttributes.from_bag(bag)


@pytest.fixture()
def fake_scraper():
    return FakeScraper(BAGS)


@pytest.fixture()
def client(fake_scraper):
    """
    Provide a FastAPI TestClient with retrieval replaced.

    The lifespan still runs, so startup/shutdown of the real scraper is covered.
    """
    from backend.api.main import app
    from backend.api.routers.product_compare import get_scraper, get_web_adapter

    app.dependency_overrides[get_scraper] = lambda: fake_scraper
    app.dependency_overrides[get_web_adapter] = lambda: InMemoryWebDataAdapter(BAGS)
    try:
        with TestClient(app) as c:
            yield c
    finally:
        app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Workbook factory
# ---------------------------------------------------------------------------

def create_export(rows: list[dict]) -> bytes:
    """Build a DB export (header row 3, data from row 4) and return its bytes."""
    columns = {
        "Materialkurztext": "C",
        "Her.-Artikelnummer": "E",
        "Fert./Prüfhinweis": "N",
        "Werkstoff": "P",
        "Nettogewicht": "S",
        "Gewichtseinheit": "T",
        "Länge": "U",
        "Breite": "V",
        "Höhe": "W",
        "A2V": "Z",
    }
    wb = Workbook()
    ws = wb.active
    for key, letter in columns.items():
        ws[f"{letter}3"] = key
    for offset, row in enumerate(rows):
        for key, value in row.items():
            ws[f"{columns[key]}{4 + offset}"] = value

    buffer = BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


@pytest.fixture()
def export_bytes():
    return create_export([
        {
            "A2V": "A2V00001234",
            "Materialkurztext": "Schraube M6",
            "Her.-Artikelnummer": "AB-123/45",
            "Fert./Prüfhinweis": "OHNE/N/N/N/N",
            "Werkstoff": "Stahl",
            "Nettogewicht": 0.162,
            "Gewichtseinheit": "KG",
            "Länge": 40,
            "Breite": 40,
            "Höhe": 42,
        },
        {"A2V": "A2V00009999", "Materialkurztext": "Unbekannt", "Nettogewicht": 1},
    ])

"""
Web Data Adapters - Bridge to catalog attribute sources.

The adapter pattern lets us swap implementations (live scraper for
production, JSON file or in-memory for testing) without changing
reconciliation logic.
"""

import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterable, Mapping, Optional

from .index import normalize_identifier
from .models import WebAttributes, WebBag
from .scraper import ProductScraper


class WebDataAdapter(ABC):
    """
    Abstract interface for catalog data access.

    Implementations return attributes for a batch of identifiers.
    The engine doesn't know or care where the data actually comes from.
    """

    @abstractmethod
    def get_attributes(self, identifiers: Iterable[str]) -> dict[str, WebAttributes]:
        """
        Fetch catalog attributes for identifiers.

        Args:
            identifiers: Business identifiers (duplicates allowed)

        Returns:
            Dict mapping normalized identifier -> WebAttributes. Identifiers
            the source knows nothing about may be absent.
        """
        pass


class InMemoryWebDataAdapter(WebDataAdapter):
    """
    In-memory adapter for programmatic test setup.

    Useful for unit tests where you want to control exact bags.
    """

    def __init__(self, bags: Optional[Mapping[str, WebBag]] = None):
        self._bags = {
            normalize_identifier(key): WebAttributes.from_bag(bag)
            for key, bag in (bags or {}).items()
        }
        self.requested: list[str] = []

    def get_attributes(self, identifiers: Iterable[str]) -> dict[str, WebAttributes]:
        result = {}
        for identifier in identifiers:
            key = normalize_identifier(identifier)
            self.requested.append(key)
            if key in self._bags:
                result[key] = self._bags[key]
        return result

    def add(self, identifier: str, bag: WebBag):
        self._bags[normalize_identifier(identifier)] = WebAttributes.from_bag(bag)


class JsonWebDataAdapter(InMemoryWebDataAdapter):
    """
    Loads attribute bags from a JSON file.

    JSON format expected (either form):
        {"A2V00001": {"Produkttitel": "...", "Gewicht": "0,162 kg", ...}, ...}
        [{"A2V": "A2V00001", "Produkttitel": "...", ...}, ...]
    """

    def __init__(self, data_path: str | Path):
        self._data_path = Path(data_path)
        if not self._data_path.exists():
            raise FileNotFoundError(f"Attribute file not found: {self._data_path}")

        with open(self._data_path, "r", encoding="utf-8") as f:
            data = json.load(f)

        if isinstance(data, list):
            bags = {}
            for bag in data:
                if not isinstance(bag, dict) or not bag.get("A2V"):
                    raise ValueError(f"Every bag in {self._data_path} needs an 'A2V' key")
                bags[bag["A2V"]] = bag
        elif isinstance(data, dict):
            bags = data
        else:
            raise ValueError(f"Unsupported attribute file layout in {self._data_path}")

        super().__init__(bags)


class ScraperWebDataAdapter(WebDataAdapter):
    """Production adapter: scrapes the vendor catalog."""

    def __init__(self, scraper: ProductScraper, concurrency: Optional[int] = None):
        self.scraper = scraper
        self.concurrency = concurrency

    def get_attributes(self, identifiers: Iterable[str]) -> dict[str, WebAttributes]:
        return self.scraper.scrape_many(identifiers, concurrency=self.concurrency)

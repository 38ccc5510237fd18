"""
Catalog Scraper - Fetch product attributes from the vendor catalog.

Per identifier:
1. HTTP GET of the product page
2. Embedded initialData JSON, if the page carries it
3. Otherwise attribute tables / definition lists in the HTML
4. On HTTP failure, optional headless-browser render of the same page

A failure never escapes scrape_one: the product gets empty attributes
with the error recorded in status, so one bad product cannot fail a batch.
"""

import json
import logging
import re
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Iterable, Optional

import requests
from bs4 import BeautifulSoup
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .config import CompareSettings
from .index import is_valid_identifier, normalize_identifier
from .models import FAILURE_PREFIX, WebAttributes

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

_INITIAL_DATA_RE = re.compile(
    r"window\.initialData\[['\"]product/dataProduct['\"]\]\s*=\s*(\{.*?\});\s*(?:</script>|$)",
    re.IGNORECASE | re.DOTALL,
)
TITLE_SUFFIX = " | MoBase"

# Resource types the browser fallback does not need to load
BLOCKED_RESOURCES = {"image", "stylesheet", "font", "media", "websocket", "other"}


class ScrapeError(RuntimeError):
    """Raised when a product page cannot be fetched or rendered."""
    pass


class ScrapeCache:
    """
    Thread-safe cache of scraped attributes keyed by normalized identifier.

    Owned by one ProductScraper; lives as long as its owner.
    """

    def __init__(self):
        self._items: dict[str, WebAttributes] = {}
        self._lock = threading.Lock()

    def get(self, identifier: str) -> Optional[WebAttributes]:
        with self._lock:
            return self._items.get(normalize_identifier(identifier))

    def set(self, identifier: str, attrs: WebAttributes) -> None:
        with self._lock:
            self._items[normalize_identifier(identifier)] = attrs

    def clear(self) -> None:
        with self._lock:
            self._items.clear()

    def __contains__(self, identifier: str) -> bool:
        with self._lock:
            return normalize_identifier(identifier) in self._items

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)


def create_session(user_agent: Optional[str] = None, total_retries: int = 3) -> requests.Session:
    """Session with browser-like headers and retry/backoff on transient errors."""
    session = requests.Session()
    session.headers.update(
        {
            "User-Agent": user_agent or DEFAULT_USER_AGENT,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": "de-DE,de;q=0.9,en-US;q=0.8,en;q=0.7",
        }
    )

    retry = Retry(
        total=total_retries,
        backoff_factor=0.7,
        status_forcelist=(429, 500, 502, 503, 504),
        allowed_methods=("GET", "HEAD"),
        raise_on_status=False,
        respect_retry_after_header=True,
    )
    adapter = HTTPAdapter(max_retries=retry)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    return session


# ---------------------------------------------------------------------------
# Page parsing
# ---------------------------------------------------------------------------

def extract_initial_data(html: str) -> Optional[dict]:
    """Return the product initialData object embedded in the page, if any."""
    match = _INITIAL_DATA_RE.search(html or "")
    if not match:
        return None
    try:
        data = json.loads(match.group(1))
    except json.JSONDecodeError:
        logger.debug("initialData present but not valid JSON")
        return None
    return data if isinstance(data, dict) else None


def _pick(attributes: dict[str, str], *needles: str) -> Optional[str]:
    """First value whose (lower-cased) key contains all needles."""
    for key, value in attributes.items():
        if all(n in key for n in needles):
            return value
    return None


def _join(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        parts = [str(v).strip() for v in value if v is not None and str(v).strip()]
        return ", ".join(parts) or None
    text = str(value).strip()
    return text or None


def map_initial_data(data: dict, identifier: str, url: str) -> Optional[WebAttributes]:
    """
    Map the initialData product object to WebAttributes.

    Technical specifications are key/value pairs; keys are matched by
    German fragments ("weitere" + "artikelnummer", "gewicht", ...).
    """
    payload = data.get("data")
    product = payload.get("product") if isinstance(payload, dict) else None
    if not isinstance(product, dict):
        return None

    localizations = product.get("localizations")
    specs = (localizations.get("technicalSpecifications") if isinstance(localizations, dict) else None) \
        or product.get("technicalSpecifications") or []
    if not isinstance(specs, list):
        specs = []
    spec_map: dict[str, str] = {}
    for item in specs:
        if not isinstance(item, dict):
            continue
        key = str(item.get("key") or "").strip().lower()
        if key and key not in spec_map:
            spec_map[key] = _join(item.get("value")) or ""

    part_number = _pick(spec_map, "weitere", "artikelnummer") \
        or _join(product.get("additionalMaterialNumbers")) \
        or _join(product.get("baseProductAdditionalMaterialNumbers"))

    weight = _pick(spec_map, "gewicht")
    if not weight and isinstance(product.get("weight"), (int, float)):
        weight = f"{str(product['weight']).replace('.', ',')} kg"

    return WebAttributes.from_bag({
        "A2V": product.get("code") or identifier,
        "URL": url,
        "Produkttitel": product.get("name"),
        "Weitere Artikelnummer": part_number,
        "Gewicht": weight,
        "Abmessung": _pick(spec_map, "abmess") or _pick(spec_map, "dimension"),
        "Werkstoff": _pick(spec_map, "werkstoff"),
        "Materialklassifizierung": _pick(spec_map, "material", "klass") or product.get("materialClassification"),
        "Status": "initialData JSON",
    })


def parse_attribute_tables(html: str) -> dict[str, str]:
    """Collect key/value pairs from table rows and definition lists."""
    soup = BeautifulSoup(html or "", "html.parser")
    attributes: dict[str, str] = {}

    def add(key: str, value: str):
        key = key.strip().lower()
        value = value.strip()
        if key and value and key not in attributes:
            attributes[key] = value

    for row in soup.select("table tr"):
        cells = row.find_all(["td", "th"])
        if len(cells) >= 2:
            add(cells[0].get_text(" ", strip=True), cells[1].get_text(" ", strip=True))

    for dl in soup.find_all("dl"):
        for dt, dd in zip(dl.find_all("dt"), dl.find_all("dd")):
            add(dt.get_text(" ", strip=True), dd.get_text(" ", strip=True))

    return attributes


def _material(attributes: dict[str, str]) -> Optional[str]:
    werkstoff = _pick(attributes, "werkstoff")
    if werkstoff:
        return werkstoff
    for key, value in attributes.items():
        if "material" in key and not any(n in key for n in ("klass", "class", "nummer", "number")):
            return value
    return None


def map_html(html: str, identifier: str, url: str, status: str = "HTTP-Parser") -> WebAttributes:
    """Map a product page without initialData using its attribute tables."""
    attributes = parse_attribute_tables(html)
    soup = BeautifulSoup(html or "", "html.parser")

    title_el = soup.select_one("h1, .product-title") or soup.find("title")
    title = title_el.get_text(" ", strip=True) if title_el else ""
    title = title.replace(TITLE_SUFFIX, "").strip()

    return WebAttributes.from_bag({
        "A2V": identifier,
        "URL": url,
        "Produkttitel": title,
        "Weitere Artikelnummer": _pick(attributes, "weitere", "artikelnummer")
        or _pick(attributes, "additional", "material", "number")
        or _pick(attributes, "part", "number"),
        "Gewicht": _pick(attributes, "gewicht") or _pick(attributes, "weight"),
        "Abmessung": _pick(attributes, "abmess") or _pick(attributes, "dimension"),
        "Werkstoff": _material(attributes),
        "Materialklassifizierung": _pick(attributes, "material", "klass") or _pick(attributes, "material", "class"),
        "Status": status,
    })


def parse_product_page(html: str, identifier: str, url: str, status: str = "HTTP-Parser") -> WebAttributes:
    """initialData when present, attribute tables otherwise."""
    data = extract_initial_data(html)
    if data is not None:
        try:
            attrs = map_initial_data(data, identifier, url)
        except (AttributeError, TypeError, ValueError) as e:
            logger.debug(f"{identifier}: unusable initialData ({e}), reading attribute tables")
            attrs = None
        if attrs is not None:
            return attrs
    return map_html(html, identifier, url, status=status)


# ---------------------------------------------------------------------------
# Browser fallback
# ---------------------------------------------------------------------------

def render_with_browser(url: str, timeout_ms: int, user_agent: str = DEFAULT_USER_AGENT) -> str:
    """Render a page in headless Chromium and return its HTML."""
    try:
        from playwright.sync_api import sync_playwright
    except ImportError as exc:
        raise ScrapeError(
            "Playwright is required for the browser fallback. "
            "Install with: pip install 'catalog-compare[browser]' && python -m playwright install chromium"
        ) from exc

    with sync_playwright() as p:
        browser = p.chromium.launch(
            headless=True,
            args=["--no-sandbox", "--disable-setuid-sandbox", "--disable-dev-shm-usage"],
        )
        try:
            context = browser.new_context(
                bypass_csp=True,
                viewport={"width": 1200, "height": 900},
                user_agent=user_agent,
            )
            context.route(
                "**/*",
                lambda route: route.abort()
                if route.request.resource_type in BLOCKED_RESOURCES
                else route.continue_(),
            )
            page = context.new_page()
            page.goto(url, wait_until="domcontentloaded", timeout=timeout_ms)
            return page.content()
        finally:
            browser.close()


# ---------------------------------------------------------------------------
# Scraper
# ---------------------------------------------------------------------------

class ProductScraper:
    """
    Scrapes catalog attributes for A2V identifiers.

    Results are cached per instance; create one scraper per batch or per
    application lifetime and pass it where needed.
    """

    def __init__(
        self,
        settings: Optional[CompareSettings] = None,
        session: Optional[requests.Session] = None,
        cache: Optional[ScrapeCache] = None,
    ):
        self.settings = settings or CompareSettings()
        self.session = session or create_session(total_retries=self.settings.request_retries)
        self.cache = cache if cache is not None else ScrapeCache()

    def product_url(self, identifier: str) -> str:
        return self.settings.product_url.format(identifier=normalize_identifier(identifier))

    def fetch_http(self, identifier: str) -> WebAttributes:
        """Fetch and parse the product page over plain HTTP."""
        url = self.product_url(identifier)
        try:
            response = self.session.get(url, timeout=self.settings.request_timeout_seconds)
            response.raise_for_status()
        except requests.RequestException as e:
            raise ScrapeError(f"HTTP fetch failed for {url}: {e}") from e
        return parse_product_page(response.text, identifier, url)

    def fetch_browser(self, identifier: str) -> WebAttributes:
        """Render the product page in a headless browser and parse it."""
        if self.settings.disable_browser:
            raise ScrapeError("Browser fallback disabled")
        url = self.product_url(identifier)
        try:
            html = render_with_browser(url, self.settings.nav_timeout_ms)
        except ScrapeError:
            raise
        except Exception as e:
            raise ScrapeError(f"Browser render failed for {url}: {e}") from e
        return parse_product_page(html, identifier, url, status="Playwright")

    def _fetch(self, key: str) -> WebAttributes:
        try:
            return self.fetch_http(key)
        except ScrapeError as http_error:
            logger.warning(f"{key}: {http_error}; trying browser fallback")
        return self.fetch_browser(key)

    def scrape_one(self, identifier: str) -> WebAttributes:
        """
        Scrape one product, using the cache.

        Raises:
            ValueError: If the identifier lacks the catalog prefix
        """
        key = normalize_identifier(identifier)
        if not is_valid_identifier(key, self.settings.identifier_prefix):
            raise ValueError(f"Only {self.settings.identifier_prefix} identifiers are allowed: {identifier!r}")

        cached = self.cache.get(key)
        if cached is not None:
            return cached

        try:
            attrs = self._fetch(key)
        except ScrapeError as e:
            logger.warning(f"{key}: {e}")
            attrs = WebAttributes(identifier=key, url=self.product_url(key), status=f"{FAILURE_PREFIX}: {e}")
        except Exception as e:
            logger.exception(f"{key}: unexpected scrape failure")
            attrs = WebAttributes(identifier=key, url=self.product_url(key), status=f"{FAILURE_PREFIX}: {e}")

        # Failures are retried on the next request
        if not attrs.is_failure:
            self.cache.set(key, attrs)
        return attrs

    def scrape_many(self, identifiers: Iterable[str], concurrency: Optional[int] = None) -> dict[str, WebAttributes]:
        """
        Scrape many products with bounded parallelism.

        Identifiers are normalized and deduplicated first; invalid ones
        are dropped.

        Returns:
            Dict mapping normalized identifier -> WebAttributes
        """
        prefix = self.settings.identifier_prefix
        unique = list(dict.fromkeys(
            normalize_identifier(i) for i in identifiers if is_valid_identifier(i, prefix)
        ))
        if not unique:
            return {}

        workers = max(1, concurrency if concurrency is not None else self.settings.scrape_concurrency)
        logger.info(f"Scraping {len(unique)} products with {workers} workers")

        with ThreadPoolExecutor(max_workers=workers) as pool:
            results = list(pool.map(self.scrape_one, unique))

        return dict(zip(unique, results))

    def close(self) -> None:
        """Release the HTTP session."""
        self.session.close()

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backend.api.models import HealthResponse
from backend.api.routers import product_compare_router
from backend.core.config import load_compare_config, settings
from catalog.product_compare import ProductScraper, __version__

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle - startup and shutdown."""
    # Startup: one scraper (and scrape cache) per application
    config = load_compare_config()
    app.state.scraper = ProductScraper(config.settings)
    logger.info(
        f"Scraper ready (concurrency={config.settings.scrape_concurrency}, "
        f"browser={'off' if config.settings.disable_browser else 'on'})"
    )

    yield  # Application runs here

    # Shutdown
    app.state.scraper.close()
    app.state.scraper = None


app = FastAPI(title="Catalog Product Compare", version=__version__, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(product_compare_router)


@app.get("/api/health", response_model=HealthResponse)
def health_check():
    return HealthResponse(ok=True, time=datetime.now(timezone.utc).isoformat())

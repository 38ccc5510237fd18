"""
Product compare API router.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import Response

from backend.api.models import ReconcileRequest, ReconcileResponse, VerdictModel
from backend.core.config import Settings, get_settings, load_compare_config

from catalog.product_compare import (
    Config,
    ProductScraper,
    ScraperWebDataAdapter,
    WebDataAdapter,
    process_workbook,
    reconcile_record,
    weight_policy_for,
)
from catalog.product_compare.engine import outcome_counts, summarize_verdicts

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Product Compare"])

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


# ============== Dependencies ==============

def get_compare_config() -> Config:
    """Layout and settings with environment overrides applied."""
    return load_compare_config()


def get_scraper(request: Request) -> ProductScraper:
    """The scraper created for the application lifespan."""
    scraper = getattr(request.app.state, "scraper", None)
    if scraper is None:
        raise HTTPException(status_code=503, detail="Scraper not initialized")
    return scraper


def get_web_adapter(scraper: ProductScraper = Depends(get_scraper)) -> WebDataAdapter:
    """Catalog attribute source for workbook processing."""
    return ScraperWebDataAdapter(scraper)


# ============== Endpoints ==============

@router.post("/api/process-excel")
async def process_excel(
    file: Optional[UploadFile] = File(None),
    adapter: WebDataAdapter = Depends(get_web_adapter),
    config: Config = Depends(get_compare_config),
    app_settings: Settings = Depends(get_settings),
):
    """
    Compare an uploaded DB export against the catalog.

    Returns the annotated workbook with a Web column per tracked field.
    """
    if file is None:
        raise HTTPException(status_code=400, detail="Bitte Excel-Datei hochladen (file).")

    content = await file.read()
    if not content:
        raise HTTPException(status_code=400, detail="Uploaded file is empty")
    if len(content) > app_settings.MAX_UPLOAD_MB * 1024 * 1024:
        raise HTTPException(status_code=400, detail=f"File exceeds {app_settings.MAX_UPLOAD_MB} MB")

    logger.info(f"Processing upload {file.filename} ({len(content)} bytes)")

    try:
        output, results = await run_in_threadpool(process_workbook, content, adapter, config)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception(f"Processing {file.filename} failed")
        raise HTTPException(status_code=500, detail=f"Processing failed: {str(e)}")

    summary = summarize_verdicts(results)
    filename = app_settings.OUTPUT_FILENAME
    return Response(
        content=output,
        media_type=XLSX_MEDIA_TYPE,
        headers={
            "Content-Disposition": f"attachment; filename=\"{filename}\"",
            "X-Compare-Records": str(summary["records"]),
            "X-Compare-Actionable": str(summary["actionable"]),
        }
    )


@router.get("/api/compare/scrape/{identifier}")
def scrape_identifier(identifier: str, scraper: ProductScraper = Depends(get_scraper)):
    """Scrape one product and return its attribute bag."""
    try:
        attrs = scraper.scrape_one(identifier)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return attrs.to_bag()


@router.post("/api/compare/reconcile", response_model=ReconcileResponse)
def reconcile(request: ReconcileRequest, config: Config = Depends(get_compare_config)):
    """Reconcile one DB record against a catalog bag without touching a workbook."""
    tolerance = request.weight_tolerance_percent
    if tolerance is None:
        tolerance = config.settings.weight_tolerance_percent

    verdicts = reconcile_record(
        request.db_record,
        request.web_bag,
        identifier=request.identifier,
        weight_policy=weight_policy_for(tolerance),
    )

    return ReconcileResponse(
        identifier=request.identifier,
        verdicts=[
            VerdictModel(
                field=v.field.value,
                outcome=v.outcome.name,
                color=v.outcome.value,
                db_value=v.db_value,
                web_value=v.web_value,
                reason=v.reason,
            )
            for v in verdicts
        ],
        counts=outcome_counts(verdicts),
    )

"""FastAPI application serving the portfolio API and dashboard.

Each page load mounts a server-side presenter that refetches the portfolio every
``refresh_interval_seconds``. The browser re-reads that presenter's rendered
fragment several times per interval, so what is on screen trails the last
refresh by at most ``fragment_refresh_ms``.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import List

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger
from fastapi import FastAPI, HTTPException, Request, Response, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.templating import Jinja2Templates

from .client import PortfolioClient, load_initial_portfolio
from .config import Settings
from .logging_utils import configure_logging
from .models import Holding
from .presenter import FETCH_ERROR_MESSAGE
from .quotes import generate_portfolio
from .views import ViewRegistry

configure_logging()

LOGGER = logging.getLogger(__name__)

settings = Settings.load()
portfolio_client = PortfolioClient(settings.api_base_url, timeout=settings.http_timeout_seconds)
templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent / "templates"))

scheduler = BackgroundScheduler()
SWEEP_JOB_ID = "view-sweep"
FRAGMENT_READS_PER_REFRESH = 5


def _poll_portfolio() -> List[Holding]:
    """Fetch used by every mounted view on each refresh tick."""

    return portfolio_client.fetch_portfolio()


def fragment_refresh_ms(refresh_interval_seconds: float) -> int:
    """Browser read cadence for a view's table fragment."""

    return max(int(refresh_interval_seconds * 1000) // FRAGMENT_READS_PER_REFRESH, 500)


views = ViewRegistry(
    scheduler,
    _poll_portfolio,
    interval_seconds=settings.refresh_interval_seconds,
    idle_timeout_seconds=settings.view_idle_timeout_seconds,
)

app = FastAPI(title="Portfolio Dashboard", default_response_class=HTMLResponse)


@app.on_event("startup")
async def startup_event() -> None:
    LOGGER.info("Starting portfolio dashboard")
    scheduler.add_job(
        views.sweep,
        trigger=IntervalTrigger(seconds=max(settings.view_idle_timeout_seconds / 2, 1.0)),
        id=SWEEP_JOB_ID,
        replace_existing=True,
    )
    if not scheduler.running:
        scheduler.start()
        LOGGER.info("Scheduler started")


@app.on_event("shutdown")
async def shutdown_event() -> None:
    views.close()
    if scheduler.running:
        scheduler.shutdown(wait=False)
        LOGGER.info("Scheduler shut down")


@app.get("/healthz", response_class=JSONResponse)
async def healthz() -> dict[str, bool]:
    return {"ok": True}


@app.get("/api/portfolio", response_class=JSONResponse)
async def portfolio_api() -> JSONResponse:
    try:
        portfolio = generate_portfolio(settings.seed_holdings)
        return JSONResponse({"portfolio": [holding.to_dict() for holding in portfolio]})
    except Exception:
        LOGGER.exception("Error processing portfolio data")
        return JSONResponse(
            {"error": "Failed to process portfolio data"},
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )


@app.get("/", response_class=HTMLResponse)
async def dashboard(request: Request) -> HTMLResponse:
    holdings = await run_in_threadpool(load_initial_portfolio, portfolio_client)
    view = views.mount(holdings)
    LOGGER.debug("Rendering dashboard view %s", view.view_id)
    return templates.TemplateResponse(
        request,
        "dashboard.html",
        {
            "view_id": view.view_id,
            "table_html": view.presenter.render(),
            "fragment_refresh_ms": fragment_refresh_ms(settings.refresh_interval_seconds),
            "refresh_error": FETCH_ERROR_MESSAGE,
        },
    )


@app.get("/views/{view_id}/table", response_class=HTMLResponse)
async def view_table(view_id: str) -> HTMLResponse:
    view = views.get(view_id)
    if view is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Unknown view")
    return HTMLResponse(view.presenter.render())


@app.delete("/views/{view_id}", status_code=status.HTTP_204_NO_CONTENT)
async def close_view(view_id: str) -> Response:
    if not views.unmount(view_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Unknown view")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


__all__ = ["app"]

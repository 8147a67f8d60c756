"""FastAPI main application."""
import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import BackgroundTasks, Depends, FastAPI, HTTPException, Response
from fastapi.security import APIKeyHeader
from pydantic import BaseModel, Field

from src.config import Config, config
from src.jobs.orchestrator import JobOrchestrator
from src.logging_conf import setup_logging
from src.parse.models import JobMode
from src.scrapers.registry import SCRAPERS
from src.store.supabase_store import SupabaseStore

logger = logging.getLogger(__name__)

app = FastAPI(title="Raffle Odds Scraper API", version="0.1.0")

# API Key security (if configured)
API_KEY_HEADER = APIKeyHeader(name="X-API-KEY", auto_error=False)

_orchestrator: Optional[JobOrchestrator] = None


def verify_api_key(api_key: str = Depends(API_KEY_HEADER)) -> bool:
    """Verify API key if configured."""
    expected_key = config.API_KEY
    if expected_key:
        if not api_key or api_key != expected_key:
            raise HTTPException(status_code=403, detail="Invalid API key")
    return True


def get_orchestrator() -> JobOrchestrator:
    """Process-wide orchestrator, created on first use."""
    global _orchestrator
    if _orchestrator is None:
        _orchestrator = JobOrchestrator(SupabaseStore())
    return _orchestrator


@app.on_event("shutdown")
async def shutdown():
    """Close the browser on shutdown."""
    if _orchestrator is not None:
        await _orchestrator.browser.close()


class RunRequest(BaseModel):
    """Request model for a scrape trigger."""
    site: Optional[str] = None
    concurrency: Optional[int] = Field(default=None, ge=1)


class RunResponse(BaseModel):
    """Response model for a trigger."""
    job: JobMode
    status: str
    message: str
    running_job: Optional[str] = None


@app.get("/health")
async def health(orchestrator: JobOrchestrator = Depends(get_orchestrator)):
    """Health check endpoint (no auth required)."""
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "store_connected": await orchestrator.store.test_connection(),
        "browser_running": orchestrator.browser.is_running,
    }


@app.get("/status")
async def status(
    _: bool = Depends(verify_api_key),
    orchestrator: JobOrchestrator = Depends(get_orchestrator),
):
    """Lock state and the last report of each job (requires API key if configured)."""
    return orchestrator.run_control.get_summary()


def _trigger(
    mode: JobMode,
    background_tasks: BackgroundTasks,
    response: Response,
    orchestrator: JobOrchestrator,
    request: Optional[RunRequest] = None,
) -> RunResponse:
    if request and request.site and request.site not in SCRAPERS:
        raise HTTPException(status_code=404, detail=f"Unknown site: {request.site}")

    control = orchestrator.run_control
    if control.is_running:
        logger.info(f"[API] {mode.value} request skipped, {control.current_job.value} is running")
        response.status_code = 200
        return RunResponse(
            job=mode,
            status="skipped",
            message="Another job is still running",
            running_job=control.current_job.value,
        )

    if mode == JobMode.CLEANUP:
        background_tasks.add_task(orchestrator.run_cleanup)
    else:
        run = orchestrator.run_full if mode == JobMode.FULL else orchestrator.run_quick
        background_tasks.add_task(
            run,
            site_slug=request.site if request else None,
            concurrency=request.concurrency if request else None,
        )
    logger.info(f"[API] {mode.value} job accepted")
    return RunResponse(job=mode, status="accepted", message=f"{mode.value} job started")


@app.post("/runs/full", response_model=RunResponse, status_code=202)
async def run_full(
    background_tasks: BackgroundTasks,
    response: Response,
    request: Optional[RunRequest] = None,
    _: bool = Depends(verify_api_key),
    orchestrator: JobOrchestrator = Depends(get_orchestrator),
):
    """Start a full scrape in the background."""
    return _trigger(JobMode.FULL, background_tasks, response, orchestrator, request)


@app.post("/runs/quick", response_model=RunResponse, status_code=202)
async def run_quick(
    background_tasks: BackgroundTasks,
    response: Response,
    request: Optional[RunRequest] = None,
    _: bool = Depends(verify_api_key),
    orchestrator: JobOrchestrator = Depends(get_orchestrator),
):
    """Start a quick update in the background."""
    return _trigger(JobMode.QUICK, background_tasks, response, orchestrator, request)


@app.post("/runs/cleanup", response_model=RunResponse, status_code=202)
async def run_cleanup(
    background_tasks: BackgroundTasks,
    response: Response,
    _: bool = Depends(verify_api_key),
    orchestrator: JobOrchestrator = Depends(get_orchestrator),
):
    """Start the expiry sweep in the background."""
    return _trigger(JobMode.CLEANUP, background_tasks, response, orchestrator)


if __name__ == "__main__":
    import uvicorn
    setup_logging()
    Config.validate()
    uvicorn.run(app, host=config.API_HOST, port=config.API_PORT)

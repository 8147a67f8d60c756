"""Long-running service: cron-style schedule for full, quick and cleanup jobs."""
import asyncio
import logging
import signal

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from src.config import config
from src.jobs.orchestrator import JobOrchestrator

logger = logging.getLogger(__name__)


def build_scheduler(orchestrator: JobOrchestrator) -> AsyncIOScheduler:
    """
    Register the periodic jobs on a scheduler that is not yet started.

    Schedule (London time):
        full_scrape   - every 3 hours on the hour
        quick_update  - every 10 minutes
        cleanup       - 03:00 every day

    Overlaps are resolved by the orchestrator's lock, not by the scheduler:
    a tick that lands while another job runs is logged and skipped.
    """
    scheduler = AsyncIOScheduler(timezone=config.TIMEZONE)

    scheduler.add_job(
        orchestrator.run_full,
        trigger="cron",
        hour="*/3",
        minute=0,
        id="full_scrape",
        name="Full scrape",
        replace_existing=True,
        coalesce=True,
        misfire_grace_time=600,
    )
    scheduler.add_job(
        orchestrator.run_quick,
        trigger="cron",
        minute="*/10",
        id="quick_update",
        name="Quick update",
        replace_existing=True,
        coalesce=True,
        misfire_grace_time=120,
    )
    scheduler.add_job(
        orchestrator.run_cleanup,
        trigger="cron",
        hour=3,
        minute=0,
        id="cleanup",
        name="Daily cleanup",
        replace_existing=True,
        coalesce=True,
        misfire_grace_time=3600,
    )
    return scheduler


async def run_service(orchestrator: JobOrchestrator, initial_full: bool = True) -> None:
    """Run until SIGINT/SIGTERM, then stop the scheduler and close the browser."""
    logger.info("=" * 60)
    logger.info("[Service] Raffle odds scraper service starting...")
    logger.info("=" * 60)

    stop = asyncio.Event()
    loop = asyncio.get_event_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
        except NotImplementedError:
            # Windows event loops have no signal handlers; Ctrl+C still raises KeyboardInterrupt
            pass

    await orchestrator.browser.ensure()
    if initial_full:
        logger.info("[Service] Running initial full scrape...")
        await orchestrator.run_full()

    scheduler = build_scheduler(orchestrator)
    scheduler.start()
    logger.info("[Service] Schedules active: full every 3h, quick every 10m, cleanup 03:00")

    try:
        await stop.wait()
        logger.info("[Service] Shutdown signal received; stopping scheduler")
    finally:
        scheduler.shutdown(wait=False)
        await orchestrator.browser.close()

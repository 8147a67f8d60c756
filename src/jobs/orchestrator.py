"""Job orchestrator: full scrape, quick update and cleanup across sources."""
import asyncio
import logging
import uuid
from typing import Optional

from src.browser.session import BrowserManager, close_with_timeout
from src.config import config
from src.jobs.metrics import Metrics
from src.jobs.run_control import RunControl
from src.parse.models import CleanupOutcome, JobMode, JobReport, RunOutcome, RunStatus, utcnow
from src.scrapers.base import BaseScraper
from src.scrapers.registry import SCRAPERS

logger = logging.getLogger(__name__)

MODE_LABELS = {
    JobMode.FULL: "FULL SCRAPE",
    JobMode.QUICK: "QUICK UPDATE",
    JobMode.CLEANUP: "CLEANUP",
}


def default_timeouts() -> dict[JobMode, float]:
    return {
        JobMode.FULL: config.FULL_JOB_TIMEOUT,
        JobMode.QUICK: config.QUICK_JOB_TIMEOUT,
        JobMode.CLEANUP: config.CLEANUP_JOB_TIMEOUT,
    }


class JobOrchestrator:
    """
    Runs scrapers against the shared browser and persists their results.

    ``store`` is a SupabaseStore or, for dry runs, a SpoolStore. Every source
    run ends in exactly one run log, whatever happened to it.
    """

    def __init__(
        self,
        store,
        browser: Optional[BrowserManager] = None,
        scrapers: Optional[dict[str, BaseScraper]] = None,
        run_control: Optional[RunControl] = None,
        timeouts: Optional[dict[JobMode, float]] = None,
        close_timeout: Optional[float] = None,
    ):
        self.store = store
        self.browser = browser or BrowserManager()
        self.scrapers = scrapers if scrapers is not None else SCRAPERS
        self.run_control = run_control or RunControl()
        self.timeouts = {**default_timeouts(), **(timeouts or {})}
        self.close_timeout = config.CLOSE_TIMEOUT if close_timeout is None else close_timeout

    # --- public jobs -------------------------------------------------

    async def run_full(self, site_slug: Optional[str] = None, concurrency: Optional[int] = None) -> Optional[JobReport]:
        return await self._run_scrape_job(JobMode.FULL, site_slug, concurrency)

    async def run_quick(self, site_slug: Optional[str] = None, concurrency: Optional[int] = None) -> Optional[JobReport]:
        return await self._run_scrape_job(JobMode.QUICK, site_slug, concurrency)

    async def run_cleanup(self) -> Optional[JobReport]:
        """Mark expired raffles drawn, then snapshot the live ones."""
        report = self._start(JobMode.CLEANUP)
        if report is None:
            return None
        try:
            timeout = self.timeouts[JobMode.CLEANUP]
            try:
                report.cleanup = await asyncio.wait_for(self._cleanup(), timeout=timeout)
            except asyncio.TimeoutError:
                logger.error(f"[Cleanup] Timed out after {timeout:g}s")
                report.cleanup = CleanupOutcome(error_message=f"Cleanup timed out after {timeout:g}s")
            except Exception as e:
                logger.error(f"[Cleanup] Error: {e}")
                report.cleanup = CleanupOutcome(error_message=str(e))
            return self._finish(report)
        finally:
            self.run_control.finish(report)

    # --- lock and banners --------------------------------------------

    def _start(self, mode: JobMode) -> Optional[JobReport]:
        run_id = str(uuid.uuid4())
        if not self.run_control.try_start(mode, run_id):
            return None
        logger.info("=" * 60)
        logger.info(f"[Orchestrator] Starting {MODE_LABELS[mode]} (run {run_id})")
        logger.info("=" * 60)
        return JobReport(run_id=run_id, mode=mode)

    def _finish(self, report: JobReport) -> JobReport:
        report.finished_at = utcnow()
        self._final_report(report)
        return report

    def _final_report(self, report: JobReport) -> None:
        """Log the job summary banner."""
        elapsed = (report.finished_at - report.started_at).total_seconds()
        logger.info("=" * 60)
        logger.info(f"{MODE_LABELS[report.mode]} REPORT")
        logger.info(f"Run ID: {report.run_id}")
        logger.info(f"Elapsed: {elapsed:.1f}s")
        for outcome in report.outcomes:
            line = (
                f"  {outcome.site_slug}: {outcome.status.value} | found {outcome.items_found} | "
                f"new {outcome.items_new} | updated {outcome.items_updated} | {outcome.duration_ms}ms"
            )
            if outcome.error_message:
                line += f" | {outcome.error_message[:200]}"
            logger.info(line)
        if report.cleanup is not None:
            logger.info(f"Marked drawn: {report.cleanup.marked_drawn}")
            logger.info(f"Snapshots: {report.cleanup.snapshots}")
            if report.cleanup.error_message:
                logger.info(f"Error: {report.cleanup.error_message}")
        if report.totals:
            logger.info(
                f"Totals: found {report.totals['items_found']} | new {report.totals['items_new']} | "
                f"updated {report.totals['items_updated']} | {report.totals['rate']:.2f} items/s"
            )
        if report.browser_recycled:
            logger.info("Browser recycled after a timeout")
        logger.info("=" * 60)

    # --- scrape jobs -------------------------------------------------

    async def _select_scrapers(self, site_slug: Optional[str]) -> list[BaseScraper]:
        active = await self.store.active_site_slugs()
        selected = [scraper for slug, scraper in self.scrapers.items() if slug in active]
        if site_slug:
            selected = [scraper for scraper in selected if scraper.site_slug == site_slug]
        return selected

    async def _run_scrape_job(
        self,
        mode: JobMode,
        site_slug: Optional[str],
        concurrency: Optional[int],
    ) -> Optional[JobReport]:
        report = self._start(mode)
        if report is None:
            return None
        try:
            scrapers = await self._select_scrapers(site_slug)
            if not scrapers:
                logger.info("[Orchestrator] No active scrapers to run.")
                return self._finish(report)

            width = max(1, concurrency or config.CONCURRENCY)
            logger.info(
                f"[Orchestrator] Running {len(scrapers)} scraper(s) {width} at a time: "
                f"{', '.join(scraper.name for scraper in scrapers)}"
            )
            metrics = Metrics(len(scrapers))

            for i in range(0, len(scrapers), width):
                batch = scrapers[i : i + width]
                outcomes = await asyncio.gather(*(self._run_source(mode, scraper, report) for scraper in batch))
                for outcome in outcomes:
                    metrics.record_outcome(outcome)
                    report.outcomes.append(outcome)
                metrics.report()

            report.totals = metrics.get_summary()
            return self._finish(report)
        finally:
            self.run_control.finish(report)

    async def _run_source(self, mode: JobMode, scraper: BaseScraper, report: JobReport) -> RunOutcome:
        """
        One source under the job timeout. Never raises; always logs the run.

        On timeout the browser is discarded before the stuck task is
        cancelled: its cleanup would otherwise wait on the hung process.
        """
        timeout = self.timeouts[mode]
        task = asyncio.create_task(self._scrape_source(mode, scraper))
        try:
            done, _ = await asyncio.wait({task}, timeout=timeout)
        except asyncio.CancelledError:
            task.cancel()
            raise

        if not done:
            logger.error(f"[{scraper.name}] {MODE_LABELS[mode].lower()} timed out after {timeout:g}s, recycling browser")
            await self.browser.discard()
            report.browser_recycled = True
            await self._abandon(task, scraper)
            outcome = self._failed(mode, scraper, f"Job timed out after {timeout:g}s")
        elif task.exception() is not None:
            logger.error(f"[{scraper.name}] Fatal error: {task.exception()}")
            outcome = self._failed(mode, scraper, str(task.exception()))
        else:
            outcome = task.result()

        await self.store.log_run(scraper.site_slug, outcome)
        return outcome

    async def _abandon(self, task: asyncio.Task, scraper: BaseScraper) -> None:
        """Cancel a timed-out source and give its cleanup a bounded grace period."""
        task.cancel()
        grace = self.close_timeout + 1
        done, _ = await asyncio.wait({task}, timeout=grace)
        if not done:
            logger.warning(f"[{scraper.name}] Cancelled task still running after {grace:g}s; left behind")
        elif not task.cancelled() and task.exception() is not None:
            logger.debug(f"[{scraper.name}] Cancelled task ended with: {task.exception()}")

    @staticmethod
    def _failed(mode: JobMode, scraper: BaseScraper, message: str) -> RunOutcome:
        return RunOutcome(
            site_slug=scraper.site_slug,
            mode=mode,
            status=RunStatus.FAILED,
            error_message=message,
            duration_ms=0,
        )

    async def _scrape_source(self, mode: JobMode, scraper: BaseScraper) -> RunOutcome:
        context = await self.browser.new_context()
        try:
            if mode == JobMode.QUICK:
                return await self._quick_source(scraper, context)
            return await self._full_source(scraper, context)
        finally:
            await close_with_timeout(context, self.close_timeout, label=scraper.name)

    async def _full_source(self, scraper: BaseScraper, context) -> RunOutcome:
        logger.info(f"[{scraper.name}] Starting full scrape...")
        result = await scraper.scrape(context)
        logger.info(f"[{scraper.name}] Found {len(result.raffles)} raffles in {result.duration_ms}ms")
        if result.errors:
            logger.warning(f"[{scraper.name}] Errors: {result.errors}")

        if not result.raffles:
            return RunOutcome(
                site_slug=scraper.site_slug,
                mode=JobMode.FULL,
                status=RunStatus.FAILED,
                error_message="; ".join(result.errors) or "No raffles found",
                duration_ms=result.duration_ms,
            )

        items_new, items_updated = await self.store.persist_full(result)
        logger.info(f"[{scraper.name}] Persisted: {items_new} new, {items_updated} updated")
        return RunOutcome(
            site_slug=scraper.site_slug,
            mode=JobMode.FULL,
            status=RunStatus.PARTIAL if result.errors else RunStatus.SUCCESS,
            items_found=len(result.raffles),
            items_new=items_new,
            items_updated=items_updated,
            error_message="; ".join(result.errors) or None,
            duration_ms=result.duration_ms,
        )

    async def _quick_source(self, scraper: BaseScraper, context) -> RunOutcome:
        logger.info(f"[{scraper.name}] Starting quick update...")
        result = await scraper.quick_update(context)
        logger.info(f"[{scraper.name}] Quick update found {len(result.updates)} updates in {result.duration_ms}ms")
        if result.errors:
            logger.warning(f"[{scraper.name}] Errors: {result.errors}")

        updated = await self.store.persist_quick(result) if result.updates else 0
        if result.fatal and not result.updates:
            status = RunStatus.FAILED
        else:
            status = RunStatus.PARTIAL if result.errors else RunStatus.SUCCESS
        return RunOutcome(
            site_slug=scraper.site_slug,
            mode=JobMode.QUICK,
            status=status,
            items_found=len(result.updates),
            items_updated=updated,
            error_message="; ".join(result.errors) or None,
            duration_ms=result.duration_ms,
        )

    async def _cleanup(self) -> CleanupOutcome:
        marked = await self.store.mark_expired_drawn()
        snapshots = await self.store.write_snapshots()
        return CleanupOutcome(marked_drawn=marked, snapshots=snapshots)

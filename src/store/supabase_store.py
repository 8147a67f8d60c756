"""Supabase persistence for raffles, run logs and snapshots."""
import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from supabase import Client, create_client
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from src.config import config
from src.parse.models import QuickUpdateResult, RunOutcome, ScraperResult
from src.store.records import (
    LIVE_STATUSES,
    RAFFLES_TABLE,
    SCRAPE_LOGS_TABLE,
    SITES_TABLE,
    SNAPSHOTS_TABLE,
    build_quick_update_row,
    build_record_row,
    build_run_log_row,
    build_snapshot_row,
)

logger = logging.getLogger(__name__)


class SiteNotFoundError(Exception):
    """No row in the sites table for a registered scraper slug."""


class SupabaseStore:
    """
    Writes scrape results to Supabase.

    The supabase client is synchronous; every call runs in the default
    thread pool. Each single write is retried by tenacity; a write that still
    fails is logged and the rest of the batch continues.
    """

    def __init__(
        self,
        client: Optional[Client] = None,
        retry_attempts: int = 3,
        retry_backoff: float = 1.0,
    ):
        if client is None:
            if not config.SUPABASE_URL or not config.SUPABASE_SERVICE_ROLE_KEY:
                raise ValueError("Supabase configuration missing")
            client = create_client(config.SUPABASE_URL, config.SUPABASE_SERVICE_ROLE_KEY)
        self.client: Client = client
        self._retrying = Retrying(
            stop=stop_after_attempt(retry_attempts),
            wait=wait_exponential(multiplier=retry_backoff, min=2 * retry_backoff, max=10),
            retry=retry_if_exception_type((Exception,)),
            reraise=True,
        )
        self._site_ids: dict[str, str] = {}

    async def _run(self, fn: Callable[[], Any]) -> Any:
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(None, fn)

    async def _write(self, fn: Callable[[], Any]) -> Any:
        """Run a write in the thread pool with retries."""
        return await self._run(lambda: self._retrying(fn))

    # --- sites -------------------------------------------------------

    async def active_site_slugs(self) -> set[str]:
        response = await self._run(
            lambda: self.client.table(SITES_TABLE).select("slug").eq("active", True).execute()
        )
        return {row["slug"] for row in (response.data or [])}

    async def site_id_for(self, slug: str) -> str:
        """Site id for a slug, cached per store instance."""
        if slug in self._site_ids:
            return self._site_ids[slug]
        response = await self._run(
            lambda: self.client.table(SITES_TABLE).select("id").eq("slug", slug).limit(1).execute()
        )
        rows = response.data or []
        if not rows:
            raise SiteNotFoundError(f'Site not found for slug "{slug}"')
        self._site_ids[slug] = rows[0]["id"]
        return self._site_ids[slug]

    # --- raffles -----------------------------------------------------

    def _existing_id_sync(self, site_id: str, external_id: str) -> Optional[str]:
        response = (
            self.client.table(RAFFLES_TABLE)
            .select("id")
            .eq("site_id", site_id)
            .eq("external_id", external_id)
            .limit(1)
            .execute()
        )
        rows = response.data or []
        return rows[0]["id"] if rows else None

    async def persist_full(self, result: ScraperResult, now: Optional[datetime] = None) -> tuple[int, int]:
        """Insert or update every persistable raffle. Returns (new, updated)."""
        site_id = await self.site_id_for(result.site_slug)
        now = now or datetime.now(timezone.utc)
        items_new = 0
        items_updated = 0

        for raffle in result.raffles:
            row = build_record_row(raffle, site_id, now)
            if row is None:
                logger.debug(f"[SUPABASE_WRITE] Skipping {raffle.external_id}: no positive ticket price")
                continue
            try:
                existing_id = await self._write(lambda: self._existing_id_sync(site_id, raffle.external_id))
                if existing_id:
                    await self._write(
                        lambda: self.client.table(RAFFLES_TABLE).update(row).eq("id", existing_id).execute()
                    )
                    items_updated += 1
                else:
                    await self._write(lambda: self.client.table(RAFFLES_TABLE).insert(row).execute())
                    items_new += 1
            except Exception as e:
                logger.error(f"[SUPABASE_WRITE] Failed to persist {result.site_slug}/{raffle.external_id}: {e}")

        logger.info(
            f"[SUPABASE_WRITE] {result.site_slug}: {items_new} new, {items_updated} updated "
            f"of {len(result.raffles)} scraped"
        )
        return items_new, items_updated

    async def persist_quick(self, result: QuickUpdateResult, now: Optional[datetime] = None) -> int:
        """Update volatile fields of existing raffles; never inserts."""
        site_id = await self.site_id_for(result.site_slug)
        now = now or datetime.now(timezone.utc)
        updated = 0

        for update in result.updates:
            row = build_quick_update_row(update, now)
            try:
                response = await self._write(
                    lambda: self.client.table(RAFFLES_TABLE)
                    .update(row)
                    .eq("site_id", site_id)
                    .eq("external_id", update.external_id)
                    .execute()
                )
            except Exception as e:
                logger.error(f"[SUPABASE_WRITE] Quick update failed for {result.site_slug}/{update.external_id}: {e}")
                continue
            if response.data:
                updated += 1

        logger.info(f"[SUPABASE_WRITE] {result.site_slug}: quick-updated {updated}/{len(result.updates)}")
        return updated

    # --- run logs ----------------------------------------------------

    async def log_run(self, slug: str, outcome: RunOutcome) -> None:
        """Append one scrape_logs row. Failures are logged, never raised."""
        try:
            site_id = await self.site_id_for(slug)
            row = build_run_log_row(site_id, outcome)
            await self._write(lambda: self.client.table(SCRAPE_LOGS_TABLE).insert(row).execute())
        except Exception as e:
            logger.error(f"[SUPABASE_WRITE] Failed to write run log for {slug}: {e}")

    # --- cleanup -----------------------------------------------------

    async def mark_expired_drawn(self, now: Optional[datetime] = None) -> int:
        """Mark live raffles whose end date has passed as drawn."""
        now = now or datetime.now(timezone.utc)
        response = await self._write(
            lambda: self.client.table(RAFFLES_TABLE)
            .update({"status": "drawn"})
            .lt("end_date", now.isoformat())
            .in_("status", list(LIVE_STATUSES))
            .execute()
        )
        count = len(response.data or [])
        logger.info(f"[Cleanup] Marked {count} raffles as drawn")
        return count

    async def write_snapshots(self, now: Optional[datetime] = None) -> int:
        """One raffle_snapshots row per live raffle."""
        response = await self._run(
            lambda: self.client.table(RAFFLES_TABLE)
            .select("id, tickets_sold, percent_sold, ticket_price")
            .in_("status", list(LIVE_STATUSES))
            .execute()
        )
        rows = [build_snapshot_row(row, now) for row in (response.data or [])]
        if not rows:
            return 0
        await self._write(lambda: self.client.table(SNAPSHOTS_TABLE).insert(rows).execute())
        logger.info(f"[Cleanup] Saved {len(rows)} snapshots")
        return len(rows)

    async def test_connection(self) -> bool:
        """Test Supabase connection."""
        try:
            await self._run(
                lambda: self.client.table(SITES_TABLE).select("id", count="exact").limit(1).execute()
            )
            logger.info("Supabase connection successful")
            return True
        except Exception as e:
            logger.error(f"Supabase connection test failed: {e}")
            return False

"""JSONL spool store for dry runs: same interface as SupabaseStore, no database."""
import logging
from datetime import datetime, timezone
from itertools import count
from pathlib import Path
from typing import Any, Iterable, Optional

import aiofiles
import orjson

from src.config import SPOOL_DIR
from src.parse.models import QuickUpdateResult, RunOutcome, ScraperResult
from src.store.records import (
    LIVE_STATUSES,
    RAFFLES_TABLE,
    SCRAPE_LOGS_TABLE,
    SNAPSHOTS_TABLE,
    build_quick_update_row,
    build_record_row,
    build_run_log_row,
    build_snapshot_row,
)

logger = logging.getLogger(__name__)


class SpoolStore:
    """
    Appends every would-be write to ``<spool_dir>/<table>.jsonl``.

    Rows are also kept in memory keyed by (site, external id) so repeated
    runs in one process report updates instead of inserts, and cleanup has
    something to sweep. Every known slug counts as an active site; the slug
    doubles as the site id.
    """

    def __init__(self, slugs: Iterable[str], spool_dir: Path = SPOOL_DIR):
        self.slugs = set(slugs)
        self.spool_dir = spool_dir
        self.spool_dir.mkdir(parents=True, exist_ok=True)
        self.rows: dict[tuple[str, str], dict[str, Any]] = {}
        self._ids = count(1)

    def _get_spool_file(self, table: str) -> Path:
        return self.spool_dir / f"{table}.jsonl"

    async def _append(self, table: str, rows: list[dict[str, Any]]) -> None:
        if not rows:
            return
        async with aiofiles.open(self._get_spool_file(table), "ab") as f:
            for row in rows:
                await f.write(orjson.dumps(row) + b"\n")

    async def read_table(self, table: str) -> list[dict]:
        """Read back every row spooled for a table."""
        spool_file = self._get_spool_file(table)
        if not spool_file.exists():
            return []

        records = []
        async with aiofiles.open(spool_file, "rb") as f:
            async for line in f:
                try:
                    records.append(orjson.loads(line))
                except orjson.JSONDecodeError as e:
                    logger.warning(f"Error reading spool line: {e}")
        return records

    async def active_site_slugs(self) -> set[str]:
        return set(self.slugs)

    async def site_id_for(self, slug: str) -> str:
        return slug

    async def persist_full(self, result: ScraperResult, now: Optional[datetime] = None) -> tuple[int, int]:
        site_id = await self.site_id_for(result.site_slug)
        now = now or datetime.now(timezone.utc)
        items_new = items_updated = 0
        written = []

        for raffle in result.raffles:
            row = build_record_row(raffle, site_id, now)
            if row is None:
                continue
            key = (site_id, raffle.external_id)
            existing = self.rows.get(key)
            if existing:
                row["id"] = existing["id"]
                items_updated += 1
            else:
                row["id"] = next(self._ids)
                items_new += 1
            self.rows[key] = row
            written.append(row)

        await self._append(RAFFLES_TABLE, written)
        logger.info(f"[SPOOL] {result.site_slug}: {items_new} new, {items_updated} updated")
        return items_new, items_updated

    async def persist_quick(self, result: QuickUpdateResult, now: Optional[datetime] = None) -> int:
        site_id = await self.site_id_for(result.site_slug)
        written = []
        for update in result.updates:
            existing = self.rows.get((site_id, update.external_id))
            if existing is None:
                continue
            changes = build_quick_update_row(update, now)
            existing.update(changes)
            written.append({"site_id": site_id, "external_id": update.external_id, **changes})

        await self._append(RAFFLES_TABLE, written)
        logger.info(f"[SPOOL] {result.site_slug}: quick-updated {len(written)}/{len(result.updates)}")
        return len(written)

    async def log_run(self, slug: str, outcome: RunOutcome) -> None:
        await self._append(SCRAPE_LOGS_TABLE, [build_run_log_row(slug, outcome)])

    async def mark_expired_drawn(self, now: Optional[datetime] = None) -> int:
        now = now or datetime.now(timezone.utc)
        marked = 0
        for row in self.rows.values():
            end_date = row.get("end_date")
            if row["status"] in LIVE_STATUSES and end_date and datetime.fromisoformat(end_date) < now:
                row["status"] = "drawn"
                marked += 1
        logger.info(f"[Cleanup] Marked {marked} raffles as drawn")
        return marked

    async def write_snapshots(self, now: Optional[datetime] = None) -> int:
        rows = [build_snapshot_row(row, now) for row in self.rows.values() if row["status"] in LIVE_STATUSES]
        await self._append(SNAPSHOTS_TABLE, rows)
        logger.info(f"[Cleanup] Saved {len(rows)} snapshots")
        return len(rows)

    async def test_connection(self) -> bool:
        return self.spool_dir.is_dir()

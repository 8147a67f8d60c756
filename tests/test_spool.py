"""Tests for the dry-run spool store."""
from datetime import timedelta

import pytest

from src.parse.models import JobMode, QuickUpdate, QuickUpdateResult, RunOutcome, RunStatus, ScrapedRaffle, ScraperResult
from src.store.records import RAFFLES_TABLE, SCRAPE_LOGS_TABLE, SNAPSHOTS_TABLE
from src.store.spool import SpoolStore


@pytest.fixture
def spool(tmp_path):
    return SpoolStore(["botb", "rev-comps"], spool_dir=tmp_path / "spool")


def result(*external_ids, end_date=None) -> ScraperResult:
    return ScraperResult(
        site_name="BOTB",
        site_slug="botb",
        raffles=[
            ScrapedRaffle(
                external_id=external_id,
                title=f"Win a Rolex {external_id}",
                source_url=f"https://www.botb.com/{external_id}",
                ticket_price=99,
                end_date=end_date,
            )
            for external_id in external_ids
        ],
    )


async def test_every_slug_is_active(spool):
    assert await spool.active_site_slugs() == {"botb", "rev-comps"}
    assert await spool.site_id_for("botb") == "botb"
    assert await spool.test_connection() is True


async def test_persist_is_idempotent(spool, now):
    assert await spool.persist_full(result("a", "b"), now) == (2, 0)
    assert await spool.persist_full(result("a"), now) == (0, 1)
    assert len(spool.rows) == 2

    spooled = await spool.read_table(RAFFLES_TABLE)
    assert [row["external_id"] for row in spooled] == ["a", "b", "a"]
    assert spooled[0]["id"] == spooled[2]["id"]


async def test_quick_update_only_touches_known_rows(spool, now):
    await spool.persist_full(result("a"), now)
    quick = QuickUpdateResult(
        site_name="BOTB",
        site_slug="botb",
        updates=[QuickUpdate(external_id="a", percent_sold=80), QuickUpdate(external_id="zzz", percent_sold=5)],
    )
    assert await spool.persist_quick(quick, now) == 1
    assert spool.rows[("botb", "a")]["percent_sold"] == 80
    assert ("botb", "zzz") not in spool.rows


async def test_run_log_is_spooled(spool):
    outcome = RunOutcome(site_slug="botb", mode=JobMode.FULL, status=RunStatus.FAILED, error_message="boom")
    await spool.log_run("botb", outcome)
    logs = await spool.read_table(SCRAPE_LOGS_TABLE)
    assert len(logs) == 1
    assert logs[0]["error_message"] == "boom"


async def test_cleanup(spool, now):
    await spool.persist_full(result("old", end_date=now - timedelta(hours=1)), now)
    await spool.persist_full(result("live", end_date=now + timedelta(days=3)), now)

    assert await spool.mark_expired_drawn(now) == 1
    assert spool.rows[("botb", "old")]["status"] == "drawn"
    assert await spool.write_snapshots(now) == 1
    snapshots = await spool.read_table(SNAPSHOTS_TABLE)
    assert snapshots[0]["raffle_id"] == spool.rows[("botb", "live")]["id"]


async def test_read_missing_table(spool):
    assert await spool.read_table("nothing") == []

"""Tests for building raffles, snapshot and run-log rows."""
from datetime import timedelta

import pytest

from src.parse.models import JobMode, QuickUpdate, RaffleStatus, RunOutcome, RunStatus, ScrapedRaffle
from src.store.records import (
    build_quick_update_row,
    build_record_row,
    build_run_log_row,
    build_snapshot_row,
    clamp_percent,
)

BMW_TITLE = "Win this 2024 BMW M2 & £2,000 or £52,000 Tax Free"


def make_raffle(**overrides) -> ScrapedRaffle:
    fields = {
        "external_id": "bmw-m2",
        "title": BMW_TITLE,
        "source_url": "https://example.co.uk/competition/bmw-m2",
        "ticket_price": 500,
        "total_tickets": 50000,
    }
    fields.update(overrides)
    return ScrapedRaffle(**fields)


def test_full_row_for_car_with_title_cash(now):
    row = build_record_row(make_raffle(percent_sold=40, end_date=now + timedelta(hours=30)), "site-1", now)

    assert row["site_id"] == "site-1"
    assert row["prize_type"] == "car"
    assert row["car_category"] == "performance"
    assert row["additional_cash"] == 200_000
    assert row["cash_alternative"] == 5_200_000
    assert row["odds_ratio"] == 50000
    assert row["value_per_pound"] == 10400
    assert row["expected_value"] == pytest.approx(0.208)
    assert row["status"] == "ending_soon"
    assert row["end_date"] == (now + timedelta(hours=30)).isoformat()
    assert row["last_scraped_at"] == now.isoformat()


def test_scraped_cash_wins_over_title(now):
    row = build_record_row(make_raffle(cash_alternative=4_000_000), "site-1", now)
    assert row["cash_alternative"] == 4_000_000
    assert row["additional_cash"] == 200_000


def test_unpriced_and_free_raffles_are_not_rows(now):
    assert build_record_row(make_raffle(ticket_price=None), "site-1", now) is None
    assert build_record_row(make_raffle(ticket_price=0), "site-1", now) is None


def test_sold_out(now):
    row = build_record_row(make_raffle(percent_sold=100, end_date=now + timedelta(hours=2)), "site-1", now)
    assert row["status"] == RaffleStatus.SOLD_OUT.value


def test_reported_percent_is_clamped(now):
    row = build_record_row(make_raffle(percent_sold=120), "site-1", now)
    assert row["percent_sold"] == 100
    assert row["status"] == "sold_out"


def test_percent_computed_when_not_reported(now):
    row = build_record_row(make_raffle(total_tickets=1000, tickets_sold=250), "site-1", now)
    assert row["percent_sold"] == 25
    assert row["tickets_remaining"] == 750
    assert row["status"] == "active"


def test_non_vehicle_has_no_category(now):
    row = build_record_row(make_raffle(title="Rolex Submariner Date"), "site-1", now)
    assert row["prize_type"] == "watch"
    assert row["car_category"] is None


def test_clamp_percent():
    assert clamp_percent(-5) == 0
    assert clamp_percent(55.5) == 55.5
    assert clamp_percent(None) is None


def test_quick_update_row_only_has_present_fields(now):
    assert build_quick_update_row(QuickUpdate(external_id="x"), now) == {"last_scraped_at": now.isoformat()}
    row = build_quick_update_row(
        QuickUpdate(external_id="x", percent_sold=101, ticket_price=0, status=RaffleStatus.SOLD_OUT), now
    )
    assert row == {"last_scraped_at": now.isoformat(), "percent_sold": 100, "status": "sold_out"}


def test_snapshot_row(now):
    row = build_snapshot_row({"id": "r-1", "tickets_sold": 10, "percent_sold": 1.0, "ticket_price": 99}, now)
    assert row == {
        "raffle_id": "r-1",
        "tickets_sold": 10,
        "percent_sold": 1.0,
        "ticket_price": 99,
        "snapshot_at": now.isoformat(),
    }


def test_run_log_row(now):
    outcome = RunOutcome(
        site_slug="botb",
        mode=JobMode.FULL,
        status=RunStatus.PARTIAL,
        items_found=3,
        items_new=2,
        items_updated=1,
        error_message="x: timed out",
        duration_ms=1500,
        completed_at=now,
    )
    row = build_run_log_row("site-botb", outcome)
    assert row["status"] == "partial"
    assert row["started_at"] == (now - timedelta(milliseconds=1500)).isoformat()
    assert row["completed_at"] == now.isoformat()
    assert (row["items_found"], row["items_new"], row["items_updated"]) == (3, 2, 1)

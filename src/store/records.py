"""Normalize scraped competitions into raffles table rows."""
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from src.config import config
from src.parse.classify import classify_prize_type, vehicle_category_for
from src.parse.models import QuickUpdate, ScrapedRaffle
from src.parse.odds import calculate_raffle_metrics, derive_status
from src.parse.text import parse_cash_from_title

RAFFLES_TABLE = "raffles"
SITES_TABLE = "sites"
SCRAPE_LOGS_TABLE = "scrape_logs"
SNAPSHOTS_TABLE = "raffle_snapshots"

LIVE_STATUSES = ("active", "ending_soon")


def clamp_percent(percent: Optional[float]) -> Optional[float]:
    if percent is None:
        return None
    return min(max(float(percent), 0.0), 100.0)


def is_persistable(raffle: ScrapedRaffle) -> bool:
    """Only paid competitions with a known ticket price are stored."""
    return raffle.ticket_price is not None and raffle.ticket_price > 0


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def build_record_row(
    raffle: ScrapedRaffle,
    site_id: str,
    now: Optional[datetime] = None,
) -> Optional[dict[str, Any]]:
    """
    Classify, derive metrics and build the row for one raffle.

    Returns None when the raffle must not be persisted. A reported percent
    sold wins over the computed one; either way it is clamped to [0, 100]
    and drives the status.
    """
    if not is_persistable(raffle):
        return None

    now = now or datetime.now(timezone.utc)
    window = timedelta(hours=config.ENDING_SOON_HOURS)

    prize_type = classify_prize_type(raffle.title)
    car_category = vehicle_category_for(prize_type, raffle.title, raffle.car_make, raffle.car_model)

    title_cash = parse_cash_from_title(raffle.title)
    cash_alternative = raffle.cash_alternative if raffle.cash_alternative is not None else title_cash.cash_alternative
    additional_cash = raffle.additional_cash if raffle.additional_cash is not None else title_cash.additional_cash

    metrics = calculate_raffle_metrics(
        prize_value=raffle.prize_value,
        cash_alternative=cash_alternative,
        total_tickets=raffle.total_tickets,
        ticket_price=raffle.ticket_price,
        tickets_sold=raffle.tickets_sold,
        end_date=raffle.end_date,
        now=now,
        ending_soon_window=window,
    )
    percent_sold = clamp_percent(
        raffle.percent_sold if raffle.percent_sold is not None else metrics["percent_sold"]
    )
    status = derive_status(percent_sold, raffle.end_date, now, window)

    return {
        "site_id": site_id,
        "external_id": raffle.external_id,
        "title": raffle.title,
        "prize_type": prize_type.value,
        "car_make": raffle.car_make or None,
        "car_model": raffle.car_model or None,
        "car_year": raffle.car_year or None,
        "car_variant": raffle.car_variant or None,
        "car_category": car_category.value if car_category else None,
        "prize_value": raffle.prize_value or None,
        "cash_alternative": cash_alternative,
        "additional_cash": additional_cash,
        "image_url": raffle.image_url or None,
        "source_url": raffle.source_url,
        "ticket_price": raffle.ticket_price,
        "total_tickets": raffle.total_tickets or None,
        "tickets_sold": raffle.tickets_sold,
        "tickets_remaining": metrics["tickets_remaining"],
        "percent_sold": percent_sold,
        "odds_ratio": metrics["odds_ratio"],
        "value_per_pound": metrics["value_per_pound"],
        "expected_value": metrics["expected_value"],
        "end_date": _iso(raffle.end_date),
        "draw_type": raffle.draw_type or None,
        "status": status.value,
        "last_scraped_at": now.isoformat(),
    }


def build_quick_update_row(update: QuickUpdate, now: Optional[datetime] = None) -> dict[str, Any]:
    """Volatile fields only; absent values leave the stored ones alone."""
    now = now or datetime.now(timezone.utc)
    row: dict[str, Any] = {"last_scraped_at": now.isoformat()}
    if update.percent_sold is not None:
        row["percent_sold"] = clamp_percent(update.percent_sold)
    if update.ticket_price is not None and update.ticket_price > 0:
        row["ticket_price"] = update.ticket_price
    if update.status is not None:
        row["status"] = update.status.value
    return row


def build_snapshot_row(raffle_row: dict[str, Any], now: Optional[datetime] = None) -> dict[str, Any]:
    now = now or datetime.now(timezone.utc)
    return {
        "raffle_id": raffle_row["id"],
        "tickets_sold": raffle_row.get("tickets_sold"),
        "percent_sold": raffle_row.get("percent_sold"),
        "ticket_price": raffle_row.get("ticket_price"),
        "snapshot_at": now.isoformat(),
    }


def build_run_log_row(site_id: str, outcome) -> dict[str, Any]:
    """scrape_logs row for one RunOutcome."""
    started_at = outcome.completed_at - timedelta(milliseconds=outcome.duration_ms)
    return {
        "site_id": site_id,
        "started_at": started_at.isoformat(),
        "completed_at": outcome.completed_at.isoformat(),
        "status": outcome.status.value,
        "items_found": outcome.items_found,
        "items_new": outcome.items_new,
        "items_updated": outcome.items_updated,
        "error_message": outcome.error_message or None,
        "duration_ms": outcome.duration_ms,
    }

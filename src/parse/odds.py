"""Odds, value and status derivation for competitions.

Every function is null-propagating: a missing or non-positive input yields
None rather than zero or an exception.
"""
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from src.parse.models import RaffleStatus

ENDING_SOON_WINDOW = timedelta(hours=48)


def calculate_odds_ratio(total_tickets: Optional[int]) -> Optional[int]:
    """Odds as "1 in N" for a single ticket. Lower is better."""
    if not total_tickets or total_tickets <= 0:
        return None
    return total_tickets


def calculate_value_per_pound(
    prize_value: Optional[int],
    cash_alternative: Optional[int],
    ticket_price: Optional[int],
) -> Optional[float]:
    """Prize value (or cash alternative) per unit of ticket price."""
    value = prize_value or cash_alternative
    if not value or not ticket_price or ticket_price <= 0:
        return None
    return value / ticket_price


def calculate_expected_value(
    prize_value: Optional[int],
    cash_alternative: Optional[int],
    total_tickets: Optional[int],
    ticket_price: Optional[int],
) -> Optional[float]:
    """
    Statistical worth of one ticket relative to its price.

    0.75 means every pound spent buys 75p of prize value on average.
    """
    value = prize_value or cash_alternative
    if not value or not total_tickets or not ticket_price:
        return None
    if total_tickets <= 0 or ticket_price <= 0:
        return None
    return (value / total_tickets) / ticket_price


def calculate_percent_sold(
    tickets_sold: Optional[int],
    total_tickets: Optional[int],
) -> Optional[float]:
    """Sold share of the ticket pool, rounded to 2 decimals."""
    if tickets_sold is None or total_tickets is None or total_tickets <= 0:
        return None
    return round(tickets_sold / total_tickets * 100, 2)


def tickets_sold_from_percent(
    percent_sold: Optional[float],
    total_tickets: Optional[int],
) -> Optional[int]:
    """Estimate tickets sold from a reported percentage."""
    if percent_sold is None or not total_tickets:
        return None
    return round(percent_sold / 100 * total_tickets)


def derive_status(
    percent_sold: Optional[float],
    end_date: Optional[datetime],
    now: Optional[datetime] = None,
    ending_soon_window: timedelta = ENDING_SOON_WINDOW,
) -> RaffleStatus:
    """sold_out, ending_soon or active. Drawn/cancelled belong to the cleanup sweep."""
    if percent_sold is not None and percent_sold >= 100:
        return RaffleStatus.SOLD_OUT
    if end_date is not None:
        now = now or datetime.now(timezone.utc)
        remaining = end_date - now
        if timedelta(0) < remaining <= ending_soon_window:
            return RaffleStatus.ENDING_SOON
    return RaffleStatus.ACTIVE


def calculate_raffle_metrics(
    prize_value: Optional[int],
    cash_alternative: Optional[int],
    total_tickets: Optional[int],
    ticket_price: Optional[int],
    tickets_sold: Optional[int],
    end_date: Optional[datetime],
    now: Optional[datetime] = None,
    ending_soon_window: timedelta = ENDING_SOON_WINDOW,
) -> dict[str, Any]:
    """Calculate all derived fields for a competition."""
    tickets_remaining = None
    if total_tickets is not None and tickets_sold is not None:
        tickets_remaining = total_tickets - tickets_sold

    percent_sold = calculate_percent_sold(tickets_sold, total_tickets)

    return {
        "tickets_remaining": tickets_remaining,
        "percent_sold": percent_sold,
        "odds_ratio": calculate_odds_ratio(total_tickets),
        "value_per_pound": calculate_value_per_pound(prize_value, cash_alternative, ticket_price),
        "expected_value": calculate_expected_value(
            prize_value, cash_alternative, total_tickets, ticket_price
        ),
        "status": derive_status(percent_sold, end_date, now, ending_soon_window),
    }

"""Tests for odds, value and status derivation."""
from datetime import timedelta

import pytest

from src.parse.models import RaffleStatus
from src.parse.odds import (
    calculate_expected_value,
    calculate_odds_ratio,
    calculate_percent_sold,
    calculate_raffle_metrics,
    calculate_value_per_pound,
    derive_status,
    tickets_sold_from_percent,
)


def test_odds_ratio_is_total_tickets():
    assert calculate_odds_ratio(50000) == 50000
    assert calculate_odds_ratio(0) is None
    assert calculate_odds_ratio(None) is None


def test_value_per_pound_prefers_prize_value():
    assert calculate_value_per_pound(None, 5_200_000, 500) == 10400
    assert calculate_value_per_pound(1_000_000, 5_200_000, 500) == 2000
    assert calculate_value_per_pound(None, None, 500) is None
    assert calculate_value_per_pound(None, 5_200_000, 0) is None


def test_expected_value():
    assert calculate_expected_value(None, 5_200_000, 50000, 500) == pytest.approx(0.208)
    assert calculate_expected_value(None, 5_200_000, None, 500) is None
    assert calculate_expected_value(None, 5_200_000, 50000, -1) is None


def test_percent_sold_rounds_to_two_places():
    assert calculate_percent_sold(1, 3) == 33.33
    assert calculate_percent_sold(None, 100) is None
    assert calculate_percent_sold(10, 0) is None


def test_tickets_sold_from_percent():
    assert tickets_sold_from_percent(45, 12000) == 5400
    assert tickets_sold_from_percent(None, 12000) is None
    assert tickets_sold_from_percent(45, None) is None


def test_status_sold_out_wins(now):
    """Sold out beats an imminent end date."""
    assert derive_status(100, now + timedelta(hours=1), now) == RaffleStatus.SOLD_OUT


def test_status_ending_soon_window(now):
    assert derive_status(40, now + timedelta(hours=30), now) == RaffleStatus.ENDING_SOON
    assert derive_status(40, now + timedelta(hours=72), now) == RaffleStatus.ACTIVE
    assert derive_status(40, now + timedelta(hours=30), now, timedelta(hours=24)) == RaffleStatus.ACTIVE


def test_status_past_end_date_is_active(now):
    """Marking past raffles drawn is the cleanup sweep's job."""
    assert derive_status(40, now - timedelta(hours=1), now) == RaffleStatus.ACTIVE
    assert derive_status(None, None, now) == RaffleStatus.ACTIVE


def test_raffle_metrics(now):
    metrics = calculate_raffle_metrics(
        prize_value=None,
        cash_alternative=5_200_000,
        total_tickets=50000,
        ticket_price=500,
        tickets_sold=50000,
        end_date=None,
        now=now,
    )
    assert metrics["tickets_remaining"] == 0
    assert metrics["percent_sold"] == 100
    assert metrics["odds_ratio"] == 50000
    assert metrics["value_per_pound"] == 10400
    assert metrics["status"] == RaffleStatus.SOLD_OUT

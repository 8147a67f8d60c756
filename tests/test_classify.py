"""Tests for prize type and vehicle category classification."""
from src.parse.classify import (
    classify_car_category,
    classify_prize_type,
    is_instant_win,
    is_not_real_vehicle,
    vehicle_category_for,
)
from src.parse.models import CarCategory, PrizeType


def test_car_with_cash_alternative_is_car():
    """A car title quoting a cash alternative stays a car."""
    assert classify_prize_type("Win this 2024 BMW M2 & £2,000 or £52,000 Tax Free") == PrizeType.CAR


def test_instant_win_is_other_even_with_cash():
    """Instant-win games are never cash."""
    assert classify_prize_type("Win £10,000 Instant Win Cash Spin") == PrizeType.OTHER
    assert is_instant_win("The Vault - £5,000")


def test_toy_car_is_not_a_car():
    """Ride-on and scale models fall through the vehicle rules."""
    assert is_not_real_vehicle("Kids Lamborghini Ride On")
    assert classify_prize_type("Kids Lamborghini Ride On") == PrizeType.OTHER


def test_motorcycle():
    assert classify_prize_type("Ducati Panigale V4") == PrizeType.MOTORCYCLE


def test_non_vehicle_order():
    """House, watch, tech, holiday, then cash."""
    assert classify_prize_type("Win a Cotswolds House") == PrizeType.HOUSE
    assert classify_prize_type("Rolex Submariner Date") == PrizeType.WATCH
    assert classify_prize_type("iPhone 16 Pro Max Bundle") == PrizeType.TECH
    assert classify_prize_type("Luxury Maldives Holiday For Two") == PrizeType.HOLIDAY
    assert classify_prize_type("£25,000 Tax Free Cash") == PrizeType.CASH


def test_unknown_title_is_other():
    assert classify_prize_type("Mystery Box") == PrizeType.OTHER
    assert classify_prize_type("") == PrizeType.OTHER


def test_category_rule_order():
    """Supercar is checked before performance, performance before SUV."""
    assert classify_car_category("Lamborghini Huracan EVO") == CarCategory.SUPERCAR
    assert classify_car_category("Win this 2024 BMW M2") == CarCategory.PERFORMANCE
    assert classify_car_category("Range Rover Sport") == CarCategory.LUXURY
    assert classify_car_category("Tesla Model Y Long Range") == CarCategory.ELECTRIC
    assert classify_car_category("Ford Transit Custom") == CarCategory.VAN


def test_category_uses_word_boundaries():
    """" m3 " only matches as a whole token."""
    assert classify_car_category("BMW M3 Competition") == CarCategory.PERFORMANCE
    assert classify_car_category("Mercedes M300 Special") == CarCategory.OTHER


def test_category_only_for_vehicles():
    assert vehicle_category_for(PrizeType.WATCH, "Rolex Daytona") is None
    assert vehicle_category_for(PrizeType.CAR, "Audi RS6 Avant") == CarCategory.PERFORMANCE

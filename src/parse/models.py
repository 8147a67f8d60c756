"""Data models for scraped and normalized records."""
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PrizeType(str, Enum):
    CAR = "car"
    CASH = "cash"
    TECH = "tech"
    WATCH = "watch"
    HOLIDAY = "holiday"
    HOUSE = "house"
    MOTORCYCLE = "motorcycle"
    OTHER = "other"


class CarCategory(str, Enum):
    PERFORMANCE = "performance"
    LUXURY = "luxury"
    ELECTRIC = "electric"
    SUV = "suv"
    SEDAN = "sedan"
    SUPERCAR = "supercar"
    CLASSIC = "classic"
    VAN = "van"
    OTHER = "other"


class RaffleStatus(str, Enum):
    ACTIVE = "active"
    ENDING_SOON = "ending_soon"
    SOLD_OUT = "sold_out"
    DRAWN = "drawn"
    CANCELLED = "cancelled"


class RunStatus(str, Enum):
    SUCCESS = "success"
    PARTIAL = "partial"
    FAILED = "failed"


class JobMode(str, Enum):
    FULL = "full"
    QUICK = "quick"
    CLEANUP = "cleanup"


class CompetitionModel(str, Enum):
    FIXED_ODDS = "fixed_odds"
    SPOT_THE_BALL = "spot_the_ball"
    UNLIMITED = "unlimited"


class Site(BaseModel):
    """A tracked competition website (row of the sites table)."""

    id: Optional[str] = None
    name: str
    slug: str
    url: str
    competition_model: CompetitionModel = CompetitionModel.FIXED_ODDS
    active: bool = False


class ListingCard(BaseModel):
    """Raw facts read from one card on a listing page."""

    title: str
    url: str
    image_url: Optional[str] = None
    ticket_price: Optional[int] = Field(default=None, description="Pence")
    percent_sold: Optional[float] = None
    total_tickets: Optional[int] = None
    tickets_remaining: Optional[int] = None
    cash_alternative: Optional[int] = Field(default=None, description="Pence")
    end_date_text: Optional[str] = None
    draw_type: Optional[str] = None
    description: Optional[str] = None


class ScrapedRaffle(BaseModel):
    """One competition as extracted by a scraper, before normalization."""

    external_id: str
    title: str
    source_url: str
    car_make: Optional[str] = None
    car_model: Optional[str] = None
    car_year: Optional[int] = None
    car_variant: Optional[str] = None
    prize_value: Optional[int] = Field(default=None, description="Pence")
    cash_alternative: Optional[int] = Field(default=None, description="Pence")
    additional_cash: Optional[int] = Field(default=None, description="Pence")
    image_url: Optional[str] = None
    ticket_price: Optional[int] = Field(default=None, description="Pence")
    total_tickets: Optional[int] = None
    tickets_sold: Optional[int] = None
    percent_sold: Optional[float] = None
    end_date: Optional[datetime] = None
    draw_type: Optional[str] = None


class ScraperResult(BaseModel):
    """Output of a full scrape for one site."""

    site_name: str
    site_slug: str
    raffles: list[ScrapedRaffle] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
    duration_ms: int = 0


class QuickUpdate(BaseModel):
    """Volatile fields refreshed from a listing page."""

    external_id: str
    percent_sold: Optional[float] = None
    ticket_price: Optional[int] = None
    status: Optional[RaffleStatus] = None


class QuickUpdateResult(BaseModel):
    """Output of a quick update for one site."""

    site_name: str
    site_slug: str
    updates: list[QuickUpdate] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
    duration_ms: int = 0

    @property
    def fatal(self) -> bool:
        """True when the listing never loaded."""
        return any(error.startswith("Fatal:") for error in self.errors)


class RunOutcome(BaseModel):
    """What one site's run produced; becomes one scrape_logs row."""

    site_slug: str
    mode: JobMode
    status: RunStatus
    items_found: int = 0
    items_new: int = 0
    items_updated: int = 0
    error_message: Optional[str] = None
    duration_ms: int = 0
    completed_at: datetime = Field(default_factory=utcnow)


class CleanupOutcome(BaseModel):
    """Result of the expiry sweep."""

    marked_drawn: int = 0
    snapshots: int = 0
    error_message: Optional[str] = None


class JobReport(BaseModel):
    """Summary of one orchestrator invocation."""

    run_id: str
    mode: JobMode
    started_at: datetime = Field(default_factory=utcnow)
    finished_at: Optional[datetime] = None
    outcomes: list[RunOutcome] = Field(default_factory=list)
    cleanup: Optional[CleanupOutcome] = None
    browser_recycled: bool = False
    totals: dict[str, Any] = Field(default_factory=dict)

"""Scraper contract: listing phase, per-item detail phase, fallback records."""
import asyncio
import logging
import time
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Optional

from playwright.async_api import BrowserContext, Page

from src.browser.navigation import delay, navigate_with_retry
from src.browser.session import close_with_timeout
from src.config import config
from src.parse.models import ListingCard, QuickUpdate, QuickUpdateResult, RaffleStatus, ScrapedRaffle, ScraperResult
from src.parse.odds import derive_status, tickets_sold_from_percent
from src.parse.text import extract_slug_from_url, sanitize_title

logger = logging.getLogger(__name__)


class ListingPageError(Exception):
    """The listing page could not be loaded; the run has no source of items."""


class DetailPageError(Exception):
    """A detail page could not be loaded after retries."""


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)


class BaseScraper(ABC):
    """
    Base class for one competition site.

    Subclasses implement ``fetch_cards`` (listing page to cards) and
    ``enrich`` (detail page to record). ``scrape`` guarantees one record per
    surviving card: a failed or timed-out detail visit falls back to
    ``card_to_raffle`` and records one error naming the item.
    """

    name: str = ""
    site_slug: str = ""
    base_url: str = ""
    listing_url: Optional[str] = None
    detail_delay: Optional[float] = None
    detail_timeout: Optional[float] = None

    # --- hooks -------------------------------------------------------

    @abstractmethod
    async def fetch_cards(self, page: Page) -> list[ListingCard]:
        """Load the listing page(s) and return parsed cards."""

    async def enrich(self, page: Page, card: ListingCard) -> Optional[ScrapedRaffle]:
        """Read the detail page at ``page`` (already navigated). None keeps the card record."""
        return None

    def wants_detail(self, card: ListingCard) -> bool:
        return True

    def external_id_for(self, url: str) -> str:
        return extract_slug_from_url(url)

    def card_end_date(self, card: ListingCard) -> Optional[datetime]:
        """End date from the card's end-date text, if the site shows one."""
        return None

    def card_to_raffle(self, card: ListingCard) -> Optional[ScrapedRaffle]:
        """Record built from listing data only."""
        return ScrapedRaffle(
            external_id=self.external_id_for(card.url),
            title=card.title,
            source_url=card.url,
            image_url=card.image_url,
            ticket_price=card.ticket_price,
            total_tickets=card.total_tickets,
            tickets_sold=self._card_tickets_sold(card),
            percent_sold=card.percent_sold,
            cash_alternative=card.cash_alternative,
            end_date=self.card_end_date(card),
            draw_type=card.draw_type,
        )

    # --- shared plumbing ---------------------------------------------

    @staticmethod
    def _card_tickets_sold(card: ListingCard) -> Optional[int]:
        if card.total_tickets and card.tickets_remaining is not None:
            return card.total_tickets - card.tickets_remaining
        return tickets_sold_from_percent(card.percent_sold, card.total_tickets)

    def _card_status(self, card: ListingCard) -> Optional[RaffleStatus]:
        """Status when the card alone settles it; None leaves the stored one."""
        end_date = self.card_end_date(card)
        sold_out = card.percent_sold is not None and card.percent_sold >= 100
        if not sold_out and end_date is None:
            return None
        return derive_status(card.percent_sold, end_date, ending_soon_window=timedelta(hours=config.ENDING_SOON_HOURS))

    async def open_listing(self, page: Page, url: Optional[str] = None, wait_until: str = "domcontentloaded") -> None:
        """Navigate to a listing page or raise ListingPageError."""
        target = url or self.listing_url or self.base_url
        if not await navigate_with_retry(page, target, wait_until=wait_until, label=self.name):
            raise ListingPageError(f"Failed to load listing page {target} after retries")

    async def _load_cards(self, context: BrowserContext) -> list[ListingCard]:
        page = await context.new_page()
        try:
            cards = await self.fetch_cards(page)
        finally:
            await close_with_timeout(page, label=self.name)

        unique: list[ListingCard] = []
        seen: set[str] = set()
        for card in cards:
            if card.url in seen:
                continue
            seen.add(card.url)
            unique.append(card)
        return unique

    async def _visit_detail(self, context: BrowserContext, card: ListingCard) -> Optional[ScrapedRaffle]:
        page = await context.new_page()
        try:
            if not await navigate_with_retry(page, card.url, label=self.name):
                raise DetailPageError("Failed to load detail page after retries")
            return await self.enrich(page, card)
        finally:
            await close_with_timeout(page, label=self.name)

    @staticmethod
    def _keep(raffle: Optional[ScrapedRaffle]) -> bool:
        if raffle is None:
            return False
        return raffle.ticket_price is None or raffle.ticket_price > 0

    def _finalize(self, raffle: ScrapedRaffle) -> ScrapedRaffle:
        raffle.title = sanitize_title(raffle.title, raffle.source_url)
        return raffle

    # --- public operations -------------------------------------------

    async def scrape(self, context: BrowserContext) -> ScraperResult:
        """Full scrape: listing phase, then one detail visit per card."""
        start = time.monotonic()
        errors: list[str] = []
        raffles: list[ScrapedRaffle] = []

        try:
            cards = await self._load_cards(context)
        except Exception as e:
            logger.error(f"[{self.name}] Fatal listing error: {e}")
            return ScraperResult(
                site_name=self.name,
                site_slug=self.site_slug,
                errors=[f"Fatal: {e}"],
                duration_ms=_elapsed_ms(start),
            )

        logger.info(f"[{self.name}] Found {len(cards)} competition cards")
        timeout = self.detail_timeout or config.DETAIL_TIMEOUT

        for index, card in enumerate(cards):
            external_id = self.external_id_for(card.url)
            raffle = None

            if self.wants_detail(card):
                logger.debug(f"[{self.name}] ({index + 1}/{len(cards)}) {card.title}")
                try:
                    raffle = await asyncio.wait_for(self._visit_detail(context, card), timeout=timeout)
                except asyncio.TimeoutError:
                    errors.append(f"{external_id}: detail page timed out after {timeout:g}s")
                    logger.warning(f"[{self.name}] Detail timeout for {external_id}")
                except Exception as e:
                    errors.append(f"{external_id}: {e}")
                    logger.warning(f"[{self.name}] Detail error for {external_id}: {e}")

                if index < len(cards) - 1:
                    await delay(self.detail_delay)

            if raffle is None:
                raffle = self.card_to_raffle(card)
            if self._keep(raffle):
                raffles.append(self._finalize(raffle))

        logger.info(f"[{self.name}] Scraped {len(raffles)} competitions ({len(errors)} errors)")
        return ScraperResult(
            site_name=self.name,
            site_slug=self.site_slug,
            raffles=raffles,
            errors=errors,
            duration_ms=_elapsed_ms(start),
        )

    async def quick_update(self, context: BrowserContext) -> QuickUpdateResult:
        """Listing-only refresh of percent sold and ticket price."""
        start = time.monotonic()

        try:
            cards = await self._load_cards(context)
        except Exception as e:
            logger.error(f"[{self.name}] Fatal listing error: {e}")
            return QuickUpdateResult(
                site_name=self.name,
                site_slug=self.site_slug,
                errors=[f"Fatal: {e}"],
                duration_ms=_elapsed_ms(start),
            )

        updates = [
            QuickUpdate(
                external_id=self.external_id_for(card.url),
                percent_sold=card.percent_sold,
                ticket_price=card.ticket_price,
                status=self._card_status(card),
            )
            for card in cards
        ]

        logger.info(f"[{self.name}] Quick update: {len(updates)} items")
        return QuickUpdateResult(
            site_name=self.name,
            site_slug=self.site_slug,
            updates=updates,
            duration_ms=_elapsed_ms(start),
        )

"""Elite Competitions (elitecompetitions.co.uk)."""
import logging
import re
from datetime import datetime
from typing import Any, Optional

from playwright.async_api import Page

from src.browser.navigation import (
    collect_links,
    dismiss_cookies,
    page_snapshot,
    scroll_to_load_all,
    wait_for_optional,
)
from src.parse.dates import parse_ends_in_days, parse_long_date, parse_relative_day
from src.parse.html_parser import first_heading, first_image_src
from src.parse.models import ListingCard, ScrapedRaffle
from src.parse.odds import tickets_sold_from_percent
from src.parse.text import (
    contains_any,
    extract_slug_from_url,
    matches_any,
    parse_int,
    parse_pence_or_pounds,
    parse_price_to_pence,
    pounds_to_pence,
    split_lines,
)
from src.scrapers.base import BaseScraper

logger = logging.getLogger(__name__)

BASE_URL = "https://elitecompetitions.co.uk"
DEFAULT_DRAW_HOUR = 21

SKIP_URL_PATTERNS = ["/coming-soon/", "/daily-draws/", "/daily-draw", "/bonus-draw"]
SKIP_TITLE_PATTERNS = ["elite club", "credit bonanza", "members only", "free to enter", "gift card"]
COOKIE_SELECTORS = ['button:has-text("Accept")', '[class*="cookie"] button', "#cookie-accept"]

# Card lines that are data or UI labels rather than the prize name
SKIP_LINE_PATTERNS = [
    re.compile(r"^£\d"),
    re.compile(r"^\d+%\s*SOLD", re.IGNORECASE),
    re.compile(r"cash alternative", re.IGNORECASE),
    re.compile(r"prize pot", re.IGNORECASE),
    re.compile(r"^enter now$", re.IGNORECASE),
    re.compile(r"^ends?\s", re.IGNORECASE),
    re.compile(r"^just launched", re.IGNORECASE),
    re.compile(r"^members only$", re.IGNORECASE),
    re.compile(r"^free to enter$", re.IGNORECASE),
    re.compile(r"^app exclusive$", re.IGNORECASE),
    re.compile(r"^\d+$"),
    re.compile(r"^[HMS]$"),
    re.compile(r"^details$", re.IGNORECASE),
    re.compile(r"^launching", re.IGNORECASE),
    re.compile(r"^join the club$", re.IGNORECASE),
    re.compile(r"^grab a free", re.IGNORECASE),
    re.compile(r"^how would you", re.IGNORECASE),
    re.compile(r"^win big", re.IGNORECASE),
    re.compile(r"^every day", re.IGNORECASE),
]
PERCENT_LINE_RE = re.compile(r"\d+%\s*SOLD", re.IGNORECASE)
CASH_LINE_RE = re.compile(r"cash alternative|prize pot", re.IGNORECASE)
END_LINE_RE = re.compile(r"ends?\s+(in\s+\d|tomorrow)|just launched", re.IGNORECASE)
CARD_CASH_ALT_RE = re.compile(r"£([\d,]+)\s*cash alternative", re.IGNORECASE)
PRIZE_POT_RE = re.compile(r"£([\d,.]+)\s*(million\s+)?prize pot", re.IGNORECASE)

ENTRIES_RE = re.compile(r"total amount of entries:\s*([\d,]+)", re.IGNORECASE)
DRAW_DATE_RE = re.compile(r"draw date and time:\s*(.+?)(?:\n|$)", re.IGNORECASE)
ENTRY_PRICE_RE = re.compile(r"entry price:\s*([\d.p£]+)", re.IGNORECASE)
DETAIL_CASH_ALT_RE = CARD_CASH_ALT_RE
DETAIL_SOLD_RE = re.compile(r"(\d+)%\s*SOLD", re.IGNORECASE)
IMAGE_SELECTORS = ['img[src*="competitions/"]']


def parse_cash_from_card(text: Optional[str]) -> Optional[int]:
    """"£85,000 Cash Alternative" or "£3 Million Prize Pot" in pence."""
    if not text:
        return None
    alt_match = CARD_CASH_ALT_RE.search(text)
    if alt_match:
        return pounds_to_pence(alt_match.group(1))
    pot_match = PRIZE_POT_RE.search(text)
    if pot_match:
        try:
            value = float(pot_match.group(1).replace(",", ""))
        except ValueError:
            return None
        if pot_match.group(2):
            value *= 1_000_000
        return round(value * 100)
    return None


def _first_line(lines: list[str], predicate) -> Optional[str]:
    return next((line for line in lines if predicate(line)), None)


def raw_card_fields(link: dict[str, Any]) -> dict[str, Optional[str]]:
    """Pick out the title and the data lines of one card."""
    lines = split_lines(link.get("text"))
    titles = [line for line in lines if not matches_any(line, SKIP_LINE_PATTERNS)]
    return {
        "title": titles[0] if titles else "",
        "url": link.get("url"),
        "image_url": link.get("image_url") or None,
        "price_text": _first_line(lines, lambda l: l.startswith("£") and l[1:2].isdigit() and len(l) < 15),
        "percent_text": _first_line(lines, lambda l: PERCENT_LINE_RE.search(l) is not None),
        "cash_text": _first_line(lines, lambda l: CASH_LINE_RE.search(l) is not None),
        "end_date_text": _first_line(lines, lambda l: END_LINE_RE.search(l) is not None),
    }


def merge_raw_cards(links: list[dict[str, Any]]) -> list[dict[str, Optional[str]]]:
    """A competition appears in several homepage sections; fill gaps across occurrences."""
    by_url: dict[str, dict[str, Optional[str]]] = {}
    for link in links:
        if not link.get("text"):
            continue
        card = raw_card_fields(link)
        existing = by_url.get(card["url"])
        if existing is None:
            by_url[card["url"]] = card
            continue
        for key, value in card.items():
            if not existing.get(key):
                existing[key] = value
    return list(by_url.values())


def should_skip(title: str, url: str) -> bool:
    return contains_any(url, SKIP_URL_PATTERNS) or contains_any(title, SKIP_TITLE_PATTERNS)


def to_card(raw: dict[str, Optional[str]]) -> Optional[ListingCard]:
    title, url = raw.get("title") or "", raw.get("url") or ""
    if not title or not url or should_skip(title, url):
        return None
    percent_text = raw.get("percent_text")
    percent_digits = re.sub(r"[^0-9.]", "", percent_text) if percent_text else ""
    return ListingCard(
        title=title,
        url=url,
        image_url=raw.get("image_url"),
        ticket_price=parse_price_to_pence(raw.get("price_text")),
        percent_sold=float(percent_digits) if percent_digits else None,
        cash_alternative=parse_cash_from_card(raw.get("cash_text")),
        end_date_text=raw.get("end_date_text"),
    )


def parse_cards(links: list[dict[str, Any]]) -> list[ListingCard]:
    return [card for card in (to_card(raw) for raw in merge_raw_cards(links)) if card is not None]


def parse_card_end_date(text: Optional[str], now: Optional[datetime] = None) -> Optional[datetime]:
    """"Ends in 2 days" / "Ends Tomorrow" at 9pm."""
    if not text:
        return None
    if "tomorrow" in text.lower():
        return parse_relative_day(text, hour=DEFAULT_DRAW_HOUR, now=now, weekdays=False)
    return parse_ends_in_days(text, hour=DEFAULT_DRAW_HOUR, now=now)


def parse_detail(snapshot: dict[str, str], card: ListingCard,
                 now: Optional[datetime] = None) -> ScrapedRaffle:
    body = snapshot.get("body_text") or ""
    html = snapshot.get("html") or ""

    entries_match = ENTRIES_RE.search(body)
    total_tickets = parse_int(entries_match.group(1)) if entries_match else None

    draw_match = DRAW_DATE_RE.search(body)
    if draw_match:
        end_date = parse_long_date(draw_match.group(1).strip(), default_hour=DEFAULT_DRAW_HOUR, now=now)
    else:
        end_date = parse_card_end_date(card.end_date_text, now)

    ticket_price = card.ticket_price
    price_match = ENTRY_PRICE_RE.search(body)
    if price_match:
        ticket_price = parse_pence_or_pounds(price_match.group(1)) or ticket_price

    cash_match = DETAIL_CASH_ALT_RE.search(body)
    cash_alternative = pounds_to_pence(cash_match.group(1)) if cash_match else card.cash_alternative

    sold_match = DETAIL_SOLD_RE.search(body)
    percent_sold = float(sold_match.group(1)) if sold_match else card.percent_sold

    return ScrapedRaffle(
        external_id=extract_slug_from_url(card.url),
        title=first_heading(html) or card.title,
        source_url=card.url,
        image_url=first_image_src(html, IMAGE_SELECTORS, base_url=card.url) or card.image_url,
        ticket_price=ticket_price,
        total_tickets=total_tickets,
        tickets_sold=tickets_sold_from_percent(percent_sold, total_tickets),
        percent_sold=percent_sold,
        cash_alternative=cash_alternative,
        end_date=end_date,
        draw_type="live_draw",
    )


class EliteCompetitionsScraper(BaseScraper):
    name = "Elite Competitions"
    site_slug = "elite-competitions"
    base_url = BASE_URL
    listing_url = BASE_URL
    detail_delay = 1.0

    async def fetch_cards(self, page: Page) -> list[ListingCard]:
        await self.open_listing(page)
        await dismiss_cookies(page, COOKIE_SELECTORS)
        await wait_for_optional(page, 'a[href*="/competitions/"]', timeout=15000)
        await scroll_to_load_all(page, max_rounds=20, pause=0.8)

        links = await collect_links(page, 'a[href*="/competitions/"]', unique=False)
        return parse_cards(links)

    def card_end_date(self, card: ListingCard) -> Optional[datetime]:
        return parse_card_end_date(card.end_date_text)

    async def enrich(self, page: Page, card: ListingCard) -> Optional[ScrapedRaffle]:
        await wait_for_optional(page, "h1", timeout=10000)
        return parse_detail(await page_snapshot(page), card)

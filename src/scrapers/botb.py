"""BOTB (botb.com) spot-the-ball competitions.

Entries are unlimited, so there are no total tickets and no odds. Everything
comes from the homepage cards; there is no detail phase.
"""
import logging
import re
from datetime import datetime
from typing import Any, Optional

from playwright.async_api import Page

from src.browser.navigation import collect_links, dismiss_cookies, scroll_by_steps
from src.parse.dates import parse_day_month, parse_relative_day
from src.parse.models import ListingCard, ScrapedRaffle
from src.parse.text import contains_any, parse_price_to_pence, path_external_id, pounds_to_pence, slugify, split_lines
from src.scrapers.base import BaseScraper

logger = logging.getLogger(__name__)

BASE_URL = "https://www.botb.com"
END_HOUR, END_MINUTE = 23, 59

SKIP_TITLE_PATTERNS = [
    "free comp",
    "free entry",
    "free ticket",
    "free to enter",
    "free tech in app",
    "subscriber comp",
    "subscriber only",
    "botb pass",
    "love at first subscribe",
    "new subscribers get",
    "sign up and get",
    "refer a friend",
]

COMPETITION_HREF = r"/(competitions|play|prizes|dream-car|lifestyle|instant-win)"
CARD_IMAGE_SELECTOR = 'img[src*="cdn.botb.com"], img[src*="botb"], img[src*="media"]'
HEADING_SELECTOR = 'h1, h2, h3, h4, [class*="title"], [class*="name"]'

PRICE_RE = re.compile(r"(?:starting\s+from|ticket\s+price)\s*£([\d,.]+)", re.IGNORECASE)
_DAYS = "sunday|monday|tuesday|wednesday|thursday|friday|saturday"
END_RE = re.compile(
    r"ends?\s+(today|tonight|tomorrow|%s|\d+\s*(?:jan|feb|mar|apr|may|jun|jul|aug|sep|oct|nov|dec))" % _DAYS,
    re.IGNORECASE,
)
END_BADGE_RE = re.compile(r"^ends?\s+(today|tonight|tomorrow|%s)" % _DAYS, re.IGNORECASE)
SOLD_RE = re.compile(r"sold\s*(\d+)%|(\d+)%\s*sold", re.IGNORECASE)
CASH_RE = re.compile(r"£([\d,]+)(?:\s*(?:cash\s*alternative|tax[- ]free\s*cash|cash))", re.IGNORECASE)

HEADING_SKIP = re.compile(r"^(ends?\s|£|play|enter|sign up|get|select)", re.IGNORECASE)
LINE_SKIP = re.compile(r"^(ends?\s|starting|ticket|sold|play|enter|sign|get|select|£)", re.IGNORECASE)
DESCRIPTION_SKIP = re.compile(r"^(starting|ticket|sold|ends|play|enter)", re.IGNORECASE)


def pick_title(headings: list[str], lines: list[str]) -> str:
    for heading in headings:
        if len(heading) >= 3 and not HEADING_SKIP.match(heading):
            return heading
    for line in lines:
        if len(line) >= 4 and not LINE_SKIP.match(line):
            return "" if line.lower() == "select" else line
    return ""


def pick_description(lines: list[str], title: str) -> str:
    for line in lines:
        if line != title and len(line) > 20 and not DESCRIPTION_SKIP.match(line):
            return line
    return ""


def end_date_text(text: str, lines: list[str]) -> Optional[str]:
    for line in lines:
        if END_BADGE_RE.match(line):
            return line
    match = END_RE.search(text)
    return f"ENDS {match.group(1)}" if match else None


def parse_end_date(text: Optional[str], now: Optional[datetime] = None) -> Optional[datetime]:
    """"ENDS TONIGHT", "ENDS SUNDAY", "ENDS 14 FEB" at 23:59."""
    if not text:
        return None
    return (parse_relative_day(text, hour=END_HOUR, minute=END_MINUTE, now=now)
            or parse_day_month(text, hour=END_HOUR, minute=END_MINUTE, now=now))


def parse_card(link: dict[str, Any]) -> Optional[ListingCard]:
    """Card from a homepage link; None for promos, free entries and cards without a price."""
    text = link.get("text") or ""
    lines = split_lines(text)

    price_match = PRICE_RE.search(text)
    title = pick_title(link.get("headings") or [], lines)
    if not title or not price_match:
        return None

    description = pick_description(lines, title)
    if contains_any(f"{title} {description}", SKIP_TITLE_PATTERNS):
        logger.debug(f"[BOTB] Skipping promo: {title}")
        return None

    ticket_price = parse_price_to_pence(price_match.group(1))
    if not ticket_price:
        return None

    sold_match = SOLD_RE.search(text)
    cash_match = CASH_RE.search(description) or CASH_RE.search(title)
    return ListingCard(
        title=title,
        description=description or None,
        url=link["url"],
        image_url=link.get("image_url"),
        ticket_price=ticket_price,
        percent_sold=float(sold_match.group(1) or sold_match.group(2)) if sold_match else None,
        cash_alternative=pounds_to_pence(cash_match.group(1)) if cash_match else None,
        end_date_text=end_date_text(text, lines),
    )


def botb_external_id(url: str, title: str = "") -> str:
    """URL path with slashes as dashes, else a slug of the title."""
    return path_external_id(url) or slugify(title, 60)


class BotbScraper(BaseScraper):
    name = "BOTB"
    site_slug = "botb"
    base_url = BASE_URL
    listing_url = BASE_URL

    async def fetch_cards(self, page: Page) -> list[ListingCard]:
        await self.open_listing(page)
        await page.wait_for_timeout(3000)
        await dismiss_cookies(page, ['button:has-text("Accept All")'])
        await scroll_by_steps(page, steps=8, distance=800, pause=0.8)
        await page.wait_for_timeout(500)

        links = await collect_links(
            page,
            "a[href]",
            climb=5,
            climb_max_height=600,
            min_height=50,
            href_pattern=COMPETITION_HREF,
            image_selector=CARD_IMAGE_SELECTOR,
            heading_selector=HEADING_SELECTOR,
        )
        cards = [card for card in (parse_card(link) for link in links) if card is not None]
        logger.info(f"[{self.name}] Extracted {len(cards)} cards from {len(links)} links")
        return cards

    def wants_detail(self, card: ListingCard) -> bool:
        return False

    def external_id_for(self, url: str) -> str:
        return botb_external_id(url)

    def card_end_date(self, card: ListingCard) -> Optional[datetime]:
        return parse_end_date(card.end_date_text)

    def card_to_raffle(self, card: ListingCard) -> Optional[ScrapedRaffle]:
        return ScrapedRaffle(
            external_id=botb_external_id(card.url, card.title),
            title=card.title,
            source_url=card.url,
            image_url=card.image_url,
            ticket_price=card.ticket_price,
            cash_alternative=card.cash_alternative,
            percent_sold=card.percent_sold,
            end_date=self.card_end_date(card),
        )

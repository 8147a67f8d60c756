"""LLF Games (llfgames.com) shop listing."""
import logging
import re
from datetime import datetime
from typing import Any, Optional

from playwright.async_api import Page

from src.browser.navigation import collect_links, page_snapshot, scroll_to_load_all, wait_for_optional
from src.parse.dates import parse_day_month, parse_long_date, parse_relative_day
from src.parse.html_parser import first_heading, first_image_src
from src.parse.models import ListingCard, ScrapedRaffle
from src.parse.odds import tickets_sold_from_percent
from src.parse.text import (
    extract_slug_from_url,
    parse_int,
    parse_pence_or_pounds,
    parse_price_to_pence,
    pounds_to_pence,
    split_lines,
)
from src.scrapers.base import BaseScraper

logger = logging.getLogger(__name__)

BASE_URL = "https://llfgames.com"
LISTING_URL = f"{BASE_URL}/shop/"
DRAW_HOUR = 21
MIN_TITLE_LENGTH = 5

# Card text: "£0.05PER ENTRY", sale prices "Original price was: £0.19.£0.15Current price is: £0.15."
CURRENT_PRICE_RE = re.compile(r"current price is:\s*£([\d.]+)", re.IGNORECASE)
PRICE_LINE_RE = re.compile(r"£([\d.]+)\s*PER\s*ENTRY", re.IGNORECASE)
PERCENT_RE = re.compile(r"(\d+)%")
CASH_LINE_RE = re.compile(r"cash alternative", re.IGNORECASE)
DRAW_LINE_RE = re.compile(r"^draw\s", re.IGNORECASE)

TICKETS_AVAILABLE_RE = re.compile(r"([\d,]+)\s*tickets\s*available", re.IGNORECASE)
TOTAL_TICKETS_RE = re.compile(r"total\s*(?:amount\s*of\s*)?tickets[^\d(]*([\d,]+)", re.IGNORECASE)
RATIO_RE = re.compile(r"([\d,]+)\s*/\s*([\d,]+)")
LIVE_DRAW_RE = re.compile(r"live\s*draw\s+(.+?)(?:\n|$)", re.IGNORECASE)
DETAIL_CASH_RE = re.compile(r"cash\s*alternative[:\s]*£([\d,]+)", re.IGNORECASE)
PER_ENTRY_RE = re.compile(r"£([\d.]+)\s*per\s*entry", re.IGNORECASE)
JUST_PENCE_RE = re.compile(r"(?:just|only|from)\s*(\d+)p", re.IGNORECASE)
DETAIL_SOLD_RE = re.compile(r"(\d+)%\s*(?:sold|of\s*tickets\s*sold)", re.IGNORECASE)
IMAGE_SELECTORS = [".woocommerce-product-gallery img", "img.wp-post-image", ".product img"]


def parse_card(link: dict[str, Any]) -> Optional[ListingCard]:
    """Card from a competition link inside a product <li>; the <h2> is the title."""
    headings = link.get("headings") or []
    title = headings[0] if headings else ""
    if len(title) < MIN_TITLE_LENGTH:
        return None

    text = link.get("text") or ""
    lines = split_lines(text)

    current = CURRENT_PRICE_RE.search(text)
    if current:
        ticket_price = parse_price_to_pence(current.group(1))
    else:
        price_line = next((m for m in (PRICE_LINE_RE.search(line) for line in lines) if m), None)
        ticket_price = parse_price_to_pence(price_line.group(1)) if price_line else None

    percent_line = next((line for line in lines if PERCENT_RE.search(line) and "price" not in line.lower()), None)
    cash_line = next((line for line in lines if CASH_LINE_RE.search(line)), None)
    cash_match = re.search(r"£([\d,]+)", cash_line) if cash_line else None

    return ListingCard(
        title=title,
        url=link["url"],
        image_url=link.get("image_url"),
        ticket_price=ticket_price,
        percent_sold=float(PERCENT_RE.search(percent_line).group(1)) if percent_line else None,
        cash_alternative=pounds_to_pence(cash_match.group(1)) if cash_match else None,
        end_date_text=next((line for line in lines if DRAW_LINE_RE.search(line)), None),
        draw_type="auto_draw" if re.search(r"automated draw", text, re.IGNORECASE) else "live_draw",
    )


def parse_relative_draw_date(text: Optional[str], now: Optional[datetime] = None) -> Optional[datetime]:
    """"DRAW TODAY", "DRAW TOMORROW", "Draw Thu 1st Jan" at 9pm."""
    if not text:
        return None
    return (parse_relative_day(text, hour=DRAW_HOUR, now=now, weekdays=False)
            or parse_day_month(text, hour=DRAW_HOUR, now=now))


def parse_total_tickets(body: str) -> Optional[int]:
    match = TICKETS_AVAILABLE_RE.search(body) or TOTAL_TICKETS_RE.search(body)
    if match:
        return parse_int(match.group(1))
    ratio = RATIO_RE.search(body)
    return parse_int(ratio.group(2)) if ratio else None


def parse_detail_price(body: str) -> Optional[int]:
    """"£0.04 Per Entry", "TICKETS JUST 5P"."""
    per_entry = PER_ENTRY_RE.search(body)
    if per_entry:
        return parse_price_to_pence(per_entry.group(1))
    just = JUST_PENCE_RE.search(body)
    return parse_pence_or_pounds(f"{just.group(1)}p") if just else None


def parse_detail(snapshot: dict[str, str], card: ListingCard,
                 now: Optional[datetime] = None) -> ScrapedRaffle:
    body = snapshot.get("body_text") or ""
    html = snapshot.get("html") or ""

    total_tickets = parse_total_tickets(body)

    draw_match = LIVE_DRAW_RE.search(body)
    if draw_match:
        end_date = parse_long_date(draw_match.group(1).strip(), default_hour=DRAW_HOUR, now=now)
    else:
        end_date = parse_relative_draw_date(card.end_date_text, now)

    cash_match = DETAIL_CASH_RE.search(body)
    sold_match = DETAIL_SOLD_RE.search(body)
    percent_sold = float(sold_match.group(1)) if sold_match else card.percent_sold

    if re.search(r"automated draw", body, re.IGNORECASE):
        draw_type = "auto_draw"
    else:
        draw_type = card.draw_type or "live_draw"

    return ScrapedRaffle(
        external_id=extract_slug_from_url(card.url),
        title=first_heading(html, ("h1", ".product_title")) or card.title,
        source_url=card.url,
        image_url=first_image_src(html, IMAGE_SELECTORS, base_url=card.url) or card.image_url,
        ticket_price=card.ticket_price or parse_detail_price(body),
        total_tickets=total_tickets,
        tickets_sold=tickets_sold_from_percent(percent_sold, total_tickets),
        percent_sold=percent_sold,
        cash_alternative=pounds_to_pence(cash_match.group(1)) if cash_match else card.cash_alternative,
        end_date=end_date,
        draw_type=draw_type,
    )


class LlfGamesScraper(BaseScraper):
    name = "LLF Games"
    site_slug = "llf-games"
    base_url = BASE_URL
    listing_url = LISTING_URL

    async def fetch_cards(self, page: Page) -> list[ListingCard]:
        await self.open_listing(page)
        await wait_for_optional(page, 'a[href*="/competition/"]', timeout=15000)
        await scroll_to_load_all(page)

        links = await collect_links(page, 'a[href*="/competition/"]', container="li", heading_selector="h2")
        return [card for card in (parse_card(link) for link in links) if card is not None]

    def card_end_date(self, card: ListingCard) -> Optional[datetime]:
        return parse_relative_draw_date(card.end_date_text)

    async def enrich(self, page: Page, card: ListingCard) -> Optional[ScrapedRaffle]:
        await wait_for_optional(page, "h1, .product_title", timeout=10000)
        return parse_detail(await page_snapshot(page), card)

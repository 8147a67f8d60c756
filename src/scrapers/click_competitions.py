"""Click Competitions (clickcompetitions.co.uk), paginated WooCommerce listing."""
import logging
import re
from datetime import datetime
from typing import Any, Optional

from playwright.async_api import Page

from src.browser.navigation import (
    collect_links,
    delay,
    dismiss_cookies,
    navigate_with_retry,
    page_snapshot,
    safe_attr,
    scroll_to_load_all,
    wait_for_optional,
)
from src.parse.dates import parse_day_month, parse_long_date, parse_numeric_date, parse_relative_day
from src.parse.html_parser import first_heading, first_image_src
from src.parse.models import ListingCard, ScrapedRaffle
from src.parse.odds import tickets_sold_from_percent
from src.parse.text import extract_slug_from_url, matches_any, parse_int, parse_price_to_pence, pounds_to_pence, split_lines
from src.scrapers.base import BaseScraper, ListingPageError

logger = logging.getLogger(__name__)

BASE_URL = "https://www.clickcompetitions.co.uk"
LISTING_URL = f"{BASE_URL}/competitions/"
MAX_PAGES = 5
DRAW_HOUR = 21

SKIP_TITLE_PATTERNS = [
    re.compile(r"click credit", re.IGNORECASE),
    re.compile(r"site credit", re.IGNORECASE),
]
COOKIE_SELECTORS = [".iubenda-cs-accept-btn", '[class*="cookie"] button', "#cookie-accept"]

PRICE_LINE_RE = re.compile(r"£([\d.]+)\s*Per\s*Entry", re.IGNORECASE)
PERCENT_LINE_RE = re.compile(r"(\d+)%\s*Sold", re.IGNORECASE)
CASH_LINE_RE = re.compile(r"cash alternative", re.IGNORECASE)
DRAW_LINE_RE = re.compile(r"^draw\s|^sold out$", re.IGNORECASE)

TOTAL_TICKETS_RE = re.compile(r"(?:max(?:imum)?\s*entries|total\s*tickets)[:\s=]*([\d,]+)", re.IGNORECASE)
DRAW_DATE_RE = re.compile(r"draw\s*date[:\s]*(.+?)(?:\n|$)", re.IGNORECASE)
DETAIL_CASH_RE = re.compile(r"cash\s*alternative[:\s]*£([\d,]+)", re.IGNORECASE)
DETAIL_SOLD_RE = re.compile(r"(\d+)%\s*sold", re.IGNORECASE)
IMAGE_SELECTORS = [".woocommerce-product-gallery img", ".product-image img"]


def page_url(page_number: int) -> str:
    return LISTING_URL if page_number == 1 else f"{LISTING_URL}page/{page_number}/"


def parse_card(link: dict[str, Any]) -> Optional[ListingCard]:
    """Card from a competition link; the title comes from its <h2>."""
    text = (link.get("link_text") or "").strip()
    if text == "Enter Now":
        return None
    headings = link.get("headings") or []
    title = headings[0] if headings else ""
    if not title or matches_any(title, SKIP_TITLE_PATTERNS):
        return None

    lines = split_lines(text)
    ticket_price = None
    percent_sold = None
    cash_alternative = None
    for line in lines:
        price_match = PRICE_LINE_RE.search(line)
        if price_match and ticket_price is None:
            ticket_price = parse_price_to_pence(price_match.group(1))
        percent_match = PERCENT_LINE_RE.search(line)
        if percent_match and percent_sold is None:
            percent_sold = float(percent_match.group(1))
        if cash_alternative is None and CASH_LINE_RE.search(line):
            cash_match = re.search(r"£([\d,]+)", line)
            cash_alternative = pounds_to_pence(cash_match.group(1)) if cash_match else None

    draw_line = next((line for line in lines if DRAW_LINE_RE.search(line)), None)
    auto_draw = any(re.search(r"auto draw", line, re.IGNORECASE) for line in lines)

    return ListingCard(
        title=title,
        url=link["url"],
        image_url=link.get("image_url"),
        ticket_price=ticket_price,
        percent_sold=percent_sold,
        cash_alternative=cash_alternative,
        end_date_text=draw_line,
        draw_type="auto_draw" if auto_draw else "live_draw",
    )


def parse_relative_draw_date(text: Optional[str], now: Optional[datetime] = None) -> Optional[datetime]:
    """"Draw Today", "Draw Tomorrow", "Draw Sat 14th Feb" at 9pm."""
    if not text or text.strip().lower() == "sold out":
        return None
    return (parse_relative_day(text, hour=DRAW_HOUR, now=now, weekdays=False)
            or parse_day_month(text, hour=DRAW_HOUR, now=now))


def parse_draw_date(text: str, now: Optional[datetime] = None) -> Optional[datetime]:
    """"14/02/2026" or "Saturday 14th February 2026 at 9pm"."""
    return parse_numeric_date(text, hour=DRAW_HOUR) or parse_long_date(text, default_hour=DRAW_HOUR, now=now)


def parse_detail(snapshot: dict[str, str], card: ListingCard,
                 now: Optional[datetime] = None) -> ScrapedRaffle:
    body = snapshot.get("body_text") or ""
    html = snapshot.get("html") or ""

    tickets_match = TOTAL_TICKETS_RE.search(body)
    total_tickets = parse_int(tickets_match.group(1)) if tickets_match else None

    draw_match = DRAW_DATE_RE.search(body)
    if draw_match:
        end_date = parse_draw_date(draw_match.group(1).strip(), now)
    else:
        end_date = parse_relative_draw_date(card.end_date_text, now)

    cash_match = DETAIL_CASH_RE.search(body)
    sold_match = DETAIL_SOLD_RE.search(body)
    percent_sold = float(sold_match.group(1)) if sold_match else card.percent_sold

    return ScrapedRaffle(
        external_id=extract_slug_from_url(card.url),
        title=first_heading(html, ("h1", ".product_title")) or card.title,
        source_url=card.url,
        image_url=first_image_src(html, IMAGE_SELECTORS, base_url=card.url) or card.image_url,
        ticket_price=card.ticket_price,
        total_tickets=total_tickets,
        tickets_sold=tickets_sold_from_percent(percent_sold, total_tickets),
        percent_sold=percent_sold,
        cash_alternative=pounds_to_pence(cash_match.group(1)) if cash_match else card.cash_alternative,
        end_date=end_date,
        draw_type=card.draw_type,
    )


class ClickCompetitionsScraper(BaseScraper):
    name = "Click Competitions"
    site_slug = "click-competitions"
    base_url = BASE_URL
    listing_url = LISTING_URL
    detail_delay = 0.8

    async def fetch_cards(self, page: Page) -> list[ListingCard]:
        cards: list[ListingCard] = []
        for page_number in range(1, MAX_PAGES + 1):
            url = page_url(page_number)
            if not await navigate_with_retry(page, url, label=self.name):
                if page_number > 1:
                    break
                raise ListingPageError(f"Failed to load listing page {url} after retries")

            if page_number > 1 and await safe_attr(page, 'a[href*="/competition/"]', "href") is None:
                break

            await dismiss_cookies(page, COOKIE_SELECTORS)
            await scroll_to_load_all(page)

            links = await collect_links(page, 'li a[href*="/competition/"]', heading_selector="h2", unique=False)
            page_cards = [card for card in (parse_card(link) for link in links) if card is not None]
            logger.info(f"[{self.name}] Page {page_number}: {len(page_cards)} cards")
            if not page_cards and page_number > 1:
                break
            cards.extend(page_cards)

            if await safe_attr(page, "a.next", "href") is None:
                break
            await delay(1.0)
        return cards

    def card_end_date(self, card: ListingCard) -> Optional[datetime]:
        return parse_relative_draw_date(card.end_date_text)

    async def enrich(self, page: Page, card: ListingCard) -> Optional[ScrapedRaffle]:
        await wait_for_optional(page, "h1, .product_title", timeout=10000)
        return parse_detail(await page_snapshot(page), card)

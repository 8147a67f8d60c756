"""Lucky Day Competitions (luckydaycompetitions.com).

Cards show "Tickets remaining 98% 588/597": remaining over total.
"""
import logging
import re
from datetime import datetime
from typing import Any, Optional

from playwright.async_api import Page

from src.browser.navigation import collect_links, page_snapshot, scroll_to_load_all, wait_for_optional
from src.parse.dates import parse_day_month
from src.parse.html_parser import first_heading, first_image_src
from src.parse.models import ListingCard, ScrapedRaffle
from src.parse.text import extract_slug_from_url, matches_any, parse_int, parse_price_to_pence, pounds_to_pence, split_lines
from src.scrapers.base import BaseScraper

logger = logging.getLogger(__name__)

BASE_URL = "https://www.luckydaycompetitions.com"
LISTING_URL = f"{BASE_URL}/all-competitions/"
DRAW_HOUR = 21

SKIP_TITLE_PATTERNS = [re.compile(r"gift voucher", re.IGNORECASE)]
BUTTON_TEXTS = {"Enter Now", "Quick Buy", "Read More"}

SKIP_LINE_PATTERNS = [
    re.compile(r"^£[\d.]+$"),
    re.compile(r"tickets remaining", re.IGNORECASE),
    re.compile(r"^\d+%"),
    re.compile(r"^\d+/\d+"),
    re.compile(r"^quick buy$", re.IGNORECASE),
    re.compile(r"^enter now$", re.IGNORECASE),
    re.compile(r"^read more$", re.IGNORECASE),
    re.compile(r"^ends\s", re.IGNORECASE),
    re.compile(r"^every ticket wins$", re.IGNORECASE),
    re.compile(r"^win for free!$", re.IGNORECASE),
    re.compile(r"^less than \d+% left$", re.IGNORECASE),
    re.compile(r"^just launched$", re.IGNORECASE),
    re.compile(r"^(😮|😲|⏱️)"),
]
PRICE_LINE_RE = re.compile(r"^£[\d.]+$")
RATIO_RE = re.compile(r"(\d+)\s*/\s*(\d+)")
REMAINING_PERCENT_RE = re.compile(r"tickets remaining\s+(\d+)%", re.IGNORECASE)
END_LINE_RE = re.compile(r"^ends\s", re.IGNORECASE)
END_DATE_RE = re.compile(
    r"(?:mon|tue|wed|thu|fri|sat|sun)\w*\s+\d{1,2}(?:st|nd|rd|th)?\s+(?:jan|feb|mar|apr|may|jun|jul|aug|sep|oct|nov|dec)",
    re.IGNORECASE,
)

DETAIL_CASH_RE = re.compile(r"cash\s*alternative[:\s]*£([\d,]+)", re.IGNORECASE)
PRIZE_VALUE_RE = re.compile(r"(?:prize|rrp|value)[:\s]*£([\d,]+)", re.IGNORECASE)
DETAIL_TOTAL_RE = re.compile(r"(?:max|total)\s*(?:entries|tickets)[:\s]*([\d,]+)", re.IGNORECASE)
IMAGE_SELECTORS = [".woocommerce-product-gallery img", ".product-image img", "img.wp-post-image"]


def parse_card(link: dict[str, Any]) -> Optional[ListingCard]:
    text = (link.get("link_text") or "").strip()
    if not text or text in BUTTON_TEXTS:
        return None
    lines = split_lines(text)

    titles = [line for line in lines if len(line) > 3 and not matches_any(line, SKIP_LINE_PATTERNS)]
    if not titles or matches_any(titles[0], SKIP_TITLE_PATTERNS):
        return None

    price_line = next((line for line in lines if PRICE_LINE_RE.match(line)), None)
    ticket_price = parse_price_to_pence(price_line)
    if not ticket_price:
        return None

    total_tickets = tickets_remaining = None
    percent_sold = None
    ratio = next((m for m in (RATIO_RE.search(line) for line in lines) if m), None)
    if ratio:
        tickets_remaining, total_tickets = int(ratio.group(1)), int(ratio.group(2))
        percent_sold = float(round((total_tickets - tickets_remaining) / total_tickets * 100)) if total_tickets else 0.0
    else:
        remaining = next((m for m in (REMAINING_PERCENT_RE.search(line) for line in lines) if m), None)
        if remaining:
            percent_sold = float(100 - int(remaining.group(1)))

    return ListingCard(
        title=titles[0],
        url=link["url"],
        image_url=link.get("image_url"),
        ticket_price=ticket_price,
        total_tickets=total_tickets,
        tickets_remaining=tickets_remaining,
        percent_sold=percent_sold,
        end_date_text=next((line for line in lines if END_LINE_RE.match(line)), None),
        draw_type="live_draw",
    )


def parse_end_date(text: Optional[str], now: Optional[datetime] = None) -> Optional[datetime]:
    """"Ends Tue 10th Feb" at 9pm; the weekday is required."""
    if not text:
        return None
    match = END_DATE_RE.search(text)
    if not match:
        return None
    return parse_day_month(match.group(0), hour=DRAW_HOUR, now=now)


def parse_detail(snapshot: dict[str, str], card: ListingCard,
                 now: Optional[datetime] = None) -> ScrapedRaffle:
    body = snapshot.get("body_text") or ""
    html = snapshot.get("html") or ""

    cash_match = DETAIL_CASH_RE.search(body)
    prize_match = PRIZE_VALUE_RE.search(body)
    total_match = DETAIL_TOTAL_RE.search(body)
    total_tickets = card.total_tickets or (parse_int(total_match.group(1)) if total_match else None)

    tickets_sold = None
    if total_tickets and card.tickets_remaining is not None:
        tickets_sold = total_tickets - card.tickets_remaining

    return ScrapedRaffle(
        external_id=extract_slug_from_url(card.url),
        title=first_heading(html, ("h1", ".product_title")) or card.title,
        source_url=card.url,
        image_url=first_image_src(html, IMAGE_SELECTORS, base_url=card.url) or card.image_url,
        ticket_price=card.ticket_price,
        total_tickets=total_tickets,
        tickets_sold=tickets_sold,
        percent_sold=card.percent_sold,
        cash_alternative=pounds_to_pence(cash_match.group(1)) if cash_match else None,
        prize_value=pounds_to_pence(prize_match.group(1)) if prize_match else None,
        end_date=parse_end_date(card.end_date_text, now),
        draw_type="live_draw",
    )


class LuckyDayCompetitionsScraper(BaseScraper):
    name = "Lucky Day Competitions"
    site_slug = "lucky-day-competitions"
    base_url = BASE_URL
    listing_url = LISTING_URL

    async def fetch_cards(self, page: Page) -> list[ListingCard]:
        await self.open_listing(page)
        await wait_for_optional(page, 'a[href*="/product/"]', timeout=15000)
        await scroll_to_load_all(page)

        # Button links share the card's href; keep every link and let the parser drop them
        links = await collect_links(page, 'li a[href*="/product/"]', unique=False)
        return [card for card in (parse_card(link) for link in links) if card is not None]

    def card_end_date(self, card: ListingCard) -> Optional[datetime]:
        return parse_end_date(card.end_date_text)

    async def enrich(self, page: Page, card: ListingCard) -> Optional[ScrapedRaffle]:
        await wait_for_optional(page, "h1, .product_title", timeout=10000)
        return parse_detail(await page_snapshot(page), card)

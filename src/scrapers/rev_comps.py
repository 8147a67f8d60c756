"""Rev Comps (revcomps.com), a WooCommerce site.

Homepage cards carry tickets, price, percent sold, draw type and end date.
Only vehicle prizes get a detail visit, for cash alternative and exact end
date from the "Additional Information" table.
"""
import logging
import re
from datetime import datetime
from typing import Any, Optional

from playwright.async_api import Page

from src.browser.navigation import click_if_present, collect_links, dismiss_cookies, page_snapshot, scroll_to_load_all
from src.parse.dates import parse_day_month, parse_long_date, parse_today_time
from src.parse.html_parser import extract_table_pairs, first_image_src, full_size_image
from src.parse.models import ListingCard, ScrapedRaffle
from src.parse.odds import tickets_sold_from_percent
from src.parse.text import contains_any, extract_slug_from_url, matches_any, parse_int, parse_price_to_pence, pounds_to_pence, split_lines
from src.scrapers.base import BaseScraper

logger = logging.getLogger(__name__)

BASE_URL = "https://www.revcomps.com"
DRAW_HOUR = 23
MAX_TICKET_PRICE = 10000  # pence; larger £ figures on a card are prizes

VEHICLE_KEYWORDS = [
    "bmw", "audi", "mercedes", "ferrari", "lamborghini", "porsche", "mclaren",
    "volkswagen", "ford focus", "ford fiesta", "ford mustang", "ford escort",
    "ford transit", "ford ranger",
    "honda civic", "honda type", "honda cb", "toyota supra", "toyota gr",
    "nissan gtr", "nissan gt-r", "nissan skyline",
    "range rover", "land rover", "bentley", "rolls royce", "tesla",
    "volvo xc", "volvo v", "volvo s", "vauxhall", "mini cooper",
    "jaguar", "aston martin", "defender", "motorhome", "campervan",
    "peugeot", "seat ", "skoda", "fiat ", "alfa romeo", "maserati",
    "suzuki jimny", "suzuki swift", "transit connect", "transporter", "camper",
    "ducati", "kawasaki", "yamaha", "motorcycle", "motorbike", "panigale",
    "triumph", "fireblade", "hayabusa", "sur ron", "surron",
    "car", "van", "bike", "quad",
]

COOKIE_SELECTORS = [
    'button:has-text("Accept All")',
    'button:has-text("Accept")',
    'a:has-text("Accept All")',
    ".cookie-accept",
    "#cookie-accept",
    '[data-action="accept"]',
    ".cmplz-accept",
    ".cky-btn-accept",
]

# Card lines that are not the title:
#   "24999 TKTS" / "£4.97" / "WIN TODAY 11PM" / "87% SOLD" / "TITLE" / "−" "+" "ADD"
TITLE_SKIP_PATTERNS = [
    re.compile(r"^\d[\d,]*\s*TKTS$", re.IGNORECASE),
    re.compile(r"^£[\d,.]+$"),
    re.compile(r"^\d+[pP]$"),
    re.compile(r"^FREE$", re.IGNORECASE),
    re.compile(r"^EARLY BIRD", re.IGNORECASE),
    re.compile(r"^WIN\s", re.IGNORECASE),
    re.compile(r"^\d+%\s*SOLD$", re.IGNORECASE),
    re.compile(r"^LAST CHANCE$", re.IGNORECASE),
    re.compile(r"^£[\d]+K?\s*CASH", re.IGNORECASE),
    re.compile(r"^ENDS\s", re.IGNORECASE),
    re.compile(r"^AUTO DRAW$", re.IGNORECASE),
    re.compile(r"^LIVE DRAW$", re.IGNORECASE),
    re.compile(r"^[−+]$"),
    re.compile(r"^ADD$", re.IGNORECASE),
]
TICKETS_RE = re.compile(r"([\d,]+)\s*TKTS", re.IGNORECASE)
SOLD_RE = re.compile(r"(\d+)%\s*SOLD", re.IGNORECASE)
PENCE_RE = re.compile(r"\b(\d+)\s*[pP]\b")
POUNDS_RE = re.compile(r"£([\d,.]+)")
CARD_DRAW_RE = re.compile(r"\b(AUTO DRAW|LIVE DRAW|AUTO|LIVE)\b", re.IGNORECASE)
CARD_END_RES = [
    re.compile(r"ENDS\s+(TODAY\s+\d{1,2}:\d{2})", re.IGNORECASE),
    re.compile(r"ENDS\s+([A-Za-z]+\s+\d{1,2}(?:st|nd|rd|th)\s+[A-Za-z]+)", re.IGNORECASE),
    re.compile(r"WIN\s+(?:LIVE\s+)?([A-Za-z]+\s+\d{1,2}(?:st|nd|rd|th)\s+[A-Za-z]+)", re.IGNORECASE),
]
CARD_DAY_MONTH_RE = re.compile(r"(\d{1,2})(?:st|nd|rd|th)\s+([A-Za-z]+)", re.IGNORECASE)

TITLE_SUFFIX_RE = re.compile(r"\s*[-–|]\s*Rev Comps.*$", re.IGNORECASE)
BODY_DATE_RE = re.compile(
    r"(\d{1,2})\s+(January|February|March|April|May|June|July|August|September|October|November|December)\s+(\d{4})",
    re.IGNORECASE,
)
CASH_ALT_RES = [
    re.compile(r"£([\d,]+)\s*(?:TAX\s+FREE\s+)?CASH\s*ALTERNATIVE", re.IGNORECASE),
    re.compile(r"£([\d,]+)\s*TAX\s+FREE\s+CASH", re.IGNORECASE),
    re.compile(r"or\s+£([\d,]+)\s*(?:tax free|cash)", re.IGNORECASE),
]
CASH_INCLUDED_RE = re.compile(r"£([\d,]+)\s*CASH\s*INCLUDED", re.IGNORECASE)
PER_TICKET_RE = re.compile(r"£([\d,.]+)\s*per ticket", re.IGNORECASE)
IMAGE_SELECTORS = [".woocommerce-product-gallery__image img", 'img[src*="wp-content/uploads"]']
IMAGE_ATTRS = ["data-large_image", "data-src", "src"]


def looks_like_vehicle(title: str) -> bool:
    return contains_any(title, VEHICLE_KEYWORDS)


def pick_title(lines: list[str]) -> Optional[str]:
    for line in lines:
        if len(line) > 3 and not matches_any(line, TITLE_SKIP_PATTERNS):
            return line
    return None


def parse_card_price(text: str) -> Optional[int]:
    """"25P" / "6p" in pence, else the first £ figure small enough to be a ticket price."""
    pence_match = PENCE_RE.search(text)
    if pence_match:
        return int(pence_match.group(1))
    for match in POUNDS_RE.finditer(text):
        value = parse_price_to_pence(match.group(1))
        if value is not None and 0 < value <= MAX_TICKET_PRICE:
            return value
    if "FREE" in text:
        return 0
    return None


def parse_card(link: dict[str, Any]) -> Optional[ListingCard]:
    """Card from a product link; None for non-competition links and free entries."""
    url = link.get("url") or ""
    text = (link.get("link_text") or "").strip()
    if "/product-category/" in url or "TKTS" not in text:
        return None

    title = pick_title(split_lines(text))
    if not title:
        return None

    ticket_price = parse_card_price(text)
    if ticket_price is not None and ticket_price <= 0:
        return None

    tickets_match = TICKETS_RE.search(text)
    sold_match = SOLD_RE.search(text)
    draw_match = CARD_DRAW_RE.search(text)
    end_match = next((m for m in (p.search(text) for p in CARD_END_RES) if m), None)

    return ListingCard(
        title=title,
        url=url,
        image_url=full_size_image(link.get("image_url")),
        ticket_price=ticket_price,
        total_tickets=parse_int(tickets_match.group(1)) if tickets_match else None,
        percent_sold=float(sold_match.group(1)) if sold_match else None,
        draw_type=draw_match.group(1).lower().replace(" draw", "") if draw_match else None,
        end_date_text=end_match.group(0) if end_match else None,
    )


def parse_card_end_date(text: Optional[str], now: Optional[datetime] = None) -> Optional[datetime]:
    """"ENDS TODAY 23:00", "ENDS Mon 29th Dec", "WIN LIVE MON 9TH FEB"."""
    if not text:
        return None
    today = parse_today_time(text, now)
    if today:
        return today
    match = CARD_DAY_MONTH_RE.search(text)
    if not match:
        return None
    return parse_day_month(match.group(0), hour=DRAW_HOUR, now=now)


def read_info_table(html: str) -> tuple[Optional[str], Optional[str]]:
    """End date and ticket count from the "Additional Information" table."""
    end_date_text = None
    tickets_text = None
    for label, value in extract_table_pairs(html).items():
        if "end date" in label:
            end_date_text = value
        if "number of tickets" in label or ("tickets" in label and "max" not in label):
            tickets_text = value
    return end_date_text, tickets_text


def parse_detail(snapshot: dict[str, str], card: ListingCard,
                 now: Optional[datetime] = None) -> ScrapedRaffle:
    body = snapshot.get("body_text") or ""
    html = snapshot.get("html") or ""
    page_title = TITLE_SUFFIX_RE.sub("", snapshot.get("title") or "").strip()

    end_date_text, tickets_text = read_info_table(html)
    if not end_date_text:
        body_date = BODY_DATE_RE.search(body)
        end_date_text = body_date.group(0) if body_date else None

    end_date = parse_long_date(end_date_text, default_hour=DRAW_HOUR, now=now) if end_date_text else None
    if end_date is None:
        end_date = parse_card_end_date(card.end_date_text, now)

    total_tickets = parse_int(tickets_text) if tickets_text else card.total_tickets

    cash_match = next((m for m in (p.search(body) for p in CASH_ALT_RES) if m), None)
    included_match = CASH_INCLUDED_RE.search(body)
    price_match = PER_TICKET_RE.search(body)
    ticket_price = card.ticket_price
    if price_match:
        ticket_price = parse_price_to_pence(price_match.group(1)) or card.ticket_price

    if re.search(r"LIVE DRAW", body, re.IGNORECASE):
        draw_type = "live"
    elif re.search(r"AUTO DRAW|AUTOMATICALLY", body, re.IGNORECASE):
        draw_type = "auto"
    else:
        draw_type = card.draw_type

    return ScrapedRaffle(
        external_id=extract_slug_from_url(card.url),
        title=page_title or card.title,
        source_url=card.url,
        image_url=first_image_src(html, IMAGE_SELECTORS, IMAGE_ATTRS, base_url=card.url) or card.image_url,
        ticket_price=ticket_price,
        total_tickets=total_tickets,
        tickets_sold=tickets_sold_from_percent(card.percent_sold, total_tickets),
        percent_sold=card.percent_sold,
        cash_alternative=pounds_to_pence(cash_match.group(1)) if cash_match else None,
        additional_cash=pounds_to_pence(included_match.group(1)) if included_match else None,
        end_date=end_date,
        draw_type=draw_type,
    )


class RevCompsScraper(BaseScraper):
    name = "Rev Comps"
    site_slug = "rev-comps"
    base_url = BASE_URL
    listing_url = BASE_URL
    detail_delay = 1.0

    async def fetch_cards(self, page: Page) -> list[ListingCard]:
        await self.open_listing(page)
        await page.wait_for_timeout(3000)
        # Product cards stay hidden until cookies are accepted
        if not await dismiss_cookies(page, COOKIE_SELECTORS):
            logger.info(f"[{self.name}] No cookie banner found")
        await page.wait_for_timeout(5000)
        await scroll_to_load_all(page, max_rounds=25, pause=0.8)

        if await click_if_present(page, 'button:has-text("ALL PRIZES")'):
            logger.info(f"[{self.name}] Switched to ALL PRIZES tab")
            await page.wait_for_timeout(3000)
            await scroll_to_load_all(page, max_rounds=25, pause=0.8)

        links = await collect_links(page, 'a[href*="/product/"]')
        cards = [card for card in (parse_card(link) for link in links) if card is not None]
        logger.info(f"[{self.name}] Parsed {len(cards)} paid competitions from listing")
        return cards

    def wants_detail(self, card: ListingCard) -> bool:
        return looks_like_vehicle(card.title)

    def card_end_date(self, card: ListingCard) -> Optional[datetime]:
        return parse_card_end_date(card.end_date_text)

    async def enrich(self, page: Page, card: ListingCard) -> Optional[ScrapedRaffle]:
        await page.wait_for_timeout(3000)
        return parse_detail(await page_snapshot(page), card)

"""7days Performance (7daysperformance.co.uk)."""
import logging
import re
from typing import Any, Optional

from playwright.async_api import Page

from src.browser.navigation import collect_links, page_snapshot, scroll_by_steps
from src.parse.dates import parse_numeric_date
from src.parse.html_parser import first_image_src
from src.parse.models import ListingCard, ScrapedRaffle
from src.parse.odds import tickets_sold_from_percent
from src.parse.text import extract_slug_from_url, parse_int, parse_price_to_pence, pounds_to_pence
from src.scrapers.base import BaseScraper

logger = logging.getLogger(__name__)

BASE_URL = "https://7daysperformance.co.uk"
DRAW_HOUR = 22

# Card text, newlines folded to spaces:
#   "Draw on Monday 10pm Win This VW Golf GTI + £2,000 Cash! Cash Alternative: £22,500 £19.99 sold: 21 % Enter now"
CARD_CASH_ALT_RE = re.compile(r"Cash Alternative:\s*£([\d,]+)", re.IGNORECASE)
CARD_SOLD_RE = re.compile(r"sold:\s*(\d+)\s*%", re.IGNORECASE)
CARD_PRICE_RE = re.compile(r"£(\d+\.\d+)\s*(?:sold|Enter|$)", re.IGNORECASE)
TITLE_PREFIX_RE = re.compile(
    r"^(?:Draw\s+(?:Today|Tomorrow|on\s+\w+)\s+\d+(?::\d+)?pm\s*"
    r"|Closing\s+(?:Today|Tomorrow|on\s+\w+)\s+\d+(?::\d+)?pm\s*"
    r"|Just\s+launched\s*)",
    re.IGNORECASE,
)
TITLE_TRAILERS = [
    re.compile(r"\s*Cash Alternative:.*$", re.IGNORECASE),
    re.compile(r"\s*£\d+\.\d+\s*(?:sold:.*)?(?:Enter now)?$", re.IGNORECASE),
    re.compile(r"\s*sold:\s*\d+\s*%.*$", re.IGNORECASE),
    re.compile(r"\s*Enter now\s*$", re.IGNORECASE),
]
MIN_CARD_TITLE = 5

TITLE_SUFFIX_RE = re.compile(r"\s*-\s*7days Performance$", re.IGNORECASE)
ENTRIES_RE = re.compile(r"total (?:amount|number) of entries for this competition is\s*\(?([\d,]+)\)?", re.IGNORECASE)
DRAW_DATE_RE = re.compile(r"draw for this competition will take place on\s*(\d{2}/\d{2}/\d{4})", re.IGNORECASE)
DETAIL_SOLD_RE = re.compile(r"SOLD:\s*(\d+)\s*%", re.IGNORECASE)
SOLD_RATIO_RE = re.compile(r"SOLD:\s*\d+\s*%\s*([\d,]+)\s*/\s*([\d,]+)", re.IGNORECASE)
DESC_PRICE_RE = re.compile(r"for\s+£(\d+\.?\d*)\s*!", re.IGNORECASE)
ADDITIONAL_CASH_RE = re.compile(r"[+&]\s*£([\d,]+)\s*Cash", re.IGNORECASE)
IMAGE_SELECTORS = [
    ".swiper-slide-active .product-gallery__img",
    ".swiper-slide:not(.swiper-slide-duplicate) .product-gallery__img",
    'img[src*="7days-production"]',
    'img[src*="7daysperformance"]',
]


def clean_card_title(text: str) -> str:
    title = TITLE_PREFIX_RE.sub("", text)
    for pattern in TITLE_TRAILERS:
        title = pattern.sub("", title)
    return title.strip()


def parse_card(link: dict[str, Any]) -> Optional[ListingCard]:
    """Listing card from a product link; None for short titles and free entries."""
    text = re.sub(r"\n+", " ", (link.get("link_text") or link.get("text") or "").strip())

    cash_match = CARD_CASH_ALT_RE.search(text)
    sold_match = CARD_SOLD_RE.search(text)
    price_match = CARD_PRICE_RE.search(text)
    ticket_price = parse_price_to_pence(price_match.group(1)) if price_match else None

    title = clean_card_title(text)
    if len(title) < MIN_CARD_TITLE:
        return None
    if ticket_price is not None and ticket_price <= 0:
        return None

    return ListingCard(
        title=title,
        url=link["url"],
        image_url=link.get("image_url"),
        ticket_price=ticket_price,
        percent_sold=float(sold_match.group(1)) if sold_match else None,
        cash_alternative=pounds_to_pence(cash_match.group(1)) if cash_match else None,
    )


def detect_draw_type(body: str) -> Optional[str]:
    if "Automated Draw System" in body:
        return "automated"
    if re.search(r"live draw", body, re.IGNORECASE):
        return "live"
    return None


def parse_detail(snapshot: dict[str, str], card: ListingCard) -> ScrapedRaffle:
    body = snapshot.get("body_text") or ""
    page_title = TITLE_SUFFIX_RE.sub("", snapshot.get("title") or "").strip()

    entries_match = ENTRIES_RE.search(body)
    ratio_match = SOLD_RATIO_RE.search(body)
    tickets_sold_direct = parse_int(ratio_match.group(1)) if ratio_match else None
    total_entries = parse_int(ratio_match.group(2)) if ratio_match else None
    if total_entries is None and entries_match:
        total_entries = parse_int(entries_match.group(1))

    sold_match = DETAIL_SOLD_RE.search(body)
    percent_sold = float(sold_match.group(1)) if sold_match else card.percent_sold

    if tickets_sold_direct:
        tickets_sold = tickets_sold_direct
    elif percent_sold:
        tickets_sold = tickets_sold_from_percent(percent_sold, total_entries)
    else:
        tickets_sold = None

    price_match = DESC_PRICE_RE.search(body)
    ticket_price = parse_price_to_pence(price_match.group(1)) if price_match else card.ticket_price

    cash_match = CARD_CASH_ALT_RE.search(body)
    cash_alternative = pounds_to_pence(cash_match.group(1)) if cash_match else card.cash_alternative

    additional_match = ADDITIONAL_CASH_RE.search(page_title)
    date_match = DRAW_DATE_RE.search(body)

    return ScrapedRaffle(
        external_id=extract_slug_from_url(card.url),
        title=page_title or card.title,
        source_url=card.url,
        # Listing image is the consistent hero shot; the gallery carousel is not.
        image_url=card.image_url or first_image_src(snapshot.get("html") or "", IMAGE_SELECTORS),
        ticket_price=ticket_price,
        total_tickets=total_entries,
        tickets_sold=tickets_sold,
        percent_sold=percent_sold,
        cash_alternative=cash_alternative,
        additional_cash=pounds_to_pence(additional_match.group(1)) if additional_match else None,
        end_date=parse_numeric_date(date_match.group(1), hour=DRAW_HOUR) if date_match else None,
        draw_type=detect_draw_type(body),
    )


class SevenDaysPerformanceScraper(BaseScraper):
    name = "7days Performance"
    site_slug = "7-days-performance"
    base_url = BASE_URL
    listing_url = BASE_URL

    async def fetch_cards(self, page: Page) -> list[ListingCard]:
        await self.open_listing(page)
        await page.wait_for_timeout(5000)
        await scroll_by_steps(page, steps=15, distance=2000, pause=0.6)

        links = await collect_links(page, 'a[href^="/product/"]')
        return [card for card in (parse_card(link) for link in links) if card is not None]

    async def enrich(self, page: Page, card: ListingCard) -> Optional[ScrapedRaffle]:
        await page.wait_for_timeout(4000)
        return parse_detail(await page_snapshot(page), card)

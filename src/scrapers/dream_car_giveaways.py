"""Dream Car Giveaways (dreamcargiveaways.co.uk)."""
import logging
import re
from datetime import datetime
from typing import Any, Optional

from playwright.async_api import Page

from src.browser.navigation import collect_links, page_snapshot, scroll_by_steps
from src.parse.dates import from_countdown
from src.parse.html_parser import first_image_src
from src.parse.models import ListingCard, ScrapedRaffle
from src.parse.odds import tickets_sold_from_percent
from src.parse.text import extract_slug_from_url, parse_price_to_pence, pounds_to_pence, split_lines
from src.scrapers.base import BaseScraper

logger = logging.getLogger(__name__)

BASE_URL = "https://dreamcargiveaways.co.uk"

CATEGORY_PATHS = {
    "/competitions",
    "/competitions/",
    "/competitions/cars",
    "/competitions/cash",
    "/competitions/tech",
    "/competitions/watches",
    "/competitions/instant-wins",
}
CAR_CATEGORY_RE = re.compile(r"^/competitions/cars/")

CARD_PRICE_RE = re.compile(r"£(\d+\.?\d*)")
CARD_SOLD_RE = re.compile(r"(\d+)%\s*sold", re.IGNORECASE)
TITLE_NOISE = [
    re.compile(r"^£"),
    re.compile(r"^\d+%"),
    re.compile(r"^\d+\s*days?$", re.IGNORECASE),
    re.compile(r"^Closes", re.IGNORECASE),
    re.compile(r"^App Exclusive", re.IGNORECASE),
]

TITLE_SUFFIX_RE = re.compile(r"\s*\|\s*Dream Car Giveaways$", re.IGNORECASE)
CASH_ALT_RE = re.compile(r"or\s+£([\d,]+)\s*(?:tax free|cash)?", re.IGNORECASE)
ADDITIONAL_CASH_RE = re.compile(r"[&+]\s*£([\d,]+)", re.IGNORECASE)
ENTRIES_RE = re.compile(r"([\d,]+)\s*entries", re.IGNORECASE)
DETAIL_SOLD_RE = re.compile(r"(\d+)%\s*(?:\n\s*)?sold", re.IGNORECASE)
ENTER_PRICE_RE = re.compile(r"£(\d+\.?\d*)\s*\n?\s*Enter Now", re.IGNORECASE)
BODY_CASH_ALT_RE = re.compile(r"or\s+£([\d,]+)\s*cash alternative", re.IGNORECASE)
DRAW_TYPE_RE = re.compile(r"(Live Draw|Automated Draw)", re.IGNORECASE)
COUNTDOWN_RE = re.compile(r"Competition closes in\s*\n(\d+)\nDays?\n(\d+)\nHours?", re.IGNORECASE)
IMAGE_SELECTORS = ['img[src*="media.dreamcargiveaways"]']


def is_competition_link(href: str, text: str, has_image: bool) -> bool:
    """Competition cards have an image and a price or sold percentage; category links do not."""
    if href in CATEGORY_PATHS or CAR_CATEGORY_RE.match(href):
        return False
    has_price = re.search(r"£\d", text) is not None
    has_sold = CARD_SOLD_RE.search(text) is not None
    return has_image and (has_price or has_sold)


def pick_title(lines: list[str]) -> str:
    """Longest descriptive line on the card."""
    candidates = [
        line for line in lines
        if len(line) > 15 and not any(pattern.search(line) for pattern in TITLE_NOISE)
    ]
    if candidates:
        return max(candidates, key=len)
    return lines[0] if lines else ""


def parse_card(link: dict[str, Any]) -> Optional[ListingCard]:
    """Listing card from a collected link; None for navigation links and free entries."""
    href = link.get("href") or ""
    text = (link.get("link_text") or link.get("text") or "").strip()
    if not is_competition_link(href, text, bool(link.get("has_image"))):
        return None

    price_match = CARD_PRICE_RE.search(text)
    ticket_price = parse_price_to_pence(price_match.group(1)) if price_match else None
    if ticket_price is not None and ticket_price <= 0:
        return None

    sold_match = CARD_SOLD_RE.search(text)
    return ListingCard(
        title=pick_title(split_lines(text)),
        url=link["url"],
        image_url=link.get("image_url"),
        ticket_price=ticket_price,
        percent_sold=float(sold_match.group(1)) if sold_match else None,
    )


def parse_detail(snapshot: dict[str, str], card: ListingCard,
                 now: Optional[datetime] = None) -> ScrapedRaffle:
    """Record from a detail page snapshot, falling back to card values."""
    body = snapshot.get("body_text") or ""
    page_title = TITLE_SUFFIX_RE.sub("", snapshot.get("title") or "").strip()

    # Cash figures come from the clean title; the body carries a site-wide banner.
    alt_match = CASH_ALT_RE.search(page_title)
    cash_alternative = pounds_to_pence(alt_match.group(1)) if alt_match else None
    additional_match = ADDITIONAL_CASH_RE.search(page_title)
    additional_cash = pounds_to_pence(additional_match.group(1)) if additional_match else None

    entries_match = ENTRIES_RE.search(body)
    total_entries = int(entries_match.group(1).replace(",", "")) if entries_match else None

    if cash_alternative is None:
        entries_index = body.find("entries")
        if entries_index > -1:
            section = body[max(0, entries_index - 300):entries_index]
            body_alt = BODY_CASH_ALT_RE.search(section)
            cash_alternative = pounds_to_pence(body_alt.group(1)) if body_alt else None

    sold_match = DETAIL_SOLD_RE.search(body)
    percent_sold = float(sold_match.group(1)) if sold_match else card.percent_sold

    price_match = ENTER_PRICE_RE.search(body)
    ticket_price = parse_price_to_pence(price_match.group(1)) if price_match else card.ticket_price

    draw_match = DRAW_TYPE_RE.search(body)
    draw_type = draw_match.group(1).lower().replace(" draw", "") if draw_match else None

    countdown = COUNTDOWN_RE.search(body)
    end_date = from_countdown(int(countdown.group(1)), int(countdown.group(2)), now) if countdown else None

    image_url = first_image_src(snapshot.get("html") or "", IMAGE_SELECTORS) or card.image_url

    return ScrapedRaffle(
        external_id=extract_slug_from_url(card.url),
        title=page_title or card.title,
        source_url=card.url,
        image_url=image_url,
        ticket_price=ticket_price,
        total_tickets=total_entries,
        tickets_sold=tickets_sold_from_percent(percent_sold, total_entries) if percent_sold else None,
        percent_sold=percent_sold,
        cash_alternative=cash_alternative,
        additional_cash=additional_cash,
        end_date=end_date,
        draw_type=draw_type,
    )


class DreamCarGiveawaysScraper(BaseScraper):
    name = "Dream Car Giveaways"
    site_slug = "dream-car-giveaways"
    base_url = BASE_URL
    listing_url = f"{BASE_URL}/competitions"

    async def fetch_cards(self, page: Page) -> list[ListingCard]:
        await self.open_listing(page)
        await page.wait_for_timeout(5000)
        await scroll_by_steps(page, steps=10, distance=2000, pause=0.8)

        links = await collect_links(page, 'a[href^="/competitions/"]')
        cards = [card for card in (parse_card(link) for link in links) if card is not None]
        logger.debug(f"[{self.name}] {len(links)} links, {len(cards)} competition cards")
        return cards

    async def enrich(self, page: Page, card: ListingCard) -> Optional[ScrapedRaffle]:
        await page.wait_for_timeout(4000)
        return parse_detail(await page_snapshot(page), card)

"""Money, identifier and title helpers for free page text."""
import re
from typing import NamedTuple, Optional, Pattern, Sequence
from urllib.parse import urlparse

PRICE_RE = re.compile(r"£?([\d,]+\.?\d*)")
PENCE_RE = re.compile(r"(\d+)\s*p\b", re.IGNORECASE)
CASH_ALT_TITLE_RE = re.compile(r"or\s+£([\d,]+)", re.IGNORECASE)
ADDITIONAL_CASH_TITLE_RE = re.compile(r"[&+]\s*£([\d,]+)", re.IGNORECASE)
WHITESPACE_RE = re.compile(r"\s+")

MIN_TITLE_LENGTH = 5


class TitleCash(NamedTuple):
    additional_cash: Optional[int]
    cash_alternative: Optional[int]


def parse_price_to_pence(text: Optional[str]) -> Optional[int]:
    """Parse a price string to pence. "£0.79" -> 79, "£2,999" -> 299900."""
    if not text:
        return None
    match = PRICE_RE.search(text)
    if not match:
        return None
    digits = match.group(1).replace(",", "")
    try:
        pounds = float(digits)
    except ValueError:
        return None
    return round(pounds * 100)


def parse_pence_or_pounds(text: Optional[str]) -> Optional[int]:
    """Parse "7p" as 7 pence, anything else as pounds."""
    if not text:
        return None
    if "£" not in text:
        match = PENCE_RE.search(text)
        if match:
            return int(match.group(1))
    return parse_price_to_pence(text)


def pounds_to_pence(digits: Optional[str]) -> Optional[int]:
    """Whole-pound amount with thousands separators to pence. "52,000" -> 5200000."""
    if not digits:
        return None
    cleaned = digits.replace(",", "").strip()
    try:
        return round(float(cleaned) * 100)
    except ValueError:
        return None


def parse_int(text: Optional[str]) -> Optional[int]:
    """Digits of a count such as "2,450,000" as an int."""
    if not text:
        return None
    digits = re.sub(r"[^0-9]", "", text)
    return int(digits) if digits else None


def parse_cash_from_title(title: Optional[str]) -> TitleCash:
    """
    Read cash amounts from a title.

    "or £X" is a cash alternative, "& £X" / "+ £X" is bonus cash.
    """
    if not title:
        return TitleCash(None, None)
    alt_match = CASH_ALT_TITLE_RE.search(title)
    additional_match = ADDITIONAL_CASH_TITLE_RE.search(title)
    return TitleCash(
        additional_cash=pounds_to_pence(additional_match.group(1)) if additional_match else None,
        cash_alternative=pounds_to_pence(alt_match.group(1)) if alt_match else None,
    )


def extract_slug_from_url(url: str) -> str:
    """Last path segment of a URL, used as the external id."""
    if not url:
        return ""
    path = url.split("#", 1)[0].split("?", 1)[0]
    parts = path.split("/")
    return parts[-1] or (parts[-2] if len(parts) > 1 else "") or url


def path_external_id(url: str) -> str:
    """Whole URL path with slashes turned into dashes."""
    path = urlparse(url).path.strip("/")
    return path.replace("/", "-")


def slugify(text: str, max_length: int = 60) -> str:
    return re.sub(r"[^a-z0-9]+", "-", (text or "").lower()).strip("-")[:max_length]


def clean_whitespace(text: Optional[str]) -> str:
    return WHITESPACE_RE.sub(" ", text or "").strip()


def sanitize_title(title: Optional[str], url: str) -> str:
    """Collapse whitespace; fall back to a title built from the URL slug."""
    cleaned = clean_whitespace(title)
    if len(cleaned) >= MIN_TITLE_LENGTH:
        return cleaned
    slug = extract_slug_from_url(url)
    from_slug = clean_whitespace(re.sub(r"[-_]+", " ", slug)).title()
    return from_slug or cleaned or url


def split_lines(text: Optional[str]) -> list[str]:
    """Non-empty stripped lines of innerText."""
    return [line.strip() for line in (text or "").split("\n") if line.strip()]


def matches_any(text: str, patterns: Sequence[Pattern[str]]) -> bool:
    return any(pattern.search(text) for pattern in patterns)


def contains_any(text: str, needles: Sequence[str]) -> bool:
    lower = (text or "").lower()
    return any(needle in lower for needle in needles)

"""Parse detail-page HTML for structured fields."""
import re
from typing import Optional, Sequence
from urllib.parse import urljoin

from selectolax.parser import HTMLParser, Node

WP_THUMB_SIZE_RE = re.compile(r"-\d+x\d+\.")


def extract_text_by_selector(parser: HTMLParser, selector: str, default: str = "") -> str:
    """Extract text from first matching element."""
    node = parser.css_first(selector)
    return node.text(strip=True) if node else default


def first_heading(html: str, selectors: Sequence[str] = ("h1",)) -> Optional[str]:
    """Text of the first non-empty heading among ``selectors``."""
    if not html:
        return None
    parser = HTMLParser(html)
    for selector in selectors:
        text = extract_text_by_selector(parser, selector)
        if text:
            return text
    return None


def extract_table_pairs(html: str, selector: str = "table tr") -> dict[str, str]:
    """
    Read label/value table rows into a dict keyed by lower-cased label.

    Rows use either <th>label</th><td>value</td> or two <td> cells.
    """
    pairs: dict[str, str] = {}
    if not html:
        return pairs
    parser = HTMLParser(html)
    for row in parser.css(selector):
        label_node = row.css_first("th")
        cells = row.css("td")
        if label_node is not None and cells:
            value_node = cells[0]
        elif len(cells) >= 2:
            label_node, value_node = cells[0], cells[1]
        else:
            continue
        label = label_node.text(strip=True).lower()
        value = value_node.text(strip=True)
        if label and label not in pairs:
            pairs[label] = value
    return pairs


def _image_src(node: Node, attrs: Sequence[str]) -> Optional[str]:
    for attr in attrs:
        value = node.attributes.get(attr)
        if value and not value.startswith("data:"):
            return value
    return None


def first_image_src(
    html: str,
    selectors: Sequence[str],
    attrs: Sequence[str] = ("src",),
    base_url: Optional[str] = None,
) -> Optional[str]:
    """First usable image URL among ``selectors``, trying ``attrs`` in order."""
    if not html:
        return None
    parser = HTMLParser(html)
    for selector in selectors:
        for node in parser.css(selector):
            src = _image_src(node, attrs)
            if src:
                return urljoin(base_url, src) if base_url else src
    return None


def full_size_image(url: Optional[str]) -> Optional[str]:
    """Drop the WordPress "-300x300." thumbnail suffix."""
    if not url:
        return url
    return WP_THUMB_SIZE_RE.sub(".", url)

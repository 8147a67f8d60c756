"""Tests for detail-page HTML helpers."""
from src.parse.html_parser import extract_table_pairs, first_heading, first_image_src, full_size_image

PRODUCT_HTML = """
<html><body>
  <h1 class="product_title">  Audi RS6 Avant  </h1>
  <div class="gallery">
    <img src="data:image/gif;base64,R0lGOD" data-src="/uploads/rs6-lazy.jpg">
    <img src="/uploads/rs6.jpg">
  </div>
  <table>
    <tr><th>End Date</th><td>9 February 2026</td></tr>
    <tr><td>Number of Tickets</td><td>24,999</td></tr>
    <tr><td>orphan</td></tr>
  </table>
</body></html>
"""


def test_first_heading():
    assert first_heading(PRODUCT_HTML) == "Audi RS6 Avant"
    assert first_heading("<p>no heading</p>", ("h1", ".product_title")) is None
    assert first_heading("") is None


def test_table_pairs():
    pairs = extract_table_pairs(PRODUCT_HTML)
    assert pairs == {"end date": "9 February 2026", "number of tickets": "24,999"}


def test_first_image_skips_data_uris():
    assert first_image_src(PRODUCT_HTML, [".gallery img"]) == "/uploads/rs6.jpg"


def test_first_image_attribute_order_and_base_url():
    src = first_image_src(
        PRODUCT_HTML, [".gallery img"], attrs=("data-src", "src"), base_url="https://www.revcomps.com/product/rs6/"
    )
    assert src == "https://www.revcomps.com/uploads/rs6-lazy.jpg"


def test_first_image_no_match():
    assert first_image_src(PRODUCT_HTML, [".missing img"]) is None


def test_full_size_image():
    assert full_size_image("https://x.com/wp-content/uploads/car-300x300.jpg") == "https://x.com/wp-content/uploads/car.jpg"
    assert full_size_image(None) is None

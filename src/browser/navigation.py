"""Page navigation and DOM collection helpers shared by all scrapers."""
import asyncio
import logging
from typing import Any, Optional, Sequence

from playwright.async_api import Page, TimeoutError as PlaywrightTimeoutError
from tenacity import AsyncRetrying, RetryError, stop_after_attempt, wait_incrementing

from src.config import config

logger = logging.getLogger(__name__)

# One DOM pass per listing page. Text mining happens in Python.
COLLECT_LINKS_JS = """
(opts) => {
  const out = [];
  const seen = new Set();
  const hrefRe = opts.hrefPattern ? new RegExp(opts.hrefPattern, 'i') : null;
  for (const a of document.querySelectorAll(opts.selector)) {
    const href = a.getAttribute('href') || '';
    if (hrefRe && !hrefRe.test(href)) continue;
    if (opts.minHeight && a.clientHeight < opts.minHeight) continue;
    const url = a.href;
    if (!url) continue;
    if (opts.unique && seen.has(url)) continue;
    seen.add(url);

    let card = a;
    if (opts.container) card = a.closest(opts.container) || a;
    for (let i = 0; i < opts.climb; i++) {
      const parent = card.parentElement;
      if (!parent) break;
      if (opts.climbMaxHeight && parent.clientHeight >= opts.climbMaxHeight) break;
      card = parent;
    }

    const img = (opts.imageSelector && card.querySelector(opts.imageSelector)) || card.querySelector('img');
    let image = null;
    if (img) image = img.getAttribute('data-src') || img.src || null;

    const headings = [];
    if (opts.headingSelector) {
      for (const h of card.querySelectorAll(opts.headingSelector)) {
        const t = (h.textContent || '').trim();
        if (t) headings.push(t);
      }
    }

    out.push({
      url,
      href,
      text: card.innerText || '',
      link_text: a.innerText || '',
      has_image: a.querySelector('img') !== null,
      image_url: image,
      headings,
    });
  }
  return out;
}
"""


async def delay(seconds: Optional[float] = None) -> None:
    """Politeness pause between requests."""
    await asyncio.sleep(config.REQUEST_DELAY if seconds is None else seconds)


async def safe_text(page: Page, selector: str) -> Optional[str]:
    """Stripped text of the first match, or None. Never raises."""
    try:
        element = await page.query_selector(selector)
        if element is None:
            return None
        text = (await element.inner_text()).strip()
        return text or None
    except Exception as e:
        logger.debug(f"[NAV] Could not read text of {selector}: {e}")
        return None


async def safe_attr(page: Page, selector: str, attr: str) -> Optional[str]:
    """Attribute of the first match, or None. Never raises."""
    try:
        element = await page.query_selector(selector)
        if element is None:
            return None
        return await element.get_attribute(attr)
    except Exception as e:
        logger.debug(f"[NAV] Could not read {attr} of {selector}: {e}")
        return None


async def navigate_with_retry(
    page: Page,
    url: str,
    attempts: Optional[int] = None,
    wait_until: str = "domcontentloaded",
    backoff: float = 2.0,
    label: str = "NAV",
) -> bool:
    """
    Go to ``url``, retrying with a linear backoff (backoff x attempt).

    Returns False once every attempt has failed; never raises.
    """
    attempts = attempts or config.NAV_RETRIES

    def _log_attempt(retry_state) -> None:
        error = retry_state.outcome.exception()
        logger.warning(
            f"[{label}] Navigation attempt {retry_state.attempt_number}/{attempts} failed for {url}: {error}"
        )

    try:
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(attempts),
            wait=wait_incrementing(start=backoff, increment=backoff),
            before_sleep=_log_attempt,
        ):
            with attempt:
                await page.goto(url, wait_until=wait_until, timeout=config.NAV_TIMEOUT_MS)
    except RetryError as e:
        logger.error(f"[{label}] Giving up on {url} after {attempts} attempts: "
                     f"{e.last_attempt.exception()}")
        return False
    return True


async def scroll_to_load_all(page: Page, max_rounds: int = 15, pause: float = 0.6) -> None:
    """Scroll to the bottom until the page stops growing, then back to top."""
    previous_height = 0
    for _ in range(max_rounds):
        current_height = await page.evaluate("() => document.body.scrollHeight")
        if current_height == previous_height:
            break
        previous_height = current_height
        await page.evaluate("() => window.scrollTo(0, document.body.scrollHeight)")
        await asyncio.sleep(pause)
    await page.evaluate("() => window.scrollTo(0, 0)")


async def scroll_by_steps(page: Page, steps: int, distance: int = 2000, pause: float = 0.8) -> None:
    """Fixed-step scroll to trigger lazy loading, then back to top."""
    for _ in range(steps):
        await page.evaluate(f"() => window.scrollBy(0, {int(distance)})")
        await asyncio.sleep(pause)
    await page.evaluate("() => window.scrollTo(0, 0)")


async def click_if_present(page: Page, selector: str, timeout: int = 2000) -> bool:
    """Click the first visible match of ``selector``; False when there is none."""
    try:
        locator = page.locator(selector).first
        if await locator.is_visible():
            await locator.click(timeout=timeout)
            return True
    except Exception as e:
        logger.debug(f"[NAV] Could not click {selector}: {e}")
    return False


async def dismiss_cookies(page: Page, selectors: Sequence[str], timeout: int = 2000) -> bool:
    """Accept the cookie banner with the first selector that matches."""
    for selector in selectors:
        if await click_if_present(page, selector, timeout):
            logger.debug(f"[NAV] Cookie banner dismissed with {selector}")
            await asyncio.sleep(0.5)
            return True
    return False


async def collect_links(
    page: Page,
    selector: str,
    container: Optional[str] = None,
    climb: int = 0,
    climb_max_height: Optional[int] = None,
    min_height: Optional[int] = None,
    href_pattern: Optional[str] = None,
    image_selector: Optional[str] = None,
    heading_selector: Optional[str] = None,
    unique: bool = True,
) -> list[dict[str, Any]]:
    """
    Collect anchors matching ``selector`` with the text of their card.

    The card is ``a.closest(container)`` when given, then up to ``climb``
    parent hops (stopping at parents taller than ``climb_max_height``).
    Each item: url (absolute), href (raw attribute), text, link_text,
    has_image, image_url, headings.
    """
    options = {
        "selector": selector,
        "container": container,
        "climb": climb,
        "climbMaxHeight": climb_max_height,
        "minHeight": min_height,
        "hrefPattern": href_pattern,
        "imageSelector": image_selector,
        "headingSelector": heading_selector,
        "unique": unique,
    }
    return await page.evaluate(COLLECT_LINKS_JS, options)


async def page_snapshot(page: Page) -> dict[str, str]:
    """Title, visible text and HTML of the current page."""
    return {
        "title": await page.title(),
        "body_text": await safe_text(page, "body") or "",
        "html": await page.content(),
    }


async def wait_for_optional(page: Page, selector: str, timeout: int = 10000) -> bool:
    """Wait for ``selector`` to appear; a miss is not an error."""
    try:
        await page.wait_for_selector(selector, timeout=timeout)
        return True
    except PlaywrightTimeoutError:
        logger.debug(f"[NAV] {selector} did not appear within {timeout}ms")
        return False

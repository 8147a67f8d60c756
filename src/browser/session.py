"""Shared headless Chromium process with isolated contexts per job."""
import asyncio
import logging
from typing import Optional

from playwright.async_api import Browser, BrowserContext, Playwright, async_playwright

from src.config import config

logger = logging.getLogger(__name__)

LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
    "--disable-extensions",
    "--disable-background-networking",
    "--disable-features=site-per-process",
]

VIEWPORT = {"width": 1280, "height": 720}
LOCALE = "en-GB"


async def close_with_timeout(resource, timeout: Optional[float] = None, label: str = "BROWSER") -> bool:
    """
    Close a page, context or browser without trusting it to answer.

    A wedged Chromium never completes ``close()``, so the call is bounded.
    Returns False when the close failed or timed out.
    """
    timeout = config.CLOSE_TIMEOUT if timeout is None else timeout
    try:
        await asyncio.wait_for(resource.close(), timeout=timeout)
        return True
    except asyncio.TimeoutError:
        logger.warning(f"[{label}] close() did not finish within {timeout:g}s")
    except Exception as e:
        logger.debug(f"[{label}] close() failed: {e}")
    return False


class BrowserManager:
    """
    Lazily launch one Chromium and hand out fresh contexts.

    Launch and context creation are serialized so concurrent jobs never race
    to start two processes. A crashed or disconnected browser is relaunched
    on the next ``ensure()``.
    """

    def __init__(self, headless: Optional[bool] = None):
        self.headless = config.HEADLESS if headless is None else headless
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._lock = asyncio.Lock()
        self.launch_count = 0

    @property
    def is_running(self) -> bool:
        return self._browser is not None and self._browser.is_connected()

    def _on_disconnected(self, browser: Browser) -> None:
        if browser is self._browser:
            logger.warning("[BROWSER] Chromium disconnected, will relaunch on next use")
            self._browser = None

    async def _launch(self) -> Browser:
        if self._playwright is None:
            self._playwright = await async_playwright().start()
        browser = await self._playwright.chromium.launch(headless=self.headless, args=LAUNCH_ARGS)
        browser.on("disconnected", self._on_disconnected)
        self.launch_count += 1
        logger.info(f"[BROWSER] Chromium launched (headless={self.headless}, launch #{self.launch_count})")
        return browser

    async def ensure(self) -> Browser:
        """Return the running browser, launching one if needed."""
        async with self._lock:
            if not self.is_running:
                self._browser = await self._launch()
            return self._browser

    async def new_context(self) -> BrowserContext:
        """Fresh isolated context; the caller closes it."""
        browser = await self.ensure()
        async with self._lock:
            return await browser.new_context(
                user_agent=config.USER_AGENT,
                viewport=VIEWPORT,
                locale=LOCALE,
                timezone_id=config.TIMEZONE,
            )

    async def discard(self) -> None:
        """Force-close the browser after a hung job. Safe to call twice."""
        browser, self._browser = self._browser, None
        if browser is None:
            return
        logger.warning("[BROWSER] Discarding browser process")
        if not await close_with_timeout(browser):
            logger.warning("[BROWSER] Browser did not close cleanly; dropped anyway")

    async def close(self) -> None:
        """Close the browser and stop the Playwright driver."""
        browser, self._browser = self._browser, None
        if browser is not None:
            try:
                await browser.close()
            except Exception as e:
                logger.warning(f"[BROWSER] Error closing browser: {e}")
        if self._playwright is not None:
            try:
                await self._playwright.stop()
            except Exception as e:
                logger.warning(f"[BROWSER] Error stopping Playwright: {e}")
            self._playwright = None
        logger.info("[BROWSER] Closed")

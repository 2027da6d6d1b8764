from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from playwright.sync_api import (
    Browser,
    BrowserContext,
    ElementHandle,
    Error as PlaywrightError,
    Page,
    Playwright,
    sync_playwright,
)


logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

_LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-blink-features=AutomationControlled",
]

_HIDE_WEBDRIVER_SCRIPT = """
Object.defineProperty(navigator, 'webdriver', { get: () => false });
"""


@dataclass(frozen=True)
class BrowserOptions:
    headless: bool = True
    viewport_width: int = 1920
    viewport_height: int = 1080
    user_agent: str = DEFAULT_USER_AGENT
    hide_webdriver: bool = True
    slow_mo_ms: int = 0


class BrowserSession:
    """
    One Chromium page driven through Playwright's sync API.

    Lifecycle: `initialize()` once, use, `close()` once.
    """

    def __init__(self, options: Optional[BrowserOptions] = None) -> None:
        self.options = options or BrowserOptions()
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self._page: Optional[Page] = None

    def initialize(self) -> bool:
        opts = self.options
        logger.info("Initializing browser (headless=%s)", opts.headless)
        try:
            self._playwright = sync_playwright().start()
            self._browser = self._launch(self._playwright)
            self._context = self._browser.new_context(
                viewport={"width": opts.viewport_width, "height": opts.viewport_height},
                user_agent=opts.user_agent,
            )
            if opts.hide_webdriver:
                self._context.add_init_script(_HIDE_WEBDRIVER_SCRIPT)
            self._page = self._context.new_page()
        except Exception as e:
            logger.error("Failed to initialize browser: %s", e)
            self.close()
            return False

        logger.info("Browser initialized")
        return True

    def _launch(self, p: Playwright) -> Browser:
        slow_mo = int(self.options.slow_mo_ms or 0)
        headless = self.options.headless
        try:
            return p.chromium.launch(headless=headless, slow_mo=slow_mo, args=_LAUNCH_ARGS)
        except PlaywrightError as e:
            msg = str(e)
            if "Executable doesn't exist" not in msg:
                raise

            logger.warning(
                "Playwright Chromium executable missing; falling back to system browser channel. (%s)",
                msg,
            )
            try:
                return p.chromium.launch(headless=headless, slow_mo=slow_mo, args=_LAUNCH_ARGS, channel="chrome")
            except PlaywrightError:
                return p.chromium.launch(headless=headless, slow_mo=slow_mo, args=_LAUNCH_ARGS, channel="msedge")

    @property
    def page(self) -> Page:
        if self._page is None:
            raise RuntimeError("Browser session is not initialized; call initialize() first.")
        return self._page

    def navigate(self, url: str, *, wait_until: str = "networkidle", timeout_ms: int = 30_000) -> bool:
        # Navigation errors (timeouts, net::ERR_*) propagate; callers classify them.
        logger.info("Navigating to %s", url)
        self.page.goto(url, wait_until=wait_until, timeout=timeout_ms)
        return True

    def current_url(self) -> str:
        return self.page.url

    def wait_for_visible(self, selector: str, timeout_ms: int = 10_000) -> Optional[ElementHandle]:
        try:
            return self.page.wait_for_selector(selector, state="visible", timeout=timeout_ms)
        except PlaywrightError as e:
            logger.debug("Element not visible: %s (%s)", selector, e.__class__.__name__)
            return None

    def query(self, selector: str) -> Optional[ElementHandle]:
        return self.page.query_selector(selector)

    def query_all(self, selector: str) -> list[ElementHandle]:
        return self.page.query_selector_all(selector)

    def evaluate(self, expression: str, arg: Any = None) -> Any:
        return self.page.evaluate(expression, arg)

    def wait_for_function(self, expression: str, timeout_ms: int = 10_000) -> bool:
        # Also False when a navigation tears down the context mid-poll.
        try:
            self.page.wait_for_function(expression, timeout=timeout_ms)
            return True
        except PlaywrightError:
            return False

    def wait_for_load(self, timeout_ms: int = 15_000) -> bool:
        """
        Wait for the network to go idle after a form submission. False when nothing settled in time.
        """
        try:
            self.page.wait_for_load_state("networkidle", timeout=timeout_ms)
            return True
        except PlaywrightError as e:
            # Includes a page or target closed mid-wait; analysis still runs on whatever loaded.
            logger.debug("Load wait ended early: %s", e.__class__.__name__)
            return False

    def content(self) -> str:
        return self.page.content()

    def screenshot(self, path: str) -> None:
        Path(path).parent.mkdir(parents=True, exist_ok=True)
        self.page.screenshot(path=path, full_page=True)
        logger.info("Saved screenshot: %s", path)

    def save_debug(self, debug_dir: str, name_prefix: str) -> None:
        """
        Best-effort: screenshot + HTML + body text for offline inspection.
        """
        try:
            out_dir = Path(debug_dir)
            out_dir.mkdir(parents=True, exist_ok=True)
            self.page.screenshot(path=str(out_dir / f"{name_prefix}.png"), full_page=True)
            (out_dir / f"{name_prefix}.html").write_text(self.page.content(), encoding="utf-8")
            try:
                (out_dir / f"{name_prefix}.txt").write_text(self.page.inner_text("body"), encoding="utf-8")
            except PlaywrightError:
                pass
            logger.info("Saved debug artifacts: %s/%s.*", out_dir, name_prefix)
        except Exception:
            logger.debug("Failed to save debug artifacts.", exc_info=True)

    def wait(self, ms: int) -> None:
        self.page.wait_for_timeout(ms)

    def close(self) -> None:
        if self._browser is not None:
            try:
                self._browser.close()
                logger.info("Browser closed")
            except Exception:
                logger.debug("Failed to close browser.", exc_info=True)
        if self._playwright is not None:
            try:
                self._playwright.stop()
            except Exception:
                logger.debug("Failed to stop playwright.", exc_info=True)
        self._playwright = None
        self._browser = None
        self._context = None
        self._page = None

import logging
from types import TracebackType

from playwright.async_api import (
    Browser,
    BrowserContext,
    ConsoleMessage,
    Page,
    Playwright,
    Response,
    Route,
    async_playwright,
)
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from playwright_stealth import Stealth

from drivehr_scraper.errors import BrowserSessionError, NavigationError
from drivehr_scraper.models import ScraperSettings

logger = logging.getLogger(__name__)

VIEWPORT = {"width": 1280, "height": 720}
BLOCKED_RESOURCE_TYPES = frozenset({"image", "stylesheet", "font", "media"})
SETTLE_DELAY_MS = 2000  # extra wait for SPA rendering after network idle
EXTRA_HTTP_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
}


class BrowserSession:
    """
    Owns the browser, context and page used by one scrape attempt.

    Use it as an async context manager so the page, context, browser and
    Playwright driver are released on every exit path:

        async with BrowserSession(settings) as session:
            page = await session.open_page()
            await session.navigate(url)
    """

    def __init__(self, settings: ScraperSettings | None = None) -> None:
        self.settings = settings or ScraperSettings()
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._context: BrowserContext | None = None
        self._page: Page | None = None

    async def __aenter__(self) -> "BrowserSession":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    @property
    def page(self) -> Page:
        if self._page is None:
            raise RuntimeError("No page is open in this browser session")
        return self._page

    async def launch(
        self,
        headless: bool | None = None,
        extra_args: list[str] | None = None,
        user_agent: str | None = None,
    ) -> Browser:
        """Start Chromium, or return the browser this session already launched."""
        if user_agent:
            self.settings = self.settings.model_copy(update={"user_agent": user_agent})

        if self._browser is not None and self._browser.is_connected():
            return self._browser

        logger.debug("Launching Playwright browser")
        try:
            if self._playwright is None:
                self._playwright = await async_playwright().start()
            self._browser = await self._playwright.chromium.launch(
                headless=self.settings.headless if headless is None else headless,
                args=self.settings.browser_args if extra_args is None else extra_args,
            )
        except PlaywrightError as e:
            raise BrowserSessionError(str(e)) from e
        return self._browser

    async def open_page(self, timeout: int | None = None) -> Page:
        """
        Create a fresh context and page with resource blocking and console capture.
        A page opened earlier in this session is closed first.
        """
        browser = await self.launch()
        timeout = timeout or self.settings.timeout
        await self._close_page()

        try:
            self._context = await browser.new_context(
                user_agent=self.settings.user_agent,
                viewport=VIEWPORT,
                ignore_https_errors=True,
                extra_http_headers=EXTRA_HTTP_HEADERS,
            )
            if self.settings.stealth:
                await Stealth().apply_stealth_async(self._context)
            self._page = await self._context.new_page()
        except PlaywrightError as e:
            raise BrowserSessionError(str(e)) from e

        self._page.set_default_timeout(timeout)
        self._page.set_default_navigation_timeout(timeout)
        await self._page.route("**/*", self._route_request)
        if self.settings.debug:
            self._page.on("console", self._log_console_message)

        return self._page

    async def navigate(
        self,
        url: str,
        wait_until: str = "networkidle",
        timeout: int | None = None,
        wait_selector: str | None = None,
    ) -> Response | None:
        """
        Load the URL, then wait for job content to render.

        A wait selector that never appears is not fatal: markup differs between
        sites, so we fall back to network idle plus a short settle delay.
        """
        page = self.page
        timeout = timeout or self.settings.timeout

        try:
            response = await page.goto(url, wait_until=wait_until, timeout=timeout)
        except PlaywrightError as e:
            raise NavigationError(str(e)) from e

        if wait_selector:
            await self._wait_for_content(page, wait_selector, timeout)
        return response

    async def _wait_for_content(self, page: Page, selector: str, timeout: int) -> None:
        logger.debug("Waiting for job listings to load")
        try:
            await page.wait_for_selector(selector, timeout=timeout, state="visible")
            logger.debug("Job listing elements found")
            return
        except PlaywrightTimeoutError:
            logger.debug("Job listing selectors not found, waiting for network idle")

        try:
            await page.wait_for_load_state("networkidle", timeout=timeout)
            await page.wait_for_timeout(SETTLE_DELAY_MS)
        except PlaywrightError as e:
            raise NavigationError(str(e)) from e

    async def screenshot(self, path: str) -> str:
        await self.page.screenshot(path=path, full_page=True)
        return path

    async def close(self) -> None:
        """
        Close page, context, browser and driver. Each step is guarded on its own,
        so one failure never prevents the rest or reaches the caller.
        """
        await self._close_page()

        browser, self._browser = self._browser, None
        playwright, self._playwright = self._playwright, None

        if browser is not None:
            await self._close_quietly("browser", browser.close)
        if playwright is not None:
            await self._close_quietly("playwright driver", playwright.stop)

    async def _close_page(self) -> None:
        page, self._page = self._page, None
        context, self._context = self._context, None

        if page is not None:
            await self._close_quietly("page", page.close)
        if context is not None:
            await self._close_quietly("context", context.close)

    @staticmethod
    async def _close_quietly(name: str, close) -> None:
        try:
            await close()
        except Exception as e:
            logger.warning(f"Error closing {name}: {e}")

    @staticmethod
    async def _route_request(route: Route) -> None:
        # Extraction never needs images, styles, fonts or media.
        if route.request.resource_type in BLOCKED_RESOURCE_TYPES:
            await route.abort()
        else:
            await route.continue_()

    @staticmethod
    def _log_console_message(message: ConsoleMessage) -> None:
        logger.debug(f"Page console.{message.type}: {message.text}")

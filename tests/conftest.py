import os
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

# Set environment variables for tests before any imports happen
os.environ["DRIVEHR_COMPANY_ID"] = "test-company"
os.environ.pop("DRIVEHR_CAREERS_URL", None)
os.environ.pop("SCRAPER_DEBUG", None)
os.environ.pop("ENVIRONMENT", None)

from drivehr_scraper.models import CareersConfig, ScraperSettings  # noqa: E402

CAREERS_URL = "https://drivehris.app/careers/test-company/list"


@pytest.fixture
def careers_config():
    """Careers config pointing at an explicit URL, single attempt."""
    return CareersConfig(
        company_id="test-company",
        careers_url=CAREERS_URL,
        api_base_url="https://drivehris.app/careers/test-company",
        retries=1,
    )


@pytest.fixture
def scraper_settings(tmp_path):
    """Settings that never touch real stealth scripts or the working directory."""
    return ScraperSettings(stealth=False, retries=1, screenshot_dir=str(tmp_path / "temp"))


def set_visible_text(page: MagicMock, text: str) -> None:
    """Make page.get_by_text(...) report phrases contained in text as visible."""

    def get_by_text(phrase):
        locator = MagicMock()
        locator.first.is_visible = AsyncMock(return_value=phrase.lower() in text.lower())
        return locator

    page.get_by_text = MagicMock(side_effect=get_by_text)


def make_playwright_stack(html: str = "<html><body></body></html>", body_text: str = ""):
    """Build mocked Playwright objects wired together like the real async API."""
    page = MagicMock(name="page")
    page.url = CAREERS_URL
    page.goto = AsyncMock(return_value=MagicMock(status=200))
    page.route = AsyncMock()
    page.content = AsyncMock(return_value=html)
    page.evaluate = AsyncMock(return_value=body_text)
    page.wait_for_selector = AsyncMock()
    page.wait_for_load_state = AsyncMock()
    page.wait_for_timeout = AsyncMock()
    page.screenshot = AsyncMock()
    page.close = AsyncMock()
    set_visible_text(page, body_text)

    context = MagicMock(name="context")
    context.new_page = AsyncMock(return_value=page)
    context.close = AsyncMock()

    browser = MagicMock(name="browser")
    browser.new_context = AsyncMock(return_value=context)
    browser.is_connected = MagicMock(return_value=True)
    browser.close = AsyncMock()

    playwright = MagicMock(name="playwright")
    playwright.chromium.launch = AsyncMock(return_value=browser)
    playwright.stop = AsyncMock()

    manager = MagicMock(name="async_playwright")
    manager.start = AsyncMock(return_value=playwright)

    return SimpleNamespace(
        manager=manager,
        playwright=playwright,
        browser=browser,
        context=context,
        page=page,
    )


@pytest.fixture
def playwright_stack():
    """Patch async_playwright so BrowserSession drives mocks instead of Chromium."""
    stack = make_playwright_stack()
    with patch("drivehr_scraper.browser.async_playwright", return_value=stack.manager):
        yield stack

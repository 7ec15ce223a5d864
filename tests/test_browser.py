from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from drivehr_scraper.browser import SETTLE_DELAY_MS, VIEWPORT, BrowserSession
from drivehr_scraper.errors import BrowserSessionError, NavigationError
from drivehr_scraper.models import DEFAULT_WAIT_SELECTOR

from conftest import CAREERS_URL


def _route(resource_type):
    route = MagicMock()
    route.request.resource_type = resource_type
    route.abort = AsyncMock()
    route.continue_ = AsyncMock()
    return route


@pytest.mark.asyncio
async def test_launch_reuses_connected_browser(playwright_stack, scraper_settings):
    session = BrowserSession(scraper_settings)

    first = await session.launch()
    second = await session.launch()

    assert first is second is playwright_stack.browser
    playwright_stack.playwright.chromium.launch.assert_awaited_once_with(
        headless=True, args=scraper_settings.browser_args
    )


@pytest.mark.asyncio
async def test_launch_relaunches_disconnected_browser(playwright_stack, scraper_settings):
    session = BrowserSession(scraper_settings)
    await session.launch()
    playwright_stack.browser.is_connected.return_value = False

    await session.launch(headless=False, extra_args=["--foo"])

    assert playwright_stack.playwright.chromium.launch.await_count == 2
    playwright_stack.playwright.chromium.launch.assert_awaited_with(headless=False, args=["--foo"])
    # The driver is started once per session
    playwright_stack.manager.start.assert_awaited_once()


@pytest.mark.asyncio
async def test_launch_failure_raises_session_error(playwright_stack, scraper_settings):
    playwright_stack.playwright.chromium.launch.side_effect = PlaywrightError(
        "Executable doesn't exist"
    )

    with pytest.raises(BrowserSessionError, match="Executable"):
        await BrowserSession(scraper_settings).launch()


@pytest.mark.asyncio
async def test_open_page_configures_context_and_page(playwright_stack, scraper_settings):
    session = BrowserSession(scraper_settings)

    page = await session.open_page(timeout=5000)

    assert page is playwright_stack.page
    assert session.page is page
    kwargs = playwright_stack.browser.new_context.await_args.kwargs
    assert kwargs["user_agent"] == scraper_settings.user_agent
    assert kwargs["viewport"] == VIEWPORT
    page.set_default_timeout.assert_called_once_with(5000)
    page.set_default_navigation_timeout.assert_called_once_with(5000)
    page.route.assert_awaited_once_with("**/*", BrowserSession._route_request)
    page.on.assert_not_called()


@pytest.mark.asyncio
async def test_open_page_registers_console_listener_in_debug(playwright_stack, scraper_settings):
    settings = scraper_settings.model_copy(update={"debug": True})

    page = await BrowserSession(settings).open_page()

    page.on.assert_called_once()
    assert page.on.call_args.args[0] == "console"


@pytest.mark.asyncio
async def test_open_page_applies_stealth_when_enabled(playwright_stack, scraper_settings):
    settings = scraper_settings.model_copy(update={"stealth": True})

    with patch("drivehr_scraper.browser.Stealth") as mock_stealth:
        mock_stealth.return_value.apply_stealth_async = AsyncMock()
        await BrowserSession(settings).open_page()

    mock_stealth.return_value.apply_stealth_async.assert_awaited_once_with(
        playwright_stack.context
    )


@pytest.mark.asyncio
async def test_open_page_skips_stealth_when_disabled(playwright_stack, scraper_settings):
    with patch("drivehr_scraper.browser.Stealth") as mock_stealth:
        await BrowserSession(scraper_settings).open_page()

    mock_stealth.assert_not_called()


@pytest.mark.asyncio
async def test_open_page_failure_raises_session_error(playwright_stack, scraper_settings):
    playwright_stack.context.new_page.side_effect = PlaywrightError("context closed")

    with pytest.raises(BrowserSessionError):
        await BrowserSession(scraper_settings).open_page()


def test_page_property_without_open_page(scraper_settings):
    with pytest.raises(RuntimeError):
        _ = BrowserSession(scraper_settings).page


@pytest.mark.asyncio
@pytest.mark.parametrize("resource_type", ["image", "stylesheet", "font", "media"])
async def test_route_blocks_heavy_resources(resource_type):
    route = _route(resource_type)

    await BrowserSession._route_request(route)

    route.abort.assert_awaited_once()
    route.continue_.assert_not_called()


@pytest.mark.asyncio
@pytest.mark.parametrize("resource_type", ["document", "script", "xhr", "fetch"])
async def test_route_continues_other_requests(resource_type):
    route = _route(resource_type)

    await BrowserSession._route_request(route)

    route.continue_.assert_awaited_once()
    route.abort.assert_not_called()


@pytest.mark.asyncio
async def test_navigate_waits_for_selector(playwright_stack, scraper_settings):
    session = BrowserSession(scraper_settings)
    page = await session.open_page()

    await session.navigate(CAREERS_URL, wait_selector=DEFAULT_WAIT_SELECTOR)

    page.goto.assert_awaited_once_with(
        CAREERS_URL, wait_until="networkidle", timeout=scraper_settings.timeout
    )
    page.wait_for_selector.assert_awaited_once_with(
        DEFAULT_WAIT_SELECTOR, timeout=scraper_settings.timeout, state="visible"
    )
    page.wait_for_load_state.assert_not_called()
    page.wait_for_timeout.assert_not_called()


@pytest.mark.asyncio
async def test_navigate_selector_timeout_falls_back_to_settle_delay(
    playwright_stack, scraper_settings
):
    session = BrowserSession(scraper_settings)
    page = await session.open_page()
    page.wait_for_selector.side_effect = PlaywrightTimeoutError("Timeout 30000ms exceeded")

    await session.navigate(CAREERS_URL, wait_selector=DEFAULT_WAIT_SELECTOR)

    page.wait_for_load_state.assert_awaited_once_with(
        "networkidle", timeout=scraper_settings.timeout
    )
    page.wait_for_timeout.assert_awaited_once_with(SETTLE_DELAY_MS)


@pytest.mark.asyncio
async def test_navigate_fallback_failure_raises(playwright_stack, scraper_settings):
    session = BrowserSession(scraper_settings)
    page = await session.open_page()
    page.wait_for_selector.side_effect = PlaywrightTimeoutError("Timeout")
    page.wait_for_load_state.side_effect = PlaywrightTimeoutError("Timeout")

    with pytest.raises(NavigationError):
        await session.navigate(CAREERS_URL, wait_selector=DEFAULT_WAIT_SELECTOR)


@pytest.mark.asyncio
async def test_navigate_goto_failure_raises(playwright_stack, scraper_settings):
    session = BrowserSession(scraper_settings)
    page = await session.open_page()
    page.goto.side_effect = PlaywrightError("net::ERR_NAME_NOT_RESOLVED")

    with pytest.raises(NavigationError, match="ERR_NAME_NOT_RESOLVED"):
        await session.navigate(CAREERS_URL)


@pytest.mark.asyncio
async def test_context_manager_closes_everything_once(playwright_stack, scraper_settings):
    async with BrowserSession(scraper_settings) as session:
        await session.open_page()

    await session.close()  # second close is a no-op

    playwright_stack.page.close.assert_awaited_once()
    playwright_stack.context.close.assert_awaited_once()
    playwright_stack.browser.close.assert_awaited_once()
    playwright_stack.playwright.stop.assert_awaited_once()


@pytest.mark.asyncio
async def test_reopening_page_releases_previous_context(playwright_stack, scraper_settings):
    second_page = MagicMock(name="second_page")
    second_page.route = AsyncMock()
    second_page.close = AsyncMock()
    second_context = MagicMock(name="second_context")
    second_context.new_page = AsyncMock(return_value=second_page)
    second_context.close = AsyncMock()
    playwright_stack.browser.new_context.side_effect = [playwright_stack.context, second_context]

    async with BrowserSession(scraper_settings) as session:
        await session.open_page()
        page = await session.open_page()

        assert page is second_page
        assert session.page is second_page
        playwright_stack.page.close.assert_awaited_once()
        playwright_stack.context.close.assert_awaited_once()
        second_context.close.assert_not_called()

    second_page.close.assert_awaited_once()
    second_context.close.assert_awaited_once()
    playwright_stack.page.close.assert_awaited_once()
    playwright_stack.browser.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_close_continues_after_individual_failures(playwright_stack, scraper_settings):
    playwright_stack.page.close.side_effect = PlaywrightError("already closed")
    playwright_stack.browser.close.side_effect = RuntimeError("boom")

    session = BrowserSession(scraper_settings)
    await session.open_page()
    await session.close()

    playwright_stack.context.close.assert_awaited_once()
    playwright_stack.playwright.stop.assert_awaited_once()


@pytest.mark.asyncio
async def test_close_after_partial_setup(playwright_stack, scraper_settings):
    """Test that a session whose page never opened still releases the browser."""
    playwright_stack.browser.new_context.side_effect = PlaywrightError("no context")

    async with BrowserSession(scraper_settings) as session:
        with pytest.raises(BrowserSessionError):
            await session.open_page()

    playwright_stack.page.close.assert_not_called()
    playwright_stack.browser.close.assert_awaited_once()
    playwright_stack.playwright.stop.assert_awaited_once()


@pytest.mark.asyncio
async def test_screenshot_is_full_page(playwright_stack, scraper_settings, tmp_path):
    session = BrowserSession(scraper_settings)
    page = await session.open_page()
    path = str(tmp_path / "shot.png")

    assert await session.screenshot(path) == path
    page.screenshot.assert_awaited_once_with(path=path, full_page=True)


def test_console_messages_are_logged(caplog):
    message = MagicMock(type="error", text="Uncaught TypeError")

    with caplog.at_level("DEBUG", logger="drivehr_scraper.browser"):
        BrowserSession._log_console_message(message)

    assert "Page console.error: Uncaught TypeError" in caplog.text

from unittest.mock import AsyncMock, MagicMock

import pytest
from playwright.async_api import Error as PlaywrightError

from drivehr_scraper.errors import PageUnavailableError
from drivehr_scraper.page import INNER_TEXT_SCRIPT, PlaywrightPageContext, StaticPageContext

from conftest import CAREERS_URL, make_playwright_stack


@pytest.mark.asyncio
async def test_playwright_context_reads_content_and_text():
    stack = make_playwright_stack(html="<p>Hello</p>", body_text="Hello")
    context = PlaywrightPageContext(stack.page, "https://fallback.example.com")

    assert context.base_url == CAREERS_URL
    assert await context.content() == "<p>Hello</p>"
    assert await context.text_content() == "Hello"
    stack.page.evaluate.assert_awaited_once_with(INNER_TEXT_SCRIPT, None)


def test_playwright_context_base_url_falls_back_when_page_has_none():
    page = MagicMock()
    page.url = ""
    assert PlaywrightPageContext(page, "https://fallback.example.com").base_url == (
        "https://fallback.example.com"
    )


@pytest.mark.asyncio
async def test_playwright_context_text_content_non_string_result():
    stack = make_playwright_stack()
    stack.page.evaluate = AsyncMock(return_value=None)

    assert await PlaywrightPageContext(stack.page, CAREERS_URL).text_content() == ""


@pytest.mark.asyncio
async def test_playwright_context_wraps_closed_page_errors():
    stack = make_playwright_stack()
    stack.page.content = AsyncMock(side_effect=PlaywrightError("Target page has been closed"))
    stack.page.evaluate = AsyncMock(side_effect=PlaywrightError("Target page has been closed"))
    context = PlaywrightPageContext(stack.page, CAREERS_URL)

    with pytest.raises(PageUnavailableError, match="closed"):
        await context.content()
    with pytest.raises(PageUnavailableError):
        await context.text_content()


@pytest.mark.asyncio
async def test_playwright_context_visible_text():
    stack = make_playwright_stack(body_text="Sorry, no current openings right now")
    context = PlaywrightPageContext(stack.page, CAREERS_URL)

    assert await context.has_visible_text("no current openings") is True
    assert await context.has_visible_text("no opportunities") is False


@pytest.mark.asyncio
async def test_playwright_context_visible_text_error_is_false():
    stack = make_playwright_stack()
    locator = MagicMock()
    locator.first.is_visible = AsyncMock(side_effect=PlaywrightError("detached"))
    stack.page.get_by_text = MagicMock(return_value=locator)

    assert await PlaywrightPageContext(stack.page, CAREERS_URL).has_visible_text("x") is False


@pytest.mark.asyncio
async def test_static_context_text_excludes_non_visible_tags():
    html = """
    <html><head><title>Careers</title><style>.a {}</style></head>
    <body><script>var hidden = 1;</script><noscript>Enable JS</noscript><h1>Open roles</h1></body>
    </html>
    """
    context = StaticPageContext(html, CAREERS_URL)

    text = await context.text_content()

    assert "Open roles" in text
    assert "hidden" not in text
    assert "Enable JS" not in text
    assert await context.content() == html


@pytest.mark.asyncio
async def test_static_context_visible_text_is_case_and_whitespace_insensitive():
    context = StaticPageContext("<body><p>We don't have\n any OPEN positions</p></body>", CAREERS_URL)

    assert await context.has_visible_text("we don't have any open positions") is True
    assert await context.has_visible_text("no positions available") is False

from unittest.mock import AsyncMock, MagicMock

import pytest
from playwright.async_api import Error as PlaywrightError

from directory_crawler.exceptions.custom import RenderError
from directory_crawler.services.browser import PlaywrightRenderer, _block_heavy_requests

URL = "https://dir.test/biz/joes"


def _renderer_with_page(status: int = 200, goto_error: Exception | None = None):
    page = AsyncMock()
    page.url = URL
    page.content.return_value = "<html><body><h1>Joe's</h1></body></html>"
    page.inner_text.return_value = "Joe's"
    if goto_error is not None:
        page.goto.side_effect = goto_error
    else:
        page.goto.return_value = MagicMock(status=status)

    context = AsyncMock()
    context.new_page.return_value = page

    renderer = PlaywrightRenderer()
    renderer._context = context
    return renderer, page


async def test_render_runs_prepare_then_captures_content():
    renderer, page = _renderer_with_page()
    prepare = AsyncMock()

    rendered = await renderer.render(URL, prepare=prepare)

    prepare.assert_awaited_once_with(page)
    assert rendered.markup.startswith("<html>")
    assert rendered.text == "Joe's"
    page.close.assert_awaited_once()


async def test_error_status_raises_render_error():
    renderer, page = _renderer_with_page(status=403)

    with pytest.raises(RenderError) as exc_info:
        await renderer.render(URL)

    assert exc_info.value.status_code == 403
    page.content.assert_not_awaited()
    page.close.assert_awaited_once()


async def test_navigation_failure_raises_render_error():
    renderer, page = _renderer_with_page(goto_error=PlaywrightError("net::ERR_TIMED_OUT"))

    with pytest.raises(RenderError, match="ERR_TIMED_OUT"):
        await renderer.render(URL)

    page.screenshot.assert_not_awaited()
    page.close.assert_awaited_once()


async def test_failure_screenshot_when_debugging(tmp_path):
    renderer, page = _renderer_with_page(status=500)
    renderer._debug_screenshots = True
    renderer._screenshot_dir = tmp_path / "shots"

    with pytest.raises(RenderError):
        await renderer.render(URL)

    page.screenshot.assert_awaited_once()
    assert (tmp_path / "shots").is_dir()


async def test_render_before_start_fails():
    with pytest.raises(RenderError, match="not started"):
        await PlaywrightRenderer().render(URL)


@pytest.mark.parametrize("url,blocked", [
    ("https://dir.test/static/logo.png", True),
    ("https://www.google-analytics.com/collect", True),
    ("https://dir.test/biz/joes", False),
])
async def test_heavy_requests_blocked(url, blocked):
    route = AsyncMock()
    route.request = MagicMock(url=url)

    await _block_heavy_requests(route)

    assert route.abort.await_count == (1 if blocked else 0)
    assert route.continue_.await_count == (0 if blocked else 1)


async def test_page_creation_failure_raises_render_error():
    context = AsyncMock()
    context.new_page.side_effect = PlaywrightError("Target page, context or browser has been closed")
    renderer = PlaywrightRenderer()
    renderer._context = context

    with pytest.raises(RenderError, match="has been closed"):
        await renderer.render(URL)

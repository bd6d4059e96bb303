import httpx
import pytest
import respx
from httpx import Response

from directory_crawler.exceptions.custom import RenderError
from directory_crawler.services.renderer import HttpRenderer, page_text

URL = "https://dir.test/biz/joes"


@respx.mock
async def test_render_returns_markup_and_text():
    respx.get(URL).mock(return_value=Response(200, html="<html><body><h1>Joe's</h1><p>Plumbing</p></body></html>"))

    async with httpx.AsyncClient() as client:
        page = await HttpRenderer(client).render(URL)

    assert page.url == URL
    assert "<h1>Joe's</h1>" in page.markup
    assert page.text == "Joe's Plumbing"


@respx.mock
async def test_prepare_hook_is_ignored():
    respx.get(URL).mock(return_value=Response(200, html="<p>x</p>"))

    async def prepare(page):
        raise AssertionError("no live page for plain HTTP rendering")

    async with httpx.AsyncClient() as client:
        page = await HttpRenderer(client).render(URL, prepare=prepare)

    assert page.text == "x"


@respx.mock
async def test_http_status_becomes_render_error():
    respx.get(URL).mock(return_value=Response(503))

    async with httpx.AsyncClient() as client:
        with pytest.raises(RenderError) as exc_info:
            await HttpRenderer(client).render(URL)

    assert exc_info.value.status_code == 503
    assert exc_info.value.message == "HTTP 503"


@respx.mock
async def test_transport_error_becomes_render_error():
    respx.get(URL).mock(side_effect=httpx.ConnectError("refused"))

    async with httpx.AsyncClient() as client:
        with pytest.raises(RenderError, match="ConnectError"):
            await HttpRenderer(client).render(URL)


def test_page_text_collapses_markup():
    assert page_text("<div> a <b>b</b></div><p>c</p>") == "a b c"

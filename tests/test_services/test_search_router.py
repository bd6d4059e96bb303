from directory_crawler.schemas.work import Label, RenderedPage
from directory_crawler.services.search_router import route

SEARCH_URL = "https://dir.test/search?find_desc=plumber&find_loc=Springfield"


def _page(body: str, url: str = SEARCH_URL) -> RenderedPage:
    return RenderedPage(url=url, markup=f"<html><body>{body}</body></html>")


def test_three_detail_links_and_next_page():
    body = """
        <a href="/biz/joes-plumbing">Joe's</a>
        <a href="/biz/acme-drains?osq=plumber">Acme</a>
        <a href="/biz/pipe-dreams">Pipe Dreams</a>
        <a rel="next" href="/search?find_desc=plumber&amp;find_loc=Springfield&amp;start=10">Next</a>
    """
    items = route(_page(body), SEARCH_URL)

    assert len(items) == 4
    assert [i.label for i in items] == [Label.DETAIL, Label.DETAIL, Label.DETAIL, Label.SEARCH]
    assert items[0].url == "https://dir.test/biz/joes-plumbing"
    assert items[1].url == "https://dir.test/biz/acme-drains?osq=plumber"
    assert items[3].url == "https://dir.test/search?find_desc=plumber&find_loc=Springfield&start=10"


def test_duplicate_detail_links_collapse():
    body = """
        <a href="/biz/joes-plumbing"><img alt="Joe's"></a>
        <a href="/biz/joes-plumbing">Joe's Plumbing</a>
        <a href="/biz/joes-plumbing#reviews">12 reviews</a>
    """
    items = route(_page(body), SEARCH_URL)
    assert [i.url for i in items] == ["https://dir.test/biz/joes-plumbing"]


def test_ignores_non_detail_links():
    body = '<a href="/events">Events</a><a href="https://other.test/biz/x">x</a><a href="/biz/real">r</a>'
    items = route(_page(body), SEARCH_URL)
    assert [i.url for i in items] == ["https://dir.test/biz/real"]


def test_next_page_selector_priority():
    body = """
        <a class="next-link" href="/search?start=99">more</a>
        <a aria-label="Next" href="/search?start=20">›</a>
    """
    items = route(_page(body), SEARCH_URL)
    assert len(items) == 1
    assert items[0].label == Label.SEARCH
    assert items[0].url == "https://dir.test/search?start=20"


def test_next_control_without_href_is_ignored():
    body = '<a rel="next">Next</a><a href="/biz/a">a</a>'
    items = route(_page(body), SEARCH_URL)
    assert [i.label for i in items] == [Label.DETAIL]


def test_unknown_layout_yields_nothing():
    assert route(_page("<div>Sorry, we are down for maintenance</div>"), SEARCH_URL) == []
    assert route(RenderedPage(url=SEARCH_URL, markup=""), SEARCH_URL) == []


def test_links_resolve_against_site_root():
    page = _page('<a href="/biz/a">a</a>', url="https://dir.test/search/deep/path?x=1")
    items = route(page, page.url)
    assert items[0].url == "https://dir.test/biz/a"


def test_malformed_next_link_keeps_detail_links():
    body = '<a href="/biz/a">a</a><a href="/biz/b">b</a><a rel="next" href="http://[bad/search?p=2">Next</a>'
    items = route(_page(body), SEARCH_URL)
    assert [(i.url, i.label) for i in items] == [
        ("https://dir.test/biz/a", Label.DETAIL),
        ("https://dir.test/biz/b", Label.DETAIL),
    ]


def test_malformed_next_link_falls_back_to_later_selector():
    body = '<a rel="next" href="http://[bad">Next</a><a class="next-link" href="/search?start=30">more</a>'
    items = route(_page(body), SEARCH_URL)
    assert [i.url for i in items] == ["https://dir.test/search?start=30"]

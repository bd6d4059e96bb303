"""Tests for the detail-page record resolver."""

import json

from directory_crawler.schemas.work import RenderedPage
from directory_crawler.services.record_resolver import resolve, resolve_record

PAGE_URL = "https://dir.test/biz/joes-plumbing-springfield"


def _page(body: str, *jsonld: dict | str) -> RenderedPage:
    scripts = "".join(
        f'<script type="application/ld+json">{b if isinstance(b, str) else json.dumps(b)}</script>'
        for b in jsonld
    )
    return RenderedPage(url=PAGE_URL, markup=f"<html><head>{scripts}</head><body>{body}</body></html>")


FULL_METADATA = {
    "@context": "https://schema.org",
    "@type": "LocalBusiness",
    "name": "Joe's Plumbing",
    "telephone": "+1-555-0100",
    "address": {
        "@type": "PostalAddress",
        "streetAddress": "12 Elm St",
        "addressLocality": "Springfield",
        "addressRegion": "IL",
        "postalCode": "62701",
    },
    "category": ["Plumbing", "Water Heater Installation/Repair", "Plumbing"],
    "aggregateRating": {"@type": "AggregateRating", "ratingValue": "4.5", "reviewCount": "87"},
}

VISUAL_BODY = """
<h1> Visual   Name </h1>
<a href="tel:+15550199">Call</a>
<address>99 Oak Ave, Springfield</address>
<span class="category-str"><a href="/search?cflt=plumbing">Plumbing</a><a href="/search?cflt=drains">Drains</a></span>
<div role="img" aria-label="3.5 star rating"></div>
<p>3.5 (1,204 reviews)</p>
<span class="price-range">$$</span>
<a href="/biz_redir?url=https%3A%2F%2Fwww.joesplumbing.com%2Fhome%3Fref%3Ddir&amp;s=abc">Business website</a>
"""


def test_metadata_is_primary_source():
    record = resolve_record(_page(VISUAL_BODY, FULL_METADATA), PAGE_URL)

    assert record.name == "Joe's Plumbing"
    assert record.phone == "+1-555-0100"
    assert record.address == "12 Elm St, Springfield, IL, 62701"
    assert record.categories == ["Plumbing", "Water Heater Installation/Repair"]
    assert record.rating == 4.5


def test_visual_fallback_when_no_metadata():
    report = resolve(_page(VISUAL_BODY), PAGE_URL)
    record = report.record

    assert record.name == "Visual Name"
    assert record.phone == "+15550199"
    assert record.address == "99 Oak Ave, Springfield"
    assert record.categories == ["Plumbing", "Drains"]
    assert record.rating == 3.5
    assert record.review_count == 1204
    assert record.price_level == "$$"
    assert report.sources["name"] == "first_heading"
    assert report.sources["phone"] == "tel_link"


def test_metadata_phone_without_tel_link():
    record = resolve_record(_page("<h1>Joe</h1>", {"@type": "LocalBusiness", "telephone": "+1-555-0100"}), PAGE_URL)
    assert record.phone == "+1-555-0100"


def test_fields_resolve_independently_per_source():
    metadata = {"@type": "Organization", "name": "Meta Name"}
    report = resolve(_page(VISUAL_BODY, metadata), PAGE_URL)

    assert report.record.name == "Meta Name"
    assert report.sources["name"] == "metadata_name"
    assert report.record.phone == "+15550199"
    assert report.sources["phone"] == "tel_link"


def test_string_address_and_single_category():
    metadata = {"@type": "LocalBusiness", "address": "12 Elm St, Springfield", "category": "Plumbing"}
    record = resolve_record(_page("", metadata), PAGE_URL)
    assert record.address == "12 Elm St, Springfield"
    assert record.categories == ["Plumbing"]


def test_malformed_metadata_falls_through_to_visual():
    record = resolve_record(_page("<h1>Fallback</h1>", "{broken json"), PAGE_URL)
    assert record.name == "Fallback"


def test_bad_rating_value_falls_back_to_label():
    metadata = {"@type": "LocalBusiness", "aggregateRating": {"ratingValue": "n/a"}}
    body = '<span aria-label="4 star rating"></span>'
    report = resolve(_page(body, metadata), PAGE_URL)
    assert report.record.rating == 4.0
    assert report.sources["rating"] == "star_rating_label"


# --- website ---


def test_redirect_link_decodes_inner_url_to_origin():
    record = resolve_record(_page(VISUAL_BODY), PAGE_URL)
    assert record.website == "https://www.joesplumbing.com"


def test_direct_website_link():
    body = '<a href="https://joesplumbing.com/services/drains">Website</a>'
    assert resolve_record(_page(body), PAGE_URL).website == "https://joesplumbing.com"


def test_short_redirect_param():
    body = '<a href="https://dir.test/redirect?u=http%3A%2F%2Fjoes.example.org%2F">Visit website</a>'
    assert resolve_record(_page(body), PAGE_URL).website == "http://joes.example.org"


def test_bare_redirect_anchor_matched_last():
    body = '<a href="/biz_redir?url=https%3A%2F%2Fjoes.net&amp;cachebuster=1"><svg></svg></a>'
    report = resolve(_page(body), PAGE_URL)
    assert report.record.website == "https://joes.net"
    assert report.sources["website"] == "outbound_redirect_link"


def test_links_back_into_directory_are_not_websites():
    body = '<a href="https://dir.test/biz/joes/website-info">Website</a>'
    report = resolve(_page(body), PAGE_URL)
    assert report.record.website is None
    assert "website" in report.misses


# --- totality ---


def test_empty_page_yields_empty_record():
    report = resolve(RenderedPage(url=PAGE_URL, markup=""), PAGE_URL)
    record = report.record

    assert record.source_url == PAGE_URL
    assert record.name is None
    assert record.phone is None
    assert record.address is None
    assert record.categories == []
    assert record.rating is None
    assert record.review_count is None
    assert record.price_level is None
    assert record.website is None
    assert record.emails == []
    assert set(report.misses) == {
        "name", "phone", "address", "categories", "rating", "review_count", "website", "price_level",
    }


def test_record_serializes_with_camel_case_keys():
    data = resolve_record(_page(VISUAL_BODY), PAGE_URL).model_dump(by_alias=True)
    assert data["sourceUrl"] == PAGE_URL
    assert data["reviewCount"] == 1204
    assert "phonesFromWebsite" in data
    assert "socialLinks" in data
    assert "scrapedAt" in data


def test_deeply_nested_metadata_falls_through_to_visual():
    nested = "[" * 100_000 + "]" * 100_000
    report = resolve(_page("<h1>Joe</h1>", nested), PAGE_URL)
    assert report.record.name == "Joe"
    assert report.sources["name"] == "first_heading"


def test_malformed_website_href_skipped_within_strategy():
    body = '<a href="http://[bad/home">Website</a><a href="https://joesplumbing.com/home">Website</a>'
    report = resolve(_page(body), PAGE_URL)
    assert report.record.website == "https://joesplumbing.com"
    assert report.sources["website"] == "website_link"

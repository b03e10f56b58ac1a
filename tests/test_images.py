"""Tests for thumbnail search."""

from unittest.mock import patch

import httpx

from newsdesk.images import ImageSearcher
from newsdesk.models import ImageResult


def _transport(routes, calls):
    def handler(request):
        calls.append(request.url.host)
        status, payload = routes.get(request.url.host, (404, {}))
        return httpx.Response(status, json=payload)

    return httpx.Client(transport=httpx.MockTransport(handler))


UNSPLASH = {
    "results": [
        {
            "urls": {"regular": "https://img.unsplash/1.jpg"},
            "user": {"name": "Ann", "links": {"html": "https://unsplash.com/ann"}},
        },
        {"urls": {"regular": "https://img.unsplash/2.jpg"}},
    ]
}
PEXELS = {"photos": [{"src": {"large": "https://img.pexels/1.jpg"}, "photographer": "Bo"}]}


def _searcher(mock_client, settings, http, **kwargs):
    return ImageSearcher(mock_client, settings, http=http, use_duckduckgo=False, **kwargs)


def test_first_provider_wins(mock_client, sample_settings):
    calls = []
    http = _transport({"api.unsplash.com": (200, UNSPLASH), "api.pexels.com": (200, PEXELS)}, calls)
    mock_client.set_responses([["chip", "circuit board"]])
    searcher = _searcher(
        mock_client,
        sample_settings,
        http,
        source_config={"unsplash": {"accessKey": "u"}, "pexels": {"apiKey": "p"}},
    )

    image = searcher.search("Chip", "Teaser", "technology")

    assert image.url == "https://img.unsplash/1.jpg"
    assert image.photographer == "Ann"
    assert calls == ["api.unsplash.com"]


def test_exclude_skips_used_images(mock_client, sample_settings):
    calls = []
    http = _transport({"api.unsplash.com": (200, UNSPLASH)}, calls)
    searcher = _searcher(
        mock_client, sample_settings, http, source_config={"unsplash": {"accessKey": "u"}}
    )
    image = searcher.search("Chip", "", "technology", exclude={"https://img.unsplash/1.jpg"})
    assert image.url == "https://img.unsplash/2.jpg"


def test_failing_provider_falls_through(mock_client, sample_settings):
    calls = []
    http = _transport({"api.unsplash.com": (500, {}), "api.pexels.com": (200, PEXELS)}, calls)
    searcher = _searcher(
        mock_client,
        sample_settings,
        http,
        source_config={"unsplash": {"accessKey": "u"}, "pexels": {"apiKey": "p"}},
    )
    image = searcher.search("Chip", "", "technology")

    assert image.source == "pexels"
    assert calls == ["api.unsplash.com", "api.pexels.com"]


def test_disabled_provider_is_skipped(mock_client, sample_settings):
    searcher = _searcher(
        mock_client,
        sample_settings,
        httpx.Client(),
        source_config={"unsplash": {"accessKey": "u", "enabled": False}},
    )
    assert searcher.providers() == []


def test_all_providers_empty_returns_none(mock_client, sample_settings):
    calls = []
    http = _transport({"pixabay.com": (200, {"hits": []})}, calls)
    searcher = _searcher(
        mock_client, sample_settings, http, source_config={"pixabay": {"apiKey": "x"}}
    )
    assert searcher.search("Chip", "", "technology") is None


def test_duckduckgo_is_last_resort(mock_client, sample_settings):
    searcher = ImageSearcher(mock_client, sample_settings, http=httpx.Client())
    assert [name for name, _ in searcher.providers()] == ["duckduckgo"]

    result = [ImageResult(url="https://ddg/1.jpg", source="duckduckgo")]
    with patch("newsdesk.images._search_duckduckgo", return_value=result) as mock_ddg:
        image = searcher.search("Chip", "", "technology")
    assert image.url == "https://ddg/1.jpg"
    mock_ddg.assert_called_once()


def test_keywords_fall_back_to_category(mock_client, sample_settings):
    mock_client.set_responses([RuntimeError("down"), "no json", []])
    searcher = _searcher(mock_client, sample_settings, httpx.Client())

    assert searcher.generate_keywords("Big Chip Launch Today", "", "technology") == ["technology"]
    assert searcher.generate_keywords("Big Chip Launch Today", "", "technology") == [
        "technology",
        "Big Chip Launch",
    ]
    assert searcher.generate_keywords("Big Chip Launch Today", "", "technology") == ["technology"]

"""Thumbnail search across stock photo providers with a keyless fallback."""

from __future__ import annotations

import logging
from typing import Any, Callable

import httpx
from duckduckgo_search import DDGS

from newsdesk.config import Settings
from newsdesk.jsonparse import ParseErr, extract_json
from newsdesk.models import GenerationRequest, ImageResult

logger = logging.getLogger(__name__)

_RESULTS_PER_PROVIDER = 5
_KEYWORD_SYSTEM_PROMPT = (
    "You are a visual content specialist. Generate 3-5 specific, visual search keywords "
    "for finding a stock photo for a news article. Focus on concrete, visual elements. "
    'Return ONLY a JSON array of keywords, e.g. ["business meeting", "handshake"].'
)

Provider = Callable[[list[str]], list[ImageResult]]


def _search_unsplash(http: httpx.Client, keywords: list[str], access_key: str) -> list[ImageResult]:
    response = http.get(
        "https://api.unsplash.com/search/photos",
        params={
            "query": " ".join(keywords),
            "per_page": _RESULTS_PER_PROVIDER,
            "orientation": "landscape",
        },
        headers={"Authorization": f"Client-ID {access_key}"},
    )
    response.raise_for_status()
    return [
        ImageResult(
            url=photo["urls"]["regular"],
            source="unsplash",
            photographer=photo.get("user", {}).get("name"),
            photographer_url=photo.get("user", {}).get("links", {}).get("html"),
            alt=photo.get("alt_description"),
        )
        for photo in response.json().get("results", [])
    ]


def _search_pexels(http: httpx.Client, keywords: list[str], api_key: str) -> list[ImageResult]:
    response = http.get(
        "https://api.pexels.com/v1/search",
        params={
            "query": " ".join(keywords),
            "per_page": _RESULTS_PER_PROVIDER,
            "orientation": "landscape",
        },
        headers={"Authorization": api_key},
    )
    response.raise_for_status()
    return [
        ImageResult(
            url=photo["src"]["large"],
            source="pexels",
            photographer=photo.get("photographer"),
            photographer_url=photo.get("photographer_url"),
            alt=photo.get("alt"),
        )
        for photo in response.json().get("photos", [])
    ]


def _search_pixabay(http: httpx.Client, keywords: list[str], api_key: str) -> list[ImageResult]:
    response = http.get(
        "https://pixabay.com/api/",
        params={
            "key": api_key,
            "q": " ".join(keywords),
            "per_page": _RESULTS_PER_PROVIDER,
            "image_type": "photo",
            "orientation": "horizontal",
            "min_width": 800,
        },
    )
    response.raise_for_status()
    return [
        ImageResult(
            url=photo["largeImageURL"],
            source="pixabay",
            photographer=photo.get("user"),
            photographer_url=photo.get("pageURL"),
            alt=photo.get("tags"),
        )
        for photo in response.json().get("hits", [])
    ]


def _search_duckduckgo(keywords: list[str]) -> list[ImageResult]:
    results = DDGS().images(
        " ".join(keywords),
        layout="Wide",
        max_results=_RESULTS_PER_PROVIDER,
    )
    return [
        ImageResult(url=item["image"], source="duckduckgo", alt=item.get("title"))
        for item in results
        if item.get("image")
    ]


def _provider_key(config: dict[str, Any], name: str, field: str, env_value: str) -> str:
    """Key from persisted ``imageSources`` config, else from the environment.

    A provider explicitly disabled in the persisted config yields no key.
    """
    entry = config.get(name) or {}
    if entry.get("enabled") is False:
        return ""
    return entry.get(field) or env_value


class ImageSearcher:
    def __init__(
        self,
        client,
        settings: Settings,
        source_config: dict[str, Any] | None = None,
        http: httpx.Client | None = None,
        keyword_model: str | None = None,
        use_duckduckgo: bool = True,
    ) -> None:
        self._client = client
        self._settings = settings
        self._config = source_config or {}
        self._owns_http = http is None
        self._http = http or httpx.Client(timeout=settings.image_timeout, follow_redirects=True)
        self._keyword_model = keyword_model or settings.model_id
        self._use_duckduckgo = use_duckduckgo

    def close(self) -> None:
        if self._owns_http:
            self._http.close()

    def generate_keywords(self, title: str, teaser: str, category: str) -> list[str]:
        request = GenerationRequest(
            model=self._keyword_model,
            temperature=0.7,
            max_tokens=100,
            system_prompt=_KEYWORD_SYSTEM_PROMPT,
            user_prompt=(
                f"Article Title: {title}\nTeaser: {teaser}\nCategory: {category}\n\n"
                "Generate visual search keywords for this article's featured image."
            ),
        )
        try:
            text = self._client.generate(request)
        except Exception:
            logger.warning("Image keyword generation failed for %r", title[:50], exc_info=True)
            return [category]

        result = extract_json(text, kind="array")
        if isinstance(result, ParseErr):
            return [category, " ".join(title.split()[:3])]
        keywords = [str(k).strip() for k in result.value if str(k).strip()]
        return keywords or [category]

    def providers(self) -> list[tuple[str, Provider]]:
        """Configured providers in fallback order."""
        chain: list[tuple[str, Provider]] = []
        unsplash = _provider_key(
            self._config, "unsplash", "accessKey", self._settings.unsplash_access_key
        )
        if unsplash:
            chain.append(("unsplash", lambda kw: _search_unsplash(self._http, kw, unsplash)))
        pexels = _provider_key(self._config, "pexels", "apiKey", self._settings.pexels_api_key)
        if pexels:
            chain.append(("pexels", lambda kw: _search_pexels(self._http, kw, pexels)))
        pixabay = _provider_key(
            self._config, "pixabay", "apiKey", self._settings.pixabay_api_key
        )
        if pixabay:
            chain.append(("pixabay", lambda kw: _search_pixabay(self._http, kw, pixabay)))
        if self._use_duckduckgo:
            chain.append(("duckduckgo", lambda kw: _search_duckduckgo(kw)))
        return chain

    def search(
        self,
        title: str,
        teaser: str,
        category: str,
        exclude: set[str] | None = None,
    ) -> ImageResult | None:
        """First unused image from the provider chain, or None when all fail."""
        exclude = exclude or set()
        keywords = self.generate_keywords(title, teaser, category)
        logger.info("Image keywords for %r: %s", title[:50], keywords)

        for name, provider in self.providers():
            try:
                results = provider(keywords)
            except Exception:
                logger.warning("Image provider %s failed", name, exc_info=True)
                continue
            for image in results:
                if image.url not in exclude:
                    logger.info("Selected image from %s: %s", name, image.url[:60])
                    return image

        logger.info("No image found for %r", title[:50])
        return None

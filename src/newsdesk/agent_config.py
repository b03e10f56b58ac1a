"""Per-tenant agent configuration: defaults and layered merge.

The admin console persists ``agentConfig`` with camelCase keys; callers in
Python pass snake_case overrides. Both are normalized before merging so a
partial layer only ever replaces the keys it actually carries.
"""

from __future__ import annotations

import re
from typing import Any, Literal

from pydantic import BaseModel, Field

DEFAULT_CRON_SCHEDULE = "0 */6 * * *"
DEFAULT_TOPICS = ["news", "lifestyle", "technology", "sports", "health", "finance"]
ARTICLE_TYPES = (
    "news",
    "analysis",
    "opinion",
    "summary",
    "investigative",
    "guide",
    "recipe",
    "review",
    "listicle",
    "profile",
)


class RSSFeed(BaseModel):
    url: str
    name: str = ""
    category: str = "news"
    language: str = "de"
    enabled: bool = True


class AIModelConfig(BaseModel):
    model: str = "gemini-3-flash-preview"
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    max_tokens: int = Field(default=4000, ge=1)
    top_p: float = Field(default=0.9, ge=0.0, le=1.0)
    frequency_penalty: float = 0.3
    presence_penalty: float = 0.3


class ArticleStyle(BaseModel):
    types: list[str] = Field(default_factory=lambda: ["news"])
    tone: Literal["neutral", "engaging", "formal", "conversational"] = "engaging"
    depth: Literal["brief", "standard", "in-depth"] = "standard"
    include_images: bool = True
    include_quotes: bool = True
    include_sources: bool = True


def default_rss_feeds() -> list[RSSFeed]:
    return [
        RSSFeed(url="https://www.tagesschau.de/xml/rss2/", name="Tagesschau", category="news"),
        RSSFeed(
            url="https://www.spiegel.de/schlagzeilen/index.rss",
            name="Spiegel Online",
            category="news",
        ),
        RSSFeed(
            url="https://rss.sueddeutsche.de/rss/Topthemen", name="Süddeutsche", category="news"
        ),
        RSSFeed(
            url="https://www.heise.de/rss/heise-top-atom.xml",
            name="Heise",
            category="technology",
        ),
        RSSFeed(url="https://www.golem.de/rss.php", name="Golem", category="technology"),
        RSSFeed(
            url="https://feeds.bbci.co.uk/news/world/rss.xml",
            name="BBC World",
            category="news",
            language="en",
            enabled=False,
        ),
        RSSFeed(
            url="https://rss.nytimes.com/services/xml/rss/nyt/World.xml",
            name="NY Times",
            category="news",
            language="en",
            enabled=False,
        ),
        RSSFeed(
            url="https://feeds.feedburner.com/TechCrunch/",
            name="TechCrunch",
            category="technology",
            language="en",
            enabled=False,
        ),
    ]


class AgentConfig(BaseModel):
    enabled: bool = True
    topics: list[str] = Field(default_factory=lambda: list(DEFAULT_TOPICS))
    default_language: str = "de"
    max_articles_per_run: int = Field(default=5, ge=1)
    cron_schedule: str = DEFAULT_CRON_SCHEDULE
    rss_feeds: list[RSSFeed] = Field(default_factory=default_rss_feeds)
    use_rss_feeds: bool = True
    ai_model: AIModelConfig = Field(default_factory=AIModelConfig)
    article_style: ArticleStyle = Field(default_factory=ArticleStyle)
    min_word_count: int = Field(default=500, ge=0)
    max_word_count: int = Field(default=1200, ge=0)
    min_quality_score: int = Field(default=6, ge=1, le=10)
    distribute_evenly: bool = True


_NESTED_KEYS = {"ai_model", "article_style"}


def _snake(key: str) -> str:
    key = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", key)
    key = re.sub(r"([a-z\d])([A-Z])", r"\1_\2", key)
    return key.replace("-", "_").lower()


def normalize_layer(layer: dict[str, Any] | None) -> dict[str, Any]:
    """Convert a persisted or caller layer to snake_case keys, dropping nulls."""
    if not layer:
        return {}
    out: dict[str, Any] = {}
    for raw_key, value in layer.items():
        if value is None:
            continue
        key = _snake(raw_key)
        if key in _NESTED_KEYS and isinstance(value, dict):
            value = {_snake(k): v for k, v in value.items() if v is not None}
            # Older consoles stored a single article type under "type".
            if key == "article_style" and "type" in value:
                legacy = value.pop("type")
                value.setdefault("types", [legacy] if legacy else [])
        out[key] = value
    return out


def _merge_into(base: dict[str, Any], layer: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in layer.items():
        if key in _NESTED_KEYS and isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = {**merged[key], **value}
        else:
            merged[key] = value
    return merged


def merge_agent_config(
    persisted: dict[str, Any] | None = None,
    overrides: dict[str, Any] | None = None,
) -> AgentConfig:
    """Merge built-in defaults, persisted tenant settings and caller overrides.

    Later layers win. Nested ``ai_model`` and ``article_style`` blocks merge
    key by key; lists such as ``topics`` and ``rss_feeds`` are replaced whole.
    Raises ``pydantic.ValidationError`` if the merged result is invalid.
    """
    merged = AgentConfig().model_dump()
    for layer in (persisted, overrides):
        merged = _merge_into(merged, normalize_layer(layer))
    return AgentConfig.model_validate(merged)

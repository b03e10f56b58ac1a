"""Stage 1: Gatherer – fill per-category quotas from feeds, then generated topics."""

from __future__ import annotations

import concurrent.futures
import logging
import math
import uuid

from newsdesk.agent_config import AgentConfig, RSSFeed
from newsdesk.models import GatheredTopic, SourceItem
from newsdesk.sources.rss_feeds import read_feed
from newsdesk.sources.topic_generator import TopicGenerator

logger = logging.getLogger(__name__)

# Upper bound on generator calls per missing quota slot.
_MAX_GENERATOR_ATTEMPTS_PER_SLOT = 2


def compute_quotas(
    total: int,
    categories: list[str],
    distribute_evenly: bool = True,
) -> dict[str, int]:
    """Integer article quota per category.

    Evenly: ``total // n`` each, with the remainder going to the first
    categories in list order. Otherwise every category gets ``ceil(total / n)``.
    Repeated categories count once.
    """
    categories = list(dict.fromkeys(categories))
    if not categories:
        return {}
    total = max(total, 0)
    count = len(categories)
    if not distribute_evenly:
        share = math.ceil(total / count)
        return {category: share for category in categories}

    base, remainder = divmod(total, count)
    return {
        category: base + (1 if index < remainder else 0)
        for index, category in enumerate(categories)
    }


def _new_topic(category: str, sources: list[SourceItem]) -> GatheredTopic:
    return GatheredTopic(
        id=f"topic-{uuid.uuid4().hex[:12]}",
        topic=category,
        category=category,
        sources=sources,
    )


class Gatherer:
    def __init__(
        self,
        generator: TopicGenerator,
        feed_timeout: float = 10.0,
        user_agent: str | None = None,
        max_workers: int = 4,
    ) -> None:
        self._generator = generator
        self._feed_timeout = feed_timeout
        self._user_agent = user_agent
        self._max_workers = max(1, max_workers)

    def _read(self, feed: RSSFeed) -> list[SourceItem]:
        kwargs = {"timeout": self._feed_timeout}
        if self._user_agent:
            kwargs["user_agent"] = self._user_agent
        return read_feed(feed, **kwargs)

    def _gather_category_feeds(
        self, category: str, feeds: list[RSSFeed], quota: int
    ) -> list[GatheredTopic]:
        topics: list[GatheredTopic] = []
        for feed in feeds:
            if len(topics) >= quota:
                break
            items = self._read(feed)
            if items:
                topics.append(_new_topic(category, items))
        return topics

    def _gather_from_feeds(
        self, config: AgentConfig, quotas: dict[str, int]
    ) -> dict[str, list[GatheredTopic]]:
        by_category: dict[str, list[RSSFeed]] = {}
        for feed in config.rss_feeds:
            if feed.enabled and quotas.get(feed.category, 0) > 0:
                by_category.setdefault(feed.category, []).append(feed)

        gathered: dict[str, list[GatheredTopic]] = {c: [] for c in quotas}
        if not by_category:
            return gathered

        workers = min(self._max_workers, len(by_category))
        with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as ex:
            futures = {
                ex.submit(self._gather_category_feeds, category, feeds, quotas[category]): category
                for category, feeds in by_category.items()
            }
            for fut in concurrent.futures.as_completed(futures):
                category = futures[fut]
                try:
                    gathered[category] = fut.result()
                except Exception:
                    logger.warning("Feed gathering failed for category=%s", category, exc_info=True)
        return gathered

    def run(self, config: AgentConfig) -> list[GatheredTopic]:
        if not config.topics:
            raise ValueError("No topics configured for gathering")

        quotas = compute_quotas(
            config.max_articles_per_run, config.topics, config.distribute_evenly
        )
        logger.info("Gatherer quotas: %s", quotas)

        if config.use_rss_feeds:
            gathered = self._gather_from_feeds(config, quotas)
        else:
            gathered = {category: [] for category in quotas}

        for category, quota in quotas.items():
            topics = gathered[category]
            attempts = 0
            max_attempts = (quota - len(topics)) * _MAX_GENERATOR_ATTEMPTS_PER_SLOT
            while len(topics) < quota and attempts < max_attempts:
                attempts += 1
                sources = self._generator.generate(category, config.default_language)
                if not sources:
                    logger.info("Topic generator exhausted for category=%s", category)
                    break
                topics.append(_new_topic(category, sources))

        result = [topic for category in quotas for topic in gathered[category]]
        logger.info("Gatherer: %d topics across %d categories", len(result), len(quotas))
        return result

"""Stage 4: Publisher – quality gate, thumbnail, persistence."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from newsdesk.categories import placeholder_image
from newsdesk.images import ImageSearcher
from newsdesk.models import ArticleCreate, EditedArticle, PublishedArticle
from newsdesk.stores import ArticleStore, slugify

logger = logging.getLogger(__name__)

MIN_QUALITY_SCORE = 6


class Publisher:
    def __init__(
        self,
        store: ArticleStore,
        images: ImageSearcher | None = None,
        include_images: bool = True,
    ) -> None:
        self._store = store
        self._images = images
        self._include_images = include_images

    def _resolve_thumbnail(self, article: EditedArticle, used: set[str]) -> str:
        if self._include_images and self._images is not None:
            try:
                image = self._images.search(
                    article.title, article.teaser, article.category, exclude=used
                )
            except Exception:
                logger.warning("Image search failed for %r", article.title, exc_info=True)
                image = None
            if image is not None:
                return image.url
        return placeholder_image(article.category)

    def run(
        self,
        articles: list[EditedArticle],
        tenant_id: str,
        min_quality_score: int = MIN_QUALITY_SCORE,
    ) -> list[PublishedArticle]:
        """Persist every article at or above the threshold.

        ``articles`` must already be deduplicated against the tenant corpus.
        """
        used_images: set[str] = set()
        published: list[PublishedArticle] = []

        for article in articles:
            if article.quality_score < min_quality_score:
                logger.info(
                    "Skipping %r: quality score %d below threshold %d",
                    article.title,
                    article.quality_score,
                    min_quality_score,
                )
                continue

            try:
                thumbnail = self._resolve_thumbnail(article, used_images)
                used_images.add(thumbnail)
                stored = self._store.create(
                    ArticleCreate(
                        title=article.title,
                        teaser=article.teaser,
                        content=article.content,
                        category=article.category,
                        tags=article.tags,
                        language=article.language,
                        thumbnail=thumbnail,
                        sources=article.sources,
                    )
                )
            except Exception:
                logger.warning("Failed to publish %r", article.title, exc_info=True)
                continue

            published.append(
                PublishedArticle(
                    **article.model_dump(),
                    published_at=datetime.now(timezone.utc),
                    article_id=stored.id,
                    slug=stored.slug,
                    thumbnail=thumbnail,
                )
            )
            logger.info("Published %r (%s) for tenant %s", article.title, stored.slug, tenant_id)

        logger.info("Publisher: %d/%d articles published", len(published), len(articles))
        return published


def is_duplicate(title: str, store: ArticleStore) -> bool:
    """Exact match on the normalized slug of an existing article in the corpus."""
    return store.find_by_slug(slugify(title)) is not None

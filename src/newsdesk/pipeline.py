"""Pipeline orchestrator – runs gather, draft, edit and publish for one tenant."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Callable

from newsdesk.agent_config import merge_agent_config
from newsdesk.config import Settings
from newsdesk.gemini import GeminiClient
from newsdesk.images import ImageSearcher
from newsdesk.models import AgentRunLog, EditedArticle
from newsdesk.progress import CancelToken, PipelineCancelled, ProgressTracker
from newsdesk.sources.topic_generator import TopicGenerator
from newsdesk.stages.drafter import Drafter
from newsdesk.stages.editor import Editor
from newsdesk.stages.gatherer import Gatherer
from newsdesk.stages.publisher import Publisher, is_duplicate
from newsdesk.stores import ArticleStore, RunLogStore, SettingsStore

logger = logging.getLogger(__name__)

DuplicateChecker = Callable[[str, ArticleStore], bool]


class ContentPipeline:
    def __init__(
        self,
        settings: Settings,
        client,
        progress: ProgressTracker | None = None,
        duplicate_checker: DuplicateChecker = is_duplicate,
    ) -> None:
        self._settings = settings
        self._client = client
        self.progress = progress or ProgressTracker()
        self._is_duplicate = duplicate_checker

    def run(
        self,
        tenant_id: str,
        overrides: dict[str, Any] | None = None,
        cancel_token: CancelToken | None = None,
    ) -> AgentRunLog:
        """Execute one end-to-end run. Always returns a persisted run log."""
        token = cancel_token or CancelToken()
        settings_store = SettingsStore(self._settings.data_dir, tenant_id)
        article_store = ArticleStore(self._settings.data_dir, tenant_id)
        log_store = RunLogStore(self._settings.data_dir, tenant_id)
        log = AgentRunLog(tenant_id=tenant_id)

        self.progress.start()
        try:
            self._execute(log, tenant_id, overrides, token, settings_store, article_store)
        except PipelineCancelled as exc:
            log.status = "cancelled"
            log.errors.append(f"Pipeline cancelled: {exc}")
            logger.warning("Pipeline for tenant %s cancelled: %s", tenant_id, exc)
        except Exception as exc:
            log.status = "failed"
            log.errors.append(str(exc) or type(exc).__name__)
            logger.exception("Pipeline for tenant %s failed", tenant_id)
        finally:
            log.completed_at = datetime.now(timezone.utc)
            self.progress.reset()
            try:
                log_store.append(log)
            except Exception:
                logger.exception("Failed to persist run log for tenant %s", tenant_id)

        return log

    def _execute(
        self,
        log: AgentRunLog,
        tenant_id: str,
        overrides: dict[str, Any] | None,
        token: CancelToken,
        settings_store: SettingsStore,
        article_store: ArticleStore,
    ) -> None:
        config = merge_agent_config(settings_store.get("agentConfig"), overrides)

        if not config.enabled:
            log.status = "completed"
            log.metadata = {"message": "Agents disabled for this tenant"}
            logger.info("Agents disabled for tenant %s, nothing to do", tenant_id)
            return

        logger.info(
            "Starting pipeline for tenant %s: topics=%s max=%d",
            tenant_id,
            ", ".join(config.topics),
            config.max_articles_per_run,
        )

        # Stage 1: Gather
        token.raise_if_cancelled()
        logger.info("=== Stage 1: Gather ===")
        self.progress.stage("gathering", "Collecting topics from feeds and generator")
        gatherer = Gatherer(
            TopicGenerator(self._client, config.ai_model),
            feed_timeout=self._settings.feed_timeout,
            user_agent=self._settings.user_agent,
            max_workers=self._settings.gather_concurrency,
        )
        topics = gatherer.run(config)
        log.metadata["topicsGathered"] = len(topics)
        self.progress.update(f"Gathered {len(topics)} topics", topics_gathered=len(topics))

        # Stage 2: Draft
        token.raise_if_cancelled()
        logger.info("=== Stage 2: Draft ===")
        self.progress.stage("drafting", f"Drafting {len(topics)} topics")
        drafter = Drafter(
            self._client,
            config.ai_model,
            config.article_style,
            language=config.default_language,
            min_words=config.min_word_count,
            max_words=config.max_word_count,
        )
        drafts = drafter.run(topics, max_articles=config.max_articles_per_run)
        log.metadata["draftsCreated"] = len(drafts)
        self.progress.update(f"Created {len(drafts)} drafts", drafts_created=len(drafts))

        # Stage 3: Edit
        token.raise_if_cancelled()
        logger.info("=== Stage 3: Edit ===")
        self.progress.stage("editing", f"Editing {len(drafts)} drafts")
        edited = Editor(self._client, config.ai_model).run(drafts)
        log.metadata["articlesEdited"] = len(edited)
        self.progress.update(f"Edited {len(edited)} articles", articles_edited=len(edited))

        unique: list[EditedArticle] = []
        for article in edited:
            if self._is_duplicate(article.title, article_store):
                logger.info("Skipping duplicate: %r", article.title)
            else:
                unique.append(article)
        log.metadata["duplicatesSkipped"] = len(edited) - len(unique)

        # Stage 4: Publish
        token.raise_if_cancelled()
        logger.info("=== Stage 4: Publish ===")
        self.progress.stage("publishing", f"Publishing {len(unique)} articles")
        images = ImageSearcher(
            self._client,
            self._settings,
            source_config=settings_store.get("imageSources"),
            keyword_model=config.ai_model.model,
        )
        try:
            publisher = Publisher(
                article_store, images, include_images=config.article_style.include_images
            )
            published = publisher.run(unique, tenant_id, config.min_quality_score)
        finally:
            images.close()
        log.metadata["articlesPublished"] = len(published)
        self.progress.update(
            f"Published {len(published)} articles", articles_published=len(published)
        )

        log.items_processed = len(topics)
        log.items_successful = len(published)
        log.items_failed = len(topics) - len(published)
        log.status = "completed"
        logger.info(
            "Pipeline completed: %d/%d articles published",
            log.items_successful,
            log.items_processed,
        )


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(levelname)s %(name)s: %(message)s",
    )


def main() -> None:
    """CLI entry point: run the pipeline once for the configured tenant."""
    settings = Settings.from_env()
    configure_logging(settings)
    if not settings.gemini_api_key:
        raise SystemExit("GEMINI_API_KEY environment variable is required")

    from newsdesk.worker import Worker

    worker = Worker(settings, ContentPipeline(settings, GeminiClient(settings)))
    result = worker.trigger_manual_run()
    print(json.dumps(result.model_dump(), indent=2))
    if not result.success:
        raise SystemExit(1)

"""Pydantic data models for the entire pipeline."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# --- Generative text collaborator ---


class GenerationRequest(BaseModel):
    model: str
    temperature: float = 0.7
    max_tokens: int = 4000
    top_p: float = 0.9
    frequency_penalty: float = 0.0
    presence_penalty: float = 0.0
    system_prompt: str = ""
    user_prompt: str


# --- Stage 1: Gatherer ---


class SourceItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    url: str
    title: str
    snippet: str = ""
    source_name: str = ""
    publish_date: str | None = None  # ISO-8601


class GatheredTopic(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    topic: str
    category: str
    sources: list[SourceItem] = Field(min_length=1)
    gathered_at: datetime = Field(default_factory=utcnow)


# --- Stage 2: Drafter ---


class DraftArticle(BaseModel):
    id: str
    topic_id: str
    title: str
    teaser: str
    content: str
    category: str
    tags: list[str] = Field(default_factory=list)
    sources: list[str] = Field(default_factory=list)
    language: str = "de"
    article_type: str = "news"
    drafted_at: datetime = Field(default_factory=utcnow)


# --- Stage 3: Editor ---


class EditedArticle(DraftArticle):
    edited_at: datetime = Field(default_factory=utcnow)
    edit_notes: str = ""
    quality_score: int = Field(ge=1, le=10)


# --- Stage 4: Publisher ---


class PublishedArticle(EditedArticle):
    published_at: datetime = Field(default_factory=utcnow)
    article_id: str
    slug: str
    thumbnail: str = ""


class ImageResult(BaseModel):
    url: str
    source: str
    photographer: str | None = None
    photographer_url: str | None = None
    alt: str | None = None


# --- Storage ---


class ArticleCreate(BaseModel):
    title: str
    teaser: str
    content: str
    category: str
    tags: list[str] = Field(default_factory=list)
    status: str = "published"
    publish_date: datetime = Field(default_factory=utcnow)
    agent_generated: bool = True
    language: str = "de"
    thumbnail: str = ""
    sources: list[str] = Field(default_factory=list)


class StoredArticle(ArticleCreate):
    id: str
    slug: str
    created_at: datetime = Field(default_factory=utcnow)


class ArticleFile(BaseModel):
    articles: list[StoredArticle] = Field(default_factory=list)
    last_updated: str = ""


# --- Run bookkeeping ---


RunStatus = Literal["running", "completed", "failed", "cancelled"]


class AgentRunLog(BaseModel):
    agent_name: str = "ContentPipeline"
    tenant_id: str
    started_at: datetime = Field(default_factory=utcnow)
    completed_at: datetime | None = None
    status: RunStatus = "running"
    items_processed: int = 0
    items_successful: int = 0
    items_failed: int = 0
    errors: list[str] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)


class PipelineProgress(BaseModel):
    is_running: bool = False
    stage: str = "idle"
    stage_index: int = 0
    total_stages: int = 4
    details: str = ""
    topics_gathered: int = 0
    drafts_created: int = 0
    articles_edited: int = 0
    articles_published: int = 0
    started_at: datetime | None = None


class RunResult(BaseModel):
    success: bool
    articles_published: int = 0
    error: str | None = None
    skipped: bool = False


class WorkerStatus(BaseModel):
    is_active: bool = False
    is_running: bool = False
    current_schedule: str = ""
    schedule_description: str = ""
    next_run: datetime | None = None
    last_run: datetime | None = None
    last_result: RunResult | None = None

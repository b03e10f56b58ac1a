"""Shared test fixtures."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from newsdesk.config import Settings
from newsdesk.models import DraftArticle, EditedArticle, GatheredTopic, GenerationRequest, SourceItem


class MockGeminiClient:
    """A mock Gemini client that returns pre-configured responses.

    Responses are consumed in order. Dicts and lists are serialized to JSON,
    exceptions are raised. Once the queue is empty every call returns "".
    """

    def __init__(self) -> None:
        self.call_count = 0
        self.requests: list[GenerationRequest] = []
        self._responses: list[Any] = []
        self._response_index = 0

    def set_responses(self, responses: list[Any]) -> None:
        self._responses = responses
        self._response_index = 0

    def generate(self, request: GenerationRequest) -> str:
        self.call_count += 1
        self.requests.append(request)

        if self._response_index < len(self._responses):
            resp = self._responses[self._response_index]
            self._response_index += 1
            if isinstance(resp, Exception):
                raise resp
            if isinstance(resp, (dict, list)):
                return json.dumps(resp)
            return resp
        return ""


@pytest.fixture
def mock_client() -> MockGeminiClient:
    return MockGeminiClient()


@pytest.fixture
def sample_settings(tmp_path: Path) -> Settings:
    return Settings(
        gemini_api_key="test-key",
        model_id="test-model",
        tenant_id="brand-a",
        data_dir=str(tmp_path / "data"),
        timezone="UTC",
        reconcile_interval_seconds=3600,
    )


@pytest.fixture
def sample_topics() -> list[GatheredTopic]:
    return [
        GatheredTopic(
            id="topic-1",
            topic="technology",
            category="technology",
            sources=[
                SourceItem(
                    url="https://example.com/chip",
                    title="New Chip Doubles Battery Life",
                    snippet="A chipmaker unveiled a low-power processor.",
                    source_name="Heise",
                )
            ],
        ),
        GatheredTopic(
            id="topic-2",
            topic="news",
            category="news",
            sources=[
                SourceItem(
                    url="https://example.com/vote",
                    title="Parliament Passes Budget",
                    snippet="The budget passed after a long debate.",
                    source_name="Tagesschau",
                )
            ],
        ),
    ]


@pytest.fixture
def sample_drafts() -> list[DraftArticle]:
    return [
        DraftArticle(
            id="draft-1",
            topic_id="topic-1",
            title="Neuer Chip verdoppelt Akkulaufzeit",
            teaser="Ein Prozessor verspricht mehr Ausdauer.",
            content="<p>Body one.</p>",
            category="technology",
            tags=["chips", "hardware"],
            sources=["https://example.com/chip"],
            article_type="analysis",
        ),
        DraftArticle(
            id="draft-2",
            topic_id="topic-2",
            title="Bundestag beschließt Haushalt",
            teaser="Nach langer Debatte steht der Etat.",
            content="<p>Body two.</p>",
            category="news",
            tags=["politik"],
            sources=["https://example.com/vote"],
        ),
    ]


def make_edited(draft: DraftArticle, score: int = 8) -> EditedArticle:
    return EditedArticle(**draft.model_dump(), quality_score=score, edit_notes="ok")


@pytest.fixture
def sample_edited(sample_drafts: list[DraftArticle]) -> list[EditedArticle]:
    return [make_edited(d) for d in sample_drafts]

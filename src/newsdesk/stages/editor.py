"""Stage 3: Editor – revise drafts and score them, never dropping content."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, field_validator

from newsdesk.agent_config import AIModelConfig
from newsdesk.categories import language_name
from newsdesk.jsonparse import ParseErr, parse_model
from newsdesk.models import DraftArticle, EditedArticle, GenerationRequest

logger = logging.getLogger(__name__)

FALLBACK_QUALITY_SCORE = 6
DEFAULT_QUALITY_SCORE = 7
FALLBACK_NOTE = "Auto-approved without AI editing due to error"


class _EditPayload(BaseModel):
    title: str = ""
    teaser: str = ""
    content: str = ""
    tags: list[str] = Field(default_factory=list)
    edit_notes: str = Field(default="", alias="editNotes")
    quality_score: int | None = Field(default=None, alias="qualityScore")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("quality_score", mode="before")
    @classmethod
    def _coerce_score(cls, value):
        if value is None or value == "":
            return None
        try:
            return round(float(value))
        except (TypeError, ValueError, OverflowError):
            return None

    @field_validator("tags", mode="before")
    @classmethod
    def _coerce_tags(cls, value):
        if not value:
            return []
        if isinstance(value, str):
            return [t.strip() for t in value.split(",") if t.strip()]
        if not isinstance(value, (list, tuple)):
            return []
        return [str(t) for t in value]


def clamp_score(score: int | None) -> int:
    if score is None:
        return DEFAULT_QUALITY_SCORE
    return max(1, min(10, int(score)))


def _build_system_prompt(language: str) -> str:
    return f"""You are an experienced editor for a {language_name(language)} news portal.
Improve the article you are given:
1. Correct grammar and spelling
2. Improve style and readability
3. Make sure the text reads fluently and professionally
4. Check the structure and add transitions where needed
5. Sharpen title and teaser for maximum impact
6. Rate the final quality from 1 to 10

Keep the substance, improve the presentation. Respond with a single JSON object."""


def _build_user_prompt(draft: DraftArticle) -> str:
    return f"""Revise this article:

Title: {draft.title}
Teaser: {draft.teaser}
Content:
{draft.content}
Tags: {", ".join(draft.tags)}

Respond in JSON:
{{
  "title": "improved title",
  "teaser": "improved teaser",
  "content": "improved HTML content",
  "tags": ["improved", "tags"],
  "editNotes": "short description of the changes",
  "qualityScore": 8
}}"""


def _fallback(draft: DraftArticle, reason: str) -> EditedArticle:
    return EditedArticle(
        **draft.model_dump(),
        edited_at=datetime.now(timezone.utc),
        edit_notes=f"{FALLBACK_NOTE}: {reason}",
        quality_score=FALLBACK_QUALITY_SCORE,
    )


class Editor:
    def __init__(self, client, ai_model: AIModelConfig) -> None:
        self._client = client
        self._ai_model = ai_model

    def edit(self, draft: DraftArticle) -> EditedArticle:
        """Edit one draft; on any failure return it unedited with a fallback score."""
        request = GenerationRequest(
            model=self._ai_model.model,
            temperature=0.5,
            max_tokens=self._ai_model.max_tokens,
            top_p=self._ai_model.top_p,
            system_prompt=_build_system_prompt(draft.language),
            user_prompt=_build_user_prompt(draft),
        )

        try:
            text = self._client.generate(request)
        except Exception as exc:
            logger.warning("Editing failed for draft %s, passing through", draft.id, exc_info=True)
            return _fallback(draft, str(exc) or type(exc).__name__)

        result = parse_model(text, _EditPayload)
        if isinstance(result, ParseErr):
            logger.warning("Edit response for draft %s unusable: %s", draft.id, result.reason)
            return _fallback(draft, result.reason)

        payload = result.value
        return EditedArticle(
            **draft.model_dump(exclude={"title", "teaser", "content", "tags"}),
            title=payload.title.strip() or draft.title,
            teaser=payload.teaser.strip() or draft.teaser,
            content=payload.content.strip() or draft.content,
            tags=payload.tags or draft.tags,
            edited_at=datetime.now(timezone.utc),
            edit_notes=payload.edit_notes.strip() or "No significant changes needed",
            quality_score=clamp_score(payload.quality_score),
        )

    def run(self, drafts: list[DraftArticle]) -> list[EditedArticle]:
        edited: list[EditedArticle] = []
        for draft in drafts:
            try:
                edited.append(self.edit(draft))
            except Exception as exc:
                logger.warning("Editing failed for draft %s, passing through", draft.id, exc_info=True)
                edited.append(_fallback(draft, str(exc) or type(exc).__name__))
        if edited:
            avg = sum(a.quality_score for a in edited) / len(edited)
            logger.info("Editor: %d articles edited, average score %.1f", len(edited), avg)
        return edited

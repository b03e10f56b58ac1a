"""Fallback topic source: asks the generative model for current topic material."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone

from pydantic import BaseModel, ValidationError

from newsdesk.agent_config import AIModelConfig
from newsdesk.categories import guidance_for, language_name
from newsdesk.jsonparse import ParseErr, extract_json
from newsdesk.models import GenerationRequest, SourceItem

logger = logging.getLogger(__name__)

TOPICS_PER_REQUEST = 3

_SYSTEM_PROMPT = (
    "You are a news desk researcher. You only suggest topics that are plausibly "
    "current as of the date you are given. Always respond with valid JSON."
)


class _TopicSummary(BaseModel):
    title: str
    snippet: str = ""
    source: str = ""


def _build_topic_prompt(category: str, language: str, now: datetime) -> str:
    today = now.strftime("%Y-%m-%d")
    return f"""Today is {today} ({now.year}).

Suggest exactly {TOPICS_PER_REQUEST} current news topics for the category "{category}".
Category focus: {guidance_for(category)}

Freshness rules:
- Only topics relevant within the last 48 hours or the coming days.
- No events that concluded before {now.year}; never refer to past years as the present.
- Avoid evergreen filler.

Write titles and snippets in {language_name(language)}.

Return a JSON array:
[
  {{"title": "headline", "snippet": "about 50 words of context", "source": "publication name"}}
]"""


class TopicGenerator:
    def __init__(self, client, ai_model: AIModelConfig | None = None) -> None:
        self._client = client
        self._ai_model = ai_model or AIModelConfig()

    def generate(
        self,
        category: str,
        language: str,
        now: datetime | None = None,
    ) -> list[SourceItem]:
        """Return up to three synthesized source items, or [] on any failure."""
        now = now or datetime.now(timezone.utc)
        request = GenerationRequest(
            model=self._ai_model.model,
            temperature=self._ai_model.temperature,
            max_tokens=1000,
            top_p=self._ai_model.top_p,
            system_prompt=_SYSTEM_PROMPT,
            user_prompt=_build_topic_prompt(category, language, now),
        )

        try:
            text = self._client.generate(request)
        except Exception:
            logger.warning("Topic generation failed for category=%s", category, exc_info=True)
            return []

        result = extract_json(text, kind="array")
        if isinstance(result, ParseErr):
            logger.warning("Topic generation for %s: %s", category, result.reason)
            return []

        stamp = int(now.timestamp())
        items: list[SourceItem] = []
        for index, raw in enumerate(result.value):
            try:
                summary = _TopicSummary.model_validate(raw)
            except ValidationError:
                continue
            if not summary.title.strip():
                continue
            items.append(
                SourceItem(
                    url=f"https://example.com/news/{stamp}-{index}-{uuid.uuid4().hex[:8]}",
                    title=summary.title.strip(),
                    snippet=summary.snippet.strip()[:500],
                    source_name=summary.source.strip() or "generated",
                    publish_date=now.isoformat(),
                )
            )
            if len(items) >= TOPICS_PER_REQUEST:
                break

        logger.info("Topic generator: %d topics for category=%s", len(items), category)
        return items

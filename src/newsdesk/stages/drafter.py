"""Stage 2: Drafter – pick an article type and write a structured draft."""

from __future__ import annotations

import logging
import random
import uuid
from datetime import datetime, timezone

from pydantic import BaseModel, Field, field_validator

from newsdesk.agent_config import ARTICLE_TYPES, AIModelConfig, ArticleStyle
from newsdesk.categories import guidance_for, language_name
from newsdesk.jsonparse import ParseErr, parse_model
from newsdesk.models import DraftArticle, GatheredTopic, GenerationRequest

logger = logging.getLogger(__name__)

_MAX_PROMPT_SNIPPET_CHARS = 200

PRIMARY_TYPE = {
    "news": "news",
    "politics": "news",
    "sports": "news",
    "technology": "analysis",
    "finance": "analysis",
    "business": "analysis",
    "science": "analysis",
    "health": "guide",
    "travel": "guide",
    "food": "recipe",
    "lifestyle": "listicle",
    "entertainment": "review",
}

SECONDARY_TYPES = {
    "news": ["analysis", "summary", "investigative", "opinion"],
    "politics": ["analysis", "opinion", "investigative", "summary"],
    "sports": ["summary", "profile", "analysis", "listicle"],
    "technology": ["review", "guide", "news", "listicle"],
    "finance": ["guide", "news", "summary", "listicle"],
    "business": ["profile", "news", "investigative", "summary"],
    "science": ["news", "summary", "guide"],
    "health": ["listicle", "analysis", "news", "recipe"],
    "travel": ["listicle", "review", "profile"],
    "food": ["listicle", "guide", "review"],
    "lifestyle": ["guide", "review", "profile", "opinion"],
    "entertainment": ["listicle", "profile", "news", "opinion"],
}

TYPE_TEMPLATES = {
    "news": (
        "Inverted pyramid. Open with a lead answering who, what, when, where and why. "
        "Follow with the most important details, then background and context, "
        "then reactions and what happens next."
    ),
    "analysis": (
        "Start with the key question the development raises. Sections: background, "
        "the core analysis with evidence, competing interpretations, implications, "
        "and a forward-looking conclusion."
    ),
    "opinion": (
        "State a clear thesis in the first paragraph. Support it with two or three "
        "arguments, address the strongest counter-argument, and close with a call to reflection."
    ),
    "summary": (
        "A compact digest: one-paragraph overview, then short sections with the key points, "
        "and a closing 'what it means' paragraph."
    ),
    "investigative": (
        "Open with the central finding. Lay out the evidence step by step, the people and "
        "institutions involved, open questions, and the wider significance."
    ),
    "guide": (
        "Explain who the guide is for and what they will achieve. Provide numbered steps "
        "with subheadings, practical tips, common mistakes, and a short checklist at the end."
    ),
    "recipe": (
        "Short introduction, an ingredients list with quantities, numbered preparation steps, "
        "preparation and cooking times, serving suggestions and variations."
    ),
    "review": (
        "Introduce the subject and the verdict up front. Cover strengths, weaknesses, "
        "comparison with alternatives, and a final rating with a clear recommendation."
    ),
    "listicle": (
        "A short hook, then a numbered list of items, each with its own subheading and "
        "a paragraph of explanation, followed by a brief conclusion."
    ),
    "profile": (
        "Portrait of a person or organisation: a vivid opening scene, background and career, "
        "current relevance, notable quotes, and an outlook."
    ),
}

TONE_INSTRUCTIONS = {
    "neutral": "neutral and objective",
    "engaging": "engaging and dynamic while staying factual",
    "formal": "formal and professional",
    "conversational": "conversational and friendly",
}

DEPTH_WORD_BANDS = {
    "brief": (300, 500),
    "standard": (500, 800),
    "in-depth": (800, 1500),
}


def select_article_type(category: str, style: ArticleStyle, seed: str = "") -> str:
    """Choose exactly one article type for a category.

    Primary mapping first, then ordered secondary preferences, then a
    pseudo-random pick among permitted types seeded by ``seed``.
    """
    permitted = [t for t in style.types if t in ARTICLE_TYPES] or ["news"]
    key = category.lower()

    primary = PRIMARY_TYPE.get(key)
    if primary in permitted:
        return primary

    for candidate in SECONDARY_TYPES.get(key, []):
        if candidate in permitted:
            return candidate

    return random.Random(seed or key).choice(sorted(permitted))


def word_band(depth: str, min_words: int = 0, max_words: int = 0) -> tuple[int, int]:
    """Word-count band for a depth, clipped to configured limits when they overlap."""
    low, high = DEPTH_WORD_BANDS.get(depth, DEPTH_WORD_BANDS["standard"])
    if max_words and min_words <= max_words:
        clipped = (max(low, min_words), min(high, max_words))
        if clipped[0] <= clipped[1]:
            return clipped
    return low, high


class _DraftPayload(BaseModel):
    title: str
    teaser: str
    content: str
    tags: list[str] = Field(default_factory=list)

    @field_validator("title", "teaser", "content")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value.strip()

    @field_validator("tags", mode="before")
    @classmethod
    def _coerce_tags(cls, value):
        if value is None:
            return []
        if isinstance(value, str):
            return [t.strip() for t in value.split(",") if t.strip()]
        if not isinstance(value, (list, tuple)):
            return []
        return [str(t) for t in value]


def _build_system_prompt(language: str, style: ArticleStyle) -> str:
    tone = TONE_INSTRUCTIONS.get(style.tone, style.tone)
    return (
        f"You are a professional journalist writing in {language_name(language)}. "
        f"Your tone is {tone}. You write original articles: you synthesize information "
        "from the material you are given and never copy sentences from it. "
        "Always respond with a single valid JSON object."
    )


def _build_user_prompt(
    topic: GatheredTopic,
    article_type: str,
    language: str,
    style: ArticleStyle,
    band: tuple[int, int],
    now: datetime,
) -> str:
    sources = "\n".join(
        f"- {s.title}: {s.snippet[:_MAX_PROMPT_SNIPPET_CHARS]} ({s.source_name})"
        for s in topic.sources
    )
    extras = []
    if style.include_quotes:
        extras.append("Include one or two attributed quotes where the material supports them.")
    if style.include_sources:
        extras.append("Mention the publications the information comes from.")
    if style.include_images:
        extras.append("Suggest one image caption inside an HTML comment at the end.")
    extras_str = "\n".join(f"- {e}" for e in extras) or "- No additional elements."

    return f"""Today is {now.strftime("%Y-%m-%d")}. Write as of {now.year}; treat older events as background.

Category: {topic.category}
Category focus: {guidance_for(topic.category)}
Article type: {article_type}
Structure: {TYPE_TEMPLATES[article_type]}

Material (for orientation only, synthesize in your own words):
{sources}

Requirements:
- Language: {language_name(language)}
- Length: {band[0]}-{band[1]} words of body text
- Title of at most 80 characters, teaser of 2-3 sentences
- Body formatted as HTML using <h2>, <p>, <strong>, <ul>/<ol> where appropriate
- 3-5 relevant tags
{extras_str}

Respond with JSON only:
{{
  "title": "...",
  "teaser": "...",
  "content": "...",
  "tags": ["...", "..."]
}}"""


class Drafter:
    def __init__(
        self,
        client,
        ai_model: AIModelConfig,
        style: ArticleStyle,
        language: str = "de",
        min_words: int = 0,
        max_words: int = 0,
    ) -> None:
        self._client = client
        self._ai_model = ai_model
        self._style = style
        self._language = language
        self._min_words = min_words
        self._max_words = max_words

    def draft(self, topic: GatheredTopic, now: datetime | None = None) -> DraftArticle | None:
        """Draft one topic. Returns None when generation or parsing fails."""
        now = now or datetime.now(timezone.utc)
        article_type = select_article_type(topic.category, self._style, seed=topic.id)
        band = word_band(self._style.depth, self._min_words, self._max_words)

        request = GenerationRequest(
            model=self._ai_model.model,
            temperature=self._ai_model.temperature,
            max_tokens=self._ai_model.max_tokens,
            top_p=self._ai_model.top_p,
            frequency_penalty=self._ai_model.frequency_penalty,
            presence_penalty=self._ai_model.presence_penalty,
            system_prompt=_build_system_prompt(self._language, self._style),
            user_prompt=_build_user_prompt(
                topic, article_type, self._language, self._style, band, now
            ),
        )

        try:
            text = self._client.generate(request)
        except Exception:
            logger.warning("Draft generation failed for topic %s", topic.id, exc_info=True)
            return None

        result = parse_model(text, _DraftPayload)
        if isinstance(result, ParseErr):
            logger.warning("Draft for topic %s rejected: %s", topic.id, result.reason)
            return None

        payload = result.value
        return DraftArticle(
            id=f"draft-{uuid.uuid4().hex[:12]}",
            topic_id=topic.id,
            title=payload.title,
            teaser=payload.teaser,
            content=payload.content,
            category=topic.category,
            tags=payload.tags,
            sources=[s.url for s in topic.sources],
            language=self._language,
            article_type=article_type,
            drafted_at=now,
        )

    def run(self, topics: list[GatheredTopic], max_articles: int | None = None) -> list[DraftArticle]:
        selected = topics if max_articles is None else topics[:max_articles]
        drafts: list[DraftArticle] = []
        for topic in selected:
            try:
                draft = self.draft(topic)
            except Exception:
                logger.warning("Drafting failed for topic %s", topic.id, exc_info=True)
                continue
            if draft is not None:
                drafts.append(draft)

        logger.info("Drafter: %d/%d drafts created", len(drafts), len(selected))
        return drafts

"""Thin wrapper around the Google GenAI client executing generation requests."""

from __future__ import annotations

import logging
import threading
import time
from typing import Any

from google import genai
from google.genai import types

from newsdesk.config import Settings
from newsdesk.models import GenerationRequest

logger = logging.getLogger(__name__)

_CALL_DELAY = 1.0  # seconds between calls to stay within free-tier RPM


class GeminiClient:
    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._client = genai.Client(
            api_key=settings.gemini_api_key,
            http_options=types.HttpOptions(timeout=int(settings.generation_timeout * 1000)),
        )
        self.call_count = 0
        self._last_call_time: float = 0.0
        self._lock = threading.Lock()

    def generate(self, request: GenerationRequest) -> str:
        """Run one request and return the raw response text.

        There is no retry: a failed call raises ``RuntimeError`` and the
        calling stage decides whether the item is dropped or degraded.
        """
        config_kwargs: dict[str, Any] = {
            "temperature": request.temperature,
            "max_output_tokens": request.max_tokens,
            "top_p": request.top_p,
        }
        if request.frequency_penalty:
            config_kwargs["frequency_penalty"] = request.frequency_penalty
        if request.presence_penalty:
            config_kwargs["presence_penalty"] = request.presence_penalty
        if request.system_prompt:
            config_kwargs["system_instruction"] = request.system_prompt

        config = types.GenerateContentConfig(**config_kwargs)

        # Rate-limit: wait between calls to avoid hitting RPM quota
        with self._lock:
            elapsed = time.monotonic() - self._last_call_time
            if self._last_call_time > 0 and elapsed < _CALL_DELAY:
                time.sleep(_CALL_DELAY - elapsed)
            self._last_call_time = time.monotonic()
            self.call_count += 1

        try:
            response = self._client.models.generate_content(
                model=request.model or self._settings.model_id,
                contents=request.user_prompt,
                config=config,
            )
        except Exception as exc:
            logger.warning("Gemini call failed for model=%s: %s", request.model, exc)
            raise RuntimeError("Gemini call failed") from exc

        return response.text or ""

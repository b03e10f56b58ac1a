"""Live pipeline progress and cooperative cancellation."""

from __future__ import annotations

import threading
from datetime import datetime, timezone

from newsdesk.models import PipelineProgress

STAGES = ("gathering", "drafting", "editing", "publishing")


class PipelineCancelled(Exception):
    """Raised between stages when a run has been asked to stop."""


class CancelToken:
    def __init__(self) -> None:
        self._event = threading.Event()
        self.reason = ""

    def cancel(self, reason: str = "cancelled") -> None:
        self.reason = reason
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise PipelineCancelled(self.reason or "cancelled")


class ProgressTracker:
    """Single-slot progress state. Only the pipeline writes; readers get copies."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._state = PipelineProgress()

    def start(self) -> None:
        with self._lock:
            self._state = PipelineProgress(
                is_running=True,
                stage="starting",
                details="Loading configuration",
                started_at=datetime.now(timezone.utc),
            )

    def stage(self, name: str, details: str = "", **counters: int) -> None:
        with self._lock:
            self._state = self._state.model_copy(
                update={
                    "stage": name,
                    "stage_index": STAGES.index(name) + 1 if name in STAGES else 0,
                    "details": details,
                    **counters,
                }
            )

    def update(self, details: str = "", **counters: int) -> None:
        with self._lock:
            update = dict(counters)
            if details:
                update["details"] = details
            self._state = self._state.model_copy(update=update)

    def reset(self) -> None:
        with self._lock:
            self._state = PipelineProgress()

    def snapshot(self) -> PipelineProgress:
        with self._lock:
            return self._state.model_copy(deep=True)

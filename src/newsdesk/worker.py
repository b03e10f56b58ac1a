"""Background worker: cron-driven pipeline runs with live schedule reloading.

One worker owns one recurring timer. A reconciliation loop re-reads the
persisted schedule every few minutes and re-arms the timer when it changed.
Timer ticks and manual triggers share a single non-blocking in-flight guard:
a trigger that arrives while a run is in progress is dropped, never queued.
"""

from __future__ import annotations

import logging
import signal
import threading
from datetime import datetime, timezone
from typing import Any, Callable
from zoneinfo import ZoneInfo

from croniter import croniter

from newsdesk.agent_config import DEFAULT_CRON_SCHEDULE
from newsdesk.config import Settings
from newsdesk.gemini import GeminiClient
from newsdesk.models import AgentRunLog, PipelineProgress, RunResult, WorkerStatus
from newsdesk.pipeline import ContentPipeline, configure_logging
from newsdesk.progress import CancelToken
from newsdesk.stores import RunLogStore, SettingsStore

logger = logging.getLogger(__name__)


class InvalidScheduleError(ValueError):
    pass


def validate_schedule(expression: str) -> bool:
    """Five-field cron expressions only."""
    if not isinstance(expression, str) or len(expression.split()) != 5:
        return False
    return croniter.is_valid(expression)


def next_run_time(expression: str, now: datetime) -> datetime:
    return croniter(expression, now).get_next(datetime)


def describe_schedule(expression: str) -> str:
    """Human-readable description for the common schedule shapes."""
    parts = expression.split()
    if len(parts) != 5:
        return "Invalid schedule"
    minute, hour = parts[0], parts[1]
    rest_any = all(p == "*" for p in parts[2:])

    if minute == "*" and hour == "*" and rest_any:
        return "Every minute"
    if minute.startswith("*/") and minute[2:].isdigit() and hour == "*" and rest_any:
        mins = int(minute[2:])
        return f"Every {mins} minute{'s' if mins > 1 else ''}"
    if minute == "0" and hour.startswith("*/") and hour[2:].isdigit() and rest_any:
        hours = int(hour[2:])
        return f"Every {hours} hour{'s' if hours > 1 else ''}"
    if minute == "0" and hour == "*" and rest_any:
        return "Every hour"
    if minute.isdigit() and hour.isdigit() and rest_any:
        return f"Daily at {int(hour):02d}:{int(minute):02d}"
    return expression


class CronTimer:
    """Daemon thread firing ``callback`` at each cron occurrence until stopped."""

    def __init__(self, expression: str, callback: Callable[[], Any], tz: ZoneInfo) -> None:
        self.expression = expression
        self._callback = callback
        self._tz = tz
        self._stop = threading.Event()
        self._thread = threading.Thread(
            target=self._loop, name=f"cron-timer[{expression}]", daemon=True
        )
        self._next_run: datetime | None = None

    @property
    def next_run(self) -> datetime | None:
        return self._next_run

    def start(self) -> None:
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()

    def _loop(self) -> None:
        while not self._stop.is_set():
            now = datetime.now(self._tz)
            self._next_run = next_run_time(self.expression, now)
            delay = max(0.0, (self._next_run - now).total_seconds())
            if self._stop.wait(delay):
                break
            try:
                self._callback()
            except Exception:
                logger.exception("Scheduled callback failed")


class Worker:
    def __init__(
        self,
        settings: Settings,
        pipeline: ContentPipeline,
        tenant_id: str | None = None,
        timer_factory: Callable[..., Any] = CronTimer,
    ) -> None:
        self._settings = settings
        self._pipeline = pipeline
        self.tenant_id = tenant_id or settings.tenant_id
        self._timer_factory = timer_factory
        self._tz = ZoneInfo(settings.timezone)
        self._settings_store = SettingsStore(settings.data_dir, self.tenant_id)
        self._log_store = RunLogStore(settings.data_dir, self.tenant_id)

        self._lock = threading.RLock()
        self._run_lock = threading.Lock()
        self._timer: Any = None
        self._current_schedule = settings.default_cron_schedule or DEFAULT_CRON_SCHEDULE
        self._last_run: datetime | None = None
        self._last_result: RunResult | None = None
        self._token: CancelToken | None = None
        self._reconcile_stop = threading.Event()
        self._reconcile_thread: threading.Thread | None = None

    # --- persisted configuration ---

    def _agent_config(self) -> dict[str, Any]:
        try:
            value = self._settings_store.get("agentConfig")
        except Exception:
            logger.warning("Could not read agentConfig, using defaults", exc_info=True)
            return {}
        return value if isinstance(value, dict) else {}

    def load_schedule(self) -> str:
        config = self._agent_config()
        return (
            config.get("cronSchedule")
            or config.get("cron_schedule")
            or self._settings.default_cron_schedule
        )

    def agents_enabled(self) -> bool:
        return self._agent_config().get("enabled") is not False

    def _persist_schedule(self, expression: str) -> None:
        config = self._agent_config()
        config.pop("cron_schedule", None)
        config["cronSchedule"] = expression
        self._settings_store.set("agentConfig", config)

    def _persist_last_run(self) -> None:
        try:
            self._settings_store.set(
                "workerLastRun",
                {
                    "timestamp": self._last_run.isoformat() if self._last_run else None,
                    "result": self._last_result.model_dump() if self._last_result else None,
                },
            )
        except Exception:
            logger.warning("Failed to save last run", exc_info=True)

    def _restore_last_run(self) -> None:
        try:
            value = self._settings_store.get("workerLastRun") or {}
            if value.get("timestamp"):
                self._last_run = datetime.fromisoformat(value["timestamp"])
            if value.get("result"):
                self._last_result = RunResult.model_validate(value["result"])
        except Exception:
            logger.warning("Could not restore last run", exc_info=True)

    # --- timer lifecycle ---

    def _arm(self, expression: str) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.stop()
            self._current_schedule = expression
            self._timer = self._timer_factory(expression, self._on_tick, self._tz)
            self._timer.start()
        logger.info("Worker armed with schedule %r (%s)", expression, describe_schedule(expression))

    def start(self) -> bool:
        """Arm the timer and start reconciliation. Returns False if already active."""
        with self._lock:
            if self._timer is not None:
                return False

            schedule = self.load_schedule()
            if not validate_schedule(schedule):
                logger.error(
                    "Invalid cron expression %r, using default %r",
                    schedule,
                    self._settings.default_cron_schedule,
                )
                schedule = self._settings.default_cron_schedule
            self._restore_last_run()
            self._arm(schedule)

            self._reconcile_stop.clear()
            self._reconcile_thread = threading.Thread(
                target=self._reconcile_loop, name="schedule-reconciler", daemon=True
            )
            self._reconcile_thread.start()
        return True

    def ensure_running(self) -> dict[str, Any]:
        if not self.start():
            return {"started": False, "message": "Worker already running"}
        return {"started": True, "message": "Worker started", "schedule": self._current_schedule}

    def stop(self) -> None:
        with self._lock:
            self._reconcile_stop.set()
            if self._timer is not None:
                self._timer.stop()
                self._timer = None
            if self._token is not None:
                self._token.cancel("worker stopping")
        logger.info("Worker stopped")

    def _reconcile_loop(self) -> None:
        while not self._reconcile_stop.wait(self._settings.reconcile_interval_seconds):
            try:
                self.reconcile()
            except Exception:
                logger.exception("Schedule reconciliation failed")

    def reconcile(self) -> bool:
        """Re-arm the timer if the persisted schedule changed. Returns True on re-arm."""
        with self._lock:
            if self._timer is None:
                return False
            schedule = self.load_schedule()
            if schedule == self._current_schedule:
                return False
            if not validate_schedule(schedule):
                logger.error(
                    "Ignoring invalid persisted schedule %r, keeping %r",
                    schedule,
                    self._current_schedule,
                )
                return False
            logger.info("Schedule changed from %r to %r", self._current_schedule, schedule)
            self._arm(schedule)
        return True

    def update_schedule(self, expression: str) -> dict[str, Any]:
        if not validate_schedule(expression):
            raise InvalidScheduleError(f"Invalid cron expression: {expression}")
        with self._lock:
            self._persist_schedule(expression)
            self._arm(expression)
        return {"success": True, "schedule": expression}

    # --- runs ---

    def _on_tick(self) -> None:
        self._run_guarded(None, scheduled=True)

    def _run_guarded(self, overrides: dict[str, Any] | None, scheduled: bool) -> RunResult:
        if not self._run_lock.acquire(blocking=False):
            logger.info("Pipeline already running, skipping")
            return RunResult(success=False, error="Pipeline already running", skipped=True)
        try:
            if scheduled and not self.agents_enabled():
                logger.info("Agents disabled, skipping scheduled run")
                return RunResult(success=True, error="Pipeline is disabled", skipped=True)

            token = CancelToken()
            with self._lock:
                self._token = token

            logger.info(
                "Starting %s pipeline run at %s",
                "scheduled" if scheduled else "manual",
                datetime.now(timezone.utc).isoformat(),
            )
            try:
                log = self._pipeline.run(self.tenant_id, overrides, token)
                result = RunResult(
                    success=log.status == "completed",
                    articles_published=log.items_successful,
                    error=", ".join(log.errors) or None,
                )
            except Exception as exc:
                logger.exception("Pipeline error")
                result = RunResult(success=False, error=str(exc) or type(exc).__name__)

            with self._lock:
                self._last_run = datetime.now(timezone.utc)
                self._last_result = result
                self._token = None
            self._persist_last_run()
            logger.info("Pipeline run finished: %d articles published", result.articles_published)
            return result
        finally:
            self._run_lock.release()

    def trigger_manual_run(self, overrides: dict[str, Any] | None = None) -> RunResult:
        """Run now, outside the schedule. Dropped if a run is already in flight."""
        return self._run_guarded(overrides, scheduled=False)

    # --- status ---

    def get_status(self) -> WorkerStatus:
        with self._lock:
            timer = self._timer
            return WorkerStatus(
                is_active=timer is not None,
                is_running=self._run_lock.locked(),
                current_schedule=self._current_schedule,
                schedule_description=describe_schedule(self._current_schedule),
                next_run=getattr(timer, "next_run", None) if timer is not None else None,
                last_run=self._last_run,
                last_result=self._last_result,
            )

    def get_progress(self) -> PipelineProgress:
        return self._pipeline.progress.snapshot()

    def recent_runs(self, limit: int = 10) -> list[AgentRunLog]:
        try:
            return self._log_store.recent(limit)
        except Exception:
            logger.warning("Could not read run logs", exc_info=True)
            return []


def main() -> None:
    """CLI entry point: host the worker until SIGINT/SIGTERM."""
    settings = Settings.from_env()
    configure_logging(settings)
    if not settings.gemini_api_key:
        raise SystemExit("GEMINI_API_KEY environment variable is required")

    worker = Worker(settings, ContentPipeline(settings, GeminiClient(settings)))
    shutdown = threading.Event()

    def _handle_signal(signum, frame) -> None:
        logger.info("Received signal %d, shutting down", signum)
        shutdown.set()

    signal.signal(signal.SIGINT, _handle_signal)
    signal.signal(signal.SIGTERM, _handle_signal)

    worker.start()
    status = worker.get_status()
    logger.info("Worker running with %s (%s)", status.current_schedule, status.schedule_description)
    shutdown.wait()
    worker.stop()

"""Configuration loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class Settings:
    gemini_api_key: str = ""
    model_id: str = "gemini-3-flash-preview"
    tenant_id: str = "default"
    data_dir: str = "data"
    timezone: str = "Europe/Berlin"
    default_cron_schedule: str = "0 */6 * * *"
    feed_timeout: float = 10.0
    generation_timeout: float = 60.0
    image_timeout: float = 30.0
    reconcile_interval_seconds: float = 300.0
    gather_concurrency: int = 4
    user_agent: str = "NewsdeskBot/1.0 (+https://github.com/newsdesk/newsdesk)"
    unsplash_access_key: str = ""
    pexels_api_key: str = ""
    pixabay_api_key: str = ""
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> Settings:
        return cls(
            gemini_api_key=os.environ.get("GEMINI_API_KEY", ""),
            model_id=os.environ.get("GEMINI_MODEL_ID", "gemini-3-flash-preview"),
            tenant_id=os.environ.get("BRAND_ID", "default"),
            data_dir=os.environ.get("NEWSDESK_DATA_DIR", "data"),
            timezone=os.environ.get("NEWSDESK_TIMEZONE", "Europe/Berlin"),
            default_cron_schedule=os.environ.get("DEFAULT_CRON_SCHEDULE", "0 */6 * * *"),
            feed_timeout=float(os.environ.get("FEED_TIMEOUT", "10")),
            generation_timeout=float(os.environ.get("GENERATION_TIMEOUT", "60")),
            image_timeout=float(os.environ.get("IMAGE_TIMEOUT", "30")),
            reconcile_interval_seconds=float(
                os.environ.get("RECONCILE_INTERVAL_SECONDS", "300")
            ),
            gather_concurrency=int(os.environ.get("GATHER_CONCURRENCY", "4")),
            unsplash_access_key=os.environ.get("UNSPLASH_ACCESS_KEY", ""),
            pexels_api_key=os.environ.get("PEXELS_API_KEY", ""),
            pixabay_api_key=os.environ.get("PIXABAY_API_KEY", ""),
            log_level=os.environ.get("LOG_LEVEL", "INFO"),
        )

"""Per-tenant JSON file stores: settings, articles, run logs."""

from __future__ import annotations

import json
import logging
import os
import re
import threading
import uuid
from datetime import date
from pathlib import Path
from typing import Any

from newsdesk.models import AgentRunLog, ArticleCreate, ArticleFile, StoredArticle

logger = logging.getLogger(__name__)

_SLUG_MAX_LENGTH = 50
_TRANSLITERATIONS = (("ä", "ae"), ("ö", "oe"), ("ü", "ue"), ("ß", "ss"))


def slugify(title: str) -> str:
    """URL-safe slug with German umlaut transliteration."""
    slug = title.lower()
    for src, dst in _TRANSLITERATIONS:
        slug = slug.replace(src, dst)
    slug = re.sub(r"[^\w\s-]", "", slug, flags=re.ASCII)
    slug = re.sub(r"[\s_-]+", "-", slug)
    slug = slug.strip("-")[:_SLUG_MAX_LENGTH].strip("-")
    return slug or "article"


def tenant_dir(data_dir: str | Path, tenant_id: str) -> Path:
    return Path(data_dir) / tenant_id


def _write_atomic(path: Path, text: str) -> None:
    """Write to a sibling .tmp file, then os.replace() it over the target."""
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(".tmp")
    tmp_path.write_text(text, encoding="utf-8")
    os.replace(tmp_path, path)


class SettingsStore:
    """Key/value settings document for one tenant (``settings.json``)."""

    def __init__(self, data_dir: str | Path, tenant_id: str) -> None:
        self._path = tenant_dir(data_dir, tenant_id) / "settings.json"
        self._lock = threading.Lock()

    def _read(self) -> dict[str, Any]:
        if not self._path.exists():
            return {}
        return json.loads(self._path.read_text(encoding="utf-8"))

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return self._read().get(key, default)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            data = self._read()
            data[key] = value
            _write_atomic(self._path, json.dumps(data, indent=2, default=str) + "\n")


class ArticleStore:
    """Article collection for one tenant; owns id assignment and slug uniqueness."""

    def __init__(self, data_dir: str | Path, tenant_id: str) -> None:
        self._path = tenant_dir(data_dir, tenant_id) / "articles.json"
        self._lock = threading.Lock()

    def _load(self) -> ArticleFile:
        if not self._path.exists():
            return ArticleFile()
        return ArticleFile.model_validate_json(self._path.read_text(encoding="utf-8"))

    def _save(self, data: ArticleFile) -> None:
        data.last_updated = date.today().isoformat()
        _write_atomic(self._path, data.model_dump_json(indent=2) + "\n")

    def create(self, article: ArticleCreate) -> StoredArticle:
        with self._lock:
            data = self._load()
            taken = {a.slug for a in data.articles}
            base = slugify(article.title)
            slug = base
            suffix = 2
            while slug in taken:
                slug = f"{base}-{suffix}"
                suffix += 1

            stored = StoredArticle(
                **article.model_dump(),
                id=uuid.uuid4().hex,
                slug=slug,
            )
            data.articles.append(stored)
            self._save(data)
        logger.info("Stored article %s (%s)", stored.id, stored.slug)
        return stored

    def find_by_slug(self, slug: str) -> StoredArticle | None:
        with self._lock:
            for article in self._load().articles:
                if article.slug == slug:
                    return article
        return None

    def all(self) -> list[StoredArticle]:
        with self._lock:
            return list(self._load().articles)


class RunLogStore:
    """Append-only JSON-lines log of pipeline runs (``run_logs.jsonl``)."""

    def __init__(self, data_dir: str | Path, tenant_id: str) -> None:
        self._path = tenant_dir(data_dir, tenant_id) / "run_logs.jsonl"
        self._lock = threading.Lock()

    def append(self, log: AgentRunLog) -> None:
        with self._lock:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with self._path.open("a", encoding="utf-8") as fh:
                fh.write(log.model_dump_json() + "\n")

    def recent(self, limit: int = 10) -> list[AgentRunLog]:
        """Most recent runs first."""
        with self._lock:
            if not self._path.exists():
                return []
            lines = self._path.read_text(encoding="utf-8").splitlines()
        logs = [AgentRunLog.model_validate_json(line) for line in lines if line.strip()]
        logs.sort(key=lambda log: log.started_at, reverse=True)
        return logs[:limit]

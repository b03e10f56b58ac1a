"""Tests for the per-tenant JSON stores."""

from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest

from newsdesk.models import AgentRunLog, ArticleCreate
from newsdesk.stores import ArticleStore, RunLogStore, SettingsStore, slugify


def test_slugify():
    assert slugify("Bundestag beschließt Haushalt für 2026") == "bundestag-beschliesst-haushalt-fuer-2026"
    assert slugify("Über Ärger & Öl") == "ueber-aerger-oel"
    assert slugify("!!!") == "article"
    assert len(slugify("word " * 40)) <= 50
    assert not slugify("word " * 40).endswith("-")


def test_slug_uniqueness(tmp_path):
    store = ArticleStore(tmp_path, "t1")
    article = ArticleCreate(title="Same Title", teaser="t", content="c", category="news")

    slugs = [store.create(article).slug for _ in range(3)]

    assert slugs == ["same-title", "same-title-2", "same-title-3"]
    assert store.find_by_slug("same-title-2") is not None
    assert store.find_by_slug("missing") is None


def test_tenants_are_isolated(tmp_path):
    ArticleStore(tmp_path, "a").create(
        ArticleCreate(title="Only A", teaser="t", content="c", category="news")
    )
    assert ArticleStore(tmp_path, "b").all() == []
    assert len(ArticleStore(tmp_path, "a").all()) == 1


def test_settings_store_roundtrip(tmp_path):
    store = SettingsStore(tmp_path, "t1")
    assert store.get("agentConfig") is None
    assert store.get("agentConfig", {}) == {}

    store.set("agentConfig", {"enabled": False})
    store.set("imageSources", {"pexels": {"apiKey": "k"}})

    reopened = SettingsStore(tmp_path, "t1")
    assert reopened.get("agentConfig") == {"enabled": False}
    assert reopened.get("imageSources")["pexels"]["apiKey"] == "k"


def test_run_log_recent_newest_first(tmp_path):
    store = RunLogStore(tmp_path, "t1")
    base = datetime(2026, 1, 1, tzinfo=timezone.utc)
    for hours in (0, 2, 1):
        store.append(AgentRunLog(tenant_id="t1", started_at=base + timedelta(hours=hours)))

    recent = store.recent(limit=2)
    assert [log.started_at.hour for log in recent] == [2, 1]
    assert RunLogStore(tmp_path, "empty").recent() == []


def test_interrupted_write_keeps_previous_document(tmp_path):
    store = SettingsStore(tmp_path, "t1")
    store.set("agentConfig", {"enabled": True})

    with patch("newsdesk.stores.os.replace", side_effect=OSError("disk full")):
        with pytest.raises(OSError):
            store.set("agentConfig", {"enabled": False})

    assert SettingsStore(tmp_path, "t1").get("agentConfig") == {"enabled": True}
    articles = ArticleStore(tmp_path, "t1")
    articles.create(ArticleCreate(title="Kept", teaser="t", content="c", category="news"))
    with patch("newsdesk.stores.os.replace", side_effect=OSError("disk full")):
        with pytest.raises(OSError):
            articles.create(ArticleCreate(title="Lost", teaser="t", content="c", category="news"))

    assert [a.title for a in ArticleStore(tmp_path, "t1").all()] == ["Kept"]

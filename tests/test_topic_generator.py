"""Tests for the generated topic source."""

from datetime import datetime, timezone

from newsdesk.sources.topic_generator import TopicGenerator

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)


def test_generates_up_to_three_items(mock_client):
    mock_client.set_responses(
        [
            [
                {"title": "One", "snippet": "First", "source": "Wire"},
                {"title": "Two", "snippet": "Second"},
                {"title": "Three"},
                {"title": "Four"},
            ]
        ]
    )
    items = TopicGenerator(mock_client).generate("technology", "de", now=NOW)

    assert [item.title for item in items] == ["One", "Two", "Three"]
    assert items[0].source_name == "Wire"
    assert items[1].source_name == "generated"
    assert all(item.url.startswith("https://example.com/news/") for item in items)
    assert len({item.url for item in items}) == 3


def test_prompt_carries_date_and_category(mock_client):
    mock_client.set_responses([[]])
    TopicGenerator(mock_client).generate("sports", "en", now=NOW)

    prompt = mock_client.requests[0].user_prompt
    assert "2026-03-10" in prompt
    assert '"sports"' in prompt
    assert "English" in prompt


def test_unparsable_response_yields_nothing(mock_client):
    mock_client.set_responses(["I cannot help with that."])
    assert TopicGenerator(mock_client).generate("news", "de", now=NOW) == []


def test_client_error_yields_nothing(mock_client):
    mock_client.set_responses([RuntimeError("Gemini call failed")])
    assert TopicGenerator(mock_client).generate("news", "de", now=NOW) == []


def test_skips_malformed_entries(mock_client):
    mock_client.set_responses([["just a string", {"snippet": "no title"}, {"title": "Good"}]])
    items = TopicGenerator(mock_client).generate("news", "de", now=NOW)
    assert [item.title for item in items] == ["Good"]

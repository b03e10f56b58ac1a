"""Tests for Stage 3: Editor."""

from newsdesk.agent_config import AIModelConfig
from newsdesk.stages.editor import FALLBACK_NOTE, Editor, clamp_score


def test_editor_applies_revision(mock_client, sample_drafts):
    mock_client.set_responses(
        [
            {
                "title": "Besserer Titel",
                "teaser": "Besserer Teaser.",
                "content": "<p>Improved.</p>",
                "tags": ["chips"],
                "editNotes": "Tightened lead",
                "qualityScore": 9,
            }
        ]
    )
    edited = Editor(mock_client, AIModelConfig()).edit(sample_drafts[0])

    assert edited.title == "Besserer Titel"
    assert edited.content == "<p>Improved.</p>"
    assert edited.edit_notes == "Tightened lead"
    assert edited.quality_score == 9
    assert edited.id == sample_drafts[0].id
    assert edited.article_type == "analysis"
    assert mock_client.requests[0].temperature == 0.5


def test_missing_fields_keep_draft_values(mock_client, sample_drafts):
    mock_client.set_responses([{"qualityScore": "8"}])
    edited = Editor(mock_client, AIModelConfig()).edit(sample_drafts[0])

    assert edited.title == sample_drafts[0].title
    assert edited.tags == sample_drafts[0].tags
    assert edited.quality_score == 8


def test_score_clamped_and_defaulted(mock_client, sample_drafts):
    mock_client.set_responses([{"qualityScore": 42}, {"title": "No score"}])
    editor = Editor(mock_client, AIModelConfig())

    assert editor.edit(sample_drafts[0]).quality_score == 10
    assert editor.edit(sample_drafts[1]).quality_score == 7


def test_client_error_falls_back(mock_client, sample_drafts):
    mock_client.set_responses([RuntimeError("Gemini call failed")])
    edited = Editor(mock_client, AIModelConfig()).edit(sample_drafts[0])

    assert edited.title == sample_drafts[0].title
    assert edited.content == sample_drafts[0].content
    assert edited.quality_score == 6
    assert edited.edit_notes.startswith(FALLBACK_NOTE)
    assert "Gemini call failed" in edited.edit_notes


def test_unparsable_response_falls_back(mock_client, sample_drafts):
    mock_client.set_responses(["Looks great to me!"])
    edited = Editor(mock_client, AIModelConfig()).edit(sample_drafts[0])
    assert edited.quality_score == 6
    assert edited.edit_notes.startswith(FALLBACK_NOTE)


def test_run_never_drops_drafts(mock_client, sample_drafts):
    mock_client.set_responses([RuntimeError("down"), {"qualityScore": 8}])
    edited = Editor(mock_client, AIModelConfig()).run(sample_drafts)
    assert [a.id for a in edited] == ["draft-1", "draft-2"]
    assert [a.quality_score for a in edited] == [6, 8]


def test_clamp_score():
    assert clamp_score(None) == 7
    assert clamp_score(0) == 1
    assert clamp_score(-3) == 1
    assert clamp_score(11) == 10
    assert clamp_score(5) == 5


def test_scalar_tags_keep_draft_tags(mock_client, sample_drafts):
    mock_client.set_responses([{"title": "T", "qualityScore": 8, "tags": 5}])
    edited = Editor(mock_client, AIModelConfig()).edit(sample_drafts[0])

    assert edited.title == "T"
    assert edited.quality_score == 8
    assert edited.tags == sample_drafts[0].tags


def test_unexpected_error_falls_back_per_item(mock_client, sample_drafts):
    mock_client.set_responses([{"qualityScore": 9}])
    editor = Editor(mock_client, AIModelConfig())
    real_edit = editor.edit

    def flaky(draft):
        if draft.id == "draft-1":
            raise KeyError("unexpected")
        return real_edit(draft)

    editor.edit = flaky
    edited = editor.run(sample_drafts)

    assert [a.id for a in edited] == ["draft-1", "draft-2"]
    assert edited[0].quality_score == 6
    assert edited[0].edit_notes.startswith(FALLBACK_NOTE)
    assert edited[1].quality_score == 9

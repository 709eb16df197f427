"""Tests for response normalization and fallback payloads."""

import json

import pytest

from app.core.llm import Parsed, Unparseable, parse_model_json
from app.core.normalizers import (
    EMPTY_ANSWER,
    FALLBACK_IMAGE_DESCRIPTION,
    fallback_analysis,
    make_snippet,
    normalize_analysis,
    normalize_answer,
    normalize_image_analysis,
    normalize_similarity,
    normalize_suggestions,
    normalize_transcript,
)


def _suggestion(**overrides):
    item = {
        "id": "s1",
        "type": "action_item",
        "title": "Follow up",
        "description": "Email the team",
        "confidence": 0.8,
    }
    item.update(overrides)
    return item


# ---------------------------------------------------------------------------
# Suggestions
# ---------------------------------------------------------------------------


def test_suggestions_non_json_uses_two_item_fallback():
    result = normalize_suggestions(parse_model_json("Sure! Here are some ideas for you."))

    assert [s.confidence for s in result.suggestions] == [0.7, 0.6]
    assert [s.id for s in result.suggestions] == ["suggestion-1", "suggestion-2"]


def test_suggestions_wrong_shape_uses_fallback():
    result = normalize_suggestions(Parsed({"suggestions": "none"}))
    assert len(result.suggestions) == 2


def test_suggestions_confidence_above_one_is_clamped():
    result = normalize_suggestions(Parsed({"suggestions": [_suggestion(confidence=1.5)]}))
    assert result.suggestions[0].confidence == 1.0


def test_suggestions_drop_low_confidence_and_incomplete_items():
    raw = {
        "suggestions": [
            _suggestion(id="keep"),
            _suggestion(id="low", confidence=0.49),
            _suggestion(id="negative", confidence=-0.2),
            _suggestion(id="no-title", title=""),
            _suggestion(id="no-type", type=None),
            _suggestion(id="bad-confidence", confidence="high"),
            _suggestion(id="bool-confidence", confidence=True),
            "not an object",
        ]
    }

    result = normalize_suggestions(Parsed(raw))

    assert [s.id for s in result.suggestions] == ["keep"]


def test_suggestions_unknown_type_becomes_improvement():
    result = normalize_suggestions(Parsed({"suggestions": [_suggestion(type="brainstorm")]}))
    assert result.suggestions[0].type == "improvement"


def test_suggestions_capped_at_five_with_generated_ids():
    raw = {"suggestions": [_suggestion(id=None, title=f"T{i}") for i in range(8)]}

    result = normalize_suggestions(Parsed(raw))

    assert len(result.suggestions) == 5
    assert result.suggestions[0].id == "suggestion-0"
    assert result.suggestions[4].id == "suggestion-4"


def test_suggestions_empty_list_is_valid():
    assert normalize_suggestions(Parsed({"suggestions": []})).suggestions == []


# ---------------------------------------------------------------------------
# Content analysis
# ---------------------------------------------------------------------------


def test_analysis_bounds_and_defaults():
    raw = {
        "summary": "  A note about ML.  ",
        "keywords": ["ml", "ML", "data", "models", "training", "python", "numpy"],
        "sentiment": "Ecstatic",
        "topics": ["ai", "education", "research", "extra"],
    }

    result = normalize_analysis(Parsed(raw))

    assert result.summary == "A note about ML."
    assert result.keywords == ["ml", "data", "models", "training", "python"]
    assert result.sentiment == "neutral"
    assert result.topics == ["ai", "education", "research"]


def test_analysis_missing_summary():
    result = normalize_analysis(Parsed({"keywords": ["x"], "sentiment": "positive"}))
    assert result.summary == "Content analysis not available"
    assert result.sentiment == "positive"
    assert result.topics == []


def test_analysis_unparseable_uses_fallback():
    result = normalize_analysis(Unparseable("empty model output"))
    assert result == fallback_analysis()
    assert result.sentiment == "neutral"


# ---------------------------------------------------------------------------
# Image analysis
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("declared,expected", [(1.5, 1.0), (-0.2, 0.0), (0.65, 0.65)])
def test_image_confidence_is_clamped(declared, expected):
    result = normalize_image_analysis(
        Parsed({"description": "A chart", "confidence": declared}), ["Chart"], "Q3"
    )
    assert result.confidence == pytest.approx(expected)


def test_image_missing_fields_fall_back_to_detections():
    result = normalize_image_analysis(Parsed({"description": "Whiteboard"}), ["Text", "Board"], "TODO list")

    assert result.objects == ["Text", "Board"]
    assert result.text == "TODO list"
    assert result.confidence == pytest.approx(0.8)
    assert result.suggestions == []


def test_image_bounds_objects_and_suggestions():
    raw = {
        "description": "Busy scene",
        "objects": [f"obj{i}" for i in range(15)],
        "suggestions": ["a", "b", "c", "d"],
        "confidence": 0.9,
    }

    result = normalize_image_analysis(Parsed(raw), [], "")

    assert len(result.objects) == 10
    assert result.suggestions == ["a", "b", "c"]


def test_image_unparseable_uses_detections():
    result = normalize_image_analysis(Unparseable("x"), ["Cat"], "hello")

    assert result.description == FALLBACK_IMAGE_DESCRIPTION
    assert result.objects == ["Cat"]
    assert result.text == "hello"


# ---------------------------------------------------------------------------
# Similarity / answer
# ---------------------------------------------------------------------------


def test_similarity_clamps_and_truncates_snippet():
    score, snippet = normalize_similarity(Parsed({"relevanceScore": 1.4, "snippet": "x" * 300}))
    assert score == 1.0
    assert snippet == "x" * 200 + "..."


def test_similarity_unusable_returns_none():
    assert normalize_similarity(Parsed({"snippet": "no score"})) is None
    assert normalize_similarity(Unparseable("bad")) is None


def test_answer_empty_uses_fixed_message():
    assert normalize_answer("   ") == EMPTY_ANSWER
    assert normalize_answer(" 42 ") == "42"


def test_make_snippet():
    assert make_snippet("short") == "short"
    assert make_snippet("y" * 250) == "y" * 200 + "..."


# ---------------------------------------------------------------------------
# Transcription
# ---------------------------------------------------------------------------


def _transcript_document() -> bytes:
    return json.dumps(
        {
            "results": {
                "transcripts": [{"transcript": "Hello team. Hi there."}],
                "items": [
                    {"start_time": "0.0", "end_time": "0.5", "alternatives": [{"confidence": "0.97", "content": "Hello"}], "type": "pronunciation"},
                    {"start_time": "0.5", "end_time": "0.9", "alternatives": [{"confidence": "0.95", "content": "team"}], "type": "pronunciation"},
                    {"alternatives": [{"confidence": "0.0", "content": "."}], "type": "punctuation"},
                    {"start_time": "1.2", "end_time": "1.4", "alternatives": [{"confidence": "0.99", "content": "Hi"}], "type": "pronunciation"},
                    {"start_time": "1.4", "end_time": "1.8", "alternatives": [{"confidence": "0.98", "content": "there"}], "type": "pronunciation"},
                ],
                "speaker_labels": {
                    "segments": [
                        {"speaker_label": "spk_0", "items": [{"start_time": "0.0"}, {"start_time": "0.5"}]},
                        {"speaker_label": "spk_1", "items": [{"start_time": "1.2"}, {"start_time": "1.4"}]},
                    ]
                },
            }
        }
    ).encode()


def test_transcript_document_is_normalized():
    result = normalize_transcript(_transcript_document(), "en-US")

    assert result.transcript == "Hello team. Hi there."
    assert result.confidence == pytest.approx(0.97)
    assert result.duration == pytest.approx(1.8)
    assert result.language == "en-US"
    assert [(s.speaker, s.text) for s in result.speakers] == [
        ("spk_0", "Hello team"),
        ("spk_1", "Hi there"),
    ]


@pytest.mark.parametrize(
    "speaker_labels",
    [
        [{"speaker_label": "spk_0", "items": []}],
        "spk_0",
        {"segments": {"speaker_label": "spk_0"}},
        {"segments": [{"speaker_label": "spk_0", "items": 7}]},
    ],
)
def test_transcript_malformed_speaker_labels_are_ignored(speaker_labels):
    document = json.loads(_transcript_document())
    document["results"]["speaker_labels"] = speaker_labels

    result = normalize_transcript(json.dumps(document), "en-US")

    assert result.transcript == "Hello team. Hi there."
    assert result.duration == pytest.approx(1.8)
    assert result.speakers == []


@pytest.mark.parametrize("field", ["items", "transcripts"])
@pytest.mark.parametrize("value", [{"0": {"content": "x"}}, "Hello", 42])
def test_transcript_non_list_sections_are_ignored(field, value):
    document = json.loads(_transcript_document())
    document["results"][field] = value

    result = normalize_transcript(json.dumps(document), "en-US")

    if field == "items":
        assert result.transcript == "Hello team. Hi there."
        assert result.duration == 0.0
        assert result.speakers == []
    else:
        assert result.transcript == ""
        assert result.confidence == pytest.approx(0.97)


def test_transcript_non_list_alternatives_are_ignored():
    document = json.loads(_transcript_document())
    document["results"]["items"][0]["alternatives"] = {"0": {"content": "Hello"}}

    result = normalize_transcript(json.dumps(document), "en-US")

    assert result.speakers[0].text == "team"


def test_transcript_invalid_document_uses_fallback():
    result = normalize_transcript(b"<html>oops</html>", "en-GB")

    assert result.transcript == ""
    assert result.confidence == 0.0
    assert result.speakers == []
    assert result.language == "en-GB"


# ---------------------------------------------------------------------------
# Idempotence
# ---------------------------------------------------------------------------


def test_normalizers_are_idempotent():
    suggestions = normalize_suggestions(Parsed({"suggestions": [_suggestion(confidence=1.5)]}))
    again = normalize_suggestions(Parsed(suggestions.model_dump()))
    assert again == suggestions

    analysis = normalize_analysis(Parsed({"summary": "s", "keywords": ["a", "A", "b"], "topics": ["t"]}))
    assert normalize_analysis(Parsed(analysis.model_dump())) == analysis

    image = normalize_image_analysis(Parsed({"description": "d", "confidence": -3}), ["x"], "t")
    assert normalize_image_analysis(Parsed(image.model_dump()), ["x"], "t") == image

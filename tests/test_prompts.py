"""Tests for prompt assembly."""

from app.core.content_models import ContentCandidate
from app.core.prompts import (
    ANALYSIS_EXCERPT_CHARS,
    MAX_QUERY_CONTEXT_ITEMS,
    QUERY_EXCERPT_CHARS,
    SIMILARITY_EXCERPT_CHARS,
    SUGGESTION_PEER_EXCERPT_CHARS,
    build_analysis_prompt,
    build_image_prompt,
    build_query_prompt,
    build_similarity_prompt,
    build_suggestions_prompt,
    truncate,
)


def _candidate(cid: str, text: str) -> ContentCandidate:
    return ContentCandidate(
        id=cid,
        scope_id="kb-1",
        owner_id="user-1",
        display_name=f"{cid}.txt",
        mime_category="text/plain",
        raw=text.encode(),
    )


def test_truncate_marks_cut_only_when_cutting():
    assert truncate("abc", 3) == "abc"
    assert truncate("abcdef", 3) == "abc..."


def test_query_prompt_truncates_and_bounds_context():
    context = [_candidate(f"f{i}", "w" * (QUERY_EXCERPT_CHARS + 50)) for i in range(12)]

    prompt = build_query_prompt("what is in my files?", context)

    assert len(prompt.embedded_excerpts) == MAX_QUERY_CONTEXT_ITEMS
    assert "File: f0.txt" in prompt.render()
    assert "File: f11.txt" not in prompt.render()
    assert "w" * (QUERY_EXCERPT_CHARS + 1) not in prompt.render()
    assert "User Question: what is in my files?" in prompt.render()


def test_similarity_prompt_excerpt_ceiling():
    prompt = build_similarity_prompt("python", "p" * 5000)

    assert prompt.embedded_excerpts == ("p" * SIMILARITY_EXCERPT_CHARS + "...",)
    assert '"relevanceScore"' in prompt.output_schema_description


def test_suggestions_prompt_includes_truncated_peers():
    target = _candidate("target", "Project plan for Q3")
    peers = [_candidate("peer", "q" * 900)]

    prompt = build_suggestions_prompt(target, peers)

    assert prompt.embedded_excerpts[0] == "Project plan for Q3"
    assert prompt.embedded_excerpts[1] == "peer.txt: " + "q" * SUGGESTION_PEER_EXCERPT_CHARS + "..."
    assert "Current Content (target.txt)" in prompt.render()


def test_suggestions_prompt_without_peers():
    prompt = build_suggestions_prompt(_candidate("solo", "Only file"), [])
    assert "(no other content)" in prompt.render()


def test_analysis_prompt_excerpt_ceiling():
    prompt = build_analysis_prompt(_candidate("long", "a" * 4000))

    assert len(prompt.embedded_excerpts[0]) == ANALYSIS_EXCERPT_CHARS + 3
    assert '"sentiment"' in prompt.output_schema_description


def test_image_prompt_lists_detections():
    prompt = build_image_prompt("chart.png", ["Chart", "Text"], "Revenue 2024")

    assert "- Detected Objects: Chart, Text" in prompt.render()
    assert "- Extracted Text: Revenue 2024" in prompt.render()

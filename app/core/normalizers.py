"""Response normalization: turn model output into bounded, typed payloads.

Each endpoint has a normalizer that validates the parsed model JSON field by
field and a fixed fallback used when the output is unparseable or has the
wrong shape. Normalizers are pure functions of their inputs.
"""

from __future__ import annotations

import json
from typing import Any

from app.core.llm import Parsed, ParseResult, Unparseable
from app.core.logging import get_logger
from app.core.ranking import (
    MAX_IMAGE_OBJECTS,
    MAX_IMAGE_SUGGESTIONS,
    MAX_KEYWORDS,
    MAX_SUGGESTIONS,
    MAX_TOPICS,
    SUGGESTION_CONFIDENCE_FLOOR,
)
from app.core.relevance import clamp_unit
from app.core.schemas_ai import (
    ContentAnalysisResponse,
    ImageAnalysisResponse,
    SpeakerSegment,
    Suggestion,
    SuggestionsResponse,
    TranscriptionResponse,
)

logger = get_logger(__name__)

SNIPPET_CHARS = 200

SUGGESTION_TYPES = ("related_content", "improvement", "action_item")
DEFAULT_SUGGESTION_TYPE = "improvement"
SENTIMENTS = ("positive", "negative", "neutral")
DEFAULT_SENTIMENT = "neutral"

DEFAULT_IMAGE_CONFIDENCE = 0.8
DEFAULT_TRANSCRIPT_CONFIDENCE = 0.8

NO_CONTENT_ANSWER = (
    "I couldn't find any readable content in this knowledge base to answer your question."
)
EMPTY_ANSWER = "I wasn't able to produce an answer from your content. Please try rephrasing your question."

FALLBACK_SUGGESTIONS = (
    {
        "id": "suggestion-1",
        "type": "improvement",
        "title": "Add Summary",
        "description": "Consider adding a summary section to help readers quickly understand the key points.",
        "confidence": 0.7,
    },
    {
        "id": "suggestion-2",
        "type": "related_content",
        "title": "Link Related Documents",
        "description": "This content could benefit from links to related documents in your knowledge base.",
        "confidence": 0.6,
    },
)

FALLBACK_ANALYSIS = {
    "summary": "Content analysis completed but detailed insights are not available.",
    "keywords": ["content", "document", "information"],
    "sentiment": "neutral",
    "topics": ["general content"],
}

FALLBACK_IMAGE_DESCRIPTION = "Image analysis completed using automated image recognition"
FALLBACK_IMAGE_SUGGESTIONS = (
    "Consider adding labels or annotations to improve clarity",
    "The image could benefit from higher resolution if available",
)


# ---------------------------------------------------------------------------
# Field coercion helpers
# ---------------------------------------------------------------------------


def _as_text(value: Any) -> str:
    if isinstance(value, str):
        return value.strip()
    return ""


def _as_number(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None


def _string_list(value: Any, limit: int | None = None) -> list[str] | None:
    """Keep non-empty string items, first `limit` of them. None if not a list."""
    if not isinstance(value, list):
        return None
    items = [item.strip() for item in value if isinstance(item, str) and item.strip()]
    return items if limit is None else items[:limit]


def _dedupe(items: list[str]) -> list[str]:
    seen: set[str] = set()
    unique = []
    for item in items:
        key = item.lower()
        if key not in seen:
            seen.add(key)
            unique.append(item)
    return unique


def _log_fallback(endpoint: str, result: ParseResult) -> None:
    reason = result.reason if isinstance(result, Unparseable) else "unexpected JSON shape"
    logger.warning(
        f"Using fallback payload for {endpoint}: {reason}",
        extra={"endpoint": endpoint},
    )


def make_snippet(text: str, limit: int = SNIPPET_CHARS) -> str:
    text = text.strip()
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


# ---------------------------------------------------------------------------
# Query
# ---------------------------------------------------------------------------


def normalize_answer(raw_text: str | None) -> str:
    answer = (raw_text or "").strip()
    return answer or EMPTY_ANSWER


# ---------------------------------------------------------------------------
# Similarity judgement (semantic search)
# ---------------------------------------------------------------------------


def normalize_similarity(result: ParseResult) -> tuple[float, str | None] | None:
    """
    Extract (score, snippet) from a similarity judgement.

    Returns None when the output is unusable, so the caller can fall back to
    lexical scoring.
    """
    if not isinstance(result, Parsed) or not isinstance(result.value, dict):
        return None

    score = _as_number(result.value.get("relevanceScore"))
    if score is None:
        return None

    snippet = _as_text(result.value.get("snippet")) or None
    if snippet:
        snippet = make_snippet(snippet)
    return clamp_unit(score), snippet


# ---------------------------------------------------------------------------
# Suggestions
# ---------------------------------------------------------------------------


def fallback_suggestions() -> SuggestionsResponse:
    return SuggestionsResponse(suggestions=[Suggestion(**s) for s in FALLBACK_SUGGESTIONS])


def normalize_suggestions(result: ParseResult) -> SuggestionsResponse:
    if not isinstance(result, Parsed) or not isinstance(result.value, dict):
        _log_fallback("suggestions", result)
        return fallback_suggestions()

    raw_items = result.value.get("suggestions")
    if not isinstance(raw_items, list):
        _log_fallback("suggestions", result)
        return fallback_suggestions()

    suggestions: list[Suggestion] = []
    for item in raw_items:
        if not isinstance(item, dict):
            continue

        title = _as_text(item.get("title"))
        description = _as_text(item.get("description"))
        raw_type = _as_text(item.get("type"))
        confidence = _as_number(item.get("confidence"))
        if not (title and description and raw_type) or confidence is None:
            continue
        if confidence < SUGGESTION_CONFIDENCE_FLOOR:
            continue

        suggestion_type = raw_type if raw_type in SUGGESTION_TYPES else DEFAULT_SUGGESTION_TYPE
        suggestions.append(
            Suggestion(
                id=_as_text(item.get("id")) or f"suggestion-{len(suggestions)}",
                type=suggestion_type,
                title=title,
                description=description,
                confidence=clamp_unit(confidence),
            )
        )
        if len(suggestions) == MAX_SUGGESTIONS:
            break

    return SuggestionsResponse(suggestions=suggestions)


# ---------------------------------------------------------------------------
# Content analysis
# ---------------------------------------------------------------------------


def fallback_analysis() -> ContentAnalysisResponse:
    return ContentAnalysisResponse(**FALLBACK_ANALYSIS)


def normalize_analysis(result: ParseResult) -> ContentAnalysisResponse:
    if not isinstance(result, Parsed) or not isinstance(result.value, dict):
        _log_fallback("analysis", result)
        return fallback_analysis()

    data = result.value
    sentiment = _as_text(data.get("sentiment")).lower()
    keywords = _dedupe(_string_list(data.get("keywords")) or [])

    return ContentAnalysisResponse(
        summary=_as_text(data.get("summary")) or "Content analysis not available",
        keywords=keywords[:MAX_KEYWORDS],
        sentiment=sentiment if sentiment in SENTIMENTS else DEFAULT_SENTIMENT,
        topics=_string_list(data.get("topics"), MAX_TOPICS) or [],
    )


# ---------------------------------------------------------------------------
# Image analysis
# ---------------------------------------------------------------------------


def fallback_image_analysis(detected_objects: list[str], extracted_text: str) -> ImageAnalysisResponse:
    return ImageAnalysisResponse(
        description=FALLBACK_IMAGE_DESCRIPTION,
        objects=detected_objects[:MAX_IMAGE_OBJECTS],
        text=extracted_text,
        confidence=DEFAULT_IMAGE_CONFIDENCE,
        suggestions=list(FALLBACK_IMAGE_SUGGESTIONS),
    )


def normalize_image_analysis(
    result: ParseResult,
    detected_objects: list[str],
    extracted_text: str,
) -> ImageAnalysisResponse:
    if not isinstance(result, Parsed) or not isinstance(result.value, dict):
        _log_fallback("image_analysis", result)
        return fallback_image_analysis(detected_objects, extracted_text)

    data = result.value
    objects = _string_list(data.get("objects"), MAX_IMAGE_OBJECTS)
    confidence = _as_number(data.get("confidence"))

    return ImageAnalysisResponse(
        description=_as_text(data.get("description")) or "Image analysis completed",
        objects=objects if objects is not None else detected_objects[:MAX_IMAGE_OBJECTS],
        text=_as_text(data.get("text")) or extracted_text,
        confidence=clamp_unit(DEFAULT_IMAGE_CONFIDENCE if confidence is None else confidence),
        suggestions=_string_list(data.get("suggestions"), MAX_IMAGE_SUGGESTIONS) or [],
    )


# ---------------------------------------------------------------------------
# Transcription
# ---------------------------------------------------------------------------


def fallback_transcription(language: str) -> TranscriptionResponse:
    return TranscriptionResponse(
        transcript="",
        confidence=0.0,
        speakers=[],
        duration=0.0,
        language=language,
    )


def _list_field(mapping: dict[str, Any], key: str) -> list[Any]:
    value = mapping.get(key)
    return value if isinstance(value, list) else []


def _speaker_segments(results: dict[str, Any]) -> list[SpeakerSegment]:
    """
    Rebuild per-speaker text from speaker label segments.

    Segment items reference words by start time; words are looked up in the
    top-level item list. Older transcript formats embed the words directly.
    """
    words_by_start: dict[str, str] = {}
    for item in _list_field(results, "items"):
        if not isinstance(item, dict):
            continue
        start = item.get("start_time")
        content = _first_alternative(item).get("content")
        if start is not None and isinstance(content, str):
            words_by_start[str(start)] = content

    speaker_labels = results.get("speaker_labels")
    if not isinstance(speaker_labels, dict):
        return []

    speakers: list[SpeakerSegment] = []
    for segment in _list_field(speaker_labels, "segments"):
        if not isinstance(segment, dict):
            continue
        words = []
        for item in _list_field(segment, "items"):
            if not isinstance(item, dict):
                continue
            content = _first_alternative(item).get("content")
            if not isinstance(content, str):
                content = words_by_start.get(str(item.get("start_time")))
            if content:
                words.append(content)
        text = " ".join(words)
        if text:
            speakers.append(
                SpeakerSegment(
                    speaker=_as_text(segment.get("speaker_label")) or "Unknown Speaker",
                    text=text,
                )
            )
    return speakers


def _first_alternative(item: dict[str, Any]) -> dict[str, Any]:
    alternatives = _list_field(item, "alternatives")
    if alternatives and isinstance(alternatives[0], dict):
        return alternatives[0]
    return {}


def _duration(items: list[Any]) -> float:
    """End time of the last timed item (punctuation carries no timestamps)."""
    for item in reversed(items):
        if isinstance(item, dict):
            end = _as_number(item.get("end_time"))
            if end is not None:
                return max(end, 0.0)
    return 0.0


def normalize_transcript(raw_document: bytes | str, language: str) -> TranscriptionResponse:
    """Normalize a speech-service transcript document."""
    try:
        document = json.loads(raw_document)
    except (json.JSONDecodeError, UnicodeDecodeError, TypeError) as e:
        logger.warning(f"Using fallback payload for transcription: {e}")
        return fallback_transcription(language)

    results = document.get("results") if isinstance(document, dict) else None
    if not isinstance(results, dict):
        logger.warning("Using fallback payload for transcription: missing results")
        return fallback_transcription(language)

    transcripts = _list_field(results, "transcripts")
    transcript = ""
    if transcripts and isinstance(transcripts[0], dict):
        transcript = _as_text(transcripts[0].get("transcript"))

    items = [i for i in _list_field(results, "items") if isinstance(i, dict)]
    confidence = None
    if items:
        confidence = _as_number(_first_alternative(items[0]).get("confidence"))

    return TranscriptionResponse(
        transcript=transcript,
        confidence=clamp_unit(DEFAULT_TRANSCRIPT_CONFIDENCE if confidence is None else confidence),
        speakers=_speaker_segments(results),
        duration=_duration(items),
        language=language,
    )

"""Pydantic schemas for the content intelligence endpoints.

Wire names are camelCase (`scopeId`, `candidateId`); Python attributes stay
snake_case.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serialising to camelCase and accepting either spelling."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class QueryRequest(CamelModel):
    """Request body for direct query and search endpoints."""

    query: str | None = Field(default=None, description="Natural-language query")
    scope_id: str | None = Field(default=None, description="Knowledge base id")


class SearchRequest(QueryRequest):
    limit: int | None = Field(default=None, description="Max results (default 10, max 20)")


class ItemRequest(CamelModel):
    """Request body for single-item endpoints."""

    candidate_id: str | None = Field(default=None, description="Content item id")
    scope_id: str | None = Field(default=None, description="Knowledge base id")


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class QueryResponse(CamelModel):
    response: str = Field(..., description="Model answer")
    sources: list[str] = Field(default_factory=list, description="Files used (max 5)")


class SearchHit(CamelModel):
    candidate_id: str
    display_name: str
    score: float = Field(..., ge=0.0, le=1.0)
    snippet: str


class VectorSearchHit(SearchHit):
    embedding: list[float] = Field(default_factory=list)


class SemanticSearchResponse(CamelModel):
    results: list[SearchHit] = Field(default_factory=list)


class VectorSearchResponse(CamelModel):
    results: list[VectorSearchHit] = Field(default_factory=list)


SuggestionType = Literal["related_content", "improvement", "action_item"]
Sentiment = Literal["positive", "negative", "neutral"]


class Suggestion(CamelModel):
    id: str
    type: SuggestionType
    title: str
    description: str
    confidence: float = Field(..., ge=0.0, le=1.0)


class SuggestionsResponse(CamelModel):
    suggestions: list[Suggestion] = Field(default_factory=list, max_length=5)


class ContentAnalysisResponse(CamelModel):
    summary: str
    keywords: list[str] = Field(default_factory=list, max_length=5)
    sentiment: Sentiment = "neutral"
    topics: list[str] = Field(default_factory=list, max_length=3)


class ImageAnalysisResponse(CamelModel):
    description: str
    objects: list[str] = Field(default_factory=list, max_length=10)
    text: str = ""
    confidence: float = Field(..., ge=0.0, le=1.0)
    suggestions: list[str] = Field(default_factory=list, max_length=3)


class SpeakerSegment(CamelModel):
    speaker: str
    text: str


class TranscriptionResponse(CamelModel):
    transcript: str
    confidence: float = Field(..., ge=0.0, le=1.0)
    speakers: list[SpeakerSegment] = Field(default_factory=list)
    duration: float = Field(default=0.0, ge=0.0)
    language: str


class TranscriptionPendingResponse(CamelModel):
    message: str = "Transcription job started"
    job_id: str
    status: Literal["IN_PROGRESS"] = "IN_PROGRESS"


class ErrorResponse(BaseModel):
    error: str

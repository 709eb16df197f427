"""Content intelligence pipeline.

Access guard -> candidate gathering -> relevance scoring -> ranking ->
prompt synthesis -> model invocation -> response normalization.

Each entry point is a configuration of the same skeleton: an
`EndpointProfile` (threshold, result bound, token budget, failure message)
plus a prompt builder and a normalizer. Collaborators are injected per
request; nothing is shared between requests.
"""

from __future__ import annotations

import asyncio
import logging
import re
import time
import uuid
from dataclasses import dataclass
from typing import Callable

from app.core import prompts
from app.core.access_guard import ensure_item_access, ensure_scope_access
from app.core.candidate_gatherer import (
    DEFAULT_MAX_CONCURRENCY,
    gather_item,
    gather_peers,
    gather_scope,
)
from app.core.collaborators import Collaborators, TranscriptionJob, TranscriptionStatus
from app.core.content_models import ContentCandidate, ModelPrompt, ModelResponse, RelevanceResult
from app.core.errors import (
    NotFoundError,
    UpstreamServiceError,
    ValidationError,
    is_rate_limit,
)
from app.core.llm import Parsed, parse_model_json
from app.core.logging import get_logger, log_with_context
from app.core.normalizers import (
    NO_CONTENT_ANSWER,
    fallback_transcription,
    make_snippet,
    normalize_analysis,
    normalize_answer,
    normalize_image_analysis,
    normalize_similarity,
    normalize_suggestions,
    normalize_transcript,
)
from app.core.ranking import (
    MAX_SEARCH_RESULTS,
    MAX_SOURCES,
    MAX_SUGGESTIONS,
    SEMANTIC_SEARCH_THRESHOLD,
    VECTOR_SEARCH_THRESHOLD,
    rank_results,
    resolve_search_limit,
)
from app.core.relevance import ScoreMethod, cosine_similarity, lexical_overlap, score_candidate
from app.core.schemas_ai import (
    ContentAnalysisResponse,
    ImageAnalysisResponse,
    QueryResponse,
    SearchHit,
    SemanticSearchResponse,
    SuggestionsResponse,
    TranscriptionPendingResponse,
    TranscriptionResponse,
    VectorSearchHit,
    VectorSearchResponse,
)

logger = get_logger(__name__)

MIN_QUERY_CHARS = 3

SUPPORTED_IMAGE_TYPES = ("image/jpeg", "image/png", "image/gif", "image/webp")

# MIME type -> Transcribe MediaFormat
AUDIO_MEDIA_FORMATS = {
    "audio/mpeg": "mp3",
    "audio/wav": "wav",
    "audio/mp4": "mp4",
    "audio/ogg": "ogg",
}

_JOB_NAME_PATTERN = re.compile(r"^transcribe-(?P<candidate_id>[0-9A-Za-z._-]+)-(?P<started_ms>\d{10,})$")


@dataclass(frozen=True)
class EndpointProfile:
    """Per-endpoint knobs for the shared pipeline."""

    name: str
    failure_message: str
    max_tokens: int = 0
    threshold: float = 0.0
    max_results: int = 0


QUERY = EndpointProfile("query", "AI service unavailable", max_tokens=1000, max_results=MAX_SOURCES)
SEMANTIC_SEARCH = EndpointProfile(
    "semantic_search",
    "AI service unavailable",
    max_tokens=200,
    threshold=SEMANTIC_SEARCH_THRESHOLD,
    max_results=MAX_SEARCH_RESULTS,
)
VECTOR_SEARCH = EndpointProfile(
    "vector_search",
    "Vector search failed",
    threshold=VECTOR_SEARCH_THRESHOLD,
    max_results=MAX_SEARCH_RESULTS,
)
SUGGESTIONS = EndpointProfile(
    "suggestions", "AI service unavailable", max_tokens=1000, max_results=MAX_SUGGESTIONS
)
CONTENT_ANALYSIS = EndpointProfile("content_analysis", "Content analysis failed", max_tokens=800)
IMAGE_ANALYSIS = EndpointProfile("image_analysis", "Image analysis failed", max_tokens=1000)
TRANSCRIPTION = EndpointProfile("transcription", "Audio transcription failed")


# ---------------------------------------------------------------------------
# Request validation (runs before any external call)
# ---------------------------------------------------------------------------


def validate_query_request(query: str | None, scope_id: str | None) -> str:
    """Return the stripped query or raise ValidationError."""
    if not query or not scope_id:
        raise ValidationError("Query and scopeId are required")
    query = query.strip()
    if len(query) < MIN_QUERY_CHARS:
        raise ValidationError(f"Query must be at least {MIN_QUERY_CHARS} characters")
    return query


def validate_search_limit(limit: int | None) -> int:
    if limit is not None and limit < 1:
        raise ValidationError(f"Limit must be between 1 and {MAX_SEARCH_RESULTS}")
    return resolve_search_limit(limit)


def validate_item_request(candidate_id: str | None, scope_id: str | None) -> None:
    if not candidate_id or not scope_id:
        raise ValidationError("candidateId and scopeId are required")


def make_job_name(candidate_id: str, started_ms: int) -> str:
    return f"transcribe-{candidate_id}-{started_ms}"


def parse_job_name(job_name: str) -> str:
    """Return the candidate id embedded in a transcription job name."""
    match = _JOB_NAME_PATTERN.match(job_name or "")
    if not match:
        raise ValidationError("Invalid job id")
    return match.group("candidate_id")


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------


class ContentIntelligencePipeline:
    """Runs the six content intelligence entry points for one caller."""

    def __init__(
        self,
        collaborators: Collaborators,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
        clock: Callable[[], float] = time.time,
    ):
        self.c = collaborators
        self.max_concurrency = max_concurrency
        self.clock = clock
        self.request_id = str(uuid.uuid4())

    # -- shared stages ------------------------------------------------------

    async def _generate(self, profile: EndpointProfile, prompt: ModelPrompt) -> ModelResponse:
        """Invoke the generative model and attach the defensive parse of its reply."""
        response = await self._invoke(profile, prompt)
        result = parse_model_json(response.raw_text)
        if not isinstance(result, Parsed):
            logger.warning(
                f"Unparseable {profile.name} model output: {result.reason}",
                extra={"request_id": self.request_id, "raw_preview": response.raw_text[:200]},
            )
        return ModelResponse(raw_text=response.raw_text, parsed=result)

    async def _invoke(self, profile: EndpointProfile, prompt: ModelPrompt) -> ModelResponse:
        raw = await self.c.model.invoke(prompt.render(), profile.max_tokens)
        return ModelResponse(raw_text=raw or "")

    async def _query_vector(self, query: str, candidates: list[ContentCandidate]) -> list[float] | None:
        """
        Embed the query when any candidate can be compared by vector.

        Returns None (no embedding available) when no candidate has an
        embedding or the embeddings service fails.
        """
        if not any(c.embedding for c in candidates):
            return None
        try:
            return await self.c.embedder.embed_query(query)
        except Exception as e:
            logger.warning(
                f"Query embedding unavailable, scoring lexically: {e}",
                extra={"request_id": self.request_id},
            )
            return None

    async def _gather_scope(self, caller_id: str, scope_id: str) -> list[ContentCandidate]:
        ensure_scope_access(self.c.metadata, caller_id, scope_id)
        records = self.c.metadata.query_by_scope(scope_id)
        report = await gather_scope(self.c.storage, records, max_concurrency=self.max_concurrency)
        return report.candidates

    # -- query --------------------------------------------------------------

    async def query(self, caller_id: str, query: str | None, scope_id: str | None) -> QueryResponse:
        query = validate_query_request(query, scope_id)
        log_with_context(logger, logging.INFO, "Query", request_id=self.request_id, scope_id=scope_id)

        candidates = await self._gather_scope(caller_id, scope_id)
        if not candidates:
            return QueryResponse(response=NO_CONTENT_ANSWER, sources=[])

        by_id = {c.id: c for c in candidates}
        ranked = rank_results(
            (
                RelevanceResult(c.id, c.display_name, lexical_overlap(query, c.text), "")
                for c in candidates
            ),
            threshold=QUERY.threshold,
            limit=prompts.MAX_QUERY_CONTEXT_ITEMS,
        )
        context = [by_id[r.candidate_id] for r in ranked]

        response = await self._invoke(QUERY, prompts.build_query_prompt(query, context))
        return QueryResponse(
            response=normalize_answer(response.raw_text),
            sources=[c.display_name for c in context][: QUERY.max_results],
        )

    # -- semantic search ------------------------------------------------------

    async def semantic_search(
        self,
        caller_id: str,
        query: str | None,
        scope_id: str | None,
        limit: int | None = None,
    ) -> SemanticSearchResponse:
        query = validate_query_request(query, scope_id)
        limit = validate_search_limit(limit)
        log_with_context(
            logger, logging.INFO, "Semantic search", request_id=self.request_id, scope_id=scope_id
        )

        candidates = await self._gather_scope(caller_id, scope_id)
        if not candidates:
            return SemanticSearchResponse(results=[])

        query_vector = await self._query_vector(query, candidates)
        semaphore = asyncio.Semaphore(max(1, self.max_concurrency))
        scored = await asyncio.gather(
            *(self._judge_relevance(query, query_vector, c, semaphore) for c in candidates)
        )

        ranked = rank_results(scored, SEMANTIC_SEARCH.threshold, min(limit, SEMANTIC_SEARCH.max_results))
        return SemanticSearchResponse(
            results=[
                SearchHit(
                    candidate_id=r.candidate_id,
                    display_name=r.display_name,
                    score=r.score,
                    snippet=r.snippet,
                )
                for r in ranked
            ]
        )

    async def _judge_relevance(
        self,
        query: str,
        query_vector: list[float] | None,
        candidate: ContentCandidate,
        semaphore: asyncio.Semaphore,
    ) -> RelevanceResult:
        """Cosine when vectors exist, else a model judgement, else lexical overlap."""
        default_snippet = make_snippet(candidate.text)

        if query_vector and candidate.embedding:
            score = cosine_similarity(query_vector, candidate.embedding)
            return RelevanceResult(candidate.id, candidate.display_name, score, default_snippet)

        judgement = None
        async with semaphore:
            try:
                response = await self._generate(
                    SEMANTIC_SEARCH, prompts.build_similarity_prompt(query, candidate.text)
                )
                judgement = normalize_similarity(response.parsed)
            except Exception as e:
                if is_rate_limit(e):
                    raise
                logger.warning(
                    f"Similarity judgement failed for {candidate.id}: {e}",
                    extra={"request_id": self.request_id},
                )

        if judgement is None:
            score = lexical_overlap(query, candidate.text)
            return RelevanceResult(candidate.id, candidate.display_name, score, default_snippet)

        score, snippet = judgement
        return RelevanceResult(candidate.id, candidate.display_name, score, snippet or default_snippet)

    # -- vector search --------------------------------------------------------

    async def vector_search(
        self,
        caller_id: str,
        query: str | None,
        scope_id: str | None,
        limit: int | None = None,
    ) -> VectorSearchResponse:
        query = validate_query_request(query, scope_id)
        limit = validate_search_limit(limit)
        log_with_context(
            logger, logging.INFO, "Vector search", request_id=self.request_id, scope_id=scope_id
        )

        candidates = await self._gather_scope(caller_id, scope_id)
        if not candidates:
            return VectorSearchResponse(results=[])

        query_vector = await self._query_vector(query, candidates)

        scored = []
        methods: dict[ScoreMethod, int] = {}
        for candidate in candidates:
            score, method = score_candidate(query, query_vector, candidate)
            methods[method] = methods.get(method, 0) + 1
            scored.append(
                RelevanceResult(
                    candidate.id,
                    candidate.display_name,
                    score,
                    make_snippet(candidate.text),
                    embedding=candidate.embedding or [],
                )
            )

        logger.debug(
            "Vector search scoring methods",
            extra={"request_id": self.request_id, "methods": {m.value: n for m, n in methods.items()}},
        )

        ranked = rank_results(scored, VECTOR_SEARCH.threshold, min(limit, VECTOR_SEARCH.max_results))
        return VectorSearchResponse(
            results=[
                VectorSearchHit(
                    candidate_id=r.candidate_id,
                    display_name=r.display_name,
                    score=r.score,
                    snippet=r.snippet,
                    embedding=r.embedding,
                )
                for r in ranked
            ]
        )

    # -- single-item analysis -------------------------------------------------

    async def _load_text_item(
        self, caller_id: str, candidate_id: str | None, scope_id: str | None
    ) -> ContentCandidate:
        validate_item_request(candidate_id, scope_id)
        record = ensure_item_access(self.c.metadata, caller_id, scope_id, candidate_id)
        candidate = await gather_item(self.c.storage, record)
        if candidate.is_blank:
            raise ValidationError("Content is empty")
        return candidate

    async def generate_suggestions(
        self, caller_id: str, candidate_id: str | None, scope_id: str | None
    ) -> SuggestionsResponse:
        candidate = await self._load_text_item(caller_id, candidate_id, scope_id)
        log_with_context(
            logger, logging.INFO, "Generate suggestions", request_id=self.request_id, item_id=candidate.id
        )

        records = self.c.metadata.query_by_scope(scope_id)
        peers = await gather_peers(
            self.c.storage, records, exclude_id=candidate.id, max_concurrency=self.max_concurrency
        )

        response = await self._generate(SUGGESTIONS, prompts.build_suggestions_prompt(candidate, peers))
        return normalize_suggestions(response.parsed)

    async def analyze_content(
        self, caller_id: str, candidate_id: str | None, scope_id: str | None
    ) -> ContentAnalysisResponse:
        candidate = await self._load_text_item(caller_id, candidate_id, scope_id)
        log_with_context(
            logger, logging.INFO, "Analyze content", request_id=self.request_id, item_id=candidate.id
        )

        response = await self._generate(CONTENT_ANALYSIS, prompts.build_analysis_prompt(candidate))
        return normalize_analysis(response.parsed)

    async def analyze_image(
        self, caller_id: str, candidate_id: str | None, scope_id: str | None
    ) -> ImageAnalysisResponse:
        validate_item_request(candidate_id, scope_id)
        record = ensure_item_access(self.c.metadata, caller_id, scope_id, candidate_id)
        if record.mime_type not in SUPPORTED_IMAGE_TYPES:
            raise ValidationError("File is not an image")

        candidate = await gather_item(self.c.storage, record)
        if not candidate.raw:
            raise ValidationError("Image file is empty")

        log_with_context(
            logger, logging.INFO, "Analyze image", request_id=self.request_id, item_id=candidate.id
        )

        text_lines, labels = await asyncio.gather(
            asyncio.to_thread(self.c.perception.detect_text, candidate.raw),
            asyncio.to_thread(self.c.perception.detect_labels, candidate.raw),
        )
        extracted_text = "\n".join(text_lines)

        response = await self._generate(
            IMAGE_ANALYSIS,
            prompts.build_image_prompt(candidate.display_name, labels, extracted_text),
        )
        return normalize_image_analysis(response.parsed, labels, extracted_text)

    # -- transcription --------------------------------------------------------

    async def transcribe_audio(
        self, caller_id: str, candidate_id: str | None, scope_id: str | None
    ) -> TranscriptionResponse | TranscriptionPendingResponse:
        validate_item_request(candidate_id, scope_id)
        record = ensure_item_access(self.c.metadata, caller_id, scope_id, candidate_id)
        media_format = AUDIO_MEDIA_FORMATS.get(record.mime_type)
        if media_format is None:
            raise ValidationError("File is not an audio file")

        job_name = make_job_name(record.id, int(self.clock() * 1000))
        log_with_context(
            logger, logging.INFO, "Transcribe audio", request_id=self.request_id, job_name=job_name
        )

        job = await asyncio.to_thread(
            self.c.speech.start_job,
            job_name,
            self.c.storage.media_uri(record.storage_key),
            media_format,
        )
        return await self._resolve_job(job)

    async def get_transcription(
        self, caller_id: str, job_id: str, scope_id: str | None
    ) -> TranscriptionResponse | TranscriptionPendingResponse:
        """Poll a transcription job started by `transcribe_audio`."""
        if not scope_id:
            raise ValidationError("scopeId is required")
        candidate_id = parse_job_name(job_id)
        ensure_item_access(self.c.metadata, caller_id, scope_id, candidate_id)

        job = await asyncio.to_thread(self.c.speech.get_job, job_id)
        if job is None:
            raise NotFoundError("Transcription job not found")
        return await self._resolve_job(job)

    async def _resolve_job(
        self, job: TranscriptionJob
    ) -> TranscriptionResponse | TranscriptionPendingResponse:
        if job.status == TranscriptionStatus.FAILED:
            logger.error(
                f"Transcription job {job.job_name} failed: {job.failure_reason}",
                extra={"request_id": self.request_id},
            )
            raise UpstreamServiceError(TRANSCRIPTION.failure_message)

        if job.status == TranscriptionStatus.COMPLETED:
            if not job.transcript_uri:
                logger.warning(
                    f"Transcription job {job.job_name} completed without a transcript location",
                    extra={"request_id": self.request_id},
                )
                return fallback_transcription(job.language)
            document = await asyncio.to_thread(self.c.storage.get_bytes_from_uri, job.transcript_uri)
            return normalize_transcript(document, job.language)

        return TranscriptionPendingResponse(job_id=job.job_name)

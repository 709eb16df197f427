"""API endpoints for the content intelligence pipeline."""

from typing import Awaitable, TypeVar

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse

from app.api.deps import get_pipeline
from app.core.auth_middleware import AuthContext, require_auth
from app.core.errors import classify_exception
from app.core.logging import get_logger
from app.core.pipeline import (
    CONTENT_ANALYSIS,
    IMAGE_ANALYSIS,
    QUERY,
    SEMANTIC_SEARCH,
    SUGGESTIONS,
    TRANSCRIPTION,
    VECTOR_SEARCH,
    ContentIntelligencePipeline,
    EndpointProfile,
)
from app.core.schemas_ai import (
    ContentAnalysisResponse,
    ErrorResponse,
    ImageAnalysisResponse,
    ItemRequest,
    QueryRequest,
    QueryResponse,
    SearchRequest,
    SemanticSearchResponse,
    SuggestionsResponse,
    TranscriptionPendingResponse,
    TranscriptionResponse,
    VectorSearchResponse,
)

logger = get_logger(__name__)

router = APIRouter()

T = TypeVar("T")

_ERROR_RESPONSES = {
    code: {"model": ErrorResponse} for code in (400, 401, 403, 404, 409, 429, 500)
}


async def _run(profile: EndpointProfile, call: Awaitable[T]) -> T:
    """Await a pipeline call, mapping any failure onto the error taxonomy."""
    try:
        return await call
    except Exception as e:
        raise classify_exception(e, profile.failure_message) from e


def _transcription_response(
    result: TranscriptionResponse | TranscriptionPendingResponse,
) -> TranscriptionResponse | JSONResponse:
    if isinstance(result, TranscriptionPendingResponse):
        return JSONResponse(
            status_code=status.HTTP_202_ACCEPTED,
            content=result.model_dump(by_alias=True),
        )
    return result


@router.post("/query", response_model=QueryResponse, responses=_ERROR_RESPONSES)
async def query_content(
    request: QueryRequest,
    auth: AuthContext = Depends(require_auth),
    pipeline: ContentIntelligencePipeline = Depends(get_pipeline),
) -> QueryResponse:
    """
    Answer a question from the files in a knowledge base.

    Returns the model's answer plus up to 5 source file names.
    """
    return await _run(QUERY, pipeline.query(auth.caller_id, request.query, request.scope_id))


@router.post("/semantic-search", response_model=SemanticSearchResponse, responses=_ERROR_RESPONSES)
async def semantic_search(
    request: SearchRequest,
    auth: AuthContext = Depends(require_auth),
    pipeline: ContentIntelligencePipeline = Depends(get_pipeline),
) -> SemanticSearchResponse:
    """Relevance-ranked search (threshold 0.7)."""
    return await _run(
        SEMANTIC_SEARCH,
        pipeline.semantic_search(auth.caller_id, request.query, request.scope_id, request.limit),
    )


@router.post("/vector-search", response_model=VectorSearchResponse, responses=_ERROR_RESPONSES)
async def vector_search(
    request: SearchRequest,
    auth: AuthContext = Depends(require_auth),
    pipeline: ContentIntelligencePipeline = Depends(get_pipeline),
) -> VectorSearchResponse:
    """Embedding similarity search (threshold 0.3)."""
    return await _run(
        VECTOR_SEARCH,
        pipeline.vector_search(auth.caller_id, request.query, request.scope_id, request.limit),
    )


@router.post("/suggestions", response_model=SuggestionsResponse, responses=_ERROR_RESPONSES)
async def generate_suggestions(
    request: ItemRequest,
    auth: AuthContext = Depends(require_auth),
    pipeline: ContentIntelligencePipeline = Depends(get_pipeline),
) -> SuggestionsResponse:
    return await _run(
        SUGGESTIONS,
        pipeline.generate_suggestions(auth.caller_id, request.candidate_id, request.scope_id),
    )


@router.post("/analyze", response_model=ContentAnalysisResponse, responses=_ERROR_RESPONSES)
async def analyze_content(
    request: ItemRequest,
    auth: AuthContext = Depends(require_auth),
    pipeline: ContentIntelligencePipeline = Depends(get_pipeline),
) -> ContentAnalysisResponse:
    return await _run(
        CONTENT_ANALYSIS,
        pipeline.analyze_content(auth.caller_id, request.candidate_id, request.scope_id),
    )


@router.post("/analyze-image", response_model=ImageAnalysisResponse, responses=_ERROR_RESPONSES)
async def analyze_image(
    request: ItemRequest,
    auth: AuthContext = Depends(require_auth),
    pipeline: ContentIntelligencePipeline = Depends(get_pipeline),
) -> ImageAnalysisResponse:
    """Describe an image using text/label detection plus the generative model."""
    return await _run(
        IMAGE_ANALYSIS,
        pipeline.analyze_image(auth.caller_id, request.candidate_id, request.scope_id),
    )


@router.post(
    "/transcribe-audio",
    response_model=TranscriptionResponse,
    responses={202: {"model": TranscriptionPendingResponse}, **_ERROR_RESPONSES},
)
async def transcribe_audio(
    request: ItemRequest,
    auth: AuthContext = Depends(require_auth),
    pipeline: ContentIntelligencePipeline = Depends(get_pipeline),
):
    """
    Start transcribing an audio file.

    Returns the transcript when the job finishes immediately, otherwise 202
    with a job id to poll.
    """
    result = await _run(
        TRANSCRIPTION,
        pipeline.transcribe_audio(auth.caller_id, request.candidate_id, request.scope_id),
    )
    return _transcription_response(result)


@router.get(
    "/transcribe-audio/{job_id}",
    response_model=TranscriptionResponse,
    responses={202: {"model": TranscriptionPendingResponse}, **_ERROR_RESPONSES},
)
async def get_transcription(
    job_id: str,
    scope_id: str | None = Query(default=None, alias="scopeId"),
    auth: AuthContext = Depends(require_auth),
    pipeline: ContentIntelligencePipeline = Depends(get_pipeline),
):
    """Poll a transcription job."""
    result = await _run(
        TRANSCRIPTION,
        pipeline.get_transcription(auth.caller_id, job_id, scope_id),
    )
    return _transcription_response(result)

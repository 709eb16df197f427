"""Collaborator interfaces consumed by the content intelligence pipeline.

Production implementations live in `app.db` and `app.services`; tests swap in
the in-memory fakes from `tests/fakes`.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol

from app.core.content_models import ContentRecord


class TranscriptionStatus(str, Enum):
    STARTED = "STARTED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


@dataclass(frozen=True)
class TranscriptionJob:
    """Snapshot of a speech-transcription job."""

    job_name: str
    status: TranscriptionStatus
    transcript_uri: str | None = None
    language: str = "en-US"
    failure_reason: str | None = None


class IdentityProvider(Protocol):
    def verify(self, token: str) -> str:
        """Return the caller id for a bearer token, or raise UnauthenticatedError."""
        ...


class MetadataStore(Protocol):
    def get_scope(self, scope_id: str) -> dict[str, Any] | None: ...

    def get_item(self, item_id: str) -> ContentRecord | None: ...

    def query_by_scope(self, scope_id: str) -> list[ContentRecord]: ...


class ObjectStorage(Protocol):
    def get_bytes(self, key: str) -> bytes: ...

    def get_bytes_from_uri(self, uri: str) -> bytes: ...

    def media_uri(self, key: str) -> str: ...


class GenerativeModel(Protocol):
    async def invoke(self, prompt: str, max_tokens: int) -> str: ...


class PerceptionService(Protocol):
    def detect_text(self, image: bytes) -> list[str]: ...

    def detect_labels(self, image: bytes) -> list[str]: ...


class SpeechService(Protocol):
    def start_job(self, job_name: str, media_uri: str, media_format: str) -> TranscriptionJob: ...

    def get_job(self, job_name: str) -> TranscriptionJob | None: ...


class Embedder(Protocol):
    async def embed_query(self, text: str) -> list[float]: ...


@dataclass
class Collaborators:
    """Everything the pipeline talks to, injected per request."""

    identity: IdentityProvider
    metadata: MetadataStore
    storage: ObjectStorage
    model: GenerativeModel
    perception: PerceptionService
    speech: SpeechService
    embedder: Embedder

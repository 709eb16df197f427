"""Candidate gathering: load metadata plus raw bytes for one item or a whole scope.

Scope-wide fetches fan out concurrently. Each fetch yields a tagged outcome
(`Fetched` or `FetchFailed`) so one bad object never aborts the request; the
report keeps the failures for logging and tests.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

from app.core.collaborators import ObjectStorage
from app.core.content_models import ContentCandidate, ContentRecord
from app.core.logging import get_logger

logger = get_logger(__name__)

DEFAULT_MAX_CONCURRENCY = 8

# Peers loaded as context for suggestion generation
MAX_PEER_ITEMS = 3


@dataclass(frozen=True)
class Fetched:
    candidate: ContentCandidate


@dataclass(frozen=True)
class FetchFailed:
    item_id: str
    reason: str


FetchOutcome = Fetched | FetchFailed


@dataclass
class GatherReport:
    """Outcome of a scope-wide gather, in metadata-query order."""

    candidates: list[ContentCandidate] = field(default_factory=list)
    failures: list[FetchFailed] = field(default_factory=list)
    blank_ids: list[str] = field(default_factory=list)


def to_candidate(record: ContentRecord, raw: bytes) -> ContentCandidate:
    return ContentCandidate(
        id=record.id,
        scope_id=record.scope_id,
        owner_id=record.owner_id,
        display_name=record.display_name,
        mime_category=record.mime_type,
        raw=raw or b"",
        embedding=record.embedding,
    )


async def gather_item(storage: ObjectStorage, record: ContentRecord) -> ContentCandidate:
    """Load a single item. Fetch errors propagate to the caller."""
    raw = await asyncio.to_thread(storage.get_bytes, record.storage_key)
    return to_candidate(record, raw)


async def _fetch_outcome(
    storage: ObjectStorage,
    record: ContentRecord,
    semaphore: asyncio.Semaphore,
) -> FetchOutcome:
    async with semaphore:
        try:
            raw = await asyncio.to_thread(storage.get_bytes, record.storage_key)
        except Exception as e:
            logger.error(
                f"Failed to retrieve content {record.id}: {e}",
                extra={"item_id": record.id},
            )
            return FetchFailed(item_id=record.id, reason=type(e).__name__)
    return Fetched(to_candidate(record, raw))


async def gather_scope(
    storage: ObjectStorage,
    records: list[ContentRecord],
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
) -> GatherReport:
    """
    Fetch bytes for every record concurrently, isolating per-item failures.

    Args:
        storage: Object storage collaborator
        records: Metadata rows in query order
        max_concurrency: Upper bound on in-flight fetches

    Returns:
        GatherReport with readable candidates (blank text removed) in input order
    """
    report = GatherReport()
    if not records:
        return report

    semaphore = asyncio.Semaphore(max(1, max_concurrency))
    outcomes = await asyncio.gather(
        *(_fetch_outcome(storage, record, semaphore) for record in records)
    )

    for outcome in outcomes:
        if isinstance(outcome, FetchFailed):
            report.failures.append(outcome)
        elif outcome.candidate.is_blank:
            report.blank_ids.append(outcome.candidate.id)
        else:
            report.candidates.append(outcome.candidate)

    logger.info(
        f"Gathered {len(report.candidates)}/{len(records)} candidates",
        extra={
            "failed": len(report.failures),
            "blank": len(report.blank_ids),
        },
    )
    return report


async def gather_peers(
    storage: ObjectStorage,
    records: list[ContentRecord],
    exclude_id: str,
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
) -> list[ContentCandidate]:
    """Load the first few other items of a scope as context."""
    peers = [r for r in records if r.id != exclude_id][:MAX_PEER_ITEMS]
    report = await gather_scope(storage, peers, max_concurrency=max_concurrency)
    return report.candidates

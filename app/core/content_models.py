"""Request-scoped data types flowing through the content intelligence pipeline."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

from app.core.llm import ParseResult
from app.core.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ScopeHandle:
    """Identifies a knowledge base and its owner."""

    owner_id: str
    scope_id: str


@dataclass(frozen=True)
class ContentRecord:
    """Metadata row for one content item, as returned by the metadata store."""

    id: str
    scope_id: str
    owner_id: str
    display_name: str
    mime_type: str
    storage_key: str
    embedding: list[float] | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> ContentRecord:
        """Build a record from a metadata-store row."""
        return cls(
            id=str(row["id"]),
            scope_id=str(row["knowledge_base_id"]),
            owner_id=str(row["user_id"]),
            display_name=row.get("file_name") or "untitled",
            mime_type=(row.get("file_type") or "").lower(),
            storage_key=row.get("storage_key") or "",
            embedding=parse_embedding(row.get("embedding")),
        )


@dataclass
class ContentCandidate:
    """A content item loaded for one request: metadata plus raw bytes."""

    id: str
    scope_id: str
    owner_id: str
    display_name: str
    mime_category: str
    raw: bytes
    embedding: list[float] | None = None

    @property
    def text(self) -> str:
        return self.raw.decode("utf-8", errors="replace")

    @property
    def is_blank(self) -> bool:
        return not self.text.strip()


@dataclass(frozen=True)
class RelevanceResult:
    """One ranked search hit."""

    candidate_id: str
    display_name: str
    score: float
    snippet: str
    embedding: list[float] = field(default_factory=list)


@dataclass(frozen=True)
class ModelPrompt:
    """A fully assembled prompt. Excerpts are already truncated."""

    instruction_text: str
    embedded_excerpts: tuple[str, ...]
    output_schema_description: str

    def render(self) -> str:
        return self.instruction_text


@dataclass(frozen=True)
class ModelResponse:
    """Raw model text plus its parse outcome (None when the reply is plain text)."""

    raw_text: str
    parsed: ParseResult | None = None


def parse_embedding(value: Any) -> list[float] | None:
    """
    Coerce a stored embedding into a list of floats.

    Supabase returns pgvector columns as strings like "[0.1,0.2]"; JSON
    columns come back as lists. Anything unusable yields None.
    """
    if value is None:
        return None
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except json.JSONDecodeError:
            logger.debug("Ignoring unparseable stored embedding")
            return None
    if not isinstance(value, (list, tuple)) or not value:
        return None
    try:
        return [float(x) for x in value]
    except (TypeError, ValueError):
        return None

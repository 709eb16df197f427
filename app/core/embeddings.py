"""Query embeddings via the OpenAI embeddings API."""

import asyncio

from openai import OpenAI

from app.core.config import get_settings
from app.core.logging import get_logger

logger = get_logger(__name__)


def _get_client() -> OpenAI:
    """Get OpenAI client instance."""
    settings = get_settings()
    return OpenAI(api_key=settings.OPENAI_API_KEY)


def embed_query_text(text: str) -> list[float]:
    """
    Embed a single search query.

    Args:
        text: Query text

    Returns:
        Embedding vector

    Raises:
        ValueError: If the vector length doesn't match EMBEDDING_DIM, which
            would make it incomparable with stored content embeddings
    """
    settings = get_settings()
    response = _get_client().embeddings.create(model=settings.EMBEDDING_MODEL, input=[text])

    if not response.data:
        raise ValueError("Embeddings API returned no vectors")

    vector = response.data[0].embedding
    if len(vector) != settings.EMBEDDING_DIM:
        raise ValueError(
            f"Embedding dimension mismatch: expected {settings.EMBEDDING_DIM}, got {len(vector)}"
        )

    logger.debug(
        f"Embedded query using {settings.EMBEDDING_MODEL}",
        extra={"model": settings.EMBEDDING_MODEL},
    )
    return vector


class OpenAIEmbedder:
    """Embedder collaborator; the blocking SDK call runs in a worker thread."""

    async def embed_query(self, text: str) -> list[float]:
        return await asyncio.to_thread(embed_query_text, text)

"""Relevance scoring: cosine similarity over embeddings, lexical overlap otherwise.

Both scorers return values in [0, 1].
"""

import math
from enum import Enum

import numpy as np

from app.core.content_models import ContentCandidate


class ScoreMethod(str, Enum):
    """How a candidate's score was produced."""

    VECTOR = "vector"
    LEXICAL = "lexical"
    MODEL = "model"


def clamp_unit(value: float) -> float:
    """Clamp to [0, 1]; NaN and infinities become 0."""
    try:
        value = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(value):
        return 0.0
    return min(max(value, 0.0), 1.0)


def cosine_similarity(
    query_vector: list[float] | np.ndarray | None,
    candidate_vector: list[float] | np.ndarray | None,
) -> float:
    """
    Cosine similarity between two vectors.

    Mismatched dimensions, empty vectors and zero norms all score 0.
    Negative similarity is clamped to 0.
    """
    if query_vector is None or candidate_vector is None:
        return 0.0

    q = np.asarray(query_vector, dtype=float)
    v = np.asarray(candidate_vector, dtype=float)
    if q.size == 0 or q.shape != v.shape:
        return 0.0

    norm_q = float(np.linalg.norm(q))
    norm_v = float(np.linalg.norm(v))
    if norm_q == 0 or norm_v == 0:
        return 0.0

    return clamp_unit(float(np.dot(q, v)) / (norm_q * norm_v))


def tokenize(text: str) -> list[str]:
    return text.lower().split()


def lexical_overlap(query: str, text: str) -> float:
    """
    Fraction of query tokens that literally appear in the text.

    Repeated query tokens count once per occurrence.
    """
    query_tokens = tokenize(query)
    if not query_tokens:
        return 0.0

    text_tokens = set(tokenize(text))
    matches = sum(1 for token in query_tokens if token in text_tokens)
    return matches / len(query_tokens)


def score_candidate(
    query: str,
    query_vector: list[float] | None,
    candidate: ContentCandidate,
) -> tuple[float, ScoreMethod]:
    """Score with cosine when both vectors exist, else lexical overlap."""
    if query_vector and candidate.embedding:
        return cosine_similarity(query_vector, candidate.embedding), ScoreMethod.VECTOR
    return lexical_overlap(query, candidate.text), ScoreMethod.LEXICAL

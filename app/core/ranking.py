"""Ranking and thresholding of scored results."""

from typing import Iterable

from app.core.content_models import RelevanceResult

# Inclusion thresholds per entry point
SEMANTIC_SEARCH_THRESHOLD = 0.7
VECTOR_SEARCH_THRESHOLD = 0.3

# Model-declared confidence floor for suggestions
SUGGESTION_CONFIDENCE_FLOOR = 0.5

# Result-size bounds
DEFAULT_SEARCH_LIMIT = 10
MAX_SEARCH_RESULTS = 20
MAX_SOURCES = 5
MAX_SUGGESTIONS = 5
MAX_IMAGE_OBJECTS = 10
MAX_IMAGE_SUGGESTIONS = 3
MAX_KEYWORDS = 5
MAX_TOPICS = 3


def rank_results(
    results: Iterable[RelevanceResult],
    threshold: float,
    limit: int,
) -> list[RelevanceResult]:
    """
    Drop results under the threshold, sort descending, truncate.

    The sort is stable, so equal scores keep their gather order.
    """
    kept = [r for r in results if r.score >= threshold]
    kept.sort(key=lambda r: r.score, reverse=True)
    return kept[: max(limit, 0)]


def resolve_search_limit(requested: int | None) -> int:
    """Default to 10, cap at 20. Values below 1 are rejected upstream."""
    if requested is None:
        return DEFAULT_SEARCH_LIMIT
    return min(requested, MAX_SEARCH_RESULTS)

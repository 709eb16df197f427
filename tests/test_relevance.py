"""Tests for relevance scoring (cosine + lexical overlap)."""

import math
import random

import pytest

from app.core.content_models import ContentCandidate
from app.core.relevance import (
    ScoreMethod,
    clamp_unit,
    cosine_similarity,
    lexical_overlap,
    score_candidate,
)


def _candidate(text: str, embedding=None) -> ContentCandidate:
    return ContentCandidate(
        id="c1",
        scope_id="kb-1",
        owner_id="user-1",
        display_name="c1.txt",
        mime_category="text/plain",
        raw=text.encode(),
        embedding=embedding,
    )


def test_cosine_identical_vectors():
    assert cosine_similarity([1.0, 2.0, 3.0], [1.0, 2.0, 3.0]) == pytest.approx(1.0)


def test_cosine_orthogonal_vectors():
    assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == 0.0


def test_cosine_negative_similarity_clamped_to_zero():
    assert cosine_similarity([1.0, 0.0], [-1.0, 0.0]) == 0.0


@pytest.mark.parametrize(
    "q,v",
    [
        (None, [1.0]),
        ([1.0], None),
        ([], []),
        ([1.0, 0.0], [1.0, 0.0, 0.0]),
        ([0.0, 0.0], [1.0, 1.0]),
    ],
)
def test_cosine_degenerate_inputs_score_zero(q, v):
    assert cosine_similarity(q, v) == 0.0


def test_lexical_overlap_partial_match():
    # "machine" and "learning" match, "quantum" does not
    score = lexical_overlap("machine learning quantum", "Machine LEARNING models")
    assert score == pytest.approx(2 / 3)


def test_lexical_overlap_counts_repeated_query_tokens():
    assert lexical_overlap("data data other", "data") == pytest.approx(2 / 3)


def test_lexical_overlap_empty_query():
    assert lexical_overlap("   ", "anything") == 0.0


def test_lexical_overlap_is_bounded():
    assert 0.0 <= lexical_overlap("a b c", "a b c d e") <= 1.0


def test_clamp_unit():
    assert clamp_unit(1.7) == 1.0
    assert clamp_unit(-0.2) == 0.0
    assert clamp_unit(math.nan) == 0.0
    assert clamp_unit("0.4") == pytest.approx(0.4)
    assert clamp_unit("not a number") == 0.0


def test_score_candidate_prefers_vectors():
    candidate = _candidate("unrelated words", embedding=[1.0, 0.0])
    score, method = score_candidate("machine learning", [1.0, 0.0], candidate)
    assert method == ScoreMethod.VECTOR
    assert score == pytest.approx(1.0)


def test_score_candidate_falls_back_to_lexical_without_query_vector():
    candidate = _candidate("machine learning basics", embedding=[1.0, 0.0])
    score, method = score_candidate("machine learning", None, candidate)
    assert method == ScoreMethod.LEXICAL
    assert score == pytest.approx(1.0)


def test_score_candidate_falls_back_to_lexical_without_candidate_embedding():
    candidate = _candidate("machine basics")
    score, method = score_candidate("machine learning", [1.0, 0.0], candidate)
    assert method == ScoreMethod.LEXICAL
    assert score == pytest.approx(0.5)


def _random_vector(rng: random.Random, dim: int) -> list[float]:
    kind = rng.random()
    if kind < 0.15:
        return [0.0] * dim
    if kind < 0.25:
        return [rng.choice([1e-300, -1e-300, 1e-6, -1e-6]) for _ in range(dim)]
    return [rng.uniform(-1000.0, 1000.0) for _ in range(dim)]


@pytest.mark.parametrize("seed", range(5))
def test_cosine_is_bounded_for_random_vectors(seed):
    rng = random.Random(seed)

    for _ in range(200):
        dim = rng.randint(0, 8)
        q = _random_vector(rng, dim)
        # occasionally mismatch the candidate dimension
        v = _random_vector(rng, dim if rng.random() < 0.8 else rng.randint(0, 8))

        score = cosine_similarity(q, v)

        assert 0.0 <= score <= 1.0
        assert not math.isnan(score)
        if not any(q) or not any(v) or len(q) != len(v):
            assert score == 0.0


@pytest.mark.parametrize("seed", range(5))
def test_lexical_overlap_is_bounded_for_random_tokens(seed):
    rng = random.Random(seed)
    vocabulary = ["alpha", "Beta", "GAMMA", "delta", "x", "1", "data", "ml"]

    for _ in range(200):
        query = " ".join(rng.choices(vocabulary, k=rng.randint(0, 6)))
        text = " ".join(rng.choices(vocabulary, k=rng.randint(0, 10)))

        score = lexical_overlap(query, text)

        assert 0.0 <= score <= 1.0
        if not query.strip():
            assert score == 0.0

import numpy as np
import pytest

from matcher import cosine_similarity, score_chunks
from services.base import EmbeddingDimensionError


def test_identical_vectors_have_similarity_one():
    rng = np.random.default_rng(7)
    for _ in range(20):
        v = rng.normal(size=16).tolist()
        assert cosine_similarity(v, v) == pytest.approx(1.0)


def test_orthogonal_vectors_have_similarity_zero():
    assert cosine_similarity([1, 0, 0], [0, 3, 0]) == pytest.approx(0.0)
    assert cosine_similarity([1, 1], [1, -1]) == pytest.approx(0.0)


def test_similarity_is_symmetric():
    rng = np.random.default_rng(11)
    for _ in range(20):
        a, b = rng.normal(size=8).tolist(), rng.normal(size=8).tolist()
        assert cosine_similarity(a, b) == cosine_similarity(b, a)


def test_opposite_vectors_and_bounds():
    assert cosine_similarity([1, 2], [-1, -2]) == pytest.approx(-1.0)
    rng = np.random.default_rng(3)
    for _ in range(20):
        s = cosine_similarity(rng.normal(size=5).tolist(), rng.normal(size=5).tolist())
        assert -1.0 <= s <= 1.0


def test_zero_magnitude_is_zero():
    assert cosine_similarity([0, 0], [1, 2]) == 0.0
    assert cosine_similarity([1, 2], [0, 0]) == 0.0


def test_length_mismatch_is_a_consistency_error():
    with pytest.raises(EmbeddingDimensionError):
        cosine_similarity([1, 2, 3], [1, 2])


def test_score_chunks_matches_pairwise_cosine():
    q = [0.3, -1.2, 2.0]
    vectors = [[1, 0, 0], [0.3, -1.2, 2.0], [0, 0, 0], [-2, 1, 0.5]]
    scores = score_chunks(q, vectors)
    assert len(scores) == 4
    for s, v in zip(scores, vectors):
        assert s == pytest.approx(cosine_similarity(q, v))


def test_score_chunks_empty_and_mismatch():
    assert len(score_chunks([1, 0], [])) == 0
    with pytest.raises(EmbeddingDimensionError):
        score_chunks([1, 0], [[1, 0], [1, 0, 0]])

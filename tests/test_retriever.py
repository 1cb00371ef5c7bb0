import asyncio

import pytest

from matcher import get_candidate_videos
from models import VideoChunk
from services.base import EmbeddingDimensionError, ProviderError

from conftest import FakeEmbedder, add_video, make_trend, make_video, unit


def _retrieve(store, embedder, **kw):
    return asyncio.run(get_candidate_videos(make_trend(), store.get_all_videos(), store.get_all_chunks(),
                                            embedder, **kw))


def test_empty_chunk_store_returns_no_candidates(store):
    store.upsert_video(make_video("v1"), [])
    embedder = FakeEmbedder()
    assert _retrieve(store, embedder) == []
    assert embedder.queries == []


def test_ranks_by_mean_not_max(store):
    add_video(store, "lucky", [0.95, 0.05])   # mean 0.5
    add_video(store, "steady", [0.6, 0.6])    # mean 0.6
    candidates = _retrieve(store, FakeEmbedder(), top_k=2)
    assert [c.video.video_id for c in candidates] == ["steady", "lucky"]
    assert candidates[0].avg_similarity == pytest.approx(0.6)
    assert candidates[1].avg_similarity == pytest.approx(0.5)


def test_top_k_cutoff_and_enriched_query(store):
    add_video(store, "v1", [0.9])
    add_video(store, "v2", [0.3])
    add_video(store, "v3", [0.5])
    embedder = FakeEmbedder()
    candidates = _retrieve(store, embedder, top_k=1)
    assert [c.video.video_id for c in candidates] == ["v1"]
    assert len(embedder.queries) == 1
    assert "Related themes:" in embedder.queries[0]


def test_top_chunks_sorted_and_capped(store):
    add_video(store, "v1", [0.1, 0.9, 0.5, 0.7, 0.3, 0.8, 0.2])
    [candidate] = _retrieve(store, FakeEmbedder(), chunks_per_video=5)
    assert candidate.top_chunks == ["v1 chunk 1", "v1 chunk 5", "v1 chunk 3", "v1 chunk 2", "v1 chunk 4"]


def test_chunks_of_unknown_video_are_ignored(store):
    add_video(store, "v1", [0.4])
    orphan = VideoChunk(video_id="gone", chunk_idx=0, text="orphan", embedding=unit(0.99))
    chunks = store.get_all_chunks() + [orphan]
    candidates = asyncio.run(get_candidate_videos(make_trend(), store.get_all_videos(), chunks, FakeEmbedder()))
    assert [c.video.video_id for c in candidates] == ["v1"]


def test_embedding_failure_propagates(store):
    add_video(store, "v1", [0.4])
    with pytest.raises(ProviderError):
        _retrieve(store, FakeEmbedder(fail_on="income"))


def test_query_dimension_mismatch_is_fatal(store):
    add_video(store, "v1", [0.4])
    with pytest.raises(EmbeddingDimensionError):
        _retrieve(store, FakeEmbedder(vector=[1.0, 0.0, 0.0]))

from datetime import datetime, timedelta, timezone

import numpy as np
import pytest
from sqlalchemy import update

from models import Recommendation, VideoChunk
from services.base import EmbeddingDimensionError
from services.store import ChunkRow, decode_embedding, encode_embedding

from conftest import DIM, add_video, make_trend, make_video


def test_embedding_blob_is_little_endian_float32():
    blob = encode_embedding([1.0, -2.5], DIM)
    assert blob == np.array([1.0, -2.5], dtype="<f4").tobytes()
    assert decode_embedding(blob, DIM).tolist() == [1.0, -2.5]


def test_writing_wrong_dimension_fails(store):
    bad = VideoChunk(video_id="v1", chunk_idx=0, text="x", embedding=[1.0, 2.0, 3.0])
    with pytest.raises(EmbeddingDimensionError):
        store.upsert_video(make_video("v1"), [bad])
    assert store.get_video("v1") is None


def test_reading_corrupted_embedding_fails(store):
    add_video(store, "v1", [0.5])
    with store.Session.begin() as db:
        db.execute(update(ChunkRow).values(embedding=np.zeros(3, dtype="<f4").tobytes()))
    with pytest.raises(EmbeddingDimensionError):
        store.get_all_chunks()


def test_chunks_round_trip_and_force_reupsert_replaces_them(store):
    add_video(store, "v1", [0.1, 0.2, 0.3])
    assert [c.chunk_idx for c in store.get_all_chunks()] == [0, 1, 2]
    add_video(store, "v1", [0.9])
    chunks = store.get_all_chunks()
    assert len(chunks) == 1
    assert chunks[0].embedding[0] == pytest.approx(0.9)
    assert store.get_video_ids() == {"v1"}


def test_missing_lookups_return_none(store):
    assert store.get_trend("nope") is None
    assert store.get_video("nope") is None


def test_trends_newest_first_and_replace_clears_recommendations(store):
    old = make_trend("old").model_copy(update={"created_at": datetime.now(timezone.utc) - timedelta(days=1)})
    store.insert_trend(old)
    store.insert_trend(make_trend("new"))
    assert [t.trend_id for t in store.get_all_trends()] == ["new", "old"]

    store.insert_recommendation(Recommendation(trend_id="new", video_id="v1", semantic_relevance=0.9,
                                               intro_support=0.9, honesty_risk=0.1))
    store.replace_trends([make_trend("fresh")])
    assert [t.trend_id for t in store.get_all_trends()] == ["fresh"]
    assert store.get_all_recommendations() == []


def test_recommendations_ordered_and_upserted_on_composite_key(store):
    def rec(video_id, rel, intro):
        return Recommendation(trend_id="t", video_id=video_id, semantic_relevance=rel,
                              intro_support=intro, honesty_risk=0.1)

    store.insert_recommendation(rec("a", 0.7, 0.9))
    store.insert_recommendation(rec("b", 0.9, 0.7))
    store.insert_recommendation(rec("c", 0.9, 0.8))
    store.insert_recommendation(rec("a", 0.95, 0.9))
    assert [r.video_id for r in store.get_all_recommendations()] == ["a", "c", "b"]

    store.clear_recommendations()
    assert store.get_all_recommendations() == []

import json
import math
from typing import Dict, List, Optional

import pytest

from models import Trend, Video, VideoChunk
from services.base import EmbeddingProvider, GenerationProvider, ProviderError
from services.store import Store

DIM = 2


def unit(cos: float) -> List[float]:
    """2-d unit vector whose cosine with [1, 0] is `cos`."""
    return [cos, math.sqrt(max(0.0, 1.0 - cos * cos))]


class FakeEmbedder(EmbeddingProvider):

    def __init__(self, vector: Optional[List[float]] = None, fail_on: Optional[str] = None):
        self.vector = vector or [1.0, 0.0]
        self.fail_on = fail_on
        self.queries: List[str] = []
        self.batches: List[List[str]] = []

    async def embed(self, text: str) -> List[float]:
        self.queries.append(text)
        if self.fail_on and self.fail_on in text:
            raise ProviderError("embedding service unavailable")
        return list(self.vector)

    async def embed_batch(self, texts: List[str]) -> List[List[float]]:
        self.batches.append(list(texts))
        return [list(self.vector) for _ in texts]


class FakeGenerator(GenerationProvider):
    """Returns canned responses keyed by a substring of the user prompt, else the default."""

    def __init__(self, default="", by_marker: Optional[Dict[str, object]] = None):
        self.default = default
        self.by_marker = by_marker or {}
        self.calls: List[str] = []
        self.options: List[dict] = []

    async def complete(self, system_prompt: str, user_prompt: str, json_mode: bool = True,
                       max_tokens: Optional[int] = None) -> str:
        self.calls.append(user_prompt)
        self.options.append({"json_mode": json_mode, "max_tokens": max_tokens})
        response = self.default
        for marker, value in self.by_marker.items():
            if marker in user_prompt:
                response = value
                break
        if isinstance(response, Exception):
            raise response
        if isinstance(response, dict):
            return json.dumps(response)
        return response


def passing_evaluation(**overrides) -> dict:
    data = {
        "semantic_relevance": 0.8,
        "intro_support": 0.8,
        "honesty_risk": 0.1,
        "allowed": True,
        "titles": ["A"],
        "thumbnails": ["B"],
        "notes": "ok",
    }
    data.update(overrides)
    return data


def make_video(video_id: str, title: str = "") -> Video:
    return Video(
        video_id=video_id,
        title=title or f"Video {video_id}",
        transcript=f"transcript of {video_id}",
        intro=f"intro of {video_id}",
        url=f"https://www.youtube.com/watch?v={video_id}",
    )


def add_video(store: Store, video_id: str, chunk_cosines: List[float], title: str = "") -> Video:
    video = make_video(video_id, title)
    chunks = [
        VideoChunk(video_id=video_id, chunk_idx=i, text=f"{video_id} chunk {i}", embedding=unit(c))
        for i, c in enumerate(chunk_cosines)
    ]
    store.upsert_video(video, chunks)
    return video


def make_trend(trend_id: str = "t1", title: str = "Income tax slabs revised",
               summary: str = "New budget changes income tax slabs") -> Trend:
    return Trend(trend_id=trend_id, title=title, summary=summary, keywords="income, slabs", source="manual")


@pytest.fixture
def store() -> Store:
    s = Store("sqlite://", embedding_dim=DIM)
    s.init_db()
    return s

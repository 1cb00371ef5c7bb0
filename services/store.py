import logging
import os
from typing import Iterable, List, Optional, Set

import numpy as np
from sqlalchemy import (Column, DateTime, Float, ForeignKey, Integer, LargeBinary, String, Text,
    create_engine, delete, select)
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from models import ContentType, Recommendation, Trend, Video, VideoChunk
from .base import EmbeddingDimensionError
from .openai import EMBED_DIM

DB_URL = os.getenv("REINDEXER_DB_URL", "sqlite:///reindexer.db")
# stored embeddings are a flat little-endian float32 array
EMBEDDING_DTYPE = np.dtype("<f4")

logger = logging.getLogger(__name__)

Base = declarative_base()


class VideoRow(Base):
    __tablename__ = "videos"

    video_id = Column(String, primary_key=True)
    title = Column(Text, nullable=False)
    transcript = Column(Text, nullable=False)
    intro = Column(Text, nullable=False)
    published_at = Column(String, nullable=False, default="")
    url = Column(String, nullable=False, default="")
    content_type = Column(String(2), nullable=False, default=ContentType.LONG_FORM.value)


class ChunkRow(Base):
    __tablename__ = "video_chunks"

    video_id = Column(String, ForeignKey("videos.video_id"), primary_key=True, index=True)
    chunk_idx = Column(Integer, primary_key=True)
    text = Column(Text, nullable=False)
    embedding = Column(LargeBinary, nullable=False)


class TrendRow(Base):
    __tablename__ = "trends"

    trend_id = Column(String, primary_key=True)
    title = Column(Text, nullable=False)
    summary = Column(Text, nullable=False)
    keywords = Column(Text, nullable=False, default="")
    source = Column(String, nullable=False)
    created_at = Column(DateTime, nullable=False)


class RecommendationRow(Base):
    __tablename__ = "recommendations"

    trend_id = Column(String, ForeignKey("trends.trend_id"), primary_key=True)
    video_id = Column(String, ForeignKey("videos.video_id"), primary_key=True)
    semantic_relevance = Column(Float, nullable=False)
    intro_support = Column(Float, nullable=False)
    honesty_risk = Column(Float, nullable=False)
    titles = Column(Text, nullable=False)
    thumbnails = Column(Text, nullable=False)
    notes = Column(Text, nullable=False)


def encode_embedding(vec: Iterable[float], dim: int) -> bytes:
    arr = np.asarray(list(vec), dtype=EMBEDDING_DTYPE)
    if arr.size != dim:
        raise EmbeddingDimensionError(dim, int(arr.size), "write")
    return arr.tobytes()

def decode_embedding(blob: bytes, dim: int) -> np.ndarray:
    if len(blob) % EMBEDDING_DTYPE.itemsize:
        raise EmbeddingDimensionError(dim, len(blob) // EMBEDDING_DTYPE.itemsize, "truncated blob")
    arr = np.frombuffer(blob, dtype=EMBEDDING_DTYPE)
    if arr.size != dim:
        raise EmbeddingDimensionError(dim, int(arr.size), "read")
    return arr


def _make_engine(url: str):
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            # one shared connection, otherwise every session sees a fresh empty database
            kwargs["poolclass"] = StaticPool
        return create_engine(url, **kwargs)
    return create_engine(url, pool_pre_ping=True)


class Store:
    """SQL-backed storage for videos, chunks, trends and recommendations.

    Lookups by id return None when the row is absent. Embedding length is
    checked against ``embedding_dim`` on every read and write.
    """

    def __init__(self, url: str = DB_URL, embedding_dim: int = EMBED_DIM):
        self.url = url
        self.embedding_dim = embedding_dim
        self.engine = _make_engine(url)
        self.Session = sessionmaker(bind=self.engine, expire_on_commit=False)

    def init_db(self):
        logger.info(f"[store] ensuring schema at {self.url}")
        Base.metadata.create_all(bind=self.engine)

    # ----- videos / chunks -----
    def upsert_video(self, video: Video, chunks: Optional[List[VideoChunk]] = None):
        """Insert or replace a video; its previous chunks are always dropped."""
        blobs = [encode_embedding(c.embedding, self.embedding_dim) for c in (chunks or [])]
        with self.Session.begin() as db:
            db.execute(delete(ChunkRow).where(ChunkRow.video_id == video.video_id))
            db.merge(VideoRow(
                video_id=video.video_id,
                title=video.title,
                transcript=video.transcript,
                intro=video.intro,
                published_at=video.published_at,
                url=video.url,
                content_type=video.content_type.value,
            ))
            for ch, blob in zip(chunks or [], blobs):
                db.add(ChunkRow(video_id=video.video_id, chunk_idx=ch.chunk_idx, text=ch.text, embedding=blob))
        logger.debug(f"[store] upserted video {video.video_id} with {len(blobs)} chunks")

    def get_all_videos(self) -> List[Video]:
        with self.Session() as db:
            return [_video(r) for r in db.scalars(select(VideoRow))]

    def get_video(self, video_id: str) -> Optional[Video]:
        with self.Session() as db:
            row = db.get(VideoRow, video_id)
            return _video(row) if row else None

    def get_video_ids(self) -> Set[str]:
        with self.Session() as db:
            return set(db.scalars(select(VideoRow.video_id)))

    def get_all_chunks(self) -> List[VideoChunk]:
        with self.Session() as db:
            rows = db.scalars(select(ChunkRow).order_by(ChunkRow.video_id, ChunkRow.chunk_idx)).all()
            return [
                VideoChunk(
                    video_id=r.video_id,
                    chunk_idx=r.chunk_idx,
                    text=r.text,
                    embedding=decode_embedding(r.embedding, self.embedding_dim).tolist(),
                )
                for r in rows
            ]

    # ----- trends -----
    def insert_trend(self, trend: Trend):
        with self.Session.begin() as db:
            db.merge(TrendRow(**trend.model_dump()))

    def replace_trends(self, trends: List[Trend]):
        """A fetch cycle replaces the whole trend set; recommendations go with it."""
        with self.Session.begin() as db:
            db.execute(delete(RecommendationRow))
            db.execute(delete(TrendRow))
            for t in trends:
                db.merge(TrendRow(**t.model_dump()))
        logger.info(f"[store] replaced trend set with {len(trends)} trends")

    def get_all_trends(self) -> List[Trend]:
        with self.Session() as db:
            rows = db.scalars(select(TrendRow).order_by(TrendRow.created_at.desc()))
            return [_trend(r) for r in rows]

    def get_trend(self, trend_id: str) -> Optional[Trend]:
        with self.Session() as db:
            row = db.get(TrendRow, trend_id)
            return _trend(row) if row else None

    # ----- recommendations -----
    def insert_recommendation(self, rec: Recommendation):
        with self.Session.begin() as db:
            db.merge(RecommendationRow(**rec.model_dump()))

    def get_all_recommendations(self) -> List[Recommendation]:
        with self.Session() as db:
            rows = db.scalars(select(RecommendationRow).order_by(
                RecommendationRow.semantic_relevance.desc(), RecommendationRow.intro_support.desc()))
            return [
                Recommendation(
                    trend_id=r.trend_id,
                    video_id=r.video_id,
                    semantic_relevance=r.semantic_relevance,
                    intro_support=r.intro_support,
                    honesty_risk=r.honesty_risk,
                    titles=r.titles,
                    thumbnails=r.thumbnails,
                    notes=r.notes,
                )
                for r in rows
            ]

    def clear_recommendations(self):
        with self.Session.begin() as db:
            n = db.execute(delete(RecommendationRow)).rowcount
        logger.info(f"[store] cleared {n} recommendations")


def _video(r: VideoRow) -> Video:
    return Video(
        video_id=r.video_id,
        title=r.title,
        transcript=r.transcript,
        intro=r.intro,
        published_at=r.published_at,
        url=r.url,
        content_type=ContentType(r.content_type),
    )

def _trend(r: TrendRow) -> Trend:
    return Trend(
        trend_id=r.trend_id,
        title=r.title,
        summary=r.summary,
        keywords=r.keywords,
        source=r.source,
        created_at=r.created_at,
    )

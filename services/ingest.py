import asyncio
import csv
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import List

from pydantic import BaseModel

from models import ContentType, Video, VideoChunk
from .base import EmbeddingProvider
from .youtube import chunk_text, get_transcript_text, intro_excerpt, watch_url

logger = logging.getLogger(__name__)


class IngestReport(BaseModel):
    total: int = 0
    processed: int = 0
    skipped: int = 0
    chunks: int = 0


def _video_from_record(rec: dict) -> Video:
    video_id = str(rec.get("video_id") or "").strip()
    raw_type = str(rec.get("content_type") or "").strip().lower()
    return Video(
        video_id=video_id,
        title=str(rec.get("title") or rec.get("title_current") or ""),
        transcript=str(rec.get("transcript") or rec.get("transcript_full") or ""),
        published_at=str(rec.get("published_at") or datetime.now(timezone.utc).isoformat()),
        url=str(rec.get("url") or ""),
        content_type=ContentType.SHORT_FORM if raw_type in ("short", "sf") else ContentType.LONG_FORM,
    )

def load_videos(path: str) -> List[Video]:
    """Read videos from a .csv (header row) or a .json list. Rows without an id are dropped."""
    p = Path(path)
    logger.info(f"[ingest] loading videos from {p}")
    if p.suffix.lower() == ".csv":
        with p.open(newline="", encoding="utf-8") as f:
            records = [{k.strip(): (v or "").strip() for k, v in row.items() if k} for row in csv.DictReader(f)]
    else:
        records = json.loads(p.read_text(encoding="utf-8"))
    videos = [_video_from_record(r) for r in records]
    videos = [v for v in videos if v.video_id]
    logger.info(f"[ingest] found {len(videos)} videos")
    return videos

async def ingest_videos(store, embedder: EmbeddingProvider, videos: List[Video], force: bool = False,
                        fetch_missing_transcripts: bool = False) -> IngestReport:
    existing = store.get_video_ids()
    report = IngestReport(total=len(videos))

    for video in videos:
        if not force and video.video_id in existing:
            report.skipped += 1
            logger.info(f"[ingest] skipping {video.video_id} - {video.title} (already exists)")
            continue

        transcript = video.transcript
        if not transcript and fetch_missing_transcripts:
            transcript = await asyncio.to_thread(get_transcript_text, video.video_id)
        if not transcript:
            logger.warning(f"[ingest] no transcript for {video.video_id}; skipping")
            report.skipped += 1
            continue

        report.processed += 1
        video = video.model_copy(update={
            "transcript": transcript,
            "intro": intro_excerpt(transcript),
            "url": video.url or watch_url(video.video_id),
        })
        texts = chunk_text(transcript)
        logger.info(f"[ingest] {video.video_id}: {len(texts)} chunks")
        vectors = await embedder.embed_batch(texts) if texts else []
        chunks = [
            VideoChunk(video_id=video.video_id, chunk_idx=i, text=t, embedding=vec)
            for i, (t, vec) in enumerate(zip(texts, vectors))
        ]
        store.upsert_video(video, chunks)
        report.chunks += len(chunks)

    logger.info(f"[ingest] complete: processed={report.processed} skipped={report.skipped} "
                f"chunks={report.chunks} of {report.total}")
    return report

import logging
from typing import Dict, List, Tuple

from models import CandidateVideo, Trend, Video, VideoChunk
from services.base import EmbeddingProvider
from .similarity import score_chunks
from .themes import enrich_query

TOP_CANDIDATES_PER_TREND = 3
TOP_CHUNKS_PER_VIDEO = 5

logger = logging.getLogger(__name__)


async def get_candidate_videos(trend: Trend, videos: List[Video], chunks: List[VideoChunk],
                               embedder: EmbeddingProvider, top_k: int = TOP_CANDIDATES_PER_TREND,
                               chunks_per_video: int = TOP_CHUNKS_PER_VIDEO) -> List[CandidateVideo]:
    """Rank videos by mean chunk similarity to the enriched trend query and keep the top_k.

    Embedding failures propagate; there is no safe stand-in for the query vector.
    """
    if not chunks:
        logger.warning("[retrieve] chunk store is empty - has ingestion run?")
        return []

    query_text = enrich_query(trend)
    logger.info(f"[retrieve] trend='{trend.title[:60]}' query_len={len(query_text)} chunks={len(chunks)}")
    qvec = await embedder.embed(query_text)
    sims = score_chunks(qvec, [c.embedding for c in chunks])

    # dict keeps first-seen order, which is the tie-break between equal averages
    per_video: Dict[str, List[Tuple[float, str]]] = {}
    for ch, sim in zip(chunks, sims):
        per_video.setdefault(ch.video_id, []).append((float(sim), ch.text))

    by_id = {v.video_id: v for v in videos}
    candidates: List[CandidateVideo] = []
    for video_id, scored in per_video.items():
        video = by_id.get(video_id)
        if not video:
            logger.debug(f"[retrieve] chunks for unknown video {video_id}; ignoring")
            continue
        avg = sum(s for s, _ in scored) / len(scored)
        top = sorted(scored, key=lambda x: x[0], reverse=True)[:chunks_per_video]
        candidates.append(CandidateVideo(video=video, avg_similarity=avg, top_chunks=[t for _, t in top]))

    candidates.sort(key=lambda c: c.avg_similarity, reverse=True)
    if not candidates:
        logger.info(f"[retrieve] no candidate videos for '{trend.title[:60]}'")
    return candidates[:top_k]

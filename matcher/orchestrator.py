import json
import logging
from typing import Callable, List, Optional

from models import (CandidateVideo, Evaluation, EventType, MatchSettings, Packaging, ProgressEvent,
    Recommendation, RecommendationOutput, RunResult, Trend, TrendResult)
from services.base import EmbeddingProvider, GenerationProvider, ProviderError
from .evaluator import evaluate_candidate
from .gate import rejection_reasons
from .retriever import get_candidate_videos

logger = logging.getLogger(__name__)

ProgressSink = Callable[[ProgressEvent], None]


def _discard(event: ProgressEvent):
    pass

def to_recommendation(trend: Trend, video_id: str, evaluation: Evaluation) -> Recommendation:
    return Recommendation(
        trend_id=trend.trend_id,
        video_id=video_id,
        semantic_relevance=evaluation.semantic_relevance,
        intro_support=evaluation.intro_support,
        honesty_risk=evaluation.honesty_risk,
        titles=json.dumps(evaluation.titles),
        thumbnails=json.dumps(evaluation.thumbnails),
        notes=evaluation.notes,
    )


async def _evaluate_trend(store, trend: Trend, candidates: List[CandidateVideo], generator: GenerationProvider,
                          settings: MatchSettings, result: RunResult, trend_result: TrendResult,
                          emit: ProgressSink):
    for candidate in candidates:
        video = candidate.video
        result.total_evaluations += 1
        evaluation = await evaluate_candidate(generator, trend, video,
                                              candidate.top_chunks[:settings.top_chunks_for_llm])
        reasons = rejection_reasons(evaluation, settings.thresholds)
        if reasons:
            logger.info(f"[match] rejected video={video.video_id}: {'; '.join(reasons)}")
            emit(ProgressEvent(
                type=EventType.REJECTED,
                message=f"    REJECTED: {video.title}",
                trend=trend.title,
                video=video.title,
                scores=evaluation.scores(),
                reasons=reasons + ([evaluation.notes] if evaluation.notes else []),
            ))
            continue

        # persisted as each decision is made
        store.insert_recommendation(to_recommendation(trend, video.video_id, evaluation))
        result.accepted += 1
        trend_result.matched.append(RecommendationOutput(
            trend=trend,
            video=video,
            scores=evaluation.scores(),
            packaging=Packaging(titles=evaluation.titles, thumbnails=evaluation.thumbnails,
                                notes=evaluation.notes),
        ))
        logger.info(f"[match] accepted video={video.video_id} relevance={evaluation.semantic_relevance:.2f} "
                    f"intro={evaluation.intro_support:.2f} risk={evaluation.honesty_risk:.2f}")
        emit(ProgressEvent(
            type=EventType.ACCEPTED,
            message=f"    ACCEPTED: {video.title}",
            trend=trend.title,
            video=video.title,
            scores=evaluation.scores(),
        ))


async def run_match(store, embedder: EmbeddingProvider, generator: GenerationProvider,
                    trend_ids: Optional[List[str]] = None, settings: Optional[MatchSettings] = None,
                    sink: Optional[ProgressSink] = None) -> RunResult:
    """Match trends to videos and replace the stored recommendation snapshot.

    trend_ids=None means every stored trend. Unknown ids are skipped. Trends are
    processed one at a time and candidates evaluated strictly in order, so the
    event sequence is: start, (trend, candidates|error, accepted|rejected...)*, complete.
    """
    settings = settings or MatchSettings()
    emit = sink or _discard
    result = RunResult()

    if trend_ids is None:
        trends: List[Optional[Trend]] = store.get_all_trends()
        labels = [t.trend_id for t in trends]
    else:
        trends, labels = [store.get_trend(tid) for tid in trend_ids], list(trend_ids)

    videos = store.get_all_videos()
    chunks = store.get_all_chunks()
    if not videos:
        logger.warning("[match] no videos found - run ingest first")
    logger.info(f"[match] processing {len(labels)} trends x {len(videos)} videos pool ({len(chunks)} chunks)")

    store.clear_recommendations()
    emit(ProgressEvent(type=EventType.START, message=f"Processing {len(labels)} selected trends...",
                       count=len(labels)))

    for trend_id, trend in zip(labels, trends):
        if trend is None:
            logger.warning(f"[match] trend {trend_id} not found; skipping")
            continue

        emit(ProgressEvent(type=EventType.TREND, message=f"Processing: {trend.title}", trend=trend.title))
        trend_result = TrendResult(trend=trend)
        result.trends.append(trend_result)
        try:
            candidates = await get_candidate_videos(trend, videos, chunks, embedder,
                                                    top_k=settings.top_candidates,
                                                    chunks_per_video=settings.top_chunks_kept)
        except ProviderError as e:
            logger.error(f"[match] candidate retrieval failed for '{trend.title}': {e}")
            trend_result.error = str(e)
            emit(ProgressEvent(type=EventType.ERROR, message=f"  Retrieval failed: {e}", trend=trend.title))
            continue

        trend_result.candidate_count = len(candidates)
        emit(ProgressEvent(type=EventType.CANDIDATES, message=f"  Found {len(candidates)} candidate videos",
                           trend=trend.title, count=len(candidates)))
        await _evaluate_trend(store, trend, candidates, generator, settings, result, trend_result, emit)

    summary = result.summary()
    logger.info(f"[match] complete: evaluations={summary.total_evaluations} "
                f"accepted={summary.accepted} rejected={summary.rejected}")
    emit(ProgressEvent(
        type=EventType.COMPLETE,
        message=(f"Done: {summary.total_evaluations} evaluations, "
                 f"{summary.accepted} accepted, {summary.rejected} rejected"),
        summary=summary,
        results=result.trends,
    ))
    return result

import json
import logging
import os
from pathlib import Path
from typing import List

from models import Packaging, Recommendation, RecommendationOutput, Scores

OUTPUT_PATH = os.getenv("REINDEXER_OUTPUT_PATH", "out/recommendations.json")

logger = logging.getLogger(__name__)


def decode_packaging(rec: Recommendation) -> Packaging:
    return Packaging(titles=json.loads(rec.titles), thumbnails=json.loads(rec.thumbnails), notes=rec.notes)

def build_recommendation_outputs(store) -> List[RecommendationOutput]:
    """Join stored recommendations with their trend and video; rows with a missing referent are skipped."""
    outputs = []
    for rec in store.get_all_recommendations():
        trend = store.get_trend(rec.trend_id)
        video = store.get_video(rec.video_id)
        if not trend or not video:
            logger.warning(f"[output] skipping recommendation {rec.trend_id}/{rec.video_id}: missing trend or video")
            continue
        outputs.append(RecommendationOutput(
            trend=trend,
            video=video,
            scores=Scores(
                semantic_relevance=rec.semantic_relevance,
                intro_support=rec.intro_support,
                honesty_risk=rec.honesty_risk,
            ),
            packaging=decode_packaging(rec),
        ))
    return outputs

def write_recommendations(store, path: str = OUTPUT_PATH) -> List[RecommendationOutput]:
    outputs = build_recommendation_outputs(store)
    if not outputs:
        logger.warning("[output] no recommendations found")
        return outputs
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(json.dumps([o.model_dump(mode="json") for o in outputs], indent=2), encoding="utf-8")
    logger.info(f"[output] wrote {len(outputs)} recommendations to {p}")
    return outputs

def format_recommendation(rank: int, item: RecommendationOutput) -> str:
    s, pk = item.scores, item.packaging
    lines = [
        f"{rank}. TREND: {item.trend.title}",
        f"   VIDEO: {item.video.title}",
        f"   SCORES: Relevance={s.semantic_relevance:.2f}, Intro={s.intro_support:.2f}, Risk={s.honesty_risk:.2f}",
        "   NEW TITLES:",
        *[f"     - {t}" for t in pk.titles],
        "   THUMBNAILS:",
        *[f"     - {t}" for t in pk.thumbnails],
        f"   NOTES: {pk.notes}",
    ]
    return "\n".join(lines)

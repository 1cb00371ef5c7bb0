from .similarity import cosine_similarity, score_chunks
from .themes import THEME_CLUSTERS, ThemeCluster, matched_themes, enrich_query
from .retriever import get_candidate_videos
from .evaluator import (PARSE_STRATEGIES, parse_direct, parse_braced_slice, parse_repaired,
    parse_evaluation, conservative_rejection, request_evaluation, evaluate_candidate)
from .gate import is_accepted, rejection_reasons, score_rejections
from .orchestrator import run_match, to_recommendation, ProgressSink

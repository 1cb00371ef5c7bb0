from .youtube import ContentType, Video, VideoChunk
from .trend import Trend, Scores, Packaging, Recommendation, RecommendationOutput
from .matcher import (AcceptanceThresholds, MatchSettings, Evaluation, EvaluationFailure,
    FailureReason, CandidateVideo, EventType, ProgressEvent, RunSummary, TrendResult, RunResult)

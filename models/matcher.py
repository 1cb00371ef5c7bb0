import os
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field

from .trend import RecommendationOutput, Scores, Trend
from .youtube import Video


class AcceptanceThresholds(BaseModel):
    min_semantic_relevance: float = 0.65
    min_intro_support: float = 0.65
    max_honesty_risk: float = 0.30

class MatchSettings(BaseModel):

    # Retrieval
    top_candidates: int = 3       # videos evaluated per trend
    top_chunks_kept: int = 5      # best chunks retained per video
    top_chunks_for_llm: int = 3   # chunks actually sent to the model

    # Evaluation
    temperature: float = 0.3

    # Gate
    thresholds: AcceptanceThresholds = Field(default_factory=AcceptanceThresholds)

    @classmethod
    def from_env(cls) -> "MatchSettings":
        defaults = AcceptanceThresholds()
        thresholds = AcceptanceThresholds(
            min_semantic_relevance=float(os.getenv("MIN_SEMANTIC_RELEVANCE", defaults.min_semantic_relevance)),
            min_intro_support=float(os.getenv("MIN_INTRO_SUPPORT", defaults.min_intro_support)),
            max_honesty_risk=float(os.getenv("MAX_HONESTY_RISK", defaults.max_honesty_risk)),
        )
        return cls(
            top_candidates=int(os.getenv("MATCH_TOP_CANDIDATES", "3")),
            top_chunks_for_llm=int(os.getenv("MATCH_TOP_CHUNKS", "3")),
            thresholds=thresholds,
        )


class Evaluation(BaseModel):
    """Model verdict for one (trend, candidate) pair.

    Strict on purpose: a score given as a string or an allow flag given as
    "true" is a contract violation, not something to coerce.
    """
    model_config = ConfigDict(strict=True)

    semantic_relevance: float = Field(ge=0.0, le=1.0)
    intro_support: float = Field(ge=0.0, le=1.0)
    honesty_risk: float = Field(ge=0.0, le=1.0)
    allowed: bool
    titles: List[str]
    thumbnails: List[str]
    notes: str

    def scores(self) -> Scores:
        return Scores(
            semantic_relevance=self.semantic_relevance,
            intro_support=self.intro_support,
            honesty_risk=self.honesty_risk,
        )

class FailureReason(str, Enum):
    EMPTY_RESPONSE = "empty_response"
    INVALID_JSON = "invalid_json"
    INVALID_SCHEMA = "invalid_schema"
    PROVIDER_ERROR = "provider_error"

class EvaluationFailure(BaseModel):
    reason: FailureReason
    detail: str = ""

class CandidateVideo(BaseModel):
    video: Video
    avg_similarity: float
    top_chunks: List[str] = Field(default_factory=list)


class EventType(str, Enum):
    START = "start"
    TREND = "trend"
    CANDIDATES = "candidates"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    ERROR = "error"
    COMPLETE = "complete"

class RunSummary(BaseModel):
    total_evaluations: int
    accepted: int
    rejected: int

class TrendResult(BaseModel):
    trend: Trend
    candidate_count: int = 0
    matched: List[RecommendationOutput] = Field(default_factory=list)
    error: Optional[str] = None

class ProgressEvent(BaseModel):
    type: EventType
    message: str
    trend: Optional[str] = None
    video: Optional[str] = None
    count: Optional[int] = None
    scores: Optional[Scores] = None
    reasons: Optional[List[str]] = None
    summary: Optional[RunSummary] = None
    results: Optional[List[TrendResult]] = None

class RunResult(BaseModel):
    """Accumulator for one orchestrator run; rejected is always derived."""
    total_evaluations: int = 0
    accepted: int = 0
    trends: List[TrendResult] = Field(default_factory=list)

    @property
    def rejected(self) -> int:
        return self.total_evaluations - self.accepted

    def summary(self) -> RunSummary:
        return RunSummary(
            total_evaluations=self.total_evaluations,
            accepted=self.accepted,
            rejected=self.rejected,
        )

from datetime import datetime, timezone
from typing import List
from pydantic import BaseModel, Field

from .youtube import Video


class Trend(BaseModel):
    trend_id: str
    title: str
    summary: str
    keywords: str = ""  # comma-separated, derived from the title
    source: str = "manual"
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

class Scores(BaseModel):
    semantic_relevance: float
    intro_support: float
    honesty_risk: float

class Packaging(BaseModel):
    titles: List[str] = Field(default_factory=list)
    thumbnails: List[str] = Field(default_factory=list)
    notes: str = ""

class Recommendation(BaseModel):
    """Persisted row for an accepted (trend, video) pair.

    titles/thumbnails are stored serialized as JSON arrays.
    """
    trend_id: str
    video_id: str
    semantic_relevance: float
    intro_support: float
    honesty_risk: float
    titles: str = "[]"
    thumbnails: str = "[]"
    notes: str = ""

class RecommendationOutput(BaseModel):
    trend: Trend
    video: Video
    scores: Scores
    packaging: Packaging

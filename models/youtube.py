from enum import Enum
from pydantic import BaseModel, Field
from typing import List


class ContentType(str, Enum):
    LONG_FORM = "LF"
    SHORT_FORM = "SF"


class Video(BaseModel):
    video_id: str
    title: str
    transcript: str = ""
    intro: str = ""  # first N words of the transcript, fixed at ingestion
    published_at: str = ""
    url: str = ""
    content_type: ContentType = ContentType.LONG_FORM

class VideoChunk(BaseModel):
    video_id: str
    chunk_idx: int
    text: str
    embedding: List[float] = Field(default_factory=list)

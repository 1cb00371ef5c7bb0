import logging
import os
import re
import threading
import time
from datetime import datetime, timedelta, timezone
from typing import List

from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from pydantic import BaseModel
from youtube_transcript_api import YouTubeTranscriptApi, TranscriptsDisabled, NoTranscriptFound

from .base import GenerationProvider, ProviderError

YOUTUBE_WATCH_URL_TEMPLATE = "https://www.youtube.com/watch?v={video_id}"
CHUNK_SIZE = 1000
CHUNK_OVERLAP = 150
INTRO_WORDS = 200
SEARCH_TOPIC_MAX_TOKENS = 20

SEARCH_TOPIC_PROMPT = """You are a search query optimizer. Extract the main topic/keyword from a news headline that would work best for YouTube search. Return ONLY 2-4 key words, no explanation."""

logger = logging.getLogger(__name__)


def chunk_text(s: str, max_chars=CHUNK_SIZE, overlap=CHUNK_OVERLAP) -> List[str]:
    s = re.sub(r"\s+", " ", (s or "")).strip()
    if not s:
        return []
    if len(s) <= max_chars:
        return [s]
    # Ensure we always advance by at least 1 character
    effective_overlap = max(0, min(overlap, max_chars - 1))
    step = max_chars - effective_overlap
    chunks, i = [], 0
    while i < len(s):
        end = min(len(s), i + max_chars)
        chunks.append(s[i:end])
        if end >= len(s):
            break
        i += step
    return chunks

def intro_excerpt(transcript: str, words: int = INTRO_WORDS) -> str:
    return " ".join((transcript or "").split()[:words])

def watch_url(video_id: str) -> str:
    return YOUTUBE_WATCH_URL_TEMPLATE.format(video_id=video_id)

# ----- Rate Limiter for YouTube Transcript API -----
class TranscriptRateLimiter:
    """Rate limiter for YouTube Transcript API: 5 requests per 10 seconds"""

    def __init__(self, max_requests=5, time_window=10):
        self.max_requests = max_requests
        self.time_window = time_window
        self.requests = []
        self.lock = threading.Lock()

    def wait_if_needed(self):
        """Block until a request slot is free inside the sliding window."""
        while True:
            with self.lock:
                now = time.perf_counter()
                self.requests = [t for t in self.requests if now - t < self.time_window]

                if len(self.requests) < self.max_requests:
                    self.requests.append(now)
                    return

                oldest = min(self.requests)
                wait_time = max(0.0, self.time_window - (now - oldest))

            # Release lock while sleeping
            if wait_time > 0:
                logger.info(f"[rate_limit] waiting {wait_time:.2f}s to comply with transcript API limits")
                time.sleep(wait_time)

_transcript_rate_limiter = TranscriptRateLimiter()

def get_transcript_text(video_id: str) -> str:
    """Fetch an English transcript; empty string when none is available."""
    logger.info(f"[transcript] fetching for {video_id}")
    _transcript_rate_limiter.wait_if_needed()
    try:
        transcripts = YouTubeTranscriptApi().list(video_id)
        try:
            t = transcripts.find_transcript(['en', 'en-US', 'en-GB'])
        except NoTranscriptFound:
            t = transcripts.find_generated_transcript(['en', 'en-US', 'en-GB'])
        segs = t.fetch().to_raw_data()
    except (TranscriptsDisabled, NoTranscriptFound):
        logger.warning(f"[transcript] unavailable for {video_id}")
        return ""
    text = " ".join(s.get("text", "").strip() for s in segs if s.get("text"))
    logger.info(f"[transcript] ok length={len(text)} for {video_id}")
    return text

# ----- YouTube Data API -----
class YouTubeVideoSuggestion(BaseModel):
    title: str
    views: int = 0
    channel_title: str = ""
    video_id: str
    thumbnail_url: str = ""
    published_at: str = ""

_yt_client = None
def _get_yt_client():
    global _yt_client
    youtube_api_key = os.getenv("YOUTUBE_API_KEY")
    if not youtube_api_key:
        raise ValueError("YOUTUBE_API_KEY environment variable not set")
    if not _yt_client:
        _yt_client = build("youtube", "v3", developerKey=youtube_api_key, static_discovery=False,
                            cache_discovery=False)
    return _yt_client

def search_query_for_trend(trend_title: str) -> str:
    """News headlines look like 'Topic | detail - Publisher'; keep the topic, at most 4 words."""
    head = re.split(r"\s+[-|]\s+", trend_title.strip(), maxsplit=1)[0]
    return " ".join(head.split()[:4])

async def extract_search_topic(generator: GenerationProvider, trend_title: str) -> str:
    """Ask the model for a short YouTube search topic; falls back to the headline split."""
    user_prompt = f'News headline: "{trend_title}"\n\nExtract the best YouTube search keyword (2-4 words only):'
    try:
        raw = await generator.complete(SEARCH_TOPIC_PROMPT, user_prompt, json_mode=False,
                                       max_tokens=SEARCH_TOPIC_MAX_TOKENS)
    except (ProviderError, ValueError) as e:
        logger.warning(f"[yt] topic extraction failed, using headline split: {e}")
        return search_query_for_trend(trend_title)
    topic = (raw or "").strip().strip('"').strip()
    return topic or search_query_for_trend(trend_title)

def get_youtube_title_suggestions(query: str, max_results: int = 10,
                                  days_back: int = 7) -> List[YouTubeVideoSuggestion]:
    """Most-viewed recent YouTube videos for a query. Returns [] when the API is unavailable."""
    if not os.getenv("YOUTUBE_API_KEY"):
        logger.warning("[yt] YOUTUBE_API_KEY not configured; skipping title suggestions")
        return []
    published_after = (datetime.now(timezone.utc) - timedelta(days=days_back)).strftime("%Y-%m-%dT%H:%M:%SZ")
    logger.info(f"[yt] search q='{query}' last {days_back} days top {max_results}")
    try:
        yt_client = _get_yt_client()
        resp = yt_client.search().list(
            part="snippet",
            q=query,
            type="video",
            order="viewCount",
            publishedAfter=published_after,
            maxResults=min(max_results * 2, 50),
        ).execute()
        snippets = {}
        for item in resp.get("items", []):
            vid = (item.get("id") or {}).get("videoId")
            if vid:
                snippets[vid] = item.get("snippet") or {}
        if not snippets:
            return []
        stats = yt_client.videos().list(part="statistics", id=",".join(snippets)).execute()
    except HttpError as e:
        status = getattr(getattr(e, "resp", None), "status", "unknown")
        logger.error(f"[yt] http error status={status} for q='{query}'")
        return []

    views = {
        item["id"]: int((item.get("statistics") or {}).get("viewCount", 0))
        for item in stats.get("items", [])
    }
    suggestions = [
        YouTubeVideoSuggestion(
            title=sn.get("title", ""),
            views=views.get(vid, 0),
            channel_title=sn.get("channelTitle", ""),
            video_id=vid,
            thumbnail_url=((sn.get("thumbnails") or {}).get("high") or {}).get("url", ""),
            published_at=sn.get("publishedAt", ""),
        )
        for vid, sn in snippets.items()
    ]
    suggestions.sort(key=lambda s: s.views, reverse=True)
    logger.info(f"[yt] {len(suggestions)} suggestions for q='{query}'")
    return suggestions[:max_results]

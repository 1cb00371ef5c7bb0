import logging
import re
import time
from datetime import datetime, timezone
from typing import List

import feedparser
import httpx
from bs4 import BeautifulSoup

from models import Trend

RSS_FEEDS = [
    "https://news.google.com/rss?hl=en-IN&gl=IN&ceid=IN:en",  # Google News India, all categories
]
MAX_TRENDS = 20
REQUEST_TIMEOUT = 30

STOP_WORDS = {
    "a", "an", "the", "in", "on", "at", "to", "for", "of", "with",
    "is", "are", "was", "were", "be", "been", "being",
    "this", "that", "these", "those", "and", "or", "but",
}

logger = logging.getLogger(__name__)


def generate_trend_id(title: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", title.lower())
    return f"trend_{slug[:50]}_{int(time.time() * 1000)}"

def extract_keywords(title: str) -> str:
    words = re.sub(r"[^a-z0-9\s]", " ", title.lower()).split()
    return ", ".join([w for w in words if len(w) > 3 and w not in STOP_WORDS][:10])

def clean_description(description: str) -> str:
    """Feed descriptions are HTML (Google News wraps a link and a publisher tag); keep the text."""
    text = BeautifulSoup(description, "html.parser").get_text(" ")
    return " ".join(text.split())

def make_manual_trend(title: str, description: str = "") -> Trend:
    title = (title or "").strip()
    if not title:
        raise ValueError("Title is required")
    description = (description or "").strip()
    return Trend(
        trend_id=generate_trend_id(title),
        title=title,
        summary=description or title,
        keywords=extract_keywords(title),
        source="manual",
        created_at=datetime.now(timezone.utc),
    )

def parse_trend_feed(feed_content: str, max_trends: int = MAX_TRENDS,
                     seen_titles: set = None, source: str = "google_news") -> List[Trend]:
    """Turn RSS XML into trends, skipping titles already seen (case-insensitive)."""
    seen_titles = seen_titles if seen_titles is not None else set()
    feed = feedparser.parse(feed_content)
    if feed.bozo:
        logger.warning(f"[trends] feed parsing warning: {feed.bozo_exception}")

    trends: List[Trend] = []
    for entry in feed.entries:
        if len(trends) >= max_trends:
            break
        title = (entry.get("title") or "").strip()
        normalized = title.lower()
        if not title or normalized in seen_titles:
            continue
        seen_titles.add(normalized)
        trends.append(Trend(
            trend_id=generate_trend_id(title),
            title=title,
            summary=clean_description(entry.get("summary") or "") or title,
            keywords=extract_keywords(title),
            source=source,
            created_at=datetime.now(timezone.utc),
        ))
    return trends

async def fetch_trends(store, feeds: List[str] = RSS_FEEDS, max_trends: int = MAX_TRENDS) -> List[Trend]:
    """Fetch news feeds and replace the stored trend set with what was found."""
    logger.info("[trends] fetching trending topics")
    trends: List[Trend] = []
    seen: set = set()
    async with httpx.AsyncClient(timeout=REQUEST_TIMEOUT, follow_redirects=True) as client:
        for feed_url in feeds:
            if len(trends) >= max_trends:
                break
            try:
                response = await client.get(feed_url)
                response.raise_for_status()
            except httpx.HTTPError as e:
                logger.error(f"[trends] failed to fetch {feed_url}: {e}")
                continue
            trends.extend(parse_trend_feed(response.text, max_trends - len(trends), seen))

    store.replace_trends(trends)
    for t in trends:
        logger.info(f"[trends] + {t.title}")
    logger.info(f"[trends] fetched {len(trends)} unique trending topics")
    return trends

from .base import (ProviderError, ConsistencyError, EmbeddingDimensionError, EmbeddingProvider,
    GenerationProvider)
from .youtube import (chunk_text, intro_excerpt, watch_url, get_transcript_text, search_query_for_trend,
    extract_search_topic, get_youtube_title_suggestions, YouTubeVideoSuggestion)
from .openai import OpenAIEmbeddings, OpenAIGenerator, EMBED_DIM
from .store import Store
from .trends import fetch_trends, parse_trend_feed, clean_description, generate_trend_id, extract_keywords, make_manual_trend
from .ingest import load_videos, ingest_videos, IngestReport
from .output import build_recommendation_outputs, write_recommendations, format_recommendation

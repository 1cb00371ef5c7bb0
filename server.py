"""
HTTP front end: trend management, recommendations, and a match run streamed
as Server-Sent Events.
"""
import asyncio
import json
import logging
import os
from typing import List

from dotenv import load_dotenv
load_dotenv()

from fastapi import Depends, FastAPI, HTTPException
from fastapi.responses import StreamingResponse
from pydantic import AliasChoices, BaseModel, Field

from matcher import run_match
from models import MatchSettings
from services import (Store, OpenAIEmbeddings, OpenAIGenerator, EmbeddingProvider, GenerationProvider,
    fetch_trends, make_manual_trend, build_recommendation_outputs, get_youtube_title_suggestions,
    extract_search_topic)

logging.basicConfig(
    level=logging.DEBUG if os.getenv("DEBUG", "False").lower() == "true" else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Trend Re-indexer", version="0.1.0")


# ----- dependencies -----
_store = None
def get_store() -> Store:
    global _store
    if not _store:
        _store = Store()
        _store.init_db()
    return _store

def get_settings() -> MatchSettings:
    return MatchSettings.from_env()

def get_embedder() -> EmbeddingProvider:
    return OpenAIEmbeddings()

def get_generator(settings: MatchSettings = Depends(get_settings)) -> GenerationProvider:
    return OpenAIGenerator(temperature=settings.temperature)


class ManualTrendRequest(BaseModel):
    title: str = ""
    description: str = ""

class MatchRequest(BaseModel):
    trend_ids: List[str] = Field(default_factory=list, validation_alias=AliasChoices("trend_ids", "trendIds"))


def _key_preview(name: str) -> str:
    value = os.getenv(name, "")
    return value[:15] + "..." if value else "not set"

def _sse(payload: dict) -> str:
    return f"data: {json.dumps(payload)}\n\n"


@app.get("/api/check-env")
def check_env():
    return {
        "openai_configured": bool(os.getenv("OPENAI_API_KEY")),
        "youtube_configured": bool(os.getenv("YOUTUBE_API_KEY")),
        "openai_preview": _key_preview("OPENAI_API_KEY"),
        "youtube_preview": _key_preview("YOUTUBE_API_KEY"),
    }

@app.get("/api/trends")
def list_trends(store: Store = Depends(get_store)):
    return {"success": True, "trends": [t.model_dump(mode="json") for t in store.get_all_trends()]}

@app.post("/api/fetch-trends")
async def refresh_trends(store: Store = Depends(get_store)):
    await fetch_trends(store)
    return {"success": True, "trends": [t.model_dump(mode="json") for t in store.get_all_trends()]}

@app.post("/api/add-manual-trend")
def add_manual_trend(req: ManualTrendRequest, store: Store = Depends(get_store)):
    try:
        trend = make_manual_trend(req.title, req.description)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    store.insert_trend(trend)
    return {"success": True, "trend": trend.model_dump(mode="json")}

@app.get("/api/recommendations")
def list_recommendations(store: Store = Depends(get_store)):
    outputs = build_recommendation_outputs(store)
    return {"success": True, "recommendations": [o.model_dump(mode="json") for o in outputs]}

@app.get("/api/trends/{trend_id}/youtube-suggestions")
async def youtube_suggestions(trend_id: str, max_results: int = 10, store: Store = Depends(get_store),
                              generator: GenerationProvider = Depends(get_generator)):
    trend = store.get_trend(trend_id)
    if not trend:
        raise HTTPException(status_code=404, detail=f"Trend not found: {trend_id}")
    query = await extract_search_topic(generator, trend.title)
    suggestions = await asyncio.to_thread(get_youtube_title_suggestions, query, max_results)
    return {"success": True, "query": query, "suggestions": [s.model_dump() for s in suggestions]}


async def _match_events(store: Store, embedder: EmbeddingProvider, generator: GenerationProvider,
                        trend_ids: List[str], settings: MatchSettings):
    """Run the orchestrator as a producer task and relay its events from a queue."""
    queue: asyncio.Queue = asyncio.Queue()
    task = asyncio.create_task(run_match(store, embedder, generator, trend_ids=trend_ids,
                                         settings=settings, sink=queue.put_nowait))
    task.add_done_callback(lambda _: queue.put_nowait(None))
    while True:
        event = await queue.get()
        if event is None:
            break
        yield _sse(event.model_dump(mode="json", exclude_none=True))
    exc = task.exception()
    if exc:
        logger.error(f"[server] match run failed: {exc!r}")
        yield _sse({"type": "error", "error": str(exc)})

@app.post("/api/match-selected")
async def match_selected(req: MatchRequest, store: Store = Depends(get_store),
                         embedder: EmbeddingProvider = Depends(get_embedder),
                         generator: GenerationProvider = Depends(get_generator),
                         settings: MatchSettings = Depends(get_settings)):
    if not req.trend_ids:
        raise HTTPException(status_code=400, detail="No trends selected")
    return StreamingResponse(
        _match_events(store, embedder, generator, req.trend_ids, settings),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("server:app", host="0.0.0.0", port=int(os.getenv("PORT", "3000")))

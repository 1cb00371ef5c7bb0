import json

import pytest
from fastapi.testclient import TestClient

import server
from models import MatchSettings

from conftest import FakeEmbedder, FakeGenerator, add_video, make_trend, passing_evaluation


@pytest.fixture
def client(store):
    generator = FakeGenerator(default=passing_evaluation())
    server.app.dependency_overrides[server.get_store] = lambda: store
    server.app.dependency_overrides[server.get_embedder] = lambda: FakeEmbedder()
    server.app.dependency_overrides[server.get_generator] = lambda: generator
    server.app.dependency_overrides[server.get_settings] = lambda: MatchSettings()
    yield TestClient(server.app)
    server.app.dependency_overrides.clear()


def _events(body: str):
    return [json.loads(line[len("data: "):]) for line in body.splitlines() if line.startswith("data: ")]


def test_manual_trend_roundtrip(client):
    resp = client.post("/api/add-manual-trend", json={"title": "Gold rate today", "description": "Gold up 2%"})
    assert resp.status_code == 200
    trend = resp.json()["trend"]
    assert trend["summary"] == "Gold up 2%"

    listed = client.get("/api/trends").json()["trends"]
    assert [t["trend_id"] for t in listed] == [trend["trend_id"]]


def test_manual_trend_requires_title(client):
    assert client.post("/api/add-manual-trend", json={"title": "  "}).status_code == 400


def test_match_requires_trend_ids(client):
    assert client.post("/api/match-selected", json={"trendIds": []}).status_code == 400


def test_match_streams_progress_events(client, store):
    store.insert_trend(make_trend("t1"))
    add_video(store, "v1", [0.9], title="Salary explained")

    resp = client.post("/api/match-selected", json={"trendIds": ["t1"]})
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/event-stream")

    events = _events(resp.text)
    assert [e["type"] for e in events] == ["start", "trend", "candidates", "accepted", "complete"]
    assert events[-1]["summary"]["accepted"] == 1

    recs = client.get("/api/recommendations").json()["recommendations"]
    assert [(r["trend"]["trend_id"], r["video"]["video_id"]) for r in recs] == [("t1", "v1")]


def test_suggestions_for_unknown_trend(client):
    assert client.get("/api/trends/nope/youtube-suggestions").status_code == 404


def test_suggestions_use_model_topic(client, store, monkeypatch):
    monkeypatch.delenv("YOUTUBE_API_KEY", raising=False)
    store.insert_trend(make_trend("t1", title="RBI holds repo rate - Reuters"))
    server.app.dependency_overrides[server.get_generator] = lambda: FakeGenerator(default="repo rate")

    resp = client.get("/api/trends/t1/youtube-suggestions")
    assert resp.status_code == 200
    assert resp.json() == {"success": True, "query": "repo rate", "suggestions": []}

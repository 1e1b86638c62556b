import re

import pytest

from conftest import sentiment_json
from oracle_client import OracleCallError

ISO_Z = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z$")


@pytest.mark.asyncio
async def test_create_entry_stores_analysis(make_app, fake_oracle, memory_store, build_client):
    fake_oracle.replies["sentiment"] = "```json\n" + sentiment_json(0.7, "positive", joy=0.8) + "\n```"

    async with build_client(make_app()) as ac:
        resp = await ac.post("/api/entries", json={"content": "Great day at the lake"})

    assert resp.status_code == 200
    body = resp.json()
    assert body["content"] == "Great day at the lake"
    assert body["sentiment_score"] == 0.7
    assert body["sentiment_label"] == "positive"
    assert body["emotions"] == {"joy": 0.8, "sadness": 0.0, "anger": 0.0, "fear": 0.0}
    assert ISO_Z.match(body["created_at"])
    assert body["id"]

    [stored] = memory_store.list_entries()
    assert stored.id == body["id"]
    assert fake_oracle.ops() == ["sentiment"]
    assert fake_oracle.calls[0]["temperature"] is None
    assert "Great day at the lake" in fake_oracle.calls[0]["user"]


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", [{}, {"content": ""}, {"content": "   "}])
async def test_create_entry_rejects_blank_content(make_app, fake_oracle, memory_store, build_client, payload):
    async with build_client(make_app()) as ac:
        resp = await ac.post("/api/entries", json=payload)

    assert resp.status_code == 400
    assert "error" in resp.json()
    assert fake_oracle.calls == []
    assert memory_store.list_entries() == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "reply",
    [
        OracleCallError("down"),
        "I feel that this entry is rather positive.",
        '{"score": 0.1, "label": "great", "emotions": {}}',
        '{"score": 0.1, "label": "positive", "emotions": {"joy": Infinity}}',
    ],
)
async def test_create_entry_failure_stores_nothing(make_app, fake_oracle, memory_store, build_client, reply):
    fake_oracle.replies["sentiment"] = reply

    async with build_client(make_app()) as ac:
        resp = await ac.post("/api/entries", json={"content": "hello"})

    assert resp.status_code == 500
    assert resp.json() == {"error": "AI analysis failed"}
    assert memory_store.list_entries() == []


@pytest.mark.asyncio
async def test_list_entries_newest_first(make_app, fake_oracle, build_client):
    labels = iter(["positive", "negative", "neutral"])
    fake_oracle.replies["sentiment"] = lambda _user: sentiment_json(0.0, next(labels))

    async with build_client(make_app()) as ac:
        for text in ("first", "second", "third"):
            r = await ac.post("/api/entries", json={"content": text})
            assert r.status_code == 200
        resp = await ac.get("/api/entries")

    assert resp.status_code == 200
    rows = resp.json()
    assert [r["content"] for r in rows] == ["third", "second", "first"]
    assert [r["sentiment_label"] for r in rows] == ["neutral", "negative", "positive"]


@pytest.mark.asyncio
async def test_list_entries_empty(make_app, build_client):
    async with build_client(make_app()) as ac:
        resp = await ac.get("/api/entries")
    assert resp.status_code == 200
    assert resp.json() == []


@pytest.mark.asyncio
async def test_healthz(make_app, build_client):
    async with build_client(make_app()) as ac:
        resp = await ac.get("/healthz")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"

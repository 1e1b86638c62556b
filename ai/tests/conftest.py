import json
from typing import Any, Callable, Dict, List, Optional, Union

import pytest
from httpx import ASGITransport, AsyncClient

from analysis_engine import DiaryEntry
from entry_store import InMemoryEntryStore

Reply = Union[str, Exception, Callable[[str], Union[str, Exception]]]


class FakeOracle:
    """Records every call and answers from a per-op table."""

    def __init__(self, replies: Optional[Dict[str, Reply]] = None) -> None:
        self.replies: Dict[str, Reply] = dict(replies or {})
        self.calls: List[Dict[str, Any]] = []
        self.closed = False

    async def complete(self, system_prompt, user_content, *, temperature=None, op=""):
        self.calls.append(
            {"system": system_prompt, "user": user_content, "temperature": temperature, "op": op}
        )
        reply = self.replies.get(op)
        if callable(reply) and not isinstance(reply, Exception):
            reply = reply(user_content)
        if isinstance(reply, Exception):
            raise reply
        if reply is None:
            raise AssertionError(f"unexpected oracle op: {op}")
        return reply

    async def aclose(self) -> None:
        self.closed = True

    def ops(self) -> List[str]:
        return [c["op"] for c in self.calls]


def sentiment_json(score=0.5, label="positive", **emotions) -> str:
    emo = {"joy": 0, "sadness": 0, "anger": 0, "fear": 0}
    emo.update(emotions)
    return json.dumps({"score": score, "label": label, "emotions": emo})


def make_entry(i: int, content: Optional[str] = None, created_at: Optional[str] = None, **kw) -> DiaryEntry:
    return DiaryEntry(
        id=kw.get("id", f"e{i}"),
        content=content if content is not None else f"entry {i}",
        sentiment_score=kw.get("sentiment_score", 0.0),
        sentiment_label=kw.get("sentiment_label", "neutral"),
        emotions=kw.get("emotions", {"joy": 0.0, "sadness": 0.0, "anger": 0.0, "fear": 0.0}),
        created_at=created_at or f"2026-01-{i:02d}T10:00:00.000Z",
    )


@pytest.fixture
def fake_oracle():
    return FakeOracle()


@pytest.fixture
def memory_store():
    return InMemoryEntryStore()


@pytest.fixture
def build_client():
    def _build(app):
        return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")

    return _build


@pytest.fixture
def make_app(memory_store, fake_oracle):
    from app import create_app

    def _make(**kwargs):
        kwargs.setdefault("store", memory_store)
        kwargs.setdefault("oracle", fake_oracle)
        return create_app(**kwargs)

    return _make

# -*- coding: utf-8 -*-
"""
Judge / Sabotage API
--------------------
- GET /api/judge-all   benefit / risk / morality judgment for every entry
- GET /api/sabotage    procrastination / self-deception / loops for every entry

Both read the whole diary (oldest first) and fan the oracle calls out
concurrently, capped by ORACLE_MAX_CONCURRENCY. Results come back in diary
order. One failed entry fails the whole response (no partial results).
Nothing computed here is persisted.
"""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional

from fastapi import FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from diary_analysis import Oracle, judge_entries, sabotage_entries
from entry_store import EntryRepository
from ui_text_templates import ui_text

logger = logging.getLogger("diary_judge")


# ---------- Pydantic models ----------


class JudgmentItem(BaseModel):
    id: str
    date: str
    content: str
    benefit: float
    risk: float
    morality: float
    consequences: str
    verdict: str


class JudgeAllResponse(BaseModel):
    results: List[JudgmentItem]


class SabotageItem(BaseModel):
    id: str
    date: str
    content: str
    procrastination: float
    self_deception: float
    loops: float
    summary: str


class SabotageAllResponse(BaseModel):
    results: List[SabotageItem]


# ---------- Route registration ----------


def register_judge_routes(
    app: FastAPI,
    *,
    store: EntryRepository,
    oracle: Oracle,
    max_concurrency: Optional[int] = None,
) -> None:
    """Register /api/judge-all and /api/sabotage on ``app``."""

    @app.get("/api/judge-all", response_model=JudgeAllResponse)
    async def judge_all():
        try:
            entries = await asyncio.to_thread(store.list_entries)
            results = await judge_entries(oracle, entries, limit=max_concurrency) if entries else []
        except Exception as exc:
            logger.error("AI judge failed: %s: %s", type(exc).__name__, exc)
            return JSONResponse(status_code=500, content={"error": ui_text("judge_failed")})
        return JudgeAllResponse(results=[JudgmentItem(**r) for r in results])

    @app.get("/api/sabotage", response_model=SabotageAllResponse)
    async def sabotage_all():
        try:
            entries = await asyncio.to_thread(store.list_entries)
            results = await sabotage_entries(oracle, entries, limit=max_concurrency) if entries else []
        except Exception as exc:
            logger.error("Sabotage detector failed: %s: %s", type(exc).__name__, exc)
            return JSONResponse(status_code=500, content={"error": ui_text("sabotage_failed")})
        return SabotageAllResponse(results=[SabotageItem(**r) for r in results])

# -*- coding: utf-8 -*-
"""
Diary Entries API
-----------------
- POST /api/entries   analyse sentiment once, then store the entry
- GET  /api/entries   every stored entry, newest first

Notes:
- Entries are immutable. There is no update or delete endpoint.
- created_at is assigned here (UTC, ISO-8601 with milliseconds and "Z") and is
  the only ordering key the store knows about.
- Any oracle or store failure during creation becomes a fixed 500 payload;
  the client cannot tell the two apart.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from datetime import datetime, timezone
from typing import Dict, List, Optional

from fastapi import FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from analysis_engine import DiaryEntry
from diary_analysis import Oracle, analyze_sentiment
from entry_store import EntryRepository
from observability import log_event
from ui_text_templates import ui_text

logger = logging.getLogger("diary_entries")


def _iso_z_now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


# ---------- Pydantic models ----------


class EntryCreateRequest(BaseModel):
    content: Optional[str] = Field(default=None, description="Diary text")


class EntryResponse(BaseModel):
    id: str
    content: str
    sentiment_score: float
    sentiment_label: str
    emotions: Dict[str, float]
    created_at: str


# ---------- Route registration ----------


def register_entry_routes(app: FastAPI, *, store: EntryRepository, oracle: Oracle) -> None:
    """Register /api/entries (create + list) on ``app``."""

    @app.post("/api/entries", response_model=EntryResponse)
    async def create_entry(payload: EntryCreateRequest):
        content = payload.content
        if content is None or not content.strip():
            return JSONResponse(status_code=400, content={"error": ui_text("content_required")})

        try:
            analysis = await analyze_sentiment(oracle, content)
            entry = DiaryEntry(
                id=str(uuid.uuid4()),
                content=content,
                sentiment_score=analysis.score,
                sentiment_label=analysis.label,
                emotions=analysis.emotions.model_dump(),
                created_at=_iso_z_now(),
            )
            await asyncio.to_thread(store.append, entry)
        except Exception as exc:
            logger.error("Entry creation failed: %s: %s", type(exc).__name__, exc)
            return JSONResponse(status_code=500, content={"error": ui_text("analysis_failed")})

        log_event(
            logger,
            "entry_created",
            entry_id=entry.id,
            content_len=len(content),
            label=entry.sentiment_label,
        )
        return EntryResponse(**entry.to_dict())

    @app.get("/api/entries", response_model=List[EntryResponse])
    async def list_entries() -> List[EntryResponse]:
        entries = await asyncio.to_thread(store.list_entries, descending=True)
        return [EntryResponse(**e.to_dict()) for e in entries]

# -*- coding: utf-8 -*-
"""
Diary Forecast API
------------------
- POST /api/forecast              one-year projection from one text (plain text)
- POST /api/forecast-structured   same input, JSON forecast {overallSentiment, avgEmotions, advice}
- POST /api/future-full           one-year projection from the whole history (one oracle call)
- POST /api/future-detailed       per-entry sentiment + comment, aggregated

Design notes:
- Blank text is rejected with 400 before any oracle call.
- An empty diary is not an error: the history endpoints answer with the
  "no data" message under the ``forecast`` key.
- future-detailed walks the history one entry at a time (two oracle calls per
  entry), so its latency grows with the diary. Any failure aborts the whole
  response.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from analysis_engine import EmotionVector
from diary_analysis import (
    Oracle,
    detailed_forecast,
    forecast_from_history,
    forecast_from_text,
    structured_forecast,
)
from entry_store import EntryRepository
from observability import log_event
from ui_text_templates import ui_text

logger = logging.getLogger("diary_forecast")


# ---------- Pydantic models ----------


class ForecastRequest(BaseModel):
    text: Optional[str] = Field(default=None, description="Text to project one year ahead")


class ForecastResponse(BaseModel):
    forecast: str


class StructuredForecastResponse(BaseModel):
    overallSentiment: str
    avgEmotions: EmotionVector
    advice: str


def _blank(text: Optional[str]) -> bool:
    return text is None or not text.strip()


# ---------- Route registration ----------


def register_forecast_routes(app: FastAPI, *, store: EntryRepository, oracle: Oracle) -> None:
    """Register the forecast endpoints on ``app``."""

    @app.post("/api/forecast", response_model=ForecastResponse)
    async def forecast(payload: ForecastRequest):
        if _blank(payload.text):
            return JSONResponse(status_code=400, content={"error": ui_text("forecast_text_required")})
        try:
            text = await forecast_from_text(oracle, payload.text or "")
        except Exception as exc:
            logger.error("Forecast failed: %s: %s", type(exc).__name__, exc)
            return JSONResponse(status_code=500, content={"error": ui_text("forecast_failed")})
        return ForecastResponse(forecast=text)

    @app.post("/api/forecast-structured", response_model=StructuredForecastResponse)
    async def forecast_structured(payload: ForecastRequest):
        if _blank(payload.text):
            return JSONResponse(status_code=400, content={"error": ui_text("forecast_text_required")})
        try:
            result = await structured_forecast(oracle, payload.text or "")
        except Exception as exc:
            logger.error("Structured forecast failed: %s: %s", type(exc).__name__, exc)
            return JSONResponse(status_code=500, content={"error": ui_text("forecast_failed")})
        return StructuredForecastResponse(**result.model_dump())

    @app.post("/api/future-full", response_model=ForecastResponse)
    async def future_full():
        try:
            entries = await asyncio.to_thread(store.list_entries)
            if not entries:
                return ForecastResponse(forecast=ui_text("history_empty"))
            text = await forecast_from_history(oracle, entries)
        except Exception as exc:
            logger.error("History forecast failed: %s: %s", type(exc).__name__, exc)
            return JSONResponse(status_code=500, content={"forecast": ui_text("history_forecast_failed")})
        log_event(logger, "history_forecast_complete", entries=len(entries))
        return ForecastResponse(forecast=text)

    @app.post("/api/future-detailed")
    async def future_detailed() -> Dict[str, Any]:
        try:
            entries = await asyncio.to_thread(store.list_entries)
            if not entries:
                return {"forecast": ui_text("history_empty")}
            result = await detailed_forecast(oracle, entries, advice=ui_text("detailed_forecast_advice"))
        except Exception as exc:
            logger.error("Detailed forecast failed: %s: %s", type(exc).__name__, exc)
            return JSONResponse(status_code=500, content={"error": ui_text("detailed_forecast_failed")})
        return result.to_dict()

# -*- coding: utf-8 -*-
"""diary_analysis.py

Entry analysis pipeline
-----------------------

Each operation here is: render prompt -> one oracle call -> normalize ->
extract (JSON schemas) or pass through (plain text). Multi-entry operations
build on those:

- detailed_forecast:   per entry, sentiment + comment, strictly one entry at a
                       time, then aggregated (analysis_engine.aggregate)
- judge_entries /
  sabotage_entries:    concurrent fan-out bounded by ORACLE_MAX_CONCURRENCY,
                       results in input order, all-or-nothing
- batch_comments:      serial; a failing item gets the placeholder and the
                       batch continues

Environment
- ORACLE_MAX_CONCURRENCY (default 4; 0 or negative = unbounded)
"""

from __future__ import annotations

import asyncio
import logging
import os
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol, Sequence, TypeVar

from analysis_engine import (
    AggregateForecast,
    DetailedDay,
    DiaryEntry,
    SentimentAnalysis,
    StructuredForecast,
    assemble_forecast,
    clean_oracle_text,
    parse_forecast,
    parse_judgment,
    parse_sabotage,
    parse_sentiment,
)
from observability import elapsed_ms, log_event, monotonic_ms, new_run_id
from prompt_templates import render_prompt_template

logger = logging.getLogger("diary_analysis")

try:
    ORACLE_MAX_CONCURRENCY = int(os.getenv("ORACLE_MAX_CONCURRENCY", "4") or "4")
except ValueError:
    ORACLE_MAX_CONCURRENCY = 4


class Oracle(Protocol):
    async def complete(
        self,
        system_prompt: str,
        user_content: str,
        *,
        temperature: Optional[float] = None,
        op: str = "",
    ) -> str:
        ...

    async def aclose(self) -> None:
        ...


T = TypeVar("T")
R = TypeVar("R")


async def _ask(oracle: Oracle, template_id: str, template_vars: Dict[str, Any], *, op: str) -> str:
    p = render_prompt_template(template_id, template_vars)
    return await oracle.complete(p.system, p.user, temperature=p.temperature, op=op)


# ----------------------------
# Single-call operations
# ----------------------------


async def analyze_sentiment(oracle: Oracle, text: str) -> SentimentAnalysis:
    raw = await _ask(oracle, "sentiment_v1", {"text": text}, op="sentiment")
    return parse_sentiment(raw)


async def generate_comment(oracle: Oracle, text: str) -> str:
    raw = await _ask(oracle, "comment_v1", {"text": text}, op="comment")
    return clean_oracle_text(raw)


async def forecast_from_text(oracle: Oracle, text: str) -> str:
    raw = await _ask(oracle, "forecast_text_v1", {"text": text}, op="forecast")
    return clean_oracle_text(raw)


def format_history(entries: Sequence[DiaryEntry]) -> str:
    return "\n".join(f"{e.created_at}: {e.content}" for e in entries)


async def forecast_from_history(oracle: Oracle, entries: Sequence[DiaryEntry]) -> str:
    # One prompt for the whole history; its size grows with the diary.
    history = format_history(entries)
    raw = await _ask(oracle, "history_forecast_v1", {"history": history}, op="history_forecast")
    return clean_oracle_text(raw)


async def structured_forecast(oracle: Oracle, text: str) -> StructuredForecast:
    raw = await _ask(oracle, "forecast_json_v1", {"text": text}, op="structured_forecast")
    return parse_forecast(raw)


async def judge_entry(oracle: Oracle, entry: DiaryEntry) -> Dict[str, Any]:
    raw = await _ask(oracle, "judge_v1", {"text": entry.content}, op="judge")
    j = parse_judgment(raw)
    return {
        "id": entry.id,
        "date": entry.created_at,
        "content": entry.content,
        **j.model_dump(),
    }


async def detect_sabotage(oracle: Oracle, entry: DiaryEntry) -> Dict[str, Any]:
    raw = await _ask(oracle, "sabotage_v1", {"text": entry.content}, op="sabotage")
    s = parse_sabotage(raw)
    return {
        "id": entry.id,
        "date": entry.created_at,
        "content": entry.content,
        **s.model_dump(),
    }


# ----------------------------
# Multi-entry operations
# ----------------------------


async def fan_out(
    items: Sequence[T],
    worker: Callable[[T], Awaitable[R]],
    *,
    limit: Optional[int] = None,
) -> List[R]:
    """Run ``worker`` over ``items`` concurrently, returning results in input order.

    At most ``limit`` calls are in flight (``<= 0`` means no cap). The first
    failure propagates once every call has been scheduled; there are no partial
    results.
    """
    cap = ORACLE_MAX_CONCURRENCY if limit is None else limit
    if cap <= 0:
        return list(await asyncio.gather(*[worker(it) for it in items]))

    sem = asyncio.Semaphore(cap)

    async def one(it: T) -> R:
        async with sem:
            return await worker(it)

    return list(await asyncio.gather(*[one(it) for it in items]))


async def judge_entries(oracle: Oracle, entries: Sequence[DiaryEntry], *, limit: Optional[int] = None) -> List[Dict[str, Any]]:
    start_ms = monotonic_ms()
    run_id = new_run_id("judge")
    results = await fan_out(entries, lambda e: judge_entry(oracle, e), limit=limit)
    log_event(logger, "judge_all_complete", run_id=run_id, count=len(results), duration_ms=elapsed_ms(start_ms))
    return results


async def sabotage_entries(oracle: Oracle, entries: Sequence[DiaryEntry], *, limit: Optional[int] = None) -> List[Dict[str, Any]]:
    start_ms = monotonic_ms()
    run_id = new_run_id("sabotage")
    results = await fan_out(entries, lambda e: detect_sabotage(oracle, e), limit=limit)
    log_event(logger, "sabotage_all_complete", run_id=run_id, count=len(results), duration_ms=elapsed_ms(start_ms))
    return results


async def detailed_forecast(oracle: Oracle, entries: Sequence[DiaryEntry], *, advice: str) -> AggregateForecast:
    """Re-analyse every entry (sentiment, then comment) one at a time and aggregate.

    Sentiment is derived again rather than read from storage, so it can differ
    from the stored label when the oracle is not deterministic.
    """
    start_ms = monotonic_ms()
    run_id = new_run_id("detailed")
    days: List[DetailedDay] = []
    for e in entries:
        analysis = await analyze_sentiment(oracle, e.content)
        comment = await generate_comment(oracle, e.content)
        days.append(
            DetailedDay(
                id=e.id,
                date=e.created_at,
                content=e.content,
                sentiment=analysis.label,
                emotions=analysis.emotions.model_dump(),
                comment=comment,
            )
        )
    log_event(logger, "detailed_forecast_complete", run_id=run_id, count=len(days), duration_ms=elapsed_ms(start_ms))
    return assemble_forecast(days, advice)


async def batch_comments(oracle: Oracle, items: Sequence[Dict[str, Any]], *, placeholder: str) -> List[Dict[str, Any]]:
    results: List[Dict[str, Any]] = []
    failed = 0
    for it in items:
        item_id = it.get("id")
        try:
            comment = await generate_comment(oracle, str(it.get("content") or ""))
        except Exception as exc:
            failed += 1
            logger.warning("Batch comment failed for id=%s: %s", item_id, type(exc).__name__)
            comment = placeholder
        results.append({"id": item_id, "comment": comment})
    log_event(logger, "comments_batch_complete", count=len(results), failed=failed)
    return results

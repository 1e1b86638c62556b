# -*- coding: utf-8 -*-
"""
Diary Oracle API
----------------
- POST /api/entries, GET /api/entries     : store / list diary entries
- POST /api/comment, /api/comments-batch  : psychologist comments
- POST /api/forecast, /api/forecast-structured, /api/future-full, /api/future-detailed
- GET  /api/judge-all, /api/sabotage      : on-demand per-entry judgments
- GET  /healthz                           : health check
Notes:
- No authentication, single tenant, one SQLite table.
- Every enrichment is a call to the remote chat-completion model (the oracle).
- Judge / sabotage results are never persisted.
"""

from __future__ import annotations

import asyncio
import logging
import os
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from dotenv import find_dotenv, load_dotenv

# .env from the working directory; must run before the api_* / oracle_client
# imports, which read their config at import time. Real env vars win.
load_dotenv(find_dotenv(usecwd=True))

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api_comments import register_comment_routes
from api_entries import register_entry_routes
from api_forecast import register_forecast_routes
from api_judge import register_judge_routes
from diary_analysis import Oracle
from entry_store import EntryRepository, SqliteEntryStore
from oracle_client import OracleClient

APP_NAME = os.getenv("DIARY_APP_NAME", "Diary Oracle")
PORT = int(os.getenv("PORT", "4000") or "4000")
HOST = os.getenv("DIARY_HOST", "0.0.0.0")
# Comma-separated list of allowed origins; "*" allows any.
ALLOWED_ORIGINS_RAW = os.getenv("DIARY_CORS_ORIGINS", "*")
ALLOWED_ORIGINS = [o.strip() for o in ALLOWED_ORIGINS_RAW.split(",") if o.strip()] or ["*"]

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger("diary")


def create_app(
    *,
    store: Optional[EntryRepository] = None,
    oracle: Optional[Oracle] = None,
    max_concurrency: Optional[int] = None,
) -> FastAPI:
    """Build the API around one store and one oracle (defaults: SQLite file + remote model)."""
    entry_store: EntryRepository = store if store is not None else SqliteEntryStore()
    oracle_client: Oracle = oracle if oracle is not None else OracleClient()

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        await asyncio.to_thread(entry_store.ensure_schema)
        logger.info("%s ready", APP_NAME)
        try:
            yield
        finally:
            await oracle_client.aclose()

    app = FastAPI(title=APP_NAME, version="1.0.0", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_entry_routes(app, store=entry_store, oracle=oracle_client)
    register_comment_routes(app, oracle=oracle_client)
    register_forecast_routes(app, store=entry_store, oracle=oracle_client)
    register_judge_routes(app, store=entry_store, oracle=oracle_client, max_concurrency=max_concurrency)

    @app.get("/healthz")
    def healthz() -> Dict[str, Any]:
        return {"status": "ok", "app": APP_NAME}

    return app


app = create_app()


# ---------- Entrypoint ----------
if __name__ == "__main__":
    import uvicorn
    uvicorn.run("app:app", host=HOST, port=PORT, log_level="info")

# -*- coding: utf-8 -*-
"""entry_store.py

Diary entry repository
----------------------

The analysis pipeline only needs two operations, so every backend implements
exactly these:

- ``append(entry)``                         store one immutable entry
- ``list_entries(descending=False)``        full scan ordered by created_at

Backends
- ``SqliteEntryStore``: one file-backed ``entries`` table (created idempotently
  on first connection / at startup). One connection shared by all requests,
  each statement serialized by a lock.
- ``InMemoryEntryStore``: same contract, used by tests and local experiments.

Both are blocking. Async callers go through ``asyncio.to_thread``.

Notes
- There is no update and no delete. Entries are append-only.
- created_at is the sole ordering key; insertion order breaks ties.
"""

from __future__ import annotations

import json
import logging
import os
import sqlite3
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Union

from analysis_engine import EMOTION_KEYS, DiaryEntry

logger = logging.getLogger("entry_store")

DIARY_DB_PATH = os.getenv("DIARY_DB_PATH", "").strip() or "diary.db"

_SCHEMA = """
CREATE TABLE IF NOT EXISTS entries (
  id TEXT PRIMARY KEY,
  content TEXT,
  sentiment_score REAL,
  sentiment_label TEXT,
  emotions TEXT,
  created_at TEXT
)
"""


class EntryRepository(Protocol):
    def ensure_schema(self) -> None:
        ...

    def append(self, entry: DiaryEntry) -> DiaryEntry:
        ...

    def list_entries(self, *, descending: bool = False) -> List[DiaryEntry]:
        ...


def _decode_emotions(raw: Any) -> Dict[str, float]:
    if isinstance(raw, dict):
        data = raw
    else:
        try:
            data = json.loads(raw) if raw else {}
        except ValueError:
            logger.warning("Stored emotions are not valid JSON; treating as empty")
            data = {}
    if not isinstance(data, dict):
        return {}
    out: Dict[str, float] = {}
    for k in EMOTION_KEYS:
        v = data.get(k)
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            out[k] = float(v)
    return out


def _row_to_entry(row: sqlite3.Row) -> DiaryEntry:
    return DiaryEntry(
        id=str(row["id"]),
        content=row["content"] or "",
        sentiment_score=float(row["sentiment_score"] or 0.0),
        sentiment_label=str(row["sentiment_label"] or "neutral"),
        emotions=_decode_emotions(row["emotions"]),
        created_at=str(row["created_at"] or ""),
    )


class SqliteEntryStore:
    def __init__(self, path: Optional[Union[str, Path]] = None) -> None:
        self.path = str(path or DIARY_DB_PATH)
        self._conn: Optional[sqlite3.Connection] = None
        self._lock = threading.Lock()

    # ---------- Public API ----------

    def ensure_schema(self) -> None:
        with self._lock:
            self._connect()

    def append(self, entry: DiaryEntry) -> DiaryEntry:
        with self._lock:
            conn = self._connect()
            with conn:
                conn.execute(
                    "INSERT INTO entries (id, content, sentiment_score, sentiment_label, emotions, created_at)"
                    " VALUES (?, ?, ?, ?, ?, ?)",
                    (
                        entry.id,
                        entry.content,
                        entry.sentiment_score,
                        entry.sentiment_label,
                        json.dumps(entry.emotions, ensure_ascii=False),
                        entry.created_at,
                    ),
                )
        return entry

    def list_entries(self, *, descending: bool = False) -> List[DiaryEntry]:
        order = "DESC" if descending else "ASC"
        with self._lock:
            conn = self._connect()
            rows = conn.execute(
                f"SELECT * FROM entries ORDER BY created_at {order}, rowid {order}"
            ).fetchall()
        return [_row_to_entry(r) for r in rows]

    def close(self) -> None:
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None

    # ---------- Internal ----------

    def _connect(self) -> sqlite3.Connection:
        if self._conn is None:
            if self.path != ":memory:":
                Path(self.path).parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(self.path, check_same_thread=False)
            conn.row_factory = sqlite3.Row
            conn.execute(_SCHEMA)
            conn.commit()
            self._conn = conn
            logger.info("Opened diary store at %s", self.path)
        return self._conn


class InMemoryEntryStore:
    def __init__(self, entries: Optional[List[DiaryEntry]] = None) -> None:
        self._entries: List[DiaryEntry] = list(entries or [])
        self._lock = threading.Lock()

    def ensure_schema(self) -> None:
        pass

    def append(self, entry: DiaryEntry) -> DiaryEntry:
        with self._lock:
            self._entries.append(entry)
        return entry

    def list_entries(self, *, descending: bool = False) -> List[DiaryEntry]:
        with self._lock:
            indexed = list(enumerate(self._entries))
        indexed.sort(key=lambda it: (it[1].created_at, it[0]), reverse=descending)
        return [e for _, e in indexed]

# -*- coding: utf-8 -*-
"""observability.py

Structured logs for the diary backend
-------------------------------------

Goals
- When the oracle is slow or down, make it obvious from the logs which
  endpoint / which op stalled and for how long.
- Keep diary text out of the logs. Only ids, lengths, counts and timings.

Approach
- Emit single-line JSON through the standard ``logging`` module so any log
  collector can filter on ``event``.
- ``log_alert`` additionally writes a stable plain marker line
  (``ALERT::KEY k=v ...``) that is easy to grep or hook a log alert on.

Environment
- OBS_LOG_JSON=true/false (default true)
- OBS_ALERT_MARKERS_ENABLED=true/false (default true)
- OBS_ALERT_PREFIX (default "ALERT::")
- OBS_ALERT_KV_MAX_LEN (default 200)
"""

from __future__ import annotations

import json
import logging
import os
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Dict


OBS_LOG_JSON = (os.getenv("OBS_LOG_JSON", "true").strip().lower() != "false")
OBS_ALERT_MARKERS_ENABLED = (os.getenv("OBS_ALERT_MARKERS_ENABLED", "true").strip().lower() != "false")
OBS_ALERT_PREFIX = (os.getenv("OBS_ALERT_PREFIX", "ALERT::") or "ALERT::").strip() or "ALERT::"
try:
    OBS_ALERT_KV_MAX_LEN = int(os.getenv("OBS_ALERT_KV_MAX_LEN", "200") or "200")
except ValueError:
    OBS_ALERT_KV_MAX_LEN = 200


def _iso_now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _render(value: Any) -> str:
    try:
        return str(value)
    except Exception:
        return repr(value)


def _json_line(obj: Dict[str, Any]) -> str:
    return json.dumps(obj, ensure_ascii=False, separators=(",", ":"), default=_render)


def log_event(logger: logging.Logger, event: str, *, level: str = "info", **fields: Any) -> None:
    """One line per event (JSON unless OBS_LOG_JSON=false).

    None-valued fields are dropped, so optional context such as ``op`` or
    ``run_id`` can be passed unconditionally.
    """
    payload: Dict[str, Any] = {"ts": _iso_now(), "event": event}
    payload.update((k, v) for k, v in fields.items() if v is not None)
    emit = getattr(logger, level, logger.info)
    emit(_json_line(payload) if OBS_LOG_JSON else f"{event} {payload}")


def _marker_value(value: Any) -> str:
    s = " ".join(_render(value).split())
    if 0 < OBS_ALERT_KV_MAX_LEN < len(s):
        s = s[: max(0, OBS_ALERT_KV_MAX_LEN - 3)] + "..."
    return s


def alert_marker(alert_key: str, fields: Dict[str, Any]) -> str:
    """e.g. ``ALERT::ORACLE_TIMEOUT op=judge duration_ms=120004``"""
    parts = [f"{OBS_ALERT_PREFIX}{alert_key}"]
    parts.extend(f"{k}={_marker_value(v)}" for k, v in fields.items() if v is not None)
    return " ".join(parts)


def log_alert(logger: logging.Logger, alert_key: str, *, level: str = "warning", **fields: Any) -> None:
    log_event(logger, "alert", level=level, alert_key=alert_key, **fields)
    if OBS_ALERT_MARKERS_ENABLED:
        getattr(logger, level, logger.warning)(alert_marker(alert_key, fields))


# ----------------------------
# Run context helpers
# ----------------------------

def new_run_id(prefix: str = "run") -> str:
    """Short id to correlate the oracle calls of one request."""
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


def monotonic_ms() -> float:
    return time.monotonic() * 1000.0


def elapsed_ms(start_ms: float) -> int:
    return int(max(0.0, monotonic_ms() - float(start_ms)))

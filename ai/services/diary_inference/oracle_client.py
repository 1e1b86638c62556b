# -*- coding: utf-8 -*-
"""oracle_client.py

Chat-completion client for the remote model ("oracle")
-----------------------------------------------------

What this module provides
  - ``OracleClient.complete(system, user, temperature=...)``: one request,
    one response, raw text out.
  - A single, lazily-initialized ``httpx.AsyncClient`` per OracleClient
    (connection pooled; closed by ``aclose`` on app shutdown).
  - One opaque failure type, ``OracleCallError``, for transport errors,
    non-2xx answers and malformed envelopes. There is no retry.

Environment
  - DEEPSEEK_API_KEY          bearer credential
  - ORACLE_API_URL            default https://api.deepseek.com/v1/chat/completions
  - ORACLE_MODEL              default deepseek-chat
  - ORACLE_TIMEOUT_SECONDS    per-call timeout, default 120 (0 = no timeout)
  - ORACLE_HTTP_MAX_CONNECTIONS  default 20
  - OBS_ORACLE_SLOW_THRESHOLD_MS default 15000
"""

from __future__ import annotations

import asyncio
import logging
import os
from typing import Any, Dict, List, Optional

import httpx

from observability import elapsed_ms, log_alert, log_event, monotonic_ms

logger = logging.getLogger("oracle_client")


# --- Env / config ---
DEEPSEEK_API_KEY = os.getenv("DEEPSEEK_API_KEY", "")
ORACLE_API_URL = (
    os.getenv("ORACLE_API_URL", "").strip() or "https://api.deepseek.com/v1/chat/completions"
)
ORACLE_MODEL = os.getenv("ORACLE_MODEL", "").strip() or "deepseek-chat"

try:
    ORACLE_TIMEOUT_SECONDS = float(os.getenv("ORACLE_TIMEOUT_SECONDS", "120") or "120")
except ValueError:
    ORACLE_TIMEOUT_SECONDS = 120.0

try:
    ORACLE_HTTP_MAX_CONNECTIONS = int(os.getenv("ORACLE_HTTP_MAX_CONNECTIONS", "20") or "20")
except ValueError:
    ORACLE_HTTP_MAX_CONNECTIONS = 20

OBS_ORACLE_SLOW_THRESHOLD_MS = int(os.getenv("OBS_ORACLE_SLOW_THRESHOLD_MS", "15000") or "15000")


class OracleCallError(RuntimeError):
    """The oracle could not be reached or answered with something unusable."""


def _build_timeout(seconds: Optional[float]) -> httpx.Timeout:
    # 0 or negative disables the client-side timeout entirely.
    if seconds is None or seconds <= 0:
        return httpx.Timeout(None)
    return httpx.Timeout(float(seconds))


def _extract_content(data: Any) -> str:
    """Pull ``choices[0].message.content`` out of a chat-completion envelope."""
    if not isinstance(data, dict):
        raise OracleCallError("oracle envelope is not a JSON object")
    choices = data.get("choices")
    if not isinstance(choices, list) or not choices:
        raise OracleCallError("oracle envelope has no choices")
    first = choices[0] if isinstance(choices[0], dict) else {}
    message = first.get("message") if isinstance(first.get("message"), dict) else {}
    content = message.get("content")
    if not isinstance(content, str):
        raise OracleCallError("oracle envelope has no message content")
    return content


class OracleClient:
    def __init__(
        self,
        *,
        api_key: Optional[str] = None,
        api_url: Optional[str] = None,
        model: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.api_key = DEEPSEEK_API_KEY if api_key is None else api_key
        self.api_url = api_url or ORACLE_API_URL
        self.model = model or ORACLE_MODEL
        self.timeout_seconds = ORACLE_TIMEOUT_SECONDS if timeout_seconds is None else timeout_seconds
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        self._client_lock = asyncio.Lock()

    # ---------- Client lifecycle ----------

    async def get_async_client(self) -> httpx.AsyncClient:
        if self._client is not None:
            return self._client

        async with self._client_lock:
            if self._client is None:
                self._client = httpx.AsyncClient(
                    timeout=_build_timeout(self.timeout_seconds),
                    limits=httpx.Limits(max_connections=max(1, ORACLE_HTTP_MAX_CONNECTIONS)),
                    transport=self._transport,
                )
            return self._client

    async def aclose(self) -> None:
        if self._client is None:
            return
        try:
            await self._client.aclose()
        finally:
            self._client = None

    # ---------- Public API ----------

    def build_payload(
        self,
        system_prompt: str,
        user_content: str,
        temperature: Optional[float] = None,
    ) -> Dict[str, Any]:
        messages: List[Dict[str, str]] = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_content},
        ]
        payload: Dict[str, Any] = {"model": self.model, "messages": messages}
        if temperature is not None:
            payload["temperature"] = float(temperature)
        return payload

    async def complete(
        self,
        system_prompt: str,
        user_content: str,
        *,
        temperature: Optional[float] = None,
        op: str = "",
    ) -> str:
        """Send one system+user conversation and return the raw completion text."""
        if not self.api_key:
            log_alert(logger, "ORACLE_API_KEY_MISSING", level="error", op=(op or None))
            raise OracleCallError("oracle credential is not configured")

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        payload = self.build_payload(system_prompt, user_content, temperature)
        client = await self.get_async_client()

        start_ms = monotonic_ms()
        try:
            resp = await client.post(self.api_url, headers=headers, json=payload)
        except httpx.TimeoutException as exc:
            dur = elapsed_ms(start_ms)
            log_alert(logger, "ORACLE_TIMEOUT", level="error", op=(op or None), duration_ms=dur)
            raise OracleCallError(f"oracle timeout after {dur}ms") from exc
        except httpx.HTTPError as exc:
            dur = elapsed_ms(start_ms)
            log_alert(
                logger,
                "ORACLE_NETWORK_ERROR",
                level="error",
                op=(op or None),
                duration_ms=dur,
                error=type(exc).__name__,
            )
            raise OracleCallError(f"oracle network error: {type(exc).__name__}") from exc

        dur = elapsed_ms(start_ms)
        lvl = "info"
        if resp.status_code >= 400 or dur >= OBS_ORACLE_SLOW_THRESHOLD_MS:
            lvl = "warning"
        log_event(
            logger,
            "oracle_http",
            level=lvl,
            op=(op or None),
            status_code=resp.status_code,
            duration_ms=dur,
            model=self.model,
            prompt_len=len(user_content or ""),
        )

        if resp.status_code >= 500:
            log_alert(logger, "ORACLE_HTTP_5XX", op=(op or None), status_code=resp.status_code)
        elif resp.status_code == 429:
            log_alert(logger, "ORACLE_HTTP_429", op=(op or None), status_code=resp.status_code)

        if not resp.is_success:
            logger.error(
                "Oracle call failed: op=%s status=%s body=%s",
                op,
                resp.status_code,
                resp.text[:400],
            )
            raise OracleCallError(f"oracle answered with HTTP {resp.status_code}")

        try:
            data = resp.json()
        except ValueError as exc:
            raise OracleCallError("oracle answered with a non-JSON body") from exc

        return _extract_content(data)

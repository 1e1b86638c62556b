# -*- coding: utf-8 -*-
"""ui_text_templates.py

Purpose
-------
- Every fixed, user-facing string the API returns (placeholders, "no data"
  messages, error payloads) lives here, keyed by message id and language.
- The English and Russian deployments share one code path; ``DIARY_LANG``
  picks the language (``en`` default, ``ru``).

Notes
-----
- These are NOT prompts sent to the oracle (see prompt_templates.py).
- Unknown languages fall back to English; unknown ids raise UITextTemplateError.
"""

from __future__ import annotations

import os
from typing import Dict, Optional


class UITextTemplateError(KeyError):
    """Unknown UI message id."""


DEFAULT_LANG = "en"
DIARY_LANG = (os.getenv("DIARY_LANG", DEFAULT_LANG) or DEFAULT_LANG).strip().lower()


_UI_TEXTS: Dict[str, Dict[str, str]] = {
    "content_required": {
        "en": "Entry content is required",
        "ru": "Нужен текст записи",
    },
    "analysis_failed": {
        "en": "AI analysis failed",
        "ru": "AI-анализ не удался",
    },
    "comment_unavailable": {
        "en": "AI comment unavailable",
        "ru": "Комментарий AI недоступен",
    },
    "history_empty": {
        "en": "No entries to analyze the history",
        "ru": "Нет записей для анализа истории",
    },
    "history_forecast_failed": {
        "en": "Could not generate a forecast from AI",
        "ru": "Не удалось сгенерировать прогноз от AI",
    },
    "forecast_text_required": {
        "en": "No text for the forecast",
        "ru": "Нет текста для прогноза",
    },
    "forecast_failed": {
        "en": "Could not make a forecast",
        "ru": "Не удалось сделать прогноз",
    },
    "detailed_forecast_failed": {
        "en": "Could not generate a detailed forecast",
        "ru": "Не удалось сгенерировать детальный прогноз",
    },
    "detailed_forecast_advice": {
        "en": "See the AI recommendations in the comments for each day.",
        "ru": "Смотрите рекомендации AI в комментариях к каждому дню.",
    },
    "judge_failed": {
        "en": "AI judge failed",
        "ru": "AI-судья недоступен",
    },
    "sabotage_failed": {
        "en": "Sabotage detector failed",
        "ru": "Детектор саботажа не работает",
    },
    "batch_item_unavailable": {
        "en": "AI unavailable",
        "ru": "AI недоступен",
    },
    "batch_failed": {
        "en": "Batch failed",
        "ru": "Пакетная обработка не удалась",
    },
}


def resolve_lang(lang: Optional[str] = None) -> str:
    ln = str(lang or DIARY_LANG or DEFAULT_LANG).strip().lower()
    return ln if ln in ("en", "ru") else DEFAULT_LANG


def ui_text(key: str, lang: Optional[str] = None) -> str:
    texts = _UI_TEXTS.get(key)
    if texts is None:
        raise UITextTemplateError(f"Unknown ui text id: {key}")
    ln = resolve_lang(lang)
    return texts.get(ln) or texts[DEFAULT_LANG]

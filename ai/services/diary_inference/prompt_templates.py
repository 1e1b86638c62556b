# -*- coding: utf-8 -*-
"""Server-side prompt templates registry

Purpose
-------
- Every conversation sent to the oracle is built here: one fixed system
  instruction + one user payload + the sampling temperature for that task.
- Callers pass a template_id and template_vars; wording changes stay in this
  file only.

Languages
---------
- ``en`` and ``ru``. JSON-returning templates keep their schema keys and enum
  values in English for both languages, since the extractor matches on them.

Usage
-----
    p = render_prompt_template("judge_v1", {"text": entry.content})
    raw = await oracle.complete(p.system, p.user, temperature=p.temperature)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from ui_text_templates import resolve_lang


class TemplateError(ValueError):
    """Template rendering error (bad vars / unknown template)."""


@dataclass(frozen=True)
class TemplateInfo:
    template_id: str
    description: str
    required_vars: List[str]
    temperature: Optional[float]


@dataclass(frozen=True)
class RenderedPrompt:
    template_id: str
    system: str
    user: str
    temperature: Optional[float]


_TEMPLATES: Dict[str, TemplateInfo] = {
    "sentiment_v1": TemplateInfo(
        template_id="sentiment_v1",
        description="Sentiment score, label and emotion vector for one entry (JSON)",
        required_vars=["text"],
        temperature=None,
    ),
    "comment_v1": TemplateInfo(
        template_id="comment_v1",
        description="Diary psychologist comment on one entry (text)",
        required_vars=["text"],
        temperature=0.8,
    ),
    "forecast_text_v1": TemplateInfo(
        template_id="forecast_text_v1",
        description="One-year projection from a single text (text)",
        required_vars=["text"],
        temperature=0.8,
    ),
    "history_forecast_v1": TemplateInfo(
        template_id="history_forecast_v1",
        description="One-year projection from the whole diary history (text)",
        required_vars=["history"],
        temperature=0.8,
    ),
    "forecast_json_v1": TemplateInfo(
        template_id="forecast_json_v1",
        description="Structured forecast: overallSentiment / avgEmotions / advice (JSON)",
        required_vars=["text"],
        temperature=0.8,
    ),
    "judge_v1": TemplateInfo(
        template_id="judge_v1",
        description="Benefit / risk / morality judgment of one entry (JSON)",
        required_vars=["text"],
        temperature=0.2,
    ),
    "sabotage_v1": TemplateInfo(
        template_id="sabotage_v1",
        description="Procrastination / self-deception / loops detector (JSON)",
        required_vars=["text"],
        temperature=0.7,
    ),
}


_PSYCHOLOGIST_SYSTEM = {
    "en": "You are a thoughtful diary psychologist. Give a warm, detailed comment on the user's entry. No moralizing.",
    "ru": "Ты — умный дневниковый психолог. Дай тёплый, подробный комментарий к записи пользователя. Без морализаторства.",
}

_SENTIMENT_SYSTEM = "You are a sentiment analysis AI. Return JSON only, no markdown, no extra text."

_SENTIMENT_USER = """Analyze this diary text.
Return JSON exactly in this format:
{
  "score": number from -1 to 1,
  "label": "positive" | "neutral" | "negative",
  "emotions": {
    "joy": number,
    "sadness": number,
    "anger": number,
    "fear": number
  }
}

Text:
{text}"""

_FORECAST_TEXT_USER = {
    "en": """Predict what will happen to the user in a year if they keep living as described below.
User's text: {text}

Return a plain-text forecast only, no JSON, no markup:
- Overall state
- Emotional profile
- Advice""",
    "ru": """Предскажи пользователю, что произойдет через год, если он продолжит жить как описано ниже.
Текст пользователя: {text}

Верни строго текстовый прогноз, без JSON, без разметки:
- Общее состояние
- Эмоциональный профиль
- Совет""",
}

_HISTORY_FORECAST_USER = {
    "en": """Predict the user's future based on the whole history of their diary:
{history}

Return a plain-text forecast for one year from now, including:
- Overall state
- Emotional profile
- Advice
- Short comments on each day
Text only, no JSON and no markup""",
    "ru": """Предскажи пользователю будущее на основе всей истории его дневника:
{history}

Верни текстовый прогноз через год, включая:
- Общее состояние
- Эмоциональный профиль
- Совет
- Краткие комментарии по каждому дню
Только текст, без JSON и разметки""",
}

_FORECAST_JSON_SYSTEM = """You are a future prediction AI.
Analyze the diary text and return JSON ONLY in this format:
{
  "overallSentiment": "positive" | "neutral" | "negative",
  "avgEmotions": {
    "joy": number,
    "sadness": number,
    "anger": number,
    "fear": number
  },
  "advice": "string"
}
No extra text, no markdown."""

_JUDGE_SYSTEM = """Return STRICT JSON ONLY.
No explanations. No comments. No text.

The JSON MUST be exactly in this format:
{
  "benefit": number,
  "risk": number,
  "morality": number,
  "consequences": "string",
  "verdict": "string"
}"""

_SABOTAGE_SYSTEM = {
    "en": """You are an AI Sabotage Detector.
Rate the user's text on three scales:

1. "procrastination": number 0-10 - how much the entry shows avoidance, putting things off, procrastination.
2. "self_deception": number 0-10 - how much the user lies to themselves, rationalizes, invents excuses.
3. "loops": number 0-10 - how much the entry shows a recurring dead end or a vicious circle.

Return STRICT JSON:
{
  "procrastination": number,
  "self_deception": number,
  "loops": number,
  "summary": "short conclusion"
}

JSON only. No extra text.""",
    "ru": """Ты — AI-Детектор Саботажа.
Оцени текст пользователя по трём шкалам:

1. "procrastination": число 0-10 — насколько запись показывает избегание, откладывание, прокрастинацию.
2. "self_deception": число 0-10 — насколько пользователь врёт себе, рационализирует, придумывает оправдания.
3. "loops": число 0-10 — насколько запись показывает повторяющийся жизненный тупик или замкнутый круг.

Верни СТРОГО JSON:
{
  "procrastination": number,
  "self_deception": number,
  "loops": number,
  "summary": "короткий вывод"
}

Только JSON. Без лишнего текста.""",
}


def _require(vars_: Dict[str, Any], key: str) -> str:
    s = str(vars_.get(key) or "")
    if not s.strip():
        raise TemplateError(f"template_vars.{key} is required")
    return s


def render_prompt_template(
    template_id: str,
    template_vars: Optional[Dict[str, Any]] = None,
    *,
    lang: Optional[str] = None,
) -> RenderedPrompt:
    """Render a template into the (system, user, temperature) triple for the oracle."""
    tid = str(template_id or "").strip()
    info = _TEMPLATES.get(tid)
    if info is None:
        raise TemplateError(f"Unknown template_id: {tid}")

    vars_ = template_vars or {}
    ln = resolve_lang(lang)

    if tid == "sentiment_v1":
        system = _SENTIMENT_SYSTEM
        # str.replace keeps the JSON braces in the template intact.
        user = _SENTIMENT_USER.replace("{text}", _require(vars_, "text"))
    elif tid == "comment_v1":
        system = _PSYCHOLOGIST_SYSTEM[ln]
        user = _require(vars_, "text")
    elif tid == "forecast_text_v1":
        system = _PSYCHOLOGIST_SYSTEM[ln]
        user = _FORECAST_TEXT_USER[ln].replace("{text}", _require(vars_, "text"))
    elif tid == "history_forecast_v1":
        system = _PSYCHOLOGIST_SYSTEM[ln]
        user = _HISTORY_FORECAST_USER[ln].replace("{history}", _require(vars_, "history"))
    elif tid == "forecast_json_v1":
        system = _FORECAST_JSON_SYSTEM
        user = _require(vars_, "text")
    elif tid == "judge_v1":
        system = _JUDGE_SYSTEM
        user = _require(vars_, "text")
    else:  # sabotage_v1
        system = _SABOTAGE_SYSTEM[ln]
        user = _require(vars_, "text")

    return RenderedPrompt(template_id=tid, system=system, user=user, temperature=info.temperature)

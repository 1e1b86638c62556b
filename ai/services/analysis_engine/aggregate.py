from __future__ import annotations
from typing import Dict, Iterable, List, Mapping, Sequence
from .models import EMOTION_KEYS, AggregateForecast, DetailedDay

# Aggregation over a history of per-entry analyses (detailed forecast).
# Policy:
# - Callers handle the empty history themselves; every function here raises ValueError on it.
# - overallSentiment is a positive-vs-negative vote. Neutral entries are counted but can
#   never win, and a tie (including 0:0) resolves to "positive". See DESIGN.md before changing it.


def average_emotions(vectors: Sequence[Mapping[str, float]]) -> Dict[str, float]:
    if not vectors:
        raise ValueError("average_emotions: empty sequence")
    sums = {k: 0.0 for k in EMOTION_KEYS}
    for v in vectors:
        for k in EMOTION_KEYS:
            sums[k] += float((v or {}).get(k) or 0)
    n = len(vectors)
    return {k: round(sums[k] / n, 2) for k in EMOTION_KEYS}


def sentiment_counts(labels: Iterable[str]) -> Dict[str, int]:
    counts = {"positive": 0, "negative": 0, "neutral": 0}
    for label in labels:
        if label in counts:
            counts[label] += 1
    return counts


def overall_sentiment(labels: Sequence[str]) -> str:
    if not labels:
        raise ValueError("overall_sentiment: empty sequence")
    counts = sentiment_counts(labels)
    return "positive" if counts["positive"] >= counts["negative"] else "negative"


def assemble_forecast(days: List[DetailedDay], advice: str, *, include_details: bool = True) -> AggregateForecast:
    if not days:
        raise ValueError("assemble_forecast: no analysed entries")
    return AggregateForecast(
        overallSentiment=overall_sentiment([d.sentiment for d in days]),
        avgEmotions=average_emotions([d.emotions for d in days]),
        advice=advice,
        detailedResults=list(days) if include_details else None,
    )

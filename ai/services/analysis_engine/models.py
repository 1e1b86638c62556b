from __future__ import annotations
from dataclasses import dataclass, field, asdict
from typing import List, Dict, Optional, Any

EMOTION_KEYS = ["joy", "sadness", "anger", "fear"]
LABELS = ["positive", "neutral", "negative"]


class MalformedOracleOutput(ValueError):
    """Oracle text could not be decoded into the expected JSON shape."""


@dataclass
class DiaryEntry:
    id: str
    content: str
    sentiment_score: float
    sentiment_label: str  # one of LABELS
    emotions: Dict[str, float]
    created_at: str  # ISO-8601, sole ordering key

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class DetailedDay:
    id: str
    date: str
    content: str
    sentiment: str
    emotions: Dict[str, float]
    comment: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class AggregateForecast:
    overallSentiment: str
    avgEmotions: Dict[str, float]
    advice: str
    detailedResults: Optional[List[DetailedDay]] = field(default=None)

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "overallSentiment": self.overallSentiment,
            "avgEmotions": dict(self.avgEmotions),
            "advice": self.advice,
        }
        if self.detailedResults is not None:
            d["detailedResults"] = [r.to_dict() for r in self.detailedResults]
        return d

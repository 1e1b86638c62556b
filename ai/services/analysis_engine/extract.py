from __future__ import annotations
import json
from typing import Any, Dict, Literal, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .models import MalformedOracleOutput
from .normalize import clean_oracle_text, extract_json_object

# Strict decoders for the JSON shapes the oracle is asked to return.
# A missing or ill-typed field is a MalformedOracleOutput, never a silent None.

Label = Literal["positive", "neutral", "negative"]


class EmotionVector(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    # Absent keys count as zero intensity.
    joy: float = Field(default=0.0, ge=0)
    sadness: float = Field(default=0.0, ge=0)
    anger: float = Field(default=0.0, ge=0)
    fear: float = Field(default=0.0, ge=0)


def _lower_label(v: Any) -> Any:
    return v.strip().lower() if isinstance(v, str) else v


def _decode_nested(v: Any) -> Any:
    # Some answers carry the emotion object as a JSON string.
    if isinstance(v, str):
        try:
            return json.loads(v)
        except ValueError:
            return v
    return v


class SentimentAnalysis(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    score: float = Field(..., ge=-1.0, le=1.0)
    label: Label
    emotions: EmotionVector

    normalize_label = field_validator("label", mode="before")(_lower_label)
    decode_emotions = field_validator("emotions", mode="before")(_decode_nested)


class Judgment(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    benefit: float
    risk: float
    morality: float
    consequences: str
    verdict: str


class Sabotage(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    procrastination: float
    self_deception: float
    loops: float
    summary: str


class StructuredForecast(BaseModel):
    overallSentiment: Label
    avgEmotions: EmotionVector
    advice: str

    normalize_label = field_validator("overallSentiment", mode="before")(_lower_label)
    decode_emotions = field_validator("avgEmotions", mode="before")(_decode_nested)


SCHEMAS: Dict[str, Type[BaseModel]] = {
    "sentiment": SentimentAnalysis,
    "judgment": Judgment,
    "sabotage": Sabotage,
    "forecast": StructuredForecast,
}

M = TypeVar("M", bound=BaseModel)


def _reject_constant(name: str) -> Any:
    # NaN / Infinity / -Infinity are valid for json.loads but never a usable score.
    raise MalformedOracleOutput(f"oracle output contains non-finite number: {name}")


def decode_json_object(raw: str) -> Dict[str, Any]:
    """Parse oracle text into a JSON object.

    The fence-stripped text is tried first; the first/last brace scan is only a
    fallback for answers wrapped in commentary.
    """
    cleaned = clean_oracle_text(raw)
    try:
        data = json.loads(cleaned, parse_constant=_reject_constant)
    except ValueError:
        try:
            data = json.loads(extract_json_object(cleaned), parse_constant=_reject_constant)
        except ValueError as exc:
            # MalformedOracleOutput is a ValueError too and passes through here.
            if isinstance(exc, MalformedOracleOutput):
                raise
            raise MalformedOracleOutput(f"oracle output is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise MalformedOracleOutput(f"expected a JSON object, got {type(data).__name__}")
    return data


def parse_as(schema: Type[M], raw: str) -> M:
    data = decode_json_object(raw)
    try:
        return schema.model_validate(data)
    except ValidationError as exc:
        raise MalformedOracleOutput(
            f"oracle output does not match {schema.__name__}: {exc.error_count()} error(s)"
        ) from exc


def extract(intent: str, raw: str) -> BaseModel:
    """Decode ``raw`` with the schema registered for ``intent``."""
    schema = SCHEMAS.get(intent)
    if schema is None:
        raise KeyError(f"unknown extraction intent: {intent}")
    return parse_as(schema, raw)


def parse_sentiment(raw: str) -> SentimentAnalysis:
    return parse_as(SentimentAnalysis, raw)


def parse_judgment(raw: str) -> Judgment:
    return parse_as(Judgment, raw)


def parse_sabotage(raw: str) -> Sabotage:
    return parse_as(Sabotage, raw)


def parse_forecast(raw: str) -> StructuredForecast:
    return parse_as(StructuredForecast, raw)

from .models import (
    EMOTION_KEYS,
    LABELS,
    AggregateForecast,
    DetailedDay,
    DiaryEntry,
    MalformedOracleOutput,
)
from .normalize import clean_oracle_text, extract_json_object
from .extract import (
    EmotionVector,
    Judgment,
    Sabotage,
    SentimentAnalysis,
    StructuredForecast,
    decode_json_object,
    extract,
    parse_forecast,
    parse_judgment,
    parse_sabotage,
    parse_sentiment,
)
from .aggregate import assemble_forecast, average_emotions, overall_sentiment, sentiment_counts

import pytest

from analysis_engine import (
    MalformedOracleOutput,
    clean_oracle_text,
    decode_json_object,
    extract,
    extract_json_object,
    parse_judgment,
    parse_sabotage,
    parse_sentiment,
)


def test_fenced_json_is_cleaned_and_parsed():
    raw = "```json\n{\"a\":1}\n```"
    assert clean_oracle_text(raw) == '{"a":1}'
    assert decode_json_object(raw) == {"a": 1}


def test_leading_prose_is_skipped_by_brace_scan():
    raw = 'Sure! {"a":1}'
    assert extract_json_object(raw) == '{"a":1}'
    assert decode_json_object(raw) == {"a": 1}


def test_trailing_commentary_and_uppercase_fence():
    raw = '```JSON\n{"a": {"b": 2}}\n```\nHope this helps.'
    assert decode_json_object(raw) == {"a": {"b": 2}}


def test_plain_text_keeps_braces_untouched():
    assert clean_oracle_text("  keep {this} as is  ") == "keep {this} as is"


def test_no_braces_is_malformed():
    with pytest.raises(MalformedOracleOutput):
        extract_json_object("no json here")
    with pytest.raises(MalformedOracleOutput):
        decode_json_object("no json here")


def test_broken_json_is_malformed():
    with pytest.raises(MalformedOracleOutput):
        decode_json_object('{"a": 1,,}')


def test_top_level_array_is_malformed():
    with pytest.raises(MalformedOracleOutput):
        decode_json_object("[1, 2]")


def test_sentiment_parses_and_defaults_missing_emotions():
    s = parse_sentiment('{"score": -0.4, "label": "Negative", "emotions": {"sadness": 0.7}}')
    assert s.score == -0.4
    assert s.label == "negative"
    assert s.emotions.model_dump() == {"joy": 0.0, "sadness": 0.7, "anger": 0.0, "fear": 0.0}


def test_sentiment_accepts_emotions_as_json_string():
    s = parse_sentiment('{"score": 0.1, "label": "neutral", "emotions": "{\\"joy\\": 0.2}"}')
    assert s.emotions.joy == 0.2


@pytest.mark.parametrize(
    "raw",
    [
        '{"label": "positive", "emotions": {}}',
        '{"score": 0.2, "label": "ecstatic", "emotions": {}}',
        '{"score": 3, "label": "positive", "emotions": {}}',
        '{"score": 0.2, "label": "positive"}',
        '{"score": 0.2, "label": "positive", "emotions": {"joy": -1}}',
    ],
)
def test_sentiment_schema_violations_are_malformed(raw):
    with pytest.raises(MalformedOracleOutput):
        parse_sentiment(raw)


def test_judgment_requires_every_field():
    ok = parse_judgment(
        'Here you go: {"benefit": 7, "risk": 3, "morality": 8, "consequences": "c", "verdict": "v"}'
    )
    assert ok.benefit == 7
    assert ok.verdict == "v"
    with pytest.raises(MalformedOracleOutput):
        parse_judgment('{"benefit": 7, "risk": 3, "morality": 8, "consequences": "c"}')


def test_sabotage_shape():
    s = parse_sabotage('{"procrastination": 6, "self_deception": 2, "loops": 4, "summary": "stuck"}')
    assert (s.procrastination, s.self_deception, s.loops, s.summary) == (6, 2, 4, "stuck")


def test_extract_dispatches_by_intent():
    f = extract(
        "forecast",
        '{"overallSentiment": "neutral", "avgEmotions": {"joy": 1}, "advice": "rest"}',
    )
    assert f.overallSentiment == "neutral"
    assert f.avgEmotions.joy == 1
    with pytest.raises(KeyError):
        extract("horoscope", "{}")


@pytest.mark.parametrize(
    "parse, raw",
    [
        (parse_sentiment, '{"score": 0.5, "label": "positive", "emotions": {"joy": Infinity}}'),
        (parse_sentiment, '{"score": NaN, "label": "positive", "emotions": {}}'),
        (parse_sentiment, '{"score": 0.5, "label": "positive", "emotions": {"fear": 1e999}}'),
        (parse_sentiment, '{"score": 0.5, "label": "positive", "emotions": "{\\"joy\\": NaN}"}'),
        (parse_judgment, '{"benefit": NaN, "risk": 1, "morality": 1, "consequences": "c", "verdict": "v"}'),
        (parse_judgment, 'Result: {"benefit": 1, "risk": -Infinity, "morality": 1, "consequences": "c", "verdict": "v"}'),
        (parse_sabotage, '{"procrastination": 1, "self_deception": 1, "loops": Infinity, "summary": "s"}'),
    ],
)
def test_non_finite_numbers_are_malformed(parse, raw):
    with pytest.raises(MalformedOracleOutput):
        parse(raw)

from __future__ import annotations
import re
from .models import MalformedOracleOutput

# The oracle is told to answer without markdown but often wraps JSON in fences
# anyway, sometimes with a language tag in any case ("```JSON").
_LANG_FENCE = re.compile(r"```json", flags=re.IGNORECASE)
_BARE_FENCE = "```"


def clean_oracle_text(raw: str) -> str:
    """Strip whitespace and every code-fence delimiter, wherever it appears."""
    text = (raw or "").strip()
    text = _LANG_FENCE.sub("", text)
    text = text.replace(_BARE_FENCE, "")
    return text.strip()


def extract_json_object(raw: str) -> str:
    """Best-effort: return the span from the first '{' to the last '}' inclusive.

    Tolerates commentary before/after the object. It cannot recover when the
    commentary itself carries unmatched braces.
    """
    text = clean_oracle_text(raw)
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end == -1 or end < start:
        raise MalformedOracleOutput("oracle output contains no JSON object")
    return text[start : end + 1]

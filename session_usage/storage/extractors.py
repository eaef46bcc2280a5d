"""
Schema-tolerant field extraction for session log entries.

Log entries were written by several generations of the agent, so each
logical field may live flat on the entry or nested under `message`, and
token counts go by several names. Every field is read through an ordered
list of extractors; the first one that yields a value wins.
"""

import math
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional

from ..core.model_identity import parse_model

Entry = Dict[str, Any]
Extractor = Callable[[Entry], Any]


def as_record(value: Any) -> Optional[Entry]:
    return value if isinstance(value, dict) else None


def _message(entry: Entry) -> Entry:
    return as_record(entry.get("message")) or {}


def flat(name: str) -> Extractor:
    """Read `name` from the entry itself."""
    return lambda entry: entry.get(name)


def nested(name: str) -> Extractor:
    """Read `name` from the entry's `message` object."""
    return lambda entry: _message(entry).get(name)


def first_present(entry: Entry, extractors: Iterable[Extractor]) -> Any:
    """Value of the first extractor that returns something other than None."""
    for extract in extractors:
        value = extract(entry)
        if value is not None:
            return value
    return None


PROVIDER_EXTRACTORS: List[Extractor] = [flat("provider"), nested("provider")]
MODEL_EXTRACTORS: List[Extractor] = [flat("model"), nested("model")]
MODEL_ID_EXTRACTORS: List[Extractor] = [flat("modelId"), nested("modelId")]
USAGE_EXTRACTORS: List[Extractor] = [flat("usage"), nested("usage")]
TIMESTAMP_EXTRACTORS: List[Extractor] = [nested("timestamp"), flat("timestamp")]


def _string(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


ROLE_EXTRACTORS: List[Extractor] = [
    lambda entry: _string(entry.get("role")),
    lambda entry: _string(_message(entry).get("role")),
]


def read_number(value: Any) -> float:
    """Numeric value of a number or numeric string; 0 for anything else."""
    if isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return value if math.isfinite(value) else 0
    if isinstance(value, str):
        try:
            number = float(value) if value.strip() else 0.0
        except ValueError:
            return 0
        return number if math.isfinite(number) else 0
    return 0


def _first_nonzero(usage: Entry, names: Iterable[str]) -> float:
    for name in names:
        number = read_number(usage.get(name))
        if number:
            return number
    return 0


TOTAL_TOKEN_NAMES = ["totalTokens", "total_tokens", "tokens", "tokenCount", "token_count"]
NESTED_TOTAL_NAMES = ["total", "totalTokens", "total_tokens"]
INPUT_TOKEN_NAMES = ["promptTokens", "prompt_tokens", "inputTokens", "input_tokens"]
OUTPUT_TOKEN_NAMES = ["completionTokens", "completion_tokens", "outputTokens", "output_tokens"]


def extract_tokens(usage: Any) -> int:
    """Total tokens from a usage object.

    Tries a direct total, then a nested `tokens` object, then the sum of
    prompt/input and completion/output counts.
    """
    u = as_record(usage)
    if u is None:
        return 0

    direct = _first_nonzero(u, TOTAL_TOKEN_NAMES)
    if direct > 0:
        return int(direct)

    tokens = as_record(u.get("tokens"))
    if tokens is not None:
        nested_total = _first_nonzero(tokens, NESTED_TOTAL_NAMES)
        if nested_total > 0:
            return int(nested_total)

    total = _first_nonzero(u, INPUT_TOKEN_NAMES) + _first_nonzero(u, OUTPUT_TOKEN_NAMES)
    return int(total) if total > 0 else 0


def extract_cost(usage: Any) -> float:
    """Total cost from a usage object: a bare number/string or `{"total": ...}`."""
    u = as_record(usage)
    if u is None:
        return 0.0
    cost = u.get("cost")
    if isinstance(cost, (int, float, str)) and not isinstance(cost, bool):
        return max(0.0, float(read_number(cost)))
    breakdown = as_record(cost)
    if breakdown is None:
        return 0.0
    return max(0.0, float(read_number(breakdown.get("total"))))


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Local wall-clock time of an epoch-milliseconds number or ISO-8601 string."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            return None
        try:
            return datetime.fromtimestamp(value / 1000)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str) and value:
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
        if parsed.tzinfo is not None:
            parsed = parsed.astimezone().replace(tzinfo=None)
        return parsed
    return None


def model_key_from_parts(provider: Any, model: Any) -> Optional[str]:
    """Build a `provider/family` key; either half may be missing."""
    p = provider.strip() if isinstance(provider, str) else ""
    m = parse_model(model.strip()).family if isinstance(model, str) else ""
    if not p and not m:
        return None
    if not p:
        return m
    if not m:
        return p
    return f"{p}/{m}"


def extract_model_key(entry: Entry, model_extractors: Optional[List[List[Extractor]]] = None) -> Optional[str]:
    """Model key from the entry's own provider and model fields.

    Args:
        entry: Parsed log entry
        model_extractors: Extractor lists for the model name, tried in
            order; defaults to `model` then `modelId`

    Returns:
        `provider/family` key, or None when the entry names neither
    """
    if model_extractors is None:
        model_extractors = [MODEL_EXTRACTORS, MODEL_ID_EXTRACTORS]
    provider = first_present(entry, PROVIDER_EXTRACTORS)
    model = None
    for extractors in model_extractors:
        candidate = first_present(entry, extractors)
        if isinstance(candidate, str) and candidate.strip():
            model = candidate
            break
    return model_key_from_parts(provider, model)


def extract_role(entry: Entry) -> Optional[str]:
    return first_present(entry, ROLE_EXTRACTORS)


def extract_usage(entry: Entry) -> Any:
    return first_present(entry, USAGE_EXTRACTORS)


def extract_timestamp(entry: Entry) -> Optional[datetime]:
    """Message timestamp, falling back to the entry timestamp."""
    for extract in TIMESTAMP_EXTRACTORS:
        parsed = parse_timestamp(extract(entry))
        if parsed is not None:
            return parsed
    return None

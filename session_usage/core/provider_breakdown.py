"""
Per-provider cost breakdown for a window.
"""

from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, List, Sequence, Set

from ..storage.models import LogFile
from .formatting import provider_of, share_percent
from .stats import records_in_window, sort_rows

# Provider ids that are the same billing account under another name.
PROVIDER_ALIASES: Dict[str, str] = {
    "openai-codex": "openai",
}


@dataclass(frozen=True)
class ProviderRow:
    """Window totals for one provider."""
    provider: str
    sessions: int
    messages: int
    tokens: int
    cost: float
    share: int


def normalize_provider(raw: str) -> str:
    return PROVIDER_ALIASES.get(raw, raw)


def extract_provider(model_key: str) -> str:
    return normalize_provider(provider_of(model_key))


def compute_provider_breakdown(files: Sequence[LogFile], cutoff: str) -> List[ProviderRow]:
    """Group window usage by provider.

    Args:
        files: Parsed session logs
        cutoff: Inclusive earliest day key of the window

    Returns:
        Rows sorted by cost (or by messages when the window has no cost),
        then by the other measure, then by provider name
    """
    provider_cost: Dict[str, float] = defaultdict(float)
    provider_messages: Dict[str, int] = defaultdict(int)
    provider_tokens: Dict[str, int] = defaultdict(int)
    provider_sessions: Dict[str, Set[str]] = defaultdict(set)

    for log_file in files:
        for record in records_in_window(log_file, cutoff):
            provider = extract_provider(record.model_key)
            provider_cost[provider] += record.cost
            provider_messages[provider] += 1
            provider_tokens[provider] += record.tokens
            provider_sessions[provider].add(log_file.path)

    total_cost = sum(provider_cost.values())
    total_messages = sum(provider_messages.values())
    use_cost = total_cost > 0
    denominator = total_cost if use_cost else total_messages

    rows = [
        ProviderRow(
            provider=provider,
            sessions=len(provider_sessions[provider]),
            messages=provider_messages[provider],
            tokens=provider_tokens[provider],
            cost=provider_cost[provider],
            share=share_percent(provider_cost[provider] if use_cost else provider_messages[provider], denominator),
        )
        for provider in provider_messages
    ]
    return sort_rows(rows, use_cost, "provider")

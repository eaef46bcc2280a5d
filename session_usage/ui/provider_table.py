"""Provider breakdown table rendering."""

from typing import List, Sequence

from ..core.formatting import format_cost, format_count
from ..core.provider_breakdown import ProviderRow
from .host import Theme
from .text import truncate_to_width

SESSIONS_W = 10
MESSAGES_W = 10
TOKENS_W = 10
COST_W = 12
SHARE_W = 8


def render_provider_table(rows: Sequence[ProviderRow], theme: Theme, width: int) -> List[str]:
    """Header, rule and one line per provider; empty when there are no rows."""
    if not rows:
        return []

    provider_w = max([8] + [len(r.provider) for r in rows]) + 4
    total_w = provider_w + SESSIONS_W + MESSAGES_W + TOKENS_W + COST_W + SHARE_W

    header = (
        "  provider".ljust(provider_w)
        + "sessions".rjust(SESSIONS_W)
        + "messages".rjust(MESSAGES_W)
        + "tokens".rjust(TOKENS_W)
        + "cost".rjust(COST_W)
        + "share".rjust(SHARE_W)
    )
    lines = [
        truncate_to_width(theme.fg("dim", header), width),
        truncate_to_width(theme.fg("dim", "─" * total_w), width),
    ]

    for row in rows:
        lines.append(truncate_to_width(
            "  " + row.provider.ljust(provider_w - 2)
            + str(row.sessions).rjust(SESSIONS_W)
            + format_count(row.messages).rjust(MESSAGES_W)
            + format_count(row.tokens).rjust(TOKENS_W)
            + format_cost(row.cost).rjust(COST_W)
            + f"{row.share}%".rjust(SHARE_W),
            width,
        ))

    return lines

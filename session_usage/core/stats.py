"""
Usage statistics for a trailing window.

Everything here is recomputed from the parsed logs on each window change;
the data set is bounded by the scan floor, so no incremental state is kept.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Set, Union

from ..storage.models import LogFile, UsageRecord
from .colors import RGB
from .formatting import display_model_name, share_percent
from .model_identity import UNKNOWN_COLOR, parse_family
from .timeutil import Period, cutoff_key, period_days

OTHER_COLOR = RGB(160, 160, 160)

# Catppuccin Mocha accents, assigned by rank to families without a brand color.
POSITIONAL_PALETTE: List[RGB] = [
    RGB(166, 227, 161),  # green
    RGB(137, 180, 250),  # blue
    RGB(203, 166, 247),  # mauve
    RGB(250, 179, 135),  # peach
    RGB(148, 226, 213),  # teal
    RGB(245, 194, 231),  # pink
    RGB(249, 226, 175),  # yellow
    RGB(116, 199, 236),  # sapphire
    RGB(243, 139, 168),  # red
    RGB(242, 205, 205),  # flamingo
]


@dataclass
class DayStats:
    """Usage on one calendar day; totals equal the sum over models."""
    model_messages: Dict[str, int] = field(default_factory=lambda: defaultdict(int))
    total_messages: int = 0
    total_tokens: int = 0
    total_cost: float = 0.0

    def add(self, record: UsageRecord) -> None:
        self.model_messages[record.model_key] += 1
        self.total_messages += 1
        self.total_tokens += record.tokens
        self.total_cost += record.cost


@dataclass(frozen=True)
class ModelRow:
    """Window totals for one model key."""
    model: str
    sessions: int
    messages: int
    tokens: int
    cost: float
    share: int


@dataclass(frozen=True)
class Stats:
    """Aggregate usage for one window."""
    session_count: int
    total_messages: int
    total_tokens: int
    total_cost: float
    avg_cost: float
    day_map: Dict[str, DayStats]
    model_table: List[ModelRow]
    model_cost: Dict[str, float]
    model_messages: Dict[str, int]
    model_tokens: Dict[str, int]


@dataclass(frozen=True)
class UsagePalette:
    """Colors for the most significant families, in descending volume."""
    model_colors: Dict[str, RGB]
    ordered_models: List[str]
    other_color: RGB = OTHER_COLOR


def records_in_window(log_file: LogFile, cutoff: str) -> List[UsageRecord]:
    return [r for r in log_file.records if r.date >= cutoff]


def sort_rows(rows: list, use_cost: bool, name: str) -> list:
    """Order breakdown rows: by cost when the window has any cost, else by messages.

    Ties fall back to the other measure, then to the row name.
    """
    if use_cost:
        return sorted(rows, key=lambda r: (-r.cost, -r.messages, getattr(r, name)))
    return sorted(rows, key=lambda r: (-r.messages, -r.cost, getattr(r, name)))


def compute_stats(
    files: Sequence[LogFile],
    period: Union[Period, str],
    now: Optional[datetime] = None,
) -> Stats:
    """Fold parsed logs into window statistics.

    A file counts as a session only if at least one of its records falls
    inside the window.

    Args:
        files: Parsed session logs
        period: Window to compute
        now: Reference time (defaults to the current time)

    Returns:
        Stats for the window
    """
    cutoff = cutoff_key(period_days(period), now)

    day_map: Dict[str, DayStats] = defaultdict(DayStats)
    model_cost: Dict[str, float] = defaultdict(float)
    model_messages: Dict[str, int] = defaultdict(int)
    model_tokens: Dict[str, int] = defaultdict(int)
    model_sessions: Dict[str, Set[str]] = defaultdict(set)

    session_count = 0
    for log_file in files:
        in_window = records_in_window(log_file, cutoff)
        if not in_window:
            continue
        session_count += 1

        for record in in_window:
            day_map[record.date].add(record)
            model_cost[record.model_key] += record.cost
            model_messages[record.model_key] += 1
            model_tokens[record.model_key] += record.tokens
            model_sessions[record.model_key].add(log_file.path)

    total_cost = sum(model_cost.values())
    total_messages = sum(model_messages.values())
    total_tokens = sum(model_tokens.values())

    use_cost = total_cost > 0
    denominator = total_cost if use_cost else total_messages
    rows = [
        ModelRow(
            model=model,
            sessions=len(model_sessions[model]),
            messages=model_messages[model],
            tokens=model_tokens[model],
            cost=model_cost[model],
            share=share_percent(model_cost[model] if use_cost else model_messages[model], denominator),
        )
        for model in model_messages
    ]

    return Stats(
        session_count=session_count,
        total_messages=total_messages,
        total_tokens=total_tokens,
        total_cost=total_cost,
        avg_cost=total_cost / session_count if session_count > 0 else 0.0,
        day_map=dict(day_map),
        model_table=sort_rows(rows, use_cost, "model"),
        model_cost=dict(model_cost),
        model_messages=dict(model_messages),
        model_tokens=dict(model_tokens),
    )


def choose_palette(
    files: Sequence[LogFile],
    period: Union[Period, str],
    top_n: int = 4,
    now: Optional[datetime] = None,
) -> UsagePalette:
    """Pick colors for the top model families of a window by token volume.

    Families are keyed without their provider prefix so the same model
    served by different providers is one entry. Each family takes its
    vendor's color; families whose vendor has no brand color take the
    next positional palette color not already in use, in rank order.

    Args:
        files: Parsed session logs
        period: Window to rank within
        top_n: Maximum number of families to color
        now: Reference time (defaults to the current time)

    Returns:
        UsagePalette with families in descending token volume
    """
    stats = compute_stats(files, period, now)

    family_tokens: Dict[str, int] = defaultdict(int)
    for model_key, tokens in stats.model_tokens.items():
        family_tokens[display_model_name(model_key)] += tokens

    ranked = sorted(
        (item for item in family_tokens.items() if item[1] > 0),
        key=lambda item: item[1],
        reverse=True,
    )
    ordered = [family for family, _ in ranked[:top_n]]

    model_colors = {family: parse_family(family).color for family in ordered}
    spare = [c for c in POSITIONAL_PALETTE if c not in model_colors.values()]
    for family in ordered:
        if model_colors[family] == UNKNOWN_COLOR and spare:
            model_colors[family] = spare.pop(0)

    return UsagePalette(model_colors=model_colors, ordered_models=ordered, other_color=OTHER_COLOR)

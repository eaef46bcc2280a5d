"""
Interactive usage view: calendar heatmap plus provider breakdown.

The view has a single state, the active window. Left/right page between
windows, escape or `q` closes. Collection has already finished by the time
the view is built; it only aggregates and draws.
"""

import os
from datetime import date, datetime
from pathlib import Path
from typing import Callable, List, Mapping, Optional, Sequence, Tuple, Union

from ..core.colors import (
    RGB,
    BlendEntry,
    blend_day_color,
    classify_day_blend,
    colorize_rgb,
    colorize_with_theme_bg,
    resolve_background,
    shade_day,
)
from ..core.formatting import display_model_name, format_count
from ..core.provider_breakdown import ProviderRow, compute_provider_breakdown
from ..core.stats import DayStats, Stats, UsagePalette, choose_palette, compute_stats
from ..core.timeutil import (
    DEFAULT_PERIOD,
    PERIODS,
    Period,
    cutoff_key,
    format_date_key,
    period_days,
    window_start,
)
from ..storage.models import LogFile
from .host import RenderRequester, Theme
from .keys import QUIT_KEYS, Key, matches_key
from .provider_table import render_provider_table
from .text import truncate_to_width, visible_width

NO_USAGE_ROLE = "tool_pending_bg"
DAY_LABELS = ["Mon", "   ", "Wed", "   ", "Fri", "   ", "   "]
LEGEND_SPACER = "   "
MIN_LEGEND_WIDTH = 18
LEGEND_MODELS = 4

# A grid cell: None is outside the window, EMPTY_DAY is an in-window day without usage.
EMPTY_DAY = ""
Cell = Union[DayStats, str, None]


class UsageView:
    """Calendar + table view of session usage, paged by window."""

    def __init__(
        self,
        tui: RenderRequester,
        theme: Theme,
        files: Sequence[LogFile],
        on_close: Callable[[], None],
        sessions_dir: Union[str, Path],
        environ: Optional[Mapping[str, str]] = None,
        now: Optional[datetime] = None,
    ):
        self.tui = tui
        self.theme = theme
        self.files = list(files)
        self.on_close = on_close
        self.sessions_dir = str(sessions_dir)
        self.environ = os.environ if environ is None else environ
        self.now = now
        self.period = DEFAULT_PERIOD
        self._cache: Optional[Tuple[Period, int, List[str]]] = None
        self._recompute()

    def _recompute(self) -> None:
        self.stats: Stats = compute_stats(self.files, self.period, self.now)
        self.palette: UsagePalette = choose_palette(self.files, self.period, now=self.now)
        self.provider_rows: List[ProviderRow] = compute_provider_breakdown(
            self.files, cutoff_key(period_days(self.period), self.now)
        )

    def set_period(self, period: Period) -> None:
        if period == self.period:
            return
        self.period = period
        self._recompute()
        self.invalidate()
        self.tui.request_render()

    def handle_input(self, data: str) -> None:
        if matches_key(data, Key.ESCAPE) or data in QUIT_KEYS:
            self.on_close()
            return

        index = PERIODS.index(self.period)
        if matches_key(data, Key.LEFT) and index > 0:
            self.set_period(PERIODS[index - 1])
        elif matches_key(data, Key.RIGHT) and index < len(PERIODS) - 1:
            self.set_period(PERIODS[index + 1])

    def invalidate(self) -> None:
        self._cache = None

    # --- rendering ---

    def render(self, width: int) -> List[str]:
        if self._cache is not None and self._cache[:2] == (self.period, width):
            return self._cache[2]

        lines = self._render_lines(width)
        self._cache = (self.period, width, lines)
        return lines

    def _render_lines(self, width: int) -> List[str]:
        t = self.theme
        s = self.stats
        days = period_days(self.period)
        lines: List[str] = []

        tabs = "  ".join(
            t.bold(f"[{p.value}]") if p == self.period else t.fg("dim", p.value) for p in PERIODS
        )
        lines.append(truncate_to_width(
            f"{t.bold('Session breakdown')}    {tabs}    {t.fg('dim', '←/→ to switch · q to close')}",
            width,
        ))
        lines.append(truncate_to_width(t.fg("dim", f"Sessions directory: {self.sessions_dir}"), width))
        lines.append("")

        if s.session_count == 0:
            lines.append(truncate_to_width(t.fg("warning", f"No sessions found in the last {days} days."), width))
            return lines

        lines.append(truncate_to_width(
            t.fg(
                "success",
                f"Last {days} days: {s.session_count} sessions · {format_count(s.total_messages)} msgs · "
                f"${s.total_cost:.2f} · avg ${s.avg_cost:.3f}/session",
            ),
            width,
        ))
        lines.append("")
        lines.append(truncate_to_width(t.fg("dim", "Graph: color = model mix, brightness = message count"), width))
        lines.append("")

        lines.extend(self._render_calendar(width))
        lines.append("")
        lines.extend(render_provider_table(self.provider_rows, t, width))
        return lines

    def day_color(self, day: DayStats) -> RGB:
        """Blend of the palette colors of the models used on `day`."""
        entries = []
        other = 0
        for model_key, count in day.model_messages.items():
            if count <= 0:
                continue
            color = self.palette.model_colors.get(display_model_name(model_key))
            if color is None:
                other += count
            else:
                entries.append(BlendEntry(color, count))

        if other > 0:
            entries.append(BlendEntry(self.palette.other_color, other))
        return blend_day_color(classify_day_blend(entries, self.palette.other_color))

    def build_grid(self) -> List[List[Cell]]:
        """Seven weekday rows (Monday first), one column per calendar week."""
        days = period_days(self.period)
        start: date = window_start(days, self.now).date()
        first_monday = start.toordinal() - start.weekday()

        columns = (start.toordinal() + days - 1 - first_monday) // 7 + 1
        grid: List[List[Cell]] = [[None] * columns for _ in range(7)]

        for offset in range(days):
            day = date.fromordinal(start.toordinal() + offset)
            column = (day.toordinal() - first_monday) // 7
            day_stats = self.stats.day_map.get(format_date_key(day))
            grid[day.weekday()][column] = day_stats if day_stats is not None else EMPTY_DAY

        return grid

    def _render_calendar(self, width: int) -> List[str]:
        t = self.theme
        grid = self.build_grid()
        max_messages = max([0] + [d.total_messages for d in self.stats.day_map.values()])
        background = resolve_background(t, self.environ, NO_USAGE_ROLE)

        calendar_rows = []
        for row, cells in enumerate(grid):
            line = t.fg("text", DAY_LABELS[row]) + "  "
            for cell in cells:
                if cell is None:
                    line += "   "
                elif cell == EMPTY_DAY:
                    line += t.bg(NO_USAGE_ROLE, "  ") + " "
                else:
                    rgb = shade_day(background, self.day_color(cell), cell.total_messages, max_messages)
                    line += colorize_rgb(rgb, "██") + " "
            calendar_rows.append(line)

        legend_rows = self._legend_rows()
        calendar_width = max(visible_width(r) for r in calendar_rows)
        legend_width = max(0, width - calendar_width - visible_width(LEGEND_SPACER))
        show_legend = legend_width >= MIN_LEGEND_WIDTH

        lines = []
        for row, calendar_line in enumerate(calendar_rows):
            if show_legend:
                legend_line = truncate_to_width(legend_rows[row], legend_width, "")
                if legend_line:
                    lines.append(truncate_to_width(f"{calendar_line}{LEGEND_SPACER}{legend_line}", width))
                    continue
            lines.append(truncate_to_width(calendar_line, width))
        return lines

    def _legend_rows(self) -> List[str]:
        t = self.theme
        p = self.palette
        rows = [""] * 7
        rows[0] = t.fg("dim", "Legend")

        models = p.ordered_models[:LEGEND_MODELS]
        for i, model in enumerate(models, start=1):
            color = p.model_colors.get(model, p.other_color)
            rows[i] = f"{colorize_rgb(color, '■')} {display_model_name(model)}"

        next_row = len(models) + 1
        rows[next_row] = f"{colorize_rgb(p.other_color, '■')} {t.fg('dim', 'other')}"
        rows[next_row + 1] = f"{colorize_with_theme_bg(t, NO_USAGE_ROLE, '■')} {t.fg('dim', 'no usage')}"
        return rows

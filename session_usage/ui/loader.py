"""
Bordered progress loader shown while session logs are collected.
"""

import asyncio
import time
from typing import Callable, List, Optional

from rich.spinner import Spinner

from ..core.formatting import format_count
from ..core.timeutil import scan_floor_days
from ..storage.models import ProgressEvent, ProgressState, ScanPhase
from .host import RenderRequester, Theme
from .keys import Key, matches_key
from .text import truncate_to_width

TICK_SECONDS = 0.5
SPINNER_NAME = "dots"
SPINNER_INTERVAL = 0.08


def base_message() -> str:
    return f"Analyzing sessions (last {scan_floor_days()} days)…"


class ProgressLoader:
    """Modal loader: spinner, phase, counts and elapsed time.

    The message is rebuilt on every render from the folded progress state,
    and a background ticker requests a render twice a second so elapsed
    time keeps moving even when no progress events arrive.
    """

    def __init__(
        self,
        tui: RenderRequester,
        theme: Theme,
        on_abort: Callable[[], None],
        message: Optional[str] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.tui = tui
        self.theme = theme
        self.on_abort = on_abort
        self.message = message or base_message()
        self.clock = clock
        self.state = ProgressState()
        self.started_at = clock()
        self.frames = Spinner(SPINNER_NAME).frames
        self._ticker: Optional[asyncio.Task] = None
        self._aborted = False

    def start(self) -> None:
        """Begin periodic re-rendering; requires a running event loop."""
        if self._ticker is None:
            self._ticker = asyncio.get_running_loop().create_task(self._tick())

    def stop(self) -> None:
        if self._ticker is not None:
            self._ticker.cancel()
            self._ticker = None

    async def _tick(self) -> None:
        while True:
            await asyncio.sleep(TICK_SECONDS)
            self.tui.request_render()

    def update(self, event: ProgressEvent) -> None:
        self.state.apply(event)

    def status_text(self) -> str:
        elapsed = f"{self.clock() - self.started_at:.1f}s"
        state = self.state
        if state.phase == ScanPhase.SCAN:
            return f"{self.message}  scanning ({format_count(state.found_files)} files) · {elapsed}"
        if state.phase == ScanPhase.PARSE:
            return (
                f"{self.message}  parsing ({format_count(state.parsed_files)}/"
                f"{format_count(state.total_files)}) · {elapsed}"
            )
        return f"{self.message}  finalizing · {elapsed}"

    def handle_input(self, data: str) -> None:
        if matches_key(data, Key.ESCAPE) and not self._aborted:
            self._aborted = True
            self.stop()
            self.on_abort()

    def invalidate(self) -> None:
        pass

    def render(self, width: int) -> List[str]:
        t = self.theme
        frame = self.frames[int((self.clock() - self.started_at) / SPINNER_INTERVAL) % len(self.frames)]
        border = t.fg("accent", "─" * max(0, width))
        return [
            border,
            truncate_to_width(f" {t.fg('accent', frame)} {t.fg('text', self.status_text())}", width),
            truncate_to_width(t.fg("dim", " esc cancel"), width),
            border,
        ]

"""
The `usage` command.

Collects session logs behind a cancellable progress loader, then opens the
usage view on the result.
"""

import asyncio
from enum import Enum
from typing import Awaitable, Callable, List, Optional

from .log import get_logger
from .storage.collector import ProgressCallback, collect_log_files
from .storage.models import LogFile, ProgressEvent, ScanCancelled
from .ui.host import CommandContext, CommandRegistry, Done, RenderRequester, Theme
from .ui.loader import ProgressLoader
from .ui.usage_view import UsageView

logger = get_logger(__name__)

COMMAND_NAME = "usage"
COMMAND_DESCRIPTION = "Show session usage breakdown (cost, models, calendar heatmap)"

Collector = Callable[..., Awaitable[List[LogFile]]]


class UsageOutcome(Enum):
    """How a usage command invocation ended."""
    SHOWN = "shown"
    CANCELLED = "cancelled"
    FAILED = "failed"
    NO_UI = "no_ui"


def register(registry: CommandRegistry) -> None:
    registry.register_command(COMMAND_NAME, COMMAND_DESCRIPTION, handle_usage_command)


async def handle_usage_command(
    ctx: CommandContext,
    collect: Collector = collect_log_files,
) -> UsageOutcome:
    """Run the usage command.

    Collection runs as a task while the loader is shown. Escape sets the
    cancel event and closes the loader at once; the collection task is
    then torn down before the outcome is reported. An empty result still
    opens the view.

    Args:
        ctx: Command context supplied by the host
        collect: Collection coroutine function, called as
            `collect(root, cancel, on_progress)`

    Returns:
        UsageOutcome describing how the command ended
    """
    if not ctx.has_ui:
        ctx.ui.notify("Usage view requires interactive mode", "error")
        return UsageOutcome.NO_UI

    cancel = asyncio.Event()
    failures: List[BaseException] = []
    tasks: List[asyncio.Task] = []

    def loader_factory(tui: RenderRequester, theme: Theme, done: Done) -> ProgressLoader:
        def on_abort() -> None:
            cancel.set()
            done(None)

        loader = ProgressLoader(tui, theme, on_abort)

        def on_progress(event: ProgressEvent) -> None:
            loader.update(event)
            tui.request_render()

        def finished(task: asyncio.Task) -> None:
            loader.stop()
            if task.cancelled():
                done(None)
                return
            error = task.exception()
            if error is not None:
                if not isinstance(error, ScanCancelled):
                    failures.append(error)
                done(None)
            elif not cancel.is_set():
                done(task.result())

        progress: ProgressCallback = on_progress
        task = asyncio.ensure_future(collect(ctx.sessions_dir, cancel, progress))
        task.add_done_callback(finished)
        tasks.append(task)
        loader.start()
        return loader

    files: Optional[List[LogFile]] = await ctx.ui.custom(loader_factory)

    pending = [t for t in tasks if not t.done()]
    for task in pending:
        task.cancel()
    if pending:
        await asyncio.gather(*pending, return_exceptions=True)

    if files is None:
        if cancel.is_set():
            ctx.ui.notify("Cancelled", "info")
            return UsageOutcome.CANCELLED
        if failures:
            logger.error("Failed to analyze sessions in %s", ctx.sessions_dir, exc_info=failures[0])
        ctx.ui.notify("Failed to analyze sessions", "error")
        return UsageOutcome.FAILED

    await ctx.ui.custom(
        lambda tui, theme, done: UsageView(tui, theme, files, lambda: done(None), ctx.sessions_dir)
    )
    return UsageOutcome.SHOWN

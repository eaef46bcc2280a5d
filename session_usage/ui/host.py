"""
Contract between the usage command and the interactive host.

The host owns the terminal: it supplies a theme, measures the screen, feeds
raw key input to the active component and shows notices. The command and
its components only rely on the protocols below.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Awaitable, Callable, List, Protocol


class Theme(Protocol):
    """Themed coloring capability."""

    def fg(self, role: str, text: str) -> str: ...

    def bold(self, text: str) -> str: ...

    def bg(self, role: str, text: str) -> str: ...

    def get_bg_ansi(self, role: str) -> str: ...


class RenderRequester(Protocol):
    def request_render(self) -> None: ...


class Component(Protocol):
    """A modal view: rendered to lines, driven by raw input."""

    def render(self, width: int) -> List[str]: ...

    def handle_input(self, data: str) -> None: ...

    def invalidate(self) -> None: ...


Done = Callable[[Any], None]
ComponentFactory = Callable[[RenderRequester, Theme, Done], Component]


class HostUI(Protocol):
    def notify(self, message: str, level: str = "info") -> None: ...

    async def custom(self, factory: ComponentFactory) -> Any:
        """Show a component until it calls `done`; returns the value passed to it."""
        ...


@dataclass
class CommandContext:
    """What a command handler receives when it is invoked."""
    has_ui: bool
    ui: HostUI
    sessions_dir: Path


CommandHandler = Callable[[CommandContext], Awaitable[Any]]


class CommandRegistry(Protocol):
    def register_command(
        self,
        name: str,
        description: str,
        handler: CommandHandler,
    ) -> None: ...

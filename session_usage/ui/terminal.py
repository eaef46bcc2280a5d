"""
Terminal host for modal components.

Owns the real terminal while a component is shown: alternate screen,
hidden cursor, cbreak input read through the event loop, and a full
redraw whenever a render is requested. Also serves as the command
registry the CLI dispatches through.
"""

import asyncio
import os
import sys
import termios
import tty
from dataclasses import dataclass
from typing import IO, Any, Dict, Optional

from rich.console import Console
from rich.markup import escape

from ..log import get_logger
from .host import CommandContext, CommandHandler, Component, ComponentFactory, Theme
from .keys import split_keys
from .theme import AnsiTheme

logger = get_logger(__name__)

CLEAR_SCREEN = "\x1b[H\x1b[2J"
READ_SIZE = 1024

NOTICE_MARKUP = {
    "error": "[red]✗[/] {}",
    "warning": "[yellow]![/] {}",
    "info": "[dim]{}[/]",
}


@dataclass(frozen=True)
class RegisteredCommand:
    name: str
    description: str
    handler: CommandHandler


class TerminalHost:
    """Shows one component at a time on the alternate screen."""

    def __init__(
        self,
        console: Optional[Console] = None,
        theme: Optional[Theme] = None,
        stdin: Optional[IO[str]] = None,
    ):
        self.console = console or Console()
        self.theme = theme or AnsiTheme()
        self.stdin = stdin or sys.stdin
        self.commands: Dict[str, RegisteredCommand] = {}
        self._component: Optional[Component] = None
        self._render_pending = False

    # --- command registry ---

    def register_command(
        self,
        name: str,
        description: str,
        handler: CommandHandler,
    ) -> None:
        if name in self.commands:
            raise ValueError(f"Command already registered: {name}")
        self.commands[name] = RegisteredCommand(name, description, handler)

    async def run_command(self, name: str, ctx: CommandContext) -> Any:
        """Invoke a registered command.

        Raises:
            KeyError: If no command has that name
        """
        command = self.commands.get(name)
        if command is None:
            raise KeyError(f"Unknown command: {name}")
        logger.debug("Running command %s", name)
        return await command.handler(ctx)

    # --- host UI ---

    def notify(self, message: str, level: str = "info") -> None:
        template = NOTICE_MARKUP.get(level, NOTICE_MARKUP["info"])
        self.console.print(template.format(escape(message)))

    async def custom(self, factory: ComponentFactory) -> Any:
        loop = asyncio.get_running_loop()
        result: asyncio.Future = loop.create_future()

        def done(value: Any) -> None:
            if not result.done():
                result.set_result(value)

        fd = self.stdin.fileno()
        saved_attrs = termios.tcgetattr(fd)
        self.console.set_alt_screen(True)
        self.console.show_cursor(False)
        try:
            tty.setcbreak(fd)
            self._component = factory(self, self.theme, done)
            loop.add_reader(fd, self._on_input, fd)
            try:
                self._draw()
                return await result
            finally:
                loop.remove_reader(fd)
        finally:
            self._component = None
            termios.tcsetattr(fd, termios.TCSADRAIN, saved_attrs)
            self.console.show_cursor(True)
            self.console.set_alt_screen(False)

    def request_render(self) -> None:
        if self._render_pending:
            return
        self._render_pending = True
        asyncio.get_running_loop().call_soon(self._draw)

    def _on_input(self, fd: int) -> None:
        self.dispatch_input(os.read(fd, READ_SIZE).decode("utf-8", errors="replace"))

    def dispatch_input(self, data: str) -> None:
        """Feed a raw read to the shown component one key at a time."""
        keys = split_keys(data)
        if self._component is None or not keys:
            return
        for key in keys:
            self._component.handle_input(key)
        self.request_render()

    def _draw(self) -> None:
        self._render_pending = False
        if self._component is None:
            return
        lines = self._component.render(self.console.width)
        out = self.console.file
        out.write(CLEAR_SCREEN + "\r\n".join(lines))
        out.flush()

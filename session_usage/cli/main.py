"""
CLI interface for Session Usage.

Opens the interactive usage view for a sessions directory.
"""

import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

import typer
import yaml
from rich.console import Console

from session_usage.command import COMMAND_NAME, UsageOutcome, register
from session_usage.config.loader import load_config
from session_usage.log import level_from_name, setup_logging
from session_usage.ui.host import CommandContext
from session_usage.ui.terminal import TerminalHost
from session_usage.ui.theme import AnsiTheme

app = typer.Typer()
console = Console()

# Cancelling the view is a normal way out, not an error
EXIT_CODE_PASS = 0
EXIT_CODE_FAIL = 1


def _outcome_to_exit_code(outcome: UsageOutcome) -> int:
    """Convert a command outcome to CLI exit code."""
    return {
        UsageOutcome.SHOWN: EXIT_CODE_PASS,
        UsageOutcome.CANCELLED: EXIT_CODE_PASS,
        UsageOutcome.FAILED: EXIT_CODE_FAIL,
        UsageOutcome.NO_UI: EXIT_CODE_FAIL,
    }[outcome]


def _is_interactive() -> bool:
    return sys.stdin.isatty() and sys.stdout.isatty()


@app.callback(invoke_without_command=True)
def main(ctx: typer.Context):
    """Session Usage CLI."""
    if ctx.invoked_subcommand is None:
        console.print("Session Usage - Use --help to see available commands")


@app.command()
def usage(
    sessions_dir: Optional[str] = typer.Option(
        None,
        "--sessions-dir",
        "-d",
        help="Directory holding session logs (overrides config)"
    ),
    config: Optional[str] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to a YAML configuration file"
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Log debug output to stderr"
    ),
):
    """Show session usage breakdown (cost, models, calendar heatmap)."""
    try:
        usage_config = load_config(config)
    except (FileNotFoundError, ValueError, yaml.YAMLError) as e:
        console.print(f"[red]Error:[/] {str(e)}")
        raise typer.Exit(EXIT_CODE_FAIL)

    setup_logging(logging.DEBUG if verbose else level_from_name(usage_config.log_level))

    host = TerminalHost(console=console, theme=AnsiTheme(usage_config.theme))
    register(host)

    command_ctx = CommandContext(
        has_ui=_is_interactive(),
        ui=host,
        sessions_dir=Path(sessions_dir).expanduser() if sessions_dir else usage_config.sessions_dir,
    )
    outcome = asyncio.run(host.run_command(COMMAND_NAME, command_ctx))
    raise typer.Exit(_outcome_to_exit_code(outcome))

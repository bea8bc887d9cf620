"""
yx CLI - Main application entry point.

This module sets up the Typer CLI application with all commands.
"""

import logging
import sys

import typer
from rich.console import Console

from yaks import __version__
from yaks.cli import sync, yak

PANEL_YAKS = "Work with Yaks"
PANEL_SHARE = "Share with Collaborators"

app = typer.Typer(
    name="yx",
    help="Track hierarchical yak-shaving tasks inside a git repository",
    no_args_is_help=True,
    context_settings={"help_option_names": ["--help", "-h"]},
)

console = Console()


def setup_logging(debug: bool = False) -> None:
    """
    Configure logging for all commands.

    Args:
        debug: If True, enable DEBUG level logging
    """
    level = logging.DEBUG if debug else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


@app.callback()
def main(
    ctx: typer.Context,
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug output with detailed logging",
    ),
) -> None:
    """
    yx - shave your yaks, together.

    Yaks live in a plain .yaks/ directory and are shared through a hidden
    git ref (refs/notes/yaks), never through your branches.

    Quick Start:
        yx add "ship v2/write docs"   # Add a yak (parents are created)
        yx ls                         # Show the tree
        yx done "ship v2/write docs"  # Mark it done
        yx sync                       # Share with collaborators
    """
    setup_logging(debug)
    ctx.obj = {"debug": debug}


app.command(name="add", rich_help_panel=PANEL_YAKS)(yak.add)
app.command(name="ls", rich_help_panel=PANEL_YAKS)(yak.ls)
app.command(name="done", rich_help_panel=PANEL_YAKS)(yak.done)
app.command(name="rm", rich_help_panel=PANEL_YAKS)(yak.rm)
app.command(name="mv", rich_help_panel=PANEL_YAKS)(yak.mv)
app.command(name="context", rich_help_panel=PANEL_YAKS)(yak.context)
app.command(name="prune", rich_help_panel=PANEL_YAKS)(yak.prune)

app.command(name="sync", rich_help_panel=PANEL_SHARE)(sync.sync)


@app.command()
def version() -> None:
    """Show yx version and exit."""
    console.print(f"yx version {__version__}")
    raise typer.Exit(0)


def cli_main() -> None:
    """Main CLI entry point."""
    app()


__all__ = ["app", "cli_main"]

"""
yx CLI - Sync command.

Fetches the shared ref, merges it with the local yaks and publishes the
result, without touching the working tree, index or branches.
"""

import typer
from rich.console import Console
from rich.table import Table

from yaks.cli.errors import ExitCode, print_error
from yaks.cli.yak import get_service

console = Console()


def sync(
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Show detailed sync information",
    ),
) -> None:
    """
    Sync yaks with the shared ref.

    Local edits are merged with whatever collaborators have published since
    the last sync. When a yak was changed on both sides the local version
    wins and the conflict is reported.

    Examples:
        yx sync            # Fetch, merge and publish
        yx sync -v         # Also show conflicts and timings
    """
    service = get_service()
    result = service.sync()

    if not result.success:
        print_error(
            "Sync failed",
            reason=result.message,
            solution="yx --debug sync",
        )
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    if result.operation == "noop":
        console.print(f"[green]✓[/green] Already up to date ({result.message or 'no changes'})")
    else:
        console.print(f"[green]✓[/green] {result.summary()}")

    if result.had_conflicts:
        console.print(
            f"[yellow]⚠[/yellow]  Resolved {len(result.conflicts)} conflict(s) "
            "with last-write-wins (local version kept)"
        )

    if verbose:
        table = Table(title="Sync Details", show_header=False)
        table.add_column("Field", style="cyan")
        table.add_column("Value")

        table.add_row("Ref", service.ref)
        table.add_row("Operation", result.operation)
        if result.commit_sha:
            table.add_row("Commit", result.commit_sha[:8])
        table.add_row("Attempts", str(result.attempts))
        table.add_row("Local changes", str(result.local_changes))
        table.add_row("Remote changes", str(result.remote_changes))
        if result.duration_seconds is not None:
            table.add_row("Duration", f"{result.duration_seconds:.2f}s")
        for conflict in result.conflicts:
            table.add_row("Conflict", f"{conflict.yak_id} ({conflict.kind.value})")

        console.print()
        console.print(table)

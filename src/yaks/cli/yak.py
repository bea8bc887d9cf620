"""
yx CLI - yak commands.

Thin wrappers over YakService: every edit loads the local collection,
applies one operation, saves the result and records the command line.
"""

import shlex

import typer
from rich.console import Console
from rich.markup import escape
from rich.tree import Tree

from yaks.cli.errors import ExitCode, print_error, print_validation_error
from yaks.core.config import find_project_dir, load_config, load_layered_env
from yaks.core.service import Operation, YakService
from yaks.core.validation import ValidationError
from yaks.core.yaks import operations
from yaks.core.yaks.models import YakCollection, join_id, leaf_name

console = Console()


def get_service() -> YakService:
    """Service for the project containing the current directory."""
    project_dir = find_project_dir()
    # .env overrides must be in os.environ before the config is read
    load_layered_env(project_dir)
    return YakService(project_dir, load_config(project_dir))


def _apply(
    service: YakService, command: list[str], operation: Operation, *args: object
) -> YakCollection:
    """Apply an operation, exiting with USER_ERROR if it was rejected."""
    result = service.apply(operation, *args, command=shlex.join(command))
    if isinstance(result, ValidationError):
        print_validation_error(result)
        raise typer.Exit(ExitCode.USER_ERROR)
    return result


def _label(collection: YakCollection, yak_id: str) -> str:
    yak = collection.yaks[yak_id]
    name = escape(yak.name)
    label = f"[dim strike]{name}[/dim strike]" if yak.done else f"[bold]{name}[/bold]"
    if yak.context:
        label += " [dim](notes)[/dim]"
    return label


def render_tree(collection: YakCollection) -> Tree:
    """Build a rich tree of the collection, roots and children in id order."""
    tree = Tree("[bold cyan]yaks[/bold cyan]", guide_style="dim")

    def add_children(node: Tree, parent_id: str) -> None:
        for child in collection.children(parent_id):
            add_children(node.add(_label(collection, child.id)), child.id)

    for root_id in collection.roots:
        add_children(tree.add(_label(collection, root_id)), root_id)
    return tree


def add(
    name: str = typer.Argument(..., help="Yak name, or a slash-delimited path"),
    parent: str | None = typer.Option(
        None,
        "--parent",
        "-p",
        help="Existing parent yak",
    ),
) -> None:
    """
    Add a yak. Missing parents in the path are created too.

    Examples:
        yx add "ship v2"
        yx add "ship v2/write docs"
        yx add "fix ci" --parent "ship v2"
    """
    service = get_service()
    command = ["add", name] + (["--parent", parent] if parent else [])
    _apply(service, command, operations.add, name, parent)
    console.print(f"[green]✓[/green] Added {join_id(parent, name)}")


def ls(
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output as JSON",
    ),
    pending: bool = typer.Option(
        False,
        "--pending",
        help="Hide done yaks whose whole subtree is done",
    ),
) -> None:
    """
    List yaks as a tree.

    Examples:
        yx ls
        yx ls --pending
        yx ls --json
    """
    collection = get_service().load()
    if pending:
        collection = operations.prune(collection)

    if json_output:
        console.print_json(data=[yak.model_dump() for yak in collection.values()])
        return

    if len(collection) == 0:
        console.print("[dim]No yaks. Add one with[/dim] [bold]yx add <name>[/bold]")
        return

    console.print(render_tree(collection))


def done(
    yak_id: str = typer.Argument(..., help="Yak to mark done"),
    undo: bool = typer.Option(
        False,
        "--undo",
        help="Mark the yak not done again",
    ),
    recursive: bool = typer.Option(
        False,
        "--recursive",
        "-r",
        help="Mark the whole subtree done",
    ),
) -> None:
    """
    Mark a yak done (or not done with --undo).

    A yak can only be marked done once all of its children are done,
    unless --recursive is given.

    Examples:
        yx done "ship v2/write docs"
        yx done "ship v2" --recursive
        yx done "ship v2" --undo
    """
    service = get_service()
    if undo:
        _apply(service, ["done", "--undo", yak_id], operations.mark_undone, yak_id)
        console.print(f"[green]✓[/green] Marked {yak_id} not done")
        return

    command = ["done", "--recursive", yak_id] if recursive else ["done", yak_id]
    _apply(service, command, operations.mark_done, yak_id, recursive)
    console.print(f"[green]✓[/green] Marked {yak_id} done")


def rm(
    yak_id: str = typer.Argument(..., help="Yak to remove"),
    recursive: bool = typer.Option(
        False,
        "--recursive",
        "-r",
        help="Remove the yak and all its children",
    ),
) -> None:
    """
    Remove a yak.

    Examples:
        yx rm "fix ci"
        yx rm "ship v2" --recursive
    """
    command = ["rm", "--recursive", yak_id] if recursive else ["rm", yak_id]
    _apply(get_service(), command, operations.delete, yak_id, recursive)
    console.print(f"[green]✓[/green] Removed {yak_id}")


def mv(
    yak_id: str = typer.Argument(..., help="Yak to move"),
    to: str | None = typer.Option(
        None,
        "--to",
        help="New parent yak (defaults to the current parent)",
    ),
    root: bool = typer.Option(
        False,
        "--root",
        help="Move the yak to the top level",
    ),
    name: str | None = typer.Option(
        None,
        "--name",
        "-n",
        help="New name for the yak",
    ),
) -> None:
    """
    Move or rename a yak, together with its children.

    Examples:
        yx mv "fix ci" --to "ship v2"
        yx mv "ship v2/fix ci" --root
        yx mv "ship v2" --name "ship v3"
    """
    if root and to is not None:
        print_error("--to and --root cannot be combined")
        raise typer.Exit(ExitCode.USER_ERROR)

    service = get_service()
    if root:
        new_parent = None
    elif to is not None:
        new_parent = to
    else:
        yak = service.load().get(yak_id)
        new_parent = yak.parent_id if yak is not None else None

    command = ["mv", yak_id]
    if root:
        command.append("--root")
    elif to is not None:
        command.extend(["--to", to])
    if name is not None:
        command.extend(["--name", name])
    _apply(service, command, operations.move, yak_id, new_parent, name)
    destination = join_id(new_parent, name or leaf_name(yak_id))
    console.print(f"[green]✓[/green] Moved {yak_id} → {destination}")


def context(
    yak_id: str = typer.Argument(..., help="Yak whose context to show or change"),
    text: str | None = typer.Option(
        None,
        "--set",
        "-s",
        help="Replace the context with this text",
    ),
    clear: bool = typer.Option(
        False,
        "--clear",
        help="Remove the context",
    ),
) -> None:
    """
    Show or change the notes attached to a yak.

    Examples:
        yx context "ship v2"
        yx context "ship v2" --set "Release checklist in docs/release.md"
        yx context "ship v2" --clear
    """
    service = get_service()

    if text is not None or clear:
        command = ["context", yak_id, "--clear" if clear else "--set"]
        _apply(service, command, operations.set_context, yak_id, None if clear else text)
        console.print(f"[green]✓[/green] Updated context of {yak_id}")
        return

    result = service.show_context(yak_id)
    if isinstance(result, ValidationError):
        print_validation_error(result)
        raise typer.Exit(ExitCode.USER_ERROR)

    if result:
        console.print(result, markup=False, highlight=False)
    else:
        console.print(f"[dim]{yak_id} has no context[/dim]")


def prune() -> None:
    """
    Remove every done yak whose whole subtree is done.

    Examples:
        yx prune
    """
    service = get_service()
    before = len(service.load())
    after = len(_apply(service, ["prune"], operations.prune))
    console.print(f"[green]✓[/green] Pruned {before - after} yak(s)")

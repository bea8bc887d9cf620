"""
Standardized error handling and exit codes for the yx CLI.
"""

from enum import IntEnum

from rich.console import Console
from rich.markup import escape

from yaks.core.validation import ValidationError, ValidationErrorKind

console = Console()


class ExitCode(IntEnum):
    """Standard exit codes for yx operations."""

    SUCCESS = 0
    """Operation completed successfully."""

    GENERAL_ERROR = 1
    """Generic error (storage, git, network)."""

    USER_ERROR = 2
    """Invalid input, actionable by the user."""


def print_error(
    problem: str,
    *,
    reason: str | None = None,
    solution: str | None = None,
) -> None:
    """
    Print a standardized error message with actionable guidance.

    Args:
        problem: Brief description of what went wrong
        reason: Optional explanation of why it happened
        solution: Optional command or action to fix it

    Example:
        >>> print_error(
        ...     'Yak "ship" has incomplete children',
        ...     solution="yx done ship --recursive",
        ... )
    """
    console.print(f"[red]Error:[/red] {problem}")

    if reason:
        console.print(f"[dim]{reason}[/dim]")

    if solution:
        console.print(f"[cyan]→ Try:[/cyan] {solution}")


# Suggested follow-up command per failure kind; {id} is the offending yak
_SOLUTIONS: dict[ValidationErrorKind, str] = {
    ValidationErrorKind.NOT_FOUND: "yx ls",
    ValidationErrorKind.HAS_INCOMPLETE_CHILDREN: 'yx done "{id}" --recursive',
    ValidationErrorKind.HAS_CHILDREN: 'yx rm "{id}" --recursive',
}


def print_validation_error(error: ValidationError) -> None:
    """Print a rejected mutation with a hint where one applies."""
    solution = _SOLUTIONS.get(error.kind)
    print_error(
        escape(str(error)),
        solution=solution.format(id=error.yak_id) if solution else None,
    )

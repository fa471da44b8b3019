"""Logging configuration for snpset.

Console output goes through rich: log records are rendered by a
``RichHandler`` and CLI status lines by a shared stderr console.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from rich.console import Console
from rich.logging import RichHandler

if TYPE_CHECKING:
    from pathlib import Path

# Global console for stderr output
console = Console(stderr=True)

# Track if logging has been set up
_logging_configured = False


def setup_logging(
    level: int = logging.INFO,
    show_time: bool = True,
    show_path: bool = False,
) -> None:
    """Configure logging with rich handler.

    Sets up the root logger to use rich formatting for console output.
    Calling it more than once has no effect.

    Args:
        level: Logging level (default: INFO).
        show_time: Whether to show timestamps (default: True).
        show_path: Whether to show file paths in log messages.
    """
    global _logging_configured

    if _logging_configured:
        return

    handler = RichHandler(
        console=console,
        show_time=show_time,
        show_path=show_path,
        rich_tracebacks=True,
        tracebacks_show_locals=False,
        markup=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.addHandler(handler)

    logging.getLogger("snpset").setLevel(level)

    _logging_configured = True


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the ``snpset`` namespace.

    Args:
        name: Logger name (typically __name__ from the calling module).

    Returns:
        Logger instance.

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("Importing SNPs from file")
    """
    if name.startswith("snpset."):
        return logging.getLogger(name)
    return logging.getLogger(f"snpset.{name}")


def print_info(message: str) -> None:
    """Print an info message to stderr.

    Args:
        message: Message to print.
    """
    console.print(f"[blue]INFO:[/blue] {message}")


def print_warning(message: str) -> None:
    """Print a warning message to stderr."""
    console.print(f"[yellow]WARNING:[/yellow] {message}")


def print_error(message: str) -> None:
    """Print an error message to stderr."""
    console.print(f"[red]ERROR:[/red] {message}")


def print_success(message: str) -> None:
    """Print a success message to stderr."""
    console.print(f"[green]SUCCESS:[/green] {message}")


def print_stats(stats: dict[str, int | float | str], title: str = "Statistics") -> None:
    """Print statistics in a formatted table.

    Args:
        stats: Dictionary of statistic names and values.
        title: Title for the statistics block.
    """
    from rich.table import Table

    table = Table(title=title, show_header=False)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")

    for key, value in stats.items():
        if isinstance(value, float):
            table.add_row(key, f"{value:,.2f}")
        elif isinstance(value, int):
            table.add_row(key, f"{value:,}")
        else:
            table.add_row(key, str(value))

    console.print(table)


def log_step(step: int, total: int, description: str) -> None:
    """Log a step in a multi-step process.

    Args:
        step: Current step number (1-indexed).
        total: Total number of steps.
        description: Description of the current step.

    Example:
        >>> log_step(1, 2, "Importing SNPs")
        [1/2] Importing SNPs
    """
    console.print(f"[bold cyan][{step}/{total}][/bold cyan] {description}")


def print_file_created(path: str | Path) -> None:
    """Print a message indicating a file was created.

    Args:
        path: Path to the created file.
    """
    from pathlib import Path as PathlibPath

    path = PathlibPath(path)
    console.print(f"  [dim]Created:[/dim] {path.name}")

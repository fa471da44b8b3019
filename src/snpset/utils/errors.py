"""Exceptions and user-friendly error messages for snpset.

This module defines the error taxonomy raised while importing and
filtering SNP tables, along with formatted messages that carry
suggestions for fixing common input problems.
"""

from __future__ import annotations

from collections.abc import Sequence

from rich.console import Console
from rich.panel import Panel

console = Console(stderr=True)


class SnpSetError(Exception):
    """Base exception for snpset errors with user-friendly formatting."""

    def __init__(self, message: str, suggestion: str | None = None):
        """Initialize error with message and optional suggestion.

        Args:
            message: Main error message.
            suggestion: Optional suggestion for how to fix the error.
        """
        self.message = message
        self.suggestion = suggestion
        super().__init__(message)

    def display(self) -> None:
        """Display the error in a formatted panel."""
        display_error(self.message, self.suggestion)


class SchemaError(SnpSetError):
    """Raised when a column required for a bulk is absent from the table."""


class ParseError(SnpSetError):
    """Raised when a depth, allele depth or quality field cannot be parsed."""


class RowCountError(SnpSetError):
    """Raised when per-row values do not line up with the table rows."""


def format_missing_columns(
    bulk_name: str,
    missing: Sequence[str],
    available_bulks: Sequence[str],
) -> str:
    """Format an error for bulk columns absent from the table header.

    Args:
        bulk_name: Bulk (sample) name the columns were resolved from.
        missing: Column names that were not found.
        available_bulks: Bulk names that do have DP, AD and GQ columns.

    Returns:
        Formatted error message with hints.
    """
    msg = f"Column(s) required for bulk '{bulk_name}' not found: {', '.join(missing)}\n\n"
    if available_bulks:
        msg += f"Bulks present in the table:\n  {', '.join(available_bulks)}\n\n"
    else:
        msg += "No bulk with DP, AD and GQ columns was found in the table.\n\n"
    msg += "Hints:\n"
    msg += "  - Column names are built as '<bulk>.DP', '<bulk>.AD' and '<bulk>.GQ'\n"
    msg += "  - Bulk names are case-sensitive\n"
    msg += "  - Use 'snpset bulks --table FILE' to list the bulks in a table"

    return msg


def format_parse_error(column: str, row: int, value: object, expected: str) -> str:
    """Format an error for a field that could not be parsed.

    Args:
        column: Column holding the bad value.
        row: 1-based data row number.
        value: The offending value.
        expected: Description of what the field should contain.

    Returns:
        Formatted error message.
    """
    return f"Cannot parse {column} on row {row}: {value!r} (expected {expected})"


def format_invalid_parameter(
    param_name: str,
    value: int | float | str,
    reason: str,
    suggestion: str | None = None,
) -> str:
    """Format an error for an invalid parameter value.

    Args:
        param_name: Name of the parameter.
        value: Invalid value provided.
        reason: Why the value is invalid.
        suggestion: Optional suggestion for valid values.

    Returns:
        Formatted error message.
    """
    msg = f"Invalid value for {param_name}: {value}\n\n"
    msg += f"Reason: {reason}"

    if suggestion:
        msg += f"\n\nSuggestion: {suggestion}"

    return msg


def format_no_snps_warning(stage: str) -> str:
    """Format a warning for an empty SNP set after filtering.

    Args:
        stage: Name of the filter stage that removed the last SNPs.

    Returns:
        Formatted warning message with suggestions.
    """
    msg = f"No SNPs remaining after the '{stage}' filter.\n"
    msg += "Suggestions:\n"
    msg += "  - Lower --min-gq (the default of 99 is strict for low-coverage bulks)\n"
    msg += "  - Widen --depth-mads or disable it with --no-depth-mads\n"
    msg += "  - Lower --min-total-depth / --min-sample-depth"

    return msg


def display_error(message: str, suggestion: str | None = None) -> None:
    """Display an error message in a formatted panel.

    Args:
        message: Main error message.
        suggestion: Optional suggestion for fixing the error.
    """
    content = f"[red bold]Error:[/red bold] {message}"
    if suggestion:
        content += f"\n\n[yellow]Suggestion:[/yellow] {suggestion}"
    console.print(Panel(content, title="snpset Error", border_style="red"))

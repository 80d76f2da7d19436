"""Rich console output for the pytest-rtm command line.

Status lines are prefixed with a coloured symbol; reports are rendered as
tables. NO_COLOR is honoured, as is the ``--no-color`` flag.
"""

from __future__ import annotations

import json
import os
from typing import TYPE_CHECKING, Any

from rich.console import Console
from rich.markup import escape
from rich.table import Table

if TYPE_CHECKING:
    from pytest_rtm.report_models import RTMReport


def create_console(no_color: bool = False) -> Console:
    """Create a Console, without colours if requested or if NO_COLOR is set."""
    disabled = no_color or os.environ.get("NO_COLOR") is not None
    return Console(force_terminal=False if disabled else None, no_color=disabled)


console = create_console()


def set_no_color(no_color: bool) -> None:
    """Replace the module console, enabling or disabling colours."""
    global console
    console = create_console(no_color=no_color)


def success(message: str, **kwargs: Any) -> None:
    """Print ``message`` after a green check mark."""
    console.print(f"[green]✓[/green] {escape(message)}", **kwargs)


def error(message: str, **kwargs: Any) -> None:
    """Print ``message`` after a red cross."""
    console.print(f"[red]✗[/red] {escape(message)}", **kwargs)


def warning(message: str, **kwargs: Any) -> None:
    """Print ``message`` after a yellow warning sign."""
    console.print(f"[yellow]⚠[/yellow] {escape(message)}", **kwargs)


def print_json(data: dict[str, Any]) -> None:
    """Print ``data`` as highlighted JSON."""
    console.print_json(json.dumps(data))


def print_report_summary(report: RTMReport) -> None:
    """Print the coverage figures and gaps of ``report`` as tables.

    Example:
        >>> print_report_summary(RTMReport.model_validate(data))
    """
    summary = report.summary

    table = Table(title="Requirements Traceability")
    table.add_column("Metric")
    table.add_column("Total", justify="right")
    table.add_column("Covered", justify="right")
    table.add_column("Coverage", justify="right")
    table.add_row(
        "Requirements",
        str(summary.total_requirements),
        str(summary.coverage.requirements.covered),
        f"{summary.coverage.requirements.percentage:.1f}%",
    )
    table.add_row(
        "User stories",
        str(summary.total_user_stories),
        str(summary.coverage.user_stories.covered),
        f"{summary.coverage.user_stories.percentage:.1f}%",
    )
    console.print(table)

    execution = summary.execution
    console.print(
        f"Test cases: {summary.total_test_cases} "
        f"([green]{execution.passed} passed[/green], "
        f"[red]{execution.failed} failed[/red], "
        f"[yellow]{execution.skipped} skipped[/yellow])"
    )

    if report.uncovered.requirements:
        warning("Uncovered requirements: " + ", ".join(report.uncovered.requirements))
    if report.uncovered.user_stories:
        warning("Uncovered user stories: " + ", ".join(report.uncovered.user_stories))

    if report.critical_gaps:
        gaps = Table(title="Critical gaps")
        gaps.add_column("Requirement")
        gaps.add_column("Title")
        gaps.add_column("Gap")
        for gap in report.critical_gaps:
            gaps.add_row(escape(gap.requirement_id), escape(gap.title), gap.kind.value)
        console.print(gaps)
    else:
        success("No critical gaps")

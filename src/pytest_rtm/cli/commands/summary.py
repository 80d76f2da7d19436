"""pytest-rtm summary - print the figures of a written report."""

from __future__ import annotations

import json
from pathlib import Path

import click
from pydantic import ValidationError

from pytest_rtm.cli.errors import EXIT_INVALID, EXIT_MISSING, format_validation_error
from pytest_rtm.cli.output import error, print_json, print_report_summary
from pytest_rtm.report_models import RTMReport


@click.command()
@click.argument("report_path", type=click.Path(path_type=Path))
@click.option(
    "--json",
    "as_json",
    is_flag=True,
    default=False,
    help="Print the summary block as JSON.",
)
def summary(report_path: Path, as_json: bool) -> None:
    """Summarise an rtm-report.json file.

    Examples:

        pytest-rtm summary reports/rtm/rtm-report.json

        pytest-rtm summary reports/rtm/rtm-report.json --json
    """
    if not report_path.exists():
        error(f"File not found: {report_path}")
        raise SystemExit(EXIT_MISSING)

    try:
        report = RTMReport.model_validate(json.loads(report_path.read_text(encoding="utf-8")))
    except json.JSONDecodeError as e:
        error(f"Invalid JSON in {report_path}: {e}")
        raise SystemExit(EXIT_INVALID) from None
    except ValidationError as e:
        error(f"Invalid report in {report_path}:\n{format_validation_error(e)}")
        raise SystemExit(EXIT_INVALID) from None

    if as_json:
        print_json(report.summary.to_json_dict())
    else:
        print_report_summary(report)

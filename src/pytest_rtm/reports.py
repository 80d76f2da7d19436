"""Report writers for the traceability matrix.

This module turns an RTMReport into artifacts:
- rtm-report.json: the complete report (camelCase keys)
- rtm-report.html: the same data as formatted blocks in a standalone page
- coverage.json: cumulative test cases and metrics across runs
- console lines for the pytest terminal summary and the CLI

Functions:
    format_json_report: Serialise a report as JSON
    format_html_report: Render a report as an HTML page
    format_console_report: Format a report for terminal output
    merge_cumulative_coverage: Merge this run's test cases into coverage data
    write_reports: Write every artifact to an output directory

Usage:
    report = aggregator.collect_report_data()
    paths = write_reports(report, Path("reports/rtm"))
"""

from __future__ import annotations

import html
import json
from pathlib import Path
from typing import Any

import structlog

from pytest_rtm.aggregator import percentage
from pytest_rtm.errors import ReportGenerationError
from pytest_rtm.report_models import RTMReport

logger = structlog.get_logger(__name__)

JSON_REPORT_NAME = "rtm-report.json"
HTML_REPORT_NAME = "rtm-report.html"
COVERAGE_FILE_NAME = "coverage.json"
REPORT_TITLE = "Requirements Traceability Matrix Report"

_HTML_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>{title}</title>
<style>
body {{ font-family: sans-serif; margin: 2em; color: #222; }}
h1 {{ border-bottom: 2px solid #444; padding-bottom: 0.3em; }}
pre {{ background: #f5f5f5; border: 1px solid #ddd; padding: 1em; overflow-x: auto; }}
.gap {{ color: #b00020; }}
</style>
</head>
<body>
<h1>{title}</h1>
<p>Generated at {timestamp}</p>
{sections}
</body>
</html>
"""


def format_json_report(report: RTMReport) -> str:
    """Serialise ``report`` as indented JSON with camelCase keys."""
    return json.dumps(report.to_json_dict(), indent=2)


def _section(title: str, data: Any, css_class: str | None = None) -> str:
    heading = f'<h2 class="{css_class}">' if css_class else "<h2>"
    body = html.escape(json.dumps(data, indent=2))
    return f"{heading}{html.escape(title)}</h2>\n<pre>{body}</pre>"


def format_html_report(report: RTMReport) -> str:
    """Render ``report`` as a standalone HTML page.

    Each part of the report is embedded as an escaped, pretty-printed JSON
    block.
    """
    data = report.to_json_dict()
    sections = [
        _section("Summary", data["summary"]),
        _section("Coverage", data["coverage"]),
        _section("Traceability Matrix", data["traceabilityMatrix"]),
        _section("Uncovered", data["uncovered"]),
        _section("Critical Gaps", data["criticalGaps"], "gap" if data["criticalGaps"] else None),
        _section("Requirements", data["details"]["requirements"]),
        _section("User Stories", data["details"]["userStories"]),
        _section("Test Cases", data["details"]["testCases"]),
    ]
    return _HTML_TEMPLATE.format(
        title=REPORT_TITLE,
        timestamp=html.escape(report.timestamp),
        sections="\n".join(sections),
    )


def format_console_report(report: RTMReport) -> str:
    """Format ``report`` for terminal output.

    Example:
        >>> print(format_console_report(report))
        Requirements Traceability
        ============================================================
        Requirements: 2 total, 2 covered (100.0%)
        ...
    """
    summary = report.summary
    lines: list[str] = []

    lines.append("Requirements Traceability")
    lines.append("=" * 60)
    lines.append(
        f"Requirements: {summary.total_requirements} total, "
        f"{summary.coverage.requirements.covered} covered "
        f"({summary.coverage.requirements.percentage:.1f}%)"
    )
    lines.append(
        f"User stories: {summary.total_user_stories} total, "
        f"{summary.coverage.user_stories.covered} covered "
        f"({summary.coverage.user_stories.percentage:.1f}%)"
    )
    lines.append(
        f"Test cases: {summary.total_test_cases} "
        f"(passed {summary.execution.passed}, failed {summary.execution.failed}, "
        f"skipped {summary.execution.skipped})"
    )

    if report.uncovered.requirements:
        lines.append("")
        lines.append("Uncovered requirements:")
        lines.append("-" * 40)
        for req_id in report.uncovered.requirements:
            lines.append(f"  [UNCOVERED] {req_id}")

    if report.critical_gaps:
        lines.append("")
        lines.append("Critical gaps:")
        lines.append("-" * 40)
        for gap in report.critical_gaps:
            lines.append(f"  [{gap.kind.value}] {gap.requirement_id}: {gap.title}")

    return "\n".join(lines)


def merge_cumulative_coverage(
    existing: dict[str, Any],
    test_cases: list[dict[str, Any]],
    total_requirements: int,
) -> dict[str, Any]:
    """Append this run's test cases to previously recorded coverage data.

    Test cases already present (by id) are kept as recorded; metrics are
    recomputed over the merged list.

    Args:
        existing: Previously written coverage data (may be empty).
        test_cases: Test case records of the current run.
        total_requirements: Requirements in the current store.

    Returns:
        New coverage data with ``testCases`` and ``metrics``.
    """
    merged: list[dict[str, Any]] = list(existing.get("testCases", []))
    known = {tc.get("id") for tc in merged}
    for test_case in test_cases:
        if test_case.get("id") not in known:
            merged.append(test_case)
            known.add(test_case.get("id"))

    statuses = [tc.get("status") for tc in merged]
    covered = {req_id for tc in merged for req_id in tc.get("requirements") or ()}

    return {
        "testCases": merged,
        "metrics": {
            "totalTestCases": len(merged),
            "passedTestCases": statuses.count("passed"),
            "failedTestCases": statuses.count("failed"),
            "skippedTestCases": statuses.count("skipped"),
            "totalRequirements": total_requirements,
            "coveredRequirements": len(covered),
            "coveragePercentage": percentage(len(covered), total_requirements),
        },
    }


def _read_existing_coverage(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        return {}
    test_cases = data.get("testCases", [])
    if not isinstance(test_cases, list) or not all(isinstance(tc, dict) for tc in test_cases):
        msg = "testCases must be a list of objects"
        raise ValueError(msg)
    return data


def write_reports(report: RTMReport, output_dir: Path) -> list[Path]:
    """Write every report artifact into ``output_dir``.

    Args:
        report: Aggregated report payload.
        output_dir: Destination directory (created if missing).

    Returns:
        Paths of the written files.

    Raises:
        ReportGenerationError: If any artifact cannot be read or written.
    """
    json_path = output_dir / JSON_REPORT_NAME
    html_path = output_dir / HTML_REPORT_NAME
    coverage_path = output_dir / COVERAGE_FILE_NAME
    current = json_path

    try:
        output_dir.mkdir(parents=True, exist_ok=True)
        json_path.write_text(format_json_report(report), encoding="utf-8")

        current = html_path
        html_path.write_text(format_html_report(report), encoding="utf-8")

        current = coverage_path
        coverage = merge_cumulative_coverage(
            _read_existing_coverage(coverage_path),
            [{k: v for k, v in tc.items() if k != "coverage"} for tc in report.details.test_cases],
            report.summary.total_requirements,
        )
        coverage_path.write_text(json.dumps(coverage, indent=2), encoding="utf-8")
    except (OSError, ValueError) as e:
        logger.error("report_write_failed", path=str(current), error=str(e))
        raise ReportGenerationError(path=str(current), cause=str(e)) from e

    paths = [json_path, html_path, coverage_path]
    logger.info("reports_written", output_dir=str(output_dir), files=[p.name for p in paths])
    return paths


__all__ = [
    "COVERAGE_FILE_NAME",
    "HTML_REPORT_NAME",
    "JSON_REPORT_NAME",
    "REPORT_TITLE",
    "format_console_report",
    "format_html_report",
    "format_json_report",
    "merge_cumulative_coverage",
    "write_reports",
]

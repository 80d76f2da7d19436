"""Tests for pytest_rtm.reports."""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from pytest_rtm.errors import ReportGenerationError
from pytest_rtm.reports import (
    COVERAGE_FILE_NAME,
    HTML_REPORT_NAME,
    JSON_REPORT_NAME,
    REPORT_TITLE,
    format_console_report,
    format_html_report,
    format_json_report,
    merge_cumulative_coverage,
    write_reports,
)
from pytest_rtm.tracker import TraceabilityTracker

MakeTestCase = Callable[..., dict[str, Any]]


@pytest.fixture
def populated_tracker(
    tracker: TraceabilityTracker, make_test_case: MakeTestCase
) -> TraceabilityTracker:
    """Tracker where REQ-001 is covered by a passing test and REQ-002 is not."""
    tracker.add_test_case(
        make_test_case("TC-1", title="<login>", requirements=["REQ-001"], userStories=["US-001"])
    )
    tracker.record_outcome("TC-1", "passed")
    return tracker


class TestFormatters:
    """Tests for the string renderers."""

    def test_json_report(self, populated_tracker: TraceabilityTracker) -> None:
        """The JSON report is the camelCase report payload."""
        report = populated_tracker.aggregator.collect_report_data()
        data = json.loads(format_json_report(report))
        assert data["summary"]["totalTestCases"] == 1
        assert data["traceabilityMatrix"]["requirementsToTests"] == {"REQ-001": ["TC-1"]}

    def test_html_report(self, populated_tracker: TraceabilityTracker) -> None:
        """The HTML page is standalone and escapes embedded data."""
        page = format_html_report(populated_tracker.aggregator.collect_report_data())
        assert page.startswith("<!DOCTYPE html>")
        assert f"<title>{REPORT_TITLE}</title>" in page
        assert "&lt;login&gt;" in page
        assert "<login>" not in page

    def test_console_report(self, populated_tracker: TraceabilityTracker) -> None:
        """The console report lists totals, uncovered items and gaps."""
        text = format_console_report(populated_tracker.aggregator.collect_report_data())
        lines = text.splitlines()
        assert lines[0] == "Requirements Traceability"
        assert "Requirements: 2 total, 1 covered (50.0%)" in lines
        assert "Test cases: 1 (passed 1, failed 0, skipped 0)" in lines
        assert "  [UNCOVERED] REQ-002" in lines
        assert (
            "  [security_requirement_without_security_test] REQ-002: Account lockout" in lines
        )


class TestMergeCumulativeCoverage:
    """Tests for merge_cumulative_coverage."""

    def test_first_run(self) -> None:
        """Without previous data the current test cases are taken as is."""
        coverage = merge_cumulative_coverage(
            {},
            [
                {"id": "TC-1", "requirements": ["REQ-001"], "status": "passed"},
                {"id": "TC-2", "status": "skipped"},
            ],
            total_requirements=4,
        )
        assert coverage["metrics"] == {
            "totalTestCases": 2,
            "passedTestCases": 1,
            "failedTestCases": 0,
            "skippedTestCases": 1,
            "totalRequirements": 4,
            "coveredRequirements": 1,
            "coveragePercentage": 25.0,
        }

    def test_keeps_earlier_runs(self) -> None:
        """Known ids are kept as recorded; new ids are appended."""
        existing = {"testCases": [{"id": "TC-1", "requirements": ["REQ-001"], "status": "failed"}]}
        coverage = merge_cumulative_coverage(
            existing,
            [
                {"id": "TC-1", "requirements": ["REQ-001"], "status": "passed"},
                {"id": "TC-2", "requirements": ["REQ-002"], "status": "passed"},
            ],
            total_requirements=2,
        )
        assert [tc["id"] for tc in coverage["testCases"]] == ["TC-1", "TC-2"]
        assert coverage["testCases"][0]["status"] == "failed"
        assert coverage["metrics"]["coveragePercentage"] == 100.0


class TestWriteReports:
    """Tests for write_reports."""

    def test_writes_all_artifacts(
        self, populated_tracker: TraceabilityTracker, tmp_path: Path
    ) -> None:
        """JSON, HTML and cumulative coverage files are written."""
        output = tmp_path / "out" / "rtm"
        paths = write_reports(populated_tracker.aggregator.collect_report_data(), output)
        assert [p.name for p in paths] == [JSON_REPORT_NAME, HTML_REPORT_NAME, COVERAGE_FILE_NAME]
        assert all(p.exists() for p in paths)

        coverage = json.loads((output / COVERAGE_FILE_NAME).read_text())
        assert coverage["testCases"][0]["id"] == "TC-1"
        assert "coverage" not in coverage["testCases"][0]
        assert coverage["metrics"]["passedTestCases"] == 1

    def test_accumulates_across_runs(
        self,
        populated_tracker: TraceabilityTracker,
        make_test_case: MakeTestCase,
        tmp_path: Path,
    ) -> None:
        """A second write appends new test cases to coverage.json."""
        write_reports(populated_tracker.aggregator.collect_report_data(), tmp_path)
        populated_tracker.add_test_case(make_test_case("TC-2", requirements=["REQ-002"]))
        write_reports(populated_tracker.aggregator.collect_report_data(), tmp_path)

        coverage = json.loads((tmp_path / COVERAGE_FILE_NAME).read_text())
        assert [tc["id"] for tc in coverage["testCases"]] == ["TC-1", "TC-2"]
        assert coverage["metrics"]["coveredRequirements"] == 2

    def test_write_failure(self, populated_tracker: TraceabilityTracker, tmp_path: Path) -> None:
        """I/O failures are wrapped in ReportGenerationError."""
        blocker = tmp_path / "file"
        blocker.write_text("not a directory")
        with pytest.raises(ReportGenerationError) as exc_info:
            write_reports(populated_tracker.aggregator.collect_report_data(), blocker / "rtm")
        assert exc_info.value.code == "REPORT_GENERATION_ERROR"
        assert exc_info.value.cause

    def test_corrupt_coverage_file(
        self, populated_tracker: TraceabilityTracker, tmp_path: Path
    ) -> None:
        """An unreadable cumulative file is reported, naming the file."""
        (tmp_path / COVERAGE_FILE_NAME).write_text("{broken")
        with pytest.raises(ReportGenerationError) as exc_info:
            write_reports(populated_tracker.aggregator.collect_report_data(), tmp_path)
        assert exc_info.value.path == str(tmp_path / COVERAGE_FILE_NAME)

    @pytest.mark.parametrize(
        "content",
        ['{"testCases": null}', '{"testCases": {"id": "TC-0"}}', '{"testCases": ["TC-0", 3]}'],
    )
    def test_malformed_coverage_file(
        self, populated_tracker: TraceabilityTracker, tmp_path: Path, content: str
    ) -> None:
        """A cumulative file whose testCases is not a list of objects is reported."""
        (tmp_path / COVERAGE_FILE_NAME).write_text(content)
        with pytest.raises(ReportGenerationError) as exc_info:
            write_reports(populated_tracker.aggregator.collect_report_data(), tmp_path)
        assert exc_info.value.path == str(tmp_path / COVERAGE_FILE_NAME)
        assert "testCases must be a list of objects" in str(exc_info.value)

"""Pydantic models for the aggregated report payload.

These models are produced by the aggregator and consumed by the report
writers. Attribute names are snake_case; ``model_dump(by_alias=True)``
yields the camelCase keys of the JSON report (``totalRequirements``,
``traceabilityMatrix``, ``criticalGaps`` ...).

Models:
    RatioCoverage: covered count and percentage
    ExecutionSummary: passed/failed/skipped counts and pass percentage
    CoverageSummary: requirement and user story coverage
    Summary: totals, execution and coverage
    TypeCoverage: total/covered/percentage for a requirement type or priority
    TestTypeCoverage: test count and distinct requirements for a test type
    CoverageBreakdown: per requirement type, test type and priority
    TraceabilityMatrix: requirement/story/test linkage tables
    UncoveredItems: requirement and story ids without coverage
    CriticalGap: a high-risk coverage gap
    ReportDetails: per-entity detail records
    RTMReport: the complete report
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from pytest_rtm.constants import GapKind
from pytest_rtm.models import utc_timestamp


class _ReportModel(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> dict[str, Any]:
        """Dump with camelCase keys and JSON-compatible values."""
        return self.model_dump(mode="json", by_alias=True)


class RatioCoverage(_ReportModel):
    """Covered count and percentage of a population."""

    covered: int = 0
    percentage: float = 0


class ExecutionSummary(_ReportModel):
    """Execution outcome counts."""

    passed: int = 0
    failed: int = 0
    skipped: int = 0
    percentage_passed: float = 0


class CoverageSummary(_ReportModel):
    """Requirement and user story coverage."""

    requirements: RatioCoverage = Field(default_factory=RatioCoverage)
    user_stories: RatioCoverage = Field(default_factory=RatioCoverage)


class Summary(_ReportModel):
    """Run-level totals.

    Attributes:
        total_requirements: Requirements in the store
        total_user_stories: User stories in the store
        total_test_cases: Test cases registered during the run
        execution: Outcome counts of the registered test cases
        coverage: Requirement and user story coverage
    """

    total_requirements: int
    total_user_stories: int
    total_test_cases: int
    execution: ExecutionSummary = Field(default_factory=ExecutionSummary)
    coverage: CoverageSummary = Field(default_factory=CoverageSummary)


class TypeCoverage(_ReportModel):
    """Coverage of requirements grouped by type or priority."""

    total: int
    covered: int
    percentage: float


class TestTypeCoverage(_ReportModel):
    """Tests of one test type and the distinct requirements they reference."""

    __test__ = False

    total: int
    requirements: int


class CoverageBreakdown(_ReportModel):
    """Coverage grouped by requirement type, test type and priority."""

    by_requirement_type: dict[str, TypeCoverage] = Field(default_factory=dict)
    by_test_type: dict[str, TestTypeCoverage] = Field(default_factory=dict)
    by_priority: dict[str, TypeCoverage] = Field(default_factory=dict)


class TraceabilityMatrix(_ReportModel):
    """Requirement, user story and test case linkage tables.

    Attributes:
        requirements_to_tests: requirement id -> covering test case ids
        stories_to_requirements: story id -> declared linked requirement ids
        stories_to_tests: story id -> covering test case ids
    """

    requirements_to_tests: dict[str, list[str]] = Field(default_factory=dict)
    stories_to_requirements: dict[str, list[str]] = Field(default_factory=dict)
    stories_to_tests: dict[str, list[str]] = Field(default_factory=dict)


class UncoveredItems(_ReportModel):
    """Requirement and user story ids without covering test cases."""

    requirements: list[str] = Field(default_factory=list)
    user_stories: list[str] = Field(default_factory=list)


class CriticalGap(_ReportModel):
    """A high-priority or security-sensitive requirement lacking coverage."""

    kind: GapKind
    requirement_id: str
    title: str


class ReportDetails(_ReportModel):
    """Stored records with embedded ``coverage`` sub-objects."""

    requirements: list[dict[str, Any]] = Field(default_factory=list)
    user_stories: list[dict[str, Any]] = Field(default_factory=list)
    test_cases: list[dict[str, Any]] = Field(default_factory=list)


class RTMReport(_ReportModel):
    """Complete traceability report.

    This is the payload written to ``rtm-report.json`` and embedded in
    ``rtm-report.html``.

    Example:
        >>> report = tracker.aggregator.collect_report_data()
        >>> report.summary.coverage.requirements.percentage
        100.0
    """

    timestamp: str = Field(default_factory=utc_timestamp)
    summary: Summary
    coverage: CoverageBreakdown
    traceability_matrix: TraceabilityMatrix
    uncovered: UncoveredItems
    critical_gaps: list[CriticalGap] = Field(default_factory=list)
    details: ReportDetails = Field(default_factory=ReportDetails)


__all__ = [
    "CoverageBreakdown",
    "CoverageSummary",
    "CriticalGap",
    "ExecutionSummary",
    "RTMReport",
    "RatioCoverage",
    "ReportDetails",
    "Summary",
    "TestTypeCoverage",
    "TraceabilityMatrix",
    "TypeCoverage",
    "UncoveredItems",
]

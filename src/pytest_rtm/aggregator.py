"""Aggregation of the entity store and coverage index into report data.

The aggregator is read-only: every method can be called any number of
times at any point of the run and reflects the current state.

Functions:
    percentage: Division-safe percentage

Classes:
    CoverageAggregator: Summary, coverage breakdowns, traceability matrix,
        uncovered items, critical gaps and detail records

Usage:
    aggregator = CoverageAggregator(store, index)
    report = aggregator.collect_report_data()
    print(f"Coverage: {report.summary.coverage.requirements.percentage:.1f}%")
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from pytest_rtm.constants import (
    EntityKind,
    ExecutionStatus,
    GapKind,
    RequirementPriority,
    RequirementType,
    TestType,
)
from pytest_rtm.report_models import (
    CoverageBreakdown,
    CoverageSummary,
    CriticalGap,
    ExecutionSummary,
    RatioCoverage,
    ReportDetails,
    RTMReport,
    Summary,
    TestTypeCoverage,
    TraceabilityMatrix,
    TypeCoverage,
    UncoveredItems,
)

if TYPE_CHECKING:
    from pytest_rtm.coverage import CoverageIndex
    from pytest_rtm.models import Requirement, TestCase, UserStory
    from pytest_rtm.store import EntityStore


def percentage(numerator: int, denominator: int) -> float:
    """Return ``numerator / denominator`` as a percentage.

    Returns 0 when ``denominator`` is 0. The result is not rounded.

    Example:
        >>> percentage(1, 3)
        33.33333333333333
        >>> percentage(0, 0)
        0
    """
    if denominator == 0:
        return 0
    return (numerator / denominator) * 100


class CoverageAggregator:
    """Derive report data from an entity store and its coverage index.

    Args:
        store: Entity store holding requirements, stories and test cases.
        index: Coverage index maintained alongside ``store``.
    """

    def __init__(self, store: EntityStore, index: CoverageIndex) -> None:
        self._store = store
        self._index = index

    # Typed views over the store

    def _requirements(self) -> list[Requirement]:
        return list(self._store.all(EntityKind.REQUIREMENT))  # type: ignore[arg-type]

    def _user_stories(self) -> list[UserStory]:
        return list(self._store.all(EntityKind.USER_STORY))  # type: ignore[arg-type]

    def _test_cases(self) -> list[TestCase]:
        return list(self._store.all(EntityKind.TEST_CASE))  # type: ignore[arg-type]

    def _in_test_order(self, test_ids: Iterable[str]) -> list[str]:
        """Order test ids by registration; ids unknown to the store go last."""
        position = {test_id: i for i, test_id in enumerate(self._store.ids(EntityKind.TEST_CASE))}
        fallback = len(position)
        return sorted(test_ids, key=lambda test_id: (position.get(test_id, fallback), test_id))

    # Summary

    def summary(self) -> Summary:
        """Return totals, execution counts and coverage percentages."""
        test_cases = self._test_cases()
        statuses = [tc.status for tc in test_cases]
        passed = statuses.count(ExecutionStatus.PASSED)

        requirement_ids = self._store.ids(EntityKind.REQUIREMENT)
        story_ids = self._store.ids(EntityKind.USER_STORY)
        covered_requirements = sum(
            1 for req_id in requirement_ids if self._index.is_covered(EntityKind.REQUIREMENT, req_id)
        )
        covered_stories = sum(
            1 for story_id in story_ids if self._index.is_covered(EntityKind.USER_STORY, story_id)
        )

        return Summary(
            total_requirements=len(requirement_ids),
            total_user_stories=len(story_ids),
            total_test_cases=len(test_cases),
            execution=ExecutionSummary(
                passed=passed,
                failed=statuses.count(ExecutionStatus.FAILED),
                skipped=statuses.count(ExecutionStatus.SKIPPED),
                percentage_passed=percentage(passed, len(test_cases)),
            ),
            coverage=CoverageSummary(
                requirements=RatioCoverage(
                    covered=covered_requirements,
                    percentage=percentage(covered_requirements, len(requirement_ids)),
                ),
                user_stories=RatioCoverage(
                    covered=covered_stories,
                    percentage=percentage(covered_stories, len(story_ids)),
                ),
            ),
        )

    # Coverage breakdowns

    def coverage_by_requirement_type(self) -> dict[str, TypeCoverage]:
        """Return coverage per requirement type present in the index.

        ``covered`` is the number of test cases filed under the type.
        """
        totals: dict[str, int] = {}
        for req in self._requirements():
            totals[req.type.value] = totals.get(req.type.value, 0) + 1

        result: dict[str, TypeCoverage] = {}
        for req_type, test_ids in self._index.requirement_types.items():
            total = totals.get(req_type, 0)
            result[req_type] = TypeCoverage(
                total=total,
                covered=len(test_ids),
                percentage=percentage(len(test_ids), total),
            )
        return result

    def coverage_by_test_type(self) -> dict[str, TestTypeCoverage]:
        """Return, per test type present in the index, its test count and the
        number of distinct requirements those tests reference."""
        result: dict[str, TestTypeCoverage] = {}
        for test_type, test_ids in self._index.test_types.items():
            referenced: set[str] = set()
            for test_id in test_ids:
                test_case = self._store.get(EntityKind.TEST_CASE, test_id)
                if test_case is not None:
                    referenced.update(test_case.requirements or ())
            result[test_type] = TestTypeCoverage(total=len(test_ids), requirements=len(referenced))
        return result

    def coverage_by_priority(self) -> dict[str, TypeCoverage]:
        """Return coverage per requirement priority present in the store."""
        totals: dict[RequirementPriority, int] = {}
        covered: dict[RequirementPriority, int] = {}
        for req in self._requirements():
            totals[req.priority] = totals.get(req.priority, 0) + 1
            if self._index.is_covered(EntityKind.REQUIREMENT, req.id):
                covered[req.priority] = covered.get(req.priority, 0) + 1

        return {
            priority.value: TypeCoverage(
                total=totals[priority],
                covered=covered.get(priority, 0),
                percentage=percentage(covered.get(priority, 0), totals[priority]),
            )
            for priority in RequirementPriority
            if priority in totals
        }

    def coverage_breakdown(self) -> CoverageBreakdown:
        """Return all three coverage breakdowns."""
        return CoverageBreakdown(
            by_requirement_type=self.coverage_by_requirement_type(),
            by_test_type=self.coverage_by_test_type(),
            by_priority=self.coverage_by_priority(),
        )

    # Traceability

    def traceability_matrix(self) -> TraceabilityMatrix:
        """Return the requirement/story/test linkage tables.

        ``stories_to_requirements`` comes from each story's declared links,
        not from test coverage.
        """
        return TraceabilityMatrix(
            requirements_to_tests={
                req_id: self._in_test_order(test_ids)
                for req_id, test_ids in self._index.requirements.items()
            },
            stories_to_requirements={
                story.id: list(story.linked_requirements) for story in self._user_stories()
            },
            stories_to_tests={
                story_id: self._in_test_order(test_ids)
                for story_id, test_ids in self._index.stories.items()
            },
        )

    def uncovered(self) -> UncoveredItems:
        """Return stored requirement and story ids with no covering test case.

        Ids with a seeded but empty entry count as uncovered.
        """
        return UncoveredItems(
            requirements=[
                req_id
                for req_id in self._store.ids(EntityKind.REQUIREMENT)
                if not self._index.is_covered(EntityKind.REQUIREMENT, req_id)
            ],
            user_stories=[
                story_id
                for story_id in self._store.ids(EntityKind.USER_STORY)
                if not self._index.is_covered(EntityKind.USER_STORY, story_id)
            ],
        )

    def critical_gaps(self) -> list[CriticalGap]:
        """Return high-risk coverage gaps.

        Reports every p0-critical requirement without coverage, and every
        security requirement not covered by at least one security test.
        """
        gaps: list[CriticalGap] = []
        for req in self._requirements():
            covering = self._index.covering(EntityKind.REQUIREMENT, req.id)
            if req.priority is RequirementPriority.P0 and not covering:
                gaps.append(
                    CriticalGap(
                        kind=GapKind.UNCOVERED_CRITICAL_REQUIREMENT,
                        requirement_id=req.id,
                        title=req.title,
                    )
                )
            if req.type is RequirementType.SECURITY and not self._has_security_test(covering):
                gaps.append(
                    CriticalGap(
                        kind=GapKind.SECURITY_REQUIREMENT_WITHOUT_SECURITY_TEST,
                        requirement_id=req.id,
                        title=req.title,
                    )
                )
        return gaps

    def _has_security_test(self, test_ids: Iterable[str]) -> bool:
        for test_id in test_ids:
            test_case = self._store.get(EntityKind.TEST_CASE, test_id)
            if test_case is not None and test_case.type is TestType.SECURITY:
                return True
        return False

    # Details

    def requirement_details(self) -> list[dict[str, Any]]:
        """Return requirement records with their covering test cases."""
        details: list[dict[str, Any]] = []
        for req in self._requirements():
            test_ids = self._in_test_order(self._index.covering(EntityKind.REQUIREMENT, req.id))
            record = req.to_record()
            record["coverage"] = {"testCases": test_ids, "isCovered": bool(test_ids)}
            details.append(record)
        return details

    def user_story_details(self) -> list[dict[str, Any]]:
        """Return user story records with covering tests and declared requirements."""
        details: list[dict[str, Any]] = []
        for story in self._user_stories():
            test_ids = self._in_test_order(self._index.covering(EntityKind.USER_STORY, story.id))
            record = story.to_record()
            record["coverage"] = {
                "testCases": test_ids,
                "requirements": list(story.linked_requirements),
                "isCovered": bool(test_ids),
            }
            details.append(record)
        return details

    def test_case_details(self) -> list[dict[str, Any]]:
        """Return test case records with the requirements and stories they cover."""
        details: list[dict[str, Any]] = []
        for test_case in self._test_cases():
            record = test_case.to_record()
            record["coverage"] = {
                "requirements": list(test_case.requirements or []),
                "userStories": list(test_case.user_stories or []),
            }
            details.append(record)
        return details

    def collect_report_data(self) -> RTMReport:
        """Assemble the complete report payload."""
        return RTMReport(
            summary=self.summary(),
            coverage=self.coverage_breakdown(),
            traceability_matrix=self.traceability_matrix(),
            uncovered=self.uncovered(),
            critical_gaps=self.critical_gaps(),
            details=ReportDetails(
                requirements=self.requirement_details(),
                user_stories=self.user_story_details(),
                test_cases=self.test_case_details(),
            ),
        )


__all__ = ["CoverageAggregator", "percentage"]

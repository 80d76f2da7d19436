"""Per-run traceability coordinator.

TraceabilityTracker owns the entity store and coverage index of one test
run. Host integrations (the pytest plugin, RTMTasks) call its methods as
tests execute; nothing else mutates the store or index.

All mutations are synchronous and assume a single writer.

Usage:
    tracker = TraceabilityTracker(RTMConfig(output_path=Path("reports/rtm")))
    tracker.init()
    tracker.add_test_case({"id": "TC-001", "title": "Login", "type": "e2e",
                           "priority": "p1-must-run", "requirements": ["REQ-001"]})
    tracker.generate_reports()
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

import structlog
from pydantic import BaseModel, ValidationError

from pytest_rtm.aggregator import CoverageAggregator
from pytest_rtm.config import RTMConfig
from pytest_rtm.constants import EntityKind, ExecutionStatus
from pytest_rtm.coverage import CoverageIndex
from pytest_rtm.errors import (
    DuplicateTestCaseError,
    InitializationError,
    InvalidSuiteError,
    InvalidTestCaseError,
    SuiteNotFoundError,
)
from pytest_rtm.loader import load_requirements, load_user_stories
from pytest_rtm.models import Suite, TestCase, merge_unique, utc_timestamp
from pytest_rtm.reports import write_reports
from pytest_rtm.store import EntityStore
from pytest_rtm.validation import validate_test_case

logger = structlog.get_logger(__name__)


def _as_dict(candidate: Mapping[str, Any] | BaseModel) -> dict[str, Any]:
    if isinstance(candidate, BaseModel):
        return candidate.model_dump(by_alias=True, exclude_none=True)
    return dict(candidate)


def _merge_links(own: list[str] | None, inherited: list[str] | None) -> list[str] | None:
    # Nothing declared on either side stays undeclared.
    if own is None and not inherited:
        return None
    return merge_unique(own, inherited)


class TraceabilityTracker:
    """Coordinator of a single traceability run.

    Attributes:
        config: Options of the run.
        store: Entity store holding requirements, stories, test cases, suites.
        index: Coverage index kept consistent with ``store``.
        aggregator: Read-only aggregation over ``store`` and ``index``.

    Example:
        >>> tracker = TraceabilityTracker()
        >>> tracker.validate_requirement_reference("REQ-404")
        False
    """

    def __init__(self, config: RTMConfig | None = None) -> None:
        self.config = config or RTMConfig()
        self.store = EntityStore()
        self.index = CoverageIndex()
        self.aggregator = CoverageAggregator(self.store, self.index)

    # Setup

    def init(self) -> None:
        """Create the output directory and load requirements and user stories.

        Both files are fully loaded before either is committed to the store.

        Raises:
            RequirementsLoadError: If the requirements file cannot be loaded.
            UserStoriesLoadError: If the user stories file cannot be loaded.
            InitializationError: If the output directory cannot be created.
        """
        try:
            self.config.output_path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise InitializationError(cause=str(e)) from e

        requirements = load_requirements(self.config.requirements_path)
        stories = load_user_stories(self.config.user_stories_path)
        self.store.load(EntityKind.REQUIREMENT, requirements)
        self.store.load(EntityKind.USER_STORY, stories)

        logger.info(
            "rtm_initialized",
            requirements=len(requirements),
            user_stories=len(stories),
            output_path=str(self.config.output_path),
        )

    # Existence checks

    def validate_requirement_reference(self, requirement_id: str) -> bool:
        """Return True if the requirement exists; seed its coverage entry if so."""
        return self._validate_reference(EntityKind.REQUIREMENT, requirement_id)

    def validate_story_reference(self, story_id: str) -> bool:
        """Return True if the user story exists; seed its coverage entry if so."""
        return self._validate_reference(EntityKind.USER_STORY, story_id)

    def _validate_reference(self, kind: EntityKind, record_id: str) -> bool:
        if not self.store.has(kind, record_id):
            return False
        self.index.seed(kind, record_id)
        return True

    # Registration

    def add_test_case(self, candidate: Mapping[str, Any] | BaseModel) -> TestCase:
        """Validate and store a test case, then record its coverage.

        Re-adding an id with identical content is a no-op. Either both the
        store and the index change, or neither does.

        Args:
            candidate: Test case mapping or model.

        Returns:
            The stored TestCase.

        Raises:
            InvalidTestCaseError: If the candidate fails validation.
            DuplicateTestCaseError: If the id is stored with different content.
        """
        record = _as_dict(candidate)
        test_id = record.get("id")
        if not validate_test_case(record, self.store, check_links=self.config.validate_links):
            raise InvalidTestCaseError(test_id=str(test_id) if test_id else None)

        try:
            test_case = TestCase.model_validate(record)
        except ValidationError as e:
            raise InvalidTestCaseError(
                f"Invalid test case structure: {e.error_count()} field error(s)",
                test_id=str(test_id),
            ) from e

        existing = self.store.get(EntityKind.TEST_CASE, test_case.id)
        if existing is not None:
            if existing.same_content(test_case):
                logger.debug("test_case_already_registered", test_id=test_case.id)
                return existing
            raise DuplicateTestCaseError(test_case.id)

        self.store.put(EntityKind.TEST_CASE, test_case)
        self.index.record(test_case, self.store)
        logger.debug(
            "test_case_registered",
            test_id=test_case.id,
            requirements=test_case.requirements,
            user_stories=test_case.user_stories,
        )
        return test_case

    def add_suite(self, suite: Mapping[str, Any] | BaseModel) -> Suite:
        """Store suite metadata, stamping its creation time.

        Raises:
            InvalidSuiteError: If the suite has no id.
        """
        record = _as_dict(suite)
        if not record.get("id"):
            raise InvalidSuiteError()
        record["timestamp"] = utc_timestamp()
        try:
            stored = Suite.model_validate(record)
        except ValidationError as e:
            raise InvalidSuiteError(f"Invalid suite structure: {e.error_count()} field error(s)") from e

        self.store.put(EntityKind.SUITE, stored)
        logger.debug("suite_registered", suite_id=stored.id)
        return stored

    def record_outcome(self, test_id: str, status: ExecutionStatus | str) -> None:
        """Record the execution status of a registered test case.

        Unknown ids are ignored.
        """
        test_case = self.store.get(EntityKind.TEST_CASE, test_id)
        if test_case is None:
            logger.warning("outcome_for_unknown_test_case", test_id=test_id, status=str(status))
            return
        self.store.put(
            EntityKind.TEST_CASE,
            test_case.model_copy(update={"status": ExecutionStatus(status)}),
        )

    # Suite propagation

    def apply_suite_to_tests(self, suite_id: str) -> list[str]:
        """Merge suite metadata into every test case of the suite.

        ``requirements``, ``user_stories`` and ``tags`` become the ordered
        union of the test case's values followed by the suite's. Coverage is
        re-recorded for the affected test cases.

        Args:
            suite_id: Identifier of a registered suite.

        Returns:
            Ids of the updated test cases.

        Raises:
            SuiteNotFoundError: If no suite has this id.
            InvalidTestCaseError: If link validation is on and the suite
                references unknown requirements or user stories. No test
                case is updated.
        """
        suite = self.store.get(EntityKind.SUITE, suite_id)
        if suite is None:
            raise SuiteNotFoundError(suite_id)

        members = [
            tc
            for tc in self.store.all(EntityKind.TEST_CASE)
            if isinstance(tc, TestCase) and tc.suite_id == suite_id
        ]
        if members and self.config.validate_links:
            self._check_suite_links(suite, members[0].id)

        for test_case in members:
            merged = test_case.model_copy(
                update={
                    "requirements": _merge_links(test_case.requirements, suite.requirements),
                    "user_stories": _merge_links(test_case.user_stories, suite.user_stories),
                    "tags": _merge_links(test_case.tags, suite.tags),
                }
            )
            self.store.put(EntityKind.TEST_CASE, merged)
            self.index.record(merged, self.store)

        logger.info("suite_applied", suite_id=suite_id, test_cases=len(members))
        return [tc.id for tc in members]

    def _check_suite_links(self, suite: Suite, test_id: str) -> None:
        unknown = [
            *(r for r in suite.requirements or () if not self.store.has(EntityKind.REQUIREMENT, r)),
            *(s for s in suite.user_stories or () if not self.store.has(EntityKind.USER_STORY, s)),
        ]
        if unknown:
            logger.warning("suite_links_unknown", suite_id=suite.id, unknown=unknown)
            raise InvalidTestCaseError(
                f"Suite {suite.id} references unknown ids: {', '.join(unknown)}",
                test_id=test_id,
            )

    # Reporting

    def get_coverage_stats(self) -> dict[str, Any]:
        """Return the summary and coverage breakdowns as a camelCase dict."""
        stats = self.aggregator.summary().to_json_dict()
        stats["coverageBreakdown"] = self.aggregator.coverage_breakdown().to_json_dict()
        return stats

    def generate_reports(self) -> list[Path]:
        """Write the report artifacts to the configured output directory.

        Raises:
            ReportGenerationError: If an artifact cannot be written.
        """
        report = self.aggregator.collect_report_data()
        return write_reports(report, self.config.output_path)


__all__ = ["TraceabilityTracker"]

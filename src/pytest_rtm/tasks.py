"""Host-facing task table.

RTMTasks exposes the tracker's operations under stable task names so that a
host runner can wire them into its own hook or command system:

    rtm:validateRequirement  -> bool
    rtm:validateStory        -> bool
    rtm:addTestCase          -> None, raises InvalidTestCaseError
    rtm:addSuite             -> None
    rtm:applySuiteToTests    -> None, raises SuiteNotFoundError
    rtm:getCoverage          -> dict

Errors from the RTMError hierarchy propagate unchanged and are not logged
here; anything else is logged with full context before being re-raised.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any

import structlog

from pytest_rtm.constants import TestPriority, TestType
from pytest_rtm.errors import RTMError
from pytest_rtm.tracker import TraceabilityTracker

logger = structlog.get_logger(__name__)

TaskHandler = Callable[..., Any]


class RTMTasks:
    """Task handlers bound to one TraceabilityTracker.

    Args:
        tracker: The run's coordinator.

    Raises:
        TypeError: If ``tracker`` is not a TraceabilityTracker.

    Example:
        >>> tasks = RTMTasks(tracker)
        >>> tasks.register(on)  # on("task", {...}); on("after:run", ...)
    """

    def __init__(self, tracker: TraceabilityTracker) -> None:
        if not isinstance(tracker, TraceabilityTracker):
            msg = "RTMTasks requires a TraceabilityTracker instance"
            raise TypeError(msg)
        self.tracker = tracker

    def validate_requirement(self, requirement_id: str) -> bool:
        """Return True if the requirement exists."""
        return self._guard(
            "validate_requirement",
            lambda: self.tracker.validate_requirement_reference(requirement_id),
            requirement_id=requirement_id,
        )

    def validate_story(self, story_id: str) -> bool:
        """Return True if the user story exists."""
        return self._guard(
            "validate_story",
            lambda: self.tracker.validate_story_reference(story_id),
            story_id=story_id,
        )

    def add_test_case(self, test_case: Mapping[str, Any]) -> None:
        """Register a test case, defaulting type and priority.

        Test cases registered through a host are always automated.
        """
        enhanced = {
            **test_case,
            "type": test_case.get("type") or TestType.E2E.value,
            "priority": test_case.get("priority") or TestPriority.P1.value,
            "automated": True,
        }
        self._guard(
            "add_test_case",
            lambda: self.tracker.add_test_case(enhanced),
            test_id=test_case.get("id"),
        )

    def add_suite(self, suite: Mapping[str, Any]) -> None:
        """Register suite metadata."""
        self._guard("add_suite", lambda: self.tracker.add_suite(suite), suite_id=suite.get("id"))

    def apply_suite_to_tests(self, suite_id: str) -> None:
        """Merge suite metadata into the suite's test cases."""
        self._guard(
            "apply_suite_to_tests",
            lambda: self.tracker.apply_suite_to_tests(suite_id),
            suite_id=suite_id,
        )

    def get_coverage(self) -> dict[str, Any]:
        """Return current coverage statistics."""
        return self._guard("get_coverage", self.tracker.get_coverage_stats)

    def generate_reports(self) -> list[Path]:
        """Write the report artifacts; invoked once at the end of the run."""
        return self._guard("generate_reports", self.tracker.generate_reports)

    def handlers(self) -> dict[str, TaskHandler]:
        """Return the task table keyed by task name."""
        return {
            "rtm:validateRequirement": self.validate_requirement,
            "rtm:validateStory": self.validate_story,
            "rtm:addTestCase": self.add_test_case,
            "rtm:addSuite": self.add_suite,
            "rtm:applySuiteToTests": self.apply_suite_to_tests,
            "rtm:getCoverage": self.get_coverage,
        }

    def register(self, on: Callable[[str, Any], Any]) -> None:
        """Register the task table and the end-of-run report hook with a host.

        Args:
            on: Host registration callable taking an event name and a handler
                (or table of handlers).
        """
        on("task", self.handlers())
        on("after:run", self.generate_reports)

    @staticmethod
    def _guard(task: str, call: Callable[[], Any], **context: Any) -> Any:
        try:
            return call()
        except RTMError:
            raise
        except Exception:
            logger.exception("rtm_task_failed", task=task, **context)
            raise


__all__ = ["RTMTasks"]

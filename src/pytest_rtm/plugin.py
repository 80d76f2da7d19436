"""pytest plugin wiring the traceability tracker into a test session.

The plugin is loaded through the ``pytest11`` entry point but stays inert
unless enabled with ``--rtm`` (or ``rtm_enabled = true`` in the ini file).
When enabled it:

- loads requirements and user stories at configure time
- registers one suite per class carrying ``@pytest.mark.rtm_suite``
- validates marker references and registers a test case during setup
- records the outcome of every registered test case
- applies suite metadata and writes the reports at session finish
- prints a summary section in the terminal report

Markers:
    requirement(*ids): requirement ids covered by the test
    user_story(*ids): user story ids covered by the test
    rtm(type, priority, tags, dependencies, description, id): test metadata
    rtm_suite(requirements, user_stories, tags, type, priority, description):
        class-level metadata merged into every test of the class

Example:
    @pytest.mark.rtm_suite(requirements=["REQ-001"])
    class TestLogin:
        @pytest.mark.requirement("REQ-002")
        @pytest.mark.rtm(type="security", priority="p1-must-run")
        def test_lockout(self) -> None:
            ...
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path
from typing import Any

import pytest
import structlog

from pytest_rtm.config import RTMConfig
from pytest_rtm.constants import ExecutionStatus
from pytest_rtm.errors import RTMError
from pytest_rtm.models import merge_unique
from pytest_rtm.observability import configure_logging
from pytest_rtm.reports import format_console_report
from pytest_rtm.tasks import RTMTasks
from pytest_rtm.tracker import TraceabilityTracker

logger = structlog.get_logger(__name__)

PLUGIN_NAME = "rtm-session"
TEST_CASE_PREFIX = "TC-"
SUITE_PREFIX = "TS-"

MARKERS: tuple[str, ...] = (
    "requirement(*ids): requirement ids covered by the test",
    "user_story(*ids): user story ids covered by the test",
    "rtm(type, priority, tags, dependencies, description, id): traceability metadata of the test",
    "rtm_suite(requirements, user_stories, tags, type, priority, description): "
    "traceability metadata shared by every test of the class",
)


# =============================================================================
# Options and configuration
# =============================================================================


def pytest_addoption(parser: pytest.Parser) -> None:
    """Register command line and ini options."""
    group = parser.getgroup("rtm", "requirements traceability matrix")
    group.addoption(
        "--rtm",
        action="store_true",
        dest="rtm",
        default=False,
        help="Enable requirements traceability tracking and reports.",
    )
    group.addoption(
        "--rtm-requirements",
        dest="rtm_requirements",
        default=None,
        metavar="PATH",
        help="Requirements definition file (JSON or YAML).",
    )
    group.addoption(
        "--rtm-user-stories",
        dest="rtm_user_stories",
        default=None,
        metavar="PATH",
        help="User stories definition file (JSON or YAML).",
    )
    group.addoption(
        "--rtm-output",
        dest="rtm_output",
        default=None,
        metavar="DIR",
        help="Directory receiving the traceability reports.",
    )
    group.addoption(
        "--rtm-no-validate-links",
        action="store_true",
        dest="rtm_no_validate_links",
        default=False,
        help="Accept test cases referencing unknown requirements or user stories.",
    )

    parser.addini(
        "rtm_enabled",
        "Enable requirements traceability tracking",
        type="bool",
        default=False,
    )
    parser.addini("rtm_requirements_path", "Requirements definition file", default="")
    parser.addini("rtm_user_stories_path", "User stories definition file", default="")
    parser.addini("rtm_output_path", "Traceability report directory", default="")
    parser.addini(
        "rtm_validate_links",
        "Reject test cases referencing unknown requirements or user stories",
        type="bool",
        default=True,
    )


def is_enabled(config: pytest.Config) -> bool:
    """Return True if traceability tracking is enabled for this session."""
    return bool(config.getoption("rtm") or config.getini("rtm_enabled"))


def is_xdist_controller(config: pytest.Config) -> bool:
    """Return True on the pytest-xdist process that distributes but runs no tests."""
    if hasattr(config, "workerinput"):
        return False
    return bool(getattr(config.option, "numprocesses", None))


def pytest_configure(config: pytest.Config) -> None:
    """Register markers and, when enabled, start tracking.

    Raises:
        pytest.UsageError: If the requirements or user stories cannot be
            loaded.
    """
    for marker in MARKERS:
        config.addinivalue_line("markers", marker)

    if not is_enabled(config):
        return

    if not structlog.is_configured():
        configure_logging(configure_stdlib=False)

    if is_xdist_controller(config):
        logger.warning("rtm_disabled_on_xdist_controller")
        config.issue_config_time_warning(
            pytest.PytestConfigWarning(
                "pytest-rtm: tracking runs on xdist workers only; "
                "worker reports are not merged"
            ),
            stacklevel=2,
        )
        return

    tracker = TraceabilityTracker(RTMConfig.from_pytest_config(config))
    try:
        tracker.init()
    except RTMError as e:
        msg = f"pytest-rtm: {e}"
        raise pytest.UsageError(msg) from e

    config.pluginmanager.register(RTMPlugin(tracker), PLUGIN_NAME)


@pytest.fixture
def rtm_tracker(request: pytest.FixtureRequest) -> TraceabilityTracker:
    """The session's TraceabilityTracker; skips the test when tracking is off."""
    plugin = request.config.pluginmanager.get_plugin(PLUGIN_NAME)
    if plugin is None:
        pytest.skip("requirements traceability is not enabled (use --rtm)")
    return plugin.tracker


# =============================================================================
# Session plugin
# =============================================================================


def _marker_ids(item: pytest.Item, name: str) -> list[str]:
    """Collect ids from every ``name`` marker applying to ``item``.

    Arguments may be given one by one or as a list.
    """
    ids: list[str] = []
    for marker in item.iter_markers(name):
        for arg in marker.args:
            if isinstance(arg, (list, tuple)):
                ids.extend(arg)
            else:
                ids.append(arg)
    return merge_unique(ids)


def _without_none(record: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in record.items() if value is not None}


def _as_list(value: Iterable[str] | str | None) -> list[str] | None:
    if value is None:
        return None
    if isinstance(value, str):
        return [value]
    return list(value)


class RTMPlugin:
    """Session-scoped hooks feeding one TraceabilityTracker.

    Attributes:
        tracker: The session's coordinator.
        tasks: Task table bound to ``tracker``.
        report_paths: Artifacts written at session finish.
        error: Report generation failure, if any.
    """

    def __init__(self, tracker: TraceabilityTracker) -> None:
        self.tracker = tracker
        self.tasks = RTMTasks(tracker)
        self.report_paths: list[Path] = []
        self.error: RTMError | None = None
        self._suite_of: dict[str, str] = {}
        self._suites: dict[str, dict[str, Any]] = {}
        self._test_ids: dict[str, str] = {}

    # Collection

    @pytest.hookimpl(trylast=True)
    def pytest_collection_modifyitems(self, items: list[pytest.Item]) -> None:
        """Register the suites of the collected items."""
        for item in items:
            suite_id = self._register_suite(item)
            if suite_id is not None:
                self._suite_of[item.nodeid] = suite_id

    def _register_suite(self, item: pytest.Item) -> str | None:
        cls_node = item.getparent(pytest.Class)
        if cls_node is None:
            return None
        marker = next((m for m in cls_node.own_markers if m.name == "rtm_suite"), None)
        if marker is None:
            return None

        suite_id = f"{SUITE_PREFIX}{cls_node.name}"
        if suite_id not in self._suites:
            options = marker.kwargs
            suite = _without_none(
                {
                    "id": suite_id,
                    "title": cls_node.name,
                    "requirements": _as_list(options.get("requirements")),
                    "userStories": _as_list(options.get("user_stories")),
                    "tags": _as_list(options.get("tags")),
                    "type": options.get("type"),
                    "priority": options.get("priority"),
                    "description": options.get("description"),
                }
            )
            self.tasks.add_suite(suite)
            self._suites[suite_id] = suite
        return suite_id

    # Test execution

    @pytest.hookimpl(tryfirst=True)
    def pytest_runtest_setup(self, item: pytest.Item) -> None:
        """Validate references and register the test case of ``item``."""
        requirements = _marker_ids(item, "requirement")
        stories = _marker_ids(item, "user_story")
        rtm_marker = item.get_closest_marker("rtm")
        suite_id = self._suite_of.get(item.nodeid)
        if not (requirements or stories or rtm_marker or suite_id):
            return

        suite = self._suites.get(suite_id, {}) if suite_id else {}
        if self.tracker.config.validate_links:
            for req_id in merge_unique(requirements, suite.get("requirements")):
                if not self.tasks.validate_requirement(req_id):
                    pytest.fail(f"Invalid requirement ID: {req_id}", pytrace=False)
            for story_id in merge_unique(stories, suite.get("userStories")):
                if not self.tasks.validate_story(story_id):
                    pytest.fail(f"Invalid user story ID: {story_id}", pytrace=False)

        options = rtm_marker.kwargs if rtm_marker else {}
        test_id = options.get("id") or f"{TEST_CASE_PREFIX}{item.nodeid}"
        test_case = _without_none(
            {
                "id": test_id,
                "title": item.name,
                "type": options.get("type"),
                "priority": options.get("priority"),
                "requirements": requirements or None,
                "userStories": stories or None,
                "tags": _as_list(options.get("tags")),
                "dependencies": _as_list(options.get("dependencies")),
                "description": options.get("description"),
                "suiteId": suite_id,
            }
        )
        try:
            self.tasks.add_test_case(test_case)
        except RTMError as e:
            pytest.fail(str(e), pytrace=False)
        self._test_ids[item.nodeid] = test_id

    def pytest_runtest_logreport(self, report: pytest.TestReport) -> None:
        """Record the outcome of a registered test case.

        The call phase decides the outcome; a skipped or failed setup is
        recorded as is.
        """
        test_id = self._test_ids.get(report.nodeid)
        if test_id is None:
            return
        if report.when == "call" or (report.when == "setup" and not report.passed):
            if report.passed:
                status = ExecutionStatus.PASSED
            elif report.skipped:
                status = ExecutionStatus.SKIPPED
            else:
                status = ExecutionStatus.FAILED
            self.tracker.record_outcome(test_id, status)

    # Session end

    def pytest_sessionfinish(self, session: pytest.Session) -> None:
        """Apply suite metadata and write the reports."""
        try:
            for suite_id in self._suites:
                self.tasks.apply_suite_to_tests(suite_id)
            self.report_paths = self.tasks.generate_reports()
        except RTMError as e:
            self.error = e
            logger.error("rtm_session_finish_failed", code=e.code, error=str(e))

    def pytest_terminal_summary(self, terminalreporter: pytest.TerminalReporter) -> None:
        """Print the traceability summary after the test results."""
        terminalreporter.write_sep("=", "requirements traceability")
        report = self.tracker.aggregator.collect_report_data()
        for line in format_console_report(report).splitlines():
            terminalreporter.write_line(line)
        if self.error is not None:
            terminalreporter.write_line(f"RTM report generation failed: {self.error}", red=True)
        for path in self.report_paths:
            terminalreporter.write_line(f"RTM report written: {path}")


__all__ = [
    "MARKERS",
    "PLUGIN_NAME",
    "RTMPlugin",
    "is_enabled",
    "is_xdist_controller",
    "pytest_addoption",
    "pytest_configure",
    "rtm_tracker",
]

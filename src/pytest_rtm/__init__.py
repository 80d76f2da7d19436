"""pytest-rtm: requirements traceability matrix for pytest.

This package tracks which tests cover which requirements and user stories
during a pytest run and reports:
- Requirement and user story coverage, overall and by type and priority
- A requirement/story/test traceability matrix
- Uncovered items and critical gaps (uncovered p0 and security requirements)
- JSON, HTML and cumulative coverage artifacts

Example:
    >>> from pytest_rtm import RTMConfig, TraceabilityTracker
    >>> tracker = TraceabilityTracker(RTMConfig())
    >>> tracker.init()
    >>> tracker.add_test_case(
    ...     {"id": "TC-001", "title": "login", "type": "e2e",
    ...      "priority": "p1-must-run", "requirements": ["REQ-001"]}
    ... )
    >>> tracker.generate_reports()
"""

from __future__ import annotations

__version__ = "0.1.0"

__all__ = [
    # Coordinator and host glue
    "TraceabilityTracker",
    "RTMTasks",
    # Configuration
    "RTMConfig",
    # Records
    "Requirement",
    "UserStory",
    "TestCase",
    "Suite",
    # Report payload
    "RTMReport",
    # Exceptions
    "RTMError",
    "InitializationError",
    "RequirementsLoadError",
    "UserStoriesLoadError",
    "InvalidTestCaseError",
    "DuplicateTestCaseError",
    "InvalidSuiteError",
    "SuiteNotFoundError",
    "ReportGenerationError",
]

_EXPORTS = {
    "TraceabilityTracker": "pytest_rtm.tracker",
    "RTMTasks": "pytest_rtm.tasks",
    "RTMConfig": "pytest_rtm.config",
    "Requirement": "pytest_rtm.models",
    "UserStory": "pytest_rtm.models",
    "TestCase": "pytest_rtm.models",
    "Suite": "pytest_rtm.models",
    "RTMReport": "pytest_rtm.report_models",
}


def __getattr__(name: str) -> object:
    """Lazy import of public API members."""
    import importlib

    if name in _EXPORTS:
        return getattr(importlib.import_module(_EXPORTS[name]), name)
    if name in __all__:
        from pytest_rtm import errors as errors_module

        return getattr(errors_module, name)
    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)

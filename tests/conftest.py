"""Shared fixtures for pytest-rtm tests.

Provides the requirement and user story fixture files, a configuration
pointing at copies of them under ``tmp_path``, and an initialised tracker.
"""

from __future__ import annotations

import json
import shutil
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
import structlog

from pytest_rtm.config import RTMConfig
from pytest_rtm.tracker import TraceabilityTracker

pytest_plugins = ["pytester"]

FIXTURES_DIR = Path(__file__).parent / "fixtures"
REQUIREMENTS_FILE = "requirements.json"
USER_STORIES_FILE = "user-stories.json"


@pytest.fixture(autouse=True)
def configure_structlog_for_tests() -> None:
    """Log to stdout without caching so every test sees the same pipeline."""
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=False,
    )


@pytest.fixture
def fixtures_dir() -> Path:
    """Return the directory holding the sample definition files."""
    return FIXTURES_DIR


@pytest.fixture
def requirements_data() -> dict[str, Any]:
    """Return the sample requirements (REQ-001 p0 functional, REQ-002 p1 security)."""
    return json.loads((FIXTURES_DIR / REQUIREMENTS_FILE).read_text())


@pytest.fixture
def user_stories_data() -> dict[str, Any]:
    """Return the sample user stories (US-001 -> REQ-001, US-002 -> REQ-001, REQ-002)."""
    return json.loads((FIXTURES_DIR / USER_STORIES_FILE).read_text())


@pytest.fixture
def rtm_config(tmp_path: Path) -> RTMConfig:
    """Return a configuration reading copies of the sample files under tmp_path."""
    requirements_path = tmp_path / REQUIREMENTS_FILE
    user_stories_path = tmp_path / USER_STORIES_FILE
    shutil.copy(FIXTURES_DIR / REQUIREMENTS_FILE, requirements_path)
    shutil.copy(FIXTURES_DIR / USER_STORIES_FILE, user_stories_path)
    return RTMConfig(
        requirements_path=requirements_path,
        user_stories_path=user_stories_path,
        output_path=tmp_path / "reports" / "rtm",
    )


@pytest.fixture
def tracker(rtm_config: RTMConfig) -> TraceabilityTracker:
    """Return a tracker initialised from the sample files."""
    tracker = TraceabilityTracker(rtm_config)
    tracker.init()
    return tracker


def _make_test_case(test_id: str = "TC-001", **overrides: Any) -> dict[str, Any]:
    """Build a valid test case mapping, overriding any field."""
    test_case: dict[str, Any] = {
        "id": test_id,
        "title": f"Test {test_id}",
        "type": "e2e",
        "priority": "p1-must-run",
    }
    test_case.update(overrides)
    return test_case


@pytest.fixture
def make_test_case() -> Callable[..., dict[str, Any]]:
    """Return a builder of valid test case mappings.

    Example:
        >>> make_test_case("TC-002", requirements=["REQ-001"], type="security")
    """
    return _make_test_case

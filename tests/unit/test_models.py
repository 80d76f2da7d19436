"""Tests for pytest_rtm.models."""

from __future__ import annotations

from datetime import datetime
from typing import Any

import pytest
from pydantic import ValidationError

from pytest_rtm.constants import ExecutionStatus, RequirementPriority, TestPriority, TestType
from pytest_rtm.models import Requirement, Suite, TestCase, UserStory, merge_unique, utc_timestamp


class TestMergeUnique:
    """Tests for merge_unique."""

    def test_keeps_first_occurrence_order(self) -> None:
        """Earlier values keep their position; new ones are appended."""
        assert merge_unique(["REQ-002"], ["REQ-001", "REQ-002"]) == ["REQ-002", "REQ-001"]

    def test_skips_none(self) -> None:
        """None sequences contribute nothing."""
        assert merge_unique(None, ["a"], None) == ["a"]
        assert merge_unique(None, None) == []

    def test_removes_duplicates_within_a_sequence(self) -> None:
        """Repeated values in one sequence collapse."""
        assert merge_unique(["a", "a", "b"]) == ["a", "b"]


class TestRequirement:
    """Tests for the Requirement model."""

    def test_from_fixture_record(self, requirements_data: dict[str, Any]) -> None:
        """camelCase fixture keys map to snake_case attributes."""
        req = Requirement.model_validate(requirements_data["REQ-001"])
        assert req.priority is RequirementPriority.P0
        assert req.acceptance_criteria == [
            "Valid credentials open the dashboard",
            "Invalid credentials show an error",
        ]

    def test_to_record_round_trips_aliases(self, requirements_data: dict[str, Any]) -> None:
        """to_record reproduces the fixture keys."""
        record = Requirement.model_validate(requirements_data["REQ-002"]).to_record()
        assert record["relatedRequirements"] == ["REQ-001"]
        assert record["type"] == "security"
        assert "userStory" not in record

    def test_unknown_keys_are_kept(self) -> None:
        """Extra keys from definition files survive into reports."""
        req = Requirement.model_validate(
            {
                "id": "REQ-9",
                "title": "t",
                "type": "technical",
                "priority": "p3-low",
                "owner": "platform-team",
            }
        )
        assert req.to_record()["owner"] == "platform-team"

    def test_invalid_priority_rejected(self) -> None:
        """Out-of-enum priorities fail validation."""
        with pytest.raises(ValidationError):
            Requirement.model_validate(
                {"id": "REQ-9", "title": "t", "type": "technical", "priority": "urgent"}
            )

    def test_frozen(self, requirements_data: dict[str, Any]) -> None:
        """Records cannot be mutated in place."""
        req = Requirement.model_validate(requirements_data["REQ-001"])
        with pytest.raises(ValidationError):
            req.title = "changed"  # type: ignore[misc]


class TestUserStory:
    """Tests for the UserStory model."""

    def test_linked_requirements_default(self) -> None:
        """Stories without links have an empty list."""
        story = UserStory.model_validate({"id": "US-9", "title": "t"})
        assert story.linked_requirements == []


class TestTestCase:
    """Tests for the TestCase model."""

    def test_defaults(self) -> None:
        """Type, priority, automation and timestamp have defaults."""
        tc = TestCase(id="TC-1", title="t")
        assert tc.type is TestType.E2E
        assert tc.priority is TestPriority.P1
        assert tc.automated is True
        assert tc.requirements is None
        assert tc.user_stories is None
        assert tc.status is None
        assert datetime.fromisoformat(tc.timestamp).tzinfo is not None

    def test_user_stories_alias(self) -> None:
        """userStories and suiteId are read from camelCase keys."""
        tc = TestCase.model_validate(
            {"id": "TC-1", "title": "t", "userStories": ["US-001"], "suiteId": "TS-A"}
        )
        assert tc.user_stories == ["US-001"]
        assert tc.suite_id == "TS-A"

    def test_same_content_ignores_timestamp_and_status(self) -> None:
        """Only timestamp and status may differ between equal test cases."""
        first = TestCase(id="TC-1", title="t", requirements=["REQ-001"])
        second = first.model_copy(
            update={"timestamp": "2020-01-01T00:00:00+00:00", "status": ExecutionStatus.PASSED}
        )
        assert first.same_content(second)

    def test_same_content_detects_changed_links(self) -> None:
        """Different requirement links make the content differ."""
        first = TestCase(id="TC-1", title="t", requirements=["REQ-001"])
        second = TestCase(id="TC-1", title="t", requirements=["REQ-002"])
        assert not first.same_content(second)


class TestSuite:
    """Tests for the Suite model."""

    def test_only_id_required(self) -> None:
        """A suite may consist of an id only."""
        suite = Suite(id="TS-A")
        assert suite.requirements == []
        assert suite.timestamp is None


def test_utc_timestamp_is_iso() -> None:
    """utc_timestamp returns a timezone-aware ISO 8601 string."""
    assert datetime.fromisoformat(utc_timestamp()).utcoffset() is not None

"""Pydantic models for the traceability entities.

This module defines the records held by the entity store:
- Requirement: a tracked capability or constraint with type and priority
- UserStory: a narrative grouping, optionally linked to requirements
- TestCase: a concrete check, optionally linked to requirements and stories
- Suite: a named grouping of test cases sharing default metadata

Records are frozen. Attribute names are snake_case; the JSON form uses the
camelCase keys found in fixture files (``acceptanceCriteria``,
``linkedRequirements``, ``userStories``, ``suiteId``). Unknown keys are kept
so that reports reproduce what the fixture files contained.

Example:
    >>> req = Requirement.model_validate(
    ...     {"id": "REQ-001", "title": "Login", "type": "functional", "priority": "p0-critical"}
    ... )
    >>> req.priority
    <RequirementPriority.P0: 'p0-critical'>
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from pytest_rtm.constants import (
    ExecutionStatus,
    RequirementPriority,
    RequirementType,
    TestPriority,
    TestType,
)

_RECORD_CONFIG = ConfigDict(frozen=True, extra="allow", populate_by_name=True)


def utc_timestamp() -> str:
    """Return the current UTC time as an ISO 8601 string."""
    return datetime.now(UTC).isoformat()


def merge_unique(*sequences: Iterable[str] | None) -> list[str]:
    """Concatenate sequences, dropping repeated values.

    The first occurrence of each value wins, so the order of the earlier
    sequence is preserved and later values are appended.

    Args:
        *sequences: Sequences to merge; ``None`` entries are skipped.

    Returns:
        Merged list without duplicates.

    Example:
        >>> merge_unique(["REQ-002"], ["REQ-001", "REQ-002"])
        ['REQ-002', 'REQ-001']
    """
    merged: dict[str, None] = {}
    for sequence in sequences:
        for value in sequence or ():
            merged.setdefault(value, None)
    return list(merged)


class _Record(BaseModel):
    """Common behaviour of stored records."""

    model_config = _RECORD_CONFIG

    id: str = Field(..., min_length=1, description="Unique identifier within the kind")

    def to_record(self) -> dict[str, Any]:
        """Dump to the JSON form used by fixture files and reports."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class Requirement(_Record):
    """A functional or non-functional requirement.

    Attributes:
        id: Requirement identifier (e.g., "REQ-001")
        title: Short title
        type: Requirement category
        priority: Priority level
        description: Optional long description
        user_story: Optional free-text user story reference
        acceptance_criteria: Ordered acceptance criteria
        related_requirements: Ids of related requirements
        tags: Free-form tags
    """

    title: str = Field(..., min_length=1)
    type: RequirementType
    priority: RequirementPriority
    description: str | None = None
    user_story: str | None = Field(default=None, alias="userStory")
    acceptance_criteria: list[str] = Field(default_factory=list, alias="acceptanceCriteria")
    related_requirements: list[str] = Field(default_factory=list, alias="relatedRequirements")
    tags: list[str] = Field(default_factory=list)


class UserStory(_Record):
    """A user story, optionally linked to the requirements it motivates."""

    title: str = Field(..., min_length=1)
    description: str | None = None
    linked_requirements: list[str] = Field(default_factory=list, alias="linkedRequirements")


class TestCase(_Record):
    """A test case registered while the run executes.

    ``requirements`` and ``user_stories`` are ``None`` when the test declared
    no linkage at all, which is distinct from an explicitly empty list.

    Attributes:
        id: Test case identifier (e.g., "TC-tests/test_login.py::test_ok")
        title: Human-readable title (usually the test name)
        type: Test category (defaults to e2e)
        priority: Test priority (defaults to p1-must-run)
        requirements: Ids of covered requirements
        user_stories: Ids of covered user stories
        automated: Whether the test is automated
        tags: Free-form tags
        dependencies: Ids of test cases this one depends on
        description: Optional description
        timestamp: ISO 8601 registration time
        suite_id: Id of the suite the test belongs to
        status: Execution outcome, once known
    """

    __test__ = False

    title: str = Field(..., min_length=1)
    type: TestType = TestType.E2E
    priority: TestPriority = TestPriority.P1
    requirements: list[str] | None = None
    user_stories: list[str] | None = Field(default=None, alias="userStories")
    automated: bool = True
    tags: list[str] = Field(default_factory=list)
    dependencies: list[str] = Field(default_factory=list)
    description: str | None = None
    timestamp: str = Field(default_factory=utc_timestamp)
    suite_id: str | None = Field(default=None, alias="suiteId")
    status: ExecutionStatus | None = None

    def same_content(self, other: TestCase) -> bool:
        """Return True if ``other`` differs only in timestamp and status."""
        volatile = {"timestamp", "status"}
        return self.model_dump(exclude=volatile) == other.model_dump(exclude=volatile)


class Suite(_Record):
    """Suite-level metadata applied to every test case of the suite.

    Only ``id`` is required; ``type`` and ``priority`` are kept as given.
    """

    title: str | None = None
    type: str | None = None
    priority: str | None = None
    requirements: list[str] = Field(default_factory=list)
    user_stories: list[str] = Field(default_factory=list, alias="userStories")
    tags: list[str] = Field(default_factory=list)
    description: str | None = None
    timestamp: str | None = None


__all__ = [
    "Requirement",
    "Suite",
    "TestCase",
    "UserStory",
    "merge_unique",
    "utc_timestamp",
]

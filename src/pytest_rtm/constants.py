"""Enumerations shared across pytest-rtm.

This module defines the closed vocabularies used by requirement, user story,
test case and suite records:
- RequirementType / RequirementPriority: classification of requirements
- TestType / TestPriority: classification of test cases
- ExecutionStatus: outcome recorded for a test case
- EntityKind: the four kinds held by the entity store
- GapKind: categories reported by critical gap analysis

All enums subclass ``str`` so that members compare equal to their JSON values.
"""

from __future__ import annotations

from enum import Enum


class RequirementType(str, Enum):
    """Requirement categories supported by the traceability matrix."""

    FUNCTIONAL = "functional"
    SECURITY = "security"
    PERFORMANCE = "performance"
    ACCESSIBILITY = "accessibility"
    COMPLIANCE = "compliance"
    TECHNICAL = "technical"
    INFRASTRUCTURE = "infrastructure"


class RequirementPriority(str, Enum):
    """Requirement priority levels.

    Attributes:
        P0: Must have - the system cannot function without it
        P1: Should have - critical business feature
        P2: Nice to have - important but not critical
        P3: Could have - desirable but not necessary
    """

    P0 = "p0-critical"
    P1 = "p1-high"
    P2 = "p2-medium"
    P3 = "p3-low"


class TestType(str, Enum):
    """Test case categories."""

    __test__ = False

    UNIT = "unit"
    INTEGRATION = "integration"
    E2E = "e2e"
    API = "api"
    PERFORMANCE = "performance"
    SECURITY = "security"
    ACCESSIBILITY = "accessibility"
    SMOKE = "smoke"


class TestPriority(str, Enum):
    """Test case priority levels.

    Attributes:
        P1: Must run in every test cycle
        P2: Should run in most test cycles
        P3: Run when time permits
        P4: Run in full regression only
    """

    __test__ = False

    P1 = "p1-must-run"
    P2 = "p2-high-value"
    P3 = "p3-nice-to-have"
    P4 = "p4-edge-cases"


class ExecutionStatus(str, Enum):
    """Outcome recorded for a test case after it ran."""

    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"


class EntityKind(str, Enum):
    """Kinds of records held by the entity store."""

    REQUIREMENT = "requirement"
    USER_STORY = "user_story"
    TEST_CASE = "test_case"
    SUITE = "suite"


class GapKind(str, Enum):
    """Categories of critical coverage gaps."""

    UNCOVERED_CRITICAL_REQUIREMENT = "uncovered_critical_requirement"
    SECURITY_REQUIREMENT_WITHOUT_SECURITY_TEST = "security_requirement_without_security_test"


def is_member(value: object, enum_cls: type[Enum]) -> bool:
    """Return True if ``value`` is a member (or member value) of ``enum_cls``.

    Args:
        value: Candidate value, usually a string read from a record.
        enum_cls: Enum class to check against.

    Returns:
        True if ``enum_cls(value)`` succeeds, False otherwise.

    Example:
        >>> is_member("e2e", TestType)
        True
        >>> is_member("manual", TestType)
        False
    """
    try:
        enum_cls(value)
    except (ValueError, TypeError):
        return False
    return True


__all__ = [
    "EntityKind",
    "ExecutionStatus",
    "GapKind",
    "RequirementPriority",
    "RequirementType",
    "TestPriority",
    "TestType",
    "is_member",
]

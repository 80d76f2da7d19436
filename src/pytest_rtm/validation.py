"""Schema validation predicates.

Pure functions that check a candidate record before it is stored:
- validate_requirement: required fields and enum membership
- validate_user_story: required fields
- validate_test_case: required fields, enum membership and references

Predicates accept either a mapping (fixture-file keys in camelCase or
attribute names in snake_case) or a model instance. They never raise and
never mutate their inputs; a False result is for the caller to interpret.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel

from pytest_rtm.constants import (
    EntityKind,
    RequirementPriority,
    RequirementType,
    TestPriority,
    TestType,
    is_member,
)

if TYPE_CHECKING:
    from pytest_rtm.store import EntityStore

REQUIRED_FIELDS: tuple[str, ...] = ("id", "title", "type", "priority")
USER_STORY_REQUIRED_FIELDS: tuple[str, ...] = ("id", "title")


def _as_mapping(candidate: object) -> Mapping[str, Any] | None:
    if isinstance(candidate, BaseModel):
        return candidate.model_dump(by_alias=True)
    if isinstance(candidate, Mapping):
        return candidate
    return None


def _lookup(record: Mapping[str, Any], name: str, alias: str | None = None) -> Any:
    if alias is not None and alias in record:
        return record[alias]
    return record.get(name)


def _has_required(record: Mapping[str, Any], fields: tuple[str, ...]) -> bool:
    # Empty strings count as missing.
    return all(record.get(field) for field in fields)


def _references_exist(refs: Any, store: EntityStore, kind: EntityKind) -> bool:
    if refs is None:
        return True
    if not isinstance(refs, list):
        return False
    return all(store.has(kind, ref) for ref in refs)


def validate_requirement(candidate: object) -> bool:
    """Check a requirement candidate.

    Args:
        candidate: Mapping or Requirement to check.

    Returns:
        True iff id, title, type and priority are present, type is a
        RequirementType and priority is a RequirementPriority.

    Example:
        >>> validate_requirement(
        ...     {"id": "REQ-001", "title": "Login", "type": "functional", "priority": "p0-critical"}
        ... )
        True
        >>> validate_requirement({"id": "REQ-001", "title": "Login", "type": "functional"})
        False
    """
    record = _as_mapping(candidate)
    if record is None or not _has_required(record, REQUIRED_FIELDS):
        return False
    return is_member(record["type"], RequirementType) and is_member(
        record["priority"], RequirementPriority
    )


def validate_user_story(candidate: object) -> bool:
    """Check a user story candidate: id and title must be present."""
    record = _as_mapping(candidate)
    return record is not None and _has_required(record, USER_STORY_REQUIRED_FIELDS)


def validate_test_case(
    candidate: object,
    store: EntityStore,
    *,
    check_links: bool = True,
) -> bool:
    """Check a test case candidate against the schema and the store.

    Absence of ``requirements`` or ``userStories`` is valid. When present,
    each must be a list whose ids all exist in ``store``.

    Args:
        candidate: Mapping or TestCase to check.
        store: Entity store used for the reference checks.
        check_links: If False, skip the reference checks.

    Returns:
        True if the candidate may be stored.
    """
    record = _as_mapping(candidate)
    if record is None or not _has_required(record, REQUIRED_FIELDS):
        return False

    if not is_member(record["type"], TestType):
        return False
    if not is_member(record["priority"], TestPriority):
        return False

    requirements = _lookup(record, "requirements")
    user_stories = _lookup(record, "user_stories", alias="userStories")
    if check_links:
        return _references_exist(
            requirements, store, EntityKind.REQUIREMENT
        ) and _references_exist(user_stories, store, EntityKind.USER_STORY)

    return all(refs is None or isinstance(refs, list) for refs in (requirements, user_stories))


__all__ = [
    "validate_requirement",
    "validate_test_case",
    "validate_user_story",
]

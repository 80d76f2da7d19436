"""Incremental coverage index.

Maps requirement ids, user story ids, requirement types and test types to
the set of test case ids that cover them. The index only grows during a
run; it is updated when a test case is accepted and when suite propagation
adds links to an already stored test case.

An entry may exist with an empty set: existence checks seed entries so that
a requirement that was referenced but never covered still shows up in
reports with zero tests, as opposed to being absent.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from pytest_rtm.constants import EntityKind

if TYPE_CHECKING:
    from pytest_rtm.models import TestCase
    from pytest_rtm.store import EntityStore


class CoverageIndex:
    """Coverage sets keyed by requirement, story, requirement type and test type.

    Attributes:
        requirements: requirement id -> covering test case ids
        stories: user story id -> covering test case ids
        requirement_types: requirement type value -> covering test case ids
        test_types: test type value -> test case ids of that type

    Example:
        >>> index = CoverageIndex()
        >>> index.record(test_case, store)
        >>> index.covering(EntityKind.REQUIREMENT, "REQ-001")
        frozenset({'TC-001'})
    """

    def __init__(self) -> None:
        self.requirements: dict[str, set[str]] = {}
        self.stories: dict[str, set[str]] = {}
        self.requirement_types: dict[str, set[str]] = {}
        self.test_types: dict[str, set[str]] = {}

    def _table(self, kind: EntityKind) -> dict[str, set[str]]:
        if kind is EntityKind.REQUIREMENT:
            return self.requirements
        if kind is EntityKind.USER_STORY:
            return self.stories
        msg = f"No coverage entries are kept for {kind.value}"
        raise ValueError(msg)

    def record(self, test_case: TestCase, store: EntityStore) -> None:
        """Union ``test_case.id`` into every set the test case touches.

        Args:
            test_case: The accepted test case.
            store: Entity store used to look up each requirement's declared
                type. Requirement ids unknown to the store are covered but
                not filed under a type.
        """
        test_id = test_case.id
        for req_id in test_case.requirements or ():
            self.requirements.setdefault(req_id, set()).add(test_id)
            requirement = store.get(EntityKind.REQUIREMENT, req_id)
            if requirement is not None:
                self.requirement_types.setdefault(requirement.type.value, set()).add(test_id)

        for story_id in test_case.user_stories or ():
            self.stories.setdefault(story_id, set()).add(test_id)

        self.test_types.setdefault(test_case.type.value, set()).add(test_id)

    def seed(self, kind: EntityKind, record_id: str) -> None:
        """Ensure a (possibly empty) coverage entry exists for ``record_id``."""
        self._table(kind).setdefault(record_id, set())

    def has_entry(self, kind: EntityKind, record_id: str) -> bool:
        """Return True if ``record_id`` has an entry, even an empty one."""
        return record_id in self._table(kind)

    def covering(self, kind: EntityKind, record_id: str) -> frozenset[str]:
        """Return the ids of test cases covering ``record_id``."""
        return frozenset(self._table(kind).get(record_id, ()))

    def is_covered(self, kind: EntityKind, record_id: str) -> bool:
        """Return True if at least one test case covers ``record_id``."""
        return bool(self._table(kind).get(record_id))

    def entries(self, kind: EntityKind) -> dict[str, set[str]]:
        """Return the live entry table for ``kind``."""
        return self._table(kind)

    def snapshot(self) -> dict[str, dict[str, frozenset[str]]]:
        """Return an immutable copy of the non-empty entries, for comparisons."""
        tables = {
            "requirements": self.requirements,
            "stories": self.stories,
            "requirement_types": self.requirement_types,
            "test_types": self.test_types,
        }
        return {
            name: {key: frozenset(ids) for key, ids in table.items() if ids}
            for name, table in tables.items()
        }

    @classmethod
    def from_store(cls, store: EntityStore) -> CoverageIndex:
        """Derive an index from the test cases held by ``store``.

        Seeded empty entries are not reproduced; compare with ``snapshot``.
        """
        index = cls()
        for test_case in store.all(EntityKind.TEST_CASE):
            index.record(test_case, store)  # type: ignore[arg-type]
        return index


__all__ = ["CoverageIndex"]

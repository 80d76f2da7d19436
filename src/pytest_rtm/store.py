"""In-memory entity store.

Holds validated Requirement, UserStory, TestCase and Suite records keyed by
identifier, one table per EntityKind, in insertion order.

Usage:
    store = EntityStore()
    store.put(EntityKind.REQUIREMENT, requirement)
    store.has(EntityKind.REQUIREMENT, "REQ-001")
    for test_case in store.all(EntityKind.TEST_CASE):
        ...
"""

from __future__ import annotations

from collections.abc import Mapping, ValuesView
from typing import TYPE_CHECKING, overload

from pytest_rtm.constants import EntityKind

if TYPE_CHECKING:
    from typing import Literal

    from pytest_rtm.models import Requirement, Suite, TestCase, UserStory, _Record


class EntityStore:
    """Per-kind mapping of identifier to record.

    ``put`` overwrites an existing id; callers that need reject semantics
    check ``has`` first. ``load`` commits a whole mapping at once.

    Example:
        >>> store = EntityStore()
        >>> store.size(EntityKind.REQUIREMENT)
        0
    """

    def __init__(self) -> None:
        self._tables: dict[EntityKind, dict[str, _Record]] = {kind: {} for kind in EntityKind}

    def put(self, kind: EntityKind, record: _Record) -> None:
        """Store ``record`` under its id."""
        self._tables[kind][record.id] = record

    @overload
    def get(self, kind: Literal[EntityKind.REQUIREMENT], record_id: str) -> Requirement | None: ...
    @overload
    def get(self, kind: Literal[EntityKind.USER_STORY], record_id: str) -> UserStory | None: ...
    @overload
    def get(self, kind: Literal[EntityKind.TEST_CASE], record_id: str) -> TestCase | None: ...
    @overload
    def get(self, kind: Literal[EntityKind.SUITE], record_id: str) -> Suite | None: ...
    def get(self, kind: EntityKind, record_id: str) -> _Record | None:
        """Return the record stored under ``record_id``, or None."""
        return self._tables[kind].get(record_id)

    def has(self, kind: EntityKind, record_id: object) -> bool:
        """Return True if a record of ``kind`` is stored under ``record_id``.

        Unhashable ids (e.g. a list read from a malformed record) are never
        present.
        """
        try:
            return record_id in self._tables[kind]
        except TypeError:
            return False

    def size(self, kind: EntityKind) -> int:
        """Return the number of records of ``kind``."""
        return len(self._tables[kind])

    def all(self, kind: EntityKind) -> ValuesView[_Record]:
        """Return a live view over the records of ``kind`` in insertion order.

        The view is lazy and can be iterated any number of times.
        """
        return self._tables[kind].values()

    def ids(self, kind: EntityKind) -> list[str]:
        """Return the identifiers of ``kind`` in insertion order."""
        return list(self._tables[kind])

    def load(self, kind: EntityKind, records: Mapping[str, _Record]) -> None:
        """Add every record of ``records`` to the table of ``kind``.

        The mapping is expected to be fully validated already; the loader
        builds it completely before calling this, so a failed load leaves the
        store untouched.
        """
        self._tables[kind].update(records)


__all__ = ["EntityStore"]

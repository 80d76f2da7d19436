"""Tests for pytest_rtm.loader."""

from __future__ import annotations

import json
from pathlib import Path
from textwrap import dedent
from typing import Any

import pytest

from pytest_rtm.constants import RequirementType
from pytest_rtm.errors import RequirementsLoadError, UserStoriesLoadError
from pytest_rtm.loader import load_requirements, load_user_stories, read_records


def write_json(path: Path, data: Any) -> Path:
    path.write_text(json.dumps(data))
    return path


class TestReadRecords:
    """Tests for read_records."""

    def test_json(self, fixtures_dir: Path) -> None:
        """JSON files parse to a mapping."""
        assert list(read_records(fixtures_dir / "requirements.json")) == ["REQ-001", "REQ-002"]

    def test_yaml(self, tmp_path: Path) -> None:
        """.yaml files are parsed as YAML."""
        path = tmp_path / "stories.yaml"
        path.write_text(
            dedent(
                """
                US-001:
                  id: US-001
                  title: Sign in
                  linkedRequirements: [REQ-001]
                """
            )
        )
        assert read_records(path)["US-001"]["linkedRequirements"] == ["REQ-001"]

    def test_malformed(self, tmp_path: Path) -> None:
        """Unparseable content raises ValueError."""
        path = tmp_path / "bad.json"
        path.write_text("{not json")
        with pytest.raises(ValueError, match="Malformed"):
            read_records(path)

    def test_not_a_mapping(self, tmp_path: Path) -> None:
        """A top-level list is rejected."""
        with pytest.raises(ValueError, match="list"):
            read_records(write_json(tmp_path / "list.json", []))


class TestLoadRequirements:
    """Tests for load_requirements."""

    def test_loads_fixture(self, fixtures_dir: Path) -> None:
        """Every record is converted to a Requirement."""
        requirements = load_requirements(fixtures_dir / "requirements.json")
        assert list(requirements) == ["REQ-001", "REQ-002"]
        assert requirements["REQ-002"].type is RequirementType.SECURITY

    def test_keyed_by_record_id(self, tmp_path: Path) -> None:
        """Records are stored under their own id, not the file key."""
        path = write_json(
            tmp_path / "r.json",
            {"first": {"id": "REQ-7", "title": "t", "type": "technical", "priority": "p2-medium"}},
        )
        assert list(load_requirements(path)) == ["REQ-7"]

    def test_missing_file(self, tmp_path: Path) -> None:
        """A missing file raises with the path in the details."""
        path = tmp_path / "nope.json"
        with pytest.raises(RequirementsLoadError) as exc_info:
            load_requirements(path)
        assert exc_info.value.path == str(path)
        assert exc_info.value.code == "REQUIREMENTS_LOAD_ERROR"

    def test_invalid_record_aborts_load(self, tmp_path: Path) -> None:
        """One bad record fails the whole file and names the record."""
        path = write_json(
            tmp_path / "r.json",
            {
                "REQ-1": {"id": "REQ-1", "title": "ok", "type": "security", "priority": "p0-critical"},
                "REQ-2": {"id": "REQ-2", "title": "bad", "type": "magic", "priority": "p0-critical"},
            },
        )
        with pytest.raises(RequirementsLoadError, match="REQ-2") as exc_info:
            load_requirements(path)
        assert exc_info.value.record_id == "REQ-2"


class TestLoadUserStories:
    """Tests for load_user_stories."""

    def test_loads_fixture(self, fixtures_dir: Path) -> None:
        """Linked requirements are read from linkedRequirements."""
        stories = load_user_stories(fixtures_dir / "user-stories.json")
        assert stories["US-002"].linked_requirements == ["REQ-001", "REQ-002"]

    def test_story_without_title(self, tmp_path: Path) -> None:
        """Stories are validated before they are accepted."""
        path = write_json(tmp_path / "s.json", {"US-1": {"id": "US-1"}})
        with pytest.raises(UserStoriesLoadError, match="US-1"):
            load_user_stories(path)

    def test_malformed_file(self, tmp_path: Path) -> None:
        """Parse failures are wrapped with the cause."""
        path = tmp_path / "s.json"
        path.write_text("[")
        with pytest.raises(UserStoriesLoadError) as exc_info:
            load_user_stories(path)
        assert "Malformed" in exc_info.value.cause

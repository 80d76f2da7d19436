"""Loading of requirement and user story definition files.

A definition file is a JSON document (or YAML, for ``.yaml``/``.yml``
files) mapping identifier to record:

    {
      "REQ-001": {"id": "REQ-001", "title": "Login", "type": "functional",
                  "priority": "p0-critical"}
    }

Loading is fail-fast: every record is validated and converted before
anything is returned, so a bad record never leaves a partially populated
store behind.

Functions:
    read_records: Parse a definition file into a mapping
    load_requirements: Load and validate requirements
    load_user_stories: Load and validate user stories
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import structlog
import yaml
from pydantic import ValidationError

from pytest_rtm.errors import RequirementsLoadError, UserStoriesLoadError
from pytest_rtm.models import Requirement, UserStory
from pytest_rtm.validation import validate_requirement, validate_user_story

logger = structlog.get_logger(__name__)

YAML_SUFFIXES = frozenset({".yaml", ".yml"})


def read_records(path: Path) -> dict[str, Any]:
    """Parse a definition file.

    Args:
        path: JSON or YAML file to read.

    Returns:
        Mapping of identifier to raw record.

    Raises:
        OSError: If the file cannot be read.
        ValueError: If the content cannot be parsed or is not a mapping.
    """
    content = path.read_text(encoding="utf-8")
    try:
        if path.suffix.lower() in YAML_SUFFIXES:
            data = yaml.safe_load(content)
        else:
            data = json.loads(content)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        msg = f"Malformed definition file: {e}"
        raise ValueError(msg) from e

    if not isinstance(data, dict):
        msg = f"Expected a mapping of id to record, got {type(data).__name__}"
        raise ValueError(msg)
    return data


def load_requirements(path: Path) -> dict[str, Requirement]:
    """Load every requirement of ``path``.

    Args:
        path: Requirements definition file.

    Returns:
        Ordered mapping of identifier to Requirement.

    Raises:
        RequirementsLoadError: If the file is missing or malformed, or if
            any record fails validation.

    Example:
        >>> requirements = load_requirements(Path("tests/fixtures/requirements.json"))
        >>> list(requirements)
        ['REQ-001', 'REQ-002']
    """
    try:
        raw = read_records(path)
    except (OSError, ValueError) as e:
        raise RequirementsLoadError(
            "Failed to load requirements", path=str(path), cause=str(e)
        ) from e

    requirements: dict[str, Requirement] = {}
    for record_id, record in raw.items():
        if not validate_requirement(record):
            raise RequirementsLoadError(
                f"Invalid requirement structure for {record_id}",
                path=str(path),
                record_id=record_id,
            )
        try:
            requirement = Requirement.model_validate(record)
        except ValidationError as e:
            raise RequirementsLoadError(
                f"Invalid requirement structure for {record_id}",
                path=str(path),
                record_id=record_id,
                cause=str(e),
            ) from e
        requirements[requirement.id] = requirement

    logger.info("requirements_loaded", path=str(path), count=len(requirements))
    return requirements


def load_user_stories(path: Path) -> dict[str, UserStory]:
    """Load every user story of ``path``.

    Raises:
        UserStoriesLoadError: If the file is missing or malformed, or if
            any record fails validation.
    """
    try:
        raw = read_records(path)
    except (OSError, ValueError) as e:
        raise UserStoriesLoadError(
            "Failed to load user stories", path=str(path), cause=str(e)
        ) from e

    stories: dict[str, UserStory] = {}
    for record_id, record in raw.items():
        if not validate_user_story(record):
            raise UserStoriesLoadError(
                f"Invalid user story structure for {record_id}",
                path=str(path),
                record_id=record_id,
            )
        try:
            story = UserStory.model_validate(record)
        except ValidationError as e:
            raise UserStoriesLoadError(
                f"Invalid user story structure for {record_id}",
                path=str(path),
                record_id=record_id,
                cause=str(e),
            ) from e
        stories[story.id] = story

    logger.info("user_stories_loaded", path=str(path), count=len(stories))
    return stories


__all__ = ["load_requirements", "load_user_stories", "read_records"]

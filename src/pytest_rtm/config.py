"""Configuration for a traceability run.

RTMConfig enumerates every recognised option with its default. Inside
pytest it is resolved from command line options, then ini options, then
defaults (see ``RTMConfig.from_pytest_config``).
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    import pytest

DEFAULT_REQUIREMENTS_PATH = Path("tests/fixtures/requirements.json")
DEFAULT_USER_STORIES_PATH = Path("tests/fixtures/user-stories.json")
DEFAULT_OUTPUT_PATH = Path("reports/rtm")


class RTMConfig(BaseModel):
    """Options of a traceability run.

    Attributes:
        requirements_path: JSON/YAML file mapping requirement id -> requirement
        user_stories_path: JSON/YAML file mapping story id -> user story
        output_path: Directory receiving the report artifacts (created on init)
        validate_links: Reject test cases that reference unknown requirements
            or user stories

    Example:
        >>> config = RTMConfig(output_path=Path("build/rtm"))
        >>> config.validate_links
        True
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    requirements_path: Path = Field(
        default=DEFAULT_REQUIREMENTS_PATH,
        description="Requirements definition file",
    )
    user_stories_path: Path = Field(
        default=DEFAULT_USER_STORIES_PATH,
        description="User stories definition file",
    )
    output_path: Path = Field(
        default=DEFAULT_OUTPUT_PATH,
        description="Report output directory",
    )
    validate_links: bool = Field(
        default=True,
        description="Check that referenced requirements and stories exist",
    )

    @classmethod
    def from_pytest_config(cls, config: pytest.Config) -> RTMConfig:
        """Build the configuration from pytest options.

        Command line options win over ini options. Relative paths are
        resolved against the pytest root directory.

        Args:
            config: The active pytest configuration.

        Returns:
            Resolved RTMConfig.
        """
        root = config.rootpath

        def _path(option: str, ini_name: str, default: Path) -> Path:
            value = config.getoption(option) or config.getini(ini_name) or default
            path = Path(value)
            return path if path.is_absolute() else root / path

        validate_links = bool(config.getini("rtm_validate_links"))
        if config.getoption("rtm_no_validate_links"):
            validate_links = False

        return cls(
            requirements_path=_path(
                "rtm_requirements", "rtm_requirements_path", DEFAULT_REQUIREMENTS_PATH
            ),
            user_stories_path=_path(
                "rtm_user_stories", "rtm_user_stories_path", DEFAULT_USER_STORIES_PATH
            ),
            output_path=_path("rtm_output", "rtm_output_path", DEFAULT_OUTPUT_PATH),
            validate_links=validate_links,
        )


__all__ = ["RTMConfig"]

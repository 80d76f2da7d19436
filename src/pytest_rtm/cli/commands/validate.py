"""pytest-rtm validate - check requirement and user story files."""

from __future__ import annotations

from pathlib import Path

import click

from pytest_rtm.cli.errors import EXIT_INVALID, EXIT_MISSING
from pytest_rtm.cli.output import error, success, warning
from pytest_rtm.config import DEFAULT_REQUIREMENTS_PATH, DEFAULT_USER_STORIES_PATH


@click.command()
@click.option(
    "-r",
    "--requirements",
    "requirements_path",
    type=click.Path(path_type=Path),
    default=DEFAULT_REQUIREMENTS_PATH,
    help=f"Requirements file [default: {DEFAULT_REQUIREMENTS_PATH}]",
)
@click.option(
    "-s",
    "--user-stories",
    "user_stories_path",
    type=click.Path(path_type=Path),
    default=DEFAULT_USER_STORIES_PATH,
    help=f"User stories file [default: {DEFAULT_USER_STORIES_PATH}]",
)
def validate(requirements_path: Path, user_stories_path: Path) -> None:
    """Validate requirement and user story definition files.

    Every record is checked for required fields and allowed values. Links
    from user stories to unknown requirements are reported as warnings.

    Examples:

        pytest-rtm validate

        pytest-rtm validate -r specs/requirements.yaml -s specs/stories.yaml
    """
    for path in (requirements_path, user_stories_path):
        if not path.exists():
            error(f"File not found: {path}")
            raise SystemExit(EXIT_MISSING)

    from pytest_rtm.errors import RequirementsLoadError, UserStoriesLoadError
    from pytest_rtm.loader import load_requirements, load_user_stories

    try:
        requirements = load_requirements(requirements_path)
        stories = load_user_stories(user_stories_path)
    except (RequirementsLoadError, UserStoriesLoadError) as e:
        error(f"Validation failed: {e}")
        raise SystemExit(EXIT_INVALID) from None

    success(f"{len(requirements)} requirement(s) valid in {requirements_path}")
    success(f"{len(stories)} user stor{'y' if len(stories) == 1 else 'ies'} valid in {user_stories_path}")

    for story in stories.values():
        for req_id in story.linked_requirements:
            if req_id not in requirements:
                warning(f"{story.id} links unknown requirement {req_id}")

"""Entry point of the pytest-rtm command line.

Subcommands are imported on first use so that ``pytest-rtm --help`` stays
fast.
"""

from __future__ import annotations

import importlib
from typing import Any

import click
import rich_click as rclick
import structlog

from pytest_rtm import __version__
from pytest_rtm.cli.output import set_no_color
from pytest_rtm.observability import configure_logging

rclick.rich_click.TEXT_MARKUP = "markdown"
rclick.rich_click.SHOW_ARGUMENTS = True


class LazyGroup(rclick.RichGroup):
    """Click group resolving subcommands from dotted paths on demand.

    Attributes:
        lazy_subcommands: command name -> "module.attribute" path
    """

    def __init__(
        self,
        *args: Any,
        lazy_subcommands: dict[str, str] | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(*args, **kwargs)
        self.lazy_subcommands: dict[str, str] = lazy_subcommands or {}

    def list_commands(self, ctx: click.Context) -> list[str]:
        """Return the eagerly and lazily registered command names, sorted."""
        return sorted({*super().list_commands(ctx), *self.lazy_subcommands})

    def get_command(self, ctx: click.Context, cmd_name: str) -> click.Command | None:
        """Return ``cmd_name``, importing its module if needed."""
        cmd = super().get_command(ctx, cmd_name)
        if cmd is not None or cmd_name not in self.lazy_subcommands:
            return cmd
        module_name, attr_name = self.lazy_subcommands[cmd_name].rsplit(".", 1)
        return getattr(importlib.import_module(module_name), attr_name)  # type: ignore[no-any-return]


LAZY_COMMANDS = {
    "validate": "pytest_rtm.cli.commands.validate.validate",
    "summary": "pytest_rtm.cli.commands.summary.summary",
}


@click.command(cls=LazyGroup, lazy_subcommands=LAZY_COMMANDS)
@click.version_option(version=__version__, prog_name="pytest-rtm")
@click.option(
    "--no-color",
    is_flag=True,
    default=False,
    help="Disable colored output.",
    is_eager=True,
    expose_value=False,
    callback=lambda ctx, param, value: set_no_color(value) if value else None,
)
@click.option("-v", "--verbose", is_flag=True, default=False, help="Log debug output.")
def cli(verbose: bool) -> None:
    """Requirements traceability for pytest.

    **Commands:**

    - `pytest-rtm validate` - Check requirement and user story files
    - `pytest-rtm summary` - Summarise a written rtm-report.json

    Reports are produced by running pytest with `--rtm`.
    """
    if not structlog.is_configured():
        configure_logging(log_level="DEBUG" if verbose else "WARNING")


if __name__ == "__main__":
    cli()

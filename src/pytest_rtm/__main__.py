"""Allow ``python -m pytest_rtm``."""

from pytest_rtm.cli import cli

if __name__ == "__main__":
    cli()

"""Command line interface of pytest-rtm."""

from __future__ import annotations

from pytest_rtm.cli.main import cli

__all__ = ["cli"]

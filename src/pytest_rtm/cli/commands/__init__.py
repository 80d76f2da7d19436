"""Subcommands of the pytest-rtm command line."""

"""CLI subcommands."""

from keyhost_cli.commands import inspect, serve, verify

__all__ = ["inspect", "serve", "verify"]

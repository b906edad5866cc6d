"""CLI command modules."""

from skillhub.cli.commands import cache, onboard, settings, skill, tool

__all__ = ["cache", "onboard", "settings", "skill", "tool"]

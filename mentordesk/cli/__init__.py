"""CLI commands for MentorDesk.

This package provides the command-line interface for MentorDesk,
including protocol rule editing, the trade journal and analytics.
"""

from mentordesk.cli.main import cli, main

__all__ = ["cli", "main"]

"""Main CLI entry point for MentorDesk.

This module provides the main click group and lazy loading
for heavy imports to improve startup time.
"""

import importlib
import logging

import click
from rich.console import Console
from rich.logging import RichHandler

# Console for rich output
console = Console()


class LazyGroup(click.Group):
    """A click Group that lazily loads commands.

    Command modules are only imported when the command is invoked,
    so pandas is not loaded for rule editing.
    """

    def __init__(self, *args, lazy_subcommands: dict[str, str] | None = None, **kwargs):
        """Initialize the lazy group.

        Args:
            lazy_subcommands: Mapping of command names to module paths.
        """
        super().__init__(*args, **kwargs)
        self._lazy_subcommands = lazy_subcommands or {}

    def list_commands(self, ctx: click.Context) -> list[str]:
        """List all available commands."""
        base = super().list_commands(ctx)
        lazy = list(self._lazy_subcommands.keys())
        return sorted(set(base + lazy))

    def get_command(self, ctx: click.Context, cmd_name: str) -> click.Command | None:
        """Get a command by name, lazily loading if needed."""
        if cmd_name in self.commands:
            return self.commands[cmd_name]

        if cmd_name in self._lazy_subcommands:
            return self._lazy_load(cmd_name)

        return None

    def _lazy_load(self, cmd_name: str) -> click.Command:
        """Lazily load a command from its module path."""
        module_path = self._lazy_subcommands[cmd_name]
        module = importlib.import_module(module_path)

        cmd = None
        for attr_name in dir(module):
            attr = getattr(module, attr_name)
            if isinstance(attr, click.Command) and attr.name == cmd_name:
                cmd = attr
                break

        if cmd is None:
            raise click.ClickException(f"Could not find command '{cmd_name}' in {module_path}")

        self.add_command(cmd)
        return cmd


LAZY_SUBCOMMANDS = {
    "init": "mentordesk.cli.setup",
    # Protocol rules
    "rules": "mentordesk.cli.rules",
    # Journal
    "log": "mentordesk.cli.journal",
    "close": "mentordesk.cli.journal",
    "edit": "mentordesk.cli.journal",
    "trades": "mentordesk.cli.journal",
    "delete": "mentordesk.cli.journal",
    "review": "mentordesk.cli.journal",
    # Analytics
    "stats": "mentordesk.cli.analytics",
    "patterns": "mentordesk.cli.analytics",
    "export": "mentordesk.cli.analytics",
}


CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}


def configure_logging(verbose: bool) -> None:
    """Route log records through rich."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True)],
        force=True,
    )


@click.group(cls=LazyGroup, lazy_subcommands=LAZY_SUBCOMMANDS, context_settings=CONTEXT_SETTINGS)
@click.version_option(package_name="mentordesk")
@click.option("-v", "--verbose", is_flag=True, default=False, help="Enable debug logging.")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """MentorDesk - trade journal and protocol rules for mentored traders.

    Log trades, keep buy/sell checklists, simulate a setup against
    them, and review your performance.

    \b
    Quick Start:
      mentordesk init                          # Create config file
      mentordesk rules add buy "Wait for liquidity sweep"
      mentordesk rules simulate buy "Waited for the sweep, then entered"
      mentordesk stats                         # Performance summary
    """
    ctx.ensure_object(dict)
    configure_logging(verbose)


def main() -> None:
    """Main entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()

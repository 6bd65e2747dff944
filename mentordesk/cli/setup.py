"""Setup command for MentorDesk CLI."""

import click
from rich.console import Console
from rich.panel import Panel

from mentordesk.config import create_template_config, get_config_path

console = Console()


@click.command("init")
@click.option("--force", is_flag=True, default=False, help="Overwrite an existing config.")
def init(force: bool) -> None:
    """Create the configuration file.

    \b
    Examples:
      mentordesk init
      mentordesk init --force
    """
    config_path = get_config_path()

    if config_path.exists() and not force:
        console.print(f"[yellow]Config already exists at {config_path}[/yellow]")
        console.print("[dim]Use --force to overwrite it[/dim]")
        return

    path = create_template_config(config_path)
    console.print(Panel(
        f"[bold green]Config created[/bold green]\n\n{path}",
        title="[bold]MentorDesk[/bold]",
        border_style="green",
    ))

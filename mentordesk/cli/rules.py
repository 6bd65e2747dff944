"""Protocol rule commands for MentorDesk CLI.

Handles the buy/sell checklists: listing, adding, editing, removing,
reordering and simulating a trade scenario against them.
"""

from typing import Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from mentordesk.errors import MentordeskError, NotFoundError

console = Console()

DIRECTION_CHOICE = click.Choice(["buy", "sell"], case_sensitive=False)


def _get_rule_book():
    """Build the rule-book service from config."""
    from mentordesk.config import get_data_store, load_config
    from mentordesk.db.port import LocalDataAccess
    from mentordesk.journal import RuleBookService
    from mentordesk.rules import TokenOverlapMatcher

    config = load_config()
    port = LocalDataAccess(
        get_data_store(config),
        user_id=config["journal"].get("user_id") or None,
    )
    matcher = TokenOverlapMatcher(config["rules"].get("min_token_length", 4))
    return RuleBookService(port, matcher=matcher)


def _fail(message: str) -> None:
    console.print(Panel(
        f"[red]{message}[/red]",
        title="[bold red]Error[/bold red]",
        border_style="red",
    ))
    raise SystemExit(1)


def resolve_rule_id(rule_book, prefix: str) -> str:
    """Expand a unique ID prefix to a full rule ID."""
    matches = [rule.id for rule in rule_book.rule_set.rules if rule.id.startswith(prefix)]
    if len(matches) == 1:
        return matches[0]
    if not matches:
        raise NotFoundError(f"Rule '{prefix}' not found")
    raise NotFoundError(f"Rule ID prefix '{prefix}' is ambiguous")


def _rules_table(title: str, rules: list) -> Table:
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("#", justify="right", width=4)
    table.add_column("ID", style="dim")
    table.add_column("Rule")
    table.add_column("Type", justify="center")

    for rule in rules:
        kind = "[red]CRITICAL[/red]" if rule.required else "[yellow]GUIDELINE[/yellow]"
        table.add_row(str(rule.order_number), rule.id[:8], rule.text, kind)
    return table


@click.group("rules")
def rules() -> None:
    """Manage the buy/sell protocol checklists."""


@rules.command("list")
@click.option("-d", "--direction", type=DIRECTION_CHOICE, default=None, help="Show one side only.")
def list_rules(direction: Optional[str]) -> None:
    """Display protocol rules in evaluation order.

    \b
    Examples:
      mentordesk rules list
      mentordesk rules list -d sell
    """
    try:
        rule_book = _get_rule_book()
    except MentordeskError as e:
        _fail(str(e))

    directions = [direction.lower()] if direction else ["buy", "sell"]
    for side in directions:
        side_rules = rule_book.list_rules(side)
        label = "Long Setups (BUY)" if side == "buy" else "Short Setups (SELL)"
        if not side_rules:
            console.print(f"[dim]No {side} rules. Use 'mentordesk rules add {side} TEXT'.[/dim]")
            continue
        console.print(_rules_table(label, side_rules))


@rules.command("add")
@click.argument("direction", type=DIRECTION_CHOICE)
@click.argument("text")
@click.option("--advisory", is_flag=True, default=False, help="Add as a non-blocking guideline.")
def add_rule(direction: str, text: str, advisory: bool) -> None:
    """Add a rule at the end of a checklist.

    \b
    Examples:
      mentordesk rules add buy "Wait for liquidity sweep"
      mentordesk rules add sell "Check the news calendar" --advisory
    """
    try:
        rule = _get_rule_book().add_rule(direction.lower(), text, required=not advisory)
    except MentordeskError as e:
        _fail(str(e))

    console.print(f"[green]✓ Added {rule.direction} rule #{rule.order_number} ({rule.id[:8]})[/green]")


@rules.command("edit")
@click.argument("rule_id")
@click.option("-t", "--text", default=None, help="New rule text.")
@click.option("-d", "--direction", type=DIRECTION_CHOICE, default=None, help="Move to the other side.")
@click.option("--required/--advisory", default=None, help="Toggle strictness.")
def edit_rule(
    rule_id: str,
    text: Optional[str],
    direction: Optional[str],
    required: Optional[bool],
) -> None:
    """Edit a rule's text, side or strictness.

    RULE_ID may be a unique prefix of the ID.
    """
    fields = {}
    if text is not None:
        fields["text"] = text
    if direction is not None:
        fields["direction"] = direction.lower()
    if required is not None:
        fields["required"] = required
    if not fields:
        console.print("[yellow]Nothing to change[/yellow]")
        return

    try:
        rule_book = _get_rule_book()
        rule = rule_book.update_rule(resolve_rule_id(rule_book, rule_id), **fields)
    except MentordeskError as e:
        _fail(str(e))

    console.print(f"[green]✓ Updated rule {rule.id[:8]}: {rule.text}[/green]")


@rules.command("remove")
@click.argument("rule_id")
def remove_rule(rule_id: str) -> None:
    """Delete a rule permanently."""
    try:
        rule_book = _get_rule_book()
        full_id = resolve_rule_id(rule_book, rule_id)
        rule = rule_book.rule_set.get(full_id)
        rule_book.delete_rule(full_id)
    except MentordeskError as e:
        _fail(str(e))

    console.print(f"[green]✓ Removed {rule.direction} rule: {rule.text}[/green]")


@rules.command("reorder")
@click.argument("direction", type=DIRECTION_CHOICE)
@click.argument("rule_ids", nargs=-1, required=True)
def reorder_rules(direction: str, rule_ids: tuple[str, ...]) -> None:
    """Set the order of every rule on one side.

    \b
    Example:
      mentordesk rules reorder buy 3f2a 91cc 07be
    """
    try:
        rule_book = _get_rule_book()
        ordered = [resolve_rule_id(rule_book, rule_id) for rule_id in rule_ids]
        rule_book.reorder(direction.lower(), ordered)
    except MentordeskError as e:
        _fail(str(e))

    console.print(_rules_table("Reordered", rule_book.list_rules(direction.lower())))


@rules.command("simulate")
@click.argument("direction", type=DIRECTION_CHOICE)
@click.argument("scenario")
def simulate(direction: str, scenario: str) -> None:
    """Check a trade scenario against the checklist.

    Matching is a keyword-overlap heuristic: a rule passes when any of
    its words of four or more letters appears in the scenario.

    \b
    Example:
      mentordesk rules simulate buy "I waited for a liquidity sweep before entry"
    """
    try:
        result = _get_rule_book().evaluate(direction.lower(), scenario)
    except MentordeskError as e:
        _fail(str(e))

    lines = []
    for rule in result.evaluated_against:
        mark = "[red]✗[/red]" if rule in result.failed_rules else "[green]✓[/green]"
        lines.append(f"{mark} {rule.text}")
    for rule in result.advisory_misses:
        lines.append(f"[yellow]![/yellow] {rule.text} [dim](guideline)[/dim]")
    if not result.evaluated_against:
        lines.append("[dim]No critical rules; approved by default[/dim]")

    if result.approved:
        title, style = "[bold green]APPROVED[/bold green]", "green"
    else:
        title, style = "[bold red]REJECTED[/bold red]", "red"

    console.print(Panel("\n".join(lines), title=title, border_style=style))

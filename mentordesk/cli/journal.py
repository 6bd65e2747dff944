"""Trade journal commands for MentorDesk CLI.

Handles logging, editing, closing, listing, deleting and reviewing
journaled trades.
"""

from datetime import datetime
from typing import Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from mentordesk.errors import MentordeskError, NotFoundError

console = Console()

OUTCOME_CHOICE = click.Choice(["win", "loss", "breakeven", "pending"])
DATE_TYPE = click.DateTime(formats=["%Y-%m-%d", "%Y-%m-%dT%H:%M", "%Y-%m-%d %H:%M"])


def _get_journal():
    """Build the journal service from config."""
    from mentordesk.config import get_data_store, load_config
    from mentordesk.db.port import LocalDataAccess
    from mentordesk.journal import JournalService

    config = load_config()
    journal_config = config["journal"]
    port = LocalDataAccess(
        get_data_store(config),
        user_id=journal_config.get("user_id") or None,
    )
    return JournalService(
        port,
        enforce_status_from_pnl=journal_config.get("enforce_status_from_pnl", True),
        default_source=journal_config.get("default_source") or None,
    )


def _fail(message: str) -> None:
    console.print(Panel(
        f"[red]{message}[/red]",
        title="[bold red]Error[/bold red]",
        border_style="red",
    ))
    raise SystemExit(1)


def resolve_trade_id(journal, prefix: str) -> str:
    """Expand a unique ID prefix to a full trade ID."""
    matches = [t.id for t in journal.list_trades() if t.id.startswith(prefix)]
    if len(matches) == 1:
        return matches[0]
    if not matches:
        raise NotFoundError(f"Trade '{prefix}' not found")
    raise NotFoundError(f"Trade ID prefix '{prefix}' is ambiguous")


def format_pnl(pnl: Optional[float]) -> str:
    """Colour a P&L value for display."""
    if pnl is None:
        return "[dim]-[/dim]"
    if pnl > 0:
        return f"[green]+${pnl:.2f}[/green]"
    if pnl < 0:
        return f"[red]-${abs(pnl):.2f}[/red]"
    return f"${pnl:.2f}"


STATUS_STYLE = {
    "win": "[green]WIN[/green]",
    "loss": "[red]LOSS[/red]",
    "breakeven": "[yellow]BE[/yellow]",
    "pending": "[dim]PENDING[/dim]",
}

VALIDATION_STYLE = {
    "approved": "[green]Approved[/green]",
    "warning": "[yellow]Warning[/yellow]",
    "rejected": "[red]Rejected[/red]",
    "none": "[dim]-[/dim]",
}


def _trade_panel(trade, title: str) -> Panel:
    return Panel(
        f"ID:       {trade.id[:8]}\n"
        f"Pair:     {trade.pair} {trade.type.upper()}\n"
        f"Entry:    {trade.entry_price}  SL: {trade.stop_loss}  TP: {trade.take_profit}\n"
        f"Exit:     {trade.exit_price if trade.exit_price is not None else '-'}\n"
        f"Status:   {STATUS_STYLE[trade.status]}\n"
        f"P&L:      {format_pnl(trade.pnl)}",
        title=f"[bold]{title}[/bold]",
        border_style="green",
    )


@click.command("log")
@click.argument("pair")
@click.argument("side", type=click.Choice(["buy", "sell"], case_sensitive=False))
@click.option("-e", "--entry", "entry_price", type=float, required=True, help="Entry price.")
@click.option("-s", "--sl", "stop_loss", type=float, required=True, help="Stop-loss price.")
@click.option("-t", "--tp", "take_profit", type=float, required=True, help="Take-profit price.")
@click.option("-x", "--exit", "exit_price", type=float, default=None, help="Exit price.")
@click.option("--pnl", type=float, default=None, help="Realized P&L.")
@click.option("--status", type=OUTCOME_CHOICE, default=None, help="Outcome (derived from P&L if omitted).")
@click.option("--strategy", default=None, help="Strategy name.")
@click.option("--timeframe", "time_frame", default=None, help="Chart time frame (e.g. 1H, 4H).")
@click.option("--source", "trade_source", type=click.Choice(["demo", "live", "paper"]), default=None)
@click.option("--confidence", "confidence_level", type=click.IntRange(1, 10), default=None)
@click.option("--risk", "risk_amount", type=float, default=None, help="Amount at risk.")
@click.option("--size", "position_size", type=float, default=None, help="Position size.")
@click.option("--emotion", "emotions", multiple=True, help="Emotion tag (repeatable).")
@click.option("--tag", "tags", multiple=True, help="Tag (repeatable).")
@click.option("--date", "trade_date", type=DATE_TYPE, default=None, help="Trade time (default now).")
@click.option("-n", "--notes", default="", help="Trade notes / setup description.")
def log_trade(pair: str, side: str, trade_date: Optional[datetime], **options) -> None:
    """Log a trade in the journal.

    \b
    Examples:
      mentordesk log EURUSD buy -e 1.0850 -s 1.0820 -t 1.0910
      mentordesk log GBPUSD sell -e 1.2700 -s 1.2740 -t 1.2620 --pnl 80 --strategy Breakout
    """
    fields = {k: v for k, v in options.items() if v not in (None, ())}
    fields["emotions"] = list(options["emotions"])
    fields["tags"] = list(options["tags"])
    if trade_date is not None:
        fields["date"] = trade_date

    try:
        trade = _get_journal().log_trade(pair=pair.upper(), type=side.lower(), **fields)
    except MentordeskError as e:
        _fail(str(e))

    console.print(_trade_panel(trade, "Trade Logged"))


@click.command("close")
@click.argument("trade_id")
@click.option("-x", "--exit", "exit_price", type=float, required=True, help="Exit price.")
@click.option("--pnl", type=float, required=True, help="Realized P&L.")
def close_trade(trade_id: str, exit_price: float, pnl: float) -> None:
    """Record the exit of an open trade.

    The outcome is set from the sign of the P&L.
    """
    try:
        journal = _get_journal()
        trade = journal.close_trade(resolve_trade_id(journal, trade_id), exit_price, pnl)
    except MentordeskError as e:
        _fail(str(e))

    console.print(_trade_panel(trade, "Trade Closed"))


@click.command("edit")
@click.argument("trade_id")
@click.option("--status", type=OUTCOME_CHOICE, default=None, help="Outcome.")
@click.option("--pnl", type=float, default=None, help="Realized P&L.")
@click.option("--strategy", default=None, help="Strategy name.")
@click.option("--timeframe", "time_frame", default=None, help="Chart time frame.")
@click.option("-n", "--notes", default=None, help="Trade notes.")
@click.option("--admin-notes", "admin_notes", default=None, help="Mentor notes.")
def edit_trade(trade_id: str, **options) -> None:
    """Edit fields of a journaled trade."""
    fields = {k: v for k, v in options.items() if v is not None}
    if not fields:
        console.print("[yellow]Nothing to change[/yellow]")
        return

    try:
        journal = _get_journal()
        trade = journal.update_trade(resolve_trade_id(journal, trade_id), **fields)
    except MentordeskError as e:
        _fail(str(e))

    console.print(_trade_panel(trade, "Trade Updated"))


@click.command("trades")
@click.option("-q", "--search", default="", help="Search pair, notes and strategy.")
@click.option("--type", "trade_type", type=click.Choice(["all", "buy", "sell"]), default="all")
@click.option("--outcome", type=click.Choice(["all", "win", "loss", "breakeven", "pending"]), default="all")
@click.option("--from", "date_from", type=DATE_TYPE, default=None, help="Start date (YYYY-MM-DD).")
@click.option("--to", "date_to", type=DATE_TYPE, default=None, help="End date (YYYY-MM-DD).")
@click.option("--sort", "sort_key", type=click.Choice(["date", "pnl"]), default="date")
@click.option("--asc", is_flag=True, default=False, help="Ascending order.")
def list_trades(
    search: str,
    trade_type: str,
    outcome: str,
    date_from: Optional[datetime],
    date_to: Optional[datetime],
    sort_key: str,
    asc: bool,
) -> None:
    """Display journaled trades.

    \b
    Examples:
      mentordesk trades
      mentordesk trades --outcome loss --sort pnl
      mentordesk trades -q breakout --from 2024-01-01
    """
    from mentordesk.analytics.filters import TradeFilter, sort_trades

    try:
        trade_filter = TradeFilter(
            search=search,
            trade_type=trade_type,
            outcome=outcome,
            date_from=date_from.date() if date_from else None,
            date_to=date_to.date() if date_to else None,
        )
        trades = sort_trades(
            _get_journal().list_trades(trade_filter), key=sort_key, descending=not asc
        )
    except MentordeskError as e:
        _fail(str(e))

    if not trades:
        console.print(Panel(
            "[dim]No trades found. Use 'mentordesk log PAIR SIDE ...' to add one.[/dim]",
            title="[bold]Journal[/bold]",
            border_style="dim",
        ))
        return

    table = Table(title="Trade Journal", show_header=True, header_style="bold cyan")
    table.add_column("ID", style="dim", width=8)
    table.add_column("Date")
    table.add_column("Pair", style="bold")
    table.add_column("Side", justify="center")
    table.add_column("Entry", justify="right")
    table.add_column("Status", justify="center")
    table.add_column("P&L", justify="right")
    table.add_column("Validation", justify="center")
    table.add_column("Strategy", max_width=20)

    for trade in trades:
        side_color = "green" if trade.type == "buy" else "red"
        table.add_row(
            trade.id[:8],
            trade.date.strftime("%Y-%m-%d %H:%M"),
            trade.pair,
            f"[{side_color}]{trade.type.upper()}[/{side_color}]",
            f"{trade.entry_price}",
            STATUS_STYLE[trade.status],
            format_pnl(trade.pnl),
            VALIDATION_STYLE[trade.validation_result],
            trade.strategy or "-",
        )

    console.print(table)
    console.print(f"\n[dim]Total: {len(trades)} trades[/dim]")


@click.command("delete")
@click.argument("trade_id")
@click.option("-y", "--yes", is_flag=True, default=False, help="Skip confirmation.")
def delete_trade(trade_id: str, yes: bool) -> None:
    """Delete a trade permanently."""
    try:
        journal = _get_journal()
        full_id = resolve_trade_id(journal, trade_id)
        if not yes and not click.confirm(f"Delete trade {full_id[:8]}?"):
            console.print("[yellow]Cancelled[/yellow]")
            return
        journal.delete_trade(full_id)
    except MentordeskError as e:
        _fail(str(e))

    console.print(f"[green]✓ Deleted trade {full_id[:8]}[/green]")


@click.command("review")
@click.argument("trade_id")
@click.option("--scenario", default=None, help="Text to check (defaults to the trade notes).")
def review_trade(trade_id: str, scenario: Optional[str]) -> None:
    """Validate a journaled trade against the protocol rules.

    The trade's validation result is updated with the outcome.
    """
    from mentordesk.cli.rules import _get_rule_book

    try:
        journal = _get_journal()
        full_id = resolve_trade_id(journal, trade_id)
        trade, result = _get_rule_book().validate_trade(journal, full_id, scenario)
    except MentordeskError as e:
        _fail(str(e))

    failed = "\n".join(f"[red]✗[/red] {rule.text}" for rule in result.failed_rules)
    console.print(Panel(
        f"Trade:      {trade.pair} {trade.type.upper()} ({trade.id[:8]})\n"
        f"Validation: {VALIDATION_STYLE[trade.validation_result]}"
        + (f"\n\n{failed}" if failed else ""),
        title="[bold]Protocol Review[/bold]",
        border_style="green" if result.approved else "red",
    ))

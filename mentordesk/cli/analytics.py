"""Analytics commands for MentorDesk CLI.

Handles the performance summary, behavioural pattern report and
journal export.
"""

from datetime import datetime
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from mentordesk.cli.journal import DATE_TYPE, _fail, _get_journal, format_pnl
from mentordesk.errors import MentordeskError

console = Console()

SEVERITY_STYLE = {
    "High": "red",
    "Medium": "yellow",
    "Positive": "green",
}


def _breakdown_table(title: str, stats: dict, limit: Optional[int] = None) -> Table:
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Key", style="bold")
    table.add_column("Trades", justify="right")
    table.add_column("W / L", justify="center")
    table.add_column("P&L", justify="right")

    ranked = sorted(stats.items(), key=lambda item: item[1].pnl, reverse=True)
    for key, group in ranked[:limit]:
        table.add_row(key, str(group.total), f"{group.wins} / {group.losses}", format_pnl(group.pnl))
    return table


@click.command("stats")
@click.option("-q", "--search", default="", help="Search pair, notes and strategy.")
@click.option("--type", "trade_type", type=click.Choice(["all", "buy", "sell"]), default="all")
@click.option("--outcome", type=click.Choice(["all", "win", "loss", "breakeven", "pending"]), default="all")
@click.option("--from", "date_from", type=DATE_TYPE, default=None, help="Start date (YYYY-MM-DD).")
@click.option("--to", "date_to", type=DATE_TYPE, default=None, help="End date (YYYY-MM-DD).")
def stats(
    search: str,
    trade_type: str,
    outcome: str,
    date_from: Optional[datetime],
    date_to: Optional[datetime],
) -> None:
    """Display win rate, P&L and breakdowns for the journal.

    \b
    Examples:
      mentordesk stats
      mentordesk stats --type buy --from 2024-01-01
    """
    from mentordesk.analytics.filters import TradeFilter

    try:
        trade_filter = TradeFilter(
            search=search,
            trade_type=trade_type,
            outcome=outcome,
            date_from=date_from.date() if date_from else None,
            date_to=date_to.date() if date_to else None,
        )
        summary = _get_journal().summarize(trade_filter)
    except MentordeskError as e:
        _fail(str(e))

    if summary.total == 0:
        console.print(Panel(
            "[dim]No trades match. Log trades with 'mentordesk log'.[/dim]",
            title="[bold]Performance[/bold]",
            border_style="dim",
        ))
        return

    win_color = "green" if summary.win_rate >= 50 else "yellow"
    console.print(Panel(
        f"Trades:         {summary.total} ({summary.closed_trades} closed)\n"
        f"Wins / Losses:  {summary.wins} / {summary.losses} / {summary.breakeven} BE\n"
        f"Win Rate:       [{win_color}]{summary.win_rate}%[/{win_color}]\n"
        f"Total P&L:      {format_pnl(summary.total_pnl)}\n"
        f"Avg P&L:        {format_pnl(summary.avg_pnl)}\n"
        f"Profit Factor:  {summary.profit_factor_display}\n"
        f"Largest Win:    {format_pnl(summary.largest_win)}\n"
        f"Largest Loss:   {format_pnl(summary.largest_loss)}",
        title="[bold]Performance Summary[/bold]",
        border_style="cyan",
    ))

    console.print(_breakdown_table("By Strategy", summary.strategy_stats))
    console.print(_breakdown_table("By Pair", summary.pair_stats, limit=6))
    console.print(_breakdown_table("By Time Frame", summary.time_frame_stats))


@click.command("patterns")
def patterns() -> None:
    """Detect behavioural patterns such as revenge trading or overtrading."""
    from mentordesk.analytics.patterns import identify_patterns

    try:
        report = identify_patterns(_get_journal().list_trades())
    except MentordeskError as e:
        _fail(str(e))

    s = report.statistics
    if s.total_trades == 0:
        console.print("[dim]No trades to analyze[/dim]")
        return

    console.print(Panel(
        f"Win Rate:          {s.win_rate * 100:.1f}%\n"
        f"Avg Win / Loss:    ${s.avg_win:.2f} / ${s.avg_loss:.2f}\n"
        f"Max Win Streak:    {s.max_consecutive_wins}\n"
        f"Max Loss Streak:   {s.max_consecutive_losses}\n"
        f"Most Traded Pair:  {s.most_traded_pair or '-'}\n"
        f"Top Strategy:      {s.most_used_strategy or '-'}\n"
        f"Best Hour:         {s.best_time_of_day or '-'}\n"
        f"Best Day:          {s.best_day_of_week or '-'}",
        title="[bold]Trading Statistics[/bold]",
        border_style="cyan",
    ))

    if not report.patterns:
        console.print("[green]No problem patterns detected[/green]")
        return

    for finding in report.patterns:
        color = SEVERITY_STYLE.get(finding.severity, "white")
        console.print(
            f"[{color}]● {finding.type}[/{color}] {finding.description}\n"
            f"  [dim]{finding.recommendation}[/dim]"
        )


@click.command("export")
@click.argument("path", type=click.Path(dir_okay=False, path_type=Path))
def export(path: Path) -> None:
    """Export the journal to a CSV file.

    \b
    Example:
      mentordesk export ~/journal.csv
    """
    from mentordesk.export import export_trades_csv

    try:
        written = export_trades_csv(_get_journal().list_trades(), path)
    except MentordeskError as e:
        _fail(str(e))

    if written:
        console.print(f"[green]✓ Exported journal to {path}[/green]")
    else:
        console.print("[yellow]No trades to export[/yellow]")

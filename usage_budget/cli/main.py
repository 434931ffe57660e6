"""
CLI interface for Usage Budget.

Provides command-line access to importing exports, settings, budget
progress and the daily cost series.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

import typer
import yaml
from rich.console import Console
from rich.table import Table

from usage_budget.config.loader import AppConfig, load_app_config
from usage_budget.core.aggregation import build_chart_data, summarize_costs
from usage_budget.core.budget import BudgetMetrics, compute_budget_metrics
from usage_budget.core.filters import Filters, default_filters, unique_models, unique_usage_types
from usage_budget.core.parser import UsageParseError, parse_usage_csv
from usage_budget.core.periods import billing_period_end, billing_period_start
from usage_budget.storage.repository import SettingsRepository, get_repository

app = typer.Typer()
console = Console()

EXIT_CODE_PASS = 0
EXIT_CODE_FAIL = 1

DATE_FORMATS = ["%Y-%m-%d", "%Y-%m-%dT%H:%M:%S"]


def _repository(ctx: typer.Context) -> SettingsRepository:
    """Open the repository chosen by the global options.

    Deferred until a command needs it so `--help` never touches the database.
    """
    return get_repository(ctx.obj["db_path"], ctx.obj["defaults"])


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    db: Optional[str] = typer.Option(None, "--db", help="Path to the settings database"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="YAML config file with defaults"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging")
):
    """Usage Budget CLI."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    app_config = AppConfig()
    if config is not None:
        try:
            app_config = load_app_config(str(config))
        except (OSError, ValueError, yaml.YAMLError) as e:
            console.print(f"[red]Error loading config:[/] {e}")
            sys.exit(EXIT_CODE_FAIL)

    ctx.obj = {"db_path": db or app_config.db_path, "defaults": app_config.settings}

    if ctx.invoked_subcommand is None:
        console.print("Usage Budget - Use --help to see available commands")


@app.command("import")
def import_csv(
    ctx: typer.Context,
    path: Path = typer.Argument(..., help="Usage export CSV file")
):
    """Parse a usage export and store it as the current record set."""
    try:
        text = path.read_text(encoding="utf-8")
        records = parse_usage_csv(text)
    except (OSError, UsageParseError) as e:
        console.print(f"[red]Error:[/] {e}")
        sys.exit(EXIT_CODE_FAIL)

    _repository(ctx).save_records(records)
    console.print(f"[green]✓[/] Imported {len(records)} usage records")


@app.command()
def settings(
    ctx: typer.Context,
    billing_day: Optional[int] = typer.Option(
        None,
        "--billing-day",
        "-d",
        help="Day of month the billing period starts (1-31)"
    ),
    monthly_limit: Optional[float] = typer.Option(
        None,
        "--monthly-limit",
        "-l",
        help="Monthly spending cap (0 clears it)"
    ),
    clear_limit: bool = typer.Option(False, "--clear-limit", help="Remove the monthly spending cap")
):
    """Show or update budget settings."""
    repository = _repository(ctx)
    try:
        if billing_day is not None:
            repository.set_billing_period_day(billing_day)
        if clear_limit:
            repository.set_monthly_cost_limit(None)
        elif monthly_limit is not None:
            repository.set_monthly_cost_limit(monthly_limit)
    except ValueError as e:
        console.print(f"[red]Error:[/] {e}")
        sys.exit(EXIT_CODE_FAIL)

    current = repository.get_settings()
    console.print(f"Billing period day: {current.billing_period_day}")
    if current.monthly_cost_limit is None:
        console.print("Monthly cost limit: [dim]not set[/]")
    else:
        console.print(f"Monthly cost limit: {_format_currency(current.monthly_cost_limit)}")


@app.command()
def budget(
    ctx: typer.Context,
    now: Optional[datetime] = typer.Option(
        None,
        "--now",
        formats=DATE_FORMATS,
        help="Reference date (defaults to the current time)"
    )
):
    """Show usage and allowance for the current month, week and day."""
    repository = _repository(ctx)
    records = repository.load_records()
    if not records:
        _print_no_records()
        sys.exit(EXIT_CODE_PASS)

    now = now or datetime.now()
    current = repository.get_settings()
    metrics = compute_budget_metrics(
        records,
        current.billing_period_day,
        current.monthly_cost_limit,
        now=now
    )
    _display_budget(metrics, current.billing_period_day, now)


@app.command()
def chart(
    ctx: typer.Context,
    start: Optional[datetime] = typer.Option(None, "--start", formats=DATE_FORMATS, help="First day to include"),
    end: Optional[datetime] = typer.Option(None, "--end", formats=DATE_FORMATS, help="Last day to include"),
    model: Optional[str] = typer.Option(None, "--model", "-m", help="Only this model"),
    usage_type: Optional[str] = typer.Option(None, "--usage-type", "-k", help="Only this usage type"),
    now: Optional[datetime] = typer.Option(
        None,
        "--now",
        formats=DATE_FORMATS,
        help="Reference date for the default range"
    )
):
    """Show daily and cumulative cost for the selected filters."""
    repository = _repository(ctx)
    records = repository.load_records()
    if not records:
        _print_no_records()
        sys.exit(EXIT_CODE_PASS)

    if start is None and end is None:
        base = default_filters(repository.get_billing_period_day(), now or datetime.now())
    else:
        base = Filters(
            start=start.date() if start else None,
            end=end.date() if end else None
        )
    filters = Filters(start=base.start, end=base.end, model=model, usage_type=usage_type)

    series = build_chart_data(records, filters)
    if not series:
        console.print("\n[dim]No data available for the selected filters[/]")
        sys.exit(EXIT_CODE_PASS)

    summary = summarize_costs(records, filters)
    console.print(f"\n[bold]Total Cost:[/bold] {_format_currency(summary.total_cost)}")
    console.print(f"[bold]On-Demand Cost:[/bold] {_format_currency(summary.on_demand_cost)}")

    table = Table(title="Cost Analysis")
    table.add_column("Date")
    table.add_column("Daily Cost", justify="right")
    table.add_column("Cumulative Cost", justify="right")
    for point in series:
        table.add_row(
            point.day.isoformat(),
            _format_currency(point.daily_cost),
            _format_currency(point.cumulative_cost)
        )
    console.print(table)


@app.command()
def models(ctx: typer.Context):
    """List the models and usage types present in the stored records."""
    records = _repository(ctx).load_records()
    if not records:
        _print_no_records()
        sys.exit(EXIT_CODE_PASS)

    console.print("[bold]Models[/bold]")
    for name in unique_models(records):
        console.print(f"  {name}")
    console.print("[bold]Usage types[/bold]")
    for kind in unique_usage_types(records):
        console.print(f"  {kind}")


def _print_no_records() -> None:
    console.print("\n[bold yellow]No usage records found[/]")
    console.print("Run `usage-budget import <file.csv>` to load a usage export\n")


def _format_currency(amount: float) -> str:
    return f"${amount:,.2f}"


def _format_percent(used: float, limit: Optional[float]) -> str:
    if not limit:
        return "N/A"
    return f"{min(100.0, used / limit * 100):.0f}%"


def _display_budget(metrics: BudgetMetrics, billing_period_day: int, now: datetime) -> None:
    period_start = billing_period_start(billing_period_day, now)
    period_end = billing_period_end(billing_period_day, now)

    console.print("\n[bold]Budget Progress[/bold]")
    console.print(f"Billing period: {period_start.isoformat()} to {period_end.isoformat()}")

    if metrics.monthly_limit is None:
        console.print(f"Monthly usage: {_format_currency(metrics.monthly_usage)}")
        console.print(f"Weekly usage: {_format_currency(metrics.weekly_usage)}")
        console.print(f"Daily usage: {_format_currency(metrics.daily_usage)}")
        console.print("\n[dim]Set a monthly limit with `usage-budget settings --monthly-limit` to see allowances.[/]")
        return

    table = Table()
    table.add_column("Period")
    table.add_column("Usage", justify="right")
    table.add_column("Limit", justify="right")
    table.add_column("Used", justify="right")
    rows = [
        ("Monthly", metrics.monthly_usage, metrics.monthly_limit),
        ("Weekly", metrics.weekly_usage, metrics.weekly_limit),
        ("Daily", metrics.daily_usage, metrics.daily_limit),
    ]
    for label, used, limit in rows:
        table.add_row(label, _format_currency(used), _format_currency(limit or 0), _format_percent(used, limit))
    console.print(table)


if __name__ == "__main__":
    app()

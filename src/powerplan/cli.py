"""Command-line interface for device schedule planning."""

import json
import logging
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from . import db
from .errors import PowerplanError
from .loaders import load_input, write_output
from .models import DAY, HOURS_PER_DAY, ScheduleInput
from .reports.schedule_html import generate_schedule_report
from .scheduler import DeviceScheduler
from .tariffs import load_rates_from_yaml, mode_for_hour, price_for_hour, rates_for_hour

console = Console()
err_console = Console(stderr=True)


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _load(input_path: str, rates_path: str | None, max_power: float | None) -> ScheduleInput:
    """Load input, optionally swapping in rates from a separate YAML file."""
    schedule_input = load_input(input_path, max_power=max_power)
    if rates_path:
        schedule_input = ScheduleInput(
            devices=schedule_input.devices,
            rates=load_rates_from_yaml(Path(rates_path)),
            config=schedule_input.config,
        )
    return schedule_input


def _format_price(price: float, priced: bool = True) -> str:
    return f"{price:g}" if priced else "no rate"


def _schedule_table(scheduler: DeviceScheduler) -> Table:
    table = Table(title="Device Schedule")
    table.add_column("Hour", style="cyan", justify="right")
    table.add_column("Mode")
    table.add_column("Price", justify="right")
    table.add_column("Free W", justify="right")
    table.add_column("Devices")

    for slot in scheduler.hours:
        mode_style = "yellow" if slot.mode == DAY else "blue"
        table.add_row(
            f"{slot.hour:02d}:00",
            f"[{mode_style}]{slot.mode}[/{mode_style}]",
            _format_price(slot.price, slot.priced),
            f"{slot.power:g}",
            ", ".join(slot.workers) or "[dim]-[/dim]",
        )
    return table


@click.group()
@click.option("--db-path", type=click.Path(), help="Path to SQLite database")
@click.option("-v", "--verbose", is_flag=True, help="Show debug logging")
@click.pass_context
def cli(ctx, db_path, verbose):
    """Device schedule planning - run devices in the cheapest hours."""
    _setup_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["db_path"] = Path(db_path) if db_path else None


@cli.command()
@click.option(
    "--input", "input_path", envvar="POWERPLAN_INPUT", required=True,
    help="Input JSON/YAML file or URL (or set POWERPLAN_INPUT)",
)
@click.option("--rates", "rates_path", type=click.Path(exists=True), help="YAML file with rates to use instead")
@click.option(
    "--max-power", type=float, envvar="POWERPLAN_MAX_POWER",
    help="Override maxPower in watts (or set POWERPLAN_MAX_POWER)",
)
@click.option("--output", "output_path", type=click.Path(), help="Write output JSON to this file")
@click.option("--save", is_flag=True, help="Store the schedule in the history database")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def run(ctx, input_path, rates_path, max_power, output_path, save, as_json):
    """Compute the cheapest schedule for a day."""
    try:
        schedule_input = _load(input_path, rates_path, max_power)
    except PowerplanError as e:
        console.print(f"[red]Error: {e}[/red]")
        ctx.exit(1)
    except Exception as e:
        console.print(f"[red]Failed to load input: {e}[/red]")
        raise

    scheduler = DeviceScheduler(schedule_input)
    result = scheduler.get_schedule()

    # Keep stdout parseable when printing JSON
    out = err_console if as_json else console
    if as_json:
        console.print_json(json.dumps(result.to_dict(), ensure_ascii=False))
    else:
        console.print(_schedule_table(scheduler))
        console.print(f"[green]Total cost: {result.total_cost}[/green]")

    for message in scheduler.get_errors():
        out.print(f"[yellow]{message}[/yellow]")

    if output_path:
        write_output(result, Path(output_path))
        out.print(f"[green]Saved schedule to {output_path}[/green]")

    if save:
        run_id = db.save_run(
            result, schedule_input.config.max_power, source=str(input_path), db_path=ctx.obj["db_path"]
        )
        out.print(f"[green]Stored as run {run_id}[/green]")


# Tariff commands
@cli.group()
def tariff():
    """Tariff inspection commands."""
    pass


@tariff.command("show")
@click.option("--input", "input_path", envvar="POWERPLAN_INPUT", help="Input JSON/YAML file or URL")
@click.option("--rates", "rates_path", type=click.Path(exists=True), help="YAML file with rates")
@click.pass_context
def tariff_show(ctx, input_path, rates_path):
    """Show mode, matching rates and price for every hour."""
    if not input_path and not rates_path:
        console.print("[red]Please specify --input or --rates[/red]")
        ctx.exit(1)

    try:
        if rates_path:
            rates = load_rates_from_yaml(Path(rates_path))
        else:
            rates = load_input(input_path).rates
    except PowerplanError as e:
        console.print(f"[red]Error: {e}[/red]")
        ctx.exit(1)
    except Exception as e:
        console.print(f"[red]Failed to load rates: {e}[/red]")
        raise

    table = Table(title="Hourly Tariff")
    table.add_column("Hour", style="cyan", justify="right")
    table.add_column("Mode")
    table.add_column("Rates")
    table.add_column("Price", justify="right")

    for hour in range(HOURS_PER_DAY):
        matching = rates_for_hour(hour, rates)
        table.add_row(
            f"{hour:02d}:00",
            mode_for_hour(hour),
            ", ".join(f"{r.start}-{r.end} @ {r.value:g}" for r in matching) or "[dim]-[/dim]",
            _format_price(price_for_hour(hour, rates), bool(matching)),
        )

    console.print(table)


# History commands
@cli.group()
def history():
    """Saved schedule commands."""
    pass


@history.command("list")
@click.option("--limit", default=20, help="Number of runs to show (default: 20)")
@click.pass_context
def history_list(ctx, limit):
    """List saved schedule runs."""
    runs = db.list_runs(limit, ctx.obj["db_path"])

    if not runs:
        console.print("[yellow]No saved runs found[/yellow]")
        return

    table = Table(title="Saved Schedules")
    table.add_column("Run", style="cyan", justify="right")
    table.add_column("Created")
    table.add_column("Source", style="dim")
    table.add_column("Max W", justify="right")
    table.add_column("Placed", justify="right")
    table.add_column("Cost", justify="right")

    for r in runs:
        placed = f"{r['placed_count']}/{r['device_count']}"
        if r["error_count"]:
            placed = f"[yellow]{placed}[/yellow]"
        table.add_row(
            str(r["id"]),
            r["created_at"],
            r["source"] or "",
            f"{r['max_power']:g}",
            placed,
            f"{r['total_cost']}",
        )

    console.print(table)


@history.command("show")
@click.argument("run_id", type=int)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def history_show(ctx, run_id, as_json):
    """Show a saved schedule run."""
    saved = db.get_run(run_id, ctx.obj["db_path"])
    if not saved:
        console.print(f"[red]Run {run_id} not found[/red]")
        ctx.exit(1)

    result = saved["result"]
    if as_json:
        console.print_json(json.dumps(result.to_dict(), ensure_ascii=False))
        return

    table = Table(title=f"Run {run_id} ({saved['run']['created_at']})")
    table.add_column("Hour", style="cyan", justify="right")
    table.add_column("Devices")
    for hour, device_ids in result.schedule.items():
        names = [result.devices.get(device_id, device_id) for device_id in device_ids]
        table.add_row(f"{hour:02d}:00", ", ".join(names) or "[dim]-[/dim]")

    console.print(table)
    console.print(f"[green]Total cost: {result.total_cost}[/green]")
    for message in result.errors:
        console.print(f"[yellow]{message}[/yellow]")


# Database commands
@cli.group()
def database():
    """Database management commands."""
    pass


@database.command("init")
@click.pass_context
def db_init(ctx):
    """Initialize the database schema."""
    db.init_db(ctx.obj["db_path"])
    console.print("[green]Database initialized successfully[/green]")


@database.command("stats")
@click.pass_context
def db_stats(ctx):
    """Show database statistics."""
    stats = db.get_stats(ctx.obj["db_path"])

    table = Table(title="Database Statistics")
    table.add_column("Category", style="cyan")
    table.add_column("Count", justify="right")
    table.add_column("Range")

    runs = stats["schedule_runs"]
    table.add_row(
        "Schedule runs",
        str(runs["count"]),
        f"{runs['earliest'] or 'N/A'} → {runs['latest'] or 'N/A'}",
    )
    table.add_row("Placements", str(stats["placements"]["count"]), "")
    table.add_row("Placement errors", str(stats["errors"]["count"]), "")

    console.print(table)


@cli.command()
@click.option("--input", "input_path", envvar="POWERPLAN_INPUT", help="Input JSON/YAML file or URL")
@click.option("--run-id", type=int, help="Render a saved run instead of computing one")
@click.option("--output", "output_path", type=click.Path(), required=True, help="HTML file to write")
@click.option("--title", default="Device Schedule", help="Report title")
@click.pass_context
def report(ctx, input_path, run_id, output_path, title):
    """Generate an HTML timeline report."""
    if run_id is not None:
        saved = db.get_run(run_id, ctx.obj["db_path"])
        if not saved:
            console.print(f"[red]Run {run_id} not found[/red]")
            ctx.exit(1)
        result = saved["result"]
        prices = None
    elif input_path:
        try:
            scheduler = DeviceScheduler(load_input(input_path))
        except PowerplanError as e:
            console.print(f"[red]Error: {e}[/red]")
            ctx.exit(1)
        except Exception as e:
            console.print(f"[red]Failed to build schedule: {e}[/red]")
            raise
        result = scheduler.get_schedule()
        prices = {slot.hour: slot.price for slot in scheduler.hours if slot.priced}
    else:
        console.print("[red]Please specify --input or --run-id[/red]")
        ctx.exit(1)

    Path(output_path).write_text(generate_schedule_report(result, prices, title), encoding="utf-8")
    console.print(f"[green]Report written to {output_path}[/green]")


if __name__ == "__main__":
    cli()

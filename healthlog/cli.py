"""
Terminal front end for the health log.

Each command opens a store session (remembered credentials are picked up
from the preference store), performs one operation and flushes the pending
save before exiting, so the debounce never outlives the process.
"""

import asyncio
from collections.abc import Awaitable, Callable
from datetime import date, datetime
from pathlib import Path
from typing import Any, TypeVar

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from healthlog.config import AppConfig, get_config
from healthlog.domain.errors import InvalidBundleError
from healthlog.domain.models import TIME_SLOTS, TimeSlotEntry, validate_date_key
from healthlog.services.bundle_io import export_filename
from healthlog.services.jsonbin import JsonBinClient
from healthlog.services.observability import configure_logging
from healthlog.services.preferences import LocalPreferenceStore
from healthlog.services.store import AppStore
from healthlog.views.chart import DayViewMode, MarkerColor, build_day_view
from healthlog.views.day_form import apply_standard_pattern, build_day_form
from healthlog.views.month_calendar import WEEK_DAYS, build_month_grid
from healthlog.views.pattern_form import (
    build_pattern_form,
    finalize_pattern_form,
    set_slot_medications,
)

console = Console()

T = TypeVar("T")

MARKER_STYLES = {
    MarkerColor.MEDICATION: ("medication", "green"),
    MarkerColor.COMMENT: ("comment", "dark_orange"),
    MarkerColor.BOTH: ("both", "magenta"),
}


def _date_arg(ctx: click.Context, param: click.Parameter, value: str) -> str:
    try:
        return validate_date_key(value)
    except ValueError as e:
        raise click.BadParameter(str(e)) from e


def _slot_arg(ctx: click.Context, param: click.Parameter, value: str) -> str:
    if value not in TIME_SLOTS:
        raise click.BadParameter(f"{value!r} is not a slot between 08:00 and 23:30")
    return value


def _build_store(obj: dict[str, Any]) -> AppStore:
    config: AppConfig = obj["config"]
    client = JsonBinClient(config.remote, transport=obj.get("transport"))
    preferences = LocalPreferenceStore(config.preferences.path)
    return AppStore(client, preferences, config.store)


def _run(
    ctx: click.Context,
    action: Callable[[AppStore], Awaitable[T]],
    require_login: bool = True,
) -> T:
    async def _session() -> T:
        store = _build_store(ctx.obj)
        async with store.session():
            if require_login and not store.is_authenticated:
                raise click.ClickException("Not logged in. Run `healthlog login` first.")
            return await action(store)

    return asyncio.run(_session())


def _check_medications(store: AppStore, medications: tuple[str, ...]) -> list[str]:
    unknown = [m for m in medications if m not in store.medications]
    if unknown:
        raise click.ClickException(
            f"Unknown medication(s): {', '.join(unknown)}. Add them with `healthlog meds add`."
        )
    return list(dict.fromkeys(medications))


@click.group()
@click.pass_context
def main(ctx: click.Context) -> None:
    """Record symptom values, medications and notes per half hour."""
    ctx.ensure_object(dict)
    config = ctx.obj.get("config") or get_config()
    ctx.obj["config"] = config
    configure_logging(config.logging)


@main.command()
@click.option("--api-key", prompt="API key (X-Master-Key)", hide_input=True)
@click.option("--bin-id", prompt="Bin id")
@click.pass_context
def login(ctx: click.Context, api_key: str, bin_id: str) -> None:
    """Remember document store credentials and load the data."""

    async def action(store: AppStore) -> None:
        try:
            await store.login(api_key, bin_id)
        except ValueError as e:
            raise click.ClickException(str(e)) from e
        console.print(
            f"[green]Logged in.[/green] {len(store.health_data)} day(s), "
            f"{len(store.medications)} medication(s) loaded."
        )

    _run(ctx, action, require_login=False)


@main.command()
@click.pass_context
def logout(ctx: click.Context) -> None:
    """Forget the remembered credentials."""

    async def action(store: AppStore) -> None:
        store.logout()
        console.print("Logged out.")

    _run(ctx, action, require_login=False)


@main.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show login state and what is stored."""

    async def action(store: AppStore) -> None:
        table = Table(show_header=False)
        table.add_row("State", store.state.value)
        table.add_row("Days recorded", str(len(store.health_data)))
        table.add_row("Medications", str(len(store.medications)))
        table.add_row("Pattern slots", str(len(store.standard_pattern)))
        table.add_row("Preferences", str(ctx.obj["config"].preferences.path))
        console.print(Panel(table, title="Health log"))

    _run(ctx, action, require_login=False)


@main.command()
@click.argument("day", callback=_date_arg)
@click.pass_context
def show(ctx: click.Context, day: str) -> None:
    """Show one day as a chart table, or as a list when it has no values."""

    async def action(store: AppStore) -> None:
        view = build_day_view(store.day(day))
        if view.mode is DayViewMode.EMPTY:
            console.print(f"No data recorded for {day}.")
            return

        if view.mode is DayViewMode.LIST:
            console.print("No numeric values to chart; recorded entries:")
            table = Table(title=day)
            table.add_column("Time")
            table.add_column("Medications", style="green")
            table.add_column("Comments", style="dark_orange")
            for point in view.points:
                table.add_row(point.time, ", ".join(point.medications), point.comments)
            console.print(table)
            return

        table = Table(title=day)
        table.add_column("Time")
        table.add_column("Value", justify="right")
        table.add_column("")
        table.add_column("Marker")
        table.add_column("Medications")
        table.add_column("Comments")
        for point in view.points:
            value = "-" if point.value is None else str(point.value)
            bar = "" if point.value is None else "#" * point.value
            marker = ""
            if point.marker is not None:
                label, style = MARKER_STYLES[point.marker]
                marker = f"[{style}]{label}[/{style}]"
            table.add_row(
                point.time, value, bar, marker, ", ".join(point.medications), point.comments
            )
        console.print(table)

    _run(ctx, action)


@main.command()
@click.argument("day", callback=_date_arg)
@click.argument("slot", callback=_slot_arg)
@click.option("--value", type=click.IntRange(0, 10), help="Severity value 0-10.")
@click.option("--no-value", is_flag=True, help="Clear the slot's value.")
@click.option("--med", "meds", multiple=True, help="Medication taken (repeatable).")
@click.option("--no-meds", is_flag=True, help="Clear the slot's medications.")
@click.option("--comment", help="Free-text comment.")
@click.pass_context
def record(
    ctx: click.Context,
    day: str,
    slot: str,
    value: int | None,
    no_value: bool,
    meds: tuple[str, ...],
    no_meds: bool,
    comment: str | None,
) -> None:
    """Record a value, medications or a comment for one slot."""
    if value is not None and no_value:
        raise click.UsageError("--value and --no-value are mutually exclusive")
    if meds and no_meds:
        raise click.UsageError("--med and --no-meds are mutually exclusive")

    async def action(store: AppStore) -> None:
        day_record = store.day(day)
        entry = day_record.get(slot, TimeSlotEntry())
        update: dict[str, Any] = {}
        if value is not None or no_value:
            update["value"] = value
        if meds or no_meds:
            update["medications"] = _check_medications(store, meds)
        if comment is not None:
            update["comments"] = comment
        day_record[slot] = TimeSlotEntry.model_validate({**entry.model_dump(), **update})
        store.record_day(day, day_record)
        console.print(f"Saved {day} {slot}.")

    _run(ctx, action)


@main.command(name="clear-slot")
@click.argument("day", callback=_date_arg)
@click.argument("slot", callback=_slot_arg)
@click.pass_context
def clear_slot(ctx: click.Context, day: str, slot: str) -> None:
    """Remove everything recorded in one slot."""

    async def action(store: AppStore) -> None:
        day_record = store.day(day)
        if day_record.pop(slot, None) is None:
            console.print(f"Nothing recorded at {day} {slot}.")
            return
        store.record_day(day, day_record)
        console.print(f"Cleared {day} {slot}.")

    _run(ctx, action)


@main.command(name="apply-pattern")
@click.argument("day", callback=_date_arg)
@click.pass_context
def apply_pattern(ctx: click.Context, day: str) -> None:
    """Add the standard pattern's medications to a day."""

    async def action(store: AppStore) -> None:
        form = apply_standard_pattern(build_day_form(store.day(day)), store.standard_pattern)
        store.record_day(day, form)
        console.print(f"Standard pattern applied to {day}.")

    _run(ctx, action)


@main.command(name="calendar")
@click.argument("month", required=False)
@click.pass_context
def calendar_cmd(ctx: click.Context, month: str | None) -> None:
    """Show a month (YYYY-MM, default current); days with data are starred."""
    today = date.today()
    if month:
        try:
            parsed = datetime.strptime(month, "%Y-%m")
        except ValueError as e:
            raise click.BadParameter(f"{month!r} is not YYYY-MM") from e
        year, month_number = parsed.year, parsed.month
    else:
        year, month_number = today.year, today.month

    async def action(store: AppStore) -> None:
        grid = build_month_grid(year, month_number, store.health_data, today=today)
        table = Table(title=grid.title)
        for name in WEEK_DAYS:
            table.add_column(name, justify="right")
        for week in grid.weeks:
            cells = []
            for cell in week:
                if cell is None:
                    cells.append("")
                    continue
                text = f"{cell.day.day}{'*' if cell.has_data else ' '}"
                cells.append(f"[bold]{text}[/bold]" if cell.is_today else text)
            table.add_row(*cells)
        console.print(table)

    _run(ctx, action)


@main.group()
def meds() -> None:
    """Manage the medication catalog."""


@meds.command(name="list")
@click.pass_context
def meds_list(ctx: click.Context) -> None:
    """List the catalog in sorted order."""

    async def action(store: AppStore) -> None:
        if not store.medications:
            console.print("No medications.")
        for name in store.medications:
            console.print(name)

    _run(ctx, action)


@meds.command(name="add")
@click.argument("name")
@click.pass_context
def meds_add(ctx: click.Context, name: str) -> None:
    """Add a medication to the catalog."""
    name = name.strip()
    if not name:
        raise click.BadParameter("medication name cannot be blank")

    async def action(store: AppStore) -> None:
        if name in store.medications:
            console.print(f"{name} is already in the catalog.")
            return
        store.add_medication(name)
        console.print(f"Added {name}.")

    _run(ctx, action)


@meds.command(name="rename")
@click.argument("old_name")
@click.argument("new_name")
@click.pass_context
def meds_rename(ctx: click.Context, old_name: str, new_name: str) -> None:
    """Rename a medication everywhere it was recorded."""

    async def action(store: AppStore) -> None:
        if old_name not in store.medications:
            raise click.ClickException(f"Unknown medication: {old_name}")
        store.rename_medication(old_name, new_name)
        console.print(f"Renamed {old_name} to {new_name.strip()}.")

    _run(ctx, action)


@meds.command(name="delete")
@click.argument("name")
@click.pass_context
def meds_delete(ctx: click.Context, name: str) -> None:
    """Delete a medication from the catalog, every day and the pattern."""

    async def action(store: AppStore) -> None:
        if name not in store.medications:
            raise click.ClickException(f"Unknown medication: {name}")
        store.delete_medication(name)
        console.print(f"Deleted {name}.")

    _run(ctx, action)


@main.group()
def pattern() -> None:
    """Manage the standard medication pattern."""


@pattern.command(name="show")
@click.pass_context
def pattern_show(ctx: click.Context) -> None:
    """Show the pattern for every slot."""

    async def action(store: AppStore) -> None:
        table = Table(title="Standard pattern")
        table.add_column("Time")
        table.add_column("Medications", style="green")
        for label, names in build_pattern_form(store.standard_pattern).items():
            table.add_row(label, ", ".join(names))
        console.print(table)

    _run(ctx, action)


@pattern.command(name="set")
@click.argument("slot", callback=_slot_arg)
@click.argument("names", nargs=-1, required=True)
@click.pass_context
def pattern_set(ctx: click.Context, slot: str, names: tuple[str, ...]) -> None:
    """Set the medications for one slot of the pattern."""

    async def action(store: AppStore) -> None:
        chosen = _check_medications(store, names)
        form = set_slot_medications(build_pattern_form(store.standard_pattern), slot, chosen)
        store.set_standard_pattern(finalize_pattern_form(form))
        console.print(f"Pattern {slot}: {', '.join(chosen)}")

    _run(ctx, action)


@pattern.command(name="clear")
@click.argument("slot", callback=_slot_arg)
@click.pass_context
def pattern_clear(ctx: click.Context, slot: str) -> None:
    """Remove one slot from the pattern."""

    async def action(store: AppStore) -> None:
        form = set_slot_medications(build_pattern_form(store.standard_pattern), slot, [])
        store.set_standard_pattern(finalize_pattern_form(form))
        console.print(f"Pattern {slot} cleared.")

    _run(ctx, action)


@main.command(name="export")
@click.argument("path", required=False, type=click.Path(dir_okay=False, path_type=Path))
@click.pass_context
def export_cmd(ctx: click.Context, path: Path | None) -> None:
    """Write the whole bundle to a JSON file."""
    target = path or Path(export_filename(date.today()))

    async def action(store: AppStore) -> None:
        target.write_text(store.export_json(), encoding="utf-8")
        console.print(f"Exported to {target}.")

    _run(ctx, action)


@main.command(name="import")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_context
def import_cmd(ctx: click.Context, path: Path) -> None:
    """Replace all data with the contents of an exported JSON file."""
    contents = path.read_bytes()

    async def action(store: AppStore) -> None:
        try:
            bundle = store.import_text(contents)
        except InvalidBundleError as e:
            raise click.ClickException(e.message) from e
        console.print(
            f"Imported {len(bundle.health_data)} day(s) and "
            f"{len(bundle.medications)} medication(s) from {path.name}."
        )

    _run(ctx, action)


if __name__ == "__main__":
    main()

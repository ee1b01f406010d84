"""Stundenplan-Generator — Haupt-CLI.

Verwendung:
  python main.py config preset school        Vorlage als Konfiguration speichern
  python main.py config show                 Konfiguration anzeigen
  python main.py config set --periods 6      Einzelne Werte ändern
  python main.py classes import <datei>      Klassendaten (JSON) importieren
  python main.py teachers list               Kollegium anzeigen
  python main.py teachers derive             Kollegium aus Klassenlehrkräften ableiten
  python main.py teachers import <datei>     Kollegium (JSON) importieren
  python main.py workload init               Workload-Gerüst aus den Klassen
  python main.py workload import <datei>     Workload (JSON) importieren
  python main.py workload show               Workload anzeigen
  python main.py check                       Machbarkeits-Check
  python main.py generate                    Stundenplan erstellen
  python main.py show --class 7a             Stundenplan einer Klasse
  python main.py show --teacher t_Anna_Khan  Stundenplan einer Lehrkraft
  python main.py validate                    Gespeicherten Plan prüfen

Alle Befehle arbeiten auf einer Schule (--tenant) unter --data-dir.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import click
from pydantic import TypeAdapter, ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich import box

console = Console()

# Standard-Verzeichnis für die Schul-Daten (ein Unterordner pro Tenant)
DEFAULT_DATA_DIR = Path("output/tenants")


class CliState:
    """Gemeinsamer Zustand aller Befehle (über click.pass_obj)."""

    def __init__(self, data_dir: Path, tenant: str) -> None:
        from storage.json_store import JsonFileStore

        self.tenant = tenant
        self.store = JsonFileStore(data_dir)


pass_state = click.make_pass_decorator(CliState)


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _abort(message: str, detail: Optional[object] = None) -> None:
    """Fehlermeldung ausgeben und mit Exit-Code 1 beenden.

    `detail` (z.B. eine Exception) wird ohne Rich-Markup ausgegeben.
    """
    console.print(f"[red]{message}[/red]")
    if detail is not None:
        console.print(escape(str(detail)))
    sys.exit(1)


def _load_config_or_abort(state: CliState):
    """Lädt die Konfiguration oder bricht mit Fehlermeldung ab."""
    from storage.base import StorageError

    try:
        config = state.store.get_timetable_config(state.tenant)
    except StorageError as e:
        _abort("Konfiguration nicht lesbar:", e)
    if config is None:
        console.print(
            f"[red]Keine Konfiguration für '{state.tenant}' gefunden.[/red]\n"
            "Führen Sie zunächst [bold]python main.py config preset school[/bold] aus."
        )
        sys.exit(1)
    return config


def _settings(strategy: Optional[str] = None, seed: Optional[int] = None,
              daily_cap: Optional[int] = None):
    from config.schema import SchedulerSettings

    values = {}
    if strategy is not None:
        values["day_order"] = strategy
    if seed is not None:
        values["seed"] = seed
    if daily_cap is not None:
        values["teacher_daily_cap"] = daily_cap
    try:
        return SchedulerSettings(**values)
    except ValidationError as e:
        _abort("Ungültige Einstellungen:", e)


def _read_json_file(path: Path, adapter: TypeAdapter):
    try:
        return adapter.validate_json(path.read_text(encoding="utf-8"))
    except (UnicodeDecodeError, ValidationError) as e:
        _abort("Datei ungültig:", f"{path}\n{e}")


def _store_call(func, *args) -> None:
    """Schreibzugriff auf den Speicher; StorageError → Abbruch mit Meldung."""
    from storage.base import StorageError

    try:
        func(*args)
    except StorageError as e:
        _abort("Speichern fehlgeschlagen:", e)


def _print_timetable(title: str, rows: list[list[str]], days: list[str]) -> None:
    table = Table(title=title, box=box.ROUNDED, show_lines=True)
    table.add_column("Std.", justify="right")
    table.add_column("Zeit")
    for day in days:
        table.add_column(day)
    for row in rows:
        table.add_row(*row)
    console.print(table)


# ─── CONFIG ───────────────────────────────────────────────────────────────────

@click.group("config")
def cmd_config():
    """Zeitrahmen anzeigen, aus Vorlage anlegen oder ändern."""


@cmd_config.command("show")
@pass_state
def config_show(state: CliState):
    """Zeigt die aktuelle Konfiguration an."""
    config = _load_config_or_abort(state)

    console.print(Panel(
        f"[bold]{state.tenant}[/bold]  |  {', '.join(config.working_days)}  |  "
        f"{config.day_starts_at}–{config.day_ends_at}  |  {config.period_duration} Min.",
        title="Stundenplan-Konfiguration",
        border_style="cyan",
    ))

    from export.helpers import build_time_grid_rows
    from config.schema import BreakSlot

    table = Table(title="Zeitraster", box=box.ROUNDED)
    table.add_column("Std.")
    table.add_column("Beginn")
    table.add_column("Ende")
    for row in build_time_grid_rows(config):
        if isinstance(row, BreakSlot):
            table.add_row("—", f"[dim]{row.label}[/dim]", "")
        else:
            table.add_row(str(row.period), row.start_time, row.end_time)
    console.print(table)

    console.print(
        f"\n[bold]Stunden pro Tag:[/bold] {config.periods_per_day} geplant | "
        f"{config.derived_periods_per_day} laut Uhrzeiten | "
        f"{config.weekly_slots} Slots pro Klasse und Woche"
    )


@cmd_config.command("preset")
@click.argument("kind", type=click.Choice(["school", "madrassa", "tuition"]))
@click.option("--force", is_flag=True, default=False,
              help="Bestehende Konfiguration überschreiben.")
@pass_state
def config_preset(state: CliState, kind: str, force: bool):
    """Speichert die Vorlage eines Einrichtungstyps als Konfiguration."""
    from config.defaults import preset_config
    from config.schema import InstitutionType

    if not force:
        from storage.base import StorageError
        try:
            existing = state.store.get_timetable_config(state.tenant)
        except StorageError:
            existing = None
        if existing is not None:
            _abort("Eine Konfiguration existiert bereits (--force zum Überschreiben).")

    config = preset_config(InstitutionType(kind))
    _store_call(state.store.save_timetable_config, state.tenant, config)
    console.print(f"[green]✓[/green] Vorlage '{kind}' für '{state.tenant}' gespeichert.")


@cmd_config.command("set")
@click.option("--days", help="Unterrichtstage, kommagetrennt (z.B. MON,TUE,WED).")
@click.option("--start", "day_starts_at", help="Unterrichtsbeginn HH:MM.")
@click.option("--end", "day_ends_at", help="Unterrichtsende HH:MM.")
@click.option("--duration", "period_duration", type=int, help="Stundenlänge in Minuten.")
@click.option("--periods", "periods_per_day", type=int, help="Stunden pro Tag.")
@pass_state
def config_set(state: CliState, days, day_starts_at, day_ends_at,
               period_duration, periods_per_day):
    """Ändert einzelne Werte der Konfiguration."""
    from config.schema import TimetableConfig

    config = _load_config_or_abort(state)
    updates = {
        "day_starts_at": day_starts_at,
        "day_ends_at": day_ends_at,
        "period_duration": period_duration,
        "periods_per_day": periods_per_day,
    }
    if days:
        updates["working_days"] = [d for d in days.split(",") if d.strip()]
    updates = {k: v for k, v in updates.items() if v is not None}
    if not updates:
        console.print("[yellow]Keine Änderungen angegeben.[/yellow]")
        return

    try:
        new_config = TimetableConfig.model_validate(
            {**config.model_dump(), **updates}
        )
    except ValidationError as e:
        _abort("Ungültige Werte:", e)

    _store_call(state.store.save_timetable_config, state.tenant, new_config)
    for key, value in updates.items():
        console.print(f"[green]✓[/green] {key} = {value}")


# ─── CLASSES ──────────────────────────────────────────────────────────────────

@click.group("classes")
def cmd_classes():
    """Klassendaten der Schulverwaltung."""


@cmd_classes.command("import")
@click.argument("datei", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@pass_state
def classes_import(state: CliState, datei: Path):
    """Importiert Klassen aus einer JSON-Datei (Liste von Klassen)."""
    from models.workload import ClassRecord

    classes = _read_json_file(datei, TypeAdapter(list[ClassRecord]))
    _store_call(state.store.save_classes, state.tenant, classes)
    console.print(f"[green]✓[/green] {len(classes)} Klassen importiert.")


# ─── TEACHERS ─────────────────────────────────────────────────────────────────

@click.group("teachers")
def cmd_teachers():
    """Kollegium anzeigen, ableiten oder importieren."""


@cmd_teachers.command("list")
@pass_state
def teachers_list(state: CliState):
    """Zeigt das Kollegium (gepflegt oder aus den Klassen abgeleitet)."""
    from solver.service import TimetableService

    teachers = TimetableService(state.store).teacher_directory(state.tenant)
    if not teachers:
        console.print("[dim]Kein Kollegium vorhanden.[/dim]")
        return

    table = Table(title="Kollegium", box=box.ROUNDED)
    table.add_column("ID", style="bold")
    table.add_column("Name")
    table.add_column("Fächer")
    table.add_column("Wochenlast", justify="right")
    for t in teachers:
        table.add_row(t.id, t.name, ", ".join(t.subjects) or "[dim]—[/dim]", str(t.max_load))
    console.print(table)


@cmd_teachers.command("derive")
@pass_state
def teachers_derive(state: CliState):
    """Leitet das Kollegium aus den Klassenlehrkräften ab und speichert es."""
    from data.directory import derive_teacher_directory
    from storage.base import StorageError

    try:
        classes = state.store.get_classes(state.tenant)
    except StorageError as e:
        _abort("Klassendaten nicht lesbar:", e)
    teachers = derive_teacher_directory(classes)
    _store_call(state.store.save_teacher_directory, state.tenant, teachers)
    console.print(f"[green]✓[/green] {len(teachers)} Lehrkräfte abgeleitet.")
    if teachers:
        console.print("[dim]Fächer sind leer und müssen noch gepflegt werden.[/dim]")


@cmd_teachers.command("import")
@click.argument("datei", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@pass_state
def teachers_import(state: CliState, datei: Path):
    """Importiert das Kollegium aus einer JSON-Datei."""
    from models.teacher import TeacherProfile

    teachers = _read_json_file(datei, TypeAdapter(list[TeacherProfile]))
    ids = [t.id for t in teachers]
    if len(set(ids)) != len(ids):
        _abort("Doppelte Lehrkraft-IDs in der Datei.")
    _store_call(state.store.save_teacher_directory, state.tenant, teachers)
    console.print(f"[green]✓[/green] {len(teachers)} Lehrkräfte importiert.")


# ─── WORKLOAD ─────────────────────────────────────────────────────────────────

@click.group("workload")
def cmd_workload():
    """Wochenstunden-Bedarf pro Klasse und Fach."""


@cmd_workload.command("init")
@click.option("--count", default=5, show_default=True,
              help="Wochenstunden je Fach im Gerüst.")
@pass_state
def workload_init(state: CliState, count: int):
    """Legt ein Workload-Gerüst aus den Klassenfächern an."""
    from data.directory import default_workload
    from storage.base import StorageError

    try:
        classes = state.store.get_classes(state.tenant)
    except StorageError as e:
        _abort("Klassendaten nicht lesbar:", e)
    if not classes:
        _abort("Keine Klassen vorhanden. Zuerst [bold]classes import[/bold] ausführen.")
    workload = default_workload(classes, count=count)
    _store_call(state.store.save_workload, state.tenant, workload)
    total = sum(len(loads) for loads in workload.values())
    console.print(f"[green]✓[/green] {total} Fachbedarfe für {len(workload)} Klassen angelegt.")


@cmd_workload.command("import")
@click.argument("datei", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@pass_state
def workload_import(state: CliState, datei: Path):
    """Importiert den Workload aus einer JSON-Datei (flache Liste von Fachbedarfen)."""
    from models.workload import SubjectLoad, group_workload

    loads = _read_json_file(datei, TypeAdapter(list[SubjectLoad]))
    workload = group_workload(loads)
    _store_call(state.store.save_workload, state.tenant, workload)
    console.print(f"[green]✓[/green] {len(loads)} Fachbedarfe importiert.")


@cmd_workload.command("show")
@pass_state
def workload_show(state: CliState):
    """Zeigt den Workload aller Klassen und die verfügbaren Fächer."""
    from data.directory import subject_library
    from solver.service import TimetableService

    service = TimetableService(state.store)
    workload = service.workload(state.tenant)
    subjects = subject_library(service.classes(state.tenant))
    if not workload:
        console.print("[dim]Kein Workload vorhanden.[/dim]")
        console.print(f"[bold]Fachbibliothek:[/bold] {', '.join(subjects)}")
        return

    table = Table(title="Workload", box=box.ROUNDED)
    table.add_column("Klasse", style="bold")
    table.add_column("Fach")
    table.add_column("Std.", justify="right")
    table.add_column("Lehrkraft")
    table.add_column("Doppel")
    for class_id, loads in workload.items():
        for load in loads:
            table.add_row(
                class_id, load.subject, str(load.count),
                load.teacher_id or "[dim]auto[/dim]",
                "✓" if load.is_double else "",
            )
    console.print(table)
    console.print(f"[bold]Fachbibliothek:[/bold] {', '.join(subjects)}")


# ─── CHECK ────────────────────────────────────────────────────────────────────

@click.command("check")
@click.option("--daily-cap", type=int, default=None, help="Tageslimit pro Lehrkraft.")
@pass_state
def cmd_check(state: CliState, daily_cap: Optional[int]):
    """Machbarkeits-Check für Workload, Kollegium und Zeitrahmen."""
    from analysis.feasibility import check_feasibility
    from solver.service import TimetableService

    config = _load_config_or_abort(state)
    settings = _settings(daily_cap=daily_cap)
    service = TimetableService(state.store, settings)
    report = check_feasibility(
        config,
        service.teacher_directory(state.tenant),
        service.workload(state.tenant),
        settings,
    )
    report.print_rich()
    sys.exit(0 if report.is_feasible else 1)


# ─── GENERATE ─────────────────────────────────────────────────────────────────

@click.command("generate")
@click.option("--strategy", type=click.Choice(["least_loaded", "random"]),
              default="least_loaded", show_default=True,
              help="Reihenfolge, in der die Tage geprüft werden.")
@click.option("--seed", type=int, default=None,
              help="Zufalls-Seed für --strategy random.")
@click.option("--daily-cap", type=int, default=None,
              help="Max. Stunden pro Lehrkraft und Tag.")
@pass_state
def cmd_generate(state: CliState, strategy: str, seed: Optional[int],
                 daily_cap: Optional[int]):
    """Erstellt den Stundenplan und ersetzt den gespeicherten."""
    from solver.service import TimetableService

    config = _load_config_or_abort(state)
    service = TimetableService(state.store, _settings(strategy, seed, daily_cap))

    teachers = service.teacher_directory(state.tenant)
    workload = service.workload(state.tenant)
    if not workload:
        console.print("[yellow]Kein Workload vorhanden – der Stundenplan wird geleert.[/yellow]")

    with console.status("[bold]Stundenplan wird erstellt...[/bold]"):
        result = service.generate(state.tenant, config, teachers, workload)

    if not result.success:
        _abort("Generierung fehlgeschlagen:", result.message)

    console.print(f"[green]✓[/green] {result.message}")
    if result.unplaced:
        table = Table(title="Nicht vergebene Stunden", box=box.ROUNDED)
        table.add_column("Klasse", style="bold")
        table.add_column("Fach")
        table.add_column("Lehrkraft")
        table.add_column("Offen", justify="right")
        table.add_column("Grund")
        for u in result.unplaced:
            table.add_row(u.class_id, u.subject, u.teacher_id, str(u.remaining), u.reason)
        console.print(table)


# ─── SHOW ─────────────────────────────────────────────────────────────────────

@click.command("show")
@click.option("--class", "class_id", default=None, help="Klassen-ID.")
@click.option("--teacher", "teacher_id", default=None, help="Lehrkraft-ID.")
@pass_state
def cmd_show(state: CliState, class_id: Optional[str], teacher_id: Optional[str]):
    """Zeigt den gespeicherten Stundenplan einer Klasse oder Lehrkraft."""
    from export.helpers import count_gaps
    from export.tui_renderer import render_class_rows, render_teacher_rows
    from solver.service import TimetableService

    if bool(class_id) == bool(teacher_id):
        _abort("Genau eine der Optionen --class oder --teacher angeben.")

    config = _load_config_or_abort(state)
    entries = TimetableService(state.store).entries(state.tenant)
    if not entries:
        _abort("Kein Stundenplan gespeichert. Zuerst [bold]python main.py generate[/bold] ausführen.")

    if class_id:
        rows = render_class_rows(class_id, entries, config)
        title = f"Klasse {class_id}"
    else:
        rows = render_teacher_rows(teacher_id, entries, config)
        title = f"Lehrkraft {teacher_id}"
    _print_timetable(title, rows, config.working_days)
    if teacher_id:
        own = [e for e in entries if e.teacher_id == teacher_id]
        console.print(f"[bold]Springstunden:[/bold] {count_gaps(own)}")


# ─── VALIDATE ─────────────────────────────────────────────────────────────────

@click.command("validate")
@click.option("--daily-cap", type=int, default=None, help="Tageslimit pro Lehrkraft.")
@pass_state
def cmd_validate(state: CliState, daily_cap: Optional[int]):
    """Prüft den gespeicherten Stundenplan auf Regelverletzungen."""
    from analysis.solution_validator import SolutionValidator
    from solver.service import TimetableService

    config = _load_config_or_abort(state)
    settings = _settings(daily_cap=daily_cap)
    service = TimetableService(state.store, settings)
    entries = service.entries(state.tenant)

    report = SolutionValidator(settings).validate(
        entries, config, service.workload(state.tenant)
    )
    console.print(f"[bold]Einträge:[/bold] {len(entries)}")
    report.print_rich()
    sys.exit(0 if report.is_valid else 1)


# ─── HAUPT-CLI ────────────────────────────────────────────────────────────────

@click.group()
@click.option("--data-dir", type=click.Path(file_okay=False, path_type=Path),
              default=DEFAULT_DATA_DIR, show_default=True,
              help="Verzeichnis für die Schul-Daten.")
@click.option("--tenant", default="default", show_default=True,
              help="Kennung der Schule.")
@click.option("--verbose", "-v", is_flag=True, default=False,
              help="Ausführliche Log-Ausgabe.")
@click.pass_context
def cli(ctx: click.Context, data_dir: Path, tenant: str, verbose: bool):
    """Automatischer Stundenplan-Generator (Greedy, mehrere Schulen).

    Starten Sie mit: python main.py config preset school
    """
    _setup_logging(verbose)
    ctx.obj = CliState(data_dir, tenant)


def main():
    """Einstiegspunkt."""
    cli()


# Befehle registrieren
cli.add_command(cmd_config)
cli.add_command(cmd_classes)
cli.add_command(cmd_teachers)
cli.add_command(cmd_workload)
cli.add_command(cmd_check)
cli.add_command(cmd_generate)
cli.add_command(cmd_show)
cli.add_command(cmd_validate)


if __name__ == "__main__":
    main()

"""Machbarkeits-Check vor der Generierung.

Prüft Workload, Kollegium und Zeitrahmen auf offensichtliche Widersprüche,
bevor der Verteiler läuft. Fehler bedeuten: es werden sicher Stunden offen
bleiben. Warnungen weisen auf wahrscheinliche Engpässe hin.
"""

from collections import defaultdict
from typing import Optional

from pydantic import BaseModel

from config.schema import SchedulerSettings, TimetableConfig
from models.teacher import TeacherProfile
from models.workload import Workload
from solver.allocator import resolve_teacher


class FeasibilityReport(BaseModel):
    """Ergebnis des Machbarkeits-Checks."""

    is_feasible: bool
    errors: list[str]      # Kritische Probleme (Stunden bleiben sicher offen)
    warnings: list[str]    # Hinweise (Engpass wahrscheinlich)

    def print_rich(self) -> None:
        """Gibt den Report formatiert über Rich aus."""
        from rich.console import Console
        from rich.panel import Panel

        console = Console()
        if self.is_feasible:
            status = "[bold green]✓ MACHBAR[/bold green]"
        else:
            status = "[bold red]✗ NICHT VOLLSTÄNDIG MACHBAR[/bold red]"

        lines = [status]
        if self.errors:
            lines.append("\n[red bold]Fehler (kritisch):[/red bold]")
            for e in self.errors:
                lines.append(f"  [red]• {e}[/red]")
        if self.warnings:
            lines.append("\n[yellow bold]Warnungen:[/yellow bold]")
            for w in self.warnings:
                lines.append(f"  [yellow]• {w}[/yellow]")
        if not self.errors and not self.warnings:
            lines.append("[dim]Keine Probleme gefunden.[/dim]")

        console.print(Panel("\n".join(lines), title="Machbarkeits-Check", border_style="cyan"))


def check_feasibility(
    config: TimetableConfig,
    teachers: list[TeacherProfile],
    workload: Workload,
    settings: Optional[SchedulerSettings] = None,
) -> FeasibilityReport:
    """Kapazitätsrechnung für Klassen und Lehrkräfte."""
    settings = settings or SchedulerSettings()
    errors: list[str] = []
    warnings: list[str] = []

    placeholder = settings.placeholder_teacher
    known_ids = {t.id for t in teachers}
    by_id = {t.id: t for t in teachers}
    days = len(config.working_days)

    # 1. Zeitraster: Uhrzeiten vs. belegte Stunden
    derived = config.derived_periods_per_day
    if derived != config.periods_per_day:
        warnings.append(
            f"Laut Uhrzeiten passen {derived} Stunden in den Tag "
            f"({config.day_starts_at}–{config.day_ends_at}), geplant wird mit "
            f"periods_per_day={config.periods_per_day}."
        )

    # 2. Bedarf pro Klasse vs. Slots pro Woche
    teacher_demand: dict[str, int] = defaultdict(int)
    for class_id, loads in workload.items():
        need = sum(l.count for l in loads)
        if need > config.weekly_slots:
            errors.append(
                f"Klasse {class_id}: Bedarf {need}h > "
                f"{config.weekly_slots} Slots pro Woche"
            )

        for load in loads:
            if load.count == 0:
                continue
            teacher_id = resolve_teacher(load, teachers, placeholder)
            teacher_demand[teacher_id] += load.count

            if load.teacher_id and load.teacher_id not in known_ids:
                warnings.append(
                    f"{class_id}/{load.subject}: Lehrkraft '{load.teacher_id}' "
                    f"ist nicht im Kollegium"
                )
            elif teacher_id == placeholder:
                warnings.append(
                    f"{class_id}/{load.subject}: keine Lehrkraft für das Fach, "
                    f"Platzhalter '{placeholder}' wird eingesetzt"
                )

            if load.is_double:
                if config.periods_per_day < 2:
                    errors.append(
                        f"{class_id}/{load.subject}: Doppelstunden bei nur "
                        f"{config.periods_per_day} Stunde pro Tag unmöglich"
                    )
                if load.count % 2:
                    warnings.append(
                        f"{class_id}/{load.subject}: ungerade Stundenzahl "
                        f"{load.count} bei Doppelstunden, 1 Stunde bleibt offen"
                    )

    # 3. Lehrkräfte: Tageslimit und Wochenlast
    per_day = min(settings.teacher_daily_cap, config.periods_per_day)
    capacity = days * per_day
    for teacher_id, demand in sorted(teacher_demand.items()):
        if demand > capacity:
            errors.append(
                f"Lehrkraft {teacher_id}: Bedarf {demand}h > Kapazität {capacity}h "
                f"({days} Tage × {per_day} Stunden)"
            )
        teacher = by_id.get(teacher_id)
        if teacher is not None and demand > teacher.max_load:
            warnings.append(
                f"Lehrkraft {teacher_id}: {demand}h über der Wochenlast "
                f"von {teacher.max_load}h"
            )

    return FeasibilityReport(
        is_feasible=len(errors) == 0,
        errors=errors,
        warnings=warnings,
    )

"""Post-Generierungs-Validierung des fertigen Stundenplans.

Prüft die Einträge auf Regelverletzungen als Sicherheitsnetz unabhängig vom
Verteiler. Fehler = harte Regel verletzt, Warnung = weiche Regel oder
Fehlbestand.
"""

from collections import defaultdict
from typing import Literal, Optional

from pydantic import BaseModel

from config.schema import SchedulerSettings, TimetableConfig
from models.timeslot import TimeSlot
from models.timetable import TimetableEntry, UnplacedLoad
from models.workload import Workload
from export.helpers import count_teacher_periods_per_day


class ValidationViolation(BaseModel):
    """Eine einzelne Regelverletzung."""

    severity: Literal["error", "warning"]
    constraint: str      # z.B. "teacher_double_booking"
    description: str
    entity: str          # teacher_id / class_id


class ValidationReport(BaseModel):
    """Ergebnis der Validierung."""

    violations: list[ValidationViolation]
    is_valid: bool       # True wenn keine Errors (Warnings ok)

    @property
    def errors(self) -> list[ValidationViolation]:
        return [v for v in self.violations if v.severity == "error"]

    @property
    def warnings(self) -> list[ValidationViolation]:
        return [v for v in self.violations if v.severity == "warning"]

    def print_rich(self) -> None:
        """Gibt den Report formatiert über Rich aus."""
        from rich.console import Console
        from rich.panel import Panel
        from rich.table import Table
        from rich import box

        console = Console()
        status = (
            "[bold green]✓ VALIDE[/bold green]"
            if self.is_valid
            else "[bold red]✗ VERLETZUNGEN GEFUNDEN[/bold red]"
        )
        lines = [status, f"Fehler: {len(self.errors)} | Warnungen: {len(self.warnings)}"]
        console.print(Panel("\n".join(lines), title="Stundenplan-Validierung", border_style="cyan"))

        if not self.violations:
            console.print("[dim]Keine Verletzungen gefunden.[/dim]")
            return

        table = Table(box=box.ROUNDED, show_lines=True)
        table.add_column("Typ", width=8)
        table.add_column("Regel", width=26)
        table.add_column("Entität", width=12)
        table.add_column("Beschreibung")

        for v in self.violations:
            color = "red" if v.severity == "error" else "yellow"
            table.add_row(
                f"[{color}]{v.severity.upper()}[/{color}]",
                v.constraint,
                v.entity,
                v.description,
            )
        console.print(table)


class SolutionValidator:
    """Prüft eine Menge von TimetableEntry auf Regelverletzungen."""

    def __init__(self, settings: Optional[SchedulerSettings] = None) -> None:
        self.settings = settings or SchedulerSettings()

    def validate(
        self,
        entries: list[TimetableEntry],
        config: TimetableConfig,
        workload: Optional[Workload] = None,
        unplaced: Optional[list[UnplacedLoad]] = None,
    ) -> ValidationReport:
        """Führt alle Checks durch und gibt einen ValidationReport zurück."""
        violations: list[ValidationViolation] = []

        violations.extend(self._check_grid_bounds(entries, config))
        violations.extend(self._check_teacher_double_booking(entries))
        violations.extend(self._check_class_double_booking(entries))
        if workload:
            violations.extend(self._check_double_periods(entries, config, workload))
        violations.extend(self._check_daily_cap(entries))
        violations.extend(self._check_unplaced(unplaced or []))

        has_errors = any(v.severity == "error" for v in violations)
        return ValidationReport(violations=violations, is_valid=not has_errors)

    # ── Einzelne Prüfungen ────────────────────────────────────────────────────

    def _check_grid_bounds(
        self, entries: list[TimetableEntry], config: TimetableConfig
    ) -> list[ValidationViolation]:
        """Tag muss ein Unterrichtstag sein, Stunde innerhalb 1..periods_per_day."""
        violations: list[ValidationViolation] = []
        days = set(config.working_days)
        for e in entries:
            if e.day not in days or e.period_index > config.periods_per_day:
                violations.append(ValidationViolation(
                    severity="error",
                    constraint="outside_grid",
                    entity=e.class_id,
                    description=f"{e.day} {e.period_index}. Stunde liegt außerhalb des Rasters.",
                ))
        return violations

    def _check_teacher_double_booking(
        self, entries: list[TimetableEntry]
    ) -> list[ValidationViolation]:
        """Keine Lehrkraft darf zur selben Zeit in zwei Klassen sein."""
        violations: list[ValidationViolation] = []
        seen: dict[tuple[str, TimeSlot], list[str]] = defaultdict(list)
        for e in entries:
            seen[(e.teacher_id, e.slot)].append(e.class_id)

        for (teacher_id, slot), classes in seen.items():
            if len(classes) > 1:
                violations.append(ValidationViolation(
                    severity="error",
                    constraint="teacher_double_booking",
                    entity=teacher_id,
                    description=(
                        f"{slot} Stunde: gleichzeitig in "
                        f"{', '.join(classes)} eingeplant."
                    ),
                ))
        return violations

    def _check_class_double_booking(
        self, entries: list[TimetableEntry]
    ) -> list[ValidationViolation]:
        """Eine Klasse darf pro Stunde nur einen Eintrag haben."""
        violations: list[ValidationViolation] = []
        by_slot: dict[tuple[str, TimeSlot], list[str]] = defaultdict(list)
        for e in entries:
            by_slot[(e.class_id, e.slot)].append(e.subject)

        for (class_id, slot), subjects in by_slot.items():
            if len(subjects) > 1:
                violations.append(ValidationViolation(
                    severity="error",
                    constraint="class_double_booking",
                    entity=class_id,
                    description=(
                        f"{slot} Stunde: mehrere Einträge "
                        f"({', '.join(subjects)})."
                    ),
                ))
        return violations

    def _check_double_periods(
        self,
        entries: list[TimetableEntry],
        config: TimetableConfig,
        workload: Workload,
    ) -> list[ValidationViolation]:
        """Doppelstunden-Fächer nur als (p, p+1)-Paare, gleiche Lehrkraft, keine Pause dazwischen."""
        violations: list[ValidationViolation] = []
        double_keys = {
            (class_id, load.subject)
            for class_id, loads in workload.items()
            for load in loads
            if load.is_double
        }
        break_after = config.break_after_periods()

        by_day: dict[tuple, list[TimetableEntry]] = defaultdict(list)
        for e in entries:
            if (e.class_id, e.subject) in double_keys:
                by_day[(e.class_id, e.subject, e.day)].append(e)

        for (class_id, subject, day), day_entries in by_day.items():
            ordered = sorted(day_entries, key=lambda e: e.period_index)
            problem: Optional[str] = None
            if len(ordered) % 2:
                problem = f"{len(ordered)} Stunden am {day} – keine vollständigen Paare"
            else:
                for first, second in zip(ordered[::2], ordered[1::2]):
                    if second.period_index != first.period_index + 1:
                        problem = (
                            f"{day}: Stunden {first.period_index} und "
                            f"{second.period_index} liegen nicht direkt hintereinander"
                        )
                    elif first.teacher_id != second.teacher_id:
                        problem = f"{day} {first.period_index}./{second.period_index}.: verschiedene Lehrkräfte"
                    elif first.period_index in break_after:
                        problem = f"{day} {first.period_index}./{second.period_index}.: Pause dazwischen"
                    if problem:
                        break
            if problem:
                violations.append(ValidationViolation(
                    severity="error",
                    constraint="double_period_broken",
                    entity=class_id,
                    description=f"Doppelstunde {subject}: {problem}.",
                ))
        return violations

    def _check_daily_cap(
        self, entries: list[TimetableEntry]
    ) -> list[ValidationViolation]:
        """Weiches Tageslimit pro Lehrkraft."""
        cap = self.settings.teacher_daily_cap
        return [
            ValidationViolation(
                severity="warning",
                constraint="teacher_daily_cap",
                entity=teacher_id,
                description=f"{day}: {count} Stunden (Limit {cap}).",
            )
            for (teacher_id, day), count in count_teacher_periods_per_day(entries).items()
            if count > cap
        ]

    def _check_unplaced(
        self, unplaced: list[UnplacedLoad]
    ) -> list[ValidationViolation]:
        """Fehlbestand des letzten Laufs als Warnungen."""
        return [
            ValidationViolation(
                severity="warning",
                constraint="unplaced_periods",
                entity=u.class_id,
                description=f"{u.subject} ({u.teacher_id}): {u.remaining} Stunden offen ({u.reason}).",
            )
            for u in unplaced
        ]

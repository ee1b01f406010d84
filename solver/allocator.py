"""Greedy-Stundenverteiler für den Wochenstundenplan.

Ablauf:
  - Klassen werden unabhängig voneinander abgearbeitet.
  - Pro Klasse kommen Doppelstunden-Fächer zuerst (stabil sortiert); sie sind
    bei gefülltem Raster am schwersten unterzubringen.
  - Lehrkraft je Fach: explizit → erste Lehrkraft mit passendem Fach →
    Platzhalter ("Staff").
  - Je Einheit (Doppel- oder Einzelstunde) werden die Tage geordnet, Tage mit
    erreichtem Tageslimit der Lehrkraft übersprungen und die Stunden 1..n der
    Reihe nach geprüft. Der erste freie Slot gewinnt.
  - Was keinen Slot findet, landet im Fehlbestand (UnplacedLoad).

Zwei Belegungsmengen verhindern Doppelbelegungen:
    teacher_busy = {(teacher_id, TimeSlot)}
    class_busy   = {(class_id, TimeSlot)}
Beide leben nur für die Dauer eines allocate()-Aufrufs.
"""

import logging
import random
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Optional

from config.schema import DayOrder, SchedulerSettings, TimetableConfig
from models.teacher import TeacherProfile
from models.timeslot import TimeSlot
from models.timetable import TimetableEntry, UnplacedLoad
from models.workload import SubjectLoad, Workload

logger = logging.getLogger(__name__)


def resolve_teacher(
    load: SubjectLoad,
    teachers: list[TeacherProfile],
    placeholder: str = "Staff",
) -> str:
    """Bestimmt die Lehrkraft-ID für einen Fachbedarf."""
    if load.teacher_id:
        return load.teacher_id
    for teacher in teachers:
        if teacher.can_teach(load.subject):
            return teacher.id
    return placeholder


@dataclass
class Allocation:
    """Rohergebnis der Verteilung (noch nicht persistiert)."""

    entries: list[TimetableEntry] = field(default_factory=list)
    unplaced: list[UnplacedLoad] = field(default_factory=list)


class _Grid:
    """Belegungszustand eines einzelnen Laufs."""

    def __init__(self) -> None:
        self.teacher_busy: set[tuple[str, TimeSlot]] = set()
        self.class_busy: set[tuple[str, TimeSlot]] = set()
        self._teacher_day: dict[tuple[str, str], int] = defaultdict(int)
        self._class_day: dict[tuple[str, str], int] = defaultdict(int)

    def is_free(self, teacher_id: str, class_id: str, slot: TimeSlot) -> bool:
        return (
            (teacher_id, slot) not in self.teacher_busy
            and (class_id, slot) not in self.class_busy
        )

    def book(self, teacher_id: str, class_id: str, slot: TimeSlot) -> None:
        self.teacher_busy.add((teacher_id, slot))
        self.class_busy.add((class_id, slot))
        self._teacher_day[(teacher_id, slot.day)] += 1
        self._class_day[(class_id, slot.day)] += 1

    def teacher_load(self, teacher_id: str, day: str) -> int:
        return self._teacher_day[(teacher_id, day)]

    def class_load(self, class_id: str, day: str) -> int:
        return self._class_day[(class_id, day)]


class SlotAllocator:
    """Verteilt den Workload aller Klassen konfliktfrei auf das Wochenraster.

    Verwendung:
        allocator = SlotAllocator(config, settings)
        allocation = allocator.allocate(teachers, workload)

    Keine Persistenz, kein globaler Zustand: gleiche Eingaben liefern bei
    day_order=least_loaded (oder random mit festem Seed) dasselbe Ergebnis.
    """

    def __init__(
        self,
        config: TimetableConfig,
        settings: Optional[SchedulerSettings] = None,
    ) -> None:
        self.config = config
        self.settings = settings or SchedulerSettings()
        self._periods = list(config.periods)
        self._break_after = config.break_after_periods()

    # ─── Öffentliche API ──────────────────────────────────────────────────────

    def allocate(
        self, teachers: list[TeacherProfile], workload: Workload
    ) -> Allocation:
        """Belegt das Raster und gibt Einträge plus Fehlbestand zurück."""
        for class_id, loads in workload.items():
            for load in loads:
                if load.class_id != class_id:
                    raise ValueError(
                        f"Fachbedarf '{load.subject}' gehört zu Klasse "
                        f"'{load.class_id}', steht aber unter '{class_id}'."
                    )

        grid = _Grid()
        rng = random.Random(self.settings.seed)
        result = Allocation()

        for class_id, loads in workload.items():
            # Doppelstunden zuerst, sonst Eingabereihenfolge
            ordered = sorted(loads, key=lambda l: not l.is_double)
            for load in ordered:
                if load.count == 0:
                    continue
                teacher_id = resolve_teacher(
                    load, teachers, self.settings.placeholder_teacher
                )
                if teacher_id == self.settings.placeholder_teacher:
                    logger.info(
                        f"{class_id}/{load.subject}: keine Lehrkraft gefunden – "
                        f"Platzhalter '{teacher_id}'"
                    )
                self._place_load(grid, rng, class_id, load, teacher_id, result)

        logger.info(
            f"Verteilung beendet: {len(result.entries)} Stunden vergeben, "
            f"{sum(u.remaining for u in result.unplaced)} offen"
        )
        return result

    # ─── Verteilung ───────────────────────────────────────────────────────────

    def _place_load(
        self,
        grid: _Grid,
        rng: random.Random,
        class_id: str,
        load: SubjectLoad,
        teacher_id: str,
        result: Allocation,
    ) -> None:
        """Vergibt alle Einheiten eines Fachbedarfs."""
        width = load.unit_size
        placed = 0
        for _ in range(load.units):
            days = self._order_days(grid, rng, teacher_id, class_id)
            start = self._find_slot(grid, days, teacher_id, class_id, width)
            if start is None:
                # Das Raster wird nur voller – weitere Einheiten passen auch nicht
                break
            slot = start
            for _ in range(width):
                grid.book(teacher_id, class_id, slot)
                result.entries.append(TimetableEntry(
                    class_id=class_id,
                    day=slot.day,
                    period_index=slot.period,
                    subject=load.subject,
                    teacher_id=teacher_id,
                ))
                slot = slot.next()
            placed += 1

        remaining = load.count - placed * width
        if remaining == 0:
            return
        reason = "no_free_slot" if placed < load.units else "odd_double_count"
        result.unplaced.append(UnplacedLoad(
            class_id=class_id,
            subject=load.subject,
            teacher_id=teacher_id,
            remaining=remaining,
            reason=reason,
        ))
        logger.warning(
            f"{class_id}/{load.subject} ({teacher_id}): {remaining} von "
            f"{load.count} Stunden nicht vergeben ({reason})"
        )

    def _order_days(
        self, grid: _Grid, rng: random.Random, teacher_id: str, class_id: str
    ) -> list[str]:
        """Reihenfolge der Tage für die nächste Einheit."""
        days = list(self.config.working_days)
        if self.settings.day_order == DayOrder.RANDOM:
            rng.shuffle(days)
            return days
        # sorted() ist stabil: bei Gleichstand gilt die konfigurierte Reihenfolge
        return sorted(
            days,
            key=lambda d: (grid.teacher_load(teacher_id, d), grid.class_load(class_id, d)),
        )

    def _find_slot(
        self,
        grid: _Grid,
        days: list[str],
        teacher_id: str,
        class_id: str,
        width: int,
    ) -> Optional[TimeSlot]:
        """Erster Slot, an dem `width` Stunden am Stück für Lehrkraft und Klasse frei sind.

        Ein Tag entfällt, wenn gebuchte Stunden + `width` das Tageslimit
        überschreiten. Für Einzelstunden ist das die Regel "Limit erreicht";
        eine Doppelstunde braucht Platz für beide Hälften und entfällt schon
        bei Limit - 1 gebuchten Stunden.
        """
        cap = self.settings.teacher_daily_cap
        last = self.config.periods_per_day
        for day in days:
            if grid.teacher_load(teacher_id, day) + width > cap:
                continue
            for period in self._periods:
                if period + width - 1 > last:
                    break
                if width == 2 and period in self._break_after:
                    continue  # Doppelstunde nicht über eine Pause
                slot = TimeSlot(day, period)
                if grid.is_free(teacher_id, class_id, slot) and (
                    width == 1 or grid.is_free(teacher_id, class_id, slot.next())
                ):
                    return slot
        return None

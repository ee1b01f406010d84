"""Gemeinsame Hilfsfunktionen für Anzeige und Auswertung des Stundenplans."""

from collections import defaultdict
from typing import Union

from config.schema import BreakSlot, LessonSlot, TimetableConfig
from models.timetable import TimetableEntry


# ─── Zeitraster-Hilfsfunktionen ───────────────────────────────────────────────

def build_time_grid_rows(config: TimetableConfig) -> list[Union[LessonSlot, BreakSlot]]:
    """Gibt geordnete Zeilen zurück: LessonSlot- und BreakSlot-Objekte.

    Eine Pause folgt jeweils nach der Stunde, hinter der sie liegt.
    """
    breaks = config.breaks_by_period()
    rows: list[Union[LessonSlot, BreakSlot]] = []
    for slot in config.lesson_slots():
        rows.append(slot)
        if slot.period in breaks:
            rows.append(breaks[slot.period])
    return rows


# ─── Springstunden ────────────────────────────────────────────────────────────

def count_gaps(entries: list[TimetableEntry]) -> int:
    """Zählt Springstunden (freie Stunden zwischen erster und letzter Stunde pro Tag)."""
    by_day: dict[str, list[int]] = defaultdict(list)
    for e in entries:
        by_day[e.day].append(e.period_index)
    total = 0
    for periods in by_day.values():
        unique = sorted(set(periods))
        if len(unique) > 1:
            total += unique[-1] - unique[0] + 1 - len(unique)
    return total


# ─── Lehrer-Stunden ───────────────────────────────────────────────────────────

def count_teacher_periods_per_day(
    entries: list[TimetableEntry],
) -> dict[tuple[str, str], int]:
    """Stunden pro (teacher_id, day)."""
    counts: dict[tuple[str, str], int] = defaultdict(int)
    for e in entries:
        counts[(e.teacher_id, e.day)] += 1
    return dict(counts)


# ─── Zelleninhalt-Formatierung ────────────────────────────────────────────────

def format_entry(entry: TimetableEntry, mode: str = "class") -> str:
    """Formatiert einen einzelnen Entry als Zelleninhalt.

    mode='class':   "Fach\\nLehrer-ID"
    mode='teacher': "Fach\\nKlasse"
    """
    if mode == "class":
        return f"{entry.subject}\n{entry.teacher_id}"
    elif mode == "teacher":
        return f"{entry.subject}\n{entry.class_id}"
    return entry.subject

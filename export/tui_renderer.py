"""Renderer für die Terminal-Anzeige des Stundenplans (cmd_show, Rich).

Liefert reine Tabellenzeilen; die Darstellung übernimmt der Aufrufer.
"""

from collections import defaultdict

from config.schema import BreakSlot, TimetableConfig
from export.helpers import build_time_grid_rows, format_entry
from models.timetable import TimetableEntry

EMPTY_CELL = "—"
GAP_CELL = "↕ Springstunde"


def _break_row(row: BreakSlot, config: TimetableConfig) -> list[str]:
    return [EMPTY_CELL, row.label] + ["─" * 8] * len(config.working_days)


def render_class_rows(
    class_id: str,
    entries: list[TimetableEntry],
    config: TimetableConfig,
) -> list[list[str]]:
    """Gibt Tabellenzeilen für den Klassen-Stundenplan zurück.

    Jede Zeile: [Stunde, Uhrzeit, <ein Feld pro Unterrichtstag>]
    Pausen werden als separate Zeilen eingefügt.
    """
    slot_map = {
        (e.day, e.period_index): e for e in entries if e.class_id == class_id
    }

    rows: list[list[str]] = []
    for row in build_time_grid_rows(config):
        if isinstance(row, BreakSlot):
            rows.append(_break_row(row, config))
            continue
        cells = [str(row.period), f"{row.start_time}–{row.end_time}"]
        for day in config.working_days:
            entry = slot_map.get((day, row.period))
            cells.append(EMPTY_CELL if entry is None else format_entry(entry, "class"))
        rows.append(cells)
    return rows


def render_teacher_rows(
    teacher_id: str,
    entries: list[TimetableEntry],
    config: TimetableConfig,
) -> list[list[str]]:
    """Gibt Tabellenzeilen für den Lehrer-Stundenplan zurück.

    Springstunden werden als 'Springstunde' markiert.
    """
    own = [e for e in entries if e.teacher_id == teacher_id]
    slot_map: dict[tuple[str, int], TimetableEntry] = {}
    for e in own:
        slot_map.setdefault((e.day, e.period_index), e)

    # Berechne Springstunden
    by_day: dict[str, list[int]] = defaultdict(list)
    for e in own:
        by_day[e.day].append(e.period_index)
    gap_slots: set[tuple[str, int]] = set()
    for day, periods in by_day.items():
        unique = sorted(set(periods))
        for p in range(unique[0] + 1, unique[-1]):
            if p not in unique:
                gap_slots.add((day, p))

    rows: list[list[str]] = []
    for row in build_time_grid_rows(config):
        if isinstance(row, BreakSlot):
            rows.append(_break_row(row, config))
            continue
        cells = [str(row.period), f"{row.start_time}–{row.end_time}"]
        for day in config.working_days:
            key = (day, row.period)
            entry = slot_map.get(key)
            if entry is not None:
                cells.append(format_entry(entry, "teacher"))
            elif key in gap_slots:
                cells.append(GAP_CELL)
            else:
                cells.append(EMPTY_CELL)
        rows.append(cells)
    return rows

"""Konfigurationsschema für den Stundenplan-Generator (Pydantic v2)."""

import re
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

_TIME_RE = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


def parse_time(value: str) -> int:
    """Wandelt "HH:MM" in Minuten seit Mitternacht um."""
    match = _TIME_RE.match(value)
    if not match:
        raise ValueError(f"Ungültige Uhrzeit '{value}' (erwartet HH:MM)")
    return int(match.group(1)) * 60 + int(match.group(2))


def format_time(minutes: int) -> str:
    """Minuten seit Mitternacht → "HH:MM"."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


class InstitutionType(str, Enum):
    SCHOOL = "school"
    MADRASSA = "madrassa"
    TUITION = "tuition"


class DayOrder(str, Enum):
    """Reihenfolge, in der die Wochentage pro Einheit geprüft werden."""
    LEAST_LOADED = "least_loaded"
    RANDOM = "random"


# ─── ZEITRASTER ───

class LessonSlot(BaseModel):
    """Eine einzelne Unterrichtsstunde im Tagesraster (berechnet, nicht gespeichert)."""
    # Laufende Nummer der Stunde, 1-basiert
    period: int
    # Beginn im Format "HH:MM"
    start_time: str
    # Ende im Format "HH:MM"
    end_time: str


class BreakSlot(BaseModel):
    """Eine Pause: entweder nach einer bestimmten Stunde oder als Zeitfenster.

    after_period  → Pause liegt hinter Stunde n, verschiebt keine Uhrzeiten.
    start / end   → Zeitfenster; Stunden, die hineinragen würden, beginnen erst
                    nach dem Ende der Pause.
    """
    name: str = "Pause"
    start: Optional[str] = None
    end: Optional[str] = None
    after_period: Optional[int] = Field(None, ge=1)

    @model_validator(mode='after')
    def _check_definition(self):
        has_range = self.start is not None or self.end is not None
        if self.after_period is not None and has_range:
            raise ValueError(
                f"Pause '{self.name}': after_period und start/end schließen sich aus")
        if self.after_period is None:
            if self.start is None or self.end is None:
                raise ValueError(
                    f"Pause '{self.name}': after_period oder start UND end angeben")
            if parse_time(self.start) >= parse_time(self.end):
                raise ValueError(
                    f"Pause '{self.name}': Beginn {self.start} liegt nicht vor Ende {self.end}")
        return self

    @property
    def is_timed(self) -> bool:
        return self.after_period is None

    @property
    def label(self) -> str:
        if self.is_timed:
            return f"{self.name} ({self.start}–{self.end})"
        return self.name


class TimetableConfig(BaseModel):
    """Rahmen eines Stundenplan-Laufs pro Schule (Tenant).

    Wird einmal pro Lauf geladen und danach nicht verändert; Änderungen
    immer über model_copy().
    """
    # Unterrichtstage in Anzeigereihenfolge, z.B. ["MON", "TUE", ...]
    working_days: list[str] = Field(min_length=1)
    # Unterrichtsbeginn "HH:MM"
    day_starts_at: str = "09:30"
    # Unterrichtsende "HH:MM"
    day_ends_at: str = "15:30"
    # Länge einer Stunde in Minuten
    period_duration: int = Field(45, gt=0)
    # Pausen (Zeitfenster oder "nach Stunde n")
    breaks: list[BreakSlot] = Field(default_factory=list)
    # Anzahl Stunden pro Tag, die der Generator belegt. Wird NICHT aus den
    # Uhrzeiten abgeleitet; Abweichungen meldet der Machbarkeits-Check.
    periods_per_day: int = Field(8, ge=1, le=16)

    @field_validator("working_days")
    @classmethod
    def _normalize_days(cls, v: list[str]) -> list[str]:
        days = [d.strip() for d in v]
        if any(not d for d in days):
            raise ValueError("Leerer Wochentag in working_days")
        if len(set(days)) != len(days):
            raise ValueError(f"Doppelte Wochentage: {days}")
        return days

    @model_validator(mode='after')
    def _check_day_bounds(self):
        if parse_time(self.day_ends_at) <= parse_time(self.day_starts_at):
            raise ValueError(
                f"Unterrichtsende {self.day_ends_at} liegt nicht nach Beginn {self.day_starts_at}")
        indexed = [b.after_period for b in self.breaks if not b.is_timed]
        if len(set(indexed)) != len(indexed):
            raise ValueError("Mehrere Pausen nach derselben Stunde")
        return self

    # ─── Zeitraster ───

    @property
    def periods(self) -> range:
        """Stundennummern 1..periods_per_day."""
        return range(1, self.periods_per_day + 1)

    def _timeline(self, count: int) -> tuple[list[LessonSlot], dict[int, BreakSlot]]:
        """Legt `count` Stunden ab Unterrichtsbeginn an und merkt sich die Pausen.

        Gibt die Stunden und ein Mapping "Pause liegt nach Stunde n" zurück.
        """
        duration = self.period_duration
        timed = sorted(
            (b for b in self.breaks if b.is_timed),
            key=lambda b: parse_time(b.start),
        )
        after: dict[int, BreakSlot] = {
            b.after_period: b for b in self.breaks if not b.is_timed
        }

        slots: list[LessonSlot] = []
        t = parse_time(self.day_starts_at)
        idx = 0
        for period in range(1, count + 1):
            while idx < len(timed):
                b = timed[idx]
                b_start, b_end = parse_time(b.start), parse_time(b.end)
                if b_end <= t:
                    idx += 1
                    continue
                if b_start < t + duration:
                    # Stunde würde in die Pause ragen → erst nach der Pause beginnen
                    if period > 1:
                        after.setdefault(period - 1, b)
                    t = max(t, b_end)
                    idx += 1
                    continue
                break
            slots.append(LessonSlot(
                period=period,
                start_time=format_time(t),
                end_time=format_time(t + duration),
            ))
            t += duration
        return slots, after

    def lesson_slots(self) -> list[LessonSlot]:
        """Alle belegbaren Stunden mit berechneten Uhrzeiten."""
        return self._timeline(self.periods_per_day)[0]

    def breaks_by_period(self) -> dict[int, BreakSlot]:
        """Pausen, die hinter einer belegbaren Stunde liegen (Stunde → Pause)."""
        _, after = self._timeline(self.periods_per_day)
        return {p: b for p, b in after.items() if p < self.periods_per_day}

    def break_after_periods(self) -> set[int]:
        """Stunden, nach denen eine Pause liegt (keine Doppelstunde darüber)."""
        return set(self.breaks_by_period())

    @property
    def derived_periods_per_day(self) -> int:
        """Wie viele Stunden zwischen Beginn und Ende tatsächlich passen."""
        day_end = parse_time(self.day_ends_at)
        span = day_end - parse_time(self.day_starts_at)
        slots, _ = self._timeline(span // self.period_duration)
        return sum(1 for s in slots if parse_time(s.end_time) <= day_end)

    @property
    def weekly_slots(self) -> int:
        """Belegbare Slots pro Klasse und Woche."""
        return len(self.working_days) * self.periods_per_day


# ─── GENERATOR ───

class SchedulerSettings(BaseModel):
    """Einstellungen des Greedy-Generators."""
    # Weiche Obergrenze: Stunden pro Lehrkraft und Tag
    teacher_daily_cap: int = Field(6, ge=1,
        description="Max. Stunden pro Lehrkraft und Tag (weiches Limit)")
    # Tagesreihenfolge: deterministisch nach Auslastung oder zufällig
    day_order: DayOrder = Field(DayOrder.LEAST_LOADED,
        description="Reihenfolge der Tage pro Einheit")
    # Seed für day_order=random (None = nicht reproduzierbar)
    seed: Optional[int] = Field(None,
        description="Zufalls-Seed für day_order=random")
    # Lehrkraft-Kennung, wenn weder explizit noch per Fach eine Lehrkraft gefunden wird
    placeholder_teacher: str = Field("Staff",
        description="Platzhalter-Lehrkraft")

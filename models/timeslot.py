"""Datenmodell für einen Zeitslot im Wochenraster."""

from dataclasses import dataclass


@dataclass(frozen=True)
class TimeSlot:
    """Repräsentiert einen einzelnen Unterrichtszeitslot im Wochenraster.

    Kombination aus Wochentag und Stunde.
    Immutable (frozen=True) damit es als Dict-Key / Set-Element nutzbar ist.
    """

    # Wochentag wie in TimetableConfig.working_days (z.B. "MON")
    day: str
    # Stunde (1-basiert)
    period: int

    def next(self) -> "TimeSlot":
        """Die direkt folgende Stunde am selben Tag."""
        return TimeSlot(self.day, self.period + 1)

    def __repr__(self) -> str:
        return f"TimeSlot({self.day}, Std.{self.period})"

    def __str__(self) -> str:
        return f"{self.day} {self.period}."

"""Ergebnis-Modelle des Stundenplan-Generators (Pydantic v2)."""

from typing import Literal, Optional

from pydantic import BaseModel, Field

from models.timeslot import TimeSlot


class TimetableEntry(BaseModel):
    """Eine einzelne Unterrichtsstunde im fertigen Stundenplan."""

    class_id: str
    day: str                          # wie TimetableConfig.working_days
    period_index: int = Field(ge=1)   # 1-basiert
    subject: str
    teacher_id: str

    @property
    def slot(self) -> TimeSlot:
        return TimeSlot(self.day, self.period_index)


class UnplacedLoad(BaseModel):
    """Fehlbestand: Stunden eines Fachbedarfs, die nicht vergeben werden konnten."""

    class_id: str
    subject: str
    teacher_id: str
    remaining: int
    # no_free_slot: kein passender Slot mehr frei
    # odd_double_count: ungerade Stundenzahl bei Doppelstunden-Fach
    reason: Literal["no_free_slot", "odd_double_count"]


class GenerationResult(BaseModel):
    """Ergebnis eines Generator-Laufs inkl. Persistierung."""

    success: bool
    entries: list[TimetableEntry] = []
    message: Optional[str] = None
    unplaced: list[UnplacedLoad] = []
    generation_id: Optional[str] = None

    @property
    def total_unplaced(self) -> int:
        return sum(u.remaining for u in self.unplaced)

    @property
    def is_complete(self) -> bool:
        """True wenn alle angeforderten Stunden vergeben wurden."""
        return self.success and not self.unplaced

"""Workload-Modell: Wochenstunden-Bedarf pro Klasse und Fach (Pydantic v2)."""

from typing import Iterable, Optional

from pydantic import BaseModel, Field, field_validator


class SubjectLoad(BaseModel):
    """Bedarf einer Klasse an Wochenstunden eines Fachs.

    Bei is_double=True werden die Stunden ausschließlich als Doppelstunden
    (zwei direkt aufeinanderfolgende Stunden am selben Tag) vergeben.
    """

    class_id: str
    subject: str
    count: int = Field(ge=0)            # Wochenstunden
    teacher_id: Optional[str] = None    # Explizite Lehrkraft, sonst per Fach aufgelöst
    is_double: bool = False

    @field_validator("teacher_id")
    @classmethod
    def _empty_teacher_is_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v or None

    @property
    def unit_size(self) -> int:
        """Stunden pro Vergabe-Einheit (2 bei Doppelstunden)."""
        return 2 if self.is_double else 1

    @property
    def units(self) -> int:
        """Anzahl vergebbarer Einheiten; ein ungerader Rest bei Doppelstunden zählt nicht."""
        return self.count // self.unit_size


# Klassen-ID → Liste der Fachbedarfe
Workload = dict[str, list[SubjectLoad]]


def group_workload(loads: Iterable[SubjectLoad]) -> Workload:
    """Gruppiert eine flache Liste von SubjectLoads nach Klasse."""
    workload: Workload = {}
    for load in loads:
        workload.setdefault(load.class_id, []).append(load)
    return workload


class ClassRecord(BaseModel):
    """Klassendatensatz aus der Schulverwaltung (nur die hier benötigten Felder)."""

    id: str
    name: str
    teacher_name: Optional[str] = None   # Klassenlehrkraft (Anzeigename)
    subjects: list[str] = []

"""Datenmodell für eine Lehrkraft (Pydantic v2)."""

from pydantic import BaseModel, Field, field_validator

from config.defaults import DEFAULT_MAX_LOAD


class TeacherProfile(BaseModel):
    """Repräsentiert eine Lehrkraft im Kollegium.

    `id` ist der stabile Schlüssel, auf den SubjectLoad.teacher_id und die
    Stundenplan-Einträge verweisen. `name` dient nur der Anzeige und darf
    mehrfach vorkommen.
    """

    id: str                                   # "t_Anna_Khan"
    name: str                                 # "Anna Khan"
    subjects: list[str] = []                  # Unterrichtbare Fächer
    max_load: int = Field(DEFAULT_MAX_LOAD, ge=0)  # Wochenstunden (nur Machbarkeits-Check)

    @field_validator("id")
    @classmethod
    def normalize_id(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Lehrkraft-ID darf nicht leer sein.")
        return v

    def can_teach(self, subject: str) -> bool:
        """True wenn die Lehrkraft das Fach unterrichten kann."""
        return subject in self.subjects

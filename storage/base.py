"""Schnittstelle der Persistenzschicht.

Alle Methoden arbeiten auf genau einer Schule (tenant). Fehler der
Speicherebene werden als StorageError gemeldet; fehlende Daten sind kein
Fehler (None bzw. leere Liste).
"""

from abc import ABC, abstractmethod
from typing import Optional

from config.schema import TimetableConfig
from data.directory import derive_teacher_directory
from models.teacher import TeacherProfile
from models.timetable import TimetableEntry
from models.workload import ClassRecord, Workload


class StorageError(Exception):
    """Lesen oder Schreiben im Speicher ist fehlgeschlagen."""


class TimetableStore(ABC):
    """Tabellen eines Tenants: Konfiguration, Einträge, Kollegium, Klassen, Workload."""

    # ─── Konfiguration ───

    @abstractmethod
    def get_timetable_config(self, tenant: str) -> Optional[TimetableConfig]:
        """Gespeicherte Konfiguration oder None ("noch nicht eingerichtet")."""

    @abstractmethod
    def save_timetable_config(self, tenant: str, config: TimetableConfig) -> None:
        """Legt die Konfiguration an oder überschreibt sie."""

    # ─── Stundenplan-Einträge ───

    @abstractmethod
    def get_timetable_entries(self, tenant: str) -> list[TimetableEntry]:
        ...

    @abstractmethod
    def delete_timetable_entries(self, tenant: str) -> None:
        ...

    @abstractmethod
    def bulk_insert_timetable_entries(
        self, tenant: str, entries: list[TimetableEntry]
    ) -> None:
        ...

    @abstractmethod
    def replace_timetable_entries(
        self,
        tenant: str,
        entries: list[TimetableEntry],
        generation_id: Optional[str] = None,
    ) -> None:
        """Ersetzt alle Einträge in einem Schritt (alt ODER neu, nie leer dazwischen)."""

    # ─── Kollegium ───

    @abstractmethod
    def load_teacher_roster(self, tenant: str) -> Optional[list[TeacherProfile]]:
        """Explizit gepflegtes Kollegium oder None."""

    @abstractmethod
    def save_teacher_directory(
        self, tenant: str, teachers: list[TeacherProfile]
    ) -> None:
        ...

    def get_teacher_directory(self, tenant: str) -> list[TeacherProfile]:
        """Gepflegtes Kollegium, sonst aus den Klassenlehrkräften abgeleitet."""
        roster = self.load_teacher_roster(tenant)
        if roster is not None:
            return roster
        return derive_teacher_directory(self.get_classes(tenant))

    # ─── Klassen & Workload ───

    @abstractmethod
    def get_classes(self, tenant: str) -> list[ClassRecord]:
        ...

    @abstractmethod
    def save_classes(self, tenant: str, classes: list[ClassRecord]) -> None:
        ...

    @abstractmethod
    def get_workload(self, tenant: str) -> Workload:
        ...

    @abstractmethod
    def save_workload(self, tenant: str, workload: Workload) -> None:
        ...

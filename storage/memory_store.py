"""In-Memory-Speicher (Tests, Einbettung in andere Prozesse)."""

from typing import Optional

from config.schema import TimetableConfig
from models.teacher import TeacherProfile
from models.timetable import TimetableEntry
from models.workload import ClassRecord, Workload
from storage.base import TimetableStore


class MemoryStore(TimetableStore):
    """Hält alle Tabellen in Dictionaries; Modelle werden kopiert ein- und ausgegeben."""

    def __init__(self) -> None:
        self._configs: dict[str, TimetableConfig] = {}
        self._entries: dict[str, list[TimetableEntry]] = {}
        self._generation: dict[str, Optional[str]] = {}
        self._teachers: dict[str, list[TeacherProfile]] = {}
        self._classes: dict[str, list[ClassRecord]] = {}
        self._workload: dict[str, Workload] = {}

    def get_timetable_config(self, tenant: str) -> Optional[TimetableConfig]:
        config = self._configs.get(tenant)
        return config.model_copy(deep=True) if config else None

    def save_timetable_config(self, tenant: str, config: TimetableConfig) -> None:
        self._configs[tenant] = config.model_copy(deep=True)

    def get_timetable_entries(self, tenant: str) -> list[TimetableEntry]:
        return [e.model_copy() for e in self._entries.get(tenant, [])]

    def delete_timetable_entries(self, tenant: str) -> None:
        self._entries.pop(tenant, None)
        self._generation.pop(tenant, None)

    def bulk_insert_timetable_entries(
        self, tenant: str, entries: list[TimetableEntry]
    ) -> None:
        self._entries.setdefault(tenant, []).extend(e.model_copy() for e in entries)

    def replace_timetable_entries(
        self,
        tenant: str,
        entries: list[TimetableEntry],
        generation_id: Optional[str] = None,
    ) -> None:
        self._entries[tenant] = [e.model_copy() for e in entries]
        self._generation[tenant] = generation_id

    def generation_id(self, tenant: str) -> Optional[str]:
        """ID des zuletzt gespeicherten Laufs."""
        return self._generation.get(tenant)

    def load_teacher_roster(self, tenant: str) -> Optional[list[TeacherProfile]]:
        roster = self._teachers.get(tenant)
        return [t.model_copy(deep=True) for t in roster] if roster is not None else None

    def save_teacher_directory(
        self, tenant: str, teachers: list[TeacherProfile]
    ) -> None:
        self._teachers[tenant] = [t.model_copy(deep=True) for t in teachers]

    def get_classes(self, tenant: str) -> list[ClassRecord]:
        return [c.model_copy(deep=True) for c in self._classes.get(tenant, [])]

    def save_classes(self, tenant: str, classes: list[ClassRecord]) -> None:
        self._classes[tenant] = [c.model_copy(deep=True) for c in classes]

    def get_workload(self, tenant: str) -> Workload:
        return {
            class_id: [l.model_copy() for l in loads]
            for class_id, loads in self._workload.get(tenant, {}).items()
        }

    def save_workload(self, tenant: str, workload: Workload) -> None:
        self._workload[tenant] = {
            class_id: [l.model_copy() for l in loads]
            for class_id, loads in workload.items()
        }

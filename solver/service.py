"""TimetableService – verbindet Konfiguration, Verteiler und Speicher.

Nach außen wirft der Service keine Speicherfehler: Lesefehler liefern
None bzw. leere Listen, Schreibfehler ein GenerationResult mit success=False.
"""

import logging
import uuid
from typing import Optional

from config.schema import SchedulerSettings, TimetableConfig
from models.teacher import TeacherProfile
from models.timetable import GenerationResult, TimetableEntry
from models.workload import ClassRecord, Workload
from solver.allocator import SlotAllocator
from storage.base import StorageError, TimetableStore

logger = logging.getLogger(__name__)


class TimetableService:
    """Fassade für einen Speicher und feste Generator-Einstellungen.

    Verwendung:
        service = TimetableService(JsonFileStore(Path("output/tenants")))
        config = service.load_config("gym-nord") or default_timetable_config()
        result = service.generate("gym-nord", config, teachers, workload)
    """

    def __init__(
        self,
        store: TimetableStore,
        settings: Optional[SchedulerSettings] = None,
    ) -> None:
        self.store = store
        self.settings = settings or SchedulerSettings()

    # ─── Lesen ────────────────────────────────────────────────────────────────

    def load_config(self, tenant: str) -> Optional[TimetableConfig]:
        """Konfiguration der Schule; None heißt "noch nicht eingerichtet"."""
        try:
            return self.store.get_timetable_config(tenant)
        except StorageError as e:
            logger.error(f"Konfiguration für '{tenant}' nicht lesbar: {e}")
            return None

    def teacher_directory(self, tenant: str) -> list[TeacherProfile]:
        try:
            return self.store.get_teacher_directory(tenant)
        except StorageError as e:
            logger.error(f"Kollegium für '{tenant}' nicht lesbar: {e}")
            return []

    def classes(self, tenant: str) -> list[ClassRecord]:
        try:
            return self.store.get_classes(tenant)
        except StorageError as e:
            logger.error(f"Klassendaten für '{tenant}' nicht lesbar: {e}")
            return []

    def workload(self, tenant: str) -> Workload:
        try:
            return self.store.get_workload(tenant)
        except StorageError as e:
            logger.error(f"Workload für '{tenant}' nicht lesbar: {e}")
            return {}

    def entries(self, tenant: str) -> list[TimetableEntry]:
        """Gespeicherte Stundenplan-Einträge (für die Anzeige)."""
        try:
            return self.store.get_timetable_entries(tenant)
        except StorageError as e:
            logger.error(f"Stundenplan für '{tenant}' nicht lesbar: {e}")
            return []

    # ─── Schreiben ────────────────────────────────────────────────────────────

    def save_config(self, tenant: str, config: TimetableConfig) -> bool:
        try:
            self.store.save_timetable_config(tenant, config)
        except StorageError as e:
            logger.error(f"Konfiguration für '{tenant}' nicht gespeichert: {e}")
            return False
        return True

    # ─── Generierung ──────────────────────────────────────────────────────────

    def generate(
        self,
        tenant: str,
        config: TimetableConfig,
        teachers: list[TeacherProfile],
        workload: Workload,
    ) -> GenerationResult:
        """Erstellt den Stundenplan neu und ersetzt den gespeicherten vollständig.

        Verteilt wird komplett im Speicher; erst danach werden die alten
        Einträge in einem Schritt durch die neuen ersetzt. Schlägt das fehl,
        bleibt der alte Stand erhalten und das Ergebnis trägt die Fehlermeldung.
        """
        try:
            allocation = SlotAllocator(config, self.settings).allocate(teachers, workload)
        except ValueError as e:
            logger.error(f"Ungültiger Workload für '{tenant}': {e}")
            return GenerationResult(success=False, message=str(e))

        generation_id = uuid.uuid4().hex
        try:
            self.store.replace_timetable_entries(tenant, allocation.entries, generation_id)
        except StorageError as e:
            logger.error(f"Stundenplan für '{tenant}' nicht gespeichert: {e}")
            return GenerationResult(success=False, message=str(e))

        result = GenerationResult(
            success=True,
            entries=allocation.entries,
            unplaced=allocation.unplaced,
            generation_id=generation_id,
        )
        if result.total_unplaced:
            result.message = (
                f"Stundenplan erstellt: {len(result.entries)} Stunden vergeben, "
                f"{result.total_unplaced} Stunden konnten nicht untergebracht werden."
            )
        else:
            result.message = f"Stundenplan erfolgreich erstellt ({len(result.entries)} Stunden)."
        logger.info(f"[{tenant}] {result.message}")
        return result

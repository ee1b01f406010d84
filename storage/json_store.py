"""Dateibasierter Speicher: ein Verzeichnis pro Schule (Tenant).

Layout:
    <root>/<tenant>/timetable_config.yaml   Zeitrahmen (ruamel.yaml, kommentiert)
    <root>/<tenant>/timetable_entries.json  Letzter Generator-Lauf
    <root>/<tenant>/teachers.json           Gepflegtes Kollegium (optional)
    <root>/<tenant>/classes.json            Klassendaten
    <root>/<tenant>/workload.json           Fachbedarfe pro Klasse

JSON-Dateien werden über eine temporäre Datei + os.replace geschrieben, ein
Leser sieht also immer entweder den alten oder den neuen Stand.
"""

import logging
import os
import re
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, TypeVar

from pydantic import BaseModel, TypeAdapter, ValidationError

from config.manager import ConfigManager
from config.schema import TimetableConfig
from models.teacher import TeacherProfile
from models.timetable import TimetableEntry
from models.workload import ClassRecord, SubjectLoad, Workload
from storage.base import StorageError, TimetableStore

logger = logging.getLogger(__name__)

_TENANT_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_-]*$")

T = TypeVar("T")

_TEACHERS = TypeAdapter(list[TeacherProfile])
_CLASSES = TypeAdapter(list[ClassRecord])
_WORKLOAD = TypeAdapter(dict[str, list[SubjectLoad]])


class TimetableDocument(BaseModel):
    """Inhalt von timetable_entries.json."""

    tenant: str
    generation_id: Optional[str] = None
    generated_at: Optional[datetime] = None
    entries: list[TimetableEntry] = []


class JsonFileStore(TimetableStore):
    """TimetableStore auf Basis von YAML-/JSON-Dateien."""

    CONFIG_FILE = "timetable_config.yaml"
    ENTRIES_FILE = "timetable_entries.json"
    TEACHERS_FILE = "teachers.json"
    CLASSES_FILE = "classes.json"
    WORKLOAD_FILE = "workload.json"

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    # ─── Pfade & IO ───

    def tenant_dir(self, tenant: str) -> Path:
        if not _TENANT_RE.match(tenant):
            raise StorageError(f"Ungültige Schul-Kennung: {tenant!r}")
        return self.root / tenant

    def _write_atomic(self, path: Path, text: str) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(text)
                os.replace(tmp, path)
            except BaseException:
                Path(tmp).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise StorageError(f"Schreiben fehlgeschlagen: {path}: {e}") from e

    def _read(self, path: Path, adapter: TypeAdapter[T]) -> Optional[T]:
        if not path.exists():
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                return adapter.validate_json(f.read())
        except OSError as e:
            raise StorageError(f"Lesen fehlgeschlagen: {path}: {e}") from e
        except (UnicodeDecodeError, ValidationError) as e:
            raise StorageError(f"Datei ungültig: {path}\n{e}") from e

    # ─── Konfiguration ───

    def get_timetable_config(self, tenant: str) -> Optional[TimetableConfig]:
        mgr = ConfigManager(self.tenant_dir(tenant) / self.CONFIG_FILE)
        try:
            return mgr.load()
        except (OSError, ValueError) as e:
            raise StorageError(str(e)) from e

    def save_timetable_config(self, tenant: str, config: TimetableConfig) -> None:
        mgr = ConfigManager(self.tenant_dir(tenant) / self.CONFIG_FILE)
        try:
            mgr.save(config)
        except OSError as e:
            raise StorageError(f"Konfiguration nicht gespeichert: {e}") from e
        logger.debug(f"Konfiguration gespeichert: {mgr.path}")

    # ─── Stundenplan-Einträge ───

    def _entries_path(self, tenant: str) -> Path:
        return self.tenant_dir(tenant) / self.ENTRIES_FILE

    def load_document(self, tenant: str) -> Optional[TimetableDocument]:
        """Kompletter Inhalt der Eintragsdatei inkl. Lauf-ID."""
        return self._read(self._entries_path(tenant), TypeAdapter(TimetableDocument))

    def _write_document(self, doc: TimetableDocument) -> None:
        self._write_atomic(self._entries_path(doc.tenant), doc.model_dump_json(indent=2))

    def get_timetable_entries(self, tenant: str) -> list[TimetableEntry]:
        doc = self.load_document(tenant)
        return doc.entries if doc else []

    def delete_timetable_entries(self, tenant: str) -> None:
        path = self._entries_path(tenant)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Löschen fehlgeschlagen: {path}: {e}") from e

    def bulk_insert_timetable_entries(
        self, tenant: str, entries: list[TimetableEntry]
    ) -> None:
        if not entries:
            return
        doc = self.load_document(tenant) or TimetableDocument(tenant=tenant)
        doc.entries = doc.entries + list(entries)
        self._write_document(doc)

    def replace_timetable_entries(
        self,
        tenant: str,
        entries: list[TimetableEntry],
        generation_id: Optional[str] = None,
    ) -> None:
        self._write_document(TimetableDocument(
            tenant=tenant,
            generation_id=generation_id,
            generated_at=datetime.now(timezone.utc),
            entries=list(entries),
        ))
        logger.debug(f"{len(entries)} Einträge für '{tenant}' gespeichert ({generation_id})")

    # ─── Kollegium ───

    def load_teacher_roster(self, tenant: str) -> Optional[list[TeacherProfile]]:
        return self._read(self.tenant_dir(tenant) / self.TEACHERS_FILE, _TEACHERS)

    def save_teacher_directory(
        self, tenant: str, teachers: list[TeacherProfile]
    ) -> None:
        self._write_atomic(
            self.tenant_dir(tenant) / self.TEACHERS_FILE,
            _TEACHERS.dump_json(teachers, indent=2).decode("utf-8"),
        )

    # ─── Klassen & Workload ───

    def get_classes(self, tenant: str) -> list[ClassRecord]:
        return self._read(self.tenant_dir(tenant) / self.CLASSES_FILE, _CLASSES) or []

    def save_classes(self, tenant: str, classes: list[ClassRecord]) -> None:
        self._write_atomic(
            self.tenant_dir(tenant) / self.CLASSES_FILE,
            _CLASSES.dump_json(classes, indent=2).decode("utf-8"),
        )

    def get_workload(self, tenant: str) -> Workload:
        return self._read(self.tenant_dir(tenant) / self.WORKLOAD_FILE, _WORKLOAD) or {}

    def save_workload(self, tenant: str, workload: Workload) -> None:
        self._write_atomic(
            self.tenant_dir(tenant) / self.WORKLOAD_FILE,
            _WORKLOAD.dump_json(workload, indent=2).decode("utf-8"),
        )

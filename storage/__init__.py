"""Persistenzschicht: Datei- und In-Memory-Speicher pro Schule (Tenant)."""

from .base import StorageError, TimetableStore
from .json_store import JsonFileStore
from .memory_store import MemoryStore

__all__ = [
    "StorageError",
    "TimetableStore",
    "JsonFileStore",
    "MemoryStore",
]

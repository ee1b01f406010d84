"""Solver-Modul (Greedy-Verteilung mit Belegungsmengen)."""

from .allocator import Allocation, SlotAllocator, resolve_teacher
from .service import TimetableService

__all__ = [
    "Allocation",
    "SlotAllocator",
    "resolve_teacher",
    "TimetableService",
]

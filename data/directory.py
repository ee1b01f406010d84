"""Kollegium und Workload-Gerüst aus den Klassendaten der Schulverwaltung ableiten."""

import re

from config.defaults import (
    DEFAULT_SUBJECTS,
    DEFAULT_WEEKLY_COUNT,
    PLACEHOLDER_TEACHER_NAMES,
)
from models.teacher import TeacherProfile
from models.workload import ClassRecord, SubjectLoad, Workload


def teacher_id_for(name: str) -> str:
    """Stabile ID aus einem Anzeigenamen: "Anna  Khan" → "t_Anna_Khan"."""
    return "t_" + re.sub(r"\s+", "_", name.strip())


def is_placeholder_name(name: str) -> bool:
    return name.strip().lower() in PLACEHOLDER_TEACHER_NAMES


def derive_teacher_directory(classes: list[ClassRecord]) -> list[TeacherProfile]:
    """Erzeugt das Kollegium aus den Klassenlehrkräften.

    Platzhalter-Namen ("Staff", "Admin", ...) werden übersprungen, jeder Name
    erscheint nur einmal (Reihenfolge des ersten Auftretens). Fächer bleiben
    leer und müssen anschließend gepflegt werden.
    """
    seen: set[str] = set()
    teachers: list[TeacherProfile] = []
    for cls in classes:
        name = (cls.teacher_name or "").strip()
        if not name or is_placeholder_name(name) or name in seen:
            continue
        seen.add(name)
        teachers.append(TeacherProfile(id=teacher_id_for(name), name=name))
    return teachers


def subject_library(classes: list[ClassRecord]) -> list[str]:
    """Alle Fächer der Klassen plus die Standardfächer, ohne Duplikate."""
    subjects: list[str] = []
    for name in [s for c in classes for s in c.subjects] + DEFAULT_SUBJECTS:
        if name not in subjects:
            subjects.append(name)
    return subjects


def default_workload(
    classes: list[ClassRecord], count: int = DEFAULT_WEEKLY_COUNT
) -> Workload:
    """Workload-Gerüst: pro Klassenfach `count` Einzelstunden, ohne Lehrkraft."""
    return {
        cls.id: [
            SubjectLoad(class_id=cls.id, subject=subject, count=count)
            for subject in cls.subjects
        ]
        for cls in classes
    }

"""Tests für den Greedy-Stundenverteiler und den TimetableService."""

from collections import Counter

import pytest

from config.schema import BreakSlot, DayOrder, SchedulerSettings, TimetableConfig
from config.defaults import school_preset
from models.teacher import TeacherProfile
from models.timetable import TimetableEntry
from models.workload import SubjectLoad, group_workload
from solver.allocator import SlotAllocator, resolve_teacher
from solver.service import TimetableService
from storage.base import StorageError
from storage.memory_store import MemoryStore


# ─── Hilfsfunktionen ──────────────────────────────────────────────────────────

SIX_DAYS = ["MON", "TUE", "WED", "THU", "FRI", "SAT"]


def make_config(days=None, periods: int = 8, breaks=None) -> TimetableConfig:
    return TimetableConfig(
        working_days=days or SIX_DAYS,
        periods_per_day=periods,
        breaks=breaks or [],
    )


def load(class_id: str, subject: str, count: int, teacher_id=None, is_double=False) -> SubjectLoad:
    return SubjectLoad(
        class_id=class_id, subject=subject, count=count,
        teacher_id=teacher_id, is_double=is_double,
    )


def assert_no_double_booking(entries: list[TimetableEntry]) -> None:
    teacher_slots = Counter((e.teacher_id, e.day, e.period_index) for e in entries)
    class_slots = Counter((e.class_id, e.day, e.period_index) for e in entries)
    assert max(teacher_slots.values(), default=0) <= 1
    assert max(class_slots.values(), default=0) <= 1


def assert_double_pairs(entries: list[TimetableEntry], class_id: str, subject: str) -> None:
    """Einträge eines Doppelstunden-Fachs bilden (p, p+1)-Paare am selben Tag."""
    by_day: dict[str, list[TimetableEntry]] = {}
    for e in entries:
        if e.class_id == class_id and e.subject == subject:
            by_day.setdefault(e.day, []).append(e)
    for day_entries in by_day.values():
        ordered = sorted(day_entries, key=lambda e: e.period_index)
        assert len(ordered) % 2 == 0
        for first, second in zip(ordered[::2], ordered[1::2]):
            assert second.period_index == first.period_index + 1
            assert first.teacher_id == second.teacher_id


@pytest.fixture(scope="module")
def subject_teachers() -> list[TeacherProfile]:
    """Fünf Lehrkräfte, je eine pro Fach."""
    return [
        TeacherProfile(id=f"t_{subject}", name=f"Lehrkraft {subject}", subjects=[subject])
        for subject in ["Math", "English", "Science", "Arabic", "PET"]
    ]


@pytest.fixture(scope="module")
def school_workload():
    """3 Klassen × 5 Fächer, Mathe als Doppelstunde."""
    loads = []
    for class_id in ["7a", "7b", "7c"]:
        loads.append(load(class_id, "Math", 4, is_double=True))
        for subject in ["English", "Science", "Arabic", "PET"]:
            loads.append(load(class_id, subject, 5))
    return group_workload(loads)


# ─── LEHRKRAFT-AUFLÖSUNG ──────────────────────────────────────────────────────

class TestResolveTeacher:
    def test_explicit_teacher_wins(self, subject_teachers):
        assert resolve_teacher(load("7a", "Math", 1, teacher_id="t_x"), subject_teachers) == "t_x"

    def test_first_qualified_teacher(self):
        teachers = [
            TeacherProfile(id="t1", name="A", subjects=["Arts"]),
            TeacherProfile(id="t2", name="B", subjects=["Math"]),
            TeacherProfile(id="t3", name="C", subjects=["Math"]),
        ]
        assert resolve_teacher(load("7a", "Math", 1), teachers) == "t2"

    def test_placeholder_fallback(self):
        assert resolve_teacher(load("7a", "Latin", 1), []) == "Staff"
        assert resolve_teacher(load("7a", "Latin", 1), [], placeholder="N.N.") == "N.N."

    def test_empty_teacher_id_is_resolved(self, subject_teachers):
        l = load("7a", "Math", 1, teacher_id="  ")
        assert l.teacher_id is None
        assert resolve_teacher(l, subject_teachers) == "t_Math"


# ─── SZENARIEN ────────────────────────────────────────────────────────────────

class TestScenarios:
    def test_simple_single_class(self):
        """Eine Klasse, ein Fach mit 3 Einzelstunden, eine Lehrkraft."""
        teachers = [TeacherProfile(id="t1", name="Anna", subjects=["Math"])]
        workload = group_workload([load("7a", "Math", 3)])

        result = SlotAllocator(make_config()).allocate(teachers, workload)

        assert len(result.entries) == 3
        assert all(e.class_id == "7a" and e.teacher_id == "t1" for e in result.entries)
        assert len({(e.day, e.period_index) for e in result.entries}) == 3
        assert result.unplaced == []
        assert_no_double_booking(result.entries)

    def test_least_loaded_spreads_over_days(self):
        teachers = [TeacherProfile(id="t1", name="Anna", subjects=["Math"])]
        workload = group_workload([load("7a", "Math", 3)])
        result = SlotAllocator(make_config()).allocate(teachers, workload)
        assert [e.day for e in result.entries] == ["MON", "TUE", "WED"]
        assert all(e.period_index == 1 for e in result.entries)

    def test_double_period_placement(self):
        """Doppelstunde → genau ein (p, p+1)-Paar an einem Tag."""
        teachers = [TeacherProfile(id="t1", name="Anna", subjects=["Science"])]
        workload = group_workload([load("7a", "Science", 2, is_double=True)])

        result = SlotAllocator(make_config()).allocate(teachers, workload)

        assert len(result.entries) == 2
        first, second = sorted(result.entries, key=lambda e: e.period_index)
        assert first.day == second.day
        assert second.period_index == first.period_index + 1
        assert {e.subject for e in result.entries} == {"Science"}
        assert {e.teacher_id for e in result.entries} == {"t1"}

    def test_teacher_conflict_across_classes(self):
        """Zwei Klassen, dieselbe explizite Lehrkraft → verschiedene Slots."""
        workload = group_workload([
            load("7a", "Math", 1, teacher_id="t1"),
            load("7b", "Math", 1, teacher_id="t1"),
        ])
        result = SlotAllocator(make_config()).allocate([], workload)

        assert len(result.entries) == 2
        slots = {(e.day, e.period_index) for e in result.entries}
        assert len(slots) == 2

    def test_teacher_conflict_in_single_slot_grid(self):
        """Nur ein Slot in der Woche: die zweite Klasse bekommt nichts."""
        workload = group_workload([
            load("7a", "Math", 1, teacher_id="t1"),
            load("7b", "Math", 1, teacher_id="t1"),
        ])
        result = SlotAllocator(make_config(days=["MON"], periods=1)).allocate([], workload)
        assert len(result.entries) == 1
        assert result.unplaced[0].class_id == "7b"
        assert result.unplaced[0].remaining == 1

    def test_empty_workload(self):
        result = SlotAllocator(make_config()).allocate([], {})
        assert result.entries == []
        assert result.unplaced == []

    def test_zero_count_is_skipped(self):
        workload = group_workload([load("7a", "Math", 0)])
        result = SlotAllocator(make_config()).allocate([], workload)
        assert result.entries == []
        assert result.unplaced == []


# ─── INVARIANTEN ──────────────────────────────────────────────────────────────

class TestInvariants:
    def test_no_double_booking_full_school(self, subject_teachers, school_workload):
        result = SlotAllocator(make_config()).allocate(subject_teachers, school_workload)
        assert_no_double_booking(result.entries)
        assert result.unplaced == []
        assert len(result.entries) == 3 * (4 + 4 * 5)

    def test_double_adjacency_full_school(self, subject_teachers, school_workload):
        result = SlotAllocator(make_config()).allocate(subject_teachers, school_workload)
        for class_id in school_workload:
            assert_double_pairs(result.entries, class_id, "Math")

    def test_soft_cap_with_slack(self, subject_teachers, school_workload):
        """3 Klassen × 5 Fächer, 6 Tage × 8 Stunden → max. 6 Stunden pro Lehrkraft und Tag."""
        result = SlotAllocator(make_config()).allocate(subject_teachers, school_workload)
        per_day = Counter((e.teacher_id, e.day) for e in result.entries)
        assert max(per_day.values()) <= 6

    def test_cap_limits_daily_load(self):
        """Tageslimit 2 bei einem einzigen Tag → Rest bleibt offen."""
        settings = SchedulerSettings(teacher_daily_cap=2)
        workload = group_workload([load("7a", "Math", 5, teacher_id="t1")])
        result = SlotAllocator(make_config(days=["MON"]), settings).allocate([], workload)
        assert len(result.entries) == 2
        assert result.unplaced[0].remaining == 3
        assert result.unplaced[0].reason == "no_free_slot"

    def test_double_not_over_cap(self):
        """Eine Doppelstunde passt nicht mehr, wenn nur noch 1 Stunde bis zum Limit frei ist."""
        settings = SchedulerSettings(teacher_daily_cap=3)
        workload = group_workload([
            load("7a", "Math", 2, teacher_id="t1", is_double=True),
            load("7b", "Math", 2, teacher_id="t1", is_double=True),
        ])
        result = SlotAllocator(make_config(days=["MON"]), settings).allocate([], workload)
        assert len(result.entries) == 2
        assert result.unplaced[0].class_id == "7b"

    def test_doubles_never_straddle_break(self):
        config = make_config(days=["MON"], periods=4, breaks=[BreakSlot(after_period=2)])
        workload = group_workload([load("7a", "Science", 4, teacher_id="t1", is_double=True)])
        result = SlotAllocator(config).allocate([], workload)
        periods = sorted(e.period_index for e in result.entries)
        assert periods == [1, 2, 3, 4]

    def test_double_skips_break_position(self):
        config = make_config(days=["MON"], periods=4, breaks=[BreakSlot(after_period=1)])
        workload = group_workload([load("7a", "Science", 2, teacher_id="t1", is_double=True)])
        result = SlotAllocator(config).allocate([], workload)
        assert sorted(e.period_index for e in result.entries) == [2, 3]

    def test_school_preset_lunch_break(self, subject_teachers, school_workload):
        """Bei der Schulvorlage liegt keine Doppelstunde über der Mittagspause (nach Std. 4)."""
        result = SlotAllocator(school_preset()).allocate(subject_teachers, school_workload)
        for class_id in school_workload:
            maths = sorted(
                (e for e in result.entries if e.class_id == class_id and e.subject == "Math"),
                key=lambda e: (e.day, e.period_index),
            )
            pair_starts = [first.period_index for first in maths[::2]]
            assert 4 not in pair_starts
            assert_double_pairs(result.entries, class_id, "Math")

    def test_doubles_placed_first(self):
        """Doppelstunden werden vor Einzelstunden verteilt, auch wenn sie später stehen."""
        workload = group_workload([
            load("7a", "English", 1, teacher_id="t1"),
            load("7a", "Math", 2, teacher_id="t2", is_double=True),
        ])
        result = SlotAllocator(make_config(days=["MON"], periods=2)).allocate([], workload)
        assert [e.subject for e in result.entries] == ["Math", "Math"]
        assert result.unplaced[0].subject == "English"

    def test_odd_double_count(self):
        """Ungerader Rest einer Doppelstunde wird nicht als Einzelstunde vergeben."""
        workload = group_workload([load("7a", "Science", 3, teacher_id="t1", is_double=True)])
        result = SlotAllocator(make_config()).allocate([], workload)
        assert len(result.entries) == 2
        assert result.unplaced[0].remaining == 1
        assert result.unplaced[0].reason == "odd_double_count"

    def test_double_impossible_with_single_period(self):
        workload = group_workload([load("7a", "Science", 2, teacher_id="t1", is_double=True)])
        result = SlotAllocator(make_config(periods=1)).allocate([], workload)
        assert result.entries == []
        assert result.unplaced[0].remaining == 2
        assert result.unplaced[0].reason == "no_free_slot"

    def test_placeholder_is_one_identity(self):
        """Alle Platzhalter-Stunden gelten als dieselbe Lehrkraft."""
        workload = group_workload([
            load("7a", "Latin", 1),
            load("7b", "Latin", 1),
        ])
        result = SlotAllocator(make_config(days=["MON"], periods=1)).allocate([], workload)
        assert [e.teacher_id for e in result.entries] == ["Staff"]
        assert result.unplaced[0].teacher_id == "Staff"

    def test_workload_key_mismatch(self):
        workload = {"7a": [load("7b", "Math", 1)]}
        with pytest.raises(ValueError):
            SlotAllocator(make_config()).allocate([], workload)

    def test_exact_unplaced_counts(self, subject_teachers):
        """Überbuchte Klasse: Fehlbestand entspricht genau Bedarf minus Vergabe."""
        workload = group_workload([
            load("7a", "English", 3),
            load("7a", "Science", 3),
        ])
        config = make_config(days=["MON", "TUE"], periods=2)
        result = SlotAllocator(config).allocate(subject_teachers, workload)
        assert len(result.entries) == 4
        placed = Counter(e.subject for e in result.entries)
        missing = {u.subject: u.remaining for u in result.unplaced}
        for subject in ("English", "Science"):
            assert placed[subject] + missing.get(subject, 0) == 3


# ─── DETERMINISMUS ────────────────────────────────────────────────────────────

class TestDeterminism:
    def test_least_loaded_is_deterministic(self, subject_teachers, school_workload):
        allocator = SlotAllocator(make_config())
        first = allocator.allocate(subject_teachers, school_workload)
        second = SlotAllocator(make_config()).allocate(subject_teachers, school_workload)
        assert first.entries == second.entries

    def test_random_with_seed_is_reproducible(self, subject_teachers, school_workload):
        settings = SchedulerSettings(day_order=DayOrder.RANDOM, seed=7)
        first = SlotAllocator(make_config(), settings).allocate(subject_teachers, school_workload)
        second = SlotAllocator(make_config(), settings).allocate(subject_teachers, school_workload)
        assert first.entries == second.entries
        assert_no_double_booking(first.entries)

    def test_random_keeps_invariants(self, subject_teachers, school_workload):
        for seed in range(5):
            settings = SchedulerSettings(day_order=DayOrder.RANDOM, seed=seed)
            result = SlotAllocator(make_config(), settings).allocate(subject_teachers, school_workload)
            assert_no_double_booking(result.entries)
            for class_id in school_workload:
                assert_double_pairs(result.entries, class_id, "Math")

    def test_allocator_has_no_state_between_runs(self, subject_teachers):
        allocator = SlotAllocator(make_config(days=["MON"], periods=1))
        workload = group_workload([load("7a", "Math", 1)])
        assert len(allocator.allocate(subject_teachers, workload).entries) == 1
        assert len(allocator.allocate(subject_teachers, workload).entries) == 1


# ─── SERVICE ──────────────────────────────────────────────────────────────────

class FailingStore(MemoryStore):
    """Speicher, dessen Schreibzugriff auf die Einträge fehlschlägt."""

    def replace_timetable_entries(self, tenant, entries, generation_id=None):
        raise StorageError("Datenbank nicht erreichbar")


class TestTimetableService:
    def test_generate_persists_entries(self, subject_teachers, school_workload):
        store = MemoryStore()
        service = TimetableService(store)
        result = service.generate("gym", make_config(), subject_teachers, school_workload)

        assert result.success
        assert result.is_complete
        assert result.generation_id == store.generation_id("gym")
        assert store.get_timetable_entries("gym") == result.entries

    def test_idempotent_clearing(self, subject_teachers, school_workload):
        """Zweiter Lauf ersetzt den ersten vollständig."""
        store = MemoryStore()
        service = TimetableService(store)
        service.generate("gym", make_config(), subject_teachers, school_workload)
        smaller = group_workload([load("7a", "English", 2)])
        second = service.generate("gym", make_config(), subject_teachers, smaller)

        stored = store.get_timetable_entries("gym")
        assert len(stored) == 2
        assert stored == second.entries

    def test_repeated_identical_runs(self, subject_teachers, school_workload):
        store = MemoryStore()
        service = TimetableService(store)
        service.generate("gym", make_config(), subject_teachers, school_workload)
        service.generate("gym", make_config(), subject_teachers, school_workload)
        assert len(store.get_timetable_entries("gym")) == 3 * 24

    def test_empty_workload_clears(self, subject_teachers, school_workload):
        store = MemoryStore()
        service = TimetableService(store)
        service.generate("gym", make_config(), subject_teachers, school_workload)
        result = service.generate("gym", make_config(), subject_teachers, {})

        assert result.success
        assert result.entries == []
        assert store.get_timetable_entries("gym") == []

    def test_tenants_are_isolated(self, subject_teachers, school_workload):
        store = MemoryStore()
        service = TimetableService(store)
        service.generate("a", make_config(), subject_teachers, school_workload)
        service.generate("b", make_config(), subject_teachers, {})
        assert len(store.get_timetable_entries("a")) == 72
        assert store.get_timetable_entries("b") == []

    def test_partial_result_is_success(self):
        workload = group_workload([load("7a", "Math", 3, teacher_id="t1")])
        result = TimetableService(MemoryStore()).generate(
            "gym", make_config(days=["MON"], periods=2), [], workload
        )
        assert result.success
        assert not result.is_complete
        assert result.total_unplaced == 1
        assert "1 Stunden" in result.message

    def test_store_failure(self, subject_teachers, school_workload):
        """Schreibfehler → success=False, alte Einträge bleiben erhalten."""
        store = FailingStore()
        old = [TimetableEntry(class_id="7a", day="MON", period_index=1,
                              subject="Math", teacher_id="t_Math")]
        store.bulk_insert_timetable_entries("gym", old)

        result = TimetableService(store).generate(
            "gym", make_config(), subject_teachers, school_workload
        )
        assert not result.success
        assert "nicht erreichbar" in result.message
        assert result.entries == []
        assert store.get_timetable_entries("gym") == old

    def test_invalid_workload(self):
        result = TimetableService(MemoryStore()).generate(
            "gym", make_config(), [], {"7a": [load("7b", "Math", 1)]}
        )
        assert not result.success

    def test_settings_are_used(self):
        settings = SchedulerSettings(teacher_daily_cap=1)
        workload = group_workload([load("7a", "Math", 3, teacher_id="t1")])
        result = TimetableService(MemoryStore(), settings).generate(
            "gym", make_config(days=["MON", "TUE"]), [], workload
        )
        assert len(result.entries) == 2

    def test_readers_swallow_storage_errors(self):
        class BrokenReads(MemoryStore):
            def get_timetable_config(self, tenant):
                raise StorageError("kaputt")

            def get_workload(self, tenant):
                raise StorageError("kaputt")

            def get_timetable_entries(self, tenant):
                raise StorageError("kaputt")

        service = TimetableService(BrokenReads())
        assert service.load_config("gym") is None
        assert service.workload("gym") == {}
        assert service.entries("gym") == []

    def test_teacher_directory_derived_from_classes(self):
        from models.workload import ClassRecord

        store = MemoryStore()
        store.save_classes("gym", [
            ClassRecord(id="7a", name="7a", teacher_name="Anna Khan"),
            ClassRecord(id="7b", name="7b", teacher_name="Class Teacher"),
        ])
        teachers = TimetableService(store).teacher_directory("gym")
        assert [t.id for t in teachers] == ["t_Anna_Khan"]

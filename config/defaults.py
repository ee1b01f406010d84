from config.schema import (
    BreakSlot,
    InstitutionType,
    TimetableConfig,
)

# Namen, die beim Ableiten des Kollegiums aus Klassendaten ignoriert werden
PLACEHOLDER_TEACHER_NAMES = {"class teacher", "admin", "staff", "teacher"}

# Fächer, die jede Schule zusätzlich zu den Klassenfächern angeboten bekommt
DEFAULT_SUBJECTS = ["Library", "PET", "Arts", "Moral Science", "Arabic", "IT Lab"]

# Startwert für Wochenstunden je Fach im Workload-Gerüst
DEFAULT_WEEKLY_COUNT = 5

# Wochenlast einer Lehrkraft ohne eigene Angabe
DEFAULT_MAX_LOAD = 28


def school_preset() -> TimetableConfig:
    """Standard-Schultag.

    MON–FRI, 09:30 – 15:30, 45-Minuten-Stunden
    Mittagspause 12:45 – 13:30

    Aus den Uhrzeiten ergeben sich nur 6 Stunden; der Generator plant
    trotzdem mit periods_per_day=8.
    """
    return TimetableConfig(
        working_days=["MON", "TUE", "WED", "THU", "FRI"],
        day_starts_at="09:30",
        day_ends_at="15:30",
        period_duration=45,
        breaks=[BreakSlot(name="Lunch", start="12:45", end="13:30")],
    )


def madrassa_preset() -> TimetableConfig:
    """Frühunterricht SAT–THU, 06:30 – 08:30, 40 Minuten, keine Pausen."""
    return TimetableConfig(
        working_days=["SAT", "SUN", "MON", "TUE", "WED", "THU"],
        day_starts_at="06:30",
        day_ends_at="08:30",
        period_duration=40,
        breaks=[],
    )


def tuition_preset() -> TimetableConfig:
    """Wochenendkurse SAT–SUN, 09:00 – 13:00, 60 Minuten, Pause 11:00 – 11:15."""
    return TimetableConfig(
        working_days=["SAT", "SUN"],
        day_starts_at="09:00",
        day_ends_at="13:00",
        period_duration=60,
        breaks=[BreakSlot(name="Break", start="11:00", end="11:15")],
    )


PRESETS = {
    InstitutionType.SCHOOL: school_preset,
    InstitutionType.MADRASSA: madrassa_preset,
    InstitutionType.TUITION: tuition_preset,
}


def preset_config(kind: InstitutionType) -> TimetableConfig:
    """Gibt die Vorlage für einen Einrichtungstyp zurück."""
    return PRESETS[InstitutionType(kind)]()


def default_timetable_config() -> TimetableConfig:
    """Vorgabe, wenn für eine Schule noch keine Konfiguration gespeichert ist."""
    return school_preset()

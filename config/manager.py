"""Konfigurationsmanager: Laden und Speichern der Stundenplan-Konfiguration.

Nutzt ruamel.yaml für YAML-Serialisierung mit Kommentaren.
"""

import json
from datetime import date
from pathlib import Path
from typing import Optional

from ruamel.yaml import YAML
from ruamel.yaml.comments import CommentedMap
from ruamel.yaml.error import YAMLError

from config.schema import TimetableConfig

yaml = YAML()
yaml.default_flow_style = False
yaml.width = 120


# ─── YAML-KOMMENTAR-AUFBAU ───

def _yaml_header() -> str:
    return f"""\
# ============================================
# Stundenplan-Generator — Zeitrahmen
# Erstellt: {date.today().isoformat()}
# ============================================
"""


_FIELD_COMMENTS = {
    "working_days": "Unterrichtstage in Anzeigereihenfolge",
    "day_starts_at": "Unterrichtsbeginn (HH:MM)",
    "period_duration": "Länge einer Stunde in Minuten",
    "breaks": "Pausen: entweder after_period ODER start/end",
    "periods_per_day": "Vom Generator belegte Stunden pro Tag (nicht aus Uhrzeiten abgeleitet!)",
}


class ConfigManager:
    """Liest und schreibt eine TimetableConfig als kommentierte YAML-Datei."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.exists()

    # ─── Laden ───

    def load(self) -> Optional[TimetableConfig]:
        """Lade Config aus YAML. Gibt None zurück, wenn noch keine existiert."""
        if not self.path.exists():
            return None
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                raw = yaml.load(f)
        except YAMLError as e:
            raise ValueError(f"Konfigurationsdatei nicht lesbar: {self.path}\n{e}") from e
        if raw is None:
            return None
        try:
            return TimetableConfig.model_validate(json.loads(json.dumps(raw)))
        except Exception as e:
            raise ValueError(
                f"Konfigurationsdatei ungültig: {self.path}\n"
                f"Pydantic-Fehler: {e}"
            ) from e

    # ─── Speichern ───

    def save(self, config: TimetableConfig) -> None:
        """Speichere Config als YAML mit Kommentaren."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        data = self._build_commented_yaml(config)
        with open(self.path, "w", encoding="utf-8") as f:
            f.write(_yaml_header() + "\n")
            yaml.dump(data, f)

    def _build_commented_yaml(self, config: TimetableConfig) -> CommentedMap:
        """Baut die YAML-Struktur mit Kommentaren auf."""
        raw = json.loads(config.model_dump_json(exclude_none=True))
        cm = CommentedMap(raw)
        for field, comment in _FIELD_COMMENTS.items():
            if field in cm:
                cm.yaml_set_comment_before_after_key(field, before=comment)
        return cm

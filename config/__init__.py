"""Konfiguration: Schema, Vorlagen und YAML-Persistenz des Zeitrahmens."""

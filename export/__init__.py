"""Export-Modul: Tabellenzeilen für die Terminal-Anzeige des Stundenplans."""

from export.tui_renderer import render_class_rows, render_teacher_rows

__all__ = ["render_class_rows", "render_teacher_rows"]

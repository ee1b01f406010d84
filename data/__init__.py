"""Ableitungen aus den Klassendaten der Schulverwaltung."""

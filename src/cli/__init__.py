"""Interfaz de línea de comandos (Typer + Rich)."""


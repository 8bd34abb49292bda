"""Logging and terminal output helpers."""

"""Shared helpers: settings and trace events."""

"""Shared helpers (download filenames)."""

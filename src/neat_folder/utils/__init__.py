"""Utility helpers for neat-folder."""

from .sizes import format_size, parse_size

__all__ = ["format_size", "parse_size"]

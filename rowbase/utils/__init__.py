"""
Utilities package for rowbase.

Exports shared helpers for cross-cutting concerns. Keep this package
lightweight and free of persistence logic.
"""

from rowbase.utils.logging import configure_logging, get_logger

__all__ = [
    "configure_logging",
    "get_logger",
]

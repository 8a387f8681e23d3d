"""
Infrastructure package for rowbase.

Centralizes connection concerns (registry, factories built from settings).
Keep this layer focused on I/O and resource management, decoupled from the
record engine's logic.
"""

from rowbase.infrastructure.db_factory import (
    bootstrap_registry,
    build_dsn,
    create_adapter,
    get_sync_connection,
)
from rowbase.infrastructure.registry import ConnectionRegistry, default_registry

__all__ = [
    "ConnectionRegistry",
    "bootstrap_registry",
    "build_dsn",
    "create_adapter",
    "default_registry",
    "get_sync_connection",
]

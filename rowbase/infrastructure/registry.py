"""
Process-wide registry of named backend connections.

Connections are added once at startup and looked up by name afterwards.
Looking up without a name returns the first connection that was registered,
so the default is deterministic even when several connections exist.
"""

from __future__ import annotations

import threading
from typing import Any, Dict, List, Optional

from rowbase.adapters.base import DBAdapter
from rowbase.errors import ConnectionNotFoundError
from rowbase.utils.logging import get_logger

log = get_logger(__name__)


class ConnectionRegistry:
    """
    Thread-safe name -> adapter mapping.
    """

    def __init__(self) -> None:
        self._connections: Dict[str, DBAdapter] = {}
        self._lock = threading.Lock()

    def add_connection(self, name: str, conn: DBAdapter) -> None:
        """
        Register ``conn`` under ``name``. Re-adding a name replaces the adapter
        but keeps its position (and therefore default-ness).
        """
        with self._lock:
            replaced = name in self._connections
            self._connections[name] = conn
        log.info(
            "Connection registered",
            extra={"connection": name, "adapter": conn.name, "replaced": replaced},
        )

    def get_connection(self, name: Optional[str] = None) -> DBAdapter:
        """
        Return the connection registered as ``name``, or the first registered
        connection when ``name`` is None.

        Raises
        ------
        ConnectionNotFoundError
            If the name is unknown or nothing is registered.
        """
        with self._lock:
            if name is None:
                for conn in self._connections.values():
                    return conn
                raise ConnectionNotFoundError("No database connections are registered")
            try:
                return self._connections[name]
            except KeyError:
                known = ", ".join(self._connections) or "none"
                raise ConnectionNotFoundError(
                    f"Unknown connection '{name}'. Registered: {known}"
                ) from None

    def connections(self) -> Dict[str, DBAdapter]:
        with self._lock:
            return dict(self._connections)

    def connection_names(self) -> List[str]:
        with self._lock:
            return list(self._connections)

    def check_input(self, value: Any) -> str:
        """Render ``value`` as a SQL literal using the default connection."""
        return self.get_connection().check_input(value)

    def clear(self) -> None:
        """
        Close and forget every connection. Intended for process shutdown and
        test isolation.
        """
        with self._lock:
            conns = list(self._connections.values())
            self._connections.clear()
        for conn in conns:
            conn.close()

    def __len__(self) -> int:
        return len(self._connections)


_default_registry = ConnectionRegistry()


def default_registry() -> ConnectionRegistry:
    return _default_registry


__all__ = ["ConnectionRegistry", "default_registry"]

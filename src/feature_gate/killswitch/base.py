"""Killswitch interface and in-memory implementation."""

import threading
from typing import Protocol, runtime_checkable

from feature_gate.domain.models import MAX_LEVEL


@runtime_checkable
class Killswitch(Protocol):
    """Signals that a feature needs to be forcibly disabled.

    Practically, this is used to disable a feature when something is believed
    to be wrong with it.
    """

    def get(self, name: str) -> int | None:
        """Return the killswitch level for a feature, or None if not killed."""
        ...

    def enabled(self, name: str) -> bool:
        """Check whether the killswitch is set for a feature."""
        ...


class MemoryKillswitch:
    """Simple in-memory killswitch."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._state: dict[str, int] = {}

    def set(self, name: str, level: int = MAX_LEVEL) -> None:
        """Set the killswitch for a given feature."""
        with self._lock:
            self._state[name.lower()] = level

    def clear(self, name: str) -> None:
        """Remove the killswitch for a given feature."""
        with self._lock:
            self._state.pop(name.lower(), None)

    def get(self, name: str) -> int | None:
        with self._lock:
            return self._state.get(name.lower())

    def enabled(self, name: str) -> bool:
        return self.get(name) is not None

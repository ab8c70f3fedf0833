"""Change notification primitives.

The UI layer subscribes to these signals to learn about state changes;
the core only guarantees that it exposes current state and calls
notify() after every change.
"""

from collections.abc import Callable
from typing import Any


class Signal:
    """A list of callbacks invoked in connection order."""

    def __init__(self) -> None:
        self._callbacks: list[Callable[..., Any]] = []

    def connect(self, callback: Callable[..., Any]) -> None:
        """Register a callback. Registering the same callback twice is a no-op."""
        if callback not in self._callbacks:
            self._callbacks.append(callback)

    def disconnect(self, callback: Callable[..., Any]) -> None:
        """Remove a previously connected callback."""
        if callback in self._callbacks:
            self._callbacks.remove(callback)

    def emit(self, *args: Any) -> None:
        """Invoke every connected callback with the given arguments."""
        # Copy so callbacks may disconnect themselves while being notified
        for callback in list(self._callbacks):
            callback(*args)

    def __len__(self) -> int:
        return len(self._callbacks)


class Observable:
    """Base class for objects whose attributes are watched by the UI."""

    def __init__(self) -> None:
        self.property_changed = Signal()

    def notify(self, name: str) -> None:
        """Announce that the named attribute has a new value."""
        self.property_changed.emit(self, name)

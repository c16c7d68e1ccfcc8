"""credtrust.clock — External monotonic height source.

Heights stand in for timestamps: creation dates and expirations are compared
against the current height. The host advances the clock; registries only read.
"""

import threading


class HeightClock:
    """Monotonic height counter shared by all registries of a network."""

    def __init__(self, start: int = 0):
        if start < 0:
            raise ValueError("start height must be non-negative")
        self._height = start
        self._lock = threading.Lock()

    def current(self) -> int:
        with self._lock:
            return self._height

    def advance(self, blocks: int = 1) -> int:
        """Move the height forward and return the new value."""
        if blocks < 0:
            raise ValueError("height never moves backwards")
        with self._lock:
            self._height += blocks
            return self._height

    def set(self, height: int) -> int:
        """Jump to an absolute height (must not be lower than the current one)."""
        with self._lock:
            if height < self._height:
                raise ValueError(f"height {height} is below current {self._height}")
            self._height = height
            return self._height

    def __repr__(self):
        return f"HeightClock({self._height})"

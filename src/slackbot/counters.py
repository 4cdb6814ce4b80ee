"""Lock-guarded counters and flags shared by the bot's concurrent tasks."""

import threading


class AtomicCounter:
    def __init__(self, value: int = 0) -> None:
        self._value = value
        self._lock = threading.Lock()

    @property
    def value(self) -> int:
        with self._lock:
            return self._value

    def increment(self) -> int:
        """Add one and return the new value."""
        with self._lock:
            self._value += 1
            return self._value


class AtomicFlag:
    def __init__(self, value: bool = False) -> None:
        self._value = value
        self._lock = threading.Lock()

    def is_set(self) -> bool:
        with self._lock:
            return self._value

    def compare_and_set(self, expected: bool, new: bool) -> bool:
        """Set the flag to ``new`` only if it currently equals ``expected``.
        Returns whether the swap happened."""
        with self._lock:
            if self._value != expected:
                return False
            self._value = new
            return True

"""
Debounce state management.

Suppresses repeated dispatch of the same shell command within a window.
"""

import threading
import time
from dataclasses import dataclass, field
from typing import Callable


@dataclass
class DebounceTracker:
    """
    Tracks the last accepted dispatch time per command.

    State is keyed by the literal command text, not by rule, so two rules
    with identical commands share one timer. The window is fixed: it is
    measured from the previous accepted dispatch, and suppressed attempts
    do not extend it.
    """
    clock: Callable[[], float] = time.monotonic
    last_dispatch: dict[str, float] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def should_dispatch(self, command: str, window: float, now: float | None = None) -> bool:
        """
        Decide whether a command may run now, recording the time if so.

        Args:
            command: The command string used as the debounce key.
            window: Minimum seconds between accepted dispatches.
            now: Current time; defaults to the tracker's clock.

        Returns:
            True if the command should be dispatched.
        """
        with self._lock:
            if now is None:
                now = self.clock()
            last = self.last_dispatch.get(command)
            if last is not None and now - last < window:
                return False
            self.last_dispatch[command] = now
            return True

    def clear(self) -> None:
        """Forget all recorded dispatches."""
        with self._lock:
            self.last_dispatch.clear()

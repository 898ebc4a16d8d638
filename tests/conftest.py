"""
Shared fakes for the hardware and OS seams.
"""

import pytest

from midi_keyd.errors import SpawnError


class RecordingDevice:
    """InputDevice that records calls instead of sending input."""

    def __init__(self, fail_on: str | None = None):
        self.calls: list[tuple[str, object]] = []
        self.fail_on = fail_on

    def _record(self, name: str, value: object) -> None:
        if self.fail_on is not None and value == self.fail_on:
            raise RuntimeError(f"cannot send {value}")
        self.calls.append((name, value))

    def press(self, key):
        self._record("press", key)

    def release(self, key):
        self._record("release", key)

    def type(self, text):
        self._record("type", text)

    def click(self, button):
        self._record("click", button)

    def pause(self, seconds):
        self._record("pause", seconds)


class RecordingSpawner:
    """Spawner that records commands and the exported velocity."""

    def __init__(self, fail_on: str | None = None):
        self.spawned: list[tuple[str, str | None]] = []
        self.fail_on = fail_on

    def __call__(self, command, env):
        if command == self.fail_on:
            raise SpawnError(f"'{command}' command failed to start")
        self.spawned.append((command, env.get("MIDI_VELOCITY")))

    @property
    def commands(self) -> list[str]:
        return [command for command, _ in self.spawned]


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def device():
    return RecordingDevice()


@pytest.fixture
def spawner():
    return RecordingSpawner()


@pytest.fixture
def clock():
    return FakeClock()

"""
Exception types raised by the daemon.

Startup failures (config, device) are fatal. Everything under
DispatchError is reported per rule and never stops the daemon.
"""


class MidiKeydError(Exception):
    """Base class for all daemon errors."""


class ConfigError(MidiKeydError):
    """The configuration file is missing, unreadable or invalid."""


class DeviceError(MidiKeydError):
    """No matching MIDI port, or the port could not be opened."""


class DecodeError(MidiKeydError):
    """An incoming MIDI message is too short to route."""


class DispatchError(MidiKeydError):
    """A single rule failed to perform its action."""


class KeymapError(DispatchError):
    """A keymap description could not be parsed."""

    def __init__(self, message: str, token: str, position: int):
        super().__init__(f"{message}: {token!r} at position {position}")
        self.token = token
        self.position = position


class PlaybackError(DispatchError):
    """Synthetic input failed partway through a keymap."""


class SpawnError(DispatchError):
    """A shell command could not be started."""

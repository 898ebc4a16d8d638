"""
Incoming MIDI events.

The dispatcher works on raw message bytes rather than mido's typed
messages: a rule names the status byte directly, so any channel voice
message can be mapped.
"""

from dataclasses import dataclass
from typing import Sequence

from .errors import DecodeError


@dataclass(frozen=True)
class IncomingEvent:
    """A decoded MIDI message."""
    midi_id: int  # status byte
    note: int  # first data byte
    velocity: int | None = None  # second data byte, when present

    def __str__(self) -> str:
        vel = "-" if self.velocity is None else self.velocity
        return f"id={self.midi_id} note={self.note} vel={vel}"


def decode_message(raw: Sequence[int]) -> IncomingEvent:
    """
    Decode raw MIDI bytes into an IncomingEvent.

    Args:
        raw: Message bytes as delivered by the driver (status first).

    Returns:
        The decoded event. A missing third byte means no velocity.

    Raises:
        DecodeError: If the message has fewer than two bytes.
    """
    if len(raw) < 2:
        raise DecodeError(f"MIDI message too short ({len(raw)} bytes): {list(raw)}")
    velocity = raw[2] if len(raw) > 2 else None
    return IncomingEvent(midi_id=raw[0], note=raw[1], velocity=velocity)

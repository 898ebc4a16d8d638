"""
Rule matching and velocity scaling.
"""

import math

from .config import Rule
from .messages import IncomingEvent


def velocity_matches(velocity: int | None, rule: Rule) -> bool:
    """Check the rule's velocity constraint. A missing value on either side matches."""
    if rule.velocity is None or velocity is None:
        return True
    return velocity == rule.velocity


def matches(event: IncomingEvent, rule: Rule) -> bool:
    """
    Check if an event matches a rule.

    Args:
        event: The decoded MIDI event.
        rule: The rule to check against.

    Returns:
        True if status byte, note and velocity constraint all agree.
    """
    return (
        event.midi_id == rule.midi_id
        and event.note == rule.note
        and velocity_matches(event.velocity, rule)
    )


def scale_value(value: int, low: int, high: int) -> int:
    """Map value from 0-127 onto low..high, rounding halves away from zero."""
    output = low + value * (high - low) / 127
    return math.floor(output + 0.5)


def compute_velocity(raw: int | None, rule: Rule) -> int | None:
    """
    Compute the velocity exported to commands.

    Without a scale option the raw value is returned unchanged. With a
    scale but no raw velocity there is nothing to scale, so None.
    """
    scale = rule.scale
    if scale is None:
        return raw
    if raw is None:
        return None
    return scale_value(raw, scale.min, scale.max)

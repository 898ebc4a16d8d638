"""
MIDI port discovery and connection.

mido delivers messages on a thread owned by its backend; the callback
registered here runs there, one message at a time.
"""

import logging
from typing import Callable, Sequence

import mido

from .errors import DeviceError

logger = logging.getLogger(__name__)


def list_midi_ports() -> list[str]:
    """List all available MIDI input ports."""
    return mido.get_input_names()


def find_port(device_port_name: str, ports: list[str] | None = None) -> str:
    """
    Find the first port whose name contains device_port_name.

    Args:
        device_port_name: Substring to look for.
        ports: Port names to search; enumerated from mido when omitted.

    Raises:
        DeviceError: If no port matches.
    """
    if ports is None:
        ports = list_midi_ports()

    for port_name in ports:
        logger.debug("Port found: %r", port_name)
        if device_port_name in port_name:
            logger.debug("Selected MIDI port: %s", port_name)
            return port_name

    raise DeviceError(
        f"No MIDI ports available for device_port_name '{device_port_name}' "
        f"(available: {', '.join(ports) or 'none'})"
    )


def open_port(port_name: str, on_message: Callable[[Sequence[int]], object]) -> mido.ports.BaseInput:
    """
    Open an input port, feeding raw message bytes to on_message.

    Exceptions escaping on_message are logged so the backend thread keeps
    delivering.

    Raises:
        DeviceError: If the port cannot be opened.
    """
    def callback(msg: mido.Message) -> None:
        raw = msg.bytes()
        logger.debug("Received MIDI message: %s", raw)
        try:
            on_message(raw)
        except Exception:
            logger.exception("Unhandled error while dispatching %s", raw)

    try:
        return mido.open_input(port_name, callback=callback)
    except Exception as e:  # rtmidi raises its own error types
        raise DeviceError(f"Failed to connect to MIDI input port '{port_name}': {e}") from e

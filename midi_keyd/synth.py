"""
Synthetic keyboard and mouse input.

Plays keymap actions through an InputDevice. The real device is backed by
pynput; tests use a recording stand-in.
"""

import logging
import time
from typing import Iterable, Protocol

from .errors import DeviceError, PlaybackError
from .keymap import Click, Hold, KeyAction, Pause, Tap, TypeText

logger = logging.getLogger(__name__)


class InputDevice(Protocol):
    """Minimal synthetic input surface used by playback."""

    def press(self, key: str) -> None: ...

    def release(self, key: str) -> None: ...

    def type(self, text: str) -> None: ...

    def click(self, button: str) -> None: ...

    def pause(self, seconds: float) -> None: ...


class PynputDevice:
    """InputDevice backed by pynput's keyboard and mouse controllers."""

    def __init__(self):
        try:
            # pynput connects to the display server on import
            from pynput import keyboard, mouse

            self._keyboard = keyboard.Controller()
            self._mouse = mouse.Controller()
        except Exception as e:
            raise DeviceError(f"Synthetic input unavailable: {e}") from e

        self._keys = keyboard.Key
        self._buttons = mouse.Button

    def _key(self, key: str):
        if len(key) == 1:
            return key
        try:
            return getattr(self._keys, key)
        except AttributeError:
            raise PlaybackError(f"Key '{key}' is not available on this platform") from None

    def press(self, key: str) -> None:
        self._keyboard.press(self._key(key))

    def release(self, key: str) -> None:
        self._keyboard.release(self._key(key))

    def type(self, text: str) -> None:
        self._keyboard.type(text)

    def click(self, button: str) -> None:
        self._mouse.click(getattr(self._buttons, button))

    def pause(self, seconds: float) -> None:
        time.sleep(seconds)


def _play(action: KeyAction, device: InputDevice) -> None:
    if isinstance(action, Tap):
        device.press(action.key)
        device.release(action.key)
    elif isinstance(action, Hold):
        for modifier in action.modifiers:
            device.press(modifier)
        for inner in action.actions:
            _play(inner, device)
        for modifier in reversed(action.modifiers):
            device.release(modifier)
    elif isinstance(action, Pause):
        device.pause(action.seconds)
    elif isinstance(action, Click):
        device.click(action.button)
    elif isinstance(action, TypeText):
        device.type(action.text)
    else:
        raise PlaybackError(f"Unsupported action: {action!r}")


def play(actions: Iterable[KeyAction], device: InputDevice) -> None:
    """
    Play actions in order.

    Keys already pressed when a failure occurs are left as they are; the
    failure is raised as PlaybackError.
    """
    for action in actions:
        logger.debug("Playing %s", action)
        try:
            _play(action, device)
        except PlaybackError:
            raise
        except Exception as e:
            raise PlaybackError(f"Input synthesis failed on {action}: {e}") from e

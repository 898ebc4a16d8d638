"""
Dispatcher for routing MIDI messages to rule actions.
"""

import logging
from dataclasses import dataclass, field
from typing import Sequence

from .config import Rule, Settings
from .debounce import DebounceTracker
from .errors import DecodeError, DispatchError, MidiKeydError
from .keymap import evaluate
from .matching import compute_velocity, matches
from .messages import IncomingEvent, decode_message
from .spawn import Spawner, build_env, spawn_command
from .synth import InputDevice, play

logger = logging.getLogger(__name__)


@dataclass
class Dispatcher:
    """
    Routes raw MIDI messages to the actions of every matching rule.

    Rules are checked in config order and all matches fire. A failing
    rule is logged and skipped; it never stops the remaining rules or
    later events.
    """
    settings: Settings
    device: InputDevice
    tracker: DebounceTracker = field(default_factory=DebounceTracker)
    spawner: Spawner = spawn_command

    def on_event(self, raw_message: Sequence[int]) -> list[MidiKeydError]:
        """
        Handle one incoming MIDI message.

        Args:
            raw_message: Message bytes, status byte first.

        Returns:
            Errors encountered while dispatching; empty if all went well.
        """
        try:
            event = decode_message(raw_message)
        except DecodeError as e:
            logger.warning("Skipping message: %s", e)
            return [e]

        errors: list[MidiKeydError] = []
        for rule in self.settings.rules:
            if not matches(event, rule):
                continue
            logger.debug("Rule matched: %s", event)
            errors.extend(self._dispatch(event, rule))
        return errors

    def _dispatch(self, event: IncomingEvent, rule: Rule) -> list[DispatchError]:
        """Perform a matched rule's keymap, mouse and command actions."""
        errors: list[DispatchError] = []

        if rule.keymap:
            logger.debug("Evaluating keymap: %s", rule.keymap)
            try:
                play(evaluate(rule.keymap), self.device)
            except DispatchError as e:
                logger.error("Failed keymap %r: %s", rule.keymap, e)
                errors.append(e)

        if rule.mouse:
            try:
                self.device.click(rule.mouse)
            except Exception as e:
                logger.error("Failed mouse click %r: %s", rule.mouse, e)
                errors.append(DispatchError(f"Mouse click '{rule.mouse}' failed: {e}"))

        if rule.command:
            try:
                self._run_command(event, rule, rule.command)
            except DispatchError as e:
                logger.error("%s", e)
                errors.append(e)

        return errors

    def _run_command(self, event: IncomingEvent, rule: Rule, command: str) -> None:
        if not self.tracker.should_dispatch(command, rule.debounce_window):
            logger.debug("Debouncing command: %s", command)
            return

        velocity = compute_velocity(event.velocity, rule)
        logger.debug("Running command: sh -c %s", command)
        if velocity is not None:
            logger.debug("With $MIDI_VELOCITY being '%s'", velocity)
        self.spawner(command, build_env(velocity))


def create_dispatcher(settings: Settings, device: InputDevice) -> Dispatcher:
    """
    Create a dispatcher with fresh debounce state.

    Args:
        settings: Loaded configuration.
        device: Synthetic input backend.

    Returns:
        Configured Dispatcher.
    """
    return Dispatcher(settings=settings, device=device, tracker=DebounceTracker())

"""
Shell command spawning.
"""

import logging
import os
import subprocess
from typing import Callable, Mapping

from .errors import SpawnError

logger = logging.getLogger(__name__)

VELOCITY_ENV_VAR = "MIDI_VELOCITY"

Spawner = Callable[[str, Mapping[str, str]], object]


def build_env(velocity: int | None, base: Mapping[str, str] | None = None) -> dict[str, str]:
    """Copy the parent environment, exporting the velocity when there is one."""
    env = dict(os.environ if base is None else base)
    if velocity is not None:
        env[VELOCITY_ENV_VAR] = str(velocity)
    return env


def spawn_command(command: str, env: Mapping[str, str]) -> subprocess.Popen:
    """
    Start a command through sh -c without waiting for it.

    Children are not tracked; output goes wherever the daemon's goes.

    Raises:
        SpawnError: If the shell could not be started.
    """
    try:
        return subprocess.Popen(command, shell=True, env=dict(env))
    except OSError as e:
        raise SpawnError(f"'{command}' command failed to start: {e}") from e

"""
Configuration loading and validation.

Reads the mapping table from a YAML (or JSON) file and turns it into
immutable Settings. All range checks happen here, so the dispatcher can
treat every rule as valid.
"""

import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigError
from .keymap import MOUSE_BUTTONS

DEFAULT_CONFIG_PATH = "~/.miditokeydaemonrc"
CONFIG_ENV_VAR = "MIDI_KEYD_CONFIG"

DEFAULT_DEBOUNCE = 0.2  # seconds


@dataclass(frozen=True)
class VelocityScale:
    """Target range for linear velocity rescaling."""
    min: int
    max: int


@dataclass(frozen=True)
class VelocityOptions:
    """Per-rule velocity handling."""
    debounce: float | None = None  # seconds
    scale: VelocityScale | None = None


@dataclass(frozen=True)
class RuleOptions:
    """Optional rule settings."""
    velocity: VelocityOptions | None = None


@dataclass(frozen=True)
class Rule:
    """A single mapping from a MIDI note to actions."""
    midi_id: int  # status byte, e.g. 144 for note on, channel 1
    note: int
    keymap: str | None = None
    velocity: int | None = None
    command: str | None = None
    mouse: str | None = None
    options: RuleOptions | None = None

    @property
    def debounce_window(self) -> float:
        """Debounce window in seconds, falling back to the default."""
        if self.options and self.options.velocity and self.options.velocity.debounce is not None:
            return self.options.velocity.debounce
        return DEFAULT_DEBOUNCE

    @property
    def scale(self) -> VelocityScale | None:
        if self.options and self.options.velocity:
            return self.options.velocity.scale
        return None


@dataclass(frozen=True)
class Settings:
    """Root configuration object."""
    device_port_name: str
    rules: tuple[Rule, ...]


def expand_env_vars(value: str) -> str:
    """Expand environment variables in a string.

    Supports ${VAR} syntax.
    """
    pattern = re.compile(r'\$\{([^}]+)\}')

    def replacer(match: re.Match) -> str:
        var_name = match.group(1)
        return os.environ.get(var_name, "")

    return pattern.sub(replacer, value)


def resolve_config_path(path: str | Path | None = None) -> Path:
    """Pick the config path: explicit argument, then environment, then default."""
    if path is None:
        path = os.environ.get(CONFIG_ENV_VAR) or DEFAULT_CONFIG_PATH
    return Path(path).expanduser()


def _int_field(data: dict[str, Any], key: str, where: str, low: int, high: int,
               required: bool = False) -> int | None:
    value = data.get(key)
    if value is None:
        if required:
            raise ConfigError(f"{where}: missing required field '{key}'")
        return None
    # bool is an int subclass, but true/false is never a valid byte
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"{where}: '{key}' must be an integer, got {value!r}")
    if not low <= value <= high:
        raise ConfigError(f"{where}: '{key}' must be between {low} and {high}, got {value}")
    return value


def _str_field(data: dict[str, Any], key: str, where: str) -> str | None:
    value = data.get(key)
    if value is not None and not isinstance(value, str):
        raise ConfigError(f"{where}: '{key}' must be a string, got {value!r}")
    return value


def parse_velocity_options(data: Any, where: str) -> VelocityOptions:
    """Parse the options.velocity block of a rule."""
    if not isinstance(data, dict):
        raise ConfigError(f"{where}: 'options.velocity' must be a mapping")

    debounce_ms = data.get("debounce")
    debounce = None
    if debounce_ms is not None:
        if isinstance(debounce_ms, bool) or not isinstance(debounce_ms, (int, float)) or debounce_ms < 0:
            raise ConfigError(f"{where}: 'debounce' must be a non-negative number of milliseconds")
        debounce = debounce_ms / 1000.0

    scale = None
    scale_data = data.get("scale")
    if scale_data is not None:
        if not isinstance(scale_data, dict):
            raise ConfigError(f"{where}: 'scale' must be a mapping with 'min' and 'max'")
        scale = VelocityScale(
            min=_int_field(scale_data, "min", f"{where} scale", 0, 255, required=True),
            max=_int_field(scale_data, "max", f"{where} scale", 0, 255, required=True),
        )

    return VelocityOptions(debounce=debounce, scale=scale)


def parse_rule(data: Any, index: int) -> Rule:
    """Parse a single midi_mapping entry."""
    where = f"midi_mapping[{index}]"
    if not isinstance(data, dict):
        raise ConfigError(f"{where}: expected a mapping, got {type(data).__name__}")

    mouse = _str_field(data, "mouse", where)
    if mouse is not None and mouse.lower() not in MOUSE_BUTTONS:
        raise ConfigError(f"{where}: 'mouse' must be one of {', '.join(MOUSE_BUTTONS)}, got {mouse!r}")

    options = None
    options_data = data.get("options")
    if options_data is not None:
        if not isinstance(options_data, dict):
            raise ConfigError(f"{where}: 'options' must be a mapping")
        velocity_data = options_data.get("velocity")
        options = RuleOptions(
            velocity=parse_velocity_options(velocity_data, where) if velocity_data is not None else None,
        )

    return Rule(
        midi_id=_int_field(data, "midi_id", where, 0, 255, required=True),
        note=_int_field(data, "note", where, 0, 127, required=True),
        keymap=_str_field(data, "keymap", where),
        velocity=_int_field(data, "velocity", where, 0, 127),
        command=_str_field(data, "command", where),
        mouse=mouse.lower() if mouse else None,
        options=options,
    )


def parse_settings(raw: Any) -> Settings:
    """Build Settings from already-deserialized config data."""
    if not isinstance(raw, dict):
        raise ConfigError("Configuration root must be a mapping")

    port_name = raw.get("device_port_name")
    if not isinstance(port_name, str) or not port_name:
        raise ConfigError("'device_port_name' must be a non-empty string")

    mapping_list = raw.get("midi_mapping", [])
    if not isinstance(mapping_list, list):
        raise ConfigError("'midi_mapping' must be a list")

    return Settings(
        device_port_name=expand_env_vars(port_name),
        rules=tuple(parse_rule(entry, i) for i, entry in enumerate(mapping_list)),
    )


def load_config(path: Path) -> Settings:
    """Load configuration from a YAML or JSON file."""
    try:
        with open(path) as f:
            raw = yaml.safe_load(f)
    except FileNotFoundError:
        raise ConfigError(f"Config file not found: {path}") from None
    except OSError as e:
        raise ConfigError(f"Failed to read config file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse config file {path}: {e}") from e

    return parse_settings(raw)

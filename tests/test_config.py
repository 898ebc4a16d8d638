"""
Tests for config loading and validation.
"""

import json

import pytest

from midi_keyd.config import (
    DEFAULT_DEBOUNCE,
    Rule,
    VelocityScale,
    load_config,
    parse_settings,
    resolve_config_path,
)
from midi_keyd.errors import ConfigError


def write_json(tmp_path, data):
    path = tmp_path / "miditokeydaemonrc"
    path.write_text(json.dumps(data))
    return path


class TestLoadConfig:
    def test_loads_json_layout(self, tmp_path):
        path = write_json(tmp_path, {
            "device_port_name": "nanoKEY",
            "midi_mapping": [
                {"midi_id": 144, "note": 60, "keymap": "ctrl+c"},
                {
                    "midi_id": 176,
                    "note": 7,
                    "command": "echo $MIDI_VELOCITY",
                    "options": {"velocity": {"debounce": 50, "scale": {"min": 0, "max": 100}}},
                },
            ],
        })

        settings = load_config(path)

        assert settings.device_port_name == "nanoKEY"
        assert len(settings.rules) == 2
        assert settings.rules[0] == Rule(midi_id=144, note=60, keymap="ctrl+c")
        assert settings.rules[1].debounce_window == pytest.approx(0.05)
        assert settings.rules[1].scale == VelocityScale(min=0, max=100)
        assert settings.rules[1].command == "echo $MIDI_VELOCITY"

    def test_loads_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "device_port_name: Launchpad\n"
            "midi_mapping:\n"
            "  - midi_id: 144\n"
            "    note: 1\n"
            "    mouse: Left\n"
        )

        settings = load_config(path)

        assert settings.rules[0].mouse == "left"

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            load_config(tmp_path / "nope")

    def test_malformed_file(self, tmp_path):
        path = tmp_path / "bad"
        path.write_text("{ device_port_name: [")
        with pytest.raises(ConfigError, match="parse"):
            load_config(path)

    def test_rules_are_immutable_tuple(self, tmp_path):
        settings = load_config(write_json(tmp_path, {"device_port_name": "x", "midi_mapping": []}))
        assert settings.rules == ()


class TestValidation:
    def base(self, **rule):
        return {"device_port_name": "dev", "midi_mapping": [{"midi_id": 144, "note": 60, **rule}]}

    def test_default_debounce(self):
        rule = parse_settings(self.base()).rules[0]
        assert rule.debounce_window == DEFAULT_DEBOUNCE
        assert rule.scale is None

    @pytest.mark.parametrize("velocity", [-1, 128, 300])
    def test_velocity_out_of_range(self, velocity):
        with pytest.raises(ConfigError, match="velocity"):
            parse_settings(self.base(velocity=velocity))

    def test_velocity_must_be_integer(self):
        with pytest.raises(ConfigError, match="integer"):
            parse_settings(self.base(velocity="loud"))

    def test_bool_is_not_a_byte(self):
        with pytest.raises(ConfigError):
            parse_settings(self.base(velocity=True))

    def test_missing_note(self):
        with pytest.raises(ConfigError, match="note"):
            parse_settings({"device_port_name": "dev", "midi_mapping": [{"midi_id": 144}]})

    def test_unknown_mouse_button(self):
        with pytest.raises(ConfigError, match="mouse"):
            parse_settings(self.base(mouse="fourth"))

    def test_negative_debounce(self):
        with pytest.raises(ConfigError, match="debounce"):
            parse_settings(self.base(options={"velocity": {"debounce": -5}}))

    def test_scale_requires_bounds(self):
        with pytest.raises(ConfigError, match="max"):
            parse_settings(self.base(options={"velocity": {"scale": {"min": 0}}}))

    def test_descending_scale_allowed(self):
        rule = parse_settings(self.base(options={"velocity": {"scale": {"min": 200, "max": 10}}})).rules[0]
        assert rule.scale == VelocityScale(min=200, max=10)

    def test_missing_device_port_name(self):
        with pytest.raises(ConfigError, match="device_port_name"):
            parse_settings({"midi_mapping": []})

    def test_port_name_env_expansion(self, monkeypatch):
        monkeypatch.setenv("MY_DEVICE", "microKEY")
        settings = parse_settings({"device_port_name": "${MY_DEVICE}-25"})
        assert settings.device_port_name == "microKEY-25"

    def test_command_left_untouched(self, monkeypatch):
        monkeypatch.setenv("MIDI_VELOCITY", "5")
        rule = parse_settings(self.base(command="echo ${MIDI_VELOCITY}")).rules[0]
        assert rule.command == "echo ${MIDI_VELOCITY}"


class TestResolvePath:
    def test_explicit_path_wins(self, monkeypatch, tmp_path):
        monkeypatch.setenv("MIDI_KEYD_CONFIG", "/elsewhere")
        assert resolve_config_path(tmp_path / "c.json") == tmp_path / "c.json"

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("MIDI_KEYD_CONFIG", "/etc/midi-keyd.json")
        assert str(resolve_config_path()) == "/etc/midi-keyd.json"

    def test_default_is_home_expanded(self, monkeypatch, tmp_path):
        monkeypatch.delenv("MIDI_KEYD_CONFIG", raising=False)
        monkeypatch.setenv("HOME", str(tmp_path))
        assert resolve_config_path() == tmp_path / ".miditokeydaemonrc"

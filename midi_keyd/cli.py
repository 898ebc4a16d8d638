"""
Command-line interface for the MIDI key daemon.
"""

import argparse
import logging
import os
import sys
import time

from .config import CONFIG_ENV_VAR, DEFAULT_CONFIG_PATH, load_config, resolve_config_path
from .devices import find_port, list_midi_ports, open_port
from .dispatcher import create_dispatcher
from .errors import KeymapError, MidiKeydError
from .keymap import evaluate
from .synth import PynputDevice

logger = logging.getLogger("midi_keyd")

LOG_ENV_VAR = "MIDI_KEYD_LOG"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def setup_logging(verbose: bool = False) -> None:
    """Configure logging to stderr; DEBUG when verbose or MIDI_KEYD_LOG=debug."""
    if os.environ.get(LOG_ENV_VAR, "").lower() == "debug":
        verbose = True

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.handlers[:] = [handler]
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    logger.propagate = False


def cmd_run(args: argparse.Namespace) -> int:
    """Run the daemon."""
    try:
        settings = load_config(resolve_config_path(args.config))
        logger.debug("Settings: %s", settings)
        port_name = find_port(settings.device_port_name)
        dispatcher = create_dispatcher(settings, PynputDevice())
        port = open_port(port_name, dispatcher.on_event)
    except MidiKeydError as e:
        logger.error("%s", e)
        return 1

    logger.info("Listening on %s with %d rules", port_name, len(settings.rules))

    try:
        while True:
            time.sleep(0.1)
    except KeyboardInterrupt:
        logger.info("Stopped.")
    finally:
        port.close()

    return 0


def cmd_list_devices(args: argparse.Namespace) -> int:
    """List available MIDI devices."""
    ports = list_midi_ports()

    if not ports:
        print("No MIDI input ports found.")
        return 0

    print("Available MIDI input ports:")
    print()
    for i, port in enumerate(ports, 1):
        print(f"  [{i}] {port}")
    print()

    return 0


def cmd_check_config(args: argparse.Namespace) -> int:
    """Validate the config file and every keymap in it."""
    path = resolve_config_path(args.config)
    try:
        settings = load_config(path)
    except MidiKeydError as e:
        print(f"Error: {e}")
        return 1

    problems = 0
    for i, rule in enumerate(settings.rules):
        if not rule.keymap:
            continue
        try:
            evaluate(rule.keymap)
        except KeymapError as e:
            print(f"  midi_mapping[{i}] keymap: {e}")
            problems += 1

    if problems:
        print(f"{path}: {problems} problem(s) found")
        return 1

    print(f"{path}: OK ({len(settings.rules)} rules, device '{settings.device_port_name}')")
    return 0


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        prog="midi-keyd",
        description="Translate MIDI notes into keystrokes, mouse clicks and shell commands",
    )
    parser.add_argument(
        "-c", "--config",
        default=None,
        help=f"Path to config file (default: ${CONFIG_ENV_VAR} or {DEFAULT_CONFIG_PATH})",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # run command (default)
    run_parser = subparsers.add_parser("run", help="Run the daemon")
    run_parser.set_defaults(func=cmd_run)

    # list-devices command
    list_dev_parser = subparsers.add_parser("list-devices", help="List MIDI devices")
    list_dev_parser.set_defaults(func=cmd_list_devices)

    # check-config command
    check_parser = subparsers.add_parser("check-config", help="Validate the config file")
    check_parser.set_defaults(func=cmd_check_config)

    args = parser.parse_args()

    # Default to 'run' if no command specified
    if args.command is None:
        args.func = cmd_run

    setup_logging(args.verbose)

    sys.exit(args.func(args))

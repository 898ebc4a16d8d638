#!/usr/bin/env python3
"""
MIDI Key Daemon - Entry point.

Translates MIDI notes into keystrokes, mouse clicks and shell commands.
"""

from midi_keyd.cli import main

if __name__ == "__main__":
    main()

"""
MIDI key daemon.

Maps MIDI notes to synthetic keyboard/mouse input and shell commands.
"""

__version__ = "0.1.0"

"""
Keymap mini-language.

Turns a textual key description into a sequence of input actions. This
module knows nothing about MIDI or the input backend; see synth.py for
playback.

Grammar (whitespace separates items and is otherwise ignored)::

    description := item*
    item        := chord | group | pause | click | text
    chord       := (modifier "+")* key          ctrl+shift+t, enter, a
    group       := chord-of-modifiers "(" item* ")"
                                                shift(h e l l o)
    pause       := "pause:" milliseconds        pause:150
    click       := "click:" button              click:left
    text        := '"' chars '"'                "hello world"

A key is a named key (enter, f5, page_up, ...) or a single printable
character. The characters the grammar reserves are spelled plus, lparen,
rparen and quote.
"""

from dataclasses import dataclass
from functools import lru_cache
from typing import Union

from .errors import KeymapError

MODIFIERS = {
    "ctrl": "ctrl",
    "control": "ctrl",
    "shift": "shift",
    "alt": "alt",
    "option": "alt",
    "cmd": "cmd",
    "super": "cmd",
    "win": "cmd",
    "meta": "cmd",
}

NAMED_KEYS = {
    "enter": "enter",
    "return": "enter",
    "tab": "tab",
    "space": "space",
    "backspace": "backspace",
    "delete": "delete",
    "del": "delete",
    "esc": "esc",
    "escape": "esc",
    "up": "up",
    "down": "down",
    "left": "left",
    "right": "right",
    "home": "home",
    "end": "end",
    "page_up": "page_up",
    "pageup": "page_up",
    "page_down": "page_down",
    "pagedown": "page_down",
    "insert": "insert",
    "caps_lock": "caps_lock",
    "media_play_pause": "media_play_pause",
    "media_next": "media_next",
    "media_previous": "media_previous",
    "media_volume_up": "media_volume_up",
    "media_volume_down": "media_volume_down",
    "media_volume_mute": "media_volume_mute",
    **{f"f{n}": f"f{n}" for n in range(1, 21)},
}

CHAR_ALIASES = {
    "plus": "+",
    "lparen": "(",
    "rparen": ")",
    "quote": '"',
}

MOUSE_BUTTONS = ("left", "right", "middle")

_DELIMITERS = '()"'

MAX_GROUP_DEPTH = 16
MAX_PAUSE_MS = 10000


@dataclass(frozen=True)
class Tap:
    """Press and release one key."""
    key: str


@dataclass(frozen=True)
class Hold:
    """Hold modifiers down while performing nested actions."""
    modifiers: tuple[str, ...]
    actions: tuple["KeyAction", ...]


@dataclass(frozen=True)
class Pause:
    """Wait before the next action."""
    seconds: float


@dataclass(frozen=True)
class Click:
    """Click a mouse button."""
    button: str


@dataclass(frozen=True)
class TypeText:
    """Type a literal string."""
    text: str


KeyAction = Union[Tap, Hold, Pause, Click, TypeText]


@dataclass(frozen=True)
class _Token:
    kind: str  # word, open, close, text
    value: str
    position: int


def tokenize(description: str) -> list[_Token]:
    """Split a description into tokens, keeping source positions."""
    tokens: list[_Token] = []
    i = 0
    length = len(description)

    while i < length:
        ch = description[i]
        if ch.isspace():
            i += 1
        elif ch == "(":
            tokens.append(_Token("open", ch, i))
            i += 1
        elif ch == ")":
            tokens.append(_Token("close", ch, i))
            i += 1
        elif ch == '"':
            start = i
            i += 1
            chars = []
            while i < length and description[i] != '"':
                if description[i] == "\\" and i + 1 < length:
                    i += 1
                chars.append(description[i])
                i += 1
            if i >= length:
                raise KeymapError("Unterminated text", description[start:], start)
            tokens.append(_Token("text", "".join(chars), start))
            i += 1
        else:
            start = i
            while i < length and not description[i].isspace() and description[i] not in _DELIMITERS:
                i += 1
            tokens.append(_Token("word", description[start:i], start))

    return tokens


def _resolve_key(name: str, token: _Token) -> str:
    if len(name) == 1:
        return name
    lowered = name.lower()
    if lowered in MODIFIERS:
        return MODIFIERS[lowered]
    if lowered in NAMED_KEYS:
        return NAMED_KEYS[lowered]
    if lowered in CHAR_ALIASES:
        return CHAR_ALIASES[lowered]
    raise KeymapError("Unknown key", token.value, token.position)


def _resolve_modifier(name: str, token: _Token) -> str:
    modifier = MODIFIERS.get(name.lower())
    if modifier is None:
        raise KeymapError("Unknown modifier", token.value, token.position)
    return modifier


def _split_chord(token: _Token) -> list[str]:
    parts = token.value.split("+")
    if any(not part for part in parts):
        raise KeymapError("Empty key in chord", token.value, token.position)
    return parts


class _Parser:
    def __init__(self, tokens: list[_Token]):
        self.tokens = tokens
        self.index = 0
        self.depth = 0

    def peek(self) -> _Token | None:
        if self.index < len(self.tokens):
            return self.tokens[self.index]
        return None

    def next(self) -> _Token:
        token = self.tokens[self.index]
        self.index += 1
        return token

    def parse_items(self, closing: _Token | None = None) -> tuple[KeyAction, ...]:
        actions: list[KeyAction] = []
        while True:
            token = self.peek()
            if token is None:
                if closing is not None:
                    raise KeymapError("Unclosed group", closing.value, closing.position)
                return tuple(actions)
            if token.kind == "close":
                if closing is None:
                    raise KeymapError("Unexpected ')'", token.value, token.position)
                self.next()
                return tuple(actions)
            actions.append(self.parse_item())

    def parse_item(self) -> KeyAction:
        token = self.next()

        if token.kind == "text":
            return TypeText(token.value)
        if token.kind == "open":
            raise KeymapError("Group without modifier", token.value, token.position)

        lowered = token.value.lower()
        if lowered.startswith("pause:"):
            return self.parse_pause(token)
        if lowered.startswith("click:"):
            button = lowered[len("click:"):]
            if button not in MOUSE_BUTTONS:
                raise KeymapError("Unknown mouse button", token.value, token.position)
            return Click(button)

        parts = _split_chord(token)
        following = self.peek()
        if following is not None and following.kind == "open":
            opener = self.next()
            modifiers = tuple(_resolve_modifier(part, token) for part in parts)
            if self.depth >= MAX_GROUP_DEPTH:
                raise KeymapError("Groups nested too deeply", opener.value, opener.position)
            self.depth += 1
            actions = self.parse_items(closing=opener)
            self.depth -= 1
            return Hold(modifiers, actions)

        *mods, key = parts
        tap = Tap(_resolve_key(key, token))
        if not mods:
            return tap
        return Hold(tuple(_resolve_modifier(m, token) for m in mods), (tap,))

    def parse_pause(self, token: _Token) -> Pause:
        amount = token.value[len("pause:"):]
        if not (amount.isascii() and amount.isdigit()):
            raise KeymapError("Pause needs a whole number of milliseconds", token.value, token.position)
        milliseconds = int(amount)
        if milliseconds > MAX_PAUSE_MS:
            raise KeymapError(f"Pause longer than {MAX_PAUSE_MS} ms", token.value, token.position)
        return Pause(milliseconds / 1000.0)


@lru_cache(maxsize=256)
def evaluate(description: str) -> tuple[KeyAction, ...]:
    """
    Parse a keymap description into input actions.

    Args:
        description: The keymap text from a rule.

    Returns:
        Actions in playback order. Parsing is deterministic, so results
        are cached.

    Raises:
        KeymapError: With the offending token and its position.
    """
    return _Parser(tokenize(description)).parse_items()

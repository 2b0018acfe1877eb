"""Keyboard to remote-control key normalization.

Physical keys are identified by their W3C ``KeyboardEvent.code`` value
(``ArrowUp``, ``KeyA``, ``Digit8``...). A held modifier is folded into the
code as a ``Modifier+Code`` compound before the table lookup; anything the
table does not know is sent as a typed character so text entry on the device
keeps working.
"""
import sys
from types import MappingProxyType
from typing import Mapping
from urllib.parse import quote

from .models import Key, KeyEvent, KeyPhase, KeyStroke, LogicalCommand, Modifier

MODIFIER_PRECEDENCE = (Modifier.SHIFT, Modifier.CONTROL, Modifier.ALT, Modifier.META)

# encodeURIComponent leaves these unescaped
_URI_COMPONENT_SAFE = "-_.!~*'()"

_BASE_BINDINGS = {
    "ArrowUp": Key.UP,
    "ArrowDown": Key.DOWN,
    "ArrowLeft": Key.LEFT,
    "ArrowRight": Key.RIGHT,
    "Enter": Key.SELECT,
    "Escape": Key.BACK,
    "Delete": Key.BACK,
    "Home": Key.HOME,
    "Shift+Escape": Key.HOME,
    "Control+Escape": Key.HOME,
    "Backspace": Key.INSTANT_REPLAY,
    "End": Key.PLAY,
    "PageDown": Key.REWIND,
    "PageUp": Key.FORWARD,
    "Insert": Key.INFO,
    "Control+KeyA": Key.A,
    "Control+KeyZ": Key.B,
    "F10": Key.VOLUME_MUTE,
}

# Bound to Command on macOS and to Control elsewhere
_PRIMARY_BINDINGS = {
    "Backspace": Key.BACKSPACE,
    "Enter": Key.PLAY,
    "ArrowLeft": Key.REWIND,
    "ArrowRight": Key.FORWARD,
    "Digit8": Key.INFO,
}


def _build_table(primary: Modifier) -> Mapping[str, LogicalCommand]:
    table = {code: LogicalCommand.named(key) for code, key in _BASE_BINDINGS.items()}
    for code, key in _PRIMARY_BINDINGS.items():
        table[f"{primary.value}+{code}"] = LogicalCommand.named(key)
    return MappingProxyType(table)


MAC_KEYMAP = _build_table(Modifier.META)
DEFAULT_KEYMAP = _build_table(Modifier.CONTROL)


def keymap_for(platform: str) -> Mapping[str, LogicalCommand]:
    return MAC_KEYMAP if platform == "darwin" else DEFAULT_KEYMAP


ACTIVE_KEYMAP = keymap_for(sys.platform)


def compound_code(event: KeyEvent) -> str:
    """Prefix the code with the first active modifier in precedence order.

    A modifier key is never prefixed with itself, so pressing Shift alone
    yields ``ShiftLeft`` while Control+Shift yields ``Control+ShiftLeft``.
    """
    for modifier in MODIFIER_PRECEDENCE:
        if modifier in event.modifiers and not event.code.startswith(modifier.value):
            return f"{modifier.value}+{event.code}"
    return event.code


def literal_command(key: str | None) -> LogicalCommand | None:
    # Named keys ("Tab", "Shift", "Dead", "F5") carry no typed character
    if not key or len(key) != 1:
        return None
    return LogicalCommand.typed(quote(key, safe=_URI_COMPONENT_SAFE))


def normalize(event: KeyEvent, keymap: Mapping[str, LogicalCommand] | None = None) -> KeyStroke | None:
    if event.is_repeat and event.phase is KeyPhase.DOWN:
        return None

    table = ACTIVE_KEYMAP if keymap is None else keymap
    command = table.get(compound_code(event)) or literal_command(event.key)
    if command is None:
        return None
    return KeyStroke(command=command, phase=event.phase)

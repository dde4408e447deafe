"""USB HID boot-keyboard usage ids and key press tracking."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple

_log = logging.getLogger(__name__)


class KeyEventKind(Enum):
    NONE = "None"
    CHAR = "Char"
    UNKNOWN = "Unknown"
    ENTER = "Enter"


_SPECIAL_KEYS = {
    42: "\x08",
    44: " ",
    45: "-",
    51: ":",
    54: ",",
    55: ".",
    56: "/",
}


@dataclass(frozen=True)
class KeyEvent:
    """A decoded key: a character, Enter, nothing, or an unknown usage id."""

    kind: KeyEventKind
    value: object = None

    @classmethod
    def from_usb_key_id(cls, usage_id):
        if not 0 <= usage_id <= 0xFF:
            raise ValueError("USB key usage id must fit in a byte")
        if usage_id == 0:
            return cls(KeyEventKind.NONE)
        if 4 <= usage_id <= 29:
            return cls(KeyEventKind.CHAR, chr(ord("a") + usage_id - 4))
        if 30 <= usage_id <= 39:
            return cls(KeyEventKind.CHAR, chr(ord("0") + (usage_id + 1) % 10))
        if usage_id == 40:
            return cls(KeyEventKind.ENTER)
        if usage_id in _SPECIAL_KEYS:
            return cls(KeyEventKind.CHAR, _SPECIAL_KEYS[usage_id])
        return cls(KeyEventKind.UNKNOWN, usage_id)

    def to_char(self):
        """Return the character this key types, or None."""
        if self.kind is KeyEventKind.CHAR:
            return self.value
        if self.kind is KeyEventKind.ENTER:
            return "\n"
        return None

    def __repr__(self):
        if self.value is None:
            return self.kind.value
        return f"{self.kind.value}({self.value!r})"


class KeyChange(NamedTuple):
    usage_id: int
    event: KeyEvent
    is_down: bool


def key_changes(previous, report):
    """Compare a boot-protocol ``report`` with the ``previous`` set of pressed ids.

    Returns ``(pressed, changes)``: the ids pressed now and, in id order, a
    KeyChange for each key that went down or came up.
    """
    pressed = frozenset(usage_id for usage_id in bytes(report)[2:] if usage_id != 0)
    changes = []
    for usage_id in sorted(pressed.symmetric_difference(previous)):
        event = KeyEvent.from_usb_key_id(usage_id)
        is_down = usage_id in pressed
        _log.info(
            "usb_keyboard: key %s: %d = %r", "down" if is_down else "up  ", usage_id, event
        )
        changes.append(KeyChange(usage_id, event, is_down))
    return pressed, changes
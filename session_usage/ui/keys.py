"""Raw terminal input matching."""

import re
from enum import Enum
from typing import List, Tuple


class Key(Enum):
    """Keys the views react to, with every escape sequence that produces them."""
    ESCAPE = ("\x1b",)
    LEFT = ("\x1b[D", "\x1bOD")
    RIGHT = ("\x1b[C", "\x1bOC")

    @property
    def sequences(self) -> Tuple[str, ...]:
        return self.value


QUIT_KEYS = ("q", "Q")

# CSI and SS3 sequences first, then a lone escape or any single character.
_KEY_SEQUENCE = re.compile(r"\x1b\[[0-9;]*[~A-Za-z]|\x1bO[A-Za-z]|\x1b|.", re.DOTALL)


def split_keys(data: str) -> List[str]:
    """Split one terminal read into individual key sequences.

    A held key can arrive as several sequences in a single read, e.g.
    `"\\x1b[D\\x1b[D"`.
    """
    return _KEY_SEQUENCE.findall(data)


def matches_key(data: str, key: Key) -> bool:
    return data in key.sequences

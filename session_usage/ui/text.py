"""
Width-aware helpers for lines that contain ANSI escape codes.

Widths are measured in terminal cells, so wide characters count double and
escape codes count as nothing.
"""

import re
from typing import List

from rich.cells import cell_len, get_character_cell_size

ANSI_RE = re.compile(r"\x1b\[[0-9;?]*[A-Za-z]")
RESET = "\x1b[0m"


def strip_ansi(text: str) -> str:
    return ANSI_RE.sub("", text)


def visible_width(text: str) -> int:
    """Cells `text` occupies on screen."""
    return cell_len(strip_ansi(text))


def _tokens(text: str) -> List[str]:
    """Split into escape sequences and single characters."""
    tokens = []
    pos = 0
    for match in ANSI_RE.finditer(text):
        tokens.extend(text[pos:match.start()])
        tokens.append(match.group(0))
        pos = match.end()
    tokens.extend(text[pos:])
    return tokens


def truncate_to_width(text: str, width: int, ellipsis: str = "…") -> str:
    """Cut `text` to at most `width` cells, keeping its escape codes.

    When anything is cut the ellipsis is appended (it counts toward the
    width), followed by a reset if the text was styled.
    """
    if width <= 0:
        return ""
    if visible_width(text) <= width:
        return text

    budget = width - cell_len(ellipsis)
    if budget < 0:
        ellipsis, budget = "", width

    out = []
    used = 0
    styled = False
    for token in _tokens(text):
        if ANSI_RE.fullmatch(token):
            out.append(token)
            styled = True
            continue
        size = get_character_cell_size(token)
        if used + size > budget:
            break
        out.append(token)
        used += size

    result = "".join(out) + ellipsis
    return result + RESET if styled else result

"""
Truecolor theme for terminal output.
"""

from typing import Dict, Optional

from ..config.loader import ThemeConfig
from ..core.colors import RGB

DEFAULT_BG_ANSI = "\x1b[49m"


class AnsiTheme:
    """Themed coloring backed by 24-bit ANSI escape codes.

    Unknown foreground roles render the text unstyled; a background role
    without a color renders with the terminal's default background.
    """

    def __init__(self, config: Optional[ThemeConfig] = None):
        config = config or ThemeConfig()
        self._foregrounds: Dict[str, RGB] = dict(config.foregrounds)
        self._backgrounds: Dict[str, Optional[RGB]] = dict(config.backgrounds)

    def fg(self, role: str, text: str) -> str:
        color = self._foregrounds.get(role)
        if color is None:
            return text
        return f"\x1b[38;2;{color.r};{color.g};{color.b}m{text}\x1b[39m"

    def bold(self, text: str) -> str:
        return f"\x1b[1m{text}\x1b[22m"

    def bg(self, role: str, text: str) -> str:
        return f"{self.get_bg_ansi(role)}{text}{DEFAULT_BG_ANSI}"

    def get_bg_ansi(self, role: str) -> str:
        color = self._backgrounds.get(role)
        if color is None:
            return DEFAULT_BG_ANSI
        return f"\x1b[48;2;{color.r};{color.g};{color.b}m"

"""
Color engine for the usage calendar.

Blends per-day model colors in the OkLab perceptual space so mixed days keep
their hue instead of collapsing toward gray, scales brightness by activity,
and extracts the terminal background color from the theme or environment.
"""

import math
import re
from dataclasses import dataclass
from typing import List, Mapping, NamedTuple, Optional, Sequence, Union


class RGB(NamedTuple):
    """8-bit sRGB color."""
    r: int
    g: int
    b: int


class OkLab(NamedTuple):
    """Color in the OkLab space: lightness plus two chroma axes."""
    L: float
    a: float
    b: float


DEFAULT_BG = RGB(30, 30, 46)

DOMINANT_TINT = 0.2
ACCENT_TINT = 0.1
ACCENT_THRESHOLD = 0.12
PURE_DOMINANCE = 0.80
TINTED_DOMINANCE = 0.65
MIN_VISIBLE = 0.2


def clamp01(x: float) -> float:
    return max(0.0, min(1.0, x))


def _lerp(a: float, b: float, t: float) -> float:
    return a + (b - a) * t


def _round(x: float) -> int:
    """Round half up, matching terminal color conventions."""
    return int(math.floor(x + 0.5))


def _cbrt(x: float) -> float:
    return math.copysign(abs(x) ** (1.0 / 3.0), x)


def mix_rgb(background: RGB, foreground: RGB, t: float) -> RGB:
    """Linear RGB mix; t=0 is the background, t=1 the foreground."""
    alpha = clamp01(t)
    return RGB(
        _round(_lerp(background.r, foreground.r, alpha)),
        _round(_lerp(background.g, foreground.g, alpha)),
        _round(_lerp(background.b, foreground.b, alpha)),
    )


def _linearize(c: float) -> float:
    return c / 12.92 if c <= 0.04045 else ((c + 0.055) / 1.055) ** 2.4


def _delinearize(c: float) -> float:
    if c <= 0.0031308:
        return 12.92 * c
    return 1.055 * c ** (1 / 2.4) - 0.055


def rgb_to_oklab(rgb: RGB) -> OkLab:
    r = _linearize(rgb.r / 255)
    g = _linearize(rgb.g / 255)
    b = _linearize(rgb.b / 255)

    l = 0.4122214708 * r + 0.5363325363 * g + 0.0514459929 * b  # noqa: E741
    m = 0.2119034982 * r + 0.6806995451 * g + 0.1073969566 * b
    s = 0.0883024619 * r + 0.2164757980 * g + 0.6952217402 * b

    lc, mc, sc = _cbrt(l), _cbrt(m), _cbrt(s)

    return OkLab(
        0.2104542553 * lc + 0.7936177850 * mc - 0.0040720468 * sc,
        1.9779984951 * lc - 2.4285922050 * mc + 0.4505937099 * sc,
        0.0259040371 * lc + 0.7827717662 * mc - 0.8086757660 * sc,
    )


def oklab_to_rgb(lab: OkLab) -> RGB:
    lc = lab.L + 0.3963377774 * lab.a + 0.2158037573 * lab.b
    mc = lab.L - 0.1055613458 * lab.a - 0.0638541728 * lab.b
    sc = lab.L - 0.0894841775 * lab.a - 1.2914855480 * lab.b

    l, m, s = lc ** 3, mc ** 3, sc ** 3  # noqa: E741

    def channel(value: float) -> int:
        return _round(clamp01(_delinearize(value)) * 255)

    return RGB(
        channel(+4.0767416621 * l - 3.3077115913 * m + 0.2309699292 * s),
        channel(-1.2684380046 * l + 2.6097574011 * m - 0.3413193965 * s),
        channel(-0.0041960863 * l - 0.7034186147 * m + 1.7076147010 * s),
    )


def mix_oklab(a: OkLab, b: OkLab, t: float) -> OkLab:
    alpha = clamp01(t)
    return OkLab(_lerp(a.L, b.L, alpha), _lerp(a.a, b.a, alpha), _lerp(a.b, b.b, alpha))


# --- Day blending ---


class BlendEntry(NamedTuple):
    """A category color active on a day, weighted by its message count."""
    color: RGB
    weight: float


@dataclass(frozen=True)
class PureBlend:
    color: RGB


@dataclass(frozen=True)
class DominantBlend:
    primary: RGB
    tint: RGB


@dataclass(frozen=True)
class BalancedBlend:
    first: RGB
    second: RGB
    ratio: float
    accent: Optional[RGB] = None


DayBlend = Union[PureBlend, DominantBlend, BalancedBlend]


def classify_day_blend(entries: Sequence[BlendEntry], fallback: RGB) -> DayBlend:
    """Decide how a day's category colors should be combined.

    Entries are ranked by weight (stable, so ties keep their given order).
    The top entry's share of the top two picks the blend: >= 0.80 pure,
    >= 0.65 dominant with a tint, otherwise balanced. A balanced blend gets
    an accent when the third entry holds at least 12% of the top three.

    Args:
        entries: Colors with their weights, in any order
        fallback: Color used when no entry has a positive weight

    Returns:
        One of PureBlend, DominantBlend or BalancedBlend
    """
    ranked = sorted((e for e in entries if e.weight > 0), key=lambda e: e.weight, reverse=True)

    if not ranked:
        return PureBlend(fallback)

    first = ranked[0]
    if len(ranked) == 1:
        return PureBlend(first.color)

    second = ranked[1]
    dominance = first.weight / (first.weight + second.weight)

    if dominance >= PURE_DOMINANCE:
        return PureBlend(first.color)
    if dominance >= TINTED_DOMINANCE:
        return DominantBlend(first.color, second.color)

    accent = None
    if len(ranked) >= 3:
        third = ranked[2]
        total = first.weight + second.weight + third.weight
        if third.weight / total >= ACCENT_THRESHOLD:
            accent = third.color

    ratio = second.weight / (first.weight + second.weight)
    return BalancedBlend(first.color, second.color, ratio, accent)


def blend_day_color(blend: DayBlend) -> RGB:
    """Produce the representative hue for a classified day."""
    if isinstance(blend, PureBlend):
        return blend.color

    if isinstance(blend, DominantBlend):
        mixed = mix_oklab(rgb_to_oklab(blend.primary), rgb_to_oklab(blend.tint), DOMINANT_TINT)
        return oklab_to_rgb(mixed)

    if isinstance(blend, BalancedBlend):
        mixed = mix_oklab(rgb_to_oklab(blend.first), rgb_to_oklab(blend.second), blend.ratio)
        if blend.accent is not None:
            mixed = mix_oklab(mixed, rgb_to_oklab(blend.accent), ACCENT_TINT)
        return oklab_to_rgb(mixed)

    raise TypeError(f"Unknown blend: {blend!r}")


def day_intensity(value: float, max_value: float, min_visible: float = MIN_VISIBLE) -> float:
    """Logarithmic brightness for a day, floored at `min_visible`."""
    denom = math.log1p(max(0.0, max_value))
    scaled = math.log1p(value) / denom if denom > 0 else 0.0
    return min_visible + (1 - min_visible) * clamp01(scaled)


def shade_day(background: RGB, hue: RGB, value: float, max_value: float) -> RGB:
    """Final cell color: the hue faded into the background by activity."""
    return mix_rgb(background, hue, day_intensity(value, max_value))


# --- Terminal colors ---

_ANSI16_RGB: List[RGB] = [
    RGB(0, 0, 0),
    RGB(205, 0, 0),
    RGB(0, 205, 0),
    RGB(205, 205, 0),
    RGB(0, 0, 238),
    RGB(205, 0, 205),
    RGB(0, 205, 205),
    RGB(229, 229, 229),
    RGB(127, 127, 127),
    RGB(255, 0, 0),
    RGB(0, 255, 0),
    RGB(255, 255, 0),
    RGB(92, 92, 255),
    RGB(255, 0, 255),
    RGB(0, 255, 255),
    RGB(255, 255, 255),
]

_TRUECOLOR_BG = re.compile(r"\x1b\[48;2;(\d+);(\d+);(\d+)m")
_XTERM_BG = re.compile(r"\x1b\[48;5;(\d+)m")


def xterm256_to_rgb(index: int) -> RGB:
    """Approximate RGB for an xterm 256-color palette index."""
    if 0 <= index <= 15:
        return _ANSI16_RGB[index]

    if 16 <= index <= 231:
        cube = index - 16
        r6, g6, b6 = cube // 36, (cube % 36) // 6, cube % 6

        def component(value: int) -> int:
            return 0 if value == 0 else 55 + value * 40

        return RGB(component(r6), component(g6), component(b6))

    if 232 <= index <= 255:
        gray = 8 + (index - 232) * 10
        return RGB(gray, gray, gray)

    return RGB(0, 0, 0)


def parse_bg_ansi_rgb(bg_ansi: str) -> Optional[RGB]:
    """Read the color out of a background escape sequence, if it has one."""
    match = _TRUECOLOR_BG.search(bg_ansi)
    if match:
        return RGB(int(match.group(1)), int(match.group(2)), int(match.group(3)))

    match = _XTERM_BG.search(bg_ansi)
    if match:
        return xterm256_to_rgb(int(match.group(1)))

    return None


def parse_colorfgbg_background(value: Optional[str]) -> Optional[RGB]:
    """Background color from a `COLORFGBG` value such as `15;0` or `7;default;0`."""
    if not value:
        return None

    numbers = []
    for part in value.split(";"):
        try:
            numbers.append(int(part))
        except ValueError:
            continue
    if not numbers:
        return None

    bg = numbers[-1]
    if bg < 0 or bg > 255:
        return None
    return xterm256_to_rgb(bg)


def resolve_background(theme, environ: Mapping[str, str], role: str = "tool_pending_bg") -> RGB:
    """Calendar background: theme role, then `COLORFGBG`, then the default."""
    from_theme = parse_bg_ansi_rgb(theme.get_bg_ansi(role))
    if from_theme is not None:
        return from_theme

    from_env = parse_colorfgbg_background(environ.get("COLORFGBG"))
    if from_env is not None:
        return from_env

    return DEFAULT_BG


def colorize_rgb(rgb: RGB, text: str) -> str:
    return f"\x1b[38;2;{rgb.r};{rgb.g};{rgb.b}m{text}\x1b[39m"


def _bg_ansi_to_fg_ansi(bg_ansi: str) -> str:
    if bg_ansi == "\x1b[49m":
        return "\x1b[39m"
    return bg_ansi.replace("\x1b[48;", "\x1b[38;")


def colorize_with_theme_bg(theme, role: str, text: str) -> str:
    """Draw `text` in the color of a theme background role."""
    return f"{_bg_ansi_to_fg_ansi(theme.get_bg_ansi(role))}{text}\x1b[39m"

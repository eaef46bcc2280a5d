"""
Unit tests for the color engine.

Tests OkLab conversion, day blend classification, brightness scaling and
terminal background extraction.
"""

from session_usage.core.colors import (
    DEFAULT_BG,
    RGB,
    BalancedBlend,
    BlendEntry,
    DominantBlend,
    PureBlend,
    blend_day_color,
    classify_day_blend,
    colorize_with_theme_bg,
    day_intensity,
    mix_rgb,
    oklab_to_rgb,
    parse_bg_ansi_rgb,
    parse_colorfgbg_background,
    resolve_background,
    rgb_to_oklab,
    xterm256_to_rgb,
)

RED = RGB(255, 0, 0)
BLUE = RGB(0, 0, 255)
GREEN = RGB(0, 255, 0)
GRAY = RGB(160, 160, 160)


def _assert_close(actual: RGB, expected: RGB, tolerance: int = 1):
    for a, e in zip(actual, expected):
        assert abs(a - e) <= tolerance, f"{actual} vs {expected}"


class _BgTheme:
    """Theme stub exposing only background lookups."""

    def __init__(self, bg_ansi: str):
        self.bg_ansi = bg_ansi

    def get_bg_ansi(self, role: str) -> str:
        return self.bg_ansi


class TestOkLab:
    """Test RGB <-> OkLab conversion."""

    def test_round_trip_vendor_colors(self):
        """Verify palette colors survive a round trip within tolerance."""
        for rgb in [
            RGB(250, 179, 135),
            RGB(137, 180, 250),
            RGB(148, 226, 213),
            RGB(249, 226, 175),
            RGB(243, 139, 168),
            RGB(160, 160, 160),
        ]:
            _assert_close(oklab_to_rgb(rgb_to_oklab(rgb)), rgb, 8)

    def test_round_trip_neutrals(self):
        """Verify black, mid gray and white round-trip closely."""
        for rgb in [RGB(0, 0, 0), RGB(128, 128, 128), RGB(255, 255, 255)]:
            _assert_close(oklab_to_rgb(rgb_to_oklab(rgb)), rgb)


class TestClassifyDayBlend:
    """Test blend classification thresholds."""

    def test_no_entries_is_pure_fallback(self):
        """Verify empty days use the fallback color."""
        assert classify_day_blend([], GRAY) == PureBlend(GRAY)

    def test_zero_weights_are_ignored(self):
        """Verify non-positive weights don't count."""
        assert classify_day_blend([BlendEntry(RED, 0)], GRAY) == PureBlend(GRAY)

    def test_single_entry_is_pure(self):
        """Verify one model gives its own color."""
        assert classify_day_blend([BlendEntry(RED, 10)], GRAY) == PureBlend(RED)

    def test_high_dominance_is_pure(self):
        """Verify dominance >= 0.80 is pure."""
        blend = classify_day_blend([BlendEntry(RED, 85), BlendEntry(BLUE, 15)], GRAY)
        assert blend == PureBlend(RED)

    def test_dominance_at_threshold_is_pure(self):
        """Verify exactly 0.80 dominance counts as pure."""
        blend = classify_day_blend([BlendEntry(RED, 80), BlendEntry(BLUE, 20)], GRAY)
        assert isinstance(blend, PureBlend)

    def test_medium_dominance_is_dominant(self):
        """Verify dominance in [0.65, 0.80) tints the primary."""
        blend = classify_day_blend([BlendEntry(RED, 70), BlendEntry(BLUE, 30)], GRAY)
        assert blend == DominantBlend(RED, BLUE)

    def test_low_dominance_is_balanced(self):
        """Verify dominance below 0.65 is balanced without accent."""
        blend = classify_day_blend([BlendEntry(RED, 55), BlendEntry(BLUE, 45)], GRAY)
        assert isinstance(blend, BalancedBlend)
        assert blend.first == RED
        assert blend.second == BLUE
        assert blend.accent is None
        assert abs(blend.ratio - 0.45) < 1e-9

    def test_significant_third_adds_accent(self):
        """Verify a third entry with >= 12% share becomes the accent."""
        blend = classify_day_blend(
            [BlendEntry(RED, 40), BlendEntry(BLUE, 35), BlendEntry(GREEN, 15)], GRAY
        )
        assert isinstance(blend, BalancedBlend)
        assert blend.accent == GREEN

    def test_insignificant_third_has_no_accent(self):
        """Verify a small third entry is ignored."""
        blend = classify_day_blend(
            [BlendEntry(RED, 50), BlendEntry(BLUE, 45), BlendEntry(GREEN, 5)], GRAY
        )
        assert isinstance(blend, BalancedBlend)
        assert blend.accent is None

    def test_entries_need_not_be_sorted(self):
        """Verify classification ranks entries itself."""
        blend = classify_day_blend([BlendEntry(BLUE, 30), BlendEntry(RED, 70)], GRAY)
        assert blend == DominantBlend(RED, BLUE)

    def test_ties_keep_input_order(self):
        """Verify equal weights rank in the order given."""
        blend = classify_day_blend([BlendEntry(BLUE, 50), BlendEntry(RED, 50)], GRAY)
        assert isinstance(blend, BalancedBlend)
        assert blend.first == BLUE
        assert blend.second == RED


class TestBlendDayColor:
    """Test representative hue production."""

    def test_pure_returns_color(self):
        """Verify pure blends are unchanged."""
        color = RGB(250, 179, 135)
        assert blend_day_color(PureBlend(color)) == color

    def test_dominant_shifts_toward_tint(self):
        """Verify tint moves the primary a little."""
        primary = RGB(250, 179, 135)
        tint = RGB(137, 180, 250)
        result = blend_day_color(DominantBlend(primary, tint))
        assert result.r < primary.r
        assert result.b > primary.b
        assert result.r > (primary.r + tint.r) / 2

    def test_balanced_yellow_blue_stays_chromatic(self):
        """Verify a 50/50 yellow and blue mix is not gray."""
        result = blend_day_color(BalancedBlend(RGB(255, 255, 0), RGB(0, 0, 255), 0.5))
        spread = abs(result.r - result.g) + abs(result.g - result.b) + abs(result.r - result.b)
        assert spread > 30


class TestIntensity:
    """Test brightness scaling."""

    def test_zero_max_gives_floor(self):
        """Verify an all-empty window gives minimum visibility."""
        assert day_intensity(0, 0) == 0.2

    def test_max_value_gives_full(self):
        """Verify the busiest day is full brightness."""
        assert abs(day_intensity(50, 50) - 1.0) < 1e-9

    def test_monotonic(self):
        """Verify more messages are never dimmer."""
        values = [day_intensity(v, 100) for v in [0, 1, 5, 20, 100]]
        assert values == sorted(values)
        assert all(0.2 <= v <= 1.0 for v in values)

    def test_mix_rgb_endpoints(self):
        """Verify mix endpoints are the inputs."""
        assert mix_rgb(DEFAULT_BG, RED, 0) == DEFAULT_BG
        assert mix_rgb(DEFAULT_BG, RED, 1) == RED
        assert mix_rgb(DEFAULT_BG, RED, 5) == RED


class TestTerminalColors:
    """Test background color extraction."""

    def test_xterm_palette(self):
        """Verify ANSI, cube and grayscale ranges."""
        assert xterm256_to_rgb(1) == RGB(205, 0, 0)
        assert xterm256_to_rgb(16) == RGB(0, 0, 0)
        assert xterm256_to_rgb(231) == RGB(255, 255, 255)
        assert xterm256_to_rgb(232) == RGB(8, 8, 8)
        assert xterm256_to_rgb(300) == RGB(0, 0, 0)

    def test_parse_bg_ansi(self):
        """Verify truecolor and 256-color escapes are read."""
        assert parse_bg_ansi_rgb("\x1b[48;2;10;20;30m") == RGB(10, 20, 30)
        assert parse_bg_ansi_rgb("\x1b[48;5;232m") == RGB(8, 8, 8)
        assert parse_bg_ansi_rgb("\x1b[49m") is None

    def test_parse_colorfgbg(self):
        """Verify the last numeric field is the background."""
        assert parse_colorfgbg_background("15;0") == RGB(0, 0, 0)
        assert parse_colorfgbg_background("7;default;15") == RGB(255, 255, 255)
        assert parse_colorfgbg_background("default") is None
        assert parse_colorfgbg_background(None) is None
        assert parse_colorfgbg_background("0;999") is None

    def test_resolve_background_prefers_theme(self):
        """Verify theme background wins over the environment."""
        theme = _BgTheme("\x1b[48;2;1;2;3m")
        assert resolve_background(theme, {"COLORFGBG": "15;0"}) == RGB(1, 2, 3)

    def test_resolve_background_falls_back(self):
        """Verify environment, then default background."""
        theme = _BgTheme("\x1b[49m")
        assert resolve_background(theme, {"COLORFGBG": "0;15"}) == RGB(255, 255, 255)
        assert resolve_background(theme, {}) == DEFAULT_BG

    def test_colorize_with_theme_bg(self):
        """Verify background escapes are reused as foreground."""
        assert colorize_with_theme_bg(_BgTheme("\x1b[48;2;1;2;3m"), "r", "■") == "\x1b[38;2;1;2;3m■\x1b[39m"
        assert colorize_with_theme_bg(_BgTheme("\x1b[49m"), "r", "■") == "\x1b[39m■\x1b[39m"

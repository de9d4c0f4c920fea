"""
Unit tests for color format conversions.
"""

import pytest

from palettekit.services.colors.errors import ConfigurationError
from palettekit.services.colors.formats import (
    format_color, hex_to_rgb, rgb_to_css, rgb_to_hex, rgb_to_hsl, rgb_to_hsl_string
)


class TestRgbToHex:
    """Test RGB to hex conversion"""

    def test_rgb_to_hex_basic_colors(self):
        assert rgb_to_hex([255, 0, 0]) == "#ff0000"
        assert rgb_to_hex([0, 255, 0]) == "#00ff00"
        assert rgb_to_hex([0, 0, 255]) == "#0000ff"
        assert rgb_to_hex([0, 0, 0]) == "#000000"
        assert rgb_to_hex([255, 255, 255]) == "#ffffff"

    def test_rgb_to_hex_zero_pads(self):
        assert rgb_to_hex((10, 42, 67)) == "#0a2a43"
        assert rgb_to_hex((1, 2, 3)) == "#010203"

    def test_rgb_to_hex_clamps_and_rounds(self):
        assert rgb_to_hex([300, -5, 12.6]) == "#ff000d"

    def test_rgb_to_hex_rejects_short_input(self):
        with pytest.raises(ConfigurationError):
            rgb_to_hex([1, 2])


class TestHexToRgb:
    """Test hex parsing"""

    def test_hex_to_rgb_six_digits(self):
        assert hex_to_rgb("#1F4E79") == (31, 78, 121)
        assert hex_to_rgb("d3b58f") == (211, 181, 143)

    def test_hex_to_rgb_three_digits(self):
        assert hex_to_rgb("#abc") == (170, 187, 204)

    @pytest.mark.parametrize("value", ["#12345", "#gggggg", "", "rgb(1,2,3)"])
    def test_hex_to_rgb_invalid(self, value):
        with pytest.raises(ConfigurationError):
            hex_to_rgb(value)

    def test_hex_round_trip_preserves_hsl(self):
        """Hex encoding is lossless for 8-bit channels"""
        for color in [(255, 0, 0), (31, 78, 121), (128, 128, 128), (7, 250, 99), (0, 0, 1)]:
            assert hex_to_rgb(rgb_to_hex(color)) == color
            assert rgb_to_hsl(hex_to_rgb(rgb_to_hex(color))) == rgb_to_hsl(color)


class TestRgbToHsl:
    """Test RGB to HSL conversion"""

    def test_primary_colors(self):
        assert list(rgb_to_hsl([255, 0, 0])) == [0, 100, 50]
        assert rgb_to_hsl([0, 255, 0]) == (120, 100, 50)
        assert rgb_to_hsl([0, 0, 255]) == (240, 100, 50)

    def test_achromatic_colors(self):
        assert rgb_to_hsl([0, 0, 0]) == (0, 0, 0)
        assert rgb_to_hsl([255, 255, 255]) == (0, 0, 100)
        assert rgb_to_hsl([128, 128, 128]) == (0, 0, 50)

    def test_hue_wraps_below_360(self):
        """A hue that rounds up to 360 degrees is reported as 0"""
        h, s, l = rgb_to_hsl([255, 0, 1])
        assert h == 0
        assert (s, l) == (100, 50)

    def test_light_color_saturation_branch(self):
        # l > 0.5 uses d / (2 - max - min)
        assert rgb_to_hsl([255, 128, 128]) == (0, 100, 75)

    def test_hsl_string(self):
        assert rgb_to_hsl_string([255, 0, 0]) == "hsl(0, 100%, 50%)"


class TestCssAndFormatSelection:
    """Test CSS notation and format selector"""

    def test_rgb_to_css(self):
        assert rgb_to_css([1, 2, 3]) == "rgb(1, 2, 3)"

    def test_format_color(self):
        color = (255, 0, 0)
        assert format_color(color, "hex") == "#ff0000"
        assert format_color(color, "rgb") == "rgb(255, 0, 0)"
        assert format_color(color, "hsl") == "hsl(0, 100%, 50%)"

    def test_format_color_unknown(self):
        with pytest.raises(ConfigurationError):
            format_color((0, 0, 0), "cmyk")

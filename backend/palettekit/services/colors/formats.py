"""
Color format conversions for palette output.

Converts RGB triples to hex, CSS rgb() and HSL representations.
"""

import math
import re
from typing import Sequence, Tuple

from .errors import ConfigurationError

COLOR_FORMATS = ("hex", "rgb", "hsl")

_HEX_RE = re.compile(r"^#?([0-9A-Fa-f]{3}|[0-9A-Fa-f]{6})$")


def _round(value: float) -> int:
    """Round halves up, matching browser Math.round."""
    return int(math.floor(value + 0.5))


def _channels(rgb: Sequence[float]) -> Tuple[float, float, float]:
    if rgb is None or len(rgb) < 3:
        raise ConfigurationError(f"Invalid RGB value: {rgb!r}")
    return float(rgb[0]), float(rgb[1]), float(rgb[2])


def _clamp_byte(value: float) -> int:
    return max(0, min(255, _round(value)))


def rgb_to_hex(rgb: Sequence[float]) -> str:
    """Convert an RGB triple to a lowercase ``#rrggbb`` string."""
    r, g, b = (_clamp_byte(c) for c in _channels(rgb))
    return f"#{r:02x}{g:02x}{b:02x}"


def hex_to_rgb(hex_color: str) -> Tuple[int, int, int]:
    """Convert ``#rrggbb`` (or ``#rgb``, ``#`` optional) to an RGB tuple."""
    match = _HEX_RE.match(hex_color.strip()) if isinstance(hex_color, str) else None
    if not match:
        raise ConfigurationError(f"Invalid hex color: {hex_color!r}")

    digits = match.group(1)
    if len(digits) == 3:
        digits = "".join(ch * 2 for ch in digits)
    return tuple(int(digits[i:i+2], 16) for i in (0, 2, 4))


def rgb_to_css(rgb: Sequence[float]) -> str:
    """CSS decimal notation, e.g. ``rgb(255, 0, 0)``."""
    r, g, b = (_clamp_byte(c) for c in _channels(rgb))
    return f"rgb({r}, {g}, {b})"


def rgb_to_hsl(rgb: Sequence[float]) -> Tuple[int, int, int]:
    """
    Convert an RGB triple to HSL.

    Returns:
        (hue in degrees [0, 360), saturation percent, lightness percent),
        each rounded to the nearest integer
    """
    r, g, b = (c / 255.0 for c in _channels(rgb))

    mx = max(r, g, b)
    mn = min(r, g, b)
    h = s = 0.0
    l = (mx + mn) / 2

    if mx != mn:
        d = mx - mn
        s = d / (2 - mx - mn) if l > 0.5 else d / (mx + mn)

        if mx == r:
            h = (g - b) / d + (6 if g < b else 0)
        elif mx == g:
            h = (b - r) / d + 2
        else:
            h = (r - g) / d + 4
        h /= 6

    return _round(h * 360) % 360, _round(s * 100), _round(l * 100)


def rgb_to_hsl_string(rgb: Sequence[float]) -> str:
    """CSS HSL notation, e.g. ``hsl(0, 100%, 50%)``."""
    h, s, l = rgb_to_hsl(rgb)
    return f"hsl({h}, {s}%, {l}%)"


def format_color(rgb: Sequence[float], fmt: str = "hex") -> str:
    """Render a color in one of ``COLOR_FORMATS``."""
    if fmt == "hex":
        return rgb_to_hex(rgb)
    if fmt == "rgb":
        return rgb_to_css(rgb)
    if fmt == "hsl":
        return rgb_to_hsl_string(rgb)
    raise ConfigurationError(f"Unknown color format {fmt!r}; expected one of {COLOR_FORMATS}")

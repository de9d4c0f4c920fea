"""
Palette export documents.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from .formats import rgb_to_hex, rgb_to_hsl


def export_filename(extension: str, now: Optional[datetime] = None) -> str:
    """Download name such as ``palette_2024-05-01T12-30-00.json``."""
    now = now or datetime.now(timezone.utc)
    stamp = now.strftime("%Y-%m-%dT%H-%M-%S")
    return f"palette_{stamp}.{extension.lstrip('.')}"


def build_palette_export(colors: List[Sequence[int]],
                         now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    JSON export of a palette.

    Each color carries its hex code plus RGB and HSL components, e.g.
    ``{"hex": "#ff0000", "rgb": {"r": 255, "g": 0, "b": 0},
    "hsl": {"h": 0, "s": 100, "l": 50}}``.
    """
    now = now or datetime.now(timezone.utc)
    entries = []
    for color in colors:
        r, g, b = (int(c) for c in color[:3])
        h, s, l = rgb_to_hsl(color)
        entries.append({
            "hex": rgb_to_hex(color),
            "rgb": {"r": r, "g": g, "b": b},
            "hsl": {"h": h, "s": s, "l": l}
        })

    return {
        "colors": entries,
        "count": len(entries),
        "timestamp": now.isoformat().replace("+00:00", "Z")
    }

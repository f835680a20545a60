"""
Module: colors

Purpose: Color schemes and interpolation for color-encoding scales.

Architecture Notes:
- Categorical schemes come from seaborn palettes, plus the Tableau10 list
- Color parsing, interpolation and sequential colormaps use matplotlib
- Everything is returned as lowercase hex strings for SVG output
"""

import matplotlib
import numpy as np
import seaborn as sns
from matplotlib.colors import to_hex, to_rgb

DEFAULT_SCHEME = "Dark2"

# Palettes seaborn does not ship, by name
NAMED_SCHEMES = {
    "tableau10": [
        "#4e79a7", "#f28e2c", "#e15759", "#76b7b2", "#59a14f",
        "#edc949", "#af7aa1", "#ff9da7", "#9c755f", "#bab0ab",
    ],
}


def is_color(value: object) -> bool:
    """True if matplotlib can parse the value as a color."""
    if not isinstance(value, str):
        return False
    try:
        to_rgb(value)
    except ValueError:
        return False
    return True


def scheme(name: str = DEFAULT_SCHEME, n: int | None = None) -> list[str]:
    """
    Get a categorical color scheme as hex strings.

    Args:
        name: Palette name ("Dark2", "Set2", "tab10", "tableau10", ...)
        n: Number of colors. Defaults to the palette's natural size.

    Returns:
        List of hex colors
    """
    palette = sns.color_palette(NAMED_SCHEMES.get(name, name), n)
    return [to_hex(c) for c in palette]


def interpolate_color(a: str, b: str, t: float) -> str:
    """Linear RGB interpolation between two colors; t is clamped to [0, 1]."""
    t = min(1.0, max(0.0, t))
    ra = np.array(to_rgb(a))
    rb = np.array(to_rgb(b))
    return to_hex(ra + (rb - ra) * t)


def piecewise_color(colors: list[str], t: float) -> str:
    """Interpolate along several color stops evenly spaced over [0, 1]."""
    if len(colors) == 1:
        return to_hex(colors[0])
    t = min(1.0, max(0.0, t))
    segments = len(colors) - 1
    i = min(int(t * segments), segments - 1)
    return interpolate_color(colors[i], colors[i + 1], t * segments - i)


def sequential(name: str, t: float) -> str:
    """Sample a matplotlib colormap (e.g. "viridis") at t in [0, 1]."""
    cmap = matplotlib.colormaps[name]
    return to_hex(cmap(min(1.0, max(0.0, t))))

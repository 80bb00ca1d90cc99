"""Tailwind gradient palettes for automatic goal coloring."""

from typing import Dict, List, Union

from app.libs.models import ColorPattern

COLOR_PALETTES: Dict[ColorPattern, List[str]] = {
    ColorPattern.MONOCHROME: [
        "from-indigo-400 to-indigo-600",
        "from-indigo-500 to-indigo-700",
        "from-indigo-300 to-indigo-500",
        "from-violet-400 to-violet-600",
        "from-violet-500 to-violet-700",
        "from-purple-400 to-purple-600",
    ],
    ColorPattern.COMPLEMENTARY: [
        "from-rose-400 to-rose-600",
        "from-cyan-400 to-cyan-600",
        "from-amber-400 to-amber-600",
        "from-indigo-400 to-indigo-600",
        "from-emerald-400 to-emerald-600",
        "from-violet-400 to-violet-600",
    ],
    ColorPattern.RAINBOW: [
        "from-red-400 to-red-600",
        "from-orange-400 to-orange-600",
        "from-yellow-400 to-yellow-600",
        "from-green-400 to-green-600",
        "from-blue-400 to-blue-600",
        "from-purple-400 to-purple-600",
    ],
    ColorPattern.WARM: [
        "from-rose-400 to-rose-600",
        "from-orange-400 to-orange-600",
        "from-amber-400 to-amber-600",
        "from-red-400 to-red-600",
        "from-pink-400 to-pink-600",
        "from-yellow-400 to-yellow-600",
    ],
    ColorPattern.COOL: [
        "from-cyan-400 to-cyan-600",
        "from-blue-400 to-blue-600",
        "from-indigo-400 to-indigo-600",
        "from-teal-400 to-teal-600",
        "from-sky-400 to-sky-600",
        "from-violet-400 to-violet-600",
    ],
}

PATTERN_INFO: Dict[ColorPattern, Dict[str, str]] = {
    ColorPattern.MONOCHROME: {"label": "Monochrome", "description": "Similar shades of purple/indigo"},
    ColorPattern.COMPLEMENTARY: {"label": "Complementary", "description": "Contrasting colors that pop"},
    ColorPattern.RAINBOW: {"label": "Rainbow", "description": "Full spectrum of colors"},
    ColorPattern.WARM: {"label": "Warm", "description": "Red, orange, and yellow tones"},
    ColorPattern.COOL: {"label": "Cool", "description": "Blue, cyan, and teal tones"},
}


def _palette(pattern: Union[ColorPattern, str]) -> List[str]:
    try:
        return COLOR_PALETTES[ColorPattern(pattern)]
    except ValueError:
        raise ValueError(f"Unknown color pattern: {pattern}")


def get_goal_color(pattern: Union[ColorPattern, str], index: int) -> str:
    """Color for the goal at `index` within its category; cycles through the palette."""
    palette = _palette(pattern)
    return palette[index % len(palette)]


def get_pattern_preview(pattern: Union[ColorPattern, str]) -> List[str]:
    return _palette(pattern)[:4]

"""Font discovery and text measurement."""

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from PIL import ImageFont

logger = logging.getLogger(__name__)

FONT_DIR = Path(__file__).parent / "fonts"

WEIGHTS = ("regular", "semibold", "bold", "black")

_BUNDLED = {
    "regular": ["Inter-Regular.ttf"],
    "semibold": ["Inter-SemiBold.ttf", "Inter-Bold.ttf"],
    "bold": ["Inter-Bold.ttf"],
    "black": ["Inter-Black.ttf", "Inter-ExtraBold.ttf", "Inter-Bold.ttf"],
}

_SYSTEM_BOLD = [
    "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf",
    "/usr/share/fonts/dejavu/DejaVuSans-Bold.ttf",
    "/usr/share/fonts/truetype/liberation/LiberationSans-Bold.ttf",
    "/usr/share/fonts/liberation/LiberationSans-Bold.ttf",
    "/usr/share/fonts/truetype/noto/NotoSans-Bold.ttf",
    "/Library/Fonts/Arial Bold.ttf",
    "C:/Windows/Fonts/arialbd.ttf",
]

_SYSTEM_REGULAR = [
    "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
    "/usr/share/fonts/dejavu/DejaVuSans.ttf",
    "/usr/share/fonts/truetype/liberation/LiberationSans-Regular.ttf",
    "/usr/share/fonts/liberation/LiberationSans-Regular.ttf",
    "/usr/share/fonts/truetype/noto/NotoSans-Regular.ttf",
    "/Library/Fonts/Arial.ttf",
    "C:/Windows/Fonts/arial.ttf",
]


def find_font(weight="bold"):
    """Locate a TrueType file for the given weight.

    Bundled fonts under ``bulkcard/fonts`` win over system fonts.
    Returns None when nothing usable is installed.
    """
    for name in _BUNDLED.get(weight, _BUNDLED["bold"]):
        path = FONT_DIR / name
        if path.is_file():
            return str(path)

    candidates = _SYSTEM_REGULAR if weight == "regular" else _SYSTEM_BOLD
    for path in candidates:
        if os.path.exists(path):
            return path
    return None


@lru_cache(maxsize=128)
def _load(path, size):
    if path:
        try:
            return ImageFont.truetype(path, size)
        except OSError as exc:
            logger.debug("Could not load font %s: %s", path, exc)
    return ImageFont.load_default(size)


@dataclass(frozen=True)
class FontSpec:
    """A font family/weight pair that can be instantiated at any size."""

    weight: str = "bold"
    path: str = None

    def __post_init__(self):
        if self.weight not in WEIGHTS:
            raise ValueError(f"Unknown font weight: {self.weight!r}")
        if self.path is None:
            object.__setattr__(self, "path", find_font(self.weight))

    def font(self, size):
        return _load(self.path, int(size))

    def measure(self, text, size):
        """Rendered advance width of ``text`` at ``size`` pixels."""
        return self.font(size).getlength(text)


def font_set(font_path=None, bold_font_path=None):
    """Build the weight -> FontSpec mapping used by the layout engine.

    Args:
        font_path: Optional regular-weight font file.
        bold_font_path: Optional font file used for every heavy weight.

    Returns:
        Dict mapping each weight name to a FontSpec.
    """
    fonts = {"regular": FontSpec("regular", font_path)}
    for weight in ("semibold", "bold", "black"):
        fonts[weight] = FontSpec(weight, bold_font_path)
    return fonts

"""Font lookup for banner text. Cached per (path, size, weight, style)."""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path

from PIL import ImageFont

logger = logging.getLogger(__name__)

# Tried in order when no explicit font path is configured
_SYSTEM_FONTS = {
    (True, False): [
        "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf",
        "/usr/share/fonts/truetype/liberation/LiberationSans-Bold.ttf",
        "/System/Library/Fonts/Supplemental/Arial Bold.ttf",
        "C:/Windows/Fonts/arialbd.ttf",
    ],
    (False, False): [
        "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
        "/usr/share/fonts/truetype/liberation/LiberationSans-Regular.ttf",
        "/System/Library/Fonts/Supplemental/Arial.ttf",
        "C:/Windows/Fonts/arial.ttf",
    ],
    (True, True): [
        "/usr/share/fonts/truetype/dejavu/DejaVuSans-BoldOblique.ttf",
        "/usr/share/fonts/truetype/liberation/LiberationSans-BoldItalic.ttf",
    ],
    (False, True): [
        "/usr/share/fonts/truetype/dejavu/DejaVuSans-Oblique.ttf",
        "/usr/share/fonts/truetype/liberation/LiberationSans-Italic.ttf",
    ],
}


@lru_cache(maxsize=256)
def load_font(
    size: int,
    bold: bool = True,
    italic: bool = False,
    font_path: str = "",
) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    """TrueType font at ``size`` px; Pillow's scalable default if none is found."""
    size = max(1, int(size))
    candidates = [font_path] if font_path else []
    candidates += _SYSTEM_FONTS[(bold, italic)] + _SYSTEM_FONTS[(bold, False)]
    for candidate in candidates:
        if not Path(candidate).is_file():
            continue
        try:
            return ImageFont.truetype(candidate, size=size)
        except OSError as e:
            logger.debug("Font %s unusable: %s", candidate, e)
    return ImageFont.load_default(size=size)

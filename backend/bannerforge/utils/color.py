"""Color parsing for draw operations."""

from __future__ import annotations

import logging

from PIL import ImageColor

logger = logging.getLogger(__name__)

RGBA = tuple[int, int, int, int]

_FALLBACK: RGBA = (17, 24, 39, 255)  # gray-900


def parse_color(value: str | None, default: RGBA = _FALLBACK) -> RGBA:
    """Parse '#RRGGBB', '#RRGGBBAA', 'hsl(...)' or a CSS name into RGBA.

    Falls back to ``default`` when the string cannot be parsed.
    """
    if not value:
        return default
    try:
        return ImageColor.getcolor(value.strip(), "RGBA")  # type: ignore[return-value]
    except ValueError:
        logger.warning("Unparseable color %r, using fallback", value)
        return default

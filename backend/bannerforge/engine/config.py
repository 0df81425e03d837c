"""Layout configuration: every fixed coordinate of the 1350×1350 canvas.

Values are content-coupled: existing banners were authored against them, so
they are kept literal (e.g. the 77%/62%/9.3 sticker default) rather than
rounded. Alternate layouts override fields on a copy of ``LayoutConfig``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import NamedTuple

from bannerforge.models.slots import (
    DEFAULT_POSITION_X,
    DEFAULT_POSITION_Y,
    DEFAULT_ROTATION,
    DEFAULT_SCALE,
)


class Rect(NamedTuple):
    x: float
    y: float
    w: float
    h: float


# First stop of the per-slot background gradients (Gold & Navy palette).
SLOT_PALETTE: tuple[str, ...] = (
    "hsl(217, 30%, 12%)",  # Deep Navy
    "hsl(270, 60%, 35%)",  # Royal Purple
    "hsl(45, 100%, 50%)",  # Rich Gold
    "hsl(152, 60%, 35%)",  # Emerald
    "hsl(355, 70%, 40%)",  # Ruby Red
    "hsl(210, 80%, 40%)",  # Sapphire
    "hsl(30, 90%, 45%)",  # Amber
    "hsl(180, 60%, 35%)",  # Teal
    "hsl(320, 70%, 40%)",  # Magenta
    "hsl(140, 50%, 30%)",  # Forest
    "hsl(0, 75%, 38%)",  # Crimson
    "hsl(200, 75%, 40%)",  # Ocean
    "hsl(30, 70%, 35%)",  # Bronze
    "hsl(165, 55%, 40%)",  # Jade
    "hsl(15, 80%, 55%)",  # Coral
    "hsl(240, 60%, 40%)",  # Indigo
)


@dataclass(frozen=True)
class LayoutConfig:
    """Fixed logical layout. All units are logical canvas units."""

    canvas_width: int = 1350
    canvas_height: int = 1350

    # Backdrop
    backdrop_color: str = "#111827"
    slot_palette: tuple[str, ...] = SLOT_PALETTE

    # Logos (height follows the source aspect ratio)
    logo_width: float = 250
    logo_margin_x: float = 24
    logo_y: float = 10

    # Upline row
    upline_count: int = 5
    upline_size: float = 110
    upline_spacing: float = 24
    upline_y: float = 24
    upline_ring_width: float = 3
    upline_ring_color: str = "#D4AF37"
    upline_placeholder_color: str = "#2A2A2A"
    upline_name_size: int = 18

    # Photos
    achiever_rect: Rect = Rect(40, 162, 594, 792)
    mentor_rect: Rect = Rect(1010, 850, 300, 360)
    photo_radius: float = 24

    # Category block column
    block_center_x: float = 978
    block_width: float = 648
    congrats_rect: Rect = Rect(654, 162, 648, 162)

    # Stickers
    sticker_base_size: float = 145
    sticker_default_x: float = DEFAULT_POSITION_X
    sticker_default_y: float = DEFAULT_POSITION_Y
    sticker_default_scale: float = DEFAULT_SCALE
    sticker_default_rotation: float = DEFAULT_ROTATION

    # Contact band
    band_y: float = 1210
    band_height: float = 140
    band_color: str = "#000000A6"
    band_padding_x: float = 40
    band_mobile_size: int = 40
    band_name_size: int = 34
    band_rank_size: int = 24

    # Text
    name_max_length: int = 20
    name_size_tiers: tuple[tuple[int, int], ...] = ((18, 36), (14, 42), (10, 48))
    name_base_size: int = 54
    message_size: int = 32
    message_wrap_chars: int = 34
    quote_wrap_chars: int = 30
    line_height: float = 1.5
    gold: str = "#FFD700"
    white: str = "#FFFFFF"

    # Watermarks: a brand strip over each face column (preview only) and a
    # faint promotional line up the left edge (kept in exports)
    show_brand_watermark: bool = True
    brand_watermark_text: str = "RE BUSINESS"
    brand_watermark_columns: tuple[float, ...] = (25.0, 75.0)
    brand_watermark_size: int = 17
    brand_watermark_color: str = "#FFFFFF33"
    brand_watermark_strip_color: str = "#80808014"
    show_mobile_watermark: bool = True
    mobile_watermark_text: str = "Promotional Call +91 77349 90035"
    mobile_watermark_size: int = 12
    mobile_watermark_color: str = "#FFFFFF14"
    mobile_watermark_x: float = 8

    # Generated headings and icons; False keeps only user-provided text.
    auto_text: bool = True

    def block_rect(self, y: float, h: float = 0) -> Rect:
        return Rect(self.block_center_x - self.block_width / 2, y, self.block_width, h)

    def fallback_color(self, background_slot: int | None) -> str:
        if background_slot is not None and 1 <= background_slot <= len(self.slot_palette):
            return self.slot_palette[background_slot - 1]
        return self.backdrop_color

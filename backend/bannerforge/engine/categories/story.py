"""Story: background, logos, uplines and stickers only."""

from __future__ import annotations

from bannerforge.engine.context import LayoutContext
from bannerforge.engine.draw_ops import Layer
from bannerforge.engine.registry import category_layout
from bannerforge.models.descriptor import BannerCategory


@category_layout(
    BannerCategory.STORY,
    suppresses={Layer.ACHIEVER, Layer.MENTOR, Layer.CONTACT_BAND},
    description="No category block",
)
def story(ctx: LayoutContext) -> None:
    return None

"""Motivational quote: italic quote with an attribution line, no mentor."""

from __future__ import annotations

from bannerforge.engine.context import LayoutContext
from bannerforge.engine.draw_ops import Layer
from bannerforge.engine.registry import category_layout
from bannerforge.engine.text import wrap
from bannerforge.models.descriptor import BannerCategory

QUOTE_Y = 360
QUOTE_SIZE = 32
ATTRIBUTION_Y = 520


@category_layout(
    BannerCategory.MOTIVATIONAL,
    suppresses={Layer.MENTOR},
    description="Quote and attribution",
)
def motivational(ctx: LayoutContext) -> None:
    cfg = ctx.config
    quote = ctx.user_text(ctx.texts.quote)
    if quote:
        lines = wrap(f'"{quote}"', cfg.quote_wrap_chars)
        step = QUOTE_SIZE * cfg.line_height
        for i, line in enumerate(lines):
            ctx.text(line, y=QUOTE_Y + i * step, size=QUOTE_SIZE, bold=False, italic=True)

    ctx.name_line(y=ATTRIBUTION_Y, prefix="- ", color=cfg.gold)

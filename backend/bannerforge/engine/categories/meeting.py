"""Team meeting announcement."""

from __future__ import annotations

from bannerforge.engine.context import LayoutContext
from bannerforge.engine.registry import category_layout
from bannerforge.models.descriptor import BannerCategory


@category_layout(BannerCategory.MEETING, description="Heading, title, date, venue, name")
def meeting(ctx: LayoutContext) -> None:
    ctx.heading("TEAM MEETING", y=200, size=48, color=ctx.config.gold)

    for value, y, size in (
        (ctx.texts.event_title, 280, 44),
        (ctx.texts.event_date, 350, 32),
        (ctx.texts.event_venue, 400, 32),
    ):
        value = ctx.user_text(value)
        if value:
            ctx.text(value, y=y, size=size, bold=size > 32)

    ctx.name_line(y=470)

"""Greeting categories: birthday, anniversary, festival.

All three share the same column: optional icon, gold heading, name, then the
user's message wrapped by character count.
"""

from __future__ import annotations

from bannerforge.engine.context import LayoutContext
from bannerforge.engine.registry import category_layout
from bannerforge.engine.text import wrap
from bannerforge.models.descriptor import BannerCategory

ICON_Y = 140
ICON_SIZE = 120
HEADING_Y = 280
NAME_Y = 370
MESSAGE_Y = 450


def _greeting(ctx: LayoutContext, heading: str, heading_size: int, icon: str | None = None) -> None:
    cfg = ctx.config
    if icon and cfg.auto_text:
        ctx.text(icon, y=ICON_Y, size=ICON_SIZE, bold=False)
    ctx.heading(heading, y=HEADING_Y, size=heading_size, color=cfg.gold)
    ctx.name_line(y=NAME_Y)
    message_lines(ctx, ctx.texts.message, MESSAGE_Y)


def message_lines(ctx: LayoutContext, message: str | None, y: float) -> None:
    message = ctx.user_text(message)
    if not message:
        return
    cfg = ctx.config
    step = cfg.message_size * cfg.line_height
    for i, line in enumerate(wrap(message, cfg.message_wrap_chars)):
        ctx.text(line, y=y + i * step, size=cfg.message_size, bold=False)


@category_layout(BannerCategory.BIRTHDAY, description="Cake, heading, name, message")
def birthday(ctx: LayoutContext) -> None:
    _greeting(ctx, "HAPPY BIRTHDAY", 52, icon="🎂")


@category_layout(BannerCategory.ANNIVERSARY, description="Hearts, heading, name, message")
def anniversary(ctx: LayoutContext) -> None:
    _greeting(ctx, "HAPPY ANNIVERSARY", 48, icon="💞")


@category_layout(BannerCategory.FESTIVAL, description="Heading, name, message")
def festival(ctx: LayoutContext) -> None:
    _greeting(ctx, "FESTIVAL GREETINGS", 48)

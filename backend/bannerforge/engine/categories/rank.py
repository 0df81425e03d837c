"""Rank promotion: congrats art, rank title, achiever name, team, weekly income."""

from __future__ import annotations

import logging

from bannerforge.engine.context import LayoutContext
from bannerforge.engine.registry import category_layout
from bannerforge.engine.text import display_rank, format_amount
from bannerforge.models.descriptor import BannerCategory

logger = logging.getLogger(__name__)

# Income block, anchored to the left edge under the achiever photo
INCOME_X = 67
INCOME_W = 743
INCOME_LABEL_Y = 1002
INCOME_AMOUNT_Y = 1066
INCOME_COLOR = "#FFD600"


@category_layout(BannerCategory.RANK, description="Congrats image, rank, name, team, income")
def rank(ctx: LayoutContext) -> None:
    cfg = ctx.config
    ctx.image(ctx.images.congrats_image, cfg.congrats_rect, fit="cover")

    rank_name = ctx.user_text(ctx.texts.rank_name)
    if rank_name:
        ctx.text(display_rank(rank_name).upper(), y=262, size=40, color=cfg.gold)

    ctx.name_line(y=340)

    team = ctx.user_text(ctx.texts.team_city)
    if team:
        ctx.text(team.upper(), y=423, size=28)

    amount = ctx.texts.cheque_amount
    if not amount:
        return
    try:
        shown = format_amount(amount)
    except (ValueError, OverflowError) as e:
        # Bad amount drops the income lines only
        logger.warning("Income amount %r skipped: %s", amount, e)
        return
    if cfg.auto_text:
        ctx.text("THIS WEEK INCOME", y=INCOME_LABEL_Y, size=36, x=INCOME_X, w=INCOME_W, align="left", bold=False)
    ctx.text(shown, y=INCOME_AMOUNT_Y, size=62, color=INCOME_COLOR, x=INCOME_X, w=INCOME_W, align="left")

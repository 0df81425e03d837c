"""Bonanza trip winner."""

from __future__ import annotations

from bannerforge.engine.context import LayoutContext
from bannerforge.engine.registry import category_layout
from bannerforge.models.descriptor import BannerCategory


@category_layout(BannerCategory.BONANZA, description="Congrats image, heading, trip, name")
def bonanza(ctx: LayoutContext) -> None:
    cfg = ctx.config
    ctx.image(ctx.images.congrats_image, cfg.congrats_rect, fit="cover")
    ctx.heading("BONANZA TRIP WINNER", y=236, size=42)

    trip = ctx.user_text(ctx.texts.trip_name)
    if trip:
        ctx.text(trip.upper(), y=337, size=48, color=cfg.gold)

    ctx.name_line(y=420)

"""CompositionEngine: descriptor + resolved assets → ordered draw operations."""

from __future__ import annotations

import logging
import math
import time
from collections.abc import Callable, Iterable, Mapping, Sequence

from bannerforge.assets.cache import ResolvedAsset
from bannerforge.engine.config import LayoutConfig, Rect
from bannerforge.engine.context import Composition, LayoutContext
from bannerforge.engine.draw_ops import DrawImage, DrawText, FillCircle, FillRect, Layer
from bannerforge.engine.registry import LayoutRegistry, get_registry
from bannerforge.engine.text import display_rank, estimate_width, truncate
from bannerforge.errors import InvalidCategory
from bannerforge.models.descriptor import BannerDescriptor, StickerPlacement
from bannerforge.utils.geometry import fit_height, percent_to_logical

logger = logging.getLogger(__name__)


def register_builtin_layouts() -> None:
    """Import every category module so @category_layout decorators fire."""
    import importlib
    import pkgutil

    package = importlib.import_module("bannerforge.engine.categories")
    for _, module_name, _ in pkgutil.iter_modules(package.__path__):
        importlib.import_module(f"bannerforge.engine.categories.{module_name}")


def required_uris(
    descriptor: BannerDescriptor,
    slot_stickers: Sequence[StickerPlacement] = (),
) -> list[str]:
    """Every URI a render of ``descriptor`` may draw, de-duplicated, in draw order."""
    refs = descriptor.image_refs
    candidates = [
        refs.background,
        refs.logo_left,
        refs.logo_right,
        *(u.avatar_uri for u in descriptor.uplines),
        refs.achiever,
        refs.congrats_image,
        refs.mentor,
        *(s.image_uri for s in descriptor.stickers),
        *(s.image_uri for s in slot_stickers),
    ]
    return list(dict.fromkeys(uri for uri in candidates if uri))


class CompositionEngine:
    """Builds a Composition. Pure and synchronous; never raises for bad input."""

    def __init__(
        self,
        config: LayoutConfig | None = None,
        registry: LayoutRegistry | None = None,
    ) -> None:
        self.config = config or LayoutConfig()
        if registry is None:
            register_builtin_layouts()
            registry = get_registry()
        self.registry = registry

    def compose(
        self,
        descriptor: BannerDescriptor,
        assets: Mapping[str, ResolvedAsset],
        slot_stickers: Sequence[StickerPlacement] = (),
    ) -> Composition:
        start = time.perf_counter()
        ctx = LayoutContext(
            descriptor=descriptor,
            config=self.config,
            assets=assets,
            category=descriptor.banner_category,
        )
        errors: dict[Layer, str] = {}

        builders: list[tuple[Layer, Callable[[LayoutContext], None]]] = [
            (Layer.BACKDROP, self._backdrop),
            (Layer.BACKGROUND, self._background),
            (Layer.LOGOS, self._logos),
            (Layer.UPLINES, self._uplines),
            (Layer.ACHIEVER, self._achiever),
            (Layer.CATEGORY, self._category_block),
            (Layer.MENTOR, self._mentor),
            (Layer.STICKERS, lambda c: self._stickers(c, slot_stickers)),
            (Layer.CONTACT_BAND, self._contact_band),
            (Layer.WATERMARK, self._watermarks),
        ]

        for layer, build in builders:
            if self.registry.suppresses(ctx.category, layer):
                continue
            ctx.layer = layer
            mark = len(ctx.ops)
            try:
                build(ctx)
            except Exception as e:
                # Partial output of a failed layer is dropped
                del ctx.ops[mark:]
                errors[layer] = str(e)
                logger.warning("Layer %s FAILED: %s", layer.name, e)

        used = {op.uri for op in ctx.ops if isinstance(op, DrawImage)}
        composition = Composition(
            ops=tuple(ctx.ops),
            images={uri: assets[uri].image for uri in used},
            category=descriptor.category,
            width=self.config.canvas_width,
            height=self.config.canvas_height,
            errors=errors,
        )
        logger.info(
            "Composed %s: %d ops, %d images in %.1fms",
            descriptor.category,
            len(composition),
            len(composition.images),
            (time.perf_counter() - start) * 1000,
        )
        return composition

    # -- layers ---------------------------------------------------------

    def _backdrop(self, ctx: LayoutContext) -> None:
        cfg = ctx.config
        ctx.add(
            FillRect(
                layer=ctx.layer,
                x=0,
                y=0,
                w=cfg.canvas_width,
                h=cfg.canvas_height,
                color=cfg.fallback_color(ctx.descriptor.background_slot),
            )
        )

    def _background(self, ctx: LayoutContext) -> None:
        cfg = ctx.config
        ctx.image(ctx.images.background, Rect(0, 0, cfg.canvas_width, cfg.canvas_height), fit="cover")

    def _logos(self, ctx: LayoutContext) -> None:
        cfg = ctx.config
        right_x = cfg.canvas_width - cfg.logo_margin_x - cfg.logo_width
        for uri, x in ((ctx.images.logo_left, cfg.logo_margin_x), (ctx.images.logo_right, right_x)):
            asset = ctx.resolved(uri)
            if asset is None:
                continue
            h = fit_height(cfg.logo_width, asset.size)
            ctx.image(uri, Rect(x, cfg.logo_y, cfg.logo_width, h), fit="stretch")

    def _uplines(self, ctx: LayoutContext) -> None:
        cfg = ctx.config
        size = cfg.upline_size
        row_width = cfg.upline_count * size + (cfg.upline_count - 1) * cfg.upline_spacing
        start_x = (cfg.canvas_width - row_width) / 2
        uplines = ctx.descriptor.uplines

        for i in range(cfg.upline_count):
            x = start_x + i * (size + cfg.upline_spacing)
            cx, cy = x + size / 2, cfg.upline_y + size / 2
            ctx.add(FillCircle(layer=ctx.layer, cx=cx, cy=cy, r=size / 2, color=cfg.upline_ring_color))

            inner = size - 2 * cfg.upline_ring_width
            upline = uplines[i] if i < len(uplines) else None
            drawn = None
            if upline is not None:
                box = Rect(cx - inner / 2, cy - inner / 2, inner, inner)
                drawn = ctx.image(upline.avatar_uri, box, fit="cover", clip="circle")
            if drawn is None:
                ctx.add(
                    FillCircle(
                        layer=ctx.layer, cx=cx, cy=cy, r=inner / 2, color=cfg.upline_placeholder_color
                    )
                )
            if upline is not None and upline.name:
                ctx.text(
                    truncate(upline.name, 12),
                    y=cfg.upline_y + size + 6,
                    size=cfg.upline_name_size,
                    x=x - cfg.upline_spacing / 2,
                    w=size + cfg.upline_spacing,
                    bold=False,
                )

    def _achiever(self, ctx: LayoutContext) -> None:
        cfg = ctx.config
        ctx.image(
            ctx.images.achiever,
            cfg.achiever_rect,
            fit="cover",
            radius=cfg.photo_radius,
            flip_x=ctx.descriptor.flip_achiever,
        )

    def _category_block(self, ctx: LayoutContext) -> None:
        if ctx.category is None:
            # Unknown category: log and leave the block empty
            err = InvalidCategory(ctx.descriptor.category)
            logger.warning("%s; category block skipped", err)
            return
        try:
            spec = self.registry.get(ctx.category)
        except InvalidCategory as e:
            logger.warning("%s; category block skipped", e)
            return
        spec.fn(ctx)

    def _mentor(self, ctx: LayoutContext) -> None:
        cfg = ctx.config
        ctx.image(
            ctx.images.mentor,
            cfg.mentor_rect,
            fit="cover",
            radius=cfg.photo_radius,
            flip_x=ctx.descriptor.flip_mentor,
        )

    def _stickers(self, ctx: LayoutContext, slot_stickers: Iterable[StickerPlacement]) -> None:
        cfg = ctx.config
        for placement in (*ctx.descriptor.stickers, *slot_stickers):
            asset = ctx.resolved(placement.image_uri)
            if asset is None:
                continue
            px = cfg.sticker_default_x if placement.position_x is None else placement.position_x
            py = cfg.sticker_default_y if placement.position_y is None else placement.position_y
            scale = cfg.sticker_default_scale if placement.scale is None else placement.scale
            rotation = cfg.sticker_default_rotation if placement.rotation_deg is None else placement.rotation_deg
            if not all(math.isfinite(v) for v in (px, py, scale, rotation)):
                logger.warning("Sticker %s has a non-finite transform; skipped", placement.id)
                continue

            size = cfg.sticker_base_size * scale
            cx = percent_to_logical(px, cfg.canvas_width)
            cy = percent_to_logical(py, cfg.canvas_height)
            ctx.image(
                asset.uri,
                Rect(cx - size / 2, cy - size / 2, size, size),
                fit="contain",
                rotation=rotation % 360,
            )

    def _contact_band(self, ctx: LayoutContext) -> None:
        cfg = ctx.config
        texts = ctx.texts
        ctx.add(
            FillRect(
                layer=ctx.layer,
                x=0,
                y=cfg.band_y,
                w=cfg.canvas_width,
                h=cfg.band_height,
                color=cfg.band_color,
            )
        )
        half = (cfg.canvas_width - 2 * cfg.band_padding_x) / 2

        if texts.mobile:
            ctx.add(
                DrawText(
                    layer=ctx.layer,
                    text=texts.mobile,
                    x=cfg.band_padding_x,
                    y=cfg.band_y + (cfg.band_height - cfg.band_mobile_size) / 2,
                    w=half,
                    size=cfg.band_mobile_size,
                    color=cfg.white,
                    align="left",
                )
            )

        name = ctx.user_text(texts.profile_name)
        rank = ctx.user_text(texts.profile_rank)
        right_x = cfg.band_padding_x + half
        if name:
            ctx.add(
                DrawText(
                    layer=ctx.layer,
                    text=truncate(name, cfg.name_max_length).upper(),
                    x=right_x,
                    y=cfg.band_y + 28,
                    w=half,
                    size=cfg.band_name_size,
                    color=cfg.white,
                    align="right",
                )
            )
        if rank:
            ctx.add(
                DrawText(
                    layer=ctx.layer,
                    text=display_rank(rank).upper(),
                    x=right_x,
                    y=cfg.band_y + 28 + cfg.band_name_size + 12,
                    w=half,
                    size=cfg.band_rank_size,
                    color=cfg.gold,
                    align="right",
                    bold=False,
                )
            )

    def _watermarks(self, ctx: LayoutContext) -> None:
        cfg = ctx.config
        mid_y = cfg.canvas_height / 2

        if cfg.show_brand_watermark:
            size = cfg.brand_watermark_size
            length = estimate_width(cfg.brand_watermark_text, size, letter_spacing=4)
            strip_w, strip_h = size * 1.2 + 8, length + 16
            for column in cfg.brand_watermark_columns:
                cx = percent_to_logical(column, cfg.canvas_width)
                ctx.add(
                    FillRect(
                        layer=ctx.layer,
                        preview_only=True,
                        x=cx - strip_w / 2,
                        y=mid_y - strip_h / 2,
                        w=strip_w,
                        h=strip_h,
                        color=cfg.brand_watermark_strip_color,
                        radius=2,
                    )
                )
                ctx.add(
                    DrawText(
                        layer=ctx.layer,
                        preview_only=True,
                        text=cfg.brand_watermark_text,
                        x=cx - length / 2,
                        y=mid_y - size / 2,
                        w=length,
                        size=size,
                        color=cfg.brand_watermark_color,
                        rotation=90,
                    )
                )

        if cfg.show_mobile_watermark:
            size = cfg.mobile_watermark_size
            ctx.add(
                DrawText(
                    layer=ctx.layer,
                    text=cfg.mobile_watermark_text,
                    x=cfg.mobile_watermark_x,
                    y=mid_y - size / 2,
                    w=estimate_width(cfg.mobile_watermark_text, size, letter_spacing=1.5),
                    size=size,
                    color=cfg.mobile_watermark_color,
                    bold=False,
                    rotation=270,
                )
            )

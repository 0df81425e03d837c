"""LayoutContext and Composition.

LayoutContext is the mutable state one ``compose`` call threads through the
layer builders; Composition is the frozen result handed to the rasterizer.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field, replace
from typing import Any

from PIL import Image

from bannerforge.assets.cache import ResolvedAsset
from bannerforge.engine.config import LayoutConfig, Rect
from bannerforge.engine.draw_ops import DrawImage, DrawOp, DrawText, Layer
from bannerforge.engine.text import fit_name, strip_emojis
from bannerforge.models.descriptor import BannerCategory, BannerDescriptor


@dataclass
class LayoutContext:
    """Shared state for one composition."""

    descriptor: BannerDescriptor
    config: LayoutConfig
    assets: Mapping[str, ResolvedAsset]
    category: BannerCategory | None = None
    # Layer currently being built; new ops are tagged with it
    layer: Layer = Layer.BACKDROP
    ops: list[DrawOp] = field(default_factory=list)

    @property
    def texts(self):
        return self.descriptor.text_fields

    @property
    def images(self):
        return self.descriptor.image_refs

    def resolved(self, uri: str | None) -> ResolvedAsset | None:
        """The asset for ``uri`` if it decoded, else None (layer is skipped)."""
        if not uri:
            return None
        asset = self.assets.get(uri)
        if asset is None or not asset.ok:
            return None
        return asset

    def add(self, op: DrawOp) -> DrawOp:
        self.ops.append(op)
        return op

    def user_text(self, value: str | None) -> str | None:
        if value is None:
            return None
        if not self.config.auto_text:
            value = strip_emojis(value)
        return value or None

    def text(
        self,
        text: str,
        y: float,
        size: int,
        color: str | None = None,
        *,
        x: float | None = None,
        w: float | None = None,
        align: str = "center",
        bold: bool = True,
        italic: bool = False,
    ) -> DrawText:
        column = self.config.block_rect(y)
        return self.add(
            DrawText(
                layer=self.layer,
                text=text,
                x=column.x if x is None else x,
                y=y,
                w=column.w if w is None else w,
                size=size,
                color=color or self.config.white,
                align=align,
                bold=bold,
                italic=italic,
            )
        )

    def heading(self, text: str, y: float, size: int, color: str | None = None) -> DrawText | None:
        """Generated text; omitted when auto text is off."""
        if not self.config.auto_text:
            return None
        return self.text(text, y, size, color)

    def name_line(self, y: float, prefix: str = "", color: str | None = None) -> DrawText | None:
        name = self.user_text(self.texts.user_name)
        if not name:
            return None
        cfg = self.config
        shown, size = fit_name(name, cfg.name_max_length, cfg.name_size_tiers, cfg.name_base_size)
        return self.text(prefix + shown.upper(), y, size, color)

    def image(self, uri: str | None, rect: Rect, **kwargs: Any) -> DrawImage | None:
        asset = self.resolved(uri)
        if asset is None:
            return None
        return self.add(
            DrawImage(layer=self.layer, uri=asset.uri, x=rect.x, y=rect.y, w=rect.w, h=rect.h, **kwargs)
        )


@dataclass(frozen=True)
class Composition:
    """Ordered draw operations plus the decoded images they reference."""

    ops: tuple[DrawOp, ...]
    images: Mapping[str, Image.Image]
    category: str
    width: int = 1350
    height: int = 1350
    errors: Mapping[Layer, str] = field(default_factory=dict)

    def __iter__(self) -> Iterator[DrawOp]:
        return iter(self.ops)

    def __len__(self) -> int:
        return len(self.ops)

    def layer(self, layer: Layer) -> list[DrawOp]:
        return [op for op in self.ops if op.layer == layer]

    @property
    def layers(self) -> set[Layer]:
        return {op.layer for op in self.ops}

    def texts(self) -> list[DrawText]:
        return [op for op in self.ops if isinstance(op, DrawText)]

    def for_export(self) -> Composition:
        """Copy without preview-only ops (and the images only they used)."""
        ops = tuple(op for op in self.ops if not op.preview_only)
        used = {op.uri for op in ops if isinstance(op, DrawImage)}
        return replace(self, ops=ops, images={uri: img for uri, img in self.images.items() if uri in used})

    def to_dict(self) -> dict[str, Any]:
        return {
            "category": self.category,
            "width": self.width,
            "height": self.height,
            "ops": [op.to_dict() for op in self.ops],
            "errors": {layer.name.lower(): msg for layer, msg in self.errors.items()},
        }

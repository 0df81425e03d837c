"""Pillow rasterizer: draws a Composition at any pixel size.

Every logical coordinate is multiplied by (width / 1350, height / 1350);
layout is never re-run, so every output size shows the same arrangement.
"""

from __future__ import annotations

import logging

from PIL import Image, ImageChops, ImageDraw, ImageOps

from bannerforge.engine.context import Composition
from bannerforge.engine.draw_ops import DrawImage, DrawOp, DrawText, FillCircle, FillRect
from bannerforge.render.fonts import load_font
from bannerforge.utils.color import parse_color

logger = logging.getLogger(__name__)


class Rasterizer:
    def __init__(self, composition: Composition, width: int, height: int, font_path: str = "") -> None:
        self.composition = composition
        self.width = width
        self.height = height
        self.sx = width / composition.width
        self.sy = height / composition.height
        self.font_path = font_path

    def render(self) -> Image.Image:
        canvas = Image.new("RGBA", (self.width, self.height), (0, 0, 0, 255))
        for op in self.composition.ops:
            self._draw(canvas, op)
        return canvas.convert("RGB")

    def _box(self, x: float, y: float, w: float, h: float) -> tuple[int, int, int, int]:
        left, top = round(x * self.sx), round(y * self.sy)
        return left, top, max(1, round(w * self.sx)), max(1, round(h * self.sy))

    def _draw(self, canvas: Image.Image, op: DrawOp) -> None:
        if isinstance(op, FillRect):
            self._fill_rect(canvas, op)
        elif isinstance(op, FillCircle):
            self._fill_circle(canvas, op)
        elif isinstance(op, DrawImage):
            self._image(canvas, op)
        elif isinstance(op, DrawText):
            self._text(canvas, op)
        else:
            raise TypeError(f"Unknown draw op: {type(op).__name__}")

    # -- shapes ---------------------------------------------------------

    def _fill_rect(self, canvas: Image.Image, op: FillRect) -> None:
        left, top, w, h = self._box(op.x, op.y, op.w, op.h)
        tile = Image.new("RGBA", (w, h), (0, 0, 0, 0))
        radius = round(op.radius * self.sx)
        ImageDraw.Draw(tile).rounded_rectangle((0, 0, w - 1, h - 1), radius=radius, fill=parse_color(op.color))
        canvas.paste(tile, (left, top), tile)

    def _fill_circle(self, canvas: Image.Image, op: FillCircle) -> None:
        left, top, w, h = self._box(op.cx - op.r, op.cy - op.r, 2 * op.r, 2 * op.r)
        tile = Image.new("RGBA", (w, h), (0, 0, 0, 0))
        ImageDraw.Draw(tile).ellipse((0, 0, w - 1, h - 1), fill=parse_color(op.color))
        canvas.paste(tile, (left, top), tile)

    # -- images ---------------------------------------------------------

    def _image(self, canvas: Image.Image, op: DrawImage) -> None:
        source = self.composition.images.get(op.uri)
        if source is None:
            return
        left, top, w, h = self._box(op.x, op.y, op.w, op.h)
        tile = self._fit(source, (w, h), op.fit)
        if op.flip_x:
            tile = ImageOps.mirror(tile)
        tile = self._clip(tile, op)
        if op.rotation % 360:
            cx, cy = left + w / 2, top + h / 2
            tile = tile.rotate(-op.rotation, resample=Image.Resampling.BICUBIC, expand=True)
            left, top = round(cx - tile.width / 2), round(cy - tile.height / 2)
        canvas.paste(tile, (left, top), tile)

    @staticmethod
    def _fit(source: Image.Image, size: tuple[int, int], fit: str) -> Image.Image:
        if fit == "cover":
            return ImageOps.fit(source, size, method=Image.Resampling.LANCZOS)
        if fit == "contain":
            inner = ImageOps.contain(source, size, method=Image.Resampling.LANCZOS)
            tile = Image.new("RGBA", size, (0, 0, 0, 0))
            tile.paste(inner, ((size[0] - inner.width) // 2, (size[1] - inner.height) // 2))
            return tile
        return source.resize(size, Image.Resampling.LANCZOS)

    def _clip(self, tile: Image.Image, op: DrawImage) -> Image.Image:
        if op.clip != "circle" and op.radius <= 0:
            return tile
        mask = Image.new("L", tile.size, 0)
        draw = ImageDraw.Draw(mask)
        box = (0, 0, tile.width - 1, tile.height - 1)
        if op.clip == "circle":
            draw.ellipse(box, fill=255)
        else:
            draw.rounded_rectangle(box, radius=round(op.radius * self.sx), fill=255)
        clipped = tile.copy()
        clipped.putalpha(ImageChops.multiply(tile.getchannel("A"), mask))
        return clipped

    # -- text -----------------------------------------------------------

    def _text(self, canvas: Image.Image, op: DrawText) -> None:
        font = load_font(round(op.size * self.sy), op.bold, op.italic, self.font_path)
        if op.rotation % 360:
            self._rotated_text(canvas, op, font)
            return
        draw = ImageDraw.Draw(canvas)
        x = self._align(op, draw.textlength(op.text, font=font), op.x * self.sx, op.w * self.sx)
        draw.text((round(x), round(op.y * self.sy)), op.text, font=font, fill=parse_color(op.color))

    def _rotated_text(self, canvas: Image.Image, op: DrawText, font) -> None:
        """Draw the line on its own tile, then turn the tile about the box center."""
        left, top, w, h = self._box(op.x, op.y, op.w, op.size)
        tile = Image.new("RGBA", (w, h), (0, 0, 0, 0))
        draw = ImageDraw.Draw(tile)
        x = self._align(op, draw.textlength(op.text, font=font), 0, w)
        draw.text((round(x), 0), op.text, font=font, fill=parse_color(op.color))
        cx, cy = left + w / 2, top + h / 2
        tile = tile.rotate(-op.rotation, resample=Image.Resampling.BICUBIC, expand=True)
        canvas.paste(tile, (round(cx - tile.width / 2), round(cy - tile.height / 2)), tile)

    @staticmethod
    def _align(op: DrawText, text_w: float, box_x: float, box_w: float) -> float:
        if op.align == "left":
            return box_x
        if op.align == "right":
            return box_x + box_w - text_w
        return box_x + (box_w - text_w) / 2

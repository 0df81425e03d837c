"""Draw operations in logical canvas units.

A composition is an ordered list of these; the rasterizer maps them to
pixels by scaling every coordinate, never by re-running layout.
"""

from __future__ import annotations

import enum
from dataclasses import asdict, dataclass
from typing import Any, ClassVar

from bannerforge.utils.geometry import rotated_bbox


class Layer(enum.IntEnum):
    """Z-order, back to front."""

    BACKDROP = 1
    BACKGROUND = 2
    LOGOS = 3
    UPLINES = 4
    ACHIEVER = 5
    CATEGORY = 6
    MENTOR = 7
    STICKERS = 8
    CONTACT_BAND = 9
    WATERMARK = 10


@dataclass(frozen=True, kw_only=True)
class DrawOp:
    kind: ClassVar[str] = "op"

    layer: Layer
    # Shown in the on-screen preview, never in exported files
    preview_only: bool = False

    def bounds(self) -> tuple[float, float, float, float]:
        raise NotImplementedError

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["kind"] = self.kind
        data["layer"] = self.layer.name.lower()
        return data


@dataclass(frozen=True, kw_only=True)
class FillRect(DrawOp):
    kind: ClassVar[str] = "fill_rect"

    x: float
    y: float
    w: float
    h: float
    color: str
    radius: float = 0

    def bounds(self) -> tuple[float, float, float, float]:
        return (self.x, self.y, self.x + self.w, self.y + self.h)


@dataclass(frozen=True, kw_only=True)
class FillCircle(DrawOp):
    kind: ClassVar[str] = "fill_circle"

    cx: float
    cy: float
    r: float
    color: str

    def bounds(self) -> tuple[float, float, float, float]:
        return (self.cx - self.r, self.cy - self.r, self.cx + self.r, self.cy + self.r)


@dataclass(frozen=True, kw_only=True)
class DrawImage(DrawOp):
    """Image placed in a box.

    ``fit``: cover (crop to fill), contain (letterbox), stretch.
    ``clip``: rect (optionally rounded by ``radius``) or circle.
    ``flip_x`` mirrors inside the box; ``rotation`` turns the box clockwise
    about its own center.
    """

    kind: ClassVar[str] = "image"

    uri: str
    x: float
    y: float
    w: float
    h: float
    fit: str = "cover"
    clip: str = "rect"
    radius: float = 0
    flip_x: bool = False
    rotation: float = 0.0

    @property
    def center(self) -> tuple[float, float]:
        return (self.x + self.w / 2, self.y + self.h / 2)

    def bounds(self) -> tuple[float, float, float, float]:
        return rotated_bbox(self.x, self.y, self.w, self.h, self.rotation)


@dataclass(frozen=True, kw_only=True)
class DrawText(DrawOp):
    """Single line of text; ``x``/``w`` define the alignment box, ``y`` the top.

    ``rotation`` turns the line clockwise about the center of its box.
    """

    kind: ClassVar[str] = "text"

    text: str
    x: float
    y: float
    w: float
    size: int
    color: str
    align: str = "center"
    bold: bool = True
    italic: bool = False
    rotation: float = 0.0

    def bounds(self) -> tuple[float, float, float, float]:
        return rotated_bbox(self.x, self.y, self.w, self.size, self.rotation)

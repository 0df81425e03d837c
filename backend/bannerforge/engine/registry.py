"""Category layout registry: one layout function per BannerCategory.

Usage:
    @category_layout(BannerCategory.BIRTHDAY, description="Cake, heading, name, message")
    def birthday(ctx: LayoutContext) -> None:
        ctx.heading("HAPPY BIRTHDAY", y=280, size=52, color=ctx.config.gold)

Adding a category = adding an enum member and one decorated function.
``verify_complete`` fails app start-up if any member has no layout.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable

from bannerforge.engine.draw_ops import Layer
from bannerforge.errors import InvalidCategory
from bannerforge.models.descriptor import BannerCategory

if TYPE_CHECKING:
    from bannerforge.engine.context import LayoutContext

logger = logging.getLogger(__name__)


@dataclass
class CategoryLayoutSpec:
    category: BannerCategory
    fn: Callable[["LayoutContext"], None]
    # Shared layers this category does not draw
    suppresses: frozenset[Layer] = field(default_factory=frozenset)
    description: str = ""


class LayoutRegistry:
    """Singleton registry of category layouts."""

    def __init__(self) -> None:
        self._layouts: dict[BannerCategory, CategoryLayoutSpec] = {}

    def register(self, spec: CategoryLayoutSpec) -> None:
        if spec.category in self._layouts:
            raise ValueError(f"Duplicate layout for category: {spec.category.value}")
        self._layouts[spec.category] = spec
        logger.debug("Registered layout %s", spec.category.value)

    def get(self, category: BannerCategory | str) -> CategoryLayoutSpec:
        parsed = BannerCategory.parse(category)
        try:
            return self._layouts[parsed]
        except KeyError:
            raise InvalidCategory(category) from None

    def suppresses(self, category: BannerCategory | None, layer: Layer) -> bool:
        if category is None or category not in self._layouts:
            return False
        return layer in self._layouts[category].suppresses

    def all(self) -> list[CategoryLayoutSpec]:
        order = list(BannerCategory)
        return sorted(self._layouts.values(), key=lambda s: order.index(s.category))

    def missing(self) -> list[BannerCategory]:
        return [c for c in BannerCategory if c not in self._layouts]

    def verify_complete(self) -> None:
        missing = self.missing()
        if missing:
            names = ", ".join(c.value for c in missing)
            raise RuntimeError(f"No layout registered for: {names}")

    @property
    def count(self) -> int:
        return len(self._layouts)


# Module-level singleton
_registry = LayoutRegistry()


def get_registry() -> LayoutRegistry:
    return _registry


def category_layout(
    category: BannerCategory,
    *,
    suppresses: set[Layer] | None = None,
    description: str = "",
):
    """Decorator to register a category layout function."""

    def decorator(fn: Callable[["LayoutContext"], None]):
        _registry.register(
            CategoryLayoutSpec(
                category=category,
                fn=fn,
                suppresses=frozenset(suppresses or ()),
                description=description,
            )
        )
        return fn

    return decorator

"""Banner composition engine."""

from bannerforge.engine.registry import category_layout, get_registry
from bannerforge.engine.context import Composition, LayoutContext
from bannerforge.engine.composer import CompositionEngine, required_uris
from bannerforge.engine.draw_ops import Layer
from bannerforge.engine.viewport import ViewportScaler

__all__ = [
    "category_layout",
    "get_registry",
    "Composition",
    "LayoutContext",
    "CompositionEngine",
    "required_uris",
    "Layer",
    "ViewportScaler",
]

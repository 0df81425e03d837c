"""FastAPI dependency injection."""

from __future__ import annotations

from collections.abc import Callable
from functools import lru_cache

from bannerforge.assets.loader import AssetLoader
from bannerforge.config import settings
from bannerforge.engine.composer import CompositionEngine
from bannerforge.render.exporter import Exporter
from bannerforge.slots.store import SlotTransformStore


def get_settings():
    return settings


@lru_cache
def get_slot_store() -> SlotTransformStore:
    return SlotTransformStore()


@lru_cache
def get_engine() -> CompositionEngine:
    return CompositionEngine()


def get_exporter() -> Exporter:
    return Exporter()


def get_loader_factory() -> Callable[[], AssetLoader]:
    """Each request gets its own loader; decoded images are shared via the image cache."""
    return AssetLoader

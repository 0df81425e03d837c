"""Decoded-image cache shared by every render in the process."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from PIL import Image

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedAsset:
    """A URI paired with its decoded image, or None when loading failed."""

    uri: str
    image: Image.Image | None = None
    error: str = ""

    @property
    def ok(self) -> bool:
        return self.image is not None

    @property
    def size(self) -> tuple[int, int] | None:
        return self.image.size if self.image is not None else None


class ImageCache:
    """URI → decoded RGBA image.

    Entries are written once and never mutated in place; consumers that need
    to modify pixels must copy first. Only successful decodes are stored, so
    a failed URI is retried the next time a new batch asks for it.
    """

    def __init__(self) -> None:
        self._images: dict[str, Image.Image] = {}

    def get(self, uri: str) -> Image.Image | None:
        return self._images.get(uri)

    def put(self, uri: str, image: Image.Image) -> Image.Image:
        existing = self._images.get(uri)
        if existing is not None:
            return existing
        self._images[uri] = image
        logger.debug("Cached %s (%dx%d)", uri, image.width, image.height)
        return image

    def __contains__(self, uri: object) -> bool:
        return uri in self._images

    def __len__(self) -> int:
        return len(self._images)

    def clear(self) -> None:
        self._images.clear()


# Module-level singleton
_cache = ImageCache()


def get_image_cache() -> ImageCache:
    return _cache

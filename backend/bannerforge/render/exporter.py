"""Exporter: composition → JPEG bytes at a fixed resolution.

Output depends only on the composition and the target size, never on the
preview viewport.
"""

from __future__ import annotations

import enum
import io
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone

from PIL import Image

from bannerforge.config import settings
from bannerforge.engine.context import Composition
from bannerforge.engine.viewport import ViewportScaler
from bannerforge.errors import ExportFailure
from bannerforge.render.rasterizer import Rasterizer

logger = logging.getLogger(__name__)

MAX_DIMENSION = 8192


class ExportProfile(str, enum.Enum):
    """NATIVE draws at the logical size; CAPTURE draws at 1350 and downsamples to 1080."""

    NATIVE = "native"
    CAPTURE = "capture"

    @property
    def size(self) -> int:
        return 1080 if self is ExportProfile.CAPTURE else 1350


@dataclass(frozen=True)
class ExportResult:
    data: bytes
    width: int
    height: int
    format: str = "JPEG"
    quality: int = 92

    @property
    def media_type(self) -> str:
        return "image/jpeg"


class Exporter:
    def __init__(
        self,
        quality: int | None = None,
        min_quality: int | None = None,
        quality_step: int | None = None,
        max_bytes: int | None = None,
        font_path: str | None = None,
    ) -> None:
        self.quality = quality if quality is not None else settings.export_quality
        self.min_quality = min_quality if min_quality is not None else settings.export_min_quality
        self.quality_step = quality_step if quality_step is not None else settings.export_quality_step
        self.max_bytes = max_bytes if max_bytes is not None else settings.export_max_bytes
        self.font_path = font_path if font_path is not None else settings.font_path

    def render(self, composition: Composition, width: int, height: int) -> Image.Image:
        if not (0 < width <= MAX_DIMENSION and 0 < height <= MAX_DIMENSION):
            raise ExportFailure(f"Invalid export size {width}x{height}")
        try:
            return Rasterizer(composition, width, height, self.font_path).render()
        except ExportFailure:
            raise
        except Exception as e:
            raise ExportFailure(f"Rasterization failed: {e}") from e

    def export(
        self,
        composition: Composition,
        width: int | None = None,
        height: int | None = None,
        *,
        profile: ExportProfile = ExportProfile.NATIVE,
        max_bytes: int | None = None,
    ) -> ExportResult:
        start = time.perf_counter()
        composition = composition.for_export()
        if width is None and height is None:
            if profile is ExportProfile.CAPTURE:
                image = self.render(composition, composition.width, composition.height)
                image = image.resize((profile.size, profile.size), Image.Resampling.LANCZOS)
            else:
                image = self.render(composition, profile.size, profile.size)
        else:
            width = width if width is not None else height
            height = height if height is not None else width
            image = self.render(composition, width, height)

        budget = self.max_bytes if max_bytes is None else max_bytes
        data, quality = self._encode(image, budget)
        logger.info(
            "Exported %s %dx%d q=%d (%d bytes) in %.0fms",
            composition.category,
            image.width,
            image.height,
            quality,
            len(data),
            (time.perf_counter() - start) * 1000,
        )
        return ExportResult(data=data, width=image.width, height=image.height, quality=quality)

    def _encode(self, image: Image.Image, max_bytes: int) -> tuple[bytes, int]:
        """JPEG at the configured quality, stepping down until under ``max_bytes``."""
        quality = self.quality
        data = self._jpeg(image, quality)
        while max_bytes and len(data) > max_bytes and quality > self.min_quality:
            quality = max(self.min_quality, quality - self.quality_step)
            data = self._jpeg(image, quality)
            logger.debug("Compressing: quality=%d size=%d", quality, len(data))
        if max_bytes and len(data) > max_bytes:
            logger.warning("Export still %d bytes at quality %d (budget %d)", len(data), quality, max_bytes)
        return data, quality

    @staticmethod
    def _jpeg(image: Image.Image, quality: int) -> bytes:
        buf = io.BytesIO()
        try:
            image.save(buf, format="JPEG", quality=quality)
        except (OSError, ValueError) as e:
            raise ExportFailure(f"JPEG encoding failed: {e}") from e
        return buf.getvalue()

    def preview(self, composition: Composition, scaler: ViewportScaler) -> Image.Image | None:
        """Render at the viewport's pixel size, preview-only ops included.

        None until a width has been observed.
        """
        if not scaler.ready:
            return None
        width, height = scaler.size
        return self.render(composition, width, height)


def export_filename(category: str, prefix: str | None = None, now: datetime | None = None) -> str:
    now = now or datetime.now(timezone.utc)
    stamp = int(now.timestamp() * 1000)
    return f"{prefix or settings.export_filename_prefix}-{category}-{stamp}.jpg"

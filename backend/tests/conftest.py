"""Shared test fixtures."""

from __future__ import annotations

import asyncio
import base64
import io

import pytest
from PIL import Image

from bannerforge.assets.cache import ImageCache, ResolvedAsset
from bannerforge.errors import AssetUnavailable
from bannerforge.models.descriptor import BannerDescriptor

ACHIEVER = "https://cdn.example.com/achiever.png"
MENTOR = "https://cdn.example.com/mentor.png"
BACKGROUND = "https://cdn.example.com/background.png"
LOGO_LEFT = "https://cdn.example.com/logo-left.png"
LOGO_RIGHT = "https://cdn.example.com/logo-right.png"
CONGRATS = "https://cdn.example.com/congrats.png"
STICKER = "https://cdn.example.com/sticker.png"
AVATAR = "https://cdn.example.com/upline-1.png"

ALL_URIS = (ACHIEVER, MENTOR, BACKGROUND, LOGO_LEFT, LOGO_RIGHT, CONGRATS, STICKER, AVATAR)


def solid_image(size: tuple[int, int] = (40, 40), color=(200, 30, 30, 255)) -> Image.Image:
    return Image.new("RGBA", size, color)


def png_bytes(image: Image.Image) -> bytes:
    buf = io.BytesIO()
    image.save(buf, format="PNG")
    return buf.getvalue()


def data_uri(image: Image.Image) -> str:
    return "data:image/png;base64," + base64.b64encode(png_bytes(image)).decode("ascii")


def resolved(*uris: str, size: tuple[int, int] = (40, 40)) -> dict[str, ResolvedAsset]:
    return {uri: ResolvedAsset(uri=uri, image=solid_image(size)) for uri in uris}


def make_descriptor(category: str = "rank", **fields) -> BannerDescriptor:
    return BannerDescriptor.model_validate({"category": category, **fields})


class FakeFetcher:
    """In-memory fetcher: uri → bytes, optional per-uri delay and failures."""

    def __init__(
        self,
        payloads: dict[str, bytes] | None = None,
        delays: dict[str, float] | None = None,
        failing: set[str] | None = None,
    ) -> None:
        self.payloads = payloads or {}
        self.delays = delays or {}
        self.failing = failing or set()
        self.calls: list[str] = []

    async def fetch(self, uri: str) -> bytes:
        self.calls.append(uri)
        delay = self.delays.get(uri, 0)
        if delay:
            await asyncio.sleep(delay)
        if uri in self.failing or uri not in self.payloads:
            raise AssetUnavailable(uri, "HTTP 404")
        return self.payloads[uri]


@pytest.fixture
def image_cache() -> ImageCache:
    return ImageCache()


@pytest.fixture
def png() -> bytes:
    return png_bytes(solid_image())


@pytest.fixture
def fake_fetcher(png: bytes) -> FakeFetcher:
    return FakeFetcher({uri: png for uri in ALL_URIS})


@pytest.fixture
def full_rank_descriptor() -> BannerDescriptor:
    return make_descriptor(
        "rank",
        textFields={
            "userName": "Priya Sharma",
            "teamCity": "Team Pune",
            "chequeAmount": "1234567",
            "mobile": "+91 98765 43210",
            "profileName": "Rahul Verma",
            "profileRank": "Diamond-Director",
            "rankName": "Gold-Star",
        },
        imageRefs={
            "achiever": ACHIEVER,
            "background": BACKGROUND,
            "mentor": MENTOR,
            "logoLeft": LOGO_LEFT,
            "logoRight": LOGO_RIGHT,
            "congratsImage": CONGRATS,
        },
        uplines=[{"id": "u1", "name": "Anita", "avatarUri": AVATAR}, {"id": "u2", "name": "Vikram"}],
        stickers=[{"id": "s1", "imageUri": STICKER, "positionX": 50, "positionY": 50, "scale": 1, "rotationDeg": 45}],
    )

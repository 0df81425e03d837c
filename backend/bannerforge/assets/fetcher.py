"""Fetch raw asset bytes by URI and decode them into RGBA images."""

from __future__ import annotations

import asyncio
import base64
import binascii
import io
import logging
from pathlib import Path
from typing import Protocol
from urllib.parse import unquote, urlparse

import httpx
from PIL import Image, UnidentifiedImageError

from bannerforge.errors import AssetUnavailable

logger = logging.getLogger(__name__)


class Fetcher(Protocol):
    async def fetch(self, uri: str) -> bytes: ...


class HttpFetcher:
    """http(s) via a shared httpx.AsyncClient.

    Status errors and transport errors (including cross-origin refusals and
    timeouts) become AssetUnavailable.
    """

    def __init__(self, client: httpx.AsyncClient | None = None, timeout: float = 5.0) -> None:
        self._client = client
        self._owns_client = client is None
        self.timeout = timeout

    async def fetch(self, uri: str) -> bytes:
        if self._client is None:
            self._client = httpx.AsyncClient(follow_redirects=True, timeout=self.timeout)
        try:
            response = await self._client.get(uri, timeout=self.timeout)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise AssetUnavailable(uri, f"HTTP {e.response.status_code}") from e
        except httpx.RequestError as e:
            raise AssetUnavailable(uri, f"{type(e).__name__}: {e}") from e
        return response.content

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None


class DataUriFetcher:
    """``data:[<mediatype>][;base64],<data>``"""

    async def fetch(self, uri: str) -> bytes:
        header, sep, payload = uri.partition(",")
        if not sep:
            raise AssetUnavailable(uri[:64], "malformed data URI")
        if header.endswith(";base64"):
            try:
                return base64.b64decode(payload, validate=True)
            except (binascii.Error, ValueError) as e:
                raise AssetUnavailable(uri[:64], "bad base64 payload") from e
        return unquote(payload).encode("latin-1")


class FileFetcher:
    """``file://`` URIs and plain filesystem paths."""

    async def fetch(self, uri: str) -> bytes:
        path = Path(unquote(urlparse(uri).path)) if uri.startswith("file://") else Path(uri)
        try:
            return await asyncio.to_thread(path.read_bytes)
        except OSError as e:
            raise AssetUnavailable(uri, str(e)) from e


class RoutingFetcher:
    """Picks a fetcher by URI scheme."""

    def __init__(
        self,
        http: HttpFetcher | None = None,
        data: Fetcher | None = None,
        files: Fetcher | None = None,
    ) -> None:
        self.http = http or HttpFetcher()
        self.data = data or DataUriFetcher()
        self.files = files or FileFetcher()

    async def fetch(self, uri: str) -> bytes:
        scheme = urlparse(uri).scheme.lower()
        if scheme in ("http", "https"):
            return await self.http.fetch(uri)
        if scheme == "data":
            return await self.data.fetch(uri)
        if scheme in ("", "file") or len(scheme) == 1:  # single letter = Windows drive
            return await self.files.fetch(uri)
        raise AssetUnavailable(uri, f"unsupported scheme {scheme!r}")

    async def aclose(self) -> None:
        await self.http.aclose()


def decode_image(uri: str, data: bytes) -> Image.Image:
    """Decode bytes into a fully loaded RGBA image. CPU-bound; run off-loop."""
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            return img.convert("RGBA")
    except (UnidentifiedImageError, OSError, ValueError) as e:
        raise AssetUnavailable(uri, f"decode failed: {e}") from e

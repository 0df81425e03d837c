"""AssetLoader: parallel, race-free resolution of asset URIs to images.

Every ``load`` call gets a generation number. Only the batch whose
generation is still current may publish its result to ``loader.current``;
a batch superseded by a newer URI set finishes quietly and is discarded.
Individual failures never fail a batch: they resolve to ``image=None``.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from bannerforge.assets.cache import ImageCache, ResolvedAsset, get_image_cache
from bannerforge.assets.fetcher import Fetcher, RoutingFetcher, decode_image
from bannerforge.config import settings
from bannerforge.errors import AssetUnavailable, StaleBatchDiscarded

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]
ErrorCallback = Callable[[str, BaseException], None]


@dataclass(frozen=True)
class LoadResult:
    assets: dict[str, ResolvedAsset]
    all_succeeded: bool

    @property
    def failed(self) -> list[str]:
        return [uri for uri, asset in self.assets.items() if not asset.ok]


class AssetBatch:
    """One in-flight load. Async-iterate for completion order, or await ``result()``."""

    def __init__(self, loader: AssetLoader, uris: list[str], generation: int) -> None:
        self.loader = loader
        self.uris = uris
        self.key = frozenset(uris)
        self.generation = generation
        self.completed = 0
        self._resolved: dict[str, ResolvedAsset] = {}
        self._queue: asyncio.Queue[ResolvedAsset | None] = asyncio.Queue()
        self._tasks = [asyncio.ensure_future(self._resolve(uri)) for uri in uris]
        self._done = asyncio.ensure_future(self._finish())

    @property
    def total(self) -> int:
        return len(self.uris)

    @property
    def progress(self) -> tuple[int, int]:
        return (self.completed, self.total)

    @property
    def percent(self) -> int:
        if not self.total:
            return 100
        return round(self.completed / self.total * 100)

    @property
    def done(self) -> bool:
        return self._done.done()

    async def _resolve(self, uri: str) -> ResolvedAsset:
        t0 = time.perf_counter()
        asset = await self.loader._resolve_one(uri)
        self._resolved[uri] = asset
        self.completed += 1
        self.loader._report_progress(self)
        logger.debug(
            "  %s %s in %.1fms (%d/%d)",
            uri[:80],
            "ok" if asset.ok else "failed",
            (time.perf_counter() - t0) * 1000,
            self.completed,
            self.total,
        )
        self._queue.put_nowait(asset)
        return asset

    async def _finish(self) -> LoadResult:
        await asyncio.gather(*self._tasks)
        result = LoadResult(
            assets={uri: self._resolved[uri] for uri in self.uris},
            all_succeeded=all(a.ok for a in self._resolved.values()),
        )
        try:
            self.loader._commit(self, result)
        except StaleBatchDiscarded as e:
            logger.debug("Discarded: %s", e)
        return result

    async def result(self) -> LoadResult:
        return await asyncio.shield(self._done)

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for _ in range(self.total):
            asset = await self._queue.get()
            if asset is None:
                # Sentinel from cancel()
                return
            yield asset

    def cancel(self) -> None:
        for task in (*self._tasks, self._done):
            task.cancel()
        self._queue.put_nowait(None)


class AssetLoader:
    """Resolves URI sets to decoded images through a shared ImageCache."""

    def __init__(
        self,
        fetcher: Fetcher | None = None,
        cache: ImageCache | None = None,
        *,
        max_concurrency: int | None = None,
        timeout: float | None = None,
        on_progress: ProgressCallback | None = None,
        on_error: ErrorCallback | None = None,
    ) -> None:
        self.fetcher = fetcher or RoutingFetcher()
        self.cache = cache if cache is not None else get_image_cache()
        self.timeout = timeout if timeout is not None else settings.asset_fetch_timeout_s
        self.on_progress = on_progress
        self.on_error = on_error
        self._max_concurrency = max_concurrency or settings.asset_max_concurrency
        self._semaphore: asyncio.Semaphore | None = None
        self._generation = 0
        self._batch: AssetBatch | None = None
        self._closed = False
        self.current: LoadResult | None = None
        self.fetch_count = 0

    @property
    def generation(self) -> int:
        return self._generation

    def load(self, uris: Iterable[str]) -> AssetBatch:
        """Start (or reuse) a batch for ``uris``. Must be called inside a running loop."""
        if self._closed:
            raise RuntimeError("AssetLoader is closed")
        ordered = list(dict.fromkeys(u for u in uris if u))
        key = frozenset(ordered)
        if self._batch is not None and self._batch.key == key:
            return self._batch

        self._generation += 1
        if self._batch is not None and not self._batch.done:
            logger.debug("Batch %d superseded by %d", self._batch.generation, self._generation)
        self._batch = AssetBatch(self, ordered, self._generation)
        logger.info("Loading %d assets (batch %d)", len(ordered), self._generation)
        return self._batch

    async def _resolve_one(self, uri: str) -> ResolvedAsset:
        cached = self.cache.get(uri)
        if cached is not None:
            return ResolvedAsset(uri=uri, image=cached)
        try:
            async with self._limiter():
                self.fetch_count += 1
                data = await asyncio.wait_for(self.fetcher.fetch(uri), timeout=self.timeout)
            image = await asyncio.to_thread(decode_image, uri, data)
        except asyncio.TimeoutError as e:
            return self._failed(uri, AssetUnavailable(uri, f"timed out after {self.timeout}s"), e)
        except AssetUnavailable as e:
            return self._failed(uri, e, e)
        except Exception as e:
            return self._failed(uri, AssetUnavailable(uri, f"{type(e).__name__}: {e}"), e)
        return ResolvedAsset(uri=uri, image=self.cache.put(uri, image))

    def _limiter(self) -> asyncio.Semaphore:
        """Concurrency gate, created on first use inside the running loop."""
        if self._semaphore is None:
            self._semaphore = asyncio.Semaphore(self._max_concurrency)
        return self._semaphore

    def _failed(self, uri: str, err: AssetUnavailable, cause: BaseException) -> ResolvedAsset:
        logger.warning("%s", err)
        if self.on_error is not None:
            self.on_error(uri, cause)
        return ResolvedAsset(uri=uri, image=None, error=err.reason)

    def _report_progress(self, batch: AssetBatch) -> None:
        if self.on_progress is not None and batch is self._batch and not self._closed:
            self.on_progress(batch.completed, batch.total)

    def _commit(self, batch: AssetBatch, result: LoadResult) -> None:
        if self._closed:
            raise StaleBatchDiscarded(batch.generation, -1)
        if batch.generation != self._generation:
            raise StaleBatchDiscarded(batch.generation, self._generation)
        self.current = result
        logger.info(
            "Batch %d complete: %d/%d loaded",
            batch.generation,
            sum(1 for a in result.assets.values() if a.ok),
            len(result.assets),
        )

    async def close(self) -> None:
        """Tear down: in-flight batches are cancelled and nothing commits afterwards."""
        self._closed = True
        if self._batch is not None and not self._batch.done:
            self._batch.cancel()
        aclose = getattr(self.fetcher, "aclose", None)
        if aclose is not None:
            await aclose()

    async def __aenter__(self) -> AssetLoader:
        return self

    async def __aexit__(self, *exc) -> None:
        await self.close()

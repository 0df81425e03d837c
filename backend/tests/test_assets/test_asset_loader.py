"""Tests for the asset loader: failure folding, idempotency, stale batches."""

from __future__ import annotations

import asyncio

from bannerforge.assets.cache import ImageCache
from bannerforge.assets.loader import AssetLoader
from tests.conftest import ACHIEVER, BACKGROUND, MENTOR, STICKER, FakeFetcher


def _loader(fetcher: FakeFetcher, cache: ImageCache | None = None, **kwargs) -> AssetLoader:
    return AssetLoader(fetcher, cache if cache is not None else ImageCache(), max_concurrency=5, **kwargs)


def test_loads_every_uri(fake_fetcher):
    async def run():
        loader = _loader(fake_fetcher)
        result = await loader.load([ACHIEVER, MENTOR]).result()
        return loader, result

    loader, result = asyncio.run(run())
    assert result.all_succeeded
    assert set(result.assets) == {ACHIEVER, MENTOR}
    assert result.assets[ACHIEVER].image.mode == "RGBA"
    assert loader.current is result


def test_failure_folds_into_none(fake_fetcher):
    errors = []
    fake_fetcher.failing.add(MENTOR)

    async def run():
        loader = _loader(fake_fetcher, on_error=lambda uri, exc: errors.append(uri))
        return await loader.load([ACHIEVER, MENTOR, "https://cdn.example.com/missing.png"]).result()

    result = asyncio.run(run())
    assert not result.all_succeeded
    assert result.assets[ACHIEVER].ok
    assert result.assets[MENTOR].image is None
    assert result.assets[MENTOR].error == "HTTP 404"
    assert sorted(result.failed) == sorted([MENTOR, "https://cdn.example.com/missing.png"])
    assert MENTOR in errors


def test_undecodable_bytes_fold_into_none(fake_fetcher):
    fake_fetcher.payloads[STICKER] = b"not an image"

    async def run():
        return await _loader(fake_fetcher).load([STICKER]).result()

    result = asyncio.run(run())
    assert result.assets[STICKER].image is None
    assert "decode failed" in result.assets[STICKER].error


def test_same_uri_set_is_idempotent(fake_fetcher):
    async def run():
        loader = _loader(fake_fetcher)
        first = loader.load([ACHIEVER, MENTOR])
        await first.result()
        calls = len(fake_fetcher.calls)
        second = loader.load([MENTOR, ACHIEVER, ACHIEVER])
        await second.result()
        return first, second, calls

    first, second, calls = asyncio.run(run())
    assert first is second
    assert len(fake_fetcher.calls) == calls == 2


def test_shared_cache_avoids_refetch(fake_fetcher, image_cache):
    async def run():
        await _loader(fake_fetcher, image_cache).load([ACHIEVER]).result()
        return await _loader(fake_fetcher, image_cache).load([ACHIEVER, MENTOR]).result()

    result = asyncio.run(run())
    assert result.all_succeeded
    assert fake_fetcher.calls == [ACHIEVER, MENTOR]
    assert ACHIEVER in image_cache


def test_stale_batch_never_commits(fake_fetcher):
    fake_fetcher.delays[BACKGROUND] = 0.2

    async def run():
        loader = _loader(fake_fetcher)
        old = loader.load([BACKGROUND])
        await asyncio.sleep(0.01)
        new = loader.load([MENTOR])
        new_result = await new.result()
        old_result = await old.result()
        return loader, old, new, old_result, new_result

    loader, old, new, old_result, new_result = asyncio.run(run())
    assert new.generation > old.generation
    assert old_result.assets[BACKGROUND].ok
    assert loader.current is new_result
    assert BACKGROUND not in loader.current.assets


def test_progress_reports_each_completion(fake_fetcher):
    seen = []

    async def run():
        loader = _loader(fake_fetcher, on_progress=lambda done, total: seen.append((done, total)))
        batch = loader.load([ACHIEVER, MENTOR, STICKER])
        await batch.result()
        return batch

    batch = asyncio.run(run())
    assert seen == [(1, 3), (2, 3), (3, 3)]
    assert batch.progress == (3, 3)
    assert batch.percent == 100


def test_iteration_yields_in_completion_order(fake_fetcher):
    fake_fetcher.delays[ACHIEVER] = 0.1

    async def run():
        batch = _loader(fake_fetcher).load([ACHIEVER, MENTOR])
        return [asset.uri async for asset in batch]

    assert asyncio.run(run()) == [MENTOR, ACHIEVER]


def test_slow_asset_times_out(fake_fetcher):
    fake_fetcher.delays[ACHIEVER] = 1.0

    async def run():
        return await _loader(fake_fetcher, timeout=0.05).load([ACHIEVER, MENTOR]).result()

    result = asyncio.run(run())
    assert result.assets[ACHIEVER].image is None
    assert "timed out" in result.assets[ACHIEVER].error
    assert result.assets[MENTOR].ok


def test_nothing_commits_after_close(fake_fetcher):
    fake_fetcher.delays[ACHIEVER] = 0.1

    async def run():
        loader = _loader(fake_fetcher)
        loader.load([ACHIEVER])
        await loader.close()
        await asyncio.sleep(0.2)
        return loader

    assert asyncio.run(run()).current is None


def test_empty_batch_completes(fake_fetcher):
    async def run():
        batch = _loader(fake_fetcher).load([])
        return batch, await batch.result()

    batch, result = asyncio.run(run())
    assert result.assets == {}
    assert result.all_succeeded
    assert batch.percent == 100


def test_iteration_ends_when_loader_closes(fake_fetcher):
    fake_fetcher.delays[MENTOR] = 5.0

    async def run():
        loader = _loader(fake_fetcher)
        batch = loader.load([ACHIEVER, MENTOR])
        seen = []

        async def consume():
            async for asset in batch:
                seen.append(asset.uri)

        consumer = asyncio.ensure_future(consume())
        await asyncio.sleep(0.05)
        await loader.close()
        await asyncio.wait_for(consumer, timeout=1.0)
        return seen

    assert asyncio.run(run()) == [ACHIEVER]


class _CountingFetcher(FakeFetcher):
    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.active = 0
        self.peak = 0

    async def fetch(self, uri: str) -> bytes:
        self.active += 1
        self.peak = max(self.peak, self.active)
        try:
            await asyncio.sleep(0.01)
            return await super().fetch(uri)
        finally:
            self.active -= 1


def test_fetches_respect_max_concurrency(png):
    uris = [ACHIEVER, BACKGROUND, MENTOR, STICKER]
    fetcher = _CountingFetcher({uri: png for uri in uris})

    async def run():
        loader = AssetLoader(fetcher, ImageCache(), max_concurrency=2)
        return await loader.load(uris).result()

    result = asyncio.run(run())
    assert result.all_succeeded
    assert fetcher.peak == 2

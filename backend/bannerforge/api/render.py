"""POST /api/compose, /api/compose/stream, /api/export."""

from __future__ import annotations

import json
import logging
import time
from collections.abc import AsyncGenerator, Callable

from fastapi import APIRouter, Depends, Query
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import Response, StreamingResponse

from bannerforge.assets.loader import AssetLoader, LoadResult
from bannerforge.dependencies import get_engine, get_exporter, get_loader_factory, get_slot_store
from bannerforge.engine.composer import CompositionEngine, required_uris
from bannerforge.engine.context import Composition
from bannerforge.models.descriptor import StickerPlacement
from bannerforge.models.requests import ComposeRequest, ExportRequest
from bannerforge.models.responses import ComposeResponse
from bannerforge.render.exporter import Exporter, ExportProfile, export_filename
from bannerforge.slots.store import SlotTransformStore

logger = logging.getLogger(__name__)

router = APIRouter()


def _slot_stickers(req: ComposeRequest, store: SlotTransformStore) -> list[StickerPlacement]:
    slot_number = req.slot_number or req.descriptor.background_slot
    if not req.entity_id or slot_number is None:
        return []
    return store.sticker_placements(req.entity_id, req.descriptor.category, slot_number)


def _response(composition: Composition, loaded: LoadResult, start: float) -> ComposeResponse:
    return ComposeResponse(
        category=composition.category,
        width=composition.width,
        height=composition.height,
        ops=[op.to_dict() for op in composition.ops],
        errors={layer.name.lower(): msg for layer, msg in composition.errors.items()},
        assets_total=len(loaded.assets),
        assets_loaded=sum(1 for a in loaded.assets.values() if a.ok),
        failed_assets=loaded.failed,
        processing_time_ms=round((time.perf_counter() - start) * 1000, 1),
    )


async def _compose(
    req: ComposeRequest,
    loader_factory: Callable[[], AssetLoader],
    store: SlotTransformStore,
    engine: CompositionEngine,
) -> tuple[Composition, LoadResult]:
    stickers = _slot_stickers(req, store)
    async with loader_factory() as loader:
        loaded = await loader.load(required_uris(req.descriptor, stickers)).result()
    return engine.compose(req.descriptor, loaded.assets, stickers), loaded


@router.post("/compose", response_model=ComposeResponse)
async def compose(
    req: ComposeRequest,
    loader_factory: Callable[[], AssetLoader] = Depends(get_loader_factory),
    store: SlotTransformStore = Depends(get_slot_store),
    engine: CompositionEngine = Depends(get_engine),
) -> ComposeResponse:
    start = time.perf_counter()
    composition, loaded = await _compose(req, loader_factory, store, engine)
    return _response(composition, loaded, start)


async def _stream_compose(
    req: ComposeRequest,
    loader_factory: Callable[[], AssetLoader],
    store: SlotTransformStore,
    engine: CompositionEngine,
) -> AsyncGenerator[str, None]:
    """Yield SSE progress events as assets resolve, then the composition."""
    start = time.perf_counter()
    stickers = _slot_stickers(req, store)

    async with loader_factory() as loader:
        batch = loader.load(required_uris(req.descriptor, stickers))
        async for asset in batch:
            done, total = batch.progress
            data = json.dumps({"uri": asset.uri, "ok": asset.ok, "completed": done, "total": total})
            yield f"event: progress\ndata: {data}\n\n"
        loaded = await batch.result()

    composition = engine.compose(req.descriptor, loaded.assets, stickers)
    yield f"event: result\ndata: {_response(composition, loaded, start).model_dump_json()}\n\n"
    yield f"event: done\ndata: {json.dumps({'type': 'done'})}\n\n"


@router.post("/compose/stream")
async def compose_stream(
    req: ComposeRequest,
    loader_factory: Callable[[], AssetLoader] = Depends(get_loader_factory),
    store: SlotTransformStore = Depends(get_slot_store),
    engine: CompositionEngine = Depends(get_engine),
) -> StreamingResponse:
    return StreamingResponse(
        _stream_compose(req, loader_factory, store, engine),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )


@router.post("/export")
async def export(
    req: ExportRequest,
    profile: ExportProfile = Query(default=ExportProfile.NATIVE),
    loader_factory: Callable[[], AssetLoader] = Depends(get_loader_factory),
    store: SlotTransformStore = Depends(get_slot_store),
    engine: CompositionEngine = Depends(get_engine),
    exporter: Exporter = Depends(get_exporter),
) -> Response:
    composition, _ = await _compose(req, loader_factory, store, engine)

    # Rasterizing is CPU-bound; keep the event loop free
    result = await run_in_threadpool(
        exporter.export,
        composition,
        req.width,
        req.height,
        profile=profile,
        max_bytes=req.max_bytes,
    )
    filename = export_filename(req.descriptor.category)
    return Response(
        content=result.data,
        media_type=result.media_type,
        headers={
            "Content-Disposition": f'attachment; filename="{filename}"',
            "X-Export-Quality": str(result.quality),
        },
    )

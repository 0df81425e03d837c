"""Slot CRUD: /api/slots/{category}/{entity_id}[/{slot_number}]."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response

from bannerforge.dependencies import get_slot_store
from bannerforge.models.requests import SlotTransformPatch, SlotUpsertRequest
from bannerforge.models.responses import SlotListResponse, SlotResponse
from bannerforge.models.slots import SlotKey, SlotKind, SlotTransform
from bannerforge.slots.store import SlotTransformStore

router = APIRouter(prefix="/slots")


@router.get("/{category}/{entity_id}", response_model=SlotListResponse)
async def list_slots(
    category: str,
    entity_id: str,
    kind: SlotKind = Query(default=SlotKind.STICKER),
    active_only: bool = False,
    store: SlotTransformStore = Depends(get_slot_store),
) -> SlotListResponse:
    slots = store.list_slots(entity_id, category, kind, active_only=active_only)
    return SlotListResponse(
        entity_id=entity_id,
        banner_category=category,
        kind=kind,
        capacity=store.capacity,
        slots=[SlotResponse.from_slot(s, kind) for s in slots],
    )


@router.put("/{category}/{entity_id}/{slot_number}", response_model=SlotResponse)
async def upsert_slot(
    category: str,
    entity_id: str,
    slot_number: int,
    req: SlotUpsertRequest,
    kind: SlotKind = Query(default=SlotKind.STICKER),
    store: SlotTransformStore = Depends(get_slot_store),
) -> SlotResponse:
    key = SlotKey(entity_id, category, slot_number, kind)
    transform = None
    if req.has_transform():
        transform = SlotTransform().merged(
            position_x=req.position_x, position_y=req.position_y, scale=req.scale, rotation=req.rotation
        )
    return SlotResponse.from_slot(store.upsert_slot(key, req.image_url, transform), kind)


@router.patch("/{category}/{entity_id}/{slot_number}/transform", response_model=SlotResponse)
async def set_transform(
    category: str,
    entity_id: str,
    slot_number: int,
    req: SlotTransformPatch,
    kind: SlotKind = Query(default=SlotKind.STICKER),
    store: SlotTransformStore = Depends(get_slot_store),
) -> SlotResponse:
    key = SlotKey(entity_id, category, slot_number, kind)
    slot = store.set_transform(key, **req.model_dump())
    return SlotResponse.from_slot(slot, kind)


@router.post("/{category}/{entity_id}/{slot_number}/toggle", response_model=SlotResponse)
async def toggle_active(
    category: str,
    entity_id: str,
    slot_number: int,
    kind: SlotKind = Query(default=SlotKind.STICKER),
    store: SlotTransformStore = Depends(get_slot_store),
) -> SlotResponse:
    return SlotResponse.from_slot(store.toggle_active(SlotKey(entity_id, category, slot_number, kind)), kind)


@router.delete("/{category}/{entity_id}/{slot_number}", status_code=204)
async def remove_slot(
    category: str,
    entity_id: str,
    slot_number: int,
    kind: SlotKind = Query(default=SlotKind.STICKER),
    store: SlotTransformStore = Depends(get_slot_store),
) -> Response:
    store.remove_slot(SlotKey(entity_id, category, slot_number, kind))
    return Response(status_code=204)


@router.post("/{category}/{entity_id}/invalidate", status_code=204)
async def invalidate(
    category: str,
    entity_id: str,
    store: SlotTransformStore = Depends(get_slot_store),
) -> Response:
    store.invalidate(entity_id, category)
    return Response(status_code=204)

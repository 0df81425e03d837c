"""API response models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from bannerforge.models.slots import Slot, SlotKind


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str = "0.1.0"
    layouts_registered: int = 0


class ComposeResponse(BaseModel):
    category: str
    width: int = 1350
    height: int = 1350
    ops: list[dict[str, Any]] = Field(default_factory=list)
    errors: dict[str, str] = Field(default_factory=dict)
    assets_total: int = 0
    assets_loaded: int = 0
    failed_assets: list[str] = Field(default_factory=list)
    processing_time_ms: float = 0.0


class SlotResponse(BaseModel):
    slot_number: int
    kind: SlotKind = SlotKind.STICKER
    image_url: str
    position_x: float
    position_y: float
    scale: float
    rotation: float
    is_active: bool

    @classmethod
    def from_slot(cls, slot: Slot, kind: SlotKind = SlotKind.STICKER) -> SlotResponse:
        t = slot.transform
        return cls(
            slot_number=slot.slot_number,
            kind=kind,
            image_url=slot.image_uri,
            position_x=t.position_x,
            position_y=t.position_y,
            scale=t.scale,
            rotation=t.rotation,
            is_active=slot.is_active,
        )


class SlotListResponse(BaseModel):
    entity_id: str
    banner_category: str
    kind: SlotKind = SlotKind.STICKER
    capacity: int = 16
    slots: list[SlotResponse] = Field(default_factory=list)

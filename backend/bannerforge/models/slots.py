"""Slot records: per-entity sticker and background placements."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Default placement baked into existing banner content. Matches the
# sticker defaults in LayoutConfig.
DEFAULT_POSITION_X = 77.0
DEFAULT_POSITION_Y = 62.0
DEFAULT_SCALE = 9.3
DEFAULT_ROTATION = 0.0

SLOTS_PER_GROUP = 16


class SlotKind(str, enum.Enum):
    STICKER = "sticker"
    BACKGROUND = "background"


@dataclass(frozen=True)
class SlotKey:
    entity_id: str
    banner_category: str
    slot_number: int
    kind: SlotKind = SlotKind.STICKER

    @property
    def group(self) -> tuple[str, str, SlotKind]:
        return (self.entity_id, self.banner_category, self.kind)

    def __str__(self) -> str:
        return f"{self.banner_category}/{self.entity_id}/{self.kind.value}#{self.slot_number}"


class SlotTransform(BaseModel):
    """Normalized transform: percent position, scale factor, degrees."""

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    position_x: float = DEFAULT_POSITION_X
    position_y: float = DEFAULT_POSITION_Y
    scale: float = Field(default=DEFAULT_SCALE, gt=0)
    rotation: float = DEFAULT_ROTATION

    @field_validator("position_x", "position_y")
    @classmethod
    def _clamp_position(cls, v: float) -> float:
        return max(0.0, min(100.0, float(v)))

    @field_validator("rotation")
    @classmethod
    def _normalize_rotation(cls, v: float) -> float:
        return float(v) % 360.0

    def merged(self, **changes: float | None) -> SlotTransform:
        """Copy with only the non-None fields replaced (re-validated)."""
        updates = {k: v for k, v in changes.items() if v is not None}
        if not updates:
            return self
        return SlotTransform(**{**self.model_dump(), **updates})


class Slot(BaseModel):
    model_config = ConfigDict(frozen=True)

    slot_number: int
    image_uri: str
    transform: SlotTransform = Field(default_factory=SlotTransform)
    is_active: bool = True

    def to_record(self, key: SlotKey) -> SlotRecord:
        return SlotRecord(
            entity_id=key.entity_id,
            banner_category=key.banner_category,
            slot_number=self.slot_number,
            kind=key.kind,
            image_url=self.image_uri,
            position_x=self.transform.position_x,
            position_y=self.transform.position_y,
            scale=self.transform.scale,
            rotation=self.transform.rotation,
            is_active=self.is_active,
        )


class SlotRecord(BaseModel):
    """Row shape of the external slot store."""

    entity_id: str
    banner_category: str
    slot_number: int
    kind: SlotKind = SlotKind.STICKER
    image_url: str
    position_x: float | None = None
    position_y: float | None = None
    scale: float | None = None
    rotation: float | None = None
    is_active: bool | None = True

    @property
    def key(self) -> SlotKey:
        return SlotKey(self.entity_id, self.banner_category, self.slot_number, self.kind)

    def to_slot(self) -> Slot:
        # Null columns fall back to the default placement.
        fields: dict[str, Any] = {
            "position_x": self.position_x,
            "position_y": self.position_y,
            "scale": self.scale,
            "rotation": self.rotation,
        }
        return Slot(
            slot_number=self.slot_number,
            image_uri=self.image_url,
            transform=SlotTransform(**{k: v for k, v in fields.items() if v is not None}),
            is_active=True if self.is_active is None else self.is_active,
        )

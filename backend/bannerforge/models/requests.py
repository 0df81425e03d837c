"""API request models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from bannerforge.models.descriptor import BannerDescriptor


class ComposeRequest(BaseModel):
    descriptor: BannerDescriptor
    entity_id: str | None = Field(default=None, description="Owner of slot stickers to include")
    slot_number: int | None = Field(
        default=None,
        ge=1,
        description="Sticker slot to include; defaults to the descriptor's background slot",
    )


class ExportRequest(ComposeRequest):
    width: int | None = Field(default=None, gt=0, description="Target width in px (square if height omitted)")
    height: int | None = Field(default=None, gt=0)
    max_bytes: int | None = Field(default=None, ge=0, description="Size budget; 0 disables the quality loop")


class SlotUpsertRequest(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    image_url: str = Field(..., min_length=1)
    position_x: float | None = None
    position_y: float | None = None
    scale: float | None = Field(default=None, gt=0)
    rotation: float | None = None

    def has_transform(self) -> bool:
        return any(v is not None for v in (self.position_x, self.position_y, self.scale, self.rotation))


class SlotTransformPatch(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    position_x: float | None = None
    position_y: float | None = None
    scale: float | None = Field(default=None, gt=0)
    rotation: float | None = None

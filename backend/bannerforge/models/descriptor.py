"""BannerDescriptor: the declarative input to one render."""

from __future__ import annotations

import enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from bannerforge.errors import InvalidCategory

MAX_UPLINES = 5


class BannerCategory(str, enum.Enum):
    RANK = "rank"
    BONANZA = "bonanza"
    BIRTHDAY = "birthday"
    ANNIVERSARY = "anniversary"
    MEETING = "meeting"
    FESTIVAL = "festival"
    MOTIVATIONAL = "motivational"
    STORY = "story"

    @classmethod
    def parse(cls, value: object) -> BannerCategory:
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise InvalidCategory(value) from None


class _Model(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        allow_inf_nan=False,
    )


def _blank_to_none(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, (int, float)):
        value = str(value)
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


class TextFields(_Model):
    """User-supplied strings. ``None`` omits the element; no placeholders."""

    user_name: str | None = None
    team_city: str | None = None
    cheque_amount: str | None = None
    mobile: str | None = None
    profile_name: str | None = None
    profile_rank: str | None = None
    rank_name: str | None = None
    trip_name: str | None = None
    message: str | None = None
    quote: str | None = None
    event_title: str | None = None
    event_date: str | None = None
    event_venue: str | None = None

    @field_validator("*", mode="before")
    @classmethod
    def _coerce(cls, v: Any) -> Any:
        return _blank_to_none(v)


class ImageRefs(_Model):
    achiever: str | None = None
    background: str | None = None
    mentor: str | None = None
    logo_left: str | None = None
    logo_right: str | None = None
    congrats_image: str | None = None

    @field_validator("*", mode="before")
    @classmethod
    def _coerce(cls, v: Any) -> Any:
        return _blank_to_none(v)


class Upline(_Model):
    id: str
    name: str = ""
    avatar_uri: str | None = None

    @field_validator("avatar_uri", mode="before")
    @classmethod
    def _coerce(cls, v: Any) -> Any:
        return _blank_to_none(v)


class StickerPlacement(_Model):
    """A sticker centered at a percentage of the canvas.

    Unset transform fields fall back to the layout's sticker defaults.
    """

    id: str
    image_uri: str | None = None
    position_x: float | None = Field(default=None, ge=0, le=100)
    position_y: float | None = Field(default=None, ge=0, le=100)
    scale: float | None = Field(default=None, gt=0)
    rotation_deg: float | None = None

    @field_validator("image_uri", mode="before")
    @classmethod
    def _coerce(cls, v: Any) -> Any:
        return _blank_to_none(v)


class BannerDescriptor(_Model):
    category: str = Field(..., min_length=1)
    text_fields: TextFields = Field(default_factory=TextFields)
    image_refs: ImageRefs = Field(default_factory=ImageRefs)
    uplines: tuple[Upline, ...] = Field(default=(), max_length=MAX_UPLINES)
    stickers: tuple[StickerPlacement, ...] = ()
    flip_achiever: bool = False
    flip_mentor: bool = False
    background_slot: int | None = Field(default=None, ge=1, le=16)

    @field_validator("category", mode="before")
    @classmethod
    def _normalize_category(cls, v: Any) -> Any:
        if isinstance(v, BannerCategory):
            return v.value
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @property
    def banner_category(self) -> BannerCategory | None:
        """The parsed category, or None when it is not a known value."""
        try:
            return BannerCategory.parse(self.category)
        except InvalidCategory:
            return None

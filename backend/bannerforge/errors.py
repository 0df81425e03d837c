"""Exception taxonomy for the composition and slot engine."""

from __future__ import annotations


class BannerForgeError(Exception):
    """Base class for all engine errors."""


class AssetUnavailable(BannerForgeError):
    """An asset could not be fetched or decoded.

    Never propagated past the loader: the asset resolves to ``image=None``.
    """

    def __init__(self, uri: str, reason: str):
        self.uri = uri
        self.reason = reason
        super().__init__(f"Asset unavailable: {uri} ({reason})")


class InvalidCategory(BannerForgeError, ValueError):
    """Unrecognized banner category; the category block renders nothing."""

    def __init__(self, value: object):
        self.value = value
        super().__init__(f"Unknown banner category: {value!r}")


class SlotCapacityExceeded(BannerForgeError):
    """A 17th slot was attempted for one (entity, category, kind) group."""

    def __init__(self, entity_id: str, banner_category: str, capacity: int):
        self.entity_id = entity_id
        self.banner_category = banner_category
        self.capacity = capacity
        super().__init__(
            f"Maximum slots reached ({capacity}) for {banner_category}/{entity_id}"
        )


class InvalidSlotNumber(BannerForgeError, ValueError):
    def __init__(self, slot_number: int):
        self.slot_number = slot_number
        super().__init__(f"Slot numbers start at 1, got {slot_number}")


class SlotNotFound(BannerForgeError, KeyError):
    def __init__(self, key: object):
        self.key = key
        super().__init__(f"No slot at {key}")

    def __str__(self) -> str:
        return str(self.args[0])


class StaleSlotEdit(BannerForgeError):
    """A gesture tried to commit after its slot group was invalidated."""


class StaleBatchDiscarded(BannerForgeError):
    """Internal signal: a superseded asset batch finished and was ignored."""

    def __init__(self, generation: int, current: int):
        self.generation = generation
        self.current = current
        super().__init__(f"Batch {generation} superseded by {current}")


class ViewportNotReady(BannerForgeError):
    """The viewport has not observed a non-zero container width yet."""


class ExportFailure(BannerForgeError):
    """Rasterization or encoding failed; fatal for this export only."""

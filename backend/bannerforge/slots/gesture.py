"""TransformGesture: one drag/resize/rotate session against a slot.

Updates only touch the store's working copy; ``commit`` issues exactly one
persistence write, ``cancel`` restores the snapshot.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from bannerforge.errors import StaleSlotEdit
from bannerforge.models.slots import SlotKey, SlotTransform
from bannerforge.utils.geometry import logical_to_percent

if TYPE_CHECKING:
    from bannerforge.slots.store import SlotTransformStore

logger = logging.getLogger(__name__)


class TransformGesture:
    def __init__(self, store: SlotTransformStore, key: SlotKey) -> None:
        self.store = store
        self.key = key
        self.snapshot: SlotTransform = store.get(key).transform
        self.working: SlotTransform = self.snapshot
        self.generation = store.generation(key)
        self.finished = False

    @property
    def stale(self) -> bool:
        return self.store.generation(self.key) != self.generation

    def _ensure_open(self) -> None:
        if self.finished:
            raise RuntimeError(f"Gesture on {self.key} already finished")

    def update(
        self,
        *,
        position_x: float | None = None,
        position_y: float | None = None,
        scale: float | None = None,
        rotation: float | None = None,
    ) -> SlotTransform:
        self._ensure_open()
        self.working = self.working.merged(
            position_x=position_x, position_y=position_y, scale=scale, rotation=rotation
        )
        if not self.stale:
            self.store._stage(self.key, self.working)
        return self.working

    def drag_by(self, dx: float, dy: float, canvas_size: float = 1350) -> SlotTransform:
        """Move by a delta in logical units (convert screen deltas first)."""
        return self.update(
            position_x=self.working.position_x + logical_to_percent(dx, canvas_size),
            position_y=self.working.position_y + logical_to_percent(dy, canvas_size),
        )

    def commit(self):
        self._ensure_open()
        if self.stale:
            self.finished = True
            self.store._end_gesture(self.key)
            raise StaleSlotEdit(f"Slot {self.key} changed remotely; edit discarded")
        self.finished = True
        slot = self.store._commit(self.key, self.working)
        logger.debug("Committed gesture on %s", self.key)
        return slot

    def cancel(self) -> None:
        self._ensure_open()
        self.finished = True
        self.store._end_gesture(self.key)
        if not self.stale:
            self.store._stage(self.key, self.snapshot)

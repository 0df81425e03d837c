"""SlotTransformStore: 16 slots per (entity, category, kind), write-through."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from bannerforge.errors import InvalidSlotNumber, SlotCapacityExceeded, SlotNotFound
from bannerforge.models.descriptor import StickerPlacement
from bannerforge.models.slots import SLOTS_PER_GROUP, Slot, SlotKey, SlotKind, SlotTransform
from bannerforge.slots.persistence import InMemorySlotPersistence, SlotPersistence

logger = logging.getLogger(__name__)

GroupKey = tuple[str, str, SlotKind]


@dataclass
class _Group:
    generation: int
    slots: dict[int, Slot] = field(default_factory=dict)


class SlotTransformStore:
    """Working copy of slot state over a persistence backend.

    Groups are read from persistence on first access and every discrete
    operation writes through. ``invalidate`` drops a cached group so the
    next access re-reads it (live-update channel).
    """

    def __init__(self, persistence: SlotPersistence | None = None, capacity: int = SLOTS_PER_GROUP) -> None:
        self.persistence = persistence if persistence is not None else InMemorySlotPersistence()
        self.capacity = capacity
        self._groups: dict[GroupKey, _Group] = {}
        self._generations: dict[GroupKey, int] = {}
        # Last persisted transform of slots with a gesture in progress
        self._open_gestures: dict[SlotKey, SlotTransform] = {}

    # -- group cache ----------------------------------------------------

    def _group(self, group_key: GroupKey) -> _Group:
        group = self._groups.get(group_key)
        if group is None:
            entity_id, banner_category, kind = group_key
            records = self.persistence.load_group(entity_id, banner_category, kind)
            group = _Group(generation=self._generations.get(group_key, 0))
            for record in records:
                group.slots[record.slot_number] = record.to_slot()
            self._groups[group_key] = group
            logger.debug("Rehydrated %s/%s/%s: %d slots", banner_category, entity_id, kind.value, len(records))
        return group

    def generation(self, key: SlotKey) -> int:
        return self._generations.get(key.group, 0)

    def _check_number(self, key: SlotKey) -> None:
        if key.slot_number < 1:
            raise InvalidSlotNumber(key.slot_number)
        if key.slot_number > self.capacity:
            raise SlotCapacityExceeded(key.entity_id, key.banner_category, self.capacity)

    def _write(self, key: SlotKey, slot: Slot, transform_changed: bool = False) -> Slot:
        """Persist, then update the cache. Staged gesture transforms are never persisted."""
        record = slot
        if key in self._open_gestures and not transform_changed:
            record = slot.model_copy(update={"transform": self._open_gestures[key]})
        self.persistence.save(record.to_record(key))
        if key in self._open_gestures:
            self._open_gestures[key] = record.transform
        self._group(key.group).slots[key.slot_number] = slot
        return slot

    # -- operations -----------------------------------------------------

    def get(self, key: SlotKey) -> Slot:
        slot = self._group(key.group).slots.get(key.slot_number)
        if slot is None:
            raise SlotNotFound(key)
        return slot

    def upsert_slot(self, key: SlotKey, image_uri: str, transform: SlotTransform | None = None) -> Slot:
        """Create or replace the slot image; transform and active flag kept unless given."""
        self._check_number(key)
        group = self._group(key.group)
        existing = group.slots.get(key.slot_number)
        if existing is None:
            if len(group.slots) >= self.capacity:
                raise SlotCapacityExceeded(key.entity_id, key.banner_category, self.capacity)
            slot = Slot(slot_number=key.slot_number, image_uri=image_uri, transform=transform or SlotTransform())
        else:
            slot = existing.model_copy(
                update={"image_uri": image_uri, "transform": transform or existing.transform}
            )
        logger.info("Upserted slot %s", key)
        return self._write(key, slot, transform_changed=transform is not None)

    def add_slot(
        self,
        entity_id: str,
        banner_category: str,
        image_uri: str,
        kind: SlotKind = SlotKind.STICKER,
    ) -> Slot:
        """Place ``image_uri`` in the lowest free slot number."""
        group = self._group((entity_id, banner_category, kind))
        for number in range(1, self.capacity + 1):
            if number not in group.slots:
                return self.upsert_slot(SlotKey(entity_id, banner_category, number, kind), image_uri)
        raise SlotCapacityExceeded(entity_id, banner_category, self.capacity)

    def set_transform(
        self,
        key: SlotKey,
        *,
        position_x: float | None = None,
        position_y: float | None = None,
        scale: float | None = None,
        rotation: float | None = None,
    ) -> Slot:
        """Merge only the provided fields into the slot's transform."""
        slot = self.get(key)
        transform = slot.transform.merged(
            position_x=position_x, position_y=position_y, scale=scale, rotation=rotation
        )
        return self._write(key, slot.model_copy(update={"transform": transform}), transform_changed=True)

    def toggle_active(self, key: SlotKey) -> Slot:
        slot = self.get(key)
        return self._write(key, slot.model_copy(update={"is_active": not slot.is_active}))

    def remove_slot(self, key: SlotKey) -> None:
        group = self._group(key.group)
        if key.slot_number not in group.slots:
            raise SlotNotFound(key)
        self.persistence.delete(key)
        del group.slots[key.slot_number]
        self._open_gestures.pop(key, None)
        logger.info("Removed slot %s", key)

    def list_slots(
        self,
        entity_id: str,
        banner_category: str,
        kind: SlotKind = SlotKind.STICKER,
        active_only: bool = False,
    ) -> list[Slot]:
        group = self._group((entity_id, banner_category, kind))
        slots = [group.slots[n] for n in sorted(group.slots)]
        if active_only:
            slots = [s for s in slots if s.is_active]
        return slots

    def sticker_placements(self, entity_id: str, banner_category: str, slot_number: int) -> list[StickerPlacement]:
        """The active sticker in ``slot_number`` as composer input (empty if none)."""
        key = SlotKey(entity_id, banner_category, slot_number, SlotKind.STICKER)
        try:
            slot = self.get(key)
        except SlotNotFound:
            return []
        if not slot.is_active:
            return []
        t = slot.transform
        return [
            StickerPlacement(
                id=str(key),
                image_uri=slot.image_uri,
                position_x=t.position_x,
                position_y=t.position_y,
                scale=t.scale,
                rotation_deg=t.rotation,
            )
        ]

    def invalidate(self, entity_id: str, banner_category: str) -> None:
        """Drop cached groups (all kinds); the next access re-reads persistence."""
        for kind in SlotKind:
            group_key = (entity_id, banner_category, kind)
            self._generations[group_key] = self._generations.get(group_key, 0) + 1
            self._groups.pop(group_key, None)
        for key in [k for k in self._open_gestures if k.group[:2] == (entity_id, banner_category)]:
            del self._open_gestures[key]
        logger.info("Invalidated %s/%s", banner_category, entity_id)

    def flush(self) -> int:
        """Write every cached slot back to persistence. Returns the row count."""
        count = 0
        for (entity_id, banner_category, kind), group in self._groups.items():
            for number, slot in group.slots.items():
                key = SlotKey(entity_id, banner_category, number, kind)
                if key in self._open_gestures:
                    slot = slot.model_copy(update={"transform": self._open_gestures[key]})
                self.persistence.save(slot.to_record(key))
                count += 1
        logger.info("Flushed %d slots", count)
        return count

    def begin_gesture(self, key: SlotKey):
        from bannerforge.slots.gesture import TransformGesture

        gesture = TransformGesture(self, key)
        self._open_gestures.setdefault(key, gesture.snapshot)
        return gesture

    # -- gesture support ------------------------------------------------

    def _stage(self, key: SlotKey, transform: SlotTransform) -> None:
        """In-memory only: used while a gesture is in progress."""
        group = self._group(key.group)
        slot = group.slots.get(key.slot_number)
        if slot is None:
            raise SlotNotFound(key)
        group.slots[key.slot_number] = slot.model_copy(update={"transform": transform})

    def _commit(self, key: SlotKey, transform: SlotTransform) -> Slot:
        slot = self.get(key)
        self._open_gestures.pop(key, None)
        return self._write(key, slot.model_copy(update={"transform": transform}))

    def _end_gesture(self, key: SlotKey) -> None:
        self._open_gestures.pop(key, None)

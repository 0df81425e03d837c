"""Slot persistence boundary.

The store talks to any backend through ``SlotPersistence``; the in-memory
implementation backs the API process and the tests.
"""

from __future__ import annotations

import logging
from typing import Protocol

from bannerforge.models.slots import SlotKey, SlotKind, SlotRecord

logger = logging.getLogger(__name__)


class SlotPersistence(Protocol):
    def load_group(self, entity_id: str, banner_category: str, kind: SlotKind) -> list[SlotRecord]: ...

    def save(self, record: SlotRecord) -> None: ...

    def delete(self, key: SlotKey) -> None: ...


class InMemorySlotPersistence:
    """Dict-backed rows keyed by SlotKey. Counts writes for batching checks."""

    def __init__(self, records: list[SlotRecord] | None = None) -> None:
        self._rows: dict[SlotKey, SlotRecord] = {}
        self.writes = 0
        self.reads = 0
        for record in records or []:
            self._rows[record.key] = record

    def load_group(self, entity_id: str, banner_category: str, kind: SlotKind) -> list[SlotRecord]:
        self.reads += 1
        rows = [
            r
            for k, r in self._rows.items()
            if k.group == (entity_id, banner_category, kind)
        ]
        return sorted(rows, key=lambda r: r.slot_number)

    def save(self, record: SlotRecord) -> None:
        self.writes += 1
        self._rows[record.key] = record
        logger.debug("Saved slot %s", record.key)

    def delete(self, key: SlotKey) -> None:
        self.writes += 1
        self._rows.pop(key, None)
        logger.debug("Deleted slot %s", key)

    def __len__(self) -> int:
        return len(self._rows)

"""Snapshot-diff change detection.

Every monitored resource keeps a snapshot (``dict`` of key -> last observed
value) owned by the detector instance. The first non-empty fetch of a
resource primes the snapshot without emitting events; later fetches are
diffed according to the detector's policy:

* :class:`SetMembershipDetector` - report keys never seen before (listings).
* :class:`LatestValueDetector` - report when the most recent item changes
  (wallet transfers). Only the newest item is compared, so several transfers
  landing between two polls produce a single event.
* :class:`ScalarThresholdDetector` - report when a numeric value jumps above
  ``ratio`` times its previous value and above an absolute floor (volume).
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence
from loguru import logger

from .types import ChangeEvent, ChangeKind, Entity


Snapshot = Dict[str, Any]


class ChangeDetector(ABC):
    """Base class for snapshot-diff detectors."""

    kind: ChangeKind

    def __init__(self):
        self.snapshots: Dict[str, Snapshot] = {}

    def detect_changes(self, resource_id: str, entities: Sequence[Entity]) -> List[ChangeEvent]:
        """Diff fresh entities against the stored snapshot for a resource."""
        if not entities:
            # Empty or malformed upstream answers are never used as a baseline
            logger.debug(f"{resource_id}: no data, snapshot left untouched")
            return []

        snapshot = self.snapshots.get(resource_id)
        if snapshot is None:
            self.snapshots[resource_id] = self._prime(entities)
            logger.info(f"{resource_id}: snapshot primed with {len(entities)} entries")
            return []

        return self._diff(resource_id, snapshot, entities)

    def snapshot(self, resource_id: str) -> Optional[Snapshot]:
        """Current snapshot for a resource, or None before priming."""
        return self.snapshots.get(resource_id)

    def reset(self, resource_id: Optional[str] = None) -> None:
        """Forget one snapshot (or all of them) so the next fetch primes again."""
        if resource_id is None:
            self.snapshots.clear()
        else:
            self.snapshots.pop(resource_id, None)

    def _event(self, resource_id: str, entity: Entity, **extra) -> ChangeEvent:
        payload = dict(entity.payload)
        payload.update(extra)
        return ChangeEvent(kind=self.kind, key=entity.key, resource_id=resource_id, payload=payload)

    @abstractmethod
    def _prime(self, entities: Sequence[Entity]) -> Snapshot:
        """Build the initial snapshot from the first fetch."""
        pass

    @abstractmethod
    def _diff(self, resource_id: str, snapshot: Snapshot, entities: Sequence[Entity]) -> List[ChangeEvent]:
        """Compare fresh entities to the snapshot, mutating it in place."""
        pass


class SetMembershipDetector(ChangeDetector):
    """Reports every key that is not yet part of the snapshot."""

    kind = ChangeKind.NEW_LISTING

    def _prime(self, entities: Sequence[Entity]) -> Snapshot:
        return {entity.key: True for entity in entities}

    def _diff(self, resource_id: str, snapshot: Snapshot, entities: Sequence[Entity]) -> List[ChangeEvent]:
        events = []
        for entity in entities:
            if entity.key in snapshot:
                continue
            snapshot[entity.key] = True
            events.append(self._event(resource_id, entity))
        return events


class LatestValueDetector(ChangeDetector):
    """Reports a change of the most recent entity's key.

    Entities must be ordered newest first.
    """

    kind = ChangeKind.WALLET_RECEIVE
    LATEST = "latest"

    def _prime(self, entities: Sequence[Entity]) -> Snapshot:
        return {self.LATEST: entities[0].key}

    def _diff(self, resource_id: str, snapshot: Snapshot, entities: Sequence[Entity]) -> List[ChangeEvent]:
        latest = entities[0]
        if snapshot.get(self.LATEST) == latest.key:
            return []
        snapshot[self.LATEST] = latest.key
        return [self._event(resource_id, latest)]


class ScalarThresholdDetector(ChangeDetector):
    """Reports numeric jumps above ``ratio`` x previous value and above ``floor``."""

    kind = ChangeKind.VOLUME_SPIKE

    def __init__(self, ratio: float = 1.5, floor: float = 1000.0):
        super().__init__()
        self.ratio = ratio
        self.floor = floor

    def is_spike(self, previous: float, current: float) -> bool:
        """Both conditions must hold."""
        return current > previous * self.ratio and current > self.floor

    def _prime(self, entities: Sequence[Entity]) -> Snapshot:
        return {entity.key: entity.value for entity in entities}

    def _diff(self, resource_id: str, snapshot: Snapshot, entities: Sequence[Entity]) -> List[ChangeEvent]:
        events = []
        for entity in entities:
            previous = snapshot.get(entity.key)
            snapshot[entity.key] = entity.value

            if previous is None:
                # Key added after the resource was primed (e.g. new watch-list entry)
                logger.info(f"{resource_id}: primed {entity.key} at {entity.value}")
                continue

            if self.is_spike(previous, entity.value):
                ratio = entity.value / previous if previous else None
                events.append(self._event(resource_id, entity, previous=previous, ratio=ratio))
        return events

"""Poll a source on an interval, diff it, and hand new events to the sinks."""

import asyncio
from dataclasses import dataclass, field
from typing import Dict, List, Optional
from loguru import logger

from .detector import ChangeDetector
from .history import EventHistory
from .types import ChangeEvent, Entity


@dataclass
class PollResult:
    """Outcome of one poll cycle."""
    poller: str
    fetched: Dict[str, List[Entity]] = field(default_factory=dict)
    events: List[ChangeEvent] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class Poller:
    """Runs fetch -> detect -> notify for one source.

    Timer-driven runs and on-demand runs both go through :meth:`poll_once`,
    which holds a per-poller lock for the whole cycle so only one writer
    touches the detector's snapshots at a time.
    """

    def __init__(self, name: str, source, detector: ChangeDetector, notifier=None,
                 history: Optional[EventHistory] = None, journal=None,
                 interval_seconds: float = 30.0):
        self.name = name
        self.source = source
        self.detector = detector
        self.notifier = notifier
        self.history = history
        self.journal = journal
        self.interval_seconds = interval_seconds

        self.running = False
        self.cycles = 0
        self.last_result: Optional[PollResult] = None
        self._lock = asyncio.Lock()

    async def poll_once(self) -> PollResult:
        """Run a single cycle. Fetch failures leave every snapshot untouched."""
        async with self._lock:
            result = PollResult(poller=self.name)
            self.cycles += 1

            try:
                result.fetched = await self.source.fetch()
            except Exception as e:
                result.error = str(e) or e.__class__.__name__
                self._record(f"{self.name} check error: {result.error}")
                self.last_result = result
                return result

            for resource_id, entities in result.fetched.items():
                was_primed = self.detector.snapshot(resource_id) is not None
                events = self.detector.detect_changes(resource_id, entities)

                if not was_primed and self.detector.snapshot(resource_id) is not None:
                    self._record(f"Initialized {resource_id}: {len(entities)} entries")

                result.events.extend(events)

            for event in result.events:
                await self._dispatch(event)

            self.last_result = result
            return result

    async def _dispatch(self, event: ChangeEvent) -> None:
        self._record(f"{event.kind.value.upper()}: {event.summary}")
        if self.history is not None:
            self.history.append(event)
        if self.notifier is not None:
            delivered = await self.notifier.notify(event)
            if not delivered:
                logger.warning(f"{self.name}: notification not delivered for {event.key}")

    def _record(self, text: str) -> None:
        if self.journal is not None:
            self.journal.record(text)
        else:
            logger.info(text)

    async def run(self) -> None:
        """Poll forever: first cycle immediately (priming), then every interval."""
        if self.running:
            return

        self.running = True
        logger.info(f"Starting {self.name} poller every {self.interval_seconds:.0f}s")

        while self.running:
            try:
                await self.poll_once()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"Error in {self.name} poller: {e}")
            await asyncio.sleep(self.interval_seconds)

    def stop(self) -> None:
        self.running = False

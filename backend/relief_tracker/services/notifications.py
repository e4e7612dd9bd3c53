"""In-process change feed for the relief pin table.

Every committed pin mutation is published here; each subscriber owns an
``asyncio.Queue`` and re-runs its visibility query when an event arrives.
Events carry no pin content, only the kind of change and the pin id.
"""

import asyncio
import logging
from typing import Optional
from uuid import UUID

from relief_tracker.models.enums import PinChangeKind
from relief_tracker.schemas.pin import PinChangeEvent

logger = logging.getLogger(__name__)


class PinChangeBroker:
    """Fan-out of pin change events to subscriber queues."""

    def __init__(self, max_queue_size: int = 100):
        self.max_queue_size = max_queue_size
        self._subscribers: set[asyncio.Queue] = set()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def subscribe(self) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue(maxsize=self.max_queue_size)
        self._subscribers.add(queue)
        return queue

    def unsubscribe(self, queue: asyncio.Queue) -> None:
        self._subscribers.discard(queue)

    def publish(self, kind: PinChangeKind, pin_id: Optional[UUID] = None) -> int:
        """Deliver an event to every subscriber. Returns the number reached.

        A subscriber whose queue is full already has a refetch pending, so
        the event is dropped for that subscriber only.
        """
        event = PinChangeEvent(kind=kind, pin_id=pin_id)
        delivered = 0
        for queue in list(self._subscribers):
            try:
                queue.put_nowait(event)
                delivered += 1
            except asyncio.QueueFull:
                logger.debug(f"[REALTIME] Subscriber queue full, dropping {kind.value} event")
        return delivered


_broker = PinChangeBroker()


def get_change_broker() -> PinChangeBroker:
    """Process-wide broker instance."""
    return _broker

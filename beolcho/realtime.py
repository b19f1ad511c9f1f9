"""
Live read subscriptions.

Every committed write publishes a ChangeEvent on the process-wide feed.
Subscribers receive the events their filter accepts through an asyncio
queue; `ChangeFeed.subscribe` is an async context manager so the queue is
always detached when the consumer goes away, on every exit path.
"""

import asyncio
import json
import logging
from contextlib import asynccontextmanager
from dataclasses import asdict, dataclass, field
from typing import AsyncIterator, Callable, Optional

logger = logging.getLogger(__name__)

# Bound on events buffered for one slow subscriber
SUBSCRIBER_QUEUE_SIZE = 100
KEEPALIVE_SECONDS = 15.0


@dataclass
class ChangeEvent:
    collection: str  # reservations, worker_profiles, users, chats, ...
    action: str  # created, updated, deleted
    doc_id: str
    owner_id: Optional[str] = None  # account the document belongs to, if any
    data: dict = field(default_factory=dict)

    def to_sse(self) -> str:
        return f"event: {self.action}\ndata: {json.dumps(asdict(self), ensure_ascii=False, default=str)}\n\n"


EventFilter = Callable[[ChangeEvent], bool]


class ChangeFeed:
    def __init__(self):
        self._subscribers: list[tuple[EventFilter, asyncio.Queue]] = []

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def publish(self, event: ChangeEvent) -> None:
        for accepts, queue in list(self._subscribers):
            if not accepts(event):
                continue
            try:
                queue.put_nowait(event)
            except asyncio.QueueFull:
                logger.warning(f"⚠️ Dropping {event.collection} event for a slow subscriber")

    @asynccontextmanager
    async def subscribe(self, accepts: EventFilter) -> AsyncIterator[asyncio.Queue]:
        queue: asyncio.Queue = asyncio.Queue(maxsize=SUBSCRIBER_QUEUE_SIZE)
        entry = (accepts, queue)
        self._subscribers.append(entry)
        logger.debug(f"Subscriber attached ({len(self._subscribers)} active)")
        try:
            yield queue
        finally:
            self._subscribers.remove(entry)
            logger.debug(f"Subscriber detached ({len(self._subscribers)} active)")


feed = ChangeFeed()


def get_feed() -> ChangeFeed:
    return feed


async def stream_events(
    change_feed: ChangeFeed,
    accepts: EventFilter,
    is_disconnected: Callable,
    keepalive: float = KEEPALIVE_SECONDS,
):
    """Server-Sent Events body for a StreamingResponse"""
    async with change_feed.subscribe(accepts) as queue:
        yield ": connected\n\n"
        while not await is_disconnected():
            try:
                event = await asyncio.wait_for(queue.get(), timeout=keepalive)
            except asyncio.TimeoutError:
                yield ": keepalive\n\n"
                continue
            yield event.to_sse()

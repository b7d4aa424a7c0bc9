"""
In-process broker for live notification delivery over server-sent events.

Each open stream owns an asyncio queue bound to the event loop it was
opened on. Publishers may run in worker threads (sync route handlers and
background tasks), so delivery always goes through call_soon_threadsafe.
"""

import asyncio
import json
import threading
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, Set

import structlog

from intranet.infrastructure.database import utcnow

logger = structlog.get_logger(__name__)

STREAM_HEADERS = {
    "Cache-Control": "no-cache, no-transform",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}

QUEUE_SIZE = 100


def format_sse(event_type: str, data: Dict[str, Any]) -> str:
    """Format a single SSE event payload."""
    return f"event: {event_type}\ndata: {json.dumps(data, default=str)}\n\n"


@dataclass(eq=False)
class Subscription:
    user_id: int
    loop: asyncio.AbstractEventLoop
    queue: asyncio.Queue = field(default_factory=lambda: asyncio.Queue(maxsize=QUEUE_SIZE))


class NotificationBroker:
    """Registry of open streams keyed by user id."""

    def __init__(self):
        self._subscriptions: Dict[int, Set[Subscription]] = {}
        self._lock = threading.Lock()

    def subscribe(self, user_id: int) -> Subscription:
        subscription = Subscription(user_id=user_id, loop=asyncio.get_running_loop())
        with self._lock:
            self._subscriptions.setdefault(user_id, set()).add(subscription)
        logger.info("Notification stream opened", user_id=user_id)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        with self._lock:
            streams = self._subscriptions.get(subscription.user_id)
            if streams is not None:
                streams.discard(subscription)
                if not streams:
                    del self._subscriptions[subscription.user_id]
        logger.info("Notification stream closed", user_id=subscription.user_id)

    def connection_count(self, user_id: int) -> int:
        with self._lock:
            return len(self._subscriptions.get(user_id, ()))

    def publish(self, user_id: int, payload: Dict[str, Any]) -> int:
        """Queue payload on every open stream of the user; returns how many were reached."""
        with self._lock:
            targets = list(self._subscriptions.get(user_id, ()))
        delivered = 0
        for subscription in targets:
            try:
                subscription.loop.call_soon_threadsafe(_offer, subscription, payload)
                delivered += 1
            except RuntimeError:
                # Loop already closed; the stream is gone
                self.unsubscribe(subscription)
        return delivered


def _offer(subscription: Subscription, payload: Dict[str, Any]) -> None:
    try:
        subscription.queue.put_nowait(payload)
    except asyncio.QueueFull:
        logger.warning("Notification stream backlog full, dropping event", user_id=subscription.user_id)


broker = NotificationBroker()


async def event_stream(
    user_id: int,
    is_disconnected: Callable[[], Awaitable[bool]],
    heartbeat_seconds: float = 30.0,
) -> AsyncIterator[str]:
    """connected, then notification events as they arrive, with heartbeats in between."""
    subscription = broker.subscribe(user_id)
    try:
        yield format_sse("connected", {"userId": user_id, "timestamp": utcnow().isoformat()})
        while not await is_disconnected():
            try:
                payload = await asyncio.wait_for(subscription.queue.get(), timeout=heartbeat_seconds)
            except asyncio.TimeoutError:
                yield format_sse("heartbeat", {"timestamp": utcnow().isoformat()})
                continue
            yield format_sse("notification", payload)
    finally:
        broker.unsubscribe(subscription)

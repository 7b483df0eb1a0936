# app/queue_engine/broadcaster.py

"""
Realtime Queue Feed
In-process fan-out of queue snapshots, one channel per appointment date.
Each push carries the whole day's appointments; subscribers recompute their
own view from it. No ordering is promised across dates.
"""
import asyncio
import logging
from collections import defaultdict
from datetime import date
from typing import Any, Dict, Set

logger = logging.getLogger(__name__)


class Subscription:
    def __init__(self, broadcaster: "QueueBroadcaster", appointment_date: date, max_pending: int):
        self.broadcaster = broadcaster
        self.appointment_date = appointment_date
        self.queue: asyncio.Queue = asyncio.Queue(maxsize=max_pending)
        self.closed = False

    def deliver(self, payload: Any) -> None:
        if self.closed:
            return
        if self.queue.full():
            # Only the latest snapshot matters
            self.queue.get_nowait()
        self.queue.put_nowait(payload)

    async def get(self) -> Any:
        return await self.queue.get()

    def close(self) -> None:
        self.broadcaster.unsubscribe(self)


class QueueBroadcaster:
    def __init__(self, max_pending: int = 8):
        self.max_pending = max_pending
        self._subscribers: Dict[date, Set[Subscription]] = defaultdict(set)

    def subscribe(self, appointment_date: date) -> Subscription:
        subscription = Subscription(self, appointment_date, self.max_pending)
        self._subscribers[appointment_date].add(subscription)
        logger.info(f"📡 Queue feed subscribed for {appointment_date} ({self.subscriber_count(appointment_date)} open)")
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        subscription.closed = True
        subscribers = self._subscribers.get(subscription.appointment_date)
        if not subscribers:
            return
        subscribers.discard(subscription)
        if not subscribers:
            del self._subscribers[subscription.appointment_date]
        logger.info(f"📴 Queue feed closed for {subscription.appointment_date}")

    def publish(self, appointment_date: date, payload: Any) -> int:
        """Push one payload to every subscriber of the date. Returns how many got it."""
        subscribers = list(self._subscribers.get(appointment_date, ()))
        for subscription in subscribers:
            subscription.deliver(payload)
        return len(subscribers)

    def subscriber_count(self, appointment_date: date) -> int:
        return len(self._subscribers.get(appointment_date, ()))


queue_broadcaster = QueueBroadcaster()

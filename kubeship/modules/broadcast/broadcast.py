import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Dict, List, Protocol, Set

from starlette.websockets import WebSocket, WebSocketState

logger = logging.getLogger("kubeship.broadcast")


class Connection(Protocol):
    """Transport-side handle for one observer."""

    @property
    def is_open(self) -> bool:
        ...

    async def send_json(self, data: Dict[str, Any]) -> None:
        ...


class WebSocketConnection:
    """Adapts a Starlette WebSocket to the Connection protocol."""

    def __init__(self, websocket: WebSocket):
        self.websocket = websocket

    @property
    def is_open(self) -> bool:
        return (
            self.websocket.client_state == WebSocketState.CONNECTED
            and self.websocket.application_state == WebSocketState.CONNECTED
        )

    async def send_json(self, data: Dict[str, Any]) -> None:
        await self.websocket.send_json(data)


@dataclass(eq=False)
class Subscription:
    """
    Job ids one connection follows.

    Owned by the connection handler; the broadcast registry only keeps a
    reference while the connection is open.
    """

    connection: Connection
    job_ids: Set[str] = field(default_factory=set)


class BroadcastModule:
    def __init__(self):
        """Initialize an empty subscription registry."""
        self._subscriptions: List[Subscription] = []

    @property
    def connection_count(self) -> int:
        return len(self._subscriptions)

    def register(self, connection: Connection) -> Subscription:
        """Start tracking a newly opened connection."""
        subscription = Subscription(connection)
        self._subscriptions.append(subscription)
        logger.debug(f"Registered observer ({self.connection_count} active)")
        return subscription

    def unregister(self, subscription: Subscription) -> None:
        """Stop tracking a connection. Safe to call twice."""
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)
            logger.debug(f"Unregistered observer ({self.connection_count} active)")

    def subscribe(self, subscription: Subscription, job_id: str) -> None:
        subscription.job_ids.add(job_id)

    def unsubscribe(self, subscription: Subscription, job_id: str) -> None:
        subscription.job_ids.discard(job_id)

    async def publish(self, job_id: str, level: str, message: str) -> int:
        """
        Fan a log event out to every observer subscribed to `job_id`.

        Args:
            job_id: Job the event belongs to
            level: Log level (info, warning, error)
            message: Human-readable text

        Returns:
            Number of observers the event was delivered to

        Logic:
        1. Stamp the event
        2. Deliver to open, subscribed connections only
        3. Drop observers whose send fails; no queueing, no retry
        """
        event = {
            "job_id": job_id,
            "level": level,
            "message": message,
            "timestamp": datetime.now(UTC).isoformat(),
        }

        delivered = 0
        # Snapshot: handlers may unregister while we await sends
        for subscription in list(self._subscriptions):
            if job_id not in subscription.job_ids:
                continue
            if not subscription.connection.is_open:
                continue
            try:
                await subscription.connection.send_json(event)
                delivered += 1
            except Exception as e:
                logger.warning(f"Dropping observer of {job_id} after failed send: {e}")
                self.unregister(subscription)

        return delivered

    def close(self) -> None:
        """Forget every observer (shutdown)."""
        self._subscriptions.clear()

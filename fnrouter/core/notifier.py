import asyncio
import logging
from typing import Any, Iterable

logger = logging.getLogger(__name__)

PROPS_ENDPOINTS_EVENT = "props-endpoints-change"
FUNCTION_RELOAD_EVENT = "function-reload"


def props_endpoint_names(routes: Iterable[str], sep: str = "|") -> str:
    """Pipe-delimited props endpoint names, with a leading and trailing pipe."""
    return sep + sep.join(route.replace("/props/", "") for route in routes) + sep


class EventBroadcaster:
    """Fans named live-update events out to subscribed development clients."""

    def __init__(self, max_queue: int = 100) -> None:
        self.max_queue = max_queue
        self.last_events: dict[str, dict[str, Any]] = {}
        self._subscribers: set[asyncio.Queue] = set()

    def subscribe(self) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue(maxsize=self.max_queue)
        self._subscribers.add(queue)
        return queue

    def unsubscribe(self, queue: asyncio.Queue) -> None:
        self._subscribers.discard(queue)

    def send(self, event: str, data: dict[str, Any]) -> None:
        message = {"type": "custom", "event": event, "data": data}
        self.last_events[event] = message
        logger.debug(f"Broadcasting {event} to {len(self._subscribers)} client(s)")

        for queue in list(self._subscribers):
            try:
                queue.put_nowait(message)
            except asyncio.QueueFull:
                logger.warning(f"Dropping {event} for a slow client")

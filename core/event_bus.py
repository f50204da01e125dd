import asyncio
import logging
from typing import Dict, Any, List, Optional
from datetime import datetime
from collections import deque
import weakref

logger = logging.getLogger("event_bus")


class EventBus:
    """
    Shared action/result history.

    Command processing and scheduler firings both publish here. All
    publishers run on the event loop thread, so appends keep their order.
    """

    def __init__(self, history_size: int = 200):
        self._subscribers = set()
        self._history = deque(maxlen=history_size)

    def publish(self, event_type: str, source: str, data: Dict[str, Any]) -> Dict[str, Any]:
        event = {
            "timestamp": datetime.now().isoformat(),
            "type": event_type,
            "source": source,
            "data": data,
        }

        self._history.append(event)

        dead = []

        for ref in list(self._subscribers):
            q = ref()
            if q is None:
                dead.append(ref)
                continue

            try:
                q.put_nowait(event)  # Non-blocking
            except asyncio.QueueFull:
                logger.warning("Dropping event due to full subscriber queue")

        # Cleanup dead references
        for ref in dead:
            self._subscribers.discard(ref)

        return event

    def history(self, event_type: Optional[str] = None) -> List[Dict[str, Any]]:
        if event_type is None:
            return list(self._history)
        return [e for e in self._history if e["type"] == event_type]

    async def subscribe(self, max_queue_size: int = 100):
        q = asyncio.Queue(maxsize=max_queue_size)
        self._subscribers.add(weakref.ref(q))

        # Replay last 5 events
        for event in list(self._history)[-5:]:
            try:
                q.put_nowait(event)
            except asyncio.QueueFull:
                break

        return q

    def unsubscribe(self, q: asyncio.Queue):
        for ref in list(self._subscribers):
            if ref() is q:
                self._subscribers.discard(ref)

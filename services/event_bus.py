from __future__ import annotations

import logging
from collections import defaultdict
from threading import Lock
from typing import Any, Callable, DefaultDict, List

logger = logging.getLogger(__name__)

Handler = Callable[[Any], None]

EVENT_CHANNEL = "event"
ERROR_CHANNEL = "error"


class EventBus:
    """Named channels with synchronous fan-out to subscribed handlers.

    A failing handler is logged and does not prevent delivery to the
    remaining handlers on the channel.
    """

    def __init__(self) -> None:
        self._handlers: DefaultDict[str, List[Handler]] = defaultdict(list)
        self._lock = Lock()

    def subscribe(self, channel: str, handler: Handler) -> None:
        with self._lock:
            self._handlers[channel].append(handler)

    def unsubscribe(self, channel: str, handler: Handler) -> None:
        with self._lock:
            handlers = self._handlers.get(channel)
            if handlers and handler in handlers:
                handlers.remove(handler)

    def publish(self, channel: str, payload: Any) -> None:
        with self._lock:
            handlers = list(self._handlers.get(channel, ()))
        for handler in handlers:
            try:
                handler(payload)
            except Exception:
                logger.exception("Subscriber failed", extra={"channel": channel})

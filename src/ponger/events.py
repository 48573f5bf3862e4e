"""Notification fan-out from the game to whoever listens (view, URL bar, sound)."""

import logging
from collections import defaultdict
from typing import Any, Callable

from src.core.shared_types import Notification

logger = logging.getLogger(__name__)

Handler = Callable[..., None]


class EventEmitter:
    def __init__(self) -> None:
        self._handlers: dict[Notification, list[Handler]] = defaultdict(list)

    def on(self, notification: Notification, handler: Handler) -> None:
        self._handlers[Notification(notification)].append(handler)

    def off(self, notification: Notification, handler: Handler) -> None:
        handlers = self._handlers.get(Notification(notification), [])
        if handler in handlers:
            handlers.remove(handler)

    def emit(self, notification: Notification, *payload: Any) -> None:
        """Call every handler for the notification. Handlers are called with the payload (if any)."""
        logger.debug("emit %s %s", notification, payload)
        for handler in list(self._handlers.get(notification, [])):
            handler(*payload)

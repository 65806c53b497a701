"""In-process change feed backing live list views."""

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from itertools import count
from uuid import UUID

logger = logging.getLogger(__name__)

ENTRIES = "entries"
STRAINS = "strains"
PURCHASES = "purchases"

Listener = Callable[[str], None]


@dataclass
class Subscription:
    """Cancellation handle returned by ``ChangeFeed.subscribe``."""

    feed: "ChangeFeed"
    key: tuple[UUID, str]
    token: int

    def unsubscribe(self) -> None:
        """Stop delivering changes to this listener. Safe to call twice."""
        self.feed.remove(self)


@dataclass
class ChangeFeed:
    """Publish/subscribe of per-user collection changes."""

    _listeners: dict[tuple[UUID, str], dict[int, Listener]] = field(
        default_factory=dict
    )
    _lock: threading.Lock = field(default_factory=threading.Lock)
    _tokens: count = field(default_factory=count)

    def subscribe(
        self, user_id: UUID, collection: str, listener: Listener
    ) -> Subscription:
        """Register ``listener`` for writes to a user's collection."""
        key = (user_id, collection)
        with self._lock:
            token = next(self._tokens)
            self._listeners.setdefault(key, {})[token] = listener
        return Subscription(feed=self, key=key, token=token)

    def remove(self, subscription: Subscription) -> None:
        with self._lock:
            listeners = self._listeners.get(subscription.key)
            if not listeners:
                return
            listeners.pop(subscription.token, None)
            if not listeners:
                self._listeners.pop(subscription.key, None)

    def publish(self, user_id: UUID, collection: str) -> None:
        """Notify every listener of a user's collection."""
        with self._lock:
            listeners = list(self._listeners.get((user_id, collection), {}).values())
        for listener in listeners:
            try:
                listener(collection)
            except Exception:
                logger.exception("Live listener failed for %s", collection)

    def listener_count(self, user_id: UUID, collection: str) -> int:
        with self._lock:
            return len(self._listeners.get((user_id, collection), {}))

"""Per-table change notifications for refreshing dependent views."""

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class ChangeKind(Enum):
    """Kind of row change carried by a notification."""

    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


@dataclass
class ChangeEvent:
    """A single row change on a table."""

    table: str
    kind: ChangeKind
    new: Optional[dict] = None
    old: Optional[dict] = None

    @property
    def record(self) -> Optional[dict]:
        """The row as it is after the change, or as it was before a delete."""
        return self.new if self.new is not None else self.old

    def to_dict(self) -> dict:
        """Serialize event to dictionary."""
        return {
            "table": self.table,
            "kind": self.kind.value,
            "new": self.new,
            "old": self.old,
        }


class Subscription:
    """Handle returned by ChangeFeed.subscribe; call unsubscribe() on teardown."""

    def __init__(
        self,
        feed: "ChangeFeed",
        table: str,
        callback: Callable[[ChangeEvent], None],
        kinds: Optional[set[ChangeKind]] = None,
        filters: Optional[dict] = None,
    ):
        self.feed = feed
        self.table = table
        self.callback = callback
        self.kinds = kinds
        self.filters = filters or {}
        self.active = True

    def matches(self, event: ChangeEvent) -> bool:
        """Check whether this subscription wants the event."""
        if not self.active or event.table != self.table:
            return False
        if self.kinds and event.kind not in self.kinds:
            return False
        record = event.record or {}
        return all(record.get(column) == value for column, value in self.filters.items())

    def unsubscribe(self) -> None:
        """Stop receiving events. Safe to call more than once."""
        if not self.active:
            return
        self.active = False
        self.feed._remove(self)

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc) -> None:
        self.unsubscribe()


class ChangeFeed:
    """
    In-process publish/subscribe channel keyed by table name.

    Callbacks run synchronously on the publishing thread. A failing
    callback is logged and does not prevent delivery to the others.
    """

    def __init__(self):
        self._subscriptions: list[Subscription] = []
        self._lock = threading.Lock()

    def subscribe(
        self,
        table: str,
        callback: Callable[[ChangeEvent], None],
        kinds: Optional[set[ChangeKind]] = None,
        filters: Optional[dict] = None,
    ) -> Subscription:
        """Register a callback for changes on a table."""
        subscription = Subscription(self, table, callback, kinds=kinds, filters=filters)
        with self._lock:
            self._subscriptions.append(subscription)
        logger.debug("Subscribed to %s (filters=%s)", table, subscription.filters)
        return subscription

    def _remove(self, subscription: Subscription) -> None:
        with self._lock:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)

    def subscriber_count(self, table: Optional[str] = None) -> int:
        """Number of live subscriptions, optionally for one table."""
        with self._lock:
            if table is None:
                return len(self._subscriptions)
            return sum(1 for s in self._subscriptions if s.table == table)

    def publish(self, event: ChangeEvent) -> None:
        """Deliver an event to every matching subscription."""
        with self._lock:
            targets = [s for s in self._subscriptions if s.matches(event)]

        for subscription in targets:
            try:
                subscription.callback(event)
            except Exception:
                logger.exception(
                    "Change subscriber failed for %s %s", event.table, event.kind.value
                )

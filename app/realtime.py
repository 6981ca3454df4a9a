"""Per-table change notifications.

Every committed insert, update or delete made through a SQLModel ``Session``
is published to the process-wide ``feed``. Subscribers (the WebSocket relay
in ``app.main``, or tests) register a callback per table and receive a
``Change`` for each row. Changes collected during a flush are held until the
transaction commits and dropped if it rolls back.
"""
import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable

from sqlalchemy import event
from sqlmodel import Session, SQLModel

from app.models import row_data

logger = logging.getLogger(__name__)

INSERT = "INSERT"
UPDATE = "UPDATE"
DELETE = "DELETE"

_PENDING_KEY = "realtime_changes"


@dataclass
class Change:
    table: str
    type: str
    record: dict[str, Any] = field(default_factory=dict)

    def as_dict(self) -> dict[str, Any]:
        return {"table": self.table, "type": self.type, "record": self.record}


class Subscription:
    def __init__(self, feed: "ChangeFeed", table: str, callback, events):
        self.feed = feed
        self.table = table
        self.callback = callback
        self.events = events

    def matches(self, change: Change) -> bool:
        return change.table == self.table and (not self.events or change.type in self.events)

    def unsubscribe(self) -> None:
        self.feed._remove(self)


class ChangeFeed:
    def __init__(self):
        self._lock = threading.Lock()
        self._subscriptions: list[Subscription] = []

    def subscribe(
        self,
        table: str,
        callback: Callable[[Change], None],
        events: set[str] | None = None,
    ) -> Subscription:
        subscription = Subscription(self, table, callback, frozenset(events or ()))
        with self._lock:
            self._subscriptions.append(subscription)
        return subscription

    def _remove(self, subscription: Subscription) -> None:
        with self._lock:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)

    def publish(self, change: Change) -> None:
        with self._lock:
            targets = [s for s in self._subscriptions if s.matches(change)]
        for subscription in targets:
            try:
                subscription.callback(change)
            except Exception:
                logger.exception("Realtime subscriber for %s failed", change.table)

    def subscriber_count(self, table: str | None = None) -> int:
        with self._lock:
            if table is None:
                return len(self._subscriptions)
            return sum(1 for s in self._subscriptions if s.table == table)


feed = ChangeFeed()


# =========================================================
# ÉVÉNEMENTS DE SESSION
# =========================================================

@event.listens_for(Session, "before_flush")
def _collect_deletes(session, flush_context, instances):
    # Deleted rows are captured while they can still be loaded
    pending = session.info.setdefault(_PENDING_KEY, [])
    for obj in session.deleted:
        if isinstance(obj, SQLModel):
            pending.append(Change(obj.__tablename__, DELETE, row_data(obj)))


@event.listens_for(Session, "after_flush")
def _collect_changes(session, flush_context):
    pending = session.info.setdefault(_PENDING_KEY, [])
    for obj in session.new:
        if isinstance(obj, SQLModel):
            pending.append(Change(obj.__tablename__, INSERT, row_data(obj)))
    for obj in session.dirty:
        if isinstance(obj, SQLModel) and session.is_modified(obj):
            pending.append(Change(obj.__tablename__, UPDATE, row_data(obj)))


@event.listens_for(Session, "after_commit")
def _publish_changes(session):
    pending = session.info.pop(_PENDING_KEY, [])
    for change in pending:
        feed.publish(change)


@event.listens_for(Session, "after_rollback")
def _discard_changes(session):
    session.info.pop(_PENDING_KEY, None)

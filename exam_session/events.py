"""Event payloads and synchronous channels used between watchers and the controller."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, List, Optional

from .models import WatcherClass

Listener = Callable[[Any], None]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ViolationEvent:
    """One observed integrity breach for a watcher class."""

    watcher: WatcherClass
    detail: str = ""
    at: datetime = field(default_factory=_utcnow)


@dataclass(frozen=True)
class StatusEvent:
    """Health change reported by a watcher (camera lost, fullscreen restored)."""

    watcher: WatcherClass
    healthy: bool
    detail: str = ""
    at: datetime = field(default_factory=_utcnow)


class Subscription:
    """Handle returned by :meth:`EventChannel.subscribe`."""

    def __init__(self, channel: "EventChannel", listener: Listener) -> None:
        self._channel = channel
        self.listener = listener
        self.active = True

    def cancel(self) -> None:
        if not self.active:
            return
        self.active = False
        self._channel._remove(self)


class EventChannel:
    """Synchronous fan-out of events to subscribed listeners.

    Listeners run inside :meth:`publish`, in subscription order, within the
    publisher's handler turn. A listener cancelled by an earlier listener in
    the same publish is skipped.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._subscriptions: List[Subscription] = []

    def __len__(self) -> int:
        return len(self._subscriptions)

    def subscribe(self, listener: Listener) -> Subscription:
        subscription = Subscription(self, listener)
        self._subscriptions.append(subscription)
        return subscription

    def publish(self, event: Any) -> int:
        delivered = 0
        for subscription in list(self._subscriptions):
            if not subscription.active:
                continue
            subscription.listener(event)
            delivered += 1
        return delivered

    def _remove(self, subscription: Subscription) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)


def cancel_all(subscriptions: List[Optional[Subscription]]) -> None:
    for subscription in subscriptions:
        if subscription is not None:
            subscription.cancel()
    subscriptions.clear()


__all__ = [
    "EventChannel",
    "StatusEvent",
    "Subscription",
    "ViolationEvent",
    "cancel_all",
]

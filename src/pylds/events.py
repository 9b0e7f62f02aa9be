"""Synchronous per-instance event channels.

Every data source owns one :class:`EventHub`. Emissions run on the
caller's stack, in subscription order; there is no scheduling.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from typing import TYPE_CHECKING, Any, Generic, TypeVar

if TYPE_CHECKING:
    from pylds.models.result import LoadResult
    from pylds.models.state import ViewState

_logger = logging.getLogger(__name__)

T = TypeVar("T")

Unsubscribe = Callable[[], None]


def _noop() -> None:
    return None


class _Subscription(Generic[T]):
    __slots__ = ("handler",)

    def __init__(self, handler: Callable[[T], Any]) -> None:
        self.handler = handler


class EventChannel(Generic[T]):
    """A named multi-subscriber channel."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._subscriptions: list[_Subscription[T]] = []
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def __len__(self) -> int:
        return len(self._subscriptions)

    def subscribe(self, handler: Callable[[T], Any]) -> Unsubscribe:
        """Register *handler* and return a closure that removes it again.

        Each call creates its own subscription, so subscribing the same
        handler twice needs two unsubscribe calls. Calling an unsubscribe
        closure more than once is a no-op.
        """
        if self._closed:
            _logger.debug("Ignoring subscribe on closed channel %s", self.name)
            return _noop

        subscription = _Subscription(handler)
        self._subscriptions.append(subscription)

        def unsubscribe() -> None:
            for index, candidate in enumerate(self._subscriptions):
                if candidate is subscription:
                    del self._subscriptions[index]
                    return

        return unsubscribe

    def emit(self, payload: T) -> None:
        """Call every current handler with *payload*."""
        if self._closed:
            return
        for subscription in list(self._subscriptions):
            subscription.handler(payload)

    def close(self) -> None:
        self._subscriptions.clear()
        self._closed = True


class EventHub:
    """The named channels of one data source."""

    def __init__(self) -> None:
        self.data_requested: EventChannel[str] = EventChannel("data_requested")
        self.data_loading: EventChannel[dict[str, Any]] = EventChannel("data_loading")
        self.data_loaded: EventChannel[LoadResult] = EventChannel("data_loaded")
        self.sort_changed: EventChannel[str] = EventChannel("sort_changed")
        self.pagination_changed: EventChannel[ViewState] = EventChannel("pagination_changed")
        self.state_changed: EventChannel[str] = EventChannel("state_changed")
        self.field_changed: EventChannel[str] = EventChannel("field_changed")
        self.navigate_requested: EventChannel[str] = EventChannel("navigate_requested")

    def channels(self) -> Iterator[EventChannel[Any]]:
        for value in vars(self).values():
            if isinstance(value, EventChannel):
                yield value

    def dispose(self) -> None:
        """Close every channel; later emits and subscribes are ignored."""
        for channel in self.channels():
            channel.close()

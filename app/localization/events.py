"""Notification signals for localization buckets.

A Signal is a small in-process publish/subscribe point: handlers are called
synchronously, in subscription order, when the signal is emitted. A failing
handler is logged and does not prevent the remaining handlers from running.

The LocaleChannel is the shared signal that carries locale switches between
buckets. It is owned by the registry and injected into every bucket, which
subscribes on start and unsubscribes on shutdown.
"""

import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, List

from core.logging import get_module_logger

logger = get_module_logger()


class Signal:
    """Synchronous in-process notification.

    Attributes:
        name: Signal name used in log entries.
    """

    def __init__(self, name: str):
        self.name = name
        self._handlers: List[Callable[..., Any]] = []
        self._lock = threading.Lock()

    def subscribe(self, handler: Callable[..., Any]) -> Callable[..., Any]:
        """Register a handler. Usable as a decorator.

        Returns:
            The handler itself.
        """
        with self._lock:
            self._handlers.append(handler)
        logger.debug(
            "signal_handler_subscribed",
            signal=self.name,
            handler=getattr(handler, "__name__", "unknown"),
        )
        return handler

    def unsubscribe(self, handler: Callable[..., Any]) -> bool:
        """Remove a handler.

        Returns:
            True if the handler was subscribed.
        """
        with self._lock:
            try:
                self._handlers.remove(handler)
            except ValueError:
                return False
        return True

    @property
    def handler_count(self) -> int:
        with self._lock:
            return len(self._handlers)

    def emit(self, *args: Any) -> int:
        """Call every subscribed handler with args.

        Returns:
            Number of handlers that completed without raising.
        """
        with self._lock:
            handlers = list(self._handlers)

        completed = 0
        for handler in handlers:
            try:
                handler(*args)
                completed += 1
            except Exception as e:
                logger.error(
                    "signal_handler_failed",
                    signal=self.name,
                    handler=getattr(handler, "__name__", "unknown"),
                    error=str(e),
                )
        return completed

    def clear(self) -> None:
        with self._lock:
            self._handlers.clear()


@dataclass(frozen=True)
class LocaleChanged:
    """A bucket switched its active locale."""

    locale: str
    source_bucket_id: str
    timestamp: datetime = field(default_factory=datetime.now)


class LocaleChannel(Signal):
    """Shared channel broadcasting locale switches across buckets."""

    def __init__(self, name: str = "locale_changed"):
        super().__init__(name)

    def publish(self, locale: str, source_bucket_id: str) -> LocaleChanged:
        """Broadcast a locale switch to every subscriber.

        Returns:
            The published LocaleChanged event.
        """
        event = LocaleChanged(locale=locale, source_bucket_id=source_bucket_id)
        logger.info(
            "locale_change_published",
            locale=locale,
            source_bucket_id=source_bucket_id,
            subscriber_count=self.handler_count,
        )
        self.emit(event)
        return event

"""Published values observed by presentation layers.

Engines never hand mutable state to their callers. Instead each engine
owns a handful of :class:`Published` values (a progress line, a busy
flag, a byte count, ...) that a CLI or GUI subscribes to. Values are
guarded by a lock so a subscriber on another thread always sees a
consistent value, and subscribers are notified in the order values were
set.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

Subscriber = Callable[[T], None]


class Published(Generic[T]):
    """A thread-safe value with change notification.

    Example:
        >>> log = Published("")
        >>> unsubscribe = log.subscribe(print)
        >>> log.set("Scanning Caches...")
        Scanning Caches...
        >>> unsubscribe()
    """

    def __init__(self, initial: T) -> None:
        self._initial = initial
        self._value = initial
        self._lock = threading.Lock()
        # Serializes notifications so subscribers observe sets in order
        self._notify_lock = threading.RLock()
        self._subscribers: list[Subscriber[T]] = []

    @property
    def value(self) -> T:
        """Current value."""
        with self._lock:
            return self._value

    def set(self, value: T) -> None:
        """Replace the value and notify subscribers."""
        with self._notify_lock:
            with self._lock:
                self._value = value
                subscribers = list(self._subscribers)
            for subscriber in subscribers:
                try:
                    subscriber(value)
                except Exception:
                    logger.exception("Subscriber raised while handling update")

    def reset(self) -> None:
        """Restore the initial value."""
        self.set(self._initial)

    def set_if(self, expected: T, value: T) -> bool:
        """Atomically replace the value only if it currently equals *expected*.

        Returns:
            True if the value was replaced.
        """
        with self._notify_lock:
            with self._lock:
                if self._value != expected:
                    return False
            self.set(value)
            return True

    def subscribe(self, subscriber: Subscriber[T]) -> Callable[[], None]:
        """Register a change callback.

        Returns:
            A function that removes the subscription.
        """
        with self._lock:
            self._subscribers.append(subscriber)

        def unsubscribe() -> None:
            with self._lock:
                if subscriber in self._subscribers:
                    self._subscribers.remove(subscriber)

        return unsubscribe

    def __repr__(self) -> str:
        return f"Published({self.value!r})"


class OperationState:
    """Progress line and busy flag shared by every engine.

    Attributes:
        log: Most recent human-readable progress line.
        busy: True while the owning engine runs an operation.
    """

    def __init__(self) -> None:
        self.log: Published[str] = Published("")
        self.busy: Published[bool] = Published(False)

    def begin(self, name: str) -> None:
        """Mark the engine busy.

        Raises:
            RuntimeError: If the engine is already running an operation.
        """
        if not self.busy.set_if(False, True):
            msg = f"{name} already running"
            raise RuntimeError(msg)

    def end(self, summary: str | None = None) -> None:
        """Mark the engine idle, optionally publishing a final line."""
        if summary is not None:
            self.log.set(summary)
        self.busy.set(False)

    def reset(self) -> None:
        """Clear the progress line and busy flag."""
        self.log.reset()
        self.busy.reset()

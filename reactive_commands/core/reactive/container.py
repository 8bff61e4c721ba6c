"""
Reactive Container - observable single-value holder.

Provides:
- NotifyMode: when a container notifies its subscribers
- Subscription: handle returned by subscribe(), cancels the registration
- ReactiveContainer: value holder with change notification and the
  derivation operators (map, combine, where) everything else builds on

Usage:
    counter = ReactiveContainer(0)
    sub = counter.subscribe(lambda new, old: print(f"{old} -> {new}"))
    counter.value = 1        # prints "0 -> 1"
    sub.cancel()

    label = counter.map(lambda n: f"{n} items")
"""
import asyncio
import operator
from enum import Enum
from typing import Any, Callable, Generic, List, Optional, TypeVar, TYPE_CHECKING

from loguru import logger

if TYPE_CHECKING:
    from ..commands.base import Command

T = TypeVar('T')
R = TypeVar('R')
U = TypeVar('U')

Listener = Callable[[Any, Any], None]
ErrorCallback = Callable[[Exception], None]


class NotifyMode(Enum):
    """When a container notifies its subscribers after a set."""
    ALWAYS = "always"          # every set notifies, even with an equal value
    ON_CHANGE = "on_change"    # only when the value differs under the equality
    MANUAL = "manual"          # never on set, only via notify_listeners()


class Subscription:
    """
    Registration of one callback on one container.

    Calling the handle (or cancel()) unsubscribes. Cancelling twice is a no-op.
    """

    def __init__(self, container: 'ReactiveContainer', callback: Listener):
        self._container = container
        self.callback = callback
        self._active = True

    @property
    def is_active(self) -> bool:
        return self._active

    def cancel(self) -> None:
        if not self._active:
            return
        self._active = False
        self._container._remove_subscription(self)

    def __call__(self) -> None:
        self.cancel()


class ReactiveContainer(Generic[T]):
    """
    Observable value holder.

    Subscribers are called synchronously, in registration order, with
    (new_value, previous_value). A subscriber that raises does not stop the
    dispatch loop: the failure goes to the on_error callback passed to
    notify_listeners() or is logged.

    Args:
        value: Initial value.
        mode: NotifyMode controlling when a set notifies.
        equals: Equality used by ON_CHANGE (defaults to ==).
        async_notification: Deliver notifications on the next event loop
            tick instead of synchronously. The value itself is stored
            immediately.
        name: Optional name used in log messages.
    """

    def __init__(
        self,
        value: T,
        mode: NotifyMode = NotifyMode.ON_CHANGE,
        equals: Optional[Callable[[Any, Any], bool]] = None,
        async_notification: bool = False,
        name: Optional[str] = None,
    ):
        self._value = value
        self._previous = value
        self._mode = mode
        self._equals = equals or operator.eq
        self._async_notification = async_notification
        self.name = name
        self._subscriptions: List[Subscription] = []
        self._muted = False
        self._disposed = False

    # --- value access ---

    @property
    def value(self) -> T:
        return self._value

    @value.setter
    def value(self, new_value: T) -> None:
        self.set(new_value)

    def get(self) -> T:
        return self._value

    def set(self, new_value: T) -> None:
        """Store a value and notify according to the container's mode."""
        previous = self._value
        self._value = new_value
        self._previous = previous
        if self._mode is NotifyMode.MANUAL:
            return
        if self._mode is NotifyMode.ON_CHANGE and self._equals(previous, new_value):
            return
        self._notify(new_value, previous)

    @property
    def mode(self) -> NotifyMode:
        return self._mode

    @property
    def label(self) -> str:
        """Name used in log messages."""
        return self.name or self.__class__.__name__

    # --- subscription ---

    def subscribe(self, callback: Listener) -> Subscription:
        """
        Register a callback receiving (new_value, previous_value).

        Returns:
            Subscription handle; cancel() it to unsubscribe.
        """
        subscription = Subscription(self, callback)
        if self._disposed:
            logger.warning(f"Subscribing to disposed container '{self.label}'")
            subscription._active = False
            return subscription
        self._subscriptions.append(subscription)
        return subscription

    def _remove_subscription(self, subscription: Subscription) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)

    @property
    def listener_count(self) -> int:
        return len(self._subscriptions)

    @property
    def has_listeners(self) -> bool:
        return bool(self._subscriptions)

    # --- notification ---

    def notify_listeners(self, on_error: Optional[ErrorCallback] = None) -> None:
        """
        Notify all subscribers with the current value.

        This is the only way a MANUAL container ever notifies.

        Args:
            on_error: Receives any exception raised by a subscriber.
                Without it, subscriber failures are logged.
        """
        self._notify(self._value, self._previous, on_error)

    def _notify(self, new_value: T, previous: T, on_error: Optional[ErrorCallback] = None) -> None:
        if self._muted:
            return
        if self._async_notification:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                # no loop to defer onto
                self._dispatch(new_value, previous, on_error)
                return
            loop.call_soon(self._dispatch, new_value, previous, on_error)
        else:
            self._dispatch(new_value, previous, on_error)

    def _dispatch(self, new_value: T, previous: T, on_error: Optional[ErrorCallback] = None) -> None:
        if self._muted:
            return
        for subscription in list(self._subscriptions):
            if not subscription.is_active:
                continue
            try:
                subscription.callback(new_value, previous)
            except Exception as e:
                if on_error is not None:
                    on_error(e)
                else:
                    logger.error(f"Container '{self.label}' error in subscriber '{subscription.callback}': {e}")

    # --- lifecycle ---

    @property
    def is_muted(self) -> bool:
        return self._muted

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    def mute(self) -> None:
        """Suppress every further notification, including deferred ones."""
        self._muted = True

    def dispose(self) -> None:
        """Drop all subscribers and detach from upstream containers."""
        if self._disposed:
            return
        self._muted = True
        self._disposed = True
        for subscription in self._subscriptions:
            subscription._active = False
        self._subscriptions.clear()
        self._on_dispose()

    def _on_dispose(self) -> None:
        pass

    # --- operators ---

    def map(self, transform: Callable[[T], R]) -> 'ReactiveContainer[R]':
        """Derived container holding transform(value), updated on every change."""
        from .operators import MappedContainer
        return MappedContainer(self, transform)

    def combine(
        self, other: 'ReactiveContainer[U]', combiner: Callable[[T, U], R]
    ) -> 'ReactiveContainer[R]':
        """Derived container holding combiner(self.value, other.value)."""
        from .operators import CombinedContainer
        return CombinedContainer(self, other, combiner)

    def where(self, predicate: Callable[[T], bool]) -> 'ReactiveContainer[T]':
        """Derived container that only takes over values passing predicate."""
        from .operators import FilteredContainer
        return FilteredContainer(self, predicate)

    def pipe_to_command(
        self, target: 'Command', transform: Optional[Callable[[T], Any]] = None
    ) -> Subscription:
        """Run target with every value this container notifies."""
        from ..commands.pipe import pipe_to_command
        return pipe_to_command(self, target, transform)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r}, value={self._value!r})"

"""
Derived containers built by ReactiveContainer.map / combine / where.

Derived containers use ON_CHANGE semantics and hold subscriptions on their
upstream containers; they never own the upstream.
"""
from typing import Any, Callable, List

from .container import NotifyMode, ReactiveContainer, Subscription


class DerivedContainer(ReactiveContainer):
    """Base for containers computed from one or more upstream containers."""

    def __init__(self, value: Any, name: str):
        super().__init__(value, mode=NotifyMode.ON_CHANGE, name=name)
        self._upstream: List[Subscription] = []

    def _listen_to(self, source: ReactiveContainer, callback) -> None:
        self._upstream.append(source.subscribe(callback))

    def _on_dispose(self) -> None:
        for subscription in self._upstream:
            subscription.cancel()
        self._upstream.clear()


class MappedContainer(DerivedContainer):
    def __init__(self, source: ReactiveContainer, transform: Callable[[Any], Any]):
        super().__init__(transform(source.value), name=f"{source.label}.map")
        self._transform = transform
        self._listen_to(source, self._on_source_changed)

    def _on_source_changed(self, value, _previous):
        self.set(self._transform(value))


class CombinedContainer(DerivedContainer):
    def __init__(
        self,
        first: ReactiveContainer,
        second: ReactiveContainer,
        combiner: Callable[[Any, Any], Any],
    ):
        super().__init__(
            combiner(first.value, second.value),
            name=f"{first.label}.combine({second.label})",
        )
        self._first = first
        self._second = second
        self._combiner = combiner
        self._listen_to(first, self._recompute)
        self._listen_to(second, self._recompute)

    def _recompute(self, _value, _previous):
        self.set(self._combiner(self._first.value, self._second.value))


class FilteredContainer(DerivedContainer):
    """Starts with the source value; afterwards forwards only accepted values."""

    def __init__(self, source: ReactiveContainer, predicate: Callable[[Any], bool]):
        super().__init__(source.value, name=f"{source.label}.where")
        self._predicate = predicate
        self._listen_to(source, self._on_source_changed)

    def _on_source_changed(self, value, _previous):
        if self._predicate(value):
            self.set(value)

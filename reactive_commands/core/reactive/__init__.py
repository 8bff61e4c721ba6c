"""
Reactive primitives.

Provides:
- ReactiveContainer: observable single-value holder
- NotifyMode: ALWAYS / ON_CHANGE / MANUAL notification policy
- Subscription: unsubscribe handle
- MappedContainer, CombinedContainer, FilteredContainer: derived containers
"""
from .container import NotifyMode, ReactiveContainer, Subscription
from .operators import CombinedContainer, DerivedContainer, FilteredContainer, MappedContainer

__all__ = [
    "ReactiveContainer",
    "NotifyMode",
    "Subscription",
    "DerivedContainer",
    "MappedContainer",
    "CombinedContainer",
    "FilteredContainer",
]

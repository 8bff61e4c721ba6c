"""
Error Filters - classify a failure into an ErrorReaction.

Provides:
- ErrorFilter: base interface
- FunctionErrorFilter: adapts a plain (error, stack_trace) callable
- Fixed-verdict filters: GlobalIfNoLocalErrorFilter (process default),
  LocalErrorFilter, GlobalErrorFilter, LocalAndGlobalErrorFilter,
  NoHandlersThrowErrorFilter, SilentErrorFilter
- TableErrorFilter: exception type -> reaction lookup
- PredicatesErrorFilter: ordered list of predicate functions
- ErrorFilterExemption: one exception type gets a fixed reaction
- error_filter(): helper for predicate functions

A filter returning None or ErrorReaction.DELEGATE_TO_DEFAULT defers to the
default filter of the command's context.
"""
from abc import ABC, abstractmethod
from types import TracebackType
from typing import Callable, Dict, List, Optional, Type

from .reactions import ErrorReaction

ErrorFilterFn = Callable[[BaseException, Optional[TracebackType]], Optional[ErrorReaction]]


class ErrorFilter(ABC):
    """
    Strategy mapping a failure to an ErrorReaction.

    Example:
        class NetworkErrorFilter(ErrorFilter):
            def classify(self, error, stack_trace):
                if isinstance(error, ConnectionError):
                    return ErrorReaction.LOCAL_HANDLER
                return None  # let the default filter decide
    """

    @abstractmethod
    def classify(
        self, error: BaseException, stack_trace: Optional[TracebackType]
    ) -> Optional[ErrorReaction]:
        """Return the reaction for this error, or None to defer."""
        pass


class FunctionErrorFilter(ErrorFilter):
    """Wraps a plain function with the classify signature."""

    def __init__(self, fn: ErrorFilterFn):
        self._fn = fn

    def classify(self, error, stack_trace):
        return self._fn(error, stack_trace)


class _FixedErrorFilter(ErrorFilter):
    reaction: ErrorReaction = ErrorReaction.DELEGATE_TO_DEFAULT

    def classify(self, error, stack_trace):
        return self.reaction


class GlobalIfNoLocalErrorFilter(_FixedErrorFilter):
    """Local handler if the error container is observed, global otherwise."""
    reaction = ErrorReaction.FIRST_LOCAL_THEN_GLOBAL_HANDLER


class LocalErrorFilter(_FixedErrorFilter):
    reaction = ErrorReaction.LOCAL_HANDLER


class GlobalErrorFilter(_FixedErrorFilter):
    reaction = ErrorReaction.GLOBAL_HANDLER


class LocalAndGlobalErrorFilter(_FixedErrorFilter):
    reaction = ErrorReaction.LOCAL_AND_GLOBAL_HANDLER


class NoHandlersThrowErrorFilter(_FixedErrorFilter):
    reaction = ErrorReaction.NO_HANDLERS_THROW_EXCEPTION


class SilentErrorFilter(_FixedErrorFilter):
    reaction = ErrorReaction.NONE


class TableErrorFilter(ErrorFilter):
    """
    Looks the error's type up in a table.

    The lookup walks the type's MRO, so an entry for a base class covers its
    subclasses unless a more specific entry exists.

    Example:
        TableErrorFilter({
            TimeoutError: ErrorReaction.LOCAL_HANDLER,
            Exception: ErrorReaction.GLOBAL_HANDLER,
        })
    """

    def __init__(self, table: Dict[Type[BaseException], ErrorReaction]):
        self._table = dict(table)

    def classify(self, error, stack_trace):
        for cls in type(error).__mro__:
            if cls in self._table:
                return self._table[cls]
        return ErrorReaction.DELEGATE_TO_DEFAULT


class PredicatesErrorFilter(ErrorFilter):
    """
    Asks each predicate function in order; the first one that does not defer wins.

    Example:
        PredicatesErrorFilter([
            lambda e, st: error_filter(e, KeyError, ErrorReaction.NONE),
            lambda e, st: error_filter(e, Exception, ErrorReaction.LOCAL_HANDLER),
        ])
    """

    def __init__(self, predicates: List[ErrorFilterFn]):
        self._predicates = list(predicates)

    def classify(self, error, stack_trace):
        for predicate in self._predicates:
            reaction = predicate(error, stack_trace)
            if reaction is not None and not reaction.defers:
                return reaction
        return ErrorReaction.DELEGATE_TO_DEFAULT


class ErrorFilterExemption(ErrorFilter):
    """Gives errors of one type a fixed reaction and defers everything else."""

    def __init__(self, error_type: Type[BaseException], reaction: ErrorReaction):
        self._error_type = error_type
        self._reaction = reaction

    def classify(self, error, stack_trace):
        if isinstance(error, self._error_type):
            return self._reaction
        return ErrorReaction.DELEGATE_TO_DEFAULT


def error_filter(
    error: BaseException, error_type: Type[BaseException], reaction: ErrorReaction
) -> Optional[ErrorReaction]:
    """Return reaction if error is an error_type, otherwise None."""
    if isinstance(error, error_type):
        return reaction
    return None


def as_error_filter(value) -> Optional[ErrorFilter]:
    """Accept an ErrorFilter, a plain function, or None."""
    if value is None or isinstance(value, ErrorFilter):
        return value
    if callable(value):
        return FunctionErrorFilter(value)
    raise TypeError(f"Expected ErrorFilter or callable, got {type(value).__name__}")

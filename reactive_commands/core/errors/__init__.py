"""
Error classification and delivery.

Provides:
- ErrorReaction: closed set of delivery verdicts
- ErrorFilter family: strategies mapping (error, stack_trace) to a verdict
- ErrorReactionEngine: mandatory pass, filter pass and delivery
"""
from .reactions import ErrorReaction
from .filters import (
    ErrorFilter,
    ErrorFilterExemption,
    FunctionErrorFilter,
    GlobalErrorFilter,
    GlobalIfNoLocalErrorFilter,
    LocalAndGlobalErrorFilter,
    LocalErrorFilter,
    NoHandlersThrowErrorFilter,
    PredicatesErrorFilter,
    SilentErrorFilter,
    TableErrorFilter,
    as_error_filter,
    error_filter,
)
from .engine import ErrorDelivery, ErrorReactionEngine

__all__ = [
    "ErrorReaction",
    "ErrorFilter",
    "FunctionErrorFilter",
    "GlobalIfNoLocalErrorFilter",
    "LocalErrorFilter",
    "GlobalErrorFilter",
    "LocalAndGlobalErrorFilter",
    "NoHandlersThrowErrorFilter",
    "SilentErrorFilter",
    "TableErrorFilter",
    "PredicatesErrorFilter",
    "ErrorFilterExemption",
    "error_filter",
    "as_error_filter",
    "ErrorDelivery",
    "ErrorReactionEngine",
]

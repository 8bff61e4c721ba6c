"""
Core - command state machine, error routing and reactive primitives.
"""
from .config import CommandContext, CommandSettings, get_default_context, load_settings, set_default_context
from .logging import setup_logging
from .events import Signal
from .exceptions import CommandMisuseError, DisposedError, SynchronousCommandError, UndoException
from .reactive import (
    CombinedContainer,
    FilteredContainer,
    MappedContainer,
    NotifyMode,
    ReactiveContainer,
    Subscription,
)
from .errors import (
    ErrorFilter,
    ErrorFilterExemption,
    ErrorReaction,
    ErrorReactionEngine,
    FunctionErrorFilter,
    GlobalErrorFilter,
    GlobalIfNoLocalErrorFilter,
    LocalAndGlobalErrorFilter,
    LocalErrorFilter,
    NoHandlersThrowErrorFilter,
    PredicatesErrorFilter,
    SilentErrorFilter,
    TableErrorFilter,
    error_filter,
)
from .commands import (
    AsyncCommand,
    Command,
    CommandError,
    CommandResult,
    ProgressHandle,
    RestrictionGate,
    SyncCommand,
    UndoableCommand,
    UndoStack,
    pipe_to_command,
)

__all__ = [
    # config / logging / events
    "CommandContext",
    "CommandSettings",
    "get_default_context",
    "set_default_context",
    "load_settings",
    "setup_logging",
    "Signal",
    # exceptions
    "CommandMisuseError",
    "DisposedError",
    "SynchronousCommandError",
    "UndoException",
    # reactive
    "ReactiveContainer",
    "NotifyMode",
    "Subscription",
    "MappedContainer",
    "CombinedContainer",
    "FilteredContainer",
    # errors
    "ErrorReaction",
    "ErrorReactionEngine",
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
    # commands
    "Command",
    "SyncCommand",
    "AsyncCommand",
    "UndoableCommand",
    "UndoStack",
    "CommandResult",
    "CommandError",
    "ProgressHandle",
    "RestrictionGate",
    "pipe_to_command",
]

"""
Command state snapshots.

Provides:
- CommandResult: immutable snapshot of {param_data, data, error, is_running}
- CommandError: one failed execution, as delivered to error handlers
"""
from dataclasses import dataclass, field
from types import TracebackType
from typing import Any, Generic, Optional, TypeVar

from ..errors.reactions import ErrorReaction

TParam = TypeVar('TParam')
TResult = TypeVar('TResult')


@dataclass(frozen=True)
class CommandResult(Generic[TParam, TResult]):
    """
    Combined execution state of a command at one instant.

    A new instance is published on every transition:
    1. after construction: (None, initial_value, None, False)
    2. when a run starts:  (param, None, None, True)
    3. when it finishes:   (param, result, None, False) or (param, None, error, False)

    Equality only looks at param_data, data, error and is_running.
    """
    param_data: Optional[TParam] = None
    data: Optional[TResult] = None
    error: Optional[BaseException] = None
    is_running: bool = False
    error_reaction: Optional[ErrorReaction] = field(default=None, compare=False)
    stack_trace: Optional[TracebackType] = field(default=None, compare=False, repr=False)
    is_undo_value: bool = field(default=False, compare=False)

    @classmethod
    def blank(cls) -> 'CommandResult':
        return cls()

    @classmethod
    def success(cls, param: Optional[TParam], data: Optional[TResult]) -> 'CommandResult':
        return cls(param, data, None, False)

    @classmethod
    def failure(
        cls,
        param: Optional[TParam],
        error: BaseException,
        error_reaction: Optional[ErrorReaction],
        stack_trace: Optional[TracebackType] = None,
        data: Optional[TResult] = None,
    ) -> 'CommandResult':
        return cls(param, data, error, False, error_reaction=error_reaction, stack_trace=stack_trace)

    @classmethod
    def loading(cls, param: Optional[TParam] = None, data: Optional[TResult] = None) -> 'CommandResult':
        return cls(param, data, None, True)

    @property
    def has_data(self) -> bool:
        return self.data is not None

    @property
    def has_error(self) -> bool:
        # errors raised by undo are carried in `error` but do not count here
        return self.error is not None and not self.is_undo_value

    @property
    def is_success(self) -> bool:
        """Not running and no error; useful for commands without a return value."""
        return not self.is_running and not self.has_error

    def __str__(self) -> str:
        return (
            f"ParamData {self.param_data} - Data: {self.data} - "
            f"HasError: {self.has_error} - IsRunning: {self.is_running}"
        )


@dataclass(eq=False)
class CommandError(Generic[TParam]):
    """
    A failed execution together with the parameter it was run with.

    Published on a command's `errors` container and passed to the global
    exception handler. When an error handler itself raises, the handler's
    exception is reported in a new CommandError whose original_error holds
    the error that was being handled.
    """
    error: BaseException
    param_data: Optional[TParam] = None
    command: Any = None
    stack_trace: Optional[TracebackType] = None
    error_reaction: Optional[ErrorReaction] = None
    original_error: Optional['CommandError'] = None

    @property
    def command_name(self) -> str:
        name = getattr(self.command, "name", None)
        return name if name is not None else "Command Property not set"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CommandError):
            return NotImplemented
        return other.param_data == self.param_data and other.error == self.error

    def __hash__(self) -> int:
        return hash(id(self.error))

    def __str__(self) -> str:
        if self.original_error is not None:
            return (
                f"Error handler exception: Error handler of Command: {self.command_name} "
                f"for param: {self.param_data},\nthrew {self.error!r},\n"
                f"Original error: {self.original_error}\n"
            )
        return f"{self.error!r} - from Command: {self.command_name} for param: {self.param_data}"

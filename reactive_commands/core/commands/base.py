"""
Command - execution state machine shared by every command variant.

A command wraps a function and publishes its state through reactive
containers:
- the command itself: last successful result (it IS the value container)
- results: CommandResult snapshot on every transition
- is_running / is_running_sync: execution flag (async commands only)
- can_run: not restricted and not running
- errors: last CommandError delivered locally

Subclasses plug into the template through hooks instead of type checks:
_check_runnable, _start and _extra_args here, _before_async_notify and
_on_execution_failure in the async template.
"""
import asyncio
from abc import ABC, abstractmethod
from typing import Any, Callable, List, Optional, TypeVar

from loguru import logger

from ..config import CommandContext, get_default_context
from ..errors import ErrorFilter, ErrorReactionEngine, as_error_filter
from ..exceptions import DisposedError
from ..reactive import NotifyMode, ReactiveContainer
from .gate import RestrictionGate
from .progress import ProgressHandle
from .result import CommandError, CommandResult

TParam = TypeVar('TParam')
TResult = TypeVar('TResult')

RunInsteadHandler = Callable[..., None]

class Command(ReactiveContainer[TResult], ABC):
    """
    Base class for SyncCommand, AsyncCommand and UndoableCommand.

    Args:
        func: Wrapped function, called with the run parameter.
        initial_value: Value of the command before the first successful run.
        restriction: Optional container; while it holds True the command
            does not run.
        if_restricted_run_instead: Called with the parameter instead of func
            while restricted.
        error_filter: ErrorFilter (or plain function) classifying failures.
        error_filter_fn: Plain function alternative to error_filter.
        name: Debug name used in logs, CommandError and the logging handler.
        no_param: Call func without the run parameter.
        notify_only_when_value_changes: Value subscribers are only notified
            when the result differs from the previous one.
        include_last_result_in_command_results: Running and error results
            carry the last successful value as data.
        context: CommandContext; defaults to the process-wide one.
    """

    def __init__(
        self,
        func: Callable[..., Any],
        initial_value: Optional[TResult] = None,
        restriction: Optional[ReactiveContainer] = None,
        if_restricted_run_instead: Optional[RunInsteadHandler] = None,
        error_filter: Optional[ErrorFilter] = None,
        error_filter_fn: Optional[Callable] = None,
        name: Optional[str] = None,
        no_param: bool = False,
        notify_only_when_value_changes: bool = False,
        include_last_result_in_command_results: bool = False,
        context: Optional[CommandContext] = None,
    ):
        if error_filter is not None and error_filter_fn is not None:
            raise ValueError("Cannot provide both error_filter and error_filter_fn")
        super().__init__(
            initial_value,
            mode=NotifyMode.ON_CHANGE if notify_only_when_value_changes else NotifyMode.ALWAYS,
            name=name,
        )
        self._func = func
        self._no_param = no_param
        self._if_restricted_run_instead = if_restricted_run_instead
        self._include_last_result = include_last_result_in_command_results
        self._error_filter = as_error_filter(error_filter if error_filter is not None else error_filter_fn)
        self._context = context or get_default_context()
        self._engine = ErrorReactionEngine(self._context)

        self._results = ReactiveContainer(
            CommandResult.success(None, initial_value), name=f"{self.label}.results"
        )
        self._is_running_sync = ReactiveContainer(False, name=f"{self.label}.is_running_sync")
        # same flag, notified one loop tick later for UI consumers
        self._is_running = ReactiveContainer(
            False, async_notification=True, name=f"{self.label}.is_running"
        )
        self._is_running_sync.subscribe(lambda busy, _: self._is_running.set(busy))
        self._errors = ReactiveContainer(None, mode=NotifyMode.MANUAL, name=f"{self.label}.errors")
        self._gate = RestrictionGate(self._is_running_sync, restriction)

        self._progress_handle: Optional[ProgressHandle] = None
        # per-command stand-in for commands created without progress
        self._idle_progress: Optional[ProgressHandle] = None
        # bumped by every execution; a finishing run only clears the flag it set
        self._run_token = 0
        self._pending_future: Optional[asyncio.Future] = None
        self._disposing = False
        self._release_handle: Optional[asyncio.TimerHandle] = None

    # --- observable state ---

    @property
    def results(self) -> ReactiveContainer:
        return self._results

    @property
    def is_running(self) -> ReactiveContainer:
        """Running flag for UI bindings; notifications arrive one loop tick late."""
        return self._is_running

    @property
    def is_running_sync(self) -> ReactiveContainer:
        """Running flag notified immediately; use it for restrictions and chaining."""
        return self._is_running_sync

    @property
    def can_run(self) -> ReactiveContainer:
        return self._gate.can_run

    @property
    def errors(self) -> ReactiveContainer:
        return self._errors

    @property
    def restriction(self) -> Optional[ReactiveContainer]:
        return self._gate.restriction

    @property
    def context(self) -> CommandContext:
        return self._context

    @property
    def has_local_error_handler(self) -> bool:
        return self._errors.has_listeners

    @property
    def is_disposing(self) -> bool:
        return self._disposing

    # --- progress ---

    @property
    def progress(self) -> ReactiveContainer:
        return self._progress_source().progress

    @property
    def status_message(self) -> ReactiveContainer:
        return self._progress_source().status_message

    @property
    def is_canceled(self) -> ReactiveContainer:
        return self._progress_source().is_canceled

    def _progress_source(self) -> ProgressHandle:
        if self._progress_handle is not None:
            return self._progress_handle
        if self._idle_progress is None:
            self._idle_progress = ProgressHandle()
        return self._idle_progress

    def cancel(self) -> None:
        """Request cooperative cancellation; no-op without a ProgressHandle."""
        if self._progress_handle is not None:
            self._progress_handle.cancel()

    def reset_progress(self, progress: Optional[float] = None, status_message: Optional[str] = None) -> None:
        if self._progress_handle is not None:
            self._progress_handle.reset(progress=progress, status_message=status_message)

    # --- execution template ---

    def run(self, param: Optional[TParam] = None):
        """
        Run the wrapped function with param.

        Restricted commands call if_restricted_run_instead (if any) instead.
        A run requested while the command is already running is dropped.

        Raises:
            DisposedError: If the command was disposed.
        """
        if self._disposing:
            raise DisposedError(f"Command '{self.label}' was disposed")
        if self._gate.is_restricted:
            logger.debug(f"Command '{self.label}' is restricted, skipping run")
            if self._if_restricted_run_instead is not None:
                if self._no_param:
                    self._if_restricted_run_instead()
                else:
                    self._if_restricted_run_instead(param)
            return None
        if self._is_running_sync.value:
            logger.debug(f"Command '{self.label}' is already running, dropping run({param!r})")
            return None
        self._check_runnable()

        self._errors.value = None
        self._run_token += 1
        self._is_running_sync.value = True
        if self._progress_handle is not None:
            self._progress_handle.reset()
        logger.debug(f"Command '{self.label}' running with {param!r}")
        return self._start(param)

    def __call__(self, param: Optional[TParam] = None):
        return self.run(param)

    def _check_runnable(self) -> None:
        """Hook: raise before any state changes if the run cannot start."""
        pass

    @abstractmethod
    def _start(self, param: Optional[TParam]):
        """Hook: execute (or schedule) the wrapped function."""
        pass

    def _extra_args(self) -> List[Any]:
        """Hook: arguments passed to func after the parameter."""
        if self._progress_handle is not None:
            return [self._progress_handle]
        return []

    def _invoke(self, param: Optional[TParam]):
        args = [] if self._no_param else [param]
        args.extend(self._extra_args())
        return self._func(*args)

    def _publish_success(self, param: Optional[TParam], result: TResult) -> None:
        if self._disposing:
            return
        self._results.value = CommandResult.success(param, result)
        # cleared before the value notification so listeners may run us again
        self._is_running_sync.value = False
        self.value = result
        logger.debug(f"Command '{self.label}' succeeded")

    def _handle_failure(self, param: Optional[TParam], error: Exception) -> None:
        """
        Filter pass and delivery for a failed run.

        Raises:
            The original error when the delivery rethrows.
        """
        stack_trace = error.__traceback__
        reaction = self._engine.classify(error, stack_trace, self._error_filter)
        delivery = self._engine.plan(reaction, self.has_local_error_handler)
        logger.debug(f"Command '{self.label}' failed with {error!r}, reaction {delivery.reaction.name}")
        command_error = CommandError(
            error=error,
            param_data=param,
            command=self,
            stack_trace=stack_trace,
            error_reaction=delivery.reaction,
        )
        if delivery.publishes_result and not self._disposing:
            self._results.value = CommandResult.failure(
                param,
                error,
                delivery.reaction,
                stack_trace,
                data=self.value if self._include_last_result else None,
            )
        if not self._disposing:
            self._is_running_sync.value = False
        self._engine.deliver(delivery, command_error, self._deliver_local)

    def _finish_run(self, token: int) -> None:
        """Clear the running flag unless a listener already started a newer run."""
        if not self._disposing and token == self._run_token:
            self._is_running_sync.value = False

    def _deliver_local(self, command_error: CommandError) -> None:
        if self._disposing:
            return
        self._errors.value = command_error
        self._errors.notify_listeners(
            on_error=lambda e: self._engine.report_handler_failure(e, command_error)
        )

    def _log_run(self, suffix: str = "") -> None:
        handler = self._context.logging_handler
        if self.name is None or handler is None:
            return
        try:
            handler(f"{self.name}{suffix}", self._results.value)
        except Exception as e:
            logger.error(f"Logging handler failed for command '{self.name}': {e}")

    def clear_errors(self) -> None:
        """Reset the error container to None and notify its listeners."""
        self._errors.value = None
        if self._disposing:
            return
        self._errors.notify_listeners()

    # --- lifecycle ---

    def _owned_containers(self) -> List[ReactiveContainer]:
        return [self._results, self._is_running_sync, self._is_running, self._errors]

    def dispose(self) -> None:
        """
        Stop all notifications now and release the containers after the
        grace period, letting in-flight async completions settle. Idempotent.
        """
        if self._disposing:
            return
        self._disposing = True
        logger.debug(f"Command '{self.label}' disposing")
        self.mute()
        for container in self._owned_containers():
            container.mute()
        self._gate.mute()
        for handle in (self._progress_handle, self._idle_progress):
            if handle is not None:
                handle.mute()
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._release()
            return
        self._release_handle = loop.call_later(
            self._context.settings.dispose_grace_period, self._release
        )

    def _release(self) -> None:
        self._release_handle = None
        for container in self._owned_containers():
            container.dispose()
        self._gate.dispose()
        for handle in (self._progress_handle, self._idle_progress):
            if handle is not None:
                handle.dispose()
        future, self._pending_future = self._pending_future, None
        if future is not None and not future.done():
            future.set_exception(DisposedError(f"Command '{self.label}' was disposed while running"))
        ReactiveContainer.dispose(self)
        logger.debug(f"Command '{self.label}' released")

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r}, value={self.value!r})"

"""
Error Reaction Engine - turns a failed execution into deliveries.

Pipeline:
1. Mandatory pass: misuse errors, (optionally) AssertionErrors and (in
   debug mode) every error are rethrown before any filter sees them;
   report_all_exceptions forwards everything to the global handler.
2. Filter pass: command filter, falling back to the context default.
3. Delivery: local error container, global handler, rethrow or nothing.

Handlers that raise never break delivery: their exceptions are forwarded to
the global handler (or logged when that is disabled / the global handler
itself is the one raising).
"""
from dataclasses import dataclass
from types import TracebackType
from typing import Any, Callable, Optional, TYPE_CHECKING

from loguru import logger

from ..exceptions import CommandMisuseError
from .filters import ErrorFilter
from .reactions import ErrorReaction

if TYPE_CHECKING:
    from ..config import CommandContext
    from ..commands.result import CommandError


@dataclass(frozen=True)
class ErrorDelivery:
    """Where one failure goes, resolved from its reaction at delivery time."""
    reaction: ErrorReaction
    local: bool = False
    to_global: bool = False
    rethrow: bool = False

    @property
    def publishes_result(self) -> bool:
        """NONE swallows the error without touching results or errors."""
        return self.reaction is not ErrorReaction.NONE


class ErrorReactionEngine:
    """
    Classifies a failure and executes the resulting delivery.

    One engine per command, bound to the command's CommandContext.
    """

    def __init__(self, context: 'CommandContext'):
        self._context = context

    @property
    def context(self) -> 'CommandContext':
        return self._context

    # --- step 1 ---

    def mandatory_pass(
        self,
        error: BaseException,
        stack_trace: Optional[TracebackType],
        param: Any = None,
        command: Any = None,
    ) -> None:
        """
        Filter-proof handling.

        Raises:
            The error itself if it is a misuse error, an AssertionError
            while assertions_always_throw is set, or any error while
            debug_errors_throw_always is set.
        """
        settings = self._context.settings
        if isinstance(error, CommandMisuseError):
            raise error
        if settings.assertions_always_throw and isinstance(error, AssertionError):
            raise error
        if settings.debug_errors_throw_always:
            raise error
        if settings.report_all_exceptions:
            from ..commands.result import CommandError
            self._call_global_handler(
                CommandError(error=error, param_data=param, command=command, stack_trace=stack_trace)
            )

    # --- step 2 ---

    def classify(
        self,
        error: BaseException,
        stack_trace: Optional[TracebackType],
        error_filter: Optional[ErrorFilter] = None,
    ) -> ErrorReaction:
        """Resolve the final reaction; never returns DELEGATE_TO_DEFAULT."""
        reaction = None
        if error_filter is not None:
            reaction = error_filter.classify(error, stack_trace)
        if reaction is None or reaction.defers:
            reaction = self._context.default_error_filter.classify(error, stack_trace)
            if reaction is None or reaction.defers:
                logger.warning(
                    f"Default error filter {type(self._context.default_error_filter).__name__} "
                    f"returned {reaction}; using FIRST_LOCAL_THEN_GLOBAL_HANDLER"
                )
                reaction = ErrorReaction.FIRST_LOCAL_THEN_GLOBAL_HANDLER
        return reaction

    # --- step 3 ---

    def plan(self, reaction: ErrorReaction, has_local_handler: bool) -> ErrorDelivery:
        """Map a reaction to a delivery, checking handler presence now."""
        has_global_handler = self._context.has_global_handler

        if reaction is ErrorReaction.NONE:
            return ErrorDelivery(reaction)
        if reaction is ErrorReaction.THROW_EXCEPTION:
            return ErrorDelivery(reaction, rethrow=True)
        if reaction is ErrorReaction.LOCAL_HANDLER:
            return ErrorDelivery(reaction, local=True)
        if reaction is ErrorReaction.GLOBAL_HANDLER:
            return ErrorDelivery(reaction, to_global=True)
        if reaction is ErrorReaction.LOCAL_AND_GLOBAL_HANDLER:
            return ErrorDelivery(reaction, local=True, to_global=True)
        if reaction is ErrorReaction.NO_HANDLERS_THROW_EXCEPTION:
            if not has_local_handler and not has_global_handler:
                return ErrorDelivery(reaction, rethrow=True)
            return ErrorDelivery(reaction, local=has_local_handler, to_global=not has_local_handler)
        if reaction is ErrorReaction.THROW_IF_NO_LOCAL_HANDLER:
            if not has_local_handler:
                return ErrorDelivery(reaction, rethrow=True)
            return ErrorDelivery(reaction, local=True)
        # FIRST_LOCAL_THEN_GLOBAL_HANDLER, and anything classify() let through
        return ErrorDelivery(
            ErrorReaction.FIRST_LOCAL_THEN_GLOBAL_HANDLER,
            local=has_local_handler,
            to_global=not has_local_handler,
        )

    def deliver(
        self,
        delivery: ErrorDelivery,
        command_error: 'CommandError',
        local_sink: Callable[['CommandError'], None],
    ) -> None:
        """
        Execute a delivery, local first.

        Raises:
            command_error.error when the delivery rethrows.
        """
        if delivery.local:
            local_sink(command_error)
        if delivery.to_global:
            self.report_global(command_error)
        if delivery.rethrow:
            raise command_error.error

    def report_global(self, command_error: 'CommandError') -> None:
        """Emit on the global error stream and call the global handler."""
        self._context.global_errors.emit(command_error)
        if not self._context.has_global_handler:
            logger.warning(
                f"Command '{command_error.command_name}': error routed to the global handler "
                f"but none is registered: {command_error.error!r}"
            )
            return
        self._call_global_handler(command_error)

    def report_handler_failure(self, handler_error: Exception, original: 'CommandError') -> None:
        """Forward an exception raised by an error handler to the global handler."""
        if not self._context.settings.report_error_handler_exceptions_to_global_handler:
            logger.error(
                f"Error handler of command '{original.command_name}' raised {handler_error!r} "
                f"while handling {original.error!r}"
            )
            return
        from ..commands.result import CommandError
        self.report_global(
            CommandError(
                error=handler_error,
                command=original.command,
                param_data=original.param_data,
                stack_trace=handler_error.__traceback__,
                error_reaction=ErrorReaction.NONE,
                original_error=original,
            )
        )

    def _call_global_handler(self, command_error: 'CommandError') -> None:
        handler = self._context.global_exception_handler
        if handler is None:
            return
        try:
            handler(command_error)
        except Exception as e:
            if command_error.original_error is not None:
                # already reporting a handler failure
                logger.opt(exception=e).error(
                    f"Global exception handler raised while reporting a handler failure: {e}"
                )
                return
            self.report_handler_failure(e, command_error)

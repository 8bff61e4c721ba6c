"""
Undoable Commands - optimistic operations with rollback.

Provides:
- UndoStack: per-command LIFO of snapshots
- UndoableCommand: async command whose wrapped function pushes a snapshot
  before mutating, and whose undo callback restores it on failure or on
  demand
"""
import asyncio
import inspect
from typing import Any, Callable, Generic, List, Optional, TypeVar

from loguru import logger

from ..exceptions import DisposedError, UndoException
from ..errors import ErrorReaction
from .async_command import AsyncCommand
from .result import CommandError, CommandResult

T = TypeVar('T')

UndoFn = Callable[['UndoStack', Optional[BaseException]], Any]


class UndoStack(Generic[T]):
    """In-memory snapshot stack owned by one UndoableCommand."""

    def __init__(self):
        self._items: List[T] = []

    def push(self, state: T) -> None:
        self._items.append(state)

    def pop(self) -> T:
        """
        Raises:
            IndexError: If the stack is empty.
        """
        if not self._items:
            raise IndexError("pop from empty UndoStack")
        return self._items.pop()

    def peek(self) -> T:
        if not self._items:
            raise IndexError("peek at empty UndoStack")
        return self._items[-1]

    def clear(self) -> None:
        self._items.clear()

    @property
    def is_empty(self) -> bool:
        return not self._items

    @property
    def is_not_empty(self) -> bool:
        return bool(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __str__(self) -> str:
        return str(self._items)

    def __repr__(self) -> str:
        return f"UndoStack({self._items!r})"


class UndoableCommand(AsyncCommand):
    """
    Async command with an undo stack.

    func receives (param, stack) and should push one snapshot before
    applying its optimistic change. undo receives (stack, reason) and pops
    it again; reason is the failure that triggered the rollback, or None for
    a manual undo(). undo may be sync or async; a non-None return value
    becomes the command value.

    Example:
        async def rename(new_name, stack):
            stack.push(item.name)
            item.name = new_name          # optimistic
            await api.rename(item.id, new_name)
            return new_name

        def restore(stack, reason):
            item.name = stack.pop()
            return item.name

        cmd = UndoableCommand(rename, undo=restore, initial_value=item.name)

    Args:
        undo: Rollback callback.
        undo_on_failure: Roll back automatically when func raises.
        (All other arguments as AsyncCommand.)
    """

    def __init__(self, func, undo: UndoFn, initial_value=None, undo_on_failure: bool = True, **kwargs):
        super().__init__(func, initial_value=initial_value, **kwargs)
        self._undo_fn = undo
        self._undo_on_failure = undo_on_failure
        self._undo_stack: UndoStack = UndoStack()

    @property
    def undo_stack(self) -> UndoStack:
        return self._undo_stack

    def _extra_args(self):
        return [self._undo_stack] + super()._extra_args()

    async def _on_execution_failure(self, param, error: Exception) -> None:
        if not self._undo_on_failure:
            return
        # is_running stays True until the rollback is done
        try:
            restored = await self._call_undo(error)
        except Exception as undo_error:
            self._report_undo_failure(undo_error, param)
            return
        if restored is not None and not self._disposing:
            self.value = restored

    async def _call_undo(self, reason: Optional[BaseException]):
        restored = self._undo_fn(self._undo_stack, reason)
        if inspect.isawaitable(restored):
            restored = await restored
        return restored

    def _report_undo_failure(self, undo_error: Exception, param) -> CommandError:
        """Wrap in UndoException and send straight to the global handler."""
        wrapped = UndoException(undo_error)
        wrapped.__cause__ = undo_error
        command_error = CommandError(
            error=wrapped,
            param_data=param,
            command=self,
            stack_trace=undo_error.__traceback__,
            error_reaction=ErrorReaction.GLOBAL_HANDLER,
        )
        logger.error(f"Undo of command '{self.label}' failed: {undo_error!r}")
        self._engine.report_global(command_error)
        return command_error

    def undo(self) -> Optional[asyncio.Task]:
        """
        Manually roll back the most recent execution.

        Runs as its own execution: is_running goes True then False, and a
        request while running is dropped.

        Raises:
            DisposedError: If the command was disposed.
        """
        if self._disposing:
            raise DisposedError(f"Command '{self.label}' was disposed")
        if self._is_running_sync.value:
            logger.debug(f"Command '{self.label}' is running, dropping undo()")
            return None
        self._check_runnable()
        self._run_token += 1
        self._is_running_sync.value = True
        logger.debug(f"Command '{self.label}' undoing")
        return asyncio.get_running_loop().create_task(self._execute_undo(self._run_token))

    async def _execute_undo(self, token: int):
        try:
            self._results.value = CommandResult.loading(
                None, self.value if self._include_last_result else None
            )
            await asyncio.sleep(0)
            try:
                restored = await self._call_undo(None)
            except Exception as undo_error:
                if self._disposing:
                    return None
                self._publish_undo_failure(undo_error)
                return None
            if self._disposing:
                return None
            self._results.value = CommandResult(None, restored, None, False, is_undo_value=True)
            self._is_running_sync.value = False
            if restored is not None:
                self.value = restored
            return restored
        finally:
            self._finish_run(token)
            self._log_run(" (undo)")

    def _publish_undo_failure(self, undo_error: Exception) -> None:
        wrapped = UndoException(undo_error)
        wrapped.__cause__ = undo_error
        local_error = CommandError(
            error=wrapped,
            command=self,
            stack_trace=undo_error.__traceback__,
            error_reaction=ErrorReaction.LOCAL_AND_GLOBAL_HANDLER,
        )
        # reported on results but excluded from has_error
        self._results.value = CommandResult(
            None,
            None,
            wrapped,
            False,
            error_reaction=ErrorReaction.LOCAL_AND_GLOBAL_HANDLER,
            stack_trace=undo_error.__traceback__,
            is_undo_value=True,
        )
        self._is_running_sync.value = False
        self._deliver_local(local_error)
        logger.error(f"Undo of command '{self.label}' failed: {undo_error!r}")
        self._engine.report_global(local_error)

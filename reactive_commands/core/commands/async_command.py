"""
AsyncCommand - command wrapping a coroutine function.

run() schedules the execution as an asyncio task on the running loop and
returns that task. Hooks for variants:
- _before_async_notify(param): right before the first await
- _on_execution_failure(param, error): after the mandatory error pass,
  before the error filter (UndoableCommand rolls back here)
"""
import asyncio
import inspect
from typing import Optional

from loguru import logger

from ..exceptions import CommandMisuseError, DisposedError
from .base import Command, TParam
from .progress import ProgressHandle
from .result import CommandResult


def _mark_retrieved(task: asyncio.Task) -> None:
    # the error already travels through the run_async future
    if not task.cancelled():
        task.exception()


def _settle(future: Optional[asyncio.Future], result=None, error: Optional[BaseException] = None) -> None:
    if future is None or future.done():
        return
    if error is not None:
        future.set_exception(error)
    else:
        future.set_result(result)


class AsyncCommand(Command):
    """
    Example:
        async def load_user(user_id):
            return await api.get_user(user_id)

        load = AsyncCommand(load_user, initial_value=None, name="load_user")
        load.is_running.subscribe(lambda busy, _: spinner.set_visible(busy))
        load.run(42)

        user = await load.run_async(42)   # pull-to-refresh style

    Args:
        with_progress: Pass a ProgressHandle to func after the parameter.
        (All other arguments as Command.)
    """

    def __init__(self, func, initial_value=None, with_progress: bool = False, **kwargs):
        super().__init__(func, initial_value=initial_value, **kwargs)
        if with_progress:
            self._progress_handle = ProgressHandle()

    def run_async(self, param: Optional[TParam] = None) -> asyncio.Future:
        """
        Run and return a future resolved once with the result, or failed
        with the error. While a previous run_async future is pending the
        same future is returned. A restricted run resolves with None.

        Raises:
            DisposedError: If the command was disposed.
        """
        if self._disposing:
            raise DisposedError(f"Command '{self.label}' was disposed")
        if self._pending_future is not None and not self._pending_future.done():
            return self._pending_future
        self._check_runnable()
        future = asyncio.get_running_loop().create_future()
        self._pending_future = future
        try:
            task = self.run(param)
        except BaseException:
            self._pending_future = None
            raise
        if task is not None:
            task.add_done_callback(_mark_retrieved)
        elif not self._is_running_sync.value:
            self._pending_future = None
            _settle(future, result=None)
        return future

    def _check_runnable(self) -> None:
        try:
            asyncio.get_running_loop()
        except RuntimeError as e:
            raise CommandMisuseError(
                f"Async command '{self.label}' needs a running event loop"
            ) from e

    def _start(self, param: Optional[TParam]) -> asyncio.Task:
        return asyncio.get_running_loop().create_task(self._execute(param, self._run_token))

    def _before_async_notify(self, param: Optional[TParam]) -> None:
        self._results.value = CommandResult.loading(
            param, self.value if self._include_last_result else None
        )

    async def _on_execution_failure(self, param: Optional[TParam], error: Exception) -> None:
        pass

    async def _execute(self, param: Optional[TParam], token: int):
        try:
            self._before_async_notify(param)
            # let the deferred is_running notification go out first
            await asyncio.sleep(0)
            if self._disposing:
                return None
            result = self._invoke(param)
            if inspect.isawaitable(result):
                result = await result
            if self._disposing:
                return None
            # detached first: listeners may start a run_async of their own
            future = self._take_pending()
            self._publish_success(param, result)
            _settle(future, result=result)
            return result
        except asyncio.CancelledError:
            self._cancel_pending()
            raise
        except Exception as error:
            if self._disposing:
                logger.debug(f"Command '{self.label}' disposed during run, dropping {error!r}")
                return None
            try:
                self._engine.mandatory_pass(error, error.__traceback__, param, self)
                await self._on_execution_failure(param, error)
            except BaseException:
                _settle(self._take_pending(), error=error)
                raise
            future = self._take_pending()
            try:
                self._handle_failure(param, error)
            finally:
                _settle(future, error=error)
            return None
        finally:
            self._finish_run(token)
            self._log_run()

    def _take_pending(self) -> Optional[asyncio.Future]:
        future, self._pending_future = self._pending_future, None
        return future

    def _cancel_pending(self) -> None:
        future = self._take_pending()
        if future is not None and not future.done():
            future.cancel()

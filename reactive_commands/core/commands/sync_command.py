"""
SyncCommand - command wrapping a synchronous function.

Runs inline inside run(); the running state is never observable, so
is_running and run_async are misuse.
"""
import inspect
from typing import Optional

from loguru import logger

from ..exceptions import SynchronousCommandError
from .base import Command, TParam


class SyncCommand(Command):
    """
    Example:
        toggle = SyncCommand(lambda on: not on, initial_value=False)
        toggle.run(False)
        assert toggle.value is True
    """

    def __init__(self, func, initial_value=None, **kwargs):
        if inspect.iscoroutinefunction(func):
            raise TypeError("SyncCommand cannot wrap a coroutine function; use AsyncCommand")
        super().__init__(func, initial_value=initial_value, **kwargs)

    @property
    def is_running(self):
        raise SynchronousCommandError(
            f"is_running isn't supported by synchronous command '{self.label}'"
        )

    def run_async(self, param: Optional[TParam] = None):
        raise SynchronousCommandError(
            f"run_async can't be used with synchronous command '{self.label}'"
        )

    def _start(self, param: Optional[TParam]) -> None:
        token = self._run_token
        try:
            result = self._invoke(param)
            self._publish_success(param, result)
        except Exception as error:
            if self._disposing:
                logger.debug(f"Command '{self.label}' disposed during run, dropping {error!r}")
                return None
            self._engine.mandatory_pass(error, error.__traceback__, param, self)
            self._handle_failure(param, error)
        finally:
            self._finish_run(token)
            self._log_run()
        return None

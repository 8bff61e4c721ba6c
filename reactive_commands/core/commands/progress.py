"""
Progress Handle - progress, status and cooperative cancellation.

Passed to the wrapped function of commands created with with_progress=True.
"""
from typing import Optional

from ..reactive import ReactiveContainer


class ProgressHandle:
    """
    Bidirectional channel between a running command and its observers.

    Example:
        async def upload(path, handle):
            for i in range(10):
                if handle.is_canceled.value:
                    return "canceled"
                await send_chunk(path, i)
                handle.update_progress((i + 1) / 10)
                handle.update_status_message(f"Uploading chunk {i + 1}")
            return "done"

        cmd = AsyncCommand(upload, initial_value="", with_progress=True)
    """

    def __init__(self):
        self._progress = ReactiveContainer(0.0, name="progress")
        self._status_message = ReactiveContainer(None, name="status_message")
        self._is_canceled = ReactiveContainer(False, name="is_canceled")

    @property
    def progress(self) -> ReactiveContainer:
        """Progress between 0.0 and 1.0."""
        return self._progress

    @property
    def status_message(self) -> ReactiveContainer:
        return self._status_message

    @property
    def is_canceled(self) -> ReactiveContainer:
        return self._is_canceled

    def update_progress(self, value: float) -> None:
        """
        Raises:
            ValueError: If value is outside 0.0..1.0.
        """
        if not 0.0 <= value <= 1.0:
            raise ValueError(f"Progress must be between 0.0 and 1.0, but was {value}")
        self._progress.value = value

    def update_status_message(self, message: Optional[str]) -> None:
        self._status_message.value = message

    def cancel(self) -> None:
        """Request cancellation; the wrapped function decides how to react."""
        self._is_canceled.value = True

    def reset(self, progress: Optional[float] = None, status_message: Optional[str] = None) -> None:
        """Back to initial state (or the given values); called before every run."""
        if progress is not None:
            self.update_progress(progress)
        else:
            self._progress.value = 0.0
        self._status_message.value = status_message
        self._is_canceled.value = False

    def mute(self) -> None:
        for container in (self._progress, self._status_message, self._is_canceled):
            container.mute()

    def dispose(self) -> None:
        for container in (self._progress, self._status_message, self._is_canceled):
            container.dispose()

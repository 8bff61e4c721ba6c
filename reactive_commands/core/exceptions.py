"""
Command exception hierarchy.

Misuse errors signal a programming defect (operating on a disposed command,
asking a synchronous command for its running state). They are raised outside
the error filter path and always surface.
"""


class CommandMisuseError(Exception):
    """Base for errors caused by using a command incorrectly."""
    pass


class DisposedError(CommandMisuseError):
    """Raised when a disposed command is run."""
    pass


class SynchronousCommandError(CommandMisuseError):
    """Raised when async-only state (is_running, run_async) is used on a sync command."""
    pass


class UndoException(Exception):
    """
    Wraps an exception raised by an undo callback.

    str() delegates to the wrapped error so log lines read like the original.
    """

    def __init__(self, error):
        super().__init__(error)
        self.error = error

    def __str__(self) -> str:
        return str(self.error)

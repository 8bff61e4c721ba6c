from typing import Any, Callable, Optional, TYPE_CHECKING
import json
import os
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from loguru import logger

from .events import Signal
from .errors.filters import ErrorFilter, GlobalIfNoLocalErrorFilter

if TYPE_CHECKING:
    from .commands.result import CommandError, CommandResult

GlobalExceptionHandler = Callable[['CommandError'], None]
LoggingHandler = Callable[[Optional[str], 'CommandResult'], None]


# --- Settings Model ---
class CommandSettings(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    # AssertionErrors bypass every filter and are rethrown
    assertions_always_throw: bool = True
    # Debug switch: every execution error is rethrown, ignoring filters
    debug_errors_throw_always: bool = False
    # Debug switch: every error also goes to the global handler
    report_all_exceptions: bool = False
    # A raising error handler is reported to the global handler (else only logged)
    report_error_handler_exceptions_to_global_handler: bool = True
    # Seconds dispose() waits before releasing containers
    dispose_grace_period: float = Field(default=0.05, ge=0)


def load_settings(filepath: str) -> CommandSettings:
    """Load settings from a JSON or TOML file if present; otherwise keep defaults."""
    if not os.path.isfile(filepath):
        return CommandSettings()
    try:
        if filepath.endswith('.toml'):
            import tomllib
            with open(filepath, "rb") as f:
                raw = tomllib.load(f)
        else:
            with open(filepath, "r", encoding="utf-8") as f:
                raw = json.load(f)
        return CommandSettings.model_validate(raw.get("commands", raw))
    except (OSError, ValueError, ValidationError) as e:
        logger.error(f"Failed to load command settings from {filepath}: {e}")
        return CommandSettings()


# --- Context ---
class CommandContext:
    """
    Policy shared by a group of commands.

    Holds the default error filter, the global exception handler, the
    logging handler and the debug flags. Commands read it, never mutate it.
    Every command uses the process-wide context unless one is passed at
    construction, so tests can work on an isolated instance.

    Usage:
        context = CommandContext(global_exception_handler=report_to_sentry)
        cmd = AsyncCommand(load_items, initial_value=[], context=context)

        context.global_errors.connect(show_toast)
        context.update("report_all_exceptions", True)
    """

    def __init__(
        self,
        settings: Optional[CommandSettings] = None,
        default_error_filter: Optional[ErrorFilter] = None,
        global_exception_handler: Optional[GlobalExceptionHandler] = None,
        logging_handler: Optional[LoggingHandler] = None,
    ):
        self._settings = settings or CommandSettings()
        self.default_error_filter: ErrorFilter = default_error_filter or GlobalIfNoLocalErrorFilter()
        self.global_exception_handler = global_exception_handler
        self.logging_handler = logging_handler
        # every globally delivered CommandError, whether or not a handler is set
        self.global_errors = Signal("GlobalErrors")
        self.on_changed = Signal("CommandSettingsChanged")

    @classmethod
    def from_file(cls, filepath: str, **kwargs) -> 'CommandContext':
        return cls(settings=load_settings(filepath), **kwargs)

    @property
    def settings(self) -> CommandSettings:
        return self._settings

    @property
    def has_global_handler(self) -> bool:
        return self.global_exception_handler is not None

    def update(self, key: str, value: Any):
        """Update a setting, validate via Pydantic and emit change event."""
        if key not in CommandSettings.model_fields:
            raise ValueError(f"Invalid key: {key}")
        setattr(self._settings, key, value)
        self.on_changed.emit(key, value)


_default_context: Optional[CommandContext] = None


def get_default_context() -> CommandContext:
    """Process-wide context used by commands created without one."""
    global _default_context
    if _default_context is None:
        _default_context = CommandContext()
    return _default_context


def set_default_context(context: Optional[CommandContext]) -> None:
    """Replace the process-wide context (None recreates a fresh one on next use)."""
    global _default_context
    _default_context = context

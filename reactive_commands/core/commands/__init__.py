"""
Commands - observable wrappers around units of work.

Provides:
- SyncCommand / AsyncCommand / UndoableCommand
- CommandResult / CommandError: state snapshots
- ProgressHandle: progress, status and cancellation
- UndoStack: per-command snapshot stack
- RestrictionGate: can_run derivation
- pipe_to_command: drive a command from a container
"""
from .result import CommandError, CommandResult
from .gate import RestrictionGate
from .progress import ProgressHandle
from .base import Command
from .sync_command import SyncCommand
from .async_command import AsyncCommand
from .undoable import UndoableCommand, UndoStack
from .pipe import pipe_to_command

__all__ = [
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

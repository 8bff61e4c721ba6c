"""
Error Reactions - verdicts produced by error filters.
"""
from enum import Enum


class ErrorReaction(Enum):
    """
    How a failed execution is delivered.

    local = the command's own error container, global = the context's
    global exception handler.
    """
    NONE = "none"
    THROW_EXCEPTION = "throw_exception"
    GLOBAL_HANDLER = "global_handler"
    LOCAL_HANDLER = "local_handler"
    LOCAL_AND_GLOBAL_HANDLER = "local_and_global_handler"
    FIRST_LOCAL_THEN_GLOBAL_HANDLER = "first_local_then_global_handler"
    NO_HANDLERS_THROW_EXCEPTION = "no_handlers_throw_exception"
    THROW_IF_NO_LOCAL_HANDLER = "throw_if_no_local_handler"
    DELEGATE_TO_DEFAULT = "delegate_to_default"

    @property
    def defers(self) -> bool:
        """True if the verdict hands the decision to the default filter."""
        return self is ErrorReaction.DELEGATE_TO_DEFAULT

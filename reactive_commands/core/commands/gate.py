"""
Restriction Gate - derives `can_run` for a command.

can_run == not restriction and not running. `restriction` is an external
container the gate reads but does not own; True means the command may NOT run.
"""
from typing import Optional

from ..reactive import ReactiveContainer


class RestrictionGate:
    """
    Combines an optional restriction signal with a command's running flag.

    Args:
        is_running: The command's synchronous running container.
        restriction: Optional external container; True disables the command.
    """

    def __init__(
        self,
        is_running: ReactiveContainer,
        restriction: Optional[ReactiveContainer] = None,
    ):
        self._restriction = restriction
        if restriction is None:
            self._can_run = is_running.map(lambda running: not running)
        else:
            self._can_run = restriction.combine(
                is_running, lambda restricted, running: not restricted and not running
            )

    @property
    def can_run(self) -> ReactiveContainer:
        return self._can_run

    @property
    def restriction(self) -> Optional[ReactiveContainer]:
        return self._restriction

    @property
    def is_restricted(self) -> bool:
        return self._restriction is not None and self._restriction.value is True

    def mute(self) -> None:
        self._can_run.mute()

    def dispose(self) -> None:
        """Detach from the restriction and the running flag."""
        self._can_run.dispose()

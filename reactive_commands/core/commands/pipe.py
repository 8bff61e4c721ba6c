"""
Piping - run a command whenever a container notifies.
"""
from typing import Any, Callable, Optional, TYPE_CHECKING

from ..reactive import ReactiveContainer, Subscription

if TYPE_CHECKING:
    from .base import Command


def pipe_to_command(
    source: ReactiveContainer,
    target: 'Command',
    transform: Optional[Callable[[Any], Any]] = None,
) -> Subscription:
    """
    Run target with every value source notifies.

    Example:
        search_text.pipe_to_command(search_command)
        load_user.pipe_to_command(load_avatar, transform=lambda user: user.avatar_url)

    Returns:
        The Subscription on source; cancel it to stop piping.
    """
    def _forward(value, _previous):
        target.run(transform(value) if transform is not None else value)

    return source.subscribe(_forward)

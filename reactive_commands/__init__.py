"""
reactive_commands - observable commands with routed error handling.

Usage:
    from reactive_commands import AsyncCommand, CommandContext, set_default_context

    set_default_context(CommandContext(global_exception_handler=print))

    load = AsyncCommand(fetch_items, initial_value=[], name="load_items")
    load.is_running.subscribe(lambda busy, _: spinner.set_visible(busy))
    load.errors.subscribe(lambda err, _: banner.show(err) if err else banner.hide())
    load.run()
"""
from .core import *  # noqa: F401,F403
from .core import __all__

__version__ = "0.1.0"

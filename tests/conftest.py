import pytest
from unittest.mock import MagicMock

from reactive_commands import CommandContext, CommandSettings, set_default_context


@pytest.fixture(autouse=True)
def reset_default_context():
    """Each test starts with a fresh process-wide context."""
    set_default_context(None)
    yield
    set_default_context(None)


@pytest.fixture
def global_handler():
    return MagicMock(name="global_exception_handler")


@pytest.fixture
def context(global_handler):
    """Isolated context with a spy global handler and a short dispose grace period."""
    return CommandContext(
        settings=CommandSettings(dispose_grace_period=0.01),
        global_exception_handler=global_handler,
    )


@pytest.fixture
def bare_context():
    """Context without any global handler."""
    return CommandContext(settings=CommandSettings(dispose_grace_period=0.01))

import asyncio
import pytest
from unittest.mock import MagicMock

from reactive_commands import (
    AsyncCommand,
    CommandMisuseError,
    CommandResult,
    DisposedError,
    ErrorReaction,
    LocalErrorFilter,
    NoHandlersThrowErrorFilter,
    ReactiveContainer,
    SilentErrorFilter,
    TableErrorFilter,
)


async def increment(n):
    await asyncio.sleep(0)
    return n + 1


def test_initial_state(context):
    cmd = AsyncCommand(increment, initial_value=0, context=context)

    assert cmd.value == 0
    assert cmd.is_running.value is False
    assert cmd.is_running_sync.value is False
    assert cmd.can_run.value is True


def test_run_without_loop_is_misuse(context):
    cmd = AsyncCommand(increment, initial_value=0, context=context)

    with pytest.raises(CommandMisuseError):
        cmd.run(1)
    with pytest.raises(CommandMisuseError):
        cmd.run_async(1)
    assert cmd.is_running_sync.value is False


@pytest.mark.asyncio
async def test_increment_scenario(context):
    cmd = AsyncCommand(increment, initial_value=0, context=context)
    running = MagicMock()
    cmd.is_running.subscribe(running)

    task = cmd.run(5)
    assert isinstance(task, asyncio.Task)
    await task
    await asyncio.sleep(0)

    assert cmd.value == 6
    assert cmd.results.value.data == 6
    assert [c.args[0] for c in running.call_args_list] == [True, False]


@pytest.mark.asyncio
async def test_results_sequence(context):
    cmd = AsyncCommand(increment, initial_value=0, context=context)
    seen = []
    cmd.results.subscribe(lambda result, _: seen.append(result))

    await cmd.run(1)

    assert seen == [CommandResult.loading(1), CommandResult.success(1, 2)]


@pytest.mark.asyncio
async def test_is_running_sync_flips_immediately(context):
    cmd = AsyncCommand(increment, initial_value=0, context=context)
    running = MagicMock()
    cmd.is_running.subscribe(running)

    task = cmd.run(1)

    assert cmd.is_running_sync.value is True
    assert cmd.can_run.value is False
    # UI flag is notified one tick later
    running.assert_not_called()
    await task


@pytest.mark.asyncio
async def test_overlapping_runs_are_dropped(context):
    calls = []

    async def slow(n):
        calls.append(n)
        await asyncio.sleep(0.01)
        return n

    cmd = AsyncCommand(slow, context=context)

    first = cmd.run(1)
    second = cmd.run(2)
    await first

    assert second is None
    assert calls == [1]
    assert cmd.value == 1


@pytest.mark.asyncio
async def test_plain_function_result_accepted(context):
    cmd = AsyncCommand(lambda n: n * 3, initial_value=0, context=context)

    await cmd.run(2)

    assert cmd.value == 6


@pytest.mark.asyncio
async def test_include_last_result_while_running(context):
    cmd = AsyncCommand(increment, initial_value=41, include_last_result_in_command_results=True, context=context)
    seen = []
    cmd.results.subscribe(lambda result, _: seen.append(result))

    await cmd.run(1)

    assert seen[0] == CommandResult.loading(1, 41)


# --- Errors ---
async def fail(_):
    await asyncio.sleep(0)
    raise ValueError("failed")


@pytest.mark.asyncio
async def test_local_handler_scenario(context, global_handler):
    cmd = AsyncCommand(fail, error_filter=LocalErrorFilter(), context=context)
    local = MagicMock()
    cmd.errors.subscribe(local)

    await cmd.run(1)

    local.assert_called_once()
    assert isinstance(local.call_args[0][0].error, ValueError)
    global_handler.assert_not_called()
    assert cmd.is_running_sync.value is False


@pytest.mark.asyncio
async def test_first_local_then_global_without_listeners(context, global_handler):
    cmd = AsyncCommand(fail, context=context)

    await cmd.run(1)

    global_handler.assert_called_once()
    assert isinstance(global_handler.call_args[0][0].error, ValueError)


@pytest.mark.asyncio
async def test_error_container_null_at_run_start(context):
    cmd = AsyncCommand(fail, error_filter=LocalErrorFilter(), context=context)
    cmd.errors.subscribe(MagicMock())
    await cmd.run(1)
    assert cmd.errors.value is not None

    task = cmd.run(2)

    assert cmd.errors.value is None
    await task


@pytest.mark.asyncio
async def test_throw_verdict_surfaces_on_task(context):
    cmd = AsyncCommand(
        fail,
        error_filter=TableErrorFilter({ValueError: ErrorReaction.THROW_EXCEPTION}),
        context=context,
    )

    with pytest.raises(ValueError):
        await cmd.run(1)

    assert cmd.results.value.has_error
    assert cmd.is_running_sync.value is False


@pytest.mark.asyncio
async def test_no_handlers_throw(bare_context):
    cmd = AsyncCommand(fail, error_filter=NoHandlersThrowErrorFilter(), context=bare_context)

    with pytest.raises(ValueError):
        await cmd.run(1)


@pytest.mark.asyncio
async def test_throw_if_no_local_handler(context, global_handler):
    cmd = AsyncCommand(fail, error_filter_fn=lambda e, st: ErrorReaction.THROW_IF_NO_LOCAL_HANDLER, context=context)

    with pytest.raises(ValueError):
        await cmd.run(1)

    local = MagicMock()
    cmd.errors.subscribe(local)
    await cmd.run(2)

    local.assert_called_once()
    global_handler.assert_not_called()


@pytest.mark.asyncio
async def test_assertion_error_surfaces(context):
    async def broken(_):
        assert False, "invariant"

    cmd = AsyncCommand(broken, error_filter=SilentErrorFilter(), context=context)

    with pytest.raises(AssertionError):
        await cmd.run(1)


@pytest.mark.asyncio
async def test_report_all_exceptions(context, global_handler):
    context.update("report_all_exceptions", True)
    cmd = AsyncCommand(fail, error_filter=LocalErrorFilter(), context=context)
    local = MagicMock()
    cmd.errors.subscribe(local)

    await cmd.run(1)

    local.assert_called_once()
    global_handler.assert_called_once()


# --- run_async ---
@pytest.mark.asyncio
async def test_run_async_resolves_with_result(context):
    cmd = AsyncCommand(increment, initial_value=0, context=context)

    assert await cmd.run_async(1) == 2


@pytest.mark.asyncio
async def test_run_async_returns_pending_future(context):
    cmd = AsyncCommand(increment, initial_value=0, context=context)

    first = cmd.run_async(1)
    second = cmd.run_async(5)

    assert first is second
    assert await first == 2


@pytest.mark.asyncio
async def test_run_async_rejects_with_error(context):
    cmd = AsyncCommand(fail, error_filter=LocalErrorFilter(), context=context)

    with pytest.raises(ValueError):
        await cmd.run_async(1)


@pytest.mark.asyncio
async def test_run_async_rejects_even_when_silenced(context):
    cmd = AsyncCommand(fail, initial_value=3, error_filter=SilentErrorFilter(), context=context)

    with pytest.raises(ValueError):
        await cmd.run_async(1)
    assert not cmd.results.value.has_error
    assert cmd.value == 3


@pytest.mark.asyncio
async def test_run_async_restricted_resolves_none(context):
    instead = MagicMock()
    cmd = AsyncCommand(increment, restriction=ReactiveContainer(True), if_restricted_run_instead=instead, context=context)

    assert await cmd.run_async(1) is None
    instead.assert_called_once_with(1)


@pytest.mark.asyncio
async def test_run_async_joins_running_execution(context):
    cmd = AsyncCommand(increment, initial_value=0, context=context)

    task = cmd.run(1)
    future = cmd.run_async(10)

    assert await future == 2
    await task


# --- Dispose ---
@pytest.mark.asyncio
async def test_dispose_rejects_pending_future(context):
    release = asyncio.Event()

    async def slow():
        await release.wait()
        return 1

    cmd = AsyncCommand(slow, no_param=True, context=context)
    listener = MagicMock()
    cmd.subscribe(listener)

    future = cmd.run_async()
    await asyncio.sleep(0)
    cmd.dispose()

    with pytest.raises(DisposedError):
        cmd.run()
    with pytest.raises(DisposedError):
        await future

    release.set()
    await asyncio.sleep(0.01)
    listener.assert_not_called()
    assert cmd.is_disposed


@pytest.mark.asyncio
async def test_dispose_waits_for_grace_period(context):
    cmd = AsyncCommand(increment, context=context)

    cmd.dispose()

    assert cmd.is_disposing
    assert not cmd.results.is_disposed
    await asyncio.sleep(0.05)
    assert cmd.results.is_disposed


@pytest.mark.asyncio
async def test_failure_after_dispose_is_dropped(context, global_handler):
    release = asyncio.Event()

    async def slow_fail(_):
        await release.wait()
        raise ValueError("late")

    cmd = AsyncCommand(slow_fail, context=context)
    task = cmd.run(1)
    await asyncio.sleep(0)
    await asyncio.sleep(0)
    cmd.dispose()
    release.set()

    await task

    global_handler.assert_not_called()


@pytest.mark.asyncio
async def test_run_async_after_dispose_raises(context):
    release = asyncio.Event()

    async def slow(_):
        await release.wait()

    cmd = AsyncCommand(slow, context=context)
    future = cmd.run_async(1)
    cmd.dispose()

    with pytest.raises(DisposedError):
        cmd.run_async(2)
    with pytest.raises(DisposedError):
        await future
    release.set()


# --- Runs started from listeners ---
@pytest.mark.asyncio
async def test_rerun_from_value_listener_keeps_single_execution(context):
    release = asyncio.Event()
    calls = []

    async def work(n):
        calls.append(n)
        if n == 2:
            await release.wait()
        return n

    cmd = AsyncCommand(work, context=context)
    follow_ups = []
    cmd.subscribe(lambda value, _: follow_ups.append(cmd.run(2)) if value == 1 else None)

    await cmd.run(1)

    assert cmd.is_running_sync.value is True
    assert cmd.can_run.value is False
    assert cmd.run(3) is None

    release.set()
    await follow_ups[0]

    assert calls == [1, 2]
    assert cmd.is_running_sync.value is False


@pytest.mark.asyncio
async def test_retry_from_error_listener_keeps_single_execution(context):
    release = asyncio.Event()
    attempts = []

    async def flaky(n):
        attempts.append(n)
        if len(attempts) == 1:
            raise ConnectionError("offline")
        await release.wait()
        return n

    cmd = AsyncCommand(flaky, error_filter=LocalErrorFilter(), context=context)
    retries = []
    cmd.errors.subscribe(lambda error, _: retries.append(cmd.run(error.param_data)) if error else None)

    await cmd.run(1)

    assert cmd.is_running_sync.value is True
    assert cmd.run(3) is None

    release.set()
    await retries[0]

    assert attempts == [1, 1]
    assert cmd.value == 1
    assert cmd.is_running_sync.value is False


@pytest.mark.asyncio
async def test_run_async_from_value_listener_gets_its_own_future(context):
    cmd = AsyncCommand(increment, initial_value=0, context=context)
    chained = []
    cmd.subscribe(lambda value, _: chained.append(cmd.run_async(value)) if value == 2 else None)

    assert await cmd.run_async(1) == 2
    assert await chained[0] == 3


@pytest.mark.asyncio
async def test_error_container_cleared_before_running_flag(context):
    cmd = AsyncCommand(fail, error_filter=LocalErrorFilter(), context=context)
    cmd.errors.subscribe(MagicMock())
    await cmd.run(1)
    seen = []
    cmd.is_running_sync.subscribe(lambda running, _: seen.append(cmd.errors.value) if running else None)

    await cmd.run(2)

    assert seen == [None]

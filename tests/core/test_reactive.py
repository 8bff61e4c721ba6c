import asyncio
import pytest
from unittest.mock import MagicMock

from reactive_commands import NotifyMode, ReactiveContainer


# --- ReactiveContainer ---
def test_on_change_notifies_only_on_difference():
    container = ReactiveContainer(1)
    listener = MagicMock()
    container.subscribe(listener)

    container.value = 1
    listener.assert_not_called()

    container.value = 2
    listener.assert_called_once_with(2, 1)


def test_always_notifies_equal_values():
    container = ReactiveContainer(1, mode=NotifyMode.ALWAYS)
    listener = MagicMock()
    container.subscribe(listener)

    container.set(1)
    container.set(1)

    assert listener.call_count == 2


def test_manual_mode_is_silent_until_notify():
    container = ReactiveContainer(None, mode=NotifyMode.MANUAL)
    listener = MagicMock()
    container.subscribe(listener)

    container.value = "boom"
    listener.assert_not_called()
    assert container.value == "boom"

    container.notify_listeners()
    listener.assert_called_once_with("boom", None)


def test_custom_equality():
    container = ReactiveContainer("abc", equals=lambda a, b: a.lower() == b.lower())
    listener = MagicMock()
    container.subscribe(listener)

    container.value = "ABC"
    listener.assert_not_called()
    container.value = "xyz"
    listener.assert_called_once()


def test_subscribers_called_in_registration_order():
    container = ReactiveContainer(0)
    calls = []
    container.subscribe(lambda v, _: calls.append(("first", v)))
    container.subscribe(lambda v, _: calls.append(("second", v)))

    container.value = 5

    assert calls == [("first", 5), ("second", 5)]


def test_subscription_cancel():
    container = ReactiveContainer(0)
    listener = MagicMock()
    sub = container.subscribe(listener)
    assert container.has_listeners

    sub()  # calling the handle cancels
    sub.cancel()  # second cancel is a no-op
    container.value = 1

    listener.assert_not_called()
    assert not sub.is_active
    assert container.listener_count == 0


def test_failing_subscriber_does_not_stop_dispatch():
    container = ReactiveContainer(0)
    after = MagicMock()
    container.subscribe(MagicMock(side_effect=RuntimeError("bad listener")))
    container.subscribe(after)

    container.value = 1

    after.assert_called_once_with(1, 0)


def test_notify_listeners_reports_failures_to_on_error():
    container = ReactiveContainer(0)
    error = RuntimeError("bad listener")
    container.subscribe(MagicMock(side_effect=error))
    on_error = MagicMock()

    container.notify_listeners(on_error=on_error)

    on_error.assert_called_once_with(error)


@pytest.mark.asyncio
async def test_async_notification_is_deferred_one_tick():
    container = ReactiveContainer(False, async_notification=True)
    listener = MagicMock()
    container.subscribe(listener)

    container.value = True
    assert container.value is True
    listener.assert_not_called()

    await asyncio.sleep(0)
    listener.assert_called_once_with(True, False)


def test_async_notification_without_loop_is_synchronous():
    container = ReactiveContainer(False, async_notification=True)
    listener = MagicMock()
    container.subscribe(listener)

    container.value = True

    listener.assert_called_once_with(True, False)


def test_mute_and_dispose():
    container = ReactiveContainer(0)
    listener = MagicMock()
    container.subscribe(listener)

    container.mute()
    container.value = 1
    listener.assert_not_called()

    container.dispose()
    assert container.is_disposed
    assert container.listener_count == 0

    late = container.subscribe(MagicMock())
    assert not late.is_active


# --- Operators ---
def test_map():
    count = ReactiveContainer(1)
    label = count.map(lambda n: f"{n} items")
    listener = MagicMock()
    label.subscribe(listener)

    assert label.value == "1 items"
    count.value = 3

    assert label.value == "3 items"
    listener.assert_called_once_with("3 items", "1 items")


def test_map_uses_on_change():
    count = ReactiveContainer(1)
    parity = count.map(lambda n: n % 2)
    listener = MagicMock()
    parity.subscribe(listener)

    count.value = 3
    listener.assert_not_called()
    count.value = 4
    listener.assert_called_once_with(0, 1)


def test_combine():
    first = ReactiveContainer(1)
    second = ReactiveContainer(2)
    total = first.combine(second, lambda a, b: a + b)

    assert total.value == 3
    first.value = 10
    assert total.value == 12
    second.value = 5
    assert total.value == 15


def test_where_forwards_accepted_values_only():
    source = ReactiveContainer(0)
    even = source.where(lambda n: n % 2 == 0)

    source.value = 3
    assert even.value == 0
    source.value = 4
    assert even.value == 4


def test_dispose_derived_detaches_from_source():
    source = ReactiveContainer(1)
    doubled = source.map(lambda n: n * 2)
    assert source.listener_count == 1

    doubled.dispose()

    assert source.listener_count == 0
    source.value = 5
    assert doubled.value == 2

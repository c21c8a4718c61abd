import threading

import pytest

from sphereindex.utils.cancellation import OperationStopped, StopToken, StopTrigger


def test_trigger_starts_unstopped():
    trigger = StopTrigger()
    assert not trigger.is_stopped
    assert not trigger.token.is_stopped
    assert trigger.token is trigger.token
    trigger.token.raise_if_stopped()


def test_stop_is_one_shot():
    trigger = StopTrigger()
    trigger.stop()
    trigger.stop()
    assert trigger.is_stopped
    assert trigger.token.is_stopped
    with pytest.raises(OperationStopped):
        trigger.token.raise_if_stopped()


def test_wait_times_out():
    token = StopTrigger().token
    assert token.wait(timeout=0.01) is False


def test_waiters_are_released():
    trigger = StopTrigger()
    released = []
    threads = [
        threading.Thread(target=lambda: released.append(trigger.token.wait(timeout=5.0)))
        for _ in range(4)
    ]
    for t in threads:
        t.start()
    trigger.stop()
    for t in threads:
        t.join(timeout=5.0)
    assert released == [True] * 4
    assert trigger.token.wait(timeout=0.0)


def test_never_token():
    token = StopToken.never()
    assert not token.is_stopped
    assert not token.wait(timeout=0.0)
    assert not StopToken().is_stopped


def test_stopped_message():
    assert "StopToken" in str(OperationStopped())

from __future__ import annotations

import logging
import threading

import pytest

from endpointkit.connectivity import AlwaysReachable, ConnectivityState


def test_always_reachable() -> None:
    assert AlwaysReachable().is_reachable()


def test_connectivity_state_default() -> None:
    assert ConnectivityState().is_reachable()


def test_connectivity_state_initial_value() -> None:
    assert not ConnectivityState(reachable=False).is_reachable()


def test_connectivity_state_set_reachable() -> None:
    state = ConnectivityState()
    state.set_reachable(False)
    assert not state.is_reachable()
    state.set_reachable(True)
    assert state.is_reachable()


def test_connectivity_state_logs_changes_only(caplog: pytest.LogCaptureFixture) -> None:
    state = ConnectivityState()
    with caplog.at_level(logging.INFO, logger="endpointkit.connectivity"):
        state.set_reachable(True)
        state.set_reachable(False)
        state.set_reachable(False)
    assert [record.getMessage() for record in caplog.records] == ["Network is now unreachable"]


def test_connectivity_state_thread_safe() -> None:
    state = ConnectivityState()

    def toggle() -> None:
        for i in range(100):
            state.set_reachable(i % 2 == 0)

    threads = [threading.Thread(target=toggle) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    assert not state.is_reachable()

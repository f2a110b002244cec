# tests/unit/test_wake.py: Unit tests for resume-with-connectivity detection.

import sys

import pytest

from nightlight.wake import (
    NM_STATE_CONNECTED_GLOBAL,
    DBusWakeListener,
    WakeDetector,
    WakeState,
)
from nightlight.util.errors import WakeSignalError

NM_STATE_CONNECTING = 40
NM_STATE_CONNECTED_SITE = 60


@pytest.fixture
def wakes():
    return []


@pytest.fixture
def detector(wakes) -> WakeDetector:
    return WakeDetector(lambda: wakes.append(1))


def test_resume_then_global_connectivity_emits(detector: WakeDetector, wakes):
    """Tests the happy path: resume followed by global connectivity."""
    detector.prepare_for_sleep(False)
    assert detector.state is WakeState.AWAITING_CONNECTIVITY

    detector.network_state_changed(NM_STATE_CONNECTED_GLOBAL)

    assert wakes == [1]
    assert detector.state is WakeState.IDLE


def test_intermediate_network_states_are_ignored(detector: WakeDetector, wakes):
    """Tests that partial connectivity after resume neither emits nor resets."""
    detector.prepare_for_sleep(False)
    for state in (20, NM_STATE_CONNECTING, NM_STATE_CONNECTED_SITE):
        detector.network_state_changed(state)
        assert detector.state is WakeState.AWAITING_CONNECTIVITY
    assert wakes == []

    detector.network_state_changed(NM_STATE_CONNECTED_GLOBAL)
    assert wakes == [1]


def test_reversed_order_does_not_emit(detector: WakeDetector, wakes):
    """Tests that connectivity seen before the resume is not mistaken for post-resume."""
    detector.network_state_changed(NM_STATE_CONNECTED_GLOBAL)
    detector.prepare_for_sleep(False)

    assert wakes == []
    assert detector.state is WakeState.AWAITING_CONNECTIVITY


def test_resume_alone_does_not_emit(detector: WakeDetector, wakes):
    detector.prepare_for_sleep(False)
    assert wakes == []


def test_connectivity_alone_does_not_emit(detector: WakeDetector, wakes):
    detector.network_state_changed(NM_STATE_CONNECTED_GLOBAL)
    assert wakes == []
    assert detector.state is WakeState.IDLE


def test_going_to_sleep_does_not_arm(detector: WakeDetector, wakes):
    """Tests that PrepareForSleep(True) is not treated as a resume."""
    detector.prepare_for_sleep(True)
    detector.network_state_changed(NM_STATE_CONNECTED_GLOBAL)

    assert wakes == []
    assert detector.state is WakeState.IDLE


def test_emits_once_per_resume(detector: WakeDetector, wakes):
    """Tests that repeated connectivity notifications after one resume emit once."""
    detector.prepare_for_sleep(False)
    detector.network_state_changed(NM_STATE_CONNECTED_GLOBAL)
    detector.network_state_changed(NM_STATE_CONNECTED_GLOBAL)
    assert wakes == [1]

    detector.prepare_for_sleep(True)
    detector.prepare_for_sleep(False)
    detector.network_state_changed(NM_STATE_CONNECTED_GLOBAL)
    assert wakes == [1, 1]


@pytest.mark.parametrize("args", [(), ("false",), (0,), (None,)])
def test_malformed_sleep_payload_is_ignored(detector: WakeDetector, args):
    """Tests that bad PrepareForSleep bodies cause no transition."""
    detector.prepare_for_sleep(*args)
    assert detector.state is WakeState.IDLE


@pytest.mark.parametrize("args", [(), ("70",), (True,), (70.0,)])
def test_malformed_network_payload_is_ignored(detector: WakeDetector, wakes, args):
    """Tests that bad StateChanged bodies cause no transition."""
    detector.prepare_for_sleep(False)
    detector.network_state_changed(*args)

    assert wakes == []
    assert detector.state is WakeState.AWAITING_CONNECTIVITY


def test_listener_without_bindings_raises(monkeypatch, detector: WakeDetector):
    """Tests that missing D-Bus bindings surface as WakeSignalError."""
    monkeypatch.setitem(sys.modules, "dbus", None)
    listener = DBusWakeListener(detector)

    with pytest.raises(WakeSignalError, match="not installed"):
        listener.start()

    listener.stop()

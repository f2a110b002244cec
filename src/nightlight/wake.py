# src/nightlight/wake.py: "Woke from sleep and back online" detection.
# logind announces suspend/resume with PrepareForSleep(bool) and
# NetworkManager reports connectivity with StateChanged(uint32). A resume is
# only interesting once the machine can reach the internet again, because
# that is when the sunrise/sunset lookup can succeed. WakeDetector is the
# bus-agnostic state machine; DBusWakeListener feeds it from the system bus
# on a GLib main loop running in its own thread.

import enum
import threading
from typing import Callable, Optional

from .util.errors import WakeSignalError
from .util.log import get_logger

logger = get_logger(__name__)

LOGIND_BUS_NAME = "org.freedesktop.login1"
LOGIND_MANAGER_IFACE = "org.freedesktop.login1.Manager"
NM_BUS_NAME = "org.freedesktop.NetworkManager"
NM_IFACE = "org.freedesktop.NetworkManager"

# https://www.networkmanager.dev/docs/api/latest/nm-dbus-types.html#NMState
NM_STATE_CONNECTED_GLOBAL = 70


class WakeState(enum.Enum):
    IDLE = "idle"
    AWAITING_CONNECTIVITY = "awaiting_connectivity"


class WakeDetector:
    """
    Emits once per resume, after global connectivity comes back.

    Idle -> AwaitingConnectivity on PrepareForSleep(False); back to Idle with
    one call to `on_wake` on StateChanged(70). Network states seen before a
    resume are ignored, as is everything malformed.
    """

    def __init__(self, on_wake: Callable[[], object]):
        self.on_wake = on_wake
        self.state = WakeState.IDLE
        self._lock = threading.Lock()

    def prepare_for_sleep(self, *args) -> None:
        if len(args) < 1:
            logger.warning("PrepareForSleep signal with an empty body, ignoring")
            return
        going_to_sleep = args[0]
        if not isinstance(going_to_sleep, bool):
            logger.warning(f"PrepareForSleep body is not a boolean: {args!r}, ignoring")
            return

        if going_to_sleep:
            logger.debug("System is about to suspend")
            return

        with self._lock:
            logger.info("System resumed from sleep, waiting for network connectivity")
            self.state = WakeState.AWAITING_CONNECTIVITY

    def network_state_changed(self, *args) -> None:
        if len(args) < 1:
            logger.warning("StateChanged signal with an empty body, ignoring")
            return
        nm_state = args[0]
        if isinstance(nm_state, bool) or not isinstance(nm_state, int):
            logger.warning(f"StateChanged body is not an integer: {args!r}, ignoring")
            return

        with self._lock:
            if self.state is not WakeState.AWAITING_CONNECTIVITY:
                return
            if nm_state != NM_STATE_CONNECTED_GLOBAL:
                logger.debug(f"Network state {nm_state} after resume, still waiting")
                return
            self.state = WakeState.IDLE

        logger.info("Global connectivity restored after resume")
        self.on_wake()


def _unwrap(value):
    """Turn dbus-python wrapper types into plain bool/int."""
    import dbus

    if isinstance(value, dbus.Boolean):
        return bool(value)
    if isinstance(value, int):
        return int(value)
    return value


class DBusWakeListener:
    """
    Subscribes a WakeDetector to the system bus on a background thread.

    `start()` raises WakeSignalError if the bindings or the bus are not
    available; the caller decides whether that is fatal.
    """

    def __init__(self, detector: WakeDetector):
        self.detector = detector
        self._loop = None
        self._bus = None
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        try:
            import dbus
            from dbus.mainloop.glib import DBusGMainLoop
            from gi.repository import GLib
        except ImportError as e:
            raise WakeSignalError(f"D-Bus bindings are not installed: {e}") from e

        try:
            DBusGMainLoop(set_as_default=True)
            bus = dbus.SystemBus(private=True)
            bus.add_signal_receiver(
                lambda *args: self.detector.prepare_for_sleep(*map(_unwrap, args)),
                signal_name="PrepareForSleep",
                dbus_interface=LOGIND_MANAGER_IFACE,
                bus_name=LOGIND_BUS_NAME,
            )
            bus.add_signal_receiver(
                lambda *args: self.detector.network_state_changed(*map(_unwrap, args)),
                signal_name="StateChanged",
                dbus_interface=NM_IFACE,
                bus_name=NM_BUS_NAME,
            )
        except dbus.exceptions.DBusException as e:
            raise WakeSignalError(f"Could not subscribe to the system bus: {e}") from e

        self._bus = bus
        self._loop = GLib.MainLoop()
        self._thread = threading.Thread(target=self._loop.run, name="nightlight-dbus", daemon=True)
        self._thread.start()
        logger.info("Listening for resume and connectivity signals on the system bus")

    def stop(self) -> None:
        if self._loop is None:
            return
        from gi.repository import GLib

        GLib.idle_add(self._loop.quit)
        if self._thread is not None:
            self._thread.join(timeout=5)
        if self._bus is not None:
            self._bus.close()
        self._loop = None
        self._bus = None
        self._thread = None

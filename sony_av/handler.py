"""Device handler interface and the periodic refresh scheduler.

A handler is driven by a host (the CLI, the MQTT bridge, or a test):

    handler.initialize()            # validate config, open transport, start ticks
    handler.handle_command(ch, v)   # forward a user intent to the device
    handler.refresh()               # one tick, normally called by the scheduler
    handler.dispose()               # stop ticks, close transport
"""

import logging
import threading
from typing import Any, Callable, Optional, Protocol

from .channels import DeviceStatus

_LOGGER = logging.getLogger(__name__)


class DeviceHandler(Protocol):
    """What a host needs from a device adapter."""

    @property
    def status(self) -> DeviceStatus:
        ...

    def initialize(self) -> None:
        ...

    def handle_command(self, channel: str, command: Any) -> None:
        ...

    def refresh(self) -> None:
        ...

    def dispose(self) -> None:
        ...


class RefreshScheduler:
    """Runs a task on a fixed delay in a daemon thread.

    The delay is measured from the end of one run to the start of the
    next, so runs never overlap. ``cancel`` only prevents further runs;
    a run that is already blocked on the network finishes on its own.
    """

    def __init__(self, task: Callable[[], None], interval: float, name: Optional[str] = None):
        """Initialize the scheduler.

        Args:
            task: Callable executed on every tick
            interval: Seconds between the end of a tick and the next one
            name: Thread name (for logs)
        """
        self.task = task
        self.interval = interval
        self.name = name or "refresh"
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive() and not self._stop.is_set()

    def start(self, initial_delay: float = 0.0) -> None:
        """Start ticking; the first tick runs after ``initial_delay`` seconds."""
        if self._thread is not None:
            raise RuntimeError(f"Scheduler {self.name} already started")
        self._thread = threading.Thread(
            target=self._run, args=(initial_delay,), name=self.name, daemon=True
        )
        self._thread.start()
        _LOGGER.debug("Scheduler %s started (interval: %ss)", self.name, self.interval)

    def cancel(self, wait: bool = False, timeout: Optional[float] = None) -> None:
        """Stop scheduling further ticks.

        Args:
            wait: Join the worker thread (lets an in-flight tick finish)
            timeout: Maximum seconds to wait when ``wait`` is set
        """
        self._stop.set()
        if wait and self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout)
        _LOGGER.debug("Scheduler %s cancelled", self.name)

    def _run(self, initial_delay: float) -> None:
        if self._stop.wait(initial_delay):
            return
        while not self._stop.is_set():
            try:
                self.task()
            except Exception:
                _LOGGER.exception("Unhandled error in %s tick", self.name)
            if self._stop.wait(self.interval):
                break

"""Connectivity status derivation shared by the device handlers."""

import time
from typing import Callable, FrozenSet, Mapping

from .config.constants import BENIGN_ERROR_CODES
from .exceptions import ApiError


def is_benign(error: ApiError, endpoint: str,
              table: Mapping[str, FrozenSet[int]] = BENIGN_ERROR_CODES) -> bool:
    """Return True if ``error`` is an expected condition for ``endpoint``."""
    return error.code in table.get(endpoint, frozenset())


class TimeoutHysteresis:
    """Decides when repeated timeouts should turn a device OFFLINE.

    A single lost request is not enough: the device only counts as
    unreachable once no round trip has succeeded for ``window`` seconds.
    """

    def __init__(self, window: float, clock: Callable[[], float] = time.monotonic):
        self.window = window
        self._clock = clock
        self._last_success = clock()

    @property
    def silence(self) -> float:
        """Seconds since the last successful round trip."""
        return self._clock() - self._last_success

    def record_success(self) -> None:
        self._last_success = self._clock()

    def exceeded(self) -> bool:
        """Return True once the silence is longer than the window."""
        return self.silence > self.window

"""Exceptions raised by the Sony device clients."""

from typing import Optional


class SonyAVError(Exception):
    """Base class for all sony_av errors."""


class ConfigurationError(SonyAVError):
    """Missing or invalid host, credential, or transport setup."""


class DeviceConnectionError(SonyAVError):
    """Transport-level failure: timeout, refusal, or interrupted I/O.

    The underlying exception is chained as ``__cause__``.
    """

    def __init__(self, message: str, is_timeout: bool = False):
        super().__init__(message)
        self.is_timeout = is_timeout


class DeviceTimeoutError(DeviceConnectionError):
    """No matching response arrived within the overall timeout."""

    def __init__(self, message: str = "Timeout reached"):
        super().__init__(message, is_timeout=True)


class ApiError(SonyAVError):
    """The device answered with a structured ``[code, message]`` error."""

    def __init__(self, code: int, message: str, method: Optional[str] = None):
        super().__init__(f"[{code}] {message}")
        self.code = code
        self.message = message
        self.method = method


class UnexpectedResponseError(SonyAVError):
    """Response arrived but does not have the expected structure."""

"""PS5 Device Discovery Protocol (DDP) messages, parsing, and UDP transport.

The console answers plaintext pseudo-HTTP requests on UDP port 9302:

    SRCH * HTTP/1.1
    device-discovery-protocol-version:00030010

is answered with e.g.

    HTTP/1.1 200 Ok
    host-id:...
    running-app-name:Astro's Playroom
    running-app-titleid:PPSA01325

or ``HTTP/1.1 620 Server Standby`` while the console is in rest mode.
"""

import logging
import socket
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

from .config import PS5_PORT, PS5_PROTOCOL_VERSION, PS5_RECV_BUFFER, PS5_STATUS_STANDBY, PS5_TIMEOUT
from .exceptions import ConfigurationError, DeviceConnectionError, DeviceTimeoutError, UnexpectedResponseError

_LOGGER = logging.getLogger(__name__)

HEADER_RUNNING_APP_NAME = "running-app-name"
HEADER_RUNNING_APP_ID = "running-app-titleid"


def build_search_request() -> str:
    """Build the status query sent on every refresh tick."""
    return f"SRCH * HTTP/1.1\ndevice-discovery-protocol-version:{PS5_PROTOCOL_VERSION}"


def build_wakeup_request(credential: str) -> str:
    """Build the wake request carrying the Remote Play user credential."""
    return (
        "WAKEUP * HTTP/1.1\n"
        "client-type:vr\n"
        "auth-type:R\n"
        "model:w\n"
        "app-type:r\n"
        f"user-credential:{credential}\n"
        f"device-discovery-protocol-version:{PS5_PROTOCOL_VERSION}"
    )


@dataclass(frozen=True)
class PS5Status:
    """Status decoded from one DDP response."""

    power_on: bool
    status_code: int
    status_line: str
    running_app_name: Optional[str] = None
    running_app_id: Optional[str] = None


def parse_headers(lines) -> Dict[str, str]:
    """Parse ``key:value`` lines, ignoring lines without a colon."""
    headers = {}
    for line in lines:
        key, sep, value = line.partition(":")
        if sep:
            headers[key.strip()] = value.strip()
    return headers


def parse_response(response: str) -> PS5Status:
    """Decode a DDP response.

    Args:
        response: Raw response text, starting with the status line

    Returns:
        Parsed PS5Status

    Raises:
        UnexpectedResponseError: If the status line has no numeric code
    """
    lines = response.replace("\r\n", "\n").split("\n")
    status_line = lines[0].strip()

    parts = status_line.split(None, 2)
    if len(parts) < 2:
        raise UnexpectedResponseError(f"Malformed status line: {status_line!r}")
    try:
        status_code = int(parts[1])
    except ValueError:
        raise UnexpectedResponseError(f"Non-numeric status code in {status_line!r}") from None

    headers = parse_headers(lines[1:])

    return PS5Status(
        power_on=status_code != PS5_STATUS_STANDBY,
        status_code=status_code,
        status_line=status_line,
        running_app_name=headers.get(HEADER_RUNNING_APP_NAME),
        running_app_id=headers.get(HEADER_RUNNING_APP_ID),
    )


class DDPSocket:
    """UDP socket bound to an ephemeral port, talking to one console."""

    def __init__(
        self,
        address: str,
        port: int = PS5_PORT,
        timeout: float = PS5_TIMEOUT,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Open the socket.

        Args:
            address: Resolved console IP address
            port: DDP port (default 9302)
            timeout: Overall receive window for one status query
            clock: Monotonic clock (injectable for tests)

        Raises:
            ConfigurationError: If the socket cannot be created
        """
        self.address = address
        self.port = port
        self.timeout = timeout
        self._clock = clock
        try:
            self._sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM, socket.IPPROTO_UDP)
            self._sock.setsockopt(socket.SOL_SOCKET, socket.SO_BROADCAST, 0)
            self._sock.bind(("", 0))
            self._sock.settimeout(timeout)
        except OSError as e:
            raise ConfigurationError(f"Unable to setup UDP socket: {e}") from e

    def send(self, message: str) -> None:
        """Send a request datagram to the console."""
        try:
            self._sock.sendto(message.encode("utf-8"), (self.address, self.port))
        except OSError as e:
            raise DeviceConnectionError(f"Unable to send to {self.address}:{self.port}: {e}") from e

    def receive_response(self) -> str:
        """Wait for the first ``HTTP`` reply coming from the console.

        Datagrams from other hosts and payloads that are not responses
        (e.g. our own or other clients' requests) are skipped.

        Raises:
            DeviceTimeoutError: If nothing matching arrives in time
        """
        deadline = self._clock() + self.timeout
        while True:
            remaining = deadline - self._clock()
            if remaining <= 0:
                raise DeviceTimeoutError("Timeout reached")
            self._sock.settimeout(remaining)
            try:
                data, addr = self._sock.recvfrom(PS5_RECV_BUFFER)
            except socket.timeout:
                raise DeviceTimeoutError("Timeout reached") from None
            except OSError as e:
                raise DeviceConnectionError(f"Receive failed: {e}") from e

            if addr[0] != self.address:
                _LOGGER.debug("Ignoring datagram from %s", addr[0])
                continue

            message = data.decode("utf-8", errors="replace")
            if not message.startswith("HTTP"):
                _LOGGER.debug("Ignoring non-response datagram: %r", message[:40])
                continue

            return message

    def query_status(self) -> PS5Status:
        """Send a status query and parse the reply."""
        self.send(build_search_request())
        return parse_response(self.receive_response())

    def wakeup(self, credential: str) -> None:
        """Send a wake request; the console does not answer it."""
        self.send(build_wakeup_request(credential))

    def close(self) -> None:
        self._sock.close()


def resolve_host(hostname: str) -> str:
    """Resolve a hostname to an IPv4 address.

    Raises:
        ConfigurationError: If the name cannot be resolved
    """
    try:
        return socket.gethostbyname(hostname)
    except (socket.gaierror, UnicodeError) as e:
        raise ConfigurationError(f"Invalid hostname: {e}") from e


def query_status(host: str, timeout: float = PS5_TIMEOUT) -> Tuple[str, PS5Status]:
    """One-shot status query (opens and closes its own socket).

    Returns:
        Tuple of (resolved address, status)
    """
    address = resolve_host(host)
    sock = DDPSocket(address, timeout=timeout)
    try:
        return address, sock.query_status()
    finally:
        sock.close()


def send_wakeup(host: str, credential: str) -> None:
    """One-shot wake request."""
    sock = DDPSocket(resolve_host(host))
    try:
        sock.wakeup(credential)
    finally:
        sock.close()

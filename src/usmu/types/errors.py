"""Exception hierarchy for the uSMU driver.

Every failure inside the driver is raised as a subclass of `USMUError` and
propagated to the caller unchanged. Nothing in the core retries; only the
command line front-end renders these for a human.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from usmu.device.discovery import PortCandidate


class USMUError(Exception):
    """Base exception for all uSMU errors."""

    pass


class ConfigurationError(USMUError, ValueError):
    """A command or configuration parameter is outside its valid domain."""

    pass


class UnsupportedOperationError(USMUError, NotImplementedError):
    """The device cannot safely perform the requested operation."""

    pass


# -----------------------------------------------------------------------------
# discovery
# -----------------------------------------------------------------------------


class DiscoveryError(USMUError):
    """Device selection failed."""

    pass


class DeviceNotFoundError(DiscoveryError):
    pass


class AmbiguousDeviceError(DiscoveryError):
    """More than one device matches; carries every remaining candidate."""

    def __init__(self, message: str, candidates: Sequence[PortCandidate]):
        self.candidates = list(candidates)
        listing = "\n".join(f"  {c.device} - {c.identity}" for c in self.candidates)
        super().__init__(f"{message}\nAvailable devices:\n{listing}")


# -----------------------------------------------------------------------------
# transport
# -----------------------------------------------------------------------------


class TransportError(USMUError):
    """Link-level failure."""

    pass


class TransportIOError(TransportError):
    pass


class TransportTimeoutError(TransportError):
    pass


class ConnectionClosedError(TransportError):
    """The connection was closed (e.g. by a reset) and must be rediscovered."""

    pass


# -----------------------------------------------------------------------------
# protocol
# -----------------------------------------------------------------------------


class ProtocolError(USMUError):
    """A reply did not match the expected grammar."""

    pass


class UnexpectedTokenError(ProtocolError):
    def __init__(self, expected: str, found: str):
        self.expected = expected
        self.found = found
        super().__init__(f"Expected {expected!r}, found {found!r}")


class TrailingDataError(ProtocolError):
    def __init__(self, data: str):
        self.data = data
        super().__init__(f"Unexpected trailing data: {data!r}")


class MalformedReplyError(ProtocolError):
    pass

"""
Data model shared by the uSMU driver.

- Units: float32 `Voltage` and `Current` quantities tagged with their unit
- Errors: the `USMUError` exception hierarchy
- Config: `SweepConfig` and the `Sample` it produces
"""

from .config import Sample, SweepConfig
from .errors import (
    AmbiguousDeviceError,
    ConfigurationError,
    ConnectionClosedError,
    DeviceNotFoundError,
    DiscoveryError,
    MalformedReplyError,
    ProtocolError,
    TrailingDataError,
    TransportError,
    TransportIOError,
    TransportTimeoutError,
    UnexpectedTokenError,
    UnsupportedOperationError,
    USMUError,
)
from .units import Current, Quantity, Voltage

__all__ = [
    "AmbiguousDeviceError",
    "ConfigurationError",
    "ConnectionClosedError",
    "Current",
    "DeviceNotFoundError",
    "DiscoveryError",
    "MalformedReplyError",
    "ProtocolError",
    "Quantity",
    "Sample",
    "SweepConfig",
    "TrailingDataError",
    "TransportError",
    "TransportIOError",
    "TransportTimeoutError",
    "UnexpectedTokenError",
    "UnsupportedOperationError",
    "USMUError",
    "Voltage",
]

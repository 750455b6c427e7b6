# -*- coding: utf-8 -*-
"""
Hardware drivers for usmu.

- `Device`: base class with configuration validation and connection lifecycle
- `MicroSMU`: transport session with one uSMU over its serial port
- `discover`: find, select and open an attached uSMU
- `usmu.device.mock`: simulated uSMU for tests and dry runs

Examples
--------
```python
from usmu.device import discover
from usmu.types import Voltage
with discover() as smu:
    smu.enable()
    smu.measure(Voltage(0.5, "V"))
```
"""

from .device import Device
from .discovery import (
    IDENTITY_UNKNOWN,
    PortCandidate,
    discover,
    enumerate_candidates,
    read_identity,
    select_candidate,
)
from .usmu import MicroSMU

__all__ = [
    "Device",
    "IDENTITY_UNKNOWN",
    "MicroSMU",
    "PortCandidate",
    "discover",
    "enumerate_candidates",
    "read_identity",
    "select_candidate",
]

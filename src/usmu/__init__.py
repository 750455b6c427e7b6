# -*- coding: utf-8 -*-
"""# usmu

Driver and IV curve recorder for the uSMU, a single-channel USB
source-measure unit.

- [Protocol](usmu/protocol.html): codec and command catalog of the ASCII protocol.
- [Device](usmu/device.html): serial transport session and device discovery.
- [Measurements](usmu/meas.html): IV sweep.
- [CLI](usmu/cli.html): the `usmu` command line.

Example
-------
```python
from usmu import Current, SweepConfig, Voltage, discover, run_sweep

config = SweepConfig(
    start=Voltage(-1, "V"),
    end=Voltage(1, "V"),
    steps=50,
    current_limit=Current(20, "mA"),
    over_sampling=10,
)
with discover() as smu:
    samples = run_sweep(config, smu)
```
"""

from ._version import __version__
from .device import MicroSMU, discover
from .meas import run_sweep
from .types import Current, Sample, SweepConfig, USMUError, Voltage

__all__ = [
    "__version__",
    "Current",
    "MicroSMU",
    "Sample",
    "SweepConfig",
    "USMUError",
    "Voltage",
    "discover",
    "run_sweep",
]

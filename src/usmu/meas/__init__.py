"""
Measurements built on the uSMU driver.

- `run_sweep`: record an IV curve as a list of `Sample`s
"""

from .iv_sweep import run_sweep, sweep_setpoints

__all__ = ["run_sweep", "sweep_setpoints"]

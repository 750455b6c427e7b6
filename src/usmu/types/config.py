"""Configuration and result types for IV sweeps."""

from dataclasses import dataclass

import numpy as np

from usmu.util.defaults import MAX_CURRENT_LIMIT_MA

from .errors import ConfigurationError
from .units import Current, Voltage

U16_MAX = 0xFFFF


@dataclass(frozen=True)
class SweepConfig:
    """Configuration of a linear voltage sweep.

    Attributes
    ----------
    start : Voltage
        First set-point of the ramp
    end : Voltage
        Last set-point of the ramp (inclusive)
    steps : int
        Number of set-points, at least 1
    current_limit : Current
        Source/sink current limit, 0 to 40 mA
    over_sampling : int
        Number of samples averaged per measurement (unsigned 16 bit)
    delay : float
        Time to wait between setting a voltage and measuring (seconds)
    disable_on_error : bool
        Disable the output if the sweep fails part way through
    """

    start: Voltage
    end: Voltage
    steps: int
    current_limit: Current
    over_sampling: int
    delay: float = 0.0
    disable_on_error: bool = True

    def __post_init__(self):
        """Validate configuration immediately after initialization."""
        self.validate()

    def validate(self) -> None:
        if not isinstance(self.start, Voltage) or not isinstance(self.end, Voltage):
            raise ConfigurationError("Sweep start and end must be Voltage values")
        if not isinstance(self.current_limit, Current):
            raise ConfigurationError("Sweep current limit must be a Current value")

        limit_ma = self.current_limit.to("mA")
        validators = {
            "steps": (
                isinstance(self.steps, int)
                and not isinstance(self.steps, bool)
                and self.steps >= 1,
                "Sweep needs at least one step",
            ),
            "current_limit": (
                not np.signbit(limit_ma) and 0 <= limit_ma <= MAX_CURRENT_LIMIT_MA,
                f"Current limit must be between 0 and {MAX_CURRENT_LIMIT_MA:g} mA",
            ),
            "over_sampling": (
                isinstance(self.over_sampling, int)
                and not isinstance(self.over_sampling, bool)
                and 0 <= self.over_sampling <= U16_MAX,
                f"Over sampling must be between 0 and {U16_MAX}",
            ),
            "delay": (self.delay >= 0, "Delay cannot be negative"),
        }

        for param, (valid, message) in validators.items():
            if not valid:
                raise ConfigurationError(f"{message} (got {getattr(self, param)})")

    def to_dict(self) -> dict:
        """Plain representation in volts, amperes and seconds."""
        return {
            "start": float(self.start.to("V")),
            "end": float(self.end.to("V")),
            "steps": self.steps,
            "current_limit": float(self.current_limit.to("A")),
            "over_sampling": self.over_sampling,
            "delay": self.delay,
            "disable_on_error": self.disable_on_error,
        }


@dataclass(frozen=True)
class Sample:
    """One measured point of a sweep."""

    voltage: Voltage
    current: Current

"""Single-precision physical quantities used by the uSMU protocol.

The uSMU reports and accepts 32-bit floats, so every quantity is stored as a
`numpy.float32` in its SI base unit (volt or ampere). A unit must always be
named when a quantity is created or read back, which keeps millivolt/milliamp
scale mistakes out of the protocol layer.

Examples
--------
```python
from usmu.types import Current, Voltage
limit = Current(20, "mA")
limit.to("A")  # 0.02
Voltage.parse("-1 V") + Voltage(500, "mV")  # Voltage(-0.5 V)
```
"""

from __future__ import annotations

import re
from functools import total_ordering
from typing import ClassVar

import numpy as np

_QUANTITY_RE = re.compile(
    r"^\s*(?P<value>[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?)\s*(?P<unit>\w*)\s*$"
)


@total_ordering
class Quantity:
    """Base class for unit-tagged float32 values.

    Subclasses define `BASE_UNIT` and the scale factor of each supported unit
    relative to the base unit in `UNITS`.
    """

    BASE_UNIT: ClassVar[str] = ""
    UNITS: ClassVar[dict[str, float]] = {}

    __slots__ = ("_value",)

    def __init__(self, value: float, unit: str):
        # scale in double precision so round values survive the trip to float32
        self._value = np.float32(float(value) * self._scale(unit))

    @classmethod
    def _scale(cls, unit: str) -> float:
        try:
            return cls.UNITS[unit]
        except KeyError:
            raise ValueError(
                f"Unknown unit '{unit}' for {cls.__name__} "
                + f"(expected one of {', '.join(cls.UNITS)})"
            ) from None

    @classmethod
    def parse(cls, text: str):
        """Parse a value with a unit suffix, e.g. '20 mA' or '-1V'.

        A bare number is taken to be in the base unit.
        """
        match = _QUANTITY_RE.match(text)
        if match is None:
            raise ValueError(f"Cannot parse {cls.__name__} from '{text}'")
        unit = match.group("unit") or cls.BASE_UNIT
        return cls(float(match.group("value")), unit)

    def to(self, unit: str) -> np.float32:
        """Return the magnitude expressed in `unit`."""
        scale = self._scale(unit)
        if scale == 1.0:
            return self._value
        return np.float32(float(self._value) / scale)

    @property
    def base(self) -> np.float32:
        return self._value

    # arithmetic stays inside the same quantity type
    def _check(self, other) -> Quantity:
        if type(other) is not type(self):
            raise TypeError(
                f"Cannot combine {type(self).__name__} with {type(other).__name__}"
            )
        return other

    def _new(self, value) -> Quantity:
        return type(self)(value, self.BASE_UNIT)

    def __add__(self, other):
        return self._new(self._value + self._check(other)._value)

    def __sub__(self, other):
        return self._new(self._value - self._check(other)._value)

    def __mul__(self, factor):
        if isinstance(factor, Quantity):
            return NotImplemented
        return self._new(self._value * np.float32(factor))

    __rmul__ = __mul__

    def __truediv__(self, other):
        if isinstance(other, Quantity):
            # ratio of two like quantities is dimensionless
            return float(self._value / self._check(other)._value)
        return self._new(self._value / np.float32(other))

    def __neg__(self):
        return self._new(-self._value)

    def __abs__(self):
        return self._new(abs(self._value))

    def __eq__(self, other):
        if type(other) is not type(self):
            return NotImplemented
        return bool(self._value == other._value)

    def __lt__(self, other):
        return bool(self._value < self._check(other)._value)

    def __hash__(self):
        return hash((type(self).__name__, float(self._value)))

    def __float__(self):
        return float(self._value)

    def __repr__(self):
        return f"{type(self).__name__}({self._value!r} {self.BASE_UNIT})"

    def __str__(self):
        return f"{self._value} {self.BASE_UNIT}"


class Voltage(Quantity):
    """Electric potential, stored in volts."""

    BASE_UNIT = "V"
    UNITS = {"V": 1.0, "mV": 1e-3}

    __slots__ = ()


class Current(Quantity):
    """Electric current, stored in amperes."""

    BASE_UNIT = "A"
    UNITS = {"A": 1.0, "mA": 1e-3, "uA": 1e-6, "nA": 1e-9}

    __slots__ = ()

"""Command catalog of the uSMU.

Each command is a frozen dataclass validated at construction, so a value the
hardware would reject never reaches the encoder. How a command is written to
the wire, and which reply it expects, is described once in `COMMAND_TABLE`.

Examples
--------
```python
from usmu.protocol import SetCurrentLimit, encode
from usmu.types import Current
encode(SetCurrentLimit(Current(20, "mA")))  # 'CH1:CUR 20'
SetCurrentLimit(Current(100, "mA"))  # raises ConfigurationError
```
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import NamedTuple, Type

import numpy as np

from usmu.types.errors import ConfigurationError, UnsupportedOperationError
from usmu.types.units import Current, Quantity, Voltage
from usmu.util.defaults import (
    CURRENT_RANGES,
    DAC_BITS,
    DIFFERENTIAL_CHANNELS,
    LINE_TERMINATOR,
    MAX_CURRENT_LIMIT_MA,
)

from .codec import FLOAT32, MILLIAMPERE, U8, U16, VOLT, Field, Template, encode_template
from .responses import (
    DifferentialConversionResponse,
    EmptyResponse,
    IdentityResponse,
    MeasureResponse,
    ReadEepromResponse,
    Response,
)


def _require_unsigned(name: str, value, bits: int) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
        raise ConfigurationError(f"{name} must be an integer (got {value!r})")
    if not 0 <= value < 1 << bits:
        raise ConfigurationError(
            f"{name} must fit an unsigned {bits} bit integer (got {value})"
        )


class CurrentRange(int):
    """Current measurement range selector, 1 to 4."""

    def __new__(cls, value: int):
        _require_unsigned("Current range", value, 8)
        if value not in CURRENT_RANGES:
            raise ConfigurationError(
                f"Invalid current range '{value}', only 1 - 4 are valid."
            )
        return super().__new__(cls, value)


class EepromAddress(int):
    """Byte address into the calibration EEPROM."""

    def __new__(cls, value: int):
        _require_unsigned("EEPROM address", value, 8)
        return super().__new__(cls, value)


@dataclass(frozen=True)
class Command:
    """Base class for all commands.

    Subclasses extend `validate`; the base implementation rejects non-finite
    floats and quantities, which the device cannot parse.
    """

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        for f in dataclasses.fields(self):
            value = getattr(self, f.name)
            if isinstance(value, Quantity):
                value = value.base
            elif not isinstance(value, (float, np.floating)):
                continue
            if not np.isfinite(value):
                raise ConfigurationError(f"{f.name} must be finite (got {value})")

    def _coerce(self, name: str, kind: type) -> None:
        # frozen dataclass, so go through object.__setattr__
        value = getattr(self, name)
        if not isinstance(value, kind):
            object.__setattr__(self, name, kind(value))


@dataclass(frozen=True)
class Enable(Command):
    """Enable SMU output."""

    pass


@dataclass(frozen=True)
class Disable(Command):
    """Disable SMU output (high impedance)."""

    pass


@dataclass(frozen=True)
class SetCurrentLimit(Command):
    """Set the sink/source current limit.

    `limit` is an absolute value applied to both source and sink current;
    sinking shows up as a negative sign in measurements. Must lie between
    0 and 40 mA, the maximum current capability of the SMU.
    """

    limit: Current

    def validate(self) -> None:
        if not isinstance(self.limit, Current):
            raise ConfigurationError(f"Current limit must be a Current ({self.limit!r})")
        super().validate()
        limit_ma = self.limit.to("mA")
        # -0 is rejected as well, the firmware only takes a positive magnitude
        if np.signbit(limit_ma) or not 0 <= limit_ma <= MAX_CURRENT_LIMIT_MA:
            raise ConfigurationError(
                f"Current limit must be between 0 and {MAX_CURRENT_LIMIT_MA:g} mA "
                + f"(got {limit_ma} mA)"
            )


@dataclass(frozen=True)
class SetVoltage(Command):
    voltage: Voltage

    def validate(self) -> None:
        if not isinstance(self.voltage, Voltage):
            raise ConfigurationError(f"Voltage must be a Voltage ({self.voltage!r})")
        super().validate()


@dataclass(frozen=True)
class Measure(Command):
    """Set the requested voltage and reply with measured voltage and current."""

    voltage: Voltage

    def validate(self) -> None:
        if not isinstance(self.voltage, Voltage):
            raise ConfigurationError(f"Voltage must be a Voltage ({self.voltage!r})")
        super().validate()


@dataclass(frozen=True)
class SetOverSampleRate(Command):
    """Number of samples averaged for each measurement."""

    samples: int

    def validate(self) -> None:
        _require_unsigned("Over sample rate", self.samples, 16)


@dataclass(frozen=True)
class SetVoltageDac(Command):
    level: int

    def validate(self) -> None:
        _require_unsigned("Voltage DAC level", self.level, 16)


@dataclass(frozen=True)
class DifferentialConversion(Command):
    """Raw differential conversion between adjacent ADC channels.

    Only channels 0 and 2 can be used; each is sampled against the next
    channel up (0 with 1, 2 with 3).
    """

    channel: int

    def validate(self) -> None:
        _require_unsigned("ADC channel", self.channel, 8)
        if self.channel not in DIFFERENTIAL_CHANNELS:
            raise ConfigurationError(
                "Differential measurements can only be performed on channel zero "
                + f"or channel two (got {self.channel})."
            )

    @classmethod
    def channel_zero(cls) -> DifferentialConversion:
        return cls(0)

    @classmethod
    def channel_two(cls) -> DifferentialConversion:
        return cls(2)


@dataclass(frozen=True)
class SetCurrentLimitDac(Command):
    level: int

    def validate(self) -> None:
        _require_unsigned("Current limit DAC level", self.level, DAC_BITS)


@dataclass(frozen=True)
class EnableVoltageCalibrationMode(Command):
    pass


@dataclass(frozen=True)
class LockCurrentRangeAndClearCalibration(Command):
    """Lock the current range and temporarily clear current calibration data."""

    range: CurrentRange

    def validate(self) -> None:
        self._coerce("range", CurrentRange)


@dataclass(frozen=True)
class ReadEeprom(Command):
    """Read the float stored at an EEPROM address."""

    address: EepromAddress

    def validate(self) -> None:
        self._coerce("address", EepromAddress)


@dataclass(frozen=True)
class WriteEeprom(Command):
    """Write a float to an EEPROM address.

    The published command documentation (`WRITE <addr> <value>`) disagrees with
    the firmware, which does not implement the command correctly. It is never
    sent; encoding it raises `UnsupportedOperationError`. Use the `CAL:*`
    commands to change calibration data instead.
    """

    address: EepromAddress
    value: float

    def validate(self) -> None:
        self._coerce("address", EepromAddress)
        super().validate()


@dataclass(frozen=True)
class Reset(Command):
    """Reset the uSMU. The virtual com port disconnects afterwards."""

    pass


@dataclass(frozen=True)
class Identity(Command):
    pass


@dataclass(frozen=True)
class _Calibration(Command):
    slope: float
    intercept: float


@dataclass(frozen=True)
class WriteVoltageDacCalibration(_Calibration):
    pass


@dataclass(frozen=True)
class WriteVoltageAdcCalibration(_Calibration):
    pass


@dataclass(frozen=True)
class WriteCurrentLimitCalibration(Command):
    """Write current ADC calibration for one current range."""

    range: CurrentRange
    slope: float
    intercept: float

    def validate(self) -> None:
        self._coerce("range", CurrentRange)
        super().validate()


@dataclass(frozen=True)
class WriteCurrentLimitDacCalibration(_Calibration):
    pass


# =============================================================================
# catalog
# =============================================================================


class CommandSpec(NamedTuple):
    template: Template
    response: Type[Response]


_SLOPE_INTERCEPT = (Field("slope", FLOAT32), " ", Field("intercept", FLOAT32))

COMMAND_TABLE: dict[Type[Command], CommandSpec] = {
    Enable: CommandSpec(("CH1:ENA",), EmptyResponse),
    Disable: CommandSpec(("CH1:DIS",), EmptyResponse),
    SetCurrentLimit: CommandSpec(
        ("CH1:CUR ", Field("limit", MILLIAMPERE)), EmptyResponse
    ),
    SetVoltage: CommandSpec(("CH1:VOL ", Field("voltage", VOLT)), EmptyResponse),
    Measure: CommandSpec(("CH1:MEA:VOL ", Field("voltage", VOLT)), MeasureResponse),
    SetOverSampleRate: CommandSpec(
        ("CH1:OSR ", Field("samples", U16)), EmptyResponse
    ),
    SetVoltageDac: CommandSpec(("DAC ", Field("level", U16)), EmptyResponse),
    DifferentialConversion: CommandSpec(
        ("ADC ", Field("channel", U8)), DifferentialConversionResponse
    ),
    SetCurrentLimitDac: CommandSpec(("ILIM ", Field("level", U16)), EmptyResponse),
    EnableVoltageCalibrationMode: CommandSpec(("CH1:VCAL",), EmptyResponse),
    LockCurrentRangeAndClearCalibration: CommandSpec(
        ("CH1:RANGE", Field("range", U8)), EmptyResponse
    ),
    ReadEeprom: CommandSpec(("*READ ", Field("address", U8)), ReadEepromResponse),
    Reset: CommandSpec(("*RST",), EmptyResponse),
    Identity: CommandSpec(("*IDN?",), IdentityResponse),
    WriteVoltageDacCalibration: CommandSpec(
        ("CAL:DAC ", *_SLOPE_INTERCEPT), EmptyResponse
    ),
    WriteVoltageAdcCalibration: CommandSpec(
        ("CAL:VOL ", *_SLOPE_INTERCEPT), EmptyResponse
    ),
    WriteCurrentLimitCalibration: CommandSpec(
        ("CAL:CUR:RANGE ", Field("range", U8), " ", *_SLOPE_INTERCEPT),
        EmptyResponse,
    ),
    WriteCurrentLimitDacCalibration: CommandSpec(
        ("CAL:ILIM ", *_SLOPE_INTERCEPT), EmptyResponse
    ),
}


def _spec(command: Command) -> CommandSpec:
    try:
        return COMMAND_TABLE[type(command)]
    except KeyError:
        raise UnsupportedOperationError(
            f"{type(command).__name__} cannot be sent to the uSMU"
        ) from None


def encode(command: Command) -> str:
    """Encode a command as one ASCII line, without the line terminator."""
    return encode_template(command, _spec(command).template)


def response_type(command: Command) -> Type[Response]:
    """The reply shape `command` expects."""
    return _spec(command).response


def frame(command: Command) -> bytes:
    """The bytes written for `command`: its line plus the terminator."""
    return (encode(command) + LINE_TERMINATOR).encode("ascii")

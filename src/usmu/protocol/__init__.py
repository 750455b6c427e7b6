"""
Codec and command catalog of the uSMU ASCII protocol.

- `encode(command)` turns a validated command into its wire line
- `decode(response_type, line)` parses a reply line into a typed response
- `response_type(command)` looks up the reply a command expects
- `frame(command)` is the terminated byte string written to the port

See Also
--------
usmu.device.usmu : Transport session sending these commands
"""

from .codec import format_float, parse_float
from .commands import (
    COMMAND_TABLE,
    Command,
    CurrentRange,
    Disable,
    DifferentialConversion,
    EepromAddress,
    Enable,
    EnableVoltageCalibrationMode,
    Identity,
    LockCurrentRangeAndClearCalibration,
    Measure,
    ReadEeprom,
    Reset,
    SetCurrentLimit,
    SetCurrentLimitDac,
    SetOverSampleRate,
    SetVoltage,
    SetVoltageDac,
    WriteCurrentLimitCalibration,
    WriteCurrentLimitDacCalibration,
    WriteEeprom,
    WriteVoltageAdcCalibration,
    WriteVoltageDacCalibration,
    encode,
    frame,
    response_type,
)
from .responses import (
    IDENTITY_BANNER,
    RESPONSE_GRAMMAR,
    DifferentialConversionResponse,
    EmptyResponse,
    IdentityResponse,
    MeasureResponse,
    ReadEepromResponse,
    Response,
    decode,
)

__all__ = [
    "COMMAND_TABLE",
    "IDENTITY_BANNER",
    "RESPONSE_GRAMMAR",
    "Command",
    "CurrentRange",
    "DifferentialConversion",
    "DifferentialConversionResponse",
    "Disable",
    "EepromAddress",
    "EmptyResponse",
    "Enable",
    "EnableVoltageCalibrationMode",
    "Identity",
    "IdentityResponse",
    "LockCurrentRangeAndClearCalibration",
    "Measure",
    "MeasureResponse",
    "ReadEeprom",
    "ReadEepromResponse",
    "Reset",
    "Response",
    "SetCurrentLimit",
    "SetCurrentLimitDac",
    "SetOverSampleRate",
    "SetVoltage",
    "SetVoltageDac",
    "WriteCurrentLimitCalibration",
    "WriteCurrentLimitDacCalibration",
    "WriteEeprom",
    "WriteVoltageAdcCalibration",
    "WriteVoltageDacCalibration",
    "decode",
    "encode",
    "frame",
    "format_float",
    "parse_float",
    "response_type",
]

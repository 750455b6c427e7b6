"""Driver for the uSMU single-channel source-measure unit.

The uSMU enumerates as a USB virtual com port and speaks a line based ASCII
protocol (see `usmu.protocol`). Its timing contract shapes this class:

- The device needs a pause of 50 ms after every command before it accepts the
  next one, whether or not the command produces a reply.
- While measuring the device does not answer at all, so replies are read with
  a generous timeout (1 s by default). High oversampling settings can still
  exceed it; that surfaces as a timeout error rather than being retried.
- Only one request is ever in flight. The serial handle is exclusive and must
  not be shared between threads.

A reset makes the device drop off the bus. The `MicroSMU` is closed after a
successful reset and every further operation raises `ConnectionClosedError`;
use `usmu.device.discovery.discover` to connect again.
"""

from __future__ import annotations

import time
from typing import Optional, Type

import numpy as np
import serial
from loguru import logger

from usmu.protocol import (
    Command,
    CurrentRange,
    Disable,
    DifferentialConversion,
    EepromAddress,
    EmptyResponse,
    Enable,
    EnableVoltageCalibrationMode,
    Identity,
    LockCurrentRangeAndClearCalibration,
    Measure,
    MeasureResponse,
    ReadEeprom,
    Reset,
    Response,
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
    decode,
    frame,
    response_type,
)
from usmu.types.errors import (
    ConfigurationError,
    ConnectionClosedError,
    MalformedReplyError,
    TrailingDataError,
    TransportIOError,
    TransportTimeoutError,
    UnsupportedOperationError,
)
from usmu.types.units import Current, Voltage
from usmu.util.defaults import (
    DEFAULT_BAUDRATE,
    DEFAULT_TIMEOUT,
    LINE_TERMINATOR,
    SETTLE_DELAY,
)

from .device import Device

_TERMINATOR = LINE_TERMINATOR.encode("ascii")


class MicroSMU(Device):
    """Transport session with one uSMU.

    Parameters
    ----------
    port : str
        Serial port of the device, e.g. "/dev/ttyACM0" or "COM3".
    timeout : float, optional
        Read timeout for replies in seconds, by default 1.0
    baudrate : int, optional
        Baud rate of the link, by default 9600

    Attributes
    ----------
    settle_delay : float
        Pause after each transmitted command (seconds)
    """

    required_config = {"port": str}

    def __init__(
        self,
        port: str,
        timeout: float = DEFAULT_TIMEOUT,
        baudrate: int = DEFAULT_BAUDRATE,
    ):
        super().__init__(port=port)
        self.timeout = timeout
        self.baudrate = baudrate
        self.settle_delay = SETTLE_DELAY
        self._serial = None
        self._was_reset = False

    @classmethod
    def from_serial(cls, handle, port: Optional[str] = None) -> MicroSMU:
        """Wrap an already open serial handle (anything with the pyserial API)."""
        port = port or getattr(handle, "port", None) or "<unknown>"
        smu = cls(port, timeout=getattr(handle, "timeout", None) or DEFAULT_TIMEOUT)
        smu._serial = handle
        return smu

    def __repr__(self):
        state = "open" if self.is_connected() else "closed"
        return f"{self.__class__.__name__}(port={self.port!r}, {state})"

    # =========================================================================
    # connection
    # =========================================================================

    def open(self) -> tuple[bool, str]:
        if self.is_connected():
            return True, f"Already connected to uSMU on port {self.port}"
        try:
            self._serial = serial.Serial(
                self.port,
                baudrate=self.baudrate,
                bytesize=serial.EIGHTBITS,
                parity=serial.PARITY_NONE,
                stopbits=serial.STOPBITS_ONE,
                timeout=self.timeout,
                exclusive=True,
            )
        except (serial.SerialException, OSError) as e:
            logger.error("Error opening uSMU serial port {}: {}", self.port, e)
            raise TransportIOError(f"Could not open port {self.port}: {e}") from e
        self._was_reset = False
        logger.info("Connected to uSMU on port {}", self.port)
        return True, f"Connected to uSMU on port {self.port}"

    def close(self):
        if self._serial is None:
            return
        try:
            self._serial.close()
        except (serial.SerialException, OSError):
            # the port may already be gone, e.g. after a reset
            logger.debug("Error closing uSMU port {} (ignored)", self.port)
        self._serial = None
        logger.debug("Closed uSMU port {}", self.port)

    def is_connected(self) -> bool:
        return self._serial is not None and bool(self._serial.is_open)

    def _require_open(self) -> None:
        if self.is_connected():
            return
        if self._was_reset:
            raise ConnectionClosedError(
                f"uSMU on {self.port} was reset and disconnected; rediscover it"
            )
        raise ConnectionClosedError(f"uSMU connection on {self.port} is not open")

    def _io_failure(self, action: str, e: Exception) -> TransportIOError:
        logger.error("I/O error during {} on {}: {}", action, self.port, e)
        self.close()
        return TransportIOError(f"{action} failed on {self.port}: {e}")

    # =========================================================================
    # framing
    # =========================================================================

    def _transmit(self, command: Command) -> str:
        self._require_open()
        data = frame(command)
        line = data[: -len(_TERMINATOR)].decode("ascii")
        logger.trace("uSMU <- {!r}", line)
        try:
            written = self._serial.write(data)
            self._serial.flush()
        except (serial.SerialException, OSError) as e:
            raise self._io_failure("write", e) from e
        if written is not None and written != len(data):
            raise self._io_failure(
                "write", IOError(f"wrote {written} of {len(data)} bytes")
            )
        # the device drops commands arriving within the settle window
        time.sleep(self.settle_delay)
        return line

    def _read_line(self, request: str) -> str:
        try:
            raw = self._serial.read_until(_TERMINATOR)
        except (serial.SerialException, OSError) as e:
            raise self._io_failure("read", e) from e

        if not raw:
            raise TransportTimeoutError(
                f"No reply to {request!r} within {self.timeout} s"
            )
        if not raw.endswith(_TERMINATOR):
            raise TransportTimeoutError(
                f"Incomplete reply to {request!r} within {self.timeout} s: {raw!r}"
            )
        if self._serial.in_waiting:
            extra = self._serial.read(self._serial.in_waiting)
            raise TrailingDataError(extra.decode("ascii", errors="replace"))
        try:
            text = raw[: -len(_TERMINATOR)].decode("ascii")
        except UnicodeDecodeError as e:
            raise MalformedReplyError(f"Reply is not ASCII: {raw!r}") from e
        logger.trace("uSMU -> {!r}", text)
        return text

    def send(self, command: Command) -> EmptyResponse:
        """Send a command that produces no reply."""
        if response_type(command) is not EmptyResponse:
            raise ConfigurationError(
                f"{type(command).__name__} expects a reply, use query()"
            )
        self._transmit(command)
        return EmptyResponse()

    def query(self, command: Command) -> Response:
        """Send a command and decode its single reply line."""
        expected: Type[Response] = response_type(command)
        if expected is EmptyResponse:
            raise ConfigurationError(
                f"{type(command).__name__} produces no reply, use send()"
            )
        self._drain_input()
        request = self._transmit(command)
        return decode(expected, self._read_line(request))

    def _drain_input(self) -> None:
        # a reply that arrived after an earlier timeout must not answer this query
        self._require_open()
        try:
            stale = self._serial.in_waiting
            if stale:
                logger.warning(
                    "Discarding {} stale byte(s) from uSMU on {}", stale, self.port
                )
            self._serial.reset_input_buffer()
        except (serial.SerialException, OSError) as e:
            raise self._io_failure("reset input buffer", e) from e

    # =========================================================================
    # output control
    # =========================================================================

    def enable(self) -> None:
        """Enable SMU output."""
        self.send(Enable())

    def disable(self) -> None:
        """Disable SMU output (high impedance)."""
        self.send(Disable())

    def set_current_limit(self, limit: Current) -> None:
        """Set the sink/source current limit.

        `limit` is the absolute value and is applied to both source and sink
        current, although sinking shows as a negative sign in measurements.

        Raises
        ------
        ConfigurationError
            If limit is below zero or exceeds 40 mA, the maximum current
            capability of the SMU.
        """
        self.send(SetCurrentLimit(limit))

    def set_voltage(self, voltage: Voltage) -> None:
        self.send(SetVoltage(voltage))

    def measure(self, voltage: Voltage) -> MeasureResponse:
        """Set the SMU to `voltage` and return the measured voltage and current.

        The measured voltage is the ADC read-back and can differ slightly from
        the requested one.
        """
        return self.query(Measure(voltage))

    def set_over_sample_rate(self, samples: int) -> None:
        """Set the number of samples averaged for each measurement."""
        self.send(SetOverSampleRate(samples))

    # =========================================================================
    # raw converter access
    # =========================================================================

    def set_voltage_dac(self, level: int) -> None:
        self.send(SetVoltageDac(level))

    def measure_differential_channel(self, channel: int) -> int:
        """Differential conversion between adjacent ADC channels.

        Only channel 0 and 2 can be used; they are sampled with the next
        adjacent channel, so 0 with 1 and 2 with 3.
        """
        return self.query(DifferentialConversion(channel)).value

    def set_current_limit_dac(self, level: int) -> None:
        """Set the current limit DAC to a 12 bit level."""
        self.send(SetCurrentLimitDac(level))

    # =========================================================================
    # calibration
    # =========================================================================

    def enable_voltage_calibration_mode(self) -> None:
        self.send(EnableVoltageCalibrationMode())

    def lock_current_range_and_clear_calibration(self, range: int) -> None:
        """Lock the current range and temporarily clear current calibration."""
        self.send(LockCurrentRangeAndClearCalibration(CurrentRange(range)))

    def read_eeprom(self, address: int) -> np.float32:
        """Read the float stored at an EEPROM address."""
        return self.query(ReadEeprom(EepromAddress(address))).value

    def write_eeprom(self, address: int, value: float) -> None:
        """Not available, see `usmu.protocol.commands.WriteEeprom`.

        Always raises `UnsupportedOperationError`; nothing is sent.
        """
        command = WriteEeprom(EepromAddress(address), value)
        raise UnsupportedOperationError(
            f"{type(command).__name__} is not implemented correctly by the uSMU "
            + "firmware; use the CAL:* calibration commands instead"
        )

    def write_voltage_dac_calibration(self, slope: float, intercept: float) -> None:
        self.send(WriteVoltageDacCalibration(slope, intercept))

    def write_voltage_adc_calibration(self, slope: float, intercept: float) -> None:
        self.send(WriteVoltageAdcCalibration(slope, intercept))

    def write_current_limit_calibration(
        self, range: int, slope: float, intercept: float
    ) -> None:
        """Write current ADC calibration for the given current range."""
        self.send(WriteCurrentLimitCalibration(CurrentRange(range), slope, intercept))

    def write_current_limit_dac_calibration(
        self, slope: float, intercept: float
    ) -> None:
        self.send(WriteCurrentLimitDacCalibration(slope, intercept))

    # =========================================================================
    # system
    # =========================================================================

    def get_identity(self) -> int:
        """Read the uSMU identification number."""
        return self.query(Identity()).uid

    def reset(self) -> None:
        """Reset the uSMU.

        The virtual com port disconnects; this session is closed afterwards
        and the device has to be discovered again.
        """
        self.send(Reset())
        self._was_reset = True
        self.close()
        logger.info("uSMU on {} reset, connection closed", self.port)

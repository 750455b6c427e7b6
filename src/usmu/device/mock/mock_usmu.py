"""Simulated uSMU behind a fake serial port.

`MockUSMUSerial` has the subset of the pyserial `Serial` API used by
`MicroSMU` and answers commands the way the firmware does, with a resistive
load connected to the output. It keeps a log of every received command line
so tests can check what went over the wire.

Examples
--------
```python
from usmu.device import MicroSMU
from usmu.device.mock import MockUSMUSerial
smu = MicroSMU.from_serial(MockUSMUSerial(uid=42))
smu.get_identity()  # 42
```
"""

from __future__ import annotations

from typing import Optional

import numpy as np
import serial
from loguru import logger

from usmu.protocol.codec import format_float
from usmu.protocol.responses import IDENTITY_BANNER

MOCK_PORT = "mock://usmu"


class MockUSMUSerial:
    """Fake serial port with a simulated uSMU attached.

    Parameters
    ----------
    uid : int
        Identity number reported by `*IDN?`
    load_resistance : float
        Resistance of the simulated load in ohms
    port : str
        Name reported as the port of this handle
    """

    def __init__(
        self,
        uid: int = 1234,
        load_resistance: float = 1000.0,
        port: str = MOCK_PORT,
        timeout: float = 1.0,
    ):
        self.port = port
        self.timeout = timeout
        self.is_open = True
        self.uid = uid
        self.load_resistance = load_resistance

        self.commands: list[str] = []
        self._rx = b""  # bytes received from the host, not yet a full line
        self._tx = b""  # reply bytes waiting to be read by the host
        self._injected: list[bytes] = []
        self._fail_prefix: Optional[str] = None
        self._disconnected = False

        # simulated device state
        self.enabled = False
        self.voltage = np.float32(0.0)
        self.current_limit_ma = np.float32(0.0)
        self.over_sample_rate = 1
        self.eeprom = {0: np.float32(1.0), 1: np.float32(0.0)}

    # =========================================================================
    # test hooks
    # =========================================================================

    def inject_reply(self, raw: bytes) -> None:
        """Answer the next reply-producing command with `raw` instead."""
        self._injected.append(raw)

    def fail_on_command(self, prefix: str) -> None:
        """Raise a SerialException when a command starting with `prefix` is sent."""
        self._fail_prefix = prefix

    # =========================================================================
    # pyserial API
    # =========================================================================

    @property
    def in_waiting(self) -> int:
        return len(self._tx)

    def write(self, data: bytes) -> int:
        self._check_port()
        self._rx += data
        while b"\n" in self._rx:
            line, self._rx = self._rx.split(b"\n", 1)
            self._handle(line.decode("ascii"))
        return len(data)

    def flush(self) -> None:
        pass

    def read_until(self, expected: bytes = b"\n", size: Optional[int] = None) -> bytes:
        self._check_port()
        idx = self._tx.find(expected)
        if idx < 0:
            # nothing terminated arrives before the timeout
            out, self._tx = self._tx, b""
            return out
        end = idx + len(expected)
        out, self._tx = self._tx[:end], self._tx[end:]
        return out

    def read(self, size: int = 1) -> bytes:
        self._check_port()
        out, self._tx = self._tx[:size], self._tx[size:]
        return out

    def reset_input_buffer(self) -> None:
        self._check_port()
        self._tx = b""

    def close(self) -> None:
        self.is_open = False

    def _check_port(self) -> None:
        if self._disconnected:
            raise serial.SerialException("device disconnected")
        if not self.is_open:
            raise serial.SerialException("Attempting to use a port that is not open")

    # =========================================================================
    # firmware
    # =========================================================================

    def _reply(self, text: str) -> None:
        if self._injected:
            self._tx += self._injected.pop(0)
        else:
            self._tx += text.encode("ascii") + b"\n"

    def _measured_current(self) -> np.float32:
        if not self.enabled:
            return np.float32(0.0)
        current = np.float32(self.voltage / np.float32(self.load_resistance))
        limit = np.float32(self.current_limit_ma / np.float32(1000.0))
        return np.float32(np.clip(current, -limit, limit))

    def _handle(self, line: str) -> None:
        logger.trace("MockUSMU received {!r}", line)
        self.commands.append(line)
        if self._fail_prefix is not None and line.startswith(self._fail_prefix):
            self._disconnected = True
            raise serial.SerialException(f"simulated failure on {line!r}")

        cmd, _, arg = line.partition(" ")
        if cmd == "CH1:ENA":
            self.enabled = True
        elif cmd == "CH1:DIS":
            self.enabled = False
        elif cmd == "CH1:CUR":
            self.current_limit_ma = np.float32(arg)
        elif cmd == "CH1:VOL":
            self.voltage = np.float32(arg)
        elif cmd == "CH1:MEA:VOL":
            self.voltage = np.float32(arg)
            self._reply(
                format_float(self.voltage) + "," + format_float(self._measured_current())
            )
        elif cmd == "CH1:OSR":
            self.over_sample_rate = int(arg)
        elif cmd == "ADC":
            self._reply(str(2048 + int(arg)))
        elif cmd == "*READ":
            self._reply(format_float(self.eeprom.get(int(arg), np.float32(0.0))))
        elif cmd == "*IDN?":
            self._reply(f"{IDENTITY_BANNER}{self.uid}")
        elif cmd == "*RST":
            self.enabled = False
            self._disconnected = True
        elif cmd in ("DAC", "ILIM", "CH1:VCAL", "CAL:DAC", "CAL:VOL", "CAL:ILIM"):
            pass
        elif cmd.startswith("CH1:RANGE") or cmd == "CAL:CUR:RANGE":
            pass
        else:
            logger.warning("MockUSMU ignoring unknown command {!r}", line)

import numpy as np
import pytest
import serial

from usmu.device import MicroSMU
from usmu.device.mock import MOCK_PORT, MockUSMUSerial
from usmu.protocol import Enable, Identity, IdentityResponse
from usmu.types import (
    ConfigurationError,
    ConnectionClosedError,
    Current,
    MalformedReplyError,
    TrailingDataError,
    TransportIOError,
    TransportTimeoutError,
    UnexpectedTokenError,
    UnsupportedOperationError,
    Voltage,
)
from usmu.util.defaults import SETTLE_DELAY


class LateReplySerial(MockUSMUSerial):
    """Mock whose first reply only arrives after the host has stopped waiting."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self._held = None
        self._hold_next = True

    def _reply(self, text):
        if self._hold_next:
            self._hold_next = False
            self._held = text.encode("ascii") + b"\n"
            return
        super()._reply(text)

    def read_until(self, expected=b"\n", size=None):
        out = super().read_until(expected, size)
        if not out and self._held is not None:
            self._tx += self._held
            self._held = None
        return out


class TestFraming:
    def test_commands_are_newline_terminated(self, mock_smu, mock_serial):
        writes = []
        original = mock_serial.write
        mock_serial.write = lambda data: writes.append(data) or original(data)
        mock_smu.enable()
        mock_smu.set_current_limit(Current(20, "mA"))
        assert writes == [b"CH1:ENA\n", b"CH1:CUR 20\n"]

    def test_settle_delay_after_every_command(self, mock_smu, sleeps):
        mock_smu.enable()
        mock_smu.get_identity()
        mock_smu.disable()
        assert sleeps == [SETTLE_DELAY] * 3
        assert SETTLE_DELAY == pytest.approx(0.05)

    def test_send_and_query_are_not_interchangeable(self, mock_smu, mock_serial):
        with pytest.raises(ConfigurationError):
            mock_smu.send(Identity())
        with pytest.raises(ConfigurationError):
            mock_smu.query(Enable())
        assert mock_serial.commands == []

    def test_query_returns_typed_response(self, mock_smu):
        assert mock_smu.query(Identity()) == IdentityResponse(42)


class TestReplies:
    def test_identity(self, mock_smu):
        assert mock_smu.get_identity() == 42

    def test_measure(self, mock_smu, mock_serial):
        mock_smu.set_current_limit(Current(20, "mA"))
        mock_smu.enable()
        response = mock_smu.measure(Voltage(1, "V"))
        assert mock_serial.commands[-1] == "CH1:MEA:VOL 1"
        assert response.voltage == Voltage(1, "V")
        assert response.current == Current(1, "mA")

    def test_measure_respects_current_limit(self, mock_smu):
        mock_smu.set_current_limit(Current(0.5, "mA"))
        mock_smu.enable()
        response = mock_smu.measure(Voltage(-2, "V"))
        assert response.current == Current(-0.5, "mA")

    def test_adc_and_eeprom(self, mock_smu, mock_serial):
        assert mock_smu.measure_differential_channel(2) == 2050
        mock_serial.eeprom[5] = np.float32(0.125)
        assert mock_smu.read_eeprom(5) == np.float32(0.125)
        assert mock_serial.commands == ["ADC 2", "*READ 5"]

    def test_invalid_argument_sends_nothing(self, mock_smu, mock_serial):
        with pytest.raises(ConfigurationError):
            mock_smu.measure_differential_channel(1)
        with pytest.raises(ConfigurationError):
            mock_smu.set_current_limit(Current(100, "mA"))
        with pytest.raises(ConfigurationError):
            mock_smu.set_current_limit_dac(4096)
        with pytest.raises(ConfigurationError):
            mock_smu.lock_current_range_and_clear_calibration(5)
        assert mock_serial.commands == []

    def test_calibration_commands(self, mock_smu, mock_serial):
        mock_smu.enable_voltage_calibration_mode()
        mock_smu.lock_current_range_and_clear_calibration(1)
        mock_smu.write_voltage_dac_calibration(1.5, -0.25)
        mock_smu.write_voltage_adc_calibration(1.0, 0.0)
        mock_smu.write_current_limit_calibration(4, 2.0, 0.5)
        mock_smu.write_current_limit_dac_calibration(1.0, 0.0)
        mock_smu.set_voltage_dac(1000)
        mock_smu.set_current_limit_dac(4095)
        assert mock_serial.commands == [
            "CH1:VCAL",
            "CH1:RANGE1",
            "CAL:DAC 1.5 -0.25",
            "CAL:VOL 1 0",
            "CAL:CUR:RANGE 4 2 0.5",
            "CAL:ILIM 1 0",
            "DAC 1000",
            "ILIM 4095",
        ]

    def test_write_eeprom_unsupported(self, mock_smu, mock_serial):
        with pytest.raises(UnsupportedOperationError):
            mock_smu.write_eeprom(0, 1.0)
        assert mock_serial.commands == []
        assert mock_smu.is_connected()


class TestReplyErrors:
    def test_no_reply_times_out(self, mock_smu, mock_serial):
        mock_serial.inject_reply(b"")
        with pytest.raises(TransportTimeoutError):
            mock_smu.get_identity()

    def test_late_reply_not_taken_for_next_query(self, sleeps):
        handle = LateReplySerial()
        smu = MicroSMU.from_serial(handle)
        smu.set_current_limit(Current(20, "mA"))
        smu.enable()
        with pytest.raises(TransportTimeoutError):
            smu.measure(Voltage(1, "V"))
        assert handle.in_waiting > 0

        response = smu.measure(Voltage(-1, "V"))
        assert response.voltage == Voltage(-1, "V")
        assert response.current == Current(-1, "mA")
        assert handle.in_waiting == 0
        smu.close()

    def test_unterminated_reply_times_out(self, mock_smu, mock_serial):
        mock_serial.inject_reply(b"uSMU version 1.0 ID:4")
        with pytest.raises(TransportTimeoutError):
            mock_smu.get_identity()

    def test_extra_bytes_after_reply(self, mock_smu, mock_serial):
        mock_serial.inject_reply(b"1.5,0.002\n0.1")
        with pytest.raises(TrailingDataError) as exc_info:
            mock_smu.measure(Voltage(1.5, "V"))
        assert exc_info.value.data == "0.1"

    def test_space_separated_measurement(self, mock_smu, mock_serial):
        mock_serial.inject_reply(b"1.5 0.002\n")
        with pytest.raises(UnexpectedTokenError):
            mock_smu.measure(Voltage(1.5, "V"))

    def test_wrong_banner(self, mock_smu, mock_serial):
        mock_serial.inject_reply(b"ID:42\n")
        with pytest.raises(UnexpectedTokenError):
            mock_smu.get_identity()

    def test_non_ascii_reply(self, mock_smu, mock_serial):
        mock_serial.inject_reply("1.5,0.002µ\n".encode("utf-8"))
        with pytest.raises(MalformedReplyError):
            mock_smu.measure(Voltage(1.5, "V"))

    def test_io_error_closes_session(self, mock_smu, mock_serial):
        mock_serial.fail_on_command("CH1:ENA")
        with pytest.raises(TransportIOError):
            mock_smu.enable()
        assert not mock_smu.is_connected()
        with pytest.raises(ConnectionClosedError):
            mock_smu.disable()


class TestLifecycle:
    def test_reset_closes_connection(self, mock_smu, mock_serial):
        mock_smu.reset()
        assert mock_serial.commands == ["*RST"]
        assert not mock_smu.is_connected()
        with pytest.raises(ConnectionClosedError, match="reset"):
            mock_smu.get_identity()
        with pytest.raises(ConnectionClosedError):
            mock_smu.enable()

    def test_context_manager_closes(self, sleeps):
        handle = MockUSMUSerial()
        with MicroSMU.from_serial(handle) as smu:
            assert smu.port == MOCK_PORT
            smu.enable()
        assert not handle.is_open
        assert not smu.is_connected()

    def test_close_is_idempotent(self, mock_smu):
        mock_smu.close()
        mock_smu.close()
        assert not mock_smu.is_connected()

    def test_port_must_be_a_string(self):
        with pytest.raises(ConfigurationError):
            MicroSMU(3)

    def test_open_failure(self, monkeypatch):
        def refuse(*args, **kwargs):
            raise serial.SerialException("could not open port")

        monkeypatch.setattr(serial, "Serial", refuse)
        smu = MicroSMU("/dev/ttyACM9")
        with pytest.raises(TransportIOError, match="ttyACM9"):
            smu.open()
        assert not smu.is_connected()

    def test_open_uses_link_settings(self, monkeypatch):
        opened = {}

        def fake_serial(port, **kwargs):
            opened.update(kwargs, port=port)
            return MockUSMUSerial(port=port)

        monkeypatch.setattr(serial, "Serial", fake_serial)
        smu = MicroSMU("/dev/ttyACM0", timeout=2.0)
        smu.open()
        assert smu.is_connected()
        assert opened["port"] == "/dev/ttyACM0"
        assert opened["baudrate"] == 9600
        assert opened["timeout"] == 2.0
        assert opened["exclusive"] is True
        smu.close()

from types import SimpleNamespace

import numpy as np
import pytest
from loguru import logger

from usmu.types import ConfigurationError, Current, Sample, Voltage
from usmu.util import (
    format_error_response,
    gen_linear_sweep_list,
    get_log_filename,
    list_usb_serial_ports,
    shutdown_log,
    start_log,
)
from usmu.util.save import format_iv_csv, metadata_path, save_iv_csv


def _port(device, vid, pid):
    return SimpleNamespace(device=device, vid=vid, pid=pid, description="")


class TestPorts:
    def test_filter_by_vid_pid(self, monkeypatch):
        ports = [
            _port("/dev/ttyACM1", 1155, 22336),
            _port("/dev/ttyS0", None, None),
            _port("/dev/ttyUSB0", 1027, 24577),
            _port("/dev/ttyACM0", 1155, 22336),
        ]
        monkeypatch.setattr("serial.tools.list_ports.comports", lambda: ports)
        found = list_usb_serial_ports(vid=1155, pid=22336)
        assert [p.device for p in found] == ["/dev/ttyACM0", "/dev/ttyACM1"]
        assert len(list_usb_serial_ports()) == 3


class TestListGen:
    def test_linear(self):
        values = gen_linear_sweep_list(-1.0, 1.0, 5)
        assert values.dtype == np.float32
        np.testing.assert_array_equal(values, [-1, -0.5, 0, 0.5, 1])

    def test_single(self):
        values = gen_linear_sweep_list(0.3, 1.0, 1)
        np.testing.assert_array_equal(values, np.array([0.3], dtype=np.float32))


class TestSave:
    def test_format(self):
        samples = [
            Sample(Voltage(-1, "V"), Current(-10, "nA")),
            Sample(Voltage(0.5, "V"), Current(2, "mA")),
        ]
        assert format_iv_csv(samples) == (
            "voltage,current\n-1,-0.00000001\n0.5,0.002\n"
        )

    def test_save_to_file(self, tmp_path):
        path = save_iv_csv([], str(tmp_path / "empty.csv"))
        assert path == str(tmp_path / "empty.csv")
        assert (tmp_path / "empty.csv").read_text() == "voltage,current\n"

    def test_save_to_stdout(self, capsys):
        assert save_iv_csv([Sample(Voltage(1, "V"), Current(0, "A"))], "-") is None
        assert capsys.readouterr().out == "voltage,current\n1,0\n"

    def test_metadata_path(self):
        assert metadata_path("/data/run1.csv") == "/data/run1.json"


class TestLogging:
    @pytest.fixture(autouse=True)
    def restore_log(self):
        yield
        shutdown_log()

    def test_start_log_to_file(self, tmp_path):
        path = tmp_path / "test.log"
        start_log(log_to_file=True, log_path=str(path), log_level="DEBUG")
        logger.debug("hello from the test")
        shutdown_log()
        assert get_log_filename() == str(path)
        assert "hello from the test" in path.read_text()

    def test_clear_previous(self, tmp_path):
        path = tmp_path / "test.log"
        path.write_text("old content\n")
        start_log(log_to_file=True, log_path=str(path), clear_prev=True)
        shutdown_log()
        assert "old content" not in path.read_text()


class TestErrorFormat:
    def _raise(self):
        raise ConfigurationError("bad limit")

    def test_current_exception(self):
        try:
            self._raise()
        except ConfigurationError:
            text = format_error_response()
        assert text.startswith("Traceback")
        assert "ConfigurationError: bad limit" in text
        assert "_raise" in text

    def test_given_exception(self):
        try:
            self._raise()
        except ConfigurationError as e:
            caught = e
        text = format_error_response(caught)
        assert "ConfigurationError: bad limit" in text

    def test_single_line(self, monkeypatch):
        monkeypatch.setattr("usmu.util.logging.SINGLE_LINE_ERR_LOG", True)
        try:
            self._raise()
        except ConfigurationError as e:
            text = format_error_response(e)
        assert "\n" not in text
        assert "\t" in text

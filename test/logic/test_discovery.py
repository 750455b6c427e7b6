from types import SimpleNamespace

import pytest

import usmu.device.discovery as discovery
from usmu.device import (
    IDENTITY_UNKNOWN,
    PortCandidate,
    discover,
    enumerate_candidates,
    select_candidate,
)
from usmu.device.mock import MockUSMUSerial
from usmu.types import AmbiguousDeviceError, DeviceNotFoundError, DiscoveryError
from usmu.util.defaults import USB_PID, USB_VID

ACM0 = PortCandidate("/dev/ttyACM0", USB_VID, USB_PID, "1111")
ACM1 = PortCandidate("/dev/ttyACM1", USB_VID, USB_PID, "2222")


class TestSelectCandidate:
    def test_no_candidates(self):
        with pytest.raises(DeviceNotFoundError):
            select_candidate([])
        with pytest.raises(DiscoveryError):
            select_candidate([], port="/dev/ttyACM0")

    def test_single_candidate_ignores_selectors(self):
        assert select_candidate([ACM0]) == ACM0
        assert select_candidate([ACM0], port="/dev/ttyACM5") == ACM0
        assert select_candidate([ACM0], identity="9999") == ACM0

    def test_ambiguous_without_selectors(self):
        with pytest.raises(AmbiguousDeviceError) as exc_info:
            select_candidate([ACM0, ACM1])
        assert exc_info.value.candidates == [ACM0, ACM1]
        message = str(exc_info.value)
        assert "/dev/ttyACM0 - 1111" in message
        assert "/dev/ttyACM1 - 2222" in message

    def test_select_by_port(self):
        assert select_candidate([ACM0, ACM1], port="/dev/ttyACM1") == ACM1

    def test_select_by_identity(self):
        assert select_candidate([ACM0, ACM1], identity="1111") == ACM0
        assert select_candidate([ACM0, ACM1], identity=2222) == ACM1

    def test_port_and_identity_must_both_match(self):
        assert (
            select_candidate([ACM0, ACM1], port="/dev/ttyACM0", identity="1111")
            == ACM0
        )
        with pytest.raises(DeviceNotFoundError):
            select_candidate([ACM0, ACM1], port="/dev/ttyACM0", identity="2222")

    def test_no_match(self):
        with pytest.raises(DeviceNotFoundError, match="ttyACM7"):
            select_candidate([ACM0, ACM1], port="/dev/ttyACM7")

    def test_several_match(self):
        unknown0 = PortCandidate("/dev/ttyACM0", USB_VID, USB_PID)
        unknown1 = PortCandidate("/dev/ttyACM1", USB_VID, USB_PID)
        with pytest.raises(AmbiguousDeviceError) as exc_info:
            select_candidate([unknown0, unknown1, ACM0], identity=IDENTITY_UNKNOWN)
        assert len(exc_info.value.candidates) == 2


def _port(device, vid=USB_VID, pid=USB_PID):
    return SimpleNamespace(device=device, vid=vid, pid=pid, description="uSMU")


@pytest.fixture
def attached(monkeypatch, sleeps):
    """Pretend a set of uSMUs (device -> uid) is attached."""
    devices = {}

    def list_ports(vid=None, pid=None):
        assert (vid, pid) == (USB_VID, USB_PID)
        return [_port(d) for d in sorted(devices)]

    def fake_serial(port, **kwargs):
        return MockUSMUSerial(uid=devices[port], port=port)

    monkeypatch.setattr(discovery, "list_usb_serial_ports", list_ports)
    monkeypatch.setattr("serial.Serial", fake_serial)
    return devices


class TestDiscover:
    def test_enumerate_reads_identities(self, attached):
        attached.update({"/dev/ttyACM0": 1111, "/dev/ttyACM1": 2222})
        assert enumerate_candidates() == [ACM0, ACM1]

    def test_enumerate_without_identify(self, attached):
        attached["/dev/ttyACM0"] = 1111
        (candidate,) = enumerate_candidates(identify=False)
        assert candidate.identity == IDENTITY_UNKNOWN

    def test_identity_failure_is_tolerated(self, attached, monkeypatch):
        attached.update({"/dev/ttyACM0": 1111, "/dev/ttyACM1": 2222})

        def flaky_serial(port, **kwargs):
            handle = MockUSMUSerial(uid=attached[port], port=port)
            if port == "/dev/ttyACM1":
                handle.inject_reply(b"garbage\n")
            return handle

        monkeypatch.setattr("serial.Serial", flaky_serial)
        candidates = enumerate_candidates()
        assert [c.identity for c in candidates] == ["1111", IDENTITY_UNKNOWN]

    def test_discover_none(self, attached):
        with pytest.raises(DeviceNotFoundError):
            discover()

    def test_discover_single(self, attached):
        attached["/dev/ttyACM0"] = 1111
        smu = discover()
        assert smu.port == "/dev/ttyACM0"
        assert smu.is_connected()
        assert smu.get_identity() == 1111
        smu.close()

    def test_discover_two_needs_selector(self, attached):
        attached.update({"/dev/ttyACM0": 1111, "/dev/ttyACM1": 2222})
        with pytest.raises(AmbiguousDeviceError):
            discover()
        with discover(identity="2222") as smu:
            assert smu.port == "/dev/ttyACM1"
        with discover(port="/dev/ttyACM0") as smu:
            assert smu.get_identity() == 1111

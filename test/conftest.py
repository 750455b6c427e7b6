import pytest

from usmu.device import MicroSMU
from usmu.device.mock import MockUSMUSerial


def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line("markers", "slow: marks test as slow running test")
    config.addinivalue_line(
        "markers", "hardware: marks test that require physical hardware"
    )


@pytest.fixture
def sleeps(monkeypatch):
    """Record time.sleep calls instead of waiting."""
    calls = []
    monkeypatch.setattr("time.sleep", lambda s: calls.append(s))
    return calls


@pytest.fixture
def mock_serial():
    return MockUSMUSerial(uid=42)


@pytest.fixture
def mock_smu(mock_serial, sleeps):
    """Open session with a simulated uSMU, settle delays skipped."""
    smu = MicroSMU.from_serial(mock_serial)
    yield smu
    smu.close()

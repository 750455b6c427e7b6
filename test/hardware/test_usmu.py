import pytest
from loguru import logger

import usmu.util
from usmu.device import discover, enumerate_candidates
from usmu.meas import run_sweep
from usmu.types import (
    ConfigurationError,
    Current,
    SweepConfig,
    UnsupportedOperationError,
    Voltage,
)
from usmu.util import TEST_LOGLEVEL

pytestmark = pytest.mark.hardware


@pytest.fixture(scope="module", autouse=True)
def test_log():
    usmu.util.start_log(log_to_file=True, log_level=TEST_LOGLEVEL)
    yield
    usmu.util.shutdown_log()


@pytest.fixture
def smu():
    """Open a session with the attached uSMU, skipping if there is none."""
    if not enumerate_candidates(identify=False):
        pytest.skip("No uSMU attached")
    smu = discover()
    try:
        yield smu
    finally:
        if smu.is_connected():
            smu.disable()
        smu.close()


class TestMicroSMUHardware:
    def test_identity(self, smu):
        uid = smu.get_identity()
        logger.info("Connected to uSMU {}", uid)
        assert uid >= 0

    def test_measure_open_output(self, smu):
        smu.set_current_limit(Current(1, "mA"))
        smu.set_over_sample_rate(10)
        smu.enable()
        response = smu.measure(Voltage(0.5, "V"))
        logger.info("Measured {} / {}", response.voltage, response.current)
        assert abs(response.voltage.to("V") - 0.5) < 0.05
        assert abs(response.current.to("A")) <= 1e-3 * 1.1

    def test_adc_channels(self, smu):
        for channel in (0, 2):
            assert 0 <= smu.measure_differential_channel(channel) <= 0xFFFF
        with pytest.raises(ConfigurationError):
            smu.measure_differential_channel(1)

    def test_read_eeprom(self, smu):
        value = smu.read_eeprom(0)
        logger.info("EEPROM[0] = {}", value)

    def test_write_eeprom_refused(self, smu):
        with pytest.raises(UnsupportedOperationError):
            smu.write_eeprom(0, 1.0)

    @pytest.mark.slow
    def test_short_sweep(self, smu):
        config = SweepConfig(
            start=Voltage(-0.5, "V"),
            end=Voltage(0.5, "V"),
            steps=11,
            current_limit=Current(1, "mA"),
            over_sampling=10,
        )
        samples = run_sweep(config, smu)
        assert len(samples) == 11
        for sample in samples:
            logger.info("{}, {}", sample.voltage, sample.current)

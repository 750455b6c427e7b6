import usmu.util
from usmu.device import MicroSMU
from usmu.device.mock import MockUSMUSerial
from usmu.meas import run_sweep
from usmu.types import Current, SweepConfig, Voltage
from usmu.util.save import save_iv_csv

usmu.util.start_log(log_to_stdout=True)  # log to ~/.usmu/usmu.log and stderr

config = SweepConfig(
    start=Voltage(-1, "V"),
    end=Voltage(1, "V"),
    steps=21,
    current_limit=Current(0.5, "mA"),  # clips the 1 kOhm load above 0.5 V
    over_sampling=10,
)

# swap for `usmu.device.discover()` to use a real device
smu = MicroSMU.from_serial(MockUSMUSerial(load_resistance=1000.0))
with smu:
    samples = run_sweep(config, smu)

save_iv_csv(samples)  # to stdout

usmu.util.shutdown_log()

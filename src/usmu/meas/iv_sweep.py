"""IV curve recording: a linear voltage sweep measuring the current response.

Sequence
--------
1. Set the start voltage, the current limit, enable the output and set the
   oversampling, in that order.
2. For each set-point from `start` to `end` (both included): set the voltage,
   wait `delay`, measure at that set-point and keep the measured (ADC
   read-back) voltage and current.
3. Disable the output.

Steps run strictly one after another; the device has a single channel and
handles one command at a time.

If a step fails and `SweepConfig.disable_on_error` is set, one attempt is
made to disable the output before the original error is re-raised, so the
device is not left driving a set-point. This attempt is skipped when the
connection is already gone.
"""

from __future__ import annotations

import time
from typing import Callable, Optional

from loguru import logger

from usmu.device.usmu import MicroSMU
from usmu.types import Sample, SweepConfig, USMUError, Voltage
from usmu.util.list_gen import gen_linear_sweep_list


def sweep_setpoints(config: SweepConfig) -> list[Voltage]:
    """Commanded voltages of a sweep, in order."""
    return [
        Voltage(v, "V")
        for v in gen_linear_sweep_list(
            config.start.to("V"), config.end.to("V"), config.steps
        )
    ]


def _disable_after_failure(smu: MicroSMU) -> None:
    if not smu.is_connected():
        logger.warning("Connection lost during sweep, cannot disable uSMU output")
        return
    try:
        smu.disable()
        logger.info("uSMU output disabled after sweep failure")
    except USMUError:
        logger.exception("Error disabling uSMU output after sweep failure")


def run_sweep(
    config: SweepConfig,
    smu: MicroSMU,
    progress_callback: Optional[Callable[[int, int, Sample], None]] = None,
) -> list[Sample]:
    """Record an IV curve.

    Parameters
    ----------
    config : SweepConfig
        Validated sweep settings
    smu : MicroSMU
        Open session with the device
    progress_callback : callable, optional
        Called as `callback(index, total, sample)` after every step

    Returns
    -------
    list[Sample]
        One sample per set-point, in sweep order
    """
    setpoints = sweep_setpoints(config)
    logger.info(
        "Starting IV sweep {} -> {} in {} steps (limit {}, oversampling {})",
        config.start,
        config.end,
        config.steps,
        config.current_limit,
        config.over_sampling,
    )

    samples: list[Sample] = []
    try:
        smu.set_voltage(config.start)
        smu.set_current_limit(config.current_limit)
        smu.enable()
        smu.set_over_sample_rate(config.over_sampling)

        for idx, setpoint in enumerate(setpoints):
            smu.set_voltage(setpoint)
            if config.delay > 0:
                time.sleep(config.delay)
            response = smu.measure(setpoint)
            sample = Sample(response.voltage, response.current)
            samples.append(sample)
            logger.debug(
                "Step {}/{}: set {} measured {}, {}",
                idx + 1,
                len(setpoints),
                setpoint,
                sample.voltage,
                sample.current,
            )
            if progress_callback:
                progress_callback(idx, len(setpoints), sample)
    except USMUError:
        logger.error("IV sweep failed after {} of {} steps", len(samples), len(setpoints))
        if config.disable_on_error:
            _disable_after_failure(smu)
        raise

    smu.disable()
    logger.info("IV sweep complete, {} samples", len(samples))
    return samples

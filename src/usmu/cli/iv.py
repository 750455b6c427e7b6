import click
from click_option_group import optgroup
from loguru import logger

from usmu.meas import run_sweep
from usmu.types import SweepConfig
from usmu.util.defaults import (
    DEFAULT_CURRENT_LIMIT,
    DEFAULT_DELAY,
    DEFAULT_END_VOLTAGE,
    DEFAULT_OVER_SAMPLING,
    DEFAULT_START_VOLTAGE,
    DEFAULT_STEPS,
)
from usmu.util.logging import shutdown_log
from usmu.util.save import save_iv_csv, save_iv_metadata

from .base import (
    CURRENT,
    DURATION,
    VOLTAGE,
    connect,
    connection_options,
    handle_errors,
    log_options,
    setup_logging,
)


@click.command(name="record-iv")
@connection_options
@optgroup.group("Sweep Parameters")
@optgroup.option(
    "--start-voltage",
    "-s",
    type=VOLTAGE,
    default=DEFAULT_START_VOLTAGE,
    show_default=True,
    help="First voltage of the sweep",
)
@optgroup.option(
    "--end-voltage",
    "-e",
    type=VOLTAGE,
    default=DEFAULT_END_VOLTAGE,
    show_default=True,
    help="Last voltage of the sweep",
)
@optgroup.option(
    "--voltage-steps",
    "-n",
    type=click.IntRange(min=1),
    default=DEFAULT_STEPS,
    show_default=True,
    help="Number of voltage set-points",
)
@optgroup.option(
    "--current-limit",
    "-c",
    type=CURRENT,
    default=DEFAULT_CURRENT_LIMIT,
    show_default=True,
    help="Source/sink current limit (max 40 mA)",
)
@optgroup.option(
    "--over-sampling",
    "-r",
    type=click.IntRange(0, 0xFFFF),
    default=DEFAULT_OVER_SAMPLING,
    show_default=True,
    help="Number of samples averaged per measurement",
)
@optgroup.option(
    "--delay",
    "-d",
    type=DURATION,
    default=DEFAULT_DELAY,
    show_default=True,
    help="Time to wait before taking each measurement (e.g. '10 ms')",
)
@optgroup.group("Output")
@optgroup.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, writable=True),
    default=None,
    help="CSV file to write (default: stdout)",
)
@optgroup.option(
    "--format",
    "-f",
    "output_format",
    type=click.Choice(["csv"]),
    default="csv",
    show_default=True,
    help="Output format",
)
@optgroup.option(
    "--metadata/--no-metadata",
    default=True,
    help="Write sweep settings to a JSON file next to the output file",
)
@log_options
def record_iv(
    port,
    identity,
    timeout,
    mock,
    start_voltage,
    end_voltage,
    voltage_steps,
    current_limit,
    over_sampling,
    delay,
    output,
    output_format,
    metadata,
    log_to_file,
    log_to_stdout,
    log_path,
    log_level,
):
    """Record an IV curve.

    Sweeps the output voltage linearly from the start to the end voltage and
    measures the current at each step. Writes one `voltage,current` row per
    step (volts, amperes).
    """
    setup_logging(
        log_path=log_path,
        log_to_file=log_to_file,
        log_to_stdout=log_to_stdout,
        log_level=log_level,
    )
    try:
        with handle_errors():
            config = SweepConfig(
                start=start_voltage,
                end=end_voltage,
                steps=voltage_steps,
                current_limit=current_limit,
                over_sampling=over_sampling,
                delay=delay,
            )
            smu = connect(port=port, identity=identity, timeout=timeout, mock=mock)
            try:
                uid = smu.get_identity()
                logger.info("Recording IV curve with uSMU {} on {}", uid, smu.port)
                samples = run_sweep(config, smu)
            finally:
                smu.close()

        # only csv for now
        path = save_iv_csv(samples, output)
        if path is not None and metadata:
            save_iv_metadata(path, config, identity=uid, port=smu.port)
    finally:
        shutdown_log()

import functools

import click

from usmu.device import MicroSMU
from usmu.protocol import format_float
from usmu.util.logging import shutdown_log

from ..base import (
    CURRENT,
    VOLTAGE,
    connect,
    connection_options,
    handle_errors,
    log_options,
    setup_logging,
)


def run_on_device(action, *, port, identity, timeout, mock, log_opts):
    """Connect, run `action(smu)`, close. Driver errors exit with status 1."""
    setup_logging(**log_opts)
    try:
        with handle_errors():
            smu = connect(port=port, identity=identity, timeout=timeout, mock=mock)
            try:
                return action(smu)
            finally:
                smu.close()
    finally:
        shutdown_log()


def device_command(f):
    """Add connection and log options, passing them on as `conn` and `log_opts`."""

    @functools.wraps(f)
    def wrapper(
        port,
        identity,
        timeout,
        mock,
        log_to_file,
        log_to_stdout,
        log_path,
        log_level,
        **kwargs,
    ):
        conn = dict(port=port, identity=identity, timeout=timeout, mock=mock)
        log_opts = dict(
            log_to_file=log_to_file,
            log_to_stdout=log_to_stdout,
            log_path=log_path,
            log_level=log_level,
        )
        return f(conn=conn, log_opts=log_opts, **kwargs)

    return connection_options(log_options(wrapper))


@click.group()
def smu():
    """Low level uSMU commands."""
    pass


@smu.command()
@device_command
def idn(conn, log_opts):
    """Read the uSMU identity number."""
    uid = run_on_device(lambda s: s.get_identity(), log_opts=log_opts, **conn)
    click.echo(uid)


@smu.command()
@device_command
def enable(conn, log_opts):
    """Enable the output."""
    run_on_device(MicroSMU.enable, log_opts=log_opts, **conn)
    click.echo("uSMU output enabled")


@smu.command()
@device_command
def disable(conn, log_opts):
    """Disable the output (high impedance)."""
    run_on_device(MicroSMU.disable, log_opts=log_opts, **conn)
    click.echo("uSMU output disabled")


@smu.command(name="set")
@click.option("--voltage", "-v", type=VOLTAGE, default=None, help="Output voltage")
@click.option(
    "--current-limit", "-c", type=CURRENT, default=None, help="Current limit"
)
@click.option("--over-sampling", "-r", type=int, default=None, help="Oversampling")
@device_command
def set_(conn, log_opts, voltage, current_limit, over_sampling):
    """Set output voltage, current limit and/or oversampling."""
    if voltage is None and current_limit is None and over_sampling is None:
        raise click.UsageError("Nothing to set")

    def action(s: MicroSMU):
        if current_limit is not None:
            s.set_current_limit(current_limit)
        if over_sampling is not None:
            s.set_over_sample_rate(over_sampling)
        if voltage is not None:
            s.set_voltage(voltage)

    run_on_device(action, log_opts=log_opts, **conn)
    if voltage is not None:
        click.echo(f"Set voltage to {voltage}")
    if current_limit is not None:
        click.echo(f"Set current limit to {current_limit}")
    if over_sampling is not None:
        click.echo(f"Set oversampling to {over_sampling}")


@smu.command()
@click.argument("voltage", type=VOLTAGE)
@device_command
def measure(conn, log_opts, voltage):
    """Set VOLTAGE and print the measured voltage and current."""
    response = run_on_device(lambda s: s.measure(voltage), log_opts=log_opts, **conn)
    click.echo(f"Voltage: {format_float(response.voltage.to('V'))} V")
    click.echo(f"Current: {format_float(response.current.to('A'))} A")


@smu.command()
@click.argument("channel", type=int)
@device_command
def adc(conn, log_opts, channel):
    """Raw differential conversion on CHANNEL (0 or 2)."""
    value = run_on_device(
        lambda s: s.measure_differential_channel(channel), log_opts=log_opts, **conn
    )
    click.echo(value)


@smu.command(name="eeprom-read")
@click.argument("address", type=click.IntRange(0, 255))
@device_command
def eeprom_read(conn, log_opts, address):
    """Read the float stored at EEPROM ADDRESS."""
    value = run_on_device(lambda s: s.read_eeprom(address), log_opts=log_opts, **conn)
    click.echo(format_float(value))


@smu.command()
@click.confirmation_option(prompt="The uSMU will disconnect. Reset?")
@device_command
def reset(conn, log_opts):
    """Reset the uSMU (it disconnects and re-enumerates)."""
    run_on_device(MicroSMU.reset, log_opts=log_opts, **conn)
    click.echo("uSMU reset")

from contextlib import contextmanager
from typing import Optional

import click
from click_option_group import optgroup
from loguru import logger
from rich.console import Console
from rich.table import Table

from usmu.device import MicroSMU, discover, enumerate_candidates
from usmu.device.mock import MockUSMUSerial
from usmu.types import Current, USMUError, Voltage
from usmu.util import DEFAULT_LOGLEVEL, DEFAULT_TIMEOUT, get_hw_ports
from usmu.util.logging import (
    clear_log,
    format_error_response,
    log_default_path,
    start_log,
)


def print_tree(cmd, prefix="", parent_ctx=None):
    """Print command tree starting from given command."""
    ctx = click.Context(cmd, info_name=cmd.name, parent=parent_ctx)

    # Only print root name if no parent
    if not parent_ctx:
        click.echo(cmd.name)

    for sub in sorted(cmd.list_commands(ctx)):
        sub_cmd = cmd.get_command(ctx, sub)
        click.echo(f"{prefix}└── {sub}")
        if isinstance(sub_cmd, click.Group):
            print_tree(sub_cmd, prefix + "    ", ctx)


def tree_option(f):
    """Add --tree option to command."""

    def callback(ctx, param, value):
        if not value or ctx.resilient_parsing:
            return
        print_tree(ctx.command)
        ctx.exit()

    return click.option(
        "--tree",
        is_flag=True,
        help="Show command tree from this point",
        expose_value=False,
        is_eager=True,
        callback=callback,
    )(f)


# =============================================================================
# parameter types
# =============================================================================


class QuantityType(click.ParamType):
    """Click parameter for a value with a unit suffix, e.g. '20 mA'."""

    def __init__(self, quantity_cls):
        self.quantity_cls = quantity_cls
        self.name = quantity_cls.__name__.lower()

    def convert(self, value, param, ctx):
        if isinstance(value, self.quantity_cls):
            return value
        try:
            return self.quantity_cls.parse(str(value))
        except ValueError as e:
            self.fail(str(e), param, ctx)


class DurationType(click.ParamType):
    """Time in seconds, with optional 's' or 'ms' suffix ('0 ms', '0.5s', '2')."""

    name = "duration"
    _UNITS = {"s": 1.0, "ms": 1e-3}

    def convert(self, value, param, ctx):
        if isinstance(value, (int, float)):
            return float(value)
        text = str(value).strip()
        for unit in sorted(self._UNITS, key=len, reverse=True):
            if text.endswith(unit):
                number, scale = text[: -len(unit)], self._UNITS[unit]
                break
        else:
            number, scale = text, 1.0
        try:
            return float(number) * scale
        except ValueError:
            self.fail(f"Cannot parse duration from '{value}'", param, ctx)


VOLTAGE = QuantityType(Voltage)
CURRENT = QuantityType(Current)
DURATION = DurationType()


# =============================================================================
# shared option groups
# =============================================================================


def connection_options(f):
    """Options selecting which uSMU to talk to."""
    for option in reversed(
        [
            optgroup.group("Connection"),
            optgroup.option(
                "--port", "-p", default=None, help="Serial port of the uSMU"
            ),
            optgroup.option(
                "--identity",
                "--serial-number",
                "identity",
                default=None,
                help="Identity number reported by the uSMU",
            ),
            optgroup.option(
                "--timeout",
                type=float,
                default=DEFAULT_TIMEOUT,
                show_default=True,
                help="Reply timeout in seconds",
            ),
            optgroup.option(
                "--mock",
                is_flag=True,
                default=False,
                help="Use a simulated uSMU instead of hardware",
            ),
        ]
    ):
        f = option(f)
    return f


def log_options(f):
    for option in reversed(
        [
            optgroup.group("Logging"),
            optgroup.option(
                "--log-to-file/--no-log-to-file",
                default=False,
                help="Enable/disable logging to file (default: disabled)",
            ),
            optgroup.option(
                "--log-to-stdout/--no-log-to-stdout",
                default=True,
                help="Enable/disable console logging on stderr (default: enabled)",
            ),
            optgroup.option(
                "--log-path",
                default="",
                help="Custom path for log file (default: ~/.usmu/usmu.log)",
            ),
            optgroup.option(
                "--log-level",
                default=DEFAULT_LOGLEVEL,
                help="Logging level (TRACE, DEBUG, INFO, WARNING, ERROR)",
            ),
        ]
    ):
        f = option(f)
    return f


def setup_logging(
    log_path: str = "",
    clear_prev_log: bool = True,
    log_to_file: bool = False,
    log_to_stdout: bool = True,
    log_level: str = DEFAULT_LOGLEVEL,
) -> None:
    """Configure logging based on command line parameters."""
    log_path = log_path or log_default_path()
    if clear_prev_log and log_to_file:
        clear_log(log_path)

    start_log(
        log_to_file=log_to_file,
        log_to_stdout=log_to_stdout,
        log_path=log_path,
        clear_prev=False,
        log_level=log_level,
    )


def connect(
    port: Optional[str] = None,
    identity: Optional[str] = None,
    timeout: float = DEFAULT_TIMEOUT,
    mock: bool = False,
) -> MicroSMU:
    if mock:
        logger.info("Using simulated uSMU")
        return MicroSMU.from_serial(MockUSMUSerial(timeout=timeout))
    return discover(port=port, identity=identity, timeout=timeout)


@contextmanager
def handle_errors():
    """Render driver errors for a human and exit with status 1."""
    try:
        yield
    except USMUError as e:
        logger.error("{}: {}", type(e).__name__, e)
        logger.debug("Traceback:\n{}", format_error_response(e))
        raise click.ClickException(str(e)) from e


# =============================================================================
# commands
# =============================================================================


@click.group()
@tree_option
def cli():
    """usmu - control the uSMU source-measure unit.

    - Record IV curves (voltage sweep, current response)

    - Find attached devices

    - Low level device commands for testing and calibration
    """
    pass


@cli.command()
@click.option(
    "--identify/--no-identify",
    default=True,
    help="Query each uSMU for its identity (default: enabled)",
)
@click.option(
    "--all", "show_all", is_flag=True, help="List all hardware serial ports"
)
def ports(identify, show_all):
    """List attached uSMUs (or all hardware serial ports)."""
    console = Console()
    if show_all:
        table = Table(title="Serial ports")
        table.add_column("Port")
        table.add_column("Description")
        table.add_column("Hardware ID")
        for device, (desc, hwid) in sorted(get_hw_ports().items()):
            table.add_row(device, desc, hwid)
        console.print(table)
        return

    candidates = enumerate_candidates(identify=identify)
    if not candidates:
        click.echo("No uSMU found.")
        return
    table = Table(title="uSMU devices")
    table.add_column("Port")
    table.add_column("VID")
    table.add_column("PID")
    table.add_column("Identity")
    for c in candidates:
        table.add_row(c.device, str(c.vid), str(c.pid), c.identity)
    console.print(table)

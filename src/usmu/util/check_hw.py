from typing import Optional

import serial.tools.list_ports
from loguru import logger
from serial.tools.list_ports_common import ListPortInfo


def get_hw_ports():
    """Map each serial port with real hardware behind it to its (desc, hwid)."""
    port_dict = dict()
    for p in list(serial.tools.list_ports.comports()):
        # Only include if there's actual hardware info
        if p.hwid != "n/a":
            port_dict[p.device] = tuple(p)[1:]
    return port_dict


def list_usb_serial_ports(
    vid: Optional[int] = None, pid: Optional[int] = None
) -> list[ListPortInfo]:
    """List USB serial ports, optionally filtered by vendor and product id.

    Ports that are not USB devices report no vid/pid and are never returned.
    """
    ports = []
    for p in serial.tools.list_ports.comports():
        if p.vid is None or p.pid is None:
            continue
        if vid is not None and p.vid != vid:
            continue
        if pid is not None and p.pid != pid:
            continue
        logger.trace(f"USB serial port {p.device}: {p.vid}:{p.pid} {p.description}")
        ports.append(p)
    return sorted(ports, key=lambda p: p.device)

# -*- coding: utf-8 -*-
"""
Utility functions and constants for usmu.

- Default settings of the serial link and the command line
- Logging configuration and management
- Serial port detection
- Sweep set-point generation

Output of recorded data lives in `usmu.util.save`.

Examples
--------
Generating sweep set-points:
```python
from usmu.util import gen_linear_sweep_list
voltages = gen_linear_sweep_list(-1.0, 1.0, 50)
```
"""

from .check_hw import get_hw_ports, list_usb_serial_ports
from .defaults import (
    DEFAULT_BAUDRATE,
    DEFAULT_LOGLEVEL,
    DEFAULT_TIMEOUT,
    SETTLE_DELAY,
    SINGLE_LINE_ERR_LOG,
    TEST_LOGLEVEL,
    USB_PID,
    USB_VID,
)
from .list_gen import gen_linear_sweep_list
from .logging import (
    clear_log,
    format_error_response,
    get_log_filename,
    log_default_path,
    shutdown_log,
    start_log,
)

__all__ = [
    "DEFAULT_BAUDRATE",
    "DEFAULT_LOGLEVEL",
    "DEFAULT_TIMEOUT",
    "SETTLE_DELAY",
    "SINGLE_LINE_ERR_LOG",
    "TEST_LOGLEVEL",
    "USB_PID",
    "USB_VID",
    "clear_log",
    "format_error_response",
    "gen_linear_sweep_list",
    "get_hw_ports",
    "get_log_filename",
    "list_usb_serial_ports",
    "log_default_path",
    "shutdown_log",
    "start_log",
]

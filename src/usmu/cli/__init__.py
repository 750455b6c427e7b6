"""
Command-line interface for usmu.

This module provides command-line tools for the uSMU, including:

- Recording IV curves
- Listing attached devices and serial ports
- Low level device commands for testing and calibration

The CLI is built using the Click framework and provides a hierarchical
command structure with consistent help documentation.

Examples
--------
Recording an IV curve from -2 V to 2 V into a file:
```bash
$ usmu record-iv -s "-2 V" -e "2 V" -n 101 -o iv.csv
```

Choosing between two attached devices:
```bash
$ usmu ports
$ usmu record-iv --identity 1234
```

CLI Tree
--------

```
$ usmu --tree
cli
└── dev
    └── smu
        └── adc
        └── disable
        └── eeprom-read
        └── enable
        └── idn
        └── measure
        └── reset
        └── set
└── ports
└── record-iv
```
"""

from .base import cli, tree_option
from .dev import dev
from .iv import record_iv

cli.add_command(record_iv)
cli.add_command(dev)

__all__ = ["cli", "tree_option"]

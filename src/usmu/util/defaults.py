# -*- coding: utf-8 -*-

# serial link
DEFAULT_BAUDRATE = 9600
# the device withholds its reply while measuring; high oversampling may exceed this
DEFAULT_TIMEOUT = 1.0  # seconds
SETTLE_DELAY = 0.05  # seconds, minimum spacing after every transmitted command
LINE_TERMINATOR = "\n"

# USB identity of the uSMU virtual com port
USB_VID = 1155
USB_PID = 22336

# hardware limits
MAX_CURRENT_LIMIT_MA = 40.0
DAC_BITS = 12
DIFFERENTIAL_CHANNELS = (0, 2)
CURRENT_RANGES = (1, 2, 3, 4)

# record-iv defaults
DEFAULT_START_VOLTAGE = "-1 V"
DEFAULT_END_VOLTAGE = "1 V"
DEFAULT_STEPS = 50
DEFAULT_CURRENT_LIMIT = "20 mA"
DEFAULT_OVER_SAMPLING = 10
DEFAULT_DELAY = 0.0  # seconds

DEFAULT_LOGLEVEL = "INFO"
TEST_LOGLEVEL = "TRACE"
SINGLE_LINE_ERR_LOG = False  # reformat tracebacks into a single line

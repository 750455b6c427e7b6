"""Device base class.

Every hardware driver in usmu inherits from `Device`, which provides
configuration validation and the connection lifecycle every driver has to
implement:

- open(): connect to the hardware
- close(): disconnect from the hardware
- is_connected(): check connection status

Drivers may declare `required_config`, a mapping of keyword argument name to
type, which is checked when the device is constructed.

Examples
--------
```python
class MyInstrument(Device):
    required_config = {"port": str}

    def __init__(self, port: str):
        super().__init__(port=port)
        self._connected = False

    def open(self) -> tuple[bool, str]:
        self._connected = True
        return True, "Connected successfully"

    def close(self):
        self._connected = False

    def is_connected(self) -> bool:
        return self._connected
```
"""

from __future__ import annotations

from typing import Type

from loguru import logger

from usmu.types.errors import ConfigurationError


class Device:
    """Base class for all hardware devices.

    Attributes
    ----------
    required_config : dict[str, Type]
        Required configuration parameters and their types
    """

    required_config: dict[str, Type] = {}  # Required configuration keys

    def __init__(self, **config_kwargs):
        for key, value in config_kwargs.items():
            setattr(self, key, value)
        for key, value in self.required_config.items():
            if not hasattr(self, key):
                logger.error(
                    f"Device {self.__class__.__name__} missing required config key: "
                    + f"{key}"
                )
                raise ConfigurationError(
                    f"Device {self.__class__.__name__} missing required config "
                    + f"key: {key}"
                )
            if not isinstance(getattr(self, key), value):
                logger.error(
                    f"Device {self.__class__.__name__} config key {key} "
                    + f"has wrong type: {type(getattr(self, key))} (expected {value})"
                )
                raise ConfigurationError(
                    f"Device {self.__class__.__name__} config key {key} has "
                    + f"wrong type: {type(getattr(self, key))} (expected {value})"
                )

    def open(self) -> tuple[bool, str]:
        raise NotImplementedError()

    def close(self):
        raise NotImplementedError()

    def is_connected(self) -> bool:
        raise NotImplementedError()

    def __enter__(self):
        if not self.is_connected():
            self.open()
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()


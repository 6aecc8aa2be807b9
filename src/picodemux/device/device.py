"""Base class for sample sources.

A sample source is anything that hands raw per-channel voltages to the
demultiplexer: a digitizer driver, or the mock multiplexed digitizer used for
tests and `picodemux simulate`.

Subclasses declare the configuration they need in `required_config`; the
base class stores every keyword argument as an attribute and checks the
declared ones on construction.
"""

from __future__ import annotations

from typing import Type

from loguru import logger


class Device:
    """Base class for all sample sources.

    Required Methods
    --------------
    - open(): start acquiring, returns (success, message)
    - close(): stop acquiring
    - is_connected(): whether the source is currently open
    - get_channels(): physical channel ids, sorted
    - get_data(num_samples): next samples for every channel

    Attributes
    ----------
    required_config : dict[str, Type]
        Config keys every instance must be given, with their expected types.

    Examples
    --------
    ```python
    class MyDigitizer(Device):
        required_config = {"sample_rate": int}

        def open(self) -> tuple[bool, str]:
            self._connected = True
            return True, "Acquisition started"
    ```
    """

    required_config: dict[str, Type] = {}

    def __init__(self, **config_kwargs):
        for key, value in config_kwargs.items():
            setattr(self, key, value)
        self._check_config()

    def _check_config(self) -> None:
        name = self.__class__.__name__
        for key, expected in self.required_config.items():
            if not hasattr(self, key):
                msg = f"{name} needs config key '{key}'"
            elif not isinstance(getattr(self, key), expected):
                msg = (
                    f"{name} config key '{key}' should be {expected.__name__}, "
                    + f"got {type(getattr(self, key)).__name__}"
                )
            else:
                continue
            logger.error(msg)
            raise ValueError(msg)

    def open(self) -> tuple[bool, str]:
        raise NotImplementedError()

    def close(self):
        raise NotImplementedError()

    def is_connected(self) -> bool:
        raise NotImplementedError()

    def get_channels(self) -> list:
        raise NotImplementedError()

    def get_data(self, num_samples: int) -> dict:
        raise NotImplementedError()

    def unroll_metadata(self) -> dict:
        """Acquisition state of the source, for saving next to its data.

        State lives in single-underscore attributes (`_position` etc.); they
        are returned without the leading underscore.
        """
        private_prefix = f"_{self.__class__.__name__}"
        return {
            key[1:]: value
            for key, value in vars(self).items()
            if key.startswith("_") and not key.startswith(private_prefix)
        }

from __future__ import annotations

from typing import Optional, Sequence

import numpy as np
from loguru import logger

from picodemux.device.device import Device


def synth_multiplexed_block(
    num_samples: int,
    slot_width: float,
    levels: Sequence[float],
    pulse_amplitude: float = 6.0,
    offset: float = 0.0,
    drift: float = 0.0,
    noise_sigma: float = 0.0,
    rng: Optional[np.random.Generator] = None,
    start_sample: int = 0,
) -> np.ndarray:
    """Generate a multiplexed channel: a sync slot followed by K level slots.

    Parameters
    ----------
    num_samples : int
        Number of samples to generate.
    slot_width : float
        Nominal samples per multiplexer slot.
    levels : Sequence[float]
        Plateau voltage of each virtual channel, in slot order.
    pulse_amplitude : float
        Voltage of the sync slot.
    offset : float
        Sample index at which the first sync slot starts.
    drift : float
        Relative error of the multiplexer clock; the effective slot width is
        `slot_width * (1 + drift)`.
    noise_sigma : float
        Standard deviation of additive gaussian noise, volts.
    rng : np.random.Generator, optional
        Noise source. A fresh default_rng() is used if not given.
    start_sample : int
        Absolute index of the first generated sample, for continuing a stream.

    Returns
    -------
    np.ndarray
        Voltages, shape (num_samples,).
    """
    n_slots = len(levels) + 1
    slot_values = np.concatenate(([pulse_amplitude], np.asarray(levels, dtype=float)))
    eff_width = slot_width * (1.0 + drift)

    idx = np.arange(start_sample, start_sample + num_samples)
    slot = np.floor((idx - offset) / eff_width).astype(int) % n_slots
    signal = slot_values[slot]

    if noise_sigma > 0:
        rng = rng if rng is not None else np.random.default_rng()
        signal = signal + rng.normal(0.0, noise_sigma, num_samples)
    return signal


class MockMuxDigitizer(Device):
    """Digitizer returning synthetic multiplexed channels.

    Each channel carries its own list of virtual channel levels, all driven by
    one multiplexer clock. Consecutive `get_data` calls continue the same
    stream.

    Config keys
    -----------
    sample_rate : int
        Samples per second.
    multiplex_frequency_hz : int
        Multiplexer slot rate.
    levels : dict
        {channel id: sequence of virtual channel voltages}.
    pulse_amplitude, offset, drift, noise_sigma : float, optional
    seed : int, optional
        Seed for the noise generator.
    """

    required_config = {"sample_rate": int, "multiplex_frequency_hz": int, "levels": dict}

    def __init__(self, **config):
        config.setdefault("pulse_amplitude", 6.0)
        config.setdefault("offset", 0.0)
        config.setdefault("drift", 0.0)
        config.setdefault("noise_sigma", 0.0)
        config.setdefault("seed", None)
        super().__init__(**config)
        self._connected = False
        self._position = 0
        self._rng = np.random.default_rng(self.seed)

    def open(self):
        self._connected = True
        self._position = 0
        logger.info(
            "MockMuxDigitizer opened: {} channel(s) at {} S/s",
            len(self.levels),
            self.sample_rate,
        )
        return True, "MockMuxDigitizer opened"

    def close(self):
        self._connected = False

    def is_connected(self) -> bool:
        return self._connected

    @property
    def slot_width(self) -> float:
        return self.sample_rate / self.multiplex_frequency_hz

    def get_channels(self) -> list:
        return sorted(self.levels)

    def get_data(self, num_samples: int) -> dict:
        """Next `num_samples` samples of every channel.

        Raises
        ------
        RuntimeError
            If the device has not been opened.
        """
        if not self._connected:
            raise RuntimeError("MockMuxDigitizer is not open")
        data = {
            channel: synth_multiplexed_block(
                num_samples,
                self.slot_width,
                self.levels[channel],
                pulse_amplitude=self.pulse_amplitude,
                offset=self.offset,
                drift=self.drift,
                noise_sigma=self.noise_sigma,
                rng=self._rng,
                start_sample=self._position,
            )
            for channel in self.get_channels()
        }
        self._position += num_samples
        return data

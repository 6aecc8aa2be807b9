"""Configuration types for demultiplexing and block streaming."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

import simplejson as json
from loguru import logger
from mashumaro import DataClassDictMixin

from picodemux.util.defaults import (
    DEFAULT_BLOCK_LENGTH,
    DEFAULT_MAX_PENDING_BLOCKS,
    DEFAULT_MUX_FREQUENCY_HZ,
    DEFAULT_MUX_TOLERANCE,
    DEFAULT_NOISE_THRESHOLD,
    DEFAULT_RATE_WINDOW,
    DEFAULT_SYNC_THRESHOLD,
    DEFAULT_VIRT_CHANNEL_COUNT,
)


@dataclass(kw_only=True)
class DemuxConfig(DataClassDictMixin):
    """Parameters shared by every channel of one demultiplex call.

    Attributes
    ----------
    virt_channel_count : int
        Number of virtual channels (K) multiplexed onto each physical channel.
    amplitude_threshold : float
        Samples strictly above this voltage count as part of a sync pulse.
    tolerance : float
        Allowed relative deviation of a pulse block from the nominal slot
        width, in [0, 1).
    noise_threshold : float
        Window spread (max - min, volts) below which the slot estimate is the
        mean rather than the median.
    multiplex_frequency_hz : int
        Rate at which the multiplexer switches slots.
    reference_channel : str | None
        If set, sync pulses are detected on this channel only and reused for
        every channel in the block.
    skip_unsynced : bool
        Log and skip channels without enough sync pulses instead of failing
        the whole call.
    """

    virt_channel_count: int = DEFAULT_VIRT_CHANNEL_COUNT
    amplitude_threshold: float = DEFAULT_SYNC_THRESHOLD
    tolerance: float = DEFAULT_MUX_TOLERANCE
    noise_threshold: float = DEFAULT_NOISE_THRESHOLD
    multiplex_frequency_hz: int = DEFAULT_MUX_FREQUENCY_HZ
    reference_channel: Optional[str] = None
    skip_unsynced: bool = False

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        """Validate demux configuration."""
        if self.virt_channel_count < 1:
            raise ValueError("Virtual channel count must be at least 1")
        if self.multiplex_frequency_hz <= 0:
            raise ValueError("Multiplex frequency must be positive")
        if not 0 <= self.tolerance < 1:
            raise ValueError("Tolerance must be in [0, 1)")
        if self.noise_threshold < 0:
            raise ValueError("Noise threshold must be non-negative")

    def nominal_spacing(self, sample_rate: float) -> int:
        """Samples per multiplexer slot at the given sample rate.

        Parameters
        ----------
        sample_rate : float
            Digitizer sample rate in samples per second.

        Returns
        -------
        int
            Integer number of samples per slot.

        Raises
        ------
        ValueError
            If the sample rate is too low to resolve a single slot.
        """
        spacing = int(sample_rate) // self.multiplex_frequency_hz
        if spacing < 1:
            raise ValueError(
                f"Sample rate {sample_rate} is below the multiplex frequency "
                + f"{self.multiplex_frequency_hz} Hz"
            )
        return spacing


@dataclass(kw_only=True)
class StreamConfig(DataClassDictMixin):
    """Configuration for batching a live sample stream into blocks."""

    block_length: int = DEFAULT_BLOCK_LENGTH
    max_workers: int = 1
    rate_window_s: float = DEFAULT_RATE_WINDOW
    max_pending_blocks: int = DEFAULT_MAX_PENDING_BLOCKS

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        if self.block_length <= 0:
            raise ValueError("Block length must be positive")
        if self.max_workers < 1:
            raise ValueError("Need at least one worker")
        if self.rate_window_s <= 0:
            raise ValueError("Rate window must be positive")
        if self.max_pending_blocks < 1:
            raise ValueError("Must buffer at least one block per channel")


def load_config(path: str) -> DemuxConfig:
    """Read a DemuxConfig from a json file. Missing keys take their defaults."""
    with open(path, "r") as f:
        data = json.load(f)
    config = DemuxConfig.from_dict(data)
    logger.debug("Loaded demux config from {}: {}", path, config)
    return config


def save_config(config: DemuxConfig, path: str) -> str:
    path = os.path.abspath(path)
    with open(path, "w") as f:
        json.dump(config.to_dict(), f, indent=4)
    logger.debug("Saved demux config to {}", path)
    return path

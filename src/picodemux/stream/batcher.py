"""Rolling per-channel sample buffer that hands out fixed-size blocks."""

from __future__ import annotations

import threading
from typing import Mapping, Sequence

import numpy as np
from loguru import logger

from picodemux.types.samples import ChannelId
from picodemux.util.defaults import DEFAULT_MAX_PENDING_BLOCKS


class SampleBatcher:
    """Accumulate streamed samples and cut them into aligned blocks.

    The digitizer callback appends whatever it has received per channel; the
    processing side drains complete blocks of `block_length` samples. Both go
    through the same lock, so appends and drains may come from different
    threads.

    Blocks are time-aligned across channels: the i-th block of every channel
    is returned together, and only as many blocks are drained as the channel
    with the fewest buffered samples can fill. A channel that keeps receiving
    data while another has stalled keeps at most `max_pending_blocks` blocks
    after each drain; its oldest samples past that are dropped with a warning.

    Attributes
    ----------
    block_length : int
        Samples per channel in each drained block.
    max_pending_blocks : int
        Most complete blocks buffered per channel.
    """

    def __init__(
        self, block_length: int, max_pending_blocks: int = DEFAULT_MAX_PENDING_BLOCKS
    ):
        if block_length <= 0:
            raise ValueError("Block length must be positive")
        if max_pending_blocks < 1:
            raise ValueError("Must buffer at least one block per channel")
        self.block_length = block_length
        self.max_pending_blocks = max_pending_blocks
        self._lock = threading.Lock()
        self._buffers: dict[ChannelId, np.ndarray] = {}

    @property
    def max_samples(self) -> int:
        """Per-channel buffer limit, in samples."""
        return self.block_length * self.max_pending_blocks

    def append(self, channel_data: Mapping[ChannelId, Sequence[float]]) -> None:
        """Add newly acquired samples for one or more channels."""
        with self._lock:
            for channel, data in channel_data.items():
                data = np.asarray(data, dtype=float).ravel()
                if channel in self._buffers:
                    self._buffers[channel] = np.concatenate(
                        (self._buffers[channel], data)
                    )
                else:
                    self._buffers[channel] = data.copy()

    def drain_blocks(self) -> list[dict[ChannelId, np.ndarray]]:
        """Remove and return every complete, aligned block.

        Returns
        -------
        list[dict[ChannelId, np.ndarray]]
            One {channel: samples} map per block, oldest first. Empty if no
            channel has a full block yet.
        """
        with self._lock:
            if not self._buffers:
                return []
            n_blocks = min(len(buf) for buf in self._buffers.values()) // (
                self.block_length
            )
            n_samples = n_blocks * self.block_length
            blocks = [
                {
                    channel: buf[i * self.block_length : (i + 1) * self.block_length]
                    for channel, buf in self._buffers.items()
                }
                for i in range(n_blocks)
            ]
            for channel, buf in self._buffers.items():
                buf = buf[n_samples:]
                excess = len(buf) - self.max_samples
                if excess > 0:
                    logger.warning(
                        "Channel {} has {} samples waiting on slower channels, "
                        + "dropping the oldest {}",
                        channel,
                        len(buf),
                        excess,
                    )
                    buf = buf[excess:]
                self._buffers[channel] = buf.copy()

        if not blocks:
            return []
        logger.trace("Drained {} block(s) of {} samples", n_blocks, self.block_length)
        return blocks

    def pending(self) -> dict[ChannelId, int]:
        """Number of buffered (not yet drained) samples per channel."""
        with self._lock:
            return {channel: len(buf) for channel, buf in self._buffers.items()}

    def clear(self) -> None:
        with self._lock:
            self._buffers.clear()

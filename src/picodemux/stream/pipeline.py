"""
Streaming front-end for the demultiplexer.

`BlockPipeline` sits between the digitizer callback and the demux core: raw
per-channel chunks go in through `feed`, get batched into fixed-size blocks,
and come out as one `DemuxResult` per block. A block that cannot be
demultiplexed (no sync, too few pulses) is logged and dropped; acquisition
carries on with the next one.
"""

from __future__ import annotations

import time
from concurrent.futures import ThreadPoolExecutor
from itertools import repeat
from typing import Callable, Mapping, Optional, Sequence

import numpy as np
from loguru import logger

from picodemux.demux import demultiplex
from picodemux.types.config import DemuxConfig, StreamConfig
from picodemux.types.errors import VirtChannelError
from picodemux.types.samples import ChannelId, DemuxResult

from .batcher import SampleBatcher
from .rate import RateCalc


class BlockPipeline:
    """Batch a live sample stream and demultiplex each complete block.

    Parameters
    ----------
    config : DemuxConfig
        Demultiplexing parameters, shared by every block.
    stream_config : StreamConfig, optional
        Block length, worker count and rate window. Defaults to StreamConfig().
    sample_rate : float, optional
        Fixed digitizer sample rate. If None, the rate is measured from the
        incoming stream with `RateCalc`.
    clock : Callable[[], float], optional
        Time source for the rate measurement, by default `time.monotonic`.

    Attributes
    ----------
    blocks_processed : int
        Blocks demultiplexed successfully.
    blocks_dropped : int
        Blocks discarded because of a `VirtChannelError`, or because the
        sample rate is unknown or below the multiplex frequency.
    cycles_emitted : int
        Total cycles returned so far.
    """

    def __init__(
        self,
        config: DemuxConfig,
        stream_config: Optional[StreamConfig] = None,
        sample_rate: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config = config
        self.stream_config = stream_config or StreamConfig()
        self.sample_rate = sample_rate
        self._batcher = SampleBatcher(
            self.stream_config.block_length, self.stream_config.max_pending_blocks
        )
        self._rate = RateCalc(self.stream_config.rate_window_s, clock=clock)
        self._measured_rate = 0.0

        self.blocks_processed = 0
        self.blocks_dropped = 0
        self.cycles_emitted = 0

    @property
    def current_rate(self) -> float:
        """Sample rate used for the next block (fixed or measured)."""
        if self.sample_rate is not None:
            return self.sample_rate
        return self._measured_rate

    def feed(self, channel_data: Mapping[ChannelId, Sequence[float]]) -> list[DemuxResult]:
        """Add newly acquired samples and process any blocks that are complete.

        Parameters
        ----------
        channel_data : Mapping[ChannelId, Sequence[float]]
            New raw voltages per physical channel.

        Returns
        -------
        list[DemuxResult]
            One result per successfully processed block, oldest first.
        """
        n_new = max((np.size(v) for v in channel_data.values()), default=0)
        self._measured_rate = self._rate.update(n_new)
        self._batcher.append(channel_data)
        blocks = self._batcher.drain_blocks()
        if not blocks:
            return []
        return self.process_blocks(blocks, self.current_rate)

    def process_blocks(
        self, blocks: Sequence[Mapping[ChannelId, np.ndarray]], sample_rate: float
    ) -> list[DemuxResult]:
        """Demultiplex already-batched blocks, dropping those that fail."""
        if int(sample_rate) // self.config.multiplex_frequency_hz < 1:
            # unknown, or measured from too few arrivals to resolve a slot
            logger.warning(
                "Sample rate {} below multiplex frequency {} Hz, dropping {} block(s)",
                sample_rate,
                self.config.multiplex_frequency_hz,
                len(blocks),
            )
            self.blocks_dropped += len(blocks)
            return []

        if self.stream_config.max_workers > 1 and len(blocks) > 1:
            with ThreadPoolExecutor(max_workers=self.stream_config.max_workers) as ex:
                outcomes = list(ex.map(self._process_block, blocks, repeat(sample_rate)))
        else:
            outcomes = [self._process_block(block, sample_rate) for block in blocks]

        results = []
        for outcome in outcomes:
            if outcome is None:
                self.blocks_dropped += 1
            else:
                self.blocks_processed += 1
                self.cycles_emitted += len(outcome)
                results.append(outcome)
        return results

    def _process_block(
        self, block: Mapping[ChannelId, np.ndarray], sample_rate: float
    ) -> Optional[DemuxResult]:
        try:
            return demultiplex(block, sample_rate, self.config)
        except VirtChannelError as e:
            logger.warning("Dropping block: {}", e)
            return None

    def pending(self) -> dict[ChannelId, int]:
        return self._batcher.pending()

    def reset(self) -> None:
        """Discard buffered samples, the rate history and the counters."""
        self._batcher.clear()
        self._rate.reset()
        self._measured_rate = 0.0
        self.blocks_processed = 0
        self.blocks_dropped = 0
        self.cycles_emitted = 0

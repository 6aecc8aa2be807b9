"""
Demultiplex one block of physical channels into virtual channel cycles.

Runs sync detection and virtual channel extraction over every physical
channel of a block. Channels are always visited in sorted channel-id order, so
the concatenated output does not depend on the order the block mapping was
built in.
"""

from __future__ import annotations

from typing import Mapping, Sequence

import numpy as np
from loguru import logger

from picodemux.types.config import DemuxConfig
from picodemux.types.errors import NoSyncPulse, NotEnoughData
from picodemux.types.samples import ChannelId, DemuxResult

from .detect import find_sync_pulses
from .extract import extract_virt_channels


def channel_sync_pulses(
    channel: ChannelId,
    samples: np.ndarray,
    nominal_spacing: int,
    config: DemuxConfig,
) -> list[int]:
    """Detect sync pulses on one channel, requiring at least one full cycle.

    Raises
    ------
    NoSyncPulse
        If nothing in the block crosses the sync threshold.
    NotEnoughData
        If fewer than two pulses survive the width filter.
    """
    try:
        pulses = find_sync_pulses(
            samples,
            nominal_spacing,
            config.tolerance,
            config.amplitude_threshold,
        )
    except NoSyncPulse as e:
        raise NoSyncPulse(str(e), channel=channel) from None
    if len(pulses) < 2:
        raise NotEnoughData(
            f"Found {len(pulses)} sync pulse(s), need at least 2", channel=channel
        )
    return pulses


def _find_reference(blocks: Mapping[ChannelId, Sequence[float]], reference: str):
    for channel in blocks:
        if channel == reference or str(channel) == reference:
            return channel
    raise ValueError(
        f"Reference channel {reference} not in block channels {sorted(blocks)}"
    )


def demultiplex_by_channel(
    blocks: Mapping[ChannelId, Sequence[float]],
    sample_rate: float,
    config: DemuxConfig,
) -> dict[ChannelId, DemuxResult]:
    """Demultiplex a block, keeping each physical channel's cycles apart.

    Parameters
    ----------
    blocks : Mapping[ChannelId, Sequence[float]]
        Raw voltages per physical channel, all covering the same time window.
    sample_rate : float
        Digitizer sample rate in samples per second.
    config : DemuxConfig
        Demultiplexing parameters.

    Returns
    -------
    dict[ChannelId, DemuxResult]
        Cycles per physical channel, keyed in sorted channel order. Channels
        skipped because of `config.skip_unsynced` are absent.

    Raises
    ------
    NoSyncPulse, NotEnoughData
        When a channel has no usable sync pulses and `config.skip_unsynced`
        is False.
    ValueError
        If the sample rate is below the multiplex frequency, or the configured
        reference channel is missing from the block.
    """
    nominal_spacing = config.nominal_spacing(sample_rate)
    arrays = {ch: np.asarray(blocks[ch], dtype=float) for ch in sorted(blocks)}

    reference_pulses = None
    if config.reference_channel is not None:
        reference = _find_reference(arrays, config.reference_channel)
        try:
            reference_pulses = channel_sync_pulses(
                reference, arrays[reference], nominal_spacing, config
            )
        except (NoSyncPulse, NotEnoughData) as e:
            if not config.skip_unsynced:
                raise
            logger.warning("Skipping block, reference channel unsynced: {}", e)
            return {}

    result: dict[ChannelId, DemuxResult] = {}
    for channel, samples in arrays.items():
        if reference_pulses is not None:
            pulses = reference_pulses
        else:
            try:
                pulses = channel_sync_pulses(channel, samples, nominal_spacing, config)
            except (NoSyncPulse, NotEnoughData) as e:
                if not config.skip_unsynced:
                    raise
                logger.warning("Skipping channel {}: {}", channel, e)
                continue

        result[channel] = extract_virt_channels(
            pulses, samples, config.virt_channel_count, config.noise_threshold
        )
        logger.trace(
            "Channel {}: {} pulses -> {} cycles",
            channel,
            len(pulses),
            len(result[channel]),
        )

    return result


def demultiplex(
    blocks: Mapping[ChannelId, Sequence[float]],
    sample_rate: float,
    config: DemuxConfig,
) -> DemuxResult:
    """Split a block of physical channels into an ordered list of cycles.

    Each physical channel's cycles keep their sample-time order, and channels
    follow one another in sorted channel-id order. Same input, same output:
    nothing is kept between calls.

    Parameters
    ----------
    blocks : Mapping[ChannelId, Sequence[float]]
        Raw voltages per physical channel.
    sample_rate : float
        Digitizer sample rate in samples per second.
    config : DemuxConfig
        Demultiplexing parameters.

    Returns
    -------
    DemuxResult
        One {virtual channel: voltage} mapping per detected cycle.

    Examples
    --------
    >>> config = DemuxConfig(virt_channel_count=3, multiplex_frequency_hz=20)
    >>> cycles = demultiplex({"A": samples}, sample_rate=1000, config=config)
    """
    per_channel = demultiplex_by_channel(blocks, sample_rate, config)
    cycles = [cycle for channel_cycles in per_channel.values() for cycle in channel_cycles]
    logger.debug(
        "Demultiplexed {} channel(s) into {} cycles", len(per_channel), len(cycles)
    )
    return cycles

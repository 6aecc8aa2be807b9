"""
Virtual channel extraction.

Between two sync pulses the multiplexer steps through its K virtual channels,
one slot each. The interval between pulse centres is split into K + 1 equal
slots (the first one belongs to the sync pulse) and every virtual channel is
sampled around the centre of its own slot.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np
from loguru import logger

from picodemux.types.errors import OutOfBounds
from picodemux.types.samples import VirtSamples

from .estimate import robust_average


def slot_targets(
    start_pulse: int, end_pulse: int, virt_channel_count: int
) -> tuple[int, list[int]]:
    """Slot width and the target index of each virtual channel in one cycle."""
    spacing = (end_pulse - start_pulse) // (virt_channel_count + 1)
    targets = [start_pulse + spacing * (i + 1) for i in range(virt_channel_count)]
    return spacing, targets


def extract_virt_channels(
    pulses: Sequence[int],
    samples: Sequence[float] | np.ndarray,
    virt_channel_count: int,
    noise_threshold: float,
) -> list[VirtSamples]:
    """Estimate every virtual channel once per multiplex cycle.

    Every interval between consecutive pulses is processed, so `n` pulses
    give `n - 1` cycles. A slot whose estimation window falls outside the
    block is left out of that cycle's mapping.

    Parameters
    ----------
    pulses : Sequence[int]
        Ascending sync pulse centres.
    samples : Sequence[float] | np.ndarray
        Raw voltages of the block the pulses were found in.
    virt_channel_count : int
        Number of virtual channels per cycle.
    noise_threshold : float
        Passed through to `robust_average`.

    Returns
    -------
    list[VirtSamples]
        One {virtual channel: voltage} mapping per cycle, in sample order.
    """
    samples = np.asarray(samples, dtype=float)
    cycles = []
    for start_pulse, end_pulse in zip(pulses[:-1], pulses[1:]):
        spacing, targets = slot_targets(start_pulse, end_pulse, virt_channel_count)
        if spacing < 1:
            logger.warning(
                "Skipping cycle {}..{}: too short for {} virtual channels",
                start_pulse,
                end_pulse,
                virt_channel_count,
            )
            continue

        cycle: VirtSamples = {}
        for virt_channel, target in enumerate(targets):
            try:
                cycle[virt_channel] = robust_average(
                    samples, target, spacing, noise_threshold
                )
            except OutOfBounds as e:
                logger.debug("Dropped virtual channel {}: {}", virt_channel, e)
        cycles.append(cycle)
    return cycles

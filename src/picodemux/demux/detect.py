"""
Sync pulse detection.

The multiplexer marks the start of every cycle by driving the line high for
(roughly) one slot. A pulse shows up in the sampled block as a run of samples
above the sync threshold, broken up by noise near the threshold and with a
width that drifts with the multiplexer clock. Detection collapses each such
run into one representative sample index.

Usage:
    pulses = find_sync_pulses(samples, nominal_spacing=50, tolerance=0.8,
                              amplitude_threshold=3.5)
"""

from __future__ import annotations

from typing import Sequence

import numpy as np
from loguru import logger

from picodemux.types.errors import NoSyncPulse


def pulse_width_limits(nominal_spacing: int, tolerance: float) -> tuple[int, int]:
    """Lower and upper accepted pulse widths, in samples.

    Parameters
    ----------
    nominal_spacing : int
        Expected samples per multiplexer slot.
    tolerance : float
        Allowed relative deviation from the nominal width.

    Returns
    -------
    tuple[int, int]
        (lower_width, upper_width)
    """
    lower_width = int(round(nominal_spacing * (1.0 - tolerance)))
    upper_width = int(round(nominal_spacing * (1.0 + tolerance)))
    return lower_width, upper_width


def elevated_indices(samples: np.ndarray, amplitude_threshold: float) -> np.ndarray:
    """Indices of samples strictly above the threshold, in ascending order."""
    return np.flatnonzero(samples > amplitude_threshold)


def group_pulse_blocks(
    elevated: Sequence[int], upper_width: int
) -> list[tuple[int, int]]:
    """Merge elevated indices into (start, end) candidate blocks.

    A new block starts whenever an elevated index lies more than `upper_width`
    samples past the start of the current block. Gaps inside a block (noise
    dipping under the threshold) are bridged.

    Parameters
    ----------
    elevated : Sequence[int]
        Ascending elevated sample indices.
    upper_width : int
        Maximum extent of a single pulse, in samples.

    Returns
    -------
    list[tuple[int, int]]
        Inclusive (start, end) sample indices of each block.
    """
    if len(elevated) == 0:
        return []

    blocks = []
    start = end = int(elevated[0])
    for idx in elevated[1:]:
        idx = int(idx)
        if idx - start > upper_width:
            blocks.append((start, end))
            start = end = idx
        else:
            end = idx
    blocks.append((start, end))
    return blocks


def find_sync_pulses(
    samples: Sequence[float] | np.ndarray,
    nominal_spacing: int,
    tolerance: float,
    amplitude_threshold: float,
) -> list[int]:
    """Find the centre index of every sync pulse in one channel's block.

    Parameters
    ----------
    samples : Sequence[float] | np.ndarray
        Raw voltages for one physical channel.
    nominal_spacing : int
        Expected samples per multiplexer slot (sample rate / mux frequency).
    tolerance : float
        Allowed relative deviation of a pulse's width from `nominal_spacing`.
    amplitude_threshold : float
        Voltage a sample must exceed to count as part of a pulse.

    Returns
    -------
    list[int]
        Ascending pulse-centre indices. May hold fewer than two entries.

    Raises
    ------
    NoSyncPulse
        If no sample exceeds `amplitude_threshold`.
    """
    samples = np.asarray(samples, dtype=float)
    elevated = elevated_indices(samples, amplitude_threshold)
    if elevated.size == 0:
        raise NoSyncPulse(
            f"No sample above sync threshold {amplitude_threshold} V "
            + f"(block max {samples.max() if samples.size else float('nan')} V)"
        )

    lower_width, upper_width = pulse_width_limits(nominal_spacing, tolerance)
    blocks = group_pulse_blocks(elevated, upper_width)

    pulses = []
    for start, end in blocks:
        if end <= start:
            # degenerate block, a lone elevated sample
            continue
        width = end - start
        if width > lower_width:
            pulses.append(start + width // 2)
        else:
            logger.trace(
                "Rejected pulse block ({}, {}): width {} <= {}",
                start,
                end,
                width,
                lower_width,
            )

    logger.trace(
        "{} candidate blocks -> {} sync pulses (width limits {}..{})",
        len(blocks),
        len(pulses),
        lower_width,
        upper_width,
    )
    return pulses

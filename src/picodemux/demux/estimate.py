"""Slot value estimation."""

from __future__ import annotations

from typing import Sequence

import numpy as np

from picodemux.types.errors import OutOfBounds


def estimation_window(
    samples: np.ndarray, target_index: int, slot_width: int
) -> np.ndarray:
    """Return the samples within a third of a slot either side of the target.

    Raises
    ------
    OutOfBounds
        If the window does not fit entirely inside `samples`.
    """
    radius = slot_width // 3
    lo = target_index - radius
    hi = target_index + radius
    if lo < 0 or hi >= len(samples):
        raise OutOfBounds(
            f"Window [{lo}, {hi}] around {target_index} outside block of "
            + f"{len(samples)} samples"
        )
    return samples[lo : hi + 1]


def robust_average(
    samples: Sequence[float] | np.ndarray,
    target_index: int,
    slot_width: int,
    noise_threshold: float,
) -> float:
    """Noise-adaptive estimate of the slot value centred on `target_index`.

    Takes the window `samples[target - r .. target + r]` (inclusive), with
    `r = slot_width // 3`. When the window's spread (max - min) is below
    `noise_threshold` the arithmetic mean is returned, otherwise the median.

    This is a heuristic central-tendency selector, not a statistically
    rigorous estimator: a small spread is taken to mean plain noise (where the
    mean is fine), a large one to mean a slot edge or outlier leaked into the
    window (where the median holds up better).

    Parameters
    ----------
    samples : Sequence[float] | np.ndarray
        Raw voltages of the block.
    target_index : int
        Centre of the slot.
    slot_width : int
        Width of one virtual-channel slot, in samples.
    noise_threshold : float
        Spread (volts) separating the mean and median regimes.

    Returns
    -------
    float
        Estimated slot voltage.

    Raises
    ------
    OutOfBounds
        If the window would read outside the block.
    """
    samples = np.asarray(samples, dtype=float)
    window = np.sort(estimation_window(samples, target_index, slot_width))
    if window[-1] - window[0] < noise_threshold:
        return float(np.mean(window))
    return float(np.median(window))

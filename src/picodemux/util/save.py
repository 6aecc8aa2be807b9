# -*- coding: utf-8 -*-
"""Utilities for saving demultiplexed data.

A demux result is a list of cycles, each a {virtual channel: voltage} map.
On disk it becomes one row per cycle and one column per virtual channel.

Directory Structure
-----------------
Data is saved in a hierarchical structure:
<save_dir>/<YYYY>/<YYYY-MM>/<YYYY-MM-DD>_<project_name>/

File Naming
----------
Files within directories use 4-digit counters (0000-9999):
<counter>_<kind>.<extension>

Example: 0000_demux.csv, 0000_demux_metadata.json
"""

from __future__ import annotations

import csv
import glob
import os
import sys
import time
import typing
from datetime import datetime

import matplotlib
import matplotlib.pyplot as plt
import numpy as np
import simplejson as json
from loguru import logger

from .defaults import DEFAULT_SAVE_DIR

if typing.TYPE_CHECKING:
    from picodemux.types import DemuxResult

matplotlib.use("Agg")  # for headless operation

# =============================================================================
# Paths
# =============================================================================


def get_command_string() -> str:
    """Command line this process was started with (stored in the metadata)."""
    return " ".join(sys.argv)


class NumpyEncoder(json.JSONEncoder):
    """json encoder that understands numpy scalars and arrays"""

    def default(self, o):
        if isinstance(o, np.ndarray):
            return o.tolist()
        if isinstance(o, (np.integer, np.floating)):
            return o.item()
        return super().default(o)


_YEAR = "[0-9]" * 4
_2DIGIT = "[0-9]" * 2
_DATED_DIR_GLOB = f"{_YEAR}/{_YEAR}-{_2DIGIT}/{_YEAR}-{_2DIGIT}-{_2DIGIT}_"


def _project_dir(save_dir: str, project_name: str = "") -> str:
    """Dated directory results of `project_name` go into.

    A named project keeps writing into its most recently created dated
    directory, so a run spanning midnight stays in one place. Unnamed results
    go into today's directory.
    """
    root = os.path.abspath(save_dir)
    if project_name:
        existing = glob.glob(os.path.join(root, _DATED_DIR_GLOB + project_name))
        if existing:
            return max(existing, key=os.path.getctime)
    today = time.strftime("%Y/%Y-%m/%Y-%m-%d_")
    return os.path.normpath(os.path.join(root, today + project_name))


def _next_free_path(directory: str, kind: str) -> str:
    """`<directory>/<NNNN>_<kind>` with the lowest counter not yet in use.

    Raises
    ------
    ValueError
        If all counters 0000-9999 are taken.
    """
    taken = {name[:4] for name in os.listdir(directory)}
    for counter in range(10000):
        prefix = f"{counter:04}"
        if prefix not in taken:
            return os.path.join(directory, f"{prefix}_{kind}")
    raise ValueError(f"No free file counter left in {directory}")


def default_save_path(
    project_name: str = "", save_dir: str = DEFAULT_SAVE_DIR, kind: str = "demux"
) -> str:
    """Base path (no extension) for saving a new demux result.

    Creates the dated project directory if needed.
    """
    directory = _project_dir(save_dir, project_name)
    os.makedirs(directory, exist_ok=True)
    return _next_free_path(directory, kind)


# =============================================================================
# Formatting
# =============================================================================


def demux_to_rows(
    result: DemuxResult, virt_channel_count: int
) -> list[list[float | str]]:
    """One row per cycle, one column per virtual channel.

    Slots missing from a cycle (dropped during extraction) become empty
    strings so column positions stay fixed.
    """
    return [
        [cycle.get(i, "") for i in range(virt_channel_count)] for cycle in result
    ]


def demux_to_array(result: DemuxResult, virt_channel_count: int) -> np.ndarray:
    """Cycles x virtual channels array, NaN where a slot is missing."""
    arr = np.full((len(result), virt_channel_count), np.nan)
    for row, cycle in enumerate(result):
        for virt_channel, value in cycle.items():
            arr[row, virt_channel] = value
    return arr


# =============================================================================
# Public API
# =============================================================================


def save_demux_csv(
    result: DemuxResult, path: str, virt_channel_count: int, header: bool = True
) -> str:
    """Write a demux result as csv.

    Parameters
    ----------
    result : DemuxResult
        Cycles to write.
    path : str
        Output file path.
    virt_channel_count : int
        Number of columns.
    header : bool, optional
        Write the virtual channel ids as the first row, by default True.

    Returns
    -------
    str
        Absolute path written to.
    """
    path = os.path.abspath(path)
    with open(path, "w", newline="") as f:
        writer = csv.writer(f)
        if header:
            writer.writerow([str(i) for i in range(virt_channel_count)])
        writer.writerows(demux_to_rows(result, virt_channel_count))
    logger.info("Saved {} cycles to {}", len(result), path)
    return path


def save_demux_json(
    result: DemuxResult, path: str, metadata: typing.Optional[dict] = None
) -> str:
    path = os.path.abspath(path)
    with open(path, "w") as f:
        json.dump(
            {
                "command": get_command_string(),
                "timestamp": datetime.now().isoformat(),
                "metadata": metadata or {},
                "cycles": [{str(k): v for k, v in cycle.items()} for cycle in result],
            },
            f,
            cls=NumpyEncoder,
            indent=4,
            ignore_nan=True,
        )
    return path


def _save_demux_plot(result: DemuxResult, path: str, virt_channel_count: int) -> str:
    arr = demux_to_array(result, virt_channel_count)
    fig, ax = plt.subplots(figsize=(8, 4))
    for i in range(virt_channel_count):
        ax.plot(arr[:, i], label=f"V{i}")
    ax.set_xlabel("Cycle #")
    ax.set_ylabel("Voltage (V)")
    ax.legend(loc="upper right", fontsize=8)
    fig.savefig(path)
    plt.close(fig)
    return path


def _save_notes(base_path: str, notes: str = "") -> typing.Optional[str]:
    if notes:
        path = base_path + ".md"
        with open(path, "w") as f:
            f.write(notes)
        return path
    return None


def save_demux(
    result: DemuxResult,
    virt_channel_count: int,
    project_name: str = "",
    save_dir: str = DEFAULT_SAVE_DIR,
    metadata: typing.Optional[dict] = None,
    notes: str = "",
    plot: bool = False,
) -> str:
    """Save a demux result into the dated project directory.

    Writes `<base>.csv` and `<base>_metadata.json`, plus `<base>.png` when
    `plot` is set and `<base>.md` when notes are given.

    Returns
    -------
    str
        Base path (without extension) of the saved files.
    """
    base_path = default_save_path(project_name, save_dir)
    save_demux_csv(result, base_path + ".csv", virt_channel_count)
    save_demux_json(result, base_path + "_metadata.json", metadata)
    _save_notes(base_path, notes)
    if plot:
        _save_demux_plot(result, base_path + ".png", virt_channel_count)
    return base_path

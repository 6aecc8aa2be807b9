# -*- coding: utf-8 -*-
"""# picodemux

Recover time-division-multiplexed virtual channels from digitizer data.

An external controller (an Arduino switching board in the original bench
setup) steps K signals onto one scope input and marks the start of each cycle
with a high sync pulse. picodemux finds the sync pulses in each block of raw
samples, splits every inter-pulse interval into K slots and returns one
noise-robust value per virtual channel per cycle.

- `picodemux.demux`: the detection / estimation / extraction core
- `picodemux.stream`: batching a live stream into blocks
- `picodemux.device`: sample sources (mock multiplexed digitizer)
- `picodemux.util`: logging and saving
- `picodemux.cli`: the `picodemux` command
"""

from ._version import __version__
from .demux import demultiplex, demultiplex_by_channel
from .types import DemuxConfig, StreamConfig

"""
Recovering virtual channel values from a multiplexed sample block.

Stages, leaves first:

- `find_sync_pulses` : sync pulse centres in one channel's block
- `robust_average` : mean/median estimate of one slot
- `extract_virt_channels` : one {virtual channel: value} map per cycle
- `demultiplex` : all of the above across every physical channel of a block

Examples
--------
```python
from picodemux.demux import demultiplex
from picodemux.types import DemuxConfig

config = DemuxConfig(virt_channel_count=3, amplitude_threshold=5.0,
                     multiplex_frequency_hz=20)
cycles = demultiplex({"A": samples}, sample_rate=1000, config=config)
```
"""

from .demultiplex import channel_sync_pulses, demultiplex, demultiplex_by_channel
from .detect import find_sync_pulses, group_pulse_blocks, pulse_width_limits
from .estimate import estimation_window, robust_average
from .extract import extract_virt_channels, slot_targets

__all__ = [
    "channel_sync_pulses",
    "demultiplex",
    "demultiplex_by_channel",
    "find_sync_pulses",
    "group_pulse_blocks",
    "pulse_width_limits",
    "estimation_window",
    "robust_average",
    "extract_virt_channels",
    "slot_targets",
]

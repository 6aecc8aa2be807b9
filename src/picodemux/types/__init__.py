"""
Configuration, error and value types shared across picodemux.

- `DemuxConfig` / `StreamConfig`: explicit configuration objects passed into
  every call (no process-wide settings).
- `VirtChannelError` and subclasses: failures of a single block or slot.
- `VirtSamples` / `DemuxResult`: the demultiplexed output.

Examples
--------
```python
from picodemux.types import DemuxConfig
config = DemuxConfig(virt_channel_count=3, amplitude_threshold=5.0)
```
"""

from .config import DemuxConfig, StreamConfig, load_config, save_config
from .errors import NoSyncPulse, NotEnoughData, OutOfBounds, VirtChannelError
from .samples import ChannelId, DemuxResult, VirtChannel, VirtSamples

__all__ = [
    "DemuxConfig",
    "StreamConfig",
    "load_config",
    "save_config",
    "VirtChannelError",
    "NoSyncPulse",
    "NotEnoughData",
    "OutOfBounds",
    "ChannelId",
    "DemuxResult",
    "VirtChannel",
    "VirtSamples",
]

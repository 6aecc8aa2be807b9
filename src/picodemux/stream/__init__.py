"""
Turning a live sample stream into demultiplexed blocks.

- `SampleBatcher` : lock-guarded rolling buffer cut into fixed-size blocks
- `RateCalc` : sliding-window sample rate estimate
- `BlockPipeline` : batcher + demux with per-block error isolation
"""

from .batcher import SampleBatcher
from .pipeline import BlockPipeline
from .rate import RateCalc

__all__ = ["SampleBatcher", "BlockPipeline", "RateCalc"]

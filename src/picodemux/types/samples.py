"""Value types passed between the demux stages."""

from typing import Hashable

VirtChannel = int
VirtSamples = dict[VirtChannel, float]  # one multiplex cycle
DemuxResult = list[VirtSamples]
ChannelId = Hashable  # physical channel, e.g. "A" or 0

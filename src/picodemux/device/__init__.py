"""
Sample sources feeding the demultiplexer.

Real digitizer drivers live outside this package; `MockMuxDigitizer` stands in
for them in tests and in `picodemux simulate`.
"""

from .device import Device
from .mock import MockMuxDigitizer, synth_multiplexed_block

__all__ = ["Device", "MockMuxDigitizer", "synth_multiplexed_block"]

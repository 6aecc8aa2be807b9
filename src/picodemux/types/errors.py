"""Errors raised while splitting a physical channel into virtual channels.

All of them derive from `VirtChannelError`, so acquisition loops can catch a
single type per block and keep running.
"""

from __future__ import annotations

from typing import Hashable, Optional


class VirtChannelError(Exception):
    """Base class for demultiplexing failures.

    Attributes
    ----------
    channel : Hashable | None
        Physical channel the failure happened on, when known.
    """

    def __init__(self, msg: str = "", channel: Optional[Hashable] = None):
        self.channel = channel
        if channel is not None:
            msg = f"[channel {channel}] {msg}"
        super().__init__(msg)


class NoSyncPulse(VirtChannelError):
    """No sample in the block rose above the sync amplitude threshold."""

    pass


class NotEnoughData(VirtChannelError):
    """Fewer than two sync pulses were found, so no full cycle is bounded."""

    pass


class OutOfBounds(VirtChannelError):
    """An estimation window would read outside the sample block."""

    pass

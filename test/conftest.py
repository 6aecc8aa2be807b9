import numpy as np
import pytest

from picodemux.device import synth_multiplexed_block
from picodemux.types import DemuxConfig

# 1000 samples/s, 20 slots/s -> 50 samples per slot, 4 slots (sync + 3) per cycle
SCENARIO_SLOT_WIDTH = 50
SCENARIO_LEVELS = [1.0, 2.0, 3.0]


def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line("markers", "slow: marks test as slow running test")


@pytest.fixture
def scenario_config():
    return DemuxConfig(
        virt_channel_count=3,
        amplitude_threshold=5.0,
        tolerance=0.8,
        noise_threshold=0.5,
        multiplex_frequency_hz=20,
    )


@pytest.fixture
def scenario_block():
    """1000-sample block, sync pulses (6 V) over 75-124, 275-324, ... 875-924."""
    return synth_multiplexed_block(
        1000,
        SCENARIO_SLOT_WIDTH,
        SCENARIO_LEVELS,
        pulse_amplitude=6.0,
        offset=75,
    )


@pytest.fixture
def rng():
    return np.random.default_rng(1234)

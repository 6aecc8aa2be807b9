"""Tests for sync pulse detection."""

import numpy as np
import pytest

from picodemux.demux import find_sync_pulses, group_pulse_blocks, pulse_width_limits
from picodemux.types import NoSyncPulse

SCENARIO_SLOT_WIDTH = 50
SCENARIO_PULSE_CENTRES = [99, 299, 499, 699, 899]


def test_width_limits():
    assert pulse_width_limits(50, 0.8) == (10, 90)
    assert pulse_width_limits(100, 0.0) == (100, 100)


def test_scenario_pulses(scenario_block):
    pulses = find_sync_pulses(scenario_block, SCENARIO_SLOT_WIDTH, 0.8, 5.0)
    assert pulses == SCENARIO_PULSE_CENTRES


def test_first_pulse_in_block_is_kept(scenario_block):
    """The opening pulse must not be thrown away as an initialisation artifact."""
    pulses = find_sync_pulses(scenario_block, SCENARIO_SLOT_WIDTH, 0.8, 5.0)
    assert pulses[0] == 99


def test_no_elevated_samples():
    samples = np.linspace(0.0, 4.9, 500)
    with pytest.raises(NoSyncPulse):
        find_sync_pulses(samples, SCENARIO_SLOT_WIDTH, 0.8, 5.0)


def test_threshold_is_strict():
    samples = np.full(200, 5.0)
    with pytest.raises(NoSyncPulse):
        find_sync_pulses(samples, SCENARIO_SLOT_WIDTH, 0.8, 5.0)


def test_narrow_spike_rejected():
    samples = np.zeros(1000)
    samples[500:503] = 6.0  # width 2, lower limit is 10
    assert find_sync_pulses(samples, SCENARIO_SLOT_WIDTH, 0.8, 5.0) == []


def test_lone_sample_rejected():
    samples = np.zeros(1000)
    samples[400] = 6.0
    assert find_sync_pulses(samples, SCENARIO_SLOT_WIDTH, 0.0, 5.0) == []


def test_spike_between_pulses_ignored(scenario_block):
    samples = scenario_block.copy()
    samples[170:173] = 6.0  # far enough from both neighbouring pulses
    pulses = find_sync_pulses(samples, SCENARIO_SLOT_WIDTH, 0.8, 5.0)
    assert pulses == SCENARIO_PULSE_CENTRES


def test_dropout_inside_pulse_is_bridged(scenario_block):
    samples = scenario_block.copy()
    samples[95:100] = 0.0  # noise dip under the threshold mid-pulse
    pulses = find_sync_pulses(samples, SCENARIO_SLOT_WIDTH, 0.8, 5.0)
    assert pulses == SCENARIO_PULSE_CENTRES


def test_group_pulse_blocks():
    elevated = [5, 6, 7, 200, 201, 290, 400]
    assert group_pulse_blocks(elevated, 90) == [(5, 7), (200, 290), (400, 400)]
    assert group_pulse_blocks([], 90) == []


def test_accepts_plain_lists():
    samples = [0.0] * 20 + [6.0] * 20 + [0.0] * 20
    assert find_sync_pulses(samples, 20, 0.5, 5.0) == [29]

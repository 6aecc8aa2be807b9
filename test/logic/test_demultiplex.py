"""Tests for the block demultiplexer.

This module tests:
1. Recovery of known plateau values from synthetic multiplexed blocks
2. Error reporting for blocks without usable sync pulses
3. Deterministic channel ordering and repeatability
4. Per-channel skipping and reference-channel sync sharing
"""

import dataclasses

import numpy as np
import pytest

from picodemux.demux import demultiplex, demultiplex_by_channel
from picodemux.device import synth_multiplexed_block
from picodemux.types import DemuxConfig, NoSyncPulse, NotEnoughData, VirtChannelError

SAMPLE_RATE = 1000


def test_concrete_scenario(scenario_block, scenario_config):
    cycles = demultiplex({"A": scenario_block}, SAMPLE_RATE, scenario_config)

    assert len(cycles) == 4
    for cycle in cycles:
        assert cycle == pytest.approx({0: 1.0, 1: 2.0, 2: 3.0})


@pytest.mark.parametrize("levels", [[0.5, 4.0], [1.0, 2.0, 3.0, 4.0, 0.0]])
def test_recovers_plateaus(levels):
    k = len(levels)
    config = DemuxConfig(
        virt_channel_count=k,
        amplitude_threshold=5.0,
        multiplex_frequency_hz=SAMPLE_RATE // 40,
    )
    block = synth_multiplexed_block(4000, 40, levels, offset=13)
    cycles = demultiplex({0: block}, SAMPLE_RATE, config)

    assert len(cycles) >= 3
    for cycle in cycles:
        assert cycle == pytest.approx(dict(enumerate(levels)))


def test_recovers_plateaus_with_noise_and_drift(scenario_config, rng):
    block = synth_multiplexed_block(
        1000, 50, [1.0, 2.0, 3.0], offset=75, drift=0.02, noise_sigma=0.05, rng=rng
    )
    cycles = demultiplex({"A": block}, SAMPLE_RATE, scenario_config)

    assert len(cycles) == 4
    for cycle in cycles:
        assert cycle == pytest.approx({0: 1.0, 1: 2.0, 2: 3.0}, abs=0.05)


def test_no_sync_pulse(scenario_config):
    block = np.full(1000, 2.0)
    with pytest.raises(NoSyncPulse) as exc_info:
        demultiplex({"B": block}, SAMPLE_RATE, scenario_config)
    assert exc_info.value.channel == "B"


def test_not_enough_data(scenario_config):
    block = np.zeros(1000)
    block[400:450] = 6.0
    with pytest.raises(NotEnoughData) as exc_info:
        demultiplex({"A": block}, SAMPLE_RATE, scenario_config)
    assert exc_info.value.channel == "A"
    assert isinstance(exc_info.value, VirtChannelError)


def test_one_bad_channel_fails_call(scenario_block, scenario_config):
    blocks = {"A": scenario_block, "B": np.zeros(1000)}
    with pytest.raises(NoSyncPulse):
        demultiplex(blocks, SAMPLE_RATE, scenario_config)


def test_skip_unsynced(scenario_block, scenario_config):
    config = dataclasses.replace(scenario_config, skip_unsynced=True)
    blocks = {"A": scenario_block, "B": np.zeros(1000)}
    per_channel = demultiplex_by_channel(blocks, SAMPLE_RATE, config)

    assert list(per_channel) == ["A"]
    assert len(demultiplex(blocks, SAMPLE_RATE, config)) == 4


def test_channel_order_is_sorted(scenario_block, scenario_config):
    other = synth_multiplexed_block(1000, 50, [0.5, 1.5, 2.5], offset=75)
    # insertion order B, A; output must still be A's cycles first
    cycles = demultiplex({"B": other, "A": scenario_block}, SAMPLE_RATE, scenario_config)

    assert len(cycles) == 8
    assert [c[0] for c in cycles] == pytest.approx([1.0] * 4 + [0.5] * 4)


def test_repeatable(scenario_config, rng):
    blocks = {
        ch: synth_multiplexed_block(
            1000, 50, [1.0, 2.0, 3.0], offset=75, noise_sigma=0.1, rng=rng
        )
        for ch in ("A", "B")
    }
    first = demultiplex(blocks, SAMPLE_RATE, scenario_config)
    second = demultiplex(blocks, SAMPLE_RATE, scenario_config)

    assert first == second
    assert repr(first) == repr(second)


def test_input_not_modified(scenario_block, scenario_config):
    before = scenario_block.copy()
    demultiplex({"A": scenario_block}, SAMPLE_RATE, scenario_config)
    np.testing.assert_array_equal(scenario_block, before)


def test_reference_channel(scenario_block, scenario_config):
    config = dataclasses.replace(scenario_config, reference_channel="A")
    flat = np.full(1000, 2.5)  # no sync pulses of its own
    per_channel = demultiplex_by_channel(
        {"A": scenario_block, "B": flat}, SAMPLE_RATE, config
    )

    assert list(per_channel) == ["A", "B"]
    for cycle in per_channel["B"]:
        assert cycle == pytest.approx({0: 2.5, 1: 2.5, 2: 2.5})


def test_reference_channel_matches_int_ids(scenario_block, scenario_config):
    config = dataclasses.replace(scenario_config, reference_channel="0")
    cycles = demultiplex({0: scenario_block}, SAMPLE_RATE, config)
    assert len(cycles) == 4


def test_missing_reference_channel(scenario_block, scenario_config):
    config = dataclasses.replace(scenario_config, reference_channel="C")
    with pytest.raises(ValueError):
        demultiplex({"A": scenario_block}, SAMPLE_RATE, config)


def test_unsynced_reference_skipped(scenario_block, scenario_config):
    config = dataclasses.replace(
        scenario_config, reference_channel="B", skip_unsynced=True
    )
    assert demultiplex({"A": scenario_block, "B": np.zeros(1000)}, SAMPLE_RATE, config) == []


def test_sample_rate_below_mux_frequency(scenario_block, scenario_config):
    with pytest.raises(ValueError):
        demultiplex({"A": scenario_block}, 10, scenario_config)

import dataclasses
import os
from typing import Optional

import click
import numpy as np
from click_option_group import optgroup
from loguru import logger

from picodemux.demux import demultiplex
from picodemux.device import MockMuxDigitizer
from picodemux.types import DemuxConfig, VirtChannelError, load_config
from picodemux.util import (
    demux_to_rows,
    format_error_response,
    save_demux,
    save_demux_csv,
)
from picodemux.util.defaults import DEFAULT_MUX_FREQUENCY_HZ, DEFAULT_SAVE_DIR

from .base import log_options, setup_logging


def channel_name(index: int) -> str:
    """Scope-style channel letter for a column/row index (0 -> "A")."""
    return chr(ord("A") + index)


def load_samples(path: str) -> dict[str, np.ndarray]:
    """Load raw samples from .npy or .csv into {channel: samples}.

    `.npy` files hold a 1-D single channel or a 2-D (channels, samples) array.
    `.csv` files hold one column per channel, optionally with a header row
    naming the channels.
    """
    ext = os.path.splitext(path)[1].lower()
    if ext == ".npy":
        data = np.atleast_2d(np.load(path))
        return {channel_name(i): row for i, row in enumerate(data)}
    if ext == ".csv":
        with open(path, "r") as f:
            first = f.readline().strip().split(",")
        try:
            [float(v) for v in first]
            names = [channel_name(i) for i in range(len(first))]
            data = np.loadtxt(path, delimiter=",", ndmin=2)
        except ValueError:
            names = [v.strip() for v in first]
            data = np.loadtxt(path, delimiter=",", ndmin=2, skiprows=1)
        return {name: data[:, i] for i, name in enumerate(names)}
    raise click.BadParameter(
        f"Unsupported file type '{ext}' (expected .npy or .csv)", param_hint="INPUT"
    )


def build_config(config_path: Optional[str], **overrides) -> DemuxConfig:
    """Config file (or defaults) with any CLI options that were given on top."""
    base = load_config(config_path) if config_path else DemuxConfig()
    changes = {k: v for k, v in overrides.items() if v is not None}
    return dataclasses.replace(base, **changes)


@click.command(name="demux")
@click.argument("input_path", metavar="INPUT", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--sample-rate",
    "-s",
    type=float,
    required=True,
    help="Digitizer sample rate in samples per second",
)
@optgroup.group("Multiplexer Parameters")
@optgroup.option(
    "--config",
    "-cf",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="json demux config; options below override it",
)
@optgroup.option(
    "--virt-channels", "-k", type=int, default=None, help="Virtual channels per cycle"
)
@optgroup.option(
    "--threshold", "-t", type=float, default=None, help="Sync pulse threshold (V)"
)
@optgroup.option(
    "--tolerance",
    type=float,
    default=None,
    help="Allowed relative pulse width deviation, in [0, 1)",
)
@optgroup.option(
    "--noise-threshold",
    type=float,
    default=None,
    help="Window spread (V) below which the mean is used instead of the median",
)
@optgroup.option(
    "--mux-freq", "-f", type=int, default=None, help="Multiplexer slot rate (Hz)"
)
@optgroup.option(
    "--reference-channel",
    "-r",
    type=str,
    default=None,
    help="Detect sync pulses on this channel only and reuse them for all channels",
)
@optgroup.option(
    "--skip-unsynced",
    is_flag=True,
    default=False,
    help="Skip channels without sync pulses instead of failing",
)
@optgroup.group("Output")
@optgroup.option(
    "--output", "-o", type=click.Path(dir_okay=False), default=None, help="csv file"
)
@optgroup.option(
    "--project-name",
    "-p",
    type=str,
    default=None,
    help="Save into the dated project directory instead of --output",
)
@optgroup.option(
    "--save-dir", type=click.Path(file_okay=False), default=DEFAULT_SAVE_DIR
)
@optgroup.option("--plot", is_flag=True, default=False, help="Also save a png overview")
@log_options
def demux(
    input_path: str,
    sample_rate: float,
    config_path: Optional[str],
    virt_channels: Optional[int],
    threshold: Optional[float],
    tolerance: Optional[float],
    noise_threshold: Optional[float],
    mux_freq: Optional[int],
    reference_channel: Optional[str],
    skip_unsynced: bool,
    output: Optional[str],
    project_name: Optional[str],
    save_dir: str,
    plot: bool,
    log_to_file: bool,
    log_to_stdout: bool,
    log_path: str,
    log_level: str,
):
    """Demultiplex a recorded block of raw samples.

    INPUT is a .npy (channels x samples) or .csv (one column per channel)
    recording. Results are one row per cycle, one column per virtual channel.
    """
    setup_logging(log_path, log_to_file, log_to_stdout, log_level)

    try:
        config = build_config(
            config_path,
            virt_channel_count=virt_channels,
            amplitude_threshold=threshold,
            tolerance=tolerance,
            noise_threshold=noise_threshold,
            multiplex_frequency_hz=mux_freq,
            reference_channel=reference_channel,
            skip_unsynced=skip_unsynced or None,
        )
    except ValueError as e:
        raise click.UsageError(f"Invalid demux configuration: {e}")

    blocks = load_samples(input_path)
    logger.info(
        "Loaded {} channel(s) of {} samples from {}",
        len(blocks),
        max(len(v) for v in blocks.values()),
        input_path,
    )

    try:
        cycles = demultiplex(blocks, sample_rate, config)
    except (VirtChannelError, ValueError) as e:
        logger.debug("Demultiplexing failed:\n{}", format_error_response())
        raise click.ClickException(str(e))

    k = config.virt_channel_count
    if project_name is not None:
        base_path = save_demux(
            cycles,
            k,
            project_name=project_name,
            save_dir=save_dir,
            metadata={
                "input": os.path.abspath(input_path),
                "sample_rate": sample_rate,
                "config": config.to_dict(),
            },
            plot=plot,
        )
        click.echo(f"Saved {len(cycles)} cycles to {base_path}.csv")
    elif output is not None:
        path = save_demux_csv(cycles, output, k)
        click.echo(f"Saved {len(cycles)} cycles to {path}")
    else:
        for row in demux_to_rows(cycles, k):
            click.echo(",".join(str(v) for v in row))


@click.command(name="simulate")
@click.argument("output", type=click.Path(dir_okay=False))
@optgroup.group("Signal Parameters")
@optgroup.option(
    "--levels",
    "-l",
    multiple=True,
    default=("1,2,3,4",),
    help="Comma separated virtual channel voltages, one option per channel",
)
@optgroup.option("--num-samples", "-n", type=int, default=DEFAULT_MUX_FREQUENCY_HZ * 10)
@optgroup.option("--sample-rate", "-s", type=int, default=DEFAULT_MUX_FREQUENCY_HZ * 10)
@optgroup.option("--mux-freq", "-f", type=int, default=DEFAULT_MUX_FREQUENCY_HZ)
@optgroup.option("--pulse-amplitude", "-a", type=float, default=6.0)
@optgroup.option(
    "--offset", type=float, default=0.0, help="Sample where the first sync slot starts"
)
@optgroup.option(
    "--drift", type=float, default=0.0, help="Relative multiplexer clock error"
)
@optgroup.option("--noise", type=float, default=0.0, help="Gaussian noise sigma (V)")
@optgroup.option("--seed", type=int, default=None)
@log_options
def simulate(
    output: str,
    levels: tuple[str, ...],
    num_samples: int,
    sample_rate: int,
    mux_freq: int,
    pulse_amplitude: float,
    offset: float,
    drift: float,
    noise: float,
    seed: Optional[int],
    log_to_file: bool,
    log_to_stdout: bool,
    log_path: str,
    log_level: str,
):
    """Write a synthetic multiplexed recording (.npy, channels x samples)."""
    setup_logging(log_path, log_to_file, log_to_stdout, log_level)
    try:
        channel_levels = {
            channel_name(i): [float(v) for v in spec.split(",")]
            for i, spec in enumerate(levels)
        }
    except ValueError:
        raise click.BadParameter(
            "Levels must be comma separated numbers", param_hint="--levels"
        )

    digitizer = MockMuxDigitizer(
        sample_rate=sample_rate,
        multiplex_frequency_hz=mux_freq,
        levels=channel_levels,
        pulse_amplitude=pulse_amplitude,
        offset=offset,
        drift=drift,
        noise_sigma=noise,
        seed=seed,
    )
    digitizer.open()
    data = digitizer.get_data(num_samples)
    logger.debug("Simulated digitizer state: {}", digitizer.unroll_metadata())
    digitizer.close()

    np.save(output, np.vstack([data[ch] for ch in digitizer.get_channels()]))
    click.echo(f"Wrote {len(data)} channel(s) x {num_samples} samples to {output}")

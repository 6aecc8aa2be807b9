import click.testing
import numpy as np
import pytest
import simplejson as json

from picodemux.cli import cli
from picodemux.device import synth_multiplexed_block

QUIET = ["--no-log-to-stdout"]
SCENARIO_ARGS = ["-s", "1000", "-f", "20", "-k", "3", "-t", "5"]


@pytest.fixture
def cli_runner():
    return click.testing.CliRunner()


@pytest.fixture
def recording(tmp_path, cli_runner):
    path = tmp_path / "sim.npy"
    result = cli_runner.invoke(
        cli,
        ["simulate", str(path), "-l", "1,2,3", "-s", "1000", "-f", "20", "-n", "1000"]
        + ["--offset", "75"]
        + QUIET,
    )
    assert result.exit_code == 0, result.output
    return path


class TestBaseCLI:
    def test_tree(self, cli_runner):
        result = cli_runner.invoke(cli, ["--tree"])
        assert result.exit_code == 0
        assert result.output.splitlines() == [
            "cli",
            "└── config",
            "└── demux",
            "└── simulate",
        ]

    def test_config_defaults(self, cli_runner):
        result = cli_runner.invoke(cli, ["config"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["virt_channel_count"] == 4
        assert data["amplitude_threshold"] == 3.5

    def test_config_file(self, cli_runner, tmp_path):
        path = tmp_path / "demux.json"
        path.write_text(json.dumps({"virt_channel_count": 2}))
        result = cli_runner.invoke(cli, ["config", "-cf", str(path)])
        assert result.exit_code == 0
        assert json.loads(result.output)["virt_channel_count"] == 2

    def test_config_file_invalid(self, cli_runner, tmp_path):
        path = tmp_path / "demux.json"
        path.write_text(json.dumps({"virt_channel_count": 0}))
        result = cli_runner.invoke(cli, ["config", "-cf", str(path)])
        assert result.exit_code == 2


class TestSimulateCLI:
    def test_writes_channels(self, cli_runner, tmp_path):
        path = tmp_path / "two.npy"
        result = cli_runner.invoke(
            cli,
            ["simulate", str(path), "-l", "1,2", "-l", "3,4", "-n", "500"] + QUIET,
        )
        assert result.exit_code == 0
        assert np.load(path).shape == (2, 500)

    def test_bad_levels(self, cli_runner, tmp_path):
        result = cli_runner.invoke(
            cli, ["simulate", str(tmp_path / "x.npy"), "-l", "1,a"] + QUIET
        )
        assert result.exit_code == 2
        assert "comma separated" in result.output


class TestDemuxCLI:
    def test_prints_cycles(self, cli_runner, recording):
        result = cli_runner.invoke(cli, ["demux", str(recording)] + SCENARIO_ARGS + QUIET)
        assert result.exit_code == 0, result.output
        assert result.output.splitlines() == ["1.0,2.0,3.0"] * 4

    def test_csv_output(self, cli_runner, recording, tmp_path):
        out = tmp_path / "cycles.csv"
        result = cli_runner.invoke(
            cli, ["demux", str(recording), "-o", str(out)] + SCENARIO_ARGS + QUIET
        )
        assert result.exit_code == 0
        assert "Saved 4 cycles" in result.output
        assert out.read_text().splitlines() == ["0,1,2"] + ["1.0,2.0,3.0"] * 4

    def test_project_output(self, cli_runner, recording, tmp_path):
        result = cli_runner.invoke(
            cli,
            ["demux", str(recording), "-p", "bench", "--save-dir", str(tmp_path)]
            + SCENARIO_ARGS
            + QUIET,
        )
        assert result.exit_code == 0
        assert list(tmp_path.glob("*/*/*_bench/0000_demux.csv"))
        assert list(tmp_path.glob("*/*/*_bench/0000_demux_metadata.json"))

    def test_no_sync_pulse(self, cli_runner, tmp_path):
        path = tmp_path / "zeros.npy"
        np.save(path, np.zeros(1000))
        result = cli_runner.invoke(cli, ["demux", str(path)] + SCENARIO_ARGS + QUIET)
        assert result.exit_code == 1
        assert "No sample above" in result.output

    def test_skip_unsynced(self, cli_runner, tmp_path):
        path = tmp_path / "mixed.npy"
        block = synth_multiplexed_block(1000, 50, [1.0, 2.0, 3.0], offset=75)
        np.save(path, np.vstack((block, np.zeros(1000))))
        result = cli_runner.invoke(
            cli, ["demux", str(path), "--skip-unsynced"] + SCENARIO_ARGS + QUIET
        )
        assert result.exit_code == 0
        assert len(result.output.splitlines()) == 4

    def test_invalid_tolerance(self, cli_runner, recording):
        result = cli_runner.invoke(
            cli, ["demux", str(recording), "--tolerance", "1.5"] + SCENARIO_ARGS + QUIET
        )
        assert result.exit_code == 2
        assert "Invalid demux configuration" in result.output

    def test_csv_input_with_reference(self, cli_runner, tmp_path):
        path = tmp_path / "rec.csv"
        block = synth_multiplexed_block(1000, 50, [1.0, 2.0, 3.0], offset=75)
        flat = np.full(1000, 2.5)
        np.savetxt(
            path, np.column_stack((block, flat)), delimiter=",", header="A,B", comments=""
        )
        result = cli_runner.invoke(
            cli, ["demux", str(path), "-r", "A"] + SCENARIO_ARGS + QUIET
        )
        assert result.exit_code == 0, result.output
        assert result.output.splitlines() == ["1.0,2.0,3.0"] * 4 + ["2.5,2.5,2.5"] * 4

    def test_unknown_reference(self, cli_runner, recording):
        result = cli_runner.invoke(
            cli, ["demux", str(recording), "-r", "Z"] + SCENARIO_ARGS + QUIET
        )
        assert result.exit_code == 1
        assert "Reference channel" in result.output

    def test_unsupported_extension(self, cli_runner, tmp_path):
        path = tmp_path / "rec.txt"
        path.write_text("1,2,3\n")
        result = cli_runner.invoke(cli, ["demux", str(path), "-s", "1000"] + QUIET)
        assert result.exit_code == 2
        assert "Unsupported file type" in result.output

    def test_sample_rate_required(self, cli_runner, recording):
        result = cli_runner.invoke(cli, ["demux", str(recording)] + QUIET)
        assert result.exit_code == 2

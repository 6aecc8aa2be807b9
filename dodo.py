# -*- coding: utf-8 -*-
# pydoit task file
# see https://pydoit.org/
# run from this dir with `doit`, or `doit list`, `doit help` etc. (pip install doit 1st)

from doit.action import CmdAction

_TEST_PARAMS = [
    {"name": "help", "long": "help", "default": False, "type": bool},
    {"name": "keyword", "short": "k", "default": ""},
    {"name": "speed", "short": "s", "default": ""},
    {"name": "retry", "short": "r", "default": False, "type": bool},
    {"name": "print_logs", "short": "p", "default": False, "type": bool},
    {"name": "full_trace", "short": "f", "default": False, "type": bool},
    {"name": "show_time", "short": "t", "default": False, "type": bool},
]


def _build_pytest_command(
    test_dir,
    keyword="",
    speed="",
    retry=False,
    print_logs=False,
    full_trace=False,
    show_time=False,
):
    """Helper function to build pytest commands for test tasks."""
    cmd = ["pytest"]

    if print_logs:
        cmd.append("--capture=no")
    if full_trace:
        cmd.append("--full-trace")
    if show_time:
        cmd.append("--durations=0")

    cmd.extend(["--color=yes", "-vv", "-x"])

    if retry:
        cmd.append("--lf")
    if keyword:
        cmd.extend(["-k", keyword])
    if speed:
        if speed == "slow":
            cmd.extend(["-m", "slow"])
        elif speed in ["not slow", "fast"]:
            cmd.extend(["-m", '"not slow"'])
        elif speed == "all":
            pass
        else:
            raise ValueError(
                f"Invalid speed filter: {speed}. Use 'slow', 'not slow', 'fast', or 'all'"
            )

    cmd.append(test_dir)
    return " ".join(cmd)


def task_make_env():
    """Create a conda environment"""
    return {
        "actions": ["conda create --prefix ./conda_env python=3.11"],
        "targets": ["./conda_env"],
        "uptodate": [True],  # Only run if target doesn't exist
        "verbosity": 2,
    }


def task_install():
    """Install picodemux in editable mode (with test extras)"""
    return {
        "actions": ["pip install -e .[test]"],
        "task_dep": ["make_env"],
        "verbosity": 2,
    }


def task_test_logic():
    """Run the logic test suite (tests in test/logic/)."""

    def router(keyword, speed, retry, print_logs, full_trace, show_time, help=False):
        if help:
            return """echo '
Test Logic Runner Help
====================

Filter Options:
  -k, --keyword TEXT    Only run tests matching the keyword expression
                        Example: -k "detect and not slow"
  -s, --speed TEXT      Filter tests by speed:
                        - "slow": Run only slow tests
                        - "not slow" or "fast": Skip slow tests
                        - "all": Run all tests regardless of speed
  -r, --retry           Only run previously failed tests

Output Options:
  -p, --print-logs      Print test logs to console instead of capturing
  -f, --full-trace      Show full traceback on errors
  -t, --show-time       Display duration of all tests

Examples:
  doit test_logic                     # Run all tests
  doit test_logic -k pipeline         # Run tests containing "pipeline"
  doit test_logic --retry --show-time # Rerun failed tests with timing
  '"""
        try:
            return _build_pytest_command(
                "test/logic/",
                keyword=keyword,
                speed=speed,
                retry=retry,
                print_logs=print_logs,
                full_trace=full_trace,
                show_time=show_time,
            )
        except ValueError as e:
            return f"echo 'Error: {str(e)}' && exit 1"

    return {
        "actions": [CmdAction(router)],
        "params": _TEST_PARAMS,
        "verbosity": 2,
    }


def task_demo():
    """Simulate a multiplexed recording and demultiplex it."""
    return {
        "actions": [
            "picodemux simulate demo.npy -l 1,2,3 -s 1000 -f 20 -n 1000 --offset 75",
            "picodemux demux demo.npy -s 1000 -f 20 -k 3 -t 5",
        ],
        "targets": ["demo.npy"],
        "clean": True,
        "verbosity": 2,
    }


def task_format():
    """Format code using ruff."""

    def router(help=False):
        if help:
            return """echo '
Code Formatter Help
=================

This task runs the ruff formatter to ensure consistent code style:
- Sorts imports (ruff check --select I --fix)
- Formats code (ruff format)

Formats src/picodemux/, test/ and dodo.py.
  '"""
        return " && ".join(
            f"ruff check --select I --fix {loc} && ruff format {loc}"
            for loc in ("src/picodemux", "test/", "dodo.py")
        )

    return {
        "actions": [CmdAction(router)],
        "params": [
            {"name": "help", "long": "help", "default": False, "type": bool},
        ],
        "verbosity": 2,
    }


def task_docs():
    """Generate documentation using pdoc3."""
    return {
        "actions": [
            "pdoc3 --output-dir docs/ --html --force --skip-errors ./src/picodemux/"
        ],
        "verbosity": 2,
    }

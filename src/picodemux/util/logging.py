# -*- coding: utf-8 -*-
"""
Log setup for the demultiplexer and its acquisition loop.

Everything in picodemux logs through the loguru `logger`; this module only
decides where those records go (a log file, stderr, or both).

Examples
--------
```python
from picodemux.util import start_log, shutdown_log
start_log(log_to_file=True, log_to_stdout=True, log_level="DEBUG")
...
shutdown_log()
```
"""

import os
import pathlib
import sys
import traceback

from loguru import logger

from .defaults import DEFAULT_LOGLEVEL, SINGLE_LINE_ERR_LOG

_log_file = ""


def format_error_response() -> str:
    """Traceback of the exception currently being handled, as a string."""
    err_str = traceback.format_exc()
    if SINGLE_LINE_ERR_LOG:
        return "\t".join(line.strip() for line in err_str.splitlines())
    return err_str


def start_log(
    log_to_file=True,
    log_to_stdout=False,
    log_path=None,
    clear_prev=True,
    log_level=DEFAULT_LOGLEVEL,
):
    """Replace all loguru sinks with a file sink and/or a stderr sink.

    Parameters
    ----------
    log_to_file : bool
        Write records to `log_path`.
    log_to_stdout : bool
        Write (colourised) records to stderr.
    log_path : str, optional
        Log file location, by default `log_default_path()`.
    clear_prev : bool
        Delete an existing log file at `log_path` first.
    log_level : str
        Minimum level for both sinks.
    """
    global _log_file

    log_path = os.path.abspath(log_path) if log_path else log_default_path()
    if clear_prev:
        clear_log(log_path)

    logger.remove()
    _log_file = ""
    if log_to_file:
        logger.add(log_path, level=log_level, enqueue=True, colorize=False)
        _log_file = log_path
    if log_to_stdout:
        logger.add(sys.stderr, level=log_level, enqueue=True, colorize=True)

    if log_to_file:
        logger.info("Demux log started at {}", log_path)
    else:
        logger.info("Demux log started.")


def log_default_path() -> str:
    return str(pathlib.Path.home().joinpath(".picodemux", "demux.log"))


def clear_log(log_path: str):
    """Remove the log file at `log_path`, if there is one."""
    if not os.path.exists(log_path):
        return
    try:
        os.remove(log_path)
    except PermissionError:
        logger.error("Could not clear log file {} (permission denied)", log_path)


def shutdown_log():
    """Flush and remove every sink."""
    try:
        logger.info("Closing down demux log.")
        logger.remove()
    except ValueError:
        logger.exception("Error shutting down demux log - skipping.")


def get_log_filename() -> str:
    """Path of the current log file, or "" if not logging to a file."""
    return _log_file

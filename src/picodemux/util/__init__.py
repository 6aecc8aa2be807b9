# -*- coding: utf-8 -*-
"""
Utility functions and constants for picodemux.

- Logging configuration and management
- Saving demux results (csv, json metadata, overview plots)
- Package-wide defaults

Examples
--------
Saving a demux result:
```python
from picodemux.util import save_demux
save_demux(cycles, virt_channel_count=4, project_name="bench")
```

See Also
--------
picodemux.util.logging : Logging configuration
picodemux.util.save : Data saving functions
"""

from .defaults import (
    DEFAULT_BLOCK_LENGTH,
    DEFAULT_LOGLEVEL,
    DEFAULT_SAVE_DIR,
    SINGLE_LINE_ERR_LOG,
    TEST_LOGLEVEL,
)
from .logging import (
    clear_log,
    format_error_response,
    get_log_filename,
    log_default_path,
    shutdown_log,
    start_log,
)
from .save import (
    NumpyEncoder,
    default_save_path,
    demux_to_array,
    demux_to_rows,
    save_demux,
    save_demux_csv,
    save_demux_json,
)

__all__ = [
    "DEFAULT_BLOCK_LENGTH",
    "DEFAULT_LOGLEVEL",
    "DEFAULT_SAVE_DIR",
    "SINGLE_LINE_ERR_LOG",
    "TEST_LOGLEVEL",
    "clear_log",
    "format_error_response",
    "get_log_filename",
    "log_default_path",
    "shutdown_log",
    "start_log",
    "NumpyEncoder",
    "default_save_path",
    "demux_to_array",
    "demux_to_rows",
    "save_demux",
    "save_demux_csv",
    "save_demux_json",
]

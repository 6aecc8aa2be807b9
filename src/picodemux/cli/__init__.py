"""
Command-line interface for picodemux.

This module provides command-line tools for working with multiplexed
recordings, including:

- Demultiplexing a recorded block into virtual channel cycles
- Generating synthetic multiplexed recordings
- Inspecting demux configurations

The CLI is built using the Click framework.

Examples
--------
Simulating and demultiplexing a recording:
```bash
$ picodemux simulate sim.npy -l 1,2,3 -s 1000 -f 20 -n 1000 --offset 75
$ picodemux demux sim.npy -s 1000 -f 20 -k 3 -t 5 -o cycles.csv
```

CLI Tree
--------

```
$ picodemux --tree
cli
└── config
└── demux
└── simulate
```
"""

import click

from .base import cli, tree_option
from .demux import demux, simulate

# Register subcommands directly under cli
cli.add_command(demux)
cli.add_command(simulate)

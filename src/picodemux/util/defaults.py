# -*- coding: utf-8 -*-

DEFAULT_LOGLEVEL = "INFO"
TEST_LOGLEVEL = "TRACE"
SINGLE_LINE_ERR_LOG = False  # reformat tracebacks into a single line for log files

# Multiplexer defaults (Arduino switching board driving the scope input)
DEFAULT_SYNC_THRESHOLD = 3.5  # volts
DEFAULT_MUX_FREQUENCY_HZ = 14700  # slot switches per second
DEFAULT_VIRT_CHANNEL_COUNT = 4
DEFAULT_MUX_TOLERANCE = 0.8  # fraction of a slot width
DEFAULT_NOISE_THRESHOLD = 0.5  # volts

DEFAULT_BLOCK_LENGTH = DEFAULT_MUX_FREQUENCY_HZ  # samples per channel per block
DEFAULT_RATE_WINDOW = 5.0  # seconds
DEFAULT_MAX_PENDING_BLOCKS = 10  # per channel, before the oldest samples are dropped
DEFAULT_SAVE_DIR = "data_output"

# Copyright 2025-2026 XMOS LIMITED.
# This Software is subject to the terms of the XMOS Public Licence: Version 1.
"""Default pydantic fields shared by the compressor models."""

from functools import partial

from pydantic import Field

DEFAULT_FS = partial(Field, default=48000, gt=0, description="Sample rate in Hz.")
DEFAULT_N_CHANS = partial(Field, default=2, ge=1, description="Number of channels.")

DEFAULT_ATTACK_MS = partial(
    Field, default=10.0, ge=0, le=1000, description="Attack time of the stage in milliseconds."
)
DEFAULT_RELEASE_MS = partial(
    Field, default=200.0, ge=0, le=5000, description="Release time of the stage in milliseconds."
)
DEFAULT_WINDOW_MS = partial(
    Field, default=10.0, ge=0, le=1000, description="RMS window of the stage in milliseconds."
)

# the compressor accepts any threshold and ratio, so only the defaults
# are given here
DEFAULT_THRESHOLD = partial(
    Field, default=0.5, description="Linear envelope level above which compression occurs."
)
DEFAULT_COMPRESSOR_RATIO = partial(
    Field, default=4.0, description="Compression ratio of the stage, e.g. 4.0 for 4:1."
)

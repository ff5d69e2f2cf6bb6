# Copyright 2025-2026 XMOS LIMITED.
# This Software is subject to the terms of the XMOS Public Licence: Version 1.
"""Models for compressor configuration."""

from typing import Literal

from pydantic import BaseModel, Field

from audio_compressor.dsp import drc as drc
from audio_compressor.models.fields import (
    DEFAULT_ATTACK_MS,
    DEFAULT_COMPRESSOR_RATIO,
    DEFAULT_FS,
    DEFAULT_N_CHANS,
    DEFAULT_RELEASE_MS,
    DEFAULT_THRESHOLD,
    DEFAULT_WINDOW_MS,
)


class CompressorParameters(BaseModel, extra="ignore"):
    """Parameters for a compressor."""

    detector: Literal["peak", "rms"] = Field(
        default="peak", description="Envelope detector used by the compressor"
    )
    gain_combination: Literal["per_channel", "average", "minimum"] = Field(
        default="per_channel", description="How the channel gains of a frame are combined"
    )
    attack_ms: float = DEFAULT_ATTACK_MS(
        description="Time in milliseconds for the envelope to rise"
    )
    release_ms: float = DEFAULT_RELEASE_MS(
        description="Time in milliseconds for the envelope to fall"
    )
    window_ms: float = DEFAULT_WINDOW_MS(
        description="Length of the RMS window in milliseconds, only used by the RMS detector"
    )
    threshold: float = DEFAULT_THRESHOLD()
    ratio: float = DEFAULT_COMPRESSOR_RATIO()
    clamp_gain: bool = Field(default=False, description="Limit the gain to [0, 1]")


class CompressorConfig(BaseModel, extra="forbid"):
    """A compressor and the stream it runs on.

    The sample rate and channel count can change during a stream, these
    are the values the compressor is created with.
    """

    fs: float = DEFAULT_FS()
    n_chans: int = DEFAULT_N_CHANS()
    parameters: CompressorParameters = Field(default_factory=CompressorParameters)


def compressor_from_config(config: CompressorConfig) -> drc.compressor_base:
    """Create the compressor DSP block described by ``config``.

    Parameters
    ----------
    config : CompressorConfig
        The validated configuration.

    Returns
    -------
    compressor_base
        A ``compressor_peak`` or ``compressor_rms``.
    """
    parameters = config.parameters
    return drc.make_compressor(
        parameters.detector,
        parameters.gain_combination,
        parameters.attack_ms,
        parameters.release_ms,
        config.fs,
        config.n_chans,
        parameters.threshold,
        parameters.ratio,
        window_ms=parameters.window_ms,
        clamp_gain=parameters.clamp_gain,
    )

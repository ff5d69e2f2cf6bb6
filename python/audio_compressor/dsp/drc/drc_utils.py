# Copyright 2024-2026 XMOS LIMITED.
# This Software is subject to the terms of the XMOS Public Licence: Version 1.
"""Generic utilities for the dynamic range control DSP blocks."""

import warnings
from math import exp

import numpy as np

from audio_compressor.dsp import utils as utils


# envelopes on the frame path are limited to this value before the gain
# calculation, nominal full scale for normalised audio
ENVELOPE_CEILING = 1.0


class ChannelCountError(ValueError):
    """The number of channels supplied does not match the number the
    block was configured with.
    """


def coeff_from_time(attack_or_release_ms, fs):
    """
    Calculate the exponential smoothing coefficient from an
    attack/release time in milliseconds.

    The coefficient is ``exp(-1 / n)``, where ``n`` is the time constant
    in (fractional) samples, so the envelope covers ``1 - 1/e`` of a
    step after ``n`` samples. A time of zero gives a coefficient of 0,
    so the envelope follows its input with no smoothing.

    Negative times are not meaningful; they are warned about and
    treated as zero.
    """
    if attack_or_release_ms < 0:
        warnings.warn(
            "Attack/release time must not be negative. For the fastest possible "
            "attack/release time, use zero. Time set to zero",
            UserWarning,
        )
        attack_or_release_ms = 0

    n_samples = utils.time_to_samples(fs, attack_or_release_ms, "ms")
    if n_samples <= 0:
        return 0.0

    return exp(-1.0 / n_samples)


def window_from_time(window_ms, fs):
    """
    Calculate the RMS window length in whole samples from a time in
    milliseconds. The window can't be shorter than 1 sample, and
    saturates to that value.
    """
    # negative windows are caught by the 1 sample floor below
    window_samples = int(utils.time_to_samples(fs, max(window_ms, 0), "ms"))

    if window_samples < 1:
        warnings.warn(
            "RMS window too short for sample rate, setting to 1 sample.",
            UserWarning,
        )
        window_samples = 1

    return window_samples


def slope_from_ratio(ratio):
    """Convert a compressor ratio to the slope, where the slope is
    defined as ``1 - 1 / ratio``.

    A ratio of 1 gives a slope of 0 (no compression), and an infinite
    ratio a slope of 1 (limiting). Ratios below 1 expand the signal
    above the threshold; they are allowed but warned about. A ratio of 0
    gives a slope of -inf.
    """
    if ratio < 1:
        warnings.warn("Compressor ratio is < 1, the signal will be expanded", UserWarning)

    if ratio == 0:
        return -np.inf

    return 1 - 1 / ratio


def compressor_gain_calc(envelope, threshold, slope):
    """Calculate the float gain for the current sample.

    Below or at the threshold the gain is unity, above it the gain is
    reduced linearly with the amount the envelope exceeds the
    threshold. The result is not clamped, extreme settings can give a
    zero or negative gain.

    """
    if envelope > threshold:
        return 1 - (envelope - threshold) * slope
    return 1.0


def clamp_gain(gain):
    """Clamp a gain to the range [0, 1]."""
    return min(max(gain, 0.0), 1.0)

# Copyright 2024-2026 XMOS LIMITED.
# This Software is subject to the terms of the XMOS Public Licence: Version 1.
"""
Functions that combine the gains calculated for each channel of a
frame into the gains applied to that frame.

A compressor holds one of these as a function handle, selected by name
when it is created. The "even" functions apply one gain to every
channel, which keeps the stereo image stable when only one channel is
loud.
"""

from math import nan


def even_average_gain(gains):
    """
    Return the mean of the channel gains.

    Note this returns NaN if ``gains`` is empty.
    """
    total = 0.0
    n_gains = 0
    for gain in gains:
        total += gain
        n_gains += 1
    if n_gains == 0:
        return nan
    return total / n_gains


def even_minimum_gain(gains):
    """
    Return the lowest of the channel gains.

    Note this returns 1.0 if ``gains`` is empty.
    """
    min_gain = 1.0
    for gain in gains:
        if gain < min_gain:
            min_gain = gain
    return min_gain


def per_channel(gains):
    """Apply each channel's own gain to that channel."""
    return list(gains)


def even_average(gains):
    """Apply the mean of the channel gains to every channel."""
    gains = list(gains)
    return [even_average_gain(gains)] * len(gains)


def even_minimum(gains):
    """Apply the lowest of the channel gains to every channel."""
    gains = list(gains)
    return [even_minimum_gain(gains)] * len(gains)


GAIN_COMBINATIONS = {
    "per_channel": per_channel,
    "average": even_average,
    "minimum": even_minimum,
}

EVEN_GAIN_FUNCTIONS = {
    "average": even_average_gain,
    "minimum": even_minimum_gain,
}


def get_gain_combination(name):
    """
    Look up a gain combination function by name.

    Parameters
    ----------
    name : {"per_channel", "average", "minimum"}
        The gain combination strategy.

    Raises
    ------
    ValueError
        If ``name`` is not a known strategy.
    """
    try:
        return GAIN_COMBINATIONS[name]
    except KeyError:
        raise ValueError(
            "Gain combination must be one of %s, got %r" % (list(GAIN_COMBINATIONS), name)
        ) from None

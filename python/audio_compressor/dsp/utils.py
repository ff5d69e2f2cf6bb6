# Copyright 2024-2026 XMOS LIMITED.
# This Software is subject to the terms of the XMOS Public Licence: Version 1.
"""Utility functions used by DSP blocks."""

import warnings

import numpy as np

FLT_MIN = np.finfo(float).tiny


def db(input):
    """Convert an amplitude to decibels (20*log10(abs(x)))."""
    out = 20 * np.log10(np.abs(input) + FLT_MIN)
    return out


def db2gain(input):
    """Convert from decibels to amplitude (10^(x/20))."""
    out = 10 ** (input / 20)
    return out


def check_time_units(units: str) -> str:
    """Check a time units in seconds/milliseconds/samples match the expected values.

    Parameters
    ----------
    units : {"samples", "ms", "s"}
        Desired units of time. If invalid units are given, samples are assumed

    Returns
    -------
    Used ``units`` of time
    """
    units = units.lower()
    if units not in ["samples", "ms", "s"]:
        warnings.warn("Time units not recognised, assuming samples", UserWarning)
        units = "samples"
    return units


def time_to_samples(fs, time: float, units: str) -> float:
    """Convert a time in seconds/milliseconds/samples to a (fractional)
    number of samples for a given sampling frequency.

    Parameters
    ----------
    fs : float
        sampling frequency
    time : float
        desired time in units
    units : {"samples", "ms", "s"}
        desired units of time

    Returns
    -------
    Time converted from ``units`` to samples at fs. This is not rounded,
    callers that need a whole number of samples must truncate it.

    """
    if time < 0:
        warnings.warn("Time must not be negative, setting time to 0", UserWarning)
        time = 0

    units = check_time_units(units)

    if units == "ms":
        return time * fs / 1000
    elif units == "s":
        return time * fs
    return float(time)


def _int_scale(dtype) -> float:
    # full scale of an integer format, e.g. 2**15 for int16 and uint16
    return float(2 ** (np.iinfo(dtype).bits - 1))


def _int_offset(dtype) -> float:
    # unsigned formats are offset binary, silence is the midpoint
    if np.issubdtype(dtype, np.unsignedinteger):
        return _int_scale(dtype)
    return 0.0


def to_float_samples(x) -> np.ndarray:
    """
    Convert a buffer of samples to a float64 copy, scaled so that
    full scale is 1.0.

    Integer buffers are divided by ``2**(bits-1)``, after removing the
    ``2**(bits-1)`` offset of unsigned formats. Floating point buffers
    are copied unchanged.

    Parameters
    ----------
    x : array_like
        Input samples of any numeric dtype.

    Returns
    -------
    np.ndarray
        New float64 array with the same shape as ``x``.
    """
    x = np.asarray(x)
    if np.issubdtype(x.dtype, np.integer):
        return (x.astype(np.float64) - _int_offset(x.dtype)) / _int_scale(x.dtype)
    return x.astype(np.float64)


def from_float_samples(x: np.ndarray, dtype) -> np.ndarray:
    """
    Convert float samples scaled to 1.0 = full scale back to ``dtype``.

    Integer formats are scaled by ``2**(bits-1)``, offset for unsigned
    formats, rounded and saturated to the range of the format.

    Parameters
    ----------
    x : np.ndarray
        Float samples.
    dtype : numpy dtype
        The target sample format.

    Returns
    -------
    np.ndarray
        New array of ``dtype``.
    """
    dtype = np.dtype(dtype)
    if np.issubdtype(dtype, np.integer):
        info = np.iinfo(dtype)
        scaled = np.round(np.asarray(x, dtype=np.float64) * _int_scale(dtype)) + _int_offset(dtype)

        # float(info.max) rounds up past the format for 64 bit types, so
        # clip below it and set the saturated samples afterwards
        high = float(info.max)
        if int(high) > info.max:
            high = np.nextafter(high, 0.0)
        out = np.clip(scaled, info.min, high).astype(dtype)
        out[scaled >= float(info.max)] = info.max
        return out
    return np.asarray(x).astype(dtype)

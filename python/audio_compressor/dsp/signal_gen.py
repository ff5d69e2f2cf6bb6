# Copyright 2024-2026 XMOS LIMITED.
# This Software is subject to the terms of the XMOS Public Licence: Version 1.
"""Test signals for exercising the compressors.

Every generator returns float64 samples quantized to ``precision`` bits
(24 by default), so full scale is 1.0 and the signals match what an
integer PCM source would deliver.
"""

import numpy as np
import scipy.signal as spsig


def quantize_signal(signal: np.ndarray, precision: int) -> np.ndarray:
    """Round ``signal`` to the nearest step of a ``precision`` bit
    signed integer format, keeping the float scaling.
    """
    return np.round(signal * (2 ** (precision - 1) - 1)) / 2 ** (precision - 1)


def _time_axis(fs, length):
    return np.arange(int(fs * length)) / fs


def sin(fs: int, length: float, freq: float, amplitude: float, precision: int = 24) -> np.ndarray:
    """
    Sine wave starting at zero phase.

    Parameters
    ----------
    fs : int
        Sample rate in Hz.
    length : float
        Length in seconds.
    freq : float
        Frequency in Hz.
    amplitude : float
        Peak amplitude.
    precision : int, optional
        Quantization in bits.
    """
    t = _time_axis(fs, length)
    return quantize_signal(amplitude * np.sin(2 * np.pi * freq * t), precision)


def square(
    fs: int, length: float, freq: float, amplitude: float, precision: int = 24
) -> np.ndarray:
    """Square wave of ``freq`` Hz toggling between ``+amplitude`` and
    ``-amplitude``.
    """
    t = _time_axis(fs, length)
    return quantize_signal(amplitude * spsig.square(2 * np.pi * freq * t), precision)


def log_chirp(
    fs: int,
    length: float,
    amplitude: float,
    start: float = 20,
    stop: float = 20000,
    precision: int = 24,
) -> np.ndarray:
    """Logarithmic sweep from ``start`` to ``stop`` Hz over ``length``
    seconds, starting at zero.
    """
    t = _time_axis(fs, length)
    signal = amplitude * spsig.chirp(t, start, length, stop, "log", phi=-90)
    return quantize_signal(signal, precision)


def white_noise(
    fs: int, length: float, amplitude: float, normal: bool = True, precision: int = 24
) -> np.ndarray:
    """
    White noise bounded to ``amplitude``.

    Parameters
    ----------
    normal : bool, optional
        Gaussian noise if True, clipped at 6 sigma and scaled so the
        clip level is ``amplitude``. Uniform noise if False.
    """
    n_samples = int(fs * length)
    if normal:
        sigma = 6
        signal = np.clip(np.random.randn(n_samples), -sigma, sigma) * amplitude / sigma
    else:
        signal = amplitude * np.random.uniform(-1, 1, n_samples)

    return quantize_signal(signal, precision)


def step(
    fs: int, length: float, step_t: float, start: float, stop: float, precision: int = 24
) -> np.ndarray:
    """
    Constant level that jumps from ``start`` to ``stop``.

    Parameters
    ----------
    step_t : float
        Time of the jump in seconds, the sample at ``step_t`` is the
        first at the ``stop`` level.
    start : float
        Level before the jump.
    stop : float
        Level from the jump onwards.
    """
    signal = np.full(int(fs * length), float(stop))
    signal[: int(fs * step_t)] = start
    return quantize_signal(signal, precision)

# Copyright 2024-2026 XMOS LIMITED.
# This Software is subject to the terms of the XMOS Public Licence: Version 1.
import numpy as np
import pytest

import audio_compressor.dsp.utils as utils


@pytest.mark.parametrize("dtype", [np.int16, np.int32])
def test_int_to_float(dtype):
    scale = float(np.iinfo(dtype).max) + 1
    x = np.array([0, 1, -1, np.iinfo(dtype).max, np.iinfo(dtype).min], dtype=dtype)
    y = utils.to_float_samples(x)

    assert y.dtype == np.float64
    np.testing.assert_array_equal(y, x.astype(np.float64) / scale)
    assert y[-1] == -1.0


def test_float_to_float_copies():
    x = np.array([0.5, -0.25], dtype=np.float32)
    y = utils.to_float_samples(x)
    assert y.dtype == np.float64
    y[0] = 0
    assert x[0] == 0.5


def test_list_to_float():
    np.testing.assert_array_equal(utils.to_float_samples([0.5, -0.5]), [0.5, -0.5])


def test_float_to_int16():
    x = np.array([0.5, -0.5, 0.375, 0.0])
    y = utils.from_float_samples(x, np.int16)
    assert y.dtype == np.int16
    np.testing.assert_array_equal(y, [16384, -16384, 12288, 0])


def test_float_to_int16_saturates():
    y = utils.from_float_samples(np.array([1.0, 2.5, -1.0, -3.0]), np.int16)
    np.testing.assert_array_equal(y, [32767, 32767, -32768, -32768])


def test_float_to_int_rounds():
    y = utils.from_float_samples(np.array([1.4 / 32768, -1.6 / 32768]), np.int16)
    np.testing.assert_array_equal(y, [1, -2])


@pytest.mark.parametrize("dtype", [np.int16, np.int32])
def test_int_round_trip(dtype):
    info = np.iinfo(dtype)
    x = np.array([info.min, -12345, 0, 12345, info.max], dtype=dtype)
    np.testing.assert_array_equal(utils.from_float_samples(utils.to_float_samples(x), dtype), x)


def test_float_target():
    y = utils.from_float_samples(np.array([0.5, 2.0]), np.float32)
    assert y.dtype == np.float32
    np.testing.assert_array_equal(y, [0.5, 2.0])


@pytest.mark.parametrize(
    "time, units, expected",
    [(10, "ms", 480), (0.5, "s", 24000), (100, "samples", 100), (1, "MS", 48)],
)
def test_time_to_samples(time, units, expected):
    assert utils.time_to_samples(48000, time, units) == expected


def test_time_to_samples_warnings():
    with pytest.warns(UserWarning):
        assert utils.time_to_samples(48000, 10, "minutes") == 10
    with pytest.warns(UserWarning):
        assert utils.time_to_samples(48000, -10, "ms") == 0


def test_db():
    assert utils.db(1.0) == pytest.approx(0)
    assert utils.db(0.1) == pytest.approx(-20)
    assert utils.db2gain(-6.0) == pytest.approx(0.501187, rel=1e-5)
    # zero maps to a very low level, not -inf
    assert np.isfinite(utils.db(0.0))


@pytest.mark.parametrize("dtype", [np.uint8, np.uint16, np.uint32])
def test_unsigned_to_float(dtype):
    # offset binary: the midpoint is silence
    scale = 2.0 ** (np.iinfo(dtype).bits - 1)
    x = np.array([scale, 0, np.iinfo(dtype).max], dtype=dtype)
    y = utils.to_float_samples(x)
    np.testing.assert_array_equal(y, [0.0, -1.0, (scale - 1) / scale])


@pytest.mark.parametrize("dtype", [np.uint8, np.uint16, np.uint32])
def test_unsigned_round_trip(dtype):
    info = np.iinfo(dtype)
    x = np.array([info.min, 1, info.max // 2 + 1, info.max], dtype=dtype)
    np.testing.assert_array_equal(utils.from_float_samples(utils.to_float_samples(x), dtype), x)


def test_float_to_uint8_saturates():
    y = utils.from_float_samples(np.array([0.0, 0.5, 2.0, -2.0]), np.uint8)
    assert y.dtype == np.uint8
    np.testing.assert_array_equal(y, [128, 192, 255, 0])


def test_float_to_int64_saturates():
    info = np.iinfo(np.int64)
    y = utils.from_float_samples(np.array([1.0, 4.0, -1.0, -4.0, 0.5]), np.int64)
    np.testing.assert_array_equal(y, [info.max, info.max, info.min, info.min, 2**62])

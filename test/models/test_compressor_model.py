# Copyright 2025-2026 XMOS LIMITED.
# This Software is subject to the terms of the XMOS Public Licence: Version 1.
import pytest
from pydantic import ValidationError

import audio_compressor.dsp.drc as drc
from audio_compressor.models import CompressorConfig, CompressorParameters, compressor_from_config


def test_defaults():
    config = CompressorConfig()
    assert config.fs == 48000
    assert config.n_chans == 2
    assert config.parameters.detector == "peak"
    assert config.parameters.gain_combination == "per_channel"
    assert config.parameters.attack_ms == 10
    assert config.parameters.release_ms == 200
    assert config.parameters.threshold == 0.5
    assert config.parameters.ratio == 4
    assert config.parameters.clamp_gain is False


@pytest.mark.parametrize(
    "field, value",
    [
        ("attack_ms", -1),
        ("release_ms", -0.5),
        ("window_ms", -10),
        ("attack_ms", 5000),
        ("detector", "hilbert"),
        ("gain_combination", "maximum"),
    ],
)
def test_invalid_parameters(field, value):
    with pytest.raises(ValidationError):
        CompressorParameters(**{field: value})


@pytest.mark.parametrize("field, value", [("fs", 0), ("fs", -48000), ("n_chans", 0)])
def test_invalid_config(field, value):
    with pytest.raises(ValidationError):
        CompressorConfig(**{field: value})


def test_extra_fields():
    # unknown parameters are dropped, unknown top level fields are not
    parameters = CompressorParameters(knee_db=6)
    assert not hasattr(parameters, "knee_db")

    with pytest.raises(ValidationError):
        CompressorConfig(sample_rate=44100)


def test_from_dict():
    config = CompressorConfig.model_validate(
        {
            "fs": 44100,
            "n_chans": 4,
            "parameters": {
                "detector": "rms",
                "gain_combination": "minimum",
                "attack_ms": 1,
                "release_ms": 50,
                "window_ms": 5,
                "threshold": 0.25,
                "ratio": 8,
            },
        }
    )
    assert config.parameters.window_ms == 5
    assert config.parameters.detector == "rms"


def test_compressor_from_config():
    config = CompressorConfig(
        fs=44100,
        n_chans=4,
        parameters=CompressorParameters(
            detector="rms",
            gain_combination="minimum",
            attack_ms=1,
            release_ms=50,
            window_ms=5,
            threshold=0.25,
            ratio=8,
            clamp_gain=True,
        ),
    )
    comp = compressor_from_config(config)

    assert isinstance(comp, drc.compressor_rms)
    assert comp.fs == 44100
    assert comp.n_chans == 4
    assert comp.gain_combination == "minimum"
    assert comp.attack_ms == 1
    assert comp.release_ms == 50
    assert comp.window_ms == 5
    assert comp.threshold == 0.25
    assert comp.slope == pytest.approx(1 - 1 / 8)
    assert comp.clamp_gain is True
    assert comp.env_detector.window_samples == int(5 * 44100 / 1000)


def test_default_compressor():
    comp = compressor_from_config(CompressorConfig())
    assert isinstance(comp, drc.compressor_peak)
    y, gains, envelopes = comp.process_channels([0.0, 0.0])
    assert y == [0.0, 0.0]
    assert gains == [1.0, 1.0]

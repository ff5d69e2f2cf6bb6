# Copyright 2024-2026 XMOS LIMITED.
# This Software is subject to the terms of the XMOS Public Licence: Version 1.
"""This sub-package contains the dynamic range control (DRC) DSP
components: envelope detectors, compressors and the functions that
combine their channel gains.
"""

from audio_compressor.dsp.drc.drc import (
    envelope_detector_peak as envelope_detector_peak,
    envelope_detector_rms as envelope_detector_rms,
    compressor_base as compressor_base,
    compressor_peak as compressor_peak,
    compressor_rms as compressor_rms,
    make_compressor as make_compressor,
)

from audio_compressor.dsp.drc.drc_utils import ChannelCountError as ChannelCountError

from audio_compressor.dsp.drc.gain_combination import (
    per_channel as per_channel,
    even_average as even_average,
    even_minimum as even_minimum,
    even_average_gain as even_average_gain,
    even_minimum_gain as even_minimum_gain,
)

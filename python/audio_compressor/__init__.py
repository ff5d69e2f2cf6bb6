# Copyright 2024-2026 XMOS LIMITED.
# This Software is subject to the terms of the XMOS Public Licence: Version 1.
"""
The audio compressor Python library.

Envelope detectors, a threshold/ratio gain law and cross-channel gain
combination for compressing floating point or integer PCM audio on a
host PC.
"""

from importlib import metadata as _metadata

__version__ = _metadata.version("audio_compressor")

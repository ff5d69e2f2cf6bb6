# Copyright 2025-2026 XMOS LIMITED.
# This Software is subject to the terms of the XMOS Public Licence: Version 1.
"""The pydantic models used to configure a compressor."""

from .compressor_model import CompressorParameters, CompressorConfig, compressor_from_config

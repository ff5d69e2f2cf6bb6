# Copyright 2024-2026 XMOS LIMITED.
# This Software is subject to the terms of the XMOS Public Licence: Version 1.
"""The base class shared by all the DSP blocks."""

from copy import deepcopy

import numpy as np
from docstring_inheritance import NumpyDocstringInheritanceInitMeta


class dsp_block(metaclass=NumpyDocstringInheritanceInitMeta):
    """
    Base for the envelope detectors and compressors.

    Children implement ``process`` for a single sample; the frame and
    block forms are built on top of it here. The metaclass merges the
    numpydoc ``Parameters`` and ``Attributes`` sections, so children
    only document what they add.

    Parameters
    ----------
    fs : float
        Sample rate in Hz.
    n_chans : int
        Number of channels.

    Attributes
    ----------
    fs : float
        Sample rate in Hz.
    n_chans : int
        Number of channels.
    """

    def __init__(self, fs, n_chans):
        self.fs = fs
        self.n_chans = n_chans

    def process(self, sample: float, channel=0):
        """
        Process one sample of one channel.

        Parameters
        ----------
        sample : float
            The new sample, scaled with full scale = 1.0.
        channel : int, optional
            Index of the channel the sample belongs to.
        """
        raise NotImplementedError

    def process_channels(self, sample_list: list[float]) -> list[float]:
        """
        Process one sample of every channel, in channel order.

        Parameters
        ----------
        sample_list : list[float]
            One sample per channel.

        Returns
        -------
        list[float]
            The result of ``process`` for each channel.
        """
        output_samples = deepcopy(sample_list)
        for channel in range(len(output_samples)):
            output_samples[channel] = self.process(sample_list[channel], channel)
        return output_samples

    def process_frame(self, frame: list):
        """
        Process a block of samples.

        Parameters
        ----------
        frame : list
            One 1-D array per channel, all the same length.

        Returns
        -------
        list
            One new array per channel, holding the output of
            ``process_channels`` for each sample time.
        """
        frame_np = np.array(frame, dtype=float)
        frame_size = frame_np.shape[1]
        output = np.zeros((len(frame), frame_size))
        for sample in range(frame_size):
            output[:, sample] = self.process_channels(frame_np[:, sample].tolist())

        return list(output)

# Copyright 2024-2026 XMOS LIMITED.
# This Software is subject to the terms of the XMOS Public Licence: Version 1.
"""The dynamic range control (DRC) DSP blocks."""

import operator
from math import sqrt

import numpy as np

from audio_compressor.dsp import utils as utils
from audio_compressor.dsp import generic as dspg
import audio_compressor.dsp.drc.drc_utils as drcu
import audio_compressor.dsp.drc.gain_combination as gc


class envelope_detector_peak(dspg.dsp_block):
    """
    Envelope detector that follows the absolute peak value of a signal.

    The attack time sets how fast the envelope detector ramps up. The
    release time sets how fast the envelope detector ramps down.

    Parameters
    ----------
    attack_ms : float
        Attack time of the envelope detector in milliseconds. Zero
        gives no smoothing when the envelope is rising.
    release_ms : float
        Release time of the envelope detector in milliseconds. Zero
        gives no smoothing when the envelope is falling.

    Attributes
    ----------
    attack_ms : float
    release_ms : float
    attack_coeff : float
        Smoothing coefficient used when the envelope is rising,
        ``exp(-1 / attack_samples)``.
    release_coeff : float
        Smoothing coefficient used when the envelope is falling,
        ``exp(-1 / release_samples)``.
    envelope : list[float]
        Current envelope value for each channel.

    """

    def __init__(self, fs, n_chans, attack_ms, release_ms):
        super().__init__(fs, n_chans)

        self.attack_ms = attack_ms
        self.release_ms = release_ms

        # initialise envelope state
        self.reset_state()

    @property
    def attack_ms(self):
        """The attack time in milliseconds; changing this property also
        sets the attack coefficient for the current sample rate.
        """
        return self._attack_ms

    @attack_ms.setter
    def attack_ms(self, value):
        self._attack_ms = value
        self.attack_coeff = drcu.coeff_from_time(self._attack_ms, self.fs)

    @property
    def release_ms(self):
        """The release time in milliseconds; changing this property
        also sets the release coefficient for the current sample rate.
        """
        return self._release_ms

    @release_ms.setter
    def release_ms(self, value):
        self._release_ms = value
        self.release_coeff = drcu.coeff_from_time(self._release_ms, self.fs)

    def update_to_sample_rate(self, fs):
        """
        Set the sample rate and recalculate every coefficient that
        depends on it. The envelope is left as it is.

        Parameters
        ----------
        fs : float
            The new sample rate in Hz.
        """
        self.fs = fs
        self.attack_coeff = drcu.coeff_from_time(self._attack_ms, self.fs)
        self.release_coeff = drcu.coeff_from_time(self._release_ms, self.fs)

    def reset_state(self):
        """Reset the envelope to zero."""
        self.envelope = [0.0] * self.n_chans

    def set_channels(self, n_chans):
        """
        Change the number of channels. Existing channels keep their
        envelope, new channels start from zero.

        Parameters
        ----------
        n_chans : int
            The new number of channels, must be at least 1.
        """
        if n_chans < 1:
            raise ValueError("Number of channels must be at least 1, got %d" % n_chans)

        if n_chans > self.n_chans:
            self.envelope.extend([0.0] * (n_chans - self.n_chans))
        else:
            del self.envelope[n_chans:]
        self.n_chans = n_chans

    def _check_channel(self, channel):
        if not 0 <= channel < self.n_chans:
            raise drcu.ChannelCountError(
                "Channel %d out of range for a %d channel envelope detector"
                % (channel, self.n_chans)
            )

    def _magnitude(self, sample, channel):
        return abs(sample)

    def process(self, sample, channel=0):
        """
        Update the peak envelope for a signal.

        Take one new sample and return the updated envelope. Input
        should be scaled with 0 dB = 1.0. This must be called once per
        channel for every sample, otherwise the envelope of the skipped
        channel is wrong.

        """
        self._check_channel(channel)
        sample_mag = self._magnitude(sample, channel)
        envelope = self.envelope[channel]

        # see if we're attacking or decaying
        if sample_mag > envelope:
            coeff = self.attack_coeff
        else:
            coeff = self.release_coeff

        # exponential smoothing towards the new magnitude
        self.envelope[channel] = sample_mag + coeff * (envelope - sample_mag)

        return self.envelope[channel]

    def process_channels(self, sample_list: list[float]) -> list[float]:
        """
        Update the envelope of each channel for one frame of samples,
        and return the updated envelopes.
        """
        if len(sample_list) > self.n_chans:
            raise drcu.ChannelCountError(
                "Got %d samples for a %d channel envelope detector"
                % (len(sample_list), self.n_chans)
            )
        return super().process_channels(sample_list)


class envelope_detector_rms(envelope_detector_peak):
    """
    Envelope detector that follows the RMS value of a signal.

    The mean square of the signal is calculated exactly over a sliding
    window of the last ``window_samples`` samples, and the square root
    of that is smoothed with the attack and release coefficients. The
    window starts full of zeros, so the first ``window_samples`` outputs
    ramp up.

    Parameters
    ----------
    window_ms : float
        Length of the RMS window in milliseconds. This cannot be shorter
        than 1 sample, and saturates to that value.

    Attributes
    ----------
    window_ms : float
    window_samples : int
        Length of the RMS window in samples.
    window_buffer : np.ndarray
        The squared samples in the window for each channel, shape
        ``(n_chans, window_samples)``.
    window_idx : list[int]
        Next write position in ``window_buffer`` for each channel.
    window_sum : list[float]
        Running sum of ``window_buffer`` for each channel.
    """

    def __init__(self, fs, n_chans, attack_ms, release_ms, window_ms):
        self._window_ms = window_ms
        self.window_samples = drcu.window_from_time(window_ms, fs)

        super().__init__(fs, n_chans, attack_ms, release_ms)

    @property
    def window_ms(self):
        """The RMS window length in milliseconds; changing this property
        also sets the window length in samples. If the length in samples
        changes, the window contents are reset.
        """
        return self._window_ms

    @window_ms.setter
    def window_ms(self, value):
        self._window_ms = value
        self._set_window_samples(drcu.window_from_time(self._window_ms, self.fs))

    def _set_window_samples(self, window_samples):
        if window_samples != self.window_samples:
            self.window_samples = window_samples
            self._reset_window()

    def _reset_window(self):
        self.window_buffer = np.zeros((self.n_chans, self.window_samples))
        self.window_idx = [0] * self.n_chans
        self.window_sum = [0.0] * self.n_chans

    def update_to_sample_rate(self, fs):
        """
        Set the sample rate and recalculate every coefficient that
        depends on it, including the window length. The envelope is left
        as it is.
        """
        super().update_to_sample_rate(fs)
        self._set_window_samples(drcu.window_from_time(self._window_ms, self.fs))

    def reset_state(self):
        """Reset the envelope and the RMS window to zero."""
        super().reset_state()
        self._reset_window()

    def set_channels(self, n_chans):
        """
        Change the number of channels. Existing channels keep their
        envelope and window, new channels start from zero.
        """
        old_n_chans = self.n_chans
        super().set_channels(n_chans)

        if n_chans > old_n_chans:
            new_rows = np.zeros((n_chans - old_n_chans, self.window_samples))
            self.window_buffer = np.concatenate((self.window_buffer, new_rows))
            self.window_idx.extend([0] * (n_chans - old_n_chans))
            self.window_sum.extend([0.0] * (n_chans - old_n_chans))
        else:
            self.window_buffer = self.window_buffer[:n_chans].copy()
            del self.window_idx[n_chans:]
            del self.window_sum[n_chans:]

    def _magnitude(self, sample, channel):
        sample_sq = sample * sample
        idx = self.window_idx[channel]

        # swap the oldest squared sample for the new one
        self.window_sum[channel] += sample_sq - self.window_buffer[channel, idx]
        self.window_buffer[channel, idx] = sample_sq

        idx += 1
        if idx >= self.window_samples:
            idx = 0
            # resum once per window so rounding errors can't build up
            self.window_sum[channel] = float(np.sum(self.window_buffer[channel]))
        self.window_idx[channel] = idx

        mean_sq = max(self.window_sum[channel], 0.0) / self.window_samples
        return sqrt(mean_sq)


class compressor_base(dspg.dsp_block):
    """
    A base class shared by the peak and RMS compressors.

    The compressors only differ in their envelope detector; the gain
    law, gain combination and buffer handling are all shared here. The
    child class must create ``env_detector`` before calling this
    ``__init__``.

    When the envelope of a channel exceeds the threshold, the gain for
    that channel is ``1 - (envelope - threshold) * slope``, where
    ``slope = 1 - 1/ratio``. The channel gains of each frame are then
    combined by the gain combination function into the gains that are
    applied.

    Parameters
    ----------
    n_chans : int
        Number of channels the compressor runs on.
    threshold : float
        Linear envelope level above which compression occurs.
    ratio : float
        Compression ratio applied above the threshold, e.g. 4.0 for
        4:1. A ratio of 1 results in no compression, while a ratio of
        infinity results in limiting.
    gain_combination : {"per_channel", "average", "minimum"}, optional
        How the channel gains of a frame are combined. "per_channel"
        applies each channel's gain to that channel only, "average" and
        "minimum" apply the mean or lowest channel gain evenly to every
        channel. This cannot be changed after construction.
    clamp_gain : bool, optional
        If True, limit the gain to [0, 1]. By default the gain is not
        clamped, so extreme settings can invert or amplify the signal.

    Attributes
    ----------
    env_detector : envelope_detector_peak
        Nested envelope detector used to calculate the envelope of
        the signal.
    threshold : float
    slope : float
        The slope of the ratio, ``1 - 1/ratio``.
    combine_gains : function
        Function handle that combines the channel gains of a frame.
    clamp_gain : bool
    envelope_ceiling : float
        Envelopes are limited to this value before the gain calculation
        when processing whole frames.
    """

    def __init__(
        self, fs, n_chans, threshold, ratio, gain_combination="per_channel", clamp_gain=False
    ):
        super().__init__(fs, n_chans)

        self.threshold = threshold
        self.set_ratio(ratio)

        self.combine_gains = gc.get_gain_combination(gain_combination)
        self._gain_combination = gain_combination

        self.clamp_gain = clamp_gain
        self.envelope_ceiling = drcu.ENVELOPE_CEILING

    @property
    def fs(self):
        """The sample rate in Hz; changing this property recalculates
        all the detector coefficients.
        """
        return self.env_detector.fs

    @fs.setter
    def fs(self, value):
        if value != self.env_detector.fs:
            self.env_detector.update_to_sample_rate(value)

    @property
    def n_chans(self):
        """The number of channels; changing this property resizes the
        envelope detector.
        """
        return self.env_detector.n_chans

    @n_chans.setter
    def n_chans(self, value):
        if value != self.env_detector.n_chans:
            self.env_detector.set_channels(value)

    @property
    def attack_ms(self):
        """The attack time in milliseconds; changing this property also
        sets the attack coefficient at the current sample rate.
        """
        return self.env_detector.attack_ms

    @attack_ms.setter
    def attack_ms(self, value):
        self.env_detector.attack_ms = value

    @property
    def release_ms(self):
        """The release time in milliseconds; changing this property also
        sets the release coefficient at the current sample rate.
        """
        return self.env_detector.release_ms

    @release_ms.setter
    def release_ms(self, value):
        self.env_detector.release_ms = value

    @property
    def slope(self):
        """The slope of the ratio, ``1 - 1/ratio``. Use ``set_ratio``
        to change it.
        """
        return self._slope

    @property
    def gain_combination(self):
        """The name of the gain combination function."""
        return self._gain_combination

    def set_ratio(self, ratio):
        """Set the compression ratio, this recalculates the slope."""
        self._slope = drcu.slope_from_ratio(ratio)

    def set_attack_ms(self, attack_ms, fs=None):
        """
        Set the attack time, and recalculate the attack coefficient.

        Parameters
        ----------
        attack_ms : float
            The attack time in milliseconds.
        fs : float, optional
            The sample rate to calculate the coefficient for. If this
            differs from the current sample rate, all the coefficients
            are recalculated for the new rate first.
        """
        if fs is not None:
            self.fs = fs
        self.attack_ms = attack_ms

    def set_release_ms(self, release_ms, fs=None):
        """
        Set the release time, and recalculate the release coefficient.

        Parameters
        ----------
        release_ms : float
            The release time in milliseconds.
        fs : float, optional
            The sample rate to calculate the coefficient for. If this
            differs from the current sample rate, all the coefficients
            are recalculated for the new rate first.
        """
        if fs is not None:
            self.fs = fs
        self.release_ms = release_ms

    def update_to_sample_rate(self, fs):
        """Recalculate every coefficient for the sample rate ``fs``."""
        self.env_detector.update_to_sample_rate(fs)

    def set_channels(self, n_chans):
        """Change the number of channels of the envelope detector."""
        self.env_detector.set_channels(n_chans)

    def reset_state(self):
        """Reset the envelope detector to zero."""
        self.env_detector.reset_state()

    def gain_calc(self, envelope):
        """Calculate the gain for an envelope value with the current
        threshold and slope, clamping it if ``clamp_gain`` is set.
        """
        new_gain = drcu.compressor_gain_calc(envelope, self.threshold, self._slope)
        if self.clamp_gain:
            new_gain = drcu.clamp_gain(new_gain)
        return new_gain

    def get_gain_curve(self, max_gain_db=6, min_gain_db=-96):
        """Get the static compression curve, showing the relationship
        between the input and output level in decibels.

        Levels are magnitudes, so a negative gain (possible with a
        negative threshold or a slope above 1) shows as the level of the
        inverted output, not as a gap in the curve.
        """
        in_gains_db = np.linspace(min_gain_db, max_gain_db, 1000)
        gains_lin = utils.db2gain(in_gains_db)

        out_gains = np.zeros_like(gains_lin)

        for n in range(len(out_gains)):
            out_gains[n] = self.gain_calc(min(gains_lin[n], self.envelope_ceiling))

        out_gains_db = utils.db(out_gains) + in_gains_db

        return in_gains_db, out_gains_db

    def _check_n_samples(self, n_samples):
        if self._gain_combination == "per_channel":
            if n_samples != self.n_chans:
                raise drcu.ChannelCountError(
                    "Per channel compression needs %d samples per frame, got %d"
                    % (self.n_chans, n_samples)
                )
        elif n_samples > self.n_chans:
            raise drcu.ChannelCountError(
                "Got %d samples for a %d channel compressor" % (n_samples, self.n_chans)
            )

    def next_gain_for_channel(self, channel, sample):
        """
        Update the envelope of one channel and return the gain for it.

        The envelope is not limited to ``envelope_ceiling``, and the
        channel gain is not combined with any other channel.

        Parameters
        ----------
        channel : int
            The channel index of the sample.
        sample : float
            The new sample.

        Returns
        -------
        float
            The gain for this channel.
        """
        envelope = self.env_detector.process(sample, channel)
        return self.gain_calc(envelope)

    def next_gain(self, sample_list):
        """
        Update the envelope of every channel for one frame, and return
        the single gain to apply evenly to all channels.

        Only available for the "average" and "minimum" gain
        combinations. The mean of no channels is NaN, while the minimum
        of no channels is 1.0.

        Parameters
        ----------
        sample_list : list[float]
            One sample per channel. This must not be longer than
            ``n_chans``.

        Returns
        -------
        float
            The even gain for the frame.
        """
        if self._gain_combination not in gc.EVEN_GAIN_FUNCTIONS:
            raise ValueError(
                "next_gain needs an even gain combination, not %r" % self._gain_combination
            )
        if len(sample_list) > self.n_chans:
            raise drcu.ChannelCountError(
                "Got %d samples for a %d channel compressor" % (len(sample_list), self.n_chans)
            )

        even_gain = gc.EVEN_GAIN_FUNCTIONS[self._gain_combination]
        return even_gain(
            self.next_gain_for_channel(channel, sample)
            for channel, sample in enumerate(sample_list)
        )

    def process(self, sample, channel=0):
        """
        Update the envelope for a signal, then calculate and apply the
        gain for compression.

        Take one new sample and return the compressed sample, the gain
        and the envelope. Input should be scaled with 0 dB = 1.0. Only
        available for the "per_channel" gain combination, as the even
        combinations need every channel of a frame.

        """
        if self._gain_combination != "per_channel":
            raise NotImplementedError(
                "Even gain combinations need a whole frame, use process_channels"
            )

        envelope = self.env_detector.process(sample, channel)
        new_gain = self.gain_calc(envelope)

        y = sample * new_gain
        return y, new_gain, envelope

    def process_channels(self, sample_list: list[float]):
        """
        Update the envelopes for one frame, then calculate, combine and
        apply the gains for compression.

        Take one sample per channel and return the compressed samples,
        the gains applied to each channel and the envelope of each
        channel. Envelopes are limited to ``envelope_ceiling`` before
        the gain calculation. Input should be scaled with 0 dB = 1.0.

        """
        self._check_n_samples(len(sample_list))

        envelopes = [
            self.env_detector.process(sample, channel)
            for channel, sample in enumerate(sample_list)
        ]
        gains = [self.gain_calc(min(envelope, self.envelope_ceiling)) for envelope in envelopes]
        applied_gains = self.combine_gains(gains)

        y = [sample * gain for sample, gain in zip(sample_list, applied_gains)]
        return y, applied_gains, envelopes

    def process_frame(self, frame):
        """
        Take a list frames of samples and return the processed frames.

        A frame is defined as a list of 1-D numpy arrays, where the
        number of arrays is equal to the number of channels, and the
        length of the arrays is equal to the frame size.

        When calling self.process_channels only take the first output.

        """
        frame_np = np.array(frame, dtype=float)
        self._check_n_samples(frame_np.shape[0])

        output = np.zeros_like(frame_np)
        for sample in range(frame_np.shape[1]):
            output[:, sample] = self.process_channels(frame_np[:, sample].tolist())[0]

        return list(output)

    def process_buffer(self, buffer, frame_count, n_chans, fs, out=None):
        """
        Compress an interleaved buffer of ``frame_count`` frames.

        If ``fs`` differs from the current sample rate, all the
        coefficients are recalculated before any sample is processed.
        Integer numpy buffers are converted to float (full scale = 1.0)
        and back. Lists are treated as float samples.

        Parameters
        ----------
        buffer : np.ndarray or list
            Flat buffer of interleaved samples, at least
            ``frame_count * n_chans`` long.
        frame_count : int
            The number of frames to process.
        n_chans : int
            The number of interleaved channels in ``buffer``. This must
            match the compressor.
        fs : float
            The sample rate of ``buffer`` in Hz.
        out : np.ndarray or list, optional
            Where to write the output. If not given, ``buffer`` is
            compressed in place.

        Returns
        -------
        np.ndarray or list
            The container the output was written to.

        Raises
        ------
        ChannelCountError
            If ``n_chans`` does not match the compressor.
        ValueError
            If ``frame_count`` is not a non-negative integer, or
            ``buffer`` or ``out`` is too short or not flat.
        """
        if n_chans != self.n_chans:
            raise drcu.ChannelCountError(
                "Buffer has %d channels, compressor has %d" % (n_chans, self.n_chans)
            )

        try:
            frame_count = operator.index(frame_count)
        except TypeError:
            raise ValueError("frame_count must be an integer, got %r" % (frame_count,)) from None
        if frame_count < 0:
            raise ValueError("frame_count must not be negative, got %d" % frame_count)

        if isinstance(buffer, np.ndarray):
            buffer_np = buffer
        else:
            buffer_np = np.asarray(buffer, dtype=float)

        n_samples = frame_count * n_chans
        if buffer_np.ndim != 1:
            raise ValueError("Buffer must be a flat interleaved buffer")
        if buffer_np.shape[0] < n_samples:
            raise ValueError(
                "Buffer of %d samples too short for %d frames of %d channels"
                % (buffer_np.shape[0], frame_count, n_chans)
            )

        target = buffer if out is None else out
        if len(target) < n_samples:
            raise ValueError("Output too short for %d frames of %d channels" % (frame_count, n_chans))

        if fs != self.fs:
            self.update_to_sample_rate(fs)

        samples = utils.to_float_samples(buffer_np[:n_samples]).reshape(frame_count, n_chans)
        for n in range(frame_count):
            samples[n] = self.process_channels(samples[n].tolist())[0]

        if isinstance(target, np.ndarray):
            target[:n_samples] = utils.from_float_samples(samples.reshape(-1), target.dtype)
        else:
            out_dtype = buffer_np.dtype if target is buffer else float
            target[:n_samples] = utils.from_float_samples(samples.reshape(-1), out_dtype).tolist()

        return target


class compressor_peak(compressor_base):
    """
    A compressor based on the peak value of the signal. When the peak
    envelope of the signal exceeds the threshold, the signal amplitude
    is reduced by the compression ratio.

    The attack time sets how fast the envelope rises, and so how fast
    the compressor starts compressing. The release time sets how fast
    the envelope falls, and so how long the signal takes to return to
    its original level after the envelope drops below the threshold.

    Parameters
    ----------
    attack_ms : float
        Attack time of the compressor in milliseconds.
    release_ms : float
        Release time of the compressor in milliseconds.

    Attributes
    ----------
    env_detector : envelope_detector_peak
        Nested peak envelope detector used to calculate the envelope of
        the signal.
    """

    def __init__(
        self,
        fs,
        n_chans,
        attack_ms,
        release_ms,
        threshold,
        ratio,
        gain_combination="per_channel",
        clamp_gain=False,
    ):
        self.env_detector = envelope_detector_peak(
            fs,
            n_chans=n_chans,
            attack_ms=attack_ms,
            release_ms=release_ms,
        )

        super().__init__(fs, n_chans, threshold, ratio, gain_combination, clamp_gain)


class compressor_rms(compressor_base):
    """
    A compressor based on the RMS value of the signal. When the RMS
    envelope of the signal exceeds the threshold, the signal amplitude
    is reduced by the compression ratio.

    The RMS is measured over a sliding window, which is then smoothed
    with the attack and release times.

    Parameters
    ----------
    attack_ms : float
        Attack time of the compressor in milliseconds.
    release_ms : float
        Release time of the compressor in milliseconds.
    window_ms : float
        Length of the RMS window in milliseconds.

    Attributes
    ----------
    env_detector : envelope_detector_rms
        Nested RMS envelope detector used to calculate the envelope of
        the signal.
    """

    def __init__(
        self,
        fs,
        n_chans,
        attack_ms,
        release_ms,
        window_ms,
        threshold,
        ratio,
        gain_combination="per_channel",
        clamp_gain=False,
    ):
        self.env_detector = envelope_detector_rms(
            fs,
            n_chans=n_chans,
            attack_ms=attack_ms,
            release_ms=release_ms,
            window_ms=window_ms,
        )

        super().__init__(fs, n_chans, threshold, ratio, gain_combination, clamp_gain)

    @property
    def window_ms(self):
        """The RMS window length in milliseconds; changing this property
        also sets the window length in samples at the current sample
        rate.
        """
        return self.env_detector.window_ms

    @window_ms.setter
    def window_ms(self, value):
        self.env_detector.window_ms = value

    def set_window_ms(self, window_ms, fs=None):
        """
        Set the RMS window length, and recalculate it in samples.

        Parameters
        ----------
        window_ms : float
            The window length in milliseconds.
        fs : float, optional
            The sample rate to calculate the window for. If this
            differs from the current sample rate, all the coefficients
            are recalculated for the new rate first.
        """
        if fs is not None:
            self.fs = fs
        self.window_ms = window_ms


def make_compressor(
    kind,
    gain_combination,
    attack_ms,
    release_ms,
    fs,
    n_chans,
    threshold,
    ratio,
    window_ms=None,
    clamp_gain=False,
):
    """
    Create a compressor from the detector kind and gain combination
    names.

    Parameters
    ----------
    kind : {"peak", "rms"}
        The type of envelope detector to use.
    gain_combination : {"per_channel", "average", "minimum"}
        How the channel gains of a frame are combined.
    window_ms : float, optional
        Length of the RMS window in milliseconds, required for "rms".

    Returns
    -------
    compressor_base
        A ``compressor_peak`` or ``compressor_rms``.

    Raises
    ------
    ValueError
        If ``kind`` or ``gain_combination`` is unknown, or ``window_ms``
        is missing for an RMS compressor.
    """
    if kind == "peak":
        return compressor_peak(
            fs, n_chans, attack_ms, release_ms, threshold, ratio, gain_combination, clamp_gain
        )
    elif kind == "rms":
        if window_ms is None:
            raise ValueError("An RMS compressor needs window_ms")
        return compressor_rms(
            fs,
            n_chans,
            attack_ms,
            release_ms,
            window_ms,
            threshold,
            ratio,
            gain_combination,
            clamp_gain,
        )
    raise ValueError("Compressor kind must be 'peak' or 'rms', got %r" % (kind,))

# -*- coding: utf-8 -*-
"""
This script contains the supplementary signal functions shared by the
auditory-nerve demo scripts: stimulus synthesis (raised-cosine ramps, pure
tones), level calibration, frequency axes, audio-token reading and the
phase-locking analysis applied to the simulated firing rates.

All functions are pure and return new arrays.
"""

import logging
import numpy as np
import scipy.signal as sp_sig
import scipy.io.wavfile
import os
import urllib.request
from typing import NamedTuple, Optional, Tuple

logger = logging.getLogger(__name__)

P0 = 20e-6 # reference pressure (Pa) for dB SPL


class InvalidInputError(ValueError):
    """Raised when a signal or stimulus parameter violates a function contract."""


class ToneConfig(NamedTuple):
    """Parameters of a pure-tone stimulus.

    Attributes:
      freq: Frequency of the tone (Hz).
      phase: Starting phase (radians).
      dur: Duration (s).
      fs: Sampling rate (Hz).
      dur_ramp: Duration of each raised-cosine onset/offset ramp (s).
      level: Sound level (dB SPL re 20 uPa, RMS).
    """
    freq: float = 1e3
    phase: float = 0.0
    dur: float = 1.0
    fs: float = 100e3
    dur_ramp: float = 0.01
    level: float = 10.0


def n_samples(dur: float, fs: float) -> int:
    """Number of samples spanned by dur seconds at fs Hz, rounded half away from zero."""
    x = dur * fs
    return int(np.sign(x) * np.floor(np.abs(x) + 0.5))

def rms (x: np.ndarray, axis: int = 0) -> np.ndarray:
    """Compute RMS energy of a matrix over the specified axis."""
    sq = np.mean(np.square(x), axis = axis)
    return np.sqrt(sq)

def time_axis(n: int, fs: float) -> np.ndarray:
    """Time (s) at the beginning of each of n samples taken at fs Hz."""
    if fs <= 0:
        raise InvalidInputError("fs must be positive, got %r" % fs)
    return np.arange(n) / fs

def cosine_ramp(signal: np.ndarray, dur_ramp: float, fs: float) -> np.ndarray:
    """Ramp a signal with raised-cosine onset and offset ramps.

    The first round(dur_ramp*fs) samples are weighted by the rising half of a
    Hann window of twice that length, the last ones by its mirror image and
    the samples in between are left untouched.

    Args:
      signal: A one-dimensional waveform. Row (1 x N) and column (N x 1)
        vectors are accepted as well and keep their orientation.
      dur_ramp: Duration of each ramp (s).
      fs: Sampling rate of the signal (Hz).

    Returns:
      The ramped signal, with the same shape as the input.

    Raises:
      InvalidInputError: if the signal is not a vector, if fs is not positive,
        if dur_ramp is negative or if both ramps do not fit in the signal.
    """
    signal = np.asarray(signal, dtype=float)
    shape = signal.shape
    if signal.ndim == 0 or signal.ndim > 2 or (signal.ndim == 2 and min(shape) != 1):
        raise InvalidInputError("signal must be a vector, got an array of shape %s" % (shape,))
    if fs <= 0:
        raise InvalidInputError("fs must be positive, got %r" % fs)
    if dur_ramp < 0:
        raise InvalidInputError("dur_ramp must be non-negative, got %r" % dur_ramp)

    x = signal.reshape(-1) # work on a flat copy, restore the orientation at the end
    len_ramp = n_samples(dur_ramp, fs)
    if 2 * len_ramp > x.size:
        raise InvalidInputError(
            "ramp duration too long for signal: 2 x %d ramp samples > %d signal samples"
            % (len_ramp, x.size))

    ramp_segment = sp_sig.windows.hann(2 * len_ramp)[:len_ramp] # rising half
    ramp = np.concatenate((ramp_segment, np.ones(x.size - 2 * len_ramp), ramp_segment[::-1]))
    return (ramp * x).reshape(shape)

def synthesize_tone(config: ToneConfig) -> np.ndarray:
    """Synthesize a ramped pure tone scaled to the requested level.

    The sinusoid sin(2*pi*freq*t + phase) is sampled on [0, dur), ramped with
    cosine_ramp and then scaled so that its RMS pressure (before ramping)
    corresponds to config.level dB SPL.

    Returns:
      A 1D array of round(dur*fs) samples, in Pa.
    """
    if config.fs <= 0:
        raise InvalidInputError("fs must be positive, got %r" % config.fs)
    if config.dur <= 0:
        raise InvalidInputError("dur must be positive, got %r" % config.dur)
    n = n_samples(config.dur, config.fs)
    if n == 0:
        raise InvalidInputError("dur=%r s is shorter than one sample at fs=%r Hz" % (config.dur, config.fs))

    t = time_axis(n, config.fs)
    p = np.sin(2 * np.pi * config.freq * t + config.phase)
    p = cosine_ramp(p, config.dur_ramp, config.fs)
    return P0 * 10**(config.level/20) * np.sqrt(2) * p

def quick_tone(**kwargs) -> np.ndarray:
    """Synthesize a pure tone from keyword arguments.

    Accepts the fields of ToneConfig (freq, phase, dur, fs, dur_ramp, level);
    missing fields take their ToneConfig defaults.
    """
    unknown = set(kwargs) - set(ToneConfig._fields)
    if unknown:
        raise InvalidInputError("unknown tone parameter(s): %s" % ", ".join(sorted(unknown)))
    return synthesize_tone(ToneConfig(**kwargs))

def scale_to_level(x: np.ndarray, level: float) -> np.ndarray:
    """Calibrate a waveform so that its RMS pressure is level dB SPL."""
    x = np.asarray(x, dtype=float)
    x_rms = rms(x, axis=None)
    if x_rms == 0:
        raise InvalidInputError("cannot calibrate a silent signal")
    return P0 * 10**(level/20) * x / x_rms

def log_spaced(f_low: float, f_high: float, n: int) -> np.ndarray:
    """n logarithmically spaced frequencies from f_low to f_high (inclusive)."""
    _check_band(f_low, f_high)
    return np.exp(np.linspace(np.log(f_low), np.log(f_high), n))

def octave_spaced(f_low: float, f_high: float, step: float) -> np.ndarray:
    """Frequencies from f_low up to f_high in steps of step octaves."""
    _check_band(f_low, f_high)
    if step <= 0:
        raise InvalidInputError("step must be positive, got %r" % step)
    n = int(np.floor(np.log2(f_high / f_low) / step + 1e-9)) + 1
    return f_low * 2 ** (step * np.arange(n))

def _check_band(f_low, f_high):
    if f_low <= 0 or f_high <= 0:
        raise InvalidInputError("frequencies must be positive, got %r and %r" % (f_low, f_high))
    if f_high < f_low:
        raise InvalidInputError("f_high (%r) is below f_low (%r)" % (f_high, f_low))

def wavfile_read(wavfile: str,fs: Optional[float] = None) -> Tuple[np.ndarray, float]:
    """Read a wavfile and normalize integer samples to [-1, 1).
    If fs is given the signal is resampled to the given sampling frequency.
    Multi-channel files are reduced to their first channel.
    """
    fs_signal, speech = scipy.io.wavfile.read(wavfile)
    if not fs:
        fs=fs_signal

    if speech.dtype != 'float32' and speech.dtype != 'float64':
        if speech.dtype == 'int16':
            nb_bits = 16 # -> 16-bit wav files
        elif speech.dtype == 'int32':
            nb_bits = 32 # -> 32-bit wav files
        elif speech.dtype == 'uint8':
            nb_bits = 8 # -> 8-bit wav files are unsigned
            speech = speech.astype(float) - 128
        else:
            raise InvalidInputError("unsupported wav sample format %s" % speech.dtype)
        max_nb_bit = float(2 ** (nb_bits - 1))
        speech = speech / max_nb_bit # scale the signal to [-1.0,1.0)
    if speech.ndim > 1:
        speech = speech[:, 0]

    if fs_signal != fs :
        logger.debug("Resampling %s from %g Hz to %g Hz", wavfile, fs_signal, fs)
        signalr = sp_sig.resample_poly(speech, int(fs), int(fs_signal))
    else:
        signalr = speech

    return signalr, fs

def fetch_wavfile(url: str, dest: str) -> str:
    """Download a sound token to dest, unless it is already there, and return dest."""
    if os.path.exists(dest):
        logger.debug("Using cached token %s", dest)
        return dest
    logger.info("Downloading %s to %s", url, dest)
    urllib.request.urlretrieve(url, dest)
    return dest

def _as_response_vector(rate):
    rate = np.asarray(rate, dtype=float)
    if rate.ndim == 0 or rate.ndim > 2 or (rate.ndim == 2 and min(rate.shape) != 1):
        raise InvalidInputError("response must be a single channel, got an array of shape %s" % (rate.shape,))
    return rate.reshape(-1)

def vector_strength(rate: np.ndarray, fs: float, freq: float, t_start: float = 0.) -> float:
    """Compute the vector strength (synchronization index) of a response.

    Each time bin contributes a unit phasor at the phase of freq, weighted by
    the rate (or spike count) in that bin. The vector strength is the length
    of the summed phasor normalized by the total weight, between 0 (no phase
    locking) and 1 (all activity at a single phase).

    Args:
      rate: Firing rates or PSTH counts of a single channel sampled at fs
        (1D, row or column vector).
      fs: Sampling rate of the response (Hz).
      freq: The frequency to which phase locking is measured (Hz).
      t_start: Time (s) of the first sample re stimulus onset, when rate is
        a window cut out of a longer response.
    """
    rate = _as_response_vector(rate)
    if freq <= 0:
        raise InvalidInputError("freq must be positive, got %r" % freq)
    total = np.sum(rate)
    if total == 0:
        raise InvalidInputError("vector strength is undefined for a response without activity")
    t = t_start + time_axis(rate.size, fs)
    return float(np.abs(np.sum(rate * np.exp(1j * 2 * np.pi * freq * t))) / total)

def period_histogram(rate: np.ndarray, fs: float, freq: float,
                     n_bin: int = 16, t_start: float = 0.) -> Tuple[np.ndarray, np.ndarray]:
    """Fold a single-channel response over one period of freq.
    t_start is the time (s) of the first sample re stimulus onset, so that
    the phases stay referenced to the stimulus when rate is a window.

    Returns:
      A 2-ple containing:
        counts: the activity summed in each of the n_bin phase bins
        edges: the n_bin+1 bin edges in radians, from 0 to 2*pi
    """
    rate = _as_response_vector(rate)
    if freq <= 0:
        raise InvalidInputError("freq must be positive, got %r" % freq)
    period = 1 / freq
    t = t_start + time_axis(rate.size, fs)
    counts, _ = np.histogram(np.mod(t, period), bins=n_bin, range=(0, period), weights=rate)
    edges = np.linspace(0, 2 * np.pi, n_bin + 1)
    return counts, edges

def mean_rate(rate: np.ndarray, fs: float, t_start: float = 0.,
              t_stop: Optional[float] = None) -> np.ndarray:
    """Average firing rate over the window [t_start, t_stop) of the response.
    rate is sampled along the first axis; other axes (e.g. CFs) are kept.
    """
    rate = np.asarray(rate, dtype=float)
    i_start = n_samples(t_start, fs)
    i_stop = rate.shape[0] if t_stop is None else n_samples(t_stop, fs)
    if not 0 <= i_start < i_stop <= rate.shape[0]:
        raise InvalidInputError("window [%r, %r) s does not fit in a %d-sample response" % (t_start, t_stop, rate.shape[0]))
    return np.mean(rate[i_start:i_stop], axis=0)

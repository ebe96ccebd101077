# -*- coding: utf-8 -*-
"""Tests of the stimulus and analysis functions."""

import numpy as np
import pytest
import scipy.io.wavfile
import scipy.signal as sp_sig
import urllib.request
from numpy.testing import assert_allclose, assert_array_equal

from an_functions import (P0, InvalidInputError, ToneConfig, cosine_ramp, fetch_wavfile,
                          log_spaced, mean_rate, n_samples, octave_spaced, period_histogram,
                          quick_tone, rms, scale_to_level, synthesize_tone, time_axis,
                          vector_strength, wavfile_read)


def test_n_samples_rounds_half_away_from_zero():
    assert n_samples(0.5, 1) == 1
    assert n_samples(2.5, 1) == 3
    assert n_samples(0.01, 100e3) == 1000
    assert n_samples(0.1, 100e3) == 10000


def test_ramp_envelope():
    fs = 100e3
    env = cosine_ramp(np.ones(5000), 0.01, fs)
    n = 1000
    assert env.shape == (5000,)
    assert_allclose(env[0], 0, atol=1e-12)
    assert_allclose(env[-1], 0, atol=1e-12)
    # ramping an all-ones signal yields the envelope itself
    assert_array_equal(env[:n], sp_sig.windows.hann(2 * n)[:n])
    assert_array_equal(env[n:-n], 1)
    # offset ramp is the time-reversed onset ramp
    assert_array_equal(env[-n:], env[:n][::-1])
    for i in range(n):
        assert env[i] == env[len(env) - 1 - i]
    assert np.all(np.diff(env[:n]) > 0)


def test_ramp_applies_envelope_to_signal():
    fs = 20e3
    x = np.random.RandomState(0).randn(1000)
    env = cosine_ramp(np.ones(1000), 0.005, fs)
    assert_allclose(cosine_ramp(x, 0.005, fs), env * x)


def test_ramp_does_not_modify_input():
    x = np.ones(100)
    cosine_ramp(x, 1e-4, 100e3)
    assert_array_equal(x, 1)


def test_ramp_zero_duration_is_identity():
    x = np.random.RandomState(1).randn(300)
    assert_array_equal(cosine_ramp(x, 0, 100e3), x)


def test_ramp_preserves_orientation():
    fs = 100e3
    x = np.sin(np.arange(400) / 7.)
    flat = cosine_ramp(x, 1e-3, fs)
    row = cosine_ramp(x[np.newaxis, :], 1e-3, fs)
    col = cosine_ramp(x[:, np.newaxis], 1e-3, fs)
    assert row.shape == (1, 400)
    assert col.shape == (400, 1)
    assert_array_equal(row[0], flat)
    assert_array_equal(col[:, 0], flat)


def test_ramp_accepts_lists():
    out = cosine_ramp([1., 1., 1., 1.], 1, 1)
    assert_allclose(out, [0., 1., 1., 0.], atol=1e-12)


@pytest.mark.parametrize('signal', [np.ones((3, 4)), np.ones((2, 2, 2)), np.float64(1.)])
def test_ramp_rejects_non_vectors(signal):
    with pytest.raises(InvalidInputError):
        cosine_ramp(signal, 0, 100e3)


def test_ramp_too_long_for_signal():
    with pytest.raises(InvalidInputError):
        cosine_ramp(np.ones(100), 1.0, 100000)
    # both ramps exactly fill the signal
    env = cosine_ramp(np.ones(100), 50e-5, 100000)
    assert_array_equal(env[50:], env[:50][::-1])
    with pytest.raises(InvalidInputError):
        cosine_ramp(np.ones(99), 50e-5, 100000)


def test_ramp_rejects_invalid_parameters():
    with pytest.raises(InvalidInputError):
        cosine_ramp(np.ones(100), -0.01, 100e3)
    with pytest.raises(InvalidInputError):
        cosine_ramp(np.ones(100), 0.0, 0)


@pytest.mark.parametrize('dur, fs, expected', [
    (0.1, 100e3, 10000),
    (0.0125, 44100, 551),
    (0.5, 20e3, 10000),
    (1.0, 8000, 8000),
])
def test_tone_length(dur, fs, expected):
    p = synthesize_tone(ToneConfig(dur=dur, fs=fs, dur_ramp=0.001))
    assert len(p) == expected == n_samples(dur, fs)


def test_tone_scenario():
    fs = 100000
    p = synthesize_tone(ToneConfig(freq=1000, level=20, dur=0.1, fs=fs, dur_ramp=0.01))
    assert p.shape == (10000,)
    assert p[0] == 0
    unramped = P0 * 10**(20/20) * np.sqrt(2) * np.sin(2 * np.pi * 1000 * time_axis(10000, fs))
    # the taper reaches 1 at the inner edge of the onset ramp
    assert_allclose(p[999], unramped[999], rtol=1e-5)
    assert_allclose(p[1000:-1000], unramped[1000:-1000], rtol=1e-12)
    assert_allclose(p[-1], 0, atol=1e-15)


@pytest.mark.parametrize('level', [-10., 0., 20., 60., 90.])
def test_tone_level(level):
    p = synthesize_tone(ToneConfig(freq=1000, dur=0.1, fs=100e3, dur_ramp=0, level=level))
    assert_allclose(rms(p), P0 * 10**(level/20), rtol=1e-9)


def test_tone_phase():
    p = synthesize_tone(ToneConfig(phase=np.pi / 2, dur_ramp=0, dur=0.01, level=0))
    assert_allclose(p[0], P0 * np.sqrt(2))


def test_quick_tone_matches_config():
    assert_array_equal(quick_tone(freq=500, dur=0.05, level=30, fs=50e3),
                       synthesize_tone(ToneConfig(freq=500, dur=0.05, level=30, fs=50e3)))
    assert len(quick_tone()) == 100000


def test_quick_tone_rejects_unknown_parameter():
    with pytest.raises(InvalidInputError):
        quick_tone(frequency=1000)


@pytest.mark.parametrize('config', [
    ToneConfig(fs=0),
    ToneConfig(fs=-100e3),
    ToneConfig(dur=0),
    ToneConfig(dur=-1),
    ToneConfig(dur=1e-7, dur_ramp=0),
])
def test_tone_rejects_degenerate_parameters(config):
    with pytest.raises(InvalidInputError):
        synthesize_tone(config)


def test_tone_propagates_ramp_error():
    with pytest.raises(InvalidInputError):
        quick_tone(dur=0.01, dur_ramp=0.01)


def test_scale_to_level():
    x = np.random.RandomState(2).randn(2000)
    assert_allclose(rms(scale_to_level(x, 50)), P0 * 10**(50/20))
    with pytest.raises(InvalidInputError):
        scale_to_level(np.zeros(10), 50)


def test_frequency_axes():
    f = log_spaced(125, 16e3, 121)
    assert len(f) == 121
    assert_allclose(f[[0, -1]], [125, 16e3])
    assert_allclose(np.diff(np.log(f)), np.log(16e3 / 125) / 120)

    f = octave_spaced(250, 8e3, 1/4)
    assert len(f) == 21
    assert_allclose(f[[0, 4, -1]], [250, 500, 8e3])

    with pytest.raises(InvalidInputError):
        log_spaced(0, 1e3, 10)
    with pytest.raises(InvalidInputError):
        octave_spaced(1e3, 500, 1)
    with pytest.raises(InvalidInputError):
        octave_spaced(250, 8e3, 0)


def test_vector_strength():
    fs, f = 10e3, 100.
    rate = np.zeros(1000)
    rate[3::100] = 1. # same phase in every cycle
    assert_allclose(vector_strength(rate, fs, f), 1.)
    assert_allclose(vector_strength(np.ones(1000), fs, f), 0., atol=1e-9)
    half = 0.5 * (1 + np.sin(2 * np.pi * f * time_axis(1000, fs)))
    assert_allclose(vector_strength(half, fs, f), 0.5, atol=1e-9)
    with pytest.raises(InvalidInputError):
        vector_strength(np.zeros(100), fs, f)


def test_period_histogram():
    fs, f = 10e3, 100.
    rate = np.zeros(1000)
    rate[3::100] = 2.
    counts, edges = period_histogram(rate, fs, f, n_bin=16)
    assert counts.shape == (16,)
    assert edges.shape == (17,)
    assert_allclose(edges[[0, -1]], [0, 2 * np.pi])
    assert counts[0] == 20
    assert counts.sum() == rate.sum()


def test_phase_locking_accepts_row_and_column_vectors():
    fs, f = 10e3, 100.
    rate = 0.5 * (1 + np.sin(2 * np.pi * f * time_axis(1000, fs)))
    assert_allclose(vector_strength(rate[:, np.newaxis], fs, f), 0.5, atol=1e-9)
    assert_allclose(vector_strength(rate[np.newaxis, :], fs, f), 0.5, atol=1e-9)
    counts, _ = period_histogram(rate, fs, f)
    col_counts, _ = period_histogram(rate[:, np.newaxis], fs, f)
    assert_allclose(col_counts, counts)
    with pytest.raises(InvalidInputError):
        vector_strength(np.ones((1000, 2)), fs, f)
    with pytest.raises(InvalidInputError):
        period_histogram(np.ones((1000, 2)), fs, f)


def test_period_histogram_of_window_keeps_stimulus_phase():
    fs, f = 20e3, 250. # 80 samples per period
    rate = np.zeros(2000)
    rate[2::80] = 1. # at the start of every period
    counts, _ = period_histogram(rate, fs, f)
    assert np.argmax(counts) == 0

    i_start = 200 # not a whole number of periods
    window = rate[i_start:]
    counts, _ = period_histogram(window, fs, f, t_start=i_start / fs)
    assert np.argmax(counts) == 0
    assert counts[0] == window.sum()
    # phases re the start of the window are shifted
    counts, _ = period_histogram(window, fs, f)
    assert counts[0] == 0

    half = 0.5 * (1 + np.sin(2 * np.pi * f * time_axis(2000, fs)))
    assert_allclose(vector_strength(half[i_start:], fs, f, t_start=i_start / fs),
                    vector_strength(half[i_start:], fs, f))


def test_mean_rate():
    fs = 1000.
    rate = np.concatenate((np.full(100, 200.), np.full(50, 0.)))
    assert_allclose(mean_rate(rate, fs, 0., 0.1), 200.)
    assert_allclose(mean_rate(rate, fs), 200. * 100 / 150)
    two_cfs = np.stack((rate, 2 * rate), axis=1)
    assert_allclose(mean_rate(two_cfs, fs, 0., 0.1), [200., 400.])
    with pytest.raises(InvalidInputError):
        mean_rate(rate, fs, 0.1, 0.5)


def test_wavfile_read(tmp_path):
    wav = str(tmp_path / 'token.wav')
    x = np.zeros(1000, dtype=np.int16)
    x[10] = 16384
    scipy.io.wavfile.write(wav, 10000, x)

    y, fs = wavfile_read(wav)
    assert fs == 10000
    assert_allclose(y[10], 0.5)

    y, fs = wavfile_read(wav, fs=20000)
    assert fs == 20000
    assert len(y) == 2000


def test_fetch_wavfile(tmp_path, monkeypatch):
    calls = []
    def fake_urlretrieve(url, dest):
        calls.append(url)
        with open(dest, 'wb') as f:
            f.write(b'RIFF')
    monkeypatch.setattr(urllib.request, 'urlretrieve', fake_urlretrieve)

    dest = str(tmp_path / 'token.wav')
    assert fetch_wavfile('http://example.org/token.wav', dest) == dest
    assert fetch_wavfile('http://example.org/token.wav', dest) == dest
    assert calls == ['http://example.org/token.wav']

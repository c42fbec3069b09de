"""Tests for the energy-rise onset detector."""

import numpy as np
import pytest

from pyseamloop.analysis.onset import detect_onsets, frame_energy, frame_rms
from pyseamloop.audio import AudioSignal


def test_frame_energy_layout():
    samples = np.ones(1024 + 512 * 5)
    energy = frame_energy(samples, 1024, 512)
    # The trailing partial hop is dropped
    assert len(energy) == 5
    assert np.allclose(energy, 1.0)


def test_frame_energy_short_signal():
    assert len(frame_energy(np.ones(1000), 1024, 512)) == 0


def test_frame_rms_of_constant():
    assert np.allclose(frame_rms(np.full(4096, 0.5)), 0.5)


def test_silence_has_no_onsets(silent_signal):
    assert len(detect_onsets(silent_signal)) == 0


def test_signal_shorter_than_a_frame():
    signal = AudioSignal.from_array(np.random.default_rng(0).uniform(-1, 1, 800), 22050)
    assert len(detect_onsets(signal)) == 0


def test_single_step_onset():
    sr = 22050
    audio = np.zeros(sr)
    t = np.arange(sr - 5120) / sr
    audio[5120:] = 0.5 * np.sin(2 * np.pi * 440 * t)

    onsets = detect_onsets(AudioSignal.from_array(audio, sr))

    # Frame 9 is the first to overlap the tone; frame 10 rises by less than 1.5x
    assert len(onsets) == 1
    assert onsets[0] == pytest.approx(9 * 512 / sr)


def test_quiet_rise_is_ignored():
    sr = 22050
    audio = np.zeros(sr)
    t = np.arange(sr - 5120) / sr
    audio[5120:] = 0.005 * np.sin(2 * np.pi * 440 * t)

    assert len(detect_onsets(AudioSignal.from_array(audio, sr))) == 0


def test_click_track_onsets_follow_clicks(click_signal):
    onsets = detect_onsets(click_signal)

    assert len(onsets) >= 15
    assert np.all(np.diff(onsets) > 0)
    # Each onset sits within one frame of a click
    nearest = np.abs(onsets[:, None] - np.arange(0, 10, 0.5)[None, :]).min(axis=1)
    assert np.all(nearest < 1024 / 22050)


def test_onsets_are_deterministic(click_signal):
    assert np.array_equal(detect_onsets(click_signal), detect_onsets(click_signal))

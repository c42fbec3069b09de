"""Tests for the main-section locator."""

import numpy as np
import pytest

from pyseamloop.analysis.sections import MainSection, find_main_section, smooth_energy
from pyseamloop.audio import AudioSignal

SR = 22050


def _tone(seconds: float, amplitude: float = 0.5) -> np.ndarray:
    t = np.arange(int(seconds * SR)) / SR
    return amplitude * np.sin(2 * np.pi * 440 * t)


def _silence(seconds: float) -> np.ndarray:
    return np.zeros(int(seconds * SR))


def test_smoothing_averages_only_existing_neighbours():
    assert np.allclose(smooth_energy(np.array([0.0, 1.0, 2.0])), 1.0)
    assert np.allclose(smooth_energy(np.ones(40)), 1.0)


def test_smoothing_window_reaches_five_frames():
    energy = np.zeros(30)
    energy[15] = 11.0
    smoothed = smooth_energy(energy)
    assert np.allclose(smoothed[10:21], 1.0)
    assert smoothed[9] == pytest.approx(0.0)
    assert smoothed[21] == pytest.approx(0.0)


def test_silence_spans_whole_track(silent_signal):
    section = find_main_section(silent_signal)
    assert section.start == 0.0
    assert section.end == pytest.approx(silent_signal.duration)


def test_too_short_for_a_frame_spans_whole_track():
    signal = AudioSignal.from_array(_tone(0.02), SR)
    section = find_main_section(signal)
    assert (section.start, section.end) == (0.0, signal.duration)


def test_quiet_intro_and_outro_are_excluded():
    audio = np.concatenate([_silence(2), _tone(4), _silence(2)])
    section = find_main_section(AudioSignal.from_array(audio, SR))

    # Body runs 2s-6s; smoothing widens it slightly, padding adds 0.5s
    assert 1.3 < section.start < 1.7
    assert 6.3 < section.end < 6.7


def test_section_spans_from_first_to_last_loud_region():
    audio = np.concatenate([_silence(1), _tone(2), _silence(3), _tone(2), _silence(2)])
    section = find_main_section(AudioSignal.from_array(audio, SR))

    # The quiet gap in the middle does not split the section
    assert section.start < 1.0
    assert section.end > 7.5
    assert section.contains(3.5, 5.5)


def test_contains_is_inclusive_of_bounds():
    section = MainSection(1.0, 5.0)
    assert section.contains(1.0, 5.0)
    assert not section.contains(0.99, 4.0)
    assert not section.contains(2.0, 5.01)

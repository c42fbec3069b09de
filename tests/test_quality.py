"""Tests for loop boundary validation."""

import numpy as np
import pytest

from pyseamloop.analysis.quality import validate_loop
from pyseamloop.audio import AudioSignal
from pyseamloop.exceptions import InvalidInputError

SR = 22050


def test_constant_signal_is_seamless():
    signal = AudioSignal.from_array(np.full(3 * SR, 0.2), SR)
    validation = validate_loop(signal, 0.5, 1.5)

    assert validation.error is None
    assert validation.amplitude_diff == pytest.approx(0.0)
    assert validation.amplitude_score == pytest.approx(1.0)
    assert validation.correlation == pytest.approx(1.0)
    assert validation.score == pytest.approx(1.0)
    assert validation.is_seamless


def test_missing_trailing_audio_scores_amplitude_only():
    signal = AudioSignal.from_array(np.full(3 * SR, 0.2), SR)
    validation = validate_loop(signal, 1.0, 2.5)

    assert validation.correlation == 0.0
    assert validation.spectral_score == 0.0
    assert validation.score == pytest.approx(0.7)
    assert not validation.is_seamless


def test_whole_cycle_sine_loop_is_seamless():
    sr = 22000
    # 55-sample period: both the 10ms edges and the loop hold whole cycles
    t = np.arange(4 * sr) / sr
    signal = AudioSignal.from_array(np.sin(2 * np.pi * 400 * t), sr)
    validation = validate_loop(signal, 1.0, 2.0)

    assert validation.amplitude_diff == pytest.approx(0.0, abs=1e-6)
    assert validation.correlation == pytest.approx(1.0)
    assert validation.is_seamless


def test_repeating_period_correlates_with_next(periodic_signal):
    validation = validate_loop(periodic_signal, 2.0, 4.0)

    assert validation.correlation == pytest.approx(1.0)
    assert validation.spectral_score == pytest.approx(1.0)
    # The attack at the loop start differs from the settled tail
    assert validation.amplitude_score < 1.0


def test_noise_is_not_seamless():
    rng = np.random.default_rng(7)
    signal = AudioSignal.from_array(rng.uniform(-1, 1, 4 * SR), SR)
    validation = validate_loop(signal, 0.5, 1.7)

    assert abs(validation.correlation) < 0.1
    assert validation.score < 0.5
    assert not validation.is_seamless


def test_anticorrelated_audio_clips_spectral_score():
    sr = 1000
    period = np.concatenate([np.ones(500), -np.ones(500)])
    signal = AudioSignal.from_array(np.tile(period, 4), sr)
    # [0.5, 1.0) is all -1 and followed by +1
    validation = validate_loop(signal, 0.5, 1.0)

    assert validation.correlation == pytest.approx(-1.0)
    assert validation.spectral_score == 0.0


@pytest.mark.parametrize("start, end", [(-0.5, 1.0), (1.0, 1.0), (2.0, 1.0), (1.0, 10.0)])
def test_invalid_bounds_reported(start, end):
    signal = AudioSignal.from_array(np.full(3 * SR, 0.2), SR)
    validation = validate_loop(signal, start, end)

    assert validation.error == "Invalid loop bounds"
    assert validation.score == 0.0
    assert not validation.is_seamless


@pytest.mark.parametrize("start, end", [(float("nan"), 1.0), (0.0, float("inf"))])
def test_non_finite_bounds_raise(start, end):
    signal = AudioSignal.from_array(np.full(3 * SR, 0.2), SR)
    with pytest.raises(InvalidInputError):
        validate_loop(signal, start, end)


def test_to_dict_is_json_friendly():
    signal = AudioSignal.from_array(np.full(3 * SR, 0.2), SR)
    data = validate_loop(signal, 0.5, 1.5).to_dict()

    assert set(data) == {
        "score", "is_seamless", "amplitude_score", "spectral_score",
        "amplitude_diff", "correlation", "error",
    }
    assert isinstance(data["is_seamless"], bool)

"""Tests for signal construction, loading and zero-crossing search."""

import numpy as np
import pytest
import soundfile as sf

from pyseamloop.audio import AudioSignal, load_signal, nearest_zero_crossing
from pyseamloop.exceptions import AudioLoadError, InvalidInputError
from tests.conftest import generate_click_track


@pytest.mark.parametrize(
    "samples, sr",
    [
        (None, 22050),
        ([], 22050),
        (np.zeros((2, 100)), 22050),
        (np.zeros(100), 0),
        (np.zeros(100), -44100),
        (np.zeros(100), 22050.5),
        (np.array([0.0, np.nan, 0.0]), 22050),
        (np.array([0.0, np.inf]), 22050),
    ],
)
def test_malformed_signal_rejected(samples, sr):
    with pytest.raises(InvalidInputError):
        AudioSignal.from_array(samples, sr)


def test_invalid_input_is_a_value_error():
    with pytest.raises(ValueError):
        AudioSignal.from_array([], 22050)


def test_signal_properties():
    signal = AudioSignal.from_array(np.zeros(44100, dtype=np.float32), 22050)
    assert signal.samples.dtype == np.float64
    assert signal.length == 44100
    assert signal.duration == pytest.approx(2.0)
    assert signal.seconds_to_samples(1.5) == 33075
    assert signal.samples_to_seconds(11025) == pytest.approx(0.5)


def test_signal_is_isolated_from_caller_buffer():
    raw = np.ones(1000)
    signal = AudioSignal.from_array(raw, 1000)
    raw[:] = 0.0
    assert np.all(signal.samples == 1.0)
    with pytest.raises(ValueError):
        signal.samples[0] = 2.0


def test_load_signal_downmixes(tmp_path):
    mono = generate_click_track(bpm=120, duration_seconds=2)
    stereo = np.stack([mono, mono], axis=1)
    wav_path = tmp_path / "stereo.wav"
    sf.write(str(wav_path), stereo, 22050)

    signal = load_signal(wav_path)
    assert signal.sample_rate == 22050
    assert signal.samples.ndim == 1
    assert signal.duration == pytest.approx(2.0, abs=1e-3)


def test_load_signal_invalid_file(tmp_path):
    bad = tmp_path / "broken.wav"
    bad.write_bytes(b"definitely not audio")
    with pytest.raises(AudioLoadError):
        load_signal(bad)


def test_nearest_zero_crossing_picks_closest():
    # Sign flips after every 10 samples: crossings at 9, 19, 29, ...
    audio = np.repeat([1.0, -1.0] * 10, 10)
    assert nearest_zero_crossing(audio, 2000, 23) == 19
    assert nearest_zero_crossing(audio, 2000, 27) == 29


def test_nearest_zero_crossing_without_crossing():
    audio = np.ones(1000)
    assert nearest_zero_crossing(audio, 2000, 500) == 500

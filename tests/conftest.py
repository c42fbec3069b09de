"""Shared test fixtures for loop detection tests."""

import numpy as np
import pytest

from pyseamloop.audio import AudioSignal


def generate_click_track(
    bpm: float,
    beats_per_bar: int = 4,
    duration_seconds: float = 10.0,
    sr: int = 22050,
    accent_ratio: float = 2.0,
    accent_offset: int = 0,
) -> np.ndarray:
    """Generate a synthetic click track with accented bar starts.

    `accent_offset` shifts the accent to a later beat of the bar.
    Returns mono audio at the given sample rate.
    """
    n_samples = int(duration_seconds * sr)
    audio = np.zeros(n_samples, dtype=np.float32)

    beat_interval = 60.0 / bpm  # seconds per beat
    click_duration = 0.02  # 20ms click
    click_samples = int(click_duration * sr)

    # Create click sound (short sine burst with envelope)
    t_click = np.arange(click_samples) / sr
    click = np.sin(2 * np.pi * 1000 * t_click) * np.exp(-t_click * 100)

    beat = 0
    time = 0.0
    while time < duration_seconds:
        sample_pos = int(time * sr)
        is_accent = (beat % beats_per_bar) == accent_offset
        amplitude = accent_ratio if is_accent else 1.0

        end = min(sample_pos + click_samples, n_samples)
        length = end - sample_pos
        if length > 0:
            audio[sample_pos:end] += click[:length] * amplitude

        time += beat_interval
        beat += 1

    # Normalize
    peak = np.max(np.abs(audio))
    if peak > 0:
        audio = audio / peak

    return audio


def generate_periodic_tone(
    period_seconds: float = 2.0,
    repeats: int = 4,
    sr: int = 16384,
    freq: float = 440.0,
) -> np.ndarray:
    """A decaying tone repeated exactly every `period_seconds`.

    Each period opens with a strong attack that settles to a steady level,
    so every period boundary is a clear onset.
    """
    n_period = int(period_seconds * sr)
    t = np.arange(n_period) / sr
    envelope = 0.3 + 0.7 * np.exp(-40 * t)
    one_period = envelope * np.sin(2 * np.pi * freq * t)
    return np.tile(one_period, repeats)


def generate_bursts(times: list, duration_seconds: float, sr: int = 22050) -> np.ndarray:
    """Isolated 20ms clicks at the given times over silence."""
    audio = np.zeros(int(duration_seconds * sr))
    n_click = int(0.02 * sr)
    t_click = np.arange(n_click) / sr
    click = np.sin(2 * np.pi * 1000 * t_click) * np.exp(-t_click * 200)
    for time in times:
        pos = int(time * sr)
        end = min(pos + n_click, len(audio))
        audio[pos:end] += click[:end - pos]
    return audio


@pytest.fixture
def click_signal():
    """Click track in 4/4 at 120 BPM."""
    return AudioSignal.from_array(generate_click_track(bpm=120, duration_seconds=10), 22050)


@pytest.fixture
def periodic_signal():
    """Tone repeating exactly every 2.0s for 8s."""
    return AudioSignal.from_array(generate_periodic_tone(), 16384)


@pytest.fixture
def silent_signal():
    """Three seconds of digital silence."""
    return AudioSignal.from_array(np.zeros(3 * 22050), 22050)


@pytest.fixture
def short_bursts_signal():
    """Two clicks in under a second: too short for any loop candidate."""
    return AudioSignal.from_array(generate_bursts([0.1, 0.35], duration_seconds=0.8), 22050)

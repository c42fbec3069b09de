"""
Beat Grid and Downbeats.

The grid is a plain arithmetic progression at the estimated tempo; it only
has to bound loop candidates, not track expressive timing. Downbeats are
picked on that grid from local energy.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np
from numba import njit

if TYPE_CHECKING:
    from pyseamloop.audio import AudioSignal

from pyseamloop.analysis.constants import (
    BEATS_PER_BAR,
    DOWNBEAT_HALF_WINDOW,
    DOWNBEAT_LOOKAHEAD,
    MIN_REFINED_DOWNBEATS,
)
from pyseamloop.exceptions import InvalidInputError


@dataclass(slots=True, frozen=True, eq=False)
class BeatGrid:
    """Evenly spaced beat times covering [0, duration)."""

    bpm: float
    beats: np.ndarray

    @property
    def beat_duration(self) -> float:
        return 60.0 / self.bpm

    @property
    def bar_duration(self) -> float:
        return self.beat_duration * BEATS_PER_BAR

    def __len__(self) -> int:
        return len(self.beats)


def build_beat_grid(bpm: float, duration: float) -> BeatGrid:
    if not bpm > 0:
        raise InvalidInputError(f"Tempo must be positive, got {bpm}.")

    beat_duration = 60.0 / bpm
    # Multiplying instead of accumulating keeps late beats free of drift
    n_beats = int(np.ceil(duration / beat_duration)) if duration > 0 else 0
    beats = np.arange(n_beats, dtype=np.float64) * beat_duration
    beats = beats[beats < duration]
    return BeatGrid(bpm=float(bpm), beats=beats)


@njit(cache=True)
def _window_rms(samples: np.ndarray, centers: np.ndarray, half: int) -> np.ndarray:
    n = samples.shape[0]
    out = np.zeros(centers.shape[0], dtype=np.float64)

    for i in range(centers.shape[0]):
        start = max(0, centers[i] - half)
        end = min(n, centers[i] + half)
        if end <= start:
            continue
        s = 0.0
        for k in range(start, end):
            s += samples[k] * samples[k]
        out[i] = np.sqrt(s / (end - start))

    return out


def beat_strengths(signal: AudioSignal, beats: np.ndarray) -> np.ndarray:
    """RMS over a +/-1024 sample window around each beat, clipped to the signal."""
    if len(beats) == 0:
        return np.zeros(0, dtype=np.float64)
    centers = np.floor(np.asarray(beats) * signal.sample_rate).astype(np.int64)
    return _window_rms(signal.samples, centers, DOWNBEAT_HALF_WINDOW)


def _strong_beat_indices(strengths: np.ndarray) -> list[int]:
    """Beats at least as strong as each of the following beats of their bar."""
    picked = []
    # The last beats lack a full look-ahead and are never picked
    last = len(strengths) - DOWNBEAT_LOOKAHEAD
    i = 0
    while i < last:
        following = strengths[i + 1:i + 1 + DOWNBEAT_LOOKAHEAD]
        if np.all(strengths[i] >= following):
            picked.append(i)
            # Skip the rest of the bar so bars never overlap
            i += DOWNBEAT_LOOKAHEAD
        i += 1
    return picked


def locate_downbeats(signal: AudioSignal, grid: BeatGrid) -> np.ndarray:
    """
    Pick bar starts on the beat grid.

    The energy-based set wins when it finds at least two bars; otherwise
    every fourth beat from the first is used.
    """
    beats = grid.beats
    if len(beats) == 0:
        return np.zeros(0, dtype=np.float64)

    naive = beats[::BEATS_PER_BAR]

    strengths = beat_strengths(signal, beats)
    refined = beats[_strong_beat_indices(strengths)]

    if len(refined) >= MIN_REFINED_DOWNBEATS:
        logging.debug(f"Using {len(refined)} energy-based downbeats")
        return refined

    logging.debug(f"Using {len(naive)} grid downbeats")
    return naive

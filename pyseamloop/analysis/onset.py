"""
Onset Detection.

Energy-rise onset detector over fixed frames. The frame energy primitives are
shared with the main-section locator so both stages see the same framing.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import numpy as np
from numba import njit

if TYPE_CHECKING:
    from pyseamloop.audio import AudioSignal

from pyseamloop.analysis.constants import (
    FRAME_SIZE,
    HOP_LENGTH,
    ONSET_MIN_RMS,
    ONSET_RISE_RATIO,
)


@njit(cache=True)
def frame_energy(samples: np.ndarray, frame: int, hop: int) -> np.ndarray:
    """Mean-square energy per frame."""
    n = samples.shape[0]
    n_frames = (n - frame) // hop if n >= frame else 0
    energy = np.zeros(n_frames, dtype=np.float64)

    for i in range(n_frames):
        start = i * hop
        s = 0.0
        for k in range(start, start + frame):
            s += samples[k] * samples[k]
        energy[i] = s / frame

    return energy


def frame_rms(samples: np.ndarray, frame: int = FRAME_SIZE, hop: int = HOP_LENGTH) -> np.ndarray:
    return np.sqrt(frame_energy(samples, frame, hop))


@njit(cache=True)
def _rising_frames(rms: np.ndarray, ratio: float, floor: float) -> np.ndarray:
    flags = np.zeros(rms.shape[0], dtype=np.bool_)
    for i in range(1, rms.shape[0]):
        if rms[i] > rms[i - 1] * ratio and rms[i] > floor:
            flags[i] = True
    return flags


def detect_onsets(signal: AudioSignal) -> np.ndarray:
    """
    Detect note/percussion onsets as sharp frame-energy rises.

    Frame `i >= 1` is an onset when its RMS exceeds 1.5x the previous frame's
    and the absolute floor of 0.01. Frame 0 is never an onset.

    Returns:
        Increasing onset times in seconds (possibly empty).
    """
    rms = frame_rms(signal.samples)
    if rms.size < 2:
        return np.zeros(0, dtype=np.float64)

    idx = np.flatnonzero(_rising_frames(rms, ONSET_RISE_RATIO, ONSET_MIN_RMS))
    onsets = idx * HOP_LENGTH / signal.sample_rate

    logging.debug(f"Detected {len(onsets)} onsets over {rms.size} frames")
    return onsets.astype(np.float64)

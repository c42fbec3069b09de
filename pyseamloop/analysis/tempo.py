"""Tempo estimation from inter-onset intervals."""

from __future__ import annotations

import logging

import numpy as np

from pyseamloop.analysis.constants import (
    DEFAULT_BPM,
    MAX_BPM,
    MAX_ONSET_INTERVAL,
    MIN_BPM,
    MIN_ONSET_INTERVAL,
)


def fold_tempo(bpm: float) -> float:
    """Fold a raw tempo into [60, 180) by octave steps."""
    while bpm > MAX_BPM:
        bpm /= 2
    while bpm < MIN_BPM:
        bpm *= 2
    return bpm


def estimate_tempo(onsets: np.ndarray) -> float:
    """
    Estimate BPM as 60 / median inter-onset interval.

    Intervals outside the open range (0.05 s, 2.0 s) are discarded. With
    fewer than two onsets or no usable interval the default of 120 is used.
    The result is folded into [60, 180) and rounded to an integer value; a
    fold that rounds up to 180 is halved once more.
    """
    onsets = np.asarray(onsets, dtype=np.float64)
    if onsets.size < 2:
        return DEFAULT_BPM

    intervals = np.diff(onsets)
    intervals = intervals[(intervals > MIN_ONSET_INTERVAL) & (intervals < MAX_ONSET_INTERVAL)]
    if intervals.size == 0:
        logging.debug("No usable onset intervals, using default tempo")
        return DEFAULT_BPM

    bpm = fold_tempo(60.0 / float(np.median(intervals)))
    # Fold before rounding; halves round up
    bpm = float(np.floor(bpm + 0.5))
    if bpm >= MAX_BPM:
        bpm /= 2
    return bpm

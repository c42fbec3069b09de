"""Main-section localization: the sustained high-energy body of a track."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np
from scipy.ndimage import uniform_filter1d

if TYPE_CHECKING:
    from pyseamloop.audio import AudioSignal

from pyseamloop.analysis.constants import (
    FRAME_SIZE,
    HOP_LENGTH,
    SECTION_PADDING,
    SECTION_SMOOTHING_WINDOW,
    SECTION_THRESHOLD_RATIO,
)
from pyseamloop.analysis.onset import frame_energy


@dataclass(slots=True, frozen=True)
class MainSection:
    """Half-open interval [start, end) in seconds."""

    start: float
    end: float

    def contains(self, start: float, end: float) -> bool:
        return start >= self.start and end <= self.end


def smooth_energy(energy: np.ndarray, window: int = SECTION_SMOOTHING_WINDOW) -> np.ndarray:
    """
    Centered moving average reaching `window // 2` frames on each side.

    Near the borders only the frames that exist are averaged.
    """
    size = 2 * (window // 2) + 1
    sums = uniform_filter1d(energy, size=size, mode="constant", cval=0.0)
    counts = uniform_filter1d(np.ones_like(energy), size=size, mode="constant", cval=0.0)
    return sums / counts


def find_main_section(signal: AudioSignal) -> MainSection:
    duration = signal.duration
    energy = frame_energy(signal.samples, FRAME_SIZE, HOP_LENGTH)

    if energy.size == 0:
        return MainSection(0.0, duration)

    smoothed = smooth_energy(energy)
    threshold = SECTION_THRESHOLD_RATIO * float(np.mean(smoothed))

    # Left-to-right scan: the run opens at the first frame above threshold and
    # its end follows every later frame above threshold, so quiet gaps in the
    # middle do not split the section.
    first = last = -1
    for i, value in enumerate(smoothed):
        if value >= threshold:
            if first < 0:
                first = i
            last = i

    if first < 0:
        return MainSection(0.0, duration)

    start = max(0.0, first * HOP_LENGTH / signal.sample_rate - SECTION_PADDING)
    end = min(duration, last * HOP_LENGTH / signal.sample_rate + SECTION_PADDING)

    logging.debug(f"Main section: {start:.2f}s - {end:.2f}s")
    return MainSection(start, end)

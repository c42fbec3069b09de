"""
Correlation Scoring Primitives.

Pure numeric kernels used by both candidate scoring and the precise search:
- Raw cross-correlation (cheap similarity proxy) and its normalization
- Pearson normalized cross-correlation
- Segment self-consistency (flat dynamics when no repetition can be checked)
- Fade-edge check (penalizes boundaries quieter than the body)
"""

from __future__ import annotations

import numpy as np
from numba import njit

from pyseamloop.analysis.constants import (
    CORRELATION_SCALE,
    ENERGY_EPSILON,
    FADE_SCORE_FLOOR,
    FADE_WINDOW_FRACTION,
    FADE_WINDOW_MAX,
    FRAME_SIZE,
)


@njit(cache=True, fastmath=True)
def cross_correlation(a: np.ndarray, b: np.ndarray) -> float:
    """Mean of elementwise products over the common length."""
    n = min(a.shape[0], b.shape[0])
    if n == 0:
        return 0.0
    s = 0.0
    for i in range(n):
        s += a[i] * b[i]
    return s / n


def normalize_correlation(value: float) -> float:
    """Map a raw correlation onto [0, 1]; raw values are typically tiny."""
    return min(1.0, abs(value) * CORRELATION_SCALE)


@njit(cache=True)
def normalized_cross_correlation(a: np.ndarray, b: np.ndarray) -> float:
    """Pearson correlation over the common length, 0 when either side is flat."""
    n = min(a.shape[0], b.shape[0])
    if n == 0:
        return 0.0

    mean_a = 0.0
    mean_b = 0.0
    for i in range(n):
        mean_a += a[i]
        mean_b += b[i]
    mean_a /= n
    mean_b /= n

    cov = 0.0
    var_a = 0.0
    var_b = 0.0
    for i in range(n):
        da = a[i] - mean_a
        db = b[i] - mean_b
        cov += da * db
        var_a += da * da
        var_b += db * db

    denom = np.sqrt(var_a * var_b)
    if denom == 0.0:
        return 0.0
    return cov / denom


@njit(cache=True)
def _block_energy(segment: np.ndarray, block: int) -> np.ndarray:
    n_blocks = segment.shape[0] // block
    energy = np.zeros(n_blocks, dtype=np.float64)
    for i in range(n_blocks):
        s = 0.0
        for k in range(i * block, (i + 1) * block):
            s += segment[k] * segment[k]
        energy[i] = s / block
    return energy


def segment_self_consistency(segment: np.ndarray) -> float:
    """
    Score how even the energy of a segment is across 1024-sample blocks.

    Used in place of a repetition check when no audio follows the segment.
    """
    energy = _block_energy(np.ascontiguousarray(segment, dtype=np.float64), FRAME_SIZE)
    if energy.size < 2:
        return 0.0

    mean = float(np.mean(energy))
    variance = float(np.var(energy))
    return max(0.0, 1.0 - variance / (mean * mean + ENERGY_EPSILON))


@njit(cache=True)
def _mean_square(segment: np.ndarray, start: int, length: int) -> float:
    s = 0.0
    for k in range(start, start + length):
        s += segment[k] * segment[k]
    return s / length


def fade_edge_score(segment: np.ndarray) -> float:
    """
    Compare boundary energy to the middle of the segment.

    Returns `min(1, start_ratio, end_ratio)` floored at 0.5, so a fading
    boundary lowers the score without rejecting the segment outright.
    """
    segment = np.ascontiguousarray(segment, dtype=np.float64)
    n = segment.shape[0]
    window = min(FADE_WINDOW_MAX, int(np.floor(n * FADE_WINDOW_FRACTION)))
    if window <= 0:
        return 1.0

    start_energy = _mean_square(segment, 0, window)
    end_energy = _mean_square(segment, n - window, window)
    mid_start = int(np.floor(n / 2 - window / 2))
    mid_energy = _mean_square(segment, mid_start, window)

    start_ratio = start_energy / (mid_energy + ENERGY_EPSILON)
    end_ratio = end_energy / (mid_energy + ENERGY_EPSILON)

    return max(FADE_SCORE_FLOOR, min(1.0, start_ratio, end_ratio))

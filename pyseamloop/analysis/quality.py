"""
Loop Quality Validation.

Checks a proposed loop's boundary for audible discontinuities:
- Amplitude continuity across the wrap point
- Waveform similarity of the loop with the audio that follows it
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np
from numba import njit

if TYPE_CHECKING:
    from pyseamloop.audio import AudioSignal

from pyseamloop.analysis.constants import (
    VALIDATION_AMPLITUDE_WEIGHT,
    VALIDATION_FADE_SECONDS,
    VALIDATION_SEAMLESS_THRESHOLD,
    VALIDATION_SPECTRAL_WEIGHT,
)
from pyseamloop.exceptions import InvalidInputError


@dataclass(slots=True)
class LoopValidation:
    """Boundary quality of one loop."""
    score: float
    is_seamless: bool
    amplitude_score: float = 0.0   # 1 = no jump at the wrap point
    spectral_score: float = 0.0    # Correlation clipped to [0, 1]
    amplitude_diff: float = 0.0    # Mean absolute sample difference
    correlation: float = 0.0
    error: str | None = None

    def to_dict(self) -> dict:
        return {
            "score": self.score,
            "is_seamless": self.is_seamless,
            "amplitude_score": self.amplitude_score,
            "spectral_score": self.spectral_score,
            "amplitude_diff": self.amplitude_diff,
            "correlation": self.correlation,
            "error": self.error,
        }


@njit(cache=True)
def _cosine_similarity(a: np.ndarray, b: np.ndarray) -> float:
    n = min(a.shape[0], b.shape[0])
    dot = 0.0
    norm_a = 0.0
    norm_b = 0.0
    for i in range(n):
        dot += a[i] * b[i]
        norm_a += a[i] * a[i]
        norm_b += b[i] * b[i]
    denom = np.sqrt(norm_a * norm_b)
    if denom > 0:
        return dot / denom
    return 0.0


def validate_loop(signal: AudioSignal, start: float, end: float) -> LoopValidation:
    """
    Score how seamlessly [start, end) wraps around.

    The first and last 10 ms of the loop are compared sample by sample; the
    loop is also correlated with the equal-length audio after it (0 when not
    enough audio follows). A combined score above 0.8 counts as seamless.
    """
    if not (np.isfinite(start) and np.isfinite(end)):
        raise InvalidInputError(f"Loop bounds must be finite, got {start!r}, {end!r}.")

    samples = signal.samples
    start_sample = signal.seconds_to_samples(start)
    end_sample = signal.seconds_to_samples(end)

    if start_sample < 0 or start_sample >= end_sample or end_sample > signal.length:
        return LoopValidation(score=0.0, is_seamless=False, error="Invalid loop bounds")

    fade = max(1, int(np.floor(VALIDATION_FADE_SECONDS * signal.sample_rate)))
    head = samples[start_sample:min(start_sample + fade, end_sample)]
    tail = samples[max(start_sample, end_sample - fade):end_sample]
    n = min(len(head), len(tail))
    amplitude_diff = float(np.mean(np.abs(head[:n] - tail[:n])))
    amplitude_score = max(0.0, 1.0 - amplitude_diff * 10)

    loop_length = end_sample - start_sample
    if end_sample + loop_length <= signal.length:
        correlation = float(_cosine_similarity(
            samples[start_sample:end_sample],
            samples[end_sample:end_sample + loop_length],
        ))
    else:
        correlation = 0.0
    spectral_score = max(0.0, correlation)

    score = (
        amplitude_score * VALIDATION_AMPLITUDE_WEIGHT
        + spectral_score * VALIDATION_SPECTRAL_WEIGHT
    )

    return LoopValidation(
        score=score,
        is_seamless=score > VALIDATION_SEAMLESS_THRESHOLD,
        amplitude_score=amplitude_score,
        spectral_score=spectral_score,
        amplitude_diff=amplitude_diff,
        correlation=correlation,
    )

"""
Precise-Loop Search.

Finds a segment that verifiably repeats in the recording by correlating
onset-bounded segments with the audio right after them. Independent of the
beat grid; the tempo only feeds the musical-length bonus used for ranking.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from pyseamloop.audio import AudioSignal

from pyseamloop.analysis.constants import (
    ATTACK_HOP,
    ATTACK_RISE_RATIO,
    ATTACK_SEARCH_SECONDS,
    ATTACK_WINDOW,
    BEATS_PER_BAR,
    MUSICAL_BONUS_STEPS,
    PRECISE_MIN_BEAT_FRACTION,
    PRECISE_SEARCH_END_FRACTION,
    PRECISE_SEARCH_START,
    REFINE_ACCEPT_RATIO,
    REFINE_EARLIER_PENALTY,
    REFINE_EARLIER_WINDOW,
    REFINE_LATER_PREFERENCE,
    REFINE_LATER_WINDOW,
    REFINE_MIN_SHIFT,
    TRAILING_AUDIO_RATIO,
)
from pyseamloop.analysis.correlation import fade_edge_score, normalized_cross_correlation


@dataclass(slots=True)
class PreciseLoop:
    start: float
    end: float
    duration: float
    score: float           # Correlation x fade, without the musical bonus
    musical_bonus: float
    total_score: float     # Ranking key: score * (1 + musical_bonus)


def musical_bonus(loop_duration: float, beat_duration: float) -> float:
    """Ranking bonus for lengths close to 1, 2 or 4 bars or 2 or 8 beats."""
    bar_duration = beat_duration * BEATS_PER_BAR
    targets = (
        bar_duration,
        bar_duration * 2,
        bar_duration * 4,
        beat_duration * 2,
        beat_duration * 8,
    )
    closest = min(abs(loop_duration - t) / t for t in targets)

    for tolerance, bonus in MUSICAL_BONUS_STEPS:
        if closest < tolerance:
            return bonus
    return 0.0


def score_precise_loop(signal: AudioSignal, start: float, end: float) -> float:
    """Correlation of [start, end) with the equal-length audio after it, times the fade score."""
    samples = signal.samples
    start_sample = signal.seconds_to_samples(start)
    end_sample = signal.seconds_to_samples(end)
    loop_length = end_sample - start_sample
    if loop_length <= 0 or start_sample < 0:
        return 0.0

    following = samples[end_sample:min(end_sample + loop_length, signal.length)]
    if len(following) < loop_length * TRAILING_AUDIO_RATIO:
        return 0.0

    loop = samples[start_sample:end_sample]
    return float(normalized_cross_correlation(loop, following) * fade_edge_score(loop))


def find_precise_loop(
    signal: AudioSignal,
    onsets: np.ndarray,
    bpm: float,
    min_duration: float,
    max_duration: float,
    search_start: float = PRECISE_SEARCH_START,
    search_end_fraction: float = PRECISE_SEARCH_END_FRACTION,
) -> PreciseLoop | None:
    """
    Scan onset pairs for the best self-repeating loop.

    Onsets are time ordered, so for a fixed start the candidate length only
    grows; the inner scan stops at the first length above `max_duration` and
    the outer scan at the first start past the search window.

    Returns:
        The best loop by bonused score, or None when no pair qualifies.
    """
    t0 = time.perf_counter()
    duration = signal.duration
    beat_duration = 60.0 / bpm
    min_len = max(min_duration, PRECISE_MIN_BEAT_FRACTION * beat_duration)
    last_start = duration * search_end_fraction

    best = None
    best_total = -np.inf
    n_scored = 0

    for i in range(len(onsets)):
        start = float(onsets[i])
        if start < search_start:
            continue
        if start > last_start:
            break

        for j in range(i + 1, len(onsets)):
            end = float(onsets[j])
            loop_duration = end - start

            if loop_duration < min_len:
                continue
            if loop_duration > max_duration:
                break
            if end + loop_duration > duration:
                continue

            score = score_precise_loop(signal, start, end)
            bonus = musical_bonus(loop_duration, beat_duration)
            total = score * (1 + bonus)
            n_scored += 1

            if total > best_total:
                best_total = total
                best = PreciseLoop(
                    start=start,
                    end=end,
                    duration=loop_duration,
                    score=score,
                    musical_bonus=bonus,
                    total_score=total,
                )

    logging.info(f"Precise search scored {n_scored} onset pairs in {time.perf_counter() - t0:.3f}s")
    if best is not None:
        logging.info(
            f"Best precise loop: {best.start:.3f}s - {best.end:.3f}s "
            f"({best.duration:.3f}s), score {best.score:.4f}"
        )
    return best


def refine_loop_start(signal: AudioSignal, loop: PreciseLoop, onsets: np.ndarray) -> PreciseLoop:
    """
    Nudge the loop start onto a nearby onset, keeping the loop length.

    Later starts are preferred since the detected boundary tends to sit just
    before the actual attack. With no onset nearby, the start moves to the
    strongest attack in the following 100 ms.
    """
    onsets = np.asarray(onsets)
    later = onsets[(onsets > loop.start) & (onsets < loop.start + REFINE_LATER_WINDOW)]
    earlier = onsets[(onsets > loop.start - REFINE_EARLIER_WINDOW) & (onsets < loop.start)]
    nearby = np.sort(np.concatenate([earlier, later]))

    if len(nearby) == 0:
        return _shift_to_next_attack(signal, loop)

    best_start = loop.start
    best_score = loop.score

    for new_start in nearby:
        new_start = float(new_start)
        if abs(new_start - loop.start) < REFINE_MIN_SHIFT:
            continue

        score = score_precise_loop(signal, new_start, new_start + loop.duration)
        adjusted = score * (REFINE_LATER_PREFERENCE if new_start > loop.start else REFINE_EARLIER_PENALTY)

        if adjusted > best_score * REFINE_ACCEPT_RATIO:
            best_score = adjusted
            best_start = new_start

    if best_start == loop.start:
        return loop

    logging.info(f"Refined loop start: {loop.start:.3f}s -> {best_start:.3f}s")
    return _moved(signal, loop, best_start, score=best_score)


def _shift_to_next_attack(signal: AudioSignal, loop: PreciseLoop) -> PreciseLoop:
    samples = signal.samples
    start_sample = signal.seconds_to_samples(loop.start)
    search = int(np.floor(ATTACK_SEARCH_SECONDS * signal.sample_rate))

    max_energy = 0.0
    best_offset = 0
    for offset in range(0, search, ATTACK_HOP):
        window_start = start_sample + offset
        window_end = min(window_start + ATTACK_WINDOW, signal.length)
        if window_end <= window_start:
            break

        window = samples[window_start:window_end]
        energy = float(np.dot(window, window)) / len(window)
        if energy > max_energy * ATTACK_RISE_RATIO:
            max_energy = energy
            best_offset = offset

    if best_offset == 0:
        return loop

    new_start = loop.start + best_offset / signal.sample_rate
    logging.info(f"Found stronger attack {best_offset / signal.sample_rate * 1000:.1f}ms later")
    return _moved(signal, loop, new_start, score=loop.score)


def _moved(signal: AudioSignal, loop: PreciseLoop, new_start: float, score: float) -> PreciseLoop:
    """Loop shifted to `new_start`; the end is clamped to the track."""
    new_end = min(new_start + loop.duration, signal.duration)
    duration = new_end - new_start
    return replace(
        loop,
        start=new_start,
        end=new_end,
        duration=duration,
        score=score,
        total_score=score * (1 + loop.musical_bonus),
    )

"""
Main Loop Detection Entry Point.

Orchestrates the loop detection pipeline as a small decision policy with
three terminal outcomes:
1. PRECISE  - an onset-bounded segment verifiably repeats
2. RANKED   - best of the beat/onset grid candidates
3. FALLBACK - a deterministic default when there is nothing to analyze
"""

from __future__ import annotations

import enum
import logging
import time
from dataclasses import dataclass, replace

import numpy as np

from pyseamloop.analysis.beats import BeatGrid, build_beat_grid, locate_downbeats
from pyseamloop.analysis.constants import BEATS_PER_BAR
from pyseamloop.analysis.candidates import (
    LoopCandidate,
    generate_proposals,
    score_candidates,
    select_best,
)
from pyseamloop.analysis.onset import detect_onsets
from pyseamloop.analysis.options import LoopOptions
from pyseamloop.analysis.precise import PreciseLoop, find_precise_loop, refine_loop_start
from pyseamloop.analysis.sections import find_main_section
from pyseamloop.analysis.tempo import estimate_tempo
from pyseamloop.audio import AudioSignal, nearest_zero_crossing
from pyseamloop.exceptions import InvalidInputError


class LoopOutcome(enum.Enum):
    PRECISE = "precise"
    RANKED = "ranked"
    FALLBACK = "fallback"


@dataclass(slots=True, frozen=True)
class LoopResult:
    """Final loop proposal for one recording."""
    start: float
    end: float
    duration: float
    bars: float
    confidence: float
    bpm: float
    outcome: LoopOutcome = LoopOutcome.RANKED

    def to_dict(self) -> dict:
        return {
            "start": self.start,
            "end": self.end,
            "duration": self.duration,
            "bars": self.bars,
            "confidence": self.confidence,
            "bpm": self.bpm,
            "outcome": self.outcome.value,
        }


def _ensure_signal(signal) -> AudioSignal:
    if not isinstance(signal, AudioSignal):
        raise InvalidInputError(
            f"Expected an AudioSignal, got {type(signal).__name__}. "
            "Use AudioSignal.from_array(samples, sample_rate)."
        )
    return signal


# ============================================================================
# OUTCOMES
# ============================================================================

def _no_onsets_result(signal: AudioSignal, options: LoopOptions) -> LoopResult:
    end = min(signal.duration, options.max_duration)
    return LoopResult(
        start=0.0,
        end=end,
        duration=end,
        bars=0.0,
        confidence=0.0,
        bpm=0.0,
        outcome=LoopOutcome.FALLBACK,
    )


def _one_bar_result(signal: AudioSignal, grid: BeatGrid) -> LoopResult:
    end = min(signal.duration, grid.bar_duration)
    return LoopResult(
        start=0.0,
        end=end,
        duration=end,
        bars=end / grid.bar_duration,
        confidence=0.0,
        bpm=grid.bpm,
        outcome=LoopOutcome.FALLBACK,
    )


def _precise_result(loop: PreciseLoop, bpm: float) -> LoopResult:
    bar_duration = 60.0 / bpm * BEATS_PER_BAR
    return LoopResult(
        start=loop.start,
        end=loop.end,
        duration=loop.end - loop.start,
        bars=(loop.end - loop.start) / bar_duration,
        confidence=loop.score,
        bpm=bpm,
        outcome=LoopOutcome.PRECISE,
    )


def _ranked_result(candidate: LoopCandidate, bpm: float) -> LoopResult:
    return LoopResult(
        start=candidate.start,
        end=candidate.end,
        duration=candidate.end - candidate.start,
        bars=candidate.musical_division,
        confidence=candidate.confidence,
        bpm=bpm,
        outcome=LoopOutcome.RANKED,
    )


def _align_to_zero_crossings(signal: AudioSignal, result: LoopResult) -> LoopResult:
    """Snap both boundaries to nearby zero crossings for click-free playback."""
    sr = signal.sample_rate
    start_sample = nearest_zero_crossing(signal.samples, sr, signal.seconds_to_samples(result.start))
    end_sample = nearest_zero_crossing(signal.samples, sr, signal.seconds_to_samples(result.end))

    start = min(max(0.0, signal.samples_to_seconds(start_sample)), signal.duration)
    end = min(max(0.0, signal.samples_to_seconds(end_sample)), signal.duration)
    if end <= start:
        return result

    return replace(result, start=start, end=end, duration=end - start)


# ============================================================================
# PIPELINE
# ============================================================================

def _rank_candidates(
    signal: AudioSignal,
    onsets: np.ndarray,
    bpm: float,
    options: LoopOptions,
) -> tuple[BeatGrid, list[LoopCandidate]]:
    """Grid, downbeats and main section, then generate and score candidates."""
    t0 = time.perf_counter()
    grid = build_beat_grid(bpm, signal.duration)
    downbeats = locate_downbeats(signal, grid)
    main_section = find_main_section(signal)

    proposals = generate_proposals(grid, onsets, main_section, downbeats, signal.duration, options)
    candidates = score_candidates(signal, proposals, onsets)

    logging.info(
        f"Scored {len(candidates)} candidates ({len(grid)} beats, {len(downbeats)} downbeats) "
        f"in {time.perf_counter() - t0:.3f}s"
    )
    return grid, candidates


def analyze_loop(
    signal: AudioSignal,
    options: LoopOptions | None = None,
    **overrides,
) -> LoopResult:
    """
    Find the best seamless loop in a recording.

    1. **Onsets**: fewer than two means there is nothing to loop; the
       leading `max_duration` seconds are returned with zero confidence.

    2. **Tempo**: median inter-onset interval, folded into [60, 180).

    3. **Precise search**: onset pairs whose audio repeats right after
       them. Accepted when its score reaches `confidence_threshold`.

    4. **Candidates**: beat, downbeat and onset-pair proposals scored by
       correlation, onset alignment and musical length. With none, a one
       bar loop from the start is returned with zero confidence.

    Args:
        signal: Mono recording to analyze
        options: Loop search parameters (defaults when None)
        **overrides: Individual `LoopOptions` fields, applied on top of `options`

    Returns:
        LoopResult; its `outcome` tells which of the steps above produced it

    Raises:
        InvalidInputError: If the signal or options are malformed
    """
    signal = _ensure_signal(signal)
    options = LoopOptions.resolve(options, **overrides)
    t0 = time.perf_counter()

    onsets = detect_onsets(signal)
    logging.info(f"Detected {len(onsets)} onsets in {signal.duration:.2f}s of audio")

    if len(onsets) < 2:
        logging.info("Not enough onsets, returning default loop")
        return _no_onsets_result(signal, options)

    bpm = estimate_tempo(onsets)
    logging.info(f"Estimated tempo: {bpm:.0f} BPM")

    precise = find_precise_loop(
        signal,
        onsets,
        bpm,
        options.min_duration,
        options.max_duration,
    )
    if precise is not None and precise.score >= options.confidence_threshold:
        # Acceptance is decided on the unrefined loop
        if options.refine_start:
            precise = refine_loop_start(signal, precise, onsets)
        result = _precise_result(precise, bpm)
    else:
        grid, candidates = _rank_candidates(signal, onsets, bpm, options)
        best = select_best(candidates)
        if best is None:
            logging.info("No loop candidates, returning one bar default")
            return _one_bar_result(signal, grid)
        result = _ranked_result(best, bpm)

    if options.align_to_zero_crossings:
        result = _align_to_zero_crossings(signal, result)

    logging.info(
        f"Loop {result.start:.3f}s - {result.end:.3f}s ({result.bars:.2f} bars, "
        f"{result.outcome.value}), confidence {result.confidence:.4f}, "
        f"total {time.perf_counter() - t0:.3f}s"
    )
    return result


def find_loop_candidates(
    signal: AudioSignal,
    options: LoopOptions | None = None,
    **overrides,
) -> list[LoopCandidate]:
    """
    Score every grid and onset-pair candidate without the precise search.

    Returns the candidates unsorted, in generation order; empty when the
    signal has fewer than two onsets.
    """
    signal = _ensure_signal(signal)
    options = LoopOptions.resolve(options, **overrides)

    onsets = detect_onsets(signal)
    if len(onsets) < 2:
        return []

    bpm = estimate_tempo(onsets)
    _, candidates = _rank_candidates(signal, onsets, bpm, options)
    return candidates

"""
Loop Candidate Generation and Scoring.

Generates grid-derived loop proposals with three strategies:
- Downbeat-aligned (bar-exact loops, boosted)
- Sliding beat windows (when no downbeats exist)
- Onset pairs (loops off the estimated grid, damped)

Proposals are enumerated first and scored afterwards as an independent map,
so scoring order never affects the result.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterator

import numpy as np

if TYPE_CHECKING:
    from pyseamloop.analysis.beats import BeatGrid
    from pyseamloop.analysis.options import LoopOptions
    from pyseamloop.analysis.sections import MainSection
    from pyseamloop.audio import AudioSignal

from pyseamloop.analysis.constants import (
    BEAT_GRID_BOOST,
    BEATS_PER_BAR,
    CANDIDATE_BEAT_LENGTHS,
    CORRELATION_WEIGHT,
    DOWNBEAT_BOOST,
    LONG_LOOP_BARS,
    MAX_CANDIDATE_DURATION,
    MAX_CANDIDATE_TRACK_FRACTION,
    MIN_CANDIDATE_DURATION,
    MIN_CANDIDATE_SAMPLES,
    ONSET_ALIGN_BONUS,
    ONSET_ALIGN_TOLERANCE,
    ONSET_BONUS_WEIGHT,
    ONSET_PAIR_BOOST,
    ONSET_PAIR_LOOKAHEAD,
    TRAILING_AUDIO_RATIO,
    WEIGHT_HALF_BAR,
    WEIGHT_LONG,
    WEIGHT_ONE_BAR,
    WEIGHT_TWO_OR_FOUR_BARS,
)
from pyseamloop.analysis.correlation import (
    cross_correlation,
    normalize_correlation,
    segment_self_consistency,
)

STRATEGY_DOWNBEAT = "downbeat"
STRATEGY_BEAT = "beat"
STRATEGY_ONSET = "onset"


@dataclass(slots=True, frozen=True)
class CandidateProposal:
    """An unscored loop boundary pair."""
    start: float
    end: float
    num_beats: int
    boost: float
    strategy: str


@dataclass(slots=True)
class LoopCandidate:
    """A scored loop proposal."""
    start: float
    end: float
    confidence: float         # Not bounded to [0, 1]; only comparable within one run
    musical_division: float   # Loop length in bars
    correlation: float        # Raw correlation before normalization
    onset_bonus: float = 0.0
    strategy: str = STRATEGY_BEAT

    @property
    def duration(self) -> float:
        return self.end - self.start

    def to_dict(self) -> dict:
        return {
            "start": self.start,
            "end": self.end,
            "confidence": self.confidence,
            "musical_division": self.musical_division,
            "correlation": self.correlation,
            "onset_bonus": self.onset_bonus,
            "strategy": self.strategy,
        }


# ============================================================================
# GENERATION
# ============================================================================

def generate_proposals(
    grid: BeatGrid,
    onsets: np.ndarray,
    main_section: MainSection,
    downbeats: np.ndarray,
    duration: float,
    options: LoopOptions,
) -> list[CandidateProposal]:
    """Enumerate proposals in preference order (beat lengths, then onset pairs)."""
    proposals = []

    for num_beats in CANDIDATE_BEAT_LENGTHS:
        loop_duration = num_beats * grid.beat_duration

        if (
            loop_duration < MIN_CANDIDATE_DURATION
            or loop_duration > duration * MAX_CANDIDATE_TRACK_FRACTION
            or loop_duration > MAX_CANDIDATE_DURATION
        ):
            continue

        if len(downbeats) > 0:
            proposals.extend(_downbeat_proposals(
                grid, downbeats, main_section, duration, num_beats, loop_duration
            ))
        else:
            proposals.extend(_beat_window_proposals(
                grid, main_section, duration, num_beats
            ))

    proposals.extend(_onset_pair_proposals(grid, onsets, main_section, options))
    return proposals


def _downbeat_proposals(
    grid: BeatGrid,
    downbeats: np.ndarray,
    main_section: MainSection,
    duration: float,
    num_beats: int,
    loop_duration: float,
) -> Iterator[CandidateProposal]:
    half_beat = grid.beat_duration / 2

    for start in downbeats:
        end = start + loop_duration

        # Snap onto a bar boundary rather than accumulated arithmetic
        for db in downbeats:
            if abs(db - end) < half_beat:
                end = db
                break

        if not main_section.contains(start, end) or end > duration:
            continue

        yield CandidateProposal(float(start), float(end), num_beats, DOWNBEAT_BOOST, STRATEGY_DOWNBEAT)


def _beat_window_proposals(
    grid: BeatGrid,
    main_section: MainSection,
    duration: float,
    num_beats: int,
) -> Iterator[CandidateProposal]:
    beats = grid.beats
    step = max(1, num_beats // 4)

    for idx in range(0, len(beats) - num_beats, step):
        start = beats[idx]
        end = beats[idx + num_beats]

        if not main_section.contains(start, end) or end > duration:
            continue

        yield CandidateProposal(float(start), float(end), num_beats, BEAT_GRID_BOOST, STRATEGY_BEAT)


def _onset_pair_proposals(
    grid: BeatGrid,
    onsets: np.ndarray,
    main_section: MainSection,
    options: LoopOptions,
) -> Iterator[CandidateProposal]:
    n = len(onsets)

    for i in range(n - 1):
        for j in range(i + 1, min(i + 1 + ONSET_PAIR_LOOKAHEAD, n)):
            start, end = onsets[i], onsets[j]
            loop_duration = end - start

            if not options.min_duration <= loop_duration <= options.max_duration:
                continue
            if not main_section.contains(start, end):
                continue

            num_beats = int(np.floor(loop_duration / grid.beat_duration + 0.5))
            yield CandidateProposal(float(start), float(end), num_beats, ONSET_PAIR_BOOST, STRATEGY_ONSET)


# ============================================================================
# SCORING
# ============================================================================

def musical_weight(division: float) -> float:
    """Confidence multiplier favoring 2 and 4 bar loops."""
    if division == 2 or division == 4:
        return WEIGHT_TWO_OR_FOUR_BARS
    if division == 1:
        return WEIGHT_ONE_BAR
    if division == 0.5:
        return WEIGHT_HALF_BAR
    if division >= LONG_LOOP_BARS:
        return WEIGHT_LONG
    return 1.0


def onset_alignment_bonus(start: float, end: float, onsets: np.ndarray) -> float:
    """+0.1 for each boundary lying within 50 ms of an onset."""
    if len(onsets) == 0:
        return 0.0
    bonus = 0.0
    if np.any(np.abs(onsets - start) < ONSET_ALIGN_TOLERANCE):
        bonus += ONSET_ALIGN_BONUS
    if np.any(np.abs(onsets - end) < ONSET_ALIGN_TOLERANCE):
        bonus += ONSET_ALIGN_BONUS
    return bonus


def score_candidate(
    signal: AudioSignal,
    proposal: CandidateProposal,
    onsets: np.ndarray,
) -> LoopCandidate:
    """
    Score one proposal.

    The segment is correlated against the audio that follows it when at
    least 80% of a loop length remains, else judged on its own energy
    consistency. Onset alignment and the proposal's strategy boost are
    folded in, then the musical-length weight is applied.
    """
    division = proposal.num_beats / BEATS_PER_BAR
    samples = signal.samples
    n = signal.length

    start_sample = signal.seconds_to_samples(proposal.start)
    end_sample = signal.seconds_to_samples(proposal.end)
    loop_length = end_sample - start_sample

    if start_sample < 0 or end_sample > n or loop_length < MIN_CANDIDATE_SAMPLES:
        return LoopCandidate(
            start=proposal.start,
            end=proposal.end,
            confidence=0.0,
            musical_division=division,
            correlation=0.0,
            strategy=proposal.strategy,
        )

    segment = samples[start_sample:end_sample]
    following = samples[end_sample:min(end_sample + loop_length, n)]

    if len(following) >= loop_length * TRAILING_AUDIO_RATIO:
        correlation = cross_correlation(segment, following)
    else:
        correlation = segment_self_consistency(segment)

    bonus = onset_alignment_bonus(proposal.start, proposal.end, onsets)
    confidence = (
        normalize_correlation(correlation) * CORRELATION_WEIGHT
        + bonus * ONSET_BONUS_WEIGHT
    ) * proposal.boost
    confidence *= musical_weight(division)

    return LoopCandidate(
        start=proposal.start,
        end=proposal.end,
        confidence=float(confidence),
        musical_division=division,
        correlation=float(correlation),
        onset_bonus=bonus,
        strategy=proposal.strategy,
    )


def score_candidates(
    signal: AudioSignal,
    proposals: list[CandidateProposal],
    onsets: np.ndarray,
) -> list[LoopCandidate]:
    """Score every proposal independently, preserving generation order."""
    candidates = [score_candidate(signal, p, onsets) for p in proposals]
    logging.debug(f"Scored {len(candidates)} candidates")
    return candidates


def rank_candidates(candidates: list[LoopCandidate]) -> list[LoopCandidate]:
    """Confidence descending; the sort is stable so earlier proposals win ties."""
    return sorted(candidates, key=lambda c: c.confidence, reverse=True)


def select_best(candidates: list[LoopCandidate]) -> LoopCandidate | None:
    if not candidates:
        return None
    return rank_candidates(candidates)[0]

"""
pyseamloop Analysis Module - Seamless Loop Detection.

Architecture:
├── constants.py     - Thresholds and multipliers of the whole pipeline
├── options.py       - LoopOptions configuration record
├── onset.py         - Energy-rise onset detection (frame energy kernels)
├── tempo.py         - Median inter-onset tempo estimate
├── beats.py         - Beat grid and downbeat locator
├── sections.py      - Main (high-energy) section locator
├── correlation.py   - Correlation / consistency / fade primitives
├── candidates.py    - Grid and onset-pair candidates + scoring
├── precise.py       - Precise self-repetition search
├── quality.py       - Loop boundary validation
└── main.py          - Orchestration: analyze_loop / find_loop_candidates
"""

# Configuration
from pyseamloop.analysis.options import LoopOptions

# Pipeline stages
from pyseamloop.analysis.onset import detect_onsets, frame_energy, frame_rms
from pyseamloop.analysis.tempo import estimate_tempo
from pyseamloop.analysis.beats import BeatGrid, build_beat_grid, locate_downbeats
from pyseamloop.analysis.sections import MainSection, find_main_section

# Candidate generation and scoring
from pyseamloop.analysis.candidates import (
    CandidateProposal,
    LoopCandidate,
    generate_proposals,
    score_candidate,
    score_candidates,
    select_best,
)

# Precise search
from pyseamloop.analysis.precise import (
    PreciseLoop,
    find_precise_loop,
    refine_loop_start,
)

# Quality
from pyseamloop.analysis.quality import LoopValidation, validate_loop

# Main entry points
from pyseamloop.analysis.main import (
    LoopOutcome,
    LoopResult,
    analyze_loop,
    find_loop_candidates,
)


__all__ = [
    # Entry points
    'analyze_loop',
    'find_loop_candidates',
    'LoopOptions',
    'LoopOutcome',
    'LoopResult',

    # Stages
    'detect_onsets',
    'frame_energy',
    'frame_rms',
    'estimate_tempo',
    'BeatGrid',
    'build_beat_grid',
    'locate_downbeats',
    'MainSection',
    'find_main_section',

    # Candidates
    'CandidateProposal',
    'LoopCandidate',
    'generate_proposals',
    'score_candidate',
    'score_candidates',
    'select_best',

    # Precise search
    'PreciseLoop',
    'find_precise_loop',
    'refine_loop_start',

    # Quality
    'LoopValidation',
    'validate_loop',
]

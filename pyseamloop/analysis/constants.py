"""
Analysis Constants - All thresholds and parameters.

Centralized configuration for the loop detection pipeline. The multipliers in
the candidate and precise-search sections encode the preferred musical
lengths and must stay in sync with each other.
"""

from __future__ import annotations

# ============================================================================
# FRAMING
# ============================================================================

FRAME_SIZE = 1024  # Samples per analysis frame
HOP_LENGTH = 512  # Samples between frame starts
BEATS_PER_BAR = 4  # 4/4 assumed throughout

# ============================================================================
# ONSET DETECTION
# ============================================================================

ONSET_RISE_RATIO = 1.5  # Frame RMS must exceed previous frame by this factor
ONSET_MIN_RMS = 0.01  # Absolute floor, keeps silence noise from triggering

# ============================================================================
# TEMPO
# ============================================================================

DEFAULT_BPM = 120.0
MIN_BPM = 60.0
MAX_BPM = 180.0
MIN_ONSET_INTERVAL = 0.05  # Shorter intervals are double triggers
MAX_ONSET_INTERVAL = 2.0  # Longer intervals are gaps, not beats

# ============================================================================
# DOWNBEATS
# ============================================================================

DOWNBEAT_HALF_WINDOW = 1024  # Samples either side of a beat for its strength
DOWNBEAT_LOOKAHEAD = 3  # Beats a bar start must dominate
MIN_REFINED_DOWNBEATS = 2

# ============================================================================
# MAIN SECTION
# ============================================================================

SECTION_SMOOTHING_WINDOW = 10
SECTION_THRESHOLD_RATIO = 0.7  # Fraction of mean smoothed energy
SECTION_PADDING = 0.5  # Seconds added on both sides

# ============================================================================
# CORRELATION
# ============================================================================

CORRELATION_SCALE = 100.0  # Raw correlation is tiny; rescale into [0, 1]
ENERGY_EPSILON = 1e-10
FADE_WINDOW_FRACTION = 0.05
FADE_WINDOW_MAX = 1024
FADE_SCORE_FLOOR = 0.5
TRAILING_AUDIO_RATIO = 0.8  # Share of a loop length needed after it to compare

# ============================================================================
# CANDIDATES
# ============================================================================

CANDIDATE_BEAT_LENGTHS = (8, 16, 4, 32, 2)  # Preference order
MIN_CANDIDATE_DURATION = 0.1
MAX_CANDIDATE_TRACK_FRACTION = 0.8
MAX_CANDIDATE_DURATION = 16.0
MIN_CANDIDATE_SAMPLES = 1024

DOWNBEAT_BOOST = 1.2
BEAT_GRID_BOOST = 1.0
ONSET_PAIR_BOOST = 0.8
ONSET_PAIR_LOOKAHEAD = 10

ONSET_ALIGN_TOLERANCE = 0.05  # Seconds
ONSET_ALIGN_BONUS = 0.1  # Per aligned boundary
CORRELATION_WEIGHT = 0.7
ONSET_BONUS_WEIGHT = 0.3

# Musical division (bars) -> confidence multiplier
WEIGHT_TWO_OR_FOUR_BARS = 1.3
WEIGHT_ONE_BAR = 1.1
WEIGHT_HALF_BAR = 0.7
WEIGHT_LONG = 0.8  # 8 bars and more
LONG_LOOP_BARS = 8

# ============================================================================
# PRECISE SEARCH
# ============================================================================

PRECISE_SEARCH_START = 1.0  # Seconds
PRECISE_SEARCH_END_FRACTION = 0.8
PRECISE_MIN_BEAT_FRACTION = 0.5  # Shortest loop as a fraction of a beat

# (relative tolerance, bonus), checked in order
MUSICAL_BONUS_STEPS = ((0.02, 0.2), (0.05, 0.1), (0.10, 0.05))

# Start refinement
REFINE_LATER_WINDOW = 0.15
REFINE_EARLIER_WINDOW = 0.075
REFINE_MIN_SHIFT = 0.005
REFINE_LATER_PREFERENCE = 1.05
REFINE_EARLIER_PENALTY = 0.98
REFINE_ACCEPT_RATIO = 0.95
ATTACK_SEARCH_SECONDS = 0.1
ATTACK_WINDOW = 256
ATTACK_HOP = 64
ATTACK_RISE_RATIO = 1.5

# ============================================================================
# LOOP VALIDATION
# ============================================================================

VALIDATION_FADE_SECONDS = 0.01
VALIDATION_AMPLITUDE_WEIGHT = 0.7
VALIDATION_SPECTRAL_WEIGHT = 0.3
VALIDATION_SEAMLESS_THRESHOLD = 0.8

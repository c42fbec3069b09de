"""Seamless loop detection for decoded mono audio."""

__version__ = "0.3.0"

from pyseamloop.audio import AudioSignal, load_signal
from pyseamloop.exceptions import AudioLoadError, InvalidInputError
from pyseamloop.analysis import (
    LoopCandidate,
    LoopOptions,
    LoopOutcome,
    LoopResult,
    analyze_loop,
    find_loop_candidates,
    validate_loop,
)

__all__ = [
    "__version__",
    "AudioSignal",
    "load_signal",
    "AudioLoadError",
    "InvalidInputError",
    "LoopCandidate",
    "LoopOptions",
    "LoopOutcome",
    "LoopResult",
    "analyze_loop",
    "find_loop_candidates",
    "validate_loop",
]

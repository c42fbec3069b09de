"""
Loop Analysis Options.

A single immutable record carries every caller-tunable knob of the pipeline.
Overrides are merged and validated once at the entry point; the stages below
only ever see a resolved, valid `LoopOptions`.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, fields, replace

from pyseamloop.exceptions import InvalidInputError


@dataclass(slots=True, frozen=True)
class LoopOptions:
    """Caller-tunable loop search parameters."""

    min_duration: float = 0.5           # Shortest loop considered (seconds)
    max_duration: float = 8.0           # Longest loop considered (seconds)
    confidence_threshold: float = 0.5   # Precise-search score needed to accept it
    refine_start: bool = False          # Nudge precise loops onto a nearby attack
    align_to_zero_crossings: bool = False  # Snap final boundaries for click-free playback

    def validate(self) -> LoopOptions:
        for name in ("min_duration", "max_duration", "confidence_threshold"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise InvalidInputError(f"{name} must be a number, got {value!r}.")
            if not math.isfinite(value):
                raise InvalidInputError(f"{name} must be finite, got {value!r}.")

        if self.min_duration <= 0:
            raise InvalidInputError(f"min_duration must be positive, got {self.min_duration}.")
        if self.max_duration <= self.min_duration:
            raise InvalidInputError(
                f"max_duration ({self.max_duration}) must exceed min_duration ({self.min_duration})."
            )
        return self

    @classmethod
    def resolve(cls, options: LoopOptions | None = None, **overrides) -> LoopOptions:
        """Merge keyword overrides into `options` (or the defaults) and validate."""
        base = options if options is not None else cls()
        if not isinstance(base, cls):
            raise InvalidInputError(f"options must be a LoopOptions, got {type(base).__name__}.")

        known = {f.name for f in fields(cls)}
        unknown = sorted(set(overrides) - known)
        if unknown:
            raise InvalidInputError(f"Unknown loop option(s): {', '.join(unknown)}.")

        if overrides:
            base = replace(base, **overrides)
        return base.validate()

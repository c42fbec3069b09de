from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import librosa
import numpy as np

from pyseamloop.exceptions import AudioLoadError, InvalidInputError

ZERO_CROSSING_SEARCH_MS = 5


@dataclass(slots=True, frozen=True, eq=False)
class AudioSignal:
    """Immutable mono sample buffer handed to the loop analysis pipeline.

    The pipeline never re-validates a signal: every precondition is checked
    here, once, when the signal is built.
    """

    samples: np.ndarray
    sample_rate: int

    def __post_init__(self) -> None:
        if self.samples is None:
            raise InvalidInputError("Signal samples must not be None.")

        try:
            rate = int(self.sample_rate)
        except (TypeError, ValueError) as e:
            raise InvalidInputError(f"Invalid sample rate: {self.sample_rate!r}.") from e
        if rate <= 0 or rate != self.sample_rate:
            raise InvalidInputError(f"Sample rate must be a positive integer, got {self.sample_rate!r}.")

        samples = np.ascontiguousarray(self.samples, dtype=np.float64)
        if samples.ndim != 1:
            raise InvalidInputError(f"Expected a mono (1-D) sample buffer, got shape {samples.shape}.")
        if samples.size == 0:
            raise InvalidInputError("Signal contains no samples.")
        if not np.all(np.isfinite(samples)):
            raise InvalidInputError("Signal contains NaN or infinite samples.")

        # Private copy so callers cannot mutate the buffer under the pipeline
        samples = samples.copy()
        samples.flags.writeable = False
        object.__setattr__(self, "samples", samples)
        object.__setattr__(self, "sample_rate", rate)

    @classmethod
    def from_array(cls, samples, sample_rate: int) -> AudioSignal:
        return cls(samples=np.asarray(samples) if samples is not None else None, sample_rate=sample_rate)

    @property
    def length(self) -> int:
        return self.samples.shape[0]

    @property
    def duration(self) -> float:
        return self.length / self.sample_rate

    def seconds_to_samples(self, seconds: float) -> int:
        return int(librosa.time_to_samples(seconds, sr=self.sample_rate))

    def samples_to_seconds(self, samples: int) -> float:
        return float(librosa.samples_to_time(samples, sr=self.sample_rate))


def load_signal(filepath: str | Path) -> AudioSignal:
    """Decode an audio file into a mono AudioSignal at its native rate."""
    path = Path(filepath)

    try:
        raw_audio, sr = librosa.load(path, sr=None, mono=False)
    except Exception as e:
        raise AudioLoadError(
            f"{path.name} could not be loaded. Invalid audio data or unsupported format."
        ) from e

    if raw_audio.size == 0:
        raise AudioLoadError(f'No audio data could be loaded from "{path}".')

    mono = librosa.to_mono(raw_audio)
    return AudioSignal(samples=mono, sample_rate=int(sr))


def nearest_zero_crossing(audio: np.ndarray, sr: int, target: int) -> int:
    """Find nearest zero crossing to target sample for click-free transitions."""
    search_samples = int(sr * ZERO_CROSSING_SEARCH_MS / 1000)

    start = max(0, target - search_samples)
    end = min(len(audio), target + search_samples)

    if end - start < 2:
        return max(0, min(target, len(audio)))

    signs = np.sign(audio[start:end])
    crossings = np.where(np.diff(signs) != 0)[0]

    if len(crossings) == 0:
        return target

    relative_target = target - start
    closest_idx = crossings[np.argmin(np.abs(crossings - relative_target))]

    return start + int(closest_idx)

class InvalidInputError(ValueError):
    """Raised when a signal or analysis option is malformed."""


class AudioLoadError(Exception):
    """Raised when audio file cannot be loaded or is invalid."""

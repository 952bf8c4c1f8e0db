"""Errors raised by the scheduling and modelling core."""


class PitchsideError(Exception):
    """Base class for recoverable errors raised by pitchside."""


class InsufficientDataError(PitchsideError):
    """Not enough matches in the current or fallback season to predict."""


class DegenerateProbabilityError(PitchsideError):
    """A probability is exactly 0 or 1, so no finite fair odd exists."""


class InvalidScheduleInputError(PitchsideError, ValueError):
    """Competitor list is too short or contains duplicates."""

"""Errors reported by the measuring engine.

All of them describe something the user can fix (re-enter a length, move
a point, calibrate first), so the engine raises them before touching any
state and callers can show `str(error)` directly.
"""


class MeasureError(Exception):
    """Base class for recoverable engine errors."""


class ParseError(MeasureError, ValueError):
    """A length or dimension string could not be understood."""


class DegenerateCalibration(MeasureError):
    """Calibration points coincide or are collinear; no transform exists."""


class NotCalibrated(MeasureError):
    """A measurement was requested before a calibration was committed."""


class IncompletePoints(MeasureError):
    """Not enough points are placed for the requested operation."""

    def __init__(self, message: str, placed: int = 0, required: int = 0):
        super().__init__(message)
        self.placed = placed
        self.required = required

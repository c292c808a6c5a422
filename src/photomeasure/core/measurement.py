"""Real-world distance between two measurement points."""

from dataclasses import dataclass

from photomeasure.core.calibration import (
    CalibrationKind,
    CalibrationResult,
    LinearScale,
    PlanarHomography,
)
from photomeasure.core.errors import DegenerateCalibration, IncompletePoints, NotCalibrated
from photomeasure.core.geometry import Point
from photomeasure.core.units import format_feet_inches


@dataclass(frozen=True)
class MeasurementResult:
    inches: float
    kind: CalibrationKind

    @property
    def feet(self) -> float:
        return self.inches / 12.0

    def describe(self) -> str:
        return format_feet_inches(self.inches, with_inches=True)


def measure(a: Point | None, b: Point | None, calibration: CalibrationResult) -> float:
    """Distance in inches between `a` and `b` under `calibration`.

    Linear calibration divides the pixel distance by pixels per inch.
    Planar calibration projects both points onto the calibrated plane
    first, which accounts for perspective foreshortening.
    """
    if not isinstance(calibration, (LinearScale, PlanarHomography)):
        raise NotCalibrated("Set a calibration before measuring")

    if a is None or b is None:
        placed = (a is not None) + (b is not None)
        raise IncompletePoints("Place two measurement points (tap or drag)", placed, 2)

    if isinstance(calibration, LinearScale):
        return a.distance_to(b) / calibration.pixels_per_inch
    return calibration.homography.apply(a).distance_to(calibration.homography.apply(b))


def preview(a: Point | None, b: Point | None, calibration: CalibrationResult) -> float | None:
    """Same as `measure`, but None when it cannot be computed yet."""
    try:
        return measure(a, b, calibration)
    except (NotCalibrated, IncompletePoints, DegenerateCalibration):
        return None

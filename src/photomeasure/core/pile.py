"""Material pile estimate from measured dimensions.

The pile is approximated as a box; volume is converted to cubic yards
(27 cubic feet each) and then to tons using a bulk density.
"""

from dataclasses import dataclass

from photomeasure.core.units import Unit, convert

CUBIC_FEET_PER_CUBIC_YARD = 27.0
DEFAULT_DENSITY = 1.5  # tons per cubic yard, crushed stone


@dataclass(frozen=True)
class PileEstimate:
    width_ft: float
    height_ft: float
    depth_ft: float
    density: float
    cubic_yards: float
    tons: float

    def describe(self) -> str:
        return f"{self.cubic_yards:.2f} yd³, estimated weight {self.tons:.2f} tons"


def estimate_pile(
    width_ft: float, height_ft: float, depth_ft: float, density: float = DEFAULT_DENSITY
) -> PileEstimate:
    for name, value in (("width", width_ft), ("height", height_ft), ("depth", depth_ft)):
        if value < 0:
            raise ValueError(f"Pile {name} cannot be negative: {value}")
    if density <= 0:
        raise ValueError(f"Density must be positive: {density}")

    cubic_yards = width_ft * height_ft * depth_ft / CUBIC_FEET_PER_CUBIC_YARD
    return PileEstimate(width_ft, height_ft, depth_ft, density, cubic_yards, cubic_yards * density)


def depth_from_measurement(inches: float) -> float:
    """Feet from a measured length in inches, as returned by `MeasureEngine.finish`."""
    return convert(inches, Unit.INCHES, Unit.FEET)

"""Calibration: turning placed points plus a known size into a pixel scale.

Two kinds are supported:

- LINEAR_SCALE: two points a known distance apart give pixels per inch.
  Accurate only when the measured object is parallel to the image plane.
- PLANAR_HOMOGRAPHY: four corners of a rectangle of known width and height
  give a 3x3 homography from image pixels to the rectangle's plane, which
  removes perspective foreshortening for anything lying in that plane.

The homography is solved with the Direct Linear Transform: `h33` is fixed
to 1 and the remaining eight coefficients come from the 8x8 system formed
by two equations per corner correspondence.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Sequence, Union

import numpy as np
from loguru import logger

from photomeasure.core.errors import DegenerateCalibration, ParseError
from photomeasure.core.geometry import Homography, Point
from photomeasure.core.units import format_feet_inches

SINGULAR_EPSILON = 1e-12


class CalibrationKind(Enum):
    """Supported calibration algorithms."""

    LINEAR_SCALE = "linear_scale"
    PLANAR_HOMOGRAPHY = "planar_homography"

    @property
    def required_points(self) -> int:
        return 4 if self is CalibrationKind.PLANAR_HOMOGRAPHY else 2


@dataclass(frozen=True)
class Unset:
    """No calibration committed yet."""

    kind = None


@dataclass(frozen=True)
class LinearScale:
    pixels_per_inch: float

    kind = CalibrationKind.LINEAR_SCALE

    @property
    def pixels_per_foot(self) -> float:
        return self.pixels_per_inch * 12.0


@dataclass(frozen=True)
class PlanarHomography:
    homography: Homography

    kind = CalibrationKind.PLANAR_HOMOGRAPHY


CalibrationResult = Union[Unset, LinearScale, PlanarHomography]

UNSET = Unset()


@dataclass(frozen=True)
class CalibrationSummary:
    """What a successful commit produced, for display."""

    result: CalibrationResult
    known_width: float  # inches; the known length for LINEAR_SCALE
    known_height: float | None = None

    @property
    def kind(self) -> CalibrationKind:
        return self.result.kind

    @property
    def pixels_per_inch(self) -> float | None:
        if isinstance(self.result, LinearScale):
            return self.result.pixels_per_inch
        return None

    def describe(self) -> str:
        if isinstance(self.result, LinearScale):
            return (
                f"Calibration set: {self.result.pixels_per_inch:.2f} px/in "
                f"({self.result.pixels_per_foot:.2f} px/ft) over {format_feet_inches(self.known_width)}"
            )
        return (
            "Perspective calibration set: "
            f"{format_feet_inches(self.known_width)} x {format_feet_inches(self.known_height)} rectangle"
        )


def calibrate_linear(a: Point, b: Point, known_inches: float) -> LinearScale:
    """Pixels per inch from two points `known_inches` apart."""
    if known_inches is None or not known_inches > 0:
        raise ParseError("Known length must be greater than zero")
    pixels = a.distance_to(b)
    if pixels <= 0:
        raise DegenerateCalibration("Calibration points overlap")
    return LinearScale(pixels / known_inches)


def _normalization(points: Sequence[Point], epsilon: float) -> tuple[float, float, float]:
    """Centroid and scale that move points to mean distance sqrt(2) from the origin."""
    cx = sum(p.x for p in points) / len(points)
    cy = sum(p.y for p in points) / len(points)
    mean_dist = sum(np.hypot(p.x - cx, p.y - cy) for p in points) / len(points)
    if mean_dist < epsilon:
        raise DegenerateCalibration("Calibration corners coincide")
    return cx, cy, float(np.sqrt(2.0) / mean_dist)


def gaussian_solve(a: np.ndarray, b: np.ndarray, epsilon: float = SINGULAR_EPSILON) -> np.ndarray:
    """Solve `a @ x = b` by Gaussian elimination with partial pivoting.

    Raises DegenerateCalibration when a pivot's magnitude drops below
    `epsilon`.
    """
    n = a.shape[0]
    m = np.hstack([np.asarray(a, dtype=float), np.asarray(b, dtype=float).reshape(n, 1)])

    for col in range(n):
        pivot = col + int(np.argmax(np.abs(m[col:, col])))
        if abs(m[pivot, col]) < epsilon:
            raise DegenerateCalibration(
                "Calibration corners are collinear or degenerate; spread them around the rectangle"
            )
        if pivot != col:
            m[[col, pivot]] = m[[pivot, col]]
        m[col] /= m[col, col]
        m[col + 1 :] -= np.outer(m[col + 1 :, col], m[col])

    x = np.zeros(n)
    for row in range(n - 1, -1, -1):
        x[row] = m[row, n] - m[row, row + 1 : n] @ x[row + 1 :]
    return x


def solve_homography(
    quad: Sequence[Point], width: float, height: float, epsilon: float = SINGULAR_EPSILON
) -> Homography:
    """Homography mapping the image quad onto a `width` x `height` rectangle.

    `quad` is ordered top-left, top-right, bottom-right, bottom-left and
    lands on (0, 0), (W, 0), (W, H), (0, H).
    """
    if len(quad) != 4:
        raise ValueError(f"Planar calibration needs 4 corners, got {len(quad)}")
    if not (width > 0 and height > 0):
        raise ParseError("Known rectangle width and height must be greater than zero")

    world = [(0.0, 0.0), (width, 0.0), (width, height), (0.0, height)]
    cx, cy, s = _normalization(quad, epsilon)

    a = np.zeros((8, 8))
    b = np.zeros(8)
    for i, (p, (wx, wy)) in enumerate(zip(quad, world)):
        x = (p.x - cx) * s
        y = (p.y - cy) * s
        a[2 * i] = [x, y, 1.0, 0.0, 0.0, 0.0, -x * wx, -y * wx]
        a[2 * i + 1] = [0.0, 0.0, 0.0, x, y, 1.0, -x * wy, -y * wy]
        b[2 * i] = wx
        b[2 * i + 1] = wy

    h = gaussian_solve(a, b, epsilon)
    h_norm = np.append(h, 1.0).reshape(3, 3)

    # undo the image normalization: H = Hn @ T
    t = np.array([[s, 0.0, -s * cx], [0.0, s, -s * cy], [0.0, 0.0, 1.0]])
    full = h_norm @ t
    if abs(full[2, 2]) < epsilon:
        raise DegenerateCalibration("Calibration corners are degenerate")
    full /= full[2, 2]

    logger.debug(f"Homography solved: {full.round(6).tolist()}")
    return Homography.from_rows(full.tolist())

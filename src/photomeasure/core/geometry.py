"""Geometry primitives shared by the engine.

Two coordinate systems are in play:

- scene space: untransformed photo pixels, fixed for a given photo;
- viewport space: the on-screen pixels the user touches.

`ViewTransform` maps scene to viewport and is restricted to a uniform
scale plus a translation, so it is stored as three numbers instead of a
general matrix. `Homography` is the single 3x3 projective map produced by
planar calibration.
"""

import math
from dataclasses import dataclass
from typing import Iterable

from loguru import logger

from photomeasure.core.errors import DegenerateCalibration


@dataclass(frozen=True)
class Point:
    """A 2D coordinate. Used for both scene and viewport positions."""

    x: float
    y: float

    @classmethod
    def of(cls, value) -> "Point":
        """Coerce a Point or an (x, y) pair."""
        if isinstance(value, Point):
            return value
        x, y = value
        return cls(float(x), float(y))

    def distance_to(self, other: "Point") -> float:
        return math.hypot(self.x - other.x, self.y - other.y)

    def midpoint(self, other: "Point") -> "Point":
        return Point((self.x + other.x) / 2.0, (self.y + other.y) / 2.0)


@dataclass(frozen=True)
class Size:
    width: float
    height: float

    @classmethod
    def of(cls, value) -> "Size":
        if isinstance(value, Size):
            return value
        w, h = value
        return cls(float(w), float(h))


@dataclass(frozen=True)
class ViewTransform:
    """Scene-to-viewport map: `viewport = scale * scene + (tx, ty)`."""

    scale: float = 1.0
    tx: float = 0.0
    ty: float = 0.0

    @classmethod
    def identity(cls) -> "ViewTransform":
        return cls()

    @classmethod
    def translation(cls, dx: float, dy: float) -> "ViewTransform":
        return cls(1.0, dx, dy)

    @classmethod
    def scaling(cls, scale: float) -> "ViewTransform":
        return cls(scale, 0.0, 0.0)

    @classmethod
    def anchored(cls, scene_point: Point, viewport_point: Point, scale: float) -> "ViewTransform":
        """Transform at `scale` that puts `scene_point` under `viewport_point`."""
        return (
            cls.translation(viewport_point.x, viewport_point.y)
            .compose(cls.scaling(scale))
            .compose(cls.translation(-scene_point.x, -scene_point.y))
        )

    def apply(self, p: Point) -> Point:
        return Point(self.scale * p.x + self.tx, self.scale * p.y + self.ty)

    def inverse(self) -> "ViewTransform":
        if self.scale == 0:
            logger.error("ViewTransform with zero scale cannot be inverted; using identity")
            return ViewTransform.identity()
        inv = 1.0 / self.scale
        return ViewTransform(inv, -self.tx * inv, -self.ty * inv)

    def invert_point(self, p: Point) -> Point:
        if self.scale == 0:
            return self.inverse().apply(p)
        return Point((p.x - self.tx) / self.scale, (p.y - self.ty) / self.scale)

    def compose(self, other: "ViewTransform") -> "ViewTransform":
        """Return `self ∘ other`: `other` is applied first."""
        return ViewTransform(
            self.scale * other.scale,
            self.scale * other.tx + self.tx,
            self.scale * other.ty + self.ty,
        )

    def lerp(self, other: "ViewTransform", t: float) -> "ViewTransform":
        """Interpolate scale and translation with one shared parameter."""
        return ViewTransform(
            self.scale + (other.scale - self.scale) * t,
            self.tx + (other.tx - self.tx) * t,
            self.ty + (other.ty - self.ty) * t,
        )

    def as_matrix(self) -> tuple[tuple[float, float, float], ...]:
        """Row-major 3x3 homogeneous matrix, for renderers that want one."""
        return (
            (self.scale, 0.0, self.tx),
            (0.0, self.scale, self.ty),
            (0.0, 0.0, 1.0),
        )

    def is_close(self, other: "ViewTransform", tol: float = 1e-9) -> bool:
        return (
            math.isclose(self.scale, other.scale, abs_tol=tol)
            and math.isclose(self.tx, other.tx, abs_tol=tol)
            and math.isclose(self.ty, other.ty, abs_tol=tol)
        )


@dataclass(frozen=True)
class Homography:
    """3x3 projective map from image pixels to the real-world plane (inches).

    Stored row-major as nine coefficients with `h[8] == 1`.
    """

    h: tuple[float, ...]

    def __post_init__(self):
        if len(self.h) != 9:
            raise ValueError(f"Homography needs 9 coefficients, got {len(self.h)}")

    @classmethod
    def from_rows(cls, rows: Iterable[Iterable[float]]) -> "Homography":
        return cls(tuple(float(v) for row in rows for v in row))

    def apply(self, p: Point, epsilon: float = 1e-12) -> Point:
        h = self.h
        w = h[6] * p.x + h[7] * p.y + h[8]
        if abs(w) < epsilon:
            raise DegenerateCalibration(
                f"Point ({p.x:.1f}, {p.y:.1f}) lies on the vanishing line of the calibration plane"
            )
        x = h[0] * p.x + h[1] * p.y + h[2]
        y = h[3] * p.x + h[4] * p.y + h[5]
        return Point(x / w, y / w)

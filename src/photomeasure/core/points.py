"""Named calibration and measurement points, kept in scene space."""

from enum import Enum

from photomeasure.core.calibration import CalibrationKind
from photomeasure.core.geometry import Point


class PointRole(Enum):
    """Slots a point can occupy. Declaration order breaks hit-test ties."""

    CALIB_A = "calib_a"
    CALIB_B = "calib_b"
    CALIB_C = "calib_c"
    CALIB_D = "calib_d"
    MEASURE_A = "measure_a"
    MEASURE_B = "measure_b"

    @property
    def is_calibration(self) -> bool:
        return self in CALIBRATION_ROLES

    @property
    def is_measurement(self) -> bool:
        return self in MEASUREMENT_ROLES


class MeasureMode(Enum):
    """Which set of points the user is currently editing."""

    CALIBRATE = "calibrate"
    MEASURE = "measure"


LINEAR_ROLES = (PointRole.CALIB_A, PointRole.CALIB_B)
# top-left, top-right, bottom-right, bottom-left
PLANAR_ROLES = (PointRole.CALIB_A, PointRole.CALIB_B, PointRole.CALIB_C, PointRole.CALIB_D)
CALIBRATION_ROLES = PLANAR_ROLES
MEASUREMENT_ROLES = (PointRole.MEASURE_A, PointRole.MEASURE_B)


def calibration_roles(kind: CalibrationKind) -> tuple[PointRole, ...]:
    if kind is CalibrationKind.PLANAR_HOMOGRAPHY:
        return PLANAR_ROLES
    return LINEAR_ROLES


def active_roles(mode: MeasureMode, kind: CalibrationKind) -> tuple[PointRole, ...]:
    """Roles that can be grabbed or placed in the given mode."""
    if mode is MeasureMode.MEASURE:
        return MEASUREMENT_ROLES
    return calibration_roles(kind)


class PointStore:
    """Mapping of PointRole to an optional scene point, plus hit testing."""

    def __init__(self, hit_radius: float = 36.0):
        self.hit_radius = hit_radius
        self._points: dict[PointRole, Point] = {}

    def get(self, role: PointRole) -> Point | None:
        return self._points.get(role)

    def set(self, role: PointRole, point: Point):
        self._points[role] = Point.of(point)

    def clear(self, role: PointRole):
        self._points.pop(role, None)

    def clear_roles(self, roles):
        for role in roles:
            self._points.pop(role, None)

    def clear_all(self):
        self._points.clear()

    def __contains__(self, role: PointRole) -> bool:
        return role in self._points

    def items(self) -> list[tuple[PointRole, Point]]:
        """Placed points in declaration order."""
        return [(role, self._points[role]) for role in PointRole if role in self._points]

    def snapshot(self) -> dict[PointRole, Point]:
        return dict(self._points)

    def restore(self, snapshot: dict[PointRole, Point]):
        self._points = dict(snapshot)

    def placed(self, roles) -> list[PointRole]:
        return [role for role in roles if role in self._points]

    def first_empty(self, roles) -> PointRole | None:
        for role in roles:
            if role not in self._points:
                return role
        return None

    def nearest(self, query: Point, roles) -> PointRole | None:
        """Closest placed role among `roles`; earlier roles win ties."""
        best: PointRole | None = None
        best_d = float("inf")
        for role in roles:
            p = self._points.get(role)
            if p is None:
                continue
            d = p.distance_to(query)
            if d < best_d:
                best, best_d = role, d
        return best

    def hit_test(self, query: Point, active, scale: float = 1.0) -> PointRole | None:
        """Nearest active point within the on-screen hit radius.

        The radius is given in viewport pixels and divided by the zoom
        scale, so the touch target has the same size on screen at every
        zoom level. Inactive roles are never considered.
        """
        active = set(active)
        ordered = [role for role in PointRole if role in active]
        best = self.nearest(query, ordered)
        if best is None:
            return None
        radius = self.hit_radius / scale if scale > 0 else self.hit_radius
        if self._points[best].distance_to(query) <= radius:
            return best
        return None

"""The measuring engine for one photo.

`MeasureEngine` is the object a UI talks to. It owns every piece of
mutable state (points, view transform, gesture session, calibration and
last measurement) and exposes the calls a screen needs: forward gesture
events, double-tap zoom, pick a calibration kind, enter known sizes,
commit the calibration, measure, and finish with the measured length.

Errors are raised as `MeasureError` subclasses before any state changes,
so the user can correct the input and try again.
"""

from dataclasses import dataclass, replace
from pathlib import Path

from loguru import logger

from photomeasure.config.defaults import DEFAULT_CONFIG
from photomeasure.config.manager import ConfigManager
from photomeasure.core import measurement as measurement_mod
from photomeasure.core.calibration import (
    UNSET,
    CalibrationKind,
    CalibrationResult,
    CalibrationSummary,
    PlanarHomography,
    calibrate_linear,
    solve_homography,
)
from photomeasure.core.errors import IncompletePoints, MeasureError, ParseError
from photomeasure.core.geometry import Point, Size, ViewTransform
from photomeasure.core.gestures import (
    NO_CHANGE,
    EngineDelta,
    GestureArbiter,
    GestureEvent,
    GestureSession,
    GestureStart,
)
from photomeasure.core.measurement import MeasurementResult
from photomeasure.core.points import (
    MEASUREMENT_ROLES,
    PLANAR_ROLES,
    MeasureMode,
    PointRole,
    PointStore,
    active_roles as roles_for_mode,
    calibration_roles,
)
from photomeasure.core.transform import TransformAnimation, TransformManager
from photomeasure.core.units import parse_length


@dataclass(frozen=True)
class EngineSettings:
    """Engine tuning values, read from the `gestures` and `calibration` groups."""

    tap_slop: float = 8.0
    hit_radius: float = 36.0
    min_scale: float = 1.0
    max_scale: float = 10.0
    double_tap_scale: float = 2.5
    double_tap_threshold: float = 2.0
    animation_seconds: float = 0.18
    pinch_extra_pan: bool = False
    arm_on_tap: bool = True
    default_known_length: str = "4.0"
    singular_epsilon: float = 1e-12
    default_kind: CalibrationKind = CalibrationKind.LINEAR_SCALE

    @classmethod
    def from_config(cls, config: ConfigManager | None) -> "EngineSettings":
        if config is None:

            def get(group, key, default=None):
                return DEFAULT_CONFIG.get(group, {}).get(key, default)

        else:
            get = config.get

        return cls(
            tap_slop=float(get("gestures", "tap_slop_px", 8.0)),
            hit_radius=float(get("gestures", "hit_radius_px", 36.0)),
            min_scale=float(get("gestures", "min_scale", 1.0)),
            max_scale=float(get("gestures", "max_scale", 10.0)),
            double_tap_scale=float(get("gestures", "double_tap_scale", 2.5)),
            double_tap_threshold=float(get("gestures", "double_tap_threshold", 2.0)),
            animation_seconds=get("gestures", "animation_ms", 180) / 1000.0,
            pinch_extra_pan=bool(get("gestures", "pinch_extra_pan", False)),
            arm_on_tap=bool(get("gestures", "arm_on_tap", True)),
            default_known_length=str(get("calibration", "default_known_length", "4.0")),
            singular_epsilon=float(get("calibration", "singular_epsilon", 1e-12)),
            default_kind=CalibrationKind(get("general", "default_calibration_kind", "linear_scale")),
        )


@dataclass(frozen=True)
class Segment:
    """A line between two placed points, in scene space, for overlays."""

    start_role: PointRole
    end_role: PointRole
    start: Point
    end: Point

    @property
    def midpoint(self) -> Point:
        return self.start.midpoint(self.end)

    @property
    def pixel_length(self) -> float:
        return self.start.distance_to(self.end)


@dataclass
class _State:
    points: PointStore
    transforms: TransformManager
    arbiter: GestureArbiter
    kind: CalibrationKind
    mode: MeasureMode = MeasureMode.CALIBRATE
    calibration: CalibrationResult = UNSET
    measurement: MeasurementResult | None = None
    known_length: float | None = None
    known_rect: tuple[float, float] | None = None
    animation: TransformAnimation | None = None


class MeasureEngine:
    """Calibration and measurement state for a single photo."""

    def __init__(
        self,
        image_size: Size | tuple[float, float],
        viewport_size: Size | tuple[float, float] | None = None,
        config: ConfigManager | None = None,
    ):
        self.settings = EngineSettings.from_config(config)
        self._image_size = Size.of(image_size)
        self._viewport_size = Size.of(viewport_size) if viewport_size is not None else self._image_size
        if self._image_size.width <= 0 or self._image_size.height <= 0:
            raise ValueError(f"Image size must be positive, got {self._image_size}")
        self._state = self._fresh_state(self.settings.default_kind)

    @classmethod
    def from_image(
        cls,
        path: str | Path,
        viewport_size: Size | tuple[float, float] | None = None,
        config: ConfigManager | None = None,
    ) -> "MeasureEngine":
        """Build an engine sized to the photo at `path`."""
        from photomeasure.importers.image import probe_image_size

        return cls(probe_image_size(Path(path), config), viewport_size, config)

    def _fresh_state(self, kind: CalibrationKind) -> _State:
        s = self.settings
        points = PointStore(hit_radius=s.hit_radius)
        transforms = TransformManager(
            self._image_size,
            self._viewport_size,
            min_scale=s.min_scale,
            max_scale=s.max_scale,
            double_tap_scale=s.double_tap_scale,
            double_tap_threshold=s.double_tap_threshold,
            animation_seconds=s.animation_seconds,
            pinch_extra_pan=s.pinch_extra_pan,
        )
        arbiter = GestureArbiter(points, transforms, tap_slop=s.tap_slop, arm_on_tap=s.arm_on_tap)
        return _State(
            points=points,
            transforms=transforms,
            arbiter=arbiter,
            kind=kind,
            known_length=parse_length(s.default_known_length),
        )

    # --- read-only state ---

    @property
    def image_size(self) -> Size:
        return self._image_size

    @property
    def viewport_size(self) -> Size:
        return self._viewport_size

    @property
    def transform(self) -> ViewTransform:
        return self._state.transforms.transform

    @property
    def points(self) -> PointStore:
        return self._state.points

    def point(self, role: PointRole) -> Point | None:
        return self._state.points.get(role)

    @property
    def mode(self) -> MeasureMode:
        return self._state.mode

    @property
    def calibration_kind(self) -> CalibrationKind:
        return self._state.kind

    @property
    def calibration(self) -> CalibrationResult:
        return self._state.calibration

    @property
    def is_calibrated(self) -> bool:
        return self._state.calibration is not UNSET

    @property
    def measurement(self) -> MeasurementResult | None:
        return self._state.measurement

    @property
    def known_length(self) -> float | None:
        return self._state.known_length

    @property
    def known_rect(self) -> tuple[float, float] | None:
        return self._state.known_rect

    @property
    def session(self) -> GestureSession:
        return self._state.arbiter.session

    @property
    def armed_role(self) -> PointRole | None:
        return self._state.arbiter.armed_role

    @property
    def dragging(self) -> PointRole | None:
        return self._state.arbiter.dragging

    @property
    def animation(self) -> TransformAnimation | None:
        return self._state.animation

    @property
    def active_roles(self) -> tuple[PointRole, ...]:
        return roles_for_mode(self._state.mode, self._state.kind)

    def scene_to_viewport(self, p: Point) -> Point:
        return self._state.transforms.scene_to_viewport(Point.of(p))

    def viewport_to_scene(self, p: Point) -> Point:
        return self._state.transforms.viewport_to_scene(Point.of(p))

    def placed_count(self, mode: MeasureMode | None = None) -> tuple[int, int]:
        """(placed, required) for the calibration or measurement points."""
        mode = mode or self._state.mode
        roles = roles_for_mode(mode, self._state.kind)
        return len(self._state.points.placed(roles)), len(roles)

    def segments(self) -> list[Segment]:
        """Lines between placed points: calibration first, then measurement."""
        roles = calibration_roles(self._state.kind)
        if roles == PLANAR_ROLES:
            pairs = list(zip(roles, roles[1:] + roles[:1]))
        else:
            pairs = [roles]
        pairs.append(MEASUREMENT_ROLES)

        out = []
        for a, b in pairs:
            pa, pb = self._state.points.get(a), self._state.points.get(b)
            if pa is not None and pb is not None:
                out.append(Segment(a, b, pa, pb))
        return out

    # --- gestures and zoom ---

    def on_gesture_event(self, event: GestureEvent) -> EngineDelta:
        state = self._state
        if isinstance(event, GestureStart) and state.animation is not None:
            # a new touch takes over from a running zoom animation
            state.animation = None
        delta = state.arbiter.handle(event, self.active_roles)
        return self._after_points_changed(delta)

    def on_double_tap(self, viewport_point: Point) -> TransformAnimation:
        """Toggle zoom around the tapped point; sample with `advance_animation`."""
        transforms = self._state.transforms
        target = transforms.double_tap_target(Point.of(viewport_point))
        animation = transforms.animate_to(target)
        self._state.animation = animation
        logger.debug(f"Double tap: zooming to scale {target.scale:.2f}")
        return animation

    def advance_animation(self, elapsed: float) -> EngineDelta:
        """Apply the running animation at `elapsed` seconds since it started."""
        state = self._state
        animation = state.animation
        if animation is None:
            return NO_CHANGE
        before = state.transforms.transform
        if animation.finished(elapsed):
            state.transforms.commit(animation.end)
            state.animation = None
        else:
            state.transforms.set_provisional(animation.at(elapsed))
        return EngineDelta(transform_changed=state.transforms.transform != before)

    def reset_zoom(self) -> EngineDelta:
        state = self._state
        state.animation = None
        before = state.transforms.transform
        after = state.transforms.reset_zoom()
        return EngineDelta(transform_changed=after != before)

    # --- modes and inputs ---

    def place_point(self, role: PointRole, scene_point: Point) -> EngineDelta:
        """Put a point directly, without a gesture (restored state, detectors)."""
        state = self._state
        if role.is_calibration and role not in calibration_roles(state.kind):
            raise ValueError(f"{role.value} is not used by {state.kind.value} calibration")
        state.points.set(role, Point.of(scene_point))
        return self._after_points_changed(EngineDelta(changed_roles=frozenset({role})))

    def set_mode(self, mode: MeasureMode) -> EngineDelta:
        state = self._state
        if mode is state.mode:
            return NO_CHANGE
        state.arbiter.abandon()
        state.mode = mode
        logger.debug(f"Mode set to {mode.value}")
        return NO_CHANGE

    def set_calibration_kind(self, kind: CalibrationKind) -> EngineDelta:
        """Switch algorithm; clears all points, the calibration and the measurement."""
        state = self._state
        if kind is state.kind:
            return NO_CHANGE
        state.arbiter.abandon()
        changed = frozenset(role for role, _ in state.points.items())
        cleared = state.measurement is not None
        was_calibrated = state.calibration is not UNSET
        state.points.clear_all()
        state.kind = kind
        state.calibration = UNSET
        state.measurement = None
        state.mode = MeasureMode.CALIBRATE
        logger.info(f"Calibration kind set to {kind.value}")
        return EngineDelta(
            changed_roles=changed, measurement_cleared=cleared, calibration_cleared=was_calibrated
        )

    def set_known_length(self, text: str) -> float:
        """Parse and store the known calibration length; returns inches."""
        inches = parse_length(text)
        if inches is None:
            logger.warning(f"Rejected known length {text!r}")
            raise ParseError(f"Could not read a length from {text!r}; try 4' 6\" or 54 in")
        self._state.known_length = inches
        return inches

    def set_known_rect(self, width_text: str, height_text: str) -> tuple[float, float]:
        """Parse and store the known rectangle for planar calibration."""
        width = parse_length(width_text)
        height = parse_length(height_text)
        if width is None or height is None:
            bad = width_text if width is None else height_text
            logger.warning(f"Rejected known rectangle dimension {bad!r}")
            raise ParseError(f"Could not read a length from {bad!r}")
        self._state.known_rect = (width, height)
        return width, height

    # --- calibration and measurement ---

    def commit_calibration(self) -> CalibrationSummary:
        """Solve the calibration from the placed points and known size.

        On success the measurement points and any measured value are
        cleared and the engine switches to measure mode. On failure the
        state is left exactly as it was.
        """
        state = self._state
        try:
            summary = self._solve_calibration(state)
        except MeasureError as e:
            logger.warning(f"Calibration failed ({type(e).__name__}): {e}")
            raise

        state.arbiter.abandon()
        state.calibration = summary.result
        state.measurement = None
        state.points.clear_roles(MEASUREMENT_ROLES)
        state.mode = MeasureMode.MEASURE
        logger.info(summary.describe())
        return summary

    def _solve_calibration(self, state: _State) -> CalibrationSummary:
        roles = calibration_roles(state.kind)
        placed = state.points.placed(roles)
        if len(placed) < len(roles):
            raise IncompletePoints(
                f"Place {len(roles)} calibration points first ({len(placed)}/{len(roles)})",
                len(placed),
                len(roles),
            )
        corners = [state.points.get(role) for role in roles]

        if state.kind is CalibrationKind.PLANAR_HOMOGRAPHY:
            if state.known_rect is None:
                raise ParseError("Enter the known rectangle width and height")
            width, height = state.known_rect
            h = solve_homography(corners, width, height, self.settings.singular_epsilon)
            return CalibrationSummary(PlanarHomography(h), width, height)

        if state.known_length is None:
            raise ParseError("Enter a valid known length")
        result = calibrate_linear(corners[0], corners[1], state.known_length)
        return CalibrationSummary(result, state.known_length)

    def compute_measurement(self) -> float:
        """Measure between the two measurement points; returns inches."""
        state = self._state
        try:
            inches = measurement_mod.measure(
                state.points.get(PointRole.MEASURE_A),
                state.points.get(PointRole.MEASURE_B),
                state.calibration,
            )
        except MeasureError as e:
            logger.warning(f"Measurement failed ({type(e).__name__}): {e}")
            raise

        state.measurement = MeasurementResult(inches, state.calibration.kind)
        logger.info(f"Measured {state.measurement.describe()}")
        return inches

    def preview_distance(self) -> float | None:
        """Provisional distance for a live label; None until computable."""
        state = self._state
        return measurement_mod.preview(
            state.points.get(PointRole.MEASURE_A),
            state.points.get(PointRole.MEASURE_B),
            state.calibration,
        )

    def finish(self) -> float | None:
        """The measured length in inches, or None when nothing was measured."""
        result = self._state.measurement
        if result is None or not result.inches > 0:
            return None
        return result.inches

    def reset(self) -> EngineDelta:
        """Clear points, calibration, measurement and zoom in one step."""
        old = self._state
        changed = frozenset(role for role, _ in old.points.items())
        fresh = self._fresh_state(old.kind)
        self._state = fresh
        logger.info("Engine reset")
        return EngineDelta(
            changed_roles=changed,
            transform_changed=fresh.transforms.transform != old.transforms.transform,
            measurement_cleared=old.measurement is not None,
            calibration_cleared=old.calibration is not UNSET,
        )

    # --- internals ---

    def _after_points_changed(self, delta: EngineDelta) -> EngineDelta:
        state = self._state
        if state.calibration is not UNSET and any(role.is_calibration for role in delta.changed_roles):
            # the committed calibration no longer describes its points
            logger.info("Calibration point moved after commit; calibration cleared")
            delta = replace(
                delta,
                calibration_cleared=True,
                measurement_cleared=delta.measurement_cleared or state.measurement is not None,
            )
            state.calibration = UNSET
            state.measurement = None
        if not any(role.is_measurement for role in delta.changed_roles):
            return delta
        cleared = state.measurement is not None
        state.measurement = None
        return replace(
            delta,
            measurement_cleared=delta.measurement_cleared or cleared,
            preview_inches=self.preview_distance(),
        )

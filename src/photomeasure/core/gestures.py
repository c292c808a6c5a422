"""Gesture arbitration: point editing vs. pinch zoom.

A single recognizer delivers every touch interaction as start, updates
and end. The arbiter decides what the interaction means:

- one finger that stays within the tap slop is a tap: it places a point,
  or arms the point it landed on;
- one finger that moves drags the point it grabbed, or creates a new
  segment when it started on empty photo;
- two or more fingers, at any moment of the session, make it a pinch.
  Whatever an unarmed single-finger placement did before the second
  finger arrived is rolled back, so a pinch never leaves a stray point
  where the first finger landed.

The session is one of `Idle`, `SingleEdit` or `PinchZoom`; each variant
carries only the state that is meaningful for it.
"""

from dataclasses import dataclass, field
from typing import Union

from loguru import logger

from photomeasure.core.geometry import Point
from photomeasure.core.points import PointRole, PointStore
from photomeasure.core.transform import PinchAnchor, TransformManager


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class GestureStart:
    focal: Point
    pointer_count: int = 1


@dataclass(frozen=True)
class GestureUpdate:
    focal: Point
    pointer_count: int = 1
    scale_ratio: float = 1.0  # relative to the span when the gesture started
    focal_delta: Point = Point(0.0, 0.0)


@dataclass(frozen=True)
class GestureEnd:
    pass


@dataclass(frozen=True)
class GestureCancel:
    pass


@dataclass(frozen=True)
class PointerCountChanged:
    """Low-level pointer down/up notification, delivered ahead of updates."""

    pointer_count: int


GestureEvent = Union[GestureStart, GestureUpdate, GestureEnd, GestureCancel, PointerCountChanged]


# ---------------------------------------------------------------------------
# Session variants
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Idle:
    pass


@dataclass
class SingleEdit:
    start_viewport: Point
    start_scene: Point
    last_focal: Point
    snapshot: dict
    # role being dragged; None until a point is grabbed or a segment created
    target: PointRole | None = None
    moved: bool = False
    placing: bool = False
    max_pointers: int = 1


@dataclass(frozen=True)
class PinchZoom:
    anchor: PinchAnchor
    base_ratio: float = 1.0


GestureSession = Union[Idle, SingleEdit, PinchZoom]

IDLE = Idle()


@dataclass(frozen=True)
class EngineDelta:
    """What changed in response to one event, for repaint purposes."""

    changed_roles: frozenset = field(default_factory=frozenset)
    transform_changed: bool = False
    measurement_cleared: bool = False
    calibration_cleared: bool = False
    preview_inches: float | None = None

    @property
    def is_empty(self) -> bool:
        return not (
            self.changed_roles
            or self.transform_changed
            or self.measurement_cleared
            or self.calibration_cleared
        )

    def merge(self, other: "EngineDelta") -> "EngineDelta":
        return EngineDelta(
            changed_roles=self.changed_roles | other.changed_roles,
            transform_changed=self.transform_changed or other.transform_changed,
            measurement_cleared=self.measurement_cleared or other.measurement_cleared,
            calibration_cleared=self.calibration_cleared or other.calibration_cleared,
            preview_inches=other.preview_inches if other.preview_inches is not None else self.preview_inches,
        )


NO_CHANGE = EngineDelta()


# ---------------------------------------------------------------------------
# Arbiter
# ---------------------------------------------------------------------------


class GestureArbiter:
    """Turns gesture events into point and transform mutations."""

    def __init__(
        self,
        points: PointStore,
        transforms: TransformManager,
        tap_slop: float = 8.0,
        arm_on_tap: bool = True,
    ):
        self._points = points
        self._transforms = transforms
        self.tap_slop = tap_slop
        self.arm_on_tap = arm_on_tap
        self.session: GestureSession = IDLE
        self.armed_role: PointRole | None = None

    @property
    def dragging(self) -> PointRole | None:
        if isinstance(self.session, SingleEdit):
            return self.session.target
        return None

    def handle(self, event: GestureEvent, active: tuple[PointRole, ...]) -> EngineDelta:
        if isinstance(event, GestureStart):
            return self._start(event, active)
        if isinstance(event, GestureUpdate):
            return self._update(event, active)
        if isinstance(event, PointerCountChanged):
            return self._pointer_count(event)
        if isinstance(event, GestureEnd):
            return self._end(active)
        if isinstance(event, GestureCancel):
            return self._cancel()
        raise TypeError(f"Unknown gesture event: {event!r}")

    def abandon(self):
        """Drop the session without committing anything."""
        if isinstance(self.session, PinchZoom):
            self._transforms.end_pinch()
        self.session = IDLE
        self.armed_role = None

    # --- transitions ---

    def _start(self, event: GestureStart, active) -> EngineDelta:
        delta = NO_CHANGE
        if isinstance(self.session, PinchZoom):
            logger.debug("Gesture started while a pinch was open; committing it")
            delta = self._end(active)
        elif isinstance(self.session, SingleEdit):
            logger.debug("Gesture started while an edit was open; keeping its changes")
            self.session = IDLE

        if event.pointer_count >= 2:
            self.armed_role = None
            return delta.merge(self._enter_pinch(event.focal, event.pointer_count))

        scene = self._transforms.viewport_to_scene(event.focal)
        session = SingleEdit(
            start_viewport=event.focal,
            start_scene=scene,
            last_focal=event.focal,
            snapshot=self._points.snapshot(),
        )

        # the arm only survives a start that lands on the armed point again
        grabbed = self._points.hit_test(scene, active, self._transforms.scale)
        session.target = grabbed
        if grabbed is not self.armed_role:
            self.armed_role = None

        self.session = session
        logger.debug(f"Single-finger session started, target={session.target}")
        return delta

    def _update(self, event: GestureUpdate, active) -> EngineDelta:
        session = self.session

        if isinstance(session, PinchZoom):
            if event.pointer_count < 2:
                return NO_CHANGE
            before = self._transforms.transform
            ratio = event.scale_ratio / session.base_ratio if session.base_ratio else event.scale_ratio
            after = self._transforms.update_pinch(event.focal, ratio, event.focal_delta)
            return EngineDelta(transform_changed=after != before)

        if not isinstance(session, SingleEdit):
            return NO_CHANGE

        session.last_focal = event.focal
        session.max_pointers = max(session.max_pointers, event.pointer_count)
        if session.max_pointers >= 2:
            return self._enter_pinch(event.focal, event.pointer_count, event.scale_ratio)

        if event.focal.distance_to(session.start_viewport) > self.tap_slop:
            session.moved = True

        current = self._transforms.viewport_to_scene(event.focal)

        if session.target is not None:
            self._points.set(session.target, current)
            return EngineDelta(changed_roles=frozenset({session.target}))

        if session.moved:
            changed = self._begin_create_drag(session, current, active)
            return EngineDelta(changed_roles=frozenset(changed))

        return NO_CHANGE

    def _pointer_count(self, event: PointerCountChanged) -> EngineDelta:
        session = self.session
        if not isinstance(session, SingleEdit):
            return NO_CHANGE
        session.max_pointers = max(session.max_pointers, event.pointer_count)
        if session.max_pointers >= 2:
            return self._enter_pinch(session.last_focal, event.pointer_count)
        return NO_CHANGE

    def _end(self, active) -> EngineDelta:
        session = self.session

        if isinstance(session, Idle):
            return NO_CHANGE

        if isinstance(session, PinchZoom):
            before = self._transforms.transform
            after = self._transforms.end_pinch()
            self.session = IDLE
            return EngineDelta(transform_changed=after != before)

        self.session = IDLE
        if session.moved:
            self.armed_role = None
            return NO_CHANGE
        return self._tap(session.start_scene, active)

    def _cancel(self) -> EngineDelta:
        session = self.session
        if isinstance(session, PinchZoom):
            before = self._transforms.transform
            after = self._transforms.end_pinch()
            self.session = IDLE
            return EngineDelta(transform_changed=after != before)
        if isinstance(session, SingleEdit):
            changed = self._restore(session.snapshot)
            self.session = IDLE
            return EngineDelta(changed_roles=frozenset(changed))
        return NO_CHANGE

    # --- helpers ---

    def _enter_pinch(self, focal: Point, pointer_count: int, base_ratio: float = 1.0) -> EngineDelta:
        changed: set[PointRole] = set()
        session = self.session
        if isinstance(session, SingleEdit) and session.placing:
            changed = self._restore(session.snapshot)
            logger.debug("Second finger arrived; discarded the point placement in progress")

        anchor = self._transforms.begin_pinch(focal, max(pointer_count, 2))
        self.session = PinchZoom(anchor=anchor, base_ratio=base_ratio or 1.0)
        self.armed_role = None
        return EngineDelta(changed_roles=frozenset(changed))

    def _restore(self, snapshot: dict) -> set[PointRole]:
        current = self._points.snapshot()
        changed = {role for role in PointRole if current.get(role) != snapshot.get(role)}
        self._points.restore(snapshot)
        return changed

    def _begin_create_drag(self, session: SingleEdit, current: Point, active) -> set[PointRole]:
        """Start a new segment from the session's start point."""
        start = session.start_scene
        changed: set[PointRole] = set()

        if len(active) == 2:
            first, second = active
            placed = self._points.placed(active)
            if len(placed) == 1:
                target = second if placed[0] is first else first
            else:
                if len(placed) == 2:
                    anchor_role = self._points.nearest(start, active)
                else:
                    anchor_role = first
                target = second if anchor_role is first else first
                self._points.set(anchor_role, start)
                changed.add(anchor_role)
        else:
            target = self._points.first_empty(active) or self._points.nearest(start, active)

        self._points.set(target, current)
        changed.add(target)
        session.target = target
        session.placing = True
        logger.debug(f"Create-drag started, dragging {target}")
        return changed

    def _tap(self, scene: Point, active) -> EngineDelta:
        hit = self._points.hit_test(scene, active, self._transforms.scale)
        if hit is not None:
            self.armed_role = hit if self.arm_on_tap else None
            return NO_CHANGE

        self.armed_role = None
        role = self._points.first_empty(active) or self._points.nearest(scene, active)
        if role is None:
            return NO_CHANGE
        self._points.set(role, scene)
        return EngineDelta(changed_roles=frozenset({role}))

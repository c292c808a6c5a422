"""Tests for gesture arbitration between point editing and pinch zoom."""

import pytest

from photomeasure.core.geometry import Point, Size, ViewTransform
from photomeasure.core.gestures import (
    EngineDelta,
    GestureArbiter,
    GestureCancel,
    GestureEnd,
    GestureStart,
    GestureUpdate,
    Idle,
    PinchZoom,
    PointerCountChanged,
    SingleEdit,
)
from photomeasure.core.points import LINEAR_ROLES, MEASUREMENT_ROLES, PLANAR_ROLES, PointRole, PointStore
from photomeasure.core.transform import TransformManager

A, B, C, D = PLANAR_ROLES


@pytest.fixture
def store():
    return PointStore(hit_radius=36.0)


@pytest.fixture
def transforms():
    return TransformManager(Size(1000, 800))


@pytest.fixture
def arbiter(store, transforms):
    return GestureArbiter(store, transforms, tap_slop=8.0)


def start(arbiter, x, y, pointers=1, active=LINEAR_ROLES):
    return arbiter.handle(GestureStart(Point(x, y), pointers), active)


def move(arbiter, x, y, pointers=1, ratio=1.0, active=LINEAR_ROLES):
    return arbiter.handle(GestureUpdate(Point(x, y), pointers, ratio), active)


def end(arbiter, active=LINEAR_ROLES):
    return arbiter.handle(GestureEnd(), active)


def tap(arbiter, x, y, active=LINEAR_ROLES):
    start(arbiter, x, y, active=active)
    return end(arbiter, active=active)


class TestTaps:
    def test_taps_fill_empty_slots_in_order(self, arbiter, store):
        d1 = tap(arbiter, 100, 100)
        d2 = tap(arbiter, 400, 100)
        assert d1.changed_roles == {A}
        assert d2.changed_roles == {B}
        assert store.get(A) == Point(100, 100)
        assert store.get(B) == Point(400, 100)
        assert isinstance(arbiter.session, Idle)

    def test_tap_when_full_overwrites_nearest(self, arbiter, store):
        tap(arbiter, 100, 100)
        tap(arbiter, 400, 100)
        delta = tap(arbiter, 350, 300)
        assert delta.changed_roles == {B}
        assert store.get(A) == Point(100, 100)
        assert store.get(B) == Point(350, 300)

    def test_tap_on_point_arms_without_moving(self, arbiter, store):
        tap(arbiter, 100, 100)
        delta = tap(arbiter, 105, 100)
        assert delta.is_empty
        assert store.get(A) == Point(100, 100)
        assert arbiter.armed_role is A

    def test_tap_on_point_without_arming(self, store, transforms):
        arbiter = GestureArbiter(store, transforms, arm_on_tap=False)
        tap(arbiter, 100, 100)
        tap(arbiter, 105, 100)
        assert arbiter.armed_role is None

    def test_small_jitter_is_still_a_tap(self, arbiter, store):
        start(arbiter, 500, 500)
        assert move(arbiter, 505, 503).is_empty
        end(arbiter)
        assert store.get(A) == Point(500, 500)

    def test_tap_uses_scene_coordinates(self, arbiter, store, transforms):
        transforms.commit(ViewTransform(2.0, -200.0, -100.0))
        tap(arbiter, 100, 100)
        assert store.get(A) == Point(150, 100)

    def test_planar_taps_fill_four_corners(self, arbiter, store):
        for i, (x, y) in enumerate([(100, 100), (400, 100), (400, 300), (100, 300)]):
            tap(arbiter, x, y, active=PLANAR_ROLES)
            assert store.get(PLANAR_ROLES[i]) == Point(x, y)


class TestDrags:
    def test_drag_grabbed_point(self, arbiter, store):
        tap(arbiter, 100, 100)
        start(arbiter, 110, 95)
        delta = move(arbiter, 150, 160)
        assert delta.changed_roles == {A}
        assert arbiter.dragging is A
        assert store.get(A) == Point(150, 160)
        end(arbiter)
        assert store.get(A) == Point(150, 160)

    def test_create_drag_on_empty_photo(self, arbiter, store):
        start(arbiter, 200, 200)
        delta = move(arbiter, 260, 200)
        assert delta.changed_roles == {A, B}
        assert store.get(A) == Point(200, 200)
        assert store.get(B) == Point(260, 200)
        move(arbiter, 300, 220)
        assert store.get(B) == Point(300, 220)
        end(arbiter)
        assert store.get(A) == Point(200, 200)

    def test_create_drag_with_both_placed_moves_nearer(self, arbiter, store):
        tap(arbiter, 100, 100)
        tap(arbiter, 400, 100)
        start(arbiter, 380, 300)
        move(arbiter, 380, 350)
        assert store.get(B) == Point(380, 300)
        assert store.get(A) == Point(380, 350)

    def test_create_drag_with_one_placed_keeps_it(self, arbiter, store):
        tap(arbiter, 100, 100)
        start(arbiter, 500, 500)
        delta = move(arbiter, 600, 500)
        assert delta.changed_roles == {B}
        assert store.get(A) == Point(100, 100)
        assert store.get(B) == Point(600, 500)

    def test_planar_create_drag_fills_first_empty(self, arbiter, store):
        tap(arbiter, 100, 100, active=PLANAR_ROLES)
        start(arbiter, 500, 500, active=PLANAR_ROLES)
        move(arbiter, 520, 500, active=PLANAR_ROLES)
        assert store.get(B) == Point(520, 500)
        assert C not in store

    def test_drag_on_empty_photo_after_arming_creates_segment(self, arbiter, store):
        tap(arbiter, 100, 100)
        tap(arbiter, 400, 100)
        tap(arbiter, 100, 100)
        assert arbiter.armed_role is A
        start(arbiter, 600, 600)
        assert arbiter.armed_role is None
        assert arbiter.dragging is None
        move(arbiter, 700, 600)
        assert {store.get(A), store.get(B)} == {Point(600, 600), Point(700, 600)}
        end(arbiter)
        assert arbiter.armed_role is None

    def test_drag_starting_on_armed_point_grabs_it(self, arbiter, store):
        tap(arbiter, 100, 100)
        tap(arbiter, 100, 100)
        start(arbiter, 104, 100)
        assert arbiter.armed_role is A
        move(arbiter, 150, 160)
        assert store.get(A) == Point(150, 160)
        assert B not in store

    def test_mode_isolation(self, arbiter, store):
        store.set(PointRole.MEASURE_A, Point(100, 100))
        start(arbiter, 100, 100, active=LINEAR_ROLES)
        assert arbiter.dragging is None
        end(arbiter, active=LINEAR_ROLES)
        assert store.get(A) == Point(100, 100)
        assert store.get(PointRole.MEASURE_A) == Point(100, 100)
        start(arbiter, 100, 100, active=MEASUREMENT_ROLES)
        assert arbiter.dragging is PointRole.MEASURE_A


class TestPinchArbitration:
    def test_two_finger_start_is_pinch(self, arbiter, transforms):
        start(arbiter, 500, 400, pointers=2)
        assert isinstance(arbiter.session, PinchZoom)
        delta = move(arbiter, 500, 400, pointers=2, ratio=2.0)
        assert delta.transform_changed
        assert transforms.scale == 2.0

    def test_pinch_end_clamps_and_idles(self, arbiter, transforms):
        start(arbiter, 500, 400, pointers=2)
        move(arbiter, 600, 400, pointers=2, ratio=1.0)
        assert transforms.transform.tx == 100.0
        delta = end(arbiter)
        assert delta.transform_changed
        assert transforms.transform == ViewTransform.identity()
        assert isinstance(arbiter.session, Idle)

    def test_second_pointer_callback_discards_placement(self, arbiter, store):
        """A create-drag that turns into a pinch leaves no stray points."""
        start(arbiter, 500, 400)
        move(arbiter, 520, 400)
        assert A in store and B in store
        delta = arbiter.handle(PointerCountChanged(2), LINEAR_ROLES)
        assert delta.changed_roles == {A, B}
        assert isinstance(arbiter.session, PinchZoom)
        end(arbiter)
        assert store.items() == []

    def test_second_pointer_in_update_discards_tap(self, arbiter, store):
        start(arbiter, 500, 400)
        move(arbiter, 502, 400)
        move(arbiter, 505, 400, pointers=2)
        assert isinstance(arbiter.session, PinchZoom)
        end(arbiter)
        assert store.items() == []

    def test_existing_points_survive_pinch(self, arbiter, store):
        tap(arbiter, 100, 100)
        start(arbiter, 500, 400)
        move(arbiter, 560, 400)
        arbiter.handle(PointerCountChanged(2), LINEAR_ROLES)
        end(arbiter)
        assert store.items() == [(A, Point(100, 100))]

    def test_ratio_rebased_when_pinch_starts_late(self, arbiter, transforms):
        start(arbiter, 500, 400)
        move(arbiter, 500, 400, pointers=2, ratio=1.25)
        move(arbiter, 500, 400, pointers=2, ratio=2.5)
        assert transforms.scale == pytest.approx(2.0)

    def test_single_pointer_updates_ignored_during_pinch(self, arbiter, transforms):
        start(arbiter, 500, 400, pointers=2)
        move(arbiter, 500, 400, pointers=2, ratio=3.0)
        assert move(arbiter, 100, 100, pointers=1).is_empty
        assert transforms.scale == 3.0

    def test_pinch_clears_armed_point(self, arbiter):
        tap(arbiter, 100, 100)
        tap(arbiter, 100, 100)
        start(arbiter, 500, 400, pointers=2)
        assert arbiter.armed_role is None


class TestRobustness:
    def test_end_without_start(self, arbiter):
        assert end(arbiter).is_empty
        assert isinstance(arbiter.session, Idle)

    def test_update_while_idle(self, arbiter, store):
        assert move(arbiter, 10, 10).is_empty
        assert store.items() == []

    def test_pointer_count_while_idle(self, arbiter):
        assert arbiter.handle(PointerCountChanged(2), LINEAR_ROLES).is_empty

    def test_start_without_end_keeps_drag(self, arbiter, store):
        start(arbiter, 200, 200)
        move(arbiter, 260, 200)
        start(arbiter, 700, 700)
        assert isinstance(arbiter.session, SingleEdit)
        assert store.get(B) == Point(260, 200)

    def test_cancel_restores_points(self, arbiter, store):
        tap(arbiter, 100, 100)
        start(arbiter, 100, 100)
        move(arbiter, 300, 300)
        delta = arbiter.handle(GestureCancel(), LINEAR_ROLES)
        assert delta.changed_roles == {A}
        assert store.get(A) == Point(100, 100)

    def test_unknown_event(self, arbiter):
        with pytest.raises(TypeError):
            arbiter.handle(object(), LINEAR_ROLES)


class TestEngineDelta:
    def test_merge(self):
        merged = EngineDelta(changed_roles=frozenset({A})).merge(
            EngineDelta(transform_changed=True, preview_inches=3.0)
        )
        assert merged.changed_roles == {A}
        assert merged.transform_changed
        assert merged.preview_inches == 3.0
        assert not merged.is_empty

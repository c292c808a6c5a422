"""Viewport transform management: zoom, pan, clamping and animation.

The photo is drawn through a `ViewTransform`. Pinch gestures rebuild the
transform from the state captured when the pinch began, so repeated
updates never accumulate drift: the scene point that was under the
fingers at the start stays under the focal point for the whole gesture.
The boundary clamp is applied when a transform is committed (pinch end,
double tap, reset), never to the provisional transforms of a live pinch.
"""

from dataclasses import dataclass

from loguru import logger

from photomeasure.core.geometry import Point, Size, ViewTransform


def ease_out_cubic(t: float) -> float:
    return 1.0 - (1.0 - t) ** 3


def clamp_transform(
    transform: ViewTransform,
    viewport: Size,
    image: Size,
    min_scale: float = 1.0,
    max_scale: float = 10.0,
) -> ViewTransform:
    """Clamp scale into range and keep the photo covering the viewport.

    Per axis: if the scaled photo is no larger than the viewport it is
    centred, otherwise its translation is limited so no gap opens on
    either side.
    """
    scale = min(max(transform.scale, min_scale), max_scale)

    def clamp_axis(t: float, viewport_len: float, image_len: float) -> float:
        scaled = image_len * scale
        if scaled <= viewport_len:
            return (viewport_len - scaled) / 2.0
        return min(max(t, viewport_len - scaled), 0.0)

    return ViewTransform(
        scale,
        clamp_axis(transform.tx, viewport.width, image.width),
        clamp_axis(transform.ty, viewport.height, image.height),
    )


@dataclass(frozen=True)
class PinchAnchor:
    """Everything a pinch update is computed from."""

    start_transform: ViewTransform
    start_scale: float
    pinned_scene: Point
    pointer_count: int


@dataclass(frozen=True)
class TransformAnimation:
    """Time-parameterized move between two transforms.

    Scale and translation share one eased parameter, so a scene point
    that is anchored at both ends stays anchored in between.
    """

    start: ViewTransform
    end: ViewTransform
    duration: float  # seconds

    def progress(self, elapsed: float) -> float:
        if self.duration <= 0:
            return 1.0
        return ease_out_cubic(min(max(elapsed / self.duration, 0.0), 1.0))

    def at(self, elapsed: float) -> ViewTransform:
        if self.finished(elapsed):
            return self.end
        return self.start.lerp(self.end, self.progress(elapsed))

    def finished(self, elapsed: float) -> bool:
        return elapsed >= self.duration


class TransformManager:
    """Owns the current view transform of one photo."""

    def __init__(
        self,
        image_size: Size,
        viewport_size: Size | None = None,
        min_scale: float = 1.0,
        max_scale: float = 10.0,
        double_tap_scale: float = 2.5,
        double_tap_threshold: float = 2.0,
        animation_seconds: float = 0.18,
        pinch_extra_pan: bool = False,
    ):
        self._image = Size.of(image_size)
        self._viewport = Size.of(viewport_size) if viewport_size is not None else self._image
        self.min_scale = min_scale
        self.max_scale = max_scale
        self.double_tap_scale = double_tap_scale
        self.double_tap_threshold = double_tap_threshold
        self.animation_seconds = animation_seconds
        self.pinch_extra_pan = pinch_extra_pan

        self._transform = self.clamped(ViewTransform.identity())
        self._pinch: PinchAnchor | None = None

    @property
    def transform(self) -> ViewTransform:
        return self._transform

    @property
    def scale(self) -> float:
        return self._transform.scale

    @property
    def image_size(self) -> Size:
        return self._image

    @property
    def viewport_size(self) -> Size:
        return self._viewport

    @property
    def pinch(self) -> PinchAnchor | None:
        return self._pinch

    def clamped(self, transform: ViewTransform) -> ViewTransform:
        return clamp_transform(transform, self._viewport, self._image, self.min_scale, self.max_scale)

    def commit(self, transform: ViewTransform) -> ViewTransform:
        """Replace the current transform with its clamped form."""
        self._transform = self.clamped(transform)
        return self._transform

    def set_provisional(self, transform: ViewTransform):
        """Show an unclamped transform, e.g. an animation frame."""
        self._transform = transform

    # --- coordinate mapping ---

    def scene_to_viewport(self, p: Point) -> Point:
        return self._transform.apply(p)

    def viewport_to_scene(self, p: Point) -> Point:
        return self._transform.invert_point(p)

    # --- pinch ---

    def begin_pinch(self, focal: Point, pointer_count: int = 2) -> PinchAnchor:
        if pointer_count < 2:
            raise ValueError(f"A pinch needs at least two pointers, got {pointer_count}")
        self._pinch = PinchAnchor(
            start_transform=self._transform,
            start_scale=self._transform.scale,
            pinned_scene=self.viewport_to_scene(focal),
            pointer_count=pointer_count,
        )
        logger.debug(f"Pinch started at scale {self._pinch.start_scale:.3f}")
        return self._pinch

    def update_pinch(
        self, focal: Point, scale_ratio: float, focal_delta: Point | None = None
    ) -> ViewTransform:
        anchor = self._pinch
        if anchor is None:
            return self._transform

        desired = min(max(anchor.start_scale * scale_ratio, self.min_scale), self.max_scale)
        transform = ViewTransform.anchored(anchor.pinned_scene, focal, desired)

        if self.pinch_extra_pan and focal_delta is not None and desired > self.min_scale:
            transform = transform.compose(ViewTransform.translation(focal_delta.x, focal_delta.y))

        self._transform = transform
        return transform

    def end_pinch(self) -> ViewTransform:
        self._pinch = None
        committed = self.commit(self._transform)
        logger.debug(f"Pinch committed at scale {committed.scale:.3f}")
        return committed

    # --- animated zoom ---

    def animate_to(self, target: ViewTransform, duration: float | None = None) -> TransformAnimation:
        if duration is None:
            duration = self.animation_seconds
        return TransformAnimation(self._transform, target, duration)

    def double_tap_target(self, viewport_point: Point) -> ViewTransform:
        """Toggle zoom around the tapped point, clamped."""
        if self.scale < self.double_tap_threshold:
            target_scale = self.double_tap_scale
        else:
            target_scale = self.min_scale
        scene = self.viewport_to_scene(viewport_point)
        return self.clamped(ViewTransform.anchored(scene, viewport_point, target_scale))

    def reset_zoom(self) -> ViewTransform:
        self._pinch = None
        return self.commit(ViewTransform.identity())

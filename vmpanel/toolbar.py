"""Geometry and animation of the toolbar that slides in over a fullscreen view."""

from __future__ import annotations

import enum
import logging
from typing import Optional

log = logging.getLogger(__name__)

ACTION_ICON_SIZE = 22
TOOLBAR_MARGIN = 2
TOOLBAR_OPACITY = 0.8
VISIBLE_PIXELS_WHEN_HIDDEN = 6
AUTO_HIDE_TIMEOUT = 500
INITIAL_AUTO_HIDE_TIMEOUT = 2000
ANIMATION_INTERVAL = 20

Point = tuple[int, int]


class Side(enum.IntEnum):
    LEFT = 0
    TOP = 1
    RIGHT = 2
    BOTTOM = 3


class AnimState(enum.Enum):
    HIDING = "hiding"
    SHOWING = "showing"
    STILL = "still"


def _tdiv(a: int, b: int) -> int:
    """Integer division rounding toward zero."""
    quotient = abs(a) // abs(b)
    return quotient if (a >= 0) == (b >= 0) else -quotient


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def nearest_side(x: float, y: float, width: float, height: float) -> Optional[Side]:
    """The side of a ``width`` x ``height`` area nearest to ``(x, y)``.

    Points in the central region give None.
    """
    nx = x / width
    ny = y / height
    if 0.3 < nx < 0.7 and 0.3 < ny < 0.7:
        return None
    left_or_top = nx < 1.0 - ny
    left_or_bottom = nx < ny
    if left_or_top:
        return Side.LEFT if left_or_bottom else Side.TOP
    return Side.BOTTOM if left_or_bottom else Side.RIGHT


def fit_splash(width: int, height: int, hint_width: int, hint_height: int) -> Point:
    """Size for a splash of natural size ``hint_*`` in a ``width`` x ``height`` area,
    keeping its aspect ratio."""
    if hint_width <= 0 or hint_height <= 0:
        raise ValueError("the splash size hint must be positive")
    aspect = hint_width / hint_height
    new_width = int(height * aspect)
    new_height = int(width / aspect)
    if new_width <= width and new_height > height:
        return new_width, height
    return width, new_height


class FloatingToolBar:
    """A toolbar of fixed size docked to one side of an anchor area.

    The widget itself is not drawn here; this class tracks where it is, where it
    is heading, and which timers would be running. ``step`` advances the slide
    animation by one tick.
    """

    def __init__(self, anchor_width: int, anchor_height: int, width: int, height: int) -> None:
        self.anchor_width = anchor_width
        self.anchor_height = anchor_height
        self.width = width
        self.height = height
        self.side = Side.LEFT
        self.sticky = False
        self.visible = False
        self.shown = False
        self.under_mouse = False
        self.fullscreen = True
        self.queued_show = False
        self.to_delete = False
        self.destroyed = False
        self.anim_state = AnimState.STILL
        self.animating = False
        self.auto_hide_timeout: Optional[int] = None
        self.opacity = TOOLBAR_OPACITY
        self.current_position: Point = (0, 0)
        self.end_position: Point = (0, 0)

    def inner_point(self) -> Point:
        """Position of the toolbar when fully shown."""
        aw, ah, w, h = self.anchor_width, self.anchor_height, self.width, self.height
        if self.side == Side.LEFT:
            return 0, _tdiv(ah - h, 2)
        if self.side == Side.TOP:
            return _tdiv(aw - w, 2), 0
        if self.side == Side.RIGHT:
            return aw - w + TOOLBAR_MARGIN, _tdiv(ah - h, 2)
        return _tdiv(aw - w, 2), ah - h + TOOLBAR_MARGIN

    def outer_point(self) -> Point:
        """Position from which the toolbar slides in."""
        aw, ah, w, h = self.anchor_width, self.anchor_height, self.width, self.height
        if self.side == Side.LEFT:
            return -w, _tdiv(ah - h, 2)
        if self.side == Side.TOP:
            return _tdiv(aw - w, 2), -h
        if self.side == Side.RIGHT:
            return aw + TOOLBAR_MARGIN, _tdiv(ah - h, 2)
        return _tdiv(aw - w, 2), ah + TOOLBAR_MARGIN

    def _reposition(self) -> None:
        if not self.visible:
            self.current_position = self.outer_point()
            self.end_position = self.inner_point()
        else:
            self.current_position = self.inner_point()
            self.end_position = self.outer_point()

    def set_side(self, side: Side) -> None:
        self.side = Side(side)
        if self.shown:
            self._reposition()

    def set_sticky(self, sticky: bool) -> None:
        """A sticky toolbar never hides by itself."""
        self.sticky = sticky
        if sticky:
            self.auto_hide_timeout = None

    def show_and_animate(self) -> None:
        """Start sliding in; queued until the anchor is fullscreen."""
        if not self.fullscreen:
            self.queued_show = True
            return
        if self.anim_state == AnimState.SHOWING:
            return
        self.anim_state = AnimState.SHOWING
        self.shown = True
        self._reposition()
        self.animating = True
        if not self.sticky:
            self.auto_hide_timeout = INITIAL_AUTO_HIDE_TIMEOUT

    def hide(self) -> None:
        """Slide out, leaving a few pixels visible; ignored under the mouse."""
        if self.under_mouse or not self.visible:
            return
        offsets = {
            Side.LEFT: (VISIBLE_PIXELS_WHEN_HIDDEN, 0),
            Side.RIGHT: (-VISIBLE_PIXELS_WHEN_HIDDEN, 0),
            Side.TOP: (0, VISIBLE_PIXELS_WHEN_HIDDEN),
            Side.BOTTOM: (0, -VISIBLE_PIXELS_WHEN_HIDDEN),
        }
        dx, dy = offsets[self.side]
        ox, oy = self.outer_point()
        self.anim_state = AnimState.HIDING
        self.end_position = (ox + dx, oy + dy)
        self.animating = True

    def hide_and_destroy(self) -> None:
        """Slide out completely and mark the toolbar destroyed on arrival."""
        if self.anim_state == AnimState.HIDING:
            return
        self.anim_state = AnimState.HIDING
        self.to_delete = True
        self.end_position = self.outer_point()
        self.animating = True

    def step(self) -> Point:
        """Advance the animation by one tick and return the new position."""
        if not self.animating:
            return self.current_position
        cx, cy = self.current_position
        ex, ey = self.end_position
        dx = ex - cx
        dy = ey - cy
        dx = _tdiv(dx, 6) + _clamp(dx, -1, 1)
        dy = _tdiv(dy, 6) + _clamp(dy, -1, 1)
        self.current_position = (cx + dx, cy + dy)

        if self.current_position == self.end_position:
            self.animating = False
            if self.anim_state == AnimState.HIDING:
                self.visible = False
                self.anim_state = AnimState.STILL
                if self.to_delete:
                    self.destroyed = True
            elif self.anim_state == AnimState.SHOWING:
                self.visible = True
                self.anim_state = AnimState.STILL
            else:
                log.warning("animation finished in an illegal state")
        return self.current_position

    def drag_to(self, x: float, y: float) -> Optional[Side]:
        """Drag the toolbar to ``(x, y)`` of the anchor; return the new side if it moved."""
        if not self.visible:
            self.show_and_animate()
            return None
        side = nearest_side(x, y, self.anchor_width, self.anchor_height)
        if side is None or side == self.side:
            return None
        self.side = side
        self._reposition()
        return side

    def adjust_opacity(self, wheel_delta: int) -> float:
        """Change opacity by a mouse wheel movement and return the new opacity."""
        diff = wheel_delta / 100.0 / 15.0
        if (self.opacity <= 1 and diff > 0) or (self.opacity >= 0 and diff < 0):
            self.opacity += diff
        return self.opacity
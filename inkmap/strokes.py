"""In-progress stroke capture."""

from typing import List, Optional, Tuple

from inkmap.scene import Point, Stroke, StrokeRegion


class StrokeRecorder:
    """Accumulates one polyline while a write or draw gesture is active.

    Callers convert points to node-relative coordinates before appending;
    the recorder itself is coordinate-agnostic.
    """

    def __init__(self):
        self._points: List[Point] = []
        self._region: Optional[StrokeRegion] = None
        self._active = False

    @property
    def active(self) -> bool:
        return self._active

    @property
    def region(self) -> Optional[StrokeRegion]:
        return self._region

    @property
    def points(self) -> Tuple[Point, ...]:
        return tuple(self._points)

    def begin(self, region: Optional[StrokeRegion] = None,
              first_point: Optional[Point] = None):
        """Start a fresh stroke, discarding anything in progress."""
        self._points = [first_point] if first_point is not None else []
        self._region = region
        self._active = True

    def append(self, point: Point):
        if self._active:
            self._points.append(point)

    def commit(self) -> Stroke:
        """Return the captured stroke and reset."""
        stroke = tuple(self._points)
        self.discard()
        return stroke

    def discard(self):
        self._points = []
        self._region = None
        self._active = False

# Role: Map focus controller. Pure functions turn points/bounds into a FocusRequest (center + zoom);
# MapFocusController publishes the latest request for whatever renders the map. It never moves a map itself.

from __future__ import annotations

from typing import Callable, List, Optional, Sequence, Tuple

from tripreplay.models.overlay import FocusRequest
from tripreplay.utils.geo import Bounds, bounds_center, bounds_span, combine_bounds, point_bounds, validate_lat_lng

SINGLE_POINT_ZOOM = 15

# Evaluated top-down, first match wins: span (degrees) strictly greater than threshold -> zoom.
ZOOM_STEPS: Tuple[Tuple[float, int], ...] = (
    (10.0, 6),
    (5.0, 7),
    (2.0, 8),
    (1.0, 9),
    (0.5, 10),
    (0.2, 11),
    (0.1, 12),
    (0.05, 13),
    (0.02, 14),
)

DEFAULT_CENTER = [37.7749, -122.4194]
DEFAULT_ZOOM = 12

FocusListener = Callable[[FocusRequest], None]


def zoom_for_span(span: float) -> int:
    for threshold, zoom in ZOOM_STEPS:
        if span > threshold:
            return zoom
    return SINGLE_POINT_ZOOM


def focus_for_point(coords: Sequence[float], padding: int = 20, focus_id: Optional[str] = None) -> FocusRequest:
    return FocusRequest(center=validate_lat_lng(coords), zoom=SINGLE_POINT_ZOOM, padding=padding, focus_id=focus_id)


def focus_for_bounds(bounds: Bounds, padding: int = 20, focus_id: Optional[str] = None) -> FocusRequest:
    lat_span, lng_span = bounds_span(bounds)
    return FocusRequest(
        center=bounds_center(bounds),
        zoom=zoom_for_span(max(lat_span, lng_span)),
        padding=padding,
        focus_id=focus_id,
    )


def focus_for_geometries(
    bounds_list: Sequence[Bounds] = (),
    points: Sequence[Sequence[float]] = (),
    padding: int = 20,
) -> Optional[FocusRequest]:
    """
    Combine any number of bounds boxes and points into one request.
    A lone point keeps the close single-point zoom; everything else goes through the span table.
    """
    if not bounds_list and len(points) == 1:
        return focus_for_point(points[0], padding)

    boxes: List[Bounds] = list(bounds_list) + [point_bounds(p) for p in points]
    combined = combine_bounds(boxes)
    if combined is None:
        return None
    return focus_for_bounds(combined, padding)


class MapFocusController:
    def __init__(self) -> None:
        self._current = FocusRequest(center=list(DEFAULT_CENTER), zoom=DEFAULT_ZOOM, should_focus=False)
        self._listeners: List[FocusListener] = []
        self.version = 0

    @property
    def current(self) -> FocusRequest:
        return self._current

    def subscribe(self, listener: FocusListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def request(self, focus: Optional[FocusRequest]) -> None:
        # Key line: publishing an identical request is a no-op, so replaying a step never creeps the zoom.
        if focus is None or focus == self._current:
            return
        self._current = focus
        self.version += 1
        for listener in list(self._listeners):
            listener(focus)

    def focus_on_point(self, coords: Sequence[float], zoom: Optional[int] = None, focus_id: Optional[str] = None) -> None:
        request = focus_for_point(coords, focus_id=focus_id)
        if zoom is not None:
            request = request.model_copy(update={"zoom": zoom})
        self.request(request)

    def focus_on_bounds(self, bounds: Bounds, padding: int = 20, focus_id: Optional[str] = None) -> None:
        self.request(focus_for_bounds(bounds, padding, focus_id))

    def reset(self) -> None:
        # Role: the renderer consumed the request; keep center/zoom, clear the trigger.
        if not self._current.should_focus:
            return
        self._current = self._current.model_copy(update={"should_focus": False, "focus_id": None})
        self.version += 1

from __future__ import annotations

from dataclasses import dataclass, field

MIN_ZOOM = 0.1
MAX_ZOOM = 3.0


def _clamp(zoom: float) -> float:
    return max(MIN_ZOOM, min(MAX_ZOOM, zoom))


@dataclass
class Viewport:
    """Pan/zoom state of the spatial view.  Changing it never re-runs layout."""

    zoom: float = 1.0
    pan_x: float = 0.0
    pan_y: float = 0.0
    _drag_origin: tuple[float, float] | None = field(default=None, init=False, repr=False)

    def wheel(self, delta_y: float) -> float:
        self.zoom = _clamp(self.zoom * (0.9 if delta_y > 0 else 1.1))
        return self.zoom

    def zoom_in(self) -> float:
        self.zoom = _clamp(self.zoom * 1.2)
        return self.zoom

    def zoom_out(self) -> float:
        self.zoom = _clamp(self.zoom * 0.8)
        return self.zoom

    def start_drag(self, x: float, y: float) -> None:
        self._drag_origin = (x - self.pan_x, y - self.pan_y)

    def drag(self, x: float, y: float) -> None:
        if self._drag_origin is None:
            return
        self.pan_x = x - self._drag_origin[0]
        self.pan_y = y - self._drag_origin[1]

    def end_drag(self) -> None:
        self._drag_origin = None

    def reset(self) -> None:
        self.zoom = 1.0
        self.pan_x = 0.0
        self.pan_y = 0.0
        self._drag_origin = None

    @property
    def transform(self) -> str:
        """SVG transform attribute for the graph group."""
        return f"translate({self.pan_x:g}, {self.pan_y:g}) scale({self.zoom:g})"

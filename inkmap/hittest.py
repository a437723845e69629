"""Geometric hit-testing of node sub-regions."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from inkmap.config import EditorSettings
from inkmap.scene import Node, Point, SceneGraph, StrokeRegion

Rect = Tuple[float, float, float, float]  # x, y, w, h


class HitRegion(Enum):
    """Where a point falls relative to a node."""
    PENCIL = "pencil"
    CLEAR = "clear"
    TITLE = "title"
    CONTENT = "content"
    NONE = "none"


@dataclass(frozen=True)
class Hit:
    """Result of resolving a surface point against the scene."""
    node: Optional[Node]
    region: HitRegion

    @property
    def empty(self) -> bool:
        return self.node is None

    @property
    def on_icon(self) -> bool:
        return self.region in (HitRegion.PENCIL, HitRegion.CLEAR)


def _in_rect(px: float, py: float, rect: Rect) -> bool:
    x, y, w, h = rect
    return x <= px <= x + w and y <= py <= y + h


class HitTester:
    """Stateless classifier of points against node geometry."""

    def __init__(self, settings: Optional[EditorSettings] = None):
        self.settings = settings or EditorSettings()

    def pencil_rect(self, node) -> Rect:
        """Writing-mode toggle, anchored top-right."""
        size = self.settings.icon_size
        inset = self.settings.icon_inset
        return (node.x + node.width - size - inset, node.y + inset, size, size)

    def clear_rect(self, node) -> Rect:
        """Clear-strokes icon, anchored bottom-right."""
        size = self.settings.icon_size
        inset = self.settings.icon_inset
        return (node.x + node.width - size - inset,
                node.y + node.height - size - inset, size, size)

    def classify(self, node, point: Point) -> HitRegion:
        px, py = point
        if not node.contains_point(px, py):
            return HitRegion.NONE
        if _in_rect(px, py, self.pencil_rect(node)):
            return HitRegion.PENCIL
        if _in_rect(px, py, self.clear_rect(node)):
            return HitRegion.CLEAR
        if py - node.y < self.settings.title_height:
            return HitRegion.TITLE
        return HitRegion.CONTENT

    def write_region(self, node, point: Point) -> StrokeRegion:
        """Stroke collection a write gesture starting at point targets."""
        limit = self.settings.title_height + self.settings.title_tolerance
        if point[1] - node.y < limit:
            return StrokeRegion.TITLE
        return StrokeRegion.CONTENT

    def resolve(self, scene: SceneGraph, point: Point,
                exclude: Optional[int] = None) -> Hit:
        node = scene.node_at(point, exclude=exclude)
        if node is None:
            return Hit(None, HitRegion.NONE)
        return Hit(node, self.classify(node, point))

"""Scene graph for InkMap: nodes, directed edges and handwritten strokes."""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, List, Tuple, Callable

from inkmap.config import EditorSettings

logger = logging.getLogger(__name__)

Point = Tuple[float, float]
# Points relative to the owning node's origin at capture time
Stroke = Tuple[Point, ...]


class StrokeRegion(Enum):
    """Which stroke collection of a node a stroke belongs to."""
    TITLE = "title"
    CONTENT = "content"


@dataclass
class Node:
    """A positioned rectangle holding a title and two stroke collections."""
    id: int
    x: float
    y: float
    width: float
    height: float
    title: str = ""
    visible: bool = True
    writing: bool = False
    title_strokes: List[Stroke] = field(default_factory=list)
    content_strokes: List[Stroke] = field(default_factory=list)

    @property
    def position(self) -> Point:
        return (self.x, self.y)

    def contains_point(self, px: float, py: float) -> bool:
        """Check if a point is inside this node (edges inclusive)."""
        return (self.x <= px <= self.x + self.width and
                self.y <= py <= self.y + self.height)

    def to_relative(self, point: Point) -> Point:
        return (point[0] - self.x, point[1] - self.y)

    def strokes_for(self, region: StrokeRegion) -> List[Stroke]:
        if region is StrokeRegion.TITLE:
            return self.title_strokes
        return self.content_strokes


@dataclass(frozen=True)
class Edge:
    """A directed link between two node ids."""
    source_id: int
    target_id: int


@dataclass(frozen=True)
class NodeSnapshot:
    """Read-only copy of a node for painting."""
    id: int
    x: float
    y: float
    width: float
    height: float
    title: str
    visible: bool
    writing: bool
    title_strokes: Tuple[Stroke, ...]
    content_strokes: Tuple[Stroke, ...]


@dataclass(frozen=True)
class SceneSnapshot:
    """Read-only view of the whole graph, bottom-most node first."""
    nodes: Tuple[NodeSnapshot, ...]
    edges: Tuple[Edge, ...]

    def get_node(self, node_id: int) -> Optional[NodeSnapshot]:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None


def absolute_points(node, stroke: Stroke) -> List[Point]:
    """Translate a node-relative stroke by the node's current position."""
    return [(node.x + px, node.y + py) for px, py in stroke]


class SceneGraph:
    """Owns the nodes and directed edges of one editing session.

    Nodes are kept in creation order; the last node is drawn on top and wins
    hit-tests. Edges and callers refer to nodes by id only.
    """

    def __init__(self, settings: Optional[EditorSettings] = None):
        self.settings = settings or EditorSettings()
        self._nodes: List[Node] = []
        self._edges: List[Edge] = []
        self._next_id = 1

        # Callbacks
        self.on_changed: Optional[Callable[[], None]] = None

    @property
    def nodes(self) -> Tuple[Node, ...]:
        return tuple(self._nodes)

    @property
    def edges(self) -> Tuple[Edge, ...]:
        return tuple(self._edges)

    def __len__(self) -> int:
        return len(self._nodes)

    def get_node(self, node_id: Optional[int]) -> Optional[Node]:
        """Resolve a node id; None for absent ids."""
        if node_id is None:
            return None
        for node in self._nodes:
            if node.id == node_id:
                return node
        return None

    def edges_for(self, node_id: int) -> List[Edge]:
        """Edges with the given node as source or target."""
        return [e for e in self._edges
                if e.source_id == node_id or e.target_id == node_id]

    # ==================== Mutations ====================

    def create_node(self, position: Point, title: str = "") -> Node:
        """Create a node with default size, empty strokes, visible, not writing."""
        node = Node(
            id=self._next_id,
            x=float(position[0]),
            y=float(position[1]),
            width=self.settings.node_width,
            height=self.settings.node_height,
            title=title,
        )
        self._next_id += 1
        self._nodes.append(node)
        logger.debug("Created node %d at (%.1f, %.1f)", node.id, node.x, node.y)
        self._notify_changed()
        return node

    def delete_node(self, node_id: int) -> bool:
        """Delete a node and every edge touching it."""
        node = self.get_node(node_id)
        if node is None:
            logger.debug("Delete of unknown node %s ignored", node_id)
            return False

        self._nodes.remove(node)
        before = len(self._edges)
        self._edges = [e for e in self._edges
                       if e.source_id != node_id and e.target_id != node_id]
        logger.debug("Deleted node %d and %d edge(s)",
                     node_id, before - len(self._edges))
        self._notify_changed()
        return True

    def create_edge(self, source_id: int, target_id: int) -> Optional[Edge]:
        """Append a directed edge; self-loops and unknown ids are rejected."""
        if source_id == target_id:
            logger.debug("Self-loop on node %d rejected", source_id)
            return None
        if self.get_node(source_id) is None or self.get_node(target_id) is None:
            logger.debug("Edge %s -> %s rejected: unknown node", source_id, target_id)
            return None

        edge = Edge(source_id, target_id)
        self._edges.append(edge)
        logger.debug("Created edge %d -> %d", source_id, target_id)
        self._notify_changed()
        return edge

    def move_node(self, node_id: int, position: Point) -> None:
        node = self.get_node(node_id)
        if node is None:
            return
        node.x = float(position[0])
        node.y = float(position[1])
        self._notify_changed()

    def set_visible(self, node_id: int, visible: bool) -> None:
        node = self.get_node(node_id)
        if node is None:
            return
        node.visible = visible
        self._notify_changed()

    def set_writing(self, node_id: int, writing: bool) -> None:
        node = self.get_node(node_id)
        if node is None:
            return
        node.writing = writing
        self._notify_changed()

    def append_stroke(self, node_id: int, region: StrokeRegion, stroke: Stroke) -> None:
        """Append one committed stroke to the node's title or content strokes."""
        node = self.get_node(node_id)
        if node is None or not stroke:
            return
        node.strokes_for(region).append(tuple(stroke))
        logger.debug("Appended %d-point %s stroke to node %d",
                     len(stroke), region.value, node_id)
        self._notify_changed()

    def clear_strokes(self, node_id: int) -> None:
        node = self.get_node(node_id)
        if node is None:
            return
        node.title_strokes = []
        node.content_strokes = []
        self._notify_changed()

    # ==================== Queries ====================

    def node_at(self, point: Point, exclude: Optional[int] = None) -> Optional[Node]:
        """Topmost visible node containing the point."""
        px, py = point
        for node in reversed(self._nodes):
            if not node.visible or node.id == exclude:
                continue
            if node.contains_point(px, py):
                return node
        return None

    def snapshot(self) -> SceneSnapshot:
        """Immutable copy of the current graph for the renderer."""
        return SceneSnapshot(
            nodes=tuple(
                NodeSnapshot(
                    id=n.id, x=n.x, y=n.y, width=n.width, height=n.height,
                    title=n.title, visible=n.visible, writing=n.writing,
                    title_strokes=tuple(n.title_strokes),
                    content_strokes=tuple(n.content_strokes),
                )
                for n in self._nodes
            ),
            edges=tuple(self._edges),
        )

    def _notify_changed(self):
        if self.on_changed:
            self.on_changed()

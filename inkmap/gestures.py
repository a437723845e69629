"""Gesture classification for the InkMap drawing surface.

A single pointer-down/move/up triple is resolved, without lookahead, into one
of: toggle writing mode, clear strokes, write a stroke, draw a new node,
select, drag-to-move or drag-to-connect. A second quick tap on the same node
toggles its visibility.

Per-gesture state lives in one ``InteractionState`` value that is replaced on
every pointer-down and reset on every pointer-up. The selection and the last
tap outlive a gesture: the selection feeds keyboard delete, the tap record
feeds double-tap detection. Both refer to nodes by id only.
"""

import logging
import math
import time
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Callable, Tuple

from inkmap.config import EditorSettings
from inkmap.hittest import HitTester, HitRegion
from inkmap.scene import Node, Point, SceneGraph, SceneSnapshot, StrokeRegion
from inkmap.strokes import StrokeRecorder

logger = logging.getLogger(__name__)

DELETE_KEYS = frozenset({"Delete", "BackSpace", "KP_Delete"})


class GestureState(Enum):
    """Interaction states of the drawing surface."""
    IDLE = "idle"
    DRAWING_NEW_NODE = "drawing_new_node"
    WRITING_STROKE = "writing_stroke"
    MAYBE_DRAGGING = "maybe_dragging"
    DRAGGING = "dragging"


@dataclass
class InteractionState:
    """Transient state of the gesture in progress."""
    state: GestureState = GestureState.IDLE
    node_id: Optional[int] = None
    start: Point = (0.0, 0.0)
    pointer: Point = (0.0, 0.0)
    offset: Point = (0.0, 0.0)  # pointer minus node origin at pointer-down
    drop_target_id: Optional[int] = None


@dataclass(frozen=True)
class TapRecord:
    node_id: int
    time: float


@dataclass(frozen=True)
class VisualState:
    """What the renderer needs beyond the scene snapshot."""
    state: GestureState
    stroke: Tuple[Point, ...]  # absolute surface coordinates
    stroke_region: Optional[StrokeRegion]
    dragged_id: Optional[int]
    drop_target_id: Optional[int]
    selected_id: Optional[int]


class GestureStateMachine:
    """Turns raw pointer and key events into scene graph mutations."""

    def __init__(self, scene: SceneGraph,
                 settings: Optional[EditorSettings] = None,
                 clock: Callable[[], float] = time.monotonic,
                 hit_tester: Optional[HitTester] = None):
        self.scene = scene
        self.settings = settings or scene.settings
        self.hit_tester = hit_tester or HitTester(self.settings)
        self.recorder = StrokeRecorder()
        self.interaction = InteractionState()
        self.selected_id: Optional[int] = None
        self._last_tap: Optional[TapRecord] = None
        self._clock = clock

        self._move_handlers = {
            GestureState.IDLE: None,
            GestureState.DRAWING_NEW_NODE: self._move_drawing,
            GestureState.WRITING_STROKE: self._move_writing,
            GestureState.MAYBE_DRAGGING: self._move_maybe_dragging,
            GestureState.DRAGGING: self._move_dragging,
        }
        self._up_handlers = {
            GestureState.IDLE: self._up_idle,
            GestureState.DRAWING_NEW_NODE: self._up_drawing,
            GestureState.WRITING_STROKE: self._up_writing,
            GestureState.MAYBE_DRAGGING: self._up_maybe_dragging,
            GestureState.DRAGGING: self._up_dragging,
        }

        # Callbacks
        self.on_changed: Optional[Callable[[], None]] = None
        self.on_status: Optional[Callable[[str], None]] = None
        self.on_selection_changed: Optional[Callable[[Optional[int]], None]] = None

    @property
    def state(self) -> GestureState:
        return self.interaction.state

    @property
    def selected_node(self) -> Optional[Node]:
        return self.scene.get_node(self.selected_id)

    # ==================== Pointer events ====================

    def pointer_down(self, x: float, y: float):
        """Classify a new gesture from its initial hit-test."""
        if self.interaction.state is not GestureState.IDLE:
            # The running gesture owns the input until its pointer-up
            logger.debug("Pointer-down during %s ignored", self.interaction.state.value)
            return

        point = (float(x), float(y))
        self.interaction = InteractionState(start=point, pointer=point)
        hit = self.hit_tester.resolve(self.scene, point)

        if hit.empty:
            self._begin_new_node(point)
        elif hit.region is HitRegion.PENCIL:
            self._toggle_writing(hit.node)
        elif hit.region is HitRegion.CLEAR:
            self._clear_strokes(hit.node)
        elif hit.node.writing:
            self._begin_writing(hit.node, point)
        else:
            self._begin_maybe_drag(hit.node, point)

        self._notify_changed()

    def pointer_move(self, x: float, y: float):
        handler = self._move_handlers[self.interaction.state]
        if handler is None:
            return
        point = (float(x), float(y))
        self.interaction.pointer = point
        handler(point)
        self._notify_changed()

    def pointer_up(self, x: float, y: float):
        """Finish the gesture and return to idle."""
        point = (float(x), float(y))
        self.interaction.pointer = point
        was_tap = self._up_handlers[self.interaction.state](point)
        if not was_tap:
            self._last_tap = None

        self.interaction = InteractionState()
        self.recorder.discard()
        self._notify_changed()

    # ==================== Keyboard ====================

    def key_down(self, key: str) -> bool:
        """Handle a key press; returns True when the key was consumed."""
        if key not in DELETE_KEYS:
            return False

        node_id = self.selected_id
        if node_id is None:
            logger.debug("Delete with no selection ignored")
            return True

        self.scene.delete_node(node_id)
        self._select(None)
        if self._last_tap and self._last_tap.node_id == node_id:
            self._last_tap = None
        self._set_status("Node deleted")
        self._notify_changed()
        return True

    # ==================== Pointer-down branches ====================

    def _toggle_writing(self, node: Node):
        writing = not node.writing
        self.scene.set_writing(node.id, writing)
        self._set_status("Writing..." if writing else "Handwriting OFF")

    def _clear_strokes(self, node: Node):
        self.scene.clear_strokes(node.id)
        self._set_status("Strokes cleared")

    def _begin_writing(self, node: Node, point: Point):
        region = self.hit_tester.write_region(node, point)
        self.interaction.state = GestureState.WRITING_STROKE
        self.interaction.node_id = node.id
        self.recorder.begin(region, node.to_relative(point))
        self._set_status("Writing title" if region is StrokeRegion.TITLE
                         else "Writing details")

    def _begin_maybe_drag(self, node: Node, point: Point):
        self.interaction.state = GestureState.MAYBE_DRAGGING
        self.interaction.node_id = node.id
        self.interaction.offset = node.to_relative(point)
        self._select(node.id)

    def _begin_new_node(self, point: Point):
        self.interaction.state = GestureState.DRAWING_NEW_NODE
        self.recorder.begin(None, point)
        self._select(None)
        self._set_status("Drawing...")

    # ==================== Pointer-move branches ====================

    def _move_drawing(self, point: Point):
        self.recorder.append(point)

    def _move_writing(self, point: Point):
        node = self.scene.get_node(self.interaction.node_id)
        if node is None:
            return
        self.recorder.append(node.to_relative(point))

    def _move_maybe_dragging(self, point: Point):
        sx, sy = self.interaction.start
        distance = math.hypot(point[0] - sx, point[1] - sy)
        if distance <= self.settings.drag_threshold:
            return  # Below threshold, still a click
        logger.debug("Drag threshold exceeded for node %s", self.interaction.node_id)
        self.interaction.state = GestureState.DRAGGING
        self._move_dragging(point)

    def _move_dragging(self, point: Point):
        node_id = self.interaction.node_id
        if self.scene.get_node(node_id) is None:
            return
        ox, oy = self.interaction.offset
        self.scene.move_node(node_id, (point[0] - ox, point[1] - oy))
        target = self.scene.node_at(point, exclude=node_id)
        self.interaction.drop_target_id = target.id if target else None

    # ==================== Pointer-up branches ====================
    # Each returns True when the gesture counts as a tap.

    def _up_idle(self, point: Point) -> bool:
        return False

    def _up_drawing(self, point: Point) -> bool:
        self.scene.create_node(point)
        self._set_status("Node created")
        return False

    def _up_writing(self, point: Point) -> bool:
        region = self.recorder.region
        stroke = self.recorder.commit()
        self.scene.append_stroke(self.interaction.node_id, region, stroke)
        self._set_status("Handwriting saved")
        return False

    def _up_maybe_dragging(self, point: Point) -> bool:
        node_id = self.interaction.node_id
        node = self.scene.get_node(node_id)
        if node is None:
            return False
        # A tap must end on its node without exceeding the drag threshold
        sx, sy = self.interaction.start
        if math.hypot(point[0] - sx, point[1] - sy) > self.settings.drag_threshold:
            return False
        if not node.contains_point(*point):
            return False

        now = self._clock()
        tap = self._last_tap
        if (tap is not None and tap.node_id == node_id
                and now - tap.time < self.settings.double_tap_window):
            self.scene.set_visible(node_id, not node.visible)
            self._last_tap = None
            if self.selected_id == node_id:
                self._select(None)
            self._set_status("Node expanded" if node.visible else "Node collapsed")
            # The pair is consumed; the next tap starts a fresh one
            return True

        self._last_tap = TapRecord(node_id, now)
        return True

    def _up_dragging(self, point: Point) -> bool:
        node_id = self.interaction.node_id
        if self.scene.get_node(node_id) is None:
            return False
        self._move_dragging(point)

        hit = self.hit_tester.resolve(self.scene, point, exclude=node_id)
        if not hit.empty:
            self.scene.create_edge(node_id, hit.node.id)
            self._set_status("Nodes connected")
        elif self.settings.spawn_on_empty_drop:
            spawned = self.scene.create_node(point)
            self.scene.create_edge(node_id, spawned.id)
            self._set_status("Node created and connected")
        else:
            self._set_status("Node moved")
        return False

    # ==================== Renderer output ====================

    def snapshot(self) -> SceneSnapshot:
        return self.scene.snapshot()

    def visual_state(self) -> VisualState:
        """Transient visuals: in-progress stroke and connector preview."""
        interaction = self.interaction
        stroke: Tuple[Point, ...] = ()
        if interaction.state is GestureState.DRAWING_NEW_NODE:
            stroke = self.recorder.points
        elif interaction.state is GestureState.WRITING_STROKE:
            node = self.scene.get_node(interaction.node_id)
            if node is not None:
                stroke = tuple((node.x + px, node.y + py)
                               for px, py in self.recorder.points)

        dragging = interaction.state is GestureState.DRAGGING
        return VisualState(
            state=interaction.state,
            stroke=stroke,
            stroke_region=self.recorder.region,
            dragged_id=interaction.node_id if dragging else None,
            drop_target_id=interaction.drop_target_id if dragging else None,
            selected_id=self.selected_id,
        )

    # ==================== Helpers ====================

    def _select(self, node_id: Optional[int]):
        if node_id == self.selected_id:
            return
        self.selected_id = node_id
        if self.on_selection_changed:
            self.on_selection_changed(node_id)

    def _set_status(self, text: str):
        logger.debug("Status: %s", text)
        if self.on_status:
            self.on_status(text)

    def _notify_changed(self):
        if self.on_changed:
            self.on_changed()

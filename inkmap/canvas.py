"""Canvas widget: feeds pointer/key events to the gesture machine and paints."""

import logging
import math
from typing import Optional, Callable, Tuple

import gi

gi.require_version("Gtk", "4.0")
gi.require_version("Gdk", "4.0")
from gi.repository import Gtk, Gdk

import cairo

from inkmap.config import EditorSettings
from inkmap.gestures import GestureStateMachine, GestureState, VisualState
from inkmap.hittest import HitTester
from inkmap.scene import NodeSnapshot, SceneGraph, SceneSnapshot, StrokeRegion, absolute_points

logger = logging.getLogger(__name__)


class InkCanvas(Gtk.DrawingArea):
    """Drawing surface for handwritten nodes and connectors."""

    # Colors
    COLORS = {
        'bg_primary': (0.039, 0.039, 0.039),      # #0a0a0a
        'surface': (0.118, 0.118, 0.118),         # #1e1e1e
        'title_bar': (0.145, 0.145, 0.145),       # #252525
        'border_subtle': (0.333, 0.333, 0.333),   # #555555
        'border_active': (1.0, 0.176, 0.176),     # #ff2d2d
        'text_primary': (0.878, 0.878, 0.878),    # #e0e0e0
        'text_muted': (0.533, 0.533, 0.533),      # #888888
        'accent_primary': (1.0, 0.176, 0.176),    # #ff2d2d
        'accent_secondary': (0.8, 0.0, 0.0),      # #cc0000
        'success': (0.0, 1.0, 0.255),             # #00ff41
        'grid_dots': (0.12, 0.12, 0.12),
        'ink_title': (0.898, 0.224, 0.208),       # #e53935
        'ink_content': (0.729, 0.408, 0.784),     # #ba68c8
        'ink_draft': (0.8, 0.8, 0.8),
    }

    GRID_SIZE = 30
    ARROW_SIZE = 10

    def __init__(self, scene: SceneGraph, settings: Optional[EditorSettings] = None):
        super().__init__()

        self.settings = settings or scene.settings
        self.scene = scene
        self.hit_tester = HitTester(self.settings)
        self.machine = GestureStateMachine(scene, self.settings,
                                           hit_tester=self.hit_tester)
        self.machine.on_changed = self.queue_draw
        self.scene.on_changed = self.queue_draw
        self.machine.on_status = self._on_machine_status

        # Drag gesture origin; updates arrive as offsets from it
        self._drag_start_x = 0.0
        self._drag_start_y = 0.0

        # Callbacks
        self.on_status: Optional[Callable[[str], None]] = None

        # Setup widget
        self.set_draw_func(self._on_draw)
        self.set_focusable(True)
        self.set_can_focus(True)
        self.set_hexpand(True)
        self.set_vexpand(True)

        self._setup_event_controllers()

    def _setup_event_controllers(self):
        """Setup pointer and keyboard event controllers."""
        # GestureDrag keeps reporting after the pointer leaves the widget
        drag_ctrl = Gtk.GestureDrag()
        drag_ctrl.set_button(1)
        drag_ctrl.connect("drag-begin", self._on_drag_begin)
        drag_ctrl.connect("drag-update", self._on_drag_update)
        drag_ctrl.connect("drag-end", self._on_drag_end)
        self.add_controller(drag_ctrl)

        key_ctrl = Gtk.EventControllerKey()
        key_ctrl.connect("key-pressed", self._on_key_pressed)
        self.add_controller(key_ctrl)

    # ==================== Input ====================

    def _on_drag_begin(self, gesture, start_x, start_y):
        # Grab focus so we can receive keyboard events
        self.grab_focus()
        self._drag_start_x = start_x
        self._drag_start_y = start_y
        self.machine.pointer_down(start_x, start_y)

    def _on_drag_update(self, gesture, offset_x, offset_y):
        self.machine.pointer_move(self._drag_start_x + offset_x,
                                  self._drag_start_y + offset_y)

    def _on_drag_end(self, gesture, offset_x, offset_y):
        self.machine.pointer_up(self._drag_start_x + offset_x,
                                self._drag_start_y + offset_y)

    def _on_key_pressed(self, controller, keyval, keycode, state):
        """Handle keyboard input."""
        name = Gdk.keyval_name(keyval)
        if name is None:
            return False
        return self.machine.key_down(name)

    def _on_machine_status(self, text: str):
        if self.on_status:
            self.on_status(text)

    # ==================== Drawing ====================

    def _on_draw(self, area, cr, width, height):
        """Paint one frame from a snapshot; never mutates the scene."""
        snapshot = self.machine.snapshot()
        visual = self.machine.visual_state()

        cr.save()

        cr.set_source_rgb(*self.COLORS['bg_primary'])
        cr.paint()

        self._draw_grid(cr, width, height)

        # Connections first (behind nodes)
        self._draw_connections(cr, snapshot)

        for node in snapshot.nodes:
            if node.visible:
                self._draw_node(cr, node, visual)

        if visual.stroke:
            self._draw_active_stroke(cr, visual)

        cr.restore()

    def _draw_grid(self, cr, width: float, height: float):
        """Draw dot grid pattern."""
        cr.save()
        cr.set_source_rgb(*self.COLORS['grid_dots'])
        x = 0.0
        while x < width:
            y = 0.0
            while y < height:
                cr.arc(x, y, 1.5, 0, 2 * math.pi)
                cr.fill()
                y += self.GRID_SIZE
            x += self.GRID_SIZE
        cr.restore()

    def _draw_connections(self, cr, snapshot: SceneSnapshot):
        """Draw directed bezier connectors between visible nodes."""
        for edge in snapshot.edges:
            source = snapshot.get_node(edge.source_id)
            target = snapshot.get_node(edge.target_id)
            if source is None or target is None:
                continue
            if not (source.visible and target.visible):
                continue

            sx, sy = self._center(source)
            tx, ty = self._center(target)
            dx = tx - sx
            dy = ty - sy
            if dx == 0 and dy == 0:
                continue
            angle = math.atan2(dy, dx)

            start_x, start_y = self._border_point(source, angle)
            end_x, end_y = self._border_point(target, angle + math.pi)

            ctrl_dist = math.hypot(end_x - start_x, end_y - start_y) * 0.4
            ctrl1_x = start_x + ctrl_dist * math.cos(angle)
            ctrl1_y = start_y + ctrl_dist * math.sin(angle)
            ctrl2_x = end_x - ctrl_dist * math.cos(angle)
            ctrl2_y = end_y - ctrl_dist * math.sin(angle)

            gradient = cairo.LinearGradient(start_x, start_y, end_x, end_y)
            gradient.add_color_stop_rgba(0, *self.COLORS['accent_primary'], 0.8)
            gradient.add_color_stop_rgba(1, *self.COLORS['accent_secondary'], 0.9)

            cr.set_source(gradient)
            cr.set_line_width(2)
            cr.set_line_cap(cairo.LINE_CAP_ROUND)
            cr.move_to(start_x, start_y)
            cr.curve_to(ctrl1_x, ctrl1_y, ctrl2_x, ctrl2_y, end_x, end_y)
            cr.stroke()

            self._draw_arrow_head(cr, end_x, end_y, angle)

    def _draw_arrow_head(self, cr, x: float, y: float, angle: float):
        size = self.ARROW_SIZE
        cr.set_source_rgb(*self.COLORS['accent_secondary'])
        cr.move_to(x, y)
        cr.line_to(x - size * math.cos(angle - math.pi / 6),
                   y - size * math.sin(angle - math.pi / 6))
        cr.line_to(x - size * math.cos(angle + math.pi / 6),
                   y - size * math.sin(angle + math.pi / 6))
        cr.close_path()
        cr.fill()

    def _draw_node(self, cr, node: NodeSnapshot, visual: VisualState):
        """Draw a single node with its icons and strokes."""
        x, y, w, h = node.x, node.y, node.width, node.height
        is_selected = visual.selected_id == node.id
        is_drop_target = visual.drop_target_id == node.id
        title_h = self.settings.title_height

        cr.save()

        self._draw_rounded_rect(cr, x, y, w, h, 6)
        cr.set_source_rgb(*self.COLORS['surface'])
        cr.fill_preserve()

        if is_drop_target:
            cr.set_source_rgb(*self.COLORS['success'])
            cr.set_line_width(2)
        elif is_selected or node.writing:
            cr.set_source_rgb(*self.COLORS['border_active'])
            cr.set_line_width(2)
        else:
            cr.set_source_rgb(*self.COLORS['border_subtle'])
            cr.set_line_width(1)
        cr.stroke()

        # Title bar
        cr.rectangle(x + 1, y + 1, w - 2, title_h - 1)
        cr.set_source_rgb(*self.COLORS['title_bar'])
        cr.fill()

        self._draw_pencil_icon(cr, node)
        self._draw_clear_icon(cr, node)

        # Typed title only when nothing is handwritten there
        if not node.title_strokes and node.title:
            cr.set_source_rgb(*self.COLORS['text_primary'])
            cr.select_font_face("Sans", cairo.FONT_SLANT_NORMAL, cairo.FONT_WEIGHT_BOLD)
            cr.set_font_size(16)
            cr.move_to(x + self.settings.content_padding, y + title_h - 8)
            cr.show_text(node.title)

        for stroke in node.title_strokes:
            self._draw_polyline(cr, absolute_points(node, stroke), self.COLORS['ink_title'], 2)
        for stroke in node.content_strokes:
            self._draw_polyline(cr, absolute_points(node, stroke), self.COLORS['ink_content'], 2)

        cr.restore()

    def _draw_pencil_icon(self, cr, node: NodeSnapshot):
        ix, iy, size, _ = self.hit_tester.pencil_rect(node)
        color = self.COLORS['accent_primary'] if node.writing else self.COLORS['text_muted']
        cr.set_source_rgb(*color)
        cr.set_line_width(1.5)
        cr.move_to(ix + 3, iy + size - 3)
        cr.line_to(ix + size - 3, iy + 3)
        cr.move_to(ix + 2, iy + size - 2)
        cr.line_to(ix + 6, iy + size - 2)
        cr.stroke()

    def _draw_clear_icon(self, cr, node: NodeSnapshot):
        ix, iy, size, _ = self.hit_tester.clear_rect(node)
        cr.set_source_rgb(*self.COLORS['text_muted'])
        cr.set_line_width(1.5)
        cr.move_to(ix, iy)
        cr.line_to(ix + size, iy + size)
        cr.move_to(ix + size, iy)
        cr.line_to(ix, iy + size)
        cr.stroke()

    def _draw_active_stroke(self, cr, visual: VisualState):
        if visual.state is GestureState.DRAWING_NEW_NODE:
            self._draw_polyline(cr, visual.stroke, self.COLORS['ink_draft'], 4)
        elif visual.stroke_region is StrokeRegion.TITLE:
            self._draw_polyline(cr, visual.stroke, self.COLORS['ink_title'], 2)
        else:
            self._draw_polyline(cr, visual.stroke, self.COLORS['ink_content'], 2)

    def _draw_polyline(self, cr, points, color: Tuple[float, float, float], width: float):
        """Stroke a polyline; a single point renders as a dot."""
        if not points:
            return
        cr.set_source_rgb(*color)
        cr.set_line_width(width)
        cr.set_line_cap(cairo.LINE_CAP_ROUND)
        cr.set_line_join(cairo.LINE_JOIN_ROUND)
        first_x, first_y = points[0]
        if len(points) == 1:
            cr.arc(first_x, first_y, width / 2, 0, 2 * math.pi)
            cr.fill()
            return
        cr.move_to(first_x, first_y)
        for px, py in points[1:]:
            cr.line_to(px, py)
        cr.stroke()

    def _draw_rounded_rect(self, cr, x: float, y: float, w: float, h: float, radius: float):
        """Draw a rounded rectangle path."""
        cr.new_path()
        cr.arc(x + w - radius, y + radius, radius, -math.pi / 2, 0)
        cr.arc(x + w - radius, y + h - radius, radius, 0, math.pi / 2)
        cr.arc(x + radius, y + h - radius, radius, math.pi / 2, math.pi)
        cr.arc(x + radius, y + radius, radius, math.pi, 3 * math.pi / 2)
        cr.close_path()

    @staticmethod
    def _center(node: NodeSnapshot) -> Tuple[float, float]:
        return (node.x + node.width / 2, node.y + node.height / 2)

    @staticmethod
    def _border_point(node: NodeSnapshot, angle: float) -> Tuple[float, float]:
        """Point where a ray from the node centre leaves its rectangle."""
        cx = node.x + node.width / 2
        cy = node.y + node.height / 2
        cos_a = math.cos(angle)
        sin_a = math.sin(angle)
        scale_x = (node.width / 2) / abs(cos_a) if cos_a else math.inf
        scale_y = (node.height / 2) / abs(sin_a) if sin_a else math.inf
        scale = min(scale_x, scale_y)
        return (cx + cos_a * scale, cy + sin_a * scale)

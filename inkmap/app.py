"""Main InkMap application."""

import logging
import sys
from typing import Optional

import gi
gi.require_version("Gtk", "4.0")
gi.require_version("Adw", "1")
from gi.repository import Gtk, Gio, Adw

from inkmap import __version__, __app_id__
from inkmap.canvas import InkCanvas
from inkmap.config import EditorSettings, load_settings
from inkmap.scene import SceneGraph

logger = logging.getLogger(__name__)

DEFAULT_WIDTH = 1400
DEFAULT_HEIGHT = 900


class InkMapWindow(Adw.ApplicationWindow):
    """Main application window: header, drawing surface and status line."""

    def __init__(self, app: Adw.Application, settings: EditorSettings):
        super().__init__(application=app)
        self.settings = settings
        self.scene = SceneGraph(settings)

        self.set_title("InkMap")
        self.set_default_size(DEFAULT_WIDTH, DEFAULT_HEIGHT)

        self._build_ui()
        self._setup_shortcuts()

        if settings.seed_demo_node:
            self._seed_demo_node()

    def _build_ui(self):
        """Build the main UI layout."""
        main_box = Gtk.Box(orientation=Gtk.Orientation.VERTICAL)

        header = Adw.HeaderBar()
        header.add_css_class("flat")
        main_box.append(header)

        self.canvas = InkCanvas(self.scene, self.settings)
        self.canvas.on_status = self._on_status

        canvas_frame = Gtk.Frame()
        canvas_frame.set_child(self.canvas)
        canvas_frame.set_vexpand(True)
        main_box.append(canvas_frame)

        self.status_label = Gtk.Label(label="Draw on the canvas to create a node")
        self.status_label.set_halign(Gtk.Align.START)
        self.status_label.set_margin_start(12)
        self.status_label.set_margin_top(4)
        self.status_label.set_margin_bottom(4)
        self.status_label.add_css_class("dim-label")
        main_box.append(self.status_label)

        self.set_content(main_box)

    def _setup_shortcuts(self):
        """Setup window actions."""
        actions = [
            ("quit", lambda: self.close(), "<Control>q"),
        ]

        for name, callback, accel in actions:
            action = Gio.SimpleAction.new(name, None)
            action.connect("activate", lambda a, p, cb=callback: cb())
            self.add_action(action)

            if accel:
                self.get_application().set_accels_for_action(f"win.{name}", [accel])

    def _seed_demo_node(self):
        """Place one titled node at the window centre."""
        self.scene.create_node((DEFAULT_WIDTH / 2, DEFAULT_HEIGHT / 2), "Brainstorm")

    def _on_status(self, message: str):
        self.status_label.set_label(message)


class InkMapApp(Adw.Application):
    """Main application class."""

    def __init__(self):
        super().__init__(
            application_id=__app_id__,
            flags=Gio.ApplicationFlags.DEFAULT_FLAGS
        )
        self.settings: Optional[EditorSettings] = None
        self.window: Optional[InkMapWindow] = None

    def do_startup(self):
        """Initialize application."""
        Adw.Application.do_startup(self)

        self.settings = load_settings()
        logger.info("InkMap %s starting", __version__)

        style_manager = Adw.StyleManager.get_default()
        style_manager.set_color_scheme(Adw.ColorScheme.FORCE_DARK)

    def do_activate(self):
        """Activate application."""
        if not self.window:
            self.window = InkMapWindow(self, self.settings)

        self.window.present()


def main() -> int:
    """Application entry point."""
    app = InkMapApp()
    return app.run(sys.argv)


if __name__ == "__main__":
    sys.exit(main())

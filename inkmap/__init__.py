"""InkMap - a handwriting-first diagram editor."""

__version__ = "1.0.0"
__app_id__ = "io.github.inkmap.InkMap"

"""Editor settings and logging setup for InkMap."""

import json
import logging
import os
from dataclasses import dataclass, asdict, fields
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


def get_config_dir() -> Path:
    """Get the application config directory."""
    return Path.home() / ".config" / "inkmap"


def get_settings_path() -> Path:
    """Get the settings file path, honouring $INKMAP_SETTINGS."""
    override = os.environ.get("INKMAP_SETTINGS")
    if override:
        return Path(override).expanduser()
    return get_config_dir() / "settings.json"


@dataclass
class EditorSettings:
    """Geometry, thresholds and timing shared by the editor components."""
    node_width: float = 180.0
    node_height: float = 120.0
    title_height: float = 30.0
    title_tolerance: float = 10.0  # extra reach of the title band for writing
    icon_size: float = 20.0
    icon_inset: float = 8.0
    content_padding: float = 10.0
    drag_threshold: float = 5.0
    double_tap_ms: int = 300
    spawn_on_empty_drop: bool = False
    seed_demo_node: bool = True

    @property
    def double_tap_window(self) -> float:
        """Double-tap window in seconds."""
        return self.double_tap_ms / 1000.0

    def to_json(self) -> str:
        return json.dumps(asdict(self))

    @classmethod
    def from_json(cls, data: Optional[str]) -> "EditorSettings":
        if not data:
            return cls()
        try:
            d = json.loads(data)
            if not isinstance(d, dict):
                raise TypeError(f"expected an object, got {type(d).__name__}")
        except (json.JSONDecodeError, TypeError) as exc:
            logger.warning("Ignoring malformed settings: %s", exc)
            return cls()

        values = {}
        # Ignore keys written by other versions
        for f in fields(cls):
            if f.name not in d:
                continue
            try:
                values[f.name] = _coerce(f.type, d[f.name])
            except (TypeError, ValueError):
                logger.warning("Ignoring setting %s=%r: expected %s",
                               f.name, d[f.name], f.type.__name__)
        return cls(**values)


_TRUE_STRINGS = {"true", "1", "yes", "on"}
_FALSE_STRINGS = {"false", "0", "no", "off"}


def _coerce(kind, value):
    """Convert a JSON value to a settings field type or raise."""
    if kind is bool:
        if isinstance(value, bool):
            return value
        if isinstance(value, int) and value in (0, 1):
            return bool(value)
        if isinstance(value, str) and value.strip().lower() in _TRUE_STRINGS | _FALSE_STRINGS:
            return value.strip().lower() in _TRUE_STRINGS
        raise ValueError(value)
    if isinstance(value, bool) or value is None:
        raise TypeError(value)
    if kind is int:
        number = float(value)
        if not number.is_integer():
            raise ValueError(value)
        return int(number)
    return kind(value)


def load_settings(path: Optional[Path] = None) -> EditorSettings:
    """Load settings from disk; a missing or unreadable file means defaults."""
    path = path or get_settings_path()
    if not path.exists():
        logger.debug("No settings file at %s, using defaults", path)
        return EditorSettings()
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        logger.warning("Could not read settings file %s: %s", path, exc)
        return EditorSettings()
    return EditorSettings.from_json(text)


def configure_logging(level: Optional[str] = None) -> None:
    """Configure root logging; level defaults to $INKMAP_LOG_LEVEL or WARNING."""
    name = (level or os.environ.get("INKMAP_LOG_LEVEL") or "WARNING").upper()
    numeric = getattr(logging, name, None)
    if not isinstance(numeric, int):
        numeric = logging.WARNING
    logging.basicConfig(
        level=numeric,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

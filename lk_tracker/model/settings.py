"""JSON-backed application settings grouped into dataclass sections."""

import json
import logging
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Tuple

from .entities import MAX_USER_STATUS

SETTINGS_FILENAME = "settings.json"

log = logging.getLogger(__name__)


@dataclass
class TrackingSettings:
    window_size: int = 31
    min_window_size: int = 10
    max_level: int = 10
    term_count: int = 20
    term_epsilon: float = 0.03
    min_eig_threshold: float = 0.001
    min_point_distance: float = 5.0
    track_only_active: bool = False
    pause_on_invalid: bool = False


@dataclass
class UserStatusSettings:
    # Number of classification bits offered as toggles.
    count: int = 3


@dataclass
class DisplaySettings:
    history: int = 0
    valid_color: Tuple[int, int, int] = (0, 0, 255)
    invalid_color: Tuple[int, int, int] = (255, 0, 0)
    not_tracked_alpha: int = 100


@dataclass
class DataSettings:
    export_folder: str = "."


@dataclass
class AppSettings:
    tracking: TrackingSettings = field(default_factory=TrackingSettings)
    user_status: UserStatusSettings = field(default_factory=UserStatusSettings)
    display: DisplaySettings = field(default_factory=DisplaySettings)
    data: DataSettings = field(default_factory=DataSettings)

    def normalize(self) -> "AppSettings":
        """Pull hand-edited values back into their usable ranges."""
        self.tracking.min_window_size = max(1, int(self.tracking.min_window_size))
        self.tracking.window_size = max(self.tracking.min_window_size, int(self.tracking.window_size))
        self.user_status.count = max(1, min(MAX_USER_STATUS, int(self.user_status.count)))
        self.display.not_tracked_alpha = max(0, min(255, int(self.display.not_tracked_alpha)))
        return self


def _section_from(section_type, values: Any):
    section = section_type()
    if not isinstance(values, Mapping):
        return section
    known = {f.name for f in fields(section_type)}
    for name, value in values.items():
        if name not in known:
            log.debug("settings: ignoring unknown key %s.%s", section_type.__name__, name)
            continue
        # Colours are stored as JSON lists.
        if isinstance(getattr(section, name), tuple) and isinstance(value, list):
            value = tuple(value)
        setattr(section, name, value)
    return section


def settings_from_dict(data: Any) -> AppSettings:
    """Build settings from parsed JSON; missing sections and keys keep their defaults."""
    settings = AppSettings()
    if not isinstance(data, Mapping):
        return settings
    for section_field in fields(AppSettings):
        if section_field.name in data:
            section_type = type(getattr(settings, section_field.name))
            setattr(settings, section_field.name, _section_from(section_type, data[section_field.name]))
    return settings.normalize()


class SettingsManager:
    """Loads and saves one ``AppSettings`` instance at ``path``."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self.settings = AppSettings()
        self.load()

    def load(self) -> None:
        try:
            text = self.path.read_text()
        except FileNotFoundError:
            return
        except OSError as exc:
            log.warning("settings: cannot read %s: %s", self.path, exc)
            return
        try:
            self.settings = settings_from_dict(json.loads(text))
        except json.JSONDecodeError as exc:
            log.warning("settings: %s is not valid JSON, keeping defaults: %s", self.path, exc)

    def save(self) -> None:
        self.path.write_text(json.dumps(self.as_dict(), indent=2))

    def reset(self) -> None:
        self.settings = AppSettings()
        self.save()

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self.settings)


def get_settings_path(root: Path) -> Path:
    return Path(root) / SETTINGS_FILENAME

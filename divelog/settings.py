"""User unit preferences consumed by the display layer"""

import json
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, Optional

from .units import CONVERSIONS


@dataclass
class UnitSettings:
    """Preferred display unit for each measured quantity"""
    depth: str = 'meters'
    temperature: str = 'celsius'
    distance: str = 'kilometers'
    weight: str = 'kilograms'
    pressure: str = 'bar'
    volume: str = 'liters'

    def __post_init__(self):
        """Reject units that the conversion layer does not know"""
        for quantity, (metric, imperial, _) in CONVERSIONS.items():
            unit = getattr(self, quantity)
            if unit not in (metric, imperial):
                raise ValueError(f"Invalid {quantity} unit: {unit!r} (expected {metric} or {imperial})")

    @property
    def system(self) -> str:
        """'metric', 'imperial' or 'custom' when the axes are mixed"""
        if self == METRIC:
            return 'metric'
        if self == IMPERIAL:
            return 'imperial'
        return 'custom'

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'UnitSettings':
        """Build settings from a mapping, falling back to metric for missing axes"""
        unknown = set(data) - set(CONVERSIONS)
        if unknown:
            raise ValueError(f"Unknown unit settings: {', '.join(sorted(unknown))}")
        return cls(**data)

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)


METRIC = UnitSettings()
IMPERIAL = UnitSettings(
    depth='feet',
    temperature='fahrenheit',
    distance='miles',
    weight='pounds',
    pressure='psi',
    volume='cubic_feet',
)


@dataclass
class DisplayPreferences:
    """How dates and times are shown; carried through for the display layer"""
    date_format: str = 'ISO'
    time_format: str = '24h'
    default_visibility: str = 'private'


@dataclass
class DivePreferences:
    """Dive entry defaults; max_depth_warning is in the preferred depth unit"""
    show_buddy_reminders: bool = True
    auto_calculate_nitrox: bool = False
    default_gas_mix: str = 'Air (21% O₂)'
    max_depth_warning: float = 40


# camelCase keys written by the settings store -> dataclass field names
_PREFERENCE_KEYS = {
    'dateFormat': 'date_format',
    'timeFormat': 'time_format',
    'defaultVisibility': 'default_visibility',
}
_DIVE_KEYS = {
    'showBuddyReminders': 'show_buddy_reminders',
    'autoCalculateNitrox': 'auto_calculate_nitrox',
    'defaultGasMix': 'default_gas_mix',
    'maxDepthWarning': 'max_depth_warning',
}


def _section(data: Optional[Dict[str, Any]], keys: Dict[str, str], name: str) -> Dict[str, Any]:
    """Map a camelCase settings section onto field names, rejecting unknown keys"""
    values = {}
    for key, value in (data or {}).items():
        field_name = keys.get(key, key if key in keys.values() else None)
        if field_name is None:
            raise ValueError(f"Unknown {name} setting: {key}")
        values[field_name] = value
    return values


@dataclass
class UserSettings:
    """Settings owned by the settings store

    Only units are consumed by the conversion layer; preferences and dive
    defaults are loaded and kept so they survive a load/save cycle.
    """
    units: UnitSettings = field(default_factory=UnitSettings)
    preferences: DisplayPreferences = field(default_factory=DisplayPreferences)
    dive: DivePreferences = field(default_factory=DivePreferences)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'UserSettings':
        return cls(
            units=UnitSettings.from_dict(data.get('units') or {}),
            preferences=DisplayPreferences(**_section(data.get('preferences'), _PREFERENCE_KEYS, 'preference')),
            dive=DivePreferences(**_section(data.get('dive'), _DIVE_KEYS, 'dive')),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize with the camelCase keys the settings store uses"""
        return {
            'units': self.units.to_dict(),
            'preferences': {key: getattr(self.preferences, name) for key, name in _PREFERENCE_KEYS.items()},
            'dive': {key: getattr(self.dive, name) for key, name in _DIVE_KEYS.items()},
        }


def settings_for_system(system: str) -> UnitSettings:
    """Return the preset for 'metric' or 'imperial'"""
    if system == 'metric':
        return METRIC
    if system == 'imperial':
        return IMPERIAL
    raise ValueError(f"Unknown unit system: {system}")


def load_settings(file_path: str) -> UserSettings:
    """Load user settings from a JSON document"""
    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except FileNotFoundError:
        raise FileNotFoundError(f"Settings file not found: {file_path}")
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in settings file: {e}")

    if not isinstance(data, dict):
        raise ValueError("Settings file must contain a JSON object")

    return UserSettings.from_dict(data)

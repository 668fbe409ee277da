"""Canonical dive records and gas calculations

Every measurement stored on these records is metric: meters, minutes,
celsius, liters and bar. Parsers build them wholesale and nothing in the
package mutates a dive after it has been returned.
"""

import math
from dataclasses import dataclass, field, fields, is_dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from dateutil import parser as date_parser

from .units import CONVERSIONS

AIR_OXYGEN = 21
SURFACE_PRESSURE_ATA = 1.0
METERS_PER_ATA = 10.0

GAS_COLOR_TRIMIX = '#8b5cf6'   # purple
GAS_COLOR_NITROX = '#10b981'   # green
GAS_COLOR_AIR = '#6b7280'      # gray


def _format_percent(value: float) -> str:
    """Format a gas percentage the way a diver writes it: 32, not 32.0"""
    if float(value).is_integer():
        return str(int(value))
    return str(value)


def calculate_nitrogen(oxygen: float, helium: float = 0) -> float:
    """Nitrogen makes up whatever oxygen and helium do not"""
    return 100 - oxygen - helium


@dataclass
class GasMix:
    """Breathing gas composition in percent; nitrogen and name are derived"""
    oxygen: float
    helium: float = 0
    nitrogen: float = field(init=False)
    name: str = field(init=False)

    def __post_init__(self):
        self.nitrogen = calculate_nitrogen(self.oxygen, self.helium)
        if self.helium > 0:
            self.name = f"Trimix {_format_percent(self.oxygen)}/{_format_percent(self.helium)}"
        elif self.oxygen != AIR_OXYGEN:
            self.name = f"EANx{_format_percent(self.oxygen)}"
        else:
            self.name = 'Air'


def create_gas_mix(oxygen: float, helium: float = 0) -> GasMix:
    """Build a gas mix with derived nitrogen content and label"""
    return GasMix(oxygen=oxygen, helium=helium)


@dataclass
class Tank:
    """A cylinder used on the dive; size in liters, pressures in bar"""
    size: float
    working_pressure: float
    start_pressure: float
    end_pressure: float
    gas_mix: GasMix = field(default_factory=lambda: create_gas_mix(AIR_OXYGEN))
    material: str = 'steel'
    name: Optional[str] = None


@dataclass
class Wetsuit:
    """Exposure protection; thickness in millimetres"""
    type: str
    thickness: Optional[int] = None
    material: Optional[str] = None


@dataclass
class Equipment:
    """Everything the diver carried"""
    tanks: List[Tank] = field(default_factory=list)
    bcd: Optional[str] = None
    regulator: Optional[str] = None
    wetsuit: Optional[Wetsuit] = None
    weights: Optional[float] = None
    fins: Optional[str] = None
    mask: Optional[str] = None
    computer: Optional[str] = None
    notes: Optional[str] = None


@dataclass
class WaterTemperature:
    surface: Optional[float] = None
    bottom: Optional[float] = None


@dataclass
class Current:
    strength: Optional[str] = None
    direction: Optional[str] = None


@dataclass
class DiveConditions:
    """Environmental snapshot; any field may be unset"""
    water_temp: Optional[WaterTemperature] = None
    air_temp: Optional[float] = None
    visibility: Optional[float] = None
    current: Optional[Current] = None
    weather: Optional[str] = None
    sea_state: Optional[int] = None
    surge: Optional[str] = None


@dataclass
class SafetyStop:
    depth: float
    duration: int


@dataclass
class DiveSample:
    """One profile point: seconds since descent, depth in meters"""
    time: int
    depth: float
    temperature: Optional[float] = None
    pressure: Optional[float] = None


@dataclass
class Dive:
    """A logged dive

    The id is a placeholder until the repository assigns one. Latitude and
    longitude of 0, 0 mean the site position is unknown.
    """
    datetime: datetime
    location: str
    depth: float
    duration: int
    id: int = 0
    lat: float = 0.0
    lng: float = 0.0
    buddy: Optional[str] = None
    samples: Optional[List[DiveSample]] = None
    equipment: Optional[Equipment] = None
    conditions: Optional[DiveConditions] = None
    dive_type: Optional[str] = None
    rating: Optional[float] = None
    notes: Optional[str] = None
    safety_stops: Optional[List[SafetyStop]] = None
    tags: Optional[List[str]] = None

    def is_empty(self) -> bool:
        """A dive with neither depth nor duration carries no information"""
        return self.depth == 0 and self.duration == 0

    def has_position(self) -> bool:
        return not (self.lat == 0 and self.lng == 0)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to a JSON-ready mapping, omitting absent fields"""
        return _to_plain(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Dive':
        """Build a dive from the mapping produced by to_dict"""
        when = data['datetime']
        if isinstance(when, str):
            when = date_parser.isoparse(when)
        if when.tzinfo is None:
            when = when.replace(tzinfo=timezone.utc)

        equipment = data.get('equipment')
        conditions = data.get('conditions')
        return cls(
            id=data.get('id', 0),
            datetime=when,
            location=data['location'],
            depth=data['depth'],
            duration=data['duration'],
            lat=data.get('lat', 0.0),
            lng=data.get('lng', 0.0),
            buddy=data.get('buddy'),
            samples=_optional_list(DiveSample, data.get('samples')),
            equipment=_equipment_from_dict(equipment) if equipment is not None else None,
            conditions=_conditions_from_dict(conditions) if conditions is not None else None,
            dive_type=data.get('dive_type'),
            rating=data.get('rating'),
            notes=data.get('notes'),
            safety_stops=_optional_list(SafetyStop, data.get('safety_stops')),
            tags=list(data['tags']) if data.get('tags') is not None else None,
        )


def _to_plain(value: Any) -> Any:
    if is_dataclass(value):
        result = {}
        for f in fields(value):
            item = getattr(value, f.name)
            if item is not None:
                result[f.name] = _to_plain(item)
        return result
    if isinstance(value, list):
        return [_to_plain(item) for item in value]
    if isinstance(value, datetime):
        return value.astimezone(timezone.utc).isoformat().replace('+00:00', 'Z')
    return value


def _optional_list(cls, items: Optional[List[Dict[str, Any]]]):
    if items is None:
        return None
    return [cls(**item) for item in items]


def _equipment_from_dict(data: Dict[str, Any]) -> Equipment:
    tanks = []
    for tank in data.get('tanks', []):
        tank = dict(tank)
        gas = tank.pop('gas_mix', None)
        if gas is not None:
            tank['gas_mix'] = create_gas_mix(gas['oxygen'], gas.get('helium', 0))
        tanks.append(Tank(**tank))

    values = {k: v for k, v in data.items() if k not in ('tanks', 'wetsuit')}
    wetsuit = data.get('wetsuit')
    return Equipment(
        tanks=tanks,
        wetsuit=Wetsuit(**wetsuit) if wetsuit is not None else None,
        **values
    )


def _conditions_from_dict(data: Dict[str, Any]) -> DiveConditions:
    values = dict(data)
    water = values.pop('water_temp', None)
    current = values.pop('current', None)
    return DiveConditions(
        water_temp=WaterTemperature(**water) if water is not None else None,
        current=Current(**current) if current is not None else None,
        **values
    )


def calculate_sac(tank: Tank, dive_time_minutes: float, avg_depth_meters: float,
                  units: str = 'metric') -> float:
    """Surface air consumption rate for one tank

    Args:
        tank: Tank with start/end pressure in bar and size in liters
        dive_time_minutes: Time the tank was breathed
        avg_depth_meters: Average depth of the dive, supplied by the caller
        units: 'metric' for L/min, 'imperial' for cubic feet per minute

    Returns:
        The SAC rate. A zero dive time yields inf (or nan when no gas was
        used) instead of raising; callers guard at display time.
    """
    pressure_used = tank.start_pressure - tank.end_pressure
    avg_pressure_ata = avg_depth_meters / METERS_PER_ATA + SURFACE_PRESSURE_ATA
    volume_at_surface = pressure_used * tank.size / avg_pressure_ata

    if dive_time_minutes == 0:
        if volume_at_surface == 0 or math.isnan(volume_at_surface):
            return math.nan
        return math.copysign(math.inf, volume_at_surface)

    sac_rate = volume_at_surface / dive_time_minutes
    if units == 'imperial':
        sac_rate *= CONVERSIONS['volume'][2]
    return sac_rate


def calculate_rmv(sac_rate: float, avg_depth: float) -> float:
    """Respiratory minute volume: SAC scaled to the ambient pressure at depth"""
    return sac_rate * (avg_depth / METERS_PER_ATA + SURFACE_PRESSURE_ATA)


def get_gas_mix_color(gas_mix: GasMix) -> str:
    """Colour code for a gas: purple for trimix, green for nitrox, gray for air"""
    if gas_mix.helium and gas_mix.helium > 0:
        return GAS_COLOR_TRIMIX
    if gas_mix.oxygen > AIR_OXYGEN:
        return GAS_COLOR_NITROX
    return GAS_COLOR_AIR

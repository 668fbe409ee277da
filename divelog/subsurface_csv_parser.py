"""Parser for Subsurface CSV dive list exports"""

import logging
import math
import re
from datetime import timezone
from pathlib import Path
from typing import Dict, List, Optional

from dateutil import parser as date_parser

from .dives import (
    Dive, DiveConditions, Equipment, Tank, WaterTemperature, Wetsuit, create_gas_mix,
)
from .exceptions import SubsurfaceCSVParseError
from .units import round_half_up

logger = logging.getLogger(__name__)

REQUIRED_HEADERS = ['dive number', 'date', 'time', 'duration [min]', 'maxdepth [m]', 'location']

DEFAULT_OXYGEN = 21.0
DEFAULT_HELIUM = 0.0
DEFAULT_START_PRESSURE = 200.0
DEFAULT_END_PRESSURE = 50.0
MIN_WORKING_PRESSURE = 200.0
CSV_DIVE_TYPE = 'recreational'

_FLOAT_PREFIX = re.compile(r'[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?')
_INT_PREFIX = re.compile(r'[+-]?\d+')
_GPS_PAIR = re.compile(r'(-?\d+\.?\d*)\s+(-?\d+\.?\d*)')


def parse_csv_row(line: str) -> List[str]:
    """Split one CSV line into trimmed fields

    Quoted fields may contain commas, and a doubled quote inside quotes is a
    literal quote. Quoted fields spanning several lines are not supported;
    the input is split on newlines before it gets here.
    """
    fields = []
    current = []
    in_quotes = False
    i = 0

    while i < len(line):
        char = line[i]
        if char == '"':
            if in_quotes and line[i + 1:i + 2] == '"':
                current.append('"')
                i += 2
                continue
            in_quotes = not in_quotes
        elif char == ',' and not in_quotes:
            fields.append(''.join(current).strip())
            current = []
        else:
            current.append(char)
        i += 1

    fields.append(''.join(current).strip())
    return fields


def _parse_float(text: Optional[str]) -> float:
    """Read the leading number of a cell ('12.5 m' -> 12.5); nan if there is none"""
    if text is None:
        return math.nan
    match = _FLOAT_PREFIX.match(text.strip())
    if not match:
        return math.nan
    return float(match.group(0))


def _parse_int(text: str) -> float:
    match = _INT_PREFIX.match(text.strip())
    if not match:
        return math.nan
    return float(int(match.group(0)))


def _positive(value: float) -> Optional[float]:
    """Keep a reading only when it is a real positive number"""
    if math.isnan(value) or value <= 0:
        return None
    return value


def _parse_duration(text: str) -> float:
    """Duration in minutes from 'MM:SS' or a plain number of minutes"""
    if ':' in text:
        parts = text.split(':')
        minutes = _parse_int(parts[0])
        seconds = _parse_int(parts[1])
        if math.isnan(seconds):
            seconds = 0
        return minutes + seconds / 60
    return _parse_float(text)


class SubsurfaceCSVParser:
    """Parse the dive list CSV written by Subsurface's export dialog"""

    def parse_file(self, file_path: str) -> List[Dive]:
        """Read a CSV export and parse its dives"""
        try:
            content = Path(file_path).read_text(encoding='utf-8-sig')
        except FileNotFoundError:
            raise FileNotFoundError(f"Subsurface CSV file not found: {file_path}")
        return self.parse_string(content)

    def parse_string(self, content: str) -> List[Dive]:
        """Parse CSV content, skipping rows that cannot be read

        Raises:
            SubsurfaceCSVParseError: No data rows, missing required headers,
                or no row produced a valid dive
        """
        lines = content.strip().split('\n')
        if len(lines) < 2:
            raise SubsurfaceCSVParseError('CSV file must contain at least a header and one data row')

        headers = [header for header in parse_csv_row(lines[0]) if header]
        missing = [header for header in REQUIRED_HEADERS if header not in headers]
        if missing:
            raise SubsurfaceCSVParseError(f"Missing required headers: {', '.join(missing)}")

        dives = []
        for line_number, line in enumerate(lines[1:], start=2):
            line = line.strip()
            if not line:
                continue

            values = parse_csv_row(line)[:len(headers)]
            values.extend([''] * (len(headers) - len(values)))
            row = dict(zip(headers, values))

            try:
                dives.append(self._parse_row(row))
            except Exception as e:
                logger.warning(f"Error parsing row {line_number}: {e}")

        if not dives:
            raise SubsurfaceCSVParseError('No valid dives found in CSV file')

        logger.info(f"Parsed {len(dives)} dives from Subsurface CSV")
        return dives

    def _parse_row(self, row: Dict[str, str]) -> Dive:
        """Build a dive from one header -> cell mapping; raises ValueError on bad rows"""
        date_str = row['date']
        time_str = row['time']
        if not date_str or not time_str:
            raise ValueError(f'Missing date or time: date="{date_str}", time="{time_str}"')
        # Subsurface writes local wall-clock time without an offset; it is stored as UTC as-is
        dive_datetime = date_parser.isoparse(f"{date_str}T{time_str}").replace(tzinfo=timezone.utc)

        location = row['location']
        if not location:
            raise ValueError('Missing location')

        depth = _positive(_parse_float(row['maxdepth [m]']))
        if depth is None:
            raise ValueError(f"Invalid depth: {row['maxdepth [m]']!r}")

        duration = _positive(_parse_duration(row['duration [min]']))
        if duration is None:
            raise ValueError(f"Invalid duration: {row['duration [min]']!r}")

        lat, lng = 0.0, 0.0
        gps_match = _GPS_PAIR.search(row.get('gps', ''))
        if gps_match:
            lat, lng = float(gps_match.group(1)), float(gps_match.group(2))

        rating = _parse_float(row.get('rating') or None)
        tags = [tag.strip() for tag in row.get('tags', '').split(',') if tag.strip()]

        return Dive(
            id=0,
            datetime=dive_datetime,
            location=location,
            depth=depth,
            duration=int(round_half_up(duration)),
            buddy=row.get('buddy') or None,
            lat=lat,
            lng=lng,
            equipment=self._parse_equipment(row),
            conditions=self._parse_conditions(row),
            rating=None if math.isnan(rating) else rating,
            notes=row.get('notes') or None,
            dive_type=CSV_DIVE_TYPE,
            tags=tags or None,
        )

    def _parse_equipment(self, row: Dict[str, str]) -> Optional[Equipment]:
        """Synthesize a single-tank equipment record from the cylinder columns"""
        size = _positive(_parse_float(row.get('cylinder size (1) [l]')))
        if size is None:
            return None

        oxygen = _parse_float(row.get('o2 (1) [%]') or None)
        helium = _parse_float(row.get('he (1) [%]') or None)
        start_pressure = _parse_float(row.get('startpressure (1) [bar]'))
        end_pressure = _parse_float(row.get('endpressure (1) [bar]'))
        if math.isnan(start_pressure):
            start_pressure = DEFAULT_START_PRESSURE
        if math.isnan(end_pressure):
            end_pressure = DEFAULT_END_PRESSURE

        tank = Tank(
            name='Main Tank',
            size=size,
            # Rated pressure is not exported; assume at least what was observed
            working_pressure=max(start_pressure, end_pressure, MIN_WORKING_PRESSURE),
            start_pressure=start_pressure,
            end_pressure=end_pressure,
            gas_mix=create_gas_mix(
                DEFAULT_OXYGEN if math.isnan(oxygen) else oxygen,
                DEFAULT_HELIUM if math.isnan(helium) else helium,
            ),
            material='steel',
        )

        suit = row.get('suit', '')
        return Equipment(
            tanks=[tank],
            wetsuit=Wetsuit(type='wetsuit' if suit else 'none', thickness=None, material=suit or None),
            weights=_positive(_parse_float(row.get('weight [kg]'))),
        )

    def _parse_conditions(self, row: Dict[str, str]) -> Optional[DiveConditions]:
        """Conditions from the temperature and visibility columns

        A zero reading cannot be told apart from an empty cell in this
        export, so only positive values are kept.
        """
        air_temp = _positive(_parse_float(row.get('airtemp [C]')))
        water_temp = _positive(_parse_float(row.get('watertemp [C]')))
        visibility = _positive(_parse_float(row.get('visibility')))

        if air_temp is None and water_temp is None and visibility is None:
            return None

        return DiveConditions(
            air_temp=air_temp,
            water_temp=WaterTemperature(surface=water_temp, bottom=water_temp) if water_temp else None,
            visibility=visibility,
        )


def parse_subsurface_csv(content: str) -> List[Dive]:
    """Parse Subsurface CSV text into dives"""
    return SubsurfaceCSVParser().parse_string(content)

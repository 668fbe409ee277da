"""Parser for UDDF (Universal Dive Data Format) files"""

import logging
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union
from xml.parsers.expat import ExpatError

import xmltodict
from dateutil import parser as date_parser

from .dives import Dive, DiveSample
from .exceptions import UDDFParseError
from .units import round_half_up

logger = logging.getLogger(__name__)

UNKNOWN_LOCATION = 'Unknown Location'
UDDF_EXTENSION = '.uddf'
MAX_UDDF_FILE_SIZE = 10 * 1024 * 1024
PASCALS_PER_BAR = 100000.0


@dataclass
class UDDFSite:
    """A dive site entry from a divesite section"""
    id: str
    name: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None


def ensure_list(value: Any) -> List[Any]:
    """UDDF elements may appear once or repeated; always return a list"""
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def _child(node: Any, *path: str) -> Any:
    """Walk nested element dicts, returning None as soon as a step is missing"""
    for key in path:
        if isinstance(node, list):
            node = node[0] if node else None
        if not isinstance(node, dict):
            return None
        node = node.get(key)
    return node


def _text(node: Any) -> Optional[str]:
    """Text content of an element, or None when it is missing or blank"""
    if isinstance(node, list):
        node = node[0] if node else None
    if isinstance(node, dict):
        node = node.get('#text')
    if node is None:
        return None
    text = str(node).strip()
    return text or None


def _number(node: Any, default: Optional[float] = None) -> Optional[float]:
    """Numeric content of an element; non-numeric text raises ValueError"""
    text = _text(node)
    if text is None:
        return default
    return float(text)


def _optional_number(node: Any) -> Optional[float]:
    """Numeric content of an optional element; unreadable values count as absent"""
    try:
        return _number(node)
    except ValueError:
        return None


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _person_name(personal: Any) -> Optional[str]:
    first = _text(_child(personal, 'firstname')) or ''
    last = _text(_child(personal, 'lastname')) or ''
    name = f"{first} {last}".strip()
    return name or None


class UDDFParser:
    """Parse UDDF XML documents into Dive records"""

    def parse_file(self, file_path: str) -> List[Dive]:
        """Read a UDDF file and parse its dives"""
        try:
            # expat decodes using the encoding declared in the XML prolog
            content = Path(file_path).read_bytes()
        except FileNotFoundError:
            raise FileNotFoundError(f"UDDF file not found: {file_path}")
        return self.parse_string(content)

    def parse_string(self, content: Union[str, bytes]) -> List[Dive]:
        """Parse UDDF XML content

        Args:
            content: The whole UDDF document, as text or as undecoded bytes

        Returns:
            List of dives in document order. An empty list is a valid result.

        Raises:
            UDDFParseError: The XML is malformed or has no uddf root element
        """
        try:
            tree = xmltodict.parse(content)
        except (ExpatError, UnicodeError, LookupError) as e:
            raise UDDFParseError(f"Failed to parse UDDF file: {e}", e)

        if 'uddf' not in tree:
            raise UDDFParseError('Invalid UDDF file: missing uddf root element')
        root = tree['uddf'] or {}

        sites = self._parse_sites(root)
        buddies = self._parse_buddies(root)

        dives = []
        dive_id = 1
        for group in ensure_list(_child(root, 'profiledata', 'repetitiongroup')):
            for dive_node in ensure_list(_child(group, 'dive')):
                try:
                    dive = self._parse_dive(dive_node, dive_id, sites, buddies)
                    if dive:
                        dives.append(dive)
                except Exception as e:
                    dive_ref = _child(dive_node, '@id') or dive_id
                    logger.warning(f"Failed to parse UDDF dive {dive_ref}: {e}")
                dive_id += 1

        logger.info(f"Parsed {len(dives)} dives from UDDF")
        return dives

    def _parse_sites(self, root: Dict[str, Any]) -> Dict[str, UDDFSite]:
        """Collect dive sites from the top level and from every dive trip"""
        site_nodes = list(ensure_list(_child(root, 'divesite', 'site')))
        for trip in ensure_list(_child(root, 'divetrip')):
            for part in ensure_list(_child(trip, 'trippart')):
                site_nodes.extend(ensure_list(_child(part, 'divesite', 'site')))

        sites = {}
        for node in site_nodes:
            site_id = _text(_child(node, '@id'))
            if not site_id:
                continue
            try:
                latitude = _number(_child(node, 'geography', 'latitude'))
                longitude = _number(_child(node, 'geography', 'longitude'))
            except ValueError:
                logger.debug(f"Ignoring invalid coordinates for site {site_id}")
                latitude = longitude = None
            sites[site_id] = UDDFSite(
                id=site_id,
                name=_text(_child(node, 'name')),
                latitude=latitude,
                longitude=longitude,
            )
        return sites

    def _parse_buddies(self, root: Dict[str, Any]) -> Dict[str, str]:
        """Map buddy ids from the diver section to display names"""
        buddies = {}
        for node in ensure_list(_child(root, 'diver', 'buddy')):
            buddy_id = _text(_child(node, '@id'))
            name = _person_name(_child(node, 'personal'))
            if buddy_id and name:
                buddies[buddy_id] = name
        return buddies

    def _parse_dive(self, node: Dict[str, Any], dive_id: int,
                    sites: Dict[str, UDDFSite], buddies: Dict[str, str]) -> Optional[Dive]:
        """Parse a single dive element; returns None for dives without data"""
        before = _child(node, 'informationbeforedive')
        after = _child(node, 'informationafterdive')

        depth = round_half_up(_number(_child(after, 'greatestdepth'), 0), 1)
        duration_seconds = _number(_child(after, 'diveduration'), 0)
        duration = int(round_half_up(duration_seconds / 60))
        if depth < 0 or duration < 0:
            raise ValueError(f"Negative depth or duration: {depth} m, {duration} min")

        if depth == 0 and duration == 0:
            logger.debug(f"Skipping UDDF dive {dive_id} without depth or duration")
            return None

        refs = [_text(_child(link, '@ref')) for link in ensure_list(_child(before, 'link'))]

        buddy = None
        inline_buddies = ensure_list(_child(after, 'buddy'))
        if inline_buddies:
            buddy = _person_name(_child(inline_buddies[0], 'personal'))
        if buddy is None:
            buddy = next((buddies[ref] for ref in refs if ref in buddies), None)

        location, lat, lng = self._resolve_site(refs, sites)

        return Dive(
            id=dive_id,
            datetime=self._parse_datetime(_text(_child(before, 'datetime'))),
            location=location,
            depth=depth,
            duration=duration,
            buddy=buddy,
            lat=lat,
            lng=lng,
            samples=self._parse_samples(_child(node, 'samples', 'waypoint')),
            rating=_optional_number(_child(after, 'rating', 'ratingvalue')),
            notes=self._parse_notes(_child(after, 'notes')),
        )

    def _resolve_site(self, refs: List[Optional[str]], sites: Dict[str, UDDFSite]):
        """Pick the linked site, else the first known site, else unknown"""
        site = next((sites[ref] for ref in refs if ref in sites), None)
        if site is not None:
            name = site.name or f"Site {site.id}"
        elif sites:
            site = next(iter(sites.values()))
            name = site.name or UNKNOWN_LOCATION
        else:
            return UNKNOWN_LOCATION, 0.0, 0.0

        return name, site.latitude or 0.0, site.longitude or 0.0

    def _parse_datetime(self, value: Optional[str]) -> datetime:
        """Parse the dive start; missing or unreadable dates become now"""
        if value is None:
            return _utcnow()
        try:
            parsed = date_parser.parse(value)
        except (ValueError, OverflowError):
            logger.warning(f"Invalid UDDF datetime {value!r}, using current time")
            return _utcnow()

        if parsed.tzinfo is None:
            return parsed.replace(tzinfo=timezone.utc)
        return parsed.astimezone(timezone.utc)

    def _parse_samples(self, waypoints: Any) -> Optional[List[DiveSample]]:
        """Convert waypoints to samples sorted by time

        Tank pressure is converted from pascals to bar. Temperature is stored
        exactly as the file gives it; see units.kelvin_to_celsius_if_needed
        for how it is interpreted when it is displayed.
        """
        samples = []
        for waypoint in ensure_list(waypoints):
            try:
                divetime = _number(_child(waypoint, 'divetime'))
                depth = _number(_child(waypoint, 'depth'))
                if divetime is None or depth is None:
                    continue
                samples.append(DiveSample(
                    time=int(round_half_up(divetime)),
                    depth=depth,
                    temperature=_number(_child(waypoint, 'temperature')),
                    pressure=self._pressure_in_bar(_child(waypoint, 'tankpressure')),
                ))
            except ValueError as e:
                logger.debug(f"Skipping malformed waypoint: {e}")

        if not samples:
            return None
        return sorted(samples, key=lambda s: s.time)

    def _pressure_in_bar(self, node: Any) -> Optional[float]:
        pascals = _number(node)
        if pascals is None:
            return None
        return pascals / PASCALS_PER_BAR

    def _parse_notes(self, notes: Any) -> Optional[str]:
        paragraphs = [_text(para) for para in ensure_list(_child(notes, 'para'))]
        text = '\n'.join(p for p in paragraphs if p)
        return text or None


def parse_uddf(content: Union[str, bytes]) -> List[Dive]:
    """Parse UDDF XML text into dives"""
    return UDDFParser().parse_string(content)


def validate_uddf_file(file_path: str) -> bool:
    """Check that a file looks importable before reading it

    The name must end in .uddf (any case) and the file must be non-empty
    and no larger than 10 MiB.
    """
    if not file_path.lower().endswith(UDDF_EXTENSION):
        return False
    if not os.path.isfile(file_path):
        return False

    size = os.path.getsize(file_path)
    return 0 < size <= MAX_UDDF_FILE_SIZE


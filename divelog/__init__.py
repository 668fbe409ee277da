"""Dive log import and normalization toolkit"""

from .dives import Dive, DiveSample, Equipment, GasMix, Tank, DiveConditions
from .exceptions import DiveLogError, UDDFParseError, SubsurfaceCSVParseError, DiveNotFoundError
from .uddf_parser import UDDFParser, parse_uddf, validate_uddf_file
from .subsurface_csv_parser import SubsurfaceCSVParser, parse_subsurface_csv

__version__ = "0.1.0"

__all__ = [
    "Dive",
    "DiveSample",
    "Equipment",
    "GasMix",
    "Tank",
    "DiveConditions",
    "DiveLogError",
    "UDDFParseError",
    "SubsurfaceCSVParseError",
    "DiveNotFoundError",
    "UDDFParser",
    "parse_uddf",
    "validate_uddf_file",
    "SubsurfaceCSVParser",
    "parse_subsurface_csv",
]

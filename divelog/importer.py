"""Format dispatch for dive log files"""

import logging
import os
from typing import List, Optional, Union

from .dives import Dive
from .repository import DiveRepository
from .subsurface_csv_parser import SubsurfaceCSVParser
from .uddf_parser import UDDFParser, validate_uddf_file, MAX_UDDF_FILE_SIZE

logger = logging.getLogger(__name__)


class DiveImporter:
    """Pick a parser by file extension and feed the result to a repository"""

    SUPPORTED_EXTENSIONS = {'.uddf', '.csv'}

    def __init__(self, repository: Optional[DiveRepository] = None):
        self.repository = repository

    @staticmethod
    def create_parser(file_path: str) -> Union[UDDFParser, SubsurfaceCSVParser]:
        """Create the parser matching the file extension"""
        ext = os.path.splitext(file_path)[1].lower()

        if ext == '.uddf':
            return UDDFParser()
        elif ext == '.csv':
            return SubsurfaceCSVParser()
        else:
            raise ValueError(f"Unsupported file format: {ext}")

    @classmethod
    def is_supported_file(cls, file_path: str) -> bool:
        ext = os.path.splitext(file_path)[1].lower()
        return ext in cls.SUPPORTED_EXTENSIONS

    def import_file(self, file_path: str) -> List[Dive]:
        """Parse a dive log file and store its dives when a repository is set

        Returns:
            The parsed dives, or the persisted copies with their assigned ids
        """
        parser = self.create_parser(file_path)

        if isinstance(parser, UDDFParser) and not validate_uddf_file(file_path):
            if not os.path.exists(file_path):
                raise FileNotFoundError(f"UDDF file not found: {file_path}")
            raise ValueError(
                f"Invalid UDDF file: {file_path} must be non-empty and at most "
                f"{MAX_UDDF_FILE_SIZE // (1024 * 1024)} MB"
            )

        logger.info(f"Importing dives from {os.path.basename(file_path)}")
        dives = parser.parse_file(file_path)

        if self.repository is None:
            return dives

        stored = self.repository.bulk_create(dives)
        logger.info(f"Stored {len(stored)} dives")
        return stored


def import_dives(file_path: str, repository: Optional[DiveRepository] = None) -> List[Dive]:
    """Import a .uddf or Subsurface .csv file"""
    return DiveImporter(repository).import_file(file_path)


def get_import_summary(dives: List[Dive]) -> str:
    """One-line description of what an import found"""
    if not dives:
        return 'No valid dives found in file'

    locations = {dive.location for dive in dives}
    first = dives[0].datetime.date().isoformat()
    last = dives[-1].datetime.date().isoformat()
    date_range = f"{first} to {last}" if len(dives) > 1 else first

    return (f"Found {len(dives)} dive{'' if len(dives) == 1 else 's'} "
            f"from {len(locations)} location{'' if len(locations) == 1 else 's'} ({date_range})")

"""Tests for importer module"""

from datetime import datetime, timezone

import pytest

from divelog.dives import Dive
from divelog.exceptions import SubsurfaceCSVParseError, UDDFParseError
from divelog.importer import DiveImporter, get_import_summary, import_dives
from divelog.repository import InMemoryDiveRepository
from divelog.subsurface_csv_parser import SubsurfaceCSVParser
from divelog.uddf_parser import MAX_UDDF_FILE_SIZE, UDDFParser

UDDF_CONTENT = '''<?xml version="1.0" encoding="UTF-8"?>
<uddf version="3.2.0">
<divesite><site id="s1"><name>Blue Hole</name></site></divesite>
<profiledata><repetitiongroup>
<dive id="d1">
<informationbeforedive><link ref="s1"/><datetime>2024-05-20T10:30:00</datetime></informationbeforedive>
<informationafterdive><greatestdepth>18.5</greatestdepth><diveduration>2700</diveduration></informationafterdive>
</dive>
<dive id="d2">
<informationbeforedive><link ref="s1"/><datetime>2024-05-21T09:00:00</datetime></informationbeforedive>
<informationafterdive><greatestdepth>22</greatestdepth><diveduration>2400</diveduration></informationafterdive>
</dive>
</repetitiongroup></profiledata>
</uddf>'''

CSV_CONTENT = '''dive number,date,time,duration [min],maxdepth [m],location
1,2024-06-01,08:00:00,40:00,15.2,Reef
'''


def make_dive(location, day):
    return Dive(
        datetime=datetime(2024, 5, day, 10, 0, tzinfo=timezone.utc),
        location=location,
        depth=10.0,
        duration=30,
    )


class TestDiveImporter:

    def test_create_parser_for_uddf(self, tmp_path):
        """Test creating parser for UDDF file"""
        uddf_file = tmp_path / "log.UDDF"
        assert isinstance(DiveImporter.create_parser(str(uddf_file)), UDDFParser)

    def test_create_parser_for_csv(self, tmp_path):
        """Test creating parser for Subsurface CSV file"""
        csv_file = tmp_path / "log.csv"
        assert isinstance(DiveImporter.create_parser(str(csv_file)), SubsurfaceCSVParser)

    def test_create_parser_unsupported_format(self, tmp_path):
        """Test creating parser for unsupported format"""
        with pytest.raises(ValueError, match="Unsupported file format"):
            DiveImporter.create_parser(str(tmp_path / "log.xml"))

    def test_is_supported_file(self):
        """Test checking if file is supported"""
        assert DiveImporter.is_supported_file('dives.uddf') is True
        assert DiveImporter.is_supported_file('dives.CSV') is True
        assert DiveImporter.is_supported_file('dives.txt') is False
        assert DiveImporter.is_supported_file('dives') is False

    def test_import_uddf_without_repository(self, tmp_path):
        """Test that parsed dives keep their parser ids"""
        uddf_file = tmp_path / "log.uddf"
        uddf_file.write_text(UDDF_CONTENT)

        dives = DiveImporter().import_file(str(uddf_file))
        assert [dive.id for dive in dives] == [1, 2]

    def test_import_csv_into_repository(self, tmp_path):
        """Test that the repository assigns ids to CSV dives"""
        csv_file = tmp_path / "log.csv"
        csv_file.write_text(CSV_CONTENT)
        repository = InMemoryDiveRepository()

        dives = import_dives(str(csv_file), repository)

        assert len(dives) == 1
        assert dives[0].id == 1
        assert dives[0].location == 'Reef'
        assert repository.list() == dives

    def test_import_uddf_into_repository(self, tmp_path):
        """Test that stored ids come from the repository"""
        uddf_file = tmp_path / "log.uddf"
        uddf_file.write_text(UDDF_CONTENT)
        repository = InMemoryDiveRepository()
        repository.create(make_dive('Earlier', 1))

        dives = DiveImporter(repository).import_file(str(uddf_file))
        assert [dive.id for dive in dives] == [2, 3]

    def test_empty_uddf_file_is_rejected(self, tmp_path):
        """Test the pre-read size check"""
        uddf_file = tmp_path / "empty.uddf"
        uddf_file.write_text('')

        with pytest.raises(ValueError, match="Invalid UDDF file"):
            DiveImporter().import_file(str(uddf_file))

    def test_oversized_uddf_file_is_rejected(self, tmp_path):
        """Test the 10 MB limit"""
        uddf_file = tmp_path / "huge.uddf"
        with open(uddf_file, 'wb') as f:
            f.truncate(MAX_UDDF_FILE_SIZE + 1)

        with pytest.raises(ValueError, match="at most 10 MB"):
            DiveImporter().import_file(str(uddf_file))

    def test_missing_files(self, tmp_path):
        """Test that missing files raise FileNotFoundError"""
        with pytest.raises(FileNotFoundError):
            DiveImporter().import_file(str(tmp_path / "missing.uddf"))
        with pytest.raises(FileNotFoundError):
            DiveImporter().import_file(str(tmp_path / "missing.csv"))

    def test_parse_errors_propagate(self, tmp_path):
        """Test that whole-file failures reach the caller"""
        uddf_file = tmp_path / "broken.uddf"
        uddf_file.write_text('<uddf><profiledata></uddf>')
        with pytest.raises(UDDFParseError):
            DiveImporter().import_file(str(uddf_file))

        csv_file = tmp_path / "broken.csv"
        csv_file.write_text('date,time\n2024-01-01,10:00\n')
        with pytest.raises(SubsurfaceCSVParseError, match="Missing required headers"):
            DiveImporter().import_file(str(csv_file))


class TestImportSummary:

    def test_summary(self):
        """Test counts and date range"""
        dives = [make_dive('Reef', 1), make_dive('Wreck', 3), make_dive('Reef', 9)]
        assert get_import_summary(dives) == 'Found 3 dives from 2 locations (2024-05-01 to 2024-05-09)'

    def test_single_dive(self):
        """Test singular wording"""
        assert get_import_summary([make_dive('Reef', 4)]) == 'Found 1 dive from 1 location (2024-05-04)'

    def test_no_dives(self):
        """Test the empty message"""
        assert get_import_summary([]) == 'No valid dives found in file'

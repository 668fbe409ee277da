"""Tests for cli module"""

import json
import logging
from datetime import datetime, timezone

import pytest
from click.testing import CliRunner

from divelog.cli import format_dive_line, main
from divelog.dives import (
    Dive, DiveConditions, DiveSample, Equipment, Tank, WaterTemperature,
)
from divelog.settings import IMPERIAL, METRIC

UDDF_CONTENT = '''<?xml version="1.0" encoding="UTF-8"?>
<uddf version="3.2.0">
<divesite><site id="s1"><name>Blue Hole</name></site></divesite>
<profiledata><repetitiongroup>
<dive id="d1">
<informationbeforedive><link ref="s1"/><datetime>2024-05-20T10:30:00</datetime></informationbeforedive>
<informationafterdive><greatestdepth>18.5</greatestdepth><diveduration>2700</diveduration></informationafterdive>
</dive>
<dive id="d2">
<informationbeforedive><link ref="s1"/><datetime>2024-06-02T09:00:00</datetime></informationbeforedive>
<informationafterdive><greatestdepth>30</greatestdepth><diveduration>3600</diveduration></informationafterdive>
</dive>
</repetitiongroup></profiledata>
</uddf>'''


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop the handler bound to the runner's stream after each invocation"""
    yield
    logging.getLogger('divelog').handlers.clear()


def write_uddf(tmp_path, content=UDDF_CONTENT, name="log.uddf"):
    uddf_file = tmp_path / name
    uddf_file.write_text(content)
    return str(uddf_file)


class TestFormatDiveLine:

    def make_dive(self, **overrides):
        values = dict(
            id=3,
            datetime=datetime(2024, 5, 20, 10, 30, tzinfo=timezone.utc),
            location='Blue Hole',
            depth=10.0,
            duration=65,
        )
        values.update(overrides)
        return Dive(**values)

    def test_metric(self):
        """Test the basic summary line"""
        line = format_dive_line(self.make_dive(buddy='Jane'), METRIC)
        assert line == '#3  2024-05-20 10:30  Blue Hole  10.0m  1h 5m  with Jane'

    def test_imperial_with_temperature(self):
        """Test conversion of depth and water temperature"""
        dive = self.make_dive(conditions=DiveConditions(water_temp=WaterTemperature(surface=25, bottom=25)))
        line = format_dive_line(dive, IMPERIAL)
        assert '32.8ft' in line
        assert '77.0°F' in line

    def test_sac_from_profile(self):
        """Test that SAC is shown when the dive has a tank and a profile"""
        dive = self.make_dive(
            duration=30,
            samples=[DiveSample(time=0, depth=20), DiveSample(time=1800, depth=20)],
            equipment=Equipment(tanks=[Tank(size=12, working_pressure=232,
                                            start_pressure=200, end_pressure=50)]),
        )
        assert format_dive_line(dive, METRIC).endswith('SAC 20.00 L/min')


class TestMain:

    def test_import_summary(self, tmp_path):
        """Test the default listing"""
        result = CliRunner().invoke(main, [write_uddf(tmp_path)])

        assert result.exit_code == 0
        assert 'Found 2 dives from 1 location (2024-05-20 to 2024-06-02)' in result.output
        assert '#1  2024-05-20 10:30  Blue Hole  18.5m  45m' in result.output
        assert '#2' in result.output

    def test_imperial_units(self, tmp_path):
        """Test the units option"""
        result = CliRunner().invoke(main, [write_uddf(tmp_path), '--units', 'imperial'])

        assert result.exit_code == 0
        assert '98.4ft' in result.output

    def test_settings_file(self, tmp_path):
        """Test unit preferences read from JSON"""
        settings_file = tmp_path / "settings.json"
        settings_file.write_text(json.dumps({'units': {'depth': 'feet'}}))

        result = CliRunner().invoke(main, [write_uddf(tmp_path), '-s', str(settings_file)])

        assert result.exit_code == 0
        assert '60.7ft' in result.output

    def test_json_output(self, tmp_path):
        """Test machine readable output"""
        result = CliRunner().invoke(main, [write_uddf(tmp_path), '--json'])

        assert result.exit_code == 0
        records = json.loads(result.output[result.output.index('[\n'):])
        assert [record['id'] for record in records] == [1, 2]
        assert records[0]['datetime'] == '2024-05-20T10:30:00Z'
        assert records[0]['location'] == 'Blue Hole'

    def test_stats(self, tmp_path):
        """Test the statistics section"""
        result = CliRunner().invoke(main, [write_uddf(tmp_path), '--stats'])

        assert result.exit_code == 0
        assert 'Total dives: 2' in result.output
        assert 'Total bottom time: 1h 45m' in result.output
        assert 'Deepest dive: #2 at Blue Hole' in result.output
        assert 'May 2024: 1' in result.output
        assert 'Jun 2024: 1' in result.output

    def test_unsupported_file(self, tmp_path):
        """Test that other extensions are rejected"""
        other = tmp_path / "log.txt"
        other.write_text('hello')

        result = CliRunner().invoke(main, [str(other)])
        assert result.exit_code == 1

    def test_invalid_uddf(self, tmp_path):
        """Test that parse errors exit with status 1"""
        result = CliRunner().invoke(main, [write_uddf(tmp_path, '<uddf><profiledata></uddf>')])

        assert result.exit_code == 1
        assert 'Failed to parse UDDF file' in result.output

    def test_no_dives(self, tmp_path):
        """Test a valid document without dives"""
        result = CliRunner().invoke(main, [write_uddf(tmp_path, '<uddf version="3.2.0"/>')])

        assert result.exit_code == 1
        assert 'No dives found in file' in result.output

    def test_missing_file(self, tmp_path):
        """Test that click rejects paths that do not exist"""
        result = CliRunner().invoke(main, [str(tmp_path / "missing.uddf")])
        assert result.exit_code == 2

"""Command line interface for divelog"""

import json
import logging
import math
import sys
from typing import Optional

import click

from .dives import Dive, calculate_sac
from .importer import DiveImporter, get_import_summary
from .profile import average_depth
from .repository import InMemoryDiveRepository
from .settings import UnitSettings, load_settings, settings_for_system
from .stats import calculate_dive_statistics, get_dives_by_month
from .units import format_depth, format_duration, format_temperature


def setup_logging(verbose: bool) -> logging.Logger:
    """Setup logging configuration"""
    logger = logging.getLogger('divelog')
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)

    handler = logging.StreamHandler()
    formatter = logging.Formatter(
        '%(levelname)s: %(message)s' if not verbose
        else '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    handler.setFormatter(formatter)
    # Repeated invocations in one process must not stack handlers
    logger.handlers.clear()
    logger.addHandler(handler)

    return logger


def _format_sac(dive: Dive, units: UnitSettings) -> Optional[str]:
    """SAC of the first tank, when the dive has both a tank and a profile"""
    if not dive.equipment or not dive.equipment.tanks or not dive.samples:
        return None

    avg_depth = average_depth(dive.samples)
    if avg_depth is None:
        return None

    system = 'imperial' if units.volume == 'cubic_feet' else 'metric'
    sac = calculate_sac(dive.equipment.tanks[0], dive.duration, avg_depth, system)
    if not math.isfinite(sac):
        return None
    return f"SAC {sac:.2f} {'cfm' if system == 'imperial' else 'L/min'}"


def format_dive_line(dive: Dive, units: UnitSettings) -> str:
    """One summary line per dive in the user's units"""
    parts = [
        f"#{dive.id}",
        dive.datetime.strftime('%Y-%m-%d %H:%M'),
        dive.location,
        format_depth(dive.depth, units.depth),
        format_duration(dive.duration),
    ]
    if dive.buddy:
        parts.append(f"with {dive.buddy}")
    if dive.conditions and dive.conditions.water_temp and dive.conditions.water_temp.bottom:
        parts.append(format_temperature(dive.conditions.water_temp.bottom, units.temperature))
    sac = _format_sac(dive, units)
    if sac:
        parts.append(sac)
    return '  '.join(parts)


def _print_statistics(dives, units: UnitSettings):
    stats = calculate_dive_statistics(dives)

    click.echo("\nSTATISTICS:")
    click.echo(f"  Total dives: {stats.total_dives}")
    click.echo(f"  Total bottom time: {format_duration(stats.total_bottom_time)}")
    click.echo(f"  Max depth: {format_depth(stats.max_depth, units.depth)}")
    click.echo(f"  Average depth: {format_depth(stats.avg_depth, units.depth)}")
    click.echo(f"  Unique locations: {stats.unique_locations}")
    if stats.last_dive_date:
        click.echo(f"  Last dive: {stats.last_dive_date.strftime('%Y-%m-%d')}")
    if stats.deepest_dive:
        click.echo(f"  Deepest dive: #{stats.deepest_dive.id} at {stats.deepest_dive.location}")
    if stats.longest_dive:
        click.echo(f"  Longest dive: #{stats.longest_dive.id} at {stats.longest_dive.location}")

    monthly = get_dives_by_month(dives)
    if monthly:
        click.echo("\n  Dives per month:")
        for entry in monthly:
            click.echo(f"    {entry['month']}: {entry['count']}")


@click.command()
@click.argument('dive_file', type=click.Path(exists=True, dir_okay=False))
@click.option('--units', '-u', type=click.Choice(['metric', 'imperial']),
              help='Display units (overrides the settings file)')
@click.option('--settings', '-s', 'settings_file', type=click.Path(exists=True, dir_okay=False),
              help='Path to a JSON settings file with unit preferences')
@click.option('--json', '-j', 'as_json', is_flag=True,
              help='Print the imported dives as JSON records')
@click.option('--stats', is_flag=True,
              help='Print dive statistics after the import summary')
@click.option('--verbose', '-v', is_flag=True,
              help='Enable verbose logging')
def main(dive_file: str, units: Optional[str], settings_file: Optional[str],
         as_json: bool, stats: bool, verbose: bool):
    """Import dives from a UDDF (.uddf) or Subsurface CSV (.csv) export.

    Parses the file, assigns ids to the dives and prints them in the
    preferred display units.
    """
    logger = setup_logging(verbose)

    try:
        unit_settings = load_settings(settings_file).units if settings_file else UnitSettings()
        if units:
            unit_settings = settings_for_system(units)

        if not DiveImporter.is_supported_file(dive_file):
            logger.error(f"Unsupported file type: {dive_file} (expected .uddf or .csv)")
            sys.exit(1)

        importer = DiveImporter(InMemoryDiveRepository())
        dives = importer.import_file(dive_file)

        if not dives:
            logger.error("No dives found in file")
            sys.exit(1)

        if as_json:
            click.echo(json.dumps([dive.to_dict() for dive in dives], indent=2, ensure_ascii=False))
            return

        click.echo(get_import_summary(dives))
        for dive in dives:
            click.echo(f"  {format_dive_line(dive, unit_settings)}")

        if stats:
            _print_statistics(dives, unit_settings)

    except (ValueError, FileNotFoundError) as e:
        logger.error(str(e))
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Operation cancelled by user")
        sys.exit(1)
    except Exception as e:
        logger.error(f"Unexpected error: {e}")
        if verbose:
            import traceback
            traceback.print_exc()
        sys.exit(1)


if __name__ == '__main__':
    main()

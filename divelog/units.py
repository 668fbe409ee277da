"""Unit conversion and display formatting for dive measurements

All stored values are metric (meters, celsius, kilometers, kilograms, bar,
liters). Conversions to the user's units happen only when values are
displayed, so rounding in the display path never compounds.
"""

import math
from typing import Dict, Optional, Tuple

# quantity -> (metric unit, imperial unit, factor metric -> imperial)
CONVERSIONS: Dict[str, Tuple[str, str, float]] = {
    'depth': ('meters', 'feet', 3.28084),
    'temperature': ('celsius', 'fahrenheit', 9 / 5),
    'distance': ('kilometers', 'miles', 0.621371),
    'weight': ('kilograms', 'pounds', 2.20462),
    'pressure': ('bar', 'psi', 14.5038),
    'volume': ('liters', 'cubic_feet', 0.0353147),
}

UNIT_LABELS: Dict[str, Dict[str, str]] = {
    'depth': {'meters': 'm', 'feet': 'ft'},
    'temperature': {'celsius': '°C', 'fahrenheit': '°F'},
    'distance': {'kilometers': 'km', 'miles': 'mi'},
    'weight': {'kilograms': 'kg', 'pounds': 'lbs'},
    'pressure': {'bar': 'bar', 'psi': 'psi'},
    'volume': {'liters': 'L', 'cubic_feet': 'ft³'},
}

DEFAULT_PRECISION: Dict[str, int] = {
    'depth': 1,
    'temperature': 1,
    'distance': 1,
    'weight': 1,
    'pressure': 0,
    'volume': 1,
}

KELVIN_THRESHOLD = 100.0
KELVIN_OFFSET = 273.15


def round_half_up(value: float, digits: int = 0) -> float:
    """Round to the given number of decimals, halves rounding up"""
    if not math.isfinite(value):
        return value
    scale = 10 ** digits
    return math.floor(value * scale + 0.5) / scale


def _units_for(quantity: str) -> Tuple[str, str, float]:
    try:
        return CONVERSIONS[quantity]
    except KeyError:
        raise ValueError(f"Unsupported quantity: {quantity}")


def convert(quantity: str, value: float, from_unit: str, to_unit: str, rounded: bool = False) -> float:
    """Convert a value of the given quantity between its two units

    Args:
        quantity: One of the keys of CONVERSIONS
        value: Value expressed in from_unit
        from_unit: Source unit
        to_unit: Target unit
        rounded: Round the result to one decimal (whole units for psi)

    Returns:
        The value expressed in to_unit
    """
    metric, imperial, factor = _units_for(quantity)
    for unit in (from_unit, to_unit):
        if unit not in (metric, imperial):
            raise ValueError(f"Unsupported {quantity} unit: {unit}")

    if from_unit == to_unit:
        result = value
    elif quantity == 'temperature':
        if from_unit == metric:
            result = value * factor + 32
        else:
            result = (value - 32) / factor
    elif from_unit == metric:
        result = value * factor
    else:
        result = value / factor

    if rounded:
        return round_half_up(result, 0 if to_unit == 'psi' else 1)
    return result


def convert_depth(value: float, from_unit: str, to_unit: str, rounded: bool = False) -> float:
    return convert('depth', value, from_unit, to_unit, rounded)


def convert_temperature(value: float, from_unit: str, to_unit: str, rounded: bool = False) -> float:
    return convert('temperature', value, from_unit, to_unit, rounded)


def convert_distance(value: float, from_unit: str, to_unit: str, rounded: bool = False) -> float:
    return convert('distance', value, from_unit, to_unit, rounded)


def convert_weight(value: float, from_unit: str, to_unit: str, rounded: bool = False) -> float:
    return convert('weight', value, from_unit, to_unit, rounded)


def convert_pressure(value: float, from_unit: str, to_unit: str, rounded: bool = False) -> float:
    return convert('pressure', value, from_unit, to_unit, rounded)


def convert_volume(value: float, from_unit: str, to_unit: str, rounded: bool = False) -> float:
    return convert('volume', value, from_unit, to_unit, rounded)


def unit_label(quantity: str, unit: str) -> str:
    """Return the short display label for a unit, e.g. 'ft' for feet"""
    try:
        return UNIT_LABELS[quantity][unit]
    except KeyError:
        raise ValueError(f"Unsupported {quantity} unit: {unit}")


def format_value(value: float, quantity: str, unit: str, precision: Optional[int] = None) -> str:
    """Format a metric value in the requested display unit with its label"""
    metric = _units_for(quantity)[0]
    if precision is None:
        precision = DEFAULT_PRECISION[quantity]
    converted = convert(quantity, value, metric, unit)
    return f"{converted:.{precision}f}{unit_label(quantity, unit)}"


def format_depth(value: float, unit: str, precision: Optional[int] = None) -> str:
    return format_value(value, 'depth', unit, precision)


def format_temperature(value: float, unit: str, precision: Optional[int] = None) -> str:
    return format_value(value, 'temperature', unit, precision)


def format_distance(value: float, unit: str, precision: Optional[int] = None) -> str:
    return format_value(value, 'distance', unit, precision)


def format_weight(value: float, unit: str, precision: Optional[int] = None) -> str:
    return format_value(value, 'weight', unit, precision)


def format_pressure(value: float, unit: str, precision: Optional[int] = None) -> str:
    return format_value(value, 'pressure', unit, precision)


def format_volume(value: float, unit: str, precision: Optional[int] = None) -> str:
    return format_value(value, 'volume', unit, precision)


def kelvin_to_celsius_if_needed(value: float) -> float:
    """Treat readings above 100 as Kelvin and return Celsius

    Dive computers usually export water temperature in Kelvin, but some
    tools write Celsius into the same field. The threshold is a heuristic:
    no plausible water or air reading in Celsius exceeds it.
    """
    if value > KELVIN_THRESHOLD:
        return value - KELVIN_OFFSET
    return value


def format_duration(minutes: int) -> str:
    """Format a duration in minutes as '1h 5m' or '45m'"""
    hours, mins = divmod(int(minutes), 60)
    if hours > 0:
        return f"{hours}h {mins}m"
    return f"{mins}m"

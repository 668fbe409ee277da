"""Display series derived from dive profile samples"""

from typing import List, Optional, Sequence

from .dives import DiveSample
from .units import convert, kelvin_to_celsius_if_needed


def depth_series(samples: Sequence[DiveSample], unit: str = 'meters') -> List[float]:
    """Depth of every sample in the requested unit"""
    return [convert('depth', sample.depth, 'meters', unit) for sample in samples]


def pressure_series(samples: Sequence[DiveSample], unit: str = 'bar') -> List[Optional[float]]:
    """Tank pressure per sample, None where the sample has no reading"""
    return [
        convert('pressure', sample.pressure, 'bar', unit) if sample.pressure is not None else None
        for sample in samples
    ]


def temperature_series(samples: Sequence[DiveSample], unit: str = 'celsius') -> List[Optional[float]]:
    """Temperature per sample with gaps between readings filled in

    Computers log temperature far less often than depth. Raw readings are
    normalized with the Kelvin heuristic, converted to the display unit and
    linearly interpolated by sample index between consecutive readings.
    Samples before the first or after the last reading stay None.
    """
    series: List[Optional[float]] = [None] * len(samples)

    readings = []
    for index, sample in enumerate(samples):
        if sample.temperature is not None:
            celsius = kelvin_to_celsius_if_needed(sample.temperature)
            readings.append((index, convert('temperature', celsius, 'celsius', unit)))

    for (start, start_value), (end, end_value) in zip(readings, readings[1:]):
        span = end - start
        for step in range(span):
            series[start + step] = start_value + (end_value - start_value) * step / span

    if readings:
        last_index, last_value = readings[-1]
        series[last_index] = last_value

    return series


def average_depth(samples: Sequence[DiveSample]) -> Optional[float]:
    """Time-weighted mean depth in meters over the whole profile

    Each segment between consecutive samples contributes the mean of its
    two depths weighted by its duration. Returns None for fewer than two
    samples or a profile with no elapsed time.
    """
    if len(samples) < 2:
        return None

    weighted = 0.0
    for first, second in zip(samples, samples[1:]):
        weighted += (first.depth + second.depth) / 2 * (second.time - first.time)

    elapsed = samples[-1].time - samples[0].time
    if elapsed <= 0:
        return None
    return weighted / elapsed

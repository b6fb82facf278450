"""
Segment Builder.

Pairs each GPS sample with its immediate predecessor in time.
"""

from typing import Iterable, List

from mileage_backend.app.schemas.mileage import GpsSample, Segment
from mileage_backend.app.services.geo import haversine_distance_m


def order_samples(samples: Iterable[GpsSample]) -> List[GpsSample]:
    """Sort by recorded_at. The sort is stable, so store order breaks ties."""
    return sorted(samples, key=lambda s: s.recorded_at)


def build_segments(samples: Iterable[GpsSample]) -> List[Segment]:
    """
    Build directed segments from time-adjacent samples.

    The first sample has no predecessor and produces no segment, so n samples
    give max(n - 1, 0) segments.
    """
    ordered = order_samples(samples)
    segments = []
    for previous, current in zip(ordered, ordered[1:]):
        segments.append(Segment(
            distance_m=haversine_distance_m(
                previous.latitude, previous.longitude,
                current.latitude, current.longitude
            ),
            elapsed_s=(current.recorded_at - previous.recorded_at).total_seconds(),
            source_speed=current.speed,
            started_at=previous.recorded_at,
            ended_at=current.recorded_at,
        ))
    return segments

"""
Window Distance Aggregator.

The single reusable primitive of the mileage engine: distance travelled by a
driver inside an arbitrary time window.

Pipeline:
1. Load samples for the window (SampleStore)
2. Sort by recorded_at
3. Drop low-accuracy fixes (accuracy gate)
4. Pair time-adjacent samples into segments
5. Drop segments failing the quality filter
6. Sum surviving distances, meters -> kilometers
"""

import logging
import math
from collections import Counter
from datetime import datetime
from typing import Iterable
from uuid import UUID

from mileage_backend.app.core.mileage_config import MileageConfig
from mileage_backend.app.core.validators import ensure_utc
from mileage_backend.app.domain.mileage.quality_filter import passes_accuracy_gate, rejection_reason
from mileage_backend.app.domain.mileage.sample_store import SampleStore
from mileage_backend.app.domain.mileage.segments import build_segments, order_samples
from mileage_backend.app.schemas.mileage import GpsSample, WindowDistance
from mileage_backend.app.services.geo import METERS_PER_KM

logger = logging.getLogger("mileage.aggregator")


def safe_distance_km(value: float) -> float:
    """Coerce NaN, infinities and negatives to 0."""
    if not math.isfinite(value) or value < 0:
        return 0.0
    return value


def summarize_window(
    samples: Iterable[GpsSample],
    config: MileageConfig,
    driver_id: UUID,
    window_start: datetime,
    window_end: datetime,
) -> WindowDistance:
    """
    Run the filtering pipeline over already-loaded samples.

    Pure function; never raises for empty or degenerate input.
    """
    ordered = order_samples(samples)
    accurate = [s for s in ordered if passes_accuracy_gate(s, config)]
    segments = build_segments(accurate)

    rejections = Counter()
    kept_m = []
    for segment in segments:
        reason = rejection_reason(segment, config)
        if reason is None:
            kept_m.append(segment.distance_m)
        else:
            rejections[reason.value] += 1

    return WindowDistance(
        driver_id=driver_id,
        window_start=window_start,
        window_end=window_end,
        distance_km=safe_distance_km(math.fsum(kept_m) / METERS_PER_KM),
        raw_sample_count=len(ordered),
        accurate_sample_count=len(accurate),
        raw_segment_count=max(len(ordered) - 1, 0),
        candidate_segment_count=len(segments),
        kept_segment_count=len(kept_m),
        rejections=dict(rejections),
    )


class WindowDistanceAggregator:

    def __init__(self, sample_store: SampleStore, config: MileageConfig):
        self.sample_store = sample_store
        self.config = config

    async def measure(self, driver_id: UUID, start: datetime, end: datetime) -> WindowDistance:
        """
        Distance travelled by the driver with start <= recorded_at <= end.

        Windows with end <= start are empty and do not query the store.
        """
        start = ensure_utc(start)
        end = ensure_utc(end)

        if end <= start:
            return WindowDistance(driver_id=driver_id, window_start=start, window_end=end)

        samples = await self.sample_store.fetch_samples(driver_id, start, end)
        window = summarize_window(samples, self.config, driver_id, start, end)

        logger.debug(
            "Window distance computed",
            extra={
                "driver_id": str(driver_id),
                "window_start": start.isoformat(),
                "window_end": end.isoformat(),
                "distance_km": window.distance_km,
                "raw_samples": window.raw_sample_count,
                "kept_segments": window.kept_segment_count,
            }
        )
        return window

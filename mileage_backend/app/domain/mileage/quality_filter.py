"""
GPS Quality Filter.

Decides whether a sample or segment represents genuine travel rather than
sensor noise. All rules are pure functions of the input and a MileageConfig.

Rules (all must pass):
1. Accuracy gate   - samples with accuracy > max_accuracy_m never form segments
2. Temporal check  - elapsed time must be strictly positive
3. Motion gate     - reported endpoint speed, when present, must be >= min_speed_mps
4. Outlier check   - drop jumps > outlier_distance_m made in < outlier_window_s
5. Speed cap       - implied speed must not exceed max_speed_kmh
"""

import enum
from typing import Optional

from mileage_backend.app.core.mileage_config import MileageConfig
from mileage_backend.app.schemas.mileage import GpsSample, Segment


class RejectionReason(str, enum.Enum):
    NON_POSITIVE_ELAPSED = "NON_POSITIVE_ELAPSED"
    STATIONARY = "STATIONARY"
    OUTLIER_JUMP = "OUTLIER_JUMP"
    SPEED_CAP = "SPEED_CAP"


def passes_accuracy_gate(sample: GpsSample, config: MileageConfig) -> bool:
    """A fix without a reported accuracy is accepted."""
    if sample.accuracy is None:
        return True
    return sample.accuracy <= config.max_accuracy_m


def implied_speed_mps(segment: Segment) -> float:
    return segment.distance_m / max(segment.elapsed_s, 1.0)


def rejection_reason(segment: Segment, config: MileageConfig) -> Optional[RejectionReason]:
    """
    Return the first rule the segment fails, or None if it counts as travel.
    """
    if segment.elapsed_s <= 0:
        return RejectionReason.NON_POSITIVE_ELAPSED

    # Unknown speed is allowed through
    if segment.source_speed is not None and segment.source_speed < config.min_speed_mps:
        return RejectionReason.STATIONARY

    if (
        segment.distance_m > config.outlier_distance_m
        and segment.elapsed_s < config.outlier_window_s
    ):
        return RejectionReason.OUTLIER_JUMP

    if implied_speed_mps(segment) > config.max_speed_mps:
        return RejectionReason.SPEED_CAP

    return None


def is_travel_segment(segment: Segment, config: MileageConfig) -> bool:
    return rejection_reason(segment, config) is None

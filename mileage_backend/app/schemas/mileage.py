"""
Mileage schemas.

In-memory pipeline types (samples, segments, windows) and the results
returned to callers.
"""

import math
from datetime import datetime
from typing import Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, computed_field, field_validator

from mileage_backend.app.core.validators import ensure_utc
from mileage_backend.app.services.geo import km_to_miles


class GpsSample(BaseModel):
    """One GPS fix read from the store."""
    latitude: float
    longitude: float
    accuracy: Optional[float] = None  # meters
    speed: Optional[float] = None  # meters/second
    recorded_at: datetime

    class Config:
        from_attributes = True
        frozen = True

    @field_validator("recorded_at")
    @classmethod
    def normalize_recorded_at(cls, value: datetime) -> datetime:
        return ensure_utc(value)


class Segment(BaseModel):
    """Two time-adjacent samples of the same driver."""
    distance_m: float
    elapsed_s: float
    source_speed: Optional[float] = None  # speed reported by the endpoint sample
    started_at: datetime
    ended_at: datetime

    class Config:
        frozen = True


class WindowDistance(BaseModel):
    """Distance travelled by a driver in a time window, with filter statistics."""
    driver_id: UUID
    window_start: datetime
    window_end: datetime
    distance_km: float = 0.0
    raw_sample_count: int = 0
    accurate_sample_count: int = 0
    raw_segment_count: int = 0
    candidate_segment_count: int = 0
    kept_segment_count: int = 0
    rejections: Dict[str, int] = Field(default_factory=dict)

    @property
    def accuracy_filter_rate(self) -> float:
        """
        Share of raw segments lost because a sample failed the accuracy gate.

        A single-sample window has no segments; the share of rejected samples
        is used instead.
        """
        if self.raw_segment_count == 0:
            if self.raw_sample_count == 0:
                return 0.0
            return (self.raw_sample_count - self.accurate_sample_count) / self.raw_sample_count
        lost = self.raw_segment_count - self.candidate_segment_count
        return lost / self.raw_segment_count


class ShiftWindow(BaseModel):
    """Outer time bound of a shift."""
    shift_id: UUID
    driver_id: UUID
    start: datetime
    end: datetime  # shift end, or "now" while the shift is open
    is_open: bool = False

    @property
    def is_inverted(self) -> bool:
        return self.end < self.start


class DeliveryTimes(BaseModel):
    """Lifecycle timestamps of a delivery attached to a shift."""
    id: UUID
    assigned_at: Optional[datetime] = None
    picked_up_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None
    estimated_delivery_time: Optional[datetime] = None

    class Config:
        from_attributes = True

    @field_validator("assigned_at", "picked_up_at", "delivered_at", "estimated_delivery_time")
    @classmethod
    def normalize_timestamps(cls, value: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(value)


class DeliveryWindow(BaseModel):
    """Best-effort time window of a single delivery."""
    delivery_id: UUID
    start: datetime
    end: datetime

    @property
    def is_valid(self) -> bool:
        return self.end > self.start


class MileageResult(BaseModel):
    """Total GPS distance of a shift."""
    shift_id: UUID
    total_km: float = Field(..., ge=0)

    @computed_field
    @property
    def total_miles(self) -> float:
        return km_to_miles(self.total_km)


class DeliveryDistance(BaseModel):
    """Distance attributed to one delivery."""
    delivery_id: UUID
    distance_km: float = Field(..., ge=0)


class MileageBreakdown(BaseModel):
    """Shift total plus per-delivery distances."""
    shift_id: UUID
    total_km: float = Field(..., ge=0)
    deliveries: List[DeliveryDistance] = Field(default_factory=list)

    @computed_field
    @property
    def total_miles(self) -> float:
        return km_to_miles(self.total_km)

    @property
    def deliveries_total_km(self) -> float:
        return math.fsum(d.distance_km for d in self.deliveries)


class DriverDistanceResponse(BaseModel):
    """Window distance summary for a driver."""
    driver_id: UUID
    start: datetime
    end: datetime
    distance_km: float
    raw_sample_count: int
    kept_segment_count: int
    accuracy_filter_rate: float

"""
Mileage engine thresholds.

Quality filter and consistency monitor tuning values. Defaults come from
application settings; tests build their own instances.
"""

from pydantic import BaseModel, Field

from mileage_backend.app.core.config import Settings, settings


class MileageConfig(BaseModel):
    """Tunable thresholds for GPS filtering and consistency checks."""

    # Quality filter
    max_accuracy_m: float = Field(100.0, gt=0)  # Fixes with a wider error radius are dropped
    min_speed_mps: float = Field(0.5, ge=0)  # Below this the device is stationary
    outlier_distance_m: float = Field(5000.0, gt=0)
    outlier_window_s: float = Field(30.0, ge=0)
    max_speed_kmh: float = Field(150.0, gt=0)

    # Consistency monitor
    implausible_total_km: float = Field(500.0, gt=0)
    filter_rate_threshold: float = Field(0.5, ge=0, le=1)
    divergence_threshold: float = Field(0.2, ge=0)

    class Config:
        frozen = True

    @property
    def max_speed_mps(self) -> float:
        return self.max_speed_kmh / 3.6

    @classmethod
    def from_settings(cls, app_settings: Settings = settings) -> "MileageConfig":
        return cls(
            max_accuracy_m=app_settings.mileage_max_accuracy_m,
            min_speed_mps=app_settings.mileage_min_speed_mps,
            outlier_distance_m=app_settings.mileage_outlier_distance_m,
            outlier_window_s=app_settings.mileage_outlier_window_s,
            max_speed_kmh=app_settings.mileage_max_speed_kmh,
            implausible_total_km=app_settings.mileage_implausible_total_km,
            filter_rate_threshold=app_settings.mileage_filter_rate_threshold,
            divergence_threshold=app_settings.mileage_divergence_threshold,
        )

"""
Driver Distance API Endpoints.

GPS distance for a driver over an arbitrary time range. Read-only.
"""

from datetime import datetime

from fastapi import APIRouter, Depends, Path, Query

from mileage_backend.app.api.v1.dependencies import get_mileage_service
from mileage_backend.app.domain.mileage.mileage_service import MileageService
from mileage_backend.app.schemas.mileage import DriverDistanceResponse

router = APIRouter(prefix="/drivers", tags=["Driver Distance"])


@router.get("/{driver_id}/distance", response_model=DriverDistanceResponse)
async def get_driver_distance(
    driver_id: str = Path(..., description="Driver ID (UUID)"),
    start: datetime = Query(..., description="Window start (inclusive)"),
    end: datetime = Query(..., description="Window end (inclusive)"),
    service: MileageService = Depends(get_mileage_service)
):
    """
    Get filtered GPS distance for a driver between start and end.

    A window with end <= start is empty and yields 0.
    """
    window = await service.measure_driver_window(driver_id, start, end)
    return DriverDistanceResponse(
        driver_id=window.driver_id,
        start=window.window_start,
        end=window.window_end,
        distance_km=window.distance_km,
        raw_sample_count=window.raw_sample_count,
        kept_segment_count=window.kept_segment_count,
        accuracy_filter_rate=window.accuracy_filter_rate,
    )

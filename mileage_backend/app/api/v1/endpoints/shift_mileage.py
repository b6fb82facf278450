"""
Shift Mileage API Endpoints.

Trigger GPS mileage recomputation for a shift.
"""

from fastapi import APIRouter, Depends, Path

from mileage_backend.app.api.v1.dependencies import get_mileage_service
from mileage_backend.app.domain.mileage.mileage_service import MileageService
from mileage_backend.app.schemas.mileage import MileageBreakdown, MileageResult

router = APIRouter(prefix="/shifts", tags=["Shift Mileage"])


@router.post("/{shift_id}/mileage", response_model=MileageResult)
async def compute_shift_mileage(
    shift_id: str = Path(..., description="Shift ID (UUID)"),
    service: MileageService = Depends(get_mileage_service)
):
    """
    Recompute and persist the GPS distance of a shift.

    Safe to call repeatedly; the same samples always give the same total.
    """
    return await service.compute_shift_mileage(shift_id)


@router.post("/{shift_id}/mileage/breakdown", response_model=MileageBreakdown)
async def compute_shift_mileage_breakdown(
    shift_id: str = Path(..., description="Shift ID (UUID)"),
    service: MileageService = Depends(get_mileage_service)
):
    """
    Recompute the shift total with a per-delivery distance breakdown.

    Only the shift total is persisted.
    """
    return await service.compute_shift_mileage_with_breakdown(shift_id)

"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from mileage_backend.app.api.v1.endpoints import shift_mileage, driver_distance

router = APIRouter()

# Shift mileage recomputation
router.include_router(shift_mileage.router)

# Driver window distance
router.include_router(driver_distance.router)

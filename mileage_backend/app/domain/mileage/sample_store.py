"""
Sample Store Accessor.

Reads a driver's GPS samples for a time window from the driver_locations
table. Stateless; every call uses its own session.
"""

from datetime import datetime
from typing import List
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import async_sessionmaker

from mileage_backend.app.models.driver_location import DriverLocation
from mileage_backend.app.schemas.mileage import GpsSample


class SampleStore:

    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory

    async def fetch_samples(self, driver_id: UUID, start: datetime, end: datetime) -> List[GpsSample]:
        """
        Get non-deleted samples with start <= recorded_at <= end.

        Returns:
            Samples ordered by recorded_at (ties by id)
        """
        stmt = select(DriverLocation).where(
            DriverLocation.driver_id == driver_id,
            DriverLocation.recorded_at >= start,
            DriverLocation.recorded_at <= end,
            DriverLocation.deleted_at.is_(None)
        ).order_by(DriverLocation.recorded_at, DriverLocation.id)

        async with self.session_factory() as session:
            result = await session.execute(stmt)
            rows = result.scalars().all()

        return [GpsSample.model_validate(row) for row in rows]

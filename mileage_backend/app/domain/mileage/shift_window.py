"""
Shift Window Resolver.

Loads a shift and turns it into the outer time bound for every windowed
calculation belonging to it.
"""

from datetime import datetime, timezone
from typing import Callable, Optional, Union
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import async_sessionmaker

from mileage_backend.app.core.validators import ensure_utc, parse_identifier
from mileage_backend.app.models.driver_shift import DriverShift
from mileage_backend.app.schemas.mileage import ShiftWindow


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ShiftWindowResolver:

    def __init__(self, session_factory: async_sessionmaker, clock: Callable[[], datetime] = utc_now):
        self.session_factory = session_factory
        self.clock = clock

    async def resolve(self, shift_id: Union[str, UUID]) -> Optional[ShiftWindow]:
        """
        Resolve a shift's driver and effective time bounds.

        Args:
            shift_id: Shift identifier (UUID)

        Returns:
            ShiftWindow, or None when no (non-deleted) shift matches

        Raises:
            InvalidIdentifierError: If shift_id is malformed (before querying)
        """
        shift_uuid = parse_identifier(shift_id, "shift_id")

        stmt = select(
            DriverShift.id,
            DriverShift.driver_id,
            DriverShift.shift_start,
            DriverShift.shift_end,
        ).where(
            DriverShift.id == shift_uuid,
            DriverShift.deleted_at.is_(None)
        )

        async with self.session_factory() as session:
            row = (await session.execute(stmt)).one_or_none()

        if row is None:
            return None

        # Open shifts are measured up to "now"
        end = ensure_utc(row.shift_end) if row.shift_end is not None else ensure_utc(self.clock())

        return ShiftWindow(
            shift_id=row.id,
            driver_id=row.driver_id,
            start=ensure_utc(row.shift_start),
            end=end,
            is_open=row.shift_end is None,
        )

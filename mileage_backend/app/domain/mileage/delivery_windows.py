"""
Delivery Window Resolver.

Loads the deliveries attached to a shift and derives a best-effort time
window for each one from its lifecycle timestamps.
"""

from typing import List, Union
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import async_sessionmaker

from mileage_backend.app.core.validators import parse_identifier
from mileage_backend.app.models.delivery import Delivery
from mileage_backend.app.schemas.mileage import DeliveryTimes, DeliveryWindow, ShiftWindow


def derive_window(delivery: DeliveryTimes, shift: ShiftWindow) -> DeliveryWindow:
    """
    Derive a delivery window, falling back to the shift's own bounds.

    start = picked_up_at, else assigned_at, else shift start
    end   = delivered_at, else estimated_delivery_time, else shift end

    The result may be invalid (end <= start); callers decide what to do.
    """
    start = delivery.picked_up_at or delivery.assigned_at or shift.start
    end = delivery.delivered_at or delivery.estimated_delivery_time or shift.end
    return DeliveryWindow(delivery_id=delivery.id, start=start, end=end)


class DeliveryWindowResolver:

    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory

    async def load(self, shift_id: Union[str, UUID]) -> List[DeliveryTimes]:
        """
        Get non-deleted deliveries attached to a shift.

        Returns:
            Deliveries ordered by assignment time
        """
        shift_uuid = parse_identifier(shift_id, "shift_id")

        stmt = select(Delivery).where(
            Delivery.shift_id == shift_uuid,
            Delivery.deleted_at.is_(None)
        ).order_by(Delivery.assigned_at, Delivery.created_at, Delivery.id)

        async with self.session_factory() as session:
            result = await session.execute(stmt)
            rows = result.scalars().all()

        return [DeliveryTimes.model_validate(row) for row in rows]
